from __future__ import annotations

import pytest

from subs_merkle.errors import SubscriberStoreError
from subs_merkle.store import DEFAULT_TTL_SECONDS, SQLiteSubscriberStore
from subs_merkle.subscriptions import build_subscription_tree


def test_upsert_normalizes_and_updates(tmp_path) -> None:
    with SQLiteSubscriberStore(tmp_path / "subs.db") as store:
        address = store.upsert_subscriber("AB" * 20, 1000)
        assert address == "0x" + "ab" * 20
        store.upsert_subscriber("0x" + "ab" * 20, 2000)
        assert store.fetch_subscribers() == [("0x" + "ab" * 20, 2000)]


def test_rows_persist_across_connections(tmp_path) -> None:
    db_path = tmp_path / "nested" / "subs.db"
    with SQLiteSubscriberStore(db_path) as store:
        store.upsert_subscriber("0x" + "22" * 20, 2000)
        store.upsert_subscriber("0x" + "11" * 20, 1000)

    with SQLiteSubscriberStore(db_path) as store:
        rows = store.fetch_subscribers()
    assert rows == [("0x" + "11" * 20, 1000), ("0x" + "22" * 20, 2000)]
    assert build_subscription_tree(rows).proof_for("0x" + "11" * 20) is not None


@pytest.mark.parametrize("address", ["0x1234", "0x" + "zz" * 20, "0x" + "11" * 21])
def test_invalid_address_rejected(address: str) -> None:
    with SQLiteSubscriberStore(":memory:") as store:
        with pytest.raises(SubscriberStoreError):
            store.upsert_subscriber(address, 1)


def test_seed_mock_subscribers(tmp_path) -> None:
    with SQLiteSubscriberStore(tmp_path / "subs.db") as store:
        addresses = store.seed_mock_subscribers(5, now=1_700_000_000)
        rows = store.fetch_subscribers()

    assert len(set(addresses)) == 5
    assert all(len(address) == 42 for address in addresses)
    assert sorted(addresses) == [address for address, _ in rows]
    assert {expiration for _, expiration in rows} == {1_700_000_000 + DEFAULT_TTL_SECONDS}


def test_merkle_state_tracks_sync(tmp_path) -> None:
    with SQLiteSubscriberStore(tmp_path / "subs.db") as store:
        assert store.latest_merkle_state() is None
        unsynced = store.record_merkle_state("aa" * 32)
        assert unsynced.synced is False
        store.record_merkle_state("bb" * 32, tx_hash="0x" + "cc" * 32)
        latest = store.latest_merkle_state()

    assert latest is not None
    assert latest.root_hash == "bb" * 32
    assert latest.tx_hash == "0x" + "cc" * 32
    assert latest.synced is True


@pytest.mark.parametrize("expiration", [2**63, 2**64, -(2**63) - 1, 1000.5])
def test_invalid_expiration_rejected_before_insert(expiration) -> None:  # noqa: ANN001
    with SQLiteSubscriberStore(":memory:") as store:
        with pytest.raises(SubscriberStoreError) as exc_info:
            store.upsert_subscriber("0x" + "11" * 20, expiration)
        assert "expiration" in str(exc_info.value)
        assert store.fetch_subscribers() == []
