from __future__ import annotations

import pytest

from subs_merkle.errors import (
    EmptyLeafSetError,
    InvalidAddressLengthError,
    InvalidHexInputError,
    InvalidRootLengthError,
)
from subs_merkle.leaf import compute_leaf
from subs_merkle.subscriptions import (
    SubscriberRecord,
    build_subscription_tree,
    verify_subscription,
    verify_subscription_proof,
)

ROWS = [
    ("0x" + "33" * 20, 3000),
    ("0x" + "11" * 20, 1000),
    ("0x" + "22" * 20, 2000),
    ("0x" + "44" * 20, 4000),
    ("0x" + "55" * 20, 5000),
]


def test_records_listed_by_address_and_root_is_order_independent() -> None:
    subscriptions = build_subscription_tree(ROWS)
    assert [record.address_hex for record in subscriptions.records] == sorted(
        address for address, _ in ROWS
    )
    assert build_subscription_tree(reversed(ROWS)).root == subscriptions.root
    assert len(subscriptions.root_hex) == 64
    assert not subscriptions.root_hex.startswith("0x")


def test_every_subscriber_verifies() -> None:
    subscriptions = build_subscription_tree(ROWS)
    for address, expiration in ROWS:
        proof = subscriptions.proof_for(address)
        assert proof is not None
        assert verify_subscription(subscriptions.root_hex, proof, address, expiration) is True


def test_tampered_expiration_rejected() -> None:
    subscriptions = build_subscription_tree(ROWS)
    address, _ = ROWS[0]
    proof = subscriptions.proof_for(address)
    assert verify_subscription(subscriptions.root_hex, proof, address, 9999999999) is False


def test_lookup_is_case_and_prefix_insensitive() -> None:
    subscriptions = build_subscription_tree(ROWS)
    assert subscriptions.proof_for("33" * 20) == subscriptions.proof_for("0x" + "33" * 20)
    assert subscriptions.find_record("0X" + "AA" * 20) is None
    assert subscriptions.proof_for("0x" + "aa" * 20) is None


def test_empty_rows_rejected() -> None:
    with pytest.raises(EmptyLeafSetError):
        build_subscription_tree([])


def test_record_validates_address() -> None:
    with pytest.raises(InvalidAddressLengthError):
        SubscriberRecord(address=b"\x01" * 19, expiration=1)
    with pytest.raises(InvalidHexInputError):
        SubscriberRecord.from_hex("0xnothex", 1)
    record = SubscriberRecord.from_hex("0x" + "AB" * 20, 7)
    assert record.address_hex == "0x" + "ab" * 20
    assert record.leaf() == compute_leaf("ab" * 20, 7)


def test_verify_subscription_rejects_malformed_root() -> None:
    with pytest.raises(InvalidRootLengthError):
        verify_subscription("ab" * 31, [], "0x" + "11" * 20, 1000)
    with pytest.raises(InvalidHexInputError):
        verify_subscription("zz" * 32, [], "0x" + "11" * 20, 1000)


def test_exported_proof_payload_verifies() -> None:
    subscriptions = build_subscription_tree(ROWS)
    payload = subscriptions.export_proof("0x" + "44" * 20)
    assert payload is not None
    data = payload.model_dump()
    assert data["root"] == "0x" + subscriptions.root_hex
    assert data["expiration"] == 4000
    assert all(item.startswith("0x") for item in data["proof"])
    assert verify_subscription_proof(data) is True

    assert subscriptions.export_proof("0x" + "99" * 20) is None


def test_proof_payload_rejections() -> None:
    subscriptions = build_subscription_tree(ROWS)
    data = subscriptions.export_proof("0x" + "11" * 20).model_dump()

    assert verify_subscription_proof({**data, "expiration": 1001}) is False
    assert verify_subscription_proof({**data, "leaf": "0x" + "00" * 32}) is False
    assert verify_subscription_proof({**data, "root": "0x1234"}) is False
    assert verify_subscription_proof({**data, "proof": ["nothex"]}) is False
    assert verify_subscription_proof({**data, "expiration": -1}) is False
    assert verify_subscription_proof({**data, "unexpected": True}) is False
    assert verify_subscription_proof({"address": data["address"]}) is False

    without_leaf = dict(data)
    without_leaf.pop("leaf")
    assert verify_subscription_proof(without_leaf) is True


def test_record_rejects_fractional_expiration() -> None:
    from subs_merkle.errors import ExpirationOutOfRangeError

    with pytest.raises(ExpirationOutOfRangeError):
        SubscriberRecord.from_hex("0x" + "11" * 20, 1000.9)  # type: ignore[arg-type]


def test_exported_proof_without_prefix_still_verifies() -> None:
    subscriptions = build_subscription_tree(ROWS)
    data = subscriptions.export_proof("0x" + "22" * 20, prefix=False).model_dump()
    assert data["root"] == subscriptions.root_hex
    assert not data["leaf"].startswith("0x")
    assert not any(item.startswith("0x") for item in data["proof"])
    assert verify_subscription_proof(data) is True
