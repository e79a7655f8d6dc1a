"""SQLite-backed subscriber store."""

from __future__ import annotations

import logging
import sqlite3
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from subs_merkle.codec import format_address, parse_address
from subs_merkle.errors import SubscriberStoreError, SubsMerkleError
from subs_merkle.leaf import check_expiration

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30 * 24 * 60 * 60

_SCHEMA = """
CREATE TABLE IF NOT EXISTS subscriber_storage (
    wallet_address TEXT PRIMARY KEY,
    expiration_ts INTEGER NOT NULL,
    last_updated_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS merkle_state (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    root_hash TEXT NOT NULL,
    tx_hash TEXT,
    synced INTEGER NOT NULL,
    created_at TEXT NOT NULL
);
"""


@dataclass(frozen=True)
class MerkleState:
    root_hash: str
    tx_hash: str | None
    synced: bool
    created_at: str


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def normalize_address(address_hex: str) -> str:
    try:
        raw = parse_address(address_hex)
    except SubsMerkleError as exc:
        raise SubscriberStoreError(f"invalid wallet address {address_hex!r}: {exc}") from exc
    if len(raw) != 20:
        raise SubscriberStoreError(f"wallet address must be 20 bytes, got {len(raw)}")
    return format_address(raw)


class SQLiteSubscriberStore:
    def __init__(self, db_path: str | Path) -> None:
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(self.db_path)
            self._conn.executescript(_SCHEMA)
        except sqlite3.Error as exc:
            raise SubscriberStoreError(f"cannot open subscriber store {self.db_path}: {exc}") from exc

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> SQLiteSubscriberStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        try:
            with self._conn:
                return self._conn.execute(sql, params)
        except sqlite3.Error as exc:
            raise SubscriberStoreError(f"subscriber store query failed: {exc}") from exc

    def upsert_subscriber(self, address_hex: str, expiration: int) -> str:
        address = normalize_address(address_hex)
        try:
            expiration = check_expiration(expiration)
        except SubsMerkleError as exc:
            raise SubscriberStoreError(f"invalid expiration for {address}: {exc}") from exc
        self._execute(
            "INSERT INTO subscriber_storage (wallet_address, expiration_ts, last_updated_at) "
            "VALUES (?, ?, ?) ON CONFLICT (wallet_address) DO UPDATE SET "
            "expiration_ts = excluded.expiration_ts, last_updated_at = excluded.last_updated_at",
            (address, expiration, _utc_now_iso()),
        )
        logger.debug("upserted subscriber %s exp=%d", address, expiration)
        return address

    def fetch_subscribers(self) -> list[tuple[str, int]]:
        rows = self._execute(
            "SELECT wallet_address, expiration_ts FROM subscriber_storage ORDER BY wallet_address"
        ).fetchall()
        return [(str(address), int(expiration)) for address, expiration in rows]

    def seed_mock_subscribers(
        self,
        count: int,
        *,
        now: int | None = None,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ) -> list[str]:
        if count < 0:
            raise SubscriberStoreError("count must be non-negative")
        current = int(time.time()) if now is None else int(now)
        millis = time.time_ns() // 1_000_000
        addresses: list[str] = []
        for i in range(count):
            # 10 bytes of timestamp and 10 bytes of counter.
            address = f"0x{millis:020x}{i:020x}"
            addresses.append(self.upsert_subscriber(address, current + ttl_seconds))
        logger.info("seeded %d mock subscribers", count)
        return addresses

    def record_merkle_state(self, root_hex: str, tx_hash: str | None = None) -> MerkleState:
        state = MerkleState(
            root_hash=root_hex,
            tx_hash=tx_hash,
            synced=tx_hash is not None,
            created_at=_utc_now_iso(),
        )
        self._execute(
            "INSERT INTO merkle_state (root_hash, tx_hash, synced, created_at) VALUES (?, ?, ?, ?)",
            (state.root_hash, state.tx_hash, int(state.synced), state.created_at),
        )
        return state

    def latest_merkle_state(self) -> MerkleState | None:
        row = self._execute(
            "SELECT root_hash, tx_hash, synced, created_at FROM merkle_state "
            "ORDER BY id DESC LIMIT 1"
        ).fetchone()
        if row is None:
            return None
        root_hash, tx_hash, synced, created_at = row
        return MerkleState(
            root_hash=root_hash,
            tx_hash=tx_hash,
            synced=bool(synced),
            created_at=created_at,
        )
