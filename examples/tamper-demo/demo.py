#!/usr/bin/env python3
"""Minimal tamper demo: commit subscribers, prove one, alter its expiration, detect failure."""

from __future__ import annotations

import argparse
import json
import sqlite3
from pathlib import Path

from subs_merkle import build_subscription_tree, verify_subscription
from subs_merkle.store import SQLiteSubscriberStore

FAKE_EXPIRATION = 9999999999


def _tamper_expiration(db_path: Path, address: str) -> None:
    with sqlite3.connect(db_path) as conn:
        updated = conn.execute(
            "UPDATE subscriber_storage SET expiration_ts = ? WHERE wallet_address = ?",
            (FAKE_EXPIRATION, address),
        ).rowcount
        if updated != 1:
            raise RuntimeError(f"expected one subscriber row for {address}")
        conn.commit()


def run_demo(workdir: Path, *, count: int = 5) -> int:
    workdir.mkdir(parents=True, exist_ok=True)
    db_path = workdir / "subscribers.db"
    proof_path = workdir / "proof.json"

    print("Step 1/5: subscribers seeded")
    with SQLiteSubscriberStore(db_path) as store:
        store.seed_mock_subscribers(count)
        rows = store.fetch_subscribers()
    print(f"subscribers={len(rows)}")

    print("Step 2/5: merkle root built")
    subscriptions = build_subscription_tree(rows)
    with SQLiteSubscriberStore(db_path) as store:
        store.record_merkle_state(subscriptions.root_hex)
    print(f"root=0x{subscriptions.root_hex}")

    print("Step 3/5: proof exported")
    address, expiration = rows[0]
    payload = subscriptions.export_proof(address)
    if payload is None:
        raise RuntimeError(f"no proof for {address}")
    proof_path.write_text(json.dumps(payload.model_dump(), indent=2), encoding="utf-8")
    proof = subscriptions.proof_for(address)
    before = verify_subscription(subscriptions.root_hex, proof, address, expiration)
    print(f"proof_record={proof_path}")
    print(f"verify_before_ok={before}")

    print("Step 4/5: expiration silently modified")
    _tamper_expiration(db_path, address)
    with SQLiteSubscriberStore(db_path) as store:
        tampered = dict(store.fetch_subscribers())[address]
    print(f"tamper=subscriber_storage.{address}.expiration_ts={tampered}")

    print("Step 5/5: verification fails")
    after = verify_subscription(subscriptions.root_hex, proof, address, tampered)
    print(f"verify_after_ok={after}")

    if not before or after:
        print("unexpected_result=true")
        return 1
    print("unexpected_result=false")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Run subscription tamper detection demo.")
    parser.add_argument(
        "--workdir",
        default="./tamper-demo-output",
        help="Output directory for demo artifacts",
    )
    parser.add_argument("--count", type=int, default=5)
    args = parser.parse_args()
    return run_demo(Path(args.workdir).resolve(), count=args.count)


if __name__ == "__main__":
    raise SystemExit(main())
