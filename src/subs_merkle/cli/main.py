"""Command-line interface for subs-merkle."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from pathlib import Path
from typing import Sequence

from subs_merkle.chain import ChainClient
from subs_merkle.cli.config import LOG_LEVELS, CLIConfig, ConfigError, load_cli_config
from subs_merkle.codec import format_bytes32, parse_proof
from subs_merkle.errors import ChainUnavailableError, SubsMerkleError
from subs_merkle.store import SQLiteSubscriberStore
from subs_merkle.subscriptions import (
    SubscriptionTree,
    build_subscription_tree,
    verify_subscription,
    verify_subscription_proof,
)

EXIT_SUCCESS = 0
EXIT_VALIDATION_ERROR = 1
EXIT_NETWORK_ERROR = 2
EXIT_VERIFICATION_FAILED = 4

logger = logging.getLogger(__name__)


def _sdk_version() -> str:
    try:
        return pkg_version("subs-merkle")
    except PackageNotFoundError:
        return "0.0.0+local"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="subs-merkle")
    parser.add_argument(
        "--version",
        action="version",
        version=f"subs-merkle {_sdk_version()}",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to CLI config TOML (default: ~/.subs_merkle/config.toml)",
    )
    parser.add_argument("--db", default=None, help="Path to subscriber SQLite DB")
    parser.add_argument("--log-level", default=None, choices=LOG_LEVELS)

    sub = parser.add_subparsers(dest="command", required=True)

    version = sub.add_parser("version", help="Show CLI version")
    version.add_argument("--json", action="store_true")

    add = sub.add_parser("add", help="Add or update a subscriber")
    add.add_argument("address", help="20-byte wallet address as hex")
    add.add_argument("expiration", type=int, help="Expiration as unix seconds")
    add.add_argument("--json", action="store_true")

    seed = sub.add_parser("seed", help="Insert mock subscribers expiring in 30 days")
    seed.add_argument("--count", type=int, default=5)
    seed.add_argument("--json", action="store_true")

    root = sub.add_parser("root", help="Build the Merkle tree from the store and print its root")
    root.add_argument("--json", action="store_true")

    proof = sub.add_parser("proof", help="Print the inclusion proof for a subscriber")
    proof.add_argument("address")
    proof.add_argument("--output", default=None, help="Also write the proof payload to this file")
    proof.add_argument("--json", action="store_true")

    verify = sub.add_parser("verify", help="Verify a subscription proof offline")
    verify.add_argument("--proof-file", default=None, help="Proof payload JSON from `proof`")
    verify.add_argument("--root", default=None)
    verify.add_argument("--address", default=None)
    verify.add_argument("--expiration", type=int, default=None)
    verify.add_argument("--proof", nargs="*", default=None, help="Sibling hashes, leaf to root")
    verify.add_argument("--json", action="store_true")

    chain = sub.add_parser("chain", help="Read-only contract queries")
    chain_sub = chain.add_subparsers(dest="chain_command", required=True)
    chain_root = chain_sub.add_parser("root", help="Show the root stored on-chain")
    chain_root.add_argument("--json", action="store_true")
    chain_verify = chain_sub.add_parser(
        "verify",
        help="Simulate verifySubscription on-chain for a stored subscriber",
    )
    chain_verify.add_argument("address")
    chain_verify.add_argument("--json", action="store_true")

    return parser


def _print_error(stderr, prefix: str, message: str, *, code: int) -> int:
    print(f"{prefix}: {message}", file=stderr)
    return code


def _configure_logging(level: int, stderr) -> None:
    logging.basicConfig(
        level=level,
        stream=stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )


def _open_store(args, config: CLIConfig) -> SQLiteSubscriberStore:
    return SQLiteSubscriberStore(args.db or config.db_path)


def _load_tree(args, config: CLIConfig) -> SubscriptionTree:
    with _open_store(args, config) as store:
        rows = store.fetch_subscribers()
    return build_subscription_tree(rows)


def _run_version(*, as_json: bool, stdout) -> int:
    if as_json:
        print(json.dumps({"version": _sdk_version()}, sort_keys=True), file=stdout)
    else:
        print(f"subs-merkle {_sdk_version()}", file=stdout)
    return EXIT_SUCCESS


def _run_add(*, args, config: CLIConfig, stdout) -> int:
    with _open_store(args, config) as store:
        address = store.upsert_subscriber(args.address, args.expiration)
    if args.json:
        print(json.dumps({"address": address, "expiration": args.expiration}), file=stdout)
    else:
        print(f"subscriber: {address} (exp: {args.expiration})", file=stdout)
    return EXIT_SUCCESS


def _run_seed(*, args, config: CLIConfig, stdout) -> int:
    with _open_store(args, config) as store:
        addresses = store.seed_mock_subscribers(args.count)
    if args.json:
        print(json.dumps({"addresses": addresses}), file=stdout)
    else:
        for address in addresses:
            print(address, file=stdout)
    return EXIT_SUCCESS


def _run_root(*, args, config: CLIConfig, stdout) -> int:
    with _open_store(args, config) as store:
        subscriptions = build_subscription_tree(store.fetch_subscribers())
        state = store.record_merkle_state(subscriptions.root_hex)
    root = format_bytes32(subscriptions.root, prefix=config.hex_prefix)
    if args.json:
        payload = {
            "root": root,
            "subscribers": len(subscriptions.records),
            "height": subscriptions.tree.height,
            "synced": state.synced,
        }
        print(json.dumps(payload, sort_keys=True), file=stdout)
    else:
        print(f"root: {root}", file=stdout)
        print(f"subscribers: {len(subscriptions.records)}", file=stdout)
    return EXIT_SUCCESS


def _run_proof(*, args, config: CLIConfig, stdout, stderr) -> int:
    subscriptions = _load_tree(args, config)
    payload = subscriptions.export_proof(args.address, prefix=config.hex_prefix)
    if payload is None:
        return _print_error(
            stderr,
            "proof error",
            f"no subscriber with address {args.address}",
            code=EXIT_VALIDATION_ERROR,
        )
    data = payload.model_dump()
    if args.output:
        Path(args.output).write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    if args.json:
        print(json.dumps(data, sort_keys=True), file=stdout)
    else:
        print(f"root: {data['root']}", file=stdout)
        print(f"expiration: {data['expiration']}", file=stdout)
        print(f"proof: [{','.join(data['proof'])}]", file=stdout)
    return EXIT_SUCCESS


def _run_verify(*, args, stdout, stderr) -> int:
    if args.proof_file:
        payload = json.loads(Path(args.proof_file).read_text(encoding="utf-8"))
        ok = isinstance(payload, dict) and verify_subscription_proof(payload)
    else:
        missing = [
            flag
            for flag, value in (
                ("--root", args.root),
                ("--address", args.address),
                ("--expiration", args.expiration),
                ("--proof", args.proof),
            )
            if value is None
        ]
        if missing:
            return _print_error(
                stderr,
                "usage error",
                f"missing {', '.join(missing)} (or pass --proof-file)",
                code=EXIT_VALIDATION_ERROR,
            )
        ok = verify_subscription(args.root, parse_proof(args.proof), args.address, args.expiration)

    if args.json:
        print(json.dumps({"valid": ok}), file=stdout)
    else:
        print("VALID" if ok else "INVALID", file=stdout)
    return EXIT_SUCCESS if ok else EXIT_VERIFICATION_FAILED


def _chain_client(config: CLIConfig) -> ChainClient:
    return ChainClient(
        rpc_url=config.rpc_url,
        contract_address=config.contract_address,
        timeout=config.rpc_timeout,
    )


def _run_chain_root(*, args, config: CLIConfig, stdout) -> int:
    root = format_bytes32(_chain_client(config).get_current_root(), prefix=config.hex_prefix)
    if args.json:
        print(json.dumps({"root": root, "contract": config.contract_address}), file=stdout)
    else:
        print(f"current root: {root}", file=stdout)
    return EXIT_SUCCESS


def _run_chain_verify(*, args, config: CLIConfig, stdout, stderr) -> int:
    subscriptions = _load_tree(args, config)
    record = subscriptions.find_record(args.address)
    if record is None:
        return _print_error(
            stderr,
            "proof error",
            f"no subscriber with address {args.address}",
            code=EXIT_VALIDATION_ERROR,
        )
    proof = subscriptions.tree.get_proof(record.leaf())
    ok = _chain_client(config).simulate_verify_subscription(
        record.address_hex, proof, record.expiration
    )
    if args.json:
        print(json.dumps({"address": record.address_hex, "valid": ok}), file=stdout)
    else:
        print(f"on-chain verification: {'PASSED' if ok else 'REVERTED'}", file=stdout)
    return EXIT_SUCCESS if ok else EXIT_VERIFICATION_FAILED


def main(argv: Sequence[str] | None = None, *, stdout=sys.stdout, stderr=sys.stderr) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_cli_config(args.config)
    except ConfigError as exc:
        return _print_error(stderr, "config error", str(exc), code=EXIT_VALIDATION_ERROR)

    level = getattr(logging, args.log_level) if args.log_level else config.logging_level
    _configure_logging(level, stderr)

    try:
        if args.command == "version":
            return _run_version(as_json=args.json, stdout=stdout)
        if args.command == "add":
            return _run_add(args=args, config=config, stdout=stdout)
        if args.command == "seed":
            return _run_seed(args=args, config=config, stdout=stdout)
        if args.command == "root":
            return _run_root(args=args, config=config, stdout=stdout)
        if args.command == "proof":
            return _run_proof(args=args, config=config, stdout=stdout, stderr=stderr)
        if args.command == "verify":
            return _run_verify(args=args, stdout=stdout, stderr=stderr)
        if args.command == "chain":
            if args.chain_command == "root":
                return _run_chain_root(args=args, config=config, stdout=stdout)
            if args.chain_command == "verify":
                return _run_chain_verify(args=args, config=config, stdout=stdout, stderr=stderr)
    except ChainUnavailableError as exc:
        return _print_error(stderr, "chain error", str(exc), code=EXIT_NETWORK_ERROR)
    except SubsMerkleError as exc:
        return _print_error(stderr, "error", str(exc), code=EXIT_VALIDATION_ERROR)
    except (OSError, ValueError) as exc:
        return _print_error(stderr, "error", str(exc), code=EXIT_VALIDATION_ERROR)

    print("unknown command", file=stderr)
    return EXIT_VALIDATION_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
