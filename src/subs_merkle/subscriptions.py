"""Subscription records committed into a Merkle tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from subs_merkle.codec import (
    ADDRESS_SIZE,
    format_address,
    format_bytes32,
    format_proof,
    parse_address,
    parse_bytes32,
)
from subs_merkle.errors import EmptyLeafSetError, InvalidAddressLengthError, SubsMerkleError
from subs_merkle.leaf import check_expiration, encode_leaf
from subs_merkle.schemas import SubscriptionProof
from subs_merkle.tree import MerkleTree, verify_proof

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubscriberRecord:
    address: bytes
    expiration: int

    def __post_init__(self) -> None:
        if len(self.address) != ADDRESS_SIZE:
            raise InvalidAddressLengthError(
                f"address must be {ADDRESS_SIZE} bytes, got {len(self.address)}"
            )
        check_expiration(self.expiration)

    @classmethod
    def from_hex(cls, address_hex: str, expiration: int) -> SubscriberRecord:
        return cls(address=parse_address(address_hex), expiration=expiration)

    @property
    def address_hex(self) -> str:
        return format_address(self.address)

    def leaf(self) -> bytes:
        return encode_leaf(self.address, self.expiration)


@dataclass(frozen=True)
class SubscriptionTree:
    """A built tree plus the records it was built from.

    The tree itself holds only hashes; the records are kept alongside so a
    leaf can be re-encoded when a proof is requested.
    """

    tree: MerkleTree
    records: tuple[SubscriberRecord, ...]

    @property
    def root(self) -> bytes:
        return self.tree.root

    @property
    def root_hex(self) -> str:
        return self.tree.root_hex

    def find_record(self, address_hex: str) -> SubscriberRecord | None:
        address = parse_address(address_hex)
        for record in self.records:
            if record.address == address:
                return record
        return None

    def proof_for(self, address_hex: str) -> list[bytes] | None:
        record = self.find_record(address_hex)
        if record is None:
            return None
        return self.tree.get_proof(record.leaf())

    def export_proof(self, address_hex: str, *, prefix: bool = True) -> SubscriptionProof | None:
        record = self.find_record(address_hex)
        if record is None:
            return None
        leaf = record.leaf()
        return SubscriptionProof(
            address=record.address_hex,
            expiration=record.expiration,
            root=format_bytes32(self.root, prefix=prefix),
            leaf=format_bytes32(leaf, prefix=prefix),
            proof=format_proof(self.tree.get_proof(leaf), prefix=prefix),
        )


def build_subscription_tree(rows: Iterable[tuple[str, int]]) -> SubscriptionTree:
    """Build a tree from ``(address_hex, expiration)`` rows, as fetched from the store."""
    records = [SubscriberRecord.from_hex(address, expiration) for address, expiration in rows]
    if not records:
        raise EmptyLeafSetError("no subscribers to build a tree from")

    # Stable listing order; the tree sorts leaves independently.
    records.sort(key=lambda record: record.address)
    tree = MerkleTree.from_leaves(record.leaf() for record in records)
    logger.info("built subscription tree: subscribers=%d root=%s", len(records), tree.root_hex)
    return SubscriptionTree(tree=tree, records=tuple(records))


def verify_subscription(
    root_hex: str,
    proof: Sequence[bytes],
    address_hex: str,
    expiration: int,
) -> bool:
    """Off-chain check equivalent to the contract's proof verification.

    Raises for a malformed root or address; a wrong proof returns ``False``.
    """
    root = parse_bytes32(root_hex)
    leaf = encode_leaf(parse_address(address_hex), expiration)
    return verify_proof(root, proof, leaf)


def verify_subscription_proof(payload: dict) -> bool:
    try:
        model = SubscriptionProof.model_validate(payload)
        proof = [parse_bytes32(item) for item in model.proof]
        leaf = encode_leaf(parse_address(model.address), model.expiration)
        root = parse_bytes32(model.root)
    except (ValueError, SubsMerkleError):
        return False
    if model.leaf is not None and not _matches_bytes32(model.leaf, leaf):
        return False
    return verify_proof(root, proof, leaf)


def _matches_bytes32(value: str, expected: bytes) -> bool:
    try:
        return parse_bytes32(value) == expected
    except SubsMerkleError:
        return False
