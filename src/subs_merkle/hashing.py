"""Keccak-256 primitives shared by leaves and internal nodes."""

from __future__ import annotations

from eth_utils import keccak

HASH_SIZE = 32


def keccak256(data: bytes) -> bytes:
    return keccak(data)


def hash_pair(a: bytes, b: bytes) -> bytes:
    """Hash two nodes in ascending byte order.

    Matches ``keccak256(abi.encodePacked(min(a, b), max(a, b)))`` as used by
    OpenZeppelin's ``MerkleProof``, so ``hash_pair(a, b) == hash_pair(b, a)``.
    """
    if a <= b:
        return keccak(a + b)
    return keccak(b + a)
