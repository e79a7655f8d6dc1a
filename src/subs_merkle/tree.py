"""OpenZeppelin-compatible Merkle tree.

Leaves are sorted before hashing, internal nodes use sorted-pair hashing and an
unpaired trailing node is promoted to the next layer unchanged. Proofs produced
here verify with ``MerkleProof.verify`` on-chain.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from subs_merkle.errors import EmptyLeafSetError, InvalidLeafLengthError, LeafNotFoundError
from subs_merkle.hashing import HASH_SIZE, hash_pair

logger = logging.getLogger(__name__)

Layer = tuple[bytes, ...]


def _next_layer(layer: Layer) -> Layer:
    parents: list[bytes] = []
    for i in range(0, len(layer), 2):
        if i + 1 < len(layer):
            parents.append(hash_pair(layer[i], layer[i + 1]))
        else:
            parents.append(layer[i])
    return tuple(parents)


@dataclass(frozen=True)
class MerkleTree:
    """All layers of the tree: ``layers[0]`` is the sorted leaf set, ``layers[-1]`` the root."""

    layers: tuple[Layer, ...]

    @classmethod
    def from_leaves(cls, leaves: Iterable[bytes]) -> MerkleTree:
        sorted_leaves: list[bytes] = []
        for leaf in leaves:
            if len(leaf) != HASH_SIZE:
                raise InvalidLeafLengthError(f"leaf must be {HASH_SIZE} bytes, got {len(leaf)}")
            sorted_leaves.append(bytes(leaf))
        if not sorted_leaves:
            raise EmptyLeafSetError("cannot build a tree from zero leaves")
        sorted_leaves.sort()

        layers: list[Layer] = [tuple(sorted_leaves)]
        while len(layers[-1]) > 1:
            layers.append(_next_layer(layers[-1]))

        logger.debug("built merkle tree: leaves=%d height=%d", len(sorted_leaves), len(layers) - 1)
        return cls(layers=tuple(layers))

    @property
    def leaves(self) -> Layer:
        return self.layers[0]

    @property
    def root(self) -> bytes:
        return self.layers[-1][0]

    @property
    def root_hex(self) -> str:
        return self.root.hex()

    @property
    def height(self) -> int:
        return len(self.layers) - 1

    def __contains__(self, leaf: object) -> bool:
        return leaf in self.layers[0]

    def get_proof(self, leaf: bytes) -> list[bytes]:
        """Return sibling hashes from the leaf's layer up to the layer below the root.

        Raises ``LeafNotFoundError`` when the leaf is not in the tree, which
        usually means the record it was encoded from has changed since the
        tree was built.
        """
        try:
            index = self.layers[0].index(leaf)
        except ValueError:
            raise LeafNotFoundError(f"leaf {bytes(leaf).hex()} not in tree") from None

        proof: list[bytes] = []
        for layer in self.layers[:-1]:
            sibling_index = index ^ 1
            if sibling_index < len(layer):
                proof.append(layer[sibling_index])
            index //= 2
        return proof


def build_tree(leaves: Iterable[bytes]) -> MerkleTree:
    return MerkleTree.from_leaves(leaves)


def prove(tree: MerkleTree, leaf: bytes) -> list[bytes]:
    return tree.get_proof(leaf)


def process_proof(proof: Sequence[bytes], leaf: bytes) -> bytes:
    computed = leaf
    for sibling in proof:
        computed = hash_pair(computed, sibling)
    return computed


def verify_proof(root: bytes, proof: Sequence[bytes], leaf: bytes) -> bool:
    """Mirror of ``MerkleProof.verify``: fold the proof over the leaf and compare to the root.

    Wrong proofs, including proofs of the wrong length, return ``False``.
    """
    try:
        return process_proof(proof, leaf) == root
    except TypeError:
        return False
