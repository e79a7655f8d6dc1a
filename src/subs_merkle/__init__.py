"""subs-merkle public surface."""

from subs_merkle.codec import format_bytes32, format_proof, parse_bytes32, parse_proof
from subs_merkle.errors import (
    ChainRequestError,
    ChainUnavailableError,
    EmptyLeafSetError,
    ExpirationOutOfRangeError,
    InvalidAddressLengthError,
    InvalidHexInputError,
    InvalidLeafLengthError,
    InvalidRootLengthError,
    LeafNotFoundError,
    SubscriberStoreError,
    SubsMerkleError,
)
from subs_merkle.hashing import hash_pair, keccak256
from subs_merkle.leaf import compute_leaf, encode_leaf
from subs_merkle.schemas import SubscriptionProof
from subs_merkle.subscriptions import (
    SubscriberRecord,
    SubscriptionTree,
    build_subscription_tree,
    verify_subscription,
    verify_subscription_proof,
)
from subs_merkle.tree import MerkleTree, build_tree, prove, verify_proof

__all__ = [
    "SubsMerkleError",
    "InvalidAddressLengthError",
    "ExpirationOutOfRangeError",
    "EmptyLeafSetError",
    "InvalidLeafLengthError",
    "LeafNotFoundError",
    "InvalidHexInputError",
    "InvalidRootLengthError",
    "SubscriberStoreError",
    "ChainUnavailableError",
    "ChainRequestError",
    "keccak256",
    "hash_pair",
    "encode_leaf",
    "compute_leaf",
    "MerkleTree",
    "build_tree",
    "prove",
    "verify_proof",
    "parse_bytes32",
    "format_bytes32",
    "parse_proof",
    "format_proof",
    "SubscriberRecord",
    "SubscriptionTree",
    "SubscriptionProof",
    "build_subscription_tree",
    "verify_subscription",
    "verify_subscription_proof",
]
