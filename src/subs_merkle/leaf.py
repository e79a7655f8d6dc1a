"""Leaf encoding compatible with OpenZeppelin's StandardMerkleTree.

The contract side computes::

    keccak256(bytes.concat(keccak256(abi.encode(address, uint256))))

``abi.encode`` places each value in its own 32-byte word: the address is
left-padded with 12 zero bytes and the expiration is a big-endian uint256.
Expirations are signed 64-bit unix timestamps, so only the last 8 bytes of the
second word are ever non-zero.
"""

from __future__ import annotations

import operator

from subs_merkle.codec import ADDRESS_SIZE, parse_address
from subs_merkle.errors import ExpirationOutOfRangeError, InvalidAddressLengthError
from subs_merkle.hashing import keccak256

ENCODED_SIZE = 64
EXPIRATION_SIZE = 8
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


def check_expiration(expiration: int, *, low: int = INT64_MIN, high: int = INT64_MAX) -> int:
    if isinstance(expiration, bool):
        raise ExpirationOutOfRangeError("expiration must be an integer, got bool")
    try:
        value = operator.index(expiration)
    except TypeError:
        raise ExpirationOutOfRangeError(
            f"expiration must be an integer, got {type(expiration).__name__}"
        ) from None
    if not low <= value <= high:
        raise ExpirationOutOfRangeError(f"expiration {value} is outside [{low}, {high}]")
    return value


def abi_encode_record(address: bytes, expiration: int) -> bytes:
    if len(address) != ADDRESS_SIZE:
        raise InvalidAddressLengthError(
            f"address must be {ADDRESS_SIZE} bytes, got {len(address)}"
        )
    expiration_bytes = check_expiration(expiration).to_bytes(EXPIRATION_SIZE, "big", signed=True)

    encoded = bytearray(ENCODED_SIZE)
    encoded[12:32] = address
    encoded[56:64] = expiration_bytes
    return bytes(encoded)


def encode_leaf(address: bytes, expiration: int) -> bytes:
    inner = keccak256(abi_encode_record(bytes(address), expiration))
    return keccak256(inner)


def compute_leaf(address_hex: str, expiration: int) -> bytes:
    return encode_leaf(parse_address(address_hex), expiration)
