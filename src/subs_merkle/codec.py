"""Hex encoding at the boundary between the engine and its callers."""

from __future__ import annotations

from typing import Iterable

from eth_utils import is_hexstr, remove_0x_prefix

from subs_merkle.errors import InvalidHexInputError, InvalidRootLengthError
from subs_merkle.hashing import HASH_SIZE

ADDRESS_SIZE = 20


def decode_hex(value: str) -> bytes:
    if not isinstance(value, str):
        raise InvalidHexInputError(f"not a hex string: {value!r}")
    digits = remove_0x_prefix(value.strip())
    # "" and "0x" both decode to zero bytes; length checks happen in the callers.
    if not digits:
        return b""
    if not is_hexstr(digits):
        raise InvalidHexInputError(f"not a hex string: {value!r}")
    try:
        return bytes.fromhex(digits)
    except ValueError as exc:
        raise InvalidHexInputError(f"invalid hex: {exc}") from exc


def parse_bytes32(value: str) -> bytes:
    """Decode a root, leaf or proof element; ``0x`` is optional."""
    raw = decode_hex(value)
    if len(raw) != HASH_SIZE:
        raise InvalidRootLengthError(f"expected {HASH_SIZE} bytes, got {len(raw)}")
    return raw


def format_bytes32(value: bytes, *, prefix: bool = False) -> str:
    encoded = value.hex()
    return f"0x{encoded}" if prefix else encoded


def parse_proof(items: Iterable[str]) -> list[bytes]:
    return [parse_bytes32(item) for item in items]


def format_proof(proof: Iterable[bytes], *, prefix: bool = True) -> list[str]:
    return [format_bytes32(item, prefix=prefix) for item in proof]


def parse_address(value: str) -> bytes:
    # Length is checked by the leaf encoder so the error kind stays specific.
    return decode_hex(value)


def format_address(address: bytes) -> str:
    return f"0x{address.hex()}"
