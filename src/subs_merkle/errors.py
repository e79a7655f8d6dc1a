"""Error types."""

from __future__ import annotations


class SubsMerkleError(RuntimeError):
    """Base error."""


class InvalidAddressLengthError(SubsMerkleError):
    """Wallet address is not exactly 20 bytes."""


class ExpirationOutOfRangeError(SubsMerkleError):
    """Expiration does not fit in a signed 64-bit integer."""


class EmptyLeafSetError(SubsMerkleError):
    """A tree cannot be built from zero leaves."""


class InvalidLeafLengthError(SubsMerkleError):
    """Leaf hash is not exactly 32 bytes."""


class LeafNotFoundError(SubsMerkleError):
    """Leaf is not part of the tree."""


class InvalidHexInputError(SubsMerkleError):
    """Value is not valid hex."""


class InvalidRootLengthError(SubsMerkleError):
    """Hex value does not decode to exactly 32 bytes."""


class SubscriberStoreError(SubsMerkleError):
    """Subscriber store could not be read or written."""


class ChainUnavailableError(SubsMerkleError):
    """Chain RPC endpoint could not be reached."""


class ChainRequestError(ChainUnavailableError):
    """Chain RPC endpoint returned an HTTP or JSON-RPC error."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        rpc_error: object | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.rpc_error = rpc_error
