"""Read-only JSON-RPC client for the subscription contract.

The contract exposes::

    function currentRoot() external view returns (bytes32)
    function verifySubscription(bytes32[] proof, uint256 expiration) external

``verifySubscription`` rebuilds the leaf from ``msg.sender``, so it is
simulated here with ``eth_call`` from the subscriber's address. Publishing a
new root needs a signed transaction and is left to the caller's wallet tooling.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Sequence

from eth_utils import function_signature_to_4byte_selector

from subs_merkle.codec import ADDRESS_SIZE, format_address, parse_address, parse_bytes32
from subs_merkle.errors import ChainRequestError, ChainUnavailableError, InvalidAddressLengthError
from subs_merkle.hashing import HASH_SIZE
from subs_merkle.leaf import check_expiration

logger = logging.getLogger(__name__)

CURRENT_ROOT_SIGNATURE = "currentRoot()"
VERIFY_SUBSCRIPTION_SIGNATURE = "verifySubscription(bytes32[],uint256)"
UINT64_MAX = 2**64 - 1
WORD_SIZE = 32

# execution reverted (geth and most EVM nodes)
_REVERT_ERROR_CODE = 3


def _word(value: int) -> bytes:
    return value.to_bytes(WORD_SIZE, "big")


def _checked_address(value: str) -> str:
    raw = parse_address(value)
    if len(raw) != ADDRESS_SIZE:
        raise InvalidAddressLengthError(f"address must be {ADDRESS_SIZE} bytes, got {len(raw)}")
    return format_address(raw)


def encode_current_root_call() -> bytes:
    return function_signature_to_4byte_selector(CURRENT_ROOT_SIGNATURE)


def encode_verify_subscription_call(proof: Sequence[bytes], expiration: int) -> bytes:
    """ABI-encode ``verifySubscription(bytes32[], uint256)`` calldata.

    Head: offset of the dynamic array (two words), then the expiration.
    Tail: array length followed by each 32-byte element.
    """
    expiration = check_expiration(expiration, low=0, high=UINT64_MAX)
    parts = [
        function_signature_to_4byte_selector(VERIFY_SUBSCRIPTION_SIGNATURE),
        _word(2 * WORD_SIZE),
        _word(expiration),
        _word(len(proof)),
    ]
    for item in proof:
        if len(item) != HASH_SIZE:
            raise ValueError(f"proof element must be {HASH_SIZE} bytes, got {len(item)}")
        parts.append(bytes(item))
    return b"".join(parts)


def _is_revert(error: object) -> bool:
    if not isinstance(error, dict):
        return False
    if error.get("code") == _REVERT_ERROR_CODE:
        return True
    message = error.get("message")
    return isinstance(message, str) and "revert" in message.lower()


@dataclass
class ChainClient:
    rpc_url: str
    contract_address: str
    timeout: float = 10.0
    retries: int = 2
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1), init=False, repr=False)

    def __post_init__(self) -> None:
        try:
            import requests
            from requests.adapters import HTTPAdapter
            from urllib3.util.retry import Retry
        except Exception as exc:  # pragma: no cover
            raise ChainUnavailableError(f"requests stack unavailable: {exc}") from exc

        self.contract_address = _checked_address(self.contract_address)
        self._session = requests.Session()
        retry = Retry(
            total=max(0, int(self.retries)),
            connect=max(0, int(self.retries)),
            read=max(0, int(self.retries)),
            status=max(0, int(self.retries)),
            status_forcelist=(429, 500, 502, 503, 504),
            backoff_factor=0.2,
            allowed_methods=("POST",),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        self._session.mount("http://", adapter)
        self._session.mount("https://", adapter)

    def _rpc(self, method: str, params: list) -> dict:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            response = self._session.post(self.rpc_url, json=payload, timeout=self.timeout)
        except Exception as exc:  # pragma: no cover
            raise ChainUnavailableError(str(exc)) from exc

        if response.status_code >= 400:
            raise ChainRequestError(
                f"rpc request failed: {response.status_code} {response.text}",
                status_code=response.status_code,
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise ChainRequestError(
                "rpc response is not JSON", status_code=response.status_code
            ) from exc
        if not isinstance(body, dict):
            raise ChainRequestError("rpc response must be a JSON object")
        logger.debug("rpc %s -> %s", method, "error" if "error" in body else "ok")
        return body

    def _result(self, method: str, params: list) -> object:
        body = self._rpc(method, params)
        if "error" in body:
            error = body["error"]
            message = error.get("message") if isinstance(error, dict) else error
            raise ChainRequestError(f"rpc {method} failed: {message}", rpc_error=error)
        return body.get("result")

    def get_chain_id(self) -> int:
        result = self._result("eth_chainId", [])
        if not isinstance(result, str):
            raise ChainRequestError("eth_chainId returned a non-string result")
        return int(result, 16)

    def get_current_root(self) -> bytes:
        call = {"to": self.contract_address, "data": "0x" + encode_current_root_call().hex()}
        result = self._result("eth_call", [call, "latest"])
        if not isinstance(result, str):
            raise ChainRequestError("currentRoot() returned a non-string result")
        return parse_bytes32(result)

    def simulate_verify_subscription(
        self,
        sender: str,
        proof: Sequence[bytes],
        expiration: int,
    ) -> bool:
        """Return True when the contract accepts the proof for ``sender``; a revert is False."""
        call = {
            "from": _checked_address(sender),
            "to": self.contract_address,
            "data": "0x" + encode_verify_subscription_call(proof, expiration).hex(),
        }
        body = self._rpc("eth_call", [call, "latest"])
        if "error" in body:
            if _is_revert(body["error"]):
                logger.info("verifySubscription reverted for %s", call["from"])
                return False
            raise ChainRequestError(
                f"rpc eth_call failed: {body['error']}", rpc_error=body["error"]
            )
        return True
