"""
Connection to a NEAR node.

``Connection`` is the narrow interface the signing core needs: the latest
block, one access key, and transaction submission. ``JsonRpcConnection``
implements it over JSON-RPC 2.0 with requests.
"""

from __future__ import annotations
import base64
import json
import logging
import random
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

import requests

from ..crypto.ed25519 import Ed25519PublicKey
from ..runtime.errors import (
    KeyLookupError, RpcError, SubmissionError, SubmissionErrorKind,
)
from .models import AccessKeyInfo, BlockHeader, RemoteResult

logger = logging.getLogger(__name__)

_KEY_NOT_FOUND_CAUSES = ("UNKNOWN_ACCESS_KEY", "UNKNOWN_ACCOUNT", "INVALID_ACCOUNT")
_TRANSIENT_CAUSES = ("TIMEOUT_ERROR", "NO_SYNCED_BLOCKS", "UNAVAILABLE_SHARD", "INTERNAL_ERROR")


class Connection(ABC):
    """
    Abstract connection interface.

    Implementations must be safe for concurrent read-style calls.
    """

    @abstractmethod
    def block(self) -> BlockHeader:
        """Return the header of the latest final block."""
        pass

    @abstractmethod
    def view_access_key(self, account_id: str, public_key: Ed25519PublicKey) -> AccessKeyInfo:
        """
        Return the node's record of an access key.

        Raises:
            KeyLookupError: If the account or key does not exist
        """
        pass

    @abstractmethod
    def send_transaction(self, signed_tx: bytes) -> RemoteResult:
        """
        Submit a Borsh-encoded signed transaction and wait for its outcome.

        Raises:
            SubmissionError: If the node rejects the transaction
        """
        pass


def _find_key(obj: Any, key: str) -> Optional[Any]:
    """Depth-first search for ``key`` in nested dicts and lists."""
    if isinstance(obj, dict):
        if key in obj:
            return obj[key]
        children = obj.values()
    elif isinstance(obj, list):
        children = obj
    else:
        return None
    for child in children:
        found = _find_key(child, key)
        if found is not None:
            return found
    return None


class JsonRpcConnection(Connection):
    """
    JSON-RPC connection to a NEAR node.

    Example:
        ```python
        with JsonRpcConnection("https://rpc.testnet.near.org") as conn:
            header = conn.block()
        ```
    """

    def __init__(
        self,
        node_url: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the connection.

        Args:
            node_url: RPC endpoint URL
            timeout: Request timeout in seconds (default: 30)
            session: Optional requests.Session for connection pooling
        """
        self._node_url = node_url.rstrip('/')
        self._timeout = timeout
        self._session = session or requests.Session()
        self._owns_session = session is None

    @property
    def node_url(self) -> str:
        return self._node_url

    def close(self) -> None:
        """Close the HTTP session if owned by this connection."""
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> JsonRpcConnection:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # =========================================================================
    # Low-level RPC
    # =========================================================================

    def call(self, method: str, params: Union[Dict[str, Any], list, None] = None) -> Any:
        """
        Make a JSON-RPC 2.0 call.

        Args:
            method: RPC method name
            params: Method parameters

        Returns:
            Result from the RPC call

        Raises:
            RpcError: On transport failure or an error object in the response
        """
        request_id = random.randint(1, 1_000_000)
        request_data: Dict[str, Any] = {
            "jsonrpc": "2.0",
            "method": method,
            "id": request_id,
        }
        if params is not None:
            request_data["params"] = params

        logger.debug(f"RPC {method} -> {self._node_url} (id={request_id})")
        try:
            response = self._session.post(
                self._node_url,
                json=request_data,
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
            )
        except requests.exceptions.RequestException as e:
            raise RpcError(f"HTTP request failed: {e}", cause=e)

        try:
            response_data = response.json()
        except (json.JSONDecodeError, ValueError) as e:
            if response.status_code != 200:
                raise RpcError(
                    f"HTTP {response.status_code}: {response.reason}",
                    rpc_code=response.status_code,
                )
            raise RpcError(f"Invalid JSON response: {e}", cause=e)

        if not isinstance(response_data, dict):
            raise RpcError(f"Malformed JSON-RPC response: {response_data!r}")

        if "error" in response_data:
            raise self._map_error(method, response_data["error"])

        if response.status_code != 200:
            raise RpcError(
                f"HTTP {response.status_code}: {response.reason}",
                rpc_code=response.status_code,
            )

        return response_data.get("result")

    def _map_error(self, method: str, error: Any) -> Exception:
        """Translate a JSON-RPC error object into the client's error taxonomy."""
        if not isinstance(error, dict):
            return RpcError(str(error))

        cause = error.get("cause") or {}
        cause_name = cause.get("name") if isinstance(cause, dict) else None
        message = error.get("message", "Unknown error")
        details = {"method": method, "error": error}

        if cause_name in _KEY_NOT_FOUND_CAUSES:
            return KeyLookupError(f"{cause_name}: {message}", details)

        invalid_nonce = _find_key(error, "InvalidNonce")
        if isinstance(invalid_nonce, dict):
            ak_nonce = invalid_nonce.get("ak_nonce")
            return SubmissionError(
                f"Invalid nonce: {invalid_nonce}",
                SubmissionErrorKind.NONCE_CONFLICT,
                ak_nonce=int(ak_nonce) if ak_nonce is not None else None,
                details=details,
            )

        invalid_tx = _find_key(error, "InvalidTxError")
        if invalid_tx is not None or cause_name == "INVALID_TRANSACTION":
            return SubmissionError(
                f"Invalid transaction: {invalid_tx or cause.get('info') or message}",
                SubmissionErrorKind.PERMANENT,
                details=details,
            )

        if method.startswith("broadcast_tx") and cause_name in _TRANSIENT_CAUSES:
            return SubmissionError(f"{cause_name}: {message}", SubmissionErrorKind.TRANSIENT,
                                   details=details)

        return RpcError(f"{cause_name or 'RPC_ERROR'}: {message}", rpc_code=error.get("code"),
                        details=details)

    # =========================================================================
    # Connection interface
    # =========================================================================

    def block(self) -> BlockHeader:
        result = self.call("block", {"finality": "final"})
        try:
            header = BlockHeader.from_rpc(result)
        except (KeyError, TypeError, ValueError) as e:
            raise RpcError(f"Malformed block response: {e}", cause=e)
        logger.debug(f"Latest block {header.height} {header.hash}")
        return header

    def view_access_key(self, account_id: str, public_key: Ed25519PublicKey) -> AccessKeyInfo:
        result = self.call("query", {
            "request_type": "view_access_key",
            "finality": "final",
            "account_id": account_id,
            "public_key": str(public_key),
        })
        # Older nodes report a missing key inside the result
        if isinstance(result, dict) and "error" in result:
            raise KeyLookupError(
                f"Access key {public_key} not found for {account_id}: {result['error']}",
                {"account_id": account_id, "public_key": str(public_key)},
            )
        try:
            return AccessKeyInfo.model_validate(result)
        except ValueError as e:
            raise RpcError(f"Malformed access key response: {e}", cause=e)

    def send_transaction(self, signed_tx: bytes) -> RemoteResult:
        encoded = base64.b64encode(signed_tx).decode('ascii')
        result = self.call("broadcast_tx_commit", [encoded])
        if not isinstance(result, dict):
            raise RpcError(f"Malformed transaction outcome: {result!r}")
        return RemoteResult.from_rpc(result)


__all__ = [
    "Connection",
    "JsonRpcConnection",
]
