"""
Structured results of the RPC calls the client depends on.

Raw JSON from the node is decoded here, at the boundary; nothing past the
connection inspects untyped dictionaries.
"""

from __future__ import annotations
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from ..codec.base58 import b58decode
from ..runtime.errors import EncodingError
from ..tx.actions import AccessKeyPermission, FullAccessPermission, FunctionCallPermission, U64


class BlockHeader(BaseModel):
    """Header of the latest final block."""
    height: int
    hash: str
    prev_hash: Optional[str] = None
    timestamp: Optional[int] = None

    @property
    def hash_bytes(self) -> bytes:
        """
        Decoded 32-byte block hash.

        Raises:
            EncodingError: If the hash is not valid base58 or not 32 bytes
        """
        raw = b58decode(self.hash)
        if len(raw) != 32:
            raise EncodingError(f"Block hash must be 32 bytes, got {len(raw)}")
        return raw

    @classmethod
    def from_rpc(cls, result: Dict[str, Any]) -> BlockHeader:
        """Decode the result of the ``block`` method."""
        return cls.model_validate(result["header"])


class AccessKeyInfo(BaseModel):
    """
    The node's record for one (account, public key) pair.

    ``nonce`` is None when the node reported no nonce; the first claim on such
    a key is 1.
    """
    nonce: Optional[U64] = None
    permission: AccessKeyPermission = Field(default_factory=FullAccessPermission)
    block_height: Optional[int] = None
    block_hash: Optional[str] = None

    model_config = {"frozen": True}

    @field_validator('permission', mode='before')
    @classmethod
    def parse_permission(cls, v: Any) -> Any:
        """Accept the node's ``"FullAccess"`` / ``{"FunctionCall": {...}}`` shapes."""
        if v == "FullAccess":
            return FullAccessPermission()
        if isinstance(v, dict) and "FunctionCall" in v:
            fc = v["FunctionCall"]
            allowance = fc.get("allowance")
            return FunctionCallPermission(
                allowance=int(allowance) if allowance is not None else None,
                receiver_id=fc["receiver_id"],
                method_names=tuple(fc.get("method_names") or ()),
            )
        return v

    @property
    def full_access(self) -> bool:
        return isinstance(self.permission, FullAccessPermission)


class RemoteResult(BaseModel):
    """
    Final outcome of a committed transaction.

    ``status`` holds either ``SuccessValue``/``SuccessReceiptId`` or
    ``Failure``; the full node response is kept in ``raw``.
    """
    status: Dict[str, Any] = Field(default_factory=dict)
    transaction_hash: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return "SuccessValue" in self.status or "SuccessReceiptId" in self.status

    @property
    def failure(self) -> Optional[Dict[str, Any]]:
        return self.status.get("Failure")

    @classmethod
    def from_rpc(cls, result: Dict[str, Any]) -> RemoteResult:
        """Decode the result of ``broadcast_tx_commit``."""
        status = result.get("status")
        tx_hash = (result.get("transaction") or {}).get("hash") \
            or (result.get("transaction_outcome") or {}).get("id")
        return cls(
            status=status if isinstance(status, dict) else {},
            transaction_hash=tx_hash,
            raw=result,
        )


__all__ = [
    "BlockHeader",
    "AccessKeyInfo",
    "RemoteResult",
]
