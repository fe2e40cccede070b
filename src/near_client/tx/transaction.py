"""
Unsigned and signed transactions.

Both are immutable. A SignedTransaction is created, serialized, submitted and
discarded; a retry always builds a new one.
"""

from __future__ import annotations
import hashlib
from typing import Any, Tuple

from pydantic import BaseModel, Field, field_validator

from ..codec.base58 import b58decode, b58encode
from ..crypto.ed25519 import Ed25519PublicKey, KeyType
from .actions import Action, U64


class UnsignedTransaction(BaseModel):
    """
    Transaction body ready to be signed.

    ``block_hash`` anchors the transaction to a recent block and bounds its
    validity window.
    """
    signer_id: str
    public_key: Ed25519PublicKey
    nonce: U64
    receiver_id: str
    actions: Tuple[Action, ...] = Field(default_factory=tuple)
    block_hash: bytes

    model_config = {"frozen": True}

    @field_validator('block_hash', mode='before')
    @classmethod
    def parse_block_hash(cls, v: Any) -> bytes:
        """Accept raw bytes or the base58 form returned by the node."""
        if isinstance(v, str):
            v = b58decode(v)
        if not isinstance(v, (bytes, bytearray)) or len(v) != 32:
            raise ValueError("block_hash must be 32 bytes")
        return bytes(v)

    def encode(self) -> bytes:
        """Canonical Borsh encoding; this is what gets signed."""
        from .codec import encode_transaction
        return encode_transaction(self)

    def hash(self) -> bytes:
        """
        Calculate transaction hash.

        Returns:
            32-byte SHA-256 of the canonical encoding
        """
        return hashlib.sha256(self.encode()).digest()

    def hash_b58(self) -> str:
        """Transaction hash in the base58 form the node reports."""
        return b58encode(self.hash())


class Signature(BaseModel):
    """Key-type-tagged Ed25519 signature."""
    key_type: KeyType = KeyType.ED25519
    data: bytes

    model_config = {"frozen": True}

    @field_validator('data')
    @classmethod
    def check_length(cls, v: bytes) -> bytes:
        if len(v) != 64:
            raise ValueError(f"Ed25519 signature must be 64 bytes, got {len(v)}")
        return v


class SignedTransaction(BaseModel):
    """A transaction and the signature over its hash."""
    transaction: UnsignedTransaction
    signature: Signature

    model_config = {"frozen": True}

    def encode(self) -> bytes:
        """Canonical Borsh encoding submitted to the node."""
        from .codec import encode_signed_transaction
        return encode_signed_transaction(self)

    def verify(self) -> bool:
        """Check the signature against the transaction's own public key."""
        return self.transaction.public_key.verify(self.signature.data, self.transaction.hash())

    @property
    def nonce(self) -> int:
        return self.transaction.nonce


__all__ = [
    "UnsignedTransaction",
    "Signature",
    "SignedTransaction",
]
