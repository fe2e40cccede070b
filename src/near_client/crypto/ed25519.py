"""
Ed25519 keys for NEAR accounts.

Keys travel as text in the ``ed25519:<base58>`` form used by credential files
and the RPC interface, and as raw bytes on the wire.
"""

from __future__ import annotations
import hashlib
from enum import IntEnum
from typing import Any, Optional, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey as CryptoEd25519PrivateKey,
    Ed25519PublicKey as CryptoEd25519PublicKey,
)
from pydantic import GetCoreSchemaHandler
from pydantic_core import CoreSchema, core_schema

from ..codec.base58 import b58decode, b58encode
from ..runtime.errors import EncodingError

ED25519_PREFIX = "ed25519:"


class KeyType(IntEnum):
    """Key type discriminant used on the wire."""
    ED25519 = 0


class Ed25519Error(EncodingError):
    """Invalid Ed25519 key or signature material."""
    pass


def _split_key_string(text: str) -> bytes:
    if not isinstance(text, str) or not text.startswith(ED25519_PREFIX):
        raise Ed25519Error("Key is not in the ed25519:<base58> form")
    try:
        return b58decode(text[len(ED25519_PREFIX):])
    except EncodingError as e:
        raise Ed25519Error(f"Malformed Ed25519 key: {e.message}", cause=e)


class Ed25519PublicKey:
    """
    Ed25519 public key.

    Usable directly as a pydantic field type; accepts another instance, raw
    32 bytes or the ``ed25519:`` string form.
    """

    def __init__(self, public_key_bytes: bytes):
        """
        Initialize from 32-byte public key.

        Raises:
            Ed25519Error: If key is invalid
        """
        if len(public_key_bytes) != 32:
            raise Ed25519Error(f"Ed25519 public key must be 32 bytes, got {len(public_key_bytes)}")

        self._key_bytes = bytes(public_key_bytes)
        try:
            self._crypto_key = CryptoEd25519PublicKey.from_public_bytes(self._key_bytes)
        except ValueError as e:
            raise Ed25519Error(f"Invalid Ed25519 public key: {e}", cause=e)

    @classmethod
    def from_string(cls, text: str) -> Ed25519PublicKey:
        """Create public key from ``ed25519:<base58>``."""
        return cls(_split_key_string(text))

    @classmethod
    def from_bytes(cls, key_bytes: bytes) -> Ed25519PublicKey:
        """Create public key from bytes."""
        return cls(key_bytes)

    def to_bytes(self) -> bytes:
        """Get the 32-byte public key."""
        return self._key_bytes

    def to_string(self) -> str:
        """Get the ``ed25519:<base58>`` form."""
        return ED25519_PREFIX + b58encode(self._key_bytes)

    @property
    def key_type(self) -> KeyType:
        return KeyType.ED25519

    def verify(self, signature: bytes, message: bytes) -> bool:
        """
        Verify a signature against a message.

        Args:
            signature: 64-byte Ed25519 signature
            message: Message that was signed

        Returns:
            True if signature is valid
        """
        if len(signature) != 64:
            return False
        try:
            self._crypto_key.verify(signature, message)
        except InvalidSignature:
            return False
        return True

    @classmethod
    def __get_pydantic_core_schema__(
        cls,
        source_type: Any,
        handler: GetCoreSchemaHandler,
    ) -> CoreSchema:
        """Validate from instance, bytes or string; serialize to the string form."""
        return core_schema.no_info_before_validator_function(
            cls._validate,
            core_schema.is_instance_schema(cls),
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda v: v.to_string(), when_used="json"
            ),
        )

    @classmethod
    def _validate(cls, value: Any) -> Ed25519PublicKey:
        if isinstance(value, cls):
            return value
        if isinstance(value, (bytes, bytearray)):
            return cls(bytes(value))
        if isinstance(value, str):
            return cls.from_string(value)
        raise ValueError(f"Invalid Ed25519 public key: {value!r}")

    def __eq__(self, other) -> bool:
        if not isinstance(other, Ed25519PublicKey):
            return False
        return self._key_bytes == other._key_bytes

    def __hash__(self) -> int:
        return hash(self._key_bytes)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"Ed25519PublicKey.from_string('{self.to_string()}')"


class Ed25519PrivateKey:
    """
    Ed25519 private key.

    Held as the 32-byte seed. The NEAR text form carries seed||public (64
    bytes); both lengths are accepted on input.
    """

    def __init__(self, private_key_bytes: bytes):
        """
        Initialize from 32-byte private key seed.

        Raises:
            Ed25519Error: If key is invalid
        """
        if len(private_key_bytes) != 32:
            raise Ed25519Error(f"Ed25519 private key must be 32 bytes, got {len(private_key_bytes)}")

        self._key_bytes = bytes(private_key_bytes)
        self._crypto_key = CryptoEd25519PrivateKey.from_private_bytes(self._key_bytes)
        self._public_key = Ed25519PublicKey(
            self._crypto_key.public_key().public_bytes(
                encoding=serialization.Encoding.Raw,
                format=serialization.PublicFormat.Raw,
            )
        )

    @classmethod
    def generate(cls) -> Ed25519PrivateKey:
        """Generate a new random Ed25519 private key."""
        crypto_key = CryptoEd25519PrivateKey.generate()
        return cls(crypto_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        ))

    @classmethod
    def from_seed(cls, seed: Union[str, bytes]) -> Ed25519PrivateKey:
        """
        Derive private key from an arbitrary seed using SHA-256.

        For deterministic test keys.
        """
        if isinstance(seed, str):
            seed = seed.encode('utf-8')
        return cls(hashlib.sha256(seed).digest())

    @classmethod
    def from_string(cls, text: str) -> Ed25519PrivateKey:
        """
        Create private key from ``ed25519:<base58>``.

        For the 64-byte form the trailing public half must match the key
        derived from the seed.
        """
        raw = _split_key_string(text)
        if len(raw) == 64:
            key = cls(raw[:32])
            if key.public_key().to_bytes() != raw[32:]:
                raise Ed25519Error("Embedded public key does not match private key seed")
            return key
        return cls(raw)

    def to_bytes(self) -> bytes:
        """Get the 32-byte private key seed."""
        return self._key_bytes

    def to_string(self) -> str:
        """Get the 64-byte ``ed25519:<base58>`` form."""
        return ED25519_PREFIX + b58encode(self._key_bytes + self._public_key.to_bytes())

    def public_key(self) -> Ed25519PublicKey:
        """Get the corresponding public key."""
        return self._public_key

    def sign(self, message: bytes) -> bytes:
        """
        Sign a message.

        Returns:
            64-byte Ed25519 signature
        """
        return self._crypto_key.sign(message)

    def __str__(self) -> str:
        return f"Ed25519PrivateKey(public={self._public_key.to_string()})"

    __repr__ = __str__


class Ed25519KeyPair:
    """
    Ed25519 key pair containing both private and public keys.
    """

    def __init__(self, private_key: Ed25519PrivateKey, public_key: Optional[Ed25519PublicKey] = None):
        """
        Initialize with private key and optionally the expected public key.

        Raises:
            Ed25519Error: If public_key is not the counterpart of private_key
        """
        derived = private_key.public_key()
        if public_key is not None and public_key != derived:
            raise Ed25519Error(
                f"Public key {public_key} does not match private key (expected {derived})"
            )
        self.private_key = private_key
        self.public_key = derived

    @classmethod
    def generate(cls) -> Ed25519KeyPair:
        """Generate a new random key pair."""
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_seed(cls, seed: Union[str, bytes]) -> Ed25519KeyPair:
        """Create deterministic key pair from seed."""
        return cls(Ed25519PrivateKey.from_seed(seed))

    def is_consistent(self) -> bool:
        """True if the public key is derived from the private key."""
        return self.private_key.public_key() == self.public_key

    def sign(self, message: bytes) -> bytes:
        """Sign a message and return signature bytes."""
        return self.private_key.sign(message)

    def verify(self, message: bytes, signature: bytes) -> bool:
        """Verify a signature against a message."""
        return self.public_key.verify(signature, message)

    def __str__(self) -> str:
        return f"Ed25519KeyPair(public={self.public_key.to_string()})"


__all__ = [
    "ED25519_PREFIX",
    "KeyType",
    "Ed25519Error",
    "Ed25519PublicKey",
    "Ed25519PrivateKey",
    "Ed25519KeyPair",
]
