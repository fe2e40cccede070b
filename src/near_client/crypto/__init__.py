"""
Cryptographic primitives for NEAR accounts.
"""

from .ed25519 import (
    ED25519_PREFIX,
    KeyType,
    Ed25519Error,
    Ed25519KeyPair,
    Ed25519PublicKey,
    Ed25519PrivateKey,
)

__all__ = [
    "ED25519_PREFIX",
    "KeyType",
    "Ed25519Error",
    "Ed25519KeyPair",
    "Ed25519PublicKey",
    "Ed25519PrivateKey",
]
