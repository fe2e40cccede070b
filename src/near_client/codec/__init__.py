"""
NEAR Binary Codec Module

Primitives for the Borsh wire format and base58 text encoding. Structure
encoders for actions and transactions live in ``near_client.tx.codec``.

Key components:
- writer.py: Borsh writer with fixed-width little-endian integers and u32 length prefixes
- reader.py: Borsh reader, the inverse of the writer
- base58.py: Bitcoin-alphabet base58 used for keys and block hashes
"""

from .base58 import b58decode, b58encode
from .reader import BorshReader
from .writer import BorshWriter, U64_MAX, U128_MAX

__all__ = [
    "BorshReader",
    "BorshWriter",
    "U64_MAX",
    "U128_MAX",
    "b58decode",
    "b58encode",
]
