"""
Borsh binary writer.

Primitive encoders for the network's canonical wire format: little-endian
fixed-width integers, u32 length prefixes for strings, byte vectors and
sequences, and a one-byte tag for enum discriminants and options.
"""

import struct
from typing import List

from ..runtime.errors import EncodingError

U64_MAX = (1 << 64) - 1
U128_MAX = (1 << 128) - 1


class BorshWriter:
    """
    Append-only Borsh writer.

    Integer writers reject out-of-range values instead of masking them, so an
    oversized amount fails loudly rather than producing a different deposit.
    """

    def __init__(self):
        """Initialize writer with empty byte buffer."""
        self._bb: List[int] = []

    def _check(self, v: int, bits: int) -> None:
        if v < 0 or v >= (1 << bits):
            raise EncodingError(f"Value {v} out of range for u{bits}")

    def u8(self, v: int) -> None:
        """Write unsigned 8-bit integer."""
        self._check(v, 8)
        self._bb.append(v)

    def u32(self, v: int) -> None:
        """Write unsigned 32-bit integer in little-endian format."""
        self._check(v, 32)
        self._bb.extend(struct.pack('<I', v))

    def u64(self, v: int) -> None:
        """Write unsigned 64-bit integer in little-endian format."""
        self._check(v, 64)
        self._bb.extend(struct.pack('<Q', v))

    def u128(self, v: int) -> None:
        """
        Write unsigned 128-bit integer in little-endian format.

        Token amounts use this width; they exceed the 64-bit range.
        """
        self._check(v, 128)
        self._bb.extend(v.to_bytes(16, 'little'))

    def fixed_bytes(self, v: bytes, size: int) -> None:
        """Write a fixed-size byte array without length prefix."""
        if len(v) != size:
            raise EncodingError(f"Expected {size} bytes, got {len(v)}")
        self._bb.extend(v)

    def bytes(self, v: bytes) -> None:
        """Write a byte vector with u32 length prefix."""
        self.u32(len(v))
        self._bb.extend(v)

    def string(self, s: str) -> None:
        """Write a UTF-8 string with u32 length prefix."""
        self.bytes(s.encode('utf-8'))

    def option_tag(self, present: bool) -> None:
        """Write the one-byte tag of an Option value."""
        self.u8(1 if present else 0)

    def to_bytes(self) -> bytes:
        """Return accumulated bytes as immutable bytes object."""
        return bytes(self._bb)
