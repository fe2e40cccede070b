"""
Borsh binary reader.

Mirror of ``BorshWriter``: decodes the same primitives and raises
``EncodingError`` on truncated or malformed input.
"""

import builtins
import struct

from ..runtime.errors import EncodingError


class BorshReader:
    """
    Sequential Borsh reader over an immutable buffer.
    """

    def __init__(self, buf: builtins.bytes):
        """
        Initialize reader with byte buffer.

        Args:
            buf: Byte buffer to read from
        """
        self._buf = buf
        self._off = 0

    @property
    def eof(self) -> bool:
        """True if every byte has been consumed."""
        return self._off >= len(self._buf)

    def _take(self, n: int) -> builtins.bytes:
        if self._off + n > len(self._buf):
            raise EncodingError(
                f"Buffer overflow: attempting to read {n} bytes at offset {self._off}"
            )
        out = self._buf[self._off : self._off + n]
        self._off += n
        return out

    def u8(self) -> int:
        """Read unsigned 8-bit integer."""
        return self._take(1)[0]

    def u32(self) -> int:
        """Read unsigned 32-bit little-endian integer."""
        return struct.unpack("<I", self._take(4))[0]

    def u64(self) -> int:
        """Read unsigned 64-bit little-endian integer."""
        return struct.unpack("<Q", self._take(8))[0]

    def u128(self) -> int:
        """Read unsigned 128-bit little-endian integer."""
        return int.from_bytes(self._take(16), "little")

    def fixed_bytes(self, n: int) -> builtins.bytes:
        """Read n bytes without length prefix."""
        return builtins.bytes(self._take(n))

    def bytes(self) -> builtins.bytes:
        """Read a u32 length-prefixed byte vector."""
        n = self.u32()
        return builtins.bytes(self._take(n))

    def string(self) -> str:
        """Read a u32 length-prefixed UTF-8 string."""
        raw = self.bytes()
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncodingError(f"Invalid UTF-8 string: {e}", cause=e)

    def option_tag(self) -> bool:
        """Read the one-byte tag of an Option value."""
        tag = self.u8()
        if tag not in (0, 1):
            raise EncodingError(f"Invalid option tag {tag}")
        return tag == 1

    def expect_eof(self) -> None:
        """Raise if unread bytes remain."""
        if not self.eof:
            raise EncodingError(f"{len(self._buf) - self._off} trailing bytes after decode")
