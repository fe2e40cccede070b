"""
Base58 encoding with the Bitcoin alphabet.

Used for the textual form of public keys, private keys and block hashes.
"""

from ..runtime.errors import EncodingError

ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_INDEX = {c: i for i, c in enumerate(ALPHABET)}


def b58encode(data: bytes) -> str:
    """
    Encode bytes as a base58 string.

    Leading zero bytes are preserved as leading '1' characters.
    """
    n = int.from_bytes(data, "big")
    out = []
    while n > 0:
        n, rem = divmod(n, 58)
        out.append(ALPHABET[rem])
    pad = len(data) - len(data.lstrip(b"\x00"))
    return "1" * pad + "".join(reversed(out))


def b58decode(text: str) -> bytes:
    """
    Decode a base58 string.

    Raises:
        EncodingError: If the string contains characters outside the alphabet
    """
    n = 0
    for ch in text:
        try:
            n = n * 58 + _INDEX[ch]
        except KeyError:
            raise EncodingError(f"Invalid base58 character {ch!r}")
    body = n.to_bytes((n.bit_length() + 7) // 8, "big") if n else b""
    pad = len(text) - len(text.lstrip("1"))
    return b"\x00" * pad + body
