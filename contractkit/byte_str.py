"""Hex byte-string encoding used by contract metadata."""

from __future__ import annotations

_WHITESPACE = " \r\n\t"
_HEX_DIGITS = "0123456789abcdefABCDEF"

CODE_HASH_LENGTH = 32


def serialize_as_byte_str(data: bytes) -> str:
    """Encode bytes as a ``0x``-prefixed lower-case hex string.

    Empty input yields an empty string without the prefix.
    """
    raw = bytes(data)
    if not raw:
        return ""
    return "0x" + raw.hex()


def _from_hex(text: str) -> bytes:
    digits = text[2:] if text.startswith("0x") else text
    nibbles = []
    for index, char in enumerate(digits):
        if char in _WHITESPACE:
            continue
        if char not in _HEX_DIGITS:
            raise ValueError(f"invalid hex character: {char}, at {index + 2}")
        nibbles.append(char)
    if len(nibbles) % 2:
        nibbles.insert(0, "0")
    return bytes.fromhex("".join(nibbles))


def _require_str(text: object) -> str:
    if not isinstance(text, str):
        raise TypeError(
            f"invalid type {type(text).__name__}, "
            "expected hex string with optional 0x prefix"
        )
    return text


def deserialize_from_byte_str(text: str) -> bytes:
    """Decode a hex string with an optional ``0x`` prefix."""
    return _from_hex(_require_str(text))


def deserialize_from_byte_str_array(text: str) -> bytes:
    """Decode a hex string with an optional ``0x`` prefix into exactly 32 bytes."""
    result = _from_hex(_require_str(text))
    if len(result) != CODE_HASH_LENGTH:
        raise ValueError("Expected exactly 32 bytes")
    return result