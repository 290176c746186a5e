"""GSM 03.38 default alphabet and septet unpacking."""

from __future__ import annotations

from smsrelay.errors import PduDecodeError

ESCAPE = 0x1B

# Rows of 16 code points, 0x00 through 0x7F.
DEFAULT_ALPHABET = (
    "@£$¥èéùìòÇ\nØø\rÅå"
    "Δ_ΦΓΛΩΠΨΣΘΞ\x1bÆæßÉ"
    " !\"#¤%&'()*+,-./"
    "0123456789:;<=>?"
    "¡ABCDEFGHIJKLMNO"
    "PQRSTUVWXYZÄÖÑÜ§"
    "¿abcdefghijklmno"
    "pqrstuvwxyzäöñüà"
)

EXTENSION_TABLE = {
    0x0A: "\f",
    0x14: "^",
    0x28: "{",
    0x29: "}",
    0x2F: "\\",
    0x3C: "[",
    0x3D: "~",
    0x3E: "]",
    0x40: "|",
    0x65: "€",
}

_SEPTET_MASK = 0x7F


def unpack_septets(data: bytes, count: int, *, start_bit: int = 0) -> list[int]:
    """Return ``count`` septets packed LSB-first starting at ``start_bit``."""
    if start_bit + count * 7 > len(data) * 8:
        raise PduDecodeError.truncated("7-bit user data")
    bits = int.from_bytes(data, "little")
    return [(bits >> (start_bit + 7 * i)) & _SEPTET_MASK for i in range(count)]


def decode_septets(septets: list[int]) -> str:
    """Render septets using the default alphabet and its extension table.

    An escape followed by an unmapped code falls back to the default-table
    character, and a trailing escape renders as a space.
    """
    chars: list[str] = []
    escaped = False
    for septet in septets:
        if escaped:
            chars.append(EXTENSION_TABLE.get(septet, DEFAULT_ALPHABET[septet]))
            escaped = False
        elif septet == ESCAPE:
            escaped = True
        else:
            chars.append(DEFAULT_ALPHABET[septet])
    if escaped:
        chars.append(" ")
    return "".join(chars)


def decode_packed(data: bytes, count: int, *, start_bit: int = 0) -> str:
    """Unpack and render ``count`` septets from ``data``."""
    return decode_septets(unpack_septets(data, count, start_bit=start_bit))
