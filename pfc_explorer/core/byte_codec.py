"""Little-endian field helpers shared by all cabinet decoders."""

import struct

from .errors import TruncatedReadError

# Record strings are single-byte text.
TEXT_ENCODING = "latin-1"

_UINT32 = struct.Struct('<I')
_UINT16 = struct.Struct('<H')


def read_uint32_le(data: bytes, offset: int) -> int:
    """
    Read an unsigned 32-bit little-endian integer.

    Raises:
        TruncatedReadError: If fewer than 4 bytes remain at offset
    """
    if offset < 0 or offset + 4 > len(data):
        raise TruncatedReadError(
            f"Cannot read 4 bytes at offset {offset} (length {len(data)})"
        )
    return _UINT32.unpack_from(data, offset)[0]


def read_uint16_le(data: bytes, offset: int) -> int:
    """
    Read an unsigned 16-bit little-endian integer.

    Raises:
        TruncatedReadError: If fewer than 2 bytes remain at offset
    """
    if offset < 0 or offset + 2 > len(data):
        raise TruncatedReadError(
            f"Cannot read 2 bytes at offset {offset} (length {len(data)})"
        )
    return _UINT16.unpack_from(data, offset)[0]


def read_uint32_or_zero(data: bytes, offset: int) -> int:
    """Read a 32-bit field, treating a short buffer as zero."""
    if offset + 4 > len(data):
        return 0
    return _UINT32.unpack_from(data, offset)[0]


def read_uint16_or_zero(data: bytes, offset: int) -> int:
    """Read a 16-bit field, treating a short buffer as zero."""
    if offset + 2 > len(data):
        return 0
    return _UINT16.unpack_from(data, offset)[0]


def read_cstring(data: bytes, start: int = 0, end: int = -1) -> str:
    """
    Decode a NUL-terminated string.

    Args:
        data: Source bytes
        start: First byte of the string
        end: Exclusive upper bound (-1 = end of data)

    Returns:
        Text up to the first NUL, or up to end if no NUL is found
    """
    if end < 0 or end > len(data):
        end = len(data)
    if start >= end:
        return ""
    nul = data.find(b'\x00', start, end)
    if nul >= 0:
        end = nul
    return data[start:end].decode(TEXT_ENCODING)


def decode_text(data: bytes) -> str:
    """Decode raw subitem bytes to text, dropping trailing NUL padding."""
    return bytes(data).decode(TEXT_ENCODING).rstrip('\x00')


def to_hex_string(value: int, digits: int) -> str:
    """Format value as zero-padded hex, keeping only the low digits."""
    text = format(value & 0xFFFFFFFF, 'x').rjust(digits, '0')
    return text[-digits:]


def pad_int_string(value: int, length: int) -> str:
    """Format value as decimal, left-padded with spaces to length."""
    return str(value).rjust(length)
