"""
Variable-width length prefix used before every RouterOS API word.

Encoding layout::

    +-----------------------+-------+--------------------------------------+
    | Length range          | Bytes | First byte                           |
    +-----------------------+-------+--------------------------------------+
    | 0x00 - 0x7F           | 1     | 0xxxxxxx                             |
    | 0x80 - 0x3FFF         | 2     | 10xxxxxx                             |
    | 0x4000 - 0x1FFFFF     | 3     | 110xxxxx                             |
    | 0x200000 - 0xFFFFFFF  | 4     | 1110xxxx                             |
    | 0x10000000 and above  | 5     | 11110000, value in the next 4 bytes  |
    +-----------------------+-------+--------------------------------------+

All multi-byte forms are big-endian. The encoder must be bit-exact with the
router firmware: a wrong prefix desynchronizes the stream for good.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ovpn_ip_updater.routeros.exceptions import ProtocolFramingError

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Final


MAX_LENGTH: Final[int] = 0xFFFFFFFF

# (exclusive upper bound, total width, marker OR-ed into the value)
_BANDS: Final[tuple[tuple[int, int, int], ...]] = (
    (0x80, 1, 0x00),
    (0x4000, 2, 0x8000),
    (0x200000, 3, 0xC00000),
    (0x10000000, 4, 0xE0000000),
)

LONG_MARKER: Final[int] = 0xF0


def encode_length(length: int) -> bytes:
    """
    Encode a word length into its 1-5 byte prefix.

    Parameters
    ----------
    length : int
        Number of bytes in the word.

    Returns
    -------
    bytes
        The narrowest valid prefix for ``length``.

    Raises
    ------
    ValueError
        If ``length`` is negative or does not fit in 32 bits.
    """
    if length < 0 or length > MAX_LENGTH:
        msg = f"Word length out of range: {length}."
        raise ValueError(msg)

    for limit, width, marker in _BANDS:
        if length < limit:
            return (length | marker).to_bytes(width, "big")

    return bytes([LONG_MARKER]) + length.to_bytes(4, "big")


def length_width(first_byte: int) -> int:
    """
    Return the total prefix width announced by its first byte.

    Parameters
    ----------
    first_byte : int
        First byte of a length prefix (0-255).

    Returns
    -------
    int
        Number of bytes in the whole prefix, first byte included.

    Raises
    ------
    ProtocolFramingError
        If the byte is a reserved control byte (``0xF8`` and above).
    """
    if first_byte & 0x80 == 0x00:
        return 1
    if first_byte & 0xC0 == 0x80:
        return 2
    if first_byte & 0xE0 == 0xC0:
        return 3
    if first_byte & 0xF0 == 0xE0:
        return 4
    if first_byte & 0xF8 == 0xF0:
        return 5
    msg = f"Invalid length prefix byte: 0x{first_byte:02X}."
    raise ProtocolFramingError(msg)


def decode_length(read_byte: Callable[[], int]) -> int:
    """
    Decode a length prefix pulled one byte at a time.

    Parameters
    ----------
    read_byte : Callable[[], int]
        Returns the next byte of the stream as an int.

    Returns
    -------
    int
        The decoded word length.

    Raises
    ------
    ProtocolFramingError
        If the first byte is not a valid prefix marker.
    """
    first = read_byte()
    width = length_width(first)

    if width == 1:
        return first
    if width == 5:
        # The marker byte carries no value bits
        value = 0
    else:
        value = first & (0xFF >> width)

    for _ in range(width - 1):
        value = (value << 8) | read_byte()
    return value
