"""Byte-order handling for the Exif TIFF payload.

The TIFF header's first two bytes select the data order ('II' little-endian,
'MM' big-endian). Values read with the host's native order are normalized
with ``to_host_short`` / ``to_host_long``, which swap only when the data
order and the host order differ.
"""

import sys
from typing import Optional, Union

LITTLE_ENDIAN_MARK = 0x4949  # 'II'
BIG_ENDIAN_MARK = 0x4D4D     # 'MM'

HOST_IS_LITTLE_ENDIAN: bool = sys.byteorder == 'little'


def resolve_data_order(marker: Union[int, bytes]) -> Optional[str]:
    """Map a byte-order mark to a struct endian prefix.

    Returns '<' for little-endian, '>' for big-endian, or None if the mark
    is not one of the two recognized values.
    """
    if isinstance(marker, (bytes, bytearray)):
        if len(marker) != 2:
            return None
        marker = (marker[0] << 8) | marker[1]
    if marker == LITTLE_ENDIAN_MARK:
        return '<'
    if marker == BIG_ENDIAN_MARK:
        return '>'
    return None


def swab16(value: int) -> int:
    return ((value << 8) & 0xFF00) | ((value >> 8) & 0x00FF)


def swab32(value: int) -> int:
    return (((value << 24) & 0xFF000000) | ((value << 8) & 0x00FF0000)
            | ((value >> 8) & 0x0000FF00) | ((value >> 24) & 0x000000FF))


def to_host_short(value: int, data_is_little_endian: bool,
                  host_is_little_endian: bool = HOST_IS_LITTLE_ENDIAN) -> int:
    """Normalize a 16-bit value read in native order."""
    if data_is_little_endian != host_is_little_endian:
        return swab16(value)
    return value


def to_host_long(value: int, data_is_little_endian: bool,
                 host_is_little_endian: bool = HOST_IS_LITTLE_ENDIAN) -> int:
    """Normalize a 32-bit value read in native order."""
    if data_is_little_endian != host_is_little_endian:
        return swab32(value)
    return value
