"""JPEG marker-stream handling: locate the Exif APP1 segment and rewrite
a file around it.

Segment lengths are always big-endian, independent of the Exif payload's
own byte order.
"""

import logging
import struct
from typing import BinaryIO, Optional

from jpegexif.errors import InvalidContainer, ReadFailure, WriteFailure

logger = logging.getLogger(__name__)

SOI_MARKER = 0xFFD8
APP0_MARKER = 0xFFE0
APP1_MARKER = 0xFFE1
APP15_MARKER = 0xFFEF
DQT_MARKER = 0xFFDB

EXIF_ID = b'Exif\x00'
EXIF_HEADER = b'Exif\x00\x00'

# Streaming copy chunk (64 KB)
COPY_CHUNK_SIZE = 65536


def _read_u16(f: BinaryIO) -> int:
    data = f.read(2)
    if len(data) < 2:
        raise ReadFailure(f'unexpected end of file at offset {f.tell()}')
    return struct.unpack('>H', data)[0]


def _is_app_marker(marker: int) -> bool:
    return APP0_MARKER <= marker <= APP15_MARKER


def find_app1_offset(f: BinaryIO) -> Optional[int]:
    """Find the Exif APP1 segment in a JPEG stream.

    Returns the absolute offset of the segment's marker, or None if the
    file has no Exif segment. Raises ReadFailure on truncation and
    InvalidContainer if the stream is not a JPEG or a segment length is
    inconsistent.
    """
    f.seek(0)
    if _read_u16(f) != SOI_MARKER:
        raise InvalidContainer('missing JPEG SOI marker')

    marker = _read_u16(f)
    if not _is_app_marker(marker):
        # e.g. DQT right after SOI: no application segments at all
        logger.debug('no application segments (first marker 0x%04X)', marker)
        return None

    while _is_app_marker(marker):
        pos = f.tell()
        length = _read_u16(f)
        if length < 2:
            raise InvalidContainer(f'segment 0x{marker:04X} at {pos - 2} '
                                   f'has invalid length {length}')
        if marker == APP1_MARKER:
            ident = f.read(len(EXIF_ID))
            if len(ident) < len(EXIF_ID):
                raise ReadFailure('truncated APP1 segment')
            if ident == EXIF_ID:
                return pos - 2
        f.seek(pos + length)
        marker = _read_u16(f)

    return None


def find_insertion_offset(f: BinaryIO) -> int:
    """Offset where a new APP1 segment goes: after SOI, or after a leading APP0."""
    f.seek(0)
    if _read_u16(f) != SOI_MARKER:
        raise InvalidContainer('missing JPEG SOI marker')
    marker = _read_u16(f)
    if marker == APP0_MARKER:
        length = _read_u16(f)
        if length < 2:
            raise InvalidContainer(f'APP0 segment has invalid length {length}')
        return 4 + length
    return 2


def _write(dst: BinaryIO, data: bytes) -> int:
    try:
        written = dst.write(data)
    except OSError as e:
        raise WriteFailure(f'write failed: {e}') from e
    if written is not None and written != len(data):
        raise WriteFailure(f'short write: {written} of {len(data)} bytes')
    return len(data)


def _copy_range(src: BinaryIO, dst: BinaryIO, size: int) -> int:
    remaining = size
    while remaining > 0:
        data = src.read(min(COPY_CHUNK_SIZE, remaining))
        if not data:
            raise ReadFailure(f'short read: {size - remaining} of {size} bytes copied')
        _write(dst, data)
        remaining -= len(data)
    return size


def _copy_rest(src: BinaryIO, dst: BinaryIO) -> int:
    total = 0
    while True:
        data = src.read(COPY_CHUNK_SIZE)
        if not data:
            return total
        total += _write(dst, data)


def replace_segment(src: BinaryIO, dst: BinaryIO, segment_offset: int,
                    segment_length: Optional[int], new_segment: bytes = b'') -> int:
    """Copy ``src`` to ``dst`` with one segment swapped for ``new_segment``.

    ``segment_length`` is the segment's declared JPEG length (which counts
    the length field but not the marker). Pass None to insert
    ``new_segment`` at ``segment_offset`` without removing anything.
    Returns the number of bytes written.
    """
    src.seek(0)
    written = _copy_range(src, dst, segment_offset)
    if new_segment:
        written += _write(dst, new_segment)
    if segment_length is not None:
        skip_to = segment_offset + 2 + segment_length
        src.seek(skip_to)
        if src.tell() != skip_to:
            raise ReadFailure(f'cannot seek past segment to {skip_to}')
    written += _copy_rest(src, dst)
    return written


def strip_segment(src: BinaryIO, dst: BinaryIO, segment_offset: int,
                  segment_length: int) -> int:
    """Copy ``src`` to ``dst`` with the segment at ``segment_offset`` elided.

    Skips exactly ``segment_length + 2`` bytes (marker plus declared length).
    All other bytes are copied unchanged. Returns the number of bytes written.
    """
    return replace_segment(src, dst, segment_offset, segment_length)
