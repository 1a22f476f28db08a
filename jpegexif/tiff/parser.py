"""Exif TIFF payload parser -- stdlib only (struct module).

Reads the APP1 segment header and TIFF header, then decodes IFDs tag by
tag. All offsets inside the payload are relative to the TIFF header start.
Every value fetched from an offset is bounds-checked against the segment's
declared length before it is read, so a hostile tag count can never force
a large allocation or an unbounded read.
"""

import logging
import struct
from typing import List

from jpegexif.byteorder import resolve_data_order, to_host_short
from jpegexif.errors import DirectoryError, InvalidHeader, ReadFailure
from jpegexif.models import (
    BYTE_TYPES, INTEGER_TYPES, RATIONAL_TYPES, TYPE_WIDTHS,
    IfdTable, IfdType, Tag, TagType,
)
from jpegexif.session import ExifSession

logger = logging.getLogger(__name__)

TIFF_VERSION = 0x002A
TIFF_HEADER_SIZE = 8
IFD_ENTRY_SIZE = 12

# marker(2) + length(2) + "Exif\0\0"(6) + TIFF header(8)
APP1_HEADER_SIZE = 18

_INT_FORMATS = {1: 'B', 2: 'H', 4: 'I'}


class TIFFHeader:
    """Parsed TIFF header of an Exif payload."""
    __slots__ = ('endian', 'version', 'first_ifd_offset')

    def __init__(self, endian: str, version: int, first_ifd_offset: int):
        self.endian = endian
        self.version = version
        self.first_ifd_offset = first_ifd_offset

    @property
    def byte_order_name(self) -> str:
        return 'little' if self.endian == '<' else 'big'


def read_app1_header(session: ExifSession) -> TIFFHeader:
    """Read the APP1 segment header at ``session.app1_offset``.

    Sets the session's segment length and byte order. Raises InvalidHeader
    if the header is truncated, the byte-order mark is not 'II'/'MM', or
    the TIFF version is not 42.
    """
    f = session.f
    f.seek(session.app1_offset)
    raw = f.read(APP1_HEADER_SIZE)
    if len(raw) < APP1_HEADER_SIZE:
        raise InvalidHeader('truncated APP1 segment header')

    # JPEG framing is big-endian regardless of the Exif byte order
    length = to_host_short(struct.unpack('=H', raw[2:4])[0], False)
    if length < APP1_HEADER_SIZE - 2:
        raise InvalidHeader(f'APP1 segment length {length} too small for a TIFF header')
    session.segment_length = length

    endian = resolve_data_order(raw[10:12])
    if endian is None:
        raise InvalidHeader(f'unknown byte-order mark {raw[10:12]!r}')
    session.endian = endian

    version = session.fix_short(struct.unpack('=H', raw[12:14])[0])
    if version != TIFF_VERSION:
        raise InvalidHeader(f'bad TIFF version 0x{version:04X}')

    first_ifd_offset = session.fix_long(struct.unpack('=I', raw[14:18])[0])
    return TIFFHeader(endian, version, first_ifd_offset)


def _unpack_array(session: ExifSession, width: int, count: int, data: bytes) -> List[int]:
    fmt = f'{session.endian}{count}{_INT_FORMATS[width]}'
    return list(struct.unpack(fmt, data[:width * count]))


def _fetch_bounded(session: ExifSession, tag_id: int, offset: int, size: int):
    """Fetch an out-of-line value, or None if it is oversized or unreadable."""
    if not session.within_bounds(size):
        logger.debug('tag 0x%04X: value of %d bytes exceeds segment length %d',
                     tag_id, size, session.segment_length)
        return None
    try:
        return session.fetch(offset, size)
    except ReadFailure as e:
        logger.debug('tag 0x%04X: cannot read value at offset %d: %s', tag_id, offset, e)
        return None


def decode_tag(session: ExifSession, record: bytes) -> Tag:
    """Decode one 12-byte IFD entry into a Tag.

    Values that cannot be retrieved produce a Tag with ``error`` set rather
    than an exception.
    """
    tag_id, dtype, count, offset = struct.unpack('=HHII', record)
    inline = record[8:12]
    tag_id = session.fix_short(tag_id)
    dtype = session.fix_short(dtype)
    count = session.fix_long(count)
    offset = session.fix_long(offset)

    if dtype in BYTE_TYPES:
        if count <= 4:
            return Tag.create(tag_id, dtype, count, byte_data=inline)
        data = _fetch_bounded(session, tag_id, offset, count)
        return Tag.create(tag_id, dtype, count, byte_data=data)

    if dtype in RATIONAL_TYPES:
        if count == 0:
            return Tag.create(tag_id, dtype, count)
        data = _fetch_bounded(session, tag_id, offset, count * 8)
        if data is None:
            return Tag.create(tag_id, dtype, count)
        return Tag.create(tag_id, dtype, count,
                          num_data=_unpack_array(session, 4, count * 2, data))

    if dtype in INTEGER_TYPES:
        width = TYPE_WIDTHS[dtype]
        if count <= 1:
            # single values are left-justified in the value field
            if width == 1:
                value = inline[0]
            elif width == 2:
                value = session.fix_short(struct.unpack('=H', inline[:2])[0])
            else:
                value = offset
            return Tag.create(tag_id, dtype, count, num_data=[value])
        size = width * count
        if size <= 4:
            data = inline
        else:
            data = _fetch_bounded(session, tag_id, offset, size)
            if data is None:
                return Tag.create(tag_id, dtype, count)
        return Tag.create(tag_id, dtype, count,
                          num_data=_unpack_array(session, width, count, data))

    logger.debug('tag 0x%04X: unsupported type %d', tag_id, dtype)
    return Tag(tag_id, dtype, count, error=True)


def read_ifd(session: ExifSession, ifd_offset: int, ifd_type: IfdType) -> IfdTable:
    """Decode the IFD at a TIFF-relative offset.

    For the primary IFD the next-IFD offset (which locates the thumbnail
    IFD) is read as well. A failure to read the tag count, the next-IFD
    offset or any 12-byte entry raises DirectoryError; failures to fetch
    individual values only mark that tag as errored.
    """
    try:
        session.seek_relative(ifd_offset)
        tag_count = session.fix_short(struct.unpack('=H', session.read_exact(2))[0])

        next_offset = 0
        if ifd_type == IfdType.PRIMARY:
            session.seek_relative(ifd_offset + 2 + IFD_ENTRY_SIZE * tag_count)
            next_offset = session.fix_long(struct.unpack('=I', session.read_exact(4))[0])

        table = IfdTable(ifd_type, tag_count, [], next_offset)
        entry_offset = ifd_offset + 2
        for _ in range(tag_count):
            session.seek_relative(entry_offset)
            record = session.read_exact(IFD_ENTRY_SIZE)
            table.tags.append(decode_tag(session, record))
            entry_offset += IFD_ENTRY_SIZE
    except ReadFailure as e:
        raise DirectoryError(f'cannot read {ifd_type.label} IFD at offset {ifd_offset}: {e}',
                             ifd_type) from e

    errored = sum(1 for t in table.tags if t.error)
    if errored:
        logger.debug('%s IFD: %d of %d tags could not be decoded',
                     ifd_type.label, errored, tag_count)
    return table


def read_tag_string(tag: Tag) -> str:
    """ASCII value of a tag, '' if errored or not ASCII."""
    if tag.error or tag.type != TagType.ASCII or tag.byte_data is None:
        return ''
    return tag.values
