"""Serialize decoded IFD tables back into an Exif TIFF payload / APP1 segment.

Layout: TIFF header, then each IFD (0th, Exif, Interoperability, GPS, 1st)
immediately followed by its out-of-line values, then the thumbnail bytes.
Pointer tags are rewritten to the new offsets.
"""

import logging
import struct
from typing import Dict, List, Optional, Sequence

from jpegexif.errors import WriteFailure
from jpegexif.jpeg import APP1_MARKER, EXIF_HEADER
from jpegexif.models import (
    BYTE_TYPES, INTEGER_TYPES, RATIONAL_TYPES, TYPE_WIDTHS,
    IfdTable, IfdType, Tag, TagType,
)
from jpegexif.tiff.parser import IFD_ENTRY_SIZE, TIFF_HEADER_SIZE, TIFF_VERSION
from jpegexif.tiff.tags import (
    EXIF_IFD_POINTER_TAG,
    GPS_IFD_POINTER_TAG,
    INTEROPERABILITY_IFD_POINTER_TAG,
    JPEG_INTERCHANGE_FORMAT_LENGTH_TAG,
    JPEG_INTERCHANGE_FORMAT_TAG,
)

logger = logging.getLogger(__name__)

MAX_APP1_LENGTH = 0xFFFF

# Order IFDs are written in
_LAYOUT_ORDER = (IfdType.PRIMARY, IfdType.EXIF, IfdType.INTEROPERABILITY,
                 IfdType.GPS, IfdType.THUMBNAIL)

# parent IFD type -> [(pointer tag, child IFD type)]
_POINTERS = {
    IfdType.PRIMARY: [(EXIF_IFD_POINTER_TAG, IfdType.EXIF),
                      (GPS_IFD_POINTER_TAG, IfdType.GPS)],
    IfdType.EXIF: [(INTEROPERABILITY_IFD_POINTER_TAG, IfdType.INTEROPERABILITY)],
}

_INT_FORMATS = {1: 'B', 2: 'H', 4: 'I'}
_INT_MASKS = {1: 0xFF, 2: 0xFFFF, 4: 0xFFFFFFFF}


def encode_tag_value(tag: Tag, endian: str) -> bytes:
    """On-disk bytes of a tag's value (without inline padding)."""
    if tag.error:
        raise WriteFailure(f'tag 0x{tag.tag_id:04X} has no payload to encode')
    if tag.count <= 0:
        raise WriteFailure(f'tag 0x{tag.tag_id:04X} has count {tag.count}')
    if tag.type in BYTE_TYPES:
        if tag.byte_data is None or len(tag.byte_data) < tag.count:
            raise WriteFailure(f'tag 0x{tag.tag_id:04X}: payload shorter than count {tag.count}')
        return bytes(tag.byte_data[:tag.count])
    if tag.type in RATIONAL_TYPES or tag.type in INTEGER_TYPES:
        slots = tag.count * 2 if tag.type in RATIONAL_TYPES else tag.count
        if tag.num_data is None or len(tag.num_data) < slots:
            raise WriteFailure(f'tag 0x{tag.tag_id:04X}: payload shorter than count {tag.count}')
    if tag.type in RATIONAL_TYPES:
        values = [v & 0xFFFFFFFF for v in tag.num_data[:tag.count * 2]]
        return struct.pack(f'{endian}{len(values)}I', *values)
    if tag.type in INTEGER_TYPES:
        width = TYPE_WIDTHS[tag.type]
        mask = _INT_MASKS[width]
        values = [v & mask for v in tag.num_data[:tag.count]]
        return struct.pack(f'{endian}{len(values)}{_INT_FORMATS[width]}', *values)
    raise WriteFailure(f'tag 0x{tag.tag_id:04X} has unsupported type {tag.type}')


def _pointer_tag(tag_id: int) -> Tag:
    return Tag.create(tag_id, TagType.LONG, 1, num_data=[0])


def _upsert_sorted(tags: List[Tag], new: Tag) -> Tag:
    """Replace the tag with the same id, or insert it in ascending id order."""
    for i, tag in enumerate(tags):
        if tag.tag_id == new.tag_id:
            tags[i] = new
            return new
    for i, tag in enumerate(tags):
        if tag.tag_id > new.tag_id:
            tags.insert(i, new)
            return new
    tags.append(new)
    return new


def _collect_tables(tables: Sequence[IfdTable]) -> Dict[IfdType, IfdTable]:
    by_type: Dict[IfdType, IfdTable] = {}
    for table in tables:
        if table.ifd_type not in _LAYOUT_ORDER:
            logger.debug('skipping IFD of unknown type %r', table.ifd_type)
            continue
        if table.ifd_type in by_type:
            logger.debug('skipping duplicate %s IFD', table.ifd_type.label)
            continue
        by_type[table.ifd_type] = table
    if by_type and IfdType.PRIMARY not in by_type:
        raise WriteFailure('cannot encode IFDs without a 0th IFD')
    if IfdType.INTEROPERABILITY in by_type and IfdType.EXIF not in by_type:
        raise WriteFailure('Interoperability IFD requires an Exif IFD')
    return by_type


def _prepare_tags(table: IfdTable, by_type: Dict[IfdType, IfdTable],
                  thumbnail: Optional[bytes]) -> List[Tag]:
    tags = []
    for tag in table.tags:
        if tag.error:
            logger.debug('%s IFD: dropping errored tag 0x%04X',
                         table.ifd_type.label, tag.tag_id)
            continue
        tags.append(tag)

    for pointer, child in _POINTERS.get(table.ifd_type, ()):
        if child in by_type:
            _upsert_sorted(tags, _pointer_tag(pointer))
        else:
            tags = [t for t in tags if t.tag_id != pointer]

    if table.ifd_type == IfdType.THUMBNAIL:
        if thumbnail:
            _upsert_sorted(tags, _pointer_tag(JPEG_INTERCHANGE_FORMAT_TAG))
            _upsert_sorted(tags, Tag.create(JPEG_INTERCHANGE_FORMAT_LENGTH_TAG,
                                            TagType.LONG, 1, num_data=[len(thumbnail)]))
        else:
            tags = [t for t in tags if t.tag_id not in
                    (JPEG_INTERCHANGE_FORMAT_TAG, JPEG_INTERCHANGE_FORMAT_LENGTH_TAG)]
    return tags


def _ifd_size(tags: List[Tag], endian: str) -> int:
    size = 2 + IFD_ENTRY_SIZE * len(tags) + 4
    for tag in tags:
        length = len(encode_tag_value(tag, endian))
        if length > 4:
            size += length + (length & 1)
    return size


def encode_tiff(tables: Sequence[IfdTable], endian: str = '<',
                thumbnail: Optional[bytes] = None) -> bytes:
    """Encode IFD tables as a complete TIFF payload.

    Errored tags are skipped. Values of four bytes or fewer are stored
    inline (left-justified); longer values are word aligned after the IFD
    that owns them.
    """
    if endian not in ('<', '>'):
        raise ValueError(f'endian must be "<" or ">", got {endian!r}')
    by_type = _collect_tables(tables)
    if thumbnail and IfdType.THUMBNAIL not in by_type:
        raise WriteFailure('thumbnail data given without a 1st IFD')

    prepared = {t: _prepare_tags(by_type[t], by_type, thumbnail)
                for t in _LAYOUT_ORDER if t in by_type}

    # Pass 1: offsets
    offsets: Dict[IfdType, int] = {}
    cursor = TIFF_HEADER_SIZE
    for ifd_type, tags in prepared.items():
        offsets[ifd_type] = cursor
        cursor += _ifd_size(tags, endian)
    thumbnail_offset = cursor

    for ifd_type, tags in prepared.items():
        for pointer, child in _POINTERS.get(ifd_type, ()):
            if child in offsets:
                _upsert_sorted(tags, Tag.create(pointer, TagType.LONG, 1,
                                                num_data=[offsets[child]]))
        if ifd_type == IfdType.THUMBNAIL and thumbnail:
            _upsert_sorted(tags, Tag.create(JPEG_INTERCHANGE_FORMAT_TAG, TagType.LONG, 1,
                                            num_data=[thumbnail_offset]))

    # Pass 2: bytes
    out = bytearray(b'II' if endian == '<' else b'MM')
    out += struct.pack(endian + 'HI', TIFF_VERSION, TIFF_HEADER_SIZE if prepared else 0)
    for ifd_type, tags in prepared.items():
        ifd_offset = offsets[ifd_type]
        data_offset = ifd_offset + 2 + IFD_ENTRY_SIZE * len(tags) + 4
        entries = bytearray(struct.pack(endian + 'H', len(tags)))
        data = bytearray()
        for tag in tags:
            value = encode_tag_value(tag, endian)
            entries += struct.pack(endian + 'HHI', tag.tag_id, tag.type, tag.count)
            if len(value) <= 4:
                entries += value.ljust(4, b'\x00')
            else:
                entries += struct.pack(endian + 'I', data_offset + len(data))
                data += value
                if len(value) & 1:
                    data += b'\x00'
        next_offset = 0
        if ifd_type == IfdType.PRIMARY:
            next_offset = offsets.get(IfdType.THUMBNAIL, 0)
        entries += struct.pack(endian + 'I', next_offset)
        out += entries + data
    if thumbnail:
        out += thumbnail
    return bytes(out)


def build_app1_segment(tables: Sequence[IfdTable], endian: str = '<',
                       thumbnail: Optional[bytes] = None) -> bytes:
    """Encode IFD tables as a full APP1 Exif segment (marker included)."""
    payload = EXIF_HEADER + encode_tiff(tables, endian, thumbnail)
    length = 2 + len(payload)
    if length > MAX_APP1_LENGTH:
        raise WriteFailure(f'Exif segment of {length} bytes exceeds the '
                           f'{MAX_APP1_LENGTH}-byte APP1 limit')
    return struct.pack('>HH', APP1_MARKER, length) + payload
