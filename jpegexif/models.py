"""Data models for decoded Exif directories and operation results."""

from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import List, Optional


class Status(IntEnum):
    """Result codes surfaced by the top-level API and the CLI."""
    OK = 1
    NOT_FOUND = 0
    READ_FAILURE = -1
    WRITE_FAILURE = -2
    INVALID_JPEG = -3
    INVALID_APP1HEADER = -4
    INVALID_IFD = -5


class TagType(IntEnum):
    """TIFF field types understood by the tag decoder."""
    BYTE = 1
    ASCII = 2
    SHORT = 3
    LONG = 4
    RATIONAL = 5
    SBYTE = 6
    UNDEFINED = 7
    SSHORT = 8
    SLONG = 9
    SRATIONAL = 10


# On-disk element width in bytes, per type
TYPE_WIDTHS = {
    TagType.BYTE: 1, TagType.ASCII: 1, TagType.SHORT: 2, TagType.LONG: 4,
    TagType.RATIONAL: 8, TagType.SBYTE: 1, TagType.UNDEFINED: 1,
    TagType.SSHORT: 2, TagType.SLONG: 4, TagType.SRATIONAL: 8,
}

BYTE_TYPES = (TagType.ASCII, TagType.UNDEFINED)
RATIONAL_TYPES = (TagType.RATIONAL, TagType.SRATIONAL)
INTEGER_TYPES = (TagType.BYTE, TagType.SHORT, TagType.LONG,
                 TagType.SBYTE, TagType.SSHORT, TagType.SLONG)


class IfdType(IntEnum):
    """The five directory kinds an Exif segment can hold."""
    UNKNOWN = 0
    PRIMARY = 1
    EXIF = 2
    GPS = 3
    INTEROPERABILITY = 4
    THUMBNAIL = 5

    @property
    def label(self) -> str:
        return _IFD_LABELS[self]


_IFD_LABELS = {
    IfdType.UNKNOWN: '',
    IfdType.PRIMARY: '0TH',
    IfdType.EXIF: 'EXIF',
    IfdType.GPS: 'GPS',
    IfdType.INTEROPERABILITY: 'Interoperability',
    IfdType.THUMBNAIL: '1ST',
}


def _to_signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    if value & (1 << (bits - 1)):
        return value - (1 << bits)
    return value


@dataclass
class Tag:
    """One decoded tag record.

    Integer and rational types carry ``num_data`` (unsigned 32-bit slots,
    two per rational value); ASCII and UNDEFINED carry ``byte_data``.
    A tag with ``error`` set has no usable payload.
    """
    tag_id: int
    type: int
    count: int
    num_data: Optional[List[int]] = None
    byte_data: Optional[bytes] = None
    error: bool = False

    @classmethod
    def create(cls, tag_id: int, dtype: int, count: int,
               num_data: Optional[List[int]] = None,
               byte_data: Optional[bytes] = None) -> 'Tag':
        """Build a tag owning copies of the given payload.

        A zero count or a missing payload yields an errored tag.
        """
        tag = cls(tag_id, dtype, count)
        if count <= 0:
            tag.error = True
        elif num_data is not None:
            num = count * 2 if dtype in RATIONAL_TYPES else count
            if len(num_data) < num:
                tag.error = True
            else:
                tag.num_data = [v & 0xFFFFFFFF for v in num_data[:num]]
        elif byte_data is not None:
            if len(byte_data) < count:
                tag.error = True
            else:
                tag.byte_data = bytes(byte_data[:count])
        else:
            tag.error = True
        return tag

    @property
    def type_name(self) -> str:
        try:
            return TagType(self.type).name
        except ValueError:
            return f'TYPE_{self.type}'

    @property
    def values(self):
        """Decoded values interpreted per type, or None if errored.

        Integers come back as a list of ints, rationals as a list of
        (numerator, denominator) tuples, ASCII as a str and UNDEFINED as bytes.
        """
        if self.error:
            return None
        if self.byte_data is not None:
            if self.type == TagType.ASCII:
                return self.byte_data.split(b'\x00', 1)[0].decode('ascii', errors='replace')
            return self.byte_data
        if self.num_data is None:
            return None
        data = self.num_data
        if self.type == TagType.RATIONAL:
            return [(data[i], data[i + 1]) for i in range(0, len(data), 2)]
        if self.type == TagType.SRATIONAL:
            return [(_to_signed(data[i], 32), _to_signed(data[i + 1], 32))
                    for i in range(0, len(data), 2)]
        if self.type == TagType.SBYTE:
            return [_to_signed(v, 8) for v in data]
        if self.type == TagType.SSHORT:
            return [_to_signed(v, 16) for v in data]
        if self.type == TagType.SLONG:
            return [_to_signed(v, 32) for v in data]
        return list(data)

    def copy(self) -> 'Tag':
        """Detached deep copy; mutating it never affects the source table."""
        return Tag(
            tag_id=self.tag_id, type=self.type, count=self.count,
            num_data=list(self.num_data) if self.num_data is not None else None,
            byte_data=bytes(self.byte_data) if self.byte_data is not None else None,
            error=self.error,
        )


@dataclass
class IfdTable:
    """One Image File Directory: tags in on-disk order.

    ``next_ifd_offset`` is only meaningful for the primary (0th) table.
    """
    ifd_type: IfdType
    tag_count: int = 0
    tags: List[Tag] = field(default_factory=list)
    next_ifd_offset: int = 0

    def get_tag(self, tag_id: int) -> Optional[Tag]:
        for tag in self.tags:
            if tag.tag_id == tag_id:
                return tag
        return None

    def add_tag(self, tag: Tag) -> Tag:
        self.tags.append(tag)
        self.tag_count = len(self.tags)
        return tag

    def set_tag(self, tag: Tag) -> Tag:
        """Replace the tag with the same id in place, or append it."""
        for i, existing in enumerate(self.tags):
            if existing.tag_id == tag.tag_id:
                self.tags[i] = tag
                return tag
        return self.add_tag(tag)

    def remove_tag(self, tag_id: int) -> bool:
        for i, existing in enumerate(self.tags):
            if existing.tag_id == tag_id:
                del self.tags[i]
                self.tag_count = len(self.tags)
                return True
        return False

    def copy(self) -> 'IfdTable':
        return IfdTable(self.ifd_type, self.tag_count,
                        [t.copy() for t in self.tags], self.next_ifd_offset)


@dataclass
class ExifReadResult:
    """Result of decoding the Exif segment of one JPEG file."""
    filepath: Path
    status: Status = Status.OK
    tables: List[IfdTable] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    header: Optional[object] = None  # parser.TIFFHeader
    app1_offset: int = -1
    segment_length: int = 0
    read_time_ms: float = 0.0
    error: Optional[str] = None

    @property
    def ifd_count(self) -> int:
        return len(self.tables)

    @property
    def partial(self) -> bool:
        """True if some dependent directory failed but tables were decoded."""
        return self.status == Status.INVALID_IFD and bool(self.tables)

    @property
    def result_code(self) -> int:
        """Number of tables on success, otherwise the (non-positive) status."""
        if self.status == Status.OK:
            return self.ifd_count
        return int(self.status)


@dataclass
class ExifWriteResult:
    """Result of rewriting a JPEG file (Exif removal or replacement)."""
    source_path: Path
    output_path: Path
    status: Status = Status.OK
    bytes_removed: int = 0
    bytes_written: int = 0
    write_time_ms: float = 0.0
    error: Optional[str] = None
