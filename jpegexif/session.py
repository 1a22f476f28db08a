"""Per-file decode session.

All state needed while decoding one Exif segment (source handle, segment
bounds, byte order, bytes fetched so far) lives here and is threaded through
the parser explicitly, so two files can be decoded concurrently.
"""

from typing import BinaryIO, Optional

from jpegexif.byteorder import to_host_long, to_host_short
from jpegexif.errors import ReadFailure

# marker(2) + length(2) + "Exif\0\0"(6)
APP1_TIFF_START = 10


class ExifSession:
    """Decode context for one source file."""
    __slots__ = ('f', 'app1_offset', 'segment_length', 'endian',
                 'cumulative_bounds', 'bytes_consumed')

    def __init__(self, f: BinaryIO, cumulative_bounds: bool = True):
        self.f = f
        self.app1_offset = -1
        self.segment_length = 0
        self.endian: Optional[str] = None
        self.cumulative_bounds = cumulative_bounds
        self.bytes_consumed = 0

    @property
    def tiff_start(self) -> int:
        """Absolute file offset of the TIFF header."""
        return self.app1_offset + APP1_TIFF_START

    @property
    def tiff_length(self) -> int:
        """Size of the TIFF payload: the declared length minus the length field and identifier."""
        return self.segment_length - APP1_TIFF_START + 2

    @property
    def data_is_little_endian(self) -> bool:
        return self.endian == '<'

    def fix_short(self, value: int) -> int:
        return to_host_short(value, self.data_is_little_endian)

    def fix_long(self, value: int) -> int:
        return to_host_long(value, self.data_is_little_endian)

    def seek_relative(self, offset: int) -> int:
        """Seek to an offset relative to the TIFF header start."""
        try:
            return self.f.seek(self.tiff_start + offset)
        except (OSError, ValueError, OverflowError) as e:
            raise ReadFailure(f'cannot seek to relative offset {offset}: {e}') from e

    def read_exact(self, size: int) -> bytes:
        try:
            data = self.f.read(size)
        except OSError as e:
            raise ReadFailure(f'read of {size} bytes failed: {e}') from e
        if len(data) < size:
            raise ReadFailure(f'short read: wanted {size} bytes, got {len(data)}')
        return data

    def within_bounds(self, size: int) -> bool:
        """Check a value length against the segment's declared length.

        Rejects any length that meets or exceeds the segment length. With
        ``cumulative_bounds`` the lengths already fetched count as well, so
        many large values cannot jointly overrun the segment.
        """
        if size >= self.segment_length:
            return False
        if self.cumulative_bounds and self.bytes_consumed + size > self.segment_length:
            return False
        return True

    def fetch(self, offset: int, size: int) -> bytes:
        """Read ``size`` bytes at a TIFF-relative offset and account for them."""
        self.seek_relative(offset)
        data = self.read_exact(size)
        self.bytes_consumed += size
        return data
