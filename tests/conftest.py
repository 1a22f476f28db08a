"""Shared test fixtures -- synthetic JPEG / Exif / TIFF payload generators."""

import io
import struct

import pytest

SOI = b'\xff\xd8'
EOI = b'\xff\xd9'

# APP0 JFIF segment (16-byte length)
JFIF_APP0 = (b'\xff\xe0' + struct.pack('>H', 16)
             + b'JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00')

# Quantization table, frame header, scan header, a few scan bytes, EOI
DQT_SEGMENT = b'\xff\xdb' + struct.pack('>H', 67) + b'\x00' + bytes(range(64))
JPEG_BODY = (
    DQT_SEGMENT
    + b'\xff\xc0' + struct.pack('>H', 11) + b'\x08\x00\x01\x00\x01\x01\x01\x11\x00'
    + b'\xff\xda' + struct.pack('>H', 8) + b'\x01\x01\x00\x00\x3f\x00'
    + b'\x12\x34\x56\x78'
    + EOI
)

XMP_APP1 = (b'\xff\xe1' + struct.pack('>H', 2 + 29 + 10)
            + b'http://ns.adobe.com/xap/1.0/\x00' + b'<x:xmpmeta')

THUMBNAIL = SOI + b'THUMBNAIL-SCAN-DATA' + EOI

IFD_ORDER = ('0th', 'exif', 'interop', 'gps', '1st')
_POINTERS = {
    '0th': [(0x8769, 'exif'), (0x8825, 'gps')],
    'exif': [(0xA005, 'interop')],
}


def short_value(value, endian='<'):
    """Inline SHORT value, left-justified in the 4-byte field."""
    return struct.pack(endian + 'H', value).ljust(4, b'\x00')


def rational_value(pairs, endian='<'):
    """Out-of-line bytes for a list of (numerator, denominator) pairs."""
    flat = [v for pair in pairs for v in pair]
    return struct.pack(endian + f'{len(flat)}I', *flat)


def ifd_bytes(entries, endian, ifd_offset, next_ifd=0):
    """Encode one IFD at ``ifd_offset`` followed by its out-of-line data.

    Each entry is (tag_id, type_id, count, value). An int value is written
    as a 4-byte word (an inline LONG or an explicit offset); bytes of four
    or fewer are stored inline left-justified; longer bytes go out of line.
    """
    data_offset = ifd_offset + 2 + 12 * len(entries) + 4
    entry_bytes = b''
    data_bytes = b''
    for tag_id, type_id, count, value in entries:
        entry_bytes += struct.pack(endian + 'HHI', tag_id, type_id, count)
        if isinstance(value, bytes):
            if len(value) <= 4:
                entry_bytes += value.ljust(4, b'\x00')
            else:
                entry_bytes += struct.pack(endian + 'I', data_offset + len(data_bytes))
                data_bytes += value
        else:
            entry_bytes += struct.pack(endian + 'I', value)
    return (struct.pack(endian + 'H', len(entries)) + entry_bytes
            + struct.pack(endian + 'I', next_ifd) + data_bytes)


def _ifd_size(entries):
    ool = sum(len(v) for _, _, _, v in entries if isinstance(v, bytes) and len(v) > 4)
    return 2 + 12 * len(entries) + 4 + ool


def build_tiff(entries, endian='<', ifd_offset=8, next_ifd=0, extra_data=b''):
    """Build a TIFF payload with a single IFD.

    Args:
        entries: List of (tag_id, type_id, count, value) tuples, see ifd_bytes().
        endian: '<' for little-endian, '>' for big-endian.
        ifd_offset: Where the IFD starts (>= 8); the gap is zero-filled.
        next_ifd: Value written as the next-IFD offset.
        extra_data: Bytes appended after the IFD's out-of-line data.
    """
    bo = b'II' if endian == '<' else b'MM'
    header = bo + struct.pack(endian + 'HI', 42, ifd_offset)
    gap = b'\x00' * (ifd_offset - 8)
    return header + gap + ifd_bytes(entries, endian, ifd_offset, next_ifd) + extra_data


def build_exif_tiff(ifds, endian='<', thumbnail=None):
    """Build a TIFF payload with several linked IFDs.

    Args:
        ifds: Dict mapping '0th', 'exif', 'interop', 'gps', '1st' to entry
            lists. Pointer tags and the 0th IFD's next offset are added
            automatically for the IFDs present.
        thumbnail: Bytes appended at the end and referenced from the 1st IFD.
    """
    def entries_for(name, offsets):
        entries = list(ifds[name])
        for tag, child in _POINTERS.get(name, ()):
            if child in ifds:
                entries.append((tag, 4, 1, offsets.get(child, 0)))
        if name == '1st' and thumbnail is not None:
            entries.append((0x0201, 4, 1, offsets.get('thumbnail', 0)))
            entries.append((0x0202, 4, 1, len(thumbnail)))
        return entries

    names = [n for n in IFD_ORDER if n in ifds]
    offsets = {}
    cursor = 8
    for name in names:
        offsets[name] = cursor
        cursor += _ifd_size(entries_for(name, {}))
    offsets['thumbnail'] = cursor

    bo = b'II' if endian == '<' else b'MM'
    out = bo + struct.pack(endian + 'HI', 42, 8)
    for name in names:
        next_ifd = offsets['1st'] if name == '0th' and '1st' in ifds else 0
        out += ifd_bytes(entries_for(name, offsets), endian, offsets[name], next_ifd)
    if thumbnail is not None:
        out += thumbnail
    return out


def app1_segment(tiff, ident=b'Exif\x00\x00'):
    """Wrap a TIFF payload in an APP1 segment (marker + big-endian length)."""
    body = ident + tiff
    return b'\xff\xe1' + struct.pack('>H', len(body) + 2) + body


def build_jpeg(tiff=None, app0=True, before_exif=(), after_exif=(), body=JPEG_BODY):
    """Build a JPEG: SOI, [APP0], extra segments, [APP1 Exif], more segments, body."""
    out = SOI
    if app0:
        out += JFIF_APP0
    out += b''.join(before_exif)
    if tiff is not None:
        out += app1_segment(tiff)
    out += b''.join(after_exif)
    return out + body


def sample_ifds(endian='<'):
    """Entries for a file using all five IFD kinds."""
    return {
        '0th': [
            (0x010F, 2, 6, b'Canon\x00'),              # Make (out of line)
            (0x0110, 2, 4, b'EOS\x00'),                # Model (inline)
            (0x0112, 3, 1, short_value(1, endian)),     # Orientation
            (0x011A, 5, 1, rational_value([(72, 1)], endian)),  # XResolution
        ],
        'exif': [
            (0x9000, 7, 4, b'0230'),                   # ExifVersion
            (0x9003, 2, 20, b'2024:06:15 10:30:00\x00'),  # DateTimeOriginal
            (0x9204, 10, 1, struct.pack(endian + 'ii', -1, 3)),  # ExposureBiasValue
        ],
        'interop': [
            (0x0001, 2, 4, b'R98\x00'),                # InteroperabilityIndex
        ],
        'gps': [
            (0x0000, 1, 4, b'\x02\x03\x00\x00'),       # GPSVersionID
            (0x0001, 2, 2, b'N\x00'),                  # GPSLatitudeRef
            (0x0002, 5, 3, rational_value([(35, 1), (40, 1), (1234, 100)], endian)),
        ],
        '1st': [
            (0x0103, 3, 1, short_value(6, endian)),     # Compression
        ],
    }


def sample_jpeg_bytes(endian='<'):
    return build_jpeg(build_exif_tiff(sample_ifds(endian), endian, thumbnail=THUMBNAIL))


def open_exif_session(data, cumulative_bounds=True):
    """(session, header) for in-memory JPEG bytes; None if no Exif segment."""
    from jpegexif.exif import open_session
    return open_session(io.BytesIO(data), cumulative_bounds)


# ---------------------------------------------------------------------------
# File fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_jpeg(tmp_path):
    """Little-endian JPEG with 0th, Exif, Interop, GPS and 1st IFDs plus thumbnail."""
    filepath = tmp_path / 'sample.jpg'
    filepath.write_bytes(sample_jpeg_bytes('<'))
    return filepath


@pytest.fixture
def sample_jpeg_be(tmp_path):
    """Big-endian ('MM') variant of sample_jpeg."""
    filepath = tmp_path / 'sample_be.jpg'
    filepath.write_bytes(sample_jpeg_bytes('>'))
    return filepath


@pytest.fixture
def plain_jpeg(tmp_path):
    """JPEG with a JFIF APP0 segment and no Exif."""
    filepath = tmp_path / 'plain.jpg'
    filepath.write_bytes(build_jpeg(None))
    return filepath


@pytest.fixture
def bare_jpeg(tmp_path):
    """JPEG whose first segment after SOI is DQT."""
    filepath = tmp_path / 'bare.jpg'
    filepath.write_bytes(build_jpeg(None, app0=False))
    return filepath
