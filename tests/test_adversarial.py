"""Adversarial edge-case tests -- truncated, corrupt and hostile Exif segments.

Every malformed input must come back as a status on the result object,
never as an exception, an unbounded read or a hang.
"""

import struct

import pytest

from jpegexif import Status, get_thumbnail, read_exif, remove_exif
from jpegexif.models import IfdType
from tests.conftest import (
    SOI, app1_segment, build_jpeg, build_tiff, ifd_bytes, sample_jpeg_bytes,
)

_STATUSES = set(Status)


def _write(tmp_path, name, data):
    f = tmp_path / name
    f.write_bytes(data)
    return f


class TestTruncation:
    def test_every_prefix(self, tmp_path):
        data = sample_jpeg_bytes()
        f = tmp_path / 'cut.jpg'
        for n in range(len(data)):
            f.write_bytes(data[:n])
            result = read_exif(f)
            assert result.status in _STATUSES, n

    def test_every_prefix_strip(self, tmp_path):
        data = sample_jpeg_bytes()
        src = tmp_path / 'cut.jpg'
        out = tmp_path / 'out.jpg'
        for n in range(0, len(data), 7):
            src.write_bytes(data[:n])
            result = remove_exif(src, out)
            assert result.status in _STATUSES, n

    def test_empty_file(self, tmp_path):
        assert read_exif(_write(tmp_path, 'e.jpg', b'')).status == Status.READ_FAILURE

    def test_soi_only(self, tmp_path):
        assert read_exif(_write(tmp_path, 's.jpg', SOI)).status == Status.READ_FAILURE


class TestCorruption:
    def test_every_byte_flipped(self, tmp_path):
        data = bytearray(sample_jpeg_bytes())
        f = tmp_path / 'flip.jpg'
        # only the APP0 and APP1 region matters to the decoder
        for i in range(2, 400):
            if i >= len(data):
                break
            mutated = bytearray(data)
            mutated[i] ^= 0xFF
            f.write_bytes(bytes(mutated))
            assert read_exif(f).status in _STATUSES, i
            get_thumbnail(f)

    def test_max_tag_count(self, tmp_path):
        tiff = b'II' + struct.pack('<HI', 42, 8) + struct.pack('<H', 0xFFFF)
        tiff += b'\x00' * 120
        result = read_exif(_write(tmp_path, 'many.jpg', build_jpeg(tiff)))
        assert result.status == Status.INVALID_IFD

    def test_all_counts_huge(self, tmp_path):
        entries = [(tag, dtype, 0xFFFFFFFF, 8)
                   for tag, dtype in ((0x010E, 2), (0x0111, 4), (0x011A, 5),
                                      (0x0102, 3), (0x9204, 10), (0x927C, 7))]
        result = read_exif(_write(tmp_path, 'huge.jpg', build_jpeg(build_tiff(entries))))
        assert result.status == Status.OK
        assert all(t.error for t in result.tables[0].tags)
        assert result.tables[0].tag_count == 6

    def test_offsets_wrap_around(self, tmp_path):
        entries = [(0x010E, 2, 10, 0xFFFFFFFF), (0x011A, 5, 1, 0xFFFFFFF8)]
        result = read_exif(_write(tmp_path, 'wrap.jpg', build_jpeg(build_tiff(entries))))
        assert result.status == Status.OK
        assert all(t.error for t in result.tables[0].tags)

    def test_segment_length_larger_than_file(self, tmp_path):
        tiff = build_tiff([(0x010E, 2, 100, 26)])
        segment = app1_segment(tiff)
        segment = segment[:2] + struct.pack('>H', 0xFFFF) + segment[4:]
        result = read_exif(_write(tmp_path, 'long.jpg', SOI + segment))
        assert result.status == Status.OK
        assert result.tables[0].tags[0].error

    def test_random_payload(self, tmp_path):
        # deterministic pseudo-random bytes after a valid header
        state = 12345
        payload = bytearray()
        for _ in range(2000):
            state = (state * 1103515245 + 12345) & 0x7FFFFFFF
            payload.append(state >> 16 & 0xFF)
        for endian, mark in (('<', b'II'), ('>', b'MM')):
            tiff = mark + struct.pack(endian + 'HI', 42, 8) + bytes(payload)
            result = read_exif(_write(tmp_path, 'rand.jpg', build_jpeg(tiff)))
            assert result.status in _STATUSES


class TestHostileGraph:
    def test_exif_pointer_to_primary(self, tmp_path):
        data = build_jpeg(build_tiff([(0x8769, 4, 1, 8)]))
        result = read_exif(_write(tmp_path, 'loop.jpg', data))
        assert [t.ifd_type for t in result.tables] == [IfdType.PRIMARY, IfdType.EXIF]

    def test_interop_pointer_to_exif(self, tmp_path):
        exif_ifd = ifd_bytes([(0xA005, 4, 1, 26)], '<', 26)
        data = build_jpeg(build_tiff([(0x8769, 4, 1, 26)], extra_data=exif_ifd))
        result = read_exif(_write(tmp_path, 'loop2.jpg', data))
        assert result.status == Status.OK
        assert [t.ifd_type for t in result.tables] == \
            [IfdType.PRIMARY, IfdType.EXIF, IfdType.INTEROPERABILITY]

    def test_1st_ifd_is_primary(self, tmp_path):
        data = build_jpeg(build_tiff([(0x0110, 2, 4, b'EOS\x00')], next_ifd=8))
        result = read_exif(_write(tmp_path, 'self.jpg', data))
        assert [t.ifd_type for t in result.tables] == [IfdType.PRIMARY, IfdType.THUMBNAIL]

    @pytest.mark.parametrize('ident', [b'Exif\x00\xff', b'Exif\x00\x00'])
    def test_identifier_padding_ignored(self, tmp_path, ident):
        data = SOI + app1_segment(build_tiff([(0x0110, 2, 4, b'EOS\x00')]), ident=ident)
        assert read_exif(_write(tmp_path, 'id.jpg', data)).status == Status.OK

    def test_lookalike_identifier(self, tmp_path):
        data = SOI + app1_segment(build_tiff([]), ident=b'Exig\x00\x00')
        assert read_exif(_write(tmp_path, 'lk.jpg', data)).status == Status.READ_FAILURE
