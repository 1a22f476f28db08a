"""Top-level Exif operations on JPEG files -- read, remove, replace, lookup.

These functions never raise for malformed input: failures come back as a
``Status`` on the result object, with a message in ``error``.
"""

import logging
import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, Sequence, Tuple

from jpegexif.byteorder import HOST_IS_LITTLE_ENDIAN
from jpegexif.errors import ExifError, WriteFailure
from jpegexif.jpeg import find_app1_offset, find_insertion_offset, replace_segment, strip_segment
from jpegexif.models import ExifReadResult, ExifWriteResult, IfdTable, IfdType, Status, Tag
from jpegexif.session import ExifSession
from jpegexif.tiff.parser import TIFFHeader, read_app1_header
from jpegexif.tiff.sub_ifd import assemble_ifd_tables
from jpegexif.tiff.tags import JPEG_INTERCHANGE_FORMAT_LENGTH_TAG, JPEG_INTERCHANGE_FORMAT_TAG
from jpegexif.tiff.writer import build_app1_segment

logger = logging.getLogger(__name__)


def open_session(f: BinaryIO,
                 cumulative_bounds: bool = True) -> Optional[Tuple[ExifSession, TIFFHeader]]:
    """Locate the Exif segment in ``f`` and read its header.

    Returns (session, header), or None if the file has no Exif segment.
    """
    offset = find_app1_offset(f)
    if offset is None:
        return None
    session = ExifSession(f, cumulative_bounds=cumulative_bounds)
    session.app1_offset = offset
    header = read_app1_header(session)
    return session, header


@contextmanager
def _atomic_output(output_path: Path) -> Iterator[BinaryIO]:
    """Write to a temp file next to ``output_path``; move it in place on success."""
    tmp_path = output_path.with_name(output_path.name + '.tmp')
    try:
        out = open(tmp_path, 'wb')
    except OSError as e:
        raise WriteFailure(f'cannot open {output_path} for writing: {e}') from e
    try:
        try:
            yield out
        except BaseException:
            out.close()
            raise
        try:
            out.close()
            os.replace(tmp_path, output_path)
        except OSError as e:
            raise WriteFailure(f'cannot finish writing {output_path}: {e}') from e
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def read_exif(filepath: Path, cumulative_bounds: bool = True) -> ExifReadResult:
    """Decode all IFDs of the Exif segment in a JPEG file.

    Args:
        filepath: JPEG file to read.
        cumulative_bounds: Also reject values once the bytes fetched so far
            plus the next value would exceed the segment's declared length.

    Returns:
        ExifReadResult. ``status`` is OK when every IFD decoded,
        NOT_FOUND when the file has no Exif segment, INVALID_IFD with
        ``tables`` populated when a dependent IFD failed, or a failure
        status with no tables.
    """
    filepath = Path(filepath)
    t0 = time.monotonic()
    result = ExifReadResult(filepath=filepath)

    try:
        with open(filepath, 'rb') as f:
            opened = open_session(f, cumulative_bounds)
            if opened is None:
                result.status = Status.NOT_FOUND
            else:
                session, header = opened
                result.header = header
                result.app1_offset = session.app1_offset
                result.segment_length = session.segment_length
                logger.debug('system: %s-endian, data: %s-endian',
                             'little' if HOST_IS_LITTLE_ENDIAN else 'big',
                             header.byte_order_name)
                tables, errors = assemble_ifd_tables(session, header)
                result.tables = tables
                result.errors = errors
                if errors:
                    result.status = Status.INVALID_IFD
                    result.error = f'{len(errors)} IFD error(s)'
    except ExifError as e:
        result.status = e.status
        result.error = str(e)
        result.errors.append(str(e))
    except OSError as e:
        result.status = Status.READ_FAILURE
        result.error = f'failed to open or read {filepath}: {e}'

    result.read_time_ms = (time.monotonic() - t0) * 1000
    return result


def remove_exif(filepath: Path, output_path: Path) -> ExifWriteResult:
    """Write a copy of ``filepath`` to ``output_path`` without its Exif segment.

    When the file has no Exif segment the result is NOT_FOUND and
    ``output_path`` is not created. ``output_path`` may equal ``filepath``.
    """
    filepath = Path(filepath)
    output_path = Path(output_path)
    t0 = time.monotonic()
    result = ExifWriteResult(source_path=filepath, output_path=output_path)

    try:
        with open(filepath, 'rb') as f:
            opened = open_session(f)
            if opened is None:
                result.status = Status.NOT_FOUND
            else:
                session, _ = opened
                with _atomic_output(output_path) as out:
                    result.bytes_written = strip_segment(
                        f, out, session.app1_offset, session.segment_length)
                result.bytes_removed = session.segment_length + 2
    except ExifError as e:
        result.status = e.status
        result.error = str(e)
    except OSError as e:
        result.status = Status.READ_FAILURE
        result.error = f'failed to open or read {filepath}: {e}'

    result.write_time_ms = (time.monotonic() - t0) * 1000
    return result


def update_exif(filepath: Path, output_path: Path, tables: Sequence[IfdTable],
                endian: Optional[str] = None,
                thumbnail: Optional[bytes] = None) -> ExifWriteResult:
    """Write a copy of ``filepath`` whose Exif segment is re-encoded from ``tables``.

    An existing Exif segment is replaced in place; otherwise the new segment
    is inserted after SOI (or after a leading APP0/JFIF segment). ``endian``
    defaults to the existing segment's byte order, or big-endian.
    """
    filepath = Path(filepath)
    output_path = Path(output_path)
    t0 = time.monotonic()
    result = ExifWriteResult(source_path=filepath, output_path=output_path)

    try:
        with open(filepath, 'rb') as f:
            opened = open_session(f)
            if opened is None:
                offset = find_insertion_offset(f)
                old_length = None
                endian = endian or '>'
            else:
                session, header = opened
                offset = session.app1_offset
                old_length = session.segment_length
                endian = endian or header.endian
                result.bytes_removed = old_length + 2
            segment = build_app1_segment(tables, endian, thumbnail)
            with _atomic_output(output_path) as out:
                result.bytes_written = replace_segment(f, out, offset, old_length, segment)
    except ExifError as e:
        result.status = e.status
        result.error = str(e)
    except OSError as e:
        result.status = Status.READ_FAILURE
        result.error = f'failed to open or read {filepath}: {e}'

    result.write_time_ms = (time.monotonic() - t0) * 1000
    return result


def get_thumbnail(filepath: Path) -> Optional[bytes]:
    """Return the JPEG thumbnail referenced by the 1st IFD, or None."""
    try:
        with open(filepath, 'rb') as f:
            opened = open_session(f)
            if opened is None:
                return None
            session, header = opened
            tables, _ = assemble_ifd_tables(session, header)
            first = get_ifd_table(tables, IfdType.THUMBNAIL)
            if first is None:
                return None
            offset_tag = first.get_tag(JPEG_INTERCHANGE_FORMAT_TAG)
            length_tag = first.get_tag(JPEG_INTERCHANGE_FORMAT_LENGTH_TAG)
            if (offset_tag is None or length_tag is None or offset_tag.error
                    or length_tag.error or not offset_tag.num_data or not length_tag.num_data):
                return None
            offset, length = offset_tag.num_data[0], length_tag.num_data[0]
            if length == 0 or offset + length > session.tiff_length:
                logger.debug('thumbnail at %d (%d bytes) exceeds the %d-byte TIFF payload',
                             offset, length, session.tiff_length)
                return None
            return session.fetch(offset, length)
    except (ExifError, OSError) as e:
        logger.debug('get_thumbnail(%s): %s', filepath, e)
        return None


# ---------------------------------------------------------------------------
# Table / tag lookup and mutation
# ---------------------------------------------------------------------------

def get_ifd_type(table: Optional[IfdTable]) -> IfdType:
    if table is None:
        return IfdType.UNKNOWN
    return table.ifd_type


def get_ifd_table(tables: Optional[Sequence[IfdTable]],
                  ifd_type: IfdType) -> Optional[IfdTable]:
    for table in tables or ():
        if table.ifd_type == ifd_type:
            return table
    return None


def get_tag_info(tables: Optional[Sequence[IfdTable]], ifd_type: IfdType,
                 tag_id: int) -> Optional[Tag]:
    """Detached copy of a tag from the first IFD of ``ifd_type``.

    The copy owns its payload; changing it never affects ``tables``.
    Tags with a zero count are not returned.
    """
    table = get_ifd_table(tables, ifd_type)
    if table is None:
        return None
    tag = table.get_tag(tag_id)
    if tag is None or tag.count <= 0:
        return None
    return tag.copy()


def get_tag_info_from_ifd(table: Optional[IfdTable], tag_id: int) -> Optional[Tag]:
    """The tag itself (not a copy) from ``table``."""
    if table is None:
        return None
    return table.get_tag(tag_id)


def insert_ifd_table(tables: List[IfdTable], table: IfdTable) -> IfdTable:
    """Add ``table`` to the list, replacing any table of the same type."""
    for i, existing in enumerate(tables):
        if existing.ifd_type == table.ifd_type:
            tables[i] = table
            return table
    tables.append(table)
    return table


def remove_ifd_table(tables: List[IfdTable], ifd_type: IfdType) -> bool:
    """Remove the table of ``ifd_type`` and every table only reachable through it.

    Removing the 0th IFD empties the list; removing the Exif IFD also drops
    the Interoperability IFD.
    """
    if get_ifd_table(tables, ifd_type) is None:
        return False
    if ifd_type == IfdType.PRIMARY:
        doomed = {t.ifd_type for t in tables}
    elif ifd_type == IfdType.EXIF:
        doomed = {IfdType.EXIF, IfdType.INTEROPERABILITY}
    else:
        doomed = {ifd_type}
    tables[:] = [t for t in tables if t.ifd_type not in doomed]
    return True

