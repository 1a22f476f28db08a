"""Exif / GPS / Interoperability sub-IFD traversal and 1st IFD chaining."""

import logging
from typing import List, Optional, Tuple

from jpegexif.errors import DirectoryError
from jpegexif.models import IfdTable, IfdType, Tag
from jpegexif.session import ExifSession
from jpegexif.tiff.parser import TIFFHeader, read_ifd
from jpegexif.tiff.tags import (
    EXIF_IFD_POINTER_TAG,
    GPS_IFD_POINTER_TAG,
    INTEROPERABILITY_IFD_POINTER_TAG,
)

logger = logging.getLogger(__name__)

_CRITICAL_ERROR = 'critical error in %s IFD'


def _pointer_value(tag: Tag) -> Optional[int]:
    if tag.num_data:
        return tag.num_data[0]
    return None


def read_sub_ifd(session: ExifSession, parent: IfdTable, pointer_tag: int,
                 ifd_type: IfdType) -> Optional[IfdTable]:
    """Follow a pointer tag in ``parent`` and decode the IFD it points to.

    Returns None if the pointer tag is absent, errored, or zero. Raises
    DirectoryError if the pointed-to IFD cannot be decoded.
    """
    tag = parent.get_tag(pointer_tag)
    if tag is None or tag.error:
        return None
    offset = _pointer_value(tag)
    if offset is None:
        raise DirectoryError(f'{ifd_type.label} IFD pointer has non-numeric type {tag.type}',
                             ifd_type)
    if offset == 0:
        logger.debug('%s IFD pointer is zero, ignoring', ifd_type.label)
        return None
    return read_ifd(session, offset, ifd_type)


def read_exif_sub_ifd(session: ExifSession, primary: IfdTable) -> Optional[IfdTable]:
    """Find tag 0x8769 (ExifIFDPointer) and read the Exif IFD."""
    return read_sub_ifd(session, primary, EXIF_IFD_POINTER_TAG, IfdType.EXIF)


def read_gps_sub_ifd(session: ExifSession, primary: IfdTable) -> Optional[IfdTable]:
    """Find tag 0x8825 (GPSInfoIFDPointer) and read the GPS IFD."""
    return read_sub_ifd(session, primary, GPS_IFD_POINTER_TAG, IfdType.GPS)


def read_interop_sub_ifd(session: ExifSession, exif: IfdTable) -> Optional[IfdTable]:
    """Find tag 0xA005 (InteroperabilityIFDPointer) in the Exif IFD and read it."""
    return read_sub_ifd(session, exif, INTEROPERABILITY_IFD_POINTER_TAG,
                        IfdType.INTEROPERABILITY)


def assemble_ifd_tables(session: ExifSession,
                        header: TIFFHeader) -> Tuple[List[IfdTable], List[str]]:
    """Decode every IFD reachable from the primary IFD.

    Order of the returned tables: 0th, Exif, Interoperability, GPS, 1st.
    The second element lists a message per dependent IFD that failed; those
    failures do not stop the other branches. A primary IFD failure raises
    DirectoryError since nothing else is reachable without it.
    """
    try:
        primary = read_ifd(session, header.first_ifd_offset, IfdType.PRIMARY)
    except DirectoryError as e:
        logger.warning(_CRITICAL_ERROR, IfdType.PRIMARY.label)
        raise DirectoryError(_CRITICAL_ERROR % IfdType.PRIMARY.label,
                             IfdType.PRIMARY) from e

    tables = [primary]
    errors: List[str] = []

    def _branch(reader, parent, ifd_type):
        try:
            table = reader(session, parent)
        except DirectoryError as e:
            logger.warning(_CRITICAL_ERROR, ifd_type.label)
            logger.debug('%s', e)
            errors.append(_CRITICAL_ERROR % ifd_type.label)
            return None
        if table is not None:
            tables.append(table)
        return table

    exif = _branch(read_exif_sub_ifd, primary, IfdType.EXIF)
    if exif is not None:
        _branch(read_interop_sub_ifd, exif, IfdType.INTEROPERABILITY)

    _branch(read_gps_sub_ifd, primary, IfdType.GPS)

    if primary.next_ifd_offset != 0:
        try:
            tables.append(read_ifd(session, primary.next_ifd_offset, IfdType.THUMBNAIL))
        except DirectoryError as e:
            logger.warning(_CRITICAL_ERROR, IfdType.THUMBNAIL.label)
            logger.debug('%s', e)
            errors.append(_CRITICAL_ERROR % IfdType.THUMBNAIL.label)

    return tables, errors
