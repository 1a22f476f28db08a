"""Exception taxonomy for Exif decoding and JPEG rewriting.

Each exception carries the ``Status`` code that top-level API functions
report to callers. ``NOT_FOUND`` is not an error and has no exception.
"""

from jpegexif.models import Status


class ExifError(Exception):
    """Base class for all jpegexif failures."""
    status = Status.READ_FAILURE


class ReadFailure(ExifError):
    """Short read or failed seek on the source."""
    status = Status.READ_FAILURE


class WriteFailure(ExifError):
    """Short write on the destination, or an unencodable segment."""
    status = Status.WRITE_FAILURE


class InvalidContainer(ExifError):
    """The JPEG marker stream is malformed."""
    status = Status.INVALID_JPEG


class InvalidHeader(ExifError):
    """The APP1 segment header or TIFF header failed validation."""
    status = Status.INVALID_APP1HEADER


class DirectoryError(ExifError):
    """An IFD could not be decoded."""
    status = Status.INVALID_IFD

    def __init__(self, message: str, ifd_type=None):
        super().__init__(message)
        self.ifd_type = ifd_type
