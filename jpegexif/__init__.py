"""jpegexif -- Exif metadata decoder and stripper for JPEG files."""

__version__ = "1.0.0"

from jpegexif.models import (
    ExifReadResult,
    ExifWriteResult,
    IfdTable,
    IfdType,
    Status,
    Tag,
    TagType,
)
from jpegexif.errors import (
    DirectoryError,
    ExifError,
    InvalidContainer,
    InvalidHeader,
    ReadFailure,
    WriteFailure,
)
from jpegexif.exif import (
    get_ifd_table,
    get_ifd_type,
    get_tag_info,
    get_tag_info_from_ifd,
    get_thumbnail,
    insert_ifd_table,
    read_exif,
    remove_exif,
    remove_ifd_table,
    update_exif,
)
from jpegexif.report import dump_ifd_table, dump_ifd_table_array

__all__ = [
    "__version__",
    "ExifReadResult",
    "ExifWriteResult",
    "IfdTable",
    "IfdType",
    "Status",
    "Tag",
    "TagType",
    "ExifError",
    "ReadFailure",
    "WriteFailure",
    "InvalidContainer",
    "InvalidHeader",
    "DirectoryError",
    "read_exif",
    "remove_exif",
    "update_exif",
    "get_thumbnail",
    "get_ifd_type",
    "get_ifd_table",
    "get_tag_info",
    "get_tag_info_from_ifd",
    "insert_ifd_table",
    "remove_ifd_table",
    "dump_ifd_table",
    "dump_ifd_table_array",
]
