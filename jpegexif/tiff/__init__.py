"""Exif TIFF payload parser and writer package.

Re-exports the public names so ``from jpegexif.tiff import X`` works for
everything in the submodules.
"""

# --- parser.py: header, tag and IFD decoding ---
from jpegexif.tiff.parser import (  # noqa: F401
    APP1_HEADER_SIZE,
    IFD_ENTRY_SIZE,
    TIFF_HEADER_SIZE,
    TIFF_VERSION,
    TIFFHeader,
    decode_tag,
    read_app1_header,
    read_ifd,
    read_tag_string,
)

# --- sub_ifd.py: Exif / GPS / Interoperability / 1st IFD traversal ---
from jpegexif.tiff.sub_ifd import (  # noqa: F401
    assemble_ifd_tables,
    read_exif_sub_ifd,
    read_gps_sub_ifd,
    read_interop_sub_ifd,
    read_sub_ifd,
)

# --- tags.py: tag name tables and well-known tag IDs ---
from jpegexif.tiff.tags import (  # noqa: F401
    EXIF_IFD_POINTER_TAG,
    GPS_IFD_POINTER_TAG,
    GPS_TAG_NAMES,
    INTEROPERABILITY_IFD_POINTER_TAG,
    INTEROPERABILITY_TAG_NAMES,
    JPEG_INTERCHANGE_FORMAT_LENGTH_TAG,
    JPEG_INTERCHANGE_FORMAT_TAG,
    TAG_NAMES,
    get_tag_name,
)

# --- writer.py: re-encoding ---
from jpegexif.tiff.writer import (  # noqa: F401
    MAX_APP1_LENGTH,
    build_app1_segment,
    encode_tag_value,
    encode_tiff,
)
