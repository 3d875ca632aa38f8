"""EXIF orientation reader working directly on JPEG bytes.

The reader walks the JPEG segment structure by hand so that orientation can
be known before (and without) decoding pixels. It is total: every byte
sequence, including truncated and corrupt ones, yields a result.
"""

import re
import struct
from dataclasses import dataclass

from .models import SourceImage

SOI_MARKER = 0xFFD8
APP1_MARKER = 0xFFE1
SOS_MARKER = 0xFFDA
EOI_MARKER = 0xFFD9
EXIF_HEADER = b"Exif\x00\x00"
TIFF_MAGIC = 0x002A
ORIENTATION_TAG = 0x0112
TYPE_SHORT = 3
IFD_ENTRY_SIZE = 12

_JPEG_NAME = re.compile(r"jpe?g$", re.IGNORECASE)


@dataclass(frozen=True)
class OrientationResult:
    """Outcome of parsing: a tag read from metadata, or the upright default."""

    orientation: int = 1
    from_metadata: bool = False

    @classmethod
    def default(cls) -> "OrientationResult":
        return cls()

    @classmethod
    def found(cls, orientation: int) -> "OrientationResult":
        return cls(orientation=orientation, from_metadata=True)


def is_jpeg(file: SourceImage) -> bool:
    """True when the filename or declared mime type names a JPEG."""
    return bool(_JPEG_NAME.search(file.filename)) or file.mime_type == "image/jpeg"


def read_orientation(file: SourceImage) -> int:
    """Return the EXIF orientation (1-8) of ``file``, 1 when unknown."""
    if not is_jpeg(file):
        return 1
    return parse_exif_orientation(file.data).orientation


def parse_exif_orientation(data: bytes) -> OrientationResult:
    """Find the orientation tag in a JPEG byte string."""
    try:
        return _walk_segments(data)
    except struct.error:
        # Read past the end of a truncated buffer
        return OrientationResult.default()


def _walk_segments(data: bytes) -> OrientationResult:
    length = len(data)
    if length < 4 or struct.unpack_from(">H", data, 0)[0] != SOI_MARKER:
        return OrientationResult.default()

    offset = 2
    while offset + 4 <= length:
        marker = struct.unpack_from(">H", data, offset)[0]
        offset += 2
        if marker & 0xFF00 != 0xFF00 or marker in (SOS_MARKER, EOI_MARKER):
            break
        segment_length = struct.unpack_from(">H", data, offset)[0]
        if segment_length < 2:
            break
        if marker == APP1_MARKER:
            payload = offset + 2
            if data[payload : payload + 6] == EXIF_HEADER:
                return _read_tiff(data, payload + 6, offset + segment_length)
        offset += segment_length
    return OrientationResult.default()


def _read_tiff(data: bytes, tiff_start: int, segment_end: int) -> OrientationResult:
    byte_order = data[tiff_start : tiff_start + 2]
    if byte_order == b"MM":
        endian = ">"
    elif byte_order == b"II":
        endian = "<"
    else:
        return OrientationResult.default()

    def u16(pos: int) -> int:
        return struct.unpack_from(endian + "H", data, pos)[0]

    def u32(pos: int) -> int:
        return struct.unpack_from(endian + "I", data, pos)[0]

    if u16(tiff_start + 2) != TIFF_MAGIC:
        return OrientationResult.default()

    directory = tiff_start + u32(tiff_start + 4)
    end = min(segment_end, len(data))
    if directory + 2 > end:
        return OrientationResult.default()

    entries = u16(directory)
    for index in range(entries):
        entry = directory + 2 + index * IFD_ENTRY_SIZE
        if entry + IFD_ENTRY_SIZE > end:
            break
        if u16(entry) != ORIENTATION_TAG:
            continue
        if u16(entry + 2) != TYPE_SHORT or u32(entry + 4) != 1:
            return OrientationResult.default()
        value = u16(entry + 8)
        if 1 <= value <= 8:
            return OrientationResult.found(value)
        return OrientationResult.default()
    return OrientationResult.default()
