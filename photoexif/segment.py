from __future__ import annotations

import struct

from .errors import NoMetadataFound, NotAJpeg, TruncatedMarkerChain

SOI = 0xFFD8
APP1 = 0xFFE1
SOS = 0xFFDA
EOI = 0xFFD9


def find_exif_segment(data: bytes | bytearray | memoryview) -> int:
    """
    Walk the JPEG marker chain and return the offset right after the APP1
    marker's length field, i.e. where the "Exif\\0\\0" identifier starts.

    Each segment is a 2-byte marker followed by a big-endian length that counts
    itself but not the marker. Scanning stops at start-of-scan or end-of-image,
    after which no metadata segment can follow.
    """
    size = len(data)
    if size < 2 or struct.unpack_from(">H", data, 0)[0] != SOI:
        raise NotAJpeg("Buffer does not start with the JPEG SOI marker (FF D8)")

    offset = 2
    while offset < size:
        if offset + 2 > size:
            raise TruncatedMarkerChain(f"Marker at offset {offset} is cut off")
        (marker,) = struct.unpack_from(">H", data, offset)
        if marker in (SOS, EOI):
            break
        if offset + 4 > size:
            raise TruncatedMarkerChain(f"Length of marker 0x{marker:04X} at offset {offset} is cut off")
        (length,) = struct.unpack_from(">H", data, offset + 2)
        if marker == APP1:
            return offset + 4
        if length < 2:
            raise TruncatedMarkerChain(f"Marker 0x{marker:04X} at offset {offset} has invalid length {length}")
        nxt = offset + 2 + length
        if nxt > size:
            raise TruncatedMarkerChain(
                f"Marker 0x{marker:04X} at offset {offset} declares {length} bytes, past end of buffer ({size})"
            )
        offset = nxt

    raise NoMetadataFound("No APP1 (Exif) segment in JPEG marker chain")
