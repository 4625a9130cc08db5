from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import NamedTuple

from .byteview import BIG_ENDIAN, LITTLE_ENDIAN, ByteView
from .errors import InvalidByteOrder, InvalidMagicNumber, InvalidMetadataHeader
from .tags import FORMAT_WIDTHS, ExifFormat, TagSpec

EXIF_IDENTIFIER = b"Exif\x00\x00"
TIFF_MAGIC = 42
ENTRY_SIZE = 12

_log = logging.getLogger("photoexif.ifd")

# struct codes for the integer formats
_INT_CODES = {
    ExifFormat.BYTE: "B",
    ExifFormat.SHORT: "H",
    ExifFormat.LONG: "I",
    ExifFormat.SLONG: "i",
}


class Rational(NamedTuple):
    numerator: int
    denominator: int


class TiffHeader(NamedTuple):
    view: ByteView
    tiff_start: int
    first_ifd_offset: int


def value_is_inline(fmt: int, count: int) -> bool:
    """
    True when a value of `count` elements of `fmt` fits in the entry's 4-byte slot.

    Raises KeyError for formats without a known element width.
    """
    return count * FORMAT_WIDTHS[fmt] <= 4


def parse_tiff_header(data: bytes | bytearray | memoryview, exif_offset: int) -> TiffHeader:
    """
    Validate the "Exif\\0\\0" identifier and the TIFF header that follows it.

    Returns a ByteView in the header's byte order, the absolute offset of the
    TIFF header (all stored offsets are relative to it) and the offset of the
    first directory.
    """
    view = ByteView(data)
    if view.raw(exif_offset, len(EXIF_IDENTIFIER)) != EXIF_IDENTIFIER:
        raise InvalidMetadataHeader(f"Missing Exif identifier at offset {exif_offset}")

    tiff_start = exif_offset + len(EXIF_IDENTIFIER)
    mark = view.raw(tiff_start, 2)
    if mark == b"II":
        view = view.with_order(LITTLE_ENDIAN)
    elif mark == b"MM":
        view = view.with_order(BIG_ENDIAN)
    else:
        raise InvalidByteOrder(f"Unknown TIFF byte order mark {mark!r}")

    magic = view.u16(tiff_start + 2)
    if magic != TIFF_MAGIC:
        raise InvalidMagicNumber(f"TIFF magic is {magic}, expected {TIFF_MAGIC}")

    return TiffHeader(view=view, tiff_start=tiff_start, first_ifd_offset=view.u32(tiff_start + 4))


def read_value(view: ByteView, fmt: int, count: int, value_offset: int):
    """
    Decode `count` elements of `fmt` starting at absolute `value_offset`.

    The whole value range is bounds-checked before anything is unpacked.
    """
    width = FORMAT_WIDTHS[fmt]
    view.require(value_offset, count * width)

    if fmt == ExifFormat.ASCII:
        raw = view.raw(value_offset, count)
        return raw.split(b"\x00", 1)[0].decode("latin-1")
    if fmt == ExifFormat.UNDEFINED:
        return view.raw(value_offset, count)
    if fmt in (ExifFormat.RATIONAL, ExifFormat.SRATIONAL):
        code = "I" if fmt == ExifFormat.RATIONAL else "i"
        flat = view.unpack(value_offset, code, count * 2)
        values = tuple(Rational(flat[i], flat[i + 1]) for i in range(0, len(flat), 2))
    else:
        values = view.unpack(value_offset, _INT_CODES[fmt], count)

    if count == 1:
        return values[0]
    return tuple(values)


def walk_directory(
    view: ByteView,
    offset: int,
    *,
    tiff_start: int,
    tags: Mapping[int, TagSpec],
) -> dict:
    """
    Decode the directory at absolute `offset` into {field name: value}.

    Only tags present in `tags` are decoded. A known tag with an unsupported
    format code is left out of the result; any out-of-bounds read raises
    TruncatedData.
    """
    fields: dict = {}
    count = view.u16(offset)
    entry = offset + 2
    for _ in range(count):
        view.require(entry, ENTRY_SIZE)
        tag = view.u16(entry)
        fmt = view.u16(entry + 2)
        components = view.u32(entry + 4)

        tag_spec = tags.get(tag)
        if tag_spec is not None:
            if fmt not in FORMAT_WIDTHS:
                _log.debug(f"Skipping {tag_spec.name} (tag 0x{tag:04X}): unsupported format {fmt}")
            else:
                if value_is_inline(fmt, components):
                    value_offset = entry + 8
                else:
                    value_offset = tiff_start + view.u32(entry + 8)
                fields[tag_spec.name] = read_value(view, fmt, components, value_offset)

        entry += ENTRY_SIZE
    return fields
