from __future__ import annotations

from enum import IntEnum
from types import MappingProxyType
from typing import NamedTuple


class ExifFormat(IntEnum):
    """TIFF/Exif value format codes"""

    BYTE = 1
    ASCII = 2
    SHORT = 3
    LONG = 4
    RATIONAL = 5
    UNDEFINED = 7
    SLONG = 9
    SRATIONAL = 10


# Element width in bytes for each supported format.
FORMAT_WIDTHS = MappingProxyType(
    {
        ExifFormat.BYTE: 1,
        ExifFormat.ASCII: 1,
        ExifFormat.SHORT: 2,
        ExifFormat.LONG: 4,
        ExifFormat.RATIONAL: 8,
        ExifFormat.UNDEFINED: 1,
        ExifFormat.SLONG: 4,
        ExifFormat.SRATIONAL: 8,
    }
)


class TagSpec(NamedTuple):
    name: str
    fmt: ExifFormat


EXIF_IFD_POINTER = 0x8769

# IFD0 (primary image directory)
IMAGE_TAGS = MappingProxyType(
    {
        0x010E: TagSpec("image_description", ExifFormat.ASCII),
        0x010F: TagSpec("make", ExifFormat.ASCII),
        0x0110: TagSpec("model", ExifFormat.ASCII),
        0x0132: TagSpec("date_time", ExifFormat.ASCII),
        EXIF_IFD_POINTER: TagSpec("exif_ifd_pointer", ExifFormat.LONG),
    }
)

# Exif sub-IFD; ids here only mean something inside that directory.
EXIF_TAGS = MappingProxyType(
    {
        0x829A: TagSpec("exposure_time", ExifFormat.RATIONAL),
        0x829D: TagSpec("f_number", ExifFormat.RATIONAL),
        0x8827: TagSpec("iso", ExifFormat.SHORT),
        0x9003: TagSpec("date_time_original", ExifFormat.ASCII),
        0x9209: TagSpec("flash", ExifFormat.SHORT),
        0x920A: TagSpec("focal_length", ExifFormat.RATIONAL),
        0x9286: TagSpec("user_comment", ExifFormat.UNDEFINED),
        0xA402: TagSpec("exposure_mode", ExifFormat.SHORT),
        0xA434: TagSpec("lens_model", ExifFormat.ASCII),
    }
)

# Exif Flash tag: bit 0 fired, bits 1-2 return light, bits 3-4 mode,
# bit 5 no flash function, bit 6 red-eye reduction.
FLASH_LABELS = MappingProxyType(
    {
        0x00: "No Flash",
        0x01: "Flash Fired",
        0x05: "Flash Fired, Return not detected",
        0x07: "Flash Fired, Return detected",
        0x08: "On, Flash did not fire",
        0x09: "Flash Fired, Compulsory",
        0x0D: "Flash Fired, Compulsory, Return not detected",
        0x0F: "Flash Fired, Compulsory, Return detected",
        0x10: "Off, Did not fire",
        0x14: "Off, Did not fire, Return not detected",
        0x18: "Auto, Did not fire",
        0x19: "Flash Fired, Auto",
        0x1D: "Flash Fired, Auto, Return not detected",
        0x1F: "Flash Fired, Auto, Return detected",
        0x20: "No flash function",
        0x30: "Off, No flash function",
        0x41: "Flash Fired, Red-eye reduction",
        0x45: "Flash Fired, Red-eye reduction, Return not detected",
        0x47: "Flash Fired, Red-eye reduction, Return detected",
        0x49: "Flash Fired, Compulsory, Red-eye reduction",
        0x4D: "Flash Fired, Compulsory, Red-eye reduction, Return not detected",
        0x4F: "Flash Fired, Compulsory, Red-eye reduction, Return detected",
        0x50: "Off, Red-eye reduction",
        0x58: "Auto, Did not fire, Red-eye reduction",
        0x59: "Flash Fired, Auto, Red-eye reduction",
        0x5D: "Flash Fired, Auto, Return not detected, Red-eye reduction",
        0x5F: "Flash Fired, Auto, Return detected, Red-eye reduction",
    }
)

EXPOSURE_MODE_LABELS = MappingProxyType(
    {
        0: "Auto",
        1: "Manual",
        2: "Auto bracket",
    }
)

UNKNOWN_LABEL = "Unknown"
