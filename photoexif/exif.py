from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType

from .byteview import LITTLE_ENDIAN
from .ifd import Rational, TiffHeader, parse_tiff_header, walk_directory
from .segment import find_exif_segment
from .tags import (
    EXIF_TAGS,
    EXPOSURE_MODE_LABELS,
    FLASH_LABELS,
    IMAGE_TAGS,
    UNKNOWN_LABEL,
)


@dataclass(frozen=True)
class ShotExif:
    make: str | None = None
    model: str | None = None
    image_description: str | None = None
    lens_model: str | None = None
    date_time: str | None = None
    shutter_speed: str | None = None
    aperture: str | None = None
    iso: int | None = None
    focal_length: int | None = None
    flash: str | None = None
    exposure_mode: str | None = None
    user_comment: str | None = None
    # decoded field map, kept for debugging output
    raw: Mapping[str, object] = field(default_factory=dict, repr=False, compare=False)

    @property
    def camera(self) -> str | None:
        camera = " ".join(p for p in (self.make, self.model) if p)
        return camera or None

    @property
    def captured_at(self) -> datetime | None:
        return _parse_exif_datetime(self.date_time or "")

    def as_dict(self) -> dict[str, object]:
        return {
            "make": self.make,
            "model": self.model,
            "image_description": self.image_description,
            "lens_model": self.lens_model,
            "date_time": self.date_time,
            "shutter_speed": self.shutter_speed,
            "aperture": self.aperture,
            "iso": self.iso,
            "focal_length": self.focal_length,
            "flash": self.flash,
            "exposure_mode": self.exposure_mode,
            "user_comment": self.user_comment,
        }


def _parse_exif_datetime(s: str) -> datetime | None:
    """
    Common EXIF datetime format: 'YYYY:MM:DD HH:MM:SS'
    """
    s = (s or "").strip()
    if not s:
        return None
    for fmt in ("%Y:%m:%d %H:%M:%S", "%Y:%m:%d %H:%M:%S%z"):
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    return None


def _first(value):
    # Rational is itself a tuple
    if isinstance(value, tuple) and not isinstance(value, Rational):
        return value[0] if value else None
    return value


def _text(value) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def format_rational(value) -> str | None:
    """
    Render an exposure-style rational: 1/N stays a fraction, anything else
    becomes a two-decimal quotient. A zero denominator renders as None.
    """
    value = _first(value)
    if not isinstance(value, Rational) or value.denominator == 0:
        return None
    if value.numerator == 1:
        return f"1/{value.denominator}"
    return f"{value.numerator / value.denominator:.2f}"


def focal_length_mm(value) -> int | None:
    value = _first(value)
    if not isinstance(value, Rational) or value.denominator == 0:
        return None
    return math.floor(value.numerator / value.denominator + 0.5)


def flash_label(value) -> str | None:
    value = _first(value)
    if not isinstance(value, int):
        return None
    return FLASH_LABELS.get(value, UNKNOWN_LABEL)


def exposure_mode_label(value) -> str | None:
    value = _first(value)
    if not isinstance(value, int):
        return None
    return EXPOSURE_MODE_LABELS.get(value, UNKNOWN_LABEL)


def decode_user_comment(value, *, order: str = LITTLE_ENDIAN) -> str | None:
    """
    UserComment starts with an 8-byte character code: ASCII, UNICODE (UCS-2 in
    the TIFF byte order), JIS, or all zeros for "undefined".
    """
    if isinstance(value, str):
        return _text(value)
    if not isinstance(value, bytes):
        return None

    prefix, body = value[:8], value[8:]
    if prefix == b"UNICODE\x00":
        encoding = "utf-16-le" if order == LITTLE_ENDIAN else "utf-16-be"
        text = body[: len(body) - len(body) % 2].decode(encoding, errors="replace")
    elif prefix == b"JIS\x00\x00\x00\x00\x00":
        text = body.decode("shift_jis", errors="replace")
    elif prefix == b"ASCII\x00\x00\x00":
        text = body.decode("latin-1")
    elif prefix == b"\x00" * 8:
        text = body.decode("utf-8", errors="replace")
    else:
        # no recognizable character code: treat the whole value as text
        text = value.decode("latin-1")
    return _text(text.strip("\x00"))


def _read_fields(data: bytes | bytearray | memoryview) -> tuple[dict, TiffHeader]:
    header = parse_tiff_header(data, find_exif_segment(data))
    view, tiff_start = header.view, header.tiff_start

    fields = walk_directory(view, tiff_start + header.first_ifd_offset, tiff_start=tiff_start, tags=IMAGE_TAGS)
    pointer = fields.pop("exif_ifd_pointer", None)
    if isinstance(pointer, int):
        fields.update(walk_directory(view, tiff_start + pointer, tiff_start=tiff_start, tags=EXIF_TAGS))
    return fields, header


def read_exif_fields(data: bytes | bytearray | memoryview) -> dict:
    """
    Return the flat {field name: decoded value} map from the primary directory
    and the Exif sub-directory it points to.

    Raises an ExifError subclass when the buffer cannot be decoded.
    """
    fields, _ = _read_fields(data)
    return fields


def decode_exif(data: bytes | bytearray | memoryview) -> ShotExif:
    """
    Decode camera and exposure metadata from a complete (or head-of) JPEG buffer.

    Raises an ExifError subclass when the buffer cannot be decoded. Fields the
    image does not carry are None.
    """
    fields, header = _read_fields(data)

    iso = _first(fields.get("iso"))
    return ShotExif(
        make=_text(fields.get("make")),
        model=_text(fields.get("model")),
        image_description=_text(fields.get("image_description")),
        lens_model=_text(fields.get("lens_model")),
        date_time=_text(fields.get("date_time_original")) or _text(fields.get("date_time")),
        shutter_speed=format_rational(fields.get("exposure_time")),
        aperture=format_rational(fields.get("f_number")),
        iso=iso if isinstance(iso, int) else None,
        focal_length=focal_length_mm(fields.get("focal_length")),
        flash=flash_label(fields.get("flash")),
        exposure_mode=exposure_mode_label(fields.get("exposure_mode")),
        user_comment=decode_user_comment(fields.get("user_comment"), order=header.view.order),
        raw=MappingProxyType(fields),
    )
