from __future__ import annotations

import struct
from datetime import datetime
from pathlib import Path

import pytest
from PIL import Image

from exif_fixtures import (
    ASCII,
    LONG,
    RATIONAL,
    SHORT,
    SRATIONAL,
    UNDEFINED,
    build_tiff,
    jpeg_without_exif,
    tiff_start_of,
    wrap_jpeg,
)
from photoexif.errors import (
    ExifError,
    InvalidByteOrder,
    InvalidMetadataHeader,
    NoMetadataFound,
    NotAJpeg,
    TruncatedData,
)
from photoexif.exif import (
    ShotExif,
    _parse_exif_datetime,
    decode_exif,
    decode_user_comment,
    exposure_mode_label,
    flash_label,
    focal_length_mm,
    format_rational,
    read_exif_fields,
)
from photoexif.ifd import Rational

FULL_IFD0 = [
    (0x010E, ASCII, "Harbour at dawn"),
    (0x010F, ASCII, "Canon"),
    (0x0110, ASCII, "Canon EOS R5"),
    (0x0132, ASCII, "2024:01:15 14:35:00"),
]
FULL_EXIF = [
    (0x829A, RATIONAL, (1, 200)),
    (0x829D, RATIONAL, (28, 10)),
    (0x8827, SHORT, 400),
    (0x9003, ASCII, "2024:01:15 14:30:00"),
    (0x9209, SHORT, 0x19),
    (0x920A, RATIONAL, (505, 10)),
    (0x9286, UNDEFINED, b"ASCII\x00\x00\x00Morning light"),
    (0xA402, SHORT, 1),
    (0xA434, ASCII, "RF24-70mm F2.8 L IS USM"),
]


def test_not_a_jpeg():
    with pytest.raises(NotAJpeg):
        decode_exif(b"GIF89a" + bytes(20))


def test_no_metadata():
    with pytest.raises(NoMetadataFound):
        decode_exif(jpeg_without_exif())


def test_model_only_little_endian():
    jpeg = wrap_jpeg(build_tiff([(0x0110, ASCII, "TestCam")], order="<"))
    exif = decode_exif(jpeg)
    assert exif.model == "TestCam"
    assert exif.make is None
    assert exif.iso is None
    assert exif.shutter_speed is None
    assert exif.camera == "TestCam"


@pytest.mark.parametrize("order", ["<", ">"])
def test_full_decode(order: str):
    jpeg = wrap_jpeg(build_tiff(FULL_IFD0, FULL_EXIF, order=order))
    exif = decode_exif(jpeg)

    assert exif == ShotExif(
        make="Canon",
        model="Canon EOS R5",
        image_description="Harbour at dawn",
        lens_model="RF24-70mm F2.8 L IS USM",
        date_time="2024:01:15 14:30:00",
        shutter_speed="1/200",
        aperture="2.80",
        iso=400,
        focal_length=51,
        flash="Flash Fired, Auto",
        exposure_mode="Manual",
        user_comment="Morning light",
    )
    assert exif.captured_at == datetime(2024, 1, 15, 14, 30, 0)
    assert exif.camera == "Canon Canon EOS R5"
    assert "exif_ifd_pointer" not in exif.raw
    assert exif.raw["exposure_time"] == Rational(1, 200)


def test_big_endian_header_reads_big_endian():
    jpeg = wrap_jpeg(build_tiff([(0x0110, ASCII, "TestCam")], [(0x8827, SHORT, 0x0102)], order=">"))
    assert jpeg[tiff_start_of(jpeg) : tiff_start_of(jpeg) + 2] == b"MM"
    assert decode_exif(jpeg).iso == 0x0102


def test_invalid_byte_order():
    tiff = b"XX" + build_tiff([(0x0110, ASCII, "TestCam")])[2:]
    with pytest.raises(InvalidByteOrder):
        decode_exif(wrap_jpeg(tiff))


def test_invalid_identifier():
    jpeg = wrap_jpeg(build_tiff([]), identifier=b"http:/")
    with pytest.raises(InvalidMetadataHeader):
        decode_exif(jpeg)


def test_truncated_after_entry_count():
    jpeg = wrap_jpeg(build_tiff(FULL_IFD0, FULL_EXIF))
    cut = tiff_start_of(jpeg) + 8 + 2
    with pytest.raises(TruncatedData):
        decode_exif(jpeg[:cut])


def test_every_truncation_fails_cleanly():
    jpeg = wrap_jpeg(build_tiff(FULL_IFD0, FULL_EXIF))
    for n in range(len(jpeg)):
        try:
            decode_exif(jpeg[:n])
        except ExifError:
            pass


def test_out_of_bounds_exif_pointer():
    jpeg = wrap_jpeg(build_tiff([(0x0110, ASCII, "TestCam")], exif_pointer=0x00FFFFFF))
    with pytest.raises(TruncatedData):
        decode_exif(jpeg)


def test_secondary_tags_only_apply_in_exif_directory():
    # ExposureTime's id in IFD0 is not an image tag and must be ignored there
    jpeg = wrap_jpeg(build_tiff([(0x829A, RATIONAL, (1, 60)), (0x0110, ASCII, "TestCam")]))
    exif = decode_exif(jpeg)
    assert exif.shutter_speed is None
    assert exif.model == "TestCam"


def test_unsupported_format_leaves_field_absent():
    # FNumber re-tagged as DOUBLE (format 12): skipped, the rest still decodes
    jpeg = wrap_jpeg(build_tiff([(0x0110, ASCII, "TestCam")], [(0x829D, RATIONAL, (4, 1))]))
    tiff_start = tiff_start_of(jpeg)
    # rewrite the f-number entry's format code in place
    exif_ifd = tiff_start + struct.unpack_from("<I", jpeg, jpeg.index(b"\x69\x87\x04\x00") + 8)[0]
    patched = bytearray(jpeg)
    struct.pack_into("<H", patched, exif_ifd + 2 + 2, 12)
    exif = decode_exif(bytes(patched))
    assert exif.aperture is None
    assert exif.model == "TestCam"


def test_date_time_falls_back_to_ifd0():
    jpeg = wrap_jpeg(build_tiff([(0x0132, ASCII, "2023:12:25 08:00:00")], [(0x8827, SHORT, 100)]))
    exif = decode_exif(jpeg)
    assert exif.date_time == "2023:12:25 08:00:00"
    assert exif.captured_at == datetime(2023, 12, 25, 8, 0, 0)


def test_blank_strings_are_absent():
    jpeg = wrap_jpeg(build_tiff([(0x010F, ASCII, "   "), (0x0110, ASCII, "Model X   ")]))
    exif = decode_exif(jpeg)
    assert exif.make is None
    assert exif.model == "Model X"


def test_zero_values_are_kept():
    jpeg = wrap_jpeg(build_tiff([], [(0x9209, SHORT, 0), (0xA402, SHORT, 0)]))
    exif = decode_exif(jpeg)
    assert exif.flash == "No Flash"
    assert exif.exposure_mode == "Auto"


def test_iso_sequence_uses_first():
    jpeg = wrap_jpeg(build_tiff([], [(0x8827, SHORT, [800, 1600])]))
    assert decode_exif(jpeg).iso == 800


def test_read_exif_fields():
    jpeg = wrap_jpeg(build_tiff([(0x0110, ASCII, "TestCam")], [(0x829A, RATIONAL, (1, 200))]))
    fields = read_exif_fields(jpeg)
    assert fields == {"model": "TestCam", "exposure_time": Rational(1, 200)}


def test_pillow_written_exif(tmp_path: Path):
    exif = Image.Exif()
    exif[0x010F] = "Canon"
    exif[0x0110] = "EOS R5"
    jpeg_path = tmp_path / "test.jpg"
    Image.new("RGB", (64, 48), (120, 160, 200)).save(jpeg_path, format="JPEG", exif=exif)

    decoded = decode_exif(jpeg_path.read_bytes())
    assert decoded.make == "Canon"
    assert decoded.model == "EOS R5"
    assert decoded.shutter_speed is None


# --- formatting helpers --------------------------------------------------


def test_format_rational():
    assert format_rational(Rational(1, 200)) == "1/200"
    assert format_rational(Rational(3, 2)) == "1.50"
    assert format_rational(Rational(10, 1)) == "10.00"
    assert format_rational(Rational(5, 0)) is None
    assert format_rational(Rational(1, 0)) is None
    assert format_rational(None) is None
    assert format_rational((Rational(1, 50), Rational(1, 100))) == "1/50"
    assert format_rational(7) is None


def test_focal_length_mm():
    assert focal_length_mm(Rational(50, 1)) == 50
    assert focal_length_mm(Rational(505, 10)) == 51
    assert focal_length_mm(Rational(244, 10)) == 24
    assert focal_length_mm(Rational(50, 0)) is None
    assert focal_length_mm(None) is None


def test_flash_label():
    assert flash_label(0x19) == "Flash Fired, Auto"
    assert flash_label(0x7F) == "Unknown"
    assert flash_label(0x00) == "No Flash"
    assert flash_label(None) is None
    assert flash_label(Rational(1, 1)) is None


def test_exposure_mode_label():
    assert exposure_mode_label(0) == "Auto"
    assert exposure_mode_label(1) == "Manual"
    assert exposure_mode_label(2) == "Auto bracket"
    assert exposure_mode_label(9) == "Unknown"
    assert exposure_mode_label(None) is None


def test_decode_user_comment():
    assert decode_user_comment(b"ASCII\x00\x00\x00Hello\x00\x00") == "Hello"
    assert decode_user_comment(b"UNICODE\x00" + "Hé".encode("utf-16-le"), order="<") == "Hé"
    assert decode_user_comment(b"UNICODE\x00" + "Hé".encode("utf-16-be"), order=">") == "Hé"
    assert decode_user_comment(b"\x00" * 8 + b"plain") == "plain"
    assert decode_user_comment(b"\x00" * 8 + b"   \x00\x00") is None
    assert decode_user_comment(b"short") == "short"
    assert decode_user_comment(b"") is None
    assert decode_user_comment(None) is None


def test_parse_exif_datetime():
    assert _parse_exif_datetime("2024:01:15 14:30:00") == datetime(2024, 1, 15, 14, 30, 0)
    assert _parse_exif_datetime("") is None
    assert _parse_exif_datetime("invalid") is None
    assert _parse_exif_datetime("2024-01-15 14:30:00") is None


def test_srational_exposure_is_formatted():
    jpeg = wrap_jpeg(build_tiff([], [(0x829A, SRATIONAL, (1, 4000))]))
    assert decode_exif(jpeg).shutter_speed == "1/4000"


def test_pointer_with_wrong_type_is_ignored():
    # pointer stored as two LONGs decodes to a tuple and is not followed
    jpeg = wrap_jpeg(build_tiff([(0x8769, LONG, [1, 2]), (0x0110, ASCII, "TestCam")]))
    exif = decode_exif(jpeg)
    assert exif.model == "TestCam"
    assert exif.raw == {"model": "TestCam"}
