from __future__ import annotations


class ExifError(ValueError):
    """
    Base class for every reason a decode can stop.

    `code` is a stable identifier (the class name) that callers can log or
    serialize without depending on the message text.
    """

    code = "ExifError"


class NotAJpeg(ExifError):
    code = "NotAJpeg"


class NoMetadataFound(ExifError):
    code = "NoMetadataFound"


class TruncatedMarkerChain(ExifError):
    code = "TruncatedMarkerChain"


class InvalidMetadataHeader(ExifError):
    code = "InvalidMetadataHeader"


class InvalidByteOrder(ExifError):
    code = "InvalidByteOrder"


class InvalidMagicNumber(ExifError):
    code = "InvalidMagicNumber"


class TruncatedData(ExifError):
    code = "TruncatedData"
