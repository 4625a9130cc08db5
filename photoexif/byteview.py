from __future__ import annotations

import struct

from .errors import TruncatedData

LITTLE_ENDIAN = "<"
BIG_ENDIAN = ">"


class ByteView:
    """
    Read-only, bounds-checked access to a byte buffer in a fixed byte order.

    Every read checks `offset + width <= len(data)` before touching the buffer
    and raises TruncatedData otherwise.
    """

    __slots__ = ("_data", "order")

    def __init__(self, data: bytes | bytearray | memoryview, order: str = BIG_ENDIAN) -> None:
        if order not in (LITTLE_ENDIAN, BIG_ENDIAN):
            raise ValueError(f"Invalid byte order {order!r} (expected '<' or '>')")
        self._data = bytes(data)
        self.order = order

    def __len__(self) -> int:
        return len(self._data)

    def with_order(self, order: str) -> ByteView:
        return ByteView(self._data, order)

    def require(self, offset: int, width: int) -> None:
        if offset < 0 or width < 0 or offset + width > len(self._data):
            raise TruncatedData(
                f"Read of {width} byte(s) at offset {offset} exceeds buffer of {len(self._data)} bytes"
            )

    def raw(self, offset: int, length: int) -> bytes:
        self.require(offset, length)
        return self._data[offset : offset + length]

    def unpack(self, offset: int, code: str, count: int = 1) -> tuple:
        """Unpack `count` consecutive struct elements of type `code` at `offset`."""
        width = struct.calcsize(self.order + code) * count
        self.require(offset, width)
        return struct.unpack_from(f"{self.order}{count}{code}", self._data, offset)

    def u8(self, offset: int) -> int:
        return self.unpack(offset, "B")[0]

    def u16(self, offset: int) -> int:
        return self.unpack(offset, "H")[0]

    def u32(self, offset: int) -> int:
        return self.unpack(offset, "I")[0]

    def s32(self, offset: int) -> int:
        return self.unpack(offset, "i")[0]
