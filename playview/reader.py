from __future__ import annotations

import io
import struct
from typing import BinaryIO

from .errors import FormatError, ShortReadError

U32 = struct.Struct(">I")


class ByteCursor:
    """
    Exclusive, forward-reading view over one open container handle.

    Every structure in a gvd.dat file is located by absolute seeks followed by
    strictly sequential reads, so a page's whole pipeline shares a single
    cursor. All integers are big-endian.
    """

    def __init__(self, handle: BinaryIO) -> None:
        self._handle = handle

    @classmethod
    def from_bytes(cls, blob: bytes) -> "ByteCursor":
        return cls(io.BytesIO(blob))

    def tell(self) -> int:
        return self._handle.tell()

    def seek(self, offset: int) -> None:
        if offset < 0:
            raise FormatError("seek target", offset, detail="negative offset")
        self._handle.seek(offset, io.SEEK_SET)

    def skip(self, count: int, field: str = "skip") -> None:
        if count < 0:
            raise FormatError(field, self.tell(), detail=f"negative skip of {count} bytes")
        if count:
            self._handle.seek(count, io.SEEK_CUR)

    def read(self, count: int, field: str) -> bytes:
        offset = self.tell()
        data = self._handle.read(count)
        if len(data) != count:
            raise ShortReadError(field, offset, count, len(data))
        return data

    def u32(self, field: str) -> int:
        return U32.unpack(self.read(U32.size, field))[0]

    def expect(self, literal: bytes, field: str) -> None:
        offset = self.tell()
        actual = self.read(len(literal), field)
        if actual != literal:
            raise FormatError(field, offset, expected=literal, actual=actual)

    def align(self, boundary: int = 16) -> int:
        remainder = self.tell() % boundary
        if remainder == 0:
            return 0
        gap = boundary - remainder
        self.skip(gap, "alignment")
        return gap
