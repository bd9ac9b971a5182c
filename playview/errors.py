from __future__ import annotations


def _hex(value: bytes | None) -> str:
    if value is None:
        return "?"
    return value.hex(" ").upper() or "<empty>"


class PlayViewError(Exception):
    """Base class for structural problems found while reading a container."""


class FormatError(PlayViewError):
    """
    A literal, magic or length field did not match what the container format
    requires. Carries the offending field name, the absolute file offset and,
    when available, the expected and actual bytes.
    """

    def __init__(
        self,
        field: str,
        offset: int,
        *,
        expected: bytes | None = None,
        actual: bytes | None = None,
        detail: str | None = None,
    ) -> None:
        self.field = field
        self.offset = offset
        self.expected = expected
        self.actual = actual
        self.detail = detail
        message = f"{field} at 0x{offset:08X}"
        if expected is not None or actual is not None:
            message += f": expected {_hex(expected)}, got {_hex(actual)}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class DecodeError(PlayViewError):
    """Tile payload bytes could not be decoded as a JPEG raster."""


class ShortReadError(OSError):
    """The file ended before a field could be read in full."""

    def __init__(self, field: str, offset: int, wanted: int, got: int) -> None:
        self.field = field
        self.offset = offset
        self.wanted = wanted
        self.got = got
        super().__init__(f"short read for {field} at 0x{offset:08X}: wanted {wanted} bytes, got {got}")
