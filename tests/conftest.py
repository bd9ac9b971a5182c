"""
Synthetic gvd.dat builder shared by the test-suite.

Containers are assembled in memory with Pillow-encoded JPEG tiles so every
offset is known up front and tests can assert exact cursor positions.
"""

from __future__ import annotations

import io
import struct
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest
from PIL import Image

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

PLAIN_KEY = b"GVEW0100JPEG0100"
DUAL_KEY = b"GVEW0100GVMP0100"
BLK = b"BLK_"
DB_START = bytes.fromhex("0000000100000000")
PAYLOAD_START = bytes.fromhex("0000000200000000")

RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)
WHITE = (255, 255, 255)


def jpeg_bytes(color: Tuple[int, int, int], size: Tuple[int, int] = (256, 256)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="JPEG", quality=95)
    return buffer.getvalue()


def oversized_jpeg(width: int, height: int) -> bytes:
    """A small baseline JPEG whose SOF0 header claims ``width`` x ``height``."""

    data = bytearray(jpeg_bytes(RED, size=(16, 16)))
    sof = data.index(b"\xff\xc0")
    # FFC0, u16 length, u8 precision, u16 height, u16 width
    struct.pack_into(">HH", data, sof + 5, height, width)
    return bytes(data)


def u32(value: int) -> bytes:
    return struct.pack(">I", value)


@dataclass
class TileSpec:
    grid_x: int
    grid_y: int
    data: bytes
    layer: int = 0
    padding: int = 0
    width: int = 256
    height: int = 256
    reserved: int = 0
    # DualJPEG only: second (hidden) image and the padding after the first one.
    hidden: Optional[bytes] = None
    first_padding: int = 0


@dataclass
class PageSpec:
    name: str
    tiles: List[TileSpec]
    width: int = 512
    height: int = 512
    dual: bool = False
    key: Optional[bytes] = None
    entry_stride: int = 32
    param_length: int = 4
    database_length: Optional[int] = None
    literals: Dict[str, bytes] = field(default_factory=dict)


@dataclass
class BuiltPage:
    name_offset: int
    viewer_offset: int
    payload_offset: int
    # Absolute offset at which each tile's bytes begin in the stream.
    tile_offsets: List[int]
    stream_end: int


@dataclass
class BuiltContainer:
    blob: bytes
    first_section_length: int
    pages: List[BuiltPage]

    def write(self, path: Path) -> Path:
        path.write_bytes(self.blob)
        return path


def dual_payload(first: bytes, hidden: Optional[bytes], first_padding: int = 0) -> bytes:
    if hidden is None:
        padded_first = 32
        body = first
        second_len = 0
    else:
        padded_first = 32 + len(first) + first_padding
        body = first + b"\xff" * first_padding + hidden
        second_len = len(hidden)
    header = b"GVMP" + u32(2) + u32(32) + u32(len(first)) + u32(padded_first) + u32(second_len) + bytes(8)
    return header + body


def _viewer_block(page: PageSpec, base: int) -> Tuple[bytes, int, List[int]]:
    lit = page.literals
    count = len(page.tiles)
    header_len = 16 + 4 + 4 + 4 + 4 + 8 + 4 + 4 + 32 * count + 4 + 4 + 8
    stream_base = base + header_len

    stream = bytearray()
    descriptors = bytearray()
    offsets: List[int] = []
    for tile in page.tiles:
        offsets.append(stream_base + len(stream))
        if page.dual:
            payload = dual_payload(tile.data, tile.hidden, tile.first_padding)
            position = stream_base + len(stream) + len(payload)
            padding = (16 - position % 16) % 16
        else:
            payload = tile.data
            padding = tile.padding
        stream += payload + b"\xff" * padding
        descriptors += struct.pack(
            ">8I",
            tile.grid_x,
            tile.grid_y,
            tile.layer,
            len(payload),
            padding,
            tile.reserved,
            tile.width,
            tile.height,
        )

    database_length = page.database_length if page.database_length is not None else page.entry_stride * count
    key = page.key or (DUAL_KEY if page.dual else PLAIN_KEY)
    block = bytearray()
    block += key
    block += u32(page.width) + u32(page.height)
    block += lit.get("marker", BLK)
    block += u32(database_length)
    block += lit.get("db_start", DB_START)
    block += u32(page.entry_stride) + u32(page.param_length)
    block += descriptors
    block += lit.get("marker2", BLK)
    block += u32(len(stream))
    block += lit.get("payload_start", PAYLOAD_START)
    assert len(block) == header_len
    block += stream
    return bytes(block), stream_base, offsets


def build_container(pages: Sequence[PageSpec], *, magic: bytes = b"TGDT0100", name_suffix: str = ".gvd") -> BuiltContainer:
    first_section_length = 16 + 16 * len(pages)
    section = bytearray()
    directory = bytearray()
    built: List[BuiltPage] = []
    for page in pages:
        name = (page.name + name_suffix).encode("ascii")
        name_offset = len(section)
        section += name + b"\x00"
        # Keep viewer blocks on odd offsets so alignment is exercised.
        section += b"\x00" * 3
        viewer_offset = len(section)
        block, payload_offset, tile_offsets = _viewer_block(page, first_section_length + viewer_offset)
        section += block
        directory += u32(name_offset) + u32(len(name)) + u32(viewer_offset) + u32(len(block))
        built.append(
            BuiltPage(
                name_offset=name_offset,
                viewer_offset=viewer_offset,
                payload_offset=payload_offset,
                tile_offsets=tile_offsets,
                stream_end=first_section_length + len(section),
            )
        )
    blob = magic + u32(len(pages)) + u32(first_section_length) + bytes(directory) + bytes(section)
    return BuiltContainer(blob=blob, first_section_length=first_section_length, pages=built)


def quadrant_page(name: str = "MAP01") -> PageSpec:
    colors = [RED, GREEN, BLUE, WHITE]
    cells = [(0, 0), (1, 0), (0, 1), (1, 1)]
    tiles = [TileSpec(gx, gy, jpeg_bytes(color), padding=5) for (gx, gy), color in zip(cells, colors)]
    return PageSpec(name=name, tiles=tiles)


def dominant(pixel: Sequence[float]) -> Tuple[int, int, int]:
    return tuple(1 if channel > 160 else 0 for channel in pixel[:3])  # type: ignore[return-value]


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    path = tmp_path / "out"
    path.mkdir()
    return path
