from __future__ import annotations

import logging
from typing import Iterator

from .config import ALL_LAYERS, layer_selected
from .entities import DualHeader, ImageType, TileDescriptor, TilePayload, ViewerBlock
from .reader import ByteCursor

logger = logging.getLogger(__name__)

GVMP_MAGIC = b"GVMP"
GVMP_IMAGE_COUNT = bytes.fromhex("00000002")
GVMP_HEADER_LENGTH = 32
GVMP_RESERVED = bytes(8)
PAYLOAD_ALIGNMENT = 16


def read_dual_header(cursor: ByteCursor) -> DualHeader:
    """
    Read the 32-byte GVMP sub-header that opens every DualJPEG payload:

        4B  "GVMP"
        4B  00000002
        4B  00000020 (sub-header length)
        u32 first image length
        u32 first image length incl. sub-header and padding
        u32 second image length
        8B  zero
    """

    cursor.expect(GVMP_MAGIC, "GVMP magic")
    cursor.expect(GVMP_IMAGE_COUNT, "GVMP image count")
    cursor.expect(GVMP_HEADER_LENGTH.to_bytes(4, "big"), "GVMP header length")
    header = DualHeader(
        first_length=cursor.u32("GVMP first image length"),
        padded_first_length=cursor.u32("GVMP padded first image length"),
        second_length=cursor.u32("GVMP second image length"),
    )
    cursor.expect(GVMP_RESERVED, "GVMP reserved")
    return header


def extract_plain(cursor: ByteCursor, tile: TileDescriptor) -> bytes:
    return cursor.read(tile.payload_length, f"tile {tile.index} payload")


def extract_dual(cursor: ByteCursor, tile: TileDescriptor, *, reveal_hidden: bool) -> bytes:
    """
    Pull one image out of a GVMP payload and leave the cursor on the next
    16-byte boundary. Both branches consume the same number of bytes.
    """

    start = cursor.tell()
    header = read_dual_header(cursor)
    logger.debug("tile %d at %d: %s", tile.index, start, header)

    if reveal_hidden and header.has_second:
        cursor.skip(header.padded_first_length - GVMP_HEADER_LENGTH, f"tile {tile.index} first image")
        data = cursor.read(header.second_length, f"tile {tile.index} second image")
    else:
        data = cursor.read(header.first_length, f"tile {tile.index} first image")
        if header.has_second:
            cursor.skip(
                header.padded_first_length - header.first_length - GVMP_HEADER_LENGTH,
                f"tile {tile.index} first image padding",
            )
            cursor.skip(header.second_length, f"tile {tile.index} second image")

    cursor.align(PAYLOAD_ALIGNMENT)
    return data


def iter_tile_payloads(
    cursor: ByteCursor,
    block: ViewerBlock,
    *,
    layer: int = ALL_LAYERS,
    reveal_hidden: bool = True,
) -> Iterator[TilePayload]:
    """
    Walk the payload stream in table order, yielding the raw image bytes of
    every tile on the selected layer.

    The cursor must sit on ``block.payload_offset``. For PlainJPEG pages the
    tile's padding is skipped once the consumer asks for the next tile, i.e.
    after it has finished decoding the current one.
    """

    image_type = block.header.image_type
    for tile in block.tiles:
        if not layer_selected(layer, tile.layer):
            cursor.skip(tile.payload_length + tile.padding_length, f"tile {tile.index} (layer {tile.layer})")
            continue

        if image_type is ImageType.PLAIN_JPEG:
            data = extract_plain(cursor, tile)
            yield TilePayload(descriptor=tile, data=data)
            cursor.skip(tile.padding_length, f"tile {tile.index} padding")
        elif image_type is ImageType.DUAL_JPEG:
            data = extract_dual(cursor, tile, reveal_hidden=reveal_hidden)
            yield TilePayload(descriptor=tile, data=data)
        else:  # pragma: no cover - ImageType is closed
            raise AssertionError(f"unhandled image type {image_type!r}")
