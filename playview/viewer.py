from __future__ import annotations

import logging
from typing import Dict, List

from .entities import Container, ImageType, PageEntry, TileDescriptor, ViewerBlock, ViewerHeader
from .errors import FormatError
from .reader import ByteCursor

logger = logging.getLogger(__name__)

VIEWER_KEYS: Dict[bytes, ImageType] = {
    b"GVEW0100JPEG0100": ImageType.PLAIN_JPEG,
    b"GVEW0100GVMP0100": ImageType.DUAL_JPEG,
}
VIEWER_KEY_LENGTH = 16
BLOCK_MARKER = b"BLK_"
DATABASE_START = bytes.fromhex("00000001 00000000")
PAYLOAD_START = bytes.fromhex("00000002 00000000")
SUPPORTED_PARAM_LENGTH = 4


def read_viewer_key(cursor: ByteCursor) -> ImageType:
    offset = cursor.tell()
    key = cursor.read(VIEWER_KEY_LENGTH, "viewer key")
    image_type = VIEWER_KEYS.get(key)
    if image_type is None:
        raise FormatError(
            "viewer key",
            offset,
            actual=key,
            detail="expected GVEW0100JPEG0100 or GVEW0100GVMP0100",
        )
    return image_type


def read_viewer_header(cursor: ByteCursor) -> ViewerHeader:
    image_type = read_viewer_key(cursor)
    width = cursor.u32("image width")
    height = cursor.u32("image height")
    cursor.expect(BLOCK_MARKER, "block marker")
    database_length = cursor.u32("database length")
    cursor.expect(DATABASE_START, "database start")
    entry_stride = cursor.u32("entry stride")
    param_offset = cursor.tell()
    param_length = cursor.u32("parameter length")

    if param_length != SUPPORTED_PARAM_LENGTH:
        raise FormatError(
            "parameter length",
            param_offset,
            detail=f"only {SUPPORTED_PARAM_LENGTH}-byte parameters are implemented, got {param_length}",
        )
    if entry_stride == 0 or database_length % entry_stride:
        raise FormatError(
            "entry stride",
            param_offset - 4,
            detail=f"database length {database_length} is not a multiple of entry stride {entry_stride}",
        )

    header = ViewerHeader(
        image_type=image_type,
        width=width,
        height=height,
        database_length=database_length,
        entry_stride=entry_stride,
        param_length=param_length,
    )
    logger.debug("viewer header %s", header)
    return header


def read_tile_table(cursor: ByteCursor, header: ViewerHeader) -> List[TileDescriptor]:
    tiles: List[TileDescriptor] = []
    for index in range(header.tile_count):
        # Field order on disk; "reserved" is carried through untouched.
        fields = [cursor.u32(f"tile {index} field {slot}") for slot in range(8)]
        grid_x, grid_y, layer, payload_length, padding_length, reserved, width, height = fields
        tile = TileDescriptor(
            index=index,
            grid_x=grid_x,
            grid_y=grid_y,
            layer=layer,
            payload_length=payload_length,
            padding_length=padding_length,
            reserved=reserved,
            width=width,
            height=height,
        )
        logger.debug("  > %s", tile)
        tiles.append(tile)
    return tiles


def read_tile_section(cursor: ByteCursor, header: ViewerHeader, label: str = "") -> ViewerBlock:
    """
    Read the tile table and the payload trailer that follow a viewer header,
    leaving the cursor on the first payload byte.
    """

    tiles = read_tile_table(cursor, header)
    cursor.expect(BLOCK_MARKER, "payload block marker")
    total_payload_bytes = cursor.u32("total payload length")
    cursor.expect(PAYLOAD_START, "payload start")
    logger.debug("[%s] %d tiles, %d payload bytes declared", label, len(tiles), total_payload_bytes)

    return ViewerBlock(
        header=header,
        tiles=tuple(tiles),
        total_payload_bytes=total_payload_bytes,
        payload_offset=cursor.tell(),
    )


def parse_viewer(cursor: ByteCursor, container: Container, page: PageEntry) -> ViewerBlock:
    """
    Parse a page's database viewer block and leave the cursor on the first
    payload byte.
    """

    cursor.seek(container.viewer_offset(page))
    header = read_viewer_header(cursor)
    return read_tile_section(cursor, header, page.label)
