from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Tuple

GRID_SIZE = 256


class ImageType(enum.Enum):
    PLAIN_JPEG = "jpeg"
    DUAL_JPEG = "gvmp"


@dataclass(frozen=True)
class PageEntry:
    index: int
    offset_file_name: int
    length_file_name: int
    offset_viewer: int
    length_viewer: int
    name: str = ""

    @property
    def label(self) -> str:
        return self.name or f"page{self.index}"


@dataclass(frozen=True)
class Container:
    magic: bytes
    page_count: int
    first_section_length: int
    pages: Tuple[PageEntry, ...]

    def name_offset(self, page: PageEntry) -> int:
        return self.first_section_length + page.offset_file_name

    def viewer_offset(self, page: PageEntry) -> int:
        return self.first_section_length + page.offset_viewer


@dataclass(frozen=True)
class ViewerHeader:
    image_type: ImageType
    width: int
    height: int
    database_length: int
    entry_stride: int
    param_length: int

    @property
    def tile_count(self) -> int:
        return self.database_length // self.entry_stride


@dataclass(frozen=True)
class TileDescriptor:
    index: int
    grid_x: int
    grid_y: int
    layer: int
    payload_length: int
    padding_length: int
    reserved: int
    width: int
    height: int

    @property
    def origin(self) -> Tuple[int, int]:
        return tile_origin(self.grid_x, self.grid_y)


@dataclass(frozen=True)
class ViewerBlock:
    header: ViewerHeader
    tiles: Tuple[TileDescriptor, ...]
    total_payload_bytes: int
    payload_offset: int


@dataclass(frozen=True)
class DualHeader:
    first_length: int
    padded_first_length: int
    second_length: int

    @property
    def has_second(self) -> bool:
        # A padded length equal to the bare sub-header means only one image follows.
        return self.padded_first_length != 32


@dataclass(frozen=True)
class TilePayload:
    descriptor: TileDescriptor
    data: bytes


def tile_origin(grid_x: int, grid_y: int) -> Tuple[int, int]:
    return grid_x * GRID_SIZE, grid_y * GRID_SIZE
