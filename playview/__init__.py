"""
Readers and exporters for PlayView "gvd.dat" multi-resolution image containers.
"""

from .compositor import Compositor, decode_tile
from .config import ALL_LAYERS, ExportOptions
from .container import CONTAINER_MAGIC, load_container, read_container, resolve_page_names
from .entities import (
    GRID_SIZE,
    Container,
    DualHeader,
    ImageType,
    PageEntry,
    TileDescriptor,
    TilePayload,
    ViewerBlock,
    ViewerHeader,
    tile_origin,
)
from .errors import DecodeError, FormatError, PlayViewError, ShortReadError
from .export import Exporter
from .logging import setup_logging
from .pipeline import PageResult, PageState, export_container, process_page
from .reader import ByteCursor
from .tiles import extract_dual, extract_plain, iter_tile_payloads, read_dual_header
from .viewer import VIEWER_KEYS, parse_viewer

__all__ = [
    "ALL_LAYERS",
    "ByteCursor",
    "CONTAINER_MAGIC",
    "Compositor",
    "Container",
    "DecodeError",
    "DualHeader",
    "ExportOptions",
    "Exporter",
    "FormatError",
    "GRID_SIZE",
    "ImageType",
    "PageEntry",
    "PageResult",
    "PageState",
    "PlayViewError",
    "ShortReadError",
    "TileDescriptor",
    "TilePayload",
    "VIEWER_KEYS",
    "ViewerBlock",
    "ViewerHeader",
    "decode_tile",
    "export_container",
    "extract_dual",
    "extract_plain",
    "iter_tile_payloads",
    "load_container",
    "parse_viewer",
    "process_page",
    "read_container",
    "read_dual_header",
    "resolve_page_names",
    "setup_logging",
    "tile_origin",
]
