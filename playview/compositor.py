from __future__ import annotations

import io
import logging
from typing import Dict, Iterator, Set, Tuple

from PIL import Image, UnidentifiedImageError

from .entities import TileDescriptor
from .errors import DecodeError

logger = logging.getLogger(__name__)

CANVAS_MODE = "RGBA"
TRANSPARENT = (0, 0, 0, 0)


def decode_tile(data: bytes) -> Image.Image:
    """Decode a tile payload as JPEG and return it as an RGBA raster."""

    if not data:
        raise DecodeError("empty payload")
    try:
        with Image.open(io.BytesIO(data)) as image:
            if image.format != "JPEG":
                raise DecodeError(f"payload is {image.format or 'unknown'}, not JPEG")
            image.load()
            return image.convert(CANVAS_MODE)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as exc:
        raise DecodeError(str(exc)) from exc


class Compositor:
    """
    Per-page assembly of decoded tiles onto one canvas per layer.

    Canvases are created lazily at the page's declared size and never grow:
    tiles that hang over the right or bottom edge are clipped.
    """

    def __init__(self, page_name: str, width: int, height: int) -> None:
        self.page_name = page_name
        self.width = width
        self.height = height
        self._canvases: Dict[int, Image.Image] = {}
        self._seen: Dict[int, Set[Tuple[int, int]]] = {}

    def note_grid(self, tile: TileDescriptor) -> bool:
        """Record the tile's grid cell; returns True when the cell was already taken."""

        seen = self._seen.setdefault(tile.layer, set())
        key = (tile.grid_x, tile.grid_y)
        if key in seen:
            logger.warning(
                "[%s] overlapping image at %d, %d on layer %d (tile %d)",
                self.page_name,
                tile.grid_x,
                tile.grid_y,
                tile.layer,
                tile.index,
            )
            return True
        seen.add(key)
        return False

    def canvas(self, layer: int) -> Image.Image:
        canvas = self._canvases.get(layer)
        if canvas is None:
            canvas = Image.new(CANVAS_MODE, (self.width, self.height), TRANSPARENT)
            self._canvases[layer] = canvas
        return canvas

    def place(self, tile: TileDescriptor, raster: Image.Image) -> bool:
        """
        Alpha-composite ``raster`` at the tile's grid origin. Returns False if
        the tile is fully clipped; such a tile never creates its layer's canvas.
        """

        x, y = tile.origin
        visible_w = min(raster.width, self.width - x)
        visible_h = min(raster.height, self.height - y)
        if visible_w <= 0 or visible_h <= 0:
            logger.debug("[%s] tile %d at %d,%d lies outside the canvas", self.page_name, tile.index, x, y)
            return False
        canvas = self.canvas(tile.layer)
        if raster.mode != CANVAS_MODE:
            raster = raster.convert(CANVAS_MODE)
        if (visible_w, visible_h) != raster.size:
            raster = raster.crop((0, 0, visible_w, visible_h))
        canvas.alpha_composite(raster, dest=(x, y))
        return True

    def canvases(self) -> Iterator[Tuple[int, Image.Image]]:
        for layer in sorted(self._canvases):
            yield layer, self._canvases[layer]

    def __len__(self) -> int:
        return len(self._canvases)
