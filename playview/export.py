from __future__ import annotations

import os
import re
from pathlib import Path

from PIL import Image

_UNSAFE = re.compile(r"[\\/:\x00]")


def safe_name(name: str) -> str:
    cleaned = _UNSAFE.sub("_", name).strip()
    if cleaned in ("", ".", ".."):
        return "_"
    return cleaned


class Exporter:
    """
    Writes pipeline artifacts into a single output directory.

    Names embed the page name plus the layer or tile index, so concurrent page
    workers never target the same file.
    """

    def __init__(self, out_dir: Path) -> None:
        self.out_dir = Path(out_dir)

    def ensure_dir(self) -> None:
        self.out_dir.mkdir(parents=True, exist_ok=True)

    def canvas_path(self, page_name: str, layer: int) -> Path:
        return self.out_dir / f"{safe_name(page_name)}_layer{layer}.png"

    def tile_path(self, page_name: str, index: int, grid_x: int, grid_y: int) -> Path:
        return self.out_dir / f"{safe_name(page_name)}_{index}_{grid_x}_{grid_y}.png"

    def raw_path(self, page_name: str, index: int) -> Path:
        return self.out_dir / f"{safe_name(page_name)}_{index}.raw"

    def write_canvas(self, page_name: str, layer: int, image: Image.Image) -> Path:
        destination = self.canvas_path(page_name, layer)
        image.save(destination, format="PNG")
        return destination

    def write_tile(self, page_name: str, index: int, grid_x: int, grid_y: int, image: Image.Image) -> Path:
        destination = self.tile_path(page_name, index, grid_x, grid_y)
        image.save(destination, format="PNG")
        return destination

    def write_raw(self, page_name: str, index: int, data: bytes) -> Path:
        destination = self.raw_path(page_name, index)
        destination.write_bytes(data)
        return destination

    def __repr__(self) -> str:
        return f"Exporter({os.fspath(self.out_dir)!r})"
