#!/usr/bin/env python3
"""
Read-only dump of a gvd.dat container: page directory, resolved names, viewer
headers and (optionally) every tile descriptor.

Usage:
    python gvd_inspect.py gvd.dat [--tiles] [--json manifest.json]
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, Sequence

from playview import ByteCursor, PlayViewError, parse_viewer, read_container, resolve_page_names


def summarize(path: Path) -> Dict[str, Any]:
    with path.open("rb") as handle:
        cursor = ByteCursor(handle)
        container = resolve_page_names(cursor, read_container(cursor))
        pages = []
        for page in container.pages:
            block = parse_viewer(cursor, container, page)
            header = block.header
            pages.append(
                {
                    "index": page.index,
                    "name": page.name,
                    "name_offset": container.name_offset(page),
                    "viewer_offset": container.viewer_offset(page),
                    "viewer_length": page.length_viewer,
                    "image_type": header.image_type.value,
                    "width": header.width,
                    "height": header.height,
                    "entry_stride": header.entry_stride,
                    "tile_count": len(block.tiles),
                    "layers": sorted({tile.layer for tile in block.tiles}),
                    "payload_offset": block.payload_offset,
                    "total_payload_bytes": block.total_payload_bytes,
                    "tiles": [
                        {
                            "index": tile.index,
                            "grid": [tile.grid_x, tile.grid_y],
                            "layer": tile.layer,
                            "payload_length": tile.payload_length,
                            "padding_length": tile.padding_length,
                            "reserved": tile.reserved,
                            "size": [tile.width, tile.height],
                        }
                        for tile in block.tiles
                    ],
                }
            )
    return {
        "source": str(path),
        "size_bytes": path.stat().st_size,
        "page_count": container.page_count,
        "first_section_length": container.first_section_length,
        "pages": pages,
    }


def print_summary(summary: Dict[str, Any], *, show_tiles: bool = False) -> None:
    print(f"{summary['source']}: {summary['size_bytes']} bytes, {summary['page_count']} page(s)")
    print(f"  first section length: {summary['first_section_length']}")
    for page in summary["pages"]:
        print(
            f"  [{page['index']}] {page['name']!r} type={page['image_type']} "
            f"{page['width']}x{page['height']} tiles={page['tile_count']} layers={page['layers']} "
            f"viewer=0x{page['viewer_offset']:X} payload=0x{page['payload_offset']:X}"
        )
        if not show_tiles:
            continue
        for tile in page["tiles"]:
            print(
                f"      tile {tile['index']:4d} grid=({tile['grid'][0]},{tile['grid'][1]}) "
                f"layer={tile['layer']} len={tile['payload_length']} pad={tile['padding_length']} "
                f"size={tile['size'][0]}x{tile['size'][1]}"
            )


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Inspect the structure of a gvd.dat container.")
    parser.add_argument("input", type=Path, help="Path to gvd.dat")
    parser.add_argument("--tiles", action="store_true", help="List every tile descriptor")
    parser.add_argument("--json", type=Path, help="Optional path to write a JSON summary")
    args = parser.parse_args(argv)

    try:
        summary = summarize(args.input)
    except (PlayViewError, OSError) as exc:
        print(f"[!] {args.input}: {exc}", file=sys.stderr)
        return 1

    print_summary(summary, show_tiles=args.tiles)
    if args.json:
        args.json.parent.mkdir(parents=True, exist_ok=True)
        args.json.write_text(json.dumps(summary, indent=2), encoding="utf-8")
        print(f"[+] JSON summary written to {args.json}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
