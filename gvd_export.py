#!/usr/bin/env python3
"""
Export the images stored in a PlayView gvd.dat container.

Every page's tiles are decoded and stitched onto one PNG per layer, or written
one PNG per tile with --no-merge. Payloads that are not JPEG are dumped as
.raw files next to the images for later inspection. Example:

    python gvd_export.py --in gvd.dat --out out --layer 0
    python gvd_export.py --in gvd.dat --page MAP01 --layer -1 --no-hidden
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from playview import ALL_LAYERS, ExportOptions, Exporter, PlayViewError, export_container, setup_logging


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export images from a PlayView gvd.dat container.")
    parser.add_argument("--in", dest="input", type=Path, default=Path("gvd.dat"), help="Path to gvd.dat (default gvd.dat)")
    parser.add_argument("--out", type=Path, default=Path("out"), help="Output directory (default out)")
    parser.add_argument(
        "--layer",
        type=int,
        default=0,
        help=f"Layer to export, 0 is the most detailed (default 0, {ALL_LAYERS} exports all)",
    )
    parser.add_argument("--page", default="", help="Only export the page with this name (default: all pages)")
    parser.add_argument(
        "--merge",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Stitch tiles into one image per page and layer (default on)",
    )
    parser.add_argument(
        "--hidden",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Use the hidden high-detail image of dual-image tiles (default on)",
    )
    parser.add_argument("--workers", type=int, default=1, help="Pages processed in parallel (default 1)")
    parser.add_argument(
        "--skip-bad-pages",
        action="store_true",
        help="Log malformed pages and continue instead of aborting the run",
    )
    parser.add_argument("--debug", action="store_true", help="Output more log data")
    parser.add_argument("--log-file", type=Path, help="Also write the log to this file")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.debug else logging.INFO, args.log_file)

    try:
        options = ExportOptions(
            layer=args.layer,
            page=args.page or None,
            merge=args.merge,
            reveal_hidden=args.hidden,
            workers=args.workers,
            skip_bad_pages=args.skip_bad_pages,
        )
    except ValueError as exc:
        raise SystemExit(f"[!] {exc}") from exc

    try:
        results = export_container(args.input, options, Exporter(args.out))
    except (PlayViewError, OSError) as exc:
        print(f"[!] {args.input}: {exc}", file=sys.stderr)
        return 1

    failed = 0
    for result in results:
        if result.error is not None:
            failed += 1
            print(f"[!] {result.name}: {result.error}", file=sys.stderr)
            continue
        print(
            f"[+] {result.name}: {result.tiles_placed}/{result.tiles_selected} tiles, "
            f"{result.raw_dumps} raw, {result.overlaps} overlaps, {len(result.artifacts)} files"
        )
    print(f"[+] {len(results) - failed} page(s) exported to {args.out}")
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
