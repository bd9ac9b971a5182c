from __future__ import annotations

import enum
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .compositor import Compositor, decode_tile
from .config import ExportOptions
from .container import load_container
from .entities import Container, ImageType, PageEntry
from .errors import DecodeError, PlayViewError
from .export import Exporter
from .reader import ByteCursor
from .tiles import iter_tile_payloads
from .viewer import read_tile_section, read_viewer_header

logger = logging.getLogger(__name__)


class PageState(enum.Enum):
    IDLE = "idle"
    HEADER_PARSED = "header_parsed"
    TILE_TABLE_PARSED = "tile_table_parsed"
    STREAMING_PAYLOADS = "streaming_payloads"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PageResult:
    index: int
    name: str
    state: PageState = PageState.IDLE
    image_type: Optional[ImageType] = None
    tiles_total: int = 0
    tiles_selected: int = 0
    tiles_decoded: int = 0
    tiles_placed: int = 0
    raw_dumps: int = 0
    overlaps: int = 0
    artifacts: List[Path] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def has_output(self) -> bool:
        return self.tiles_decoded > 0


def process_page(
    path: Path,
    container: Container,
    page: PageEntry,
    options: ExportOptions,
    exporter: Exporter,
) -> PageResult:
    """
    Run one page from its viewer block to its exported artifacts.

    The page gets its own read handle; every read after the initial seek goes
    through that single cursor in file order.
    """

    result = PageResult(index=page.index, name=page.label)
    logger.info("  > Handle [%s]", page.label)
    try:
        with Path(path).open("rb") as handle:
            cursor = ByteCursor(handle)
            cursor.seek(container.viewer_offset(page))
            header = read_viewer_header(cursor)
            result.image_type = header.image_type
            result.state = PageState.HEADER_PARSED

            block = read_tile_section(cursor, header, page.label)
            result.tiles_total = len(block.tiles)
            result.state = PageState.TILE_TABLE_PARSED
            logger.info("   .. Type [%s] %dx%d, %d tiles", header.image_type.value, header.width, header.height, len(block.tiles))

            compositor = Compositor(page.label, header.width, header.height)
            result.state = PageState.STREAMING_PAYLOADS
            for payload in iter_tile_payloads(
                cursor,
                block,
                layer=options.layer,
                reveal_hidden=options.reveal_hidden,
            ):
                tile = payload.descriptor
                result.tiles_selected += 1
                try:
                    raster = decode_tile(payload.data)
                except DecodeError as exc:
                    logger.warning("[%s] tile %d is not a JPEG (%s); dumping raw bytes", page.label, tile.index, exc)
                    result.artifacts.append(exporter.write_raw(page.label, tile.index, payload.data))
                    result.raw_dumps += 1
                    continue

                result.tiles_decoded += 1
                if compositor.note_grid(tile):
                    result.overlaps += 1
                if options.merge:
                    if compositor.place(tile, raster):
                        result.tiles_placed += 1
                else:
                    result.artifacts.append(
                        exporter.write_tile(page.label, tile.index, tile.grid_x, tile.grid_y, raster)
                    )
                    result.tiles_placed += 1

        for layer, canvas in compositor.canvases():
            result.artifacts.append(exporter.write_canvas(page.label, layer, canvas))
    except (PlayViewError, OSError) as exc:
        result.state = PageState.FAILED
        result.error = exc
        if not options.skip_bad_pages:
            raise
        logger.error("[%s] skipped after %s: %s", page.label, type(exc).__name__, exc)
        return result

    result.state = PageState.DONE
    logger.info("   .. Exported [%s] (%d placed, %d raw)", page.label, result.tiles_placed, result.raw_dumps)
    return result


def select_pages(container: Container, options: ExportOptions) -> List[PageEntry]:
    return [page for page in container.pages if options.wants_page(page.name)]


def export_container(
    path: Path,
    options: ExportOptions | None = None,
    exporter: Exporter | None = None,
    *,
    out_dir: Path | None = None,
) -> List[PageResult]:
    """
    Export every selected page of ``path``. Results come back in directory
    order regardless of how many workers ran.
    """

    options = options or ExportOptions()
    if exporter is None:
        exporter = Exporter(out_dir if out_dir is not None else Path("out"))
    exporter.ensure_dir()

    container = load_container(path)
    pages = select_pages(container, options)
    if options.page and not pages:
        logger.warning("no page named %r in %s", options.page, path)

    if options.workers == 1:
        results = [process_page(path, container, page, options, exporter) for page in pages]
    else:
        results = _run_parallel(path, container, pages, options, exporter)
    logger.info(" >> Pages done.")
    return results


def _run_parallel(
    path: Path,
    container: Container,
    pages: List[PageEntry],
    options: ExportOptions,
    exporter: Exporter,
) -> List[PageResult]:
    results: List[PageResult] = []
    executor = ThreadPoolExecutor(max_workers=options.workers, thread_name_prefix="gvd-page")
    try:
        futures: List[Future[PageResult]] = [
            executor.submit(process_page, path, container, page, options, exporter) for page in pages
        ]
        for future in futures:
            results.append(future.result())
    except BaseException:
        # First fatal page error wins; pages not yet started are dropped.
        executor.shutdown(wait=True, cancel_futures=True)
        raise
    executor.shutdown(wait=True)
    return results
