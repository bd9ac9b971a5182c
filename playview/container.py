from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import List

from .entities import Container, PageEntry
from .reader import ByteCursor

logger = logging.getLogger(__name__)

CONTAINER_MAGIC = b"TGDT0100"
NAME_SUFFIX = ".gvd"


def read_container(cursor: ByteCursor) -> Container:
    """
    Parse the fixed top-level header and the page directory.

    Layout (big-endian):
        0x00  8B  "TGDT0100"
        0x08  u32 page count
        0x0C  u32 length of the first section (base for all page offsets)
        0x10  page count x {name offset, name length, viewer offset, viewer length}
    """

    cursor.seek(0)
    cursor.expect(CONTAINER_MAGIC, "container magic")
    page_count = cursor.u32("page count")
    first_section_length = cursor.u32("first section length")
    logger.info("Number of pages: %d", page_count)
    logger.debug("First section length: %d", first_section_length)

    pages: List[PageEntry] = []
    for index in range(page_count):
        entry = PageEntry(
            index=index,
            offset_file_name=cursor.u32(f"page {index} name offset"),
            length_file_name=cursor.u32(f"page {index} name length"),
            offset_viewer=cursor.u32(f"page {index} viewer offset"),
            length_viewer=cursor.u32(f"page {index} viewer length"),
        )
        logger.debug(
            "[page %d] name=%d+%d viewer=%d+%d",
            index,
            entry.offset_file_name,
            entry.length_file_name,
            entry.offset_viewer,
            entry.length_viewer,
        )
        pages.append(entry)

    return Container(
        magic=CONTAINER_MAGIC,
        page_count=page_count,
        first_section_length=first_section_length,
        pages=tuple(pages),
    )


def strip_name_suffix(name: str) -> str:
    if name.endswith(NAME_SUFFIX):
        return name[: -len(NAME_SUFFIX)]
    return name


def resolve_page_names(cursor: ByteCursor, container: Container) -> Container:
    resolved: List[PageEntry] = []
    for page in container.pages:
        cursor.seek(container.name_offset(page))
        raw = cursor.read(page.length_file_name, f"page {page.index} name")
        name = strip_name_suffix(raw.decode("utf-8", errors="replace"))
        logger.debug("[page %d] name %r", page.index, name)
        resolved.append(dataclasses.replace(page, name=name))
    return dataclasses.replace(container, pages=tuple(resolved))


def load_container(path: Path) -> Container:
    with Path(path).open("rb") as handle:
        cursor = ByteCursor(handle)
        container = read_container(cursor)
        return resolve_page_names(cursor, container)
