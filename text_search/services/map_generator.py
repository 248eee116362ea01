"""Generate the catalog sheet from the Edu365 map spreadsheet."""

import asyncio
import time
from typing import Any, List

import logfire

from text_search.config import Settings
from text_search.constants import CATALOG_COLUMNS, MAP_SOURCE_COLUMNS
from text_search.exceptions import InvalidInputError
from text_search.models.page_models import SheetData
from text_search.services.catalog import require_catalog_location
from text_search.sheets.client import TableStore


def _cell(row: dict[str, Any], column: str) -> str:
    value = row.get(column)
    return str(value).strip() if value is not None else ""


def map_rows(sheet: SheetData, stage: str, language: str) -> List[List[Any]]:
    """Catalog rows for the activities of one map sheet.

    Rows without a Url or an Activitat are ignored.
    """
    url_col, title_col, area_col, descriptors_col = MAP_SOURCE_COLUMNS
    rows = []
    for row in sheet.rows:
        url = _cell(row, url_col)
        title = _cell(row, title_col)
        if not url or not title:
            continue
        rows.append(
            [
                True,
                url,
                False,
                title,
                _cell(row, area_col),
                _cell(row, descriptors_col),
                stage,
                language,
                "",
                "",
            ]
        )
    return rows


async def generate_map(settings: Settings, store: TableStore) -> int:
    """Rewrite the catalog sheet with the activities of the map spreadsheet.

    Returns:
        Number of activity rows written

    Raises:
        InvalidInputError: If the map or catalog spreadsheet is not configured
    """
    if not settings.map_spreadsheet_id:
        raise InvalidInputError("Map spreadsheet ID not set!")
    dest_id, dest_page = require_catalog_location(settings)
    start_time = time.time()

    source, dest = await asyncio.gather(
        store.get_title_and_url(settings.map_spreadsheet_id),
        store.get_title_and_url(dest_id),
    )
    logfire.info("Starting map generation", source=source["title"], source_url=source["url"])
    logfire.info("Map destination", destination=dest["title"], destination_url=dest["url"])

    pages = list(settings.map_source_pages)
    sheets = await asyncio.gather(
        *(store.read(settings.map_spreadsheet_id, page) for page in pages)
    )

    rows: List[List[Any]] = [list(CATALOG_COLUMNS)]
    for page, sheet in zip(pages, sheets):
        page_rows = map_rows(sheet, page, settings.default_language)
        logfire.info("Map page processed", page=page, items=len(page_rows))
        rows.extend(page_rows)

    logfire.info("Cleaning destination sheet", page=dest_page)
    await store.clear(dest_id, dest_page)
    await store.write_rows(dest_id, dest_page, rows)

    items = len(rows) - 1
    logfire.info(
        "Map generation finished",
        items=items,
        elapsed_seconds=round(time.time() - start_time, 2),
    )
    return items
