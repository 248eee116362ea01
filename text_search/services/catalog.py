"""Catalog assembly: sheet rows to page records and search entries."""

from typing import Any, Iterable, List, Sequence

import logfire

from text_search.config import Settings
from text_search.constants import ROW_REF_FIELD
from text_search.exceptions import InvalidInputError, SchemaError
from text_search.models.page_models import PageRecord, SearchIndexEntry, SheetData
from text_search.sheets.client import TableStore


def page_url(base_url: str | None, path: str) -> str:
    """Full URL of a catalog path.

    Absolute paths (as written by the map generator) are used as they are,
    anything else is appended to `base_url`.
    """
    path = (path or "").strip()
    if path.startswith(("http://", "https://")):
        return path
    return f"{base_url or ''}{path}"


def require_columns(sheet: SheetData, columns: Iterable[str]) -> None:
    """Fail with SchemaError unless every column is in the header row."""
    for column in columns:
        if sheet.column_index(column) < 1:
            raise SchemaError(column)


def crawl_columns(settings: Settings) -> List[str]:
    """Columns the crawl cycle writes back to."""
    columns = ["etag"]
    if settings.write_back_text:
        columns.append("text")
    return columns


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    return str(value).strip()


def record_from_row(row: dict[str, Any]) -> PageRecord:
    """Build a PageRecord from one sheet row."""
    record = PageRecord(
        path=_text(row.get("path")),
        enabled=row.get("enabled") is True,
        allow_scripts=row.get("js") is True,
        title=_text(row.get("title")),
        descriptors=_text(row.get("descriptors")),
        language=_text(row.get("lang")),
        etag=_text(row.get("etag")),
        normalized_text=_text(row.get("text")),
        url=_text(row.get("url")),
        row_ref=row.get(ROW_REF_FIELD),
    )
    if record.enabled and not record.path:
        logfire.warning(
            'Row has no "path" and will be skipped',
            row=record.row_ref,
        )
        record.enabled = False
    return record


def records_from_sheet(
    sheet: SheetData, required_columns: Sequence[str] = ("etag",)
) -> List[PageRecord]:
    """Convert a catalog sheet into page records.

    The header is checked for `required_columns` before any row is read.

    Raises:
        SchemaError: If a required column is missing
    """
    require_columns(sheet, required_columns)
    records = [record_from_row(row) for row in sheet.rows]
    logfire.info(
        "Catalog loaded",
        rows=len(records),
        enabled=sum(1 for r in records if r.enabled),
    )
    return records


def search_entries(
    sheet: SheetData, base_url: str | None = None, require_text: bool = True
) -> tuple[SearchIndexEntry, ...]:
    """Snapshot the searchable pages of a catalog sheet.

    Keeps enabled rows with a url (or a path to build one from) and, when
    `require_text` is set, some extracted text.
    """
    records = records_from_sheet(sheet, ("text",) if require_text else ())
    entries = []
    for record in records:
        if not record.enabled:
            continue
        url = record.url or page_url(base_url, record.path)
        if not url or (require_text and not record.normalized_text):
            continue
        entries.append(
            SearchIndexEntry(
                url=url,
                title=record.title or url,
                descriptors=record.descriptors,
                language=record.language,
                text=record.normalized_text,
            )
        )
    logfire.info("Pages available for full-text search", count=len(entries))
    return tuple(entries)


def require_catalog_location(settings: Settings) -> tuple[str, str]:
    """Spreadsheet ID and sheet name of the catalog, or InvalidInputError."""
    if not settings.spreadsheet_id or not settings.spreadsheet_page:
        raise InvalidInputError("Invalid spreadsheet ID or range!")
    return settings.spreadsheet_id, settings.spreadsheet_page


async def load_search_entries(
    settings: Settings, store: TableStore
) -> tuple[SearchIndexEntry, ...]:
    """Read the catalog sheet and return the entries to index."""
    spreadsheet_id, page = require_catalog_location(settings)
    logfire.info("Getting the list of site pages", spreadsheet_id=spreadsheet_id, page=page)
    sheet = await store.read(spreadsheet_id, page)
    return search_entries(sheet, settings.base_url, settings.search_require_text)
