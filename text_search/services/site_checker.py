"""Crawl cycle: detect changed pages, extract their text and write it back."""

from typing import AbstractSet, Callable, List

import httpx
import logfire

from text_search.config import Settings
from text_search.exceptions import InvalidInputError, SheetsError
from text_search.models.page_models import CrawlReport, PageOutcome, PageRecord
from text_search.services.catalog import (
    crawl_columns,
    records_from_sheet,
    require_catalog_location,
)
from text_search.services.change_detector import ChangeDetector
from text_search.services.content_extractor import ContentExtractor
from text_search.services.renderer import ChromePageRenderer, PageRenderer
from text_search.services.tokenizer import load_stop_words
from text_search.sheets.client import TableStore

RendererFactory = Callable[[], PageRenderer]


def _default_renderer_factory(settings: Settings) -> RendererFactory:
    return lambda: ChromePageRenderer(timeout=settings.browser_page_load_timeout_seconds)


async def _write_back(
    store: TableStore,
    spreadsheet_id: str,
    page: str,
    record: PageRecord,
    columns: dict[str, int],
) -> None:
    values = {columns["etag"]: record.etag}
    if "text" in columns:
        values[columns["text"]] = record.normalized_text
    await store.write_cells(spreadsheet_id, page, record.row_ref, values)


async def check_site(
    settings: Settings,
    store: TableStore,
    renderer_factory: RendererFactory | None = None,
    client: httpx.AsyncClient | None = None,
    stop_words: AbstractSet[str] | None = None,
) -> CrawlReport:
    """Run one crawl cycle over the catalog sheet.

    Args:
        settings: Application settings
        store: Catalog table storage
        renderer_factory: Builds the browser session, only called when
            some page changed
        client: httpx client used for the HEAD probes
        stop_words: Stop words for normalization (defaults to the configured set)

    Returns:
        CrawlReport with totals and per-page outcomes

    Raises:
        InvalidInputError: If the base URL or the spreadsheet is not configured
        SchemaError: If the sheet lacks the etag (or text) column
        SheetsError: If the sheet cannot be read
    """
    if not settings.base_url:
        raise InvalidInputError("Base URL not set!")
    spreadsheet_id, page = require_catalog_location(settings)

    with logfire.span("Checking site", spreadsheet_id=spreadsheet_id, page=page):
        sheet = await store.read(spreadsheet_id, page)
        required = crawl_columns(settings)
        records = records_from_sheet(sheet, required)
        columns = {name: sheet.column_index(name) for name in required}

        report = CrawlReport(total_rows=len(records))
        enabled = [r for r in records if r.enabled]
        report.outcomes.extend(
            PageOutcome(path=r.path, status="skipped", row_ref=r.row_ref)
            for r in records
            if not r.enabled
        )

        detector = ChangeDetector(
            client=client,
            concurrency=settings.probe_concurrency,
            timeout=settings.probe_timeout_seconds,
        )
        probe_failures = await detector.detect(settings.base_url, enabled)
        report.outcomes.extend(probe_failures)
        failed_rows = {o.row_ref for o in probe_failures}
        report.probed = len(enabled) - len(probe_failures)

        changed = [r for r in enabled if r.changed and r.row_ref not in failed_rows]
        report.changed = len(changed)
        report.outcomes.extend(
            PageOutcome(path=r.path, status="unchanged", row_ref=r.row_ref)
            for r in enabled
            if not r.changed and r.row_ref not in failed_rows
        )

        if not changed:
            logfire.info("No changed pages", summary=report.summary())
            return report

        if stop_words is None:
            stop_words = load_stop_words(settings.stopwords_path)
        factory = renderer_factory or _default_renderer_factory(settings)
        renderer = factory()
        try:
            extracted, extract_failures = await ContentExtractor(
                renderer, stop_words
            ).extract_all(settings.base_url, changed)
        finally:
            await renderer.dispose()
        report.extracted = len(extracted)
        report.outcomes.extend(extract_failures)

        outcomes: List[PageOutcome] = []
        for record in extracted:
            try:
                await _write_back(store, spreadsheet_id, page, record, columns)
            except SheetsError as e:
                logfire.error(
                    "Unable to write page data",
                    path=record.path,
                    row=record.row_ref,
                    error=str(e),
                )
                outcomes.append(
                    PageOutcome(
                        path=record.path,
                        status="failed",
                        stage="write",
                        error=str(e),
                        row_ref=record.row_ref,
                    )
                )
                continue
            record.changed = False
            report.written += 1
            outcomes.append(
                PageOutcome(path=record.path, status="updated", row_ref=record.row_ref)
            )
        report.outcomes.extend(outcomes)

    logfire.info(report.summary())
    return report
