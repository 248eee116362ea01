"""Text extraction for changed catalog pages."""

from typing import AbstractSet, List, Sequence

import logfire

from text_search.exceptions import FetchError, InvalidInputError
from text_search.models.page_models import PageOutcome, PageRecord
from text_search.services.catalog import page_url
from text_search.services.renderer import PageRenderer
from text_search.services.tokenizer import normalize


class ContentExtractor:
    """Render changed pages and compute their normalized text.

    Records are processed one at a time against the same renderer session.
    """

    def __init__(
        self, renderer: PageRenderer, stop_words: AbstractSet[str] | None = None
    ):
        self._renderer = renderer
        self._stop_words = stop_words

    async def extract(self, base_url: str | None, record: PageRecord) -> None:
        """Fill title, normalized text and etag of one changed record.

        Nothing on the record is modified unless the page was rendered and
        its body read.

        Raises:
            InvalidInputError: If the page URL has no http(s) scheme
            FetchError: If the page cannot be rendered or has no body
        """
        url = page_url(base_url, record.path)
        if not url.startswith(("http://", "https://")):
            raise InvalidInputError(f"Invalid URL: {url}")

        await self._renderer.navigate(url, record.allow_scripts)
        body = await self._renderer.get_body_text()
        title = record.title or (await self._renderer.get_title()).strip()

        text = normalize(
            f"{title} {body} {record.descriptors or ''}", self._stop_words
        )

        record.title = title
        record.normalized_text = text
        if record.pending_etag is not None:
            record.etag = record.pending_etag
            record.pending_etag = None

    async def extract_all(
        self, base_url: str | None, records: Sequence[PageRecord]
    ) -> tuple[List[PageRecord], List[PageOutcome]]:
        """Extract every enabled, changed record.

        Returns:
            Tuple of (records extracted, failure outcomes). Failed records
            keep `changed` set and their previous etag and text.
        """
        extracted: List[PageRecord] = []
        failures: List[PageOutcome] = []
        for record in records:
            if not (record.enabled and record.changed):
                continue
            try:
                await self.extract(base_url, record)
            except (InvalidInputError, FetchError) as e:
                logfire.warning(
                    "Page extraction failed",
                    path=record.path,
                    row=record.row_ref,
                    error=str(e),
                )
                failures.append(
                    PageOutcome(
                        path=record.path,
                        status="failed",
                        stage="extract",
                        error=str(e),
                        row_ref=record.row_ref,
                    )
                )
                continue
            logfire.info(
                "Page text extracted",
                path=record.path,
                words=len(record.normalized_text.split()),
            )
            extracted.append(record)
        return extracted, failures
