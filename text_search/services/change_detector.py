"""Change detection with HEAD probes and etag comparison.

A record is changed when it has no stored etag or when the live etag differs
from it. The live value is only kept as `pending_etag`: it is committed by
the content extractor once the page text has actually been captured.
"""

import asyncio
from typing import List, Sequence

import httpx
import logfire

from text_search.constants import DEFAULT_PROBE_CONCURRENCY, PROBE_TIMEOUT_SECONDS
from text_search.exceptions import FetchError, InvalidInputError
from text_search.models.page_models import PageOutcome, PageRecord
from text_search.services.catalog import page_url


async def probe_etag(client: httpx.AsyncClient, url: str) -> str:
    """Issue a HEAD request and return the etag header ("" when absent).

    Raises:
        InvalidInputError: If the URL has no http(s) scheme
        FetchError: On transport failures or non-2xx responses
    """
    if not url.startswith(("http://", "https://")):
        raise InvalidInputError(f"Invalid URL: {url}")

    try:
        response = await client.head(url)
    except httpx.HTTPError as e:
        raise FetchError(f"Unable to reach {url}: {e}", url=url) from e

    if not response.is_success:
        raise FetchError(
            f"Unexpected status {response.status_code} for {url}", url=url
        )
    return response.headers.get("etag", "")


class ChangeDetector:
    """Probe catalog pages and flag the ones whose etag changed."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        concurrency: int = DEFAULT_PROBE_CONCURRENCY,
        timeout: float = PROBE_TIMEOUT_SECONDS,
    ):
        """Initialize the detector.

        Args:
            client: Shared httpx client. When None a client is opened per
                `detect()` call.
            concurrency: Max probes in flight at once
            timeout: Timeout of each probe in seconds
        """
        self._client = client
        self._concurrency = max(1, concurrency)
        self._timeout = timeout

    async def _probe_record(
        self,
        client: httpx.AsyncClient,
        semaphore: asyncio.Semaphore,
        base_url: str | None,
        record: PageRecord,
    ) -> PageOutcome | None:
        url = page_url(base_url, record.path)
        async with semaphore:
            try:
                live_etag = await probe_etag(client, url)
            except (InvalidInputError, FetchError) as e:
                logfire.warning(
                    "Page probe failed",
                    url=url,
                    path=record.path,
                    row=record.row_ref,
                    error=str(e),
                )
                return PageOutcome(
                    path=record.path,
                    status="failed",
                    stage="probe",
                    error=str(e),
                    row_ref=record.row_ref,
                )

        record.changed = not record.etag or record.etag != live_etag
        record.pending_etag = live_etag if record.changed else None
        if record.changed:
            logfire.info(
                "Page changed",
                url=url,
                path=record.path,
                old_etag=record.etag,
                new_etag=live_etag,
            )
        return None

    async def detect(
        self, base_url: str | None, records: Sequence[PageRecord]
    ) -> List[PageOutcome]:
        """Probe every enabled record.

        Sets `changed` and `pending_etag` on each record that could be
        probed. Records that fail keep their previous `changed` value.

        Args:
            base_url: Prepended to relative record paths
            records: Catalog records; disabled ones are ignored

        Returns:
            One failure outcome per record that could not be probed
        """
        enabled = [r for r in records if r.enabled]
        semaphore = asyncio.Semaphore(self._concurrency)

        async def run(client: httpx.AsyncClient) -> List[PageOutcome | None]:
            return await asyncio.gather(
                *(self._probe_record(client, semaphore, base_url, r) for r in enabled)
            )

        with logfire.span("Detecting changes", pages=len(enabled)):
            if self._client is not None:
                results = await run(self._client)
            else:
                async with httpx.AsyncClient(
                    timeout=self._timeout, follow_redirects=True
                ) as client:
                    results = await run(client)

        failures = [r for r in results if r is not None]
        logfire.info(
            "Change detection completed",
            probed=len(enabled),
            changed=sum(1 for r in enabled if r.changed),
            failed=len(failures),
        )
        return failures
