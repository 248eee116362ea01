"""Admin endpoints: rebuild the search index and run a crawl cycle.

Both require the shared secret in the `auth` query parameter and answer in
plain text.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from text_search.api.auth import check_auth
from text_search.config import get_settings
from text_search.middleware.request_context import client_ip
from text_search.services.search_index import rebuild_search_engine
from text_search.services.site_checker import check_site
from text_search.sheets.client import build_sheets_store

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/refresh", response_class=PlainTextResponse)
async def refresh(request: Request, auth: str | None = None):
    """Reload the catalog and swap in a freshly built search index."""
    check_auth(auth, "/refresh", client_ip(request))
    settings = get_settings()
    store = build_sheets_store(settings)
    index = await rebuild_search_engine(store, settings)
    logger.info("Search engine rebuilt with %d pages", len(index))
    return f"The search engine has been rebuilt with {len(index)} pages"


@router.get("/build-index", response_class=PlainTextResponse)
async def build_index(request: Request, auth: str | None = None):
    """Run a crawl cycle and report what changed."""
    check_auth(auth, "/build-index", client_ip(request))
    settings = get_settings()
    store = build_sheets_store(settings)
    report = await check_site(settings, store)
    lines = [report.summary()]
    lines.extend(f"{o.path}: {o.stage} failed: {o.error}" for o in report.failed)
    return "\n".join(lines)
