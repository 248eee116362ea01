"""Public search endpoint."""

import logging

from fastapi import APIRouter, BackgroundTasks, Request

from text_search.config import get_settings
from text_search.db.repository import log_search
from text_search.middleware.request_context import client_ip
from text_search.models.search_models import SearchLogCreate, SearchResultItem
from text_search.services.search_index import SearchHit, get_search_engine

logger = logging.getLogger(__name__)
router = APIRouter()


def _result_item(hit: SearchHit, include_score: bool) -> SearchResultItem:
    return SearchResultItem(
        url=hit.entry.url,
        title=hit.entry.title,
        descriptors=hit.entry.descriptors,
        lang=hit.entry.language,
        score=hit.score if include_score else None,
    )


@router.get(
    "/search",
    response_model=list[SearchResultItem],
    response_model_exclude_none=True,
)
def search(request: Request, background_tasks: BackgroundTasks, q: str = ""):
    """
    Ranked pages matching `q`.

    The query is truncated to `query_max_length`. Returns an empty list for
    an empty query or while the search index is not built. Served queries
    are logged to the stats store after the response is sent.
    """
    settings = get_settings()
    query = q[: settings.query_max_length].strip()
    if not query:
        return []

    engine = get_search_engine()
    if not engine.is_ready:
        logger.warning("Search requested before the index was built")
    hits = engine.search(query)
    results = [_result_item(hit, settings.search_include_score) for hit in hits]

    ip = getattr(request.state, "client_ip", None) or client_ip(request)
    logger.info("Search '%s' from %s: %d results", query, ip, len(results))
    background_tasks.add_task(
        log_search, SearchLogCreate(text=query, ip=ip, num_results=len(results))
    )
    return results
