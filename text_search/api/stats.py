"""Search statistics endpoints (DataTables-style JSON pages)."""

import logging
from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, Query, Request

from text_search.api.auth import check_auth
from text_search.constants import DEFAULT_STATS_PAGE_SIZE, DEFAULT_STATS_TIMEZONE
from text_search.db.repository import get_most_wanted, get_search_stats
from text_search.middleware.request_context import client_ip
from text_search.models.search_models import SearchStatsQuery, StatsPage

logger = logging.getLogger(__name__)
router = APIRouter()


def stats_query(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=DEFAULT_STATS_PAGE_SIZE, ge=1, le=1000),
    offset: int | None = Query(default=None, ge=0),
    start_date: date | None = None,
    end_date: date | None = None,
    text: str | None = None,
    ip: str | None = None,
    min_count: int | None = Query(default=None, ge=0),
    max_count: int | None = Query(default=None, ge=0),
    order_by: str | None = None,
    order_dir: Literal["asc", "desc"] = "desc",
    tz: str = DEFAULT_STATS_TIMEZONE,
    draw: int = 0,
) -> SearchStatsQuery:
    """Build the statistics filter from query parameters."""
    return SearchStatsQuery(
        page=page,
        page_size=page_size,
        offset=offset,
        start_date=start_date,
        end_date=end_date,
        text=text,
        ip=ip,
        min_count=min_count,
        max_count=max_count,
        order_by=order_by,
        order_dir=order_dir,
        tz=tz,
        draw=draw,
    )


@router.get("/search-stats", response_model=StatsPage)
def search_stats(
    request: Request,
    auth: str | None = None,
    query: SearchStatsQuery = Depends(stats_query),
):
    """Page of logged queries."""
    check_auth(auth, "/search-stats", client_ip(request))
    page = get_search_stats(query)
    logger.info("Search stats: %d matching queries", page.recordsTotal)
    return page


@router.get("/stats/most-wanted", response_model=StatsPage)
def most_wanted(
    request: Request,
    auth: str | None = None,
    query: SearchStatsQuery = Depends(stats_query),
):
    """Page of the most frequent queries."""
    check_auth(auth, "/stats/most-wanted", client_ip(request))
    return get_most_wanted(query)
