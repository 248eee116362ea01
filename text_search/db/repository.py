"""Search query log and statistics repository."""

from datetime import date, datetime, time, timedelta
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import logfire

from text_search.config import get_settings
from text_search.constants import MOST_WANTED_FUNCTION, SEARCHES_TABLE
from text_search.db.client import get_supabase_client
from text_search.db.query_executor import timed_query
from text_search.exceptions import InvalidInputError
from text_search.models.search_models import SearchLogCreate, SearchStatsQuery, StatsPage

SEARCH_COLUMNS = ("id", "text", "ip", "num_results", "created_at")

MOST_WANTED_COLUMNS = ("text", "num_searches", "last_search_at")

_EARLIEST_DATE = date(1900, 1, 1)


def log_search(entry: SearchLogCreate) -> bool:
    """
    Store one served query.

    Failures are logged and never raised: serving a query must not depend
    on the stats store.

    Returns:
        True if the query was stored
    """
    if not get_settings().stats_enabled:
        logfire.debug("Search statistics disabled, query not logged")
        return False

    try:
        with timed_query("insert", SEARCHES_TABLE) as call:
            supabase = get_supabase_client()
            supabase.table(SEARCHES_TABLE).insert(
                {
                    "text": entry.text,
                    "ip": entry.ip,
                    "num_results": entry.num_results,
                }
            ).execute()
            call.rows = 1
    except Exception as e:
        logfire.warning("Unable to log search query", error=str(e))
        return False
    return True


def date_range(query: SearchStatsQuery) -> tuple[str, str]:
    """
    ISO timestamps [start, end) of the query's date range.

    Missing dates default to 1900-01-01 and today; one day is added to the
    end date so that it is inclusive. Days are taken in `query.tz`.
    """
    try:
        tz = ZoneInfo(query.tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidInputError(f"Invalid time zone: {query.tz}") from e

    start_day = query.start_date or _EARLIEST_DATE
    end_day = (query.end_date or datetime.now(tz).date()) + timedelta(days=1)
    start = datetime.combine(start_day, time.min, tzinfo=tz)
    end = datetime.combine(end_day, time.min, tzinfo=tz)
    return start.isoformat(), end.isoformat()


def _order_column(query: SearchStatsQuery, allowed: tuple[str, ...], default: str) -> str:
    column = query.order_by or default
    if column not in allowed:
        raise InvalidInputError(f"Invalid order column: {column}")
    return column


def get_search_stats(query: SearchStatsQuery) -> StatsPage:
    """
    Page of logged queries matching the filters.

    Raises:
        InvalidInputError: If stats are not configured or a filter is invalid
    """
    start, end = date_range(query)
    order_by = _order_column(query, SEARCH_COLUMNS, "created_at")
    offset = query.effective_offset
    supabase = get_supabase_client()

    with timed_query(
        "select",
        SEARCHES_TABLE,
        start=start,
        end=end,
        text=query.text,
        ip=query.ip,
        min_count=query.min_count,
        max_count=query.max_count,
        offset=offset,
    ) as call:
        request = (
            supabase.table(SEARCHES_TABLE)
            .select(",".join(SEARCH_COLUMNS), count="exact")
            .gte("created_at", start)
            .lt("created_at", end)
        )
        if query.text:
            request = request.ilike("text", f"%{query.text}%")
        if query.ip:
            request = request.ilike("ip", f"%{query.ip}%")
        if query.min_count is not None:
            request = request.gte("num_results", query.min_count)
        if query.max_count is not None:
            request = request.lte("num_results", query.max_count)
        result = (
            request.order(order_by, desc=query.order_dir == "desc")
            .range(offset, offset + query.page_size - 1)
            .execute()
        )
        call.rows = len(result.data or [])

    rows = list(result.data or [])
    total = result.count if result.count is not None else len(rows)
    return StatsPage(draw=query.draw, recordsTotal=total, recordsFiltered=total, data=rows)


def get_most_wanted(query: SearchStatsQuery) -> StatsPage:
    """
    Page of the most frequent queries, grouped case-insensitively.

    `min_count` / `max_count` filter on the number of searches.

    Raises:
        InvalidInputError: If stats are not configured or a filter is invalid
    """
    start, end = date_range(query)
    order_by = _order_column(query, MOST_WANTED_COLUMNS, "num_searches")
    supabase = get_supabase_client()

    params: dict[str, Any] = {
        "start_at": start,
        "end_at": end,
        "text_filter": query.text or None,
        "min_count": query.min_count,
        "max_count": query.max_count,
        "order_by": order_by,
        "order_dir": query.order_dir,
        "page_limit": query.page_size,
        "page_offset": query.effective_offset,
    }
    with timed_query("rpc", MOST_WANTED_FUNCTION, **params) as call:
        result = supabase.rpc(MOST_WANTED_FUNCTION, params).execute()
        call.rows = len(result.data or [])

    rows = list(result.data or [])
    total = int(rows[0]["total_count"]) if rows else 0
    data = [{k: row.get(k) for k in MOST_WANTED_COLUMNS} for row in rows]
    return StatsPage(draw=query.draw, recordsTotal=total, recordsFiltered=total, data=data)
