"""Query log storage (Supabase) and migrations."""

from text_search.db.query_executor import timed_query
from text_search.db.repository import get_most_wanted, get_search_stats, log_search

__all__ = [
    "timed_query",
    "log_search",
    "get_search_stats",
    "get_most_wanted",
]
