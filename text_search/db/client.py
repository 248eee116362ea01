"""Supabase client initialization."""

from supabase import Client, create_client

from text_search.config import get_settings
from text_search.exceptions import InvalidInputError


def get_supabase_client() -> Client:
    """Get Supabase client instance.

    Raises:
        InvalidInputError: If the Supabase URL or service key is not set
    """
    settings = get_settings()
    if not settings.stats_enabled:
        raise InvalidInputError("Search statistics are not configured!")
    return create_client(settings.supabase_url, settings.supabase_service_key)
