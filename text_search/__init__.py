"""Spreadsheet-driven site crawler and fuzzy full-text search service."""

from text_search.constants import SERVICE_VERSION

__version__ = SERVICE_VERSION
