"""Data models for pages, crawl results and the search API."""
