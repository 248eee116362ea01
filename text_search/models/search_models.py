"""Search API and search statistics models."""

from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, Field

from text_search.constants import DEFAULT_STATS_PAGE_SIZE, DEFAULT_STATS_TIMEZONE


class SearchResultItem(BaseModel):
    """Public fields of a ranked search result."""

    url: str
    title: str
    descriptors: str = ""
    lang: str = ""
    score: float | None = Field(
        default=None, description="Match score, 0-100 (only when enabled)"
    )


class SearchLogCreate(BaseModel):
    """Parameters for logging a served query."""

    text: str = Field(..., description="Query string as received")
    ip: str = Field(..., description="Client origin")
    num_results: int = Field(..., ge=0, description="Number of results returned")


class SearchStatsQuery(BaseModel):
    """Filters and paging for the statistics listings.

    Dates are calendar days in `tz`; `end_date` is inclusive.
    """

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=DEFAULT_STATS_PAGE_SIZE, ge=1, le=1000)
    offset: int | None = Field(default=None, ge=0)
    start_date: date | None = None
    end_date: date | None = None
    text: str | None = None
    ip: str | None = None
    min_count: int | None = Field(
        default=None, ge=0, description="num_results (listing) or num_searches (most wanted)"
    )
    max_count: int | None = Field(default=None, ge=0)
    order_by: str | None = None
    order_dir: Literal["asc", "desc"] = "desc"
    tz: str = Field(
        default=DEFAULT_STATS_TIMEZONE, description="Time zone of start_date and end_date"
    )
    draw: int = 0

    @property
    def effective_offset(self) -> int:
        if self.offset is not None:
            return self.offset
        return (self.page - 1) * self.page_size


class StatsPage(BaseModel):
    """DataTables-style page of statistics rows."""

    draw: int = 0
    recordsTotal: int
    recordsFiltered: int
    data: list[dict[str, Any]]

