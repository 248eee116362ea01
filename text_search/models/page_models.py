"""Models for catalog pages, sheet tables and crawl results."""

from dataclasses import dataclass, field
from typing import Any, List, Literal


@dataclass
class SheetData:
    """Content of a sheet read with its first row as field names.

    Each row is a dict keyed by header name. "TRUE"/"FALSE" cells are
    already booleans and every row carries its 1-based row number in `_row`.
    """

    keys: List[str]
    rows: List[dict[str, Any]]

    def column_index(self, name: str) -> int:
        """1-based column index of `name`, or 0 if the header lacks it."""
        try:
            return self.keys.index(name) + 1
        except ValueError:
            return 0


@dataclass
class PageRecord:
    """One tracked page of the site catalog.

    `etag` and `normalized_text` are only ever replaced together, when a
    successful extraction commits `pending_etag`. `changed` is transient:
    set by change detection, cleared after a successful write-back.
    """

    path: str
    enabled: bool = True
    allow_scripts: bool = False
    title: str = ""
    descriptors: str = ""
    language: str = ""
    etag: str = ""
    normalized_text: str = ""
    url: str = ""
    row_ref: int | None = None
    changed: bool = False
    pending_etag: str | None = None


@dataclass(frozen=True)
class SearchIndexEntry:
    """Read-only copy of the page fields used for matching."""

    url: str = ""
    title: str = ""
    descriptors: str = ""
    language: str = ""
    text: str = ""


PageStatus = Literal["unchanged", "updated", "failed", "skipped"]


@dataclass
class PageOutcome:
    """Result of one record in a crawl cycle."""

    path: str
    status: PageStatus
    stage: str | None = None
    error: str | None = None
    row_ref: int | None = None


@dataclass
class CrawlReport:
    """Totals and per-record outcomes of a crawl cycle."""

    total_rows: int = 0
    probed: int = 0
    changed: int = 0
    extracted: int = 0
    written: int = 0
    outcomes: List[PageOutcome] = field(default_factory=list)

    @property
    def failed(self) -> List[PageOutcome]:
        return [o for o in self.outcomes if o.status == "failed"]

    def summary(self) -> str:
        return (
            f"{self.total_rows} pages have been processed: "
            f"{self.changed} changed, {self.written} updated, "
            f"{len(self.failed)} failed"
        )
