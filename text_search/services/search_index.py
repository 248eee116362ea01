"""Fuzzy full-text search over the page catalog.

A `SearchIndex` owns an immutable snapshot of the catalog entries and is
never modified after construction. `SearchEngine` holds the index currently
in use: a rebuild constructs a new index and replaces the reference, so
queries already running keep reading the snapshot they started with.
"""

import asyncio
from dataclasses import dataclass, field, fields
from typing import Awaitable, Callable, Iterable, List, Sequence

import logfire
from rapidfuzz import fuzz
from unidecode import unidecode

from text_search.config import Settings, get_settings
from text_search.constants import (
    DEFAULT_MIN_MATCH_CHAR_LENGTH,
    DEFAULT_SEARCH_KEYS,
    DEFAULT_SEARCH_RESULT_LIMIT,
    DEFAULT_SEARCH_THRESHOLD,
)
from text_search.exceptions import InvalidInputError
from text_search.models.page_models import SearchIndexEntry
from text_search.services.catalog import load_search_entries
from text_search.sheets.client import TableStore

SEARCHABLE_FIELDS = frozenset(f.name for f in fields(SearchIndexEntry))

EntryLoader = Callable[[], Awaitable[Sequence[SearchIndexEntry]]]


def fold(value: str) -> str:
    """Lowercase ASCII transliteration used for matching ("Àlgebra" -> "algebra")."""
    return unidecode(value or "").lower().strip()


def field_similarity(query: str, value: str, score_cutoff: float = 0) -> float:
    """0-100 similarity of a folded query to a folded field value.

    The query is aligned inside longer values, so "algebra" fully matches
    "matematiques algebra". Values shorter than the query are compared as
    a whole: "art" does not match "cartografia".
    """
    if len(query) <= len(value):
        return fuzz.partial_ratio(query, value, score_cutoff=score_cutoff)
    return fuzz.ratio(query, value, score_cutoff=score_cutoff)


@dataclass(frozen=True)
class SearchOptions:
    """Matching options of a search index."""

    keys: tuple[str, ...] = DEFAULT_SEARCH_KEYS
    weights: dict[str, float] = field(default_factory=dict)
    threshold: float = DEFAULT_SEARCH_THRESHOLD
    min_match_char_length: int = DEFAULT_MIN_MATCH_CHAR_LENGTH
    include_score: bool = False
    limit: int = DEFAULT_SEARCH_RESULT_LIMIT

    @classmethod
    def from_settings(cls, settings: Settings) -> "SearchOptions":
        return cls(
            keys=tuple(settings.search_keys),
            weights=dict(settings.search_key_weights),
            threshold=settings.search_threshold,
            min_match_char_length=settings.search_min_match_char_length,
            include_score=settings.search_include_score,
            limit=settings.search_result_limit,
        )

    @property
    def score_cutoff(self) -> float:
        """Minimum 0-100 similarity a field needs to match."""
        return (1.0 - self.threshold) * 100


@dataclass(frozen=True)
class SearchHit:
    """A matching entry and its score (0-100, weighted)."""

    entry: SearchIndexEntry
    score: float


class SearchIndex:
    """Immutable fuzzy-match index over a snapshot of catalog entries."""

    def __init__(
        self,
        entries: Iterable[SearchIndexEntry],
        options: SearchOptions | None = None,
    ):
        """Build the index.

        Args:
            entries: Entries to index. They are copied into a private tuple.
            options: Matching options (defaults to SearchOptions())

        Raises:
            InvalidInputError: If a search key is not an entry field
        """
        self.options = options or SearchOptions()
        unknown = [k for k in self.options.keys if k not in SEARCHABLE_FIELDS]
        if unknown or not self.options.keys:
            raise InvalidInputError(f"Invalid search keys: {unknown or 'none'}")

        self._entries = tuple(entries)
        self._folded = tuple(
            tuple(fold(getattr(entry, key)) for key in self.options.keys)
            for entry in self._entries
        )
        self._weights = tuple(
            self.options.weights.get(key, 1.0) for key in self.options.keys
        )

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[SearchIndexEntry, ...]:
        return self._entries

    def _score(self, query: str, folded_fields: tuple[str, ...]) -> float | None:
        cutoff = self.options.score_cutoff
        best: float | None = None
        for value, weight in zip(folded_fields, self._weights):
            if not value:
                continue
            raw = field_similarity(query, value, cutoff)
            if cutoff > 0 and raw == 0:
                continue
            weighted = raw * weight
            if best is None or weighted > best:
                best = weighted
        return best

    def search(self, query: str) -> List[SearchHit]:
        """Ranked matches of `query`, best first.

        Matching is case and accent insensitive. A query shorter than
        `min_match_char_length` or with no matches returns an empty list.
        """
        q = fold(query)
        if len(q) < self.options.min_match_char_length:
            return []

        scored = []
        for position, folded_fields in enumerate(self._folded):
            score = self._score(q, folded_fields)
            if score is not None:
                scored.append((score, position))

        scored.sort(key=lambda item: (-item[0], item[1]))
        return [
            SearchHit(entry=self._entries[position], score=round(score, 2))
            for score, position in scored[: self.options.limit]
        ]


class SearchEngine:
    """Holder of the search index in use.

    Rebuilds are serialised; readers never wait for them.
    """

    def __init__(self):
        self._index: SearchIndex | None = None
        self._lock = asyncio.Lock()

    @property
    def current(self) -> SearchIndex | None:
        return self._index

    @property
    def is_ready(self) -> bool:
        return self._index is not None

    def publish(self, index: SearchIndex) -> None:
        """Make `index` the one used by new queries."""
        self._index = index

    async def rebuild(
        self, loader: EntryLoader, options: SearchOptions | None = None
    ) -> SearchIndex:
        """Load fresh entries, build a new index and swap it in.

        The previous index keeps serving until the new one is complete. If
        loading fails the previous index stays in place.
        """
        async with self._lock:
            with logfire.span("Building search index"):
                entries = await loader()
                index = SearchIndex(entries, options)
                self.publish(index)
            logfire.info("Search engine ready", entries=len(index))
            return index

    def search(self, query: str) -> List[SearchHit]:
        """Search the current index; empty list if none has been built."""
        index = self._index
        if index is None:
            return []
        return index.search(query)


_search_engine: SearchEngine | None = None


def get_search_engine() -> SearchEngine:
    """Get or create the process-wide search engine."""
    global _search_engine
    if _search_engine is None:
        _search_engine = SearchEngine()
    return _search_engine


def reset_search_engine() -> None:
    """Reset the process-wide search engine (for tests)."""
    global _search_engine
    _search_engine = None


async def rebuild_search_engine(
    store: TableStore,
    settings: Settings | None = None,
    engine: SearchEngine | None = None,
) -> SearchIndex:
    """Reload the catalog from `store` and rebuild the search engine."""
    settings = settings or get_settings()
    engine = engine or get_search_engine()
    return await engine.rebuild(
        lambda: load_search_entries(settings, store),
        SearchOptions.from_settings(settings),
    )
