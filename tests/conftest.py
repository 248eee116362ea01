"""Shared pytest fixtures and configuration.

Fixture Categories:
1. Infrastructure: respx_mock, mock_settings, mock_logfire, mock_supabase_client
2. Collaborator doubles: FakeTableStore, FakeRenderer and their fixtures
3. Sample data: catalog_values, sample_entries
4. App: test_client
"""

import os
from contextlib import contextmanager
from typing import Any, List
from unittest.mock import MagicMock, Mock

import pytest

os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")

import respx

from text_search.exceptions import FetchError, SheetsError
from text_search.models.page_models import SearchIndexEntry, SheetData
from text_search.services.search_index import reset_search_engine
from text_search.sheets.client import sheet_data_from_values

BASE_URL = "https://example.edu365.cat"

# Modules that bind get_settings at import time
SETTINGS_CONSUMERS = [
    "text_search.config",
    "text_search.sheets.client",
    "text_search.services.search_index",
    "text_search.db.client",
    "text_search.db.repository",
    "text_search.api.auth",
    "text_search.api.search",
    "text_search.api.admin",
    "text_search.main",
    "text_search.cli.commands",
    "text_search.logging_config",
]

# Modules that log through logfire
LOGFIRE_CONSUMERS = [
    "text_search.services.tokenizer",
    "text_search.services.catalog",
    "text_search.services.change_detector",
    "text_search.services.content_extractor",
    "text_search.services.renderer",
    "text_search.services.site_checker",
    "text_search.services.search_index",
    "text_search.services.map_generator",
    "text_search.sheets.client",
    "text_search.sheets.oauth",
    "text_search.db.query_executor",
    "text_search.db.repository",
    "text_search.middleware.request_context",
    "text_search.logging_config",
    "text_search.main",
]


# =============================================================================
# Collaborator doubles
# =============================================================================


class FakeTableStore:
    """In-memory TableStore keeping raw sheet values per (spreadsheet, page)."""

    def __init__(self, sheets: dict[tuple[str, str], List[List[Any]]] | None = None):
        self.sheets = {k: [list(r) for r in v] for k, v in (sheets or {}).items()}
        self.titles: dict[str, dict[str, str]] = {}
        self.writes: List[tuple[str, str, int, dict[int, str]]] = []
        self.cleared: List[tuple[str, str]] = []
        self.fail_writes_for_rows: set[int] = set()

    async def read(self, spreadsheet_id: str, page: str) -> SheetData:
        return sheet_data_from_values(self.sheets.get((spreadsheet_id, page), []))

    async def write_cells(
        self, spreadsheet_id: str, page: str, row: int, values: dict[int, str]
    ) -> None:
        if row in self.fail_writes_for_rows:
            raise SheetsError("Sheets API write_cells failed with status 500")
        self.writes.append((spreadsheet_id, page, row, dict(values)))
        table = self.sheets[(spreadsheet_id, page)]
        cells = table[row - 1]
        for col, value in values.items():
            while len(cells) < col:
                cells.append("")
            cells[col - 1] = value

    async def get_title_and_url(self, spreadsheet_id: str) -> dict[str, str]:
        return self.titles.get(
            spreadsheet_id,
            {
                "title": f"Sheet {spreadsheet_id}",
                "url": f"https://docs.google.com/spreadsheets/d/{spreadsheet_id}",
            },
        )

    async def clear(self, spreadsheet_id: str, cell_range: str) -> None:
        self.cleared.append((spreadsheet_id, cell_range))
        self.sheets[(spreadsheet_id, cell_range)] = []

    async def write_rows(
        self,
        spreadsheet_id: str,
        page: str,
        rows: List[List[Any]],
        start_row: int = 1,
    ) -> None:
        table = self.sheets.setdefault((spreadsheet_id, page), [])
        for offset, row in enumerate(rows):
            index = start_row - 1 + offset
            while len(table) <= index:
                table.append([])
            table[index] = list(row)


class FakeRenderer:
    """PageRenderer double serving canned pages.

    `pages` maps a URL to (title, body) or to an exception raised on navigation.
    """

    def __init__(self, pages: dict[str, Any] | None = None):
        self.pages = pages or {}
        self.navigations: List[tuple[str, bool]] = []
        self.disposed = False
        self._current: tuple[str, str] | None = None

    async def navigate(self, url: str, allow_scripts: bool) -> None:
        self.navigations.append((url, allow_scripts))
        page = self.pages.get(url)
        if page is None:
            raise FetchError(f"Unable to render {url}: 404", url=url)
        if isinstance(page, Exception):
            raise page
        self._current = page

    async def get_body_text(self) -> str:
        if self._current is None:
            raise FetchError("No page has been loaded")
        return self._current[1]

    async def get_title(self) -> str:
        return self._current[0] if self._current else ""

    async def dispose(self) -> None:
        self.disposed = True


# =============================================================================
# Infrastructure
# =============================================================================


@pytest.fixture(autouse=True)
def _fresh_search_engine():
    """Every test starts without a built search index."""
    reset_search_engine()
    yield
    reset_search_engine()


@pytest.fixture
def respx_mock():
    """Respx mock fixture for HTTP mocking."""
    with respx.mock:
        yield respx


@pytest.fixture
def mock_settings(monkeypatch):
    """Mock application settings."""
    from text_search.config import Settings

    settings = Settings(
        _env_file=None,
        credentials_path="credentials.json",
        token_path="token.json",
        spreadsheet_id="sheet-123",
        spreadsheet_page="Pages",
        map_spreadsheet_id="map-456",
        base_url=BASE_URL,
        auth_secret="s3cret-admin",
        supabase_url="https://test.supabase.co",
        supabase_service_key="test-service-key",
        env="local",
        logfire_token=None,
    )

    for module in SETTINGS_CONSUMERS:
        monkeypatch.setattr(f"{module}.get_settings", lambda: settings)
    return settings


@pytest.fixture
def mock_logfire(monkeypatch):
    """
    Mock Logfire for testing without actual logging.

    Patches the `logfire` name of every module that logs, so calls can be
    asserted on the returned mock.
    """

    @contextmanager
    def mock_span(*args, **kwargs):
        yield MagicMock()

    mock_logfire_module = MagicMock()
    mock_logfire_module.info = Mock()
    mock_logfire_module.debug = Mock()
    mock_logfire_module.warn = Mock()
    mock_logfire_module.warning = Mock()
    mock_logfire_module.error = Mock()
    mock_logfire_module.span = mock_span
    mock_logfire_module.configure = Mock()
    mock_logfire_module.instrument_fastapi = Mock()
    mock_logfire_module.instrument_pydantic = Mock()

    for module in LOGFIRE_CONSUMERS:
        monkeypatch.setattr(f"{module}.logfire", mock_logfire_module)

    return mock_logfire_module


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client whose query builders chain to themselves."""
    client = MagicMock()
    query = MagicMock()
    for method in ("select", "insert", "gte", "lt", "lte", "ilike", "order", "range"):
        getattr(query, method).return_value = query
    result = MagicMock()
    result.data = []
    result.count = 0
    query.execute.return_value = result
    client.table.return_value = query
    client.rpc.return_value.execute.return_value = result
    return client


# =============================================================================
# Sample data
# =============================================================================


CATALOG_HEADER = ["enabled", "path", "js", "title", "descriptors", "lang", "etag", "text"]


@pytest.fixture
def catalog_values():
    """Raw catalog sheet values: two enabled pages and a disabled one."""
    return [
        list(CATALOG_HEADER),
        ["TRUE", "/mates/", "FALSE", "Matemàtiques", "àlgebra", "ca", "", ""],
        ["TRUE", "/llengua/", "TRUE", "", "lectura", "ca", '"v1"', "antiga lectura"],
        ["FALSE", "/arxiu/", "FALSE", "Arxiu", "", "ca", "", ""],
    ]


@pytest.fixture
def fake_store(catalog_values):
    """FakeTableStore holding the sample catalog at sheet-123 / Pages."""
    return FakeTableStore({("sheet-123", "Pages"): catalog_values})


@pytest.fixture
def fake_renderer():
    """FakeRenderer serving the sample catalog pages."""
    return FakeRenderer(
        {
            f"{BASE_URL}/mates/": ("Matemàtiques", "Equacions i àlgebra per a l'ESO"),
            f"{BASE_URL}/llengua/": ("Llengua catalana", "Lectura comprensiva i dictats"),
        }
    )


@pytest.fixture
def sample_entries():
    """Search index entries for ranking tests."""
    return [
        SearchIndexEntry(
            url=f"{BASE_URL}/mates/",
            title="Matemàtiques",
            descriptors="àlgebra",
            language="ca",
            text="algebra equacions matemàtiques",
        ),
        SearchIndexEntry(
            url=f"{BASE_URL}/llengua/",
            title="Llengua catalana",
            descriptors="lectura",
            language="ca",
            text="catalana lectura llengua",
        ),
    ]


# =============================================================================
# App
# =============================================================================


@pytest.fixture
def test_client(mock_settings, mock_logfire):
    """FastAPI TestClient for E2E tests (the lifespan is not run)."""
    from fastapi.testclient import TestClient

    from text_search.main import app

    return TestClient(app)
