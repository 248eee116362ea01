"""Google Sheets storage for the site catalog.

The catalog is a plain table: the first row holds the field names and every
other row describes one page. Reads and writes go through the Sheets v4
REST API.
"""

import asyncio
from typing import Any, List, Protocol
from urllib.parse import quote

import httpx
import logfire

from text_search.config import Settings, get_settings
from text_search.constants import ROW_REF_FIELD, SHEETS_API_BASE_URL
from text_search.exceptions import SheetsError
from text_search.models.page_models import SheetData


class TableStore(Protocol):
    """Protocol for the persisted catalog table."""

    async def read(self, spreadsheet_id: str, page: str) -> SheetData:
        """Read a whole sheet, first row as field names."""
        ...

    async def write_cells(
        self, spreadsheet_id: str, page: str, row: int, values: dict[int, str]
    ) -> None:
        """Write several cells of one row in a single request.

        Args:
            spreadsheet_id: The spreadsheet ID
            page: Sheet name
            row: 1-based row number
            values: Mapping of 1-based column index to cell value
        """
        ...

    async def get_title_and_url(self, spreadsheet_id: str) -> dict[str, str]:
        """Return the spreadsheet title and its browser URL."""
        ...

    async def clear(self, spreadsheet_id: str, cell_range: str) -> None:
        """Delete every value in a sheet or range."""
        ...

    async def write_rows(
        self,
        spreadsheet_id: str,
        page: str,
        rows: List[List[Any]],
        start_row: int = 1,
    ) -> None:
        """Write rows of values starting at `start_row`."""
        ...


def column_letter(index: int) -> str:
    """Convert a 1-based column index to its A1 letters (1 -> A, 27 -> AA)."""
    if index < 1:
        raise ValueError(f"Invalid column index: {index}")
    letters = ""
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


def _cell_value(value: Any) -> Any:
    if value == "TRUE":
        return True
    if value == "FALSE":
        return False
    return value


def sheet_data_from_values(
    values: List[List[Any]], first_row_as_keys: bool = True
) -> SheetData:
    """Turn raw sheet values into keyed rows.

    When `first_row_as_keys` is true the first row holds the field names;
    empty header cells (or every column, otherwise) are named by their
    column letters. "TRUE"/"FALSE" become booleans and each row gets its
    1-based row number in `_row`.
    """
    if not values:
        raise SheetsError("Unable to read the requested spreadsheet data!")

    width = max(len(r) for r in values)
    header = values[0] if first_row_as_keys else []
    keys = [
        (str(header[n]).strip() if n < len(header) and header[n] else "")
        or column_letter(n + 1)
        for n in range(width)
    ]

    rows = []
    start = 1 if first_row_as_keys else 0
    for i in range(start, len(values)):
        row = {keys[n]: _cell_value(v) for n, v in enumerate(values[i])}
        row[ROW_REF_FIELD] = i + 1
        rows.append(row)
    return SheetData(keys=keys, rows=rows)


class GoogleSheetsStore:
    """TableStore over the Google Sheets v4 REST API."""

    def __init__(
        self,
        credentials: Any,
        timeout: float | None = None,
        base_url: str = SHEETS_API_BASE_URL,
    ):
        """Initialize the store.

        Args:
            credentials: google-auth credentials (anything with `token`,
                `valid` and `refresh()`)
            timeout: HTTP timeout in seconds (defaults to settings)
            base_url: Sheets API root, overridable for tests
        """
        self._credentials = credentials
        self._timeout = timeout or get_settings().sheets_api_timeout_seconds
        self._base_url = base_url.rstrip("/")

    async def _headers(self) -> dict[str, str]:
        creds = self._credentials
        if not creds.valid and getattr(creds, "refresh_token", None):
            from google.auth.transport.requests import Request

            logfire.info("Refreshing Google access token")
            await asyncio.to_thread(creds.refresh, Request())
        return {"Authorization": f"Bearer {creds.token}"}

    async def _request(
        self, method: str, url: str, operation: str, **kwargs: Any
    ) -> dict[str, Any]:
        headers = await self._headers()
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logfire.error("Sheets API request failed", operation=operation, error=str(e))
            raise SheetsError(f"Sheets API {operation} failed: {e}") from e

        if not response.is_success:
            logfire.error(
                "Sheets API returned an error",
                operation=operation,
                status_code=response.status_code,
                response_body=response.text[:500],
            )
            raise SheetsError(
                f"Sheets API {operation} failed with status {response.status_code}"
            )
        return response.json() if response.content else {}

    async def read(self, spreadsheet_id: str, page: str) -> SheetData:
        url = f"{self._base_url}/{spreadsheet_id}/values/{quote(page, safe='')}"
        data = await self._request(
            "GET", url, "read", params={"majorDimension": "ROWS"}
        )
        sheet = sheet_data_from_values(data.get("values") or [])
        logfire.info(
            "Sheet read",
            spreadsheet_id=spreadsheet_id,
            page=page,
            rows=len(sheet.rows),
        )
        return sheet

    async def write_cells(
        self, spreadsheet_id: str, page: str, row: int, values: dict[int, str]
    ) -> None:
        data = [
            {"range": f"{page}!{column_letter(col)}{row}", "values": [[value]]}
            for col, value in sorted(values.items())
        ]
        await self._request(
            "POST",
            f"{self._base_url}/{spreadsheet_id}/values:batchUpdate",
            "write_cells",
            json={"valueInputOption": "RAW", "data": data},
        )

    async def get_title_and_url(self, spreadsheet_id: str) -> dict[str, str]:
        data = await self._request(
            "GET",
            f"{self._base_url}/{spreadsheet_id}",
            "get_title_and_url",
            params={"fields": "properties.title,spreadsheetUrl", "includeGridData": "false"},
        )
        return {
            "title": data.get("properties", {}).get("title", ""),
            "url": data.get("spreadsheetUrl", ""),
        }

    async def clear(self, spreadsheet_id: str, cell_range: str) -> None:
        await self._request(
            "POST",
            f"{self._base_url}/{spreadsheet_id}/values/{quote(cell_range, safe='')}:clear",
            "clear",
        )

    async def write_rows(
        self,
        spreadsheet_id: str,
        page: str,
        rows: List[List[Any]],
        start_row: int = 1,
    ) -> None:
        cell_range = f"{page}!{start_row}:{start_row + len(rows) - 1}"
        await self._request(
            "PUT",
            f"{self._base_url}/{spreadsheet_id}/values/{quote(cell_range, safe='')}",
            "write_rows",
            params={"valueInputOption": "USER_ENTERED"},
            json={"range": cell_range, "majorDimension": "ROWS", "values": rows},
        )


def build_sheets_store(
    settings: Settings | None = None, interactive: bool = False
) -> GoogleSheetsStore:
    """Create a GoogleSheetsStore authorized with the configured credentials."""
    from text_search.sheets.oauth import get_credentials

    settings = settings or get_settings()
    credentials = get_credentials(
        settings.credentials_path,
        settings.token_path,
        settings.google_scopes,
        callback_port=settings.oauth2_callback_port,
        interactive=interactive,
    )
    return GoogleSheetsStore(credentials, timeout=settings.sheets_api_timeout_seconds)
