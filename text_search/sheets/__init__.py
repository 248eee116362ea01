"""Google Sheets storage and credentials."""

from text_search.sheets.client import (
    GoogleSheetsStore,
    TableStore,
    build_sheets_store,
    column_letter,
    sheet_data_from_values,
)

__all__ = [
    "GoogleSheetsStore",
    "TableStore",
    "build_sheets_store",
    "column_letter",
    "sheet_data_from_values",
]
