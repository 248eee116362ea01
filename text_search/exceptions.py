"""Exception hierarchy shared by the crawl, search and admin layers."""


class TextSearchError(Exception):
    """Base exception for text search errors."""

    pass


class InvalidInputError(TextSearchError, ValueError):
    """Raised for a malformed URL or a missing required setting.

    Fatal to the single operation that raised it, never to a whole batch.
    """

    pass


class SchemaError(TextSearchError):
    """Raised when the catalog table lacks an expected column."""

    def __init__(self, column: str):
        self.column = column
        super().__init__(f'The spreadsheet has no "{column}" column!')


class FetchError(TextSearchError):
    """Raised for network or rendering failures on a single page."""

    def __init__(self, message: str, url: str | None = None):
        self.url = url
        super().__init__(message)


class SheetsError(FetchError):
    """Raised when the Google Sheets API rejects or fails a request."""

    pass


class AuthError(TextSearchError):
    """Raised when an admin request carries a bad shared secret."""

    def __init__(self, message: str = "Invalid request!"):
        super().__init__(message)
