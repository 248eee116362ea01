"""Application-wide constants.

This module centralizes all magic numbers and configuration defaults
to ensure a single source of truth and easier maintenance.
"""

# =============================================================================
# Service
# =============================================================================

SERVICE_NAME = "Edu365 Text Search"

SERVICE_VERSION = "0.3.0"

# =============================================================================
# Google Sheets
# =============================================================================

# Scope needed to read and write the site spreadsheet
GOOGLE_SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"

SHEETS_API_BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"

# Timeout for Google Sheets API calls (seconds)
SHEETS_API_TIMEOUT_SECONDS = 20.0

# Local port used by the OAuth2 consent flow callback
OAUTH2_CALLBACK_PORT = 3000

# Field added to every row read from a sheet, holding its 1-based row number
ROW_REF_FIELD = "_row"

# Sheets of the Edu365 map spreadsheet merged by the map generator
DEFAULT_MAP_SOURCE_PAGES = ("INFANTIL", "PRIMÀRIA", "ESO", "BATXILLERAT", "+EDU")

# Columns read from each map sheet, in output order
MAP_SOURCE_COLUMNS = ("Url", "Activitat", "Area", "Descriptors")

# Header row written by the map generator (the crawl schema)
CATALOG_COLUMNS = (
    "enabled",
    "path",
    "js",
    "title",
    "area",
    "descriptors",
    "stage",
    "lang",
    "etag",
    "text",
)

DEFAULT_LANGUAGE = "ca"

# =============================================================================
# Crawl Configuration
# =============================================================================

# Maximum number of concurrent HEAD probes during change detection
DEFAULT_PROBE_CONCURRENCY = 4

# Timeout for each HEAD probe (seconds)
PROBE_TIMEOUT_SECONDS = 15.0

# Timeout for browser page loads (seconds)
BROWSER_PAGE_LOAD_TIMEOUT_SECONDS = 30.0

# =============================================================================
# Tokenizer
# =============================================================================

# Words must be longer than this to be kept
MIN_WORD_LENGTH = 1

# =============================================================================
# Search Configuration
# =============================================================================

# Fields that take part in fuzzy scoring
DEFAULT_SEARCH_KEYS = ("title", "descriptors")

# Fuse-style threshold: 0.0 requires a perfect match, 1.0 matches anything
DEFAULT_SEARCH_THRESHOLD = 0.3

# Queries shorter than this never match
DEFAULT_MIN_MATCH_CHAR_LENGTH = 2

# Max length allowed in queries
QUERY_MAX_LENGTH = 128

# Max number of results returned by a query
DEFAULT_SEARCH_RESULT_LIMIT = 50

# =============================================================================
# Search Statistics
# =============================================================================

SEARCHES_TABLE = "searches"

MOST_WANTED_FUNCTION = "search_most_wanted"

DEFAULT_STATS_PAGE_SIZE = 10

DEFAULT_STATS_TIMEZONE = "Europe/Madrid"
