"""
Constants Module

Defines constants used across the base-snapshot project.
"""

# =============================================================================
# API Constants
# =============================================================================

LARK_API_BASE_URL = "https://open.larksuite.com/open-apis"

# Rate limit: max 5 requests per second
API_RATE_LIMIT_INTERVAL = 0.2  # 200ms between requests

# Retry settings for rate-limited responses
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY = 1.0

# Vendor error code returned when the app is being rate limited
RATE_LIMIT_ERROR_CODE = 99991400

# Request timeouts (seconds)
METADATA_TIMEOUT = 10
DOWNLOAD_TIMEOUT = 60
UPLOAD_TIMEOUT = 120

# Refresh the cached tenant token this many seconds before it expires
TOKEN_EXPIRY_MARGIN = 60


# =============================================================================
# Pagination
# =============================================================================

TABLE_PAGE_SIZE = 100
FIELD_PAGE_SIZE = 100
RECORD_PAGE_SIZE = 500

# Upper bounds on pages fetched per list call
MAX_TABLE_PAGES = 10
MAX_FIELD_PAGES = 10
MAX_RECORD_PAGES = 100

# batch_create accepts at most 500 records per request
RECORD_BATCH_SIZE = 500


# =============================================================================
# Snapshot Constants
# =============================================================================

# Names Lark gives the table it auto-creates in a new Base, per locale
DEFAULT_TABLE_NAMES = {
    "Table",
    "テーブル",
    "数据表",
    "資料表",
}

DEFAULT_VIEW_NAME = "Grid View"

SNAPSHOT_TABLE_SUFFIX = "_snap_"

# Fields in property bags that point at other tables or formulas
LINKED_PROPERTY_KEYS = (
    "table_id",
    "link_table_id",
    "back_field_id",
    "formula_expression",
)

# Substrings (lowercase) that mark an error as permission-denied
PERMISSION_ERROR_MARKERS = (
    "permission",
    "forbidden",
    "no access",
    "not authorized",
    "unauthorized",
)

ADMIN_PERMISSION = "full_access"


# =============================================================================
# OAuth Constants
# =============================================================================

OAUTH_SCOPES = "bitable:app wiki:wiki:readonly"

# OAuth state cookies older than this are rejected
OAUTH_STATE_TTL = 10 * 60

SESSION_COOKIE = "session_id"
STATE_COOKIE = "oauth_state"
TOKEN_COOKIE = "lark_tokens"
SESSION_MAX_AGE = 24 * 60 * 60
