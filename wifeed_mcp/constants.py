from enum import Enum, IntEnum


# ============================================================================
# WIFEED API CONFIGURATION
# ============================================================================

WIFEED_BASE_URL = "https://wifeed.vn/api"
REQUEST_TIMEOUT_S = 30.0

SERVER_NAME = "wifeed-mcp-server"
SERVER_VERSION = "1.0.0"

# Response limits
DEFAULT_PAGE_LIMIT = 20
WIDE_PAGE_LIMIT = 100
MAX_PAGE_LIMIT = 100
CHARACTER_LIMIT = 50000

TRUNCATION_NOTICE = (
    "\n\n... [Response truncated due to size limit. "
    "Use pagination parameters to get more data.]"
)


# ============================================================================
# ENUMS
# ============================================================================

class ReportType(str, Enum):
    """Period granularity of a financial statement."""
    QUARTER = "quarter"
    YEAR = "year"
    TTM = "ttm"


class RatioReportType(str, Enum):
    """Financial ratios additionally support daily snapshots."""
    QUARTER = "quarter"
    YEAR = "year"
    TTM = "ttm"
    DAILY = "daily"


class ResponseFormat(str, Enum):
    """Output format of a tool response."""
    MARKDOWN = "markdown"  # Human-readable report (default)
    JSON = "json"          # Machine-readable payload


class AnalysisReportType(IntEnum):
    ALL = 1
    INDUSTRY = 2
    COMPANY = 3


class CommodityDataType(str, Enum):
    VALUE_TODAY = "value_today"
    CHANGE_1D = "change_1d"
    CHANGE_MTD = "change_mtd"
    CHANGE_YTD = "change_ytd"


class ByTime(str, Enum):
    """Timestamp column used by the from_time/to_time filters."""
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
