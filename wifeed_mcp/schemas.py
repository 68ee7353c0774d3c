"""
Parameter validation for every WiFeed tool.

Each operation has its own pydantic model. Models forbid unknown fields, so a
typo in an argument name fails fast instead of silently being dropped.
"""

from typing import Annotated, Any, Dict, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, ValidationError

from wifeed_mcp.constants import (
    DEFAULT_PAGE_LIMIT,
    MAX_PAGE_LIMIT,
    WIDE_PAGE_LIMIT,
    AnalysisReportType,
    ByTime,
    CommodityDataType,
    RatioReportType,
    ReportType,
    ResponseFormat,
)
from wifeed_mcp.errors import ParameterValidationError


# ============================================================================
# COMMON FIELD TYPES
# ============================================================================

StockCode = Annotated[
    str,
    StringConstraints(min_length=1, max_length=10, to_upper=True),
]

DateString = Annotated[str, StringConstraints(pattern=r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")]

Page = Annotated[int, Field(strict=True, ge=1, description="Page number for pagination (starts from 1)")]
Limit = Annotated[int, Field(strict=True, ge=1, le=MAX_PAGE_LIMIT, description="Maximum number of results per page")]
Year = Annotated[int, Field(strict=True, ge=2000, le=2030, description="Year for the report (e.g., 2024)")]
Quarter = Annotated[int, Field(strict=True, ge=1, le=4, description="Quarter number (1-4)")]


class ToolInput(BaseModel):
    """Base for all tool inputs: unknown fields rejected, format selector shared."""

    model_config = ConfigDict(extra="forbid")

    response_format: ResponseFormat = ResponseFormat.MARKDOWN


class TimeFilters(ToolInput):
    """Optional created/updated and calendar-date filters shared by list endpoints."""

    by_time: Optional[ByTime] = None
    from_date: Optional[DateString] = None
    to_date: Optional[DateString] = None
    from_time: Optional[DateString] = None
    to_time: Optional[DateString] = None

    def filter_params(self) -> Dict[str, Any]:
        """Query parameters for the filters, in WiFeed's dashed spelling."""
        return {
            "by-time": self.by_time.value if self.by_time else None,
            "from-date": self.from_date,
            "to-date": self.to_date,
            "from-time": self.from_time,
            "to-time": self.to_time,
        }


# ============================================================================
# STOCK INFO
# ============================================================================

class InsiderTradingInput(TimeFilters):
    code: StockCode
    page: Page = 1
    limit: Limit = DEFAULT_PAGE_LIMIT


# ============================================================================
# FINANCIAL STATEMENTS
# ============================================================================

class StatementInput(ToolInput):
    code: StockCode
    type: ReportType = ReportType.QUARTER
    nam: Optional[Year] = None
    quy: Optional[Quarter] = None


class IncomeStatementInput(StatementInput):
    pass


class BalanceSheetInput(StatementInput):
    pass


class CashFlowStatementInput(StatementInput):
    pass


class FinancialRatiosInput(ToolInput):
    code: StockCode
    type: RatioReportType = RatioReportType.QUARTER
    from_date: Optional[DateString] = None
    to_date: Optional[DateString] = None
    quy: Optional[Quarter] = None
    nam: Optional[Year] = None


# ============================================================================
# ANALYSIS REPORTS + MACRO DATA
# ============================================================================

class AnalysisReportsInput(ToolInput):
    code: Optional[StockCode] = None
    type: AnalysisReportType = AnalysisReportType.COMPANY
    page: Page = 1
    limit: Limit = DEFAULT_PAGE_LIMIT
    from_date: Optional[DateString] = None
    to_date: Optional[DateString] = None


class PolicyInterestRateInput(TimeFilters):
    page: Page = 1
    limit: Limit = DEFAULT_PAGE_LIMIT


class InterbankRateInput(TimeFilters):
    page: Page = 1
    limit: Limit = DEFAULT_PAGE_LIMIT


class DepositRateByGroupInput(TimeFilters):
    page: Page = 1
    limit: Limit = DEFAULT_PAGE_LIMIT


class DepositRateByBankInput(TimeFilters):
    ky_han: Annotated[int, Field(strict=True, ge=1, le=36, description="Deposit term in months")]
    page: Page = 1
    limit: Limit = WIDE_PAGE_LIMIT


class ExchangeRateInput(TimeFilters):
    page: Page = 1
    limit: Limit = WIDE_PAGE_LIMIT


class InternationalCommodityInput(ToolInput):
    page: Page = 1
    limit: Limit = WIDE_PAGE_LIMIT
    data_type: CommodityDataType = CommodityDataType.VALUE_TODAY
    by_time: Optional[ByTime] = None
    from_date: Optional[DateString] = None
    to_date: Optional[DateString] = None
    from_time: Optional[DateString] = None


class DomesticCommodityInput(ToolInput):
    page: Page = 1
    limit: Limit = WIDE_PAGE_LIMIT
    data_type: CommodityDataType = CommodityDataType.VALUE_TODAY
    by_time: Optional[ByTime] = None
    from_time: Optional[DateString] = None


class OtherExchangeRateInput(TimeFilters):
    page: Page = 1
    limit: Limit = WIDE_PAGE_LIMIT


# ============================================================================
# VALIDATION ENTRY POINT
# ============================================================================

InputT = TypeVar("InputT", bound=ToolInput)


def _describe(error: Mapping[str, Any]) -> str:
    field = ".".join(str(part) for part in error.get("loc", ())) or "input"
    if error.get("type") == "string_pattern_mismatch":
        return f"{field}: Date must be in YYYY-MM-DD format"
    return f"{field}: {error.get('msg')}"


def validate_params(schema: Type[InputT], arguments: Optional[Mapping[str, Any]]) -> InputT:
    """
    Validate raw caller arguments against an operation schema.

    Raises:
        ParameterValidationError: naming every offending field and constraint.
    """
    try:
        return schema.model_validate(dict(arguments or {}))
    except ValidationError as e:
        details = "; ".join(_describe(err) for err in e.errors())
        raise ParameterValidationError(f"Invalid parameters: {details}") from e
