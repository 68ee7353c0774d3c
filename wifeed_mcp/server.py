"""
WiFeed MCP Server
Vietnamese stock, financial statement and macroeconomic data over MCP.

Key Features:
- Insider trading and broker analysis reports
- Income statement, balance sheet, cash flow and financial ratios
- Policy / interbank / deposit interest rates
- USD/VND and cross exchange rates, commodity prices

Transports: stdio (default) or streamable HTTP (TRANSPORT=http).
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Dict, Mapping, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools.tool import ToolResult
from starlette.requests import Request
from starlette.responses import JSONResponse

from wifeed_mcp.client import WiFeedClient, initialize_client
from wifeed_mcp.config import load_settings
from wifeed_mcp.constants import SERVER_NAME, SERVER_VERSION
from wifeed_mcp.errors import ConfigurationError
from wifeed_mcp.tools import financial_statements, macro_data, stock_info

logger = logging.getLogger(__name__)

READ_ONLY = {
    "readOnlyHint": True,
    "destructiveHint": False,
    "idempotentHint": True,
    "openWorldHint": True,
}

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


async def _invoke(operation: Any, client: WiFeedClient, values: Mapping[str, Any]) -> ToolResult:
    """Run an operation with the tool's arguments and hand the result to FastMCP."""
    fields = operation.schema.model_fields
    arguments = {k: v for k, v in values.items() if v is not None and k in fields}
    response = await operation(client, arguments)
    if response.is_error:
        raise ToolError(response.text)
    return ToolResult(content=response.text, structured_content=response.structured)


def create_server(client: WiFeedClient) -> FastMCP:
    """Build the FastMCP server with every WiFeed tool bound to ``client``."""
    mcp = FastMCP(
        name=SERVER_NAME,
        instructions=(
            "Vietnamese market data from WiFeed: insider trading, financial statements, "
            "ratios, analyst reports, interest rates, exchange rates and commodities."
        ),
    )

    # ============================================================================
    # STOCK INFO
    # ============================================================================

    @mcp.tool(annotations=READ_ONLY)
    async def wifeed_get_insider_trading(
        code: str,
        page: int = 1,
        limit: int = 20,
        by_time: Optional[str] = None,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        from_time: Optional[str] = None,
        to_time: Optional[str] = None,
        response_format: str = "markdown",
    ) -> ToolResult:
        """
        Get insider trading (giao dịch nội bộ) data for a Vietnamese stock.

        Buy/sell transactions by board members, executives, major shareholders
        and their related persons.

        Args:
            code: Stock ticker (e.g., HPG, VNM, TCB)
            page: Page number (default: 1)
            limit: Results per page (default: 20, max: 100)
            by_time: 'created_at' or 'updated_at', column for from_time/to_time
            from_date / to_date: Transaction date range (YYYY-MM-DD)
            from_time / to_time: Record timestamp range (YYYY-MM-DD)
            response_format: 'markdown' (default) or 'json'

        Examples:
            - {"code": "HPG"}
            - {"code": "VNM", "page": 2, "response_format": "json"}
        """
        return await _invoke(stock_info.get_insider_trading, client, locals())

    # ============================================================================
    # FINANCIAL STATEMENTS
    # ============================================================================

    @mcp.tool(annotations=READ_ONLY)
    async def wifeed_get_income_statement(
        code: str,
        type: str = "quarter",
        nam: Optional[int] = None,
        quy: Optional[int] = None,
        response_format: str = "markdown",
    ) -> ToolResult:
        """
        Get the income statement (kết quả kinh doanh) of a Vietnamese company.

        Banks are detected automatically and reported with their own layout
        (net interest income, provisions, ...).

        Args:
            code: Stock ticker
            type: 'quarter' (default), 'year' or 'ttm'
            nam: Year (2000-2030)
            quy: Quarter (1-4)
            response_format: 'markdown' (default) or 'json'

        Examples:
            - {"code": "VNM", "type": "quarter", "nam": 2024, "quy": 3}
            - {"code": "VCB", "type": "year", "nam": 2023}
        """
        return await _invoke(financial_statements.get_income_statement, client, locals())

    @mcp.tool(annotations=READ_ONLY)
    async def wifeed_get_balance_sheet(
        code: str,
        type: str = "quarter",
        nam: Optional[int] = None,
        quy: Optional[int] = None,
        response_format: str = "markdown",
    ) -> ToolResult:
        """
        Get the balance sheet (cân đối kế toán) of a Vietnamese company.

        Args:
            code: Stock ticker
            type: 'quarter' (default), 'year' or 'ttm'
            nam: Year (2000-2030)
            quy: Quarter (1-4)
            response_format: 'markdown' (default) or 'json'
        """
        return await _invoke(financial_statements.get_balance_sheet, client, locals())

    @mcp.tool(annotations=READ_ONLY)
    async def wifeed_get_cash_flow(
        code: str,
        type: str = "quarter",
        nam: Optional[int] = None,
        quy: Optional[int] = None,
        response_format: str = "markdown",
    ) -> ToolResult:
        """
        Get the cash flow statement (lưu chuyển tiền tệ) of a Vietnamese company.

        Args:
            code: Stock ticker
            type: 'quarter' (default), 'year' or 'ttm'
            nam: Year (2000-2030)
            quy: Quarter (1-4)
            response_format: 'markdown' (default) or 'json'
        """
        return await _invoke(financial_statements.get_cash_flow, client, locals())

    @mcp.tool(annotations=READ_ONLY)
    async def wifeed_get_financial_ratios(
        code: str,
        type: str = "quarter",
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        quy: Optional[int] = None,
        nam: Optional[int] = None,
        response_format: str = "markdown",
    ) -> ToolResult:
        """
        Get financial ratios (chỉ số tài chính): valuation, profitability,
        growth, efficiency, leverage and per-share data.

        Args:
            code: Stock ticker
            type: 'quarter' (default), 'year', 'ttm' or 'daily'
            from_date / to_date: Date range for daily snapshots (YYYY-MM-DD)
            quy: Quarter (1-4)
            nam: Year (2000-2030)
            response_format: 'markdown' (default) or 'json'
        """
        return await _invoke(financial_statements.get_financial_ratios, client, locals())

    # ============================================================================
    # ANALYSIS REPORTS
    # ============================================================================

    @mcp.tool(annotations=READ_ONLY)
    async def wifeed_get_analysis_reports(
        code: Optional[str] = None,
        type: int = 3,
        page: int = 1,
        limit: int = 20,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        response_format: str = "markdown",
    ) -> ToolResult:
        """
        Get broker analysis reports (báo cáo phân tích) with recommendations,
        target prices and forecasts.

        Args:
            code: Optional stock ticker filter
            type: 1 all, 2 industry, 3 company (default)
            page / limit: Pagination (limit max 100)
            from_date / to_date: Publish date range (YYYY-MM-DD)
            response_format: 'markdown' (default) or 'json'
        """
        return await _invoke(macro_data.get_analysis_reports, client, locals())

    # ============================================================================
    # INTEREST RATES
    # ============================================================================

    @mcp.tool(annotations=READ_ONLY)
    async def wifeed_get_policy_interest_rate(
        page: int = 1,
        limit: int = 20,
        by_time: Optional[str] = None,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        from_time: Optional[str] = None,
        to_time: Optional[str] = None,
        response_format: str = "markdown",
    ) -> ToolResult:
        """
        Get State Bank of Vietnam policy rates: refinancing, discount, OMO,
        overnight lending, deposit caps and reserve requirements.
        """
        return await _invoke(macro_data.get_policy_interest_rate, client, locals())

    @mcp.tool(annotations=READ_ONLY)
    async def wifeed_get_interbank_rate(
        page: int = 1,
        limit: int = 20,
        by_time: Optional[str] = None,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        from_time: Optional[str] = None,
        to_time: Optional[str] = None,
        response_format: str = "markdown",
    ) -> ToolResult:
        """Get Vietnamese interbank rates (overnight to 9 months) and overnight volume."""
        return await _invoke(macro_data.get_interbank_rate, client, locals())

    @mcp.tool(annotations=READ_ONLY)
    async def wifeed_get_deposit_rate_by_group(
        page: int = 1,
        limit: int = 20,
        by_time: Optional[str] = None,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        from_time: Optional[str] = None,
        to_time: Optional[str] = None,
        response_format: str = "markdown",
    ) -> ToolResult:
        """Get average deposit rates per bank group (state-owned, joint-stock, ...) and term."""
        return await _invoke(macro_data.get_deposit_rate_by_group, client, locals())

    @mcp.tool(annotations=READ_ONLY)
    async def wifeed_get_deposit_rate_by_bank(
        ky_han: int,
        page: int = 1,
        limit: int = 100,
        by_time: Optional[str] = None,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        from_time: Optional[str] = None,
        to_time: Optional[str] = None,
        response_format: str = "markdown",
    ) -> ToolResult:
        """
        Get deposit rates of individual banks for one term, highest rate first.

        Args:
            ky_han: Term in months (1-36), e.g. 1, 3, 6, 12
            page / limit: Pagination over the ranked list (limit max 100)
            response_format: 'markdown' (default) or 'json'
        """
        return await _invoke(macro_data.get_deposit_rate_by_bank, client, locals())

    # ============================================================================
    # EXCHANGE RATES + COMMODITIES
    # ============================================================================

    @mcp.tool(annotations=READ_ONLY)
    async def wifeed_get_exchange_rate(
        page: int = 1,
        limit: int = 100,
        by_time: Optional[str] = None,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        from_time: Optional[str] = None,
        to_time: Optional[str] = None,
        response_format: str = "markdown",
    ) -> ToolResult:
        """Get USD/VND rates: commercial banks, free market and the State Bank (central, ceiling, floor)."""
        return await _invoke(macro_data.get_exchange_rate, client, locals())

    @mcp.tool(annotations=READ_ONLY)
    async def wifeed_get_international_commodity(
        page: int = 1,
        limit: int = 100,
        data_type: str = "value_today",
        by_time: Optional[str] = None,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        from_time: Optional[str] = None,
        response_format: str = "markdown",
    ) -> ToolResult:
        """
        Get international commodity prices (oil, gold, metals, agriculture, ...).

        Args:
            data_type: 'value_today' (default), 'change_1d', 'change_mtd' or 'change_ytd'
        """
        return await _invoke(macro_data.get_international_commodity, client, locals())

    @mcp.tool(annotations=READ_ONLY)
    async def wifeed_get_domestic_commodity(
        page: int = 1,
        limit: int = 100,
        data_type: str = "value_today",
        by_time: Optional[str] = None,
        from_time: Optional[str] = None,
        response_format: str = "markdown",
    ) -> ToolResult:
        """Get Vietnamese domestic commodity prices (steel, pork, coffee, rice, ...)."""
        return await _invoke(macro_data.get_domestic_commodity, client, locals())

    @mcp.tool(annotations=READ_ONLY)
    async def wifeed_get_other_exchange_rate(
        page: int = 1,
        limit: int = 100,
        by_time: Optional[str] = None,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        from_time: Optional[str] = None,
        to_time: Optional[str] = None,
        response_format: str = "markdown",
    ) -> ToolResult:
        """Get cross exchange rates (EUR/USD, USD/JPY, Asian currencies, crypto, Dollar Index)."""
        return await _invoke(macro_data.get_other_exchange_rate, client, locals())

    # ============================================================================
    # HEALTH
    # ============================================================================

    @mcp.custom_route("/health", methods=["GET"])
    async def health(request: Request) -> JSONResponse:
        return JSONResponse(health_payload())

    return mcp


def health_payload() -> Dict[str, str]:
    return {"status": "ok", "server": SERVER_NAME, "version": SERVER_VERSION}


# ============================================================================
# RUN SERVER
# ============================================================================

def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="WiFeed MCP server")
    parser.add_argument("--transport", choices=["stdio", "http"], default=None,
                        help="Override TRANSPORT (default: stdio)")
    parser.add_argument("--host", type=str, default=None, help="Override HOST for http transport")
    parser.add_argument("--port", type=int, default=None, help="Override PORT for http transport")
    return parser.parse_args(argv)


def main(argv: Optional[list] = None) -> int:
    args = parse_args(argv)

    # stdout carries the stdio protocol; logs go to stderr
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, stream=sys.stderr)

    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.error("ERROR: %s", e.message)
        return 1

    logging.getLogger().setLevel(settings.log_level)
    if settings.debug_api:
        logging.getLogger("wifeed_mcp.client").setLevel(logging.DEBUG)

    transport = args.transport or settings.transport
    host = args.host or settings.host
    port = args.port or settings.port

    client = initialize_client(settings.api_key, debug=settings.debug_api)
    mcp = create_server(client)

    if transport == "http":
        logger.info("%s v%s running on http://%s:%d/mcp", SERVER_NAME, SERVER_VERSION, host, port)
        mcp.run(transport="streamable-http", host=host, port=port)
    else:
        logger.info("%s v%s running via stdio", SERVER_NAME, SERVER_VERSION)
        mcp.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
