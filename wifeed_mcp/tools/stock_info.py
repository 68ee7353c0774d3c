"""
Stock information tools: insider trading (giao dịch nội bộ).
"""

from typing import Any, Dict, List

from wifeed_mcp.client import WiFeedClient
from wifeed_mcp.fieldmap import project_all
from wifeed_mcp.formatting import format_date, format_fixed, format_number
from wifeed_mcp.normalize import extract_meta
from wifeed_mcp.schemas import InsiderTradingInput
from wifeed_mcp.tooling import ToolResponse, fetch_records, no_data, operation, render


INSIDER_TRADING_ENDPOINT = "/thong-tin-co-phieu/giao-dich-noi-bo"

INSIDER_TRADE_FIELDS = {
    "type": "type",
    "name": "name",
    "position": "position",
    "share_before": "share_before",
    "amount_reg": "amount_reg",
    "amount_result": "amount_result",
    "date_result": "date_result",
    "share_after": "share_after",
    "ratio": "ratio",
    "relationship_name": "relationship_name",
    "relationship_position": "relationship_position",
}

BUY = "Mua"


def build_insider_output(params: InsiderTradingInput, records: List[Any], payload: Any) -> Dict[str, Any]:
    meta = extract_meta(payload)
    total_page = meta.get("total_page") or 1
    return {
        "code": params.code,
        "meta": {
            "total_page": total_page,
            "total_count": meta.get("total_count") or len(records),
            "current_page": params.page,
            "limit": params.limit,
            "has_more": total_page > params.page,
        },
        "data": project_all(records, INSIDER_TRADE_FIELDS),
    }


def insider_markdown(output: Dict[str, Any]) -> str:
    meta = output["meta"]
    lines = [
        f"# Insider Trading - {output['code']}",
        "",
        f"**Total Records:** {meta['total_count']}",
        f"**Page:** {meta['current_page']} / {meta['total_page']}",
        "",
    ]

    for item in output["data"]:
        marker = "🟢" if item["type"] == BUY else "🔴"
        lines.append(f"## {marker} {item['type']} - {item['name']}")
        if item["position"]:
            lines.append(f"**Position:** {item['position']}")
        if item["relationship_name"]:
            lines.append(
                f"**Related to:** {item['relationship_name']} "
                f"({item['relationship_position'] or 'N/A'})"
            )
        lines.append(f"**Date:** {format_date(item['date_result'])}")
        lines.append(f"**Amount:** {format_number(item['amount_result'])} shares")
        if item["share_before"] is not None:
            lines.append(f"**Shares Before:** {format_number(item['share_before'])}")
        if item["share_after"] is not None:
            lines.append(f"**Shares After:** {format_number(item['share_after'])}")
        if item["ratio"] is not None:
            lines.append(f"**Ownership Ratio:** {format_fixed(item['ratio'])}%")
        lines.extend(["", "---", ""])

    if meta["has_more"]:
        lines.append("")
        lines.append(
            f"*More results available. Use page={meta['current_page'] + 1} to see next page.*"
        )

    return "\n".join(lines)


@operation("insider trading data", InsiderTradingInput)
async def get_insider_trading(client: WiFeedClient, params: InsiderTradingInput) -> ToolResponse:
    """Insider buy/sell transactions for one ticker, one upstream page at a time."""
    records, payload = await fetch_records(
        client,
        INSIDER_TRADING_ENDPOINT,
        {
            "code": params.code,
            "page": params.page,
            "limit": params.limit,
            **params.filter_params(),
        },
    )
    if not records:
        return no_data(f"No insider trading data found for {params.code}.")

    output = build_insider_output(params, records, payload)
    return render(output, params.response_format, insider_markdown)
