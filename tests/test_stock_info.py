from __future__ import annotations

import json

import httpx
import pytest
import respx

from conftest import endpoint_url, query
from wifeed_mcp.client import WiFeedClient
from wifeed_mcp.tools.stock_info import INSIDER_TRADING_ENDPOINT, get_insider_trading

TRADES = {
    "meta": {"total_page": 3, "total_count": 45},
    "data": [
        {
            "type": "Mua",
            "name": "Nguyen Van A",
            "position": "Chủ tịch HĐQT",
            "share_before": 1_000_000,
            "amount_reg": 500_000,
            "amount_result": 500_000,
            "date_result": "2024-06-12",
            "share_after": 1_500_000,
            "ratio": 0.25,
            "relationship_name": None,
            "relationship_position": None,
        },
        {
            "type": "Bán",
            "name": "Tran Thi B",
            "position": None,
            "share_before": None,
            "amount_result": 20_000,
            "date_result": "2024-06-10",
            "share_after": None,
            "ratio": None,
            "relationship_name": "Nguyen Van A",
            "relationship_position": "Vợ",
        },
    ],
}


@pytest.mark.anyio
@respx.mock
async def test_insider_trading_json(client: WiFeedClient) -> None:
    route = respx.get(endpoint_url(INSIDER_TRADING_ENDPOINT)).mock(
        return_value=httpx.Response(200, json=TRADES)
    )

    result = await get_insider_trading(client, {"code": "hpg", "response_format": "json"})

    output = json.loads(result.text)
    assert output["code"] == "HPG"
    assert output["meta"] == {
        "total_page": 3,
        "total_count": 45,
        "current_page": 1,
        "limit": 20,
        "has_more": True,
    }
    assert len(output["data"]) == 2
    assert output["data"][1]["amount_reg"] is None
    assert set(output["data"][0]) == {
        "type", "name", "position", "share_before", "amount_reg", "amount_result",
        "date_result", "share_after", "ratio", "relationship_name", "relationship_position",
    }
    assert query(route) == {"code": "HPG", "page": "1", "limit": "20", "apikey": "test-key"}


@pytest.mark.anyio
@respx.mock
async def test_insider_trading_markdown(client: WiFeedClient) -> None:
    respx.get(endpoint_url(INSIDER_TRADING_ENDPOINT)).mock(
        return_value=httpx.Response(200, json=TRADES)
    )

    result = await get_insider_trading(client, {"code": "HPG", "page": 1})

    text = result.text
    assert text.startswith("# Insider Trading - HPG")
    assert "**Page:** 1 / 3" in text
    assert "## 🟢 Mua - Nguyen Van A" in text
    assert "## 🔴 Bán - Tran Thi B" in text
    assert "**Date:** 12/06/2024" in text
    assert "**Amount:** 500.000 shares" in text
    assert "**Ownership Ratio:** 0.25%" in text
    assert "**Related to:** Nguyen Van A (Vợ)" in text
    assert "Use page=2 to see next page." in text


@pytest.mark.anyio
@respx.mock
async def test_insider_last_page_without_meta(client: WiFeedClient) -> None:
    respx.get(endpoint_url(INSIDER_TRADING_ENDPOINT)).mock(
        return_value=httpx.Response(200, json=TRADES["data"][:1])
    )

    result = await get_insider_trading(client, {"code": "HPG", "response_format": "json"})

    meta = json.loads(result.text)["meta"]
    assert meta["total_page"] == 1
    assert meta["total_count"] == 1
    assert meta["has_more"] is False


@pytest.mark.anyio
@respx.mock
async def test_insider_no_data(client: WiFeedClient) -> None:
    respx.get(endpoint_url(INSIDER_TRADING_ENDPOINT)).mock(
        return_value=httpx.Response(200, json={"data": [], "meta": {"total_page": 0}})
    )

    result = await get_insider_trading(client, {"code": "HPG"})

    assert result.is_error is False
    assert result.text == "No insider trading data found for HPG."


@pytest.mark.anyio
@respx.mock
async def test_insider_upstream_error(client: WiFeedClient) -> None:
    respx.get(endpoint_url(INSIDER_TRADING_ENDPOINT)).mock(return_value=httpx.Response(401))

    result = await get_insider_trading(client, {"code": "HPG"})

    assert result.is_error is True
    assert result.text == (
        "Error fetching insider trading data: "
        "Authentication failed. Please check your WiFeed API key."
    )
