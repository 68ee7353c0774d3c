from __future__ import annotations

import json

import httpx
import pytest
import respx

from conftest import endpoint_url, query
from wifeed_mcp.client import WiFeedClient
from wifeed_mcp.tools.macro_data import (
    ANALYSIS_REPORTS_ENDPOINT,
    DEPOSIT_BY_BANK_ENDPOINT,
    DEPOSIT_BY_GROUP_ENDPOINT,
    DOMESTIC_COMMODITY_ENDPOINT,
    EXCHANGE_RATE_ENDPOINT,
    INTERBANK_RATE_ENDPOINT,
    INTERNATIONAL_COMMODITY_ENDPOINT,
    OTHER_EXCHANGE_RATE_ENDPOINT,
    POLICY_RATE_ENDPOINT,
    get_analysis_reports,
    get_deposit_rate_by_bank,
    get_deposit_rate_by_group,
    get_domestic_commodity,
    get_exchange_rate,
    get_interbank_rate,
    get_international_commodity,
    get_other_exchange_rate,
    get_policy_interest_rate,
    pair_name,
)


def _mock(path: str, body: object, status: int = 200) -> respx.Route:
    return respx.get(endpoint_url(path)).mock(return_value=httpx.Response(status, json=body))


# ============================================================================
# ANALYSIS REPORTS
# ============================================================================

@pytest.mark.anyio
@respx.mock
async def test_analysis_reports_fallback_fields(client: WiFeedClient) -> None:
    route = _mock(
        ANALYSIS_REPORTS_ENDPOINT,
        {
            "meta": {"total_count": 57},
            "data": [
                {
                    "id": 11,
                    "mack": "FPT",
                    "tenbaocao": "FPT - Tăng trưởng bền vững",
                    "nguon": "SSI",
                    "type": 1,
                    "publish_date": "2024-07-01",
                    "filebaocao": "https://example.com/fpt.pdf",
                    "khuyennghi": "MUA",
                    "giamuctieu": 150_000,
                    "upside_hientai": 18.3,
                    "pe_mack_n0": 19.456,
                },
                {"id": 12, "code": "", "mack": "HPG", "title": "Thép", "type": 2},
            ],
        },
    )

    result = await get_analysis_reports(
        client, {"code": "fpt", "from_date": "2024-01-01", "response_format": "json"}
    )

    output = json.loads(result.text)
    assert output["total"] == 57
    assert output["has_more"] is True
    first, second = output["reports"]
    assert first["code"] == "FPT"
    assert first["title"] == "FPT - Tăng trưởng bền vững"
    assert first["source"] == "SSI"
    assert first["file_url"] == "https://example.com/fpt.pdf"
    assert first["forward_pe"] == 19.456
    # present-but-empty primary key wins over the alternate
    assert second["code"] == ""
    assert query(route) == {
        "code": "FPT",
        "type": "3",
        "page": "1",
        "limit": "20",
        "from-date": "2024-01-01",
        "apikey": "test-key",
    }


@pytest.mark.anyio
@respx.mock
async def test_analysis_reports_markdown(client: WiFeedClient) -> None:
    _mock(
        ANALYSIS_REPORTS_ENDPOINT,
        [{"mack": "FPT", "tenbaocao": "FPT Q2", "nguon": "SSI", "type": 3, "giamuctieu": 150_000,
          "upside_hientai": 18.3, "publish_date": "2024-07-01"}],
    )

    result = await get_analysis_reports(client, {})

    assert "**Total:** 1 reports | **Page:** 1" in result.text
    assert "## Company - FPT Q2" in result.text
    assert "**Target Price:** 150.000 (Upside: 18.3%)" in result.text
    assert "**Date:** 01/07/2024" in result.text


@pytest.mark.anyio
@respx.mock
async def test_analysis_reports_default_type_is_company(client: WiFeedClient) -> None:
    route = _mock(
        ANALYSIS_REPORTS_ENDPOINT,
        [{"mack": "VCB", "tenbaocao": "Ngân hàng 2024", "nguon": "VCSC", "type": 1}],
    )

    result = await get_analysis_reports(client, {})

    assert query(route)["type"] == "3"
    assert "## All - Ngân hàng 2024" in result.text


@pytest.mark.anyio
@respx.mock
async def test_analysis_reports_no_data(client: WiFeedClient) -> None:
    _mock(ANALYSIS_REPORTS_ENDPOINT, {"data": [], "meta": {"total_count": 0}})
    result = await get_analysis_reports(client, {"type": 2})
    assert result.text == "No analysis reports found with the specified criteria."


# ============================================================================
# INTEREST RATES
# ============================================================================

@pytest.mark.anyio
@respx.mock
async def test_policy_rate_listing(client: WiFeedClient) -> None:
    route = _mock(
        POLICY_RATE_ENDPOINT,
        {"data": {"data": [{"ngay": "2024-06-01", "lai_suat_dieu_hanh_tai_cap_von": 4.5,
                            "lai_suat_dieu_hanh_omo": 4.0}]}},
    )

    result = await get_policy_interest_rate(
        client, {"by_time": "updated_at", "from_time": "2024-01-01", "response_format": "json"}
    )

    output = json.loads(result.text)
    assert output["count"] == 1
    assert output["data"][0]["refinancing_rate"] == 4.5
    assert output["data"][0]["reserve_requirement_fx"] is None
    params = query(route)
    assert params["by-time"] == "updated_at"
    assert params["from-time"] == "2024-01-01"


@pytest.mark.anyio
@respx.mock
async def test_policy_rate_markdown_table(client: WiFeedClient) -> None:
    _mock(POLICY_RATE_ENDPOINT, [{"ngay": "2024-06-01", "lai_suat_dieu_hanh_tai_cap_von": 4.5}])

    result = await get_policy_interest_rate(client, {})

    assert "| Date | Refinancing | Discount | OMO | Overnight Lending | Max 1M | Max 6M |" in result.text
    assert "| 01/06/2024 | 4.5% | N/A |" in result.text


@pytest.mark.anyio
@respx.mock
async def test_interbank_rate(client: WiFeedClient) -> None:
    _mock(INTERBANK_RATE_ENDPOINT, [{"ngay": "2024-06-03", "lai_suat_lien_nh_on": 4.1, "lai_suat_lien_nh_1w": 4.25}])

    result = await get_interbank_rate(client, {})

    assert "| 03/06/2024 | 4.10 | 4.25 | N/A |" in result.text


@pytest.mark.anyio
@respx.mock
async def test_interbank_no_data(client: WiFeedClient) -> None:
    _mock(INTERBANK_RATE_ENDPOINT, {"meta": {"total_count": 0}})
    result = await get_interbank_rate(client, {})
    assert result.text == "No interbank interest rate data found."


@pytest.mark.anyio
@respx.mock
async def test_deposit_rate_by_group(client: WiFeedClient) -> None:
    _mock(DEPOSIT_BY_GROUP_ENDPOINT, [{"date": "2024-06-01", "bank_group": "Big4", "term": 12, "rate": 4.7}])

    result = await get_deposit_rate_by_group(client, {"response_format": "json"})

    assert json.loads(result.text)["data"] == [
        {"date": "2024-06-01", "bank_group": "Big4", "term": 12, "rate": 4.7}
    ]


BANKS = [
    {"bank_code": "VCB", "bank_name": "Vietcombank", "rate": 4.6, "date": "2024-06-01"},
    {"bank_code": "XYZ", "bank_name": "Unknown", "rate": None, "date": "2024-06-01"},
    {"bank_code": "NCB", "bank_name": "NCB", "rate": 5.9, "date": "2024-06-01"},
    {"bank_code": "ACB", "bank_name": "ACB", "rate": 4.9, "date": "2024-06-01"},
]


@pytest.mark.anyio
@respx.mock
async def test_deposit_rate_by_bank_ranked_and_paginated(client: WiFeedClient) -> None:
    route = _mock(DEPOSIT_BY_BANK_ENDPOINT, BANKS)

    result = await get_deposit_rate_by_bank(
        client, {"ky_han": 12, "limit": 2, "response_format": "json"}
    )

    output = json.loads(result.text)
    assert output["term_months"] == 12
    assert output["total"] == 4
    assert output["has_more"] is True
    assert output["next_page"] == 2
    assert [b["bank_code"] for b in output["data"]] == ["NCB", "ACB"]
    assert query(route)["ky_han"] == "12"
    assert query(route)["limit"] == "100"

    second = await get_deposit_rate_by_bank(
        client, {"ky_han": 12, "limit": 2, "page": 2, "response_format": "json"}
    )
    tail = json.loads(second.text)
    assert [b["bank_code"] for b in tail["data"]] == ["VCB", "XYZ"]
    assert tail["data"][1]["rate"] is None
    assert tail["has_more"] is False


@pytest.mark.anyio
@respx.mock
async def test_deposit_rate_by_bank_no_data(client: WiFeedClient) -> None:
    _mock(DEPOSIT_BY_BANK_ENDPOINT, [])
    result = await get_deposit_rate_by_bank(client, {"ky_han": 6})
    assert result.text == "No deposit rate data found for 6-month term."


# ============================================================================
# EXCHANGE RATES
# ============================================================================

@pytest.mark.anyio
@respx.mock
async def test_exchange_rate_sections(client: WiFeedClient) -> None:
    _mock(
        EXCHANGE_RATE_ENDPOINT,
        [{"ngay": "2024-06-03", "usd_nhtm_mua_vao": 25_187, "usd_nhtm_ban_ra": 25_457,
          "usd_tu_do_mua_vao": 25_800, "usd_nhnn_trung_tam": 24_255}],
    )

    json_result = await get_exchange_rate(client, {"response_format": "json"})
    md_result = await get_exchange_rate(client, {})

    row = json.loads(json_result.text)["data"][0]
    assert row["commercial_bank"] == {"buy_cash": 25_187, "buy_transfer": None, "sell": 25_457}
    assert row["free_market"]["buy"] == 25_800
    assert row["sbv"]["central_rate"] == 24_255
    assert "### State Bank of Vietnam (NHNN)" in md_result.text
    assert "| 25.187 | N/A | 25.457 |" in md_result.text


@pytest.mark.anyio
@respx.mock
async def test_other_exchange_rate_pairs(client: WiFeedClient) -> None:
    _mock(
        OTHER_EXCHANGE_RATE_ENDPOINT,
        {"data": [{"ngay": "2024-06-03", "eur_usd": 1.0876, "dx": 104.1, "usd_jpy": 156.2, "btc_usd": None,
                   "created_at": "2024-06-03T01:00:00Z"}]},
    )

    result = await get_other_exchange_rate(client, {"response_format": "json"})

    pairs = json.loads(result.text)["data"][0]["pairs"]
    assert pairs == [
        {"name": "Dollar Index", "value": 104.1},
        {"name": "EUR/USD", "value": 1.0876},
        {"name": "USD/JPY", "value": 156.2},
    ]


def test_pair_name() -> None:
    assert pair_name("usd_krw") == "USD/KRW"
    assert pair_name("dx") == "Dollar Index"


# ============================================================================
# COMMODITIES
# ============================================================================

@pytest.mark.anyio
@respx.mock
async def test_international_commodity(client: WiFeedClient) -> None:
    route = _mock(
        INTERNATIONAL_COMMODITY_ENDPOINT,
        [{"ngay": "2024-06-03", "kieu_thoi_gian": "ngay", "vang": 2350.5, "dau_brent": 78.36, "ghi_chu": "x"}],
    )

    result = await get_international_commodity(
        client, {"data_type": "change_1d", "response_format": "json"}
    )

    output = json.loads(result.text)
    assert output["data_type"] == "change_1d"
    assert output["count"] == 1
    assert output["data"][0]["data_type"] == "change_1d"
    assert output["data"][0]["commodities"] == [
        {"name": "dau brent", "value": 78.36},
        {"name": "vang", "value": 2350.5},
    ]
    assert query(route)["data_type"] == "change_1d"


@pytest.mark.anyio
@respx.mock
async def test_domestic_commodity_markdown(client: WiFeedClient) -> None:
    _mock(
        DOMESTIC_COMMODITY_ENDPOINT,
        [{"ngay": "2024-06-03", "data_type": "value_today", "thep_hoa_phat": 14_500, "ca_phe": 120_000.5}],
    )

    result = await get_domestic_commodity(client, {})

    assert result.text.startswith("# Vietnam Domestic Commodity Prices")
    assert "**Data Type:** value_today" in result.text
    assert "| Ca Phe | 120.000,5 |" in result.text
    assert "| Thep Hoa Phat | 14.500 |" in result.text


@pytest.mark.anyio
@respx.mock
async def test_domestic_commodity_no_data(client: WiFeedClient) -> None:
    _mock(DOMESTIC_COMMODITY_ENDPOINT, {})
    result = await get_domestic_commodity(client, {})
    assert result.text == "No domestic commodity data found."


@pytest.mark.anyio
@respx.mock
async def test_rate_limited_is_error_payload(client: WiFeedClient) -> None:
    route = _mock(EXCHANGE_RATE_ENDPOINT, {}, status=429)

    result = await get_exchange_rate(client, {})

    assert result.is_error is True
    assert "Rate limit exceeded" in result.text
    assert result.text.startswith("Error fetching exchange rates:")
    assert route.call_count == 1
