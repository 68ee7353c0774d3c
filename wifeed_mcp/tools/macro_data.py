"""
Macro data tools (dữ liệu vĩ mô) and broker analysis reports.

- Analysis reports (báo cáo phân tích)
- Policy, interbank and deposit interest rates
- USD/VND and other exchange rates
- International and domestic commodity prices
"""

from typing import Any, Dict, List, Mapping

from wifeed_mcp.client import WiFeedClient
from wifeed_mcp.constants import MAX_PAGE_LIMIT, AnalysisReportType
from wifeed_mcp.fieldmap import COMMODITY_RESERVED_KEYS, flat_series, project_all
from wifeed_mcp.formatting import (
    format_date,
    format_fixed,
    format_number,
    md_table,
    title_case,
)
from wifeed_mcp.normalize import extract_meta
from wifeed_mcp.pagination import paginate
from wifeed_mcp.schemas import (
    AnalysisReportsInput,
    DepositRateByBankInput,
    DepositRateByGroupInput,
    DomesticCommodityInput,
    ExchangeRateInput,
    InterbankRateInput,
    InternationalCommodityInput,
    OtherExchangeRateInput,
    PolicyInterestRateInput,
)
from wifeed_mcp.tooling import ToolResponse, fetch_records, no_data, operation, render


ANALYSIS_REPORTS_ENDPOINT = "/bao-cao-phan-tich"
POLICY_RATE_ENDPOINT = "/du-lieu-vimo/chinh-sach/lai-suat"
INTERBANK_RATE_ENDPOINT = "/du-lieu-vimo/lai-suat/lien-ngan-hang"
DEPOSIT_BY_GROUP_ENDPOINT = "/du-lieu-vimo/lai-suat/huy-dong-theo-nhom-ngan-hang"
DEPOSIT_BY_BANK_ENDPOINT = "/du-lieu-vimo/v2/lai-suat/huy-dong-theo-tung-ngan-hang"
EXCHANGE_RATE_ENDPOINT = "/du-lieu-vimo/ty-gia"
INTERNATIONAL_COMMODITY_ENDPOINT = "/du-lieu-vimo/hang-hoa/v2/gia-hang-hoa-quoc-te"
DOMESTIC_COMMODITY_ENDPOINT = "/du-lieu-vimo/hang-hoa/v2/gia-hang-hoa-trong-nuoc/ngay"
OTHER_EXCHANGE_RATE_ENDPOINT = "/du-lieu-vimo/ty-gia-khac"


# ============================================================================
# FIELD TABLES
# ============================================================================

ANALYSIS_REPORT_FIELDS = {
    "id": "id",
    "code": ("code", "mack"),
    "title": ("title", "tenbaocao"),
    "source": ("source", "nguon"),
    "type": "type",
    "publish_date": "publish_date",
    "file_url": ("file_url", "filebaocao"),
    "recommendation": "khuyennghi",
    "target_price": "giamuctieu",
    "target_price_adjusted": "giamuctieu_dieuchinrh",
    "upside": "upside_hientai",
    "net_profit_forecast": "lnst_duphong",
    "net_profit_forecast_n1": "lnst_duphong_n1",
    "net_profit_forecast_n2": "lnst_duphong_n2",
    "revenue_forecast": "doanhthu_duphong",
    "revenue_forecast_n1": "doanhthu_duphong_n1",
    "revenue_forecast_n2": "doanhthu_duphong_n2",
    "forward_pe": "pe_mack_n0",
}

REPORT_TYPE_LABELS = {
    AnalysisReportType.ALL: "All",
    AnalysisReportType.INDUSTRY: "Industry",
    AnalysisReportType.COMPANY: "Company",
}

POLICY_RATE_FIELDS = {
    "date": "ngay",
    "refinancing_rate": "lai_suat_dieu_hanh_tai_cap_von",
    "discount_rate": "lai_suat_dieu_hanh_chiet_khau",
    "omo_rate": "lai_suat_dieu_hanh_omo",
    "overnight_lending_rate": "ls_cho_vay_bu_dap_thieu_hut_von_nhnn",
    "max_1_month_rate": "ls_toi_da_1_thang",
    "max_6_month_rate": "ls_toi_da_6_thang",
    "reserve_requirement_vnd": "ls_du_tru_bat_buoc_vnd",
    "reserve_requirement_fx": "ls_du_tru_bat_buoc_ngoai_te",
}

INTERBANK_RATE_FIELDS = {
    "date": "ngay",
    "federal_funds_rate": "federal_funds_rate",
    "overnight": "lai_suat_lien_nh_on",
    "week_1": "lai_suat_lien_nh_1w",
    "week_2": "lai_suat_lien_nh_2w",
    "month_1": "lai_suat_lien_nh_1m",
    "month_3": "lai_suat_lien_nh_3m",
    "month_6": "lai_suat_lien_nh_6m",
    "month_9": "lai_suat_lien_nh_9m",
    "volume_overnight": "doanh_so_lien_nh_on",
}

DEPOSIT_GROUP_FIELDS = {
    "date": "date",
    "bank_group": "bank_group",
    "term": "term",
    "rate": "rate",
}

DEPOSIT_BANK_FIELDS = {
    "bank_code": "bank_code",
    "bank_name": "bank_name",
    "rate": "rate",
    "date": "date",
}

EXCHANGE_RATE_FIELDS = {
    "date": "ngay",
    "commercial_bank": {
        "buy_cash": "usd_nhtm_mua_vao",
        "buy_transfer": "usd_nhtm_chuyen_khoan",
        "sell": "usd_nhtm_ban_ra",
    },
    "free_market": {
        "buy": "usd_tu_do_mua_vao",
        "sell": "usd_tu_do_ban_ra",
    },
    "sbv": {
        "central_rate": "usd_nhnn_trung_tam",
        "ceiling": "usd_nhnn_tran",
        "floor": "usd_nhnn_san",
        "buy": "usd_nhnn_mua_vao",
        "sell": "usd_nhnn_ban_ra",
    },
}

PAIR_DISPLAY_NAMES = {
    "dx": "Dollar Index",
}


def pair_name(key: str) -> str:
    """'eur_usd' -> 'EUR/USD'; a few index series have their own names."""
    return PAIR_DISPLAY_NAMES.get(key, key.upper().replace("_", "/"))


def _page_params(params: Any) -> Dict[str, Any]:
    return {"page": params.page, "limit": params.limit}


def _listing(params: Any, data: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"page": params.page, "limit": params.limit, "count": len(data), "data": data}


def _percent(value: Any) -> str:
    return "N/A" if value is None else f"{value}%"


# ============================================================================
# ANALYSIS REPORTS
# ============================================================================

def build_analysis_output(params: AnalysisReportsInput, records: List[Any], payload: Any) -> Dict[str, Any]:
    meta = extract_meta(payload)
    total = meta.get("total_count") or len(records)
    total_page = meta.get("total_page")
    if total_page:
        has_more = total_page > params.page
    else:
        has_more = total > params.page * params.limit
    return {
        "total": total,
        "page": params.page,
        "limit": params.limit,
        "has_more": has_more,
        "reports": project_all(records, ANALYSIS_REPORT_FIELDS),
    }


def _report_type_label(value: Any) -> str:
    try:
        return REPORT_TYPE_LABELS[AnalysisReportType(value)]
    except (ValueError, TypeError):
        return "Report"


def analysis_markdown(output: Dict[str, Any]) -> str:
    lines = [
        "# Analysis Reports",
        "",
        f"**Total:** {output['total']} reports | **Page:** {output['page']}",
        "",
    ]
    for report in output["reports"]:
        lines.append(f"## {_report_type_label(report['type'])} - {report['title'] or 'Untitled'}")
        lines.append(f"**Code:** {report['code'] or 'N/A'} | **Source:** {report['source'] or 'N/A'}")
        lines.append(f"**Date:** {format_date(report['publish_date'])}")
        if report["recommendation"]:
            lines.append(f"**Recommendation:** {report['recommendation']}")
        if report["target_price"]:
            target = f"**Target Price:** {format_number(report['target_price'])}"
            if report["upside"]:
                target += f" (Upside: {format_fixed(report['upside'], 1)}%)"
            lines.append(target)
        if report["forward_pe"]:
            lines.append(f"**Forward P/E:** {format_fixed(report['forward_pe'])}")
        lines.append(f"**Download:** [PDF]({report['file_url'] or ''})")
        lines.extend(["", "---", ""])

    if output["has_more"]:
        lines.append(f"*More results available. Use page={output['page'] + 1} to see next page.*")
    return "\n".join(lines)


@operation("analysis reports", AnalysisReportsInput)
async def get_analysis_reports(client: WiFeedClient, params: AnalysisReportsInput) -> ToolResponse:
    records, payload = await fetch_records(
        client,
        ANALYSIS_REPORTS_ENDPOINT,
        {
            "code": params.code,
            "type": int(params.type),
            **_page_params(params),
            "from-date": params.from_date,
            "to-date": params.to_date,
        },
    )
    if not records:
        return no_data("No analysis reports found with the specified criteria.")
    output = build_analysis_output(params, records, payload)
    return render(output, params.response_format, analysis_markdown)


# ============================================================================
# INTEREST RATES
# ============================================================================

def policy_rate_markdown(output: Dict[str, Any]) -> str:
    lines = ["# Vietnam Policy Interest Rates", ""]
    lines += md_table(
        ["Date", "Refinancing", "Discount", "OMO", "Overnight Lending", "Max 1M", "Max 6M"],
        (
            [
                format_date(item["date"]),
                _percent(item["refinancing_rate"]),
                _percent(item["discount_rate"]),
                _percent(item["omo_rate"]),
                _percent(item["overnight_lending_rate"]),
                _percent(item["max_1_month_rate"]),
                _percent(item["max_6_month_rate"]),
            ]
            for item in output["data"]
        ),
    )
    return "\n".join(lines) + "\n"


@operation("policy interest rates", PolicyInterestRateInput)
async def get_policy_interest_rate(client: WiFeedClient, params: PolicyInterestRateInput) -> ToolResponse:
    records, _ = await fetch_records(
        client, POLICY_RATE_ENDPOINT, {**_page_params(params), **params.filter_params()}
    )
    if not records:
        return no_data("No policy interest rate data found.")
    output = _listing(params, project_all(records, POLICY_RATE_FIELDS))
    return render(output, params.response_format, policy_rate_markdown)


def interbank_markdown(output: Dict[str, Any]) -> str:
    tenors = ["overnight", "week_1", "week_2", "month_1", "month_3", "month_6", "month_9"]
    lines = ["# Vietnam Interbank Interest Rates", ""]
    lines += md_table(
        ["Date", "O/N", "1W", "2W", "1M", "3M", "6M", "9M"],
        (
            [format_date(item["date"])] + [format_fixed(item[t]) for t in tenors]
            for item in output["data"]
        ),
    )
    return "\n".join(lines) + "\n"


@operation("interbank rates", InterbankRateInput)
async def get_interbank_rate(client: WiFeedClient, params: InterbankRateInput) -> ToolResponse:
    records, _ = await fetch_records(
        client, INTERBANK_RATE_ENDPOINT, {**_page_params(params), **params.filter_params()}
    )
    if not records:
        return no_data("No interbank interest rate data found.")
    output = _listing(params, project_all(records, INTERBANK_RATE_FIELDS))
    return render(output, params.response_format, interbank_markdown)


def deposit_group_markdown(output: Dict[str, Any]) -> str:
    lines = ["# Deposit Rates by Bank Group", ""]
    lines += md_table(
        ["Date", "Bank Group", "Term", "Rate"],
        (
            [format_date(item["date"]), item["bank_group"], item["term"], _percent(item["rate"])]
            for item in output["data"]
        ),
    )
    return "\n".join(lines) + "\n"


@operation("deposit rates by bank group", DepositRateByGroupInput)
async def get_deposit_rate_by_group(client: WiFeedClient, params: DepositRateByGroupInput) -> ToolResponse:
    records, _ = await fetch_records(
        client, DEPOSIT_BY_GROUP_ENDPOINT, {**_page_params(params), **params.filter_params()}
    )
    if not records:
        return no_data("No deposit rate data by bank group found.")
    output = _listing(params, project_all(records, DEPOSIT_GROUP_FIELDS))
    return render(output, params.response_format, deposit_group_markdown)


def _rate_sort_key(item: Mapping[str, Any]) -> float:
    rate = item.get("rate")
    return rate if isinstance(rate, (int, float)) and not isinstance(rate, bool) else 0


def build_deposit_by_bank_output(params: DepositRateByBankInput, records: List[Any]) -> Dict[str, Any]:
    """Rank every bank by rate (highest first), then slice the requested page."""
    ranked = sorted(project_all(records, DEPOSIT_BANK_FIELDS), key=_rate_sort_key, reverse=True)
    page = paginate(ranked, params.page, params.limit)
    output: Dict[str, Any] = {"term_months": params.ky_han}
    output.update(page.meta())
    output["count"] = len(page.items)
    output["data"] = page.items
    return output


def deposit_by_bank_markdown(output: Dict[str, Any]) -> str:
    lines = [f"# Deposit Rates by Bank ({output['term_months']}-month term)", ""]
    lines += md_table(
        ["Bank", "Rate", "Date"],
        (
            [f"{item['bank_name']} ({item['bank_code']})", _percent(item["rate"]), format_date(item["date"])]
            for item in output["data"]
        ),
    )
    if output["has_more"]:
        lines.append("")
        lines.append(f"*More results available. Use page={output['next_page']} to see next page.*")
    return "\n".join(lines) + "\n"


@operation("deposit rates by bank", DepositRateByBankInput)
async def get_deposit_rate_by_bank(client: WiFeedClient, params: DepositRateByBankInput) -> ToolResponse:
    records, _ = await fetch_records(
        client,
        DEPOSIT_BY_BANK_ENDPOINT,
        {"ky_han": params.ky_han, "limit": MAX_PAGE_LIMIT, **params.filter_params()},
    )
    if not records:
        return no_data(f"No deposit rate data found for {params.ky_han}-month term.")
    output = build_deposit_by_bank_output(params, records)
    return render(output, params.response_format, deposit_by_bank_markdown)


# ============================================================================
# EXCHANGE RATES
# ============================================================================

def exchange_rate_markdown(output: Dict[str, Any]) -> str:
    lines = ["# Vietnam USD/VND Exchange Rates", ""]
    for item in output["data"]:
        bank, free, sbv = item["commercial_bank"], item["free_market"], item["sbv"]
        lines += [f"## {format_date(item['date'])}", "", "### Commercial Bank (NHTM)"]
        lines += md_table(
            ["Buy Cash", "Buy Transfer", "Sell"],
            [[format_number(bank["buy_cash"]), format_number(bank["buy_transfer"]), format_number(bank["sell"])]],
        )
        lines += ["", "### Free Market"]
        lines += md_table(["Buy", "Sell"], [[format_number(free["buy"]), format_number(free["sell"])]])
        lines += ["", "### State Bank of Vietnam (NHNN)"]
        lines += md_table(
            ["Central Rate", "Ceiling", "Floor", "Buy", "Sell"],
            [[
                format_number(sbv["central_rate"]),
                format_number(sbv["ceiling"]),
                format_number(sbv["floor"]),
                format_number(sbv["buy"]),
                format_number(sbv["sell"]),
            ]],
        )
        lines += ["", "---", ""]
    return "\n".join(lines)


@operation("exchange rates", ExchangeRateInput)
async def get_exchange_rate(client: WiFeedClient, params: ExchangeRateInput) -> ToolResponse:
    records, _ = await fetch_records(
        client, EXCHANGE_RATE_ENDPOINT, {**_page_params(params), **params.filter_params()}
    )
    if not records:
        return no_data("No exchange rate data found.")
    output = _listing(params, project_all(records, EXCHANGE_RATE_FIELDS))
    return render(output, params.response_format, exchange_rate_markdown)


def build_other_rates_output(params: OtherExchangeRateInput, records: List[Any]) -> Dict[str, Any]:
    rows = [
        {"date": row.get("ngay"), "pairs": flat_series(row, COMMODITY_RESERVED_KEYS, pair_name)}
        for row in records
        if isinstance(row, Mapping)
    ]
    return _listing(params, rows)


def other_rates_markdown(output: Dict[str, Any]) -> str:
    lines = ["# Other Exchange Rates", ""]
    for row in output["data"]:
        lines += [f"## {format_date(row['date'])}", ""]
        lines += md_table(["Pair", "Rate"], ([p["name"], format_number(p["value"])] for p in row["pairs"]))
        lines += ["", "---", ""]
    return "\n".join(lines)


@operation("other exchange rates", OtherExchangeRateInput)
async def get_other_exchange_rate(client: WiFeedClient, params: OtherExchangeRateInput) -> ToolResponse:
    records, _ = await fetch_records(
        client, OTHER_EXCHANGE_RATE_ENDPOINT, {**_page_params(params), **params.filter_params()}
    )
    if not records:
        return no_data("No other exchange rate data found.")
    output = build_other_rates_output(params, records)
    return render(output, params.response_format, other_rates_markdown)


# ============================================================================
# COMMODITIES
# ============================================================================

def build_commodity_output(data_type: str, records: List[Any]) -> Dict[str, Any]:
    rows = [
        {
            "date": row.get("ngay"),
            "data_type": row.get("data_type") or data_type,
            "commodities": flat_series(row),
        }
        for row in records
        if isinstance(row, Mapping)
    ]
    return {"data_type": data_type, "count": len(rows), "data": rows}


def _commodity_markdown(title: str, output: Dict[str, Any]) -> str:
    lines = [f"# {title}", "", f"**Data Type:** {output['data_type']}", ""]
    for row in output["data"]:
        lines += [f"## {format_date(row['date'])}", ""]
        lines += md_table(
            ["Commodity", "Value"],
            ([title_case(c["name"]), format_number(c["value"])] for c in row["commodities"]),
        )
        lines.append("")
    return "\n".join(lines)


def international_commodity_markdown(output: Dict[str, Any]) -> str:
    return _commodity_markdown("International Commodity Prices", output)


def domestic_commodity_markdown(output: Dict[str, Any]) -> str:
    return _commodity_markdown("Vietnam Domestic Commodity Prices", output)


@operation("international commodity prices", InternationalCommodityInput)
async def get_international_commodity(client: WiFeedClient, params: InternationalCommodityInput) -> ToolResponse:
    records, _ = await fetch_records(
        client,
        INTERNATIONAL_COMMODITY_ENDPOINT,
        {
            **_page_params(params),
            "data_type": params.data_type.value,
            "by-time": params.by_time.value if params.by_time else None,
            "from-date": params.from_date,
            "to-date": params.to_date,
            "from-time": params.from_time,
        },
    )
    if not records:
        return no_data("No international commodity data found.")
    output = build_commodity_output(params.data_type.value, records)
    return render(output, params.response_format, international_commodity_markdown)


@operation("domestic commodity prices", DomesticCommodityInput)
async def get_domestic_commodity(client: WiFeedClient, params: DomesticCommodityInput) -> ToolResponse:
    records, _ = await fetch_records(
        client,
        DOMESTIC_COMMODITY_ENDPOINT,
        {
            **_page_params(params),
            "data_type": params.data_type.value,
            "by-time": params.by_time.value if params.by_time else None,
            "from-time": params.from_time,
        },
    )
    if not records:
        return no_data("No domestic commodity data found.")
    output = build_commodity_output(params.data_type.value, records)
    return render(output, params.response_format, domestic_commodity_markdown)
