"""
Financial statement tools (báo cáo tài chính).

- Income statement (kết quả kinh doanh), bank and non-bank layouts
- Balance sheet (cân đối kế toán)
- Cash flow statement (lưu chuyển tiền tệ)
- Financial ratios (chỉ số tài chính)

Each tool reads the first record WiFeed returns for the requested period.
"""

from typing import Any, Dict, List, Mapping, Sequence, Tuple

from wifeed_mcp.client import WiFeedClient
from wifeed_mcp.fieldmap import period_label, project
from wifeed_mcp.formatting import bullet, format_currency, format_ratio
from wifeed_mcp.schemas import (
    BalanceSheetInput,
    CashFlowStatementInput,
    FinancialRatiosInput,
    IncomeStatementInput,
    StatementInput,
)
from wifeed_mcp.tooling import ToolResponse, fetch_records, no_data, operation, render


INCOME_STATEMENT_ENDPOINT = "/tai-chinh-doanh-nghiep/bctc/ket-qua-kinh-doanh"
BALANCE_SHEET_ENDPOINT = "/tai-chinh-doanh-nghiep/bctc/can-doi-ke-toan"
CASH_FLOW_ENDPOINT = "/tai-chinh-doanh-nghiep/bctc/luu-chuyen-tien-te"
FINANCIAL_RATIOS_ENDPOINT = "/tai-chinh-doanh-nghiep/v2/chi-so-tai-chinh"

# Only bank income statements carry net interest income
BANK_MARKER_FIELD = "thunhaplaithuan"


# ============================================================================
# FIELD TABLES
# ============================================================================

BANK_INCOME_FIELDS = {
    "net_interest_income": "thunhaplaithuan",
    "net_fee_income": "laithuantuhoatdongdichvu",
    "trading_gain_loss": "lailothuantumuabanchungkhoankinhdoanh",
    "investment_gain_loss": "lailothuantumuabanchungkhoandautu",
    "other_income": "lailothuantuhoatdongkhac",
    "total_operating_income": "tongthunhaphoatdong",
    "operating_expenses": "chiphihoatdong",
    "profit_before_provision": "loinhuanthuantuhdkdtruocchiphiduphongruirotindung",
    "provision_expense": "chiphiduphongruirotindung",
    "profit_before_tax": "tongloinhuantruocthue",
    "income_tax": "chiphithuethunhapdoanhnghiep",
    "net_profit": "loinhuansauthue",
    "minority_interest": "loiichcuacodongthieuso_pl",
    "profit_to_parent": "codongcuacongtyme",
}

COMPANY_INCOME_FIELDS = {
    "revenue": "doanhthu",
    "cost_of_goods_sold": "giavon",
    "gross_profit": "loinhuan_gop",
    "financial_income": "doanhthu_taichinh",
    "financial_expense": "chiphi_taichinh",
    "selling_expense": "chiphi_banhang",
    "admin_expense": "chiphi_quanly",
    "operating_profit": "loinhuan_thuan_hdkd",
    "other_income": "thunhap_khac",
    "other_expense": "chiphi_khac",
    "other_profit": "loinhuan_khac",
    "profit_before_tax": "loinhuan_truocthue",
    "income_tax": "chiphi_thuetndn",
    "net_profit": "loinhuan_sauthue",
    "minority_interest": "loiich_codongthieuso",
    "profit_to_parent": "loinhuan_congty_me",
}

AUDIT_FIELDS = {
    "auditor": "donvikiemtoan",
    "opinion": "ykienkiemtoan",
}

BALANCE_SHEET_FIELDS = {
    "assets": {
        "current_assets": {
            "cash": "tien_va_tuongduong_tien",
            "short_term_investments": "dautunganhan",
            "receivables": "phaithunganhan",
            "inventory": "hangtonkho",
            "other": "taisannganhankhac",
            "total": "taisannganhan",
        },
        "non_current_assets": {
            "long_term_receivables": "phaithudaihan",
            "fixed_assets_tangible": "taisancodinhhuuhinh",
            "fixed_assets_leased": "taisancodinhthuetaichinh",
            "fixed_assets_intangible": "taisancodinhvohinh",
            "investments_in_associates": "dautudaihanvaocongtylienket",
            "other_investments": "dautudaihankhac",
            "other": "taisandaihankhac",
            "total": "taisandaihan",
        },
        "total_assets": "tongtaisan",
    },
    "liabilities": {
        "current_liabilities": {
            "payables": "nophaitra_nganhan",
            "short_term_borrowings": "vaynganhan",
            "other": "nophaitra_khac_nganhan",
            "total": "nophaitra_nganhan_tong",
        },
        "non_current_liabilities": {
            "long_term_borrowings": "vaydaihanphaitratungnam",
            "other": "nophaitra_daihankhac_tong",
            "total": "nophaitra_daihan_tong",
        },
        "total_liabilities": "tongnophaitra",
    },
    "equity": {
        "share_capital": "voncophan",
        "share_premium": "thangduvon",
        "retained_earnings": "loinhuanchuaphanphoi",
        "other_equity": "vonkhac",
        "minority_interest": "loiichcodongthieuso",
        "total_equity": "tongvonchusohu",
    },
    "total_capital": "tongnguonvon",
}

CASH_FLOW_FIELDS = {
    "operating_activities": {
        "profit_before_tax": "loinhuan_truocthue",
        "depreciation": "khauhao_tscdhh",
        "provisions": "dudphong",
        "fx_gain_loss": "lailo_chenh_lech_tygia",
        "investment_gain_loss": "lailo_hoatdong_dautu",
        "interest_expense": "chiphi_laivay",
        "changes_in_receivables": "tanggiamphaithu",
        "changes_in_inventory": "tanggiamhangtonkho",
        "changes_in_payables": "tanggiamphaitra",
        "taxes_paid": "tienthua_thuenoidia",
        "net_cash_from_operating": "luuchuyentientekd",
    },
    "investing_activities": {
        "purchase_of_fixed_assets": "tien_muatscd",
        "sale_of_fixed_assets": "tien_thu_ban_tscd",
        "loans_made": "tien_vay_cho_vay",
        "loan_collections": "tien_thu_hoi_cho_vay",
        "purchase_of_investments": "tien_mua_gop_von",
        "dividends_received": "tien_thu_lai_covao",
        "net_cash_from_investing": "luuchuyentientedt",
    },
    "financing_activities": {
        "proceeds_from_borrowings": "tien_vay_ngan_dai_han",
        "repayment_of_borrowings": "tien_tra_no_vay",
        "lease_payments": "tien_tra_no_thue_tc",
        "proceeds_from_share_issue": "tien_thu_phat_hanh_cp",
        "capital_returned": "tien_tra_von_gop",
        "dividends_paid": "tien_chi_tra_cotuc",
        "net_cash_from_financing": "luuchuyentientetc",
    },
    "summary": {
        "net_change_in_cash": "luuchuyentientethuan",
        "cash_at_beginning": "tien_dau_ky",
        "fx_effect": "anh_huong_ty_gia",
        "cash_at_end": "tien_cuoi_ky",
    },
}


def _same_keys(*names: str) -> Dict[str, str]:
    return {name: name for name in names}


RATIO_FIELDS = {
    "valuation": _same_keys("pe", "pb", "ps", "pcf", "ev_ebitda"),
    "profitability": _same_keys("roe", "roa", "ros", "roic"),
    "growth": _same_keys("revenue_growth", "profit_growth", "eps_growth"),
    "efficiency": _same_keys("asset_turnover", "inventory_turnover", "receivable_turnover"),
    "leverage": _same_keys("debt_to_equity", "debt_to_asset", "current_ratio", "quick_ratio"),
    "per_share": _same_keys("eps", "bvps", "dividend_yield"),
}


# ============================================================================
# OUTPUT BUILDERS
# ============================================================================

def _header(params: Any, record: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "code": params.code,
        "period": period_label(params.type, record),
        "report_type": params.type.value,
    }


def _statement_params(params: StatementInput) -> Dict[str, Any]:
    return {
        "code": params.code,
        "type": params.type.value,
        "nam": params.nam,
        "quy": params.quy,
    }


def is_bank_record(record: Mapping[str, Any]) -> bool:
    return BANK_MARKER_FIELD in record


def build_income_output(params: IncomeStatementInput, record: Mapping[str, Any]) -> Dict[str, Any]:
    is_bank = is_bank_record(record)
    output = _header(params, record)
    output["is_bank"] = is_bank
    output["metrics"] = project(record, BANK_INCOME_FIELDS if is_bank else COMPANY_INCOME_FIELDS)
    output["audit_info"] = project(record, AUDIT_FIELDS)
    return output


def build_balance_sheet_output(params: BalanceSheetInput, record: Mapping[str, Any]) -> Dict[str, Any]:
    output = _header(params, record)
    output.update(project(record, BALANCE_SHEET_FIELDS))
    return output


def build_cash_flow_output(params: CashFlowStatementInput, record: Mapping[str, Any]) -> Dict[str, Any]:
    output = _header(params, record)
    output.update(project(record, CASH_FLOW_FIELDS))
    return output


def build_ratios_output(params: FinancialRatiosInput, record: Mapping[str, Any]) -> Dict[str, Any]:
    output = _header(params, record)
    output.update(project(record, RATIO_FIELDS))
    return output


# ============================================================================
# MARKDOWN
# ============================================================================

Line = Tuple[str, str, bool]


def _section(title: str, rows: Sequence[Line]) -> List[str]:
    lines = [title]
    lines.extend(bullet(label, value, bold) for label, value, bold in rows)
    lines.append("")
    return lines


def _money(section: Mapping[str, Any], key: str) -> str:
    return format_currency(section.get(key))


def _report_header(title: str, output: Mapping[str, Any]) -> List[str]:
    return [
        f"# {title} - {output['code']}",
        "",
        f"**Period:** {output['period']}",
        f"**Report Type:** {output['report_type']}",
    ]


def income_markdown(output: Dict[str, Any]) -> str:
    m = output["metrics"]
    lines = _report_header("Income Statement", output)
    company_type = "Bank/Financial Institution" if output["is_bank"] else "Non-Financial Company"
    lines.extend([f"**Company Type:** {company_type}", ""])

    if output["is_bank"]:
        lines += _section("## Revenue", [
            ("Net Interest Income", _money(m, "net_interest_income"), False),
            ("Net Fee Income", _money(m, "net_fee_income"), False),
            ("Trading Gain/Loss", _money(m, "trading_gain_loss"), False),
            ("Investment Gain/Loss", _money(m, "investment_gain_loss"), False),
            ("Other Income", _money(m, "other_income"), False),
            ("Total Operating Income", _money(m, "total_operating_income"), True),
        ])
        lines += _section("## Expenses & Profit", [
            ("Operating Expenses", _money(m, "operating_expenses"), False),
            ("Profit Before Provision", _money(m, "profit_before_provision"), False),
            ("Provision Expense", _money(m, "provision_expense"), False),
            ("Profit Before Tax", _money(m, "profit_before_tax"), True),
            ("Income Tax", _money(m, "income_tax"), False),
            ("Net Profit", _money(m, "net_profit"), True),
        ])
    else:
        lines += _section("## Revenue & Gross Profit", [
            ("Revenue", _money(m, "revenue"), False),
            ("Cost of Goods Sold", _money(m, "cost_of_goods_sold"), False),
            ("Gross Profit", _money(m, "gross_profit"), True),
        ])
        lines += _section("## Operating Expenses", [
            ("Financial Income", _money(m, "financial_income"), False),
            ("Financial Expense", _money(m, "financial_expense"), False),
            ("Selling Expense", _money(m, "selling_expense"), False),
            ("Admin Expense", _money(m, "admin_expense"), False),
            ("Operating Profit", _money(m, "operating_profit"), True),
        ])
        lines += _section("## Net Profit", [
            ("Other Income", _money(m, "other_income"), False),
            ("Other Expense", _money(m, "other_expense"), False),
            ("Profit Before Tax", _money(m, "profit_before_tax"), False),
            ("Income Tax", _money(m, "income_tax"), False),
            ("Net Profit", _money(m, "net_profit"), True),
        ])

    audit = output["audit_info"]
    if audit["auditor"] or audit["opinion"]:
        lines += _section("## Audit", [
            ("Auditor", audit["auditor"] or "N/A", False),
            ("Opinion", audit["opinion"] or "N/A", False),
        ])

    return "\n".join(lines).rstrip() + "\n"


def balance_sheet_markdown(output: Dict[str, Any]) -> str:
    assets = output["assets"]
    current, non_current = assets["current_assets"], assets["non_current_assets"]
    liabilities = output["liabilities"]
    cur_liab, long_liab = liabilities["current_liabilities"], liabilities["non_current_liabilities"]
    equity = output["equity"]

    lines = _report_header("Balance Sheet", output)
    lines += ["", "## Assets", ""]
    lines += _section("### Current Assets", [
        ("Cash & Equivalents", _money(current, "cash"), False),
        ("Short-term Investments", _money(current, "short_term_investments"), False),
        ("Receivables", _money(current, "receivables"), False),
        ("Inventory", _money(current, "inventory"), False),
        ("Total Current Assets", _money(current, "total"), True),
    ])
    lines += _section("### Non-Current Assets", [
        ("Fixed Assets (Tangible)", _money(non_current, "fixed_assets_tangible"), False),
        ("Fixed Assets (Intangible)", _money(non_current, "fixed_assets_intangible"), False),
        ("Investments in Associates", _money(non_current, "investments_in_associates"), False),
        ("Total Non-Current Assets", _money(non_current, "total"), True),
    ])
    lines += [f"### **Total Assets:** {_money(assets, 'total_assets')}", ""]

    lines += ["## Liabilities", ""]
    lines += _section("### Current Liabilities", [
        ("Payables", _money(cur_liab, "payables"), False),
        ("Short-term Borrowings", _money(cur_liab, "short_term_borrowings"), False),
        ("Total Current Liabilities", _money(cur_liab, "total"), True),
    ])
    lines += _section("### Non-Current Liabilities", [
        ("Long-term Borrowings", _money(long_liab, "long_term_borrowings"), False),
        ("Total Non-Current Liabilities", _money(long_liab, "total"), True),
    ])
    lines += [f"### **Total Liabilities:** {_money(liabilities, 'total_liabilities')}", ""]

    lines += _section("## Equity", [
        ("Share Capital", _money(equity, "share_capital"), False),
        ("Share Premium", _money(equity, "share_premium"), False),
        ("Retained Earnings", _money(equity, "retained_earnings"), False),
        ("Minority Interest", _money(equity, "minority_interest"), False),
        ("Total Equity", _money(equity, "total_equity"), True),
    ])
    lines.append(f"## **Total Capital:** {_money(output, 'total_capital')}")
    return "\n".join(lines) + "\n"


def cash_flow_markdown(output: Dict[str, Any]) -> str:
    op = output["operating_activities"]
    inv = output["investing_activities"]
    fin = output["financing_activities"]
    summary = output["summary"]

    lines = _report_header("Cash Flow Statement", output)
    lines.append("")
    lines += _section("## Operating Activities", [
        ("Profit Before Tax", _money(op, "profit_before_tax"), False),
        ("Depreciation", _money(op, "depreciation"), False),
        ("Changes in Receivables", _money(op, "changes_in_receivables"), False),
        ("Changes in Inventory", _money(op, "changes_in_inventory"), False),
        ("Changes in Payables", _money(op, "changes_in_payables"), False),
        ("Net Cash from Operating", _money(op, "net_cash_from_operating"), True),
    ])
    lines += _section("## Investing Activities", [
        ("Purchase of Fixed Assets", _money(inv, "purchase_of_fixed_assets"), False),
        ("Sale of Fixed Assets", _money(inv, "sale_of_fixed_assets"), False),
        ("Purchase of Investments", _money(inv, "purchase_of_investments"), False),
        ("Dividends Received", _money(inv, "dividends_received"), False),
        ("Net Cash from Investing", _money(inv, "net_cash_from_investing"), True),
    ])
    lines += _section("## Financing Activities", [
        ("Proceeds from Borrowings", _money(fin, "proceeds_from_borrowings"), False),
        ("Repayment of Borrowings", _money(fin, "repayment_of_borrowings"), False),
        ("Dividends Paid", _money(fin, "dividends_paid"), False),
        ("Net Cash from Financing", _money(fin, "net_cash_from_financing"), True),
    ])
    lines += _section("## Summary", [
        ("Cash at Beginning", _money(summary, "cash_at_beginning"), False),
        ("Net Change in Cash", _money(summary, "net_change_in_cash"), False),
        ("FX Effect", _money(summary, "fx_effect"), False),
        ("Cash at End", _money(summary, "cash_at_end"), True),
    ])
    return "\n".join(lines).rstrip() + "\n"


def ratios_markdown(output: Dict[str, Any]) -> str:
    val, prof, growth = output["valuation"], output["profitability"], output["growth"]
    eff, lev, per_share = output["efficiency"], output["leverage"], output["per_share"]

    lines = _report_header("Financial Ratios", output)
    lines.append("")
    lines += _section("## Valuation Ratios", [
        ("P/E Ratio", format_ratio(val["pe"]), False),
        ("P/B Ratio", format_ratio(val["pb"]), False),
        ("P/S Ratio", format_ratio(val["ps"]), False),
        ("P/CF Ratio", format_ratio(val["pcf"]), False),
        ("EV/EBITDA", format_ratio(val["ev_ebitda"]), False),
    ])
    lines += _section("## Profitability Ratios", [
        ("ROE", format_ratio(prof["roe"], percent=True), False),
        ("ROA", format_ratio(prof["roa"], percent=True), False),
        ("ROS", format_ratio(prof["ros"], percent=True), False),
        ("ROIC", format_ratio(prof["roic"], percent=True), False),
    ])
    lines += _section("## Growth Rates", [
        ("Revenue Growth", format_ratio(growth["revenue_growth"], percent=True), False),
        ("Profit Growth", format_ratio(growth["profit_growth"], percent=True), False),
        ("EPS Growth", format_ratio(growth["eps_growth"], percent=True), False),
    ])
    lines += _section("## Efficiency Ratios", [
        ("Asset Turnover", format_ratio(eff["asset_turnover"]), False),
        ("Inventory Turnover", format_ratio(eff["inventory_turnover"]), False),
        ("Receivable Turnover", format_ratio(eff["receivable_turnover"]), False),
    ])
    lines += _section("## Leverage Ratios", [
        ("Debt/Equity", format_ratio(lev["debt_to_equity"]), False),
        ("Debt/Asset", format_ratio(lev["debt_to_asset"]), False),
        ("Current Ratio", format_ratio(lev["current_ratio"]), False),
        ("Quick Ratio", format_ratio(lev["quick_ratio"]), False),
    ])
    lines += _section("## Per Share Data", [
        ("EPS", format_currency(per_share["eps"]), False),
        ("BVPS", format_currency(per_share["bvps"]), False),
        ("Dividend Yield", format_ratio(per_share["dividend_yield"], percent=True), False),
    ])
    return "\n".join(lines).rstrip() + "\n"


# ============================================================================
# OPERATIONS
# ============================================================================

@operation("income statement", IncomeStatementInput)
async def get_income_statement(client: WiFeedClient, params: IncomeStatementInput) -> ToolResponse:
    records, _ = await fetch_records(client, INCOME_STATEMENT_ENDPOINT, _statement_params(params))
    if not records:
        return no_data(f"No income statement data found for {params.code}.")
    output = build_income_output(params, records[0])
    return render(output, params.response_format, income_markdown)


@operation("balance sheet", BalanceSheetInput)
async def get_balance_sheet(client: WiFeedClient, params: BalanceSheetInput) -> ToolResponse:
    records, _ = await fetch_records(client, BALANCE_SHEET_ENDPOINT, _statement_params(params))
    if not records:
        return no_data(f"No balance sheet data found for {params.code}.")
    output = build_balance_sheet_output(params, records[0])
    return render(output, params.response_format, balance_sheet_markdown)


@operation("cash flow statement", CashFlowStatementInput)
async def get_cash_flow(client: WiFeedClient, params: CashFlowStatementInput) -> ToolResponse:
    records, _ = await fetch_records(client, CASH_FLOW_ENDPOINT, _statement_params(params))
    if not records:
        return no_data(f"No cash flow data found for {params.code}.")
    output = build_cash_flow_output(params, records[0])
    return render(output, params.response_format, cash_flow_markdown)


@operation("financial ratios", FinancialRatiosInput)
async def get_financial_ratios(client: WiFeedClient, params: FinancialRatiosInput) -> ToolResponse:
    """Ratio snapshot; ``daily`` reports are filtered by date range instead of period."""
    records, _ = await fetch_records(
        client,
        FINANCIAL_RATIOS_ENDPOINT,
        {
            "code": params.code,
            "type": params.type.value,
            "from-date": params.from_date,
            "to-date": params.to_date,
            "quy": params.quy,
            "nam": params.nam,
        },
    )
    if not records:
        return no_data(f"No financial ratios data found for {params.code}.")
    output = build_ratios_output(params, records[0])
    return render(output, params.response_format, ratios_markdown)
