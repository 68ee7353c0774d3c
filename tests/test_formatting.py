from __future__ import annotations

import pytest

from wifeed_mcp.constants import CHARACTER_LIMIT, TRUNCATION_NOTICE
from wifeed_mcp.formatting import (
    escape_md,
    format_currency,
    format_date,
    format_number,
    format_percentage,
    format_ratio,
    md_table,
    title_case,
    truncate_response,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        (2.5e12, "2.50 nghìn tỷ VND"),
        (1_234_000_000, "1.23 tỷ VND"),
        (-3_500_000_000, "-3.50 tỷ VND"),
        (45_600_000, "45.60 triệu VND"),
        (7_890, "7.89 nghìn VND"),
        (512, "512.00 VND"),
        (None, "N/A"),
    ],
)
def test_format_currency(value, expected) -> None:
    assert format_currency(value) == expected


def test_format_percentage() -> None:
    assert format_percentage(0.1234) == "12.34%"
    assert format_percentage(None) == "N/A"


@pytest.mark.parametrize(
    "value,expected",
    [
        (1234567, "1.234.567"),
        (1234.5, "1.234,5"),
        (0.12345, "0,123"),
        (25000, "25.000"),
        (0, "0"),
        (None, "N/A"),
    ],
)
def test_format_number_vi_grouping(value, expected) -> None:
    assert format_number(value) == expected


def test_format_ratio() -> None:
    assert format_ratio(12.3456) == "12.35"
    assert format_ratio(0.2, percent=True) == "20.00%"
    assert format_ratio(None) == "N/A"


@pytest.mark.parametrize(
    "value,expected",
    [
        ("2024-03-15", "15/03/2024"),
        ("2024-03-15T00:00:00Z", "15/03/2024"),
        ("2024-03-15 08:30:00", "15/03/2024"),
        ("not a date", "not a date"),
        ("", "N/A"),
        (None, "N/A"),
    ],
)
def test_format_date(value, expected) -> None:
    assert format_date(value) == expected


def test_short_content_untouched() -> None:
    assert truncate_response("hello") == "hello"


def test_truncation_cuts_at_last_newline() -> None:
    line = "x" * 99 + "\n"
    content = line * 600  # 60,000 chars
    out = truncate_response(content)
    assert out.endswith(TRUNCATION_NOTICE)
    body = out[: -len(TRUNCATION_NOTICE)]
    assert len(body) <= CHARACTER_LIMIT
    assert body.endswith("x")
    assert not body.endswith("\n")


def test_truncation_without_late_newline_cuts_at_limit() -> None:
    out = truncate_response("y" * (CHARACTER_LIMIT + 10))
    assert out == "y" * CHARACTER_LIMIT + TRUNCATION_NOTICE


def test_md_table_escapes_pipes() -> None:
    lines = md_table(["Name", "Value"], [["a|b", 1]])
    assert lines[0] == "| Name | Value |"
    assert lines[1] == "|------|-------|"
    assert lines[2] == "| a\\|b | 1 |"
    assert escape_md("x") == "x"


def test_title_case() -> None:
    assert title_case("dau brent") == "Dau Brent"
