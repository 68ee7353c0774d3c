from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, List, Optional, Sequence

from wifeed_mcp.constants import CHARACTER_LIMIT, TRUNCATION_NOTICE

Number = Optional[float]

_CURRENCY_SCALES = (
    (1e12, "nghìn tỷ"),
    (1e9, "tỷ"),
    (1e6, "triệu"),
    (1e3, "nghìn"),
)

# vi-VN grouping: "." between thousands, "," before decimals
_VI_SEPARATORS = str.maketrans({",": ".", ".": ","})


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# ============================================================================
# VALUE FORMATTERS
# ============================================================================

def format_currency(value: Number, unit: str = "VND") -> str:
    """Scale a VND amount to nghìn tỷ / tỷ / triệu / nghìn with 2 decimals."""
    if value is None:
        return "N/A"
    if not _is_number(value):
        return str(value)

    magnitude = abs(value)
    for threshold, label in _CURRENCY_SCALES:
        if magnitude >= threshold:
            return f"{value / threshold:.2f} {label} {unit}"
    return f"{value:.2f} {unit}"


def format_percentage(value: Number) -> str:
    """Ratio (0.1234) -> '12.34%'."""
    if value is None:
        return "N/A"
    if not _is_number(value):
        return str(value)
    return f"{value * 100:.2f}%"


def format_number(value: Number) -> str:
    """Group digits the vi-VN way, keeping at most 3 fraction digits."""
    if value is None:
        return "N/A"
    if not _is_number(value):
        return str(value)
    text = f"{value:,.3f}".rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    return text.translate(_VI_SEPARATORS)


def format_ratio(value: Number, percent: bool = False) -> str:
    if value is None:
        return "N/A"
    return format_percentage(value) if percent else format_fixed(value)


def format_fixed(value: Number, digits: int = 2) -> str:
    if value is None:
        return "N/A"
    if not _is_number(value):
        return str(value)
    return f"{value:.{digits}f}"


def _parse_iso(ts: str) -> Optional[datetime]:
    # Support trailing 'Z'
    if ts.endswith("Z"):
        ts = ts[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(ts)
    except ValueError:
        return None


def format_date(value: Any) -> str:
    """ISO date/datetime -> 'dd/mm/yyyy'; unparseable input is passed through."""
    if value is None or value == "":
        return "N/A"
    parsed = _parse_iso(str(value).strip())
    if parsed is None:
        return str(value)
    return parsed.strftime("%d/%m/%Y")


# ============================================================================
# MARKDOWN HELPERS
# ============================================================================

def escape_md(text: Any) -> str:
    """Escape markdown table separators in inline content."""
    return str(text).replace("|", "\\|")


def md_table(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> List[str]:
    """Render a markdown table (header, separator, one line per row)."""
    lines = ["| " + " | ".join(escape_md(h) for h in headers) + " |"]
    lines.append("|" + "|".join("-" * (len(h) + 2) for h in headers) + "|")
    for row in rows:
        lines.append("| " + " | ".join(escape_md(cell) for cell in row) + " |")
    return lines


def bullet(label: str, value: str, bold: bool = False) -> str:
    if bold:
        return f"- **{label}:** {value}"
    return f"- {label}: {value}"


def title_case(name: str) -> str:
    """'ca phe dak lak' -> 'Ca Phe Dak Lak'."""
    return " ".join(word[:1].upper() + word[1:] for word in name.split(" "))


# ============================================================================
# SIZE CAP
# ============================================================================

def truncate_response(content: str, limit: int = CHARACTER_LIMIT) -> str:
    """
    Cap a markdown report at ``limit`` characters.

    When a newline exists past 80% of the limit the cut is made there, so
    the report never ends mid-line. A notice pointing at pagination is appended.
    """
    if len(content) <= limit:
        return content

    truncated = content[:limit]
    last_newline = truncated.rfind("\n")
    if last_newline > limit * 0.8:
        truncated = truncated[:last_newline]

    return truncated + TRUNCATION_NOTICE
