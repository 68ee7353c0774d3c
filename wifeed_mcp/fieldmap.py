"""
Declarative field mapping.

WiFeed records are keyed by Vietnamese column names (``doanhthu``,
``loinhuan_sauthue``, ...). Each tool describes its output with a table:

    {
        "revenue": "doanhthu",                  # output key -> source key
        "code": ("code", "mack"),               # first *present* key wins
        "assets": {"total_assets": "tongtaisan"},  # nested section
    }

``project`` walks such a table over one record. Missing source keys map to
``None`` so every output object always has the same set of keys.
"""

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from wifeed_mcp.constants import RatioReportType, ReportType

Source = Union[str, Tuple[str, ...]]
FieldTable = Mapping[str, Any]

COMMODITY_RESERVED_KEYS = frozenset(
    {"ngay", "kieu_thoi_gian", "data_type", "created_at", "updated_at"}
)


def pick(record: Mapping[str, Any], source: Source) -> Any:
    """
    Read ``source`` from ``record``.

    For a tuple of keys the first one *present* in the record is used, even if
    its value is falsy (``0``, ``""``); only an absent key falls through.
    """
    if isinstance(source, str):
        return record.get(source)
    for key in source:
        if key in record:
            return record[key]
    return None


def project(record: Mapping[str, Any], table: FieldTable) -> Dict[str, Any]:
    """Build an output object from ``record`` following ``table``."""
    out: Dict[str, Any] = {}
    for name, source in table.items():
        if isinstance(source, Mapping):
            out[name] = project(record, source)
        else:
            out[name] = pick(record, source)
    return out


def project_all(records: Iterable[Mapping[str, Any]], table: FieldTable) -> List[Dict[str, Any]]:
    return [project(r, table) for r in records if isinstance(r, Mapping)]


def _part(value: Any) -> str:
    return "N/A" if value is None else str(value)


def period_label(report_type: Union[ReportType, RatioReportType, str], record: Mapping[str, Any]) -> str:
    """
    Human label for the reporting period of a statement record.

    quarter -> ``Q3/2024``, year -> ``2024``, ttm -> ``TTM``. Daily ratio
    snapshots use the year, or the record date when no year is present.
    """
    kind = getattr(report_type, "value", report_type)
    if kind == ReportType.QUARTER.value:
        return f"Q{_part(record.get('quy'))}/{_part(record.get('nam'))}"
    if kind == ReportType.TTM.value:
        return "TTM"
    if kind == RatioReportType.DAILY.value and record.get("nam") is None:
        return _part(record.get("ngay"))
    return _part(record.get("nam"))


def _is_numeric(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def flat_series(
    record: Mapping[str, Any],
    reserved: Iterable[str] = COMMODITY_RESERVED_KEYS,
    display: Optional[Callable[[str], str]] = None,
) -> List[Dict[str, Any]]:
    """
    Turn a flat ``{name: number, ...}`` record into a sorted ``[{name, value}]`` list.

    Reserved metadata keys, nulls and non-numeric values are skipped.
    Display names come from ``display(key)``; by default underscores become spaces.
    Sorting is case-insensitive on the display name.
    """
    skip = set(reserved)
    items = []
    for key, value in record.items():
        if key in skip or not _is_numeric(value):
            continue
        items.append({"name": display(key) if display else key.replace("_", " "), "value": value})
    items.sort(key=lambda item: (item["name"].casefold(), item["name"]))
    return items
