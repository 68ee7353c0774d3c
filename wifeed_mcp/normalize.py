"""
Response shape normalization.

WiFeed endpoints are inconsistent about their envelopes. The same kind of data
may come back as a bare array, as ``{"data": [...]}``, as
``{"data": {"data": [...]}}`` or as a single flat record. Everything downstream
works on a plain list of records, so the shapes are collapsed here.
"""

from typing import Any, Dict, List, Mapping

META_KEYS = ("meta", "pagination")


def normalize_records(payload: Any) -> List[Any]:
    """
    Collapse any known envelope into a list of records.

    Checked in order, first match wins:
      1. a list is returned as-is
      2. ``{"data": [...]}`` -> the list, ``{"data": {"data": [...]}}`` -> the inner list
      3. any other non-empty object without meta markers is a single record
      4. everything else is "no data" (``[]``)

    Never raises on an unexpected shape.
    """
    if isinstance(payload, list):
        return payload

    if isinstance(payload, Mapping) and "data" in payload:
        data = payload["data"]
        if isinstance(data, list):
            return data
        if isinstance(data, Mapping) and isinstance(data.get("data"), list):
            return data["data"]

    if isinstance(payload, Mapping) and payload:
        if not any(key in payload for key in META_KEYS):
            return [dict(payload)]

    return []


def extract_meta(payload: Any) -> Dict[str, Any]:
    """Pagination meta of a wrapped response (``{"meta": {...}, "data": [...]}``), or ``{}``."""
    if isinstance(payload, Mapping):
        meta = payload.get("meta")
        if isinstance(meta, Mapping):
            return dict(meta)
    return {}
