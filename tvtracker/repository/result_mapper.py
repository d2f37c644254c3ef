from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Sequence

TEMPORAL_TYPES = ("TIMESTAMP", "DATETIME", "DATE")


def is_temporal(declared_type: str | None) -> bool:
    t = (declared_type or "").upper()
    return any(t.startswith(x) for x in TEMPORAL_TYPES)


def decode_timestamp(value: Any) -> datetime | None:
    """Decode a stored temporal value (ISO-8601 text or epoch seconds)."""
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, bytes):
        value = value.decode("utf-8")
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def map_rows(
    rows: Iterable[Sequence[Any]],
    column_names: Sequence[str],
    column_types: Mapping[str, str] | None = None,
) -> list[dict[str, Any]]:
    """
    One record per row, in result-set order. Temporal columns decode to
    datetime; everything else is returned as the driver's native value.
    Duplicate column names collapse (last one wins).
    """
    column_types = column_types or {}
    temporal = [is_temporal(column_types.get(name)) for name in column_names]
    out: list[dict[str, Any]] = []
    for row in rows:
        rec: dict[str, Any] = {}
        for i, name in enumerate(column_names):
            value = row[i]
            rec[name] = decode_timestamp(value) if temporal[i] else value
        out.append(rec)
    return out
