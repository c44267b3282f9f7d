from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def parse_month(value: Optional[str]) -> Optional[tuple[int, int]]:
    """
    Parse a "YYYY-MM" month filter into (year, month).

    - None / "" / "all" -> None
    - anything else that is not a valid month raises ValueError
    """
    if value is None:
        return None
    s = value.strip()
    if not s or s.lower() == "all":
        return None
    year_s, sep, month_s = s.partition("-")
    if not sep or not year_s.isdigit() or not month_s.isdigit():
        raise ValueError(f"month must be YYYY-MM, got {value!r}")
    year, month = int(year_s), int(month_s)
    if not 1 <= month <= 12:
        raise ValueError(f"month must be YYYY-MM, got {value!r}")
    return year, month


def month_key(dt: datetime) -> str:
    return f"{dt.year:04d}-{dt.month:02d}"
