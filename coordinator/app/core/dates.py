from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.config import get_settings


@lru_cache
def resolve_timezone(name: str) -> tzinfo:
    if name.upper() in {"UTC", "GMT", "Z"}:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError as exc:
        raise ValueError(f"unknown processing timezone: {name!r}") from exc


def parse_nominal_time(text: str, *, default_tz: str | None = None) -> datetime:
    """Parse a scope or filter date such as ``2009-01-01T01:00Z``.

    Naive values are placed in the processing timezone and every result is
    returned in UTC.
    """
    value = text.strip()
    if "T" not in value:
        raise ValueError(f"date must include a time component: {text!r}")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        zone_name = default_tz if default_tz is not None else get_settings().processing_timezone
        parsed = parsed.replace(tzinfo=resolve_timezone(zone_name))
    return parsed.astimezone(timezone.utc)


def format_nominal_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%MZ")
