from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Optional, Union


def now_ms() -> int:
    """Server-side 'now' as integer epoch milliseconds (UTC, canonical)."""
    return int(time.time() * 1000)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to an aware UTC datetime.

    - None / "" -> None
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_epoch_ms(value: Union[None, int, str, datetime]) -> Optional[int]:
    """
    Normalize a point in time to epoch milliseconds.

    Accepts:
    - None -> None
    - int -> returned as-is (already epoch ms)
    - str of digits -> epoch ms; any other str -> parsed as ISO-8601
    - datetime -> naive values are treated as UTC
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("invalid timestamp")
    if isinstance(value, int):
        return value
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        if s.lstrip("-").isdigit():
            return int(s)
        dt = parse_iso_datetime(s)
        return int(dt.timestamp() * 1000) if dt else None
    raise ValueError("invalid timestamp")


def to_utc_z(ms: Optional[int]) -> Optional[str]:
    """Serialize epoch milliseconds to ISO-8601 with a trailing 'Z'."""
    if ms is None:
        return None
    dt = datetime.fromtimestamp(ms / 1000, tz=timezone.utc).replace(microsecond=0)
    return dt.isoformat().replace("+00:00", "Z")
