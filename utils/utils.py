"""
utils/utils.py
--------------
Small shared helpers: clocks, locale-aware sort keys and timestamp
parsing/formatting for the "Last Updated" banner.
"""
import locale
import time
from datetime import datetime, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo

import pandas as pd


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def locale_key(text: str):
    """
    Sort key approximating a locale string comparison: case-insensitive
    collation under the active locale first, exact text as the tie-break.
    """
    return (locale.strxfrm(text.casefold()), text)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an API timestamp into an aware UTC datetime.

    Naive values are taken as UTC. Returns None for missing or unparseable
    input instead of raising.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        ts = pd.to_datetime(value, utc=True)
    except (ValueError, TypeError, OverflowError):
        return None
    if ts is pd.NaT or pd.isna(ts):
        return None
    return ts.to_pydatetime()


def format_timestamp(value: Optional[datetime], tz: Optional[str] = None) -> str:
    """
    en-US style banner text, e.g. ``Jan 2, 2024, 12:00:00 AM``.

    The page is rendered on the server, which cannot know the viewer's
    zone: the time is shown in `tz` (an IANA name such as
    ``Europe/Berlin``) when given, otherwise in the value's own zone (UTC
    for parsed timestamps).
    """
    if value is None:
        return "N/A"
    if tz:
        value = value.astimezone(ZoneInfo(tz))
    hour = value.hour % 12 or 12
    meridiem = "AM" if value.hour < 12 else "PM"
    return (
        f"{value.strftime('%b')} {value.day}, {value.year}, "
        f"{hour:02d}:{value.minute:02d}:{value.second:02d} {meridiem}"
    )
