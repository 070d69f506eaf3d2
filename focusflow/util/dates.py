# focusflow/util/dates.py
from __future__ import annotations

import datetime as dt
import re
import time
from typing import Optional, Tuple

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def pad2(n: int) -> str:
    return f"{int(n):02d}"


def today_iso(today: Optional[dt.date] = None) -> str:
    d = today or dt.date.today()
    return d.isoformat()


def now_ms() -> int:
    return int(time.time() * 1000)


def utc_iso_now() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-06-01T09:30:00.000Z."""
    now = dt.datetime.now(dt.timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def is_iso_date(s: object) -> bool:
    """Shape check only (YYYY-MM-DD); does not validate the calendar date."""
    return isinstance(s, str) and bool(_ISO_DATE_RE.match(s))


def parse_date_yyyy_mm_dd(s: str) -> dt.date:
    return dt.datetime.strptime(s, "%Y-%m-%d").date()


def split_iso(s: str) -> Tuple[int, int, int]:
    """Return (year, month_index, day) with month_index 0-based."""
    d = parse_date_yyyy_mm_dd(s)
    return d.year, d.month - 1, d.day


def parse_hhmm(s: str) -> Tuple[int, int]:
    m = _HHMM_RE.match(s.strip())
    if not m:
        raise ValueError(f"Invalid HH:MM: {s!r}")
    hh = int(m.group(1))
    mm = int(m.group(2))
    if not (0 <= hh <= 23 and 0 <= mm <= 59):
        raise ValueError(f"Invalid HH:MM: {s!r}")
    return hh, mm


def is_valid_iso_date(s: object) -> bool:
    """YYYY-MM-DD naming a real Gregorian date."""
    if not is_iso_date(s):
        return False
    try:
        parse_date_yyyy_mm_dd(s)  # type: ignore[arg-type]
    except ValueError:
        return False
    return True
