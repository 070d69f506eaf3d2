# focusflow/util/fmt.py
"""Display strings for renderers (CLI, HTML, ...)."""

from __future__ import annotations

import datetime as dt

from .dates import parse_date_yyyy_mm_dd


def nice_date(iso: str) -> str:
    if not iso:
        return "No due date"
    d = parse_date_yyyy_mm_dd(iso)
    return f"{d.strftime('%a')}, {d.strftime('%b')} {d.day}"


def month_title(year: int, month_index: int) -> str:
    d = dt.date(int(year), int(month_index) + 1, 1)
    return f"{d.strftime('%B')} {d.year}"


def day_title(iso: str) -> str:
    d = parse_date_yyyy_mm_dd(iso)
    return f"{d.strftime('%A')}, {d.strftime('%B')} {d.day}, {d.year}"


def time_range(start: str, end: str) -> str:
    s = start or ""
    e = end or ""
    if s and e:
        return f"{s}–{e}"
    if s:
        return f"Starts {s}"
    if e:
        return f"Ends {e}"
    return ""


def plural(n: int, word: str) -> str:
    return f"{n} {word}{'' if n == 1 else 's'}"
