# focusflow/sanitize.py
"""Load-time repair of persisted slot values.

Every persisted slot (categories, tasks, events, ui) goes through one pass here.
Inputs may be absent, malformed, or of the wrong shape; output is always a valid
Snapshot. The pass is idempotent: feeding `Snapshot.to_dict()` back in returns an
equal snapshot. Inputs are never mutated.
"""

from __future__ import annotations

import datetime as dt
import uuid
from typing import Any, Callable, Dict, List, Optional

from .grid import year_in_range
from .model import (
    DEFAULT_CATEGORIES,
    DEFAULT_COLOR,
    DEFAULT_FILTER,
    DEFAULT_PRIORITY,
    EVENT_COLORS,
    PRIORITIES,
    TASK_FILTERS,
    CalendarState,
    Event,
    Snapshot,
    Task,
    UiState,
)
from .util.console import obs_warn
from .util.dates import is_valid_iso_date, now_ms as _now_ms


def new_id() -> str:
    return str(uuid.uuid4())


def _as_str(v: Any, default: str = "") -> str:
    if v is None:
        return default
    if isinstance(v, str):
        return v
    try:
        return str(v)
    except Exception:
        return default


def _coerce_int(v: Any) -> Optional[int]:
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, float):
        if v != v or v in (float("inf"), float("-inf")):
            return None
        return int(v)
    if isinstance(v, str):
        s = v.strip()
        if not s:
            return None
        try:
            if any(ch in s for ch in ".eE"):
                return int(float(s))
            return int(s)
        except Exception:
            return None
    return None


def _coerce_ts(v: Any, default: int) -> int:
    ts = _coerce_int(v)
    return ts if ts is not None and ts > 0 else default


def _clamp(n: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, n))


def sanitize_categories(raw: Any) -> List[str]:
    """Trim, drop empty, dedupe (first seen wins). Never returns an empty list."""
    out: List[str] = []
    seen: set[str] = set()
    if isinstance(raw, list):
        for x in raw:
            name = _as_str(x).strip() if x else ""
            if not name or name in seen:
                continue
            seen.add(name)
            out.append(name)
    if not out:
        out = list(DEFAULT_CATEGORIES)
    return out


def sanitize_task(
    raw: Any,
    categories: List[str],
    *,
    now_ms: int,
    make_id: Callable[[], str] = new_id,
) -> Optional[Task]:
    """Coerce one raw task dict; None when it must be dropped."""
    if not isinstance(raw, dict):
        return None

    title = _as_str(raw.get("title")).strip() if raw.get("title") else ""
    if not title:
        return None

    task_id = _as_str(raw.get("id")) if raw.get("id") else ""
    if not task_id:
        task_id = make_id()

    fallback = categories[0]
    category = _as_str(raw.get("category")) if raw.get("category") else fallback
    if category not in categories:
        obs_warn("sanitize", f"unknown category on task id={task_id!r} value={category!r}; using {fallback!r}")
        category = fallback

    priority = raw.get("priority")
    if priority not in PRIORITIES:
        priority = DEFAULT_PRIORITY

    due = raw.get("dueDate")

    return Task(
        id=task_id,
        title=title,
        category=category,
        priority=priority,
        due_date=_as_str(due) if due else "",
        notes=_as_str(raw.get("notes")) if raw.get("notes") else "",
        completed=bool(raw.get("completed")),
        created_at=_coerce_ts(raw.get("createdAt"), now_ms),
        updated_at=_coerce_ts(raw.get("updatedAt"), now_ms),
    )


def sanitize_event(
    raw: Any,
    *,
    now_ms: int,
    today: str,
    make_id: Callable[[], str] = new_id,
) -> Optional[Event]:
    """Coerce one raw event dict; None when it must be dropped.

    Start/end ordering is a mutation-time rule and is not checked here.
    """
    if not isinstance(raw, dict):
        return None

    title = _as_str(raw.get("title")).strip() if raw.get("title") else ""
    if not title:
        return None

    event_id = _as_str(raw.get("id")) if raw.get("id") else ""
    if not event_id:
        event_id = make_id()

    color = raw.get("color")
    if color not in EVENT_COLORS:
        color = DEFAULT_COLOR

    def _opt(key: str) -> str:
        v = raw.get(key)
        return _as_str(v) if v else ""

    return Event(
        id=event_id,
        title=title,
        date=_opt("date") or today,
        start_time=_opt("startTime"),
        end_time=_opt("endTime"),
        location=_opt("location"),
        notes=_opt("notes"),
        color=color,
        created_at=_coerce_ts(raw.get("createdAt"), now_ms),
        updated_at=_coerce_ts(raw.get("updatedAt"), now_ms),
    )


def sanitize_ui(raw: Any, *, today: dt.date) -> UiState:
    ui: Dict[str, Any] = raw if isinstance(raw, dict) else {}
    cal_in = ui.get("calendar")
    cal: Dict[str, Any] = cal_in if isinstance(cal_in, dict) else {}

    page = _coerce_int(ui.get("page"))
    task_filter = ui.get("taskFilter")
    if task_filter not in TASK_FILTERS:
        task_filter = DEFAULT_FILTER

    year = _coerce_int(cal.get("year"))
    if year is not None and not year_in_range(year):
        obs_warn("sanitize", f"calendar year={year} out of range; using {today.year}")
        year = None
    month = _coerce_int(cal.get("month"))
    selected = cal.get("selectedDate")
    if not is_valid_iso_date(selected):
        selected = today.isoformat()

    return UiState(
        page=_clamp(page if page is not None else 0, 0, 1),
        task_filter=task_filter,
        calendar=CalendarState(
            year=year if year is not None else today.year,
            month=_clamp(month if month is not None else today.month - 1, 0, 11),
            selected_date=selected,
            drawer_open=cal.get("drawerOpen") is not False,
        ),
    )


def sanitize_snapshot(
    categories: Any,
    tasks: Any,
    events: Any,
    ui: Any,
    *,
    now_ms: Optional[int] = None,
    today: Optional[dt.date] = None,
    make_id: Callable[[], str] = new_id,
) -> Snapshot:
    """Produce a valid Snapshot from four raw slot values."""
    ts = _now_ms() if now_ms is None else int(now_ms)
    day = today or dt.date.today()
    today_s = day.isoformat()

    cats = sanitize_categories(categories)

    clean_tasks: List[Task] = []
    raw_tasks = tasks if isinstance(tasks, list) else []
    for i, t in enumerate(raw_tasks):
        out = sanitize_task(t, cats, now_ms=ts, make_id=make_id)
        if out is None:
            if t:
                obs_warn("sanitize", f"dropped task index={i} (not an object or empty title)")
            continue
        clean_tasks.append(out)

    clean_events: List[Event] = []
    raw_events = events if isinstance(events, list) else []
    for i, e in enumerate(raw_events):
        out_e = sanitize_event(e, now_ms=ts, today=today_s, make_id=make_id)
        if out_e is None:
            if e:
                obs_warn("sanitize", f"dropped event index={i} (not an object or empty title)")
            continue
        clean_events.append(out_e)

    return Snapshot(
        categories=cats,
        tasks=clean_tasks,
        events=clean_events,
        ui=sanitize_ui(ui, today=day),
    )


def default_snapshot(*, today: Optional[dt.date] = None) -> Snapshot:
    return sanitize_snapshot(None, None, None, None, today=today)


__all__ = [
    "new_id",
    "sanitize_categories",
    "sanitize_task",
    "sanitize_event",
    "sanitize_ui",
    "sanitize_snapshot",
    "default_snapshot",
]
