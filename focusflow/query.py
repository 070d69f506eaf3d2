from __future__ import annotations

"""focusflow.query

Derived views over store collections.

Design goals:
- Pure functions over lists; recomputed on demand, nothing cached.
- Deterministic, total ordering: Python's sort is stable, so fully tied keys
  keep their input order.
"""

from typing import Dict, Iterable, List, Sequence, TypeVar

from .model import (
    NO_DUE_DATE_KEY,
    NO_START_TIME_KEY,
    PRIORITY_RANK,
    TASK_FILTERS,
    DayBadges,
    DrawerContent,
    Event,
    Task,
    TaskStats,
)
from .util.fmt import plural

T = TypeVar("T")

MAX_DAY_DOTS = 3


def _rank(priority: str) -> int:
    return PRIORITY_RANK.get(priority, PRIORITY_RANK["medium"])


def filter_tasks(tasks: Iterable[Task], task_filter: str = "all") -> List[Task]:
    if task_filter not in TASK_FILTERS:
        raise ValueError(f"Unknown task filter: {task_filter!r}")
    if task_filter == "active":
        return [t for t in tasks if not t.completed]
    if task_filter == "completed":
        return [t for t in tasks if t.completed]
    return list(tasks)


def task_sort_key(t: Task) -> tuple:
    """Incomplete first, due soonest, highest priority, most recently touched."""
    return (
        t.completed,
        t.due_date or NO_DUE_DATE_KEY,
        -_rank(t.priority),
        -int(t.updated_at or 0),
    )


def visible_tasks(tasks: Sequence[Task], task_filter: str = "all") -> List[Task]:
    return sorted(filter_tasks(tasks, task_filter), key=task_sort_key)


def _group(items: Iterable[T], key_of) -> Dict[str, List[T]]:
    out: Dict[str, List[T]] = {}
    for it in items:
        k = key_of(it)
        if not k:
            continue
        out.setdefault(k, []).append(it)
    return out


def events_by_date(events: Iterable[Event]) -> Dict[str, List[Event]]:
    return _group(events, lambda e: e.date)


def due_tasks_by_date(tasks: Iterable[Task]) -> Dict[str, List[Task]]:
    """Tasks without a due date are not indexed."""
    return _group(tasks, lambda t: t.due_date)


def event_sort_key(e: Event) -> str:
    return e.start_time or NO_START_TIME_KEY


def due_task_sort_key(t: Task) -> tuple:
    return (t.completed, -_rank(t.priority))


def drawer_hint(event_count: int, active_due_count: int) -> str:
    return f"{plural(event_count, 'event')} • {plural(active_due_count, 'due task')} active"


def drawer_content(events: Sequence[Event], tasks: Sequence[Task], date: str) -> DrawerContent:
    day_events = sorted((e for e in events if e.date == date), key=event_sort_key)
    day_tasks = sorted((t for t in tasks if t.due_date == date), key=due_task_sort_key)
    active = sum(1 for t in day_tasks if not t.completed)
    return DrawerContent(
        date=date,
        events=tuple(day_events),
        tasks=tuple(day_tasks),
        event_count=len(day_events),
        active_due_count=active,
        hint=drawer_hint(len(day_events), active),
    )


def day_badges(day_events: Sequence[Event], day_tasks: Sequence[Task]) -> DayBadges:
    """Grid cell indicators: first event colors by start time, active due count."""
    evs = sorted(day_events, key=event_sort_key)
    active = [t for t in day_tasks if not t.completed]
    return DayBadges(
        colors=tuple(e.color for e in evs[:MAX_DAY_DOTS]),
        due_count=len(active),
        high_due=any(t.priority == "high" for t in active),
    )


def task_stats(tasks: Sequence[Task]) -> TaskStats:
    total = len(tasks)
    done = sum(1 for t in tasks if t.completed)
    return TaskStats(active=total - done, completed=done, total=total)


__all__ = [
    "filter_tasks",
    "task_sort_key",
    "visible_tasks",
    "events_by_date",
    "due_tasks_by_date",
    "event_sort_key",
    "due_task_sort_key",
    "drawer_hint",
    "drawer_content",
    "day_badges",
    "task_stats",
]
