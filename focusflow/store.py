# focusflow/store.py
"""Entity store and mutation transactions.

The Store owns every collection (categories, tasks, events, ui). Each mutation
runs validate -> mutate in memory -> persist all slots -> return a result, in a
single synchronous call. Validation problems come back as MutationResult
reasons; they are never raised.

Field mappings passed to create_*/update_* use the persisted key names
(`title`, `category`, `priority`, `dueDate`, `notes`, `date`, `startTime`,
`endTime`, `location`, `color`).
"""

from __future__ import annotations

import copy
import datetime as dt
import time
from typing import Any, Callable, Dict, List, Mapping, Optional

from .grid import MAX_YEAR, MIN_YEAR, build_grid, shift_month, year_in_range
from .model import (
    DEFAULT_COLOR,
    DEFAULT_PRIORITY,
    EVENT_COLORS,
    PRIORITIES,
    TASK_FILTERS,
    CalendarCell,
    DayBadges,
    DrawerContent,
    Event,
    MutationResult,
    Snapshot,
    Task,
    TaskStats,
    UiState,
)
from .query import (
    day_badges,
    drawer_content,
    due_tasks_by_date,
    events_by_date,
    task_stats,
    visible_tasks,
)
from .sanitize import new_id, sanitize_snapshot
from .storage import Storage, MemoryStorage, read_slots, write_slots
from .transfer import ImportPayloadError, export_payload, parse_import, parse_import_text
from .undo import DEFAULT_WINDOW_S, UndoBuffer
from .util.console import obs_warn
from .util.dates import is_valid_iso_date, now_ms as _now_ms, split_iso

REASON_TITLE_REQUIRED = "Title is required"
REASON_DATE_REQUIRED = "Date is required"
REASON_TIME_RANGE = "End time must be after start time"
REASON_TASK_NOT_FOUND = "Task not found"
REASON_EVENT_NOT_FOUND = "Event not found"
REASON_CATEGORY_EMPTY = "Enter a category name"
REASON_CATEGORY_NAME_EMPTY = "Category name cannot be empty"
REASON_CATEGORY_EXISTS = "That category already exists"
REASON_CATEGORY_NOT_FOUND = "Category not found"
REASON_NO_CHANGES = "No changes"
REASON_LAST_CATEGORY = "Keep at least one category"
REASON_INVALID_DATE = "Invalid date"
REASON_UNKNOWN_FILTER = "Unknown filter"

WARN_CATEGORY_FALLBACK = "Category not found; using default"


def _clean(v: Any) -> str:
    return str(v).strip() if v else ""


def _fields(fields: Any) -> Mapping[str, Any]:
    if fields is None:
        return {}
    if not isinstance(fields, Mapping):
        raise TypeError(f"fields must be a mapping; got {type(fields).__name__}")
    return fields


def _fail(reason: str, *, not_found: bool = False) -> MutationResult:
    return MutationResult(ok=False, reason=reason, not_found=not_found)


class Store:
    def __init__(
        self,
        storage: Optional[Storage] = None,
        snapshot: Optional[Snapshot] = None,
        *,
        now_ms: Callable[[], int] = _now_ms,
        today: Callable[[], dt.date] = dt.date.today,
        clock: Callable[[], float] = time.monotonic,
        undo_window_s: float = DEFAULT_WINDOW_S,
        make_id: Callable[[], str] = new_id,
    ) -> None:
        self.storage: Storage = storage if storage is not None else MemoryStorage()
        self._now_ms = now_ms
        self._today = today
        self._make_id = make_id
        snap = snapshot or sanitize_snapshot(None, None, None, None, now_ms=now_ms(), today=today(), make_id=make_id)
        self.categories: List[str] = snap.categories
        self.tasks: List[Task] = snap.tasks
        self.events: List[Event] = snap.events
        self.ui: UiState = snap.ui
        self.task_undo: UndoBuffer[Task] = UndoBuffer(undo_window_s, clock)
        self.event_undo: UndoBuffer[Event] = UndoBuffer(undo_window_s, clock)

    @classmethod
    def load(cls, storage: Storage, **kwargs: Any) -> "Store":
        """Build a store from the four persisted slots (sanitized; nothing is written)."""
        now_fn = kwargs.get("now_ms", _now_ms)
        today_fn = kwargs.get("today", dt.date.today)
        make_id = kwargs.get("make_id", new_id)
        raw = read_slots(storage)
        snap = sanitize_snapshot(
            raw["categories"],
            raw["tasks"],
            raw["events"],
            raw["ui"],
            now_ms=now_fn(),
            today=today_fn(),
            make_id=make_id,
        )
        return cls(storage, snap, **kwargs)

    # ---------- persistence ----------
    def snapshot(self) -> Snapshot:
        return Snapshot(
            categories=list(self.categories),
            tasks=copy.deepcopy(self.tasks),
            events=copy.deepcopy(self.events),
            ui=copy.deepcopy(self.ui),
        )

    def persist(self) -> None:
        write_slots(
            self.storage,
            {
                "categories": list(self.categories),
                "tasks": [t.to_dict() for t in self.tasks],
                "events": [e.to_dict() for e in self.events],
                "ui": self.ui.to_dict(),
            },
        )

    # ---------- lookup ----------
    def _task_index(self, task_id: str) -> int:
        for i, t in enumerate(self.tasks):
            if t.id == task_id:
                return i
        return -1

    def _event_index(self, event_id: str) -> int:
        for i, e in enumerate(self.events):
            if e.id == event_id:
                return i
        return -1

    def get_task(self, task_id: str) -> Optional[Task]:
        i = self._task_index(task_id)
        return self.tasks[i] if i >= 0 else None

    def get_event(self, event_id: str) -> Optional[Event]:
        i = self._event_index(event_id)
        return self.events[i] if i >= 0 else None

    # ---------- tasks ----------
    def _resolve_category(self, raw: Any) -> tuple[str, Optional[str]]:
        fallback = self.categories[0]
        category = _clean(raw) or fallback
        if category in self.categories:
            return category, None
        obs_warn("store", f"unknown category {category!r}; using {fallback!r}")
        return fallback, WARN_CATEGORY_FALLBACK

    def create_task(self, fields: Mapping[str, Any]) -> MutationResult:
        f = _fields(fields)
        title = _clean(f.get("title"))
        if not title:
            return _fail(REASON_TITLE_REQUIRED)
        category, warning = self._resolve_category(f.get("category"))
        priority = f.get("priority")
        ts = self._now_ms()
        task = Task(
            id=self._make_id(),
            title=title,
            category=category,
            priority=priority if priority in PRIORITIES else DEFAULT_PRIORITY,
            due_date=_clean(f.get("dueDate")),
            notes=_clean(f.get("notes")),
            completed=False,
            created_at=ts,
            updated_at=ts,
        )
        self.tasks.append(task)
        self.persist()
        return MutationResult(ok=True, id=task.id, mode="created", warning=warning)

    def update_task(self, task_id: str, fields: Mapping[str, Any]) -> MutationResult:
        """Apply the supplied fields; keys that are absent keep their value."""
        f = _fields(fields)
        t = self.get_task(task_id)
        if t is None:
            return _fail(REASON_TASK_NOT_FOUND, not_found=True)

        title = _clean(f.get("title")) if "title" in f else t.title
        if not title:
            return _fail(REASON_TITLE_REQUIRED)

        warning = None
        category = t.category
        if "category" in f:
            category, warning = self._resolve_category(f.get("category"))
        priority = t.priority
        if "priority" in f:
            priority = f["priority"] if f["priority"] in PRIORITIES else DEFAULT_PRIORITY

        t.title = title
        t.category = category
        t.priority = priority
        if "dueDate" in f:
            t.due_date = _clean(f.get("dueDate"))
        if "notes" in f:
            t.notes = _clean(f.get("notes"))
        if "completed" in f:
            t.completed = bool(f.get("completed"))
        t.updated_at = self._now_ms()
        self.persist()
        return MutationResult(ok=True, id=t.id, mode="updated", warning=warning)

    def toggle_task_complete(self, task_id: str) -> Optional[Task]:
        t = self.get_task(task_id)
        if t is None:
            return None
        t.completed = not t.completed
        t.updated_at = self._now_ms()
        self.persist()
        return t

    def delete_task(self, task_id: str) -> Optional[Task]:
        """Remove the task and arm the task undo window. Unknown id is a no-op."""
        idx = self._task_index(task_id)
        if idx < 0:
            return None
        removed = self.tasks.pop(idx)
        self.persist()
        self.task_undo.arm(copy.deepcopy(removed), idx)
        return removed

    def undo_delete_task(self) -> bool:
        return self.task_undo.signal(self._restore_task)

    def _restore_task(self, task: Task, index: int) -> None:
        if self._task_index(task.id) >= 0:
            obs_warn("store", f"undo skipped; task id={task.id!r} already present")
            return
        self.tasks.insert(min(max(index, 0), len(self.tasks)), task)
        self.persist()

    # ---------- events ----------
    @staticmethod
    def _check_event(title: str, date: str, start: str, end: str) -> Optional[str]:
        if not title:
            return REASON_TITLE_REQUIRED
        if not date:
            return REASON_DATE_REQUIRED
        # HH:MM strings compare correctly lexically.
        if start and end and start > end:
            return REASON_TIME_RANGE
        return None

    def create_event(self, fields: Mapping[str, Any]) -> MutationResult:
        f = _fields(fields)
        title = _clean(f.get("title"))
        date = _clean(f.get("date"))
        start = _clean(f.get("startTime"))
        end = _clean(f.get("endTime"))
        reason = self._check_event(title, date, start, end)
        if reason:
            return _fail(reason)
        color = _clean(f.get("color")) or DEFAULT_COLOR
        ts = self._now_ms()
        ev = Event(
            id=self._make_id(),
            title=title,
            date=date,
            start_time=start,
            end_time=end,
            location=_clean(f.get("location")),
            notes=_clean(f.get("notes")),
            color=color if color in EVENT_COLORS else DEFAULT_COLOR,
            created_at=ts,
            updated_at=ts,
        )
        self.events.append(ev)
        self.persist()
        return MutationResult(ok=True, id=ev.id, mode="created")

    def update_event(self, event_id: str, fields: Mapping[str, Any]) -> MutationResult:
        f = _fields(fields)
        e = self.get_event(event_id)
        if e is None:
            return _fail(REASON_EVENT_NOT_FOUND, not_found=True)

        def pick(key: str, current: str) -> str:
            return _clean(f.get(key)) if key in f else current

        title = pick("title", e.title)
        date = pick("date", e.date)
        start = pick("startTime", e.start_time)
        end = pick("endTime", e.end_time)
        reason = self._check_event(title, date, start, end)
        if reason:
            return _fail(reason)

        e.title = title
        e.date = date
        e.start_time = start
        e.end_time = end
        e.location = pick("location", e.location)
        e.notes = pick("notes", e.notes)
        if "color" in f:
            color = _clean(f.get("color"))
            e.color = color if color in EVENT_COLORS else DEFAULT_COLOR
        e.updated_at = self._now_ms()
        self.persist()
        return MutationResult(ok=True, id=e.id, mode="updated")

    def delete_event(self, event_id: str) -> Optional[Event]:
        idx = self._event_index(event_id)
        if idx < 0:
            return None
        removed = self.events.pop(idx)
        self.persist()
        self.event_undo.arm(copy.deepcopy(removed), idx)
        return removed

    def undo_delete_event(self) -> bool:
        return self.event_undo.signal(self._restore_event)

    def _restore_event(self, event: Event, index: int) -> None:
        if self._event_index(event.id) >= 0:
            obs_warn("store", f"undo skipped; event id={event.id!r} already present")
            return
        self.events.insert(min(max(index, 0), len(self.events)), event)
        self.persist()

    # ---------- categories ----------
    def add_category(self, name: Any) -> MutationResult:
        n = _clean(name)
        if not n:
            return _fail(REASON_CATEGORY_EMPTY)
        if n in self.categories:
            return _fail(REASON_CATEGORY_EXISTS)
        self.categories.append(n)
        self.persist()
        return MutationResult(ok=True, id=n, mode="created")

    def rename_category(self, old: str, new: Any) -> MutationResult:
        to = _clean(new)
        if not to:
            return _fail(REASON_CATEGORY_NAME_EMPTY)
        if old == to:
            return _fail(REASON_NO_CHANGES)
        try:
            i = self.categories.index(old)
        except ValueError:
            return _fail(REASON_CATEGORY_NOT_FOUND, not_found=True)
        if to in self.categories:
            return _fail(REASON_CATEGORY_EXISTS)
        self.categories[i] = to
        for t in self.tasks:
            if t.category == old:
                t.category = to
        self.persist()
        return MutationResult(ok=True, id=to, mode="renamed")

    def remove_category(self, name: str) -> MutationResult:
        if name not in self.categories:
            return _fail(REASON_CATEGORY_NOT_FOUND, not_found=True)
        if len(self.categories) <= 1:
            return _fail(REASON_LAST_CATEGORY)
        remaining = [c for c in self.categories if c != name]
        fallback = remaining[0]
        for t in self.tasks:
            if t.category == name:
                t.category = fallback
        self.categories[:] = remaining
        self.persist()
        return MutationResult(ok=True, id=name, mode="deleted")

    # ---------- ui state ----------
    def set_page(self, page: int) -> int:
        self.ui.page = max(0, min(1, int(page)))
        self.persist()
        return self.ui.page

    def set_filter(self, task_filter: str) -> MutationResult:
        if task_filter not in TASK_FILTERS:
            return _fail(REASON_UNKNOWN_FILTER)
        self.ui.task_filter = task_filter
        self.persist()
        return MutationResult(ok=True, id=task_filter, mode="updated")

    def set_month(self, year: int, month_index: int) -> None:
        if not 0 <= int(month_index) <= 11:
            raise ValueError(f"month must be in 0..11; got {month_index}")
        if not year_in_range(year):
            raise ValueError(f"year must be in {MIN_YEAR}..{MAX_YEAR}; got {year}")
        self.ui.calendar.year = int(year)
        self.ui.calendar.month = int(month_index)
        self.persist()

    def _step_month(self, delta: int) -> None:
        year, month = shift_month(self.ui.calendar.year, self.ui.calendar.month, delta)
        # Navigation stops at the first and last representable months.
        if year_in_range(year):
            self.set_month(year, month)

    def prev_month(self) -> None:
        self._step_month(-1)

    def next_month(self) -> None:
        self._step_month(1)

    def select_date(self, iso: str) -> MutationResult:
        """Select a day and open its drawer; a spillover day also moves the visible month."""
        if not is_valid_iso_date(iso):
            return _fail(REASON_INVALID_DATE)
        cal = self.ui.calendar
        cal.selected_date = iso
        cal.drawer_open = True
        y, m, _d = split_iso(iso)
        if any(c.iso == iso and c.other_month for c in build_grid(cal.year, cal.month)):
            cal.year, cal.month = y, m
        self.persist()
        return MutationResult(ok=True, id=iso, mode="selected")

    def focus_date(self, iso: str) -> MutationResult:
        """Jump the calendar to the month of `iso`, select it and open the drawer."""
        if not is_valid_iso_date(iso):
            return _fail(REASON_INVALID_DATE)
        cal = self.ui.calendar
        cal.year, cal.month, _d = split_iso(iso)
        cal.selected_date = iso
        cal.drawer_open = True
        self.persist()
        return MutationResult(ok=True, id=iso, mode="selected")

    def go_today(self) -> MutationResult:
        return self.focus_date(self._today().isoformat())

    def close_drawer(self) -> None:
        self.ui.calendar.drawer_open = False
        self.persist()

    # ---------- import / export ----------
    def _replace_from(self, categories: Any, tasks: Any, events: Any) -> MutationResult:
        snap = sanitize_snapshot(
            categories,
            tasks,
            events,
            self.ui.to_dict(),
            now_ms=self._now_ms(),
            today=self._today(),
            make_id=self._make_id,
        )
        # Pending restores would target collections that no longer exist.
        self.task_undo.cancel()
        self.event_undo.cancel()
        self.categories = snap.categories
        self.tasks = snap.tasks
        self.events = snap.events
        self.persist()
        return MutationResult(ok=True, mode="imported")

    def import_payload(self, obj: Any) -> MutationResult:
        """Replace categories/tasks/events with `obj`'s arrays, or reject it whole."""
        try:
            categories, tasks, events = parse_import(obj)
        except ImportPayloadError as e:
            obs_warn("store", f"import rejected: {e}")
            return _fail(str(e))
        return self._replace_from(categories, tasks, events)

    def import_text(self, text: str) -> MutationResult:
        try:
            categories, tasks, events = parse_import_text(text)
        except ImportPayloadError as e:
            obs_warn("store", f"import rejected: {e}")
            return _fail(str(e))
        return self._replace_from(categories, tasks, events)

    def export_payload(self, *, exported_at: Optional[str] = None) -> Dict[str, Any]:
        return export_payload(self.categories, self.tasks, self.events, exported_at=exported_at)

    # ---------- views ----------
    def visible_tasks(self, task_filter: Optional[str] = None) -> List[Task]:
        return visible_tasks(self.tasks, task_filter or self.ui.task_filter)

    def events_by_date(self) -> Dict[str, List[Event]]:
        return events_by_date(self.events)

    def due_tasks_by_date(self) -> Dict[str, List[Task]]:
        return due_tasks_by_date(self.tasks)

    def drawer_content(self, date: Optional[str] = None) -> DrawerContent:
        return drawer_content(self.events, self.tasks, date or self.ui.calendar.selected_date)

    def grid(self) -> List[CalendarCell]:
        return build_grid(self.ui.calendar.year, self.ui.calendar.month)

    def grid_badges(self) -> Dict[str, DayBadges]:
        evs = self.events_by_date()
        due = self.due_tasks_by_date()
        return {c.iso: day_badges(evs.get(c.iso, []), due.get(c.iso, [])) for c in self.grid()}

    def stats(self) -> TaskStats:
        return task_stats(self.tasks)


__all__ = [
    "Store",
    "REASON_TITLE_REQUIRED",
    "REASON_DATE_REQUIRED",
    "REASON_TIME_RANGE",
    "REASON_TASK_NOT_FOUND",
    "REASON_EVENT_NOT_FOUND",
    "REASON_CATEGORY_EMPTY",
    "REASON_CATEGORY_NAME_EMPTY",
    "REASON_CATEGORY_EXISTS",
    "REASON_CATEGORY_NOT_FOUND",
    "REASON_NO_CHANGES",
    "REASON_LAST_CATEGORY",
    "REASON_INVALID_DATE",
    "REASON_UNKNOWN_FILTER",
    "WARN_CATEGORY_FALLBACK",
]
