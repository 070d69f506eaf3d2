# focusflow/model.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

PRIORITIES: Tuple[str, ...] = ("low", "medium", "high")
PRIORITY_RANK: Dict[str, int] = {"high": 3, "medium": 2, "low": 1}
DEFAULT_PRIORITY = "medium"

EVENT_COLORS: Tuple[str, ...] = ("blue", "pink", "green", "orange", "purple")
DEFAULT_COLOR = "blue"

TASK_FILTERS: Tuple[str, ...] = ("all", "active", "completed")
DEFAULT_FILTER = "all"

DEFAULT_CATEGORIES: Tuple[str, ...] = ("Personal", "Work", "Health")

# Sort sentinels: sort after any real due date / start time.
NO_DUE_DATE_KEY = "9999-12-31"
NO_START_TIME_KEY = "99:99"

PAGE_TASKS = 0
PAGE_CALENDAR = 1


@dataclass
class Task:
    id: str
    title: str
    category: str
    priority: str = DEFAULT_PRIORITY
    due_date: str = ""
    notes: str = ""
    completed: bool = False
    created_at: int = 0
    updated_at: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "priority": self.priority,
            "dueDate": self.due_date,
            "notes": self.notes,
            "completed": self.completed,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class Event:
    id: str
    title: str
    date: str
    start_time: str = ""
    end_time: str = ""
    location: str = ""
    notes: str = ""
    color: str = DEFAULT_COLOR
    created_at: int = 0
    updated_at: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "date": self.date,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "location": self.location,
            "notes": self.notes,
            "color": self.color,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class CalendarState:
    year: int
    month: int  # 0-based, 0..11
    selected_date: str
    drawer_open: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "selectedDate": self.selected_date,
            "drawerOpen": self.drawer_open,
        }


@dataclass
class UiState:
    calendar: CalendarState
    page: int = PAGE_TASKS
    task_filter: str = DEFAULT_FILTER

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page": self.page,
            "taskFilter": self.task_filter,
            "calendar": self.calendar.to_dict(),
        }


@dataclass
class Snapshot:
    """Fully-typed contents of the four persisted slots."""

    categories: List[str]
    tasks: List[Task]
    events: List[Event]
    ui: UiState

    def to_dict(self) -> Dict[str, Any]:
        return {
            "categories": list(self.categories),
            "tasks": [t.to_dict() for t in self.tasks],
            "events": [e.to_dict() for e in self.events],
            "ui": self.ui.to_dict(),
        }


# --- Derived view values -----------------------------------------------------


@dataclass(frozen=True)
class MutationResult:
    ok: bool
    id: Optional[str] = None
    reason: Optional[str] = None
    mode: Optional[str] = None  # "created" | "updated" | "deleted" | ...
    warning: Optional[str] = None
    not_found: bool = False


@dataclass(frozen=True)
class CalendarCell:
    index: int
    iso: str
    year: int
    month: int  # 0-based
    day: int
    other_month: bool


@dataclass(frozen=True)
class DayBadges:
    colors: Tuple[str, ...]
    due_count: int
    high_due: bool


@dataclass(frozen=True)
class DrawerContent:
    date: str
    events: Tuple[Event, ...]
    tasks: Tuple[Task, ...]
    event_count: int
    active_due_count: int
    hint: str


@dataclass(frozen=True)
class TaskStats:
    active: int
    completed: int
    total: int

    @property
    def summary(self) -> str:
        return f"{self.active} active • {self.completed} completed • {self.total} total"


__all__ = [
    "PRIORITIES",
    "PRIORITY_RANK",
    "DEFAULT_PRIORITY",
    "EVENT_COLORS",
    "DEFAULT_COLOR",
    "TASK_FILTERS",
    "DEFAULT_FILTER",
    "DEFAULT_CATEGORIES",
    "NO_DUE_DATE_KEY",
    "NO_START_TIME_KEY",
    "PAGE_TASKS",
    "PAGE_CALENDAR",
    "Task",
    "Event",
    "CalendarState",
    "UiState",
    "Snapshot",
    "MutationResult",
    "CalendarCell",
    "DayBadges",
    "DrawerContent",
    "TaskStats",
]
