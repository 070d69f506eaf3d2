"""focusflow.api

Stable *library* entrypoint for FocusFlow.

Policy:
  - Only names listed in __all__ are considered public API.
  - Everything else is internal and may change without notice.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional, Union

from focusflow.grid import build_grid, days_in_month, shift_month
from focusflow.model import (
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
from focusflow.query import (
    day_badges,
    drawer_content,
    due_tasks_by_date,
    events_by_date,
    task_stats,
    visible_tasks,
)
from focusflow.sanitize import sanitize_snapshot
from focusflow.storage import JsonDirStorage, MemoryStorage, Storage
from focusflow.store import Store
from focusflow.transfer import ImportPayloadError, export_payload, parse_import
from focusflow.undo import UndoBuffer

DataDir = Union[str, Path]


def default_data_dir() -> Path:
    """FOCUSFLOW_HOME when set, else ~/.focusflow."""
    env = (os.getenv("FOCUSFLOW_HOME", "") or "").strip()
    if env:
        return Path(env).expanduser()
    return Path.home() / ".focusflow"


def open_store(data_dir: Optional[DataDir] = None, **kwargs: Any) -> Store:
    """Load a Store backed by JSON files in `data_dir` (default: default_data_dir())."""
    d = Path(data_dir).expanduser() if data_dir else default_data_dir()
    return Store.load(JsonDirStorage(d), **kwargs)


def memory_store(**kwargs: Any) -> Store:
    """Store with throwaway in-memory persistence (tests, previews)."""
    return Store.load(MemoryStorage(), **kwargs)


# --- Public API exports (locked by contract tests) ------------------------
# Prefer append-only unless you are intentionally reshaping the public surface.
_PUBLIC_EXPORTS = (
    "CalendarCell",
    "DayBadges",
    "DrawerContent",
    "Event",
    "ImportPayloadError",
    "JsonDirStorage",
    "MemoryStorage",
    "MutationResult",
    "Snapshot",
    "Storage",
    "Store",
    "Task",
    "TaskStats",
    "UiState",
    "UndoBuffer",
    "build_grid",
    "day_badges",
    "days_in_month",
    "default_data_dir",
    "drawer_content",
    "due_tasks_by_date",
    "events_by_date",
    "export_payload",
    "memory_store",
    "open_store",
    "parse_import",
    "sanitize_snapshot",
    "shift_month",
    "task_stats",
    "visible_tasks",
)

__all__ = [n for n in _PUBLIC_EXPORTS if n in globals()]
# --- /Public API exports --------------------------------------------------
