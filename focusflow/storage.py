# focusflow/storage.py
"""Persistence gateway: four durable key/value slots holding JSON strings.

Reads never raise: absent or corrupt data comes back as None and the caller
falls back to defaults. Writes are fire-and-forget; failures are logged and
swallowed.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .util.console import obs_warn

SLOT_CATEGORIES = "focusflow.categories"
SLOT_TASKS = "focusflow.tasks"
SLOT_EVENTS = "focusflow.events"
SLOT_UI = "focusflow.ui"

SLOTS = {
    "categories": SLOT_CATEGORIES,
    "tasks": SLOT_TASKS,
    "events": SLOT_EVENTS,
    "ui": SLOT_UI,
}


class Storage:
    """Synchronous get/set of raw strings by key."""

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError


class MemoryStorage(Storage):
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(initial or {})
        self.writes = 0

    def get_item(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.writes += 1
        self.data[key] = value


class JsonDirStorage(Storage):
    """One `<key>.json` file per slot inside `directory`."""

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        p = self._path(key)
        if not p.exists():
            return None
        return p.read_text(encoding="utf-8", errors="replace")

    def set_item(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self._path(key)
        fd, tmp = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=str(self.directory))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
            os.replace(tmp, target)
        except BaseException:
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise


def safe_parse(text: Optional[str]) -> Any:
    if text is None:
        return None
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return None


def safe_dump(obj: Any) -> str:
    try:
        return json.dumps(obj, ensure_ascii=False)
    except (TypeError, ValueError):
        return "null"


def read_slot(storage: Storage, key: str) -> Any:
    """Parsed JSON value of `key`, or None when absent/unreadable/corrupt."""
    try:
        text = storage.get_item(key)
    except Exception as e:
        obs_warn("storage", f"read failed key={key!r} ({e})")
        return None
    value = safe_parse(text)
    if text is not None and value is None and text.strip() != "null":
        obs_warn("storage", f"corrupt JSON in key={key!r}; using defaults")
    return value


def write_slot(storage: Storage, key: str, value: Any) -> None:
    try:
        storage.set_item(key, safe_dump(value))
    except Exception as e:
        obs_warn("storage", f"write failed key={key!r} ({e})")


def read_slots(storage: Storage) -> Dict[str, Any]:
    return {name: read_slot(storage, key) for name, key in SLOTS.items()}


def write_slots(storage: Storage, values: Dict[str, Any]) -> None:
    for name, key in SLOTS.items():
        if name in values:
            write_slot(storage, key, values[name])


__all__ = [
    "SLOT_CATEGORIES",
    "SLOT_TASKS",
    "SLOT_EVENTS",
    "SLOT_UI",
    "SLOTS",
    "Storage",
    "MemoryStorage",
    "JsonDirStorage",
    "safe_parse",
    "safe_dump",
    "read_slot",
    "write_slot",
    "read_slots",
    "write_slots",
]
