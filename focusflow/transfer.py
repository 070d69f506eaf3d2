"""Import/export payloads (library-facing)."""

from __future__ import annotations

import datetime as dt
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .model import Event, Task
from .util.dates import utc_iso_now

EXPORT_VERSION = 1

REASON_INVALID_JSON = "Invalid JSON"
REASON_MISSING_FIELDS = "Import missing fields"


class ImportPayloadError(ValueError):
    """Raised when an import payload is rejected as a whole."""


def export_payload(
    categories: Sequence[str],
    tasks: Sequence[Task],
    events: Sequence[Event],
    *,
    exported_at: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "exportedAt": exported_at or utc_iso_now(),
        "version": EXPORT_VERSION,
        "categories": list(categories),
        "tasks": [t.to_dict() for t in tasks],
        "events": [e.to_dict() for e in events],
    }


def export_filename(today: Optional[dt.date] = None) -> str:
    d = today or dt.date.today()
    return f"focusflow-export-{d.isoformat()}.json"


def parse_import(obj: Any) -> Tuple[List[Any], List[Any], List[Any]]:
    """Return the raw (categories, tasks, events) arrays; other fields are ignored.

    Entries are not cleaned here; the store runs them through the sanitizer.
    """
    if not isinstance(obj, dict):
        raise ImportPayloadError(REASON_INVALID_JSON)
    categories = obj.get("categories")
    tasks = obj.get("tasks")
    events = obj.get("events")
    if not (isinstance(categories, list) and isinstance(tasks, list) and isinstance(events, list)):
        raise ImportPayloadError(REASON_MISSING_FIELDS)
    return categories, tasks, events


def parse_import_text(text: str) -> Tuple[List[Any], List[Any], List[Any]]:
    try:
        obj = json.loads(text)
    except (TypeError, ValueError) as ex:
        raise ImportPayloadError(REASON_INVALID_JSON) from ex
    return parse_import(obj)


def read_import_file(path: Union[str, Path]) -> Tuple[List[Any], List[Any], List[Any]]:
    p = Path(path)
    return parse_import_text(p.read_text(encoding="utf-8", errors="replace"))


def write_export_file(path: Union[str, Path], payload: Dict[str, Any]) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    return p


__all__ = [
    "EXPORT_VERSION",
    "REASON_INVALID_JSON",
    "REASON_MISSING_FIELDS",
    "ImportPayloadError",
    "export_payload",
    "export_filename",
    "parse_import",
    "parse_import_text",
    "read_import_file",
    "write_export_file",
]
