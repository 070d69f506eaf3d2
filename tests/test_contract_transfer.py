from __future__ import annotations

import datetime as dt
import json
from pathlib import Path

import pytest

from focusflow.storage import MemoryStorage
from focusflow.store import Store
from focusflow.transfer import (
    EXPORT_VERSION,
    REASON_INVALID_JSON,
    REASON_MISSING_FIELDS,
    ImportPayloadError,
    export_filename,
    parse_import,
    parse_import_text,
    read_import_file,
    write_export_file,
)


def _store() -> Store:
    s = Store(MemoryStorage(), today=lambda: dt.date(2024, 6, 1), now_ms=lambda: 1_700_000_000_000)
    s.create_task({"title": "Buy milk", "category": "Personal", "dueDate": "2024-06-03"})
    s.create_event({"title": "Standup", "date": "2024-06-03", "startTime": "09:00", "endTime": "09:15"})
    s.set_page(1)
    s.select_date("2024-06-03")
    return s


def test_export_shape():
    s = _store()
    out = s.export_payload(exported_at="2024-06-01T10:00:00.000Z")
    assert set(out) == {"exportedAt", "version", "categories", "tasks", "events"}
    assert out["version"] == EXPORT_VERSION == 1
    assert out["exportedAt"] == "2024-06-01T10:00:00.000Z"
    assert out["categories"] == ["Personal", "Work", "Health"]
    assert out["tasks"][0]["title"] == "Buy milk"
    assert out["tasks"][0]["dueDate"] == "2024-06-03"
    assert out["events"][0]["startTime"] == "09:00"
    # UI state is never exported.
    assert "ui" not in out


def test_export_default_timestamp_is_utc_iso():
    out = _store().export_payload()
    assert out["exportedAt"].endswith("Z")
    assert "T" in out["exportedAt"]


def test_export_filename():
    assert export_filename(dt.date(2024, 6, 1)) == "focusflow-export-2024-06-01.json"


def test_export_then_import_round_trip_keeps_entities():
    src = _store()
    dst = Store(MemoryStorage(), today=lambda: dt.date(2024, 6, 1))
    res = dst.import_payload(json.loads(json.dumps(src.export_payload())))
    assert res.ok
    assert dst.tasks == src.tasks
    assert dst.events == src.events
    assert dst.categories == src.categories


@pytest.mark.parametrize(
    "payload",
    [
        {"categories": [], "tasks": []},
        {"categories": [], "events": []},
        {"tasks": [], "events": []},
        {"categories": "Work", "tasks": [], "events": []},
        {"categories": [], "tasks": {}, "events": []},
        {"categories": [], "tasks": [], "events": None},
    ],
)
def test_import_missing_or_wrong_fields_rejected_wholesale(payload):
    s = _store()
    before = s.snapshot()
    writes = s.storage.writes

    res = s.import_payload(payload)

    assert not res.ok
    assert res.reason == REASON_MISSING_FIELDS
    assert s.snapshot() == before
    assert s.storage.writes == writes


def test_import_text_invalid_json():
    s = _store()
    before = s.snapshot()
    writes = s.storage.writes

    res = s.import_text("{not json")

    assert not res.ok
    assert res.reason == REASON_INVALID_JSON
    assert s.snapshot() == before
    assert s.storage.writes == writes


def test_import_non_object_is_invalid():
    with pytest.raises(ImportPayloadError) as ei:
        parse_import([1, 2, 3])
    assert str(ei.value) == REASON_INVALID_JSON

    with pytest.raises(ImportPayloadError):
        parse_import_text("")


def test_import_ignores_extra_fields():
    cats, tasks, events = parse_import(
        {"version": 99, "exportedAt": "whenever", "ui": {"page": 1}, "categories": ["A"], "tasks": [], "events": []}
    )
    assert cats == ["A"] and tasks == [] and events == []


def test_successful_import_replaces_and_sanitizes_but_keeps_ui():
    s = _store()
    ui_before = s.snapshot().ui

    res = s.import_payload(
        {
            "categories": ["Errands", "", "Errands", "  Work "],
            "tasks": [
                {"id": "t1", "title": "Post letter", "category": "Errands", "priority": "urgent"},
                {"id": "t2", "title": "   "},
                {"id": "t3", "title": "Ship it", "category": "Nope"},
                "garbage",
            ],
            "events": [{"id": "e1", "title": "Dentist", "color": "magenta"}],
        }
    )

    assert res.ok
    assert s.categories == ["Errands", "Work"]
    assert [t.id for t in s.tasks] == ["t1", "t3"]
    assert s.tasks[0].priority == "medium"
    assert s.tasks[1].category == "Errands"
    assert s.events[0].color == "blue"
    assert s.events[0].date == "2024-06-01"
    assert s.snapshot().ui == ui_before

    reloaded = Store.load(s.storage, today=lambda: dt.date(2024, 6, 1))
    assert reloaded.snapshot() == s.snapshot()


def test_import_cancels_pending_undo():
    s = _store()
    s.delete_task(s.tasks[0].id)
    s.import_payload({"categories": ["A"], "tasks": [], "events": []})
    assert s.undo_delete_task() is False
    assert s.tasks == []


def test_export_file_round_trip(tmp_path: Path):
    s = _store()
    out = write_export_file(tmp_path / "nested" / "export.json", s.export_payload())
    assert out.exists()
    cats, tasks, events = read_import_file(out)
    assert cats == s.categories
    assert [t["id"] for t in tasks] == [t.id for t in s.tasks]
    assert [e["id"] for e in events] == [e.id for e in s.events]
