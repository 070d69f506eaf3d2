from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .api import default_data_dir
from .grid import weekday_labels
from .model import EVENT_COLORS, PRIORITIES, TASK_FILTERS, Event, MutationResult, Task
from .storage import JsonDirStorage
from .store import Store
from .transfer import ImportPayloadError, export_filename, read_import_file, write_export_file
from .util.dates import is_valid_iso_date, parse_hhmm
from .util.fmt import day_title, month_title, nice_date, time_range


def _die(msg: str, rc: int = 2) -> int:
    print(f"[focusflow] ERROR: {msg}", file=sys.stderr)
    return rc


def _report(res: MutationResult, ok_msg: str) -> int:
    if res.warning:
        print(f"[focusflow] WARN: {res.warning}", file=sys.stderr)
    if not res.ok:
        return _die(res.reason or "Operation failed")
    print(ok_msg if not res.id else f"{ok_msg}: {res.id}")
    return 0


def _task_line(t: Task) -> str:
    mark = "x" if t.completed else " "
    parts = [f"[{mark}] {t.title}", f"#{t.category}", t.priority.upper()]
    if t.due_date:
        try:
            parts.append(f"due {nice_date(t.due_date)}")
        except ValueError:
            # Imported or legacy values are kept verbatim.
            parts.append(f"due {t.due_date}")
    parts.append(f"({t.id})")
    return "  ".join(parts)


def _event_line(e: Event) -> str:
    parts = [e.title]
    tr = time_range(e.start_time, e.end_time)
    if tr:
        parts.append(tr)
    if e.location:
        parts.append(f"@ {e.location}")
    parts.append(f"[{e.color}]")
    parts.append(f"({e.id})")
    return "  ".join(parts)


def _task_fields(ns: argparse.Namespace) -> Dict[str, Any]:
    f: Dict[str, Any] = {}
    for attr, key in (("title", "title"), ("category", "category"), ("priority", "priority"), ("due", "dueDate"), ("notes", "notes")):
        v = getattr(ns, attr, None)
        if v is not None:
            f[key] = v
    return f


def _event_fields(ns: argparse.Namespace) -> Dict[str, Any]:
    f: Dict[str, Any] = {}
    for attr, key in (
        ("title", "title"),
        ("date", "date"),
        ("start", "startTime"),
        ("end", "endTime"),
        ("location", "location"),
        ("notes", "notes"),
        ("color", "color"),
    ):
        v = getattr(ns, attr, None)
        if v is not None:
            f[key] = v
    return f


def _check_times(ns: argparse.Namespace) -> Optional[str]:
    for attr in ("start", "end"):
        v = getattr(ns, attr, None)
        if v:
            try:
                parse_hhmm(v)
            except ValueError as e:
                return str(e)
    return None


# --- commands ----------------------------------------------------------------


def cmd_tasks(store: Store, ns: argparse.Namespace) -> int:
    if ns.filter:
        res = store.set_filter(ns.filter)
        if not res.ok:
            return _die(res.reason or "bad filter")
    for t in store.visible_tasks():
        print(_task_line(t))
    print(store.stats().summary)
    return 0


def cmd_add_task(store: Store, ns: argparse.Namespace) -> int:
    return _report(store.create_task(_task_fields(ns)), "Task added")


def cmd_edit_task(store: Store, ns: argparse.Namespace) -> int:
    return _report(store.update_task(ns.id, _task_fields(ns)), "Task updated")


def cmd_done(store: Store, ns: argparse.Namespace) -> int:
    t = store.toggle_task_complete(ns.id)
    if t is None:
        return 0
    print("Task completed" if t.completed else "Marked active")
    return 0


def cmd_rm_task(store: Store, ns: argparse.Namespace) -> int:
    if store.delete_task(ns.id) is not None:
        print("Task deleted")
    return 0


def cmd_add_event(store: Store, ns: argparse.Namespace) -> int:
    bad = _check_times(ns)
    if bad:
        return _die(bad)
    res = store.create_event(_event_fields(ns))
    if res.ok:
        store.focus_date(store.get_event(res.id).date)  # type: ignore[union-attr,arg-type]
    return _report(res, "Event added")


def cmd_edit_event(store: Store, ns: argparse.Namespace) -> int:
    bad = _check_times(ns)
    if bad:
        return _die(bad)
    res = store.update_event(ns.id, _event_fields(ns))
    if res.ok:
        store.focus_date(store.get_event(res.id).date)  # type: ignore[union-attr,arg-type]
    return _report(res, "Event updated")


def cmd_rm_event(store: Store, ns: argparse.Namespace) -> int:
    if store.delete_event(ns.id) is not None:
        print("Event deleted")
    return 0


def cmd_categories(store: Store, ns: argparse.Namespace) -> int:
    for c in store.categories:
        print(c)
    return 0


def cmd_add_category(store: Store, ns: argparse.Namespace) -> int:
    return _report(store.add_category(ns.name), "Category added")


def cmd_rename_category(store: Store, ns: argparse.Namespace) -> int:
    return _report(store.rename_category(ns.old, ns.new), "Category renamed")


def cmd_rm_category(store: Store, ns: argparse.Namespace) -> int:
    return _report(store.remove_category(ns.name), "Category deleted")


def cmd_month(store: Store, ns: argparse.Namespace) -> int:
    if ns.year is not None or ns.month is not None:
        cal = store.ui.calendar
        year = ns.year if ns.year is not None else cal.year
        month = (ns.month - 1) if ns.month is not None else cal.month
        try:
            store.set_month(year, month)
        except ValueError as e:
            return _die(str(e))
    elif ns.prev:
        store.prev_month()
    elif ns.next:
        store.next_month()
    elif ns.today:
        store.go_today()

    cal = store.ui.calendar
    badges = store.grid_badges()
    print(month_title(cal.year, cal.month))
    print(" ".join(f"{d:>5}" for d in weekday_labels()))
    cells = store.grid()
    for row in range(6):
        out: List[str] = []
        for c in cells[row * 7:(row + 1) * 7]:
            b = badges[c.iso]
            mark = "!" if b.high_due else ("*" if b.due_count else (" " if not b.colors else "."))
            day = f"({c.day})" if c.other_month else f"{c.day}"
            sel = ">" if c.iso == cal.selected_date else " "
            out.append(f"{sel}{day:>3}{mark}")
        print(" ".join(out))
    return 0


def cmd_day(store: Store, ns: argparse.Namespace) -> int:
    if ns.date:
        res = store.select_date(ns.date)
        if not res.ok:
            return _die(res.reason or "Invalid date")
    d = store.drawer_content()
    print(day_title(d.date))
    print(d.hint)
    for e in d.events:
        print(f"  {_event_line(e)}")
    for t in d.tasks:
        print(f"  {_task_line(t)}")
    return 0


def cmd_export(store: Store, ns: argparse.Namespace) -> int:
    out = Path(ns.out) if ns.out else Path(export_filename())
    write_export_file(out, store.export_payload())
    print(f"Exported JSON: {out}")
    return 0


def cmd_import(store: Store, ns: argparse.Namespace) -> int:
    p = Path(ns.path)
    if not p.exists():
        return _die(f"Missing import file: {p}")
    try:
        categories, tasks, events = read_import_file(p)
    except ImportPayloadError as e:
        return _die(str(e))
    res = store.import_payload({"categories": categories, "tasks": tasks, "events": events})
    return _report(res, "Imported successfully")


def cmd_dump(store: Store, ns: argparse.Namespace) -> int:
    print(json.dumps(store.snapshot().to_dict(), indent=2, ensure_ascii=False))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="focusflow", description="Tasks + calendar, stored locally as JSON.")
    ap.add_argument(
        "--data-dir",
        default=None,
        help="Directory holding the JSON slots (default: env FOCUSFLOW_HOME or ~/.focusflow)",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    p = sub.add_parser("tasks", help="List tasks (sorted)")
    p.add_argument("--filter", choices=TASK_FILTERS, default=None, help="Persisted task filter")
    p.set_defaults(func=cmd_tasks)

    def task_opts(p: argparse.ArgumentParser) -> None:
        p.add_argument("--category", default=None)
        p.add_argument("--priority", choices=PRIORITIES, default=None)
        p.add_argument("--due", default=None, help="Due date YYYY-MM-DD ('' clears)")
        p.add_argument("--notes", default=None)

    p = sub.add_parser("add-task", help="Create a task")
    p.add_argument("title")
    task_opts(p)
    p.set_defaults(func=cmd_add_task)

    p = sub.add_parser("edit-task", help="Update a task")
    p.add_argument("id")
    p.add_argument("--title", default=None)
    task_opts(p)
    p.set_defaults(func=cmd_edit_task)

    p = sub.add_parser("done", help="Toggle task completion")
    p.add_argument("id")
    p.set_defaults(func=cmd_done)

    p = sub.add_parser("rm-task", help="Delete a task")
    p.add_argument("id")
    p.set_defaults(func=cmd_rm_task)

    def event_opts(p: argparse.ArgumentParser) -> None:
        p.add_argument("--start", default=None, help="Start time HH:MM")
        p.add_argument("--end", default=None, help="End time HH:MM")
        p.add_argument("--location", default=None)
        p.add_argument("--notes", default=None)
        p.add_argument("--color", choices=EVENT_COLORS, default=None)

    p = sub.add_parser("add-event", help="Create an event")
    p.add_argument("title")
    p.add_argument("--date", required=True, help="Event date YYYY-MM-DD")
    event_opts(p)
    p.set_defaults(func=cmd_add_event)

    p = sub.add_parser("edit-event", help="Update an event")
    p.add_argument("id")
    p.add_argument("--title", default=None)
    p.add_argument("--date", default=None)
    event_opts(p)
    p.set_defaults(func=cmd_edit_event)

    p = sub.add_parser("rm-event", help="Delete an event")
    p.add_argument("id")
    p.set_defaults(func=cmd_rm_event)

    p = sub.add_parser("categories", help="List categories")
    p.set_defaults(func=cmd_categories)

    p = sub.add_parser("add-category", help="Add a category")
    p.add_argument("name")
    p.set_defaults(func=cmd_add_category)

    p = sub.add_parser("rename-category", help="Rename a category (tasks follow)")
    p.add_argument("old")
    p.add_argument("new")
    p.set_defaults(func=cmd_rename_category)

    p = sub.add_parser("rm-category", help="Delete a category (tasks move to the first remaining)")
    p.add_argument("name")
    p.set_defaults(func=cmd_rm_category)

    p = sub.add_parser("month", help="Show the month grid")
    p.add_argument("--year", type=int, default=None)
    p.add_argument("--month", type=int, default=None, help="Month 1-12")
    g = p.add_mutually_exclusive_group()
    g.add_argument("--prev", action="store_true")
    g.add_argument("--next", action="store_true")
    g.add_argument("--today", action="store_true")
    p.set_defaults(func=cmd_month)

    p = sub.add_parser("day", help="Show events and due tasks for a day")
    p.add_argument("date", nargs="?", default=None, help="YYYY-MM-DD (default: selected day)")
    p.set_defaults(func=cmd_day)

    p = sub.add_parser("export", help="Write an export JSON")
    p.add_argument("--out", default=None, help="Output path (default: ./focusflow-export-YYYY-MM-DD.json)")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("import", help="Replace categories/tasks/events from an export JSON")
    p.add_argument("path")
    p.set_defaults(func=cmd_import)

    p = sub.add_parser("dump", help="Print the sanitized state as JSON")
    p.set_defaults(func=cmd_dump)

    return ap


def main(argv: list[str] | None = None) -> int:
    ns = _build_parser().parse_args(argv)

    if getattr(ns, "date", None) and ns.cmd in ("add-event", "edit-event") and not is_valid_iso_date(ns.date):
        return _die(f"Invalid date: {ns.date!r} (expected YYYY-MM-DD)")
    if getattr(ns, "due", None) and not is_valid_iso_date(ns.due):
        return _die(f"Invalid due date: {ns.due!r} (expected YYYY-MM-DD)")

    data_dir = Path(ns.data_dir).expanduser() if ns.data_dir else default_data_dir()
    store = Store.load(JsonDirStorage(data_dir))
    return int(ns.func(store, ns))


if __name__ == "__main__":
    raise SystemExit(main())
