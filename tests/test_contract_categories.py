from __future__ import annotations

import copy
import datetime as dt
import unittest

from focusflow.storage import MemoryStorage
from focusflow.store import Store


def _store() -> Store:
    s = Store(MemoryStorage(), today=lambda: dt.date(2024, 6, 1))
    s.create_task({"title": "a", "category": "Work"})
    s.create_task({"title": "b", "category": "Health"})
    s.create_task({"title": "c", "category": "Work"})
    s.create_task({"title": "d", "category": "Personal"})
    return s


class TestAddCategoryContract(unittest.TestCase):
    def test_add(self) -> None:
        s = _store()
        res = s.add_category("  Errands ")
        self.assertTrue(res.ok)
        self.assertEqual(s.categories[-1], "Errands")

    def test_empty_rejected(self) -> None:
        self.assertEqual(_store().add_category("  ").reason, "Enter a category name")

    def test_duplicate_is_case_sensitive(self) -> None:
        s = _store()
        self.assertEqual(s.add_category("Work").reason, "That category already exists")
        self.assertTrue(s.add_category("work").ok)


class TestRenameCategoryContract(unittest.TestCase):
    def test_rename_cascades_only_matching_tasks(self) -> None:
        s = _store()
        before = {t.id: t.category for t in s.tasks}
        res = s.rename_category("Work", "Job")
        self.assertTrue(res.ok)
        self.assertEqual(s.categories, ["Personal", "Job", "Health"])
        for t in s.tasks:
            if before[t.id] == "Work":
                self.assertEqual(t.category, "Job")
            else:
                self.assertEqual(t.category, before[t.id])

    def test_same_name_is_no_changes(self) -> None:
        s = _store()
        writes = s.storage.writes  # type: ignore[attr-defined]
        res = s.rename_category("Work", "Work")
        self.assertFalse(res.ok)
        self.assertEqual(res.reason, "No changes")
        self.assertEqual(s.storage.writes, writes)  # type: ignore[attr-defined]

    def test_duplicate_target_rejected(self) -> None:
        s = _store()
        self.assertEqual(s.rename_category("Work", "Health").reason, "That category already exists")
        self.assertIn("Work", s.categories)

    def test_empty_target_and_unknown_source(self) -> None:
        s = _store()
        self.assertEqual(s.rename_category("Work", " ").reason, "Category name cannot be empty")
        self.assertTrue(s.rename_category("Nope", "Other").not_found)


class TestRemoveCategoryContract(unittest.TestCase):
    def test_remove_reassigns_to_first_remaining(self) -> None:
        s = _store()
        res = s.remove_category("Personal")
        self.assertTrue(res.ok)
        self.assertEqual(s.categories, ["Work", "Health"])
        self.assertEqual(s.get_task(s.tasks[3].id).category, "Work")  # type: ignore[union-attr]
        self.assertEqual([t.category for t in s.tasks], ["Work", "Health", "Work", "Work"])

    def test_last_category_is_kept(self) -> None:
        s = _store()
        s.remove_category("Work")
        s.remove_category("Health")
        self.assertEqual(s.categories, ["Personal"])

        snap = copy.deepcopy(s.snapshot())
        writes = s.storage.writes  # type: ignore[attr-defined]
        res = s.remove_category("Personal")
        self.assertFalse(res.ok)
        self.assertEqual(res.reason, "Keep at least one category")
        self.assertEqual(s.snapshot(), snap)
        self.assertEqual(s.storage.writes, writes)  # type: ignore[attr-defined]
        self.assertTrue(all(t.category == "Personal" for t in s.tasks))


if __name__ == "__main__":
    unittest.main(verbosity=2)
