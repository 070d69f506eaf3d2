from __future__ import annotations

import copy
import datetime as dt
import unittest

from focusflow.storage import MemoryStorage
from focusflow.store import Store
from focusflow.undo import ACTIVE, EXPIRED, IDLE, RESTORED, UndoBuffer


class FakeClock:
    def __init__(self, t: float = 100.0) -> None:
        self.t = t

    def __call__(self) -> float:
        return self.t

    def advance(self, s: float) -> None:
        self.t += s


def _store(clock: FakeClock) -> Store:
    s = Store(MemoryStorage(), today=lambda: dt.date(2024, 6, 1), clock=clock)
    for title in ("a", "b", "c"):
        s.create_task({"title": title, "dueDate": "2024-06-01", "priority": "high", "notes": f"n-{title}"})
    s.create_event({"title": "e1", "date": "2024-06-01"})
    s.create_event({"title": "e2", "date": "2024-06-02"})
    return s


class TestUndoBufferStateMachine(unittest.TestCase):
    def test_lifecycle_restore(self) -> None:
        clock = FakeClock()
        buf: UndoBuffer[str] = UndoBuffer(5.5, clock)
        self.assertEqual(buf.state, IDLE)
        buf.arm("x", 2)
        self.assertEqual(buf.state, ACTIVE)
        self.assertEqual(buf.pending, "x")

        got = []
        clock.advance(5.0)
        self.assertTrue(buf.signal(lambda item, idx: got.append((item, idx))))
        self.assertEqual(got, [("x", 2)])
        self.assertEqual(buf.state, RESTORED)
        self.assertIsNone(buf.pending)

        self.assertFalse(buf.signal(lambda item, idx: got.append((item, idx))))
        self.assertEqual(len(got), 1)

    def test_lifecycle_expire(self) -> None:
        clock = FakeClock()
        buf: UndoBuffer[str] = UndoBuffer(5.5, clock)
        buf.arm("x", 0)
        clock.advance(5.5)
        self.assertEqual(buf.poll(), EXPIRED)
        self.assertFalse(buf.signal(lambda item, idx: self.fail("must not restore")))

    def test_new_arm_supersedes_pending(self) -> None:
        clock = FakeClock()
        buf: UndoBuffer[str] = UndoBuffer(5.5, clock)
        buf.arm("old", 0)
        clock.advance(3)
        buf.arm("new", 4)
        clock.advance(3)  # old window would have closed; new one is still open
        got = []
        self.assertTrue(buf.signal(lambda item, idx: got.append((item, idx))))
        self.assertEqual(got, [("new", 4)])

    def test_remaining_and_cancel(self) -> None:
        clock = FakeClock()
        buf: UndoBuffer[int] = UndoBuffer(5.5, clock)
        self.assertEqual(buf.remaining_s(), 0.0)
        buf.arm(1, 0)
        clock.advance(1.5)
        self.assertAlmostEqual(buf.remaining_s(), 4.0)
        buf.cancel()
        self.assertEqual(buf.state, EXPIRED)

    def test_window_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            UndoBuffer(0)


class TestStoreUndoContract(unittest.TestCase):
    def test_undo_within_window_restores_equal_task_in_place(self) -> None:
        clock = FakeClock()
        s = _store(clock)
        target = copy.deepcopy(s.tasks[1])
        order = [t.id for t in s.tasks]

        s.delete_task(target.id)
        self.assertIsNone(s.get_task(target.id))
        clock.advance(5.4)
        self.assertTrue(s.undo_delete_task())

        self.assertEqual([t.id for t in s.tasks], order)
        self.assertEqual(s.tasks[1], target)

        # Second signal after restoring is a no-op.
        self.assertFalse(s.undo_delete_task())
        self.assertEqual(len(s.tasks), 3)

    def test_undo_after_window_leaves_task_removed(self) -> None:
        clock = FakeClock()
        s = _store(clock)
        tid = s.tasks[0].id
        s.delete_task(tid)
        clock.advance(6)
        self.assertFalse(s.undo_delete_task())
        self.assertIsNone(s.get_task(tid))
        self.assertEqual(len(s.tasks), 2)

    def test_restore_is_persisted(self) -> None:
        clock = FakeClock()
        s = _store(clock)
        tid = s.tasks[0].id
        s.delete_task(tid)
        s.undo_delete_task()
        reloaded = Store.load(s.storage)
        self.assertEqual([t.id for t in reloaded.tasks], [t.id for t in s.tasks])

    def test_second_delete_supersedes_first(self) -> None:
        clock = FakeClock()
        s = _store(clock)
        first, second = s.tasks[0].id, s.tasks[2].id
        s.delete_task(first)
        s.delete_task(second)
        self.assertTrue(s.undo_delete_task())
        self.assertIsNotNone(s.get_task(second))
        self.assertIsNone(s.get_task(first))

    def test_restore_index_is_clamped_to_current_length(self) -> None:
        clock = FakeClock()
        s = _store(clock)
        last = s.tasks[2]
        s.delete_task(last.id)
        # Shrink the list underneath the pending restore.
        s.tasks.pop(0)
        self.assertTrue(s.undo_delete_task())
        self.assertEqual(s.tasks[-1].id, last.id)

    def test_task_and_event_buffers_are_independent(self) -> None:
        clock = FakeClock()
        s = _store(clock)
        tid = s.tasks[0].id
        eid = s.events[0].id
        s.delete_task(tid)
        s.delete_event(eid)
        self.assertTrue(s.undo_delete_event())
        self.assertTrue(s.undo_delete_task())
        self.assertEqual(s.events[0].id, eid)
        self.assertEqual(s.tasks[0].id, tid)

    def test_no_pending_delete_means_no_op(self) -> None:
        s = _store(FakeClock())
        self.assertFalse(s.undo_delete_task())
        self.assertFalse(s.undo_delete_event())


if __name__ == "__main__":
    unittest.main(verbosity=2)
