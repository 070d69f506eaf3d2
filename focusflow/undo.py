# focusflow/undo.py
"""Time-boxed reversible delete.

One buffer per entity kind. States:

  idle -> active (arm) -> restored (signal before deadline)
                       -> expired  (deadline passed; deletion is permanent)

Arming while active supersedes the pending entry. The window is a deadline on
an injected monotonic clock, checked whenever the buffer is touched, so no
timer thread ever touches the store.
"""

from __future__ import annotations

import time
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")

DEFAULT_WINDOW_S = 5.5

IDLE = "idle"
ACTIVE = "active"
RESTORED = "restored"
EXPIRED = "expired"


class UndoBuffer(Generic[T]):
    def __init__(self, window_s: float = DEFAULT_WINDOW_S, clock: Callable[[], float] = time.monotonic) -> None:
        if window_s <= 0:
            raise ValueError("undo window must be positive")
        self.window_s = float(window_s)
        self._clock = clock
        self.state = IDLE
        self._item: Optional[T] = None
        self._index = -1
        self._deadline = 0.0

    @property
    def pending(self) -> Optional[T]:
        self.poll()
        return self._item if self.state == ACTIVE else None

    @property
    def index(self) -> int:
        return self._index

    def remaining_s(self) -> float:
        if self.poll() != ACTIVE:
            return 0.0
        return max(0.0, self._deadline - self._clock())

    def arm(self, item: T, index: int) -> None:
        self._item = item
        self._index = int(index)
        self._deadline = self._clock() + self.window_s
        self.state = ACTIVE

    def poll(self) -> str:
        if self.state == ACTIVE and self._clock() >= self._deadline:
            self._clear(EXPIRED)
        return self.state

    def cancel(self) -> None:
        """Drop the pending entry without restoring it."""
        if self.state == ACTIVE:
            self._clear(EXPIRED)

    def signal(self, restore: Callable[[T, int], None]) -> bool:
        """Deliver the undo signal. Returns True only when `restore` ran."""
        if self.poll() != ACTIVE:
            return False
        item, index = self._item, self._index
        self._clear(RESTORED)
        restore(item, index)  # type: ignore[arg-type]
        return True

    def _clear(self, state: str) -> None:
        self.state = state
        self._item = None
        self._index = -1
        self._deadline = 0.0


__all__ = [
    "DEFAULT_WINDOW_S",
    "IDLE",
    "ACTIVE",
    "RESTORED",
    "EXPIRED",
    "UndoBuffer",
]
