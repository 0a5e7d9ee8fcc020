"""A fixed-capacity ring buffer that overwrites its oldest entry when full."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator


class CircularBuffer:
    """Holds at most ``capacity`` strings, oldest first."""

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        self.capacity = capacity
        self._items: deque[str] = deque(maxlen=capacity)

    def push(self, item: str) -> None:
        """Append ``item``, dropping the oldest entry if the buffer is full."""
        if self.capacity == 0:
            raise ValueError("cannot push into a buffer with zero capacity")
        self._items.append(item)

    def get(self, index: int) -> str | None:
        """Return the entry at ``index`` counted from the oldest, or None."""
        if 0 <= index < len(self._items):
            return self._items[index]
        return None

    def get_all(self) -> list[str]:
        """Return a copy of every entry, oldest first."""
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))

    def __repr__(self) -> str:
        return f"CircularBuffer(capacity={self.capacity}, items={self.get_all()!r})"