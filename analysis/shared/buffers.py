"""
Bounded sliding-window histories.
"""

from collections import deque
from typing import Deque, Generic, Iterable, Tuple, TypeVar

T = TypeVar("T")


class BoundedHistory(Generic[T]):
    """
    Append-only window that keeps the most recent ``capacity`` items.

    Items are kept oldest-first; overflow evicts from the front.
    Readers get tuples from ``snapshot()`` so later appends never
    reach a computation already in progress.
    """

    def __init__(self, capacity: int, items: Iterable[T] = ()):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._items: Deque[T] = deque(items, maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, item: T) -> None:
        """Add an item, evicting the oldest on overflow."""
        self._items.append(item)

    def extend(self, items: Iterable[T]) -> None:
        """Add items in order."""
        self._items.extend(items)

    def replace(self, items: Iterable[T]) -> None:
        """Swap the whole content, keeping the bound."""
        self._items = deque(items, maxlen=self._capacity)

    def snapshot(self) -> Tuple[T, ...]:
        """Immutable copy, oldest first."""
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(tuple(self._items))
