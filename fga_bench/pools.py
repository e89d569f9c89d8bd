"""Thread-safe fixture pools shared by concurrent benchmark invocations."""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Iterable
from typing import Generic, TypeVar

from fga_bench.errors import ConfigurationError, PoolExhaustedError

T = TypeVar("T")


class WorkloadQueue(Generic[T]):
    """
    A pool of pre-generated fixtures handed out one per invocation.

    Every mutation happens under the pool's own lock, so concurrent
    callers never receive the same item and concurrent pushes are never
    lost.  Pools are filled once with :meth:`populate`; an empty pool at
    :meth:`take` time is a sizing error rather than something to wait on.

    Attributes:
        name: Pool name used in error messages.
        sizing_field: The :class:`~fga_bench.config.Sizing` field that
            bounds this pool, quoted when the pool runs dry.
    """

    def __init__(self, name: str, sizing_field: str | None = None):
        self.name = name
        self.sizing_field = sizing_field
        self._items: deque[T] = deque()
        self._lock = threading.Lock()
        self._populated = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __repr__(self) -> str:
        return f"WorkloadQueue({self.name!r}, size={len(self)})"

    def populate(self, items: Iterable[T]) -> None:
        """Fill the pool; a pool may only be populated once."""
        with self._lock:
            if self._populated:
                raise ConfigurationError(f"{self.name} has already been populated.")
            self._items.extend(items)
            self._populated = True

    def push(self, item: T) -> None:
        with self._lock:
            self._items.append(item)

    def pop_or_none(self) -> T | None:
        """Remove and return the oldest item, or ``None`` when empty."""
        with self._lock:
            if not self._items:
                return None
            return self._items.popleft()

    def take(self) -> T:
        """Remove and return the oldest item, raising if the pool is empty."""
        item = self.pop_or_none()
        if item is None:
            raise PoolExhaustedError(self.name, self.sizing_field)
        return item

    def drain(self) -> list[T]:
        """Empty the pool and return everything that was left in it."""
        with self._lock:
            items = list(self._items)
            self._items.clear()
            return items

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
