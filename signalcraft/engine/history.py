"""Rolling price history."""

from __future__ import annotations

from collections import deque
from typing import Deque, Iterable, List, Optional


class HistoryBuffer:
    """Fixed-capacity FIFO of recent prices, oldest first."""

    def __init__(self, capacity: int = 100, values: Optional[Iterable[float]] = None) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._values: Deque[float] = deque(maxlen=capacity)
        if values is not None:
            for value in values:
                self.push(value)

    def push(self, price: float) -> None:
        self._values.append(float(price))

    def snapshot(self) -> List[float]:
        return list(self._values)

    def last(self) -> float | None:
        return self._values[-1] if self._values else None

    def __len__(self) -> int:
        return len(self._values)


__all__ = ["HistoryBuffer"]
