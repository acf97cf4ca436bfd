from __future__ import annotations

from collections import deque
from itertools import islice
from typing import Iterable, Tuple

from .errors import ConfigError


class SignalQueue:
    """Fixed-length FIFO of signal levels, oldest at the front.

    Every push evicts the oldest entry, so ``len(queue)`` always equals the
    length given at construction.
    """

    __slots__ = ("_values",)

    def __init__(self, length: int, values: Iterable[float] | None = None) -> None:
        if length <= 0:
            raise ConfigError("queue length", "must be positive")
        self._values: deque[float] = deque(maxlen=length)
        if values is None:
            self._values.extend(0.0 for _ in range(length))
        else:
            self._values.extend(float(v) for v in values)
            if len(self._values) != length:
                raise ValueError(f"expected {length} initial values, got {len(self._values)}")

    @classmethod
    def zeros(cls, length: int) -> "SignalQueue":
        return cls(length)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"SignalQueue({list(self._values)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SignalQueue):
            return NotImplemented
        return self._values == other._values

    @property
    def capacity(self) -> int:
        return self._values.maxlen or 0

    def push(self, value: float) -> None:
        self._values.append(float(value))

    def pushed(self, value: float) -> "SignalQueue":
        """Return a copy with ``value`` pushed; this queue is left untouched."""
        copy = SignalQueue.__new__(SignalQueue)
        copy._values = deque(self._values, maxlen=self._values.maxlen)
        copy._values.append(float(value))
        return copy

    def latest(self) -> float:
        return self._values[-1]

    def recent(self, count: int) -> Tuple[float, ...]:
        """The ``count`` newest entries, oldest first."""
        if count <= 0:
            return ()
        count = min(count, len(self._values))
        return tuple(islice(self._values, len(self._values) - count, None))

    def mean_recent(self, count: int) -> float:
        window = self.recent(count)
        if not window:
            raise ValueError("averaging window must be positive")
        return sum(window) / len(window)
