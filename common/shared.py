"""Thread-safe last-value-wins slots shared between sensor callbacks and the control tick."""

from __future__ import annotations

import threading
from typing import Generic, Optional, Tuple, TypeVar

from common.realtime import monotonic_time

T = TypeVar("T")


class LatestValue(Generic[T]):
    """
    One logical field guarded by its own lock.
    Writers overwrite; readers get the most recent value and when it arrived.
    """

    def __init__(self, clock=monotonic_time) -> None:
        self._lock = threading.Lock()
        self._clock = clock
        self._value: Optional[T] = None
        self._stamp: Optional[float] = None

    def set(self, value: T) -> None:
        stamp = self._clock()
        with self._lock:
            self._value = value
            self._stamp = stamp

    def get(self) -> Optional[T]:
        with self._lock:
            return self._value

    def get_with_stamp(self) -> Tuple[Optional[T], Optional[float]]:
        with self._lock:
            return self._value, self._stamp

    def clear(self) -> None:
        with self._lock:
            self._value = None
            self._stamp = None


__all__ = ["LatestValue"]
