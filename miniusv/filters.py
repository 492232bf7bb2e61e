"""Signal filters used by the control tick."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Optional

__all__ = ["Filter", "LowPassFilter"]


class Filter(ABC):
    """Abstract base class for scalar filter implementations."""

    name: str = "filter"

    @abstractmethod
    def update(self, value: float) -> float:
        """Advance the filter with the latest sample and return the filtered value."""

    @abstractmethod
    def reset(self) -> None:
        """Forget history."""


class LowPassFilter(Filter):
    """First-order exponential smoother: y = alpha * x + (1 - alpha) * y_prev."""

    name = "low_pass"

    def __init__(self, *, alpha: float = 0.1) -> None:
        self.alpha = float(alpha)
        self._value: Optional[float] = None

    @property
    def value(self) -> Optional[float]:
        return self._value

    def reset(self) -> None:
        self._value = None

    def update(self, value: float) -> float:
        if not math.isfinite(value):
            return self._value if self._value is not None else 0.0
        if self._value is None:
            # First sample seeds the state
            self._value = float(value)
        else:
            self._value = self.alpha * float(value) + (1.0 - self.alpha) * self._value
        return self._value
