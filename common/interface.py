"""
Interface definitions for orientation sources, command sources, publishers, controllers and estimators.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from common.types import HeadingEstimate, MotorCommand, OrientationSample, VelocityCommand


class OrientationSource(ABC):
    """Adapter that turns a concrete sensor message into an orientation sample."""

    @abstractmethod
    def extract(self, message: Any) -> Optional[OrientationSample]:
        """Return the orientation carried by `message`, or None if it has none."""


class CommandSource(ABC):
    """Polled producer of velocity commands."""

    @abstractmethod
    def read(self, dt: float) -> Optional[VelocityCommand]:
        """Return a new command, or None when nothing new is available."""

    def close(self) -> None:
        return None


class CommandPublisher(ABC):
    """Sink for actuator commands (transport, simulator, hardware)."""

    @abstractmethod
    def write(self, command: MotorCommand) -> None:
        """Send a command to the actuators."""

    def close(self) -> None:
        """Optional cleanup hook."""
        return None


class Controller(ABC):
    """Abstract base for control algorithms."""

    @abstractmethod
    def step(self, error: float, dt: float) -> float:
        """Compute a control output given an error and timestep."""

    @abstractmethod
    def reset(self) -> None:
        """Clear accumulated state."""


class Estimator(ABC):
    """Abstract base for heading estimators."""

    @abstractmethod
    def update(self, sample: OrientationSample) -> bool:
        """Fold in an orientation sample; return False if it was rejected."""

    @abstractmethod
    def current(self) -> HeadingEstimate:
        """Return the latest estimate."""
