"""
Runtime-reconfigurable controller parameters.
Every value is a float; each set() is applied atomically and is picked up on the next tick.
"""

from __future__ import annotations

import json
import math
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping

from common.logger import get_logger

logger = get_logger("params")

DEFAULT_PARAMETERS: Dict[str, float] = {
    "yaw_rate_limit": math.pi / 4,
    "K_yaw_rate": 4.0,
    "K_yaw_force": 15.0,
    "GainThrust": 50.0,
    "maximum_thrust": 2000.0,
    "alpha": 0.1,
    "antiwindup_cte": 5.0,
    "yaw_speed_controller.Kp": 1.0,
    "yaw_speed_controller.Ki": 0.0,
    "yaw_speed_controller.Kd": 0.0,
    "GainPosition": 0.0,
    "maximum_position": 0.0,  # 0 disables the steering position channel
    "command_timeout": 0.0,  # seconds, 0 disables the staleness check
}

_NON_NEGATIVE = {
    "yaw_rate_limit",
    "maximum_thrust",
    "antiwindup_cte",
    "maximum_position",
    "command_timeout",
}


@dataclass(frozen=True)
class SetParametersResult:
    successful: bool
    reason: str = ""


def validate(name: str, value) -> SetParametersResult:
    if name not in DEFAULT_PARAMETERS:
        return SetParametersResult(False, f"unknown parameter '{name}'")
    if isinstance(value, bool):
        return SetParametersResult(False, f"'{name}' must be a number")
    try:
        value = float(value)
    except (TypeError, ValueError):
        return SetParametersResult(False, f"'{name}' must be a number")
    if not math.isfinite(value):
        return SetParametersResult(False, f"'{name}' must be finite")
    if name in _NON_NEGATIVE and value < 0.0:
        return SetParametersResult(False, f"'{name}' must be non-negative")
    if name == "alpha" and not 0.0 <= value <= 1.0:
        return SetParametersResult(False, "'alpha' must be within [0, 1]")
    return SetParametersResult(True)


class Parameters:
    """Named float parameters with defaults, validated on every write."""

    def __init__(self, overrides: Mapping[str, float] | None = None):
        self._lock = threading.Lock()
        self._values: Dict[str, float] = dict(DEFAULT_PARAMETERS)
        if overrides:
            result = self.update(overrides)
            if not result.successful:
                raise ValueError(result.reason)

    @classmethod
    def load(cls, path) -> "Parameters":
        """Build from a JSON object of overrides."""
        data = json.loads(Path(path).read_text())
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a JSON object of parameters")
        return cls(data)

    def get(self, name: str) -> float:
        with self._lock:
            return self._values[name]

    def __getitem__(self, name: str) -> float:
        return self.get(name)

    def snapshot(self) -> Dict[str, float]:
        with self._lock:
            return dict(self._values)

    def set(self, name: str, value) -> SetParametersResult:
        result = validate(name, value)
        if not result.successful:
            logger.warning(f"Rejected parameter update: {result.reason}")
            return result
        with self._lock:
            self._values[name] = float(value)
        logger.info(f"Parameter {name} = {float(value)}")
        return result

    def update(self, values: Mapping[str, float]) -> SetParametersResult:
        """Apply several parameters all-or-nothing: one invalid entry rejects the batch."""
        for name, value in values.items():
            result = validate(name, value)
            if not result.successful:
                logger.warning(f"Rejected parameter update: {result.reason}")
                return result
        with self._lock:
            self._values.update({name: float(value) for name, value in values.items()})
        for name, value in values.items():
            logger.info(f"Parameter {name} = {float(value)}")
        return SetParametersResult(True)


__all__ = ["Parameters", "SetParametersResult", "DEFAULT_PARAMETERS", "validate"]
