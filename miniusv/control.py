"""
Control module: yaw-rate regulator and differential thrust mixer.
"""

from __future__ import annotations

import math
import threading
from typing import Tuple

import numpy as np

from common.interface import Controller


class YawRateRegulator(Controller):
    """
    PI(D) regulator on a yaw-rate (or heading) error with a clamped integral.
    Accepts pre-computed error; output is not clamped here, the mixer saturates downstream.
    """

    def __init__(self, kp=1.0, ki=0.0, kd=0.0, antiwindup=5.0, rate_limit=math.pi / 4):
        self._lock = threading.Lock()
        self._integral = 0.0
        self._prev_error = None
        self._last_output = 0.0
        self.configure(kp, ki, kd, antiwindup, rate_limit)

    def configure(self, kp, ki, kd, antiwindup, rate_limit) -> None:
        """Update gains and limits; accumulated state is kept."""
        if antiwindup < 0.0 or rate_limit < 0.0:
            raise ValueError("antiwindup and rate_limit must be non-negative")
        with self._lock:
            self.kp = float(kp)
            self.ki = float(ki)
            self.kd = float(kd)
            self.antiwindup = float(antiwindup)
            self.rate_limit = float(rate_limit)
            self._integral = float(np.clip(self._integral, -self.antiwindup, self.antiwindup))

    @property
    def integral(self) -> float:
        with self._lock:
            return self._integral

    @property
    def last_output(self) -> float:
        with self._lock:
            return self._last_output

    def reset(self) -> None:
        """Clear integral and derivative state."""
        with self._lock:
            self._integral = 0.0
            self._prev_error = None
            self._last_output = 0.0

    def limit_rate(self, rate: float) -> float:
        """Saturate a commanded yaw rate to the configured limit."""
        if math.isnan(rate):
            return 0.0
        return float(np.clip(rate, -self.rate_limit, self.rate_limit))

    def step(self, error, dt):
        """
        Advance one tick. dt <= 0 skips integration and returns the proportional term.
        """
        if not math.isfinite(error):
            error = 0.0
        with self._lock:
            p_term = self.kp * error
            if not math.isfinite(dt) or dt <= 0.0:
                self._prev_error = error
                self._last_output = p_term
                return p_term

            self._integral = float(np.clip(self._integral + error * dt, -self.antiwindup, self.antiwindup))
            derivative = 0.0
            if self.kd != 0.0 and self._prev_error is not None:
                derivative = (error - self._prev_error) / dt
            output = p_term + self.ki * self._integral + self.kd * derivative
            if not math.isfinite(output):
                output = p_term if math.isfinite(p_term) else 0.0
            self._prev_error = error
            self._last_output = output
            return output


class ActuatorMixer:
    """Differential drive mixer: common-mode forward thrust, differential yaw correction."""

    def __init__(self, gain: float, limit: float):
        if limit < 0.0:
            raise ValueError("limit must be non-negative")
        self.gain = float(gain)
        self.limit = float(limit)

    def mix(self, forward: float, yaw_correction: float) -> Tuple[float, float]:
        """Return (left, right) hard-clamped to [-limit, limit]. NaN terms count as zero."""
        forward = 0.0 if math.isnan(forward) else forward
        yaw_correction = 0.0 if math.isnan(yaw_correction) else yaw_correction
        with np.errstate(over="ignore", invalid="ignore"):
            base = np.float64(self.gain) * np.float64(forward)
            terms = np.array([base - yaw_correction, base + yaw_correction], dtype=float)
        terms = np.nan_to_num(terms, nan=0.0, posinf=self.limit, neginf=-self.limit)
        left, right = np.clip(terms, -self.limit, self.limit)
        return float(left), float(right)


__all__ = ["YawRateRegulator", "ActuatorMixer"]
