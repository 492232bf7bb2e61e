"""
Command sources for local runs.
These stand in for the autonomy stack and stream VelocityCommand to the pipeline.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional, Sequence, Tuple

from common.interface import CommandSource
from common.math import Vector3D
from common.types import VelocityCommand


class ScriptedCommandSource(CommandSource):
    """
    Replays a timeline of (start_time_s, VelocityCommand) segments.
    Each read advances the script clock by dt and re-publishes the active segment,
    the way a streaming publisher would; None before the first segment starts.
    """

    def __init__(self, segments: Sequence[Tuple[float, VelocityCommand]], loop: bool = False):
        if not segments:
            raise ValueError("segments must not be empty")
        self._segments = sorted(segments, key=lambda seg: seg[0])
        self._loop = bool(loop)
        self._elapsed = 0.0
        self._duration = self._segments[-1][0]

    @property
    def elapsed(self) -> float:
        return self._elapsed

    def read(self, dt: float) -> Optional[VelocityCommand]:
        self._elapsed += max(float(dt), 0.0)
        t = self._elapsed
        if self._loop and self._duration > 0.0:
            t %= self._duration
        active = None
        for start, command in self._segments:
            if start > t:
                break
            active = command
        if active is None:
            return None
        return replace(active, timestamp=self._elapsed)

    def close(self) -> None:
        return None


def default_script() -> ScriptedCommandSource:
    """Forward, turn left, forward, turn right: a short demo lap."""
    forward = Vector3D(1.0, 0.0, 0.0)
    return ScriptedCommandSource(
        [
            (0.0, VelocityCommand(linear=forward, yaw_rate=0.0)),
            (10.0, VelocityCommand(linear=forward, yaw_rate=0.3)),
            (15.0, VelocityCommand(linear=forward, yaw_rate=0.0)),
            (25.0, VelocityCommand(linear=forward, yaw_rate=-0.3)),
            (30.0, VelocityCommand(linear=forward, yaw_rate=0.0)),
        ],
        loop=True,
    )
