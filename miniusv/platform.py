"""
Arming / offboard / control-mode state machine for the surface platform.
Requests are answered synchronously with True (accepted) or False (rejected).
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import replace
from typing import Callable, FrozenSet, List, Optional

from common.logger import get_logger
from common.types import (
    ControlMode,
    MotionMode,
    PlatformState,
    PlatformStatus,
    ReferenceFrame,
    YawMode,
)

logger = get_logger("platform")

TransitionListener = Callable[[PlatformState, PlatformState], None]

# Velocity control in earth or body frame, regulating either yaw rate or heading
SUPPORTED_CONTROL_MODES: FrozenSet[ControlMode] = frozenset(
    ControlMode(mode=mode, yaw_mode=yaw_mode, frame=frame)
    for mode, yaw_mode, frame in itertools.product(
        (MotionMode.SPEED, MotionMode.SPEED_IN_A_PLANE),
        (YawMode.YAW_SPEED, YawMode.YAW_ANGLE),
        (ReferenceFrame.LOCAL_ENU, ReferenceFrame.BODY_FLU),
    )
)


def is_supported(mode: ControlMode) -> bool:
    return mode in SUPPORTED_CONTROL_MODES


class PlatformStateMachine:
    """Disarmed -> ArmedManual <-> ArmedOffboard, plus the active control mode."""

    def __init__(self):
        self._lock = threading.Lock()
        self._state = PlatformState()
        self._listeners: List[TransitionListener] = []

    def add_listener(self, listener: TransitionListener) -> None:
        """Register a callback invoked as listener(old, new) after every state change."""
        self._listeners.append(listener)

    @property
    def state(self) -> PlatformState:
        with self._lock:
            return self._state

    @property
    def status(self) -> PlatformStatus:
        return self.state.status

    def ready_for_offboard(self) -> bool:
        state = self.state
        return state.status is PlatformStatus.ARMED_OFFBOARD and is_supported(state.control_mode)

    # -- Requests ------------------------------------------------------------

    def set_arming_state(self, armed: bool) -> bool:
        armed = bool(armed)
        if armed:
            return self._transition(lambda s: replace(s, armed=True))
        return self._transition(lambda s: replace(s, armed=False, offboard=False))

    def set_offboard_control(self, offboard: bool) -> bool:
        offboard = bool(offboard)

        def change(s: PlatformState):
            if offboard and not s.armed:
                return None
            return replace(s, offboard=offboard)

        if not self._transition(change):
            logger.warning("Rejected offboard request: platform is disarmed")
            return False
        return True

    def set_platform_control_mode(self, mode: ControlMode) -> bool:
        if not isinstance(mode, ControlMode) or not is_supported(mode):
            logger.warning(f"Rejected unsupported control mode {mode}")
            return False
        return self._transition(lambda s: replace(s, control_mode=mode))

    def _transition(self, change: Callable[[PlatformState], Optional[PlatformState]]) -> bool:
        """Apply `change` under the lock; a None result rejects the request."""
        with self._lock:
            old = self._state
            new = change(old)
            if new is None:
                return False
            self._state = new
        if new != old:
            logger.info(f"Platform {old.status.value} -> {new.status.value} (mode {new.control_mode.mode.value}/"
                        f"{new.control_mode.yaw_mode.value}/{new.control_mode.frame.value})")
            for listener in list(self._listeners):
                listener(old, new)
        return True


__all__ = ["PlatformStateMachine", "SUPPORTED_CONTROL_MODES", "is_supported"]
