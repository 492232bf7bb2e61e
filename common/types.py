"""
Shared data structures for transport ↔ control core ↔ simulator boundaries.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from common.math import Vector3D, Quaternion


class ReferenceFrame(Enum):
    """Frames a velocity command may be expressed in."""

    UNDEFINED = "undefined"
    LOCAL_ENU = "earth"  # east-north-up, earth fixed
    BODY_FLU = "body"  # forward-left-up, moves with the hull


class YawMode(Enum):
    NONE = "none"
    YAW_ANGLE = "yaw_angle"
    YAW_SPEED = "yaw_speed"


class MotionMode(Enum):
    """Translational / altitude control mode requested by the autonomy stack."""

    UNSET = "unset"
    HOVER = "hover"
    POSITION = "position"
    SPEED = "speed"
    SPEED_IN_A_PLANE = "speed_in_a_plane"
    ATTITUDE = "attitude"
    ACRO = "acro"
    TRAJECTORY = "trajectory"


class HeadingSource(Enum):
    NONE = "none"
    ODOMETRY = "odometry"
    POSE = "pose"
    IMU = "imu"


class PlatformStatus(Enum):
    DISARMED = "disarmed"
    ARMED_MANUAL = "armed_manual"
    ARMED_OFFBOARD = "armed_offboard"


@dataclass(frozen=True)
class ControlMode:
    """Descriptor of the active control mode (motion + yaw submode + frame)."""

    mode: MotionMode = MotionMode.UNSET
    yaw_mode: YawMode = YawMode.NONE
    frame: ReferenceFrame = ReferenceFrame.UNDEFINED


@dataclass(frozen=True)
class VelocityCommand:
    """
    High-level motion setpoint delivered by the autonomy stack:
    - linear: desired velocity (m/s), frame given by `frame`
    - yaw_rate: desired yaw rate (rad/s), used in yaw-speed mode
    - yaw: desired heading (rad, earth frame), used in yaw-angle mode
    - frame: None means "use the active control mode's frame"
    """

    linear: Vector3D = field(default_factory=Vector3D)
    yaw_rate: float = 0.0
    timestamp: float = 0.0
    frame: Optional[ReferenceFrame] = None
    yaw: Optional[float] = None


@dataclass(frozen=True)
class HeadingEstimate:
    """Latest heading observed by any orientation source."""

    yaw: float = 0.0
    received: bool = False
    source: HeadingSource = HeadingSource.NONE
    yaw_rate: float = 0.0
    timestamp: Optional[float] = None


@dataclass(frozen=True)
class PlatformState:
    armed: bool = False
    offboard: bool = False
    control_mode: ControlMode = ControlMode()

    @property
    def status(self) -> PlatformStatus:
        if not self.armed:
            return PlatformStatus.DISARMED
        if self.offboard:
            return PlatformStatus.ARMED_OFFBOARD
        return PlatformStatus.ARMED_MANUAL


@dataclass(frozen=True)
class MotorCommand:
    """Differential thruster command; positions are None on thrust-only hulls."""

    left_thrust: float = 0.0
    right_thrust: float = 0.0
    left_position: Optional[float] = None
    right_position: Optional[float] = None

    @classmethod
    def neutral(cls, with_position: bool = False) -> "MotorCommand":
        if with_position:
            return cls(0.0, 0.0, 0.0, 0.0)
        return cls()

    def is_neutral(self) -> bool:
        return all(v == 0.0 for v in self.values())

    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in self.values())

    def values(self) -> list[float]:
        out = [self.left_thrust, self.right_thrust]
        if self.left_position is not None:
            out.append(self.left_position)
        if self.right_position is not None:
            out.append(self.right_position)
        return out


@dataclass(frozen=True)
class OrientationSample:
    """Orientation reading extracted from any source message."""

    orientation: Quaternion
    source: HeadingSource
    timestamp: Optional[float] = None
    yaw_rate: Optional[float] = None


# -- Inbound message shapes --------------------------------------------------


@dataclass(frozen=True)
class PoseStamped:
    position: Vector3D
    orientation: Quaternion
    timestamp: Optional[float] = None


@dataclass(frozen=True)
class Odometry:
    position: Vector3D
    orientation: Quaternion
    linear_velocity: Vector3D = field(default_factory=Vector3D)
    angular_velocity: Vector3D = field(default_factory=Vector3D)
    timestamp: Optional[float] = None


@dataclass(frozen=True)
class ImuSample:
    """IMU sample with fused orientation and body rates (rad/s)."""

    orientation: Quaternion
    angular_velocity: Vector3D = field(default_factory=Vector3D)
    linear_acceleration: Vector3D = field(default_factory=Vector3D)
    timestamp: Optional[float] = None
