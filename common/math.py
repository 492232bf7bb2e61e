"""
Small vector / quaternion toolkit shared by the control core, the estimator and the simulator.
Quaternions are stored scalar-first (w, x, y, z).
"""

from __future__ import annotations

import math

import numpy as np


def wrap_angle(angle: float) -> float:
    """Wrap an angle in radians to (-pi, pi]. Non-finite input yields NaN."""
    if not math.isfinite(angle):
        return math.nan
    wrapped = math.remainder(float(angle), 2.0 * math.pi)
    if wrapped == -math.pi:
        return math.pi
    return wrapped


class Vector3D:
    """Thin wrapper over a length-3 numpy array."""

    def __init__(self, x=0.0, y=0.0, z=0.0):
        self.v = np.array([x, y, z], dtype=float)

    @property
    def x(self) -> float:
        return float(self.v[0])

    @property
    def y(self) -> float:
        return float(self.v[1])

    @property
    def z(self) -> float:
        return float(self.v[2])

    def __eq__(self, other) -> bool:
        if not isinstance(other, Vector3D):
            return NotImplemented
        return bool(np.array_equal(self.v, other.v))

    def __repr__(self) -> str:
        return f"Vector3D({self.v[0]}, {self.v[1]}, {self.v[2]})"


class Quaternion:
    """Unit quaternion for orientation, scalar-first."""

    def __init__(self, w=1.0, x=0.0, y=0.0, z=0.0):
        self.q = np.array([w, x, y, z], dtype=float)

    @classmethod
    def from_euler(cls, roll: float, pitch: float, yaw: float) -> "Quaternion":
        """Build from intrinsic roll/pitch/yaw (extrinsic x-y-z) angles in radians."""
        cr, sr = math.cos(roll / 2.0), math.sin(roll / 2.0)
        cp, sp = math.cos(pitch / 2.0), math.sin(pitch / 2.0)
        cy, sy = math.cos(yaw / 2.0), math.sin(yaw / 2.0)
        return cls(
            cr * cp * cy + sr * sp * sy,
            sr * cp * cy - cr * sp * sy,
            cr * sp * cy + sr * cp * sy,
            cr * cp * sy - sr * sp * cy,
        )

    @classmethod
    def from_yaw(cls, yaw: float) -> "Quaternion":
        return cls(math.cos(yaw / 2.0), 0.0, 0.0, math.sin(yaw / 2.0))

    def norm(self) -> float:
        return float(np.linalg.norm(self.q))

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.q)))

    def rotate(self, vec: Vector3D) -> Vector3D:
        """Rotate a vector from the body frame into the reference frame."""
        return Vector3D(*(self.as_rotation_matrix() @ vec.v))

    def as_rotation_matrix(self) -> np.ndarray:
        w, x, y, z = self.q
        return np.array([
            [1 - 2 * (y * y + z * z), 2 * (x * y - w * z), 2 * (x * z + w * y)],
            [2 * (x * y + w * z), 1 - 2 * (x * x + z * z), 2 * (y * z - w * x)],
            [2 * (x * z - w * y), 2 * (y * z + w * x), 1 - 2 * (x * x + y * y)],
        ])

    def yaw(self) -> float:
        """Heading about the vertical axis, roll and pitch discarded."""
        w, x, y, z = self.q
        return math.atan2(2.0 * (w * z + x * y), 1.0 - 2.0 * (y * y + z * z))

    def __repr__(self) -> str:
        w, x, y, z = self.q
        return f"Quaternion({w}, {x}, {y}, {z})"


__all__ = ["Vector3D", "Quaternion", "wrap_angle"]
