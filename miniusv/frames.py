"""
Earth (ENU) <-> body (FLU) conversions for a planar hull.
Only yaw is applied; roll and pitch are assumed negligible.
"""

from __future__ import annotations

from common.math import Quaternion, Vector3D


def to_body_frame(yaw: float, vec_earth: Vector3D) -> Vector3D:
    """Rotate an earth-frame vector by -yaw; z passes through."""
    return Quaternion.from_yaw(-yaw).rotate(vec_earth)


def to_earth_frame(yaw: float, vec_body: Vector3D) -> Vector3D:
    """Inverse of to_body_frame."""
    return Quaternion.from_yaw(yaw).rotate(vec_body)


__all__ = ["to_body_frame", "to_earth_frame"]
