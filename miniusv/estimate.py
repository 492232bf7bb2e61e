"""Heading estimation: latest-writer-wins yaw from odometry, pose and IMU sources."""

from __future__ import annotations

import math
import threading
from typing import Optional

from common.interface import Estimator, OrientationSource
from common.logger import get_logger
from common.math import Quaternion, wrap_angle
from common.realtime import monotonic_time
from common.types import (
    HeadingEstimate,
    HeadingSource,
    ImuSample,
    Odometry,
    OrientationSample,
    PoseStamped,
)

logger = get_logger("estimate")

# Allowed deviation of |q| from 1 before an orientation is considered malformed
UNIT_NORM_TOLERANCE = 1e-3


class OdometryAdapter(OrientationSource):
    def extract(self, message: Odometry) -> Optional[OrientationSample]:
        orientation = getattr(message, "orientation", None)
        if orientation is None:
            return None
        angular = getattr(message, "angular_velocity", None)
        yaw_rate = angular.z if angular is not None else None
        return OrientationSample(
            orientation=orientation,
            source=HeadingSource.ODOMETRY,
            timestamp=getattr(message, "timestamp", None),
            yaw_rate=yaw_rate,
        )


class PoseAdapter(OrientationSource):
    """Poses carry no rate; the estimator differentiates successive yaws instead."""

    def extract(self, message: PoseStamped) -> Optional[OrientationSample]:
        orientation = getattr(message, "orientation", None)
        if orientation is None:
            return None
        return OrientationSample(
            orientation=orientation,
            source=HeadingSource.POSE,
            timestamp=getattr(message, "timestamp", None),
        )


class ImuAdapter(OrientationSource):
    def extract(self, message: ImuSample) -> Optional[OrientationSample]:
        orientation = getattr(message, "orientation", None)
        if orientation is None:
            return None
        angular = getattr(message, "angular_velocity", None)
        return OrientationSample(
            orientation=orientation,
            source=HeadingSource.IMU,
            timestamp=getattr(message, "timestamp", None),
            yaw_rate=angular.z if angular is not None else None,
        )


def is_valid_orientation(q) -> bool:
    if not isinstance(q, Quaternion) or not q.is_finite():
        return False
    return abs(q.norm() - 1.0) <= UNIT_NORM_TOLERANCE


class HeadingEstimator(Estimator):
    """
    Keeps the single most recent yaw reported by any source.
    No fusion and no timestamp arbitration: whichever source was delivered last wins.
    Samples without a timestamp are stamped with `clock` on receipt.
    """

    def __init__(self, clock=monotonic_time):
        self.clock = clock
        self._lock = threading.Lock()
        self._estimate = HeadingEstimate()
        self._odometry = OdometryAdapter()
        self._pose = PoseAdapter()
        self._imu = ImuAdapter()

    # -- Source callbacks ----------------------------------------------------

    def on_odometry(self, message) -> bool:
        return self._ingest(self._odometry, message)

    def on_pose(self, message) -> bool:
        return self._ingest(self._pose, message)

    def on_imu(self, message) -> bool:
        return self._ingest(self._imu, message)

    def _ingest(self, adapter: OrientationSource, message) -> bool:
        try:
            sample = adapter.extract(message)
        except (AttributeError, TypeError, ValueError) as exc:
            logger.warning(f"Dropping unreadable {type(adapter).__name__} message: {exc}")
            return False
        if sample is None:
            logger.warning(f"Dropping message without orientation from {type(adapter).__name__}")
            return False
        return self.update(sample)

    # -- Estimator -----------------------------------------------------------

    def update(self, sample: OrientationSample) -> bool:
        if not is_valid_orientation(sample.orientation):
            logger.warning(f"Dropping malformed {sample.source.value} orientation {sample.orientation!r}")
            return False
        yaw = wrap_angle(sample.orientation.yaw())
        timestamp = sample.timestamp if sample.timestamp is not None else self.clock()

        with self._lock:
            prev = self._estimate
            yaw_rate = sample.yaw_rate
            if yaw_rate is None or not math.isfinite(yaw_rate):
                yaw_rate = self._differentiate(prev, yaw, timestamp)
            self._estimate = HeadingEstimate(
                yaw=yaw,
                received=True,
                source=sample.source,
                yaw_rate=float(yaw_rate),
                timestamp=timestamp,
            )
        return True

    @staticmethod
    def _differentiate(prev: HeadingEstimate, yaw: float, timestamp: float) -> float:
        if not prev.received or prev.timestamp is None:
            return 0.0
        dt = timestamp - prev.timestamp
        if dt <= 0.0:
            return prev.yaw_rate
        return wrap_angle(yaw - prev.yaw) / dt

    def current(self) -> HeadingEstimate:
        with self._lock:
            return self._estimate

    def reset(self) -> None:
        with self._lock:
            self._estimate = HeadingEstimate()


__all__ = [
    "HeadingEstimator",
    "OdometryAdapter",
    "PoseAdapter",
    "ImuAdapter",
    "UNIT_NORM_TOLERANCE",
]
