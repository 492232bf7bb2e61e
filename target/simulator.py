"""
Simulated hardware target: a planar differential-thrust boat that consumes motor commands
and reports odometry back, standing in for the simulator bridge.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, List

import numpy as np

from common.interface import CommandPublisher
from common.logger import get_logger
from common.math import Quaternion, Vector3D, wrap_angle
from common.types import MotorCommand, Odometry

logger = get_logger("simulator")


@dataclass
class HullParams:
    mass: float = 180.0  # kg
    yaw_inertia: float = 100.0  # kg m^2
    half_beam: float = 1.0  # thruster lever arm (m)
    surge_damping: float = 50.0  # N / (m/s)
    yaw_damping: float = 40.0  # N m / (rad/s)


class SimWorld:
    """3-DOF kinematics (surge, yaw) with linear damping, explicit Euler integration."""

    def __init__(self, dt: float, hull: HullParams | None = None, yaw: float = 0.0):
        if dt <= 0.0:
            raise ValueError("dt must be positive")
        self.dt = dt
        self.hull = hull or HullParams()
        self.time = 0.0
        self.position = np.zeros(2)
        self.yaw = wrap_angle(yaw)
        self.surge = 0.0
        self.yaw_rate = 0.0

    def step(self, left: float, right: float) -> None:
        h = self.hull
        force = left + right
        torque = (right - left) * h.half_beam
        self.surge += (force - h.surge_damping * self.surge) / h.mass * self.dt
        self.yaw_rate += (torque - h.yaw_damping * self.yaw_rate) / h.yaw_inertia * self.dt
        self.yaw = wrap_angle(self.yaw + self.yaw_rate * self.dt)
        self.position += self.surge * np.array([math.cos(self.yaw), math.sin(self.yaw)]) * self.dt
        self.time += self.dt

    def odometry(self) -> Odometry:
        velocity = Vector3D(self.surge * math.cos(self.yaw), self.surge * math.sin(self.yaw), 0.0)
        return Odometry(
            position=Vector3D(self.position[0], self.position[1], 0.0),
            orientation=Quaternion.from_yaw(self.yaw),
            linear_velocity=velocity,
            angular_velocity=Vector3D(0.0, 0.0, self.yaw_rate),
            timestamp=self.time,
        )


class SimBoard(CommandPublisher):
    """Publisher backed by the simulated hull; every write advances physics one tick."""

    def __init__(self, dt: float = 0.01, hull: HullParams | None = None, yaw: float = 0.0):
        self.dt = dt
        self._world = SimWorld(dt, hull=hull, yaw=yaw)
        self._odometry_subscribers: List[Callable[[Odometry], object]] = []
        self.last_command = MotorCommand.neutral()

    def subscribe_odometry(self, callback: Callable[[Odometry], object]) -> None:
        self._odometry_subscribers.append(callback)
        callback(self._world.odometry())

    def write(self, command: MotorCommand) -> None:
        self.last_command = command
        self._world.step(command.left_thrust, command.right_thrust)
        odom = self._world.odometry()
        for callback in self._odometry_subscribers:
            callback(odom)

    def close(self) -> None:
        w = self._world
        logger.info(f"Simulation stopped at t={w.time:.2f}s pos=({w.position[0]:.2f}, {w.position[1]:.2f}) "
                    f"yaw={math.degrees(w.yaw):.1f}deg")

    @property
    def world(self) -> SimWorld:
        return self._world


__all__ = ["SimBoard", "SimWorld", "HullParams"]
