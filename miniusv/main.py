#!/usr/bin/env python3
"""
Entry point for the surface platform: load parameters, set up the target, and run the control loop.
"""
from __future__ import annotations

import os
import threading
from typing import Optional

from common.interface import CommandPublisher, CommandSource
from common.logger import get_logger
from common.math import wrap_angle
from common.realtime import RateKeeper, monotonic_time
from common.shared import LatestValue
from common.types import (
    ControlMode,
    MotionMode,
    MotorCommand,
    PlatformState,
    PlatformStatus,
    ReferenceFrame,
    VelocityCommand,
    YawMode,
)
from miniusv.control import ActuatorMixer, YawRateRegulator
from miniusv.estimate import HeadingEstimator
from miniusv.filters import LowPassFilter
from miniusv.frames import to_body_frame
from miniusv.input import default_script
from miniusv.params import Parameters
from miniusv.platform import PlatformStateMachine, is_supported

logger = get_logger("pipeline")

DEFAULT_RATE_HZ = 100.0  # 10 ms tick


class CommandPipeline:
    """Controls-style loop: update() -> state_control() -> publish() -> run()."""

    def __init__(
        self,
        publisher: CommandPublisher,
        params: Parameters | None = None,
        rate_hz: float = DEFAULT_RATE_HZ,
        command_source: CommandSource | None = None,
        clock=monotonic_time,
    ):
        if rate_hz <= 0.0:
            raise ValueError("rate_hz must be positive")
        self.rate_hz = float(rate_hz)
        self.dt = 1.0 / self.rate_hz
        self.publisher = publisher
        self.params = params or Parameters()
        self.command_source = command_source
        self.clock = clock

        self.estimator = HeadingEstimator(clock=clock)
        self.platform = PlatformStateMachine()
        self.regulator = YawRateRegulator()
        self.rate_filter = LowPassFilter(alpha=self.params["alpha"])
        self.thrust_mixer = ActuatorMixer(self.params["GainThrust"], self.params["maximum_thrust"])
        self.position_mixer: Optional[ActuatorMixer] = None
        self._velocity: LatestValue[VelocityCommand] = LatestValue(clock=clock)
        self._filter_lock = threading.Lock()
        self._last_tick: Optional[float] = None
        self._cfg = self.params.snapshot()

        self.platform.add_listener(self._on_platform_transition)
        self.update_gains()
        logger.info(f"Pipeline initialized at {self.rate_hz:.0f} Hz ({type(publisher).__name__})")

    # -- Inbound -------------------------------------------------------------

    def on_velocity_command(self, command: VelocityCommand) -> None:
        """Latest command wins; there is no queue."""
        self._velocity.set(command)

    def set_arming_state(self, armed: bool) -> bool:
        return self.platform.set_arming_state(armed)

    def set_offboard_control(self, offboard: bool) -> bool:
        return self.platform.set_offboard_control(offboard)

    def set_platform_control_mode(self, mode: ControlMode) -> bool:
        return self.platform.set_platform_control_mode(mode)

    def _on_platform_transition(self, old: PlatformState, new: PlatformState) -> None:
        was_offboard = old.status is PlatformStatus.ARMED_OFFBOARD
        is_offboard = new.status is PlatformStatus.ARMED_OFFBOARD
        # Regulator state is cleared on both edges of ArmedOffboard
        if was_offboard != is_offboard or old.control_mode != new.control_mode:
            self.reset_controller()

    def reset_controller(self) -> None:
        self.regulator.reset()
        with self._filter_lock:
            self.rate_filter.reset()
        logger.debug("Yaw regulator reset")

    # -- Pipeline stages -----------------------------------------------------

    def update_gains(self) -> None:
        """Pull the current parameter set; called once per tick."""
        cfg = self.params.snapshot()
        self._cfg = cfg
        self.regulator.configure(
            kp=cfg["yaw_speed_controller.Kp"],
            ki=cfg["yaw_speed_controller.Ki"],
            kd=cfg["yaw_speed_controller.Kd"],
            antiwindup=cfg["antiwindup_cte"],
            rate_limit=cfg["yaw_rate_limit"],
        )
        with self._filter_lock:
            self.rate_filter.alpha = cfg["alpha"]
        self.thrust_mixer = ActuatorMixer(cfg["GainThrust"], cfg["maximum_thrust"])
        if cfg["maximum_position"] > 0.0:
            self.position_mixer = ActuatorMixer(cfg["GainPosition"], cfg["maximum_position"])
        else:
            self.position_mixer = None

    def update(self) -> float:
        """Measure dt, refresh parameters and poll the optional command source."""
        now = self.clock()
        dt = self.dt if self._last_tick is None else now - self._last_tick
        self._last_tick = now
        self.update_gains()
        self._read_command_source(dt)
        return dt

    def neutral(self) -> MotorCommand:
        return MotorCommand.neutral(with_position=self.position_mixer is not None)

    def state_control(self, dt: float) -> MotorCommand:
        """Gate on platform state and inputs, then regulate yaw and mix thrust."""
        state = self.platform.state
        if state.status is not PlatformStatus.ARMED_OFFBOARD or not is_supported(state.control_mode):
            return self.neutral()

        command, received_at = self._velocity.get_with_stamp()
        if command is None:
            return self.neutral()
        timeout = self._cfg["command_timeout"]
        if timeout > 0.0 and received_at is not None and self.clock() - received_at > timeout:
            return self.neutral()

        heading = self.estimator.current()
        if not heading.received:
            return self.neutral()

        mode = state.control_mode
        frame = command.frame if command.frame is not None else mode.frame
        linear = command.linear
        if frame is ReferenceFrame.LOCAL_ENU:
            linear = to_body_frame(heading.yaw, linear)

        if mode.yaw_mode is YawMode.YAW_ANGLE:
            target = heading.yaw if command.yaw is None else command.yaw
            heading_error = wrap_angle(target - heading.yaw)
            rate_ref = self.regulator.limit_rate(self._cfg["K_yaw_rate"] * heading_error)
        else:
            rate_ref = self.regulator.limit_rate(command.yaw_rate)

        with self._filter_lock:
            measured_rate = self.rate_filter.update(heading.yaw_rate)
        yaw_correction = self._cfg["K_yaw_force"] * self.regulator.step(rate_ref - measured_rate, dt)

        left, right = self.thrust_mixer.mix(linear.x, yaw_correction)
        motor = MotorCommand(left_thrust=left, right_thrust=right)
        if self.position_mixer is not None:
            left_pos, right_pos = self.position_mixer.mix(linear.x, yaw_correction)
            motor = MotorCommand(left, right, left_pos, right_pos)

        if not motor.is_finite():
            logger.warning(f"Non-finite actuator command {motor}, sending neutral")
            return self.neutral()
        return motor

    def publish(self, command: MotorCommand) -> None:
        """Hand the command to the publisher; sent every tick, neutral included."""
        self.publisher.write(command)

    def tick(self) -> MotorCommand:
        dt = self.update()
        command = self.state_control(dt)
        self.publish(command)
        return command

    # -- Helpers -------------------------------------------------------------

    def _read_command_source(self, dt: float) -> None:
        if self.command_source is None:
            return
        try:
            command = self.command_source.read(dt)
        except Exception as exc:
            logger.warning(f"Command source read failed: {exc}")
            return
        if command is not None:
            self.on_velocity_command(command)

    def run(self, max_ticks: int | None = None, rate_keeper: RateKeeper | None = None):
        logger.info("Starting control loop")
        rk = rate_keeper or RateKeeper(rate_hz=self.rate_hz, lag_threshold=None)
        ticks = 0
        while max_ticks is None or ticks < max_ticks:
            self.tick()
            ticks += 1
            rk.keep_time()
        return ticks

    def close(self) -> None:
        if self.command_source is not None:
            self.command_source.close()
        self.publisher.close()


def init_target(target_name: str | None, dt: float):
    """Instantiate the publisher for the chosen target."""
    target = (target_name or "sim").lower()
    if target == "sim":
        from target.simulator import SimBoard

        return SimBoard(dt=dt)
    raise NotImplementedError(f"Unsupported target '{target}'")


def load_parameters() -> Parameters:
    path = os.environ.get("MINIUSV_PARAMS")
    if path:
        logger.info(f"Loading parameters from {path}")
        return Parameters.load(path)
    return Parameters()


def main():
    target_env = os.environ.get("TARGET")
    rate_hz = float(os.environ.get("MINIUSV_RATE_HZ", DEFAULT_RATE_HZ))
    board = init_target(target_env, 1.0 / rate_hz)
    pipeline = CommandPipeline(board, params=load_parameters(), rate_hz=rate_hz,
                               command_source=default_script())
    if hasattr(board, "subscribe_odometry"):
        board.subscribe_odometry(pipeline.estimator.on_odometry)

    pipeline.set_arming_state(True)
    pipeline.set_platform_control_mode(ControlMode(
        mode=MotionMode.SPEED, yaw_mode=YawMode.YAW_SPEED, frame=ReferenceFrame.BODY_FLU))
    pipeline.set_offboard_control(True)
    try:
        pipeline.run()
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    finally:
        pipeline.set_arming_state(False)
        pipeline.publish(pipeline.neutral())
        pipeline.close()


if __name__ == "__main__":
    main()
