"""Ideal in-process robot models for running the followers without hardware.

The simulated bases track commanded power exactly (power × max wheel
velocity) and integrate the pose with exact arcs, so any tracking error in
a run comes from the follower, not from the model. Poses use the package
conventions: field +y is compass north, headings are compass (clockwise).

Typical use:

    clock = SimulationClock()
    drive = SimulatedTankDrive()
    follower = TrajectoryFollower(path, drive, clock=clock)
    run_simulation(follower, drive, clock)
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from .config import (
    MAX_WHEEL_VELOCITY,
    ODOMETRY_TICKS_TO_INCHES,
    ODOMETRY_WHEEL_OFFSETS,
    SIM_DT,
    SIM_MAX_TIME,
    SIM_TICKS_PER_REVOLUTION,
    SIM_WHEEL_DIAMETER,
    SIM_WHEELBASE,
)
from .data_collector import DataCollector
from .geometry import Angle, AngleOrientation, AngleUnit, Location

logger = logging.getLogger(__name__)

# (dx, dy, rotation): robot-frame displacement at the start of a step and the
# clockwise rotation over it, in radians
StepListener = Callable[[float, float, float], None]


class SimulationClock:
    """Manually advanced clock; pass it wherever a ``clock`` callable is taken."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, dt: float) -> None:
        self.now += dt


def _clamp_power(power: float) -> float:
    return max(-1.0, min(1.0, power))


class _SimulatedBase:
    """Rigid body driven by robot-frame twists."""

    def __init__(self, wheelbase: float, max_wheel_velocity: float, pose: Optional[Location]):
        if not wheelbase > 0:
            raise ValueError(f"wheelbase must be positive, got {wheelbase}")
        if not max_wheel_velocity > 0:
            raise ValueError(f"max_wheel_velocity must be positive, got {max_wheel_velocity}")
        self._wheelbase = wheelbase
        self.max_wheel_velocity = max_wheel_velocity
        start = pose if pose is not None else Location.origin()
        self.x = start.x
        self.y = start.y
        self.heading = start.direction.get_value(AngleUnit.RADIANS, AngleOrientation.COMPASS_HEADING)
        self._listeners: List[StepListener] = []

    def wheelbase_width(self) -> float:
        return self._wheelbase

    def add_step_listener(self, listener: StepListener) -> None:
        self._listeners.append(listener)

    def pose(self) -> Location:
        return Location(
            self.x, self.y, Angle(self.heading, AngleUnit.RADIANS, AngleOrientation.COMPASS_HEADING)
        )

    def heading_degrees(self) -> float:
        return math.degrees(self.heading)

    def _to_field(self, right: float, forward: float) -> Tuple[float, float]:
        sin_h, cos_h = math.sin(self.heading), math.cos(self.heading)
        return right * cos_h + forward * sin_h, -right * sin_h + forward * cos_h

    def _apply_twist(self, right: float, forward: float, rotation: float) -> None:
        """Move by a constant robot-frame twist held for one step.

        Args:
            right: Robot-frame x travel (to the right) over the step.
            forward: Robot-frame y travel over the step.
            rotation: Clockwise rotation over the step, radians.
        """
        if abs(rotation) < 1e-12:
            dx, dy = self._to_field(right, forward)
            self.x += dx
            self.y += dy
        else:
            # Instantaneous center of rotation, robot frame then field frame
            cx, cy = self._to_field(forward / rotation, -right / rotation)
            center_x, center_y = self.x + cx, self.y + cy
            vx, vy = -cx, -cy
            cos_r, sin_r = math.cos(rotation), math.sin(rotation)
            self.x = center_x + vx * cos_r + vy * sin_r
            self.y = center_y - vx * sin_r + vy * cos_r
            self.heading += rotation
        for listener in self._listeners:
            listener(right, forward, rotation)


class SimulatedTankDrive(_SimulatedBase):
    """Differential drive with ideal motors and integer encoders.

    Satisfies ``DifferentialDrive``. Call ``step(dt)`` once per control tick
    after the follower has set the powers.
    """

    def __init__(
        self,
        wheelbase: float = SIM_WHEELBASE,
        wheel_diameter: float = SIM_WHEEL_DIAMETER,
        ticks_per_revolution: float = SIM_TICKS_PER_REVOLUTION,
        max_wheel_velocity: float = MAX_WHEEL_VELOCITY,
        pose: Optional[Location] = None,
    ):
        super().__init__(wheelbase, max_wheel_velocity, pose)
        if not (wheel_diameter > 0 and ticks_per_revolution > 0):
            raise ValueError(
                f"Wheel diameter and ticks per revolution must be positive, "
                f"got {wheel_diameter}, {ticks_per_revolution}"
            )
        self._wheel_diameter = wheel_diameter
        self._ticks_per_revolution = ticks_per_revolution
        self.distance_per_tick = math.pi * wheel_diameter / ticks_per_revolution
        self.left_power = 0.0
        self.right_power = 0.0
        self._left_ticks = 0.0
        self._right_ticks = 0.0

    def set_left_right_power(self, left: float, right: float) -> None:
        self.left_power = _clamp_power(left)
        self.right_power = _clamp_power(right)

    def left_encoder(self) -> int:
        return int(round(self._left_ticks))

    def right_encoder(self) -> int:
        return int(round(self._right_ticks))

    def wheel_diameter(self) -> float:
        return self._wheel_diameter

    def ticks_per_revolution(self) -> float:
        return self._ticks_per_revolution

    def step(self, dt: float) -> None:
        left = self.left_power * self.max_wheel_velocity * dt
        right = self.right_power * self.max_wheel_velocity * dt
        self._left_ticks += left / self.distance_per_tick
        self._right_ticks += right / self.distance_per_tick
        self._apply_twist(0.0, (left + right) / 2, (left - right) / self._wheelbase)


class SimulatedMecanumDrive(_SimulatedBase):
    """Mecanum drive with ideal motors; satisfies ``HolonomicDrive``."""

    def __init__(
        self,
        wheelbase: float = SIM_WHEELBASE,
        max_wheel_velocity: float = MAX_WHEEL_VELOCITY,
        pose: Optional[Location] = None,
    ):
        super().__init__(wheelbase, max_wheel_velocity, pose)
        self.powers: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)

    def set_wheel_powers(
        self, front_left: float, back_left: float, front_right: float, back_right: float
    ) -> None:
        self.powers = (
            _clamp_power(front_left),
            _clamp_power(back_left),
            _clamp_power(front_right),
            _clamp_power(back_right),
        )

    def step(self, dt: float) -> None:
        front_left, back_left, front_right, back_right = (
            p * self.max_wheel_velocity * dt for p in self.powers
        )
        forward = (front_left + back_left + front_right + back_right) / 4
        right = (front_left - back_left - front_right + back_right) / 4
        rotation = (front_left + back_left - front_right - back_right) / (2 * self._wheelbase)
        self._apply_twist(right, forward, rotation)


class SimulatedGyro:
    """Heading sensor reading the simulated body's true heading."""

    def __init__(self, body: _SimulatedBase, working: bool = True):
        self.body = body
        self.working = working

    def heading_degrees(self) -> float:
        return self.body.heading_degrees()

    def is_working(self) -> bool:
        return self.working


class SimulatedDeadWheels:
    """Three non-driven encoder wheels riding on a simulated body.

    Satisfies ``OdometryWheelSet``. Each wheel measures the body's
    robot-frame motion projected on its rolling direction, which is exact
    for arcs because the wheel turns with the body.

    Args:
        body: Simulated base to ride on; the wheels register for its steps.
        offsets: (x, y, compass degrees) per wheel, robot frame.
        distance_per_tick: Travel per encoder tick.
    """

    def __init__(
        self,
        body: _SimulatedBase,
        offsets: Sequence[Tuple[float, float, float]] = ODOMETRY_WHEEL_OFFSETS,
        distance_per_tick: float = ODOMETRY_TICKS_TO_INCHES,
    ):
        if not distance_per_tick > 0:
            raise ValueError(f"distance_per_tick must be positive, got {distance_per_tick}")
        self._locations = [
            Location(x, y, Angle(degrees, AngleUnit.DEGREES, AngleOrientation.COMPASS_HEADING))
            for x, y, degrees in offsets
        ]
        self._distance_per_tick = distance_per_tick
        self._ticks = [0.0] * len(self._locations)
        body.add_step_listener(self._on_step)

    def wheel_locations(self) -> Sequence[Location]:
        return [location.copy() for location in self._locations]

    def encoder_count(self, wheel_id: int) -> int:
        return int(round(self._ticks[wheel_id]))

    def distance_per_tick(self) -> float:
        return self._distance_per_tick

    def _on_step(self, right: float, forward: float, rotation: float) -> None:
        for i, location in enumerate(self._locations):
            direction = location.direction.get_value(AngleUnit.RADIANS, AngleOrientation.COMPASS_HEADING)
            if abs(rotation) < 1e-12:
                travel = right * math.sin(direction) + forward * math.cos(direction)
            else:
                center_x, center_y = forward / rotation, -right / rotation
                travel = rotation * (
                    math.sin(direction) * (location.y - center_y)
                    - math.cos(direction) * (location.x - center_x)
                )
            self._ticks[i] += travel / self._distance_per_tick


@dataclass
class SimulationConfig:
    """Parameters of a simulated tank-drive run.

    Attributes:
        wheelbase: Distance between left and right wheels (inches).
        wheel_diameter: Drive wheel diameter (inches).
        ticks_per_revolution: Drive encoder resolution.
        max_wheel_velocity: Wheel speed at full power (inches/s).
        dt: Control period (seconds).
        max_time: Hard stop for the run (seconds).
    """

    wheelbase: float = SIM_WHEELBASE
    wheel_diameter: float = SIM_WHEEL_DIAMETER
    ticks_per_revolution: float = SIM_TICKS_PER_REVOLUTION
    max_wheel_velocity: float = MAX_WHEEL_VELOCITY
    dt: float = SIM_DT
    max_time: float = SIM_MAX_TIME

    def __post_init__(self) -> None:
        for name in (
            "wheelbase",
            "wheel_diameter",
            "ticks_per_revolution",
            "max_wheel_velocity",
            "dt",
            "max_time",
        ):
            value = getattr(self, name)
            if not (math.isfinite(value) and value > 0):
                raise ValueError(f"{name} must be positive and finite, got {value}")

    def make_drive(self, pose: Optional[Location] = None) -> SimulatedTankDrive:
        return SimulatedTankDrive(
            self.wheelbase,
            self.wheel_diameter,
            self.ticks_per_revolution,
            self.max_wheel_velocity,
            pose,
        )


class Follower(Protocol):
    def follow(self) -> None:
        ...

    def is_finished(self) -> bool:
        ...

    def get_diagnostics(self) -> Dict[str, float]:
        ...


def run_simulation(
    follower: Follower,
    body: _SimulatedBase,
    clock: SimulationClock,
    dt: float = SIM_DT,
    max_time: float = SIM_MAX_TIME,
    collector: Optional[DataCollector] = None,
) -> int:
    """Run ``follower`` against ``body`` until it finishes or time runs out.

    Each tick calls ``follow()``, logs the tick, steps the body by ``dt`` and
    advances the clock.

    Args:
        follower: Follower driving ``body``.
        body: Simulated base with ``step(dt)`` and ``pose()``.
        clock: The clock the follower was built with.
        dt: Control period (seconds).
        max_time: Hard stop (seconds).
        collector: Optional data collector receiving every tick.

    Returns:
        Number of control ticks run.
    """
    if not dt > 0:
        raise ValueError(f"dt must be positive, got {dt}")
    start = clock()
    ticks = 0
    while not follower.is_finished() and clock() - start < max_time:
        follower.follow()
        ticks += 1
        if collector is not None:
            collector.log_tick(clock() - start, body.pose(), follower.get_diagnostics())
        body.step(dt)
        clock.advance(dt)

    if follower.is_finished():
        logger.info(f"Simulation finished after {ticks} ticks ({clock() - start:.2f}s), pose {body.pose()}")
    else:
        logger.warning(f"Simulation stopped at max_time={max_time:.2f}s before the follower finished")
    return ticks
