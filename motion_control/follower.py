"""Closed-loop path followers.

``TrajectoryFollower`` drives a differential (tank) base along a parametric
path. Each tick blends three motor-power terms:
- prediction: the left/right split needed to reach the next path position
- encoder correction: per-side feedback on distance along each wheel rail
- heading correction: feedback on the path's tangent heading
and scales the blend by the velocity profile's commanded speed.

``PoseTargetFollower`` is the simpler time-based follower for bases that can
steer themselves toward a pose (``PoseTargetDrive``, e.g. mecanum).

Both are cooperative state machines: the caller invokes ``follow()`` once per
control tick and polls ``is_finished()``. Nothing here blocks or sleeps.
"""

import logging
import math
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from .config import (
    DISTANCE_CALC_ACCURACY,
    ENCODER_KD,
    ENCODER_KI,
    ENCODER_KP,
    HEADING_KD,
    HEADING_KI,
    HEADING_KP,
    INTEGRAL_NUMBER_OF_SAMPLES,
    MAX_WHEEL_VELOCITY,
    MIN_MOVE_POWER,
    MIN_PARAMETER_STEP,
    PID_INTEGRAL_LIMIT,
    PORTION_ENCODER_ADJ,
    PORTION_GYRO_ADJ,
    PORTION_NEXT_POWER,
    PORTION_SUM_TOLERANCE,
    TURN_GAIN,
    VELOCITY_CALC_ACCURACY,
)
from .controllers import pid_factory
from .errors import DomainError
from .geometry import SOUTH, Angle, AngleOrientation, AngleUnit, Location
from .interfaces import (
    ClosedLoopController,
    DifferentialDrive,
    HeadingSensor,
    PoseTargetDrive,
)
from .odometry import PoseEstimator
from .spline import ParametricCurve
from .velocity_profile import VelocityLimits, VelocityProfile

logger = logging.getLogger(__name__)

ControllerFactory = Callable[[], ClosedLoopController]


class FollowerState(Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    FINISHED = "finished"


@dataclass
class FollowerConfig:
    """Tuning for ``TrajectoryFollower``.

    Attributes:
        integral_samples: Buckets in the arc-length tables.
        distance_accuracy: Accuracy of distance → parameter lookups.
        velocity_accuracy: Gain below which the previous tick counts as stopped.
        limits: Velocity profile limits.
        max_wheel_velocity: Wheel speed at full power; converts profile
            speed to power.
        min_move_power: Floor on the speed gain, in (0, 1).
        min_parameter_step: Smallest parameter step used for prediction.
        portion_next_power: Weight of the prediction term.
        portion_encoder_adj: Weight of the encoder correction term.
        portion_gyro_adj: Weight of the heading correction term.
        turn_gain: Re-bias of the predicted split; 1 leaves it unchanged.
        encoder_controller_factory: Builds one encoder controller per side.
            None uses PID with the configured encoder gains on the follower's
            clock.
        heading_controller_factory: Builds the heading controller. None uses
            PID with the configured heading gains on the follower's clock.
    """

    integral_samples: int = INTEGRAL_NUMBER_OF_SAMPLES
    distance_accuracy: float = DISTANCE_CALC_ACCURACY
    velocity_accuracy: float = VELOCITY_CALC_ACCURACY
    limits: VelocityLimits = field(default_factory=VelocityLimits)
    max_wheel_velocity: float = MAX_WHEEL_VELOCITY
    min_move_power: float = MIN_MOVE_POWER
    min_parameter_step: float = MIN_PARAMETER_STEP
    portion_next_power: float = PORTION_NEXT_POWER
    portion_encoder_adj: float = PORTION_ENCODER_ADJ
    portion_gyro_adj: float = PORTION_GYRO_ADJ
    turn_gain: float = TURN_GAIN
    encoder_controller_factory: Optional[ControllerFactory] = None
    heading_controller_factory: Optional[ControllerFactory] = None

    def __post_init__(self) -> None:
        if self.integral_samples < 1:
            raise ValueError(f"integral_samples must be at least 1, got {self.integral_samples}")
        if not self.distance_accuracy > 0:
            raise ValueError(f"distance_accuracy must be positive, got {self.distance_accuracy}")
        if not self.velocity_accuracy > 0:
            raise ValueError(f"velocity_accuracy must be positive, got {self.velocity_accuracy}")
        if not self.max_wheel_velocity > 0:
            raise ValueError(f"max_wheel_velocity must be positive, got {self.max_wheel_velocity}")
        if not 0 < self.min_move_power < 1:
            raise ValueError(f"min_move_power must be in (0, 1), got {self.min_move_power}")
        if not self.min_parameter_step > 0:
            raise ValueError(f"min_parameter_step must be positive, got {self.min_parameter_step}")
        total = self.portion_next_power + self.portion_encoder_adj + self.portion_gyro_adj
        if abs(total - 1) > PORTION_SUM_TOLERANCE:
            raise ValueError(f"Portions must sum to 1, got {total}")


def _clamp_unit(value: float) -> float:
    return math.copysign(1.0, value) if abs(value) > 1 else value


def compensate_turn(left: float, right: float, turn_gain: float) -> Tuple[float, float]:
    """Re-bias a normalized left/right split by ``turn_gain``.

    The larger-magnitude side is kept; the smaller one moves away from it for
    gains above 1 (more turning) and toward it for gains below 1. A gain of 1
    returns the split unchanged, as do straight splits and spins in place.
    """
    left_is_larger = abs(left) > abs(right)
    larger, smaller = (left, right) if left_is_larger else (right, left)
    if larger == smaller or larger == -smaller:
        return left, right
    a = (larger + smaller) / (larger - smaller)
    b = (larger + smaller) * (a + 1)
    if turn_gain + a == 0:
        return left, right
    compensated = b / (turn_gain + a) - larger
    if not math.isfinite(compensated):
        return left, right
    if left_is_larger:
        return left, compensated
    return compensated, right


class TrajectoryFollower:
    """Follows a path with a differential drive.

    Builds the two wheel rails half a wheelbase either side of the path, the
    velocity profile for the path length, and the arc-length tables, then
    records the encoder baselines. Time starts at the first ``follow()``.

    Heading feedback comes from ``heading_sensor`` while it reports working,
    otherwise from ``pose_estimator`` (updated once per tick by this
    follower), otherwise from integrating the drive encoders.

    Args:
        path: Center path; ``path.goes_forward()`` selects the drive direction.
        drive: Differential drive to command.
        config: Follower tuning. Defaults to ``FollowerConfig()``.
        heading_sensor: Optional gyro.
        pose_estimator: Optional dead-wheel pose estimator.
        clock: Monotonic time source in seconds.
    """

    def __init__(
        self,
        path: ParametricCurve,
        drive: DifferentialDrive,
        config: Optional[FollowerConfig] = None,
        heading_sensor: Optional[HeadingSensor] = None,
        pose_estimator: Optional[PoseEstimator] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config if config is not None else FollowerConfig()
        self.path = path
        self.drive = drive
        self.heading_sensor = heading_sensor
        self.pose_estimator = pose_estimator
        self._clock = clock

        cfg = self.config
        path.set_distance_tolerance(cfg.distance_accuracy)
        self.direction = 1 if path.goes_forward() else -1

        # Rail a is left of the path tangent, rail b is right of it
        half_width = drive.wheelbase_width() / 2
        self.rail_a = path.offset(half_width)
        self.rail_b = path.offset(-half_width)
        samples = cfg.integral_samples
        self._rail_a_distance = self.rail_a.distance_function(samples)
        self._rail_b_distance = self.rail_b.distance_function(samples)
        self._path_distance = path.distance_function(samples)
        self._path_parameter = path.parameter_function(samples)
        self.total_distance = path.length(samples)

        self.profile = VelocityProfile.from_limits(self.total_distance, cfg.limits)
        self._check_ready()

        self.dst_per_tick = math.pi * drive.wheel_diameter() / drive.ticks_per_revolution()

        encoder_factory = cfg.encoder_controller_factory or pid_factory(
            ENCODER_KP, ENCODER_KI, ENCODER_KD, integral_limit=PID_INTEGRAL_LIMIT, clock=clock
        )
        heading_factory = cfg.heading_controller_factory or pid_factory(
            HEADING_KP, HEADING_KI, HEADING_KD, integral_limit=PID_INTEGRAL_LIMIT, clock=clock
        )
        self.controller_a = encoder_factory()
        self.controller_b = encoder_factory()
        self.heading_controller = heading_factory()

        self.first_a, self.first_b = self._read_encoders()
        self.last_a, self.last_b = self.first_a, self.first_b
        self._last_left = drive.left_encoder()
        self._last_right = drive.right_encoder()

        self.state = FollowerState.NOT_STARTED
        self.start_time: Optional[float] = None
        self.distance_travelled = 0.0
        self.last_parameter = 0.0
        self.last_gain = cfg.min_move_power
        self.last_prediction = (1.0, 1.0)
        self.encoder_heading = self._target_heading(0.0)
        self._diagnostics: Dict[str, float] = {}

        logger.info(
            f"TrajectoryFollower ready: length={self.total_distance:.3f}, "
            f"profile time={self.profile.total_time:.3f}s, "
            f"{'forward' if self.direction == 1 else 'backward'}"
        )

    def _check_ready(self) -> None:
        values = (
            self._rail_a_distance.get(0.0),
            self._rail_b_distance.get(0.0),
            self._path_distance.get(0.0),
            self._path_parameter.get(0.0),
        )
        if not all(math.isfinite(v) for v in values):
            logger.error(f"Conversion between parameter and distance at 0 gave a non-finite value: {values}")

    def _read_encoders(self) -> Tuple[int, int]:
        """Encoder counts of the wheels on rail a and rail b."""
        if self.direction == 1:
            return self.drive.left_encoder(), self.drive.right_encoder()
        return self.drive.right_encoder(), self.drive.left_encoder()

    def _target_heading(self, parameter: float) -> float:
        """Robot compass heading (degrees) that matches the path at ``parameter``."""
        tangent = self.path.position_and_heading(parameter).direction
        heading = tangent.get_value(AngleUnit.DEGREES, AngleOrientation.COMPASS_HEADING)
        if self.direction == -1:
            heading -= 180
        return heading

    def _current_heading(self, left_delta: int, right_delta: int) -> float:
        self.encoder_heading += math.degrees(
            (left_delta - right_delta) / self.drive.wheelbase_width() * self.dst_per_tick
        )
        if self.pose_estimator is not None:
            self.pose_estimator.update()
        if self.heading_sensor is not None and self.heading_sensor.is_working():
            return self.heading_sensor.heading_degrees()
        if self.pose_estimator is not None:
            return self.pose_estimator.heading_degrees()
        return self.encoder_heading

    def is_finished(self) -> bool:
        return self.distance_travelled >= self.total_distance

    def follow(self) -> None:
        """Run one control tick."""
        if self.state is FollowerState.FINISHED:
            return
        now = self._clock()
        if self.state is FollowerState.NOT_STARTED:
            self.start_time = now
            self.state = FollowerState.RUNNING
            logger.debug("Following path...")
        elapsed = now - self.start_time

        try:
            self._tick(elapsed)
        except DomainError as ex:
            if not self.is_finished():
                logger.warning(
                    f"Path lookup left its domain before the end "
                    f"({self.distance_travelled:.3f} of {self.total_distance:.3f}): {ex}"
                )
            self.distance_travelled = max(self.distance_travelled, self.total_distance)

        if self.is_finished():
            self._finish()

    def _finish(self) -> None:
        self.drive.set_left_right_power(0.0, 0.0)
        self.state = FollowerState.FINISHED
        logger.info(f"Path completed: travelled {self.distance_travelled:.3f} of {self.total_distance:.3f}")

    def _tick(self, elapsed: float) -> None:
        cfg = self.config

        # 1. Distance travelled, from the wheels on each rail
        encoder_a, encoder_b = self._read_encoders()
        delta_a = self.direction * (encoder_a - self.last_a)
        delta_b = self.direction * (encoder_b - self.last_b)
        self.last_a, self.last_b = encoder_a, encoder_b
        self.distance_travelled += (delta_a + delta_b) * self.dst_per_tick / 2

        left, right = self.drive.left_encoder(), self.drive.right_encoder()
        heading = self._current_heading(left - self._last_left, right - self._last_right)
        self._last_left, self._last_right = left, right

        if self.is_finished():
            return

        # 2. Current parameter
        parameter = self._path_parameter.get(max(self.distance_travelled, 0.0))
        delta_parameter = parameter - self.last_parameter

        # 3. Encoder correction
        target_a_inches = self._rail_a_distance.get(parameter)
        target_b_inches = self._rail_b_distance.get(parameter)
        target_a = self.direction * target_a_inches / self.dst_per_tick + self.first_a
        target_b = self.direction * target_b_inches / self.dst_per_tick + self.first_b
        encoder_term_a = self.direction * self.controller_a.output(encoder_a, target_a)
        encoder_term_b = self.direction * self.controller_b.output(encoder_b, target_b)

        # 4. Heading correction
        heading_target = self._target_heading(parameter)
        heading_error = Angle(heading_target - heading, AngleUnit.DEGREES, AngleOrientation.UNSPECIFIED).wrap(
            AngleUnit.DEGREES, AngleOrientation.UNSPECIFIED
        )
        heading_term = self.heading_controller.output(heading, heading + heading_error)

        # 5. Speed gain from the profile
        gain = max(self.profile.get(elapsed) / cfg.max_wheel_velocity, cfg.min_move_power)

        # 6. Prediction toward the next position
        if delta_parameter < cfg.min_parameter_step:
            delta_parameter = cfg.min_parameter_step
        if self.last_gain > cfg.velocity_accuracy:
            delta_parameter *= gain / self.last_gain
        self.last_parameter = parameter
        self.last_gain = gain

        next_parameter = min(parameter + delta_parameter, self.path.max_input)
        next_a = self._rail_a_distance.get(next_parameter) - target_a_inches
        next_b = self._rail_b_distance.get(next_parameter) - target_b_inches
        largest = next_a if abs(next_a) > abs(next_b) else next_b
        if largest == 0:
            prediction_a, prediction_b = self.last_prediction
        else:
            prediction_a, prediction_b = compensate_turn(next_a / largest, next_b / largest, cfg.turn_gain)
            self.last_prediction = (prediction_a, prediction_b)

        # 7. Clamp, weight, scale and send
        power_a = (
            cfg.portion_next_power * _clamp_unit(prediction_a)
            + cfg.portion_encoder_adj * _clamp_unit(encoder_term_a)
            + cfg.portion_gyro_adj * _clamp_unit(heading_term)
        )
        power_b = (
            cfg.portion_next_power * _clamp_unit(prediction_b)
            + cfg.portion_encoder_adj * _clamp_unit(encoder_term_b)
            - cfg.portion_gyro_adj * _clamp_unit(heading_term)
        )
        if self.direction == 1:
            left_power, right_power = power_a * gain, power_b * gain
        else:
            left_power, right_power = -power_b * gain, -power_a * gain
        self.drive.set_left_right_power(left_power, right_power)

        logger.debug(
            f"t={elapsed:.3f} d={self.distance_travelled:.3f} p={parameter:.4f} gain={gain:.3f} "
            f"enc=({encoder_term_a:.3f}, {encoder_term_b:.3f}) heading={heading:.2f}->{heading_target:.2f} "
            f"power=({left_power:.3f}, {right_power:.3f})"
        )
        self._diagnostics = {
            "time": elapsed,
            "distance": self.distance_travelled,
            "parameter": parameter,
            "gain": gain,
            "prediction_a": prediction_a,
            "prediction_b": prediction_b,
            "encoder_term_a": encoder_term_a,
            "encoder_term_b": encoder_term_b,
            "heading": heading,
            "heading_target": heading_target,
            "heading_term": heading_term,
            "left_power": left_power,
            "right_power": right_power,
        }

    def get_diagnostics(self) -> Dict[str, float]:
        """Values from the last completed tick, for logging."""
        return dict(self._diagnostics)

    def __str__(self) -> str:
        return f"TrajectoryFollower: Path = ({self.path})"


class PoseTargetFollower:
    """Time-based follower for drives that steer toward a pose themselves.

    At elapsed time t the profile gives the distance travelled, which maps to
    a path parameter p. The drive is aimed slightly ahead, at p plus the last
    parameter step scaled by the change in commanded speed.

    Args:
        path: Path to follow.
        drive: Drive that can move toward a Location.
        limits: Velocity profile limits.
        samples: Buckets in the arc-length tables.
        accuracy: Accuracy of distance → parameter lookups.
        clock: Monotonic time source in seconds.
    """

    def __init__(
        self,
        path: ParametricCurve,
        drive: PoseTargetDrive,
        limits: Optional[VelocityLimits] = None,
        samples: int = INTEGRAL_NUMBER_OF_SAMPLES,
        accuracy: float = DISTANCE_CALC_ACCURACY,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.path = path
        self.drive = drive
        self.limits = limits if limits is not None else VelocityLimits()
        self._clock = clock

        path.set_distance_tolerance(accuracy)
        self.total_distance = path.length(samples)
        self.profile = VelocityProfile.from_limits(self.total_distance, self.limits)
        self._position = self.profile.integral()
        self._parameter = path.parameter_function(samples)

        self.state = FollowerState.NOT_STARTED
        self.start_time: Optional[float] = None
        self.last_parameter = 0.0
        self.last_velocity = 0.0
        self._diagnostics: Dict[str, float] = {}
        logger.info(
            f"PoseTargetFollower ready: length={self.total_distance:.3f}, "
            f"profile time={self.profile.total_time:.3f}s"
        )

    def _elapsed(self) -> float:
        return 0.0 if self.start_time is None else self._clock() - self.start_time

    def _target(self, parameter: float) -> Location:
        target = self.path.position_and_heading(parameter)
        if not self.path.goes_forward():
            target.direction = Angle.add(target.direction, SOUTH, AngleOrientation.COMPASS_HEADING)
        return target

    def is_finished(self) -> bool:
        if self.state is FollowerState.FINISHED:
            return True
        return self.start_time is not None and self._elapsed() >= self.profile.total_time

    def follow(self) -> None:
        if self.state is FollowerState.FINISHED:
            return
        if self.state is FollowerState.NOT_STARTED:
            self.start_time = self._clock()
            self.state = FollowerState.RUNNING
        t = self._elapsed()

        if self.is_finished():
            self.drive.move_toward_location(self._target(self.path.max_input), 0.0)
            self.state = FollowerState.FINISHED
            logger.info("Path completed")
            return

        distance = min(self._position.get(t), self.total_distance)
        try:
            parameter = self._parameter.get(distance)
        except DomainError as ex:
            logger.warning(f"Path lookup left its domain at t={t:.3f}: {ex}")
            parameter = self.path.max_input
        delta_parameter = parameter - self.last_parameter
        self.last_parameter = parameter

        velocity = self.profile.get(t)
        ratio = velocity / self.last_velocity if abs(self.last_velocity) > self.limits.accuracy else 1.0
        self.last_velocity = velocity
        ahead = min(max(parameter + delta_parameter * ratio, 0.0), self.path.max_input)

        target = self._target(ahead)
        logger.debug(f"t={t:.3f} p={parameter:.4f} target={target} v={velocity:.3f}")
        self.drive.move_toward_location(target, velocity)
        self._diagnostics = {
            "time": t,
            "distance": distance,
            "parameter": parameter,
            "target_parameter": ahead,
            "velocity": velocity,
        }

    def get_diagnostics(self) -> Dict[str, float]:
        return dict(self._diagnostics)
