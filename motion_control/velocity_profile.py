"""Jerk-limited velocity profiles.

The profile is built as a piecewise-linear acceleration a(t) whose corner
points are solved in closed form; integrating it gives the speed curve the
follower reads each tick. Two families of corner tables exist:

- Cruise reached: ramp up to cruise speed, hold, then mirror back down.
  The ramp itself holds max acceleration when the speed change allows it
  (8 corners), otherwise it is a pure jerk triangle (6 corners).
- Cruise not reached: the distance is too short, so the profile accelerates
  and immediately decelerates. Peak acceleration either saturates
  (trapezoid, found from a quadratic in t) or not (triangle, a cube root).
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Tuple

from .config import CRUISE_VELOCITY, MAX_ACCELERATION, MAX_JERK, VELOCITY_CALC_ACCURACY
from .functions import Function, Piecewise, Polynomial
from .polynomials import generate_line

logger = logging.getLogger(__name__)


@dataclass
class VelocityLimits:
    """Kinematic limits for profile generation.

    Attributes:
        cruise_velocity: Target travel speed (> 0).
        max_acceleration: Acceleration bound (> 0).
        max_jerk: Jerk bound (> 0).
        accuracy: Speed below which commanded motion is treated as stopped.
    """

    cruise_velocity: float = CRUISE_VELOCITY
    max_acceleration: float = MAX_ACCELERATION
    max_jerk: float = MAX_JERK
    accuracy: float = VELOCITY_CALC_ACCURACY

    def __post_init__(self) -> None:
        for name in ("cruise_velocity", "max_acceleration", "max_jerk", "accuracy"):
            value = getattr(self, name)
            if not (math.isfinite(value) and value > 0):
                raise ValueError(f"{name} must be positive and finite, got {value}")


def _acceleration_corners(
    distance: float, velocity: float, acceleration: float, jerk: float
) -> Tuple[List[Tuple[float, float]], float]:
    """Corner points (t, a) of the acceleration curve for positive inputs."""
    acceleration_saturates = acceleration * acceleration < jerk * velocity
    ramp_time = acceleration / jerk
    if acceleration_saturates:
        speed_up_time = 2 * ramp_time + (velocity - acceleration * acceleration / jerk) / acceleration
    else:
        speed_up_time = 2 * math.sqrt(velocity / jerk)

    if speed_up_time * velocity < distance:
        total = (distance - velocity * speed_up_time) / velocity + 2 * speed_up_time
        if acceleration_saturates:
            corners = [
                (0.0, 0.0),
                (ramp_time, acceleration),
                (speed_up_time - ramp_time, acceleration),
                (speed_up_time, 0.0),
                (total - speed_up_time, 0.0),
                (total - speed_up_time + ramp_time, -acceleration),
                (total - ramp_time, -acceleration),
                (total, 0.0),
            ]
        else:
            peak = jerk * speed_up_time / 2
            corners = [
                (0.0, 0.0),
                (speed_up_time / 2, peak),
                (speed_up_time, 0.0),
                (total - speed_up_time, 0.0),
                (total - speed_up_time / 2, -peak),
                (total, 0.0),
            ]
        return corners, total

    if distance < 2 * acceleration**3 / (jerk * jerk):
        total = (32 * distance / jerk) ** (1 / 3)
    else:
        # (a/4)t² - (a²/2j)t - d = 0, positive root
        a = acceleration / 4
        b = -(acceleration * acceleration) / (2 * jerk)
        c = -distance
        total = (-b + math.sqrt(b * b - 4 * a * c)) / (2 * a)

    if 4 * ramp_time > total:
        corners = [
            (0.0, 0.0),
            (total / 4, jerk * total / 4),
            (3 * total / 4, -jerk * total / 4),
            (total, 0.0),
        ]
    else:
        corners = [
            (0.0, 0.0),
            (ramp_time, acceleration),
            (total / 2 - ramp_time, acceleration),
            (total / 2 + ramp_time, -acceleration),
            (total - ramp_time, -acceleration),
            (total, 0.0),
        ]
    return corners, total


class VelocityProfile(Function):
    """Speed as a function of elapsed time, covering ``distance`` exactly.

    Speed is 0 at t = 0 and at ``total_time``, |acceleration| never exceeds
    ``max_acceleration`` and |jerk| never exceeds ``max_jerk`` away from the
    corner points. Before 0 and after ``total_time`` the speed stays 0.

    A negative distance with a negative cruise velocity gives the mirrored
    (reversing) profile.

    Args:
        distance: Distance to travel.
        cruise_velocity: Speed to hold once reached; same sign as distance.
        max_acceleration: Acceleration bound (> 0).
        max_jerk: Jerk bound (> 0).

    Raises:
        ValueError: If a limit is not positive, or the velocity and distance
            have opposite signs.

    Example:
        VelocityProfile(36, 24, 40, 200) reaches 24 in/s after 0.8 s, cruises
        for 0.7 s and stops at total_time = 2.3 s.
    """

    def __init__(
        self,
        distance: float,
        cruise_velocity: float = CRUISE_VELOCITY,
        max_acceleration: float = MAX_ACCELERATION,
        max_jerk: float = MAX_JERK,
    ):
        if not (math.isfinite(distance) and math.isfinite(cruise_velocity)):
            raise ValueError(f"Distance and velocity must be finite: {distance}, {cruise_velocity}")
        if cruise_velocity == 0:
            raise ValueError("Cruise velocity must be non-zero")
        if not (max_acceleration > 0 and max_jerk > 0):
            raise ValueError(
                f"Acceleration and jerk limits must be positive, got {max_acceleration}, {max_jerk}"
            )
        if distance * cruise_velocity < 0:
            raise ValueError(
                f"Velocity {cruise_velocity} and distance {distance} must have the same sign"
            )

        self.distance = float(distance)
        self.cruise_velocity = float(cruise_velocity)
        self.max_acceleration = float(max_acceleration)
        self.max_jerk = float(max_jerk)

        if distance == 0:
            self.breakpoints: Tuple[Tuple[float, float], ...] = ()
            self._total_time = 0.0
            self._speed: Function = Polynomial(0.0)
            logger.debug("Zero-distance velocity profile")
            return

        sign = 1.0 if distance > 0 else -1.0
        corners, total = _acceleration_corners(
            abs(distance), abs(cruise_velocity), max_acceleration, max_jerk
        )
        kept = [corners[0]]
        for corner in corners[1:]:
            if corner[0] > kept[-1][0]:
                kept.append(corner)
        self.breakpoints = tuple((t, sign * a) for t, a in kept)
        self._total_time = total

        lines: List[Function] = [Polynomial(0.0)]
        for (t1, a1), (t2, a2) in zip(self.breakpoints, self.breakpoints[1:]):
            lines.append(generate_line(t1, a1, t2, a2))
        lines.append(Polynomial(0.0))
        bounds = [-math.inf] + [t for t, _ in self.breakpoints] + [math.inf]
        self._acceleration = Piecewise.from_bounds(lines, bounds)
        self._speed = self._acceleration.integral()
        logger.debug(
            f"Velocity profile: distance={distance:g}, total_time={total:.4f}s, "
            f"{len(self.breakpoints)} corners"
        )

    @classmethod
    def from_limits(cls, distance: float, limits: VelocityLimits) -> "VelocityProfile":
        """Profile for ``distance`` under ``limits``, reversing when distance < 0."""
        velocity = math.copysign(limits.cruise_velocity, distance) if distance else limits.cruise_velocity
        return cls(distance, velocity, limits.max_acceleration, limits.max_jerk)

    @property
    def total_time(self) -> float:
        return self._total_time

    def get(self, t: float) -> float:
        return self._speed.get(t)

    def derivative(self) -> Function:
        """Acceleration as a function of time."""
        return self._speed.derivative()

    def integral(self) -> Function:
        """Distance travelled as a function of time."""
        return self._speed.integral()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VelocityProfile):
            return NotImplemented
        return self._speed == other._speed

    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        return str(self._speed)
