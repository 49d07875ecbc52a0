"""Dead-reckoning pose estimation from three non-driven encoder wheels.

Each update takes the travel of every wheel since the last update and
chooses one of two motion models:
- Pure translation, when the parallel pair's deltas cancel: the robot-frame
  displacement comes from a 2x2 system and is rotated into the field frame.
- Rigid arc otherwise: the motion is a rotation about an unknown center, and
  one row per wheel gives a 3x3 system in the center's robot-frame (x, y) and
  the reciprocal of the rotation angle.

Robot frame: +y forward, +x to the right. Wheel directions and headings are
compass angles (clockwise positive), so a positive rotation is clockwise.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from .config import ODOMETRY_NO_ROTATION_TOLERANCE, ODOMETRY_PARALLEL_PAIR
from .geometry import EAST, Angle, AngleOrientation, AngleUnit, Location
from .interfaces import OdometryWheelSet
from .linalg import is_zero, solve_augmented_matrix

logger = logging.getLogger(__name__)

PARALLEL_TOLERANCE = 1e-9
"""|sin(angle between wheels)| below which two wheels count as parallel."""


@dataclass
class OdometryWheel:
    """One dead-reckoning wheel: fixed mounting and last-seen encoder count.

    Attributes:
        mounting: Position and rolling direction relative to robot center.
        last_count: Encoder count at the previous update.
    """

    mounting: Location
    last_count: int = 0

    @property
    def direction(self) -> float:
        """Rolling direction in compass radians."""
        return self.mounting.direction.get_value(AngleUnit.RADIANS, AngleOrientation.COMPASS_HEADING)

    def advance(self, count: int) -> int:
        """Return ticks since the last reading and move the baseline to ``count``."""
        delta = count - self.last_count
        self.last_count = count
        return delta


class PoseEstimator:
    """Running field-frame pose from three dead-reckoning wheels.

    Call ``update()`` exactly once per control tick. Not re-entrant and not
    thread-safe: the pose belongs to this instance.

    Args:
        wheels: Wheel set providing mountings and cumulative encoder counts.
        pose: Starting pose; defaults to the origin facing north.
        parallel_pair: Indices of the two wheels whose delta sum selects the
            translation-only model.
        no_rotation_tolerance: Bound on |delta_a + delta_b| (inches) for the
            translation-only model.

    Raises:
        ValueError: If the wheel set does not have exactly three wheels or
            the parallel pair is invalid.
    """

    def __init__(
        self,
        wheels: OdometryWheelSet,
        pose: Optional[Location] = None,
        parallel_pair: Tuple[int, int] = ODOMETRY_PARALLEL_PAIR,
        no_rotation_tolerance: float = ODOMETRY_NO_ROTATION_TOLERANCE,
    ):
        locations = list(wheels.wheel_locations())
        if len(locations) != 3:
            raise ValueError(f"Pose estimation needs exactly 3 odometry wheels, got {len(locations)}")
        a, b = parallel_pair
        if a == b or not (0 <= a < 3 and 0 <= b < 3):
            raise ValueError(f"Invalid parallel wheel pair {parallel_pair}")
        if no_rotation_tolerance < 0:
            raise ValueError(f"no_rotation_tolerance must be non-negative, got {no_rotation_tolerance}")

        self._wheel_set = wheels
        self._wheels = [
            OdometryWheel(location.copy(), wheels.encoder_count(i)) for i, location in enumerate(locations)
        ]
        self._pose = pose.copy() if pose is not None else Location.origin()
        self.parallel_pair = (a, b)
        self.no_rotation_tolerance = no_rotation_tolerance

        # Diagnostics
        self.update_count = 0
        self.last_deltas: List[float] = [0.0, 0.0, 0.0]
        self.last_rotation = 0.0
        self.last_model = "none"

    def _read_deltas(self) -> List[float]:
        per_tick = self._wheel_set.distance_per_tick()
        return [
            wheel.advance(self._wheel_set.encoder_count(i)) * per_tick
            for i, wheel in enumerate(self._wheels)
        ]

    def update(self) -> Location:
        """Fold the wheel travel since the last call into the pose.

        Returns:
            A copy of the updated pose.
        """
        deltas = self._read_deltas()
        self.update_count += 1
        self.last_deltas = deltas

        a, b = self.parallel_pair
        if is_zero(deltas[a] + deltas[b], self.no_rotation_tolerance):
            self._translate(deltas)
            return self.get_pose()

        rows = []
        for wheel, delta in zip(self._wheels, deltas):
            direction = wheel.direction
            rows.append(
                [
                    math.cos(direction),
                    -math.sin(direction),
                    -delta,
                    math.cos(direction) * wheel.mounting.x - math.sin(direction) * wheel.mounting.y,
                ]
            )
        center_x, center_y, inverse_rotation = solve_augmented_matrix(rows)
        with np.errstate(divide="ignore"):
            rotation = float(np.float64(1.0) / inverse_rotation)

        if not all(math.isfinite(v) for v in (center_x, center_y, rotation)) or is_zero(rotation):
            logger.debug(f"Arc fit degenerate for deltas {deltas}, treating as translation")
            self._translate(deltas)
            return self.get_pose()

        self._rotate(float(center_x), float(center_y), rotation)
        return self.get_pose()

    def _translate(self, deltas: List[float]) -> None:
        first = self._wheels[0]
        partner = next(
            (
                i
                for i in range(1, len(self._wheels))
                if abs(math.sin(first.direction - self._wheels[i].direction)) > PARALLEL_TOLERANCE
            ),
            None,
        )
        if partner is None:
            raise ValueError("Odometry wheels are all parallel; translation is unobservable")
        second = self._wheels[partner]
        dx, dy = solve_augmented_matrix(
            [
                [math.sin(first.direction), math.cos(first.direction), deltas[0]],
                [math.sin(second.direction), math.cos(second.direction), deltas[partner]],
            ]
        )
        heading_y = self._pose.direction
        heading_x = Angle.add(heading_y, EAST, AngleOrientation.COMPASS_HEADING)
        field_dx = dx * heading_x.get_x() + dy * heading_y.get_x()
        field_dy = dx * heading_x.get_y() + dy * heading_y.get_y()
        self._pose.translate(float(field_dx), float(field_dy))
        self.last_rotation = 0.0
        self.last_model = "translation"

    def _rotate(self, center_x: float, center_y: float, rotation: float) -> None:
        unit_circle = self._pose.direction.get_value(AngleUnit.RADIANS, AngleOrientation.UNIT_CIRCLE)
        compass = self._pose.direction.get_value(AngleUnit.RADIANS, AngleOrientation.COMPASS_HEADING)
        self._pose.direction = Angle(compass + rotation, AngleUnit.RADIANS, AngleOrientation.COMPASS_HEADING)

        x, y = self._pose.x, self._pose.y
        # Rotation center in the field frame
        hr = x + math.sin(unit_circle) * center_x + math.cos(unit_circle) * center_y
        kr = y - math.cos(unit_circle) * center_x + math.sin(unit_circle) * center_y
        radius = math.hypot(x - hr, y - kr)
        theta = -rotation + math.atan2(y - kr, x - hr)
        self._pose.set_location(hr + radius * math.cos(theta), kr + radius * math.sin(theta))
        self.last_rotation = rotation
        self.last_model = "arc"

    def get_pose(self) -> Location:
        return self._pose.copy()

    def set_pose(self, pose: Location) -> None:
        """Overwrite the pose and re-baseline every wheel at its current count."""
        for i, wheel in enumerate(self._wheels):
            wheel.last_count = self._wheel_set.encoder_count(i)
        self._pose = pose.copy()
        logger.info(f"Pose reset to {self._pose}")

    def heading_degrees(self) -> float:
        """Compass heading of the current pose, in degrees."""
        return self._pose.direction.get_value(AngleUnit.DEGREES, AngleOrientation.COMPASS_HEADING)

    def get_diagnostics(self) -> Dict[str, float]:
        return {
            "x": self._pose.x,
            "y": self._pose.y,
            "heading_deg": self.heading_degrees(),
            "delta_0": self.last_deltas[0],
            "delta_1": self.last_deltas[1],
            "delta_2": self.last_deltas[2],
            "rotation_rad": self.last_rotation,
            "updates": float(self.update_count),
        }
