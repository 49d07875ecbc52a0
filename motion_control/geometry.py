"""2D geometry primitives with explicit angle bookkeeping.

Angles carry a unit and an orientation:
- COMPASS_HEADING: 0 points along +y and values increase clockwise
- UNIT_CIRCLE: 0 points along +x and values increase counterclockwise
- UNSPECIFIED: a bare turn measure with no reference direction

Converting between the two oriented forms is its own inverse:
    compass = quarter_turn - unit_circle
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


class AngleUnit(Enum):
    """Angle units, valued by units per revolution."""

    RADIANS = 2 * math.pi
    GRADIANS = 400.0
    DEGREES = 360.0
    MINUTES = 21600.0
    SECONDS = 1296000.0
    REVOLUTIONS = 1.0

    @property
    def per_revolution(self) -> float:
        return self.value


class AngleOrientation(Enum):
    """Reference direction and sense of rotation for an angle."""

    COMPASS_HEADING = "compass"
    UNIT_CIRCLE = "unit_circle"
    UNSPECIFIED = "unspecified"


class Angle:
    """Immutable turn measure with a unit and an orientation.

    Two angles compare equal when they describe the same physical direction,
    i.e. after normalizing both to compass radians modulo a full turn.
    """

    def __init__(
        self,
        value: float,
        unit: AngleUnit = AngleUnit.RADIANS,
        orientation: AngleOrientation = AngleOrientation.UNIT_CIRCLE,
    ):
        self._value = float(value)
        self._unit = unit
        self._orientation = orientation

    @classmethod
    def from_xy(cls, x: float, y: float) -> "Angle":
        """Direction of the vector (x, y), in unit-circle radians."""
        return cls(math.atan2(y, x), AngleUnit.RADIANS, AngleOrientation.UNIT_CIRCLE)

    @classmethod
    def degrees(cls, value: float, orientation: AngleOrientation = AngleOrientation.COMPASS_HEADING) -> "Angle":
        return cls(value, AngleUnit.DEGREES, orientation)

    @property
    def unit(self) -> AngleUnit:
        return self._unit

    @property
    def orientation(self) -> AngleOrientation:
        return self._orientation

    def get_value(self, unit: AngleUnit, orientation: AngleOrientation) -> float:
        """Return this angle's value expressed in ``unit`` and ``orientation``.

        Converting to or from UNSPECIFIED leaves the orientation untouched.

        Args:
            unit: Target unit.
            orientation: Target orientation.

        Returns:
            The converted value.
        """
        value = self._value * unit.per_revolution / self._unit.per_revolution
        if (
            orientation == self._orientation
            or orientation == AngleOrientation.UNSPECIFIED
            or self._orientation == AngleOrientation.UNSPECIFIED
        ):
            return value
        quarter_turn = unit.per_revolution / 4
        return quarter_turn - value

    def to(self, unit: AngleUnit, orientation: AngleOrientation) -> "Angle":
        """Same angle, re-expressed in another unit and orientation."""
        if orientation == AngleOrientation.UNSPECIFIED:
            orientation = self._orientation
        return Angle(self.get_value(unit, orientation), unit, orientation)

    def wrap(self, unit: AngleUnit, orientation: AngleOrientation) -> float:
        """Value in ``unit``/``orientation`` wrapped to (-half turn, half turn]."""
        full = unit.per_revolution
        value = math.fmod(self.get_value(unit, orientation), full)
        if value > full / 2:
            value -= full
        elif value <= -full / 2:
            value += full
        return value

    @staticmethod
    def add(first: "Angle", second: "Angle", orientation: AngleOrientation) -> "Angle":
        total = first.get_value(AngleUnit.RADIANS, orientation) + second.get_value(
            AngleUnit.RADIANS, orientation
        )
        return Angle(total, AngleUnit.RADIANS, orientation)

    @staticmethod
    def difference(minuend: "Angle", subtrahend: "Angle", orientation: AngleOrientation) -> "Angle":
        delta = minuend.get_value(AngleUnit.RADIANS, orientation) - subtrahend.get_value(
            AngleUnit.RADIANS, orientation
        )
        return Angle(delta, AngleUnit.RADIANS, orientation)

    def get_x(self) -> float:
        """Cosine of the unit-circle angle."""
        return math.cos(self.get_value(AngleUnit.RADIANS, AngleOrientation.UNIT_CIRCLE))

    def get_y(self) -> float:
        """Sine of the unit-circle angle."""
        return math.sin(self.get_value(AngleUnit.RADIANS, AngleOrientation.UNIT_CIRCLE))

    def to_rect(self, radius: float) -> "Point":
        return Point(self.get_x() * radius, self.get_y() * radius)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Angle):
            return NotImplemented
        orientation = AngleOrientation.COMPASS_HEADING
        if AngleOrientation.UNSPECIFIED in (self._orientation, other._orientation):
            orientation = AngleOrientation.UNSPECIFIED
        delta = self.get_value(AngleUnit.RADIANS, orientation) - other.get_value(
            AngleUnit.RADIANS, orientation
        )
        delta = math.remainder(delta, 2 * math.pi)
        return abs(delta) < 1e-9

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Angle({self._value!r}, {self._unit}, {self._orientation})"

    def __str__(self) -> str:
        return f"{self._value:g} {self._unit.name[:3]}"


NORTH = Angle(0, AngleUnit.DEGREES, AngleOrientation.COMPASS_HEADING)
NORTH_EAST = Angle(45, AngleUnit.DEGREES, AngleOrientation.COMPASS_HEADING)
EAST = Angle(90, AngleUnit.DEGREES, AngleOrientation.COMPASS_HEADING)
SOUTH_EAST = Angle(135, AngleUnit.DEGREES, AngleOrientation.COMPASS_HEADING)
SOUTH = Angle(180, AngleUnit.DEGREES, AngleOrientation.COMPASS_HEADING)
SOUTH_WEST = Angle(225, AngleUnit.DEGREES, AngleOrientation.COMPASS_HEADING)
WEST = Angle(270, AngleUnit.DEGREES, AngleOrientation.COMPASS_HEADING)
NORTH_WEST = Angle(315, AngleUnit.DEGREES, AngleOrientation.COMPASS_HEADING)


@dataclass
class Point:
    """Cartesian position, also used as a plain 2-vector. Mutable in place."""

    x: float
    y: float

    @classmethod
    def from_polar(cls, radius: float, angle: Angle) -> "Point":
        return cls(radius * angle.get_x(), radius * angle.get_y())

    def translate(self, dx: float, dy: float) -> None:
        self.x += dx
        self.y += dy

    def set_location(self, x: float, y: float) -> None:
        self.x = x
        self.y = y

    def distance_sq(self, other: "Point") -> float:
        dx = other.x - self.x
        dy = other.y - self.y
        return dx * dx + dy * dy

    def distance(self, other: "Point") -> float:
        return math.sqrt(self.distance_sq(other))

    def as_tuple(self) -> Tuple[float, float]:
        return self.x, self.y

    def __str__(self) -> str:
        return f"({self.x:g}, {self.y:g})"


@dataclass(eq=False)
class Location(Point):
    """A Point with a facing direction; used for poses and wheel mountings."""

    direction: Angle = field(default_factory=lambda: NORTH)

    @classmethod
    def origin(cls) -> "Location":
        return cls(0.0, 0.0, NORTH)

    def set_origin(self, center: "Location") -> "Location":
        """Express this location in the reference frame of ``center``.

        The frame is translated to ``center`` and rotated by
        ``-center.direction``, so a point directly ahead of ``center`` ends up
        on the +y axis.

        Args:
            center: Pose of the new frame's origin, in this location's frame.

        Returns:
            A new Location relative to ``center``.
        """
        dx = self.x - center.x
        dy = self.y - center.y
        radius = math.hypot(dx, dy)
        heading = center.direction.get_value(AngleUnit.RADIANS, AngleOrientation.COMPASS_HEADING)
        theta = math.atan2(dy, dx) + heading
        direction = Angle.difference(self.direction, center.direction, AngleOrientation.COMPASS_HEADING)
        return Location(radius * math.cos(theta), radius * math.sin(theta), direction)

    def from_origin(self, center: "Location") -> "Location":
        """Inverse of ``set_origin``: map a ``center``-relative location back out."""
        radius = math.hypot(self.x, self.y)
        heading = center.direction.get_value(AngleUnit.RADIANS, AngleOrientation.COMPASS_HEADING)
        theta = math.atan2(self.y, self.x) - heading
        direction = Angle.add(self.direction, center.direction, AngleOrientation.COMPASS_HEADING)
        return Location(
            center.x + radius * math.cos(theta), center.y + radius * math.sin(theta), direction
        )

    def copy(self) -> "Location":
        return Location(self.x, self.y, self.direction)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Location):
            return NotImplemented
        return self.x == other.x and self.y == other.y and self.direction == other.direction

    def __str__(self) -> str:
        return f"{self.direction} @ {Point.__str__(self)}"
