"""Hardware boundary of the motion control stack.

The core never talks to devices directly. Drives, sensors and feedback
controllers are passed in as objects satisfying these protocols, one
instance per robot session; the simulation module provides in-process
implementations.
"""

from typing import Protocol, Sequence

from .geometry import Location


class DifferentialDrive(Protocol):
    """Tank-style drive: one power per side, encoders on both sides."""

    def set_left_right_power(self, left: float, right: float) -> None:
        ...

    def left_encoder(self) -> int:
        ...

    def right_encoder(self) -> int:
        ...

    def wheelbase_width(self) -> float:
        ...

    def wheel_diameter(self) -> float:
        ...

    def ticks_per_revolution(self) -> float:
        ...


class HolonomicDrive(Protocol):
    """Four-wheel mecanum drive."""

    def set_wheel_powers(
        self, front_left: float, back_left: float, front_right: float, back_right: float
    ) -> None:
        ...

    def wheelbase_width(self) -> float:
        ...


class OdometryWheelSet(Protocol):
    """Non-driven encoder wheels used for dead reckoning.

    ``encoder_count`` returns the cumulative tick count of one wheel;
    per-tick deltas are taken by the estimator against its own baselines.
    """

    def wheel_locations(self) -> Sequence[Location]:
        """Mounting position and rolling direction of each wheel, robot frame."""
        ...

    def encoder_count(self, wheel_id: int) -> int:
        ...

    def distance_per_tick(self) -> float:
        ...


class HeadingSensor(Protocol):
    def heading_degrees(self) -> float:
        """Compass heading in degrees (0 = +y, clockwise positive)."""
        ...

    def is_working(self) -> bool:
        ...


class ClosedLoopController(Protocol):
    def output(self, current: float, target: float) -> float:
        """Correction for the given position and target; not clamped."""
        ...


class PoseTargetDrive(Protocol):
    """A drive that can steer itself toward a field pose (e.g. mecanum)."""

    def location(self) -> Location:
        ...

    def move_toward_location(self, target: Location, velocity: float) -> None:
        ...
