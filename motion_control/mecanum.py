"""Mecanum drive kinematics.

A mecanum base can translate in any direction while turning. For a compass
travel direction x the diagonal wheel pairs run at

    a = cos(x - π/4)   (front left, back right)
    b = cos(x + π/4)   (back left, front right)

and a turn adds +t to the left side and -t to the right side. The methods
below only differ in how they scale a, b and t into motor powers.

``MecanumPoseDrive`` wraps a controller and a dead-wheel pose estimator into a
``PoseTargetDrive`` so ``PoseTargetFollower`` can drive it.
"""

import logging
import math
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from .config import (
    MAX_WHEEL_VELOCITY,
    MECANUM_BOTH_SPEED_TOLERANCE,
    MECANUM_HEADING_KP,
    MECANUM_TRANSLATION_KP,
)
from .controllers import PidController
from .geometry import Angle, AngleOrientation, AngleUnit, Location, Point
from .interfaces import ClosedLoopController, HolonomicDrive
from .odometry import PoseEstimator

logger = logging.getLogger(__name__)


class TranslationMethod(Enum):
    """Scaling of a pure translation."""

    CONSTANT_POWER = "constant_power"
    """Sum of the diagonal powers equals the speed."""

    CONSTANT_SPEED = "constant_speed"
    """Wheel powers are the raw components times the speed."""

    MAX_SPEED = "max_speed"
    """Largest wheel runs at full power regardless of speed."""


class TranslTurnMethod(Enum):
    """Split between translation and turning in ``spin_drive``."""

    CONSTANT_TRANSLATION_SPEED = "constant_translation_speed"
    EQUAL_POWERS = "equal_powers"
    EQUAL_SPEED_RATIOS = "equal_speed_ratios"
    CONSTANT_BOTH_SPEED = "constant_both_speed"


def _diagonal_components(angle: Angle) -> Tuple[float, float]:
    x = math.fmod(angle.get_value(AngleUnit.RADIANS, AngleOrientation.COMPASS_HEADING), 2 * math.pi)
    if x < 0:
        x += 2 * math.pi
    return math.cos(x - math.pi / 4), math.cos(x + math.pi / 4)


class MecanumController:
    """Turns translation/turn requests into four mecanum wheel powers.

    Args:
        drive: Holonomic drive receiving the wheel powers.
    """

    def __init__(self, drive: HolonomicDrive):
        self.drive = drive
        self.last_powers: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)

    def wheelbase_width(self) -> float:
        return self.drive.wheelbase_width()

    def set_wheel_powers(
        self, front_left: float, back_left: float, front_right: float, back_right: float
    ) -> None:
        self.last_powers = (front_left, back_left, front_right, back_right)
        self.drive.set_wheel_powers(front_left, back_left, front_right, back_right)

    def translate(
        self, angle: Angle, speed: float, method: TranslationMethod = TranslationMethod.CONSTANT_SPEED
    ) -> None:
        """Drive in the robot-relative direction ``angle`` without turning.

        Args:
            angle: Travel direction relative to the robot's front.
            speed: Requested speed in [0, 1]; ignored by MAX_SPEED.
            method: How the diagonal components are scaled.
        """
        a, b = _diagonal_components(angle)
        if method is TranslationMethod.CONSTANT_POWER:
            scale = speed / (abs(a) + abs(b))
        elif method is TranslationMethod.CONSTANT_SPEED:
            scale = speed
        else:
            scale = 1 / max(abs(a), abs(b))
        a *= scale
        b *= scale
        self.set_wheel_powers(a, b, b, a)

    def translate_xy(
        self, x: float, y: float, method: TranslationMethod = TranslationMethod.CONSTANT_SPEED
    ) -> None:
        """Translate along the robot-frame vector (x, y); its length is the speed."""
        self.translate(Angle.from_xy(x, y), math.hypot(x, y), method)

    def rotate(self, power: float) -> None:
        """Turn in place; positive power turns clockwise."""
        self.set_wheel_powers(power, power, -power, -power)

    def spin_drive(
        self,
        angle: Angle,
        speed: float,
        turn: float,
        method: TranslTurnMethod = TranslTurnMethod.EQUAL_POWERS,
    ) -> None:
        """Translate toward ``angle`` while turning.

        Args:
            angle: Travel direction relative to the robot's front.
            speed: Translation speed.
            turn: Turn rate; positive is clockwise.
            method: How speed and turn share the available power.

        Raises:
            ValueError: For CONSTANT_BOTH_SPEED when speed + turn is not 1.
        """
        a, b = _diagonal_components(angle)
        if method is TranslTurnMethod.CONSTANT_TRANSLATION_SPEED:
            scale = speed
            turn_scale = 1 - max(abs(a), abs(b)) * speed
        elif method is TranslTurnMethod.EQUAL_POWERS:
            scale = speed / (abs(a) + abs(b))
            turn_scale = 0.5
        elif method is TranslTurnMethod.EQUAL_SPEED_RATIOS:
            largest = max(abs(turn), abs(speed))
            if largest == 0:
                self.set_wheel_powers(0.0, 0.0, 0.0, 0.0)
                return
            turn_scale = abs(turn) * largest / (abs(turn) + abs(speed))
            scale = largest - turn_scale
            factor = 1 - (1 - max(abs(a), abs(b))) * scale
            turn_scale /= factor
            scale /= factor
            # turn_scale already carries |turn|; keep only its sign
            turn = math.copysign(1.0, turn)
        else:
            if abs(speed + turn - 1) > MECANUM_BOTH_SPEED_TOLERANCE:
                raise ValueError(
                    f"Speed and turn must add to one for CONSTANT_BOTH_SPEED, got {speed} + {turn}"
                )
            scale = speed
            turn_scale = turn
        a *= scale
        b *= scale
        turn_power = turn * turn_scale
        self.set_wheel_powers(a + turn_power, b + turn_power, b - turn_power, a - turn_power)

    def orbit(self, center: Point, power: float = 1.0) -> None:
        """Circle around ``center`` (robot frame) while facing it.

        The faster of translation and turning runs at ``power``; the other
        is scaled by the ratio of orbit radius to wheelbase width.
        """
        radius = math.hypot(center.x, center.y)
        tangent = Angle.from_xy(center.y, -center.x)
        width = self.wheelbase_width()
        if width > radius:
            self.spin_drive(tangent, power * radius / width, power, TranslTurnMethod.EQUAL_SPEED_RATIOS)
        else:
            self.spin_drive(tangent, power, power * width / radius, TranslTurnMethod.EQUAL_SPEED_RATIOS)


class MecanumPoseDrive:
    """``PoseTargetDrive`` over a mecanum base localized by dead wheels.

    Each ``move_toward_location`` call updates the pose estimator once, then
    translates toward the target while turning to its heading. The
    translation command is the requested velocity as a fraction of
    ``max_wheel_velocity`` plus a correction on the remaining distance; it
    takes priority, and turning gets the power left over.

    Args:
        controller: Mecanum kinematics for the drive.
        estimator: Pose estimator fed by the base's dead wheels.
        translation_controller: Correction on distance to the target (inches).
            Defaults to a P controller.
        heading_controller: Correction on heading error (degrees). Defaults
            to a P controller.
        max_wheel_velocity: Wheel speed at full power.
        clock: Time source for the default controllers.
    """

    def __init__(
        self,
        controller: MecanumController,
        estimator: PoseEstimator,
        translation_controller: Optional[ClosedLoopController] = None,
        heading_controller: Optional[ClosedLoopController] = None,
        max_wheel_velocity: float = MAX_WHEEL_VELOCITY,
        clock: Optional[Callable[[], float]] = None,
    ):
        if not max_wheel_velocity > 0:
            raise ValueError(f"max_wheel_velocity must be positive, got {max_wheel_velocity}")
        pid_kwargs = {} if clock is None else {"clock": clock}
        self.controller = controller
        self.estimator = estimator
        self.translation_controller = translation_controller or PidController(
            MECANUM_TRANSLATION_KP, **pid_kwargs
        )
        self.heading_controller = heading_controller or PidController(MECANUM_HEADING_KP, **pid_kwargs)
        self.max_wheel_velocity = max_wheel_velocity
        self._diagnostics: Dict[str, float] = {}

    def location(self) -> Location:
        return self.estimator.get_pose()

    def move_toward_location(self, target: Location, velocity: float) -> None:
        pose = self.estimator.update()
        relative = target.set_origin(pose)
        distance = math.hypot(relative.x, relative.y)

        if distance == 0:
            speed = 0.0
            direction = Angle(0.0)
        else:
            direction = Angle.from_xy(relative.x, relative.y)
            a, b = _diagonal_components(direction)
            # Unscaled diagonal components move the body at 1/√2 of wheel speed
            feedforward = math.sqrt(2) * abs(velocity) / self.max_wheel_velocity
            correction = self.translation_controller.output(0.0, distance)
            speed = min(1 / max(abs(a), abs(b)), max(0.0, feedforward + correction))

        heading_error = relative.direction.wrap(AngleUnit.DEGREES, AngleOrientation.COMPASS_HEADING)
        turn = self.heading_controller.output(0.0, heading_error)
        turn = max(-1.0, min(1.0, turn))

        self.controller.spin_drive(direction, speed, turn, TranslTurnMethod.CONSTANT_TRANSLATION_SPEED)
        logger.debug(
            f"Mecanum toward {target}: distance={distance:.3f} speed={speed:.3f} "
            f"heading_error={heading_error:.2f} turn={turn:.3f}"
        )
        self._diagnostics = {
            "distance": distance,
            "speed": speed,
            "heading_error": heading_error,
            "turn": turn,
        }

    def get_diagnostics(self) -> Dict[str, float]:
        return dict(self._diagnostics)
