"""
Tests for mecanum.py: wheel power kinematics and the pose-target drive.

Run with:
    pytest tests/mecanum_test.py -v
"""

import math

import pytest

from motion_control.geometry import EAST, NORTH, Location, Point
from motion_control.mecanum import (
    MecanumController,
    MecanumPoseDrive,
    TranslationMethod,
    TranslTurnMethod,
)
from motion_control.odometry import PoseEstimator
from motion_control.simulation import SimulatedDeadWheels

HALF_ROOT_TWO = math.sqrt(2) / 2


@pytest.fixture
def controller(recording_holonomic):
    return MecanumController(recording_holonomic)


# ============================================================================
# Test: Translation
# ============================================================================


class TestTranslate:
    """Powers are (front left, back left, front right, back right)"""

    def test_constant_speed_north(self, controller, recording_holonomic):
        controller.translate(NORTH, 1.0, TranslationMethod.CONSTANT_SPEED)
        assert recording_holonomic.powers == pytest.approx((HALF_ROOT_TWO,) * 4)

    def test_max_speed_north(self, controller, recording_holonomic):
        controller.translate(NORTH, 0.3, TranslationMethod.MAX_SPEED)
        assert recording_holonomic.powers == pytest.approx((1, 1, 1, 1))

    def test_max_speed_east(self, controller, recording_holonomic):
        controller.translate(EAST, 1.0, TranslationMethod.MAX_SPEED)
        assert recording_holonomic.powers == pytest.approx((1, -1, -1, 1))

    def test_constant_power(self, controller, recording_holonomic):
        controller.translate(NORTH, 1.0, TranslationMethod.CONSTANT_POWER)
        assert recording_holonomic.powers == pytest.approx((0.5,) * 4)

    def test_constant_power_sideways(self, controller, recording_holonomic):
        controller.translate(EAST, 1.0, TranslationMethod.CONSTANT_POWER)
        assert recording_holonomic.powers == pytest.approx((0.5, -0.5, -0.5, 0.5))

    def test_translate_xy(self, controller, recording_holonomic):
        controller.translate_xy(0.0, 0.5)
        assert recording_holonomic.powers == pytest.approx((0.5 * HALF_ROOT_TWO,) * 4)

    def test_rotate(self, controller, recording_holonomic):
        controller.rotate(0.5)
        assert recording_holonomic.powers == (0.5, 0.5, -0.5, -0.5)
        assert controller.last_powers == recording_holonomic.powers


# ============================================================================
# Test: Translation with turning
# ============================================================================


class TestSpinDrive:
    def test_equal_powers(self, controller, recording_holonomic):
        controller.spin_drive(NORTH, 1.0, 0.4, TranslTurnMethod.EQUAL_POWERS)
        assert recording_holonomic.powers == pytest.approx((0.7, 0.7, 0.3, 0.3))

    def test_constant_translation_speed(self, controller, recording_holonomic):
        controller.spin_drive(NORTH, 1.0, 1.0, TranslTurnMethod.CONSTANT_TRANSLATION_SPEED)
        turn = 1 - HALF_ROOT_TWO
        expected = (HALF_ROOT_TWO + turn,) * 2 + (HALF_ROOT_TWO - turn,) * 2
        assert recording_holonomic.powers == pytest.approx(expected)

    def test_equal_speed_ratios(self, controller, recording_holonomic):
        controller.spin_drive(NORTH, 1.0, 1.0, TranslTurnMethod.EQUAL_SPEED_RATIOS)
        assert recording_holonomic.powers == pytest.approx((1.0, 1.0, -0.17157, -0.17157), abs=1e-4)

    def test_equal_speed_ratios_at_rest(self, controller, recording_holonomic):
        controller.spin_drive(NORTH, 0.0, 0.0, TranslTurnMethod.EQUAL_SPEED_RATIOS)
        assert recording_holonomic.powers == (0.0, 0.0, 0.0, 0.0)

    def test_constant_both_speed(self, controller, recording_holonomic):
        controller.spin_drive(NORTH, 0.5, 0.5, TranslTurnMethod.CONSTANT_BOTH_SPEED)
        assert recording_holonomic.powers == pytest.approx((0.6036, 0.6036, 0.1036, 0.1036), abs=1e-4)

    def test_constant_both_speed_must_sum_to_one(self, controller):
        with pytest.raises(ValueError):
            controller.spin_drive(NORTH, 0.5, 0.6, TranslTurnMethod.CONSTANT_BOTH_SPEED)


class TestOrbit:
    def test_center_on_robot_spins_in_place(self, controller, recording_holonomic):
        controller.orbit(Point(0, 0))
        assert recording_holonomic.powers == pytest.approx((1, 1, -1, -1))

    def test_power_scales_spin(self, controller, recording_holonomic):
        controller.orbit(Point(0, 0), power=0.5)
        assert recording_holonomic.powers == pytest.approx((0.5, 0.5, -0.5, -0.5))

    def test_distant_center(self, controller, recording_holonomic):
        """Radius twice the wheelbase: translation at full ratio, turning at half"""
        controller.orbit(Point(0, 28))
        assert recording_holonomic.powers == pytest.approx((1.0, -0.17157, -1.0, 0.17157), abs=1e-4)


# ============================================================================
# Test: MecanumPoseDrive
# ============================================================================


class TestMecanumPoseDrive:
    @pytest.fixture
    def pose_drive(self, controller, mecanum_drive, clock):
        estimator = PoseEstimator(SimulatedDeadWheels(mecanum_drive))
        return MecanumPoseDrive(controller, estimator, clock=clock)

    def test_drives_toward_target(self, pose_drive, recording_holonomic):
        pose_drive.move_toward_location(Location(0, 10, NORTH), 24.0)
        # feedforward √2·24/48 plus 0.05·10, times cos(π/4)
        assert recording_holonomic.powers == pytest.approx((0.85355,) * 4, abs=1e-4)
        diagnostics = pose_drive.get_diagnostics()
        assert diagnostics["distance"] == pytest.approx(10)
        assert diagnostics["turn"] == pytest.approx(0)

    def test_turns_toward_target_heading(self, pose_drive, recording_holonomic):
        pose_drive.move_toward_location(Location(0, 0, EAST), 0.0)
        assert recording_holonomic.powers == pytest.approx((1, 1, -1, -1))
        assert pose_drive.get_diagnostics()["heading_error"] == pytest.approx(90)

    def test_location_from_estimator(self, pose_drive):
        assert pose_drive.location() == Location.origin()

    def test_invalid_max_velocity(self, controller, mecanum_drive):
        estimator = PoseEstimator(SimulatedDeadWheels(mecanum_drive))
        with pytest.raises(ValueError):
            MecanumPoseDrive(controller, estimator, max_wheel_velocity=0)
