"""
Tests for follower.py: turn compensation, the tank follower and the
pose-target follower, single ticks against stubs and full simulated runs.

Run with:
    pytest tests/follower_test.py -v
    pytest tests/follower_test.py -v -k "simulated"
"""

import math

import pytest

from motion_control.controllers import PidController
from motion_control.follower import (
    FollowerConfig,
    FollowerState,
    PoseTargetFollower,
    TrajectoryFollower,
    compensate_turn,
)
from motion_control.geometry import NORTH, AngleOrientation, AngleUnit, Location
from motion_control.mecanum import MecanumController, MecanumPoseDrive
from motion_control.odometry import PoseEstimator
from motion_control.simulation import SimulatedDeadWheels, run_simulation
from motion_control.spline import make_spline


def _compass(pose):
    return pose.direction.wrap(AngleUnit.DEGREES, AngleOrientation.COMPASS_HEADING)


# ============================================================================
# Test: compensate_turn
# ============================================================================


class TestCompensateTurn:
    @pytest.mark.parametrize(
        "gain, expected",
        [(1.0, (1.0, 0.5)), (2.0, (1.0, 0.2)), (0.0, (1.0, 1.0))],
    )
    def test_smaller_side_moves(self, gain, expected):
        assert compensate_turn(1.0, 0.5, gain) == pytest.approx(expected)

    def test_right_side_larger(self):
        assert compensate_turn(0.5, 1.0, 2.0) == pytest.approx((0.2, 1.0))

    def test_straight_split_unchanged(self):
        assert compensate_turn(1.0, 1.0, 3.0) == (1.0, 1.0)

    def test_spin_in_place_unchanged(self):
        assert compensate_turn(1.0, -1.0, 2.0) == pytest.approx((1.0, -1.0))

    @pytest.mark.parametrize("left, right", [(1.0, -1.0), (-1.0, 1.0), (0.4, -0.4), (0.0, 0.0)])
    @pytest.mark.parametrize("gain", [0.5, 1.0, 3.0])
    def test_equal_and_opposite_split_kept(self, left, right, gain):
        assert compensate_turn(left, right, gain) == (left, right)

    @pytest.mark.parametrize("left, right", [(1.0, 0.5), (0.5, 1.0), (-0.8, 0.3), (0.2, -0.9)])
    def test_unit_gain_is_identity(self, left, right):
        assert compensate_turn(left, right, 1.0) == pytest.approx((left, right))

    def test_negative_larger_side(self):
        """Reversing the first case flips both outputs"""
        assert compensate_turn(-1.0, -0.5, 2.0) == pytest.approx((-1.0, -0.2))


# ============================================================================
# Test: FollowerConfig
# ============================================================================


class TestFollowerConfig:
    def test_defaults_valid(self):
        config = FollowerConfig()
        total = config.portion_next_power + config.portion_encoder_adj + config.portion_gyro_adj
        assert total == pytest.approx(1)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"portion_next_power": 0.7},
            {"min_move_power": 0.0},
            {"min_move_power": 1.0},
            {"integral_samples": 0},
            {"distance_accuracy": 0.0},
            {"max_wheel_velocity": -1.0},
            {"min_parameter_step": 0.0},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            FollowerConfig(**kwargs)


# ============================================================================
# Test: TrajectoryFollower single ticks
# ============================================================================


class TestTrajectoryFollowerTicks:
    """One tick at a time against a recording drive"""

    @pytest.fixture
    def follower(self, straight_path, recording_tank, clock):
        return TrajectoryFollower(straight_path, recording_tank, clock=clock)

    def test_initial_state(self, follower):
        assert follower.state is FollowerState.NOT_STARTED
        assert not follower.is_finished()
        assert follower.total_distance == pytest.approx(24)
        assert follower.profile.total_time == pytest.approx(1.8)

    def test_rails_half_a_wheelbase_out(self, follower):
        assert follower.rail_a.position(0.5).x == pytest.approx(-7)
        assert follower.rail_b.position(0.5).x == pytest.approx(7)

    def test_first_tick_at_min_power(self, follower, recording_tank):
        follower.follow()
        assert follower.state is FollowerState.RUNNING
        # prediction 1 weighted 0.6, no correction, scaled by min power 0.15
        assert recording_tank.commands == [pytest.approx((0.09, 0.09))]
        diagnostics = follower.get_diagnostics()
        assert diagnostics["gain"] == pytest.approx(0.15)
        assert diagnostics["time"] == 0.0

    def test_gain_follows_profile(self, follower, recording_tank, clock):
        follower.follow()
        clock.advance(1.0)
        follower.follow()
        # cruise speed 24 of 48
        assert follower.get_diagnostics()["gain"] == pytest.approx(0.5)

    def test_finishes_when_encoders_pass_length(self, follower, recording_tank):
        recording_tank.left = recording_tank.right = 10_000
        follower.follow()
        assert follower.is_finished()
        assert follower.state is FollowerState.FINISHED
        assert recording_tank.commands[-1] == (0.0, 0.0)

    def test_follow_after_finish_is_noop(self, follower, recording_tank):
        recording_tank.left = recording_tank.right = 10_000
        follower.follow()
        count = len(recording_tank.commands)
        follower.follow()
        assert len(recording_tank.commands) == count

    def test_broken_gyro_falls_back_to_encoders(self, straight_path, recording_tank, clock):
        class BrokenGyro:
            def heading_degrees(self):
                return 999.0

            def is_working(self):
                return False

        follower = TrajectoryFollower(straight_path, recording_tank, heading_sensor=BrokenGyro(), clock=clock)
        follower.follow()
        assert follower.get_diagnostics()["heading"] == pytest.approx(0.0)

    def test_broken_gyro_falls_back_to_estimator(self, straight_path, recording_tank, clock):
        class BrokenGyro:
            def heading_degrees(self):
                return 999.0

            def is_working(self):
                return False

        class FixedEstimator:
            updates = 0

            def update(self):
                self.updates += 1

            def heading_degrees(self):
                return 12.5

        estimator = FixedEstimator()
        follower = TrajectoryFollower(
            straight_path, recording_tank, heading_sensor=BrokenGyro(), pose_estimator=estimator, clock=clock
        )
        follower.follow()
        assert follower.get_diagnostics()["heading"] == pytest.approx(12.5)
        assert estimator.updates == 1

    def test_injected_controllers(self, straight_path, recording_tank, clock):
        created = []

        def factory():
            controller = PidController(0.0, clock=clock)
            created.append(controller)
            return controller

        config = FollowerConfig(encoder_controller_factory=factory, heading_controller_factory=factory)
        follower = TrajectoryFollower(straight_path, recording_tank, config=config, clock=clock)
        assert len(created) == 3
        assert follower.heading_controller is created[2]

    def test_str(self, follower):
        assert str(follower).startswith("TrajectoryFollower: Path = (")


# ============================================================================
# Test: Simulated runs
# ============================================================================


class TestSimulatedTankRuns:
    """Full runs against the ideal tank model"""

    def test_straight_with_gyro(self, straight_path, tank_drive, gyro, clock):
        follower = TrajectoryFollower(straight_path, tank_drive, heading_sensor=gyro, clock=clock)
        run_simulation(follower, tank_drive, clock)
        pose = tank_drive.pose()
        assert follower.is_finished()
        assert pose.y == pytest.approx(24, abs=0.5)
        assert pose.x == pytest.approx(0, abs=0.5)
        assert _compass(pose) == pytest.approx(0, abs=2)
        assert (tank_drive.left_power, tank_drive.right_power) == (0.0, 0.0)

    def test_straight_with_encoder_heading(self, straight_path, tank_drive, clock):
        follower = TrajectoryFollower(straight_path, tank_drive, clock=clock)
        run_simulation(follower, tank_drive, clock)
        assert tank_drive.pose().y == pytest.approx(24, abs=0.5)

    def test_straight_with_pose_estimator(self, straight_path, tank_drive, clock):
        estimator = PoseEstimator(SimulatedDeadWheels(tank_drive))
        follower = TrajectoryFollower(straight_path, tank_drive, pose_estimator=estimator, clock=clock)
        run_simulation(follower, tank_drive, clock)
        assert tank_drive.pose().y == pytest.approx(24, abs=0.5)
        assert estimator.get_pose().y == pytest.approx(tank_drive.pose().y, abs=0.1)

    def test_backward(self, tank_drive, gyro, clock):
        path = make_spline(Location(0, 0, NORTH), -24, Location(0, -24, NORTH), -24)
        follower = TrajectoryFollower(path, tank_drive, heading_sensor=gyro, clock=clock)
        run_simulation(follower, tank_drive, clock)
        pose = tank_drive.pose()
        assert follower.is_finished()
        assert pose.y == pytest.approx(-24, abs=0.5)
        assert _compass(pose) == pytest.approx(0, abs=2)

    def test_curved(self, curved_path, tank_drive, gyro, clock):
        follower = TrajectoryFollower(curved_path, tank_drive, heading_sensor=gyro, clock=clock)
        ticks = run_simulation(follower, tank_drive, clock)
        pose = tank_drive.pose()
        assert follower.is_finished()
        assert ticks > 0
        assert pose.x > 6
        assert math.hypot(pose.x - 12, pose.y - 48) < 6


# ============================================================================
# Test: PoseTargetFollower
# ============================================================================


class RecordingPoseDrive:
    def __init__(self):
        self.targets = []

    def location(self):
        return Location.origin()

    def move_toward_location(self, target, velocity):
        self.targets.append((target, velocity))


class TestPoseTargetFollower:
    def test_aims_along_path(self, straight_path, clock):
        drive = RecordingPoseDrive()
        follower = PoseTargetFollower(straight_path, drive, clock=clock)
        follower.follow()
        clock.advance(1.0)
        follower.follow()
        target, velocity = drive.targets[-1]
        assert velocity == pytest.approx(24)
        assert target.y > follower.get_diagnostics()["distance"]
        assert target.direction == NORTH

    def test_finishes_on_profile_time(self, straight_path, clock):
        drive = RecordingPoseDrive()
        follower = PoseTargetFollower(straight_path, drive, clock=clock)
        follower.follow()
        assert not follower.is_finished()
        clock.advance(follower.profile.total_time)
        assert follower.is_finished()
        follower.follow()
        target, velocity = drive.targets[-1]
        assert velocity == 0.0
        assert target.y == pytest.approx(24)
        assert follower.state is FollowerState.FINISHED

    def test_backward_path_faces_away(self, clock):
        path = make_spline(Location(0, 0, NORTH), -24, Location(0, -24, NORTH), -24)
        drive = RecordingPoseDrive()
        follower = PoseTargetFollower(path, drive, clock=clock)
        follower.follow()
        target, _ = drive.targets[-1]
        assert target.direction == NORTH

    def test_simulated_mecanum_run(self, straight_path, mecanum_drive, clock):
        estimator = PoseEstimator(SimulatedDeadWheels(mecanum_drive))
        pose_drive = MecanumPoseDrive(MecanumController(mecanum_drive), estimator, clock=clock)
        follower = PoseTargetFollower(straight_path, pose_drive, clock=clock)
        run_simulation(follower, mecanum_drive, clock)
        pose = mecanum_drive.pose()
        assert follower.is_finished()
        assert pose.y == pytest.approx(24, abs=1.5)
        assert pose.x == pytest.approx(0, abs=0.5)
