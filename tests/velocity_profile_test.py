"""
Tests for velocity_profile.py: jerk-limited speed curves.

Run with:
    pytest tests/velocity_profile_test.py -v
"""

import numpy as np
import pytest

from motion_control.velocity_profile import VelocityLimits, VelocityProfile


def _sample_times(profile, count=400):
    return np.linspace(0.0, profile.total_time, count)


# ============================================================================
# Test: Profile shapes
# ============================================================================


class TestCruiseReached:
    """36 in at 24 in/s, 40 in/s², 200 in/s³ saturates acceleration and cruises"""

    @pytest.fixture
    def profile(self):
        return VelocityProfile(36, 24, 40, 200)

    def test_total_time(self, profile):
        assert profile.total_time == pytest.approx(2.3)
        assert len(profile.breakpoints) == 8

    def test_speed(self, profile):
        assert profile.get(0) == pytest.approx(0)
        assert profile.get(1.0) == pytest.approx(24)
        assert profile.get(profile.total_time) == pytest.approx(0, abs=1e-9)

    def test_zero_outside_run(self, profile):
        assert profile.get(-1) == pytest.approx(0)
        assert profile.get(10) == pytest.approx(0, abs=1e-9)

    def test_covers_distance(self, profile):
        distance = profile.integral()
        assert distance.get(profile.total_time) == pytest.approx(36)
        assert distance.get(100) == pytest.approx(36)

    def test_acceleration_bounded(self, profile):
        acceleration = profile.derivative()
        values = [abs(acceleration.get(t)) for t in _sample_times(profile)]
        assert max(values) <= 40 + 1e-9

    def test_jerk_bounded(self, profile):
        jerk = profile.derivative().derivative()
        corners = [t for t, _ in profile.breakpoints]
        for t in _sample_times(profile):
            if min(abs(t - c) for c in corners) > 1e-6:
                assert abs(jerk.get(t)) <= 200 + 1e-9

    def test_speed_never_exceeds_cruise(self, profile):
        assert max(profile.get(t) for t in _sample_times(profile)) <= 24 + 1e-9


class TestCruiseNotReached:
    def test_jerk_triangle(self):
        # below 2a³/j² = 3.2 in the acceleration never saturates
        profile = VelocityProfile(1, 24, 40, 200)
        assert profile.total_time == pytest.approx((32 / 200) ** (1 / 3))
        assert len(profile.breakpoints) == 4
        assert profile.integral().get(profile.total_time) == pytest.approx(1)

    def test_acceleration_trapezoid(self):
        profile = VelocityProfile(10, 24, 40, 200)
        assert len(profile.breakpoints) == 6
        assert profile.integral().get(profile.total_time) == pytest.approx(10)
        peak = max(profile.get(t) for t in _sample_times(profile))
        assert peak < 24

    def test_unsaturated_ramp_with_cruise(self):
        profile = VelocityProfile(100, 24, 100, 200)
        assert len(profile.breakpoints) == 6
        assert profile.integral().get(profile.total_time) == pytest.approx(100)


class TestReverse:
    def test_negative_distance_mirrors(self):
        forward = VelocityProfile(36, 24, 40, 200)
        reverse = VelocityProfile(-36, -24, 40, 200)
        assert reverse.total_time == pytest.approx(forward.total_time)
        assert reverse.get(1.0) == pytest.approx(-24)
        assert reverse.integral().get(reverse.total_time) == pytest.approx(-36)

    def test_from_limits(self):
        profile = VelocityProfile.from_limits(-36, VelocityLimits())
        assert profile == VelocityProfile(-36, -24, 40, 200)


# ============================================================================
# Test: Validation and edge cases
# ============================================================================


class TestValidation:
    def test_zero_distance(self):
        profile = VelocityProfile(0)
        assert profile.total_time == 0
        assert profile.breakpoints == ()
        assert profile.get(1) == 0

    @pytest.mark.parametrize(
        "args",
        [
            (10, -24, 40, 200),
            (10, 0, 40, 200),
            (10, 24, 0, 200),
            (10, 24, 40, -1),
            (float("inf"), 24, 40, 200),
        ],
    )
    def test_invalid_arguments(self, args):
        with pytest.raises(ValueError):
            VelocityProfile(*args)

    @pytest.mark.parametrize("field", ["cruise_velocity", "max_acceleration", "max_jerk", "accuracy"])
    def test_limits_must_be_positive(self, field):
        with pytest.raises(ValueError):
            VelocityLimits(**{field: 0.0})

    def test_unhashable(self):
        with pytest.raises(TypeError):
            hash(VelocityProfile(10))
