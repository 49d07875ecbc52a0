"""
Tests for spline.py: Hermite blends, quintic interpolation and arc length.

Run with:
    pytest tests/spline_test.py -v
    pytest tests/spline_test.py -v -k "quintic"
"""

import math

import numpy as np
import pytest

from motion_control.errors import DomainError
from motion_control.functions import IDENTITY
from motion_control.geometry import EAST, NORTH, AngleOrientation, AngleUnit, Location, Point
from motion_control.spline import (
    ParametricCurve,
    generate_quintic_interpolator,
    generate_quintic_spline,
    make_auto_spline,
    make_spline,
)


# ============================================================================
# Test: Hermite blend
# ============================================================================


class TestMakeSpline:
    """Two-waypoint splines"""

    def test_straight_path_is_linear(self, straight_path):
        point = straight_path.position(0.5)
        assert point.x == pytest.approx(0, abs=1e-9)
        assert point.y == pytest.approx(12)

    def test_endpoints(self, curved_path):
        start = curved_path.position(0)
        end = curved_path.position(1)
        assert (start.x, start.y) == pytest.approx((0, 0), abs=1e-9)
        assert (end.x, end.y) == pytest.approx((12, 48))

    def test_end_tangents(self):
        path = make_spline(Location(0, 0, NORTH), 10, Location(20, 20, EAST), 30)
        dx = path.x.derivative()
        dy = path.y.derivative()
        assert (dx.get(0), dy.get(0)) == pytest.approx((0, 10), abs=1e-9)
        assert (dx.get(1), dy.get(1)) == pytest.approx((30, 0), abs=1e-9)

    def test_heading_follows_tangent(self, straight_path):
        assert straight_path.position_and_heading(0.3).direction == NORTH

    def test_direction_flags(self):
        forward = make_spline(Location(0, 0, NORTH), 5, Location(0, 10, NORTH), 5)
        backward = make_spline(Location(0, 0, NORTH), -5, Location(0, -10, NORTH), -5)
        assert forward.goes_forward()
        assert not backward.goes_forward()

    def test_zero_scales_are_forward(self):
        path = make_spline(Location(0, 0, NORTH), 0, Location(3, 4, NORTH), 0)
        assert path.goes_forward()
        assert path.length(20) == pytest.approx(5, rel=1e-3)

    def test_opposite_scales_rejected(self):
        with pytest.raises(ValueError):
            make_spline(Location(0, 0, NORTH), 5, Location(0, 10, NORTH), -5)


class TestMakeAutoSpline:
    def test_aligned_waypoints_use_half_chord(self):
        path = make_auto_spline(Location(0, 0, NORTH), Location(0, 10, NORTH))
        assert path.y.derivative().get(0) == pytest.approx(5)
        assert path.y.derivative().get(1) == pytest.approx(5)

    def test_coincident_waypoints(self):
        with pytest.raises(ValueError):
            make_auto_spline(Location(1, 1, NORTH), Location(1, 1, EAST))


# ============================================================================
# Test: ParametricCurve
# ============================================================================


class TestArcLength:
    """Distance and parameter tables"""

    def test_length(self, straight_path):
        assert straight_path.length(10) == pytest.approx(24)

    def test_parameter_at_distance(self, straight_path):
        assert straight_path.parameter_at_distance(12, 10) == pytest.approx(0.5, abs=1e-4)

    def test_distance_beyond_path(self, straight_path):
        with pytest.raises(DomainError):
            straight_path.parameter_at_distance(30, 10)

    def test_curved_length_exceeds_chord(self, curved_path):
        assert curved_path.length(50) > math.hypot(12, 48)

    def test_tables_are_cached(self, straight_path):
        assert straight_path.distance_function(10) is straight_path.distance_function(10)
        assert straight_path.distance_function(10) is not straight_path.distance_function(20)

    def test_tolerance_change_drops_parameter_tables(self, straight_path):
        before = straight_path.parameter_function(10)
        straight_path.set_distance_tolerance(0.01)
        assert straight_path.parameter_function(10) is not before

    def test_invalid_tolerance(self, straight_path):
        with pytest.raises(ValueError):
            straight_path.set_distance_tolerance(0)


class TestCurveBasics:
    def test_offset_to_the_left(self, straight_path):
        left = straight_path.offset(7)
        right = straight_path.offset(-7)
        assert left.position(0.5).x == pytest.approx(-7)
        assert right.position(0.5).x == pytest.approx(7)
        assert left.position(0.5).y == pytest.approx(12)

    def test_sample(self, straight_path):
        t, xs, ys = straight_path.sample(5)
        np.testing.assert_allclose(t, [0, 0.25, 0.5, 0.75, 1])
        np.testing.assert_allclose(ys, 24 * t)
        assert xs.shape == (5,)

    def test_structural_equality(self):
        first = make_spline(Location(0, 0, NORTH), 24, Location(0, 24, NORTH), 24)
        second = make_spline(Location(0, 0, NORTH), 24, Location(0, 24, NORTH), 24)
        assert first == second
        with pytest.raises(TypeError):
            hash(first)

    @pytest.mark.parametrize("max_input", [0.0, -1.0, math.inf])
    def test_invalid_max_input(self, max_input):
        with pytest.raises(ValueError):
            ParametricCurve(IDENTITY, IDENTITY, max_input)


# ============================================================================
# Test: Quintic interpolation
# ============================================================================


class TestQuinticInterpolator:
    @pytest.fixture
    def wave(self):
        return generate_quintic_interpolator(0.0, 0.0, [(0, 0), (1, 1), (2, 0), (3, 1)])

    def test_passes_through_points(self, wave):
        for s, f in [(0, 0), (1, 1), (2, 0), (3, 1)]:
            assert wave.get(s) == pytest.approx(f, abs=1e-9)

    def test_reproduces_a_line(self):
        line = generate_quintic_interpolator(2.0, 2.0, [(0, 0), (1, 2), (2, 4)])
        assert line.get(1.5) == pytest.approx(3)

    def test_end_conditions(self):
        f = generate_quintic_interpolator(1.5, -0.5, [(0, 0), (2, 1), (5, 3)])
        first = f.derivative()
        second = first.derivative()
        assert first.get(0) == pytest.approx(1.5)
        assert first.get(5) == pytest.approx(-0.5)
        assert second.get(0) == pytest.approx(0, abs=1e-9)
        assert second.get(5) == pytest.approx(0, abs=1e-9)

    @pytest.mark.parametrize("order", [1, 2, 3, 4])
    def test_continuity_at_knots(self, wave, order):
        left, right = wave.pieces[0], wave.pieces[1]
        for _ in range(order):
            left, right = left.derivative(), right.derivative()
        assert left.get(1) == pytest.approx(right.get(1), abs=1e-7)

    def test_too_few_points(self):
        with pytest.raises(ValueError):
            generate_quintic_interpolator(0, 0, [(0, 0)])

    def test_inputs_must_increase(self):
        with pytest.raises(ValueError):
            generate_quintic_interpolator(0, 0, [(0, 0), (2, 1), (1, 2)])


class TestQuinticSpline:
    @pytest.fixture
    def points(self):
        return [Point(0, 0), Point(10, 0), Point(20, 10)]

    def test_chord_length_parameters(self, points):
        path = generate_quintic_spline(EAST, NORTH, points)
        assert path.max_input == pytest.approx(10 + 10 * math.sqrt(2))
        middle = path.position(10)
        assert (middle.x, middle.y) == pytest.approx((10, 0), abs=1e-6)
        end = path.position(path.max_input)
        assert (end.x, end.y) == pytest.approx((20, 10))

    def test_end_directions(self, points):
        path = generate_quintic_spline(EAST, NORTH, points)
        start = path.position_and_heading(0).direction
        end = path.position_and_heading(path.max_input).direction
        assert start.wrap(AngleUnit.DEGREES, AngleOrientation.COMPASS_HEADING) == pytest.approx(90)
        assert end.wrap(AngleUnit.DEGREES, AngleOrientation.COMPASS_HEADING) == pytest.approx(0, abs=1e-4)

    def test_fixed_spacing(self, points):
        path = generate_quintic_spline(EAST, NORTH, points, spacing=5)
        assert path.max_input == pytest.approx(10)

    def test_invalid_inputs(self, points):
        with pytest.raises(ValueError):
            generate_quintic_spline(EAST, NORTH, points[:1])
        with pytest.raises(ValueError):
            generate_quintic_spline(EAST, NORTH, points, spacing=0)
        with pytest.raises(ValueError):
            generate_quintic_spline(EAST, NORTH, [Point(0, 0), Point(0, 0), Point(1, 1)])
