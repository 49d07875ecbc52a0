"""Parametric paths between oriented waypoints.

Two ways to build a path:
- ``make_spline`` / ``make_auto_spline``: a cubic Hermite blend between two
  Locations, departing and arriving along their directions.
- ``generate_quintic_spline``: C4-continuous piecewise quintics through any
  number of points, parameterized by chord length.

Either way the result is a ``ParametricCurve``, which converts between its
parameter and arc length with cached numeric tables.
"""

import logging
import math
from typing import Dict, Optional, Sequence, Tuple

import numpy as np
import numpy.typing as npt

from .functions import (
    SQUARE_ROOT,
    Composition,
    Constant,
    Difference,
    Function,
    Piecewise,
    Polynomial,
    Product,
    Quotient,
    Sum,
)
from .geometry import Angle, AngleOrientation, AngleUnit, Location, Point
from .linalg import solve_augmented_matrix
from .numeric import Calculify, Inversiblify

logger = logging.getLogger(__name__)

START_BLEND = Polynomial(2.0, -3.0, 0.0, 1.0)
"""s_start(t) = 2t³ - 3t² + 1: 1 at t = 0, flat 0 at t = 1."""

END_BLEND = Polynomial(-2.0, 3.0, 0.0, 0.0)
"""s_end(t) = 3t² - 2t³: flat 0 at t = 0, 1 at t = 1."""


class ParametricCurve:
    """A 2D curve (x(t), y(t)) for t in [0, max_input].

    The curve owns its arc-length tables: one distance function and one
    parameter (inverse distance) function per requested sample count, built
    on first use and reused afterwards.

    Args:
        x: Derivable function giving x for a parameter.
        y: Derivable function giving y for a parameter.
        max_input: Largest valid parameter.
        forward: Whether a robot drives this curve front first. Only reported
            through ``goes_forward``; the curve itself does not use it.
        tolerance: Accuracy of distance → parameter lookups.
    """

    def __init__(
        self,
        x: Function,
        y: Function,
        max_input: float,
        forward: bool = True,
        tolerance: float = 0.0001,
    ):
        if not (math.isfinite(max_input) and max_input > 0):
            raise ValueError(f"max_input must be positive and finite, got {max_input}")
        if not tolerance > 0:
            raise ValueError(f"tolerance must be positive, got {tolerance}")
        self.x = x
        self.y = y
        self.max_input = float(max_input)
        self._forward = forward
        self._tolerance = tolerance
        self._dx = x.derivative()
        self._dy = y.derivative()
        self._distance_functions: Dict[int, Function] = {}
        self._parameter_functions: Dict[int, Function] = {}

    def goes_forward(self) -> bool:
        return self._forward

    def set_distance_tolerance(self, tolerance: float) -> None:
        """Change the parameter lookup accuracy; drops cached parameter functions."""
        if not tolerance > 0:
            raise ValueError(f"tolerance must be positive, got {tolerance}")
        self._tolerance = tolerance
        self._parameter_functions.clear()

    def position(self, t: float) -> Point:
        return Point(self.x.get(t), self.y.get(t))

    def position_and_heading(self, t: float) -> Location:
        """Position at ``t`` facing along the tangent, atan2(y', x')."""
        heading = Angle(
            math.atan2(self._dy.get(t), self._dx.get(t)),
            AngleUnit.RADIANS,
            AngleOrientation.UNIT_CIRCLE,
        )
        return Location(self.x.get(t), self.y.get(t), heading)

    def speed(self) -> Function:
        """|(x'(t), y'(t))| as a function node."""
        return Composition(
            Sum(Product(self._dx, self._dx), Product(self._dy, self._dy)), SQUARE_ROOT
        )

    def distance_function(self, samples: int) -> Function:
        """Parameter → arc length from t = 0, tabulated with ``samples`` buckets."""
        if samples not in self._distance_functions:
            self._distance_functions[samples] = Calculify(
                self.speed(), samples, self.max_input
            ).integral()
        return self._distance_functions[samples]

    def parameter_function(self, samples: int) -> Function:
        """Arc length → parameter; the numeric inverse of ``distance_function``."""
        if samples not in self._parameter_functions:
            self._parameter_functions[samples] = Inversiblify(
                self.distance_function(samples), self._tolerance, self.max_input
            ).inverse()
        return self._parameter_functions[samples]

    def distance_at(self, t: float, samples: int) -> float:
        return self.distance_function(samples).get(t)

    def parameter_at_distance(self, distance: float, samples: int) -> float:
        """Parameter reached after ``distance`` along the curve.

        Raises:
            DomainError: If ``distance`` is outside [0, length].
        """
        return self.parameter_function(samples).get(distance)

    def length(self, samples: int) -> float:
        return self.distance_at(self.max_input, samples)

    def offset(self, distance: float) -> "ParametricCurve":
        """Curve shifted sideways by ``distance``, to the left of the tangent.

        Negative distances shift right. Used to build the wheel rails of a
        differential drive around its center path.
        """
        speed = self.speed()
        x = Difference(self.x, Quotient(Product(Constant(distance), self._dy), speed))
        y = Sum(self.y, Quotient(Product(Constant(distance), self._dx), speed))
        return ParametricCurve(x, y, self.max_input, self._forward, self._tolerance)

    def sample(self, count: int) -> Tuple[npt.NDArray, npt.NDArray, npt.NDArray]:
        """Evenly spaced (t, x, y) samples for plotting."""
        t = np.linspace(0.0, self.max_input, count)
        xs = np.array([self.x.get(value) for value in t])
        ys = np.array([self.y.get(value) for value in t])
        return t, xs, ys

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParametricCurve):
            return NotImplemented
        return (
            self.x == other.x
            and self.y == other.y
            and self.max_input == other.max_input
            and self._forward == other._forward
        )

    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        return f"\\left({str(self.x).replace('x', 't')}, {str(self.y).replace('x', 't')}\\right)"


# ============================================================================
# Hermite Blend Splines
# ============================================================================


def _hermite_axis(start: float, start_rate: float, end: float, end_rate: float) -> Polynomial:
    # s_start(t)·(start + start_rate·t) + s_end(t)·(end + end_rate·(t - 1))
    start_term = np.polymul(START_BLEND.coefficients, [start_rate, start])
    end_term = np.polymul(END_BLEND.coefficients, [end_rate, end - end_rate])
    return Polynomial.from_coefficients(np.polyadd(start_term, end_term))


def make_spline(
    start: Location, start_scale: float, end: Location, end_scale: float
) -> ParametricCurve:
    """Two-waypoint Hermite blend over t in [0, 1].

    The curve leaves ``start`` with velocity ``start_scale`` along
    ``start.direction`` and arrives at ``end`` with velocity ``end_scale``
    along ``end.direction``. Negative scales build a path driven backward;
    a zero scale drops that end's direction constraint.

    Args:
        start: First waypoint and departure direction.
        start_scale: Tangent magnitude at the start.
        end: Last waypoint and arrival direction.
        end_scale: Tangent magnitude at the end.

    Returns:
        The spline, flagged forward unless the scales sum negative.

    Raises:
        ValueError: If the scales have opposite signs.
    """
    if (start_scale > 0 and end_scale < 0) or (start_scale < 0 and end_scale > 0):
        raise ValueError(
            f"Spline must go either forward or backward, got scales {start_scale} and {end_scale}"
        )
    forward = not (start_scale + end_scale < 0)
    x = _hermite_axis(
        start.x, start_scale * start.direction.get_x(), end.x, end_scale * end.direction.get_x()
    )
    y = _hermite_axis(
        start.y, start_scale * start.direction.get_y(), end.y, end_scale * end.direction.get_y()
    )
    return ParametricCurve(x, y, 1.0, forward)


def make_auto_spline(start: Location, end: Location) -> ParametricCurve:
    """Forward Hermite blend with tangent scales chosen from the geometry.

    Each scale is half the chord length plus the distance between that end's
    unit direction and the unit chord, so sharper departures get longer
    tangents.
    """
    dx = end.x - start.x
    dy = end.y - start.y
    chord = math.hypot(dx, dy)
    if chord == 0:
        raise ValueError(f"Cannot size tangents between coincident waypoints {start} and {end}")
    start_scale = 0.5 * (
        chord + math.hypot(start.direction.get_x() - dx / chord, start.direction.get_y() - dy / chord)
    )
    end_scale = 0.5 * (
        chord + math.hypot(end.direction.get_x() - dx / chord, end.direction.get_y() - dy / chord)
    )
    return make_spline(start, start_scale, end, end_scale)


# ============================================================================
# Quintic Interpolation
# ============================================================================

QUINTIC_TERMS = 6


def _derivative_row(order: int, u: float) -> np.ndarray:
    """d^order/du^order of [1, u, u², ..., u⁵] at ``u``."""
    row = np.zeros(QUINTIC_TERMS)
    for k in range(order, QUINTIC_TERMS):
        row[k] = math.factorial(k) / math.factorial(k - order) * u ** (k - order)
    return row


def generate_quintic_interpolator(
    initial_slope: float, final_slope: float, points: Sequence[Tuple[float, float]]
) -> Piecewise:
    """Piecewise quintic through ``points`` with C4 continuity at the knots.

    Each segment i is solved in its local coordinate u = s - s_i, which keeps
    the system well conditioned for long paths, then expanded back into the
    global parameter.

    Constraints, 6 per segment:
    - each segment passes through both of its endpoints
    - first to fourth derivatives agree at interior knots
    - the first derivative equals the given slope at the two path ends
    - the second derivative is 0 at the two path ends

    Args:
        initial_slope: df/ds at the first point.
        final_slope: df/ds at the last point.
        points: (s, f) pairs with strictly increasing s, at least two.

    Returns:
        Piecewise of degree-5 Polynomials over [s_0, s_last].

    Raises:
        ValueError: If there are fewer than two points or s is not increasing.
        ArithmeticError: If the system has no unique solution.
    """
    xs = [float(p[0]) for p in points]
    ys = [float(p[1]) for p in points]
    segments = len(xs) - 1
    if segments < 1:
        raise ValueError(f"Quintic interpolation needs at least two points, got {len(xs)}")
    widths = np.diff(xs)
    if np.any(widths <= 0):
        raise ValueError(f"Interpolation inputs must be strictly increasing: {xs}")

    size = QUINTIC_TERMS * segments
    matrix = np.zeros((size, size + 1))
    row = 0

    def block(segment: int) -> slice:
        return slice(QUINTIC_TERMS * segment, QUINTIC_TERMS * (segment + 1))

    for i in range(segments):
        matrix[row, block(i)] = _derivative_row(0, 0.0)
        matrix[row, -1] = ys[i]
        row += 1
        matrix[row, block(i)] = _derivative_row(0, widths[i])
        matrix[row, -1] = ys[i + 1]
        row += 1

    matrix[row, block(0)] = _derivative_row(1, 0.0)
    matrix[row, -1] = initial_slope
    row += 1
    matrix[row, block(0)] = _derivative_row(2, 0.0)
    row += 1
    last = segments - 1
    matrix[row, block(last)] = _derivative_row(1, widths[last])
    matrix[row, -1] = final_slope
    row += 1
    matrix[row, block(last)] = _derivative_row(2, widths[last])
    row += 1

    for i in range(segments - 1):
        for order in range(1, 5):
            matrix[row, block(i)] = _derivative_row(order, widths[i])
            matrix[row, block(i + 1)] = -_derivative_row(order, 0.0)
            row += 1

    solution = solve_augmented_matrix(matrix)
    if not np.all(np.isfinite(solution)):
        raise ArithmeticError(f"Quintic interpolation through {len(xs)} points is singular")

    pieces = []
    for i in range(segments):
        local = np.poly1d(solution[block(i)][::-1])
        expanded = local(np.poly1d([1.0, -xs[i]]))
        pieces.append(Polynomial.from_coefficients(np.atleast_1d(expanded.coeffs)))
    return Piecewise(tuple(pieces), tuple(xs[:-1]), xs[-1])


def generate_quintic_spline(
    initial_direction: Angle,
    final_direction: Angle,
    points: Sequence[Point],
    spacing: Optional[float] = None,
) -> ParametricCurve:
    """Quintic spline through ``points``, leaving and arriving along the given directions.

    Each waypoint is assigned a parameter: the cumulative chord length up to
    it, or ``i * spacing`` when ``spacing`` is given.

    Raises:
        ValueError: If fewer than two points are given, two consecutive points
            coincide, or spacing is not positive.
    """
    if len(points) < 2:
        raise ValueError(f"A spline needs at least two points, got {len(points)}")
    if spacing is not None:
        if not spacing > 0:
            raise ValueError(f"spacing must be positive, got {spacing}")
        parameters = [i * spacing for i in range(len(points))]
    else:
        parameters = [0.0]
        for previous, current in zip(points, points[1:]):
            parameters.append(parameters[-1] + previous.distance(current))

    x = generate_quintic_interpolator(
        initial_direction.get_x(),
        final_direction.get_x(),
        [(s, p.x) for s, p in zip(parameters, points)],
    )
    y = generate_quintic_interpolator(
        initial_direction.get_y(),
        final_direction.get_y(),
        [(s, p.y) for s, p in zip(parameters, points)],
    )
    logger.debug(f"Quintic spline through {len(points)} points, parameter range {parameters[-1]:g}")
    return ParametricCurve(x, y, parameters[-1])
