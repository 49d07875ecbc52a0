"""Polynomial generators: lines, parabolas, 4-point cubics and Taylor series."""

import math
from typing import Tuple

from .functions import Function, Polynomial


def _require_distinct(*xs: float) -> None:
    if len(set(xs)) != len(xs):
        raise ArithmeticError(f"Interpolation points need distinct x values: {xs}")


def generate_line(x1: float, y1: float, x2: float, y2: float) -> Polynomial:
    """Line through (x1, y1) and (x2, y2).

    Raises:
        ArithmeticError: If x1 == x2.
    """
    _require_distinct(x1, x2)
    slope = (y2 - y1) / (x2 - x1)
    return Polynomial(slope, y1 - slope * x1)


def generate_parabola(a: float, x1: float, y1: float, x2: float, y2: float) -> Polynomial:
    """Parabola with leading coefficient ``a`` through two points."""
    _require_distinct(x1, x2)
    b = (y1 - a * x1 * x1 - y2 + a * x2 * x2) / (x1 - x2)
    c = y1 - a * x1 * x1 - b * x1
    return Polynomial(a, b, c)


def generate_parabola_through(
    first: Tuple[float, float], second: Tuple[float, float], third: Tuple[float, float]
) -> Polynomial:
    """Parabola through three points, by Lagrange interpolation."""
    (x1, y1), (x2, y2), (x3, y3) = first, second, third
    _require_distinct(x1, x2, x3)
    q1 = y1 / ((x1 - x2) * (x1 - x3))
    q2 = y2 / ((x2 - x1) * (x2 - x3))
    q3 = y3 / ((x3 - x1) * (x3 - x2))
    return Polynomial(
        q1 + q2 + q3,
        -(q1 * (x2 + x3) + q2 * (x1 + x3) + q3 * (x1 + x2)),
        q1 * x2 * x3 + q2 * x1 * x3 + q3 * x1 * x2,
    )


def generate_cubic(
    first: Tuple[float, float],
    second: Tuple[float, float],
    third: Tuple[float, float],
    fourth: Tuple[float, float],
) -> Polynomial:
    """Cubic through four points, by Lagrange interpolation.

    Each qi is yi divided by the product of (xi - xj) over the other points;
    the coefficients are then the elementary symmetric sums of the other
    three x values, weighted by qi.

    Raises:
        ArithmeticError: If two points share an x value.
    """
    (x1, y1), (x2, y2), (x3, y3), (x4, y4) = first, second, third, fourth
    _require_distinct(x1, x2, x3, x4)
    q1 = y1 / ((x1 - x2) * (x1 - x3) * (x1 - x4))
    q2 = y2 / ((x2 - x1) * (x2 - x3) * (x2 - x4))
    q3 = y3 / ((x3 - x1) * (x3 - x2) * (x3 - x4))
    q4 = y4 / ((x4 - x1) * (x4 - x2) * (x4 - x3))
    return Polynomial(
        q1 + q2 + q3 + q4,
        -(
            q1 * (x2 + x3 + x4)
            + q2 * (x1 + x3 + x4)
            + q3 * (x1 + x2 + x4)
            + q4 * (x1 + x2 + x3)
        ),
        q1 * (x2 * x3 + x2 * x4 + x3 * x4)
        + q2 * (x1 * x3 + x1 * x4 + x3 * x4)
        + q3 * (x1 * x2 + x1 * x4 + x2 * x4)
        + q4 * (x1 * x2 + x1 * x3 + x2 * x3),
        -(q1 * x2 * x3 * x4 + q2 * x1 * x3 * x4 + q3 * x1 * x2 * x4 + q4 * x1 * x2 * x3),
    )


def generate_taylor_series(function: Function, degree: int) -> Polynomial:
    """Maclaurin polynomial of ``function`` up to ``degree``.

    ``function`` must support repeated ``derivative()``.
    """
    if degree < 0:
        raise ValueError(f"Taylor series degree must be non-negative, got {degree}")
    coefficients = [0.0] * (degree + 1)
    current = function
    for k in range(degree + 1):
        coefficients[degree - k] = current.get(0.0) / math.factorial(k)
        if k < degree:
            current = current.derivative()
    return Polynomial(*coefficients)
