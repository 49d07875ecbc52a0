"""Symbolic single-variable function trees.

Every node maps a float to a float through ``get(x)`` (or a plain call).
Nodes that know a closed form build new nodes for ``derivative()``,
``integral()`` and ``inverse()`` instead of evaluating numerically, so an
already-derived function can be differentiated or integrated again.

Nodes are frozen dataclasses tagged with a ``NodeKind``. Equality is
structural: two nodes are equal when they are the same kind built from
equal parameters, never because they happen to evaluate alike.

A node without a closed form for some operation raises
``NotImplementedError``; the adapters in ``numeric`` supply brute-force
fallbacks. Evaluating outside a node's domain raises ``DomainError``.
"""

import math
from bisect import bisect_right
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Iterable, Sequence, Tuple, Union

from .errors import DomainError

Number = Union[int, float]


class NodeKind(Enum):
    """Tag identifying the concrete variant of a function node."""

    CONSTANT = "constant"
    POLYNOMIAL = "polynomial"
    FRACTIONAL_POLYNOMIAL = "fractional_polynomial"
    SUM = "sum"
    DIFFERENCE = "difference"
    PRODUCT = "product"
    QUOTIENT = "quotient"
    COMPOSITION = "composition"
    PIECEWISE = "piecewise"
    PIECEWISE_DYNAMIC_BOUNDS = "piecewise_dynamic_bounds"
    ABSOLUTE_VALUE = "absolute_value"
    NATURAL_LOGARITHM = "natural_logarithm"
    EXPONENTIAL = "exponential"
    TRIG = "trig"
    BRUTE_INTEGRAL = "brute_integral"
    BRUTE_INVERSE = "brute_inverse"
    CALCULIFY = "calculify"
    INVERSIBLIFY = "inversiblify"


def _format_number(value: float) -> str:
    return f"{value:g}"


def safe_divide(numerator: float, denominator: float) -> float:
    """IEEE-style division: x/0 gives a signed infinity (or NaN for 0/0)."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)
    return numerator / denominator


class Function:
    """Base class of all function nodes."""

    kind: ClassVar[NodeKind]

    def get(self, x: float) -> float:
        raise NotImplementedError

    def __call__(self, x: float) -> float:
        return self.get(x)

    def derivative(self) -> "Function":
        raise NotImplementedError(f"{type(self).__name__} has no closed-form derivative")

    def integral(self) -> "Function":
        raise NotImplementedError(f"{type(self).__name__} has no closed-form integral")

    def inverse(self) -> "Function":
        raise NotImplementedError(f"{type(self).__name__} has no closed-form inverse")

    def __add__(self, other: Union["Function", Number]) -> "Function":
        return Sum(self, lift(other))

    def __radd__(self, other: Number) -> "Function":
        return Sum(lift(other), self)

    def __sub__(self, other: Union["Function", Number]) -> "Function":
        return Difference(self, lift(other))

    def __rsub__(self, other: Number) -> "Function":
        return Difference(lift(other), self)

    def __mul__(self, other: Union["Function", Number]) -> "Function":
        return Product(self, lift(other))

    def __rmul__(self, other: Number) -> "Function":
        return Product(lift(other), self)

    def __truediv__(self, other: Union["Function", Number]) -> "Function":
        return Quotient(self, lift(other))

    def __rtruediv__(self, other: Number) -> "Function":
        return Quotient(lift(other), self)

    def __neg__(self) -> "Function":
        return Product(Constant(-1.0), self)

    def then(self, outer: "Function") -> "Function":
        """Return ``outer(self(x))``."""
        return Composition(self, outer)


def lift(value: Union[Function, Number]) -> Function:
    """Wrap plain numbers as Constants; pass functions through."""
    if isinstance(value, Function):
        return value
    if isinstance(value, (int, float)):
        return Constant(float(value))
    raise TypeError(f"Cannot use {type(value).__name__} as a function")


# ============================================================================
# Elementary Nodes
# ============================================================================


@dataclass(frozen=True)
class Constant(Function):
    value: float

    kind = NodeKind.CONSTANT

    def get(self, x: float) -> float:
        return self.value

    def derivative(self) -> Function:
        return Constant(0.0)

    def integral(self) -> Function:
        return Polynomial(self.value, 0.0)

    def __str__(self) -> str:
        return _format_number(self.value)


@dataclass(frozen=True, init=False)
class Polynomial(Function):
    """Dense polynomial, coefficients highest degree first.

    Leading zeros are trimmed, and an empty coefficient list means the
    zero polynomial ``(0,)``.
    """

    coefficients: Tuple[float, ...]

    kind = NodeKind.POLYNOMIAL

    def __init__(self, *coefficients: Number):
        trimmed = [float(c) for c in coefficients]
        while len(trimmed) > 1 and trimmed[0] == 0:
            trimmed.pop(0)
        if not trimmed or trimmed == [0.0]:
            trimmed = [0.0]
        object.__setattr__(self, "coefficients", tuple(trimmed))

    @classmethod
    def from_coefficients(cls, coefficients: Iterable[Number]) -> "Polynomial":
        return cls(*coefficients)

    @property
    def degree(self) -> int:
        return len(self.coefficients) - 1

    def get(self, x: float) -> float:
        result = 0.0
        for coefficient in self.coefficients:
            result = result * x + coefficient
        return result

    def derivative(self) -> "Polynomial":
        n = len(self.coefficients)
        return Polynomial(*(c * (n - 1 - i) for i, c in enumerate(self.coefficients[:-1])))

    def integral(self) -> "Polynomial":
        n = len(self.coefficients)
        return Polynomial(*(c / (n - i) for i, c in enumerate(self.coefficients)), 0.0)

    def inverse(self) -> "Polynomial":
        if self.degree != 1:
            raise NotImplementedError(f"Only linear polynomials have a closed-form inverse: {self}")
        m, b = self.coefficients
        return Polynomial(1 / m, -b / m)

    def inverse_parabola(self, y: float) -> Tuple[float, float]:
        """Both inputs at which this quadratic equals ``y``.

        Raises:
            ValueError: If the polynomial is not quadratic.
            ArithmeticError: If no real input reaches ``y``.
        """
        if self.degree != 2:
            raise ValueError(f"Polynomial is not quadratic: {self}")
        a, b, c = self.coefficients
        discriminant = b * b - 4 * a * (c - y)
        if discriminant < 0 or not math.isfinite(discriminant):
            raise ArithmeticError(f"No real root reaches {y}: discriminant {discriminant}")
        root = math.sqrt(discriminant)
        return (-b + root) / (2 * a), (-b - root) / (2 * a)

    def plus_constant(self, value: float) -> "Polynomial":
        return Polynomial(*self.coefficients[:-1], self.coefficients[-1] + value)

    def __str__(self) -> str:
        if self.coefficients == (0.0,):
            return "0"
        terms = []
        for i, coefficient in enumerate(self.coefficients):
            power = self.degree - i
            if coefficient == 0:
                continue
            variable = "" if power == 0 else "x" if power == 1 else f"x^{{{power}}}"
            if coefficient == 1 and variable:
                terms.append(variable)
            else:
                terms.append(_format_number(coefficient) + variable)
        return "\\left(" + " + ".join(terms) + "\\right)"


IDENTITY = Polynomial(1.0, 0.0)
"""f(x) = x; its own inverse."""


@dataclass(frozen=True)
class FractionalPolynomial(Function):
    """Polynomial whose powers are offset by ``min_power``.

    Term i has power ``len(coefficients) - 1 - i + min_power``, so the default
    ``min_power=0.5`` gives half-integer powers (``(1,)`` is the square root).
    Non-integer powers are undefined for negative inputs.
    """

    coefficients: Tuple[float, ...]
    min_power: float = 0.5

    kind = NodeKind.FRACTIONAL_POLYNOMIAL

    def __post_init__(self) -> None:
        trimmed = [float(c) for c in self.coefficients]
        while len(trimmed) > 1 and trimmed[0] == 0:
            trimmed.pop(0)
        object.__setattr__(self, "coefficients", tuple(trimmed) or (0.0,))
        object.__setattr__(self, "min_power", float(self.min_power))

    def _powers(self) -> Tuple[float, ...]:
        n = len(self.coefficients)
        return tuple(n - 1 - i + self.min_power for i in range(n))

    def get(self, x: float) -> float:
        total = 0.0
        for coefficient, power in zip(self.coefficients, self._powers()):
            if coefficient == 0:
                continue
            if x < 0 and not float(power).is_integer():
                raise DomainError(f"x^{power:g} is undefined for x = {x}")
            if x == 0 and power < 0:
                total += math.copysign(math.inf, coefficient)
                continue
            total += coefficient * x**power
        return total

    def derivative(self) -> "FractionalPolynomial":
        coefficients = tuple(c * p for c, p in zip(self.coefficients, self._powers()))
        return FractionalPolynomial(coefficients, self.min_power - 1)

    def integral(self) -> "FractionalPolynomial":
        powers = self._powers()
        if any(p == -1 for c, p in zip(self.coefficients, powers) if c != 0):
            raise NotImplementedError("Integral of x^-1 is logarithmic")
        coefficients = tuple(c / (p + 1) for c, p in zip(self.coefficients, powers))
        return FractionalPolynomial(coefficients, self.min_power + 1)

    def __str__(self) -> str:
        terms = [
            f"{_format_number(c)}x^{{{_format_number(p)}}}"
            for c, p in zip(self.coefficients, self._powers())
            if c != 0
        ]
        return "\\left(" + (" + ".join(terms) or "0") + "\\right)"


SQUARE_ROOT = FractionalPolynomial((1.0,), 0.5)


@dataclass(frozen=True)
class AbsoluteValue(Function):
    kind = NodeKind.ABSOLUTE_VALUE

    def get(self, x: float) -> float:
        return abs(x)

    def derivative(self) -> Function:
        return Piecewise((Constant(-1.0), Constant(1.0)), (-math.inf, 0.0), math.inf)

    def integral(self) -> Function:
        return Piecewise(
            (Polynomial(-0.5, 0.0, 0.0), Polynomial(0.5, 0.0, 0.0)), (-math.inf, 0.0), math.inf
        )

    def __str__(self) -> str:
        return "\\left|x\\right|"


@dataclass(frozen=True)
class NaturalLogarithm(Function):
    kind = NodeKind.NATURAL_LOGARITHM

    def get(self, x: float) -> float:
        if x <= 0:
            raise DomainError(f"ln(x) is undefined for x = {x}")
        return math.log(x)

    def derivative(self) -> Function:
        return Quotient(Constant(1.0), IDENTITY)

    def integral(self) -> Function:
        return Difference(Product(IDENTITY, self), IDENTITY)

    def inverse(self) -> Function:
        return Exponential()

    def __str__(self) -> str:
        return "\\ln\\left(x\\right)"


@dataclass(frozen=True)
class Exponential(Function):
    kind = NodeKind.EXPONENTIAL

    def get(self, x: float) -> float:
        return math.exp(x)

    def derivative(self) -> Function:
        return self

    def integral(self) -> Function:
        return self

    def inverse(self) -> Function:
        return NaturalLogarithm()

    def __str__(self) -> str:
        return "e^{x}"


# ============================================================================
# Combinators
# ============================================================================


@dataclass(frozen=True)
class Sum(Function):
    first: Function
    second: Function

    kind = NodeKind.SUM

    def get(self, x: float) -> float:
        return self.first.get(x) + self.second.get(x)

    def derivative(self) -> Function:
        return Sum(self.first.derivative(), self.second.derivative())

    def integral(self) -> Function:
        return Sum(self.first.integral(), self.second.integral())

    def __str__(self) -> str:
        return f"\\left({self.first} + {self.second}\\right)"


@dataclass(frozen=True)
class Difference(Function):
    first: Function
    second: Function

    kind = NodeKind.DIFFERENCE

    def get(self, x: float) -> float:
        return self.first.get(x) - self.second.get(x)

    def derivative(self) -> Function:
        return Difference(self.first.derivative(), self.second.derivative())

    def integral(self) -> Function:
        return Difference(self.first.integral(), self.second.integral())

    def __str__(self) -> str:
        return f"\\left({self.first} - {self.second}\\right)"


@dataclass(frozen=True)
class Product(Function):
    first: Function
    second: Function

    kind = NodeKind.PRODUCT

    def get(self, x: float) -> float:
        return self.first.get(x) * self.second.get(x)

    def derivative(self) -> Function:
        return Sum(
            Product(self.first.derivative(), self.second),
            Product(self.second.derivative(), self.first),
        )

    def integral(self) -> Function:
        # Only constant factors can be pulled out in closed form.
        if isinstance(self.first, Constant):
            return Product(self.first, self.second.integral())
        if isinstance(self.second, Constant):
            return Product(self.second, self.first.integral())
        raise NotImplementedError(f"No closed-form integral for product {self}")

    def __str__(self) -> str:
        return f"{self.first}\\cdot{self.second}"


@dataclass(frozen=True)
class Quotient(Function):
    numerator: Function
    denominator: Function

    kind = NodeKind.QUOTIENT

    def get(self, x: float) -> float:
        return safe_divide(self.numerator.get(x), self.denominator.get(x))

    def derivative(self) -> Function:
        a, b = self.numerator, self.denominator
        return Difference(
            Quotient(a.derivative(), b),
            Quotient(Product(a, b.derivative()), Product(b, b)),
        )

    def integral(self) -> Function:
        if isinstance(self.denominator, Constant):
            return Quotient(self.numerator.integral(), self.denominator)
        raise NotImplementedError(f"No closed-form integral for quotient {self}")

    def __str__(self) -> str:
        return f"\\frac{{{self.numerator}}}{{{self.denominator}}}"


@dataclass(frozen=True)
class Composition(Function):
    """``outer(inner(x))``."""

    inner: Function
    outer: Function

    kind = NodeKind.COMPOSITION

    def get(self, x: float) -> float:
        return self.outer.get(self.inner.get(x))

    def derivative(self) -> Function:
        return Product(Composition(self.inner, self.outer.derivative()), self.inner.derivative())

    def integral(self) -> Function:
        # Linear substitution is the only closed-form case handled.
        if isinstance(self.inner, Polynomial) and self.inner.degree == 1:
            slope = self.inner.coefficients[0]
            return Product(Constant(1 / slope), Composition(self.inner, self.outer.integral()))
        raise NotImplementedError(f"No closed-form integral for composition {self}")

    def inverse(self) -> Function:
        return Composition(self.outer.inverse(), self.inner.inverse())

    def __str__(self) -> str:
        return str(self.outer).replace("x", str(self.inner))


# ============================================================================
# Piecewise Nodes
# ============================================================================


def _validate_bounds(pieces: Sequence[Function], starting_points: Sequence[float], end: float) -> None:
    if len(pieces) != len(starting_points):
        raise ValueError(
            f"Piecewise needs one starting point per piece: {len(pieces)} pieces, "
            f"{len(starting_points)} starting points"
        )
    if not pieces:
        raise ValueError("Piecewise needs at least one piece")
    bounds = list(starting_points) + [end]
    if any(math.isnan(b) for b in bounds):
        raise ValueError(f"NaN is not a valid piecewise bound: {bounds}")
    for low, high in zip(bounds, bounds[1:]):
        if low >= high:
            raise ValueError(f"Piecewise bounds must be strictly increasing: {bounds}")


def _segment_index(starting_points: Sequence[float], end: float, value: float) -> int:
    """Index of the segment owning ``value``; boundaries belong to the higher segment."""
    if math.isnan(value):
        raise DomainError("Domain error: input is NaN")
    if value < starting_points[0]:
        raise DomainError(f"Domain error: input {value} below {starting_points[0]}")
    if value > end:
        raise DomainError(f"Domain error: input {value} above {end}")
    return bisect_right(starting_points, value) - 1


def _bounds_str(low: float, high: float) -> str:
    if not math.isfinite(low) and not math.isfinite(high):
        return ""
    if not math.isfinite(low):
        return f"x<{_format_number(high)}:"
    if not math.isfinite(high):
        return f"{_format_number(low)}<x:"
    return f"{_format_number(low)}<x<{_format_number(high)}:"


def _plus_constant(function: Function, value: float) -> Function:
    if isinstance(function, Polynomial):
        return function.plus_constant(value)
    return Sum(function, Constant(value))


@dataclass(frozen=True)
class Piecewise(Function):
    """Contiguous, non-overlapping segments over ``[starting_points[0], end]``.

    Segment i owns ``[starting_points[i], starting_points[i + 1])``; the last
    segment also owns ``end``. Bounds may be infinite.
    """

    pieces: Tuple[Function, ...]
    starting_points: Tuple[float, ...]
    end: float

    kind = NodeKind.PIECEWISE

    def __post_init__(self) -> None:
        object.__setattr__(self, "pieces", tuple(self.pieces))
        object.__setattr__(self, "starting_points", tuple(float(s) for s in self.starting_points))
        object.__setattr__(self, "end", float(self.end))
        _validate_bounds(self.pieces, self.starting_points, self.end)

    @classmethod
    def from_bounds(cls, pieces: Sequence[Function], bounds: Sequence[float]) -> "Piecewise":
        """Build from every bound at once: the starting points followed by the end."""
        return cls(tuple(pieces), tuple(bounds[:-1]), bounds[-1])

    def bound(self, i: int) -> float:
        return self.end if i == len(self.starting_points) else self.starting_points[i]

    def get(self, x: float) -> float:
        return self.pieces[_segment_index(self.starting_points, self.end, x)].get(x)

    def derivative(self) -> "Piecewise":
        return Piecewise(tuple(p.derivative() for p in self.pieces), self.starting_points, self.end)

    def integral(self) -> "Piecewise":
        """Continuous antiderivative that is zero at x = 0.

        The segment containing 0 is anchored first; each neighbour's constant
        is then chosen so the values agree at the shared boundary.

        Raises:
            DomainError: If 0 lies outside the domain.
        """
        if self.starting_points[0] > 0 or self.end < 0:
            raise DomainError("No indefinite integral when the domain excludes zero")

        antiderivatives = [p.integral() for p in self.pieces]
        constants = [0.0] * len(antiderivatives)
        anchor = _segment_index(self.starting_points, self.end, 0.0)
        constants[anchor] = -antiderivatives[anchor].get(0.0)

        for i in range(anchor + 1, len(antiderivatives)):
            boundary = self.starting_points[i]
            constants[i] = (
                antiderivatives[i - 1].get(boundary) + constants[i - 1] - antiderivatives[i].get(boundary)
            )
        for i in range(anchor - 1, -1, -1):
            boundary = self.starting_points[i + 1]
            constants[i] = (
                antiderivatives[i + 1].get(boundary) + constants[i + 1] - antiderivatives[i].get(boundary)
            )

        pieces = tuple(_plus_constant(f, c) for f, c in zip(antiderivatives, constants))
        return Piecewise(pieces, self.starting_points, self.end)

    def __str__(self) -> str:
        parts = [
            _bounds_str(self.bound(i), self.bound(i + 1)) + str(piece)
            for i, piece in enumerate(self.pieces)
        ]
        return "\\left\\{" + ",".join(parts) + "\\right\\}"


@dataclass(frozen=True)
class PiecewiseDynamicBounds(Function):
    """Piecewise function whose segment is chosen by ``bounder(x)``, not ``x``."""

    pieces: Tuple[Function, ...]
    bounder: Function
    starting_points: Tuple[float, ...]
    end: float

    kind = NodeKind.PIECEWISE_DYNAMIC_BOUNDS

    def __post_init__(self) -> None:
        object.__setattr__(self, "pieces", tuple(self.pieces))
        object.__setattr__(self, "starting_points", tuple(float(s) for s in self.starting_points))
        object.__setattr__(self, "end", float(self.end))
        _validate_bounds(self.pieces, self.starting_points, self.end)

    def get(self, x: float) -> float:
        index = _segment_index(self.starting_points, self.end, self.bounder.get(x))
        return self.pieces[index].get(x)

    def derivative(self) -> "PiecewiseDynamicBounds":
        return PiecewiseDynamicBounds(
            tuple(p.derivative() for p in self.pieces), self.bounder, self.starting_points, self.end
        )

    def __str__(self) -> str:
        ends = list(self.starting_points[1:]) + [self.end]
        parts = [
            _bounds_str(low, high).replace("x", str(self.bounder)) + str(piece)
            for piece, low, high in zip(self.pieces, self.starting_points, ends)
        ]
        return "\\left\\{" + ",".join(parts) + "\\right\\}"
