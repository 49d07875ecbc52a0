"""Numeric fallbacks for functions without a closed-form integral or inverse.

``BruteIntegral`` tabulates an antiderivative from piecewise cubic fits and
``BruteInverse`` searches a monotone function's domain. ``Calculify`` and
``Inversiblify`` wrap an arbitrary function so it gains those capabilities,
preferring closed forms where the wrapped function has them.

The lazy integral table is owned by its ``BruteIntegral`` instance. It is
built at most once, on the first evaluation, and is read-only afterwards;
building it concurrently from several threads is not supported.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict

from .config import BRUTE_INVERSE_MAX_ITERATIONS
from .errors import DomainError
from .functions import Composition, Constant, Function, NodeKind, Quotient
from .polynomials import generate_cubic

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BruteIntegral(Function):
    """Antiderivative of ``source`` over [0, max_input], anchored at 0.

    The domain is split into ``samples`` equal buckets. A cubic is fitted
    through four evenly spaced points in each bucket and integrated exactly;
    cumulative bucket areas make every later lookup O(1).

    Args:
        source: Function to integrate.
        samples: Number of buckets (≥ 1).
        max_input: Upper end of the tabulated domain (> 0). Inputs at or above
            it return the total area; inputs below 0 use the first bucket's fit.
    """

    source: Function
    samples: int
    max_input: float
    _table: Dict[str, Any] = field(
        default_factory=dict, init=False, repr=False, compare=False, hash=False
    )

    kind = NodeKind.BRUTE_INTEGRAL

    def __post_init__(self) -> None:
        if self.samples < 1:
            raise ValueError(f"samples must be at least 1, got {self.samples}")
        if not (math.isfinite(self.max_input) and self.max_input > 0):
            raise ValueError(f"max_input must be positive and finite, got {self.max_input}")

    @property
    def is_initialized(self) -> bool:
        return bool(self._table)

    def _lookup(self) -> Dict[str, Any]:
        if not self._table:
            tick = self.max_input / self.samples
            antiderivatives = []
            cumulative = [0.0]
            for i in range(self.samples):
                start = i * tick
                points = [start + k * tick / 3 for k in range(4)]
                cubic = generate_cubic(*((p, self.source.get(p)) for p in points))
                antiderivative = cubic.integral()
                start_value = antiderivative.get(start)
                antiderivatives.append((antiderivative, start_value))
                cumulative.append(cumulative[-1] + antiderivative.get(start + tick) - start_value)
            self._table.update(tick=tick, antiderivatives=antiderivatives, cumulative=cumulative)
            logger.debug(
                f"Built integral table: {self.samples} buckets over [0, {self.max_input:g}], "
                f"total {cumulative[-1]:.6g}"
            )
        return self._table

    def get(self, x: float) -> float:
        table = self._lookup()
        index = min(max(int(x / table["tick"]), 0), self.samples)
        if index == self.samples:
            return table["cumulative"][-1]
        antiderivative, start_value = table["antiderivatives"][index]
        return table["cumulative"][index] + antiderivative.get(x) - start_value

    def derivative(self) -> Function:
        return self.source

    def integral(self) -> Function:
        return BruteIntegral(self, self.samples, self.max_input)

    def __str__(self) -> str:
        return f"\\int_0^x {self.source}"


@dataclass(frozen=True)
class BruteInverse(Function):
    """Numeric inverse of a monotone function on [min_input, max_input].

    ``get(y)`` brackets y between the two endpoint outputs, then narrows the
    bracket with secant steps until the residual drops below ``accuracy``.
    A bracket end that survives two steps in a row has its residual halved
    (the Illinois rule), which keeps convex inputs from stalling.

    Raises (from ``get``):
        DomainError: If y is not between f(min_input) and f(max_input).
        ArithmeticError: If the search has not converged after
            ``max_iterations`` steps.
    """

    source: Function
    accuracy: float
    min_input: float
    max_input: float
    max_iterations: int = BRUTE_INVERSE_MAX_ITERATIONS

    kind = NodeKind.BRUTE_INVERSE

    def __post_init__(self) -> None:
        if not self.accuracy > 0:
            raise ValueError(f"accuracy must be positive, got {self.accuracy}")
        if not (math.isfinite(self.min_input) and math.isfinite(self.max_input)):
            raise ValueError(f"Inverse bounds must be finite: [{self.min_input}, {self.max_input}]")
        if self.min_input >= self.max_input:
            raise ValueError(f"min_input must be below max_input: [{self.min_input}, {self.max_input}]")

    def get(self, y: float) -> float:
        low, high = self.min_input, self.max_input
        low_residual = self.source.get(low) - y
        high_residual = self.source.get(high) - y
        if abs(low_residual) < self.accuracy:
            return low
        if abs(high_residual) < self.accuracy:
            return high
        if not low_residual * high_residual < 0:
            raise DomainError(
                f"Domain error: {y} is not between f({low:g}) = {low_residual + y:g} "
                f"and f({high:g}) = {high_residual + y:g}"
            )

        retained = 0
        for _ in range(self.max_iterations):
            guess = high - high_residual * (high - low) / (high_residual - low_residual)
            residual = self.source.get(guess) - y
            if abs(residual) < self.accuracy:
                return guess
            if residual * high_residual > 0:
                high, high_residual = guess, residual
                if retained == -1:
                    low_residual /= 2
                retained = -1
            else:
                low, low_residual = guess, residual
                if retained == 1:
                    high_residual /= 2
                retained = 1

        raise ArithmeticError(
            f"Inverse of {y} did not converge within {self.max_iterations} iterations "
            f"(bracket [{low:g}, {high:g}])"
        )

    def derivative(self) -> Function:
        return Quotient(Constant(1.0), Composition(self, self.source.derivative()))

    def inverse(self) -> Function:
        return self.source

    def __str__(self) -> str:
        return f"\\left({self.source}\\right)^{{-1}}"


@dataclass(frozen=True)
class Calculify(Function):
    """Give any derivable function an integral, closed-form when possible."""

    source: Function
    samples: int
    max_input: float

    kind = NodeKind.CALCULIFY

    def get(self, x: float) -> float:
        return self.source.get(x)

    def derivative(self) -> Function:
        return self.source.derivative()

    def integral(self) -> Function:
        try:
            return self.source.integral()
        except NotImplementedError:
            return BruteIntegral(self.source, self.samples, self.max_input)

    def inverse(self) -> Function:
        return self.source.inverse()

    def __str__(self) -> str:
        return str(self.source)


@dataclass(frozen=True)
class Inversiblify(Function):
    """Give a monotone function a numeric inverse over [min_input, max_input]."""

    source: Function
    accuracy: float
    max_input: float
    min_input: float = 0.0

    kind = NodeKind.INVERSIBLIFY

    def get(self, x: float) -> float:
        return self.source.get(x)

    def derivative(self) -> Function:
        return self.source.derivative()

    def integral(self) -> Function:
        return self.source.integral()

    def inverse(self) -> Function:
        return BruteInverse(self.source, self.accuracy, self.min_input, self.max_input)

    def __str__(self) -> str:
        return str(self.source)
