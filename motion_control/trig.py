"""Trigonometric function nodes.

One tagged node, ``Trig(op)``, covers the six direct functions and their
inverses. Module-level constants (``SINE``, ``COSINE``, ...) are the usual
way to refer to them.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict

from .errors import DomainError
from .functions import (
    SQUARE_ROOT,
    AbsoluteValue,
    Composition,
    Constant,
    FractionalPolynomial,
    Function,
    NaturalLogarithm,
    NodeKind,
    Polynomial,
    Product,
    Quotient,
    Sum,
    safe_divide,
)


class TrigOp(Enum):
    SINE = "sin"
    COSINE = "cos"
    TANGENT = "tan"
    SECANT = "sec"
    COSECANT = "csc"
    COTANGENT = "cot"
    ARCSINE = "arcsin"
    ARCCOSINE = "arccos"
    ARCTANGENT = "arctan"
    ARCSECANT = "arcsec"
    ARCCOSECANT = "arccsc"
    ARCCOTANGENT = "arccot"


def _arcsine(x: float) -> float:
    if abs(x) > 1:
        raise DomainError(f"arcsin is undefined for x = {x}")
    return math.asin(x)


def _arccosine(x: float) -> float:
    if abs(x) > 1:
        raise DomainError(f"arccos is undefined for x = {x}")
    return math.acos(x)


def _arcsecant(x: float) -> float:
    if abs(x) < 1:
        raise DomainError(f"arcsec is undefined for x = {x}")
    return math.acos(1 / x)


def _arccosecant(x: float) -> float:
    if abs(x) < 1:
        raise DomainError(f"arccsc is undefined for x = {x}")
    return math.asin(1 / x)


_EVALUATORS: Dict[TrigOp, Callable[[float], float]] = {
    TrigOp.SINE: math.sin,
    TrigOp.COSINE: math.cos,
    TrigOp.TANGENT: math.tan,
    TrigOp.SECANT: lambda x: safe_divide(1.0, math.cos(x)),
    TrigOp.COSECANT: lambda x: safe_divide(1.0, math.sin(x)),
    TrigOp.COTANGENT: lambda x: safe_divide(math.cos(x), math.sin(x)),
    TrigOp.ARCSINE: _arcsine,
    TrigOp.ARCCOSINE: _arccosine,
    TrigOp.ARCTANGENT: math.atan,
    TrigOp.ARCSECANT: _arcsecant,
    TrigOp.ARCCOSECANT: _arccosecant,
    TrigOp.ARCCOTANGENT: lambda x: math.pi / 2 - math.atan(x),
}

_INVERSES = {
    TrigOp.SINE: TrigOp.ARCSINE,
    TrigOp.COSINE: TrigOp.ARCCOSINE,
    TrigOp.TANGENT: TrigOp.ARCTANGENT,
    TrigOp.SECANT: TrigOp.ARCSECANT,
    TrigOp.COSECANT: TrigOp.ARCCOSECANT,
    TrigOp.COTANGENT: TrigOp.ARCCOTANGENT,
}
_INVERSES.update({inverse: op for op, inverse in list(_INVERSES.items())})


@dataclass(frozen=True)
class Trig(Function):
    op: TrigOp

    kind = NodeKind.TRIG

    def get(self, x: float) -> float:
        return _EVALUATORS[self.op](x)

    def derivative(self) -> Function:
        return _DERIVATIVES[self.op]()

    def integral(self) -> Function:
        if self.op not in _INTEGRALS:
            raise NotImplementedError(f"No closed-form integral for {self.op.value}")
        return _INTEGRALS[self.op]()

    def inverse(self) -> Function:
        return Trig(_INVERSES[self.op])

    def __str__(self) -> str:
        if self.op in (TrigOp.ARCSECANT, TrigOp.ARCCOSECANT, TrigOp.ARCCOTANGENT):
            return f"\\operatorname{{{self.op.value}}}\\left(x\\right)"
        return f"\\{self.op.value}\\left(x\\right)"


SINE = Trig(TrigOp.SINE)
COSINE = Trig(TrigOp.COSINE)
TANGENT = Trig(TrigOp.TANGENT)
SECANT = Trig(TrigOp.SECANT)
COSECANT = Trig(TrigOp.COSECANT)
COTANGENT = Trig(TrigOp.COTANGENT)
ARCSINE = Trig(TrigOp.ARCSINE)
ARCCOSINE = Trig(TrigOp.ARCCOSINE)
ARCTANGENT = Trig(TrigOp.ARCTANGENT)
ARCSECANT = Trig(TrigOp.ARCSECANT)
ARCCOSECANT = Trig(TrigOp.ARCCOSECANT)
ARCCOTANGENT = Trig(TrigOp.ARCCOTANGENT)


def _negate(function: Function) -> Function:
    return Product(Constant(-1.0), function)


def _log_abs(function: Function) -> Function:
    return Composition(Composition(function, AbsoluteValue()), NaturalLogarithm())


def _arcsine_derivative() -> Function:
    # (1 - x^2)^(-1/2)
    return Composition(Polynomial(-1.0, 0.0, 1.0), FractionalPolynomial((1.0,), -0.5))


def _arcsecant_derivative() -> Function:
    # 1 / (|x| sqrt(x^2 - 1))
    return Quotient(
        Constant(1.0),
        Product(AbsoluteValue(), Composition(Polynomial(1.0, 0.0, -1.0), SQUARE_ROOT)),
    )


_DERIVATIVES: Dict[TrigOp, Callable[[], Function]] = {
    TrigOp.SINE: lambda: COSINE,
    TrigOp.COSINE: lambda: _negate(SINE),
    TrigOp.TANGENT: lambda: Product(SECANT, SECANT),
    TrigOp.SECANT: lambda: Product(SECANT, TANGENT),
    TrigOp.COSECANT: lambda: _negate(Product(COSECANT, COTANGENT)),
    TrigOp.COTANGENT: lambda: _negate(Product(COSECANT, COSECANT)),
    TrigOp.ARCSINE: _arcsine_derivative,
    TrigOp.ARCCOSINE: lambda: _negate(_arcsine_derivative()),
    TrigOp.ARCTANGENT: lambda: Quotient(Constant(1.0), Polynomial(1.0, 0.0, 1.0)),
    TrigOp.ARCSECANT: _arcsecant_derivative,
    TrigOp.ARCCOSECANT: lambda: _negate(_arcsecant_derivative()),
    TrigOp.ARCCOTANGENT: lambda: Quotient(Constant(-1.0), Polynomial(1.0, 0.0, 1.0)),
}

_INTEGRALS: Dict[TrigOp, Callable[[], Function]] = {
    TrigOp.SINE: lambda: _negate(COSINE),
    TrigOp.COSINE: lambda: SINE,
    TrigOp.TANGENT: lambda: _negate(_log_abs(COSINE)),
    TrigOp.COTANGENT: lambda: _log_abs(SINE),
    TrigOp.SECANT: lambda: _log_abs(Sum(SECANT, TANGENT)),
    TrigOp.COSECANT: lambda: _negate(_log_abs(Sum(COSECANT, COTANGENT))),
}
