"""Conversions between decline rate conventions.

Three conventions are in common use for quoting a decline rate:

    nominal            D, the continuous decay constant: q(t) = qi * exp(-D*t)
    tangent effective  1 - exp(-D), the fractional loss over one unit of
                       time for an exponential decline
    secant effective   1 - (1 + b*D)^(-1/b), the fractional loss over one
                       unit of time for a hyperbolic decline with exponent b

The secant effective form tends to the tangent effective form as b -> 0.
Conversions between the two effective forms pivot through nominal, and
b below ``SHAPE_EPS`` uses the tangent formulas so that the 0/0 limit is
never evaluated.

Effective rates are expected in (0, 1); values outside that range are
not validated.

Example:
    >>> d = decline(0.95, DeclineRate.TANGENT_EFFECTIVE)   # nominal
    >>> convert_decline(d, DeclineRate.NOMINAL, DeclineRate.SECANT_EFFECTIVE, b=1.5)
"""

from enum import Enum
import math

SHAPE_EPS = 1e-5


class DeclineRate(str, Enum):
    """Decline rate convention."""
    NOMINAL = "nominal"
    TANGENT_EFFECTIVE = "tangent_effective"
    SECANT_EFFECTIVE = "secant_effective"


def _nominal_to_tangent(d: float, b: float) -> float:
    return -math.expm1(-d)


def _tangent_to_nominal(d: float, b: float) -> float:
    return -math.log1p(-d)


def _nominal_to_secant(d: float, b: float) -> float:
    if b < SHAPE_EPS:
        return _nominal_to_tangent(d, b)
    return 1.0 - math.pow(1.0 + b * d, -1.0 / b)


def _secant_to_nominal(d: float, b: float) -> float:
    if b < SHAPE_EPS:
        return _tangent_to_nominal(d, b)
    return (math.pow(1.0 - d, -b) - 1.0) / b


_TO_NOMINAL = {
    DeclineRate.NOMINAL: lambda d, b: d,
    DeclineRate.TANGENT_EFFECTIVE: _tangent_to_nominal,
    DeclineRate.SECANT_EFFECTIVE: _secant_to_nominal,
}

_FROM_NOMINAL = {
    DeclineRate.NOMINAL: lambda d, b: d,
    DeclineRate.TANGENT_EFFECTIVE: _nominal_to_tangent,
    DeclineRate.SECANT_EFFECTIVE: _nominal_to_secant,
}


def convert_decline(
    value: float,
    from_type: DeclineRate | str,
    to_type: DeclineRate | str,
    b: float = 1.0,
) -> float:
    """Convert a decline rate from one convention to another.

    Args:
        value: Decline rate expressed in ``from_type``
        from_type: Convention of ``value``
        to_type: Desired convention
        b: Hyperbolic exponent, used only by the secant effective form

    Returns:
        Decline rate expressed in ``to_type``
    """
    from_type = DeclineRate(from_type)
    to_type = DeclineRate(to_type)
    if from_type == to_type:
        return float(value)
    nominal = _TO_NOMINAL[from_type](float(value), b)
    return float(_FROM_NOMINAL[to_type](nominal, b))


def decline(value: float, from_type: DeclineRate | str, b: float = 1.0) -> float:
    """Convert a decline rate in any convention to nominal."""
    return convert_decline(value, from_type, DeclineRate.NOMINAL, b)
