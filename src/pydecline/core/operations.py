"""Operations derived from a decline model.

- ``interval_volumes``: volumes produced over successive time steps
- ``time_to_rate`` / ``time_to_cumulative``: inverse lookups, solved as
  1-D minimizations with the simplex optimizer
- ``eur``: estimated ultimate recovery to an economic limit rate, capped
  by a maximum time
"""

import math

import numpy as np

from .models import DeclineModel
from .simplex import nelder_mead

# Budget and starting simplex for the 1-D inversions
INVERSION_MAX_ITER = 300
INVERSION_UPPER = 100.0
INVERSION_MIN_UPPER = 1e-6
# Relative change below which the objective counts as flat
INVERSION_FLAT_RTOL = 1e-6


def step_series(time_begin: float, time_step: float, n: int) -> np.ndarray:
    """Return ``n`` evenly spaced times starting at ``time_begin``."""
    return time_begin + time_step * np.arange(n, dtype=float)


def interval_volumes(
    model: DeclineModel,
    time_begin: float,
    time_step: float,
    n: int,
) -> np.ndarray:
    """Volumes produced over ``n`` consecutive intervals.

    Interval i covers [time_begin + i*step, time_begin + (i+1)*step].

    Args:
        model: Decline model
        time_begin: Start of the first interval
        time_step: Interval length
        n: Number of intervals

    Returns:
        Array of ``n`` interval volumes
    """
    grid = step_series(time_begin, time_step, n + 1)
    return np.diff(model.cumulative(grid))


def _invert(fn, target: float) -> float:
    def objective(x: np.ndarray) -> float:
        t = x[0]
        if t < 0.0:
            return math.inf
        return abs(fn(t) - target)

    # A steep curve is numerically flat well before the default upper
    # vertex; halve it until its upper half has some slope left.
    upper = INVERSION_UPPER
    far = objective(np.array([upper]))
    flat_tol = INVERSION_FLAT_RTOL * max(abs(far), 1.0)

    def is_flat(t: float) -> bool:
        return abs(objective(np.array([t])) - far) <= flat_tol

    if not is_flat(0.0):
        while upper > INVERSION_MIN_UPPER and is_flat(upper / 2.0):
            upper /= 2.0

    return float(nelder_mead(objective, ((0.0,), (upper,)), INVERSION_MAX_ITER)[0])


def time_to_rate(model: DeclineModel, rate: float) -> float:
    """Time at which the model rate reaches ``rate``.

    Targets above the initial rate resolve to t = 0.
    """
    return _invert(model.rate, rate)


def time_to_cumulative(model: DeclineModel, cumulative: float) -> float:
    """Time at which the model cumulative volume reaches ``cumulative``."""
    return _invert(model.cumulative, cumulative)


def eur(
    model: DeclineModel,
    economic_limit: float,
    max_time: float = math.inf,
    return_time: bool = False,
) -> float | tuple[float, float]:
    """Estimated ultimate recovery.

    Cumulative volume at the time the rate falls to ``economic_limit``,
    or at ``max_time`` if that comes first.

    Args:
        model: Decline model
        economic_limit: Economic limit rate (same units as the model rate)
        max_time: Maximum producing time
        return_time: Also return the time used

    Returns:
        EUR, or (EUR, time) when ``return_time`` is True
    """
    t_eur = min(time_to_rate(model, economic_limit), max_time)
    volume = model.cumulative(t_eur)
    if return_time:
        return volume, t_eur
    return volume
