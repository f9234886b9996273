"""Nelder-Mead downhill simplex minimization.

Derivative-free minimizer over a fixed-length real parameter vector. A
simplex of N+1 vertices is moved through the N-dimensional parameter
space by reflecting, expanding and contracting its worst vertex, or by
shrinking the whole simplex toward its best vertex.

The optimizer has no failure mode: it always returns a vertex. Objective
functions map invalid parameter regions to +inf, which the algorithm
treats as an ordinary (very bad) value. NaN objective values are treated
the same way.

Example:
    >>> best = nelder_mead(
    ...     lambda x: (x[0] - 1.0) ** 2 + (x[1] + 2.0) ** 2,
    ...     [[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]],
    ...     max_iter=300,
    ... )
"""

from dataclasses import dataclass
from typing import Callable
import logging

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_TERM_EPS = float(np.sqrt(np.finfo(float).eps))

Objective = Callable[[np.ndarray], float]


@dataclass
class NelderMeadOptions:
    """Tuning parameters for ``nelder_mead``.

    Attributes:
        max_iter: Maximum number of iterations
        term_eps: Spread between worst and best objective values below which
            an iteration counts as converged
        term_iter: Consecutive converged iterations required to stop
        ref_factor: Reflection factor
        exp_factor: Expansion factor
        con_factor: Contraction factor
        shr_factor: Shrink factor
    """
    max_iter: int = 300
    term_eps: float = DEFAULT_TERM_EPS
    term_iter: int = 10
    ref_factor: float = 1.0
    exp_factor: float = 2.0
    con_factor: float = 0.5
    shr_factor: float = 0.5


def centroid(simplex: np.ndarray, except_index: int) -> np.ndarray:
    """Mean of all simplex vertices except one."""
    mask = np.arange(len(simplex)) != except_index
    return simplex[mask].sum(axis=0) / (len(simplex) - 1)


def inner_simplex(lower, upper) -> np.ndarray:
    """Build a non-degenerate simplex spanning a box of parameter bounds.

    Vertex 0 is the lower corner. Vertex k (k >= 1) takes the upper bound
    on axis k-1, the midpoint on the axes before it and the lower bound on
    the axes after it.

    Args:
        lower: Lower bound for each parameter
        upper: Upper bound for each parameter

    Returns:
        Array of shape (N+1, N)
    """
    lower = np.asarray(lower, dtype=float).ravel()
    upper = np.asarray(upper, dtype=float).ravel()
    if lower.shape != upper.shape:
        raise ValueError(
            f"Bounds must have equal length, got {len(lower)} and {len(upper)}"
        )

    n = len(lower)
    middle = (lower + upper) / 2.0
    simplex = np.tile(lower, (n + 1, 1))
    for k in range(1, n + 1):
        simplex[k, :k - 1] = middle[:k - 1]
        simplex[k, k - 1] = upper[k - 1]
    return simplex


def _evaluate(objective: Objective, vertex: np.ndarray) -> float:
    value = float(objective(vertex))
    if np.isnan(value):
        return float("inf")
    return value


def _best_index(values: np.ndarray) -> int:
    return int(np.argmin(values))


def _worst_index(values: np.ndarray, best: int, replaced: int | None = None) -> int:
    # highest value other than best; ties go to the vertex just replaced,
    # otherwise to the first maximum
    others = [i for i in range(len(values)) if i != best]
    worst = max(others, key=lambda i: values[i])
    if replaced is not None and replaced != best and values[replaced] == values[worst]:
        return replaced
    return worst


def nelder_mead(
    objective: Objective,
    initial_simplex,
    max_iter: int = 300,
    term_eps: float = DEFAULT_TERM_EPS,
    term_iter: int = 10,
    ref_factor: float = 1.0,
    exp_factor: float = 2.0,
    con_factor: float = 0.5,
    shr_factor: float = 0.5,
) -> np.ndarray:
    """Minimize an objective function with the Nelder-Mead simplex method.

    Args:
        objective: Function of a parameter vector returning a scalar
        initial_simplex: N+1 vertices of length N (array-like)
        max_iter: Maximum number of iterations
        term_eps: Convergence threshold on worst - best objective value
        term_iter: Consecutive converged iterations required to stop
        ref_factor: Reflection factor
        exp_factor: Expansion factor
        con_factor: Contraction factor
        shr_factor: Shrink factor

    Returns:
        The best vertex found (new array of length N)

    Raises:
        ValueError: If the initial simplex does not have N+1 vertices of length N
    """
    simplex = np.array(initial_simplex, dtype=float)
    if simplex.ndim == 1:
        simplex = simplex.reshape(-1, 1)
    if simplex.ndim != 2 or simplex.shape[0] != simplex.shape[1] + 1:
        raise ValueError(
            f"Initial simplex must have shape (N+1, N), got {simplex.shape}"
        )

    values = np.array([_evaluate(objective, v) for v in simplex])
    best = _best_index(values)
    worst = _worst_index(values, best)
    cent = centroid(simplex, worst)

    def replace_worst(vertex: np.ndarray, value: float) -> None:
        nonlocal best, worst, cent
        replaced = worst
        simplex[replaced] = vertex
        values[replaced] = value
        if value < values[best]:
            best = replaced
        worst = _worst_index(values, best, replaced)
        cent = centroid(simplex, worst)

    def shrink() -> None:
        nonlocal best, worst, cent
        for i in range(len(simplex)):
            if i != best:
                simplex[i] = (1.0 - shr_factor) * simplex[best] + shr_factor * simplex[i]
                values[i] = _evaluate(objective, simplex[i])
        best = _best_index(values)
        worst = _worst_index(values, best)
        cent = centroid(simplex, worst)

    iteration = 0
    converged = 0
    while converged < term_iter and iteration < max_iter:
        iteration += 1

        reflect = (1.0 + ref_factor) * cent - ref_factor * simplex[worst]
        reflect_value = _evaluate(objective, reflect)

        if reflect_value < values[best]:
            expand = (1.0 - exp_factor) * cent + exp_factor * reflect
            expand_value = _evaluate(objective, expand)
            if expand_value < reflect_value:
                replace_worst(expand, expand_value)
            else:
                replace_worst(reflect, reflect_value)
        elif np.any(np.delete(values, worst) > reflect_value):
            replace_worst(reflect, reflect_value)
        elif values[worst] > reflect_value:
            # outside contraction
            contract = (1.0 - con_factor) * cent + con_factor * reflect
            contract_value = _evaluate(objective, contract)
            if contract_value <= reflect_value:
                replace_worst(contract, contract_value)
            else:
                shrink()
        else:
            # inside contraction
            contract = (1.0 - con_factor) * cent + con_factor * simplex[worst]
            contract_value = _evaluate(objective, contract)
            if contract_value < values[worst]:
                replace_worst(contract, contract_value)
            else:
                shrink()

        if values[worst] - values[best] < term_eps:
            converged += 1
        else:
            converged = 0

    logger.debug(
        f"Nelder-Mead stopped after {iteration} iterations "
        f"({'converged' if converged >= term_iter else 'iteration limit'}), "
        f"best value {values[best]:.6g}"
    )
    return simplex[best].copy()


def minimize(objective: Objective, initial_simplex, options: NelderMeadOptions | None = None) -> np.ndarray:
    """Run ``nelder_mead`` with an options object."""
    options = options or NelderMeadOptions()
    return nelder_mead(
        objective,
        initial_simplex,
        max_iter=options.max_iter,
        term_eps=options.term_eps,
        term_iter=options.term_iter,
        ref_factor=options.ref_factor,
        exp_factor=options.exp_factor,
        con_factor=options.con_factor,
        shr_factor=options.shr_factor,
    )
