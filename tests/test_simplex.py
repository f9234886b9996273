"""Tests for the Nelder-Mead simplex optimizer."""

import math

import numpy as np
import pytest
from scipy.optimize import minimize as scipy_minimize

from pydecline.core.simplex import (
    NelderMeadOptions,
    centroid,
    inner_simplex,
    minimize,
    nelder_mead,
)


def quadratic(x):
    return (x[0] - 1.0) ** 2 + (x[1] + 2.0) ** 2


def rosenbrock(x):
    return (1.0 - x[0]) ** 2 + 100.0 * (x[1] - x[0] ** 2) ** 2


class TestNelderMead:
    """Tests for nelder_mead."""

    def test_quadratic_minimum(self):
        """Test convergence to the minimum of a quadratic bowl."""
        best = nelder_mead(quadratic, [[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]], max_iter=500)
        assert best == pytest.approx([1.0, -2.0], abs=1e-3)

    def test_rosenbrock(self):
        """Test convergence along the curved Rosenbrock valley."""
        best = nelder_mead(
            rosenbrock,
            [[-1.2, 1.0], [-1.0, 1.0], [-1.2, 1.2]],
            max_iter=5000,
        )
        assert best == pytest.approx([1.0, 1.0], abs=5e-2)

    def test_agrees_with_scipy(self):
        """Test the result matches SciPy's Nelder-Mead from the same simplex."""
        simplex = np.array([[3.0, 3.0], [4.0, 3.0], [3.0, 4.0]])
        ours = nelder_mead(quadratic, simplex, max_iter=1000)
        reference = scipy_minimize(
            quadratic,
            simplex[0],
            method="Nelder-Mead",
            options={"initial_simplex": simplex, "xatol": 1e-8, "fatol": 1e-12},
        )
        assert ours == pytest.approx(reference.x, abs=1e-3)

    def test_one_dimensional(self):
        """Test a 1-D problem given as a flat list of vertices."""
        best = nelder_mead(lambda x: abs(x[0] - 3.0), [0.0, 100.0], max_iter=300)
        assert best.shape == (1,)
        assert best[0] == pytest.approx(3.0, abs=1e-4)

    def test_infinite_region_avoided(self):
        """Test +inf objective values steer the search into the valid region."""
        def objective(x):
            if x[0] < 0.0:
                return math.inf
            return (x[0] + 1.0) ** 2

        best = nelder_mead(objective, [[1.0], [2.0]], max_iter=300)
        assert best[0] >= 0.0
        assert best[0] == pytest.approx(0.0, abs=1e-3)

    def test_nan_treated_as_infinite(self):
        """Test NaN objective values behave like +inf."""
        def objective(x):
            if x[0] < 0.0:
                return float("nan")
            return (x[0] - 0.5) ** 2

        best = nelder_mead(objective, [[1.0], [2.0]], max_iter=300)
        assert best[0] == pytest.approx(0.5, abs=1e-3)

    def test_plateau_does_not_pull_search_outward(self):
        """Test a new vertex tying the best on a plateau does not become best."""
        def objective(x):
            # parabola that flattens out at its value for x = 3
            return (x[0] - 1.0) ** 2 if x[0] < 3.0 else 4.0

        best = nelder_mead(objective, [[-5.0], [10.0]], max_iter=300)
        assert best[0] == pytest.approx(1.0, abs=1e-3)

    def test_constant_objective_keeps_first_vertex(self):
        """Test ties leave the first vertex as best."""
        best = nelder_mead(lambda x: 0.0, [[0.0], [1.0]], max_iter=50)
        assert best[0] == 0.0

    def test_zero_iterations_returns_best_vertex(self):
        """Test max_iter=0 returns the best initial vertex."""
        best = nelder_mead(lambda x: x[0] ** 2, [[3.0], [1.0]], max_iter=0)
        assert best[0] == 1.0

    def test_returns_new_array(self):
        """Test the returned vertex does not alias the caller's simplex."""
        simplex = np.array([[3.0], [1.0]])
        best = nelder_mead(lambda x: x[0] ** 2, simplex, max_iter=0)
        best[0] = 99.0
        assert simplex[1, 0] == 1.0

    def test_bad_simplex_shape(self):
        """Test a simplex without N+1 vertices raises ValueError."""
        with pytest.raises(ValueError, match="shape"):
            nelder_mead(quadratic, [[0.0, 0.0], [1.0, 1.0]], max_iter=10)

    def test_minimize_with_options(self):
        """Test minimize() passes options through."""
        options = NelderMeadOptions(max_iter=500, term_iter=5)
        best = minimize(quadratic, [[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]], options)
        assert best == pytest.approx([1.0, -2.0], abs=1e-3)

    def test_iteration_limit_respected(self):
        """Test the objective is not evaluated without bound."""
        calls = []

        def objective(x):
            calls.append(1)
            return quadratic(x)

        nelder_mead(objective, [[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]], max_iter=5)
        # 3 initial + at most 2 per iteration, or a shrink of 2 more
        assert len(calls) <= 3 + 5 * 4


class TestSimplexHelpers:
    """Tests for simplex construction helpers."""

    def test_inner_simplex(self):
        """Test vertex layout between lower and upper bounds."""
        simplex = inner_simplex([0.0, 0.0, 0.0], [2.0, 4.0, 6.0])
        expected = [
            [0.0, 0.0, 0.0],
            [2.0, 0.0, 0.0],
            [1.0, 4.0, 0.0],
            [1.0, 2.0, 6.0],
        ]
        np.testing.assert_array_equal(simplex, expected)

    def test_inner_simplex_non_degenerate(self):
        """Test the simplex spans the full parameter space."""
        simplex = inner_simplex([500.0, 0.0, 0.0], [2000.0, 10.0, 3.0])
        edges = simplex[1:] - simplex[0]
        assert np.linalg.matrix_rank(edges) == 3

    def test_inner_simplex_mismatched_bounds(self):
        """Test bounds of different lengths raise ValueError."""
        with pytest.raises(ValueError):
            inner_simplex([0.0, 0.0], [1.0])

    def test_centroid(self):
        """Test centroid excludes one vertex."""
        simplex = np.array([[0.0, 0.0], [2.0, 0.0], [0.0, 2.0]])
        np.testing.assert_allclose(centroid(simplex, 0), [1.0, 1.0])
        np.testing.assert_allclose(centroid(simplex, 1), [0.0, 1.0])


def test_result_no_worse_than_initial_vertices():
    """Test the returned vertex never scores worse than the initial simplex."""
    def bowl(x):
        return float(np.sum((x - np.array([0.3, -0.7, 2.0])) ** 2))

    simplex = np.array([
        [5.0, 5.0, 5.0],
        [6.0, 5.0, 5.0],
        [5.0, 6.0, 5.0],
        [5.0, 5.0, 6.0],
    ])
    for max_iter in (1, 10, 300):
        best = nelder_mead(bowl, simplex, max_iter=max_iter)
        assert bowl(best) <= min(bowl(v) for v in simplex)
