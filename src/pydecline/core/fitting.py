"""Decline curve fitting with the Nelder-Mead simplex optimizer.

Features:
- Sum-of-squared-error objectives against rate samples or interval volumes
- Per-model initial simplex policies (fixed literal simplex, or a bounds
  guess from the peak observed rate turned into an inner simplex)
- Range errors raised by candidate models during a fit are mapped to +inf
  so the optimizer steers away from invalid parameter regions
- Fit quality metrics (R², RMSE, AIC, BIC) for fitted models
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable
import logging
import math

import numpy as np

from .models import DeclineModel, DeclineRangeError, ModelKind
from .simplex import DEFAULT_TERM_EPS, NelderMeadOptions, Objective, inner_simplex, minimize

logger = logging.getLogger(__name__)


class StartStrategy(str, Enum):
    """How the initial simplex is chosen."""
    BOUNDS = "bounds"
    FIXED = "fixed"


@dataclass(frozen=True)
class FitPolicy:
    """Initial simplex policy for one model kind.

    Attributes:
        initial_simplex: Literal starting vertices spanning plausible
            qi/decline/shape ranges
        qi_factors: (lower, upper) multipliers of the peak rate bounding qi
        lower: Lower bounds of the remaining parameters
        upper: Upper bounds of the remaining parameters
    """
    initial_simplex: tuple[tuple[float, ...], ...]
    qi_factors: tuple[float, float]
    lower: tuple[float, ...]
    upper: tuple[float, ...]

    def parameter_bounds_guess(self, peak_rate: float) -> tuple[np.ndarray, np.ndarray]:
        """Parameter bounds derived from the peak observed rate."""
        lower = np.array([peak_rate * self.qi_factors[0], *self.lower])
        upper = np.array([peak_rate * self.qi_factors[1], *self.upper])
        return lower, upper

    def start_simplex(self, peak_rate: float, strategy: StartStrategy | str) -> np.ndarray:
        """Initial simplex for the given start strategy."""
        if StartStrategy(strategy) == StartStrategy.FIXED:
            return np.array(self.initial_simplex, dtype=float)
        return inner_simplex(*self.parameter_bounds_guess(peak_rate))


FIT_POLICIES: dict[ModelKind, FitPolicy] = {
    ModelKind.EXPONENTIAL: FitPolicy(
        initial_simplex=(
            (1.0, 0.01),
            (1e6, 0.5),
            (1e3, 10.0),
        ),
        qi_factors=(0.5, 2.0),
        lower=(0.0,),
        upper=(10.0,),
    ),
    ModelKind.HYPERBOLIC: FitPolicy(
        initial_simplex=(
            (1.0, 0.01, 0.0),
            (1e6, 1.0, 0.0),
            (1e5, 10.0, 0.0),
            (1e4, 5.0, 3.0),
        ),
        qi_factors=(0.5, 2.0),
        lower=(0.0, 0.0),
        upper=(10.0, 3.0),
    ),
    ModelKind.HYPERBOLIC_TO_EXPONENTIAL: FitPolicy(
        initial_simplex=(
            (1.0, 0.01, 0.1, 0.05),
            (1e4, 5.0, 5.0, 0.05),
            (5e2, 2.3, 2.0, 0.15),
            (1e3, 1.5, 1.5, 0.10),
            (50.0, 1.0, 0.75, 0.05),
        ),
        qi_factors=(0.5, 2.0),
        lower=(0.0, 0.0, 0.01),
        upper=(10.0, 3.0, 10.0),
    ),
}


def _resolve_kind(model: ModelKind | str | type[DeclineModel]) -> ModelKind:
    if isinstance(model, type) and issubclass(model, DeclineModel):
        return model.KIND
    try:
        return ModelKind(model)
    except ValueError:
        valid = ", ".join(k.value for k in ModelKind)
        raise ValueError(f"Unknown model kind: {model!r}. Valid kinds: {valid}") from None


def sse_against_rate(model: DeclineModel, rates: np.ndarray, times: np.ndarray) -> float:
    """Sum of squared errors between observed rates and model rates."""
    return float(np.sum((rates - model.rate(times)) ** 2))


def sse_against_interval(
    model: DeclineModel,
    volumes: np.ndarray,
    time_initial: float,
    time_step: float,
) -> float:
    """Sum of squared errors between observed and modelled interval volumes.

    The model is stepped forward from ``time_initial`` by ``time_step``;
    each predicted interval is the change in cumulative volume over one step.
    """
    grid = time_initial + time_step * np.arange(len(volumes) + 1, dtype=float)
    predicted = np.diff(model.cumulative(grid))
    return float(np.sum((volumes - predicted) ** 2))


def _contained(model_class: type[DeclineModel], sse: Callable[[DeclineModel], float]) -> Objective:
    """Wrap an SSE function into a parameter-vector objective.

    Candidate vectors the model rejects evaluate to +inf.
    """
    def objective(vector: np.ndarray) -> float:
        try:
            model = model_class.from_vector(vector)
        except DeclineRangeError:
            return math.inf
        with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
            return sse(model)

    return objective


def _check_series(values: np.ndarray, name: str) -> None:
    if len(values) == 0:
        raise ValueError(f"No {name} to fit")


def best_from_rate(
    model: ModelKind | str | type[DeclineModel],
    rates,
    times,
    options: NelderMeadOptions | None = None,
    start: StartStrategy | str = StartStrategy.BOUNDS,
) -> DeclineModel:
    """Fit a decline model to rate samples.

    Args:
        model: Model kind or model class to fit
        rates: Observed rates
        times: Times of the observed rates
        options: Optimizer options (default 300 iterations)
        start: Initial simplex strategy

    Returns:
        Fitted model instance minimizing the sum of squared rate errors

    Raises:
        ValueError: If the series are empty or of different lengths
    """
    kind = _resolve_kind(model)
    rates = np.asarray(rates, dtype=float)
    times = np.asarray(times, dtype=float)
    _check_series(rates, "rates")
    if rates.shape != times.shape:
        raise ValueError(
            f"Rates and times must have the same length, got {len(rates)} and {len(times)}"
        )

    model_class = kind.model_class
    objective = _contained(model_class, lambda m: sse_against_rate(m, rates, times))
    simplex = FIT_POLICIES[kind].start_simplex(float(np.max(rates)), start)

    best = minimize(objective, simplex, options)
    logger.debug(f"Best {kind.value} fit to {len(rates)} rates: {best}")
    return model_class.from_vector(best)


def best_from_interval_volume(
    model: ModelKind | str | type[DeclineModel],
    volumes,
    time_initial: float,
    time_step: float,
    options: NelderMeadOptions | None = None,
    start: StartStrategy | str = StartStrategy.BOUNDS,
) -> DeclineModel:
    """Fit a decline model to interval volumes at a fixed time step.

    Args:
        model: Model kind or model class to fit
        volumes: Observed volumes for consecutive intervals
        time_initial: Start time of the first interval
        time_step: Interval length
        options: Optimizer options (default 300 iterations)
        start: Initial simplex strategy

    Returns:
        Fitted model instance minimizing the sum of squared volume errors

    Raises:
        ValueError: If the volume series is empty or the time step is not positive
    """
    kind = _resolve_kind(model)
    volumes = np.asarray(volumes, dtype=float)
    _check_series(volumes, "volumes")
    if not time_step > 0.0:
        raise ValueError(f"time_step must be positive, got {time_step}")

    model_class = kind.model_class
    objective = _contained(
        model_class, lambda m: sse_against_interval(m, volumes, time_initial, time_step)
    )
    # peak volume over one step approximates the peak rate
    peak_rate = float(np.max(volumes)) / time_step
    simplex = FIT_POLICIES[kind].start_simplex(peak_rate, start)

    best = minimize(objective, simplex, options)
    logger.debug(f"Best {kind.value} fit to {len(volumes)} interval volumes: {best}")
    return model_class.from_vector(best)


@dataclass
class FittingConfig:
    """Configuration for decline curve fitting.

    Attributes:
        max_iter: Optimizer iteration budget (default 300)
        term_eps: Convergence threshold on the simplex objective spread
        term_iter: Consecutive converged iterations required to stop (default 10)
        ref_factor: Reflection factor (default 1.0)
        exp_factor: Expansion factor (default 2.0)
        con_factor: Contraction factor (default 0.5)
        shr_factor: Shrink factor (default 0.5)
        start: Initial simplex strategy, 'bounds' or 'fixed' (default 'bounds')
    """
    max_iter: int = 300
    term_eps: float = DEFAULT_TERM_EPS
    term_iter: int = 10
    ref_factor: float = 1.0
    exp_factor: float = 2.0
    con_factor: float = 0.5
    shr_factor: float = 0.5
    start: str | StartStrategy = StartStrategy.BOUNDS

    @property
    def options(self) -> NelderMeadOptions:
        """Optimizer options for this configuration."""
        return NelderMeadOptions(
            max_iter=self.max_iter,
            term_eps=self.term_eps,
            term_iter=self.term_iter,
            ref_factor=self.ref_factor,
            exp_factor=self.exp_factor,
            con_factor=self.con_factor,
            shr_factor=self.shr_factor,
        )

    @classmethod
    def from_pydecline_config(cls, config: "PyDeclineConfig") -> "FittingConfig":  # noqa: F821
        """Create FittingConfig from the fitting section of a PyDeclineConfig."""
        fitting = config.fitting
        return cls(
            max_iter=fitting.max_iter,
            term_eps=fitting.term_eps,
            term_iter=fitting.term_iter,
            ref_factor=fitting.ref_factor,
            exp_factor=fitting.exp_factor,
            con_factor=fitting.con_factor,
            shr_factor=fitting.shr_factor,
            start=fitting.start,
        )


@dataclass
class FitResult:
    """Result of a decline curve fit.

    Attributes:
        model: Fitted decline model
        sse: Sum of squared errors of the fit
        r_squared: Coefficient of determination
        rmse: Root mean squared error
        aic: Akaike Information Criterion
        bic: Bayesian Information Criterion
        data_points_used: Number of observations fitted
        acceptable_r_squared: Threshold for is_acceptable check (default 0.7)
    """
    model: DeclineModel
    sse: float
    r_squared: float
    rmse: float
    aic: float
    bic: float
    data_points_used: int
    acceptable_r_squared: float = 0.7

    @property
    def is_acceptable(self) -> bool:
        """Check if fit meets minimum quality threshold."""
        return self.r_squared >= self.acceptable_r_squared

    def summary(self) -> dict:
        """Return summary dictionary of fit results."""
        summary = {name: getattr(self.model, name) for name in self.model.PARAMETER_NAMES}
        summary.update({
            "model": self.model.KIND.value,
            "sse": self.sse,
            "r_squared": self.r_squared,
            "rmse": self.rmse,
            "aic": self.aic,
            "bic": self.bic,
            "data_points_used": self.data_points_used,
        })
        return summary


class DeclineFitter:
    """Fits decline models and grades the fits."""

    def __init__(self, config: FittingConfig | None = None):
        """Initialize fitter with configuration.

        Args:
            config: Fitting configuration, uses defaults if None
        """
        self.config = config or FittingConfig()

    def fit_rate(self, model: ModelKind | str, t, q) -> FitResult:
        """Fit a model to rate samples.

        Args:
            model: Model kind to fit
            t: Sample times
            q: Observed rates

        Returns:
            FitResult with fitted model and quality metrics
        """
        t = np.asarray(t, dtype=float)
        q = np.asarray(q, dtype=float)
        fitted = best_from_rate(model, q, t, self.config.options, self.config.start)
        return self._build_result(fitted, q, fitted.rate(t))

    def fit_interval_volume(
        self,
        model: ModelKind | str,
        volumes,
        time_initial: float,
        time_step: float,
    ) -> FitResult:
        """Fit a model to interval volumes.

        Args:
            model: Model kind to fit
            volumes: Observed interval volumes
            time_initial: Start time of the first interval
            time_step: Interval length

        Returns:
            FitResult with fitted model and quality metrics
        """
        volumes = np.asarray(volumes, dtype=float)
        fitted = best_from_interval_volume(
            model, volumes, time_initial, time_step, self.config.options, self.config.start,
        )
        grid = time_initial + time_step * np.arange(len(volumes) + 1, dtype=float)
        return self._build_result(fitted, volumes, np.diff(fitted.cumulative(grid)))

    def _build_result(
        self,
        model: DeclineModel,
        observed: np.ndarray,
        predicted: np.ndarray,
    ) -> FitResult:
        metrics = self._calculate_metrics(observed, predicted, n_params=len(model.PARAMETER_NAMES))
        return FitResult(
            model=model,
            sse=metrics["sse"],
            r_squared=metrics["r_squared"],
            rmse=metrics["rmse"],
            aic=metrics["aic"],
            bic=metrics["bic"],
            data_points_used=len(observed),
        )

    def _calculate_metrics(
        self,
        observed: np.ndarray,
        predicted: np.ndarray,
        n_params: int = 3
    ) -> dict:
        """Calculate fit quality metrics.

        Args:
            observed: Observed values
            predicted: Predicted values
            n_params: Number of model parameters

        Returns:
            Dictionary with sse, r_squared, rmse, aic, bic
        """
        n = len(observed)
        residuals = observed - predicted
        ss_res = float(np.sum(residuals ** 2))
        ss_tot = float(np.sum((observed - np.mean(observed)) ** 2))

        r_squared = 1 - (ss_res / ss_tot) if ss_tot > 0 else 0.0
        rmse = math.sqrt(ss_res / n)

        # Log-likelihood (assuming normal errors)
        if ss_res > 0:
            sigma2 = ss_res / n
            log_likelihood = -n / 2 * (math.log(2 * math.pi * sigma2) + 1)
        else:
            log_likelihood = 0.0

        aic = 2 * n_params - 2 * log_likelihood
        bic = n_params * math.log(n) - 2 * log_likelihood

        return {
            "sse": ss_res,
            "r_squared": r_squared,
            "rmse": rmse,
            "aic": aic,
            "bic": bic,
        }
