"""Core decline curve models, simplex optimizer and fitting."""

from .conversions import DeclineRate, convert_decline, decline
from .models import (
    DeclineModel,
    DeclineRangeError,
    ExponentialModel,
    HyperbolicModel,
    HyperbolicToExponentialModel,
    ModelKind,
)
from .operations import eur, interval_volumes, step_series, time_to_cumulative, time_to_rate
from .simplex import NelderMeadOptions, inner_simplex, nelder_mead
from .fitting import (
    DeclineFitter,
    FitResult,
    FittingConfig,
    StartStrategy,
    best_from_interval_volume,
    best_from_rate,
)

__all__ = [
    "DeclineRate",
    "convert_decline",
    "decline",
    "DeclineModel",
    "DeclineRangeError",
    "ExponentialModel",
    "HyperbolicModel",
    "HyperbolicToExponentialModel",
    "ModelKind",
    "eur",
    "interval_volumes",
    "step_series",
    "time_to_cumulative",
    "time_to_rate",
    "NelderMeadOptions",
    "inner_simplex",
    "nelder_mead",
    "DeclineFitter",
    "FitResult",
    "FittingConfig",
    "StartStrategy",
    "best_from_interval_volume",
    "best_from_rate",
]
