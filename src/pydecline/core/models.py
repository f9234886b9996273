"""Arps decline curve models.

This module implements the three Arps decline models used for forecasting
and curve fitting. Each model is an immutable function object over time:
parameters are validated once at construction and the instance is then
consulted for rates and cumulative volumes.

Mathematical Background
-----------------------

Exponential:

    q(t)  = qi * exp(-D * t)
    Np(t) = qi / D * (1 - exp(-D * t))          (qi * t when D -> 0)

Hyperbolic:

    q(t)  = qi * (1 + b * Di * t)^(-1/b)
    Np(t) = qi / ((1-b) * Di) * (1 - (1 + b*Di*t)^(1 - 1/b))
    D(t)  = Di / (1 + b * Di * t)

    Special cases:
        - Exponential (b -> 0): delegates to the exponential model
        - Harmonic (b = 1):     q(t) = qi / (1 + Di*t)
                                Np(t) = qi / Di * ln(1 + Di*t)

Hyperbolic to exponential:
    A hyperbolic segment that switches to exponential decline at Df when
    the instantaneous decline D(t) falls to Df:

        t_trans = (Di/Df - 1) / (b * Di)

    If Df > Di the transition time is negative and the curve is treated as
    exponential at Df from t = 0.

All models return 0 rate and 0 cumulative volume for negative times.
Rates and cumulative volumes accept scalars (returning a float) or arrays
(returning an array of the same shape).

The thresholds separating the exponential, harmonic and general branches
live in the ``EPS`` class attribute of each model.

References:
    Arps, J.J. (1945). "Analysis of Decline Curves". Trans. AIME, 160, 228-247.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Literal

import numpy as np


class DeclineRangeError(ValueError):
    """Raised when a decline model is constructed with out-of-range parameters."""


class ModelKind(str, Enum):
    """Closed set of decline model types."""
    EXPONENTIAL = "exponential"
    HYPERBOLIC = "hyperbolic"
    HYPERBOLIC_TO_EXPONENTIAL = "hyperbolic_to_exponential"

    @property
    def model_class(self) -> "type[DeclineModel]":
        """Model class implementing this kind."""
        return _MODEL_CLASSES[self]

    @property
    def arity(self) -> int:
        """Number of parameters of this kind."""
        return len(self.model_class.PARAMETER_NAMES)


def _as_time(t) -> tuple[np.ndarray, bool]:
    arr = np.asarray(t, dtype=float)
    return arr, arr.ndim == 0


def _as_output(values: np.ndarray, scalar: bool):
    if scalar:
        return float(values)
    return values


def _require_non_negative(name: str, value: float) -> None:
    # written so that NaN is rejected as well
    if not value >= 0.0:
        raise DeclineRangeError(f"{name} must be non-negative, got {value}")


class DeclineModel(ABC):
    """Base class for decline models.

    Subclasses implement ``_rate`` and ``_cumulative`` for non-negative
    time arrays; the public methods handle scalars and negative times.
    """

    KIND: ClassVar[ModelKind]
    PARAMETER_NAMES: ClassVar[tuple[str, ...]]
    EPS: ClassVar[float] = 1e-5

    @abstractmethod
    def _rate(self, t: np.ndarray) -> np.ndarray:
        pass

    @abstractmethod
    def _cumulative(self, t: np.ndarray) -> np.ndarray:
        pass

    @abstractmethod
    def _decline(self, t: np.ndarray) -> np.ndarray:
        pass

    def rate(self, t: np.ndarray | float) -> np.ndarray | float:
        """Production rate at time t (0 for t < 0)."""
        t, scalar = _as_time(t)
        values = np.where(t < 0.0, 0.0, self._rate(np.maximum(t, 0.0)))
        return _as_output(values, scalar)

    def cumulative(self, t: np.ndarray | float) -> np.ndarray | float:
        """Cumulative production from 0 to t (0 for t < 0)."""
        t, scalar = _as_time(t)
        values = np.where(t < 0.0, 0.0, self._cumulative(np.maximum(t, 0.0)))
        return _as_output(values, scalar)

    def instantaneous_decline(self, t: np.ndarray | float) -> np.ndarray | float:
        """Nominal instantaneous decline rate at time t.

        Negative times report the decline at t = 0.
        """
        t, scalar = _as_time(t)
        return _as_output(self._decline(np.maximum(t, 0.0)), scalar)

    def to_vector(self) -> np.ndarray:
        """Return the model parameters as a new parameter vector."""
        return np.array([getattr(self, name) for name in self.PARAMETER_NAMES], dtype=float)

    @classmethod
    def from_vector(cls, vector) -> "DeclineModel":
        """Construct a model from a parameter vector.

        Raises:
            ValueError: If the vector length does not match the model arity
            DeclineRangeError: If the parameters are out of range
        """
        values = np.asarray(vector, dtype=float).ravel()
        if len(values) != len(cls.PARAMETER_NAMES):
            raise ValueError(
                f"{cls.__name__} takes {len(cls.PARAMETER_NAMES)} parameters "
                f"{cls.PARAMETER_NAMES}, got {len(values)}"
            )
        return cls(*(float(v) for v in values))


@dataclass(frozen=True)
class ExponentialModel(DeclineModel):
    """Arps exponential decline.

    Attributes:
        qi: Initial rate at t=0 (volume per unit time)
        d: Nominal decline rate (fraction per unit time)

    Example:
        >>> model = ExponentialModel(qi=1000, d=0.5)
        >>> rates = model.rate([0.0, 1.0, 2.0])
        >>> total = model.cumulative(10.0)
    """
    qi: float
    d: float

    KIND: ClassVar[ModelKind] = ModelKind.EXPONENTIAL
    PARAMETER_NAMES: ClassVar[tuple[str, ...]] = ("qi", "d")

    def __post_init__(self) -> None:
        _require_non_negative("qi", self.qi)
        _require_non_negative("d", self.d)
        object.__setattr__(self, "qi", float(self.qi))
        object.__setattr__(self, "d", float(self.d))

    def _rate(self, t: np.ndarray) -> np.ndarray:
        if self.d == 0.0:
            return np.full_like(t, self.qi)
        return self.qi * np.exp(-self.d * t)

    def _cumulative(self, t: np.ndarray) -> np.ndarray:
        if self.d < self.EPS:
            return self.qi * t
        return self.qi / self.d * -np.expm1(-self.d * t)

    def _decline(self, t: np.ndarray) -> np.ndarray:
        return np.full_like(t, self.d)


@dataclass(frozen=True)
class HyperbolicModel(DeclineModel):
    """Arps hyperbolic decline.

    Attributes:
        qi: Initial rate at t=0
        di: Initial nominal decline rate (fraction per unit time)
        b: Hyperbolic exponent, 0 <= b <= 5. Typical ranges:
            - 0-0.1: Near-exponential (boundary dominated flow)
            - 0.3-0.8: Typical unconventional
            - 1.0-2.0: Transient linear flow in tight reservoirs
    """
    qi: float
    di: float
    b: float

    KIND: ClassVar[ModelKind] = ModelKind.HYPERBOLIC
    PARAMETER_NAMES: ClassVar[tuple[str, ...]] = ("qi", "di", "b")
    MAX_B: ClassVar[float] = 5.0

    def __post_init__(self) -> None:
        _require_non_negative("qi", self.qi)
        _require_non_negative("di", self.di)
        _require_non_negative("b", self.b)
        if self.b > self.MAX_B:
            raise DeclineRangeError(f"b = {self.b} is implausibly high (max {self.MAX_B})")
        object.__setattr__(self, "qi", float(self.qi))
        object.__setattr__(self, "di", float(self.di))
        object.__setattr__(self, "b", float(self.b))

    @property
    def _is_exponential(self) -> bool:
        return self.b < self.EPS

    @property
    def _is_harmonic(self) -> bool:
        return abs(1.0 - self.b) < self.EPS

    def _rate(self, t: np.ndarray) -> np.ndarray:
        if self.di == 0.0:
            return np.full_like(t, self.qi)
        if self._is_exponential:
            return ExponentialModel(self.qi, self.di)._rate(t)
        if self._is_harmonic:
            return self.qi / (1.0 + self.di * t)
        return self.qi * np.exp(-np.log1p(self.b * self.di * t) / self.b)

    def _cumulative(self, t: np.ndarray) -> np.ndarray:
        if self.di < self.EPS:
            return self.qi * t
        if self._is_exponential:
            return ExponentialModel(self.qi, self.di)._cumulative(t)
        if self._is_harmonic:
            return self.qi / self.di * np.log1p(self.di * t)
        exponent = 1.0 - 1.0 / self.b
        return (
            self.qi / ((1.0 - self.b) * self.di)
            * -np.expm1(exponent * np.log1p(self.b * self.di * t))
        )

    def _decline(self, t: np.ndarray) -> np.ndarray:
        return self.di / (1.0 + self.b * self.di * t)

    @property
    def decline_type(self) -> Literal["EXP", "HYP", "HRM"]:
        """Return decline type string by b-factor."""
        if self.b <= 0.1:
            return "EXP"
        elif self.b >= 0.95:
            return "HRM"
        else:
            return "HYP"


@dataclass(frozen=True)
class HyperbolicToExponentialModel(DeclineModel):
    """Hyperbolic decline with a terminal exponential decline.

    Before ``t_trans`` the model is the hyperbolic (qi, di, b) decline.
    From ``t_trans`` on it declines exponentially at ``df``, starting
    from the hyperbolic rate at ``t_trans``.

    Attributes:
        qi: Initial rate at t=0
        di: Initial nominal decline rate
        b: Hyperbolic exponent, 0 <= b <= 5
        df: Terminal nominal decline rate, must be positive
        t_trans: Transition time (computed; 0 if df > di, inf if the
            hyperbolic decline never reaches df)
    """
    qi: float
    di: float
    b: float
    df: float
    t_trans: float = field(init=False)
    hyperbolic: HyperbolicModel = field(init=False, repr=False, compare=False)
    terminal: ExponentialModel = field(init=False, repr=False, compare=False)

    KIND: ClassVar[ModelKind] = ModelKind.HYPERBOLIC_TO_EXPONENTIAL
    PARAMETER_NAMES: ClassVar[tuple[str, ...]] = ("qi", "di", "b", "df")

    def __post_init__(self) -> None:
        hyperbolic = HyperbolicModel(self.qi, self.di, self.b)
        if not self.df > 0.0:
            raise DeclineRangeError(f"df must be positive, got {self.df}")

        t_trans = self.transition_time(hyperbolic.di, hyperbolic.b, float(self.df))
        q_trans = hyperbolic.rate(t_trans)

        object.__setattr__(self, "qi", hyperbolic.qi)
        object.__setattr__(self, "di", hyperbolic.di)
        object.__setattr__(self, "b", hyperbolic.b)
        object.__setattr__(self, "df", float(self.df))
        object.__setattr__(self, "t_trans", t_trans)
        object.__setattr__(self, "hyperbolic", hyperbolic)
        object.__setattr__(self, "terminal", ExponentialModel(q_trans, self.df))

    @staticmethod
    def transition_time(di: float, b: float, df: float) -> float:
        """Time at which the hyperbolic instantaneous decline reaches df.

        Solves Di / (1 + b*Di*t) = Df. Returns 0 when df >= di, and inf
        when b*di is zero and the decline never falls to df.
        """
        if b * di == 0.0:
            return float("inf") if di > df else 0.0
        return max((di / df - 1.0) / (b * di), 0.0)

    def _rate(self, t: np.ndarray) -> np.ndarray:
        return np.where(
            t < self.t_trans,
            self.hyperbolic._rate(t),
            self.terminal.rate(t - self.t_trans),
        )

    def _cumulative(self, t: np.ndarray) -> np.ndarray:
        if np.isfinite(self.t_trans):
            cum_trans = self.hyperbolic.cumulative(self.t_trans)
        else:
            cum_trans = 0.0
        return np.where(
            t < self.t_trans,
            self.hyperbolic._cumulative(t),
            cum_trans + self.terminal.cumulative(t - self.t_trans),
        )

    def _decline(self, t: np.ndarray) -> np.ndarray:
        return np.where(t < self.t_trans, self.hyperbolic._decline(t), self.df)

    @property
    def decline_type(self) -> Literal["EXP", "HYP", "HRM"]:
        """Decline type of the hyperbolic segment."""
        return self.hyperbolic.decline_type


_MODEL_CLASSES: dict[ModelKind, type[DeclineModel]] = {
    ModelKind.EXPONENTIAL: ExponentialModel,
    ModelKind.HYPERBOLIC: HyperbolicModel,
    ModelKind.HYPERBOLIC_TO_EXPONENTIAL: HyperbolicToExponentialModel,
}
