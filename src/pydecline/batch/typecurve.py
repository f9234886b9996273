"""Type curves from multi-well production.

Each well's monthly series is trimmed of trailing zero months and shifted
to its peak; the shifted series are aggregated month by month into a
type well, which is then fitted and forecast like a single well.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal
import logging
import math

import numpy as np

from ..core.conversions import decline
from ..core.fitting import DeclineFitter, FitResult, FittingConfig
from ..core.operations import eur, interval_volumes
from ..data.production import aggregate_production, shift_to_peak, strip_trailing_zeros
from ..data.well import Well
from .processor import terminal_model

if TYPE_CHECKING:
    from ..config import PyDeclineConfig

logger = logging.getLogger(__name__)


@dataclass
class TypeCurve:
    """Type well and fitted type curve of one product.

    Attributes:
        product: 'oil' or 'gas'
        type_well: Aggregated monthly volumes from peak
        forecast: Fitted interval volumes over the same months
        fit: Fit of the type well
        avg_shift: Mean number of months from first record to peak
        n_wells: Wells contributing to the type well
    """
    product: str
    type_well: np.ndarray
    forecast: np.ndarray
    fit: FitResult
    avg_shift: float
    n_wells: int


@dataclass
class TypeCurveResult:
    """Oil and gas type curves with EURs.

    Attributes:
        oil: Oil type curve
        gas: Gas type curve, None if no well reported gas
        oil_eur: Oil EUR of the type curve
        gas_eur: Gas EUR at the oil EUR time, adjusted for the mean peak shifts
        boe_eur: Oil plus gas converted to barrels of oil equivalent
        t_eur: Producing life of the oil type curve, in years
    """
    oil: TypeCurve
    gas: TypeCurve | None
    oil_eur: float
    gas_eur: float
    boe_eur: float
    t_eur: float


def build_product_curve(
    wells: list[Well],
    product: Literal["oil", "gas"],
    config: "PyDeclineConfig",
) -> TypeCurve | None:
    """Aggregate and fit one product's type well.

    Returns:
        TypeCurve, or None if no well reported the product

    Raises:
        ValueError: If too few wells overlap to form a type well
    """
    shifts = []
    ranges = []
    for well in wells:
        series = strip_trailing_zeros(well.get_product(product))
        if len(series) == 0:
            continue
        peak = shift_to_peak(series)
        shifts.append(peak.index)
        ranges.append(peak.major)

    if not ranges:
        return None

    tc = config.typecurve
    min_wells = math.floor(len(ranges) * tc.min_well_fraction)
    type_well = aggregate_production(ranges, min_wells, tc.aggregation, tc.percentile)
    if len(type_well) == 0:
        raise ValueError(f"No {product} months with at least {min_wells} wells")

    time_step = config.forecast.time_step
    fitter = DeclineFitter(FittingConfig.from_pydecline_config(config))
    fit = fitter.fit_interval_volume(config.fitting.model, type_well, 0.0, time_step)
    forecast = interval_volumes(fit.model, 0.0, time_step, len(type_well))

    avg_shift = float(np.mean(shifts))
    logger.debug(
        f"{product} type well: {len(ranges)} wells, {len(type_well)} months, "
        f"mean shift {avg_shift:.2f}"
    )
    return TypeCurve(
        product=product,
        type_well=type_well,
        forecast=forecast,
        fit=fit,
        avg_shift=avg_shift,
        n_wells=len(ranges),
    )


def build_type_curve(wells: list[Well], config: "PyDeclineConfig | None" = None) -> TypeCurveResult:
    """Build oil and gas type curves and forecast their EURs.

    Args:
        wells: Wells to aggregate
        config: Configuration, uses defaults if None

    Returns:
        TypeCurveResult

    Raises:
        ValueError: If there are no wells or no oil production
    """
    if config is None:
        from ..config import PyDeclineConfig
        config = PyDeclineConfig()
    if not wells:
        raise ValueError("No wells to build a type curve from")

    oil = build_product_curve(wells, "oil", config)
    if oil is None:
        raise ValueError("No oil production in any well")
    gas = build_product_curve(wells, "gas", config)

    forecast = config.forecast
    d_final = decline(forecast.terminal_decline, forecast.terminal_decline_type)
    oil_eur, t_eur = eur(
        terminal_model(oil.fit.model, d_final),
        forecast.oil_economic_limit,
        forecast.max_time,
        return_time=True,
    )

    gas_eur = 0.0
    if gas is not None:
        t_gas = t_eur - (gas.avg_shift - oil.avg_shift) * forecast.time_step
        gas_eur = terminal_model(gas.fit.model, d_final).cumulative(t_gas)

    return TypeCurveResult(
        oil=oil,
        gas=gas,
        oil_eur=oil_eur,
        gas_eur=gas_eur,
        boe_eur=oil_eur + gas_eur / forecast.boe_gas_ratio,
        t_eur=t_eur,
    )
