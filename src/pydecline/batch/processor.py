"""Per-well EUR forecasting and batch processing for multiple wells."""

from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
import logging

from tqdm import tqdm

from ..core.conversions import DeclineRate, convert_decline, decline
from ..core.fitting import DeclineFitter, FitResult, FittingConfig
from ..core.models import DeclineModel, ExponentialModel, HyperbolicToExponentialModel
from ..core.operations import eur
from ..data.production import shift_to_peak, strip_leading_zeros
from ..data.well import Well

if TYPE_CHECKING:
    from ..config import PyDeclineConfig

logger = logging.getLogger(__name__)


class InsufficientDataError(ValueError):
    """Raised when a well has too few months from peak to fit."""


def terminal_model(model: DeclineModel, terminal_decline: float) -> DeclineModel:
    """Attach an exponential tail to a fitted model for EUR forecasting.

    Hyperbolic fits switch to exponential decline at ``terminal_decline``
    (nominal). Exponential and hyperbolic-to-exponential fits already have
    a bounded tail and are returned unchanged.
    """
    if isinstance(model, (ExponentialModel, HyperbolicToExponentialModel)):
        return model
    return HyperbolicToExponentialModel(model.qi, model.di, model.b, terminal_decline)


@dataclass
class WellForecast:
    """Fitted declines and EURs of one well.

    Volumes are in the units of the input file, rates in volume per year.

    Attributes:
        well_id: Well identifier
        oil: Oil fit
        gas: Gas fit, None if the well reported no gas
        oil_shift: Months from first production to peak oil
        gas_shift: Months from first production to peak gas
        oil_eur: Oil EUR
        gas_eur: Gas EUR, evaluated at the oil EUR time offset by the peak shifts
        boe_eur: Oil plus gas converted to barrels of oil equivalent
        t_eur: Producing life of the oil forecast, in years
    """
    well_id: str
    oil: FitResult
    gas: FitResult | None
    oil_shift: int
    gas_shift: int
    oil_eur: float
    gas_eur: float
    boe_eur: float
    t_eur: float

    def to_row(self, days_per_year: float = 365.25) -> dict:
        """Tabular summary: EURs in thousands, qi per day, Di secant effective."""
        row = {
            "well_id": self.well_id,
            "oil_eur_k": self.oil_eur / 1000,
            "gas_eur_k": self.gas_eur / 1000,
            "boe_eur_k": self.boe_eur / 1000,
        }
        for product, fit, shift in (
            ("oil", self.oil, self.oil_shift),
            ("gas", self.gas, self.gas_shift),
        ):
            row.update(_model_columns(product, fit.model if fit else None, days_per_year))
            row[f"{product}_shift"] = shift
        return row


def _model_columns(product: str, model: DeclineModel | None, days_per_year: float) -> dict:
    if model is None:
        return {f"{product}_qi": 0.0, f"{product}_di": 0.0, f"{product}_b": 0.0}
    b = getattr(model, "b", 0.0)
    di = getattr(model, "di", getattr(model, "d", 0.0))
    return {
        f"{product}_qi": model.qi / days_per_year,
        f"{product}_di": convert_decline(di, DeclineRate.NOMINAL, DeclineRate.SECANT_EFFECTIVE, b),
        f"{product}_b": b,
    }


def _default_config() -> "PyDeclineConfig":
    from ..config import PyDeclineConfig
    return PyDeclineConfig()


def forecast_well(well: Well, config: "PyDeclineConfig | None" = None) -> WellForecast:
    """Fit oil and gas declines of one well and forecast EUR.

    Leading zero months are dropped and each product is shifted to its
    peak month before fitting monthly volumes. Oil EUR runs to the
    economic limit or the maximum producing life; gas EUR is taken at the
    same producing time, adjusted for the difference in peak months.

    Args:
        well: Well with monthly oil and gas volumes
        config: Configuration, uses defaults if None

    Returns:
        WellForecast with fits and EURs

    Raises:
        InsufficientDataError: If fewer than ``min_points`` oil months
            remain from peak
    """
    config = config or _default_config()
    forecast = config.forecast
    fitter = DeclineFitter(FittingConfig.from_pydecline_config(config))
    model_kind = config.fitting.model
    d_final = decline(forecast.terminal_decline, forecast.terminal_decline_type)

    oil = strip_leading_zeros(well.oil)
    if len(oil) == 0:
        raise InsufficientDataError(f"Well {well.well_id}: no oil production")
    oil_peak = shift_to_peak(oil)
    if len(oil_peak.major) < forecast.min_points:
        raise InsufficientDataError(
            f"Well {well.well_id}: {len(oil_peak.major)} oil months from peak, "
            f"need at least {forecast.min_points}"
        )

    oil_fit = fitter.fit_interval_volume(model_kind, oil_peak.major, 0.0, forecast.time_step)
    oil_eur, t_eur = eur(
        terminal_model(oil_fit.model, d_final),
        forecast.oil_economic_limit,
        forecast.max_time,
        return_time=True,
    )

    gas = strip_leading_zeros(well.gas)
    gas_fit = None
    gas_shift = 0
    gas_eur = 0.0
    if len(gas) > 0:
        gas_peak = shift_to_peak(gas)
        gas_shift = gas_peak.index
        gas_fit = fitter.fit_interval_volume(model_kind, gas_peak.major, 0.0, forecast.time_step)
        t_gas = t_eur - (gas_shift - oil_peak.index) * forecast.time_step
        gas_eur = terminal_model(gas_fit.model, d_final).cumulative(t_gas)

    logger.debug(
        f"Well {well.well_id}: oil EUR {oil_eur:.1f}, gas EUR {gas_eur:.1f}, "
        f"t_eur {t_eur:.2f} yr"
    )
    return WellForecast(
        well_id=well.well_id,
        oil=oil_fit,
        gas=gas_fit,
        oil_shift=oil_peak.index,
        gas_shift=gas_shift,
        oil_eur=oil_eur,
        gas_eur=gas_eur,
        boe_eur=oil_eur + gas_eur / forecast.boe_gas_ratio,
        t_eur=t_eur,
    )


@dataclass
class BatchResult:
    """Results from batch processing.

    Attributes:
        forecasts: Forecasts of successfully fitted wells, in input order
        successful: Count of successfully fitted wells
        failed: Count of failed fits
        skipped: Count of wells skipped (insufficient data)
        errors: List of (well_id, error_message) tuples
    """
    forecasts: list[WellForecast] = field(default_factory=list)
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)


def _forecast_single_well(
    well: Well,
    config: "PyDeclineConfig",
) -> tuple[str, WellForecast | None, str | None, bool]:
    """Forecast one well (worker function).

    Returns:
        Tuple of (well_id, forecast or None, error message or None, skipped)
    """
    try:
        return well.well_id, forecast_well(well, config), None, False
    except InsufficientDataError as e:
        return well.well_id, None, str(e), True
    except ValueError as e:
        return well.well_id, None, str(e), False
    except Exception as e:
        return well.well_id, None, f"Unexpected error - {e}", False


class BatchProcessor:
    """Forecast EUR for many wells."""

    def __init__(
        self,
        config: "PyDeclineConfig | None" = None,
        workers: int = 1,
        show_progress: bool = True,
    ):
        """Initialize batch processor.

        Args:
            config: Configuration, uses defaults if None
            workers: Number of worker processes (1 = run in this process)
            show_progress: Whether to show a progress bar
        """
        self.config = config or _default_config()
        self.workers = workers
        self.show_progress = show_progress

    def _results(self, wells: list[Well]):
        if self.workers <= 1:
            for well in wells:
                yield _forecast_single_well(well, self.config)
            return

        with ProcessPoolExecutor(max_workers=self.workers) as executor:
            yield from executor.map(
                _forecast_single_well, wells, [self.config] * len(wells)
            )

    def run(self, wells: list[Well]) -> BatchResult:
        """Forecast every well; a failing well never stops the batch.

        Args:
            wells: Wells to forecast

        Returns:
            BatchResult with forecasts and statistics
        """
        result = BatchResult()

        iterator = self._results(wells)
        if self.show_progress:
            iterator = tqdm(iterator, total=len(wells), desc="Fitting wells")

        for well_id, forecast, error, skipped in iterator:
            if forecast is not None:
                result.forecasts.append(forecast)
                result.successful += 1
            elif skipped:
                result.skipped += 1
                logger.warning(f"Skipping {error}")
            else:
                result.failed += 1
                result.errors.append((well_id, error))
                logger.error(f"Failed to process {well_id}: {error}")

        logger.info(
            f"Processing complete: {result.successful} successful, "
            f"{result.failed} failed, {result.skipped} skipped"
        )
        return result
