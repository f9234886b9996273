"""Configuration file support for PyDecline.

Supports YAML config files with input column names, optimizer settings
and forecast parameters. CLI flags override config file values.
"""

from dataclasses import asdict, dataclass, field, fields as dataclass_fields
import logging
from pathlib import Path
from typing import ClassVar

import yaml

from .core.conversions import DeclineRate
from .core.fitting import StartStrategy
from .core.models import ModelKind
from .core.simplex import DEFAULT_TERM_EPS
from .data.production import Aggregation

logger = logging.getLogger(__name__)


@dataclass
class DataConfig:
    """Input file layout.

    Attributes:
        id_field: Column identifying the well; consecutive rows with the same
            value form one well (default 'Name')
        oil_field: Monthly oil volume column (default 'Oil')
        gas_field: Monthly gas volume column (default 'Gas')
        month_field: Month label column, optional in the file (default 'Month')
        api_field: API number column, optional in the file (default 'API')
        name_field: Well name column, optional in the file (default 'Name')
        delimiter: Field delimiter (default tab)
    """
    id_field: str = "Name"
    oil_field: str = "Oil"
    gas_field: str = "Gas"
    month_field: str = "Month"
    api_field: str = "API"
    name_field: str = "Name"
    delimiter: str = "\t"


@dataclass
class FittingDefaults:
    """Optimizer settings applied to every fit.

    Attributes:
        model: Model fitted to production, 'exponential', 'hyperbolic' or
            'hyperbolic_to_exponential' (default 'hyperbolic')
        max_iter: Nelder-Mead iteration budget (default 300)
        term_eps: Convergence threshold on the objective spread
        term_iter: Consecutive converged iterations required to stop (default 10)
        ref_factor: Reflection factor (default 1.0)
        exp_factor: Expansion factor (default 2.0)
        con_factor: Contraction factor (default 0.5)
        shr_factor: Shrink factor (default 0.5)
        start: Initial simplex, 'bounds' (from peak rate) or 'fixed' (default 'bounds')
    """
    model: str = "hyperbolic"
    max_iter: int = 300
    term_eps: float = DEFAULT_TERM_EPS
    term_iter: int = 10
    ref_factor: float = 1.0
    exp_factor: float = 2.0
    con_factor: float = 0.5
    shr_factor: float = 0.5
    start: str = "bounds"


@dataclass
class ForecastConfig:
    """EUR forecast parameters.

    Time is measured in years; monthly volumes fitted with a 1/12 year step
    give rates in volume per year.

    Attributes:
        terminal_decline: Terminal decline rate of the exponential tail (default 0.05)
        terminal_decline_type: Convention of terminal_decline (default 'tangent_effective')
        oil_economic_limit: Oil economic limit rate, per year (default 365.25 = 1 bbl/d)
        max_time: Maximum producing life in years (default 30)
        time_step: Length of one production interval in years (default 1/12)
        min_points: Minimum oil months from peak required to fit (default 3)
        boe_gas_ratio: Gas volume per barrel of oil equivalent (default 6)
        days_per_year: Days per year used to report daily rates (default 365.25)
    """
    terminal_decline: float = 0.05
    terminal_decline_type: str = "tangent_effective"
    oil_economic_limit: float = 365.25
    max_time: float = 30.0
    time_step: float = 1.0 / 12.0
    min_points: int = 3
    boe_gas_ratio: float = 6.0
    days_per_year: float = 365.25


@dataclass
class TypeCurveConfig:
    """Type curve aggregation parameters.

    Attributes:
        aggregation: 'mean' or 'percentile' (default 'mean')
        percentile: Percentile for the 'percentile' aggregation (default 50 = P50)
        min_well_fraction: Fraction of wells that must contribute to a month
            for it to be kept (default 1/3)
    """
    aggregation: str = "mean"
    percentile: float = 50.0
    min_well_fraction: float = 1.0 / 3.0


@dataclass
class PyDeclineConfig:
    """Complete PyDecline configuration.

    Attributes:
        data: Input file layout
        fitting: Optimizer settings
        forecast: EUR forecast parameters
        typecurve: Type curve aggregation parameters
    """
    data: DataConfig = field(default_factory=DataConfig)
    fitting: FittingDefaults = field(default_factory=FittingDefaults)
    forecast: ForecastConfig = field(default_factory=ForecastConfig)
    typecurve: TypeCurveConfig = field(default_factory=TypeCurveConfig)

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If any configuration value is invalid
        """
        errors = []

        for name, enum_type, value in (
            ("fitting.model", ModelKind, self.fitting.model),
            ("fitting.start", StartStrategy, self.fitting.start),
            ("forecast.terminal_decline_type", DeclineRate, self.forecast.terminal_decline_type),
            ("typecurve.aggregation", Aggregation, self.typecurve.aggregation),
        ):
            valid = [e.value for e in enum_type]
            if value not in valid:
                errors.append(f"{name} ({value}) must be one of: {', '.join(valid)}")

        if self.fitting.max_iter < 1:
            errors.append(f"fitting.max_iter ({self.fitting.max_iter}) must be at least 1")
        if self.fitting.term_iter < 1:
            errors.append(f"fitting.term_iter ({self.fitting.term_iter}) must be at least 1")
        if self.fitting.term_eps <= 0:
            errors.append(f"fitting.term_eps ({self.fitting.term_eps}) must be greater than 0")

        if self.forecast.terminal_decline <= 0:
            errors.append(
                f"forecast.terminal_decline ({self.forecast.terminal_decline}) must be greater than 0"
            )
        if self.forecast.time_step <= 0:
            errors.append(
                f"forecast.time_step ({self.forecast.time_step}) must be greater than 0"
            )
        if self.forecast.max_time <= 0:
            errors.append(
                f"forecast.max_time ({self.forecast.max_time}) must be greater than 0"
            )
        if self.forecast.min_points < 1:
            errors.append(
                f"forecast.min_points ({self.forecast.min_points}) must be at least 1"
            )
        if self.forecast.boe_gas_ratio <= 0:
            errors.append(
                f"forecast.boe_gas_ratio ({self.forecast.boe_gas_ratio}) must be greater than 0"
            )

        if not 0 <= self.typecurve.percentile <= 100:
            errors.append(
                f"typecurve.percentile ({self.typecurve.percentile}) must be between 0 and 100"
            )
        if not 0 <= self.typecurve.min_well_fraction <= 1:
            errors.append(
                f"typecurve.min_well_fraction ({self.typecurve.min_well_fraction}) "
                "must be between 0 and 1"
            )

        if errors:
            raise ValueError("Invalid configuration:\n  - " + "\n  - ".join(errors))

    @classmethod
    def from_yaml(cls, filepath: Path | str) -> "PyDeclineConfig":
        """Load configuration from YAML file.

        Args:
            filepath: Path to YAML config file

        Returns:
            PyDeclineConfig instance

        Raises:
            ValueError: If configuration values are invalid
        """
        filepath = Path(filepath)
        with open(filepath) as f:
            data = yaml.safe_load(f) or {}

        config = cls.from_dict(data)
        config.validate()
        return config

    @staticmethod
    def _filter_unknown_keys(
        section_data: dict,
        dataclass_type: type,
        section_name: str,
    ) -> dict:
        """Drop unknown keys from a config section, warning about them."""
        known_keys = {f.name for f in dataclass_fields(dataclass_type)}
        unknown_keys = set(section_data) - known_keys
        if unknown_keys:
            logger.warning(
                f"Unknown key(s) in '{section_name}' config section: "
                f"{', '.join(sorted(unknown_keys))}. "
                f"Valid keys: {', '.join(sorted(known_keys))}"
            )
        return {k: v for k, v in section_data.items() if k in known_keys}

    _SECTION_TYPES: ClassVar[dict[str, type]] = {
        "data": DataConfig,
        "fitting": FittingDefaults,
        "forecast": ForecastConfig,
        "typecurve": TypeCurveConfig,
    }

    @classmethod
    def from_dict(cls, data: dict) -> "PyDeclineConfig":
        """Create configuration from dictionary.

        Unknown sections and keys are logged as warnings and ignored.

        Args:
            data: Configuration dictionary

        Returns:
            PyDeclineConfig instance
        """
        config = cls()

        unknown_sections = set(data) - set(cls._SECTION_TYPES)
        if unknown_sections:
            logger.warning(
                f"Unknown top-level config section(s): {', '.join(sorted(unknown_sections))}. "
                f"Valid sections: {', '.join(sorted(cls._SECTION_TYPES))}"
            )

        for section, dtype in cls._SECTION_TYPES.items():
            if section in data:
                section_data = cls._filter_unknown_keys(data[section] or {}, dtype, section)
                setattr(config, section, dtype(**section_data))

        return config

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        return asdict(self)

    def to_yaml(self, filepath: Path | str) -> None:
        """Save configuration to YAML file.

        Args:
            filepath: Output file path
        """
        filepath = Path(filepath)
        with open(filepath, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)


def generate_default_config(filepath: Path | str) -> Path:
    """Generate a default configuration file.

    Args:
        filepath: Output file path

    Returns:
        Path to created file
    """
    filepath = Path(filepath)

    content = """# PyDecline Configuration File
# Arps decline curve fitting and EUR forecasting

# Input file layout (header row + delimited records, one row per well-month)
data:
  id_field: Name          # Consecutive rows with the same id form one well
  oil_field: Oil          # Monthly oil volume (bbl)
  gas_field: Gas          # Monthly gas volume (mcf)
  month_field: Month      # Month label, used by the peak report
  api_field: API
  name_field: Name
  delimiter: "\\t"

# Nelder-Mead optimizer settings
fitting:
  model: hyperbolic       # exponential, hyperbolic, or hyperbolic_to_exponential
  max_iter: 300           # Iteration budget
  term_eps: 1.4901161193847656e-08  # Converged when worst - best objective is below this
  term_iter: 10           # Consecutive converged iterations to stop
  ref_factor: 1.0         # Reflection
  exp_factor: 2.0         # Expansion
  con_factor: 0.5         # Contraction
  shr_factor: 0.5         # Shrink
  start: bounds           # bounds (guess from peak rate) or fixed (literal simplex)

# EUR forecast (time in years, rates per year)
forecast:
  terminal_decline: 0.05  # Terminal decline of the exponential tail (5%/yr)
  terminal_decline_type: tangent_effective  # nominal, tangent_effective, or secant_effective
  oil_economic_limit: 365.25  # bbl/yr = 1 bbl/d
  max_time: 30            # Maximum producing life (years)
  time_step: 0.08333333333333333  # One month
  min_points: 3           # Minimum oil months from peak
  boe_gas_ratio: 6        # mcf per BOE
  days_per_year: 365.25

# Type curve aggregation
typecurve:
  aggregation: mean       # mean or percentile
  percentile: 50          # P50 when aggregation is percentile
  min_well_fraction: 0.3333333333333333  # Fraction of wells required per month
"""

    with open(filepath, "w") as f:
        f.write(content)

    return filepath
