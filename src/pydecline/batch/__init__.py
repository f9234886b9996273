"""Multi-well workflows: per-well EUR forecasts, type curves and peak reports."""

from .processor import (
    BatchProcessor,
    BatchResult,
    InsufficientDataError,
    WellForecast,
    forecast_well,
    terminal_model,
)
from .typecurve import TypeCurve, TypeCurveResult, build_product_curve, build_type_curve
from .peak import PeakRecord, peak_report

__all__ = [
    "BatchProcessor",
    "BatchResult",
    "InsufficientDataError",
    "WellForecast",
    "forecast_well",
    "terminal_model",
    "TypeCurve",
    "TypeCurveResult",
    "build_product_curve",
    "build_type_curve",
    "PeakRecord",
    "peak_report",
]
