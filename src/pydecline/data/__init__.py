"""Production data loading and preprocessing."""

from .well import Well
from .reader import load_wells, read_delimited, split_wells
from .production import (
    Aggregation,
    PeakShift,
    aggregate_production,
    shift_to_peak,
    strip_leading_zeros,
    strip_trailing_zeros,
)

__all__ = [
    "Well",
    "load_wells",
    "read_delimited",
    "split_wells",
    "Aggregation",
    "PeakShift",
    "aggregate_production",
    "shift_to_peak",
    "strip_leading_zeros",
    "strip_trailing_zeros",
]
