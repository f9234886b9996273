"""Production series preprocessing.

Utilities applied to monthly volume series before fitting:

- ``strip_leading_zeros`` / ``strip_trailing_zeros``: drop months before
  first production or after the last reported volume
- ``shift_to_peak``: align a series so that its first element is the peak,
  carrying any tied series (e.g. gas alongside oil) along by the same offset
- ``aggregate_production``: combine many wells into one type-well series
  by mean or percentile, month by month
"""

from dataclasses import dataclass
from enum import Enum

import numpy as np


class Aggregation(str, Enum):
    """Month-by-month aggregation across wells."""
    MEAN = "mean"
    PERCENTILE = "percentile"


@dataclass
class PeakShift:
    """Result of shifting series to the peak of a major series.

    Attributes:
        index: Position of the peak in the original major series
        major: Major series from the peak onward
        minor: Tied series, each sliced at the same position
    """
    index: int
    major: np.ndarray
    minor: tuple[np.ndarray, ...] = ()


def strip_leading_zeros(series) -> np.ndarray:
    """Drop values before the first positive value."""
    series = np.asarray(series, dtype=float)
    positive = np.flatnonzero(series > 0.0)
    if len(positive) == 0:
        return series[:0]
    return series[positive[0]:]


def strip_trailing_zeros(series) -> np.ndarray:
    """Drop zero values after the last non-zero value."""
    series = np.asarray(series, dtype=float)
    nonzero = np.flatnonzero(series != 0.0)
    if len(nonzero) == 0:
        return series[:0]
    return series[:nonzero[-1] + 1]


def shift_to_peak(major, *minor) -> PeakShift:
    """Shift a series and its tied series to the peak of the major series.

    Args:
        major: Series whose (first) maximum defines the shift
        *minor: Series shifted by the same number of elements

    Returns:
        PeakShift with the peak index and the shifted series

    Raises:
        ValueError: If the major series is empty
    """
    major = np.asarray(major, dtype=float)
    if len(major) == 0:
        raise ValueError("Cannot shift an empty series to its peak")

    index = int(np.argmax(major))
    shifted_minor = tuple(np.asarray(m, dtype=float)[index:] for m in minor)
    return PeakShift(index=index, major=major[index:], minor=shifted_minor)


def aggregate_production(
    series_list,
    min_wells: int = 1,
    aggregation: Aggregation | str = Aggregation.MEAN,
    percentile: float = 50.0,
) -> np.ndarray:
    """Aggregate many production series into one, month by month.

    Month i combines the i-th value of every series longer than i. The
    output ends at the first month with fewer than ``min_wells`` series.

    Args:
        series_list: Iterable of production series (aligned at index 0)
        min_wells: Minimum contributing series per month (at least 1)
        aggregation: 'mean' or 'percentile'
        percentile: Percentile used with the 'percentile' aggregation

    Returns:
        Aggregated series
    """
    aggregation = Aggregation(aggregation)
    series_list = [np.asarray(s, dtype=float) for s in series_list]
    min_wells = max(int(min_wells), 1)

    result = []
    month = 0
    while True:
        values = [s[month] for s in series_list if len(s) > month]
        if len(values) < min_wells:
            break
        if aggregation == Aggregation.MEAN:
            result.append(float(np.mean(values)))
        else:
            result.append(float(np.percentile(values, percentile)))
        month += 1

    return np.array(result, dtype=float)
