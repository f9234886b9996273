"""Peak production month report."""

from dataclasses import dataclass
import logging

from ..data.production import shift_to_peak
from ..data.well import Well

logger = logging.getLogger(__name__)


@dataclass
class PeakRecord:
    """Peak oil month of one well.

    Attributes:
        well_id: Well identifier
        api: API number, if known
        name: Well name, if known
        month: Label of the peak oil month
        oil: Oil volume in the peak month
        gas: Gas volume in the peak oil month
    """
    well_id: str
    api: str | None
    name: str | None
    month: str
    oil: float
    gas: float


def peak_report(wells: list[Well]) -> list[PeakRecord]:
    """Find the peak oil month of each well.

    Wells without any records are left out of the report.
    """
    records = []
    for well in wells:
        if well.n_months == 0:
            logger.warning(f"Well {well.well_id}: no production records")
            continue
        peak = shift_to_peak(well.oil, well.gas)
        records.append(PeakRecord(
            well_id=well.well_id,
            api=well.api,
            name=well.name,
            month=well.month_label(peak.index),
            oil=float(peak.major[0]),
            gas=float(peak.minor[0][0]),
        ))
    return records
