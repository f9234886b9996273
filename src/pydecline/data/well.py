"""Data model for a well's monthly production."""

from dataclasses import dataclass, field
from typing import Literal

import numpy as np


@dataclass
class Well:
    """Monthly production history of one well.

    Attributes:
        well_id: Value of the identifier column for this well
        oil: Oil volume per month, in file order
        gas: Gas volume per month, in file order
        name: Human-readable well name, if present in the file
        api: API number, if present in the file
        months: Month labels (e.g. "2019-03"), if present in the file
    """
    well_id: str
    oil: np.ndarray
    gas: np.ndarray
    name: str | None = None
    api: str | None = None
    months: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.oil = np.asarray(self.oil, dtype=float)
        self.gas = np.asarray(self.gas, dtype=float)
        if self.oil.shape != self.gas.shape:
            raise ValueError(
                f"Well {self.well_id}: oil and gas series differ in length "
                f"({len(self.oil)} vs {len(self.gas)})"
            )

    @property
    def n_months(self) -> int:
        """Number of months of production data."""
        return len(self.oil)

    def get_product(self, product: Literal["oil", "gas"]) -> np.ndarray:
        """Get monthly production volume array for specified product.

        Raises:
            ValueError: If product is unknown
        """
        if product == "oil":
            return self.oil
        elif product == "gas":
            return self.gas
        raise ValueError(f"Unknown product: {product}")

    def month_label(self, index: int) -> str:
        """Label of the month at ``index``, or the index itself if unlabelled."""
        if index < len(self.months):
            return self.months[index]
        return str(index)
