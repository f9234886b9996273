"""Delimited production file reader.

Input files have a header row followed by one row per well-month. Rows
belonging to one well are consecutive; the well changes whenever the
identifier column changes.
"""

from pathlib import Path
from typing import IO
import logging

import numpy as np
import pandas as pd

from .well import Well

logger = logging.getLogger(__name__)


def read_delimited(source: Path | str | IO, delimiter: str = "\t") -> pd.DataFrame:
    """Read a delimited file into a DataFrame of strings.

    Rows with fewer fields than the header are padded with empty values.

    Args:
        source: File path or open text stream
        delimiter: Field delimiter (default tab)

    Returns:
        DataFrame with one column per header field
    """
    return pd.read_csv(
        source,
        sep=delimiter,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
    ).fillna("")


def _to_volumes(column: pd.Series) -> np.ndarray:
    return pd.to_numeric(column, errors="coerce").fillna(0.0).to_numpy(dtype=float)


def _first_value(group: pd.DataFrame, column: str) -> str | None:
    if column not in group.columns:
        return None
    value = group[column].iloc[0]
    return value if value != "" else None


def split_wells(df: pd.DataFrame, data_config: "DataConfig | None" = None) -> list[Well]:  # noqa: F821
    """Split a production DataFrame into wells.

    Args:
        df: DataFrame from ``read_delimited``
        data_config: Column names, uses defaults if None

    Returns:
        Wells in order of first appearance

    Raises:
        ValueError: If the identifier or a product column is missing
    """
    if data_config is None:
        from ..config import DataConfig
        data_config = DataConfig()

    for column in (data_config.id_field, data_config.oil_field, data_config.gas_field):
        if column not in df.columns:
            raise ValueError(
                f"Column '{column}' not found. Columns found: {list(df.columns[:10])}"
            )

    ids = df[data_config.id_field]
    # a new block starts wherever the id differs from the previous row
    block = (ids != ids.shift()).cumsum()

    wells = []
    for _, group in df.groupby(block, sort=True):
        months = (
            group[data_config.month_field].tolist()
            if data_config.month_field in group.columns else []
        )
        wells.append(Well(
            well_id=str(group[data_config.id_field].iloc[0]),
            oil=_to_volumes(group[data_config.oil_field]),
            gas=_to_volumes(group[data_config.gas_field]),
            name=_first_value(group, data_config.name_field),
            api=_first_value(group, data_config.api_field),
            months=months,
        ))

    logger.debug(f"Split {len(df)} rows into {len(wells)} wells")
    return wells


def load_wells(filepath: Path | str, data_config: "DataConfig | None" = None) -> list[Well]:  # noqa: F821
    """Load wells from a delimited production file.

    Args:
        filepath: Path to delimited file
        data_config: Column names and delimiter, uses defaults if None

    Returns:
        List of Well objects
    """
    if data_config is None:
        from ..config import DataConfig
        data_config = DataConfig()

    df = read_delimited(filepath, data_config.delimiter)
    return split_wells(df, data_config)
