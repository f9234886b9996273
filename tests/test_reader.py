"""Tests for delimited production file reading."""

import dataclasses
import io
from pathlib import Path

import numpy as np
import pytest

from pydecline.config import DataConfig
from pydecline.data.reader import load_wells, read_delimited, split_wells
from pydecline.data.well import Well


FIXTURES_DIR = Path(__file__).parent / "fixtures"


class TestReadDelimited:
    """Tests for read_delimited."""

    def test_reads_header_and_rows(self):
        """Test columns come from the header row."""
        df = read_delimited(FIXTURES_DIR / "sample_wells.tsv")

        assert list(df.columns) == ["API", "Name", "Month", "Oil", "Gas"]
        assert len(df) == 43

    def test_short_rows_padded(self):
        """Test missing trailing fields become empty values."""
        df = read_delimited(io.StringIO("Name\tOil\tGas\nA\t1\n"))
        assert df["Gas"].iloc[0] == ""

    def test_custom_delimiter(self):
        """Test comma-delimited input."""
        df = read_delimited(io.StringIO("Name,Oil,Gas\nA,1,2\n"), delimiter=",")
        assert df["Oil"].iloc[0] == "1"


class TestSplitWells:
    """Tests for split_wells."""

    def test_fixture_wells(self):
        """Test wells are split in order of first appearance."""
        wells = split_wells(read_delimited(FIXTURES_DIR / "sample_wells.tsv"))

        assert [w.well_id for w in wells] == ["Smith 1H", "Jones 2H", "Brown 3H"]
        smith = wells[0]
        assert smith.n_months == 24
        assert smith.api == "42-001-00001"
        assert smith.name == "Smith 1H"
        assert smith.months[3] == "2019-04"
        assert smith.oil[3] == 10000.0
        assert smith.gas[3] == 30000.0

    def test_consecutive_rows_only(self):
        """Test a repeated id after another well starts a new well."""
        text = "Name\tOil\tGas\nA\t1\t2\nA\t3\t4\nB\t5\t6\nA\t7\t8\n"
        wells = split_wells(read_delimited(io.StringIO(text)))

        assert [w.well_id for w in wells] == ["A", "B", "A"]
        np.testing.assert_array_equal(wells[0].oil, [1.0, 3.0])
        np.testing.assert_array_equal(wells[2].gas, [8.0])

    def test_non_numeric_values(self):
        """Test blank and non-numeric volumes read as zero."""
        text = "Name\tOil\tGas\nA\t\tx\nA\t12.5\n"
        wells = split_wells(read_delimited(io.StringIO(text)))

        np.testing.assert_array_equal(wells[0].oil, [0.0, 12.5])
        np.testing.assert_array_equal(wells[0].gas, [0.0, 0.0])

    def test_optional_columns_missing(self):
        """Test wells without API or month columns."""
        wells = split_wells(read_delimited(io.StringIO("Name\tOil\tGas\nA\t1\t2\n")))

        assert wells[0].api is None
        assert wells[0].months == []
        assert wells[0].month_label(0) == "0"

    def test_custom_columns(self):
        """Test column names from DataConfig."""
        text = "UID\tOIL_BBL\tGAS_MCF\n7\t100\t300\n"
        config = DataConfig(id_field="UID", oil_field="OIL_BBL", gas_field="GAS_MCF")
        wells = split_wells(read_delimited(io.StringIO(text)), config)

        assert wells[0].well_id == "7"
        assert wells[0].gas[0] == 300.0

    def test_missing_column(self):
        """Test a missing product column raises ValueError."""
        with pytest.raises(ValueError, match="Gas"):
            split_wells(read_delimited(io.StringIO("Name\tOil\nA\t1\n")))

    def test_empty_file(self):
        """Test a header-only file has no wells."""
        assert split_wells(read_delimited(io.StringIO("Name\tOil\tGas\n"))) == []


class TestLoadWells:
    """Tests for load_wells."""

    def test_load_fixture(self):
        """Test reading and splitting a file."""
        wells = load_wells(FIXTURES_DIR / "sample_wells.tsv")

        assert len(wells) == 3
        assert all(isinstance(w, Well) for w in wells)

    def test_load_with_config_delimiter(self, tmp_path):
        """Test delimiter from DataConfig."""
        path = tmp_path / "wells.csv"
        path.write_text("Name,Oil,Gas\nA,1,2\nA,3,4\n")
        wells = load_wells(path, DataConfig(delimiter=","))

        assert len(wells) == 1
        np.testing.assert_array_equal(wells[0].oil, [1.0, 3.0])


class TestWell:
    """Tests for Well."""

    def test_get_product(self):
        """Test product lookup."""
        well = Well(well_id="A", oil=[1, 2], gas=[3, 4])
        np.testing.assert_array_equal(well.get_product("gas"), [3.0, 4.0])
        with pytest.raises(ValueError):
            well.get_product("water")

    def test_mismatched_series(self):
        """Test oil and gas must have equal lengths."""
        with pytest.raises(ValueError):
            Well(well_id="A", oil=[1, 2], gas=[3])

    def test_fields_match_file_columns(self):
        """Test a well carries only what the reader fills in."""
        names = [f.name for f in dataclasses.fields(Well)]
        assert names == ["well_id", "oil", "gas", "name", "api", "months"]
