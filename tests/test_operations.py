"""Tests for interval volumes, inverse lookups and EUR."""

import math

import numpy as np
import pytest

from pydecline.core.models import ExponentialModel, HyperbolicModel, HyperbolicToExponentialModel
from pydecline.core.operations import (
    eur,
    interval_volumes,
    step_series,
    time_to_cumulative,
    time_to_rate,
)


class TestIntervalVolumes:
    """Tests for interval_volumes."""

    def test_step_series(self):
        """Test evenly spaced times."""
        np.testing.assert_allclose(step_series(1.0, 0.5, 4), [1.0, 1.5, 2.0, 2.5])

    def test_volumes_sum_to_cumulative(self):
        """Test interval volumes add up to the cumulative over the span."""
        model = HyperbolicModel(qi=12000, di=1.5, b=1.1)
        volumes = interval_volumes(model, 0.0, 1 / 12, 24)

        assert len(volumes) == 24
        assert volumes[0] == pytest.approx(model.cumulative(1 / 12))
        assert volumes.sum() == pytest.approx(model.cumulative(2.0))

    def test_offset_start(self):
        """Test volumes starting after t = 0 are cumulative differences."""
        model = ExponentialModel(qi=1000, d=0.5)
        volumes = interval_volumes(model, 2.0, 1.0, 3)
        expected = [model.cumulative(t + 1) - model.cumulative(t) for t in (2.0, 3.0, 4.0)]
        np.testing.assert_allclose(volumes, expected)

    def test_declining(self):
        """Test volumes decline for a declining model."""
        volumes = interval_volumes(HyperbolicModel(qi=1000, di=0.8, b=0.5), 0.0, 0.25, 12)
        assert np.all(np.diff(volumes) < 0)

    def test_zero_intervals(self):
        """Test n = 0 returns an empty array."""
        assert len(interval_volumes(ExponentialModel(qi=1, d=1), 0.0, 1.0, 0)) == 0


class TestInverseLookups:
    """Tests for time_to_rate and time_to_cumulative."""

    def test_time_to_rate_exponential(self):
        """Test time to half rate is ln(2) / D."""
        model = ExponentialModel(qi=1000, d=0.5)
        assert time_to_rate(model, 500.0) == pytest.approx(math.log(2) / 0.5, rel=1e-5)

    def test_time_to_rate_harmonic(self):
        """Test harmonic inversion t = (qi/q - 1) / Di."""
        model = HyperbolicModel(qi=1000, di=0.5, b=1.0)
        assert time_to_rate(model, 100.0) == pytest.approx(18.0, rel=1e-5)

    def test_rate_above_initial(self):
        """Test a target above qi resolves to t = 0."""
        model = ExponentialModel(qi=1000, d=0.5)
        assert time_to_rate(model, 2000.0) == pytest.approx(0.0, abs=1e-6)

    def test_time_to_cumulative(self):
        """Test time to produce half the ultimate exponential volume."""
        model = ExponentialModel(qi=1000, d=0.5)
        assert time_to_cumulative(model, 1000.0) == pytest.approx(math.log(2) / 0.5, rel=1e-5)

    @pytest.mark.parametrize("d", [1.0, 2.0, 5.0])
    def test_time_to_rate_steep_exponential(self, d):
        """Test steep declines whose rate underflows long before t = 100."""
        model = ExponentialModel(qi=1000, d=d)
        assert time_to_rate(model, 100.0) == pytest.approx(math.log(10) / d, rel=1e-5)

    def test_time_to_rate_steep_hyperbolic(self):
        """Test a steep low-b hyperbolic decline."""
        model = HyperbolicModel(qi=1000, di=5.0, b=0.05)
        expected = (10.0 ** 0.05 - 1.0) / (0.05 * 5.0)
        assert time_to_rate(model, 100.0) == pytest.approx(expected, rel=1e-5)

    def test_time_to_cumulative_steep_exponential(self):
        """Test inversion of a cumulative that saturates early."""
        model = ExponentialModel(qi=1000, d=2.0)
        assert time_to_cumulative(model, 250.0) == pytest.approx(math.log(2) / 2.0, rel=1e-5)

    def test_flat_rate_never_reached(self):
        """Test a constant rate that never falls to the target resolves to t = 0."""
        model = ExponentialModel(qi=1000, d=0.0)
        assert time_to_rate(model, 100.0) == 0.0


class TestEur:
    """Tests for eur."""

    def test_exponential_eur(self):
        """Test EUR is (qi - q_el) / D for an exponential decline."""
        model = ExponentialModel(qi=1000, d=0.5)
        volume, t_eur = eur(model, 100.0, return_time=True)

        assert t_eur == pytest.approx(math.log(10) / 0.5, rel=1e-5)
        assert volume == pytest.approx(1800.0, rel=1e-5)

    def test_max_time_cap(self):
        """Test EUR stops at max_time when reached before the economic limit."""
        model = ExponentialModel(qi=1000, d=0.5)
        volume, t_eur = eur(model, 100.0, max_time=2.0, return_time=True)

        assert t_eur == 2.0
        assert volume == pytest.approx(model.cumulative(2.0))

    def test_volume_only(self):
        """Test the default return is the volume alone."""
        model = ExponentialModel(qi=1000, d=0.5)
        assert eur(model, 100.0) == pytest.approx(1800.0, rel=1e-5)

    def test_harmonic_capped(self):
        """Test a slowly declining harmonic well is capped at 30 years."""
        model = HyperbolicModel(qi=1000, di=1.0, b=1.0)
        volume, t_eur = eur(model, 1.0, max_time=30.0, return_time=True)

        assert t_eur == 30.0
        assert volume == pytest.approx(1000 * math.log(31))

    def test_terminal_decline_eur(self):
        """Test EUR of a hyperbolic-to-exponential model reaching its limit."""
        model = HyperbolicToExponentialModel(qi=120000, di=1.5, b=1.2, df=0.0513)
        volume, t_eur = eur(model, 365.25, max_time=math.inf, return_time=True)

        assert model.rate(t_eur) == pytest.approx(365.25, rel=1e-4)
        assert volume == pytest.approx(model.cumulative(t_eur))
        assert math.isfinite(volume)


@pytest.mark.parametrize("model", [
    ExponentialModel(qi=1000, d=0.5),
    HyperbolicModel(qi=1000, di=0.8, b=0.5),
    HyperbolicModel(qi=1000, di=0.8, b=1.5),
    HyperbolicToExponentialModel(qi=1000, di=0.8, b=1.5, df=0.1),
])
class TestInversionConsistency:
    """Round trips between rates, times and EUR."""

    def test_time_to_rate_round_trip(self, model):
        """Test time_to_rate(rate(t)) recovers t."""
        for t in (0.5, 3.0, 12.0):
            assert time_to_rate(model, model.rate(t)) == pytest.approx(t, rel=1e-4)

    def test_eur_is_cumulative_at_limit(self, model):
        """Test EUR equals cumulative at the time the limit is reached."""
        limit = 50.0
        assert eur(model, limit, math.inf) == pytest.approx(
            model.cumulative(time_to_rate(model, limit))
        )
