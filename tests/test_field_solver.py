"""
Unit tests for the two-pass field update
"""

import pytest
import numpy as np
from thermowind.config import SimulationConfig
from thermowind.grid import FieldGrid
from thermowind.field_solver import (
    FieldUpdater,
    update_temperature_field,
    update_pressure_field,
)
from thermowind.sampler import FieldSampler
from thermowind.constants import R_DRY_AIR, KELVIN_OFFSET


def small_grid(**overrides):
    """10 x 10 x 4 grid: dx = 400, dz = 100, dh = 500."""
    values = dict(grid_size=10, height_levels=4, heat_intensity=100, cold_intensity=0)
    values.update(overrides)
    return FieldGrid(SimulationConfig(**values))


class TestTemperaturePass:
    """Test source heating/cooling and the lapse correction."""

    def test_source_centre_full_rate(self):
        """Cell on top of a full-intensity heat source warms by 0.1 per tick."""
        grid = small_grid()
        FieldUpdater(grid).update(0.1)

        # Heat source at x=-800 (i=3), z=0 (k=5); ground level has no lapse term
        assert grid.temperature[0, 3, 5] == pytest.approx(20.1, abs=1e-12)

    def test_linear_falloff(self):
        grid = small_grid()
        FieldUpdater(grid).update(0.1)

        # 100 m away: (1 - 100/800) * 0.1
        assert grid.temperature[0, 3, 6] == pytest.approx(20.0 + 0.0875, abs=1e-12)
        # 400 m away: (1 - 400/800) * 0.1
        assert grid.temperature[0, 2, 5] == pytest.approx(20.05, abs=1e-12)
        # Exactly at the radius: untouched
        assert grid.temperature[0, 1, 5] == 20.0

    def test_height_ignored_for_distance(self):
        """Every level above the source gets the same source increment."""
        grid = small_grid()
        before = grid.temperature.copy()
        FieldUpdater(grid).update(0.1)

        delta = grid.temperature[:, 3, 5] - before[:, 3, 5]
        lapse = grid.heights * 0.0065 * 0.01
        np.testing.assert_allclose(delta + lapse, 0.1, atol=1e-12)

    def test_cold_source_cools(self):
        grid = small_grid(heat_intensity=0, cold_intensity=50)
        FieldUpdater(grid).update(0.1)

        # Cold source at x=800 (i=7), z=0 (k=5): 0.5 * 0.1
        assert grid.temperature[0, 7, 5] == pytest.approx(19.95, abs=1e-12)

    def test_lapse_correction_far_from_sources(self):
        """Outside both radii only the lapse correction applies."""
        grid = small_grid(heat_intensity=100, cold_intensity=100)
        before = grid.temperature.copy()
        FieldUpdater(grid).update(0.1)

        # x=-2000 (i=0) is 1200 m from the heat source
        delta = grid.temperature[:, 0, 0] - before[:, 0, 0]
        np.testing.assert_allclose(delta, -grid.heights * 0.0065 * 0.01, atol=1e-12)

    def test_zero_intensity_only_lapse(self):
        grid = small_grid(heat_intensity=0, cold_intensity=0)
        before = grid.temperature.copy()
        FieldUpdater(grid).update(0.1)

        np.testing.assert_array_equal(grid.temperature[0], before[0])
        assert np.all(grid.temperature[1:] < before[1:])

    def test_drift_is_unbounded(self):
        """No dissipation: the heated cell keeps warming linearly."""
        grid = small_grid()
        updater = FieldUpdater(grid)
        updater.run(500, 0.1)

        assert grid.temperature[0, 3, 5] == pytest.approx(20.0 + 50.0, rel=1e-9)

    def test_dt_does_not_scale_increment(self):
        a = small_grid()
        b = small_grid()
        FieldUpdater(a).update(0.01)
        FieldUpdater(b).update(10.0)

        np.testing.assert_array_equal(a.temperature, b.temperature)


class TestPressurePass:
    """Test pressure response and the gas-law invariant."""

    def test_pressure_formula(self):
        grid = small_grid()
        FieldUpdater(grid).update(0.1)

        t = grid.temperature
        ratio = (t + 273.15) / 288.15
        expected = grid.baseline_pressure[:, None, None] * (1 - (ratio - 1) * 0.1)
        np.testing.assert_allclose(grid.pressure, expected, rtol=1e-12)

    def test_warmer_cells_have_lower_pressure(self):
        grid = small_grid()
        FieldUpdater(grid).run(10, 0.1)

        assert grid.pressure[0, 3, 5] < grid.pressure[0, 0, 0]

    def test_gas_law_every_tick(self):
        """density == P / (R (T + 273.15)) after every update."""
        grid = small_grid(cold_intensity=70)
        updater = FieldUpdater(grid)

        for _ in range(20):
            updater.update(0.1)
            expected = grid.pressure / (R_DRY_AIR * (grid.temperature + KELVIN_OFFSET))
            np.testing.assert_allclose(grid.density, expected, rtol=1e-12)

    def test_pressure_reads_updated_temperature(self):
        """Pressure pass sees the temperatures written in the same tick."""
        grid = small_grid()
        t_before = grid.temperature.copy()
        FieldUpdater(grid).update(0.1)

        stale_ratio = (t_before[0, 3, 5] + 273.15) / 288.15
        stale = grid.baseline_pressure[0] * (1 - (stale_ratio - 1) * 0.1)
        assert grid.pressure[0, 3, 5] < stale

    def test_kernels_in_sequence(self):
        """Calling the kernels directly matches FieldUpdater.update."""
        a = small_grid()
        b = small_grid()
        FieldUpdater(a).update(0.1)

        heat, cold = b.heat_source, b.cold_source
        update_temperature_field(b.temperature, b.heights, b.cell_x, b.cell_z,
                                 heat.x, heat.z, heat.intensity, heat.radius,
                                 cold.x, cold.z, cold.intensity, cold.radius)
        update_pressure_field(b.temperature, b.pressure, b.density, b.baseline_pressure)

        np.testing.assert_array_equal(a.temperature, b.temperature)
        np.testing.assert_array_equal(a.pressure, b.pressure)
        np.testing.assert_array_equal(a.density, b.density)


class TestEndToEnd:
    """Heat source at (-800, 0) full on, cold source at (800, 0) off."""

    def test_heated_side_warms_with_lower_pressure(self):
        grid = small_grid(heat_source_pos=(-800, 0), cold_source_pos=(800, 0))
        sampler = FieldSampler(grid)
        updater = FieldUpdater(grid)

        hot_initial = sampler.temperature_at(-800, 0, 0)

        for _ in range(100):
            updater.update(0.1)

        hot_t = sampler.temperature_at(-800, 0, 0)
        cold_t = sampler.temperature_at(800, 0, 0)
        hot_p = sampler.pressure_at(-800, 0, 0)
        cold_p = sampler.pressure_at(800, 0, 0)

        assert hot_t > hot_initial
        assert hot_t == pytest.approx(30.0, abs=1e-9)
        assert cold_t == pytest.approx(20.0, abs=1e-12)
        assert hot_p < cold_p
        assert updater.n_updates == 100


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
