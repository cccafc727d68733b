"""
Thermal Field Update

Advances the FieldGrid by one tick in two strictly ordered passes:

1. Temperature pass: heat/cold sources warm or cool every column within
   their planar influence radius, then a small lapse correction is removed.
2. Pressure/density pass: pressure responds to the new temperature relative
   to the standard atmosphere; density follows from the ideal gas law.

Pass 2 reads the temperatures written by pass 1, so it must only start once
pass 1 has finished for the whole grid. Each pass is a separate kernel
launch; cells inside a pass are independent and run under prange.

Note:
    There is no dissipation term. Repeated ticks make temperatures drift
    without bound near the sources; nothing here clamps that drift.
"""

import logging

import numpy as np
from numba import njit, prange

from .constants import (
    LAPSE_RATE,
    LAPSE_CORRECTION,
    SOURCE_RATE,
    KELVIN_OFFSET,
    T_STANDARD_K,
    PRESSURE_SENSITIVITY,
    ideal_gas_density,
)

logger = logging.getLogger(__name__)


# ==================== NUMBA KERNELS ====================

@njit(parallel=True)
def update_temperature_field(temperature, heights, cell_x, cell_z,
                             heat_x, heat_z, heat_intensity, heat_radius,
                             cold_x, cold_z, cold_intensity, cold_radius):
    """
    Temperature pass (in place).

    For each cell, with d the planar distance to a source:
        T += (1 - d/r) * intensity/100 * 0.1   (heat, d < r)
        T -= (1 - d/r) * intensity/100 * 0.1   (cold, d < r)
        T -= height * 0.0065 * 0.01

    Args:
        temperature: Temperature field [h, x, z] [°C] (modified in-place)
        heights: Altitude per level [m]
        cell_x: World x per column [m]
        cell_z: World z per column [m]
        heat_x, heat_z: Heat source position [m]
        heat_intensity: Heat source intensity [0-100]
        heat_radius: Heat source influence radius [m]
        cold_x, cold_z: Cold source position [m]
        cold_intensity: Cold source intensity [0-100]
        cold_radius: Cold source influence radius [m]
    """
    n_h, n_x, n_z = temperature.shape

    for h in prange(n_h):
        lapse = heights[h] * LAPSE_RATE * LAPSE_CORRECTION

        for i in range(n_x):
            for k in range(n_z):
                wx = cell_x[i]
                wz = cell_z[k]

                heat_dist = np.sqrt((wx - heat_x)**2 + (wz - heat_z)**2)
                cold_dist = np.sqrt((wx - cold_x)**2 + (wz - cold_z)**2)

                if heat_dist < heat_radius:
                    influence = (1.0 - heat_dist / heat_radius) * heat_intensity / 100.0
                    temperature[h, i, k] += influence * SOURCE_RATE

                if cold_dist < cold_radius:
                    influence = (1.0 - cold_dist / cold_radius) * cold_intensity / 100.0
                    temperature[h, i, k] -= influence * SOURCE_RATE

                temperature[h, i, k] -= lapse


@njit(parallel=True)
def update_pressure_field(temperature, pressure, density, baseline_pressure):
    """
    Pressure/density pass (in place).

        T_ratio = (T + 273.15) / 288.15
        P = P_baseline(h) * (1 - (T_ratio - 1) * 0.1)
        D = P / (R * (T + 273.15))

    Args:
        temperature: Temperature field [h, x, z] [°C] (read only)
        pressure: Pressure field [h, x, z] [Pa] (modified in-place)
        density: Density field [h, x, z] [kg/m^3] (modified in-place)
        baseline_pressure: Barometric pressure per level [Pa]
    """
    n_h, n_x, n_z = temperature.shape

    for h in prange(n_h):
        p_base = baseline_pressure[h]

        for i in range(n_x):
            for k in range(n_z):
                temp = temperature[h, i, k]
                t_ratio = (temp + KELVIN_OFFSET) / T_STANDARD_K
                p = p_base * (1.0 - (t_ratio - 1.0) * PRESSURE_SENSITIVITY)

                pressure[h, i, k] = p
                density[h, i, k] = ideal_gas_density(p, temp)


# ==================== PYTHON INTERFACE ====================

class FieldUpdater:
    """
    Advances a FieldGrid one tick at a time.

    The updater is the only writer of the grid arrays.

    Attributes:
        grid: FieldGrid being advanced
        n_updates: Ticks applied since construction
    """

    def __init__(self, grid):
        self.grid = grid
        self.n_updates = 0

    def update(self, dt):
        """
        Apply one tick: temperature pass, then pressure/density pass.

        Args:
            dt: Tick length [s]. Accepted for driver symmetry; the per-tick
                increments are fixed and do not scale with dt.
        """
        grid = self.grid
        heat = grid.heat_source
        cold = grid.cold_source

        update_temperature_field(
            grid.temperature, grid.heights, grid.cell_x, grid.cell_z,
            heat.x, heat.z, heat.intensity, heat.radius,
            cold.x, cold.z, cold.intensity, cold.radius,
        )

        # Second launch: every cell now holds its updated temperature
        update_pressure_field(
            grid.temperature, grid.pressure, grid.density, grid.baseline_pressure
        )

        self.n_updates += 1

    def run(self, n_ticks, dt):
        """
        Apply several ticks.

        Args:
            n_ticks: Number of ticks
            dt: Tick length passed to each update [s]
        """
        for _ in range(n_ticks):
            self.update(dt)
        logger.debug("Applied %d field ticks (total %d)", n_ticks, self.n_updates)

    def __repr__(self):
        return f"FieldUpdater(grid={self.grid!r}, n_updates={self.n_updates})"
