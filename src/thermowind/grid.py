"""
3D Atmospheric Field Grid

Holds temperature, pressure and density on a uniform (height, x, z) grid,
together with the heat and cold sources that drive it.

Grid layout (grid_size = 4 example, x axis):

    Cell:      0      1      2      3
    world_x: -2000  -1000    0    1000      (domain_width = 4000)

A cell's world coordinate is its lower edge, so a continuous coordinate
maps back to the same cell by flooring (coord + half_extent) / spacing.
"""

import logging

import numpy as np

from .config import SimulationConfig
from .constants import (
    LAPSE_RATE,
    SOURCE_RADIUS,
    INTENSITY_MIN,
    INTENSITY_MAX,
    barometric_pressure,
    ideal_gas_density,
    clamp,
)

logger = logging.getLogger(__name__)


class HeatSource:
    """
    Fixed planar source that warms (or cools) nearby columns.

    Attributes:
        x: Planar x position [m]
        z: Planar z position [m]
        intensity: Strength in [0, 100]
        radius: Planar influence radius [m]
    """

    def __init__(self, x, z, intensity=0.0, radius=SOURCE_RADIUS):
        self.x = float(x)
        self.z = float(z)
        self.radius = float(radius)
        self._intensity = 0.0
        self.intensity = intensity

    @property
    def intensity(self):
        return self._intensity

    @intensity.setter
    def intensity(self, value):
        clamped = clamp(float(value), INTENSITY_MIN, INTENSITY_MAX)
        if clamped != value:
            logger.debug("Source intensity %r clamped to %.1f", value, clamped)
        self._intensity = clamped

    def __repr__(self):
        return (f"HeatSource(x={self.x:.0f}, z={self.z:.0f}, "
                f"intensity={self._intensity:.1f})")


class FieldGrid:
    """
    Owner of the 3D temperature/pressure/density arrays.

    Arrays are indexed [h, x, z] with shape (height_levels, grid_size, grid_size).
    They are allocated by initialize() and otherwise only mutated in place
    (by FieldUpdater); readers hold a reference to the grid, not to the arrays.

    Attributes:
        config: SimulationConfig the grid was built from
        temperature: Cell temperature [°C]
        pressure: Cell pressure [Pa]
        density: Cell density [kg/m^3]
        heights: Altitude of each level [m], shape (height_levels,)
        cell_x: World x of each column [m], shape (grid_size,)
        cell_z: World z of each column [m], shape (grid_size,)
        baseline_pressure: Barometric pressure per level [Pa]
        dx, dh, dz: Cell spacing along x, y, z [m]
        heat_source, cold_source: HeatSource instances
    """

    def __init__(self, config=None):
        """
        Args:
            config: SimulationConfig (defaults used if None)
        """
        self.initialize(config if config is not None else SimulationConfig())

    def initialize(self, config):
        """
        Seed the baseline atmosphere for every cell.

        T(h) = base_temperature - height * 0.0065
        P(h) = 101325 * (1 - 0.0065 * height / 288.15)^5.255
        D    = P / (R * (T + 273.15))

        Deterministic from config. Always reallocates the arrays, so this is
        also the only way to change the grid resolution.

        Args:
            config: SimulationConfig
        """
        self.config = config
        n = config.grid_size
        n_h = config.height_levels

        self.dx = config.domain_width / n
        self.dz = config.domain_depth / n
        self.dh = config.domain_height / n_h
        self.half_width = config.half_width
        self.half_depth = config.half_depth
        self.base_temperature = config.base_temperature

        self.heights = np.arange(n_h, dtype=np.float64) / n_h * config.domain_height
        self.cell_x = (np.arange(n, dtype=np.float64) - n / 2) * self.dx
        self.cell_z = (np.arange(n, dtype=np.float64) - n / 2) * self.dz
        self.baseline_pressure = barometric_pressure(self.heights)

        shape = (n_h, n, n)
        baseline_t = config.base_temperature - self.heights * LAPSE_RATE
        self.temperature = np.empty(shape, dtype=np.float64)
        self.pressure = np.empty(shape, dtype=np.float64)
        self.temperature[:] = baseline_t[:, None, None]
        self.pressure[:] = self.baseline_pressure[:, None, None]
        self.density = ideal_gas_density(self.pressure, self.temperature)

        self.heat_source = HeatSource(*config.heat_source_pos, intensity=config.heat_intensity)
        self.cold_source = HeatSource(*config.cold_source_pos, intensity=config.cold_intensity)

        logger.debug("Initialized %r", self)

    # ---------- source commands ----------

    def set_heat_intensity(self, value):
        """Clamp to [0, 100] and store; takes effect on the next update."""
        self.heat_source.intensity = value

    def set_cold_intensity(self, value):
        """Clamp to [0, 100] and store; takes effect on the next update."""
        self.cold_source.intensity = value

    @property
    def heat_intensity(self):
        return self.heat_source.intensity

    @property
    def cold_intensity(self):
        return self.cold_source.intensity

    # ---------- geometry ----------

    @property
    def shape(self):
        return self.temperature.shape

    @property
    def n_cells(self):
        return self.temperature.size

    def cell_index(self, x, y, z):
        """
        Nearest cell for a world coordinate.

        Args:
            x, y, z: World coordinates [m]

        Returns:
            (h, i, k): Cell indices, or None if outside the grid
        """
        i = int(np.floor((x + self.half_width) / self.dx))
        h = int(np.floor(y / self.dh))
        k = int(np.floor((z + self.half_depth) / self.dz))

        n_h, n_x, n_z = self.shape
        if 0 <= h < n_h and 0 <= i < n_x and 0 <= k < n_z:
            return h, i, k
        return None

    def gas_law_residual(self):
        """
        Largest relative deviation from D = P / (R (T + 273.15)).

        Returns:
            residual: max |D - P/(R T)| / (P/(R T)) over all cells
        """
        expected = ideal_gas_density(self.pressure, self.temperature)
        return float(np.max(np.abs(self.density - expected) / np.abs(expected)))

    def __repr__(self):
        n_h, n_x, n_z = self.shape
        return (f"FieldGrid(shape=({n_h}, {n_x}, {n_z}), "
                f"dx={self.dx:.1f} m, dh={self.dh:.1f} m, dz={self.dz:.1f} m)")

    def summary(self):
        """Print summary statistics."""
        print(f"\nField Grid Summary:")
        print(f"  Shape (h, x, z):  {self.shape}")
        print(f"  Cells:            {self.n_cells:,}")
        print(f"  Spacing:          dx={self.dx:.1f} m, dh={self.dh:.1f} m, dz={self.dz:.1f} m")
        print(f"  Heat source:      {self.heat_source}")
        print(f"  Cold source:      {self.cold_source}")
        print(f"\n  Temperature: [{self.temperature.min():.2f}, {self.temperature.max():.2f}] °C")
        print(f"  Pressure:    [{self.pressure.min():.1f}, {self.pressure.max():.1f}] Pa")
        print(f"  Density:     [{self.density.min():.4f}, {self.density.max():.4f}] kg/m^3")
