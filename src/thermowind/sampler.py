"""
Point Queries Against the Field Grid

Nearest-cell lookup of temperature and pressure at a world coordinate, and
the wind vector derived from them. There is no interpolation between cells.

Queries outside the grid never fail; they return a sentinel:
    temperature -> ambient base temperature
    pressure    -> 101325 Pa

Wind vector:
    fx = -(P(x+50, y, z) - P(x, y, z)) / 50
    fz = -(P(x, y, z+50) - P(x, y, z)) / 50
    fy = (T(x, y, z) - T(x, y-100, z)) * 0.01

The vertical component is a buoyancy proxy from the local vertical
temperature difference, not a vertical pressure gradient.
"""

import numpy as np
from numba import njit

from .constants import (
    P_STANDARD,
    WIND_PROBE_OFFSET,
    BUOYANCY_PROBE_DEPTH,
    WIND_BUOYANCY_COEFF,
    ideal_gas_density,
)


# ==================== NUMBA KERNELS ====================

@njit
def sample_cell(field, x, y, z, half_width, half_depth, dx, dh, dz, fallback):
    """
    Nearest-cell value of a [h, x, z] field.

    Args:
        field: Field array [h, x, z]
        x, y, z: World coordinates [m]
        half_width: Half the domain extent along x [m]
        half_depth: Half the domain extent along z [m]
        dx, dh, dz: Cell spacing [m]
        fallback: Value returned outside the grid

    Returns:
        value: field[h, i, k], or fallback if any index is out of range
    """
    n_h, n_x, n_z = field.shape

    i = int(np.floor((x + half_width) / dx))
    h = int(np.floor(y / dh))
    k = int(np.floor((z + half_depth) / dz))

    if h < 0 or h >= n_h or i < 0 or i >= n_x or k < 0 or k >= n_z:
        return fallback

    return field[h, i, k]


@njit
def sample_wind(temperature, pressure, x, y, z,
                half_width, half_depth, dx, dh, dz, base_temperature):
    """
    Wind vector at a world coordinate.

    Args:
        temperature: Temperature field [h, x, z] [°C]
        pressure: Pressure field [h, x, z] [Pa]
        x, y, z: World coordinates [m]
        half_width, half_depth: Half extents along x and z [m]
        dx, dh, dz: Cell spacing [m]
        base_temperature: Temperature sentinel [°C]

    Returns:
        (fx, fy, fz): Wind components
    """
    delta = WIND_PROBE_OFFSET

    p0 = sample_cell(pressure, x, y, z, half_width, half_depth, dx, dh, dz, P_STANDARD)
    px = sample_cell(pressure, x + delta, y, z, half_width, half_depth, dx, dh, dz, P_STANDARD)
    pz = sample_cell(pressure, x, y, z + delta, half_width, half_depth, dx, dh, dz, P_STANDARD)

    fx = -(px - p0) / delta
    fz = -(pz - p0) / delta

    temp = sample_cell(temperature, x, y, z, half_width, half_depth,
                       dx, dh, dz, base_temperature)
    temp_below = sample_cell(temperature, x, y - BUOYANCY_PROBE_DEPTH, z,
                             half_width, half_depth, dx, dh, dz, base_temperature)
    fy = (temp - temp_below) * WIND_BUOYANCY_COEFF

    return fx, fy, fz


# ==================== PYTHON INTERFACE ====================

class FieldSampler:
    """
    Read-only query interface over a FieldGrid.

    The sampler holds the grid, not its arrays, so it keeps working after
    the grid is reinitialized at a new resolution.
    """

    def __init__(self, grid):
        self.grid = grid

    def _geometry(self):
        g = self.grid
        return g.half_width, g.half_depth, g.dx, g.dh, g.dz

    def temperature_at(self, x, y, z):
        """Nearest-cell temperature [°C], or the base temperature outside the grid."""
        g = self.grid
        return sample_cell(g.temperature, float(x), float(y), float(z),
                           *self._geometry(), g.base_temperature)

    def pressure_at(self, x, y, z):
        """Nearest-cell pressure [Pa], or 101325 outside the grid."""
        return sample_cell(self.grid.pressure, float(x), float(y), float(z),
                           *self._geometry(), P_STANDARD)

    def density_at(self, x, y, z):
        """Nearest-cell density [kg/m^3], or standard-pressure ambient density outside."""
        g = self.grid
        fallback = ideal_gas_density(P_STANDARD, g.base_temperature)
        return sample_cell(g.density, float(x), float(y), float(z),
                           *self._geometry(), fallback)

    def wind_vector_at(self, x, y, z):
        """
        Wind vector at a world coordinate.

        Returns:
            wind: np.ndarray [fx, fy, fz]
        """
        g = self.grid
        fx, fy, fz = sample_wind(g.temperature, g.pressure,
                                 float(x), float(y), float(z),
                                 *self._geometry(), g.base_temperature)
        return np.array([fx, fy, fz])

    def wind_arrow_lattice(self, levels=(500.0, 1000.0, 1500.0), spacing=400.0,
                           x_extent=1500.0, z_extent=300.0, min_magnitude=0.1):
        """
        Sample the wind on a regular lattice of arrow anchors.

        Anchors run over x in [-x_extent, x_extent] and z in [-z_extent, z_extent]
        at the given spacing, for each altitude in levels. Anchors whose wind
        magnitude does not exceed min_magnitude are dropped.

        Returns:
            points: Anchor coordinates, shape (n, 3)
            vectors: Wind vectors at the anchors, shape (n, 3)
        """
        points = []
        vectors = []

        for y in levels:
            for x in np.arange(-x_extent, x_extent + 1e-9, spacing):
                for z in np.arange(-z_extent, z_extent + 1e-9, spacing):
                    wind = self.wind_vector_at(x, y, z)
                    if np.linalg.norm(wind) > min_magnitude:
                        points.append((x, y, z))
                        vectors.append(wind)

        return (np.array(points, dtype=np.float64).reshape(-1, 3),
                np.array(vectors, dtype=np.float64).reshape(-1, 3))

    def trace_streamline(self, start, max_steps=100, step_size=50.0, min_speed=0.1):
        """
        Follow the wind direction from a start point with fixed-length steps.

        Tracing stops when the wind magnitude falls below min_speed or when
        the next point leaves the domain (that point is not included).

        Args:
            start: Starting point (x, y, z) [m]
            max_steps: Maximum number of points
            step_size: Step length along the normalized wind [m]
            min_speed: Wind magnitude below which tracing stops

        Returns:
            points: Streamline points, shape (n, 3), starting at start
        """
        cfg = self.grid.config
        pos = np.array(start, dtype=np.float64)
        points = []

        for _ in range(max_steps):
            points.append(pos.copy())

            wind = self.wind_vector_at(*pos)
            speed = np.linalg.norm(wind)
            if speed < min_speed:
                break

            pos = pos + wind / speed * step_size

            if (abs(pos[0]) > cfg.half_width or pos[1] < 0
                    or pos[1] > cfg.domain_height or abs(pos[2]) > cfg.half_depth):
                break

        return np.array(points, dtype=np.float64).reshape(-1, 3)

    def __repr__(self):
        return f"FieldSampler(grid={self.grid!r})"
