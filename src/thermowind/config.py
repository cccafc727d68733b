"""
Simulation Configuration

Construction-time parameters of the thermal-circulation model. Runtime
commands (intensities, speed, particle count) are clamped by the components
that own them; this module only rejects configurations that cannot describe
a grid at all.
"""

from dataclasses import dataclass, asdict
from typing import Tuple


@dataclass
class SimulationConfig:
    """
    Construction-time configuration.

    Unknown keyword arguments raise TypeError (dataclass constructor);
    unusable values raise ValueError. Use dataclasses.replace() for a
    modified copy, which validates again.

    Attributes:
        grid_size: Cells along x and along z
        height_levels: Cells along y
        heat_source_pos: Planar (x, z) position of the heat source [m]
        cold_source_pos: Planar (x, z) position of the cold source [m]
        base_temperature: Ground-level ambient temperature [°C]
        domain_width: Domain extent along x, centred on 0 [m]
        domain_height: Domain extent along y, starting at 0 [m]
        domain_depth: Domain extent along z, centred on 0 [m]
        n_particles: Initial particle count
        particle_speed: Initial speed multiplier
        heat_intensity: Initial heat source intensity [0-100]
        cold_intensity: Initial cold source intensity [0-100]
    """
    grid_size: int = 50
    height_levels: int = 20
    heat_source_pos: Tuple[float, float] = (-800.0, 0.0)
    cold_source_pos: Tuple[float, float] = (800.0, 0.0)
    base_temperature: float = 20.0
    domain_width: float = 4000.0
    domain_height: float = 2000.0
    domain_depth: float = 1000.0
    n_particles: int = 1000
    particle_speed: float = 1.0
    heat_intensity: float = 80.0
    cold_intensity: float = 60.0

    def __post_init__(self):
        self.grid_size = int(self.grid_size)
        self.height_levels = int(self.height_levels)
        self.n_particles = int(self.n_particles)
        self.heat_source_pos = _as_point(self.heat_source_pos, 'heat_source_pos')
        self.cold_source_pos = _as_point(self.cold_source_pos, 'cold_source_pos')
        for name in ('base_temperature', 'domain_width', 'domain_height', 'domain_depth',
                     'particle_speed', 'heat_intensity', 'cold_intensity'):
            setattr(self, name, float(getattr(self, name)))

        for name in ('grid_size', 'height_levels', 'n_particles'):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1, got {getattr(self, name)}")

        for name in ('domain_width', 'domain_height', 'domain_depth'):
            if not getattr(self, name) > 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")

    @property
    def half_width(self) -> float:
        return 0.5 * self.domain_width

    @property
    def half_depth(self) -> float:
        return 0.5 * self.domain_depth

    def as_dict(self) -> dict:
        """Return the configuration as a plain dict."""
        return asdict(self)

    def __repr__(self) -> str:
        return (f"SimulationConfig(grid={self.grid_size}x{self.grid_size}x"
                f"{self.height_levels}, domain={self.domain_width:.0f}x"
                f"{self.domain_height:.0f}x{self.domain_depth:.0f} m, "
                f"n_particles={self.n_particles})")


def _as_point(value, name):
    try:
        x, z = value
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an (x, z) pair, got {value!r}") from None
    return (float(x), float(z))
