"""
Thermal Circulation Driver

Owns the grid, updater, sampler, particle set and advector, and exposes the
command/query surface used by renderers and UIs. One call to step(dt) is one
simulation tick: field update first, then advection.
"""

import logging
from dataclasses import replace

from .config import SimulationConfig
from .grid import FieldGrid
from .field_solver import FieldUpdater
from .sampler import FieldSampler
from .particles import ParticleSet
from .mover import Advector

logger = logging.getLogger(__name__)


class ThermalCirculation:
    """
    Single-threaded driver for the thermal circulation model.

    Attributes:
        config: SimulationConfig
        grid: FieldGrid
        updater: FieldUpdater
        sampler: FieldSampler
        particles: ParticleSet
        advector: Advector
        time: Simulated time [s]
        n_steps: Ticks run since construction
    """

    def __init__(self, config=None, seed=None):
        """
        Args:
            config: SimulationConfig (defaults used if None)
            seed: Seed for particle placement
        """
        self.config = config if config is not None else SimulationConfig()

        self.grid = FieldGrid(self.config)
        self.updater = FieldUpdater(self.grid)
        self.sampler = FieldSampler(self.grid)
        self.particles = ParticleSet.from_config(self.config, seed=seed)
        self.advector = Advector(self.particles, self.sampler)

        self.time = 0.0
        self.n_steps = 0

    # ---------- lifecycle ----------

    @property
    def is_playing(self):
        return self.particles.is_running

    def play(self):
        self.particles.start()
        logger.info("Simulation started")

    start = play

    def pause(self):
        self.particles.pause()
        logger.info("Simulation paused at t=%.2f s", self.time)

    def reset(self, reinitialize_fields=False):
        """
        Pause, restore the configured source intensities and reinitialize
        every particle.

        Args:
            reinitialize_fields: Also reseed the grid with the baseline
                atmosphere (the field otherwise keeps its accumulated state)
        """
        self.pause()
        self.grid.set_heat_intensity(self.config.heat_intensity)
        self.grid.set_cold_intensity(self.config.cold_intensity)
        if reinitialize_fields:
            self.grid.initialize(self.config)
        self.particles.reset()
        logger.info("Simulation reset (fields %s)",
                    "reinitialized" if reinitialize_fields else "kept")

    def step(self, dt):
        """
        Run one tick if playing: field update, then advection.

        Args:
            dt: Tick length [s]

        Returns:
            ran: True if a tick was run
        """
        if not self.is_playing:
            return False

        self.updater.update(dt)
        self.advector.advect(dt)

        self.time += dt
        self.n_steps += 1
        return True

    def run(self, n_steps, dt, tracker=None):
        """
        Run several ticks, starting playback if needed.

        Args:
            n_steps: Number of ticks
            dt: Tick length [s]
            tracker: Optional DiagnosticTracker, recorded at its interval

        Returns:
            n_recycled: Particles recycled during the run
        """
        if not self.is_playing:
            self.play()

        recycled_before = self.advector.n_recycled

        for step in range(n_steps):
            if tracker is not None and tracker.should_record(step):
                tracker.record(step, self.time, self,
                               self.advector.n_recycled - recycled_before)
            self.step(dt)

        if tracker is not None and tracker.should_record(n_steps):
            tracker.record(n_steps, self.time, self,
                           self.advector.n_recycled - recycled_before)

        n_recycled = self.advector.n_recycled - recycled_before
        logger.debug("Ran %d steps, %d particles recycled", n_steps, n_recycled)
        return n_recycled

    # ---------- commands ----------

    def set_heat_intensity(self, value):
        self.grid.set_heat_intensity(value)

    def set_cold_intensity(self, value):
        self.grid.set_cold_intensity(value)

    def set_speed(self, multiplier):
        self.particles.set_speed(multiplier)

    def set_particle_count(self, count):
        """Recreate the particle set; returns the clamped count."""
        return self.particles.set_particle_count(count)

    def set_grid_resolution(self, grid_size, height_levels):
        """
        Reinitialize the grid at a new resolution.

        Resizing always reseeds the whole grid with the baseline atmosphere;
        current source intensities are kept.

        Args:
            grid_size: Cells along x and z
            height_levels: Cells along y
        """
        heat = self.grid.heat_intensity
        cold = self.grid.cold_intensity

        self.config = replace(self.config, grid_size=grid_size,
                              height_levels=height_levels)
        self.grid.initialize(self.config)
        self.grid.set_heat_intensity(heat)
        self.grid.set_cold_intensity(cold)
        logger.info("Grid resized to %r", self.grid)

    # ---------- queries ----------

    def temperature_at(self, x, y, z):
        return self.sampler.temperature_at(x, y, z)

    def pressure_at(self, x, y, z):
        return self.sampler.pressure_at(x, y, z)

    def wind_vector_at(self, x, y, z):
        return self.sampler.wind_vector_at(x, y, z)

    @property
    def positions(self):
        return self.particles.positions

    @property
    def velocities(self):
        return self.particles.velocities

    def __repr__(self):
        return (f"ThermalCirculation(t={self.time:.2f} s, steps={self.n_steps}, "
                f"grid={self.grid!r}, particles={self.particles!r})")
