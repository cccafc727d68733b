"""
Particle Advection Through the Thermal Wind Field

Numba-compiled pusher. Per call, for each particle:

    v += wind(x) * dt
    v_y += (T(x) - T_base) * 0.001 * dt
    v *= 0.98                       (drag, once per call, not dt-scaled)
    |v| <= 20                       (renormalized if faster)
    x += v * dt

A particle that ends outside the domain box is recycled: it gets a fresh
random in-domain position and zero velocity in the same slot. It is never
reflected, clipped or removed.

Note:
    The drag factor is applied per call, so the same simulated time at a
    different tick rate gives different effective damping.
"""

import logging

import numpy as np
from numba import njit, prange

from .constants import (
    PARTICLE_BUOYANCY_COEFF,
    DRAG_FACTOR,
    MAX_PARTICLE_SPEED,
)
from .sampler import sample_cell, sample_wind

logger = logging.getLogger(__name__)


# ==================== NUMBA KERNELS ====================

@njit
def advect_one(x, v, i, dt, temperature, pressure,
               half_width, half_depth, dx, dh, dz, base_temperature,
               domain_height):
    """
    Integrate a single particle (in place).

    Args:
        x: Position array, shape (n, 3) [m] (modified in-place)
        v: Velocity array, shape (n, 3) [m/s] (modified in-place)
        i: Particle index
        dt: Effective timestep [s]
        temperature: Temperature field [h, x, z] [°C]
        pressure: Pressure field [h, x, z] [Pa]
        half_width, half_depth: Half extents along x and z [m]
        dx, dh, dz: Cell spacing [m]
        base_temperature: Ambient temperature [°C]
        domain_height: Extent along y [m]

    Returns:
        out_of_bounds: True if the particle must be recycled
    """
    px = x[i, 0]
    py = x[i, 1]
    pz = x[i, 2]

    fx, fy, fz = sample_wind(temperature, pressure, px, py, pz,
                             half_width, half_depth, dx, dh, dz, base_temperature)
    temp = sample_cell(temperature, px, py, pz,
                       half_width, half_depth, dx, dh, dz, base_temperature)
    buoyancy = (temp - base_temperature) * PARTICLE_BUOYANCY_COEFF

    vx = v[i, 0] + fx * dt
    vy = v[i, 1] + fy * dt + buoyancy * dt
    vz = v[i, 2] + fz * dt

    vx *= DRAG_FACTOR
    vy *= DRAG_FACTOR
    vz *= DRAG_FACTOR

    speed = np.sqrt(vx**2 + vy**2 + vz**2)
    if speed > MAX_PARTICLE_SPEED:
        scale = MAX_PARTICLE_SPEED / speed
        vx *= scale
        vy *= scale
        vz *= scale

    v[i, 0] = vx
    v[i, 1] = vy
    v[i, 2] = vz

    x[i, 0] = px + vx * dt
    x[i, 1] = py + vy * dt
    x[i, 2] = pz + vz * dt

    return (abs(x[i, 0]) > half_width or x[i, 1] < 0.0 or
            x[i, 1] > domain_height or abs(x[i, 2]) > half_depth)


@njit(parallel=True)
def advect_particles(x, v, n_particles, dt, temperature, pressure,
                     half_width, half_depth, dx, dh, dz, base_temperature,
                     domain_height, recycle):
    """
    Integrate every particle (in place) and flag the ones to recycle.

    Particles only read the (unchanging) field arrays and write their own
    slot, so the loop runs under prange.

    Args:
        x: Position array, shape (n, 3) [m] (modified in-place)
        v: Velocity array, shape (n, 3) [m/s] (modified in-place)
        n_particles: Number of particles to push
        dt: Effective timestep [s]
        temperature, pressure: Field arrays [h, x, z]
        half_width, half_depth: Half extents along x and z [m]
        dx, dh, dz: Cell spacing [m]
        base_temperature: Ambient temperature [°C]
        domain_height: Extent along y [m]
        recycle: Output flags, shape (n,) (modified in-place)
    """
    for i in prange(n_particles):
        recycle[i] = advect_one(x, v, i, dt, temperature, pressure,
                                half_width, half_depth, dx, dh, dz,
                                base_temperature, domain_height)


# ==================== PYTHON INTERFACE ====================

class Advector:
    """
    Moves a ParticleSet through the wind field of a FieldSampler.

    Attributes:
        particles: ParticleSet being advected
        sampler: FieldSampler providing the field
        n_recycled: Total particles recycled since construction
    """

    def __init__(self, particles, sampler):
        self.particles = particles
        self.sampler = sampler
        self.n_recycled = 0

    def _field_args(self):
        g = self.sampler.grid
        return (g.temperature, g.pressure, g.half_width, g.half_depth,
                g.dx, g.dh, g.dz, g.base_temperature, g.config.domain_height)

    def advect(self, dt):
        """
        Advance every particle by dt times the set's speed multiplier.

        Does nothing while the set is paused.

        Args:
            dt: Tick length [s]

        Returns:
            n_recycled: Particles recycled during this call
        """
        ps = self.particles
        if not ps.is_running:
            return 0

        recycle = np.zeros(ps.n_particles, dtype=np.bool_)
        advect_particles(ps.x, ps.v, ps.n_particles, dt * ps.speed,
                         *self._field_args(), recycle)

        indices = np.flatnonzero(recycle)
        for i in indices:
            ps.initialize_particle(i)

        self.n_recycled += len(indices)
        return len(indices)

    def advect_particle(self, i, dt):
        """
        Advance a single particle by dt times the set's speed multiplier.

        Unlike advect(), this ignores the run state.

        Args:
            i: Particle index
            dt: Tick length [s]

        Returns:
            recycled: True if the particle left the domain and was reinitialized
        """
        ps = self.particles
        out = advect_one(ps.x, ps.v, int(i), dt * ps.speed, *self._field_args())
        if out:
            ps.initialize_particle(i)
            self.n_recycled += 1
        return bool(out)

    def __repr__(self):
        return (f"Advector(particles={self.particles!r}, "
                f"n_recycled={self.n_recycled})")
