"""
Tracer Particle Set

Uses Structure-of-Arrays (SoA) layout: positions and velocities live in
separate (n, 3) arrays, and index i is the same particle in both.
"""

import logging

import numpy as np

from .constants import (
    SPEED_MIN,
    SPEED_MAX,
    PARTICLE_COUNT_MIN,
    PARTICLE_COUNT_MAX,
    clamp,
)

logger = logging.getLogger(__name__)


class ParticleSet:
    """
    Fixed-size set of tracer particles with a run/pause state.

    Particles are never removed. A particle that leaves the domain is
    reinitialized in its own slot, so the count only changes through
    set_particle_count(), which destroys and recreates the whole set.

    Attributes:
        x: Position vectors [n_particles, 3] in metres
        v: Velocity vectors [n_particles, 3] in m/s
        n_particles: Number of particles
        domain_width: Extent along x, centred on 0 [m]
        domain_height: Extent along y, starting at 0 [m]
        domain_depth: Extent along z, centred on 0 [m]
        speed: dt multiplier applied by the Advector, in [0.1, 3]
        rng: numpy Generator used for (re)initialization
    """

    def __init__(self, n_particles, domain_width=4000.0, domain_height=2000.0,
                 domain_depth=1000.0, speed=1.0, seed=None):
        """
        Allocate and initialize particles.

        Args:
            n_particles: Number of particles
            domain_width: Extent along x [m]
            domain_height: Extent along y [m]
            domain_depth: Extent along z [m]
            speed: Initial speed multiplier (clamped to [0.1, 3])
            seed: Seed or numpy Generator for reproducible positions
        """
        self.domain_width = float(domain_width)
        self.domain_height = float(domain_height)
        self.domain_depth = float(domain_depth)
        self.rng = np.random.default_rng(seed)
        self.running = False
        self.speed = 1.0
        self.set_speed(speed)

        self._allocate(int(n_particles))

    @classmethod
    def from_config(cls, config, seed=None):
        """Build a particle set matching a SimulationConfig."""
        return cls(
            config.n_particles,
            domain_width=config.domain_width,
            domain_height=config.domain_height,
            domain_depth=config.domain_depth,
            speed=config.particle_speed,
            seed=seed,
        )

    def _allocate(self, n_particles):
        self.n_particles = n_particles
        self.x = np.zeros((n_particles, 3), dtype=np.float64)  # Position [m]
        self.v = np.zeros((n_particles, 3), dtype=np.float64)  # Velocity [m/s]
        self.initialize_all()

    # ---------- initialization ----------

    def initialize_particle(self, i):
        """
        Place particle i at a uniformly random in-domain position, at rest.

        Args:
            i: Particle index
        """
        r = self.rng.random(3)
        self.x[i, 0] = (r[0] - 0.5) * self.domain_width
        self.x[i, 1] = r[1] * self.domain_height
        self.x[i, 2] = (r[2] - 0.5) * self.domain_depth
        self.v[i] = 0.0

    def initialize_all(self):
        """Reinitialize every particle (random positions, zero velocity)."""
        r = self.rng.random((self.n_particles, 3))
        self.x[:, 0] = (r[:, 0] - 0.5) * self.domain_width
        self.x[:, 1] = r[:, 1] * self.domain_height
        self.x[:, 2] = (r[:, 2] - 0.5) * self.domain_depth
        self.v[:] = 0.0

    # ---------- run state ----------

    def start(self):
        self.running = True

    def pause(self):
        self.running = False

    @property
    def is_running(self):
        return self.running

    def reset(self):
        """Pause, then reinitialize every particle."""
        self.pause()
        self.initialize_all()
        logger.debug("Reset %d particles", self.n_particles)

    def set_speed(self, multiplier):
        """
        Set the dt multiplier used by subsequent advect calls.

        Args:
            multiplier: Requested multiplier, clamped to [0.1, 3]
        """
        clamped = clamp(float(multiplier), SPEED_MIN, SPEED_MAX)
        if clamped != multiplier:
            logger.debug("Speed multiplier %r clamped to %.2f", multiplier, clamped)
        self.speed = clamped

    def set_particle_count(self, count):
        """
        Destroy and recreate the whole set at a new size.

        Args:
            count: Requested particle count, clamped to [100, 2000]

        Returns:
            n_particles: The count actually used
        """
        n = int(clamp(int(count), PARTICLE_COUNT_MIN, PARTICLE_COUNT_MAX))
        if n != count:
            logger.debug("Particle count %r clamped to %d", count, n)

        self._allocate(n)
        logger.debug("Recreated particle set with %d particles", n)
        return n

    # ---------- read access ----------

    @property
    def positions(self):
        """Read-only view of particle positions, shape (n, 3)."""
        view = self.x.view()
        view.flags.writeable = False
        return view

    @property
    def velocities(self):
        """Read-only view of particle velocities, shape (n, 3)."""
        view = self.v.view()
        view.flags.writeable = False
        return view

    def speeds(self):
        """Speed of every particle [m/s], shape (n,)."""
        return np.linalg.norm(self.v, axis=1)

    def in_domain_mask(self):
        """
        Boolean mask of particles inside the closed domain box.

        Returns:
            mask: Array of shape (n_particles,)
        """
        return ((np.abs(self.x[:, 0]) <= 0.5 * self.domain_width) &
                (self.x[:, 1] >= 0.0) &
                (self.x[:, 1] <= self.domain_height) &
                (np.abs(self.x[:, 2]) <= 0.5 * self.domain_depth))

    def __repr__(self):
        state = "running" if self.running else "paused"
        return (f"ParticleSet(n_particles={self.n_particles}, "
                f"speed={self.speed:.2f}, {state})")

    def __len__(self):
        return self.n_particles

    def summary(self):
        """Print summary statistics."""
        speeds = self.speeds()
        print(f"\nParticle Set Summary:")
        print(f"  Particles:        {self.n_particles}")
        print(f"  State:            {'running' if self.running else 'paused'}")
        print(f"  Speed multiplier: {self.speed:.2f}x")
        print(f"  In domain:        {np.sum(self.in_domain_mask())}")
        if self.n_particles > 0:
            print(f"  Mean speed:       {np.mean(speeds):.3f} m/s")
            print(f"  Max speed:        {np.max(speeds):.3f} m/s")
