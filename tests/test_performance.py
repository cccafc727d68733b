"""
Performance Gate Tests

A full-size tick (50 x 50 x 20 grid, 2000 particles) must stay cheap
enough for interactive frame rates.
"""

import time

import pytest

from thermowind.config import SimulationConfig
from thermowind.simulation import ThermalCirculation


@pytest.mark.performance
class TestPerformanceGates:
    """Tick cost gates."""

    def test_tick_cost_gate(self):
        """
        Requirement: 60 ticks of the largest scene in under 1 second

        Calculation:
        - 50 x 50 x 20 = 50,000 cells per field pass
        - 2000 particles, 5 nearest-cell lookups each
        - 60 ticks ~ one second of real time at 60 fps
        """
        config = SimulationConfig(n_particles=2000)
        sim = ThermalCirculation(config, seed=0)
        sim.play()

        # Warmup Numba compilation
        print("\n  Warming up Numba JIT...")
        for _ in range(3):
            sim.step(1.0 / 60.0)

        n_ticks = 60
        start = time.time()
        for _ in range(n_ticks):
            sim.step(1.0 / 60.0)
        elapsed = time.time() - start

        print(f"\n  Results:")
        print(f"    Elapsed time:  {elapsed:.3f} s")
        print(f"    Time per tick: {elapsed / n_ticks * 1000:.2f} ms")

        assert elapsed < 1.0, (
            f"PERFORMANCE GATE FAILED: {elapsed:.2f}s > 1.0s for {n_ticks} ticks"
        )
