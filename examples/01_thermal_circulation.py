"""
Example 01: Thermal Circulation

Demonstrates:
- Heating and cooling of the field grid by the two sources
- Pressure drop above the heat source
- Tracer particles advected through the derived wind
- Diagnostic time series (CSV + plots)
- Wind arrows and a streamline at the end of the run
"""

import logging
import time

import numpy as np
import matplotlib.pyplot as plt

from thermowind import ThermalCirculation, DiagnosticTracker, SimulationConfig
from thermowind.diagnostics import info_panel, field_statistics


def example_1_circulation_run():
    """
    Example 1: Run the default scene for 20 simulated seconds.
    """
    print("\n" + "="*70)
    print("Example 1: Default Scene")
    print("="*70)

    # Parameters
    n_steps = 1200
    dt = 1.0 / 60.0  # 60 fps

    config = SimulationConfig(n_particles=1500, heat_intensity=90.0)
    sim = ThermalCirculation(config, seed=42)
    print(f"\n{sim!r}")

    tracker = DiagnosticTracker(n_steps=n_steps, output_interval=20)

    print(f"\nRunning {n_steps} steps (dt = {dt*1000:.1f} ms)...")
    start = time.time()
    n_recycled = sim.run(n_steps, dt, tracker=tracker)
    elapsed = time.time() - start

    print(f"  Elapsed: {elapsed:.2f} s ({elapsed / n_steps * 1000:.2f} ms/step)")
    print(f"  Particles recycled: {n_recycled}")

    info = info_panel(sim.sampler)
    print(f"\nInfo panel:")
    print(f"  Above heat source: {info['hot_temperature']:.1f} °C")
    print(f"  Above cold source: {info['cold_temperature']:.1f} °C")
    print(f"  Peak wind:         {info['max_wind_display']:.1f} m/s")

    stats = field_statistics(sim.grid)
    print(f"  Gas-law residual:  {stats['gas_law_residual']:.2e}")

    tracker.summary()
    tracker.save_csv('thermal_circulation_diagnostics.csv')
    tracker.plot(show=False, save_filename='thermal_circulation_diagnostics.png')
    print(f"[OK] Diagnostics saved to 'thermal_circulation_diagnostics.csv/.png'")

    return sim


def example_2_wind_structure(sim):
    """
    Example 2: Side view of particles, wind arrows and a streamline.
    """
    print("\n" + "="*70)
    print("Example 2: Wind Structure")
    print("="*70)

    points, vectors = sim.sampler.wind_arrow_lattice()
    print(f"\n  Wind arrows above threshold: {len(points)}")

    heat = sim.grid.heat_source
    line = sim.sampler.trace_streamline((heat.x, 100.0, heat.z))
    print(f"  Streamline from heat source: {len(line)} points")

    fig, ax = plt.subplots(figsize=(12, 6))
    pos = sim.positions
    ax.scatter(pos[:, 0], pos[:, 1], s=2, c='gray', alpha=0.5, label='Particles')

    if len(points) > 0:
        ax.quiver(points[:, 0], points[:, 1], vectors[:, 0], vectors[:, 1],
                  color='tab:green', angles='xy', label='Wind')

    ax.plot(line[:, 0], line[:, 1], 'r-', linewidth=2, label='Streamline')
    ax.plot(heat.x, 0.0, 'r^', markersize=14, label='Heat source')
    ax.plot(sim.grid.cold_source.x, 0.0, 'bv', markersize=14, label='Cold source')

    ax.set_xlim(-sim.config.half_width, sim.config.half_width)
    ax.set_ylim(0.0, sim.config.domain_height)
    ax.set_xlabel('x [m]')
    ax.set_ylabel('Altitude [m]')
    ax.set_title('Thermal Circulation (side view)')
    ax.legend(loc='upper right')
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig('thermal_circulation_side_view.png', dpi=150)
    print(f"\n[OK] Plot saved to 'thermal_circulation_side_view.png'")

    mean_vy = np.mean(sim.velocities[:, 1][np.abs(sim.positions[:, 0] - heat.x) < 400.0])
    print(f"  Mean vertical velocity near heat source: {mean_vy:.3f} m/s")


# ==================== MAIN ====================

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO,
                        format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    print("\n" + "="*70)
    print("ThermoWind Example 01: Thermal Circulation")
    print("="*70)

    sim = example_1_circulation_run()
    example_2_wind_structure(sim)

    print("\n" + "="*70)
    print("All examples complete!")
    print("="*70)
    print("\nNext steps:")
    print("  1. Run tests: pytest tests/ -v")
    print("  2. Try set_grid_resolution(80, 30) for a finer field")
    print("="*70 + "\n")
