"""
Diagnostic utilities for the thermal circulation model.

Read-only derived metrics for renderers and analysis:
- Info-panel probes (source temperatures, peak wind)
- Particle statistics
- Field statistics and gas-law residual
- Time-series tracking with CSV export and plots
"""

import csv
import logging
from typing import Dict, Optional

import numpy as np

logger = logging.getLogger(__name__)

WIND_DISPLAY_SCALE = 10.0  # Wind magnitude -> displayed m/s
PROBE_HEIGHT = 100.0  # Altitude of the source temperature probes [m]
WIND_PROBE_HEIGHT = 1000.0  # Altitude of the peak-wind probe lattice [m]


def max_wind_speed(sampler, height=WIND_PROBE_HEIGHT,
                   x_range=(-1500.0, 1500.0, 500.0),
                   z_range=(-300.0, 300.0, 150.0)):
    """
    Largest wind magnitude over a horizontal probe lattice.

    Args:
        sampler: FieldSampler
        height: Probe altitude [m]
        x_range: (start, stop, step) along x, stop inclusive [m]
        z_range: (start, stop, step) along z, stop inclusive [m]

    Returns:
        max_speed: Largest |wind| on the lattice
    """
    xs = np.arange(x_range[0], x_range[1] + 1e-9, x_range[2])
    zs = np.arange(z_range[0], z_range[1] + 1e-9, z_range[2])

    max_speed = 0.0
    for x in xs:
        for z in zs:
            max_speed = max(max_speed, float(np.linalg.norm(sampler.wind_vector_at(x, height, z))))

    return max_speed


def info_panel(sampler) -> Dict[str, float]:
    """
    Values shown by the live info panel.

    Temperatures are probed above each source at PROBE_HEIGHT.

    Args:
        sampler: FieldSampler

    Returns:
        info: dict with hot_temperature, cold_temperature, max_wind_speed,
              max_wind_display (m/s as displayed)
    """
    grid = sampler.grid
    heat = grid.heat_source
    cold = grid.cold_source

    peak = max_wind_speed(sampler)

    return {
        'hot_temperature': float(sampler.temperature_at(heat.x, PROBE_HEIGHT, heat.z)),
        'cold_temperature': float(sampler.temperature_at(cold.x, PROBE_HEIGHT, cold.z)),
        'max_wind_speed': peak,
        'max_wind_display': peak * WIND_DISPLAY_SCALE,
    }


def particle_statistics(particles) -> Dict[str, float]:
    """
    Summary statistics of a ParticleSet.

    Returns:
        stats: dict with particle_count, mean_speed, max_speed,
               mean_altitude, running
    """
    n = particles.n_particles
    if n == 0:
        return {'particle_count': 0, 'mean_speed': 0.0, 'max_speed': 0.0,
                'mean_altitude': 0.0, 'running': particles.is_running}

    speeds = particles.speeds()
    return {
        'particle_count': n,
        'mean_speed': float(np.mean(speeds)),
        'max_speed': float(np.max(speeds)),
        'mean_altitude': float(np.mean(particles.x[:, 1])),
        'running': particles.is_running,
    }


def field_statistics(grid) -> Dict[str, float]:
    """
    Ranges of the grid fields and the gas-law residual.

    Returns:
        stats: dict with min/max/mean temperature, min/max pressure,
               min/max density and gas_law_residual
    """
    return {
        'min_temperature': float(np.min(grid.temperature)),
        'max_temperature': float(np.max(grid.temperature)),
        'mean_temperature': float(np.mean(grid.temperature)),
        'min_pressure': float(np.min(grid.pressure)),
        'max_pressure': float(np.max(grid.pressure)),
        'min_density': float(np.min(grid.density)),
        'max_density': float(np.max(grid.density)),
        'gas_law_residual': grid.gas_law_residual(),
    }


class DiagnosticTracker:
    """
    Tracks simulation diagnostics over time.

    Usage:
        tracker = DiagnosticTracker(n_steps=1000, output_interval=10)
        sim.run(1000, dt=0.016, tracker=tracker)
        tracker.save_csv('diagnostics.csv')
        tracker.plot()
    """

    def __init__(self, n_steps: int, output_interval: int):
        """
        Initialize diagnostic tracker.

        Args:
            n_steps: Total number of simulation steps
            output_interval: Record diagnostics every N steps
        """
        if output_interval < 1:
            raise ValueError(f"output_interval must be at least 1, got {output_interval}")

        self.output_interval = output_interval
        self.n_outputs = n_steps // output_interval + 1
        self.output_idx = 0

        self.time = np.zeros(self.n_outputs)
        self.step = np.zeros(self.n_outputs, dtype=np.int32)
        self.hot_temperature = np.zeros(self.n_outputs)
        self.cold_temperature = np.zeros(self.n_outputs)
        self.max_wind_speed = np.zeros(self.n_outputs)
        self.min_temperature = np.zeros(self.n_outputs)
        self.max_temperature = np.zeros(self.n_outputs)
        self.mean_particle_speed = np.zeros(self.n_outputs)
        self.mean_altitude = np.zeros(self.n_outputs)
        self.total_recycled = np.zeros(self.n_outputs, dtype=np.int64)
        self.gas_law_residual = np.zeros(self.n_outputs)

    def should_record(self, step: int) -> bool:
        return step % self.output_interval == 0

    def record(self, step: int, time: float, simulation, total_recycled: int = 0):
        """
        Record diagnostics at the current step.

        Args:
            step: Current simulation step
            time: Current simulation time [s]
            simulation: ThermalCirculation (or any object with grid,
                        sampler and particles attributes)
            total_recycled: Particles recycled since the run started
        """
        if self.output_idx >= self.n_outputs:
            return

        idx = self.output_idx

        info = info_panel(simulation.sampler)
        fields = field_statistics(simulation.grid)
        parts = particle_statistics(simulation.particles)

        self.time[idx] = time
        self.step[idx] = step
        self.hot_temperature[idx] = info['hot_temperature']
        self.cold_temperature[idx] = info['cold_temperature']
        self.max_wind_speed[idx] = info['max_wind_speed']
        self.min_temperature[idx] = fields['min_temperature']
        self.max_temperature[idx] = fields['max_temperature']
        self.gas_law_residual[idx] = fields['gas_law_residual']
        self.mean_particle_speed[idx] = parts['mean_speed']
        self.mean_altitude[idx] = parts['mean_altitude']
        self.total_recycled[idx] = total_recycled

        self.output_idx += 1

    def save_csv(self, filename: str):
        """
        Save diagnostic data to CSV file.

        Args:
            filename: Output CSV filename
        """
        with open(filename, 'w', newline='') as f:
            writer = csv.writer(f)

            writer.writerow([
                'step', 'time_s', 'hot_temperature_C', 'cold_temperature_C',
                'max_wind_speed', 'min_temperature_C', 'max_temperature_C',
                'mean_particle_speed_m/s', 'mean_altitude_m', 'total_recycled',
                'gas_law_residual'
            ])

            for i in range(self.output_idx):
                writer.writerow([
                    self.step[i],
                    self.time[i],
                    self.hot_temperature[i],
                    self.cold_temperature[i],
                    self.max_wind_speed[i],
                    self.min_temperature[i],
                    self.max_temperature[i],
                    self.mean_particle_speed[i],
                    self.mean_altitude[i],
                    self.total_recycled[i],
                    self.gas_law_residual[i],
                ])

        logger.info("Diagnostics saved to %s", filename)

    def plot(self, show=True, save_filename: Optional[str] = None):
        """
        Create diagnostic plots.

        Args:
            show: Display plots interactively
            save_filename: Save figure to file (optional)

        Returns:
            fig: matplotlib Figure
        """
        import matplotlib.pyplot as plt

        n = self.output_idx
        t = self.time[:n]

        fig, axes = plt.subplots(2, 2, figsize=(12, 9))

        ax = axes[0, 0]
        ax.plot(t, self.hot_temperature[:n], 'r-', linewidth=2, label='Above heat source')
        ax.plot(t, self.cold_temperature[:n], 'b-', linewidth=2, label='Above cold source')
        ax.set_xlabel('Time (s)', fontsize=12)
        ax.set_ylabel('Temperature (°C)', fontsize=12)
        ax.set_title('Source Temperatures', fontsize=14, fontweight='bold')
        ax.legend(fontsize=10)
        ax.grid(True, alpha=0.3)

        ax = axes[0, 1]
        ax.fill_between(t, self.min_temperature[:n], self.max_temperature[:n],
                        color='orange', alpha=0.4)
        ax.set_xlabel('Time (s)', fontsize=12)
        ax.set_ylabel('Temperature (°C)', fontsize=12)
        ax.set_title('Field Temperature Range', fontsize=14, fontweight='bold')
        ax.grid(True, alpha=0.3)

        ax = axes[1, 0]
        ax.plot(t, self.max_wind_speed[:n] * WIND_DISPLAY_SCALE, 'g-', linewidth=2,
                label='Peak wind (1000 m)')
        ax.plot(t, self.mean_particle_speed[:n], 'k--', linewidth=2,
                label='Mean particle speed')
        ax.set_xlabel('Time (s)', fontsize=12)
        ax.set_ylabel('Speed (m/s)', fontsize=12)
        ax.set_title('Wind and Particle Speed', fontsize=14, fontweight='bold')
        ax.legend(fontsize=10)
        ax.grid(True, alpha=0.3)

        ax = axes[1, 1]
        ax.plot(t, self.mean_altitude[:n], 'm-', linewidth=2)
        ax.set_xlabel('Time (s)', fontsize=12)
        ax.set_ylabel('Altitude (m)', fontsize=12)
        ax.set_title('Mean Particle Altitude', fontsize=14, fontweight='bold')
        ax.grid(True, alpha=0.3)

        plt.tight_layout()

        if save_filename:
            plt.savefig(save_filename, dpi=150, bbox_inches='tight')
            logger.info("Plot saved to %s", save_filename)

        if show:
            plt.show()

        return fig

    def summary(self):
        """
        Print summary statistics.
        """
        print("\n" + "="*70)
        print("DIAGNOSTIC SUMMARY")
        print("="*70)

        idx = self.output_idx - 1 if self.output_idx > 0 else 0

        print(f"\nFinal State (t = {self.time[idx]:.2f} s):")
        print(f"  Above heat source:  {self.hot_temperature[idx]:.2f} °C")
        print(f"  Above cold source:  {self.cold_temperature[idx]:.2f} °C")
        print(f"  Field range:        [{self.min_temperature[idx]:.2f}, "
              f"{self.max_temperature[idx]:.2f}] °C")
        print(f"  Peak wind:          {self.max_wind_speed[idx] * WIND_DISPLAY_SCALE:.1f} m/s")
        print(f"  Mean particle speed: {self.mean_particle_speed[idx]:.2f} m/s")
        print(f"  Gas-law residual:   {self.gas_law_residual[idx]:.2e}")

        print(f"\nTotals:")
        print(f"  Particles recycled: {int(self.total_recycled[idx]):,}")

        print("="*70 + "\n")
