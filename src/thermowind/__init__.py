"""
ThermoWind: Thermal Circulation Field and Particle Simulation

Real-time approximation of a thermally driven atmospheric circulation:
a 3D temperature/pressure/density grid heated and cooled by two fixed
sources, and tracer particles advected through the derived wind field.

Version: 0.1.0
"""

__version__ = "0.1.0"

from .config import SimulationConfig
from .grid import FieldGrid, HeatSource
from .field_solver import FieldUpdater
from .sampler import FieldSampler
from .particles import ParticleSet
from .mover import Advector
from .simulation import ThermalCirculation
from .diagnostics import DiagnosticTracker

__all__ = [
    "SimulationConfig",
    "FieldGrid",
    "HeatSource",
    "FieldUpdater",
    "FieldSampler",
    "ParticleSet",
    "Advector",
    "ThermalCirculation",
    "DiagnosticTracker",
]
