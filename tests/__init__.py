"""
ThermoWind Test Suite

Tests organized by:
- test_config.py: Construction-time configuration
- test_grid.py: Field grid initialization and source commands
- test_field_solver.py: Two-pass field update
- test_sampler.py: Point queries, sentinels and wind vector
- test_particles.py: Particle set state and commands
- test_mover.py: Advection, drag, speed clamp and recycling
- test_diagnostics.py: Derived metrics and tracker
- test_simulation.py: Driver lifecycle and commands
- test_performance.py: Tick cost gates
"""
