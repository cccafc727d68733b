"""
Physical Constants and Model Coefficients

Units: temperature in °C, pressure in Pa, density in kg/m^3, lengths in
world units (metres). Coefficients below are the fixed knobs of the
thermal-circulation model; they are not meant to be tuned at runtime.
"""

import numpy as np
from numba import njit

# ==================== ATMOSPHERE ====================

R_DRY_AIR = 287.05  # Specific gas constant of dry air [J/(kg·K)]
KELVIN_OFFSET = 273.15  # °C -> K
P_STANDARD = 101325.0  # Sea-level standard pressure [Pa]
T_STANDARD_K = 288.15  # Sea-level standard temperature [K]
LAPSE_RATE = 0.0065  # Temperature decrease with altitude [K/m]
BAROMETRIC_EXPONENT = 5.255  # Exponent of the barometric formula

# ==================== HEAT / COLD SOURCES ====================

SOURCE_RADIUS = 800.0  # Planar influence radius of a source [m]
SOURCE_RATE = 0.1  # Temperature change per tick at full intensity [°C]
LAPSE_CORRECTION = 0.01  # Fraction of the lapse rate removed each tick
PRESSURE_SENSITIVITY = 0.1  # Pressure response to relative warming
INTENSITY_MIN = 0.0
INTENSITY_MAX = 100.0

# ==================== WIND FIELD ====================

WIND_PROBE_OFFSET = 50.0  # Finite-difference offset for pressure gradient [m]
BUOYANCY_PROBE_DEPTH = 100.0  # Vertical offset of the buoyancy proxy [m]
WIND_BUOYANCY_COEFF = 0.01  # Vertical wind per °C of local difference

# ==================== PARTICLES ====================

PARTICLE_BUOYANCY_COEFF = 0.001  # Vertical acceleration per °C of excess
DRAG_FACTOR = 0.98  # Velocity retained per advect call (not dt-scaled)
MAX_PARTICLE_SPEED = 20.0  # [m/s]
SPEED_MIN = 0.1
SPEED_MAX = 3.0
PARTICLE_COUNT_MIN = 100
PARTICLE_COUNT_MAX = 2000


# ==================== HELPER FUNCTIONS ====================

@njit
def barometric_pressure(height):
    """
    Standard-atmosphere pressure at altitude.

    Args:
        height: Altitude [m], scalar or array

    Returns:
        pressure: P = 101325 * (1 - 0.0065*h/288.15)^5.255 [Pa]
    """
    return P_STANDARD * (1.0 - LAPSE_RATE * height / T_STANDARD_K) ** BAROMETRIC_EXPONENT


@njit
def ideal_gas_density(pressure, temperature):
    """
    Dry-air density from the ideal gas law.

    Args:
        pressure: Pressure [Pa]
        temperature: Temperature [°C]

    Returns:
        density: rho = P / (R * (T + 273.15)) [kg/m^3]
    """
    return pressure / (R_DRY_AIR * (temperature + KELVIN_OFFSET))


def clamp(value, lower, upper):
    """Clamp a scalar into [lower, upper]."""
    return max(lower, min(upper, value))


if __name__ == "__main__":
    print("=" * 60)
    print("ThermoWind Model Constants")
    print("=" * 60)

    print("\nAtmosphere:")
    print(f"  R (dry air):        {R_DRY_AIR} J/(kg·K)")
    print(f"  Standard pressure:  {P_STANDARD:.0f} Pa")
    print(f"  Lapse rate:         {LAPSE_RATE*1000:.1f} K/km")

    print("\nBaseline profile:")
    for h in np.linspace(0.0, 2000.0, 5):
        p = barometric_pressure(h)
        t = 20.0 - h * LAPSE_RATE
        print(f"  h = {h:6.0f} m: T = {t:6.2f} °C, P = {p:9.1f} Pa, "
              f"rho = {ideal_gas_density(p, t):.4f} kg/m^3")
    print("=" * 60)
