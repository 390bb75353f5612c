"""
Secondary quantities computed from temperature, humidity and pressure.

Saturation vapor pressure uses the Tetens approximation (hPa)::

    6.1078 * 10 ** ((7.5 * T) / (237.3 + T))

The dew point uses the improved Magnus formula (Sonntag coefficients
17.62 / 243.12 °C) and the elevation difference the international barometric
formula with the tropospheric lapse rate of 0.0065 K/m.
"""

from __future__ import annotations

import math

from ..config.units import AltitudeUnit, PressureUnit
from .rounding import HUNDREDTHS, Precision, round_to

TETENS_A = 6.1078  # hPa
TETENS_B = 7.5
TETENS_C = 237.3  # °C

MAGNUS_B = 17.62
MAGNUS_C = 243.12  # °C

# g/m³ per hPa/K: 100 / R_v with R_v = 461.5 J/(kg·K), times 1000 g/kg.
VAPOR_DENSITY_FACTOR = 217.0
KELVIN_OFFSET = 273.15

LAPSE_RATE = 0.0065  # K/m
BAROMETRIC_EXPONENT = 5.257


def _svp_canonical(temp_c: float) -> float:
    svp = TETENS_A * math.pow(10.0, (TETENS_B * temp_c) / (TETENS_C + temp_c))
    return round_to(svp, HUNDREDTHS)


def saturation_vapor_pressure(temp_c: float, precision: int = Precision.ONE_DECIMAL) -> float:
    """Saturation vapor pressure over water in hPa."""
    return round_to(_svp_canonical(temp_c), precision)


def saturation_vapor_amount(temp_c: float, precision: int = Precision.ONE_DECIMAL) -> float:
    """Saturation vapor density in g/m³."""
    sva = VAPOR_DENSITY_FACTOR * _svp_canonical(temp_c) / (temp_c + KELVIN_OFFSET)
    return round_to(sva, precision)


def vapor_pressure(temp_c: float, rh: float, precision: int = Precision.ONE_DECIMAL) -> float:
    """Actual water vapor pressure in hPa for relative humidity ``rh`` (%)."""
    return round_to(_svp_canonical(temp_c) * rh / 100.0, precision)


def vapor_amount(temp_c: float, rh: float, precision: int = Precision.ONE_DECIMAL) -> float:
    """Actual water vapor density (absolute humidity) in g/m³."""
    e = _svp_canonical(temp_c) * rh / 100.0
    return round_to(VAPOR_DENSITY_FACTOR * e / (temp_c + KELVIN_OFFSET), precision)


def dew_point(temp_c: float, rh: float, precision: int = Precision.ONE_DECIMAL) -> float:
    """
    Dew point in °C.

    ``rh`` must be greater than zero; ``math.log`` raises ``ValueError``
    otherwise and the result is undefined.
    """
    alpha = math.log(rh / 100.0) + (MAGNUS_B * temp_c) / (MAGNUS_C + temp_c)
    return round_to(MAGNUS_C * alpha / (MAGNUS_B - alpha), precision)


def barometric_elevation(
    pressure_pa: float,
    temperature_c: float,
    reference_pressure: float,
    reference_unit: PressureUnit = PressureUnit.HPA,
    altitude_unit: AltitudeUnit = AltitudeUnit.METERS,
    precision: int = Precision.ONE_DECIMAL,
) -> float:
    """
    Height of the measuring point above the reference pressure level.

    ``reference_pressure`` is given in ``reference_unit`` and normalized to Pa;
    ``pressure_pa`` and ``temperature_c`` describe the current location.
    Positive results mean the current location is higher than the reference.
    A non-positive ``pressure_pa`` has no finite height and yields ``inf``.
    """
    if pressure_pa <= 0:
        return math.inf
    p0_pa = float(reference_pressure) * int(reference_unit)
    temp_k = temperature_c + KELVIN_OFFSET
    meters = (math.pow(p0_pa / pressure_pa, 1.0 / BAROMETRIC_EXPONENT) - 1.0) * temp_k / LAPSE_RATE
    return round_to(meters * altitude_unit.factor, precision)
