"""Derived meteorological quantities and the shared rounding policy.

Everything here is pure arithmetic on already-compensated values, free of bus
I/O, so the helpers can be used on logged data as well as live readings.
"""

from .rounding import HUNDREDTHS, Precision, round_to
from .derived import (
    barometric_elevation,
    dew_point,
    saturation_vapor_amount,
    saturation_vapor_pressure,
    vapor_amount,
    vapor_pressure,
)

__all__ = [
    "HUNDREDTHS",
    "Precision",
    "round_to",
    "barometric_elevation",
    "dew_point",
    "saturation_vapor_amount",
    "saturation_vapor_pressure",
    "vapor_amount",
    "vapor_pressure",
]
