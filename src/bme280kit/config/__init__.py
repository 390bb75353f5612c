"""Configuration objects and unit selectors for bme280kit.

:mod:`units` defines the enumerations accepted by the public accessors
(pressure, temperature and altitude units, bus address, precision);
:mod:`runtime` loads the optional ``bme280.yaml`` into a typed
:class:`Bme280Config`.
"""

from .runtime import Bme280Config, config_from_mapping, load_config
from .units import (
    AltitudeUnit,
    HumidityQuantity,
    I2CAddress,
    PressureUnit,
    TemperatureUnit,
    parse_enum,
)

__all__ = [
    "Bme280Config",
    "config_from_mapping",
    "load_config",
    "AltitudeUnit",
    "HumidityQuantity",
    "I2CAddress",
    "PressureUnit",
    "TemperatureUnit",
    "parse_enum",
]
