"""BME280 register access, calibration and compensation.

:mod:`bus` wraps the two-wire register primitives, :mod:`calibration` reads
the factory trimming constants, :mod:`compensation` turns raw ADC values into
°C / Pa / %RH, and :mod:`bme280` ties them together into the :class:`Bme280`
driver.
"""

from .bme280 import Bme280, PowerState, scan_addresses
from .bus import MemoryRegisterBus, RegisterBus, SMBusRegisterBus
from .calibration import CalibrationSet, load_calibration, unpack_h4_h5
from .compensation import CompensatedReading, RawSample, compensate

__all__ = [
    "Bme280",
    "PowerState",
    "scan_addresses",
    "MemoryRegisterBus",
    "RegisterBus",
    "SMBusRegisterBus",
    "CalibrationSet",
    "load_calibration",
    "unpack_h4_h5",
    "CompensatedReading",
    "RawSample",
    "compensate",
]
