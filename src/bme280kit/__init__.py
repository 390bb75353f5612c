"""Driver and derived-metric engine for the Bosch BME280 sensor."""

from .errors import Bme280Error, BusError, CalibrationError, ChipIdError
from .sensors import Bme280, CompensatedReading, MemoryRegisterBus, SMBusRegisterBus

__version__ = "0.1.0"

__all__ = [
    "Bme280",
    "CompensatedReading",
    "MemoryRegisterBus",
    "SMBusRegisterBus",
    "Bme280Error",
    "BusError",
    "CalibrationError",
    "ChipIdError",
]
