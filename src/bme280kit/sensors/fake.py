"""In-memory BME280 image for tests and ``--fake`` runs without hardware."""

from __future__ import annotations

from typing import Dict, Optional

from .bme280 import EXPECTED_CHIP_ID, REG_CHIP_ID
from .bus import MemoryRegisterBus
from .calibration import DATASHEET_CALIBRATION, CalibrationSet, calibration_registers
from .compensation import REG_DATA_START, RawSample

# Raw ADC values from the datasheet worked example (25.08 °C, 1006.56 hPa).
DATASHEET_RAW = RawSample(adc_T=519888, adc_P=415148, adc_H=27000)


def raw_registers(raw: RawSample) -> Dict[int, int]:
    """Register image of the 0xF7..0xFE data block holding ``raw``."""
    data = [
        (raw.adc_P >> 12) & 0xFF,
        (raw.adc_P >> 4) & 0xFF,
        (raw.adc_P & 0x0F) << 4,
        (raw.adc_T >> 12) & 0xFF,
        (raw.adc_T >> 4) & 0xFF,
        (raw.adc_T & 0x0F) << 4,
        (raw.adc_H >> 8) & 0xFF,
        raw.adc_H & 0xFF,
    ]
    return {REG_DATA_START + i: value for i, value in enumerate(data)}


def set_raw(bus: MemoryRegisterBus, raw: RawSample) -> None:
    """Make the next burst read of ``bus`` return ``raw``."""
    bus.load(raw_registers(raw))


def fake_bus(
    calibration: CalibrationSet = DATASHEET_CALIBRATION,
    raw: Optional[RawSample] = DATASHEET_RAW,
    *,
    address: int = 0x76,
) -> MemoryRegisterBus:
    bus = MemoryRegisterBus(calibration_registers(calibration), address=address)
    bus.load({REG_CHIP_ID: EXPECTED_CHIP_ID})
    if raw is not None:
        set_raw(bus, raw)
    return bus
