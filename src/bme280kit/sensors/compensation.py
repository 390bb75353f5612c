"""
Integer compensation of raw BME280 ADC values.

This is the fixed-point algorithm from the Bosch datasheet (section 4.2.3,
32-bit variant). Temperature is always compensated first because its
``t_fine`` by-product feeds both the pressure and the humidity formulas.
Python integers do not overflow and ``>>`` is an arithmetic shift, so the
signed steps match the reference C code; the one unsigned step in the
pressure formula is masked to 32 bits explicitly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from ..analysis.rounding import HUNDREDTHS, round_to
from .bus import RegisterBus
from .calibration import CalibrationSet

logger = logging.getLogger(__name__)

REG_DATA_START = 0xF7  # press_msb .. hum_lsb, 8 bytes
DATA_LENGTH = 8

HUMIDITY_MAX_Q22 = 419430400  # 100 %RH in Q22.10 << 12
_HUMIDITY_SCALE = 4194304.0  # 2 ** 22


@dataclass(frozen=True)
class RawSample:
    """Uncompensated ADC output: 20-bit T and P, 16-bit H."""

    adc_T: int
    adc_P: int
    adc_H: int

    @classmethod
    def from_bytes(cls, data) -> "RawSample":
        """Assemble a sample from the 8-byte burst starting at 0xF7."""
        if len(data) < DATA_LENGTH:
            raise ValueError(f"Expected {DATA_LENGTH} data bytes, got {len(data)}")
        adc_P = (data[0] << 12) | (data[1] << 4) | (data[2] >> 4)
        adc_T = (data[3] << 12) | (data[4] << 4) | (data[5] >> 4)
        adc_H = (data[6] << 8) | data[7]
        return cls(adc_T=adc_T, adc_P=adc_P, adc_H=adc_H)


@dataclass(frozen=True)
class CompensatedReading:
    """
    One compensated sample.

    temperature : °C, two decimals
    pressure    : Pa, two decimals (whole Pa from the integer formula)
    humidity    : %RH in [0, 100], two decimals
    """

    temperature: float
    pressure: float
    humidity: float
    timestamp_ns: Optional[int] = None


def read_raw_sample(bus: RegisterBus) -> RawSample:
    """Burst-read the data registers so T, P and H belong to one conversion."""
    return RawSample.from_bytes(bus.read_block(REG_DATA_START, DATA_LENGTH))


def compensate_temperature(adc_T: int, cal: CalibrationSet) -> Tuple[int, int]:
    """Return ``(temperature in 0.01 °C, t_fine)``."""
    var1 = (((adc_T >> 3) - (cal.dig_T1 << 1)) * cal.dig_T2) >> 11
    var2 = (((((adc_T >> 4) - cal.dig_T1) * ((adc_T >> 4) - cal.dig_T1)) >> 12) * cal.dig_T3) >> 14
    t_fine = var1 + var2
    return (t_fine * 5 + 128) >> 8, t_fine


def compensate_pressure(adc_P: int, t_fine: int, cal: CalibrationSet) -> Optional[int]:
    """
    Return pressure in whole Pa, or ``None`` when the divisor is zero.

    A zero divisor only happens with a corrupt calibration block; the caller
    keeps the previous pressure in that case.
    """
    var1 = (t_fine >> 1) - 64000
    var2 = (((var1 >> 2) * (var1 >> 2)) >> 11) * cal.dig_P6
    var2 = var2 + ((var1 * cal.dig_P5) << 1)
    var2 = (var2 >> 2) + (cal.dig_P4 << 16)
    var1 = (((cal.dig_P3 * (((var1 >> 2) * (var1 >> 2)) >> 13)) >> 3) + ((cal.dig_P2 * var1) >> 1)) >> 18
    var1 = ((32768 + var1) * cal.dig_P1) >> 15
    if var1 == 0:
        return None

    # Unsigned 32-bit in the reference implementation.
    p = (((1048576 - adc_P) - (var2 >> 12)) * 3125) & 0xFFFFFFFF
    divisor = var1 & 0xFFFFFFFF
    if p < 0x80000000:
        p = ((p << 1) & 0xFFFFFFFF) // divisor
    else:
        p = (p // divisor) * 2
    var1 = (cal.dig_P9 * (((p >> 3) * (p >> 3)) >> 13)) >> 12
    var2 = ((p >> 2) * cal.dig_P8) >> 13
    return (p + ((var1 + var2 + cal.dig_P7) >> 4)) & 0xFFFFFFFF


def compensate_humidity(adc_H: int, t_fine: int, cal: CalibrationSet) -> int:
    """Return humidity as the clamped Q22 intermediate (0 .. 419430400)."""
    v = t_fine - 76800
    v = (
        (((adc_H << 14) - (cal.dig_H4 << 20) - (cal.dig_H5 * v)) + 16384) >> 15
    ) * (
        (
            (
                (
                    (((v * cal.dig_H6) >> 10) * (((v * cal.dig_H3) >> 11) + 32768)) >> 10
                )
                + 2097152
            )
            * cal.dig_H2
            + 8192
        )
        >> 14
    )
    v = v - (((((v >> 15) * (v >> 15)) >> 7) * cal.dig_H1) >> 4)
    if v < 0:
        v = 0
    if v > HUMIDITY_MAX_Q22:
        v = HUMIDITY_MAX_Q22
    return v


def compensate(
    raw: RawSample,
    cal: CalibrationSet,
    previous: Optional[CompensatedReading] = None,
) -> CompensatedReading:
    """
    Convert ``raw`` into a :class:`CompensatedReading`.

    Pure and deterministic. If the pressure divisor is zero the pressure of
    ``previous`` is carried over (0.0 when there is none) and no error is
    raised.
    """
    t_centi, t_fine = compensate_temperature(raw.adc_T, cal)
    temperature = round_to(t_centi / 100.0, HUNDREDTHS)

    p_pa = compensate_pressure(raw.adc_P, t_fine, cal)
    if p_pa is None:
        pressure = previous.pressure if previous is not None else 0.0
        logger.debug("Pressure divisor is zero; keeping previous value %.2f Pa", pressure)
    else:
        pressure = round_to(float(p_pa), HUNDREDTHS)

    h_q22 = compensate_humidity(raw.adc_H, t_fine, cal)
    humidity = round_to(h_q22 / _HUMIDITY_SCALE, HUNDREDTHS)

    return CompensatedReading(temperature=temperature, pressure=pressure, humidity=humidity)
