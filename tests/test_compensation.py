from __future__ import annotations

from dataclasses import replace

import pytest

from bme280kit.sensors.calibration import DATASHEET_CALIBRATION
from bme280kit.sensors.compensation import (
    HUMIDITY_MAX_Q22,
    CompensatedReading,
    RawSample,
    compensate,
    compensate_humidity,
    compensate_pressure,
    compensate_temperature,
    read_raw_sample,
)
from bme280kit.sensors.fake import DATASHEET_RAW, fake_bus

CAL = DATASHEET_CALIBRATION
T_FINE = 128422


def test_temperature_matches_datasheet_worked_example() -> None:
    centi, t_fine = compensate_temperature(519888, CAL)
    assert t_fine == T_FINE
    assert centi == 2508


def test_pressure_uses_integer_reference_algorithm() -> None:
    assert compensate_pressure(415148, T_FINE, CAL) == 100656


def test_humidity_intermediate_for_typical_raw_value() -> None:
    assert compensate_humidity(27000, T_FINE, CAL) == 160525758


@pytest.mark.parametrize("adc_h, expected", [(0x0000, 0.0), (0xFFFF, 100.0)])
def test_humidity_is_clamped_for_extreme_raw_values(adc_h: int, expected: float) -> None:
    reading = compensate(replace(DATASHEET_RAW, adc_H=adc_h), CAL)
    assert reading.humidity == expected
    assert 0 <= compensate_humidity(adc_h, T_FINE, CAL) <= HUMIDITY_MAX_Q22


def test_compensate_produces_two_decimal_values() -> None:
    reading = compensate(DATASHEET_RAW, CAL)
    assert reading == CompensatedReading(temperature=25.08, pressure=100656.0, humidity=38.27)


def test_compensate_is_deterministic() -> None:
    first = compensate(DATASHEET_RAW, CAL)
    for _ in range(5):
        assert compensate(DATASHEET_RAW, CAL) == first


def test_zero_divisor_keeps_previous_pressure() -> None:
    broken = replace(CAL, dig_P1=0)
    assert compensate_pressure(415148, T_FINE, broken) is None

    previous = CompensatedReading(temperature=20.0, pressure=98765.0, humidity=40.0)
    reading = compensate(DATASHEET_RAW, broken, previous=previous)
    assert reading.pressure == 98765.0
    # Temperature and humidity are still refreshed.
    assert reading.temperature == 25.08
    assert reading.humidity == 38.27


def test_zero_divisor_without_history_reports_zero() -> None:
    reading = compensate(DATASHEET_RAW, replace(CAL, dig_P1=0))
    assert reading.pressure == 0.0


def test_raw_sample_assembles_20_and_16_bit_values() -> None:
    data = [0x65, 0x5A, 0xC0, 0x7E, 0xED, 0x00, 0x69, 0x78]
    raw = RawSample.from_bytes(data)
    assert raw.adc_P == 415148
    assert raw.adc_T == 519888
    assert raw.adc_H == 27000


def test_raw_sample_rejects_short_burst() -> None:
    with pytest.raises(ValueError):
        RawSample.from_bytes([0, 1, 2])


def test_read_raw_sample_uses_data_registers() -> None:
    assert read_raw_sample(fake_bus()) == DATASHEET_RAW
