from __future__ import annotations

import math

import pytest

from bme280kit.analysis.derived import (
    barometric_elevation,
    dew_point,
    saturation_vapor_amount,
    saturation_vapor_pressure,
    vapor_amount,
    vapor_pressure,
)
from bme280kit.analysis.rounding import HUNDREDTHS, Precision, round_to
from bme280kit.config.units import AltitudeUnit, PressureUnit


def test_saturation_vapor_pressure_tetens() -> None:
    assert saturation_vapor_pressure(20.0, HUNDREDTHS) == 23.38
    assert saturation_vapor_pressure(20.0, Precision.ONE_DECIMAL) == 23.4
    assert saturation_vapor_pressure(20.0, Precision.INTEGER) == 23.0
    assert saturation_vapor_pressure(0.0, HUNDREDTHS) == 6.11


def test_saturation_vapor_amount() -> None:
    assert saturation_vapor_amount(20.0, Precision.ONE_DECIMAL) == 17.3


def test_actual_vapor_pressure_and_amount() -> None:
    assert vapor_pressure(25.08, 38.27, Precision.ONE_DECIMAL) == 12.2
    assert vapor_amount(25.08, 38.27, Precision.ONE_DECIMAL) == 8.9
    # Saturated air holds the saturation amount.
    assert vapor_pressure(20.0, 100.0, Precision.ONE_DECIMAL) == saturation_vapor_pressure(20.0)


def test_dew_point_magnus() -> None:
    assert dew_point(20.0, 50.0, Precision.ONE_DECIMAL) == 9.3
    assert dew_point(25.08, 38.27, Precision.ONE_DECIMAL) == 9.9


@pytest.mark.parametrize("temp_c", [-17.33, -3.37, 0.42, 12.61, 25.08, 38.77])
@pytest.mark.parametrize("rh", [1.0, 12.5, 50.0, 87.3, 100.0])
def test_dew_point_never_exceeds_air_temperature(temp_c: float, rh: float) -> None:
    for precision in (Precision.INTEGER, Precision.ONE_DECIMAL):
        assert dew_point(temp_c, rh, precision) <= round_to(temp_c, precision)


def test_dew_point_undefined_for_zero_humidity() -> None:
    with pytest.raises(ValueError):
        dew_point(20.0, 0.0)


def test_elevation_is_zero_at_reference_pressure() -> None:
    assert barometric_elevation(100656.0, 25.08, 1006.56, PressureUnit.HPA) == 0.0
    assert barometric_elevation(100656.0, 25.08, 100656.0, PressureUnit.PA) == 0.0


def test_elevation_against_standard_sea_level() -> None:
    assert barometric_elevation(100656.0, 25.08, 1013.25) == 57.9
    assert barometric_elevation(100656.0, 25.08, 101325.0, PressureUnit.PA) == 57.9
    assert barometric_elevation(100656.0, 25.08, 1013.25, precision=Precision.INTEGER) == 58.0


def test_elevation_in_feet_matches_meters() -> None:
    meters = barometric_elevation(100656.0, 25.08, 1013.25, altitude_unit=AltitudeUnit.METERS)
    feet = barometric_elevation(100656.0, 25.08, 1013.25, altitude_unit=AltitudeUnit.FEET)
    assert feet == 189.8
    assert meters * 3.2808 == pytest.approx(feet, abs=0.5)


def test_elevation_is_negative_below_reference() -> None:
    assert barometric_elevation(101325.0, 15.0, 1000.0) < 0


def test_elevation_without_pressure_is_infinite() -> None:
    assert math.isinf(barometric_elevation(0.0, 25.08, 1013.25))
