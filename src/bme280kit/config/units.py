"""Unit, address and precision selectors plus their string aliases."""
from __future__ import annotations

from enum import Enum, IntEnum
from typing import Any, Dict, Type, TypeVar

from ..analysis.rounding import Precision

E = TypeVar("E", bound=Enum)


class I2CAddress(IntEnum):
    """The two addresses selectable with the SDO pin."""

    ADDR_0x76 = 0x76
    ADDR_0x77 = 0x77


class PressureUnit(IntEnum):
    """Value is the divisor applied to a pressure in Pa."""

    PA = 1
    HPA = 100


class TemperatureUnit(IntEnum):
    CELSIUS = 0
    FAHRENHEIT = 1


class AltitudeUnit(Enum):
    METERS = "m"
    FEET = "ft"

    @property
    def factor(self) -> float:
        """Multiplier converting meters into this unit."""
        return 3.2808 if self is AltitudeUnit.FEET else 1.0


class HumidityQuantity(Enum):
    """What a humidity reading is expressed as."""

    RELATIVE = "relative"
    VAPOR_PRESSURE = "vapor_pressure"
    VAPOR_AMOUNT = "vapor_amount"


_ALIASES: Dict[type, Dict[str, Enum]] = {
    PressureUnit: {
        "pa": PressureUnit.PA,
        "pascal": PressureUnit.PA,
        "hpa": PressureUnit.HPA,
        "mbar": PressureUnit.HPA,
        "hectopascal": PressureUnit.HPA,
    },
    TemperatureUnit: {
        "c": TemperatureUnit.CELSIUS,
        "celsius": TemperatureUnit.CELSIUS,
        "degc": TemperatureUnit.CELSIUS,
        "f": TemperatureUnit.FAHRENHEIT,
        "fahrenheit": TemperatureUnit.FAHRENHEIT,
        "degf": TemperatureUnit.FAHRENHEIT,
    },
    AltitudeUnit: {
        "m": AltitudeUnit.METERS,
        "meter": AltitudeUnit.METERS,
        "meters": AltitudeUnit.METERS,
        "ft": AltitudeUnit.FEET,
        "foot": AltitudeUnit.FEET,
        "feet": AltitudeUnit.FEET,
    },
    Precision: {
        "int": Precision.INTEGER,
        "integer": Precision.INTEGER,
        "1": Precision.INTEGER,
        "0.1": Precision.ONE_DECIMAL,
        "10": Precision.ONE_DECIMAL,
        "one_decimal": Precision.ONE_DECIMAL,
        "decimal": Precision.ONE_DECIMAL,
    },
    HumidityQuantity: {
        "relative": HumidityQuantity.RELATIVE,
        "rh": HumidityQuantity.RELATIVE,
        "vapor_pressure": HumidityQuantity.VAPOR_PRESSURE,
        "wvp": HumidityQuantity.VAPOR_PRESSURE,
        "vapor_amount": HumidityQuantity.VAPOR_AMOUNT,
        "wva": HumidityQuantity.VAPOR_AMOUNT,
    },
}


def parse_enum(enum_cls: Type[E], value: Any) -> E:
    """
    Resolve ``value`` (member, raw value or alias string) to ``enum_cls``.

    Strings are matched case-insensitively with hyphens treated as
    underscores. Raises ``ValueError`` for anything unrecognized.
    """
    if isinstance(value, enum_cls):
        return value
    key = str(value).strip().lower().replace("-", "_")
    aliases = _ALIASES.get(enum_cls, {})
    if key in aliases:
        return aliases[key]  # type: ignore[return-value]
    for member in enum_cls:
        if member.name.lower() == key:
            return member
    try:
        return enum_cls(int(key, 0))
    except ValueError:
        raise ValueError(f"Unknown {enum_cls.__name__}: {value!r}") from None
