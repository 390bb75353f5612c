"""
Factory calibration constants of the BME280.

The 18 trimming coefficients live in two non-volatile blocks:

  - 0x88..0x9F : dig_T1..dig_T3, dig_P1..dig_P9 (little-endian words)
  - 0xA1       : dig_H1
  - 0xE1..0xE7 : dig_H2..dig_H6 (dig_H4/dig_H5 share register 0xE5)

They are read once when the driver starts and never change afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Dict, Tuple

from ..errors import BusError, CalibrationError
from .bus import RegisterBus

logger = logging.getLogger(__name__)

REG_DIG_T1 = 0x88
REG_DIG_H1 = 0xA1
REG_DIG_H2 = 0xE1
REG_DIG_H3 = 0xE3
REG_DIG_H4_MSB = 0xE4
REG_DIG_H45_SHARED = 0xE5
REG_DIG_H5_MSB = 0xE6
REG_DIG_H6 = 0xE7

# (field, register, decoder) for the temperature/pressure block.
_TP_LAYOUT: Tuple[Tuple[str, int, str], ...] = (
    ("dig_T1", 0x88, "u16"),
    ("dig_T2", 0x8A, "s16"),
    ("dig_T3", 0x8C, "s16"),
    ("dig_P1", 0x8E, "u16"),
    ("dig_P2", 0x90, "s16"),
    ("dig_P3", 0x92, "s16"),
    ("dig_P4", 0x94, "s16"),
    ("dig_P5", 0x96, "s16"),
    ("dig_P6", 0x98, "s16"),
    ("dig_P7", 0x9A, "s16"),
    ("dig_P8", 0x9C, "s16"),
    ("dig_P9", 0x9E, "s16"),
)


@dataclass(frozen=True)
class CalibrationSet:
    dig_T1: int
    dig_T2: int
    dig_T3: int
    dig_P1: int
    dig_P2: int
    dig_P3: int
    dig_P4: int
    dig_P5: int
    dig_P6: int
    dig_P7: int
    dig_P8: int
    dig_P9: int
    dig_H1: int
    dig_H2: int
    dig_H3: int
    dig_H4: int
    dig_H5: int
    dig_H6: int

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def unpack_h4_h5(e4: int, e5: int, e6: int) -> Tuple[int, int]:
    """
    Split the nibble-interleaved humidity registers into ``(dig_H4, dig_H5)``.

    Bit layout (datasheet table 16)::

        0xE4  [7:0]  -> dig_H4[11:4]
        0xE5  [3:0]  -> dig_H4[3:0]
        0xE5  [7:4]  -> dig_H5[3:0]
        0xE6  [7:0]  -> dig_H5[11:4]

    0xE4 and 0xE6 carry the sign, so both results are signed 12-bit values.
    """
    e4 &= 0xFF
    e5 &= 0xFF
    e6 &= 0xFF
    msb4 = e4 - 0x100 if e4 & 0x80 else e4
    msb5 = e6 - 0x100 if e6 & 0x80 else e6
    dig_h4 = (msb4 * 16) | (e5 & 0x0F)
    dig_h5 = (msb5 * 16) | (e5 >> 4)
    return dig_h4, dig_h5


def load_calibration(bus: RegisterBus) -> CalibrationSet:
    """
    Read all 18 coefficients from ``bus``.

    Any failed transfer raises :class:`CalibrationError` (a :class:`BusError`);
    there is no retry and no partially populated result.
    """
    decoders = {"u16": bus.read_u16le, "s16": bus.read_s16le}
    values: Dict[str, int] = {}
    try:
        for name, reg, kind in _TP_LAYOUT:
            values[name] = decoders[kind](reg)

        values["dig_H1"] = bus.read_u8(REG_DIG_H1)
        values["dig_H2"] = bus.read_s16le(REG_DIG_H2)
        values["dig_H3"] = bus.read_u8(REG_DIG_H3)
        e4 = bus.read_u8(REG_DIG_H4_MSB)
        e5 = bus.read_u8(REG_DIG_H45_SHARED)
        e6 = bus.read_u8(REG_DIG_H5_MSB)
        values["dig_H4"], values["dig_H5"] = unpack_h4_h5(e4, e5, e6)
        values["dig_H6"] = bus.read_s8(REG_DIG_H6)
    except BusError as exc:
        raise CalibrationError(
            f"Failed to read calibration data: {exc}",
            register=exc.register,
            address=exc.address,
        ) from exc

    cal = CalibrationSet(**values)
    logger.debug("Loaded BME280 calibration: %s", cal.as_dict())
    return cal


def calibration_registers(cal: CalibrationSet) -> Dict[int, int]:
    """
    Encode ``cal`` back into its register image.

    Used to preload :class:`~bme280kit.sensors.bus.MemoryRegisterBus` so that
    an in-memory device reports a known calibration.
    """
    regs: Dict[int, int] = {}

    def _word(reg: int, value: int) -> None:
        value &= 0xFFFF
        regs[reg] = value & 0xFF
        regs[reg + 1] = (value >> 8) & 0xFF

    for name, reg, _kind in _TP_LAYOUT:
        _word(reg, getattr(cal, name))

    regs[REG_DIG_H1] = cal.dig_H1 & 0xFF
    _word(REG_DIG_H2, cal.dig_H2)
    regs[REG_DIG_H3] = cal.dig_H3 & 0xFF
    regs[REG_DIG_H4_MSB] = (cal.dig_H4 >> 4) & 0xFF
    regs[REG_DIG_H45_SHARED] = ((cal.dig_H5 & 0x0F) << 4) | (cal.dig_H4 & 0x0F)
    regs[REG_DIG_H5_MSB] = (cal.dig_H5 >> 4) & 0xFF
    regs[REG_DIG_H6] = cal.dig_H6 & 0xFF
    return regs


# Reference coefficients from the datasheet worked example (humidity values
# from a production part), used by the fake device and the test-suite.
DATASHEET_CALIBRATION = CalibrationSet(
    dig_T1=27504,
    dig_T2=26435,
    dig_T3=-1000,
    dig_P1=36477,
    dig_P2=-10685,
    dig_P3=3024,
    dig_P4=2855,
    dig_P5=140,
    dig_P6=-7,
    dig_P7=15500,
    dig_P8=-14600,
    dig_P9=6000,
    dig_H1=75,
    dig_H2=362,
    dig_H3=0,
    dig_H4=313,
    dig_H5=50,
    dig_H6=30,
)
