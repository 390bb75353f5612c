"""
BME280 driver: initialization, sampling, unit-aware accessors and watchers.

Every accessor takes a fresh sample (burst read + compensation) and scales
the result; nothing is cached between calls. The most recently completed
reading is still available as :attr:`Bme280.last_reading`, which is what a
caller sees if several threads sample concurrently: last writer wins.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from enum import IntEnum
from typing import Any, Callable, Dict, List, Optional

from ..analysis import derived
from ..analysis.rounding import Precision, round_to
from ..config.runtime import Bme280Config
from ..config.units import (
    AltitudeUnit,
    HumidityQuantity,
    I2CAddress,
    PressureUnit,
    TemperatureUnit,
    parse_enum,
)
from ..core import watcher as watchers
from ..errors import Bme280Error, BusError, ChipIdError
from ..tools.debug import time_block
from .bus import RegisterBus, SMBusRegisterBus
from .calibration import CalibrationSet, load_calibration
from .compensation import CompensatedReading, compensate, read_raw_sample

logger = logging.getLogger(__name__)

# ---------------------------
# BME280 register constants
# ---------------------------
REG_CHIP_ID = 0xD0
REG_CTRL_HUM = 0xF2
REG_CTRL_MEAS = 0xF4
REG_CONFIG = 0xF5

EXPECTED_CHIP_ID = 0x60

CTRL_HUM_INIT = 0x04  # osrs_h = 0b100
CTRL_MEAS_NORMAL = 0x2F  # osrs_t = 0b001, osrs_p = 0b011, mode = 0b11 (normal)
CTRL_MEAS_SLEEP = 0x00  # mode = 0b00 (sleep)
CONFIG_INIT = 0x0C  # t_sb = 0b000, filter = 0b011

# Fixed start-up sequence, written in this order.
INIT_SEQUENCE = (
    (REG_CTRL_HUM, CTRL_HUM_INIT),
    (REG_CTRL_MEAS, CTRL_MEAS_NORMAL),
    (REG_CONFIG, CONFIG_INIT),
)


class PowerState(IntEnum):
    """ctrl_meas register value selecting the operating mode."""

    NORMAL = CTRL_MEAS_NORMAL
    SLEEP = CTRL_MEAS_SLEEP


class Bme280:
    """
    Driver bound to one sensor on one :class:`RegisterBus`.

    Construction reads the calibration block and writes the start-up
    sequence; a failure there raises and leaves no usable driver.
    """

    def __init__(
        self,
        bus: RegisterBus,
        *,
        verify_chip_id: bool = False,
        watch_interval_s: float = watchers.DEFAULT_INTERVAL_S,
    ) -> None:
        self._bus = bus
        self._lock = threading.Lock()
        self._last: Optional[CompensatedReading] = None
        self._handles: List[watchers.WatcherHandle] = []
        self.watch_interval_s = float(watch_interval_s)

        if verify_chip_id:
            chip = self.chip_id()
            if chip != EXPECTED_CHIP_ID:
                raise ChipIdError(
                    f"Expected chip id 0x{EXPECTED_CHIP_ID:02X} at 0x{bus.address:02X}, got 0x{chip:02X}"
                )

        self.calibration: CalibrationSet = load_calibration(bus)
        self.initialize()

    @classmethod
    def open(
        cls,
        bus_id: int = 1,
        address: int | I2CAddress = I2CAddress.ADDR_0x76,
        **kwargs: Any,
    ) -> "Bme280":
        """Open ``/dev/i2c-<bus_id>`` and attach a driver to it."""
        addr = parse_enum(I2CAddress, address)
        bus = SMBusRegisterBus(bus_id, int(addr))
        try:
            return cls(bus, **kwargs)
        except Bme280Error:
            bus.close()
            raise

    @classmethod
    def from_config(cls, cfg: Bme280Config, bus: Optional[RegisterBus] = None) -> "Bme280":
        options = dict(verify_chip_id=cfg.verify_chip_id, watch_interval_s=cfg.watch_interval_s)
        if bus is None:
            return cls.open(cfg.bus, cfg.address, **options)
        bus.set_address(int(cfg.address))
        return cls(bus, **options)

    # ------------------------------------------------------------------ setup
    @property
    def address(self) -> I2CAddress:
        return I2CAddress(self._bus.address)

    def set_address(self, address: int | I2CAddress) -> None:
        """Point the driver at the other fixed address (0x76 or 0x77)."""
        addr = parse_enum(I2CAddress, address)
        with self._lock:
            self._bus.set_address(int(addr))
        logger.info("BME280 address set to 0x%02X", int(addr))

    def chip_id(self) -> int:
        return self._bus.read_u8(REG_CHIP_ID)

    def initialize(self) -> None:
        """Write the fixed oversampling, mode and filter configuration."""
        with self._lock:
            for reg, value in INIT_SEQUENCE:
                self._bus.write_byte(reg, value)
        logger.info("BME280 at 0x%02X initialized", self._bus.address)

    def power_on(self) -> None:
        self.set_power(PowerState.NORMAL)

    def power_off(self) -> None:
        self.set_power(PowerState.SLEEP)

    def set_power(self, state: PowerState) -> None:
        with self._lock:
            self._bus.write_byte(REG_CTRL_MEAS, int(state))
        logger.info("BME280 power state -> %s", state.name)

    # ------------------------------------------------------------------ sampling
    @property
    def last_reading(self) -> Optional[CompensatedReading]:
        """Most recently completed reading from any caller or watcher."""
        return self._last

    def sample(self) -> CompensatedReading:
        """Read and compensate one sample; the whole cycle runs under a lock."""
        with self._lock, time_block("bme280.sample"):
            raw = read_raw_sample(self._bus)
            reading = compensate(raw, self.calibration, previous=self._last)
            reading = replace(reading, timestamp_ns=time.monotonic_ns())
            self._last = reading
        return reading

    def pressure(
        self,
        unit: PressureUnit = PressureUnit.HPA,
        precision: int = Precision.ONE_DECIMAL,
    ) -> float:
        reading = self.sample()
        return round_to(reading.pressure / int(unit), precision)

    def temperature(
        self,
        unit: TemperatureUnit = TemperatureUnit.CELSIUS,
        precision: int = Precision.ONE_DECIMAL,
    ) -> float:
        reading = self.sample()
        value = reading.temperature
        if unit == TemperatureUnit.FAHRENHEIT:
            value = value * 9 / 5 + 32
        return round_to(value, precision)

    def humidity(self, precision: int = Precision.ONE_DECIMAL) -> float:
        reading = self.sample()
        return round_to(reading.humidity, precision)

    def humidity_quantity(
        self,
        kind: HumidityQuantity = HumidityQuantity.RELATIVE,
        precision: int = Precision.ONE_DECIMAL,
    ) -> float:
        """Relative humidity (%), vapor pressure (hPa) or vapor amount (g/m³)."""
        reading = self.sample()
        if kind is HumidityQuantity.VAPOR_PRESSURE:
            return derived.vapor_pressure(reading.temperature, reading.humidity, precision)
        if kind is HumidityQuantity.VAPOR_AMOUNT:
            return derived.vapor_amount(reading.temperature, reading.humidity, precision)
        return round_to(reading.humidity, precision)

    def dew_point(self, precision: int = Precision.ONE_DECIMAL) -> float:
        """Dew point (°C) of the current air; humidity must be above 0 %."""
        reading = self.sample()
        return derived.dew_point(reading.temperature, reading.humidity, precision)

    def elevation_difference(
        self,
        reference_pressure: float,
        reference_unit: PressureUnit = PressureUnit.HPA,
        altitude_unit: AltitudeUnit = AltitudeUnit.METERS,
        precision: int = Precision.ONE_DECIMAL,
    ) -> float:
        """Height above the level where ``reference_pressure`` was measured."""
        reading = self.sample()
        return derived.barometric_elevation(
            reading.pressure,
            reading.temperature,
            reference_pressure,
            reference_unit,
            altitude_unit,
            precision,
        )

    def snapshot(self, precision: int = Precision.ONE_DECIMAL) -> Dict[str, float]:
        """All primary and derived values computed from a single sample."""
        r = self.sample()
        return {
            "temperature_c": round_to(r.temperature, precision),
            "pressure_hpa": round_to(r.pressure / int(PressureUnit.HPA), precision),
            "humidity_pct": round_to(r.humidity, precision),
            "saturation_vapor_pressure_hpa": derived.saturation_vapor_pressure(r.temperature, precision),
            "saturation_vapor_amount_gm3": derived.saturation_vapor_amount(r.temperature, precision),
            "vapor_pressure_hpa": derived.vapor_pressure(r.temperature, r.humidity, precision),
            "vapor_amount_gm3": derived.vapor_amount(r.temperature, r.humidity, precision),
        }

    # ------------------------------------------------------------------ watchers
    def watch(
        self,
        metric: watchers.Metric,
        comparison: watchers.Comparison,
        threshold: float,
        callback: Callable[[], None],
        *,
        interval_s: Optional[float] = None,
    ) -> watchers.WatcherHandle:
        """
        Start a background watcher on this sensor.

        Thresholds are in Pa, °C and %RH. The returned handle stops it;
        :meth:`close` stops all watchers started here.
        """
        handle = watchers.watch(
            self.sample,
            metric,
            comparison,
            threshold,
            callback,
            interval_s=self.watch_interval_s if interval_s is None else interval_s,
        )
        self._handles.append(handle)
        return handle

    def watch_pressure_below(self, threshold_pa: float, callback: Callable[[], None], **kwargs: Any) -> watchers.WatcherHandle:
        return self.watch(watchers.Metric.PRESSURE, watchers.Comparison.BELOW, threshold_pa, callback, **kwargs)

    def watch_pressure_above(self, threshold_pa: float, callback: Callable[[], None], **kwargs: Any) -> watchers.WatcherHandle:
        return self.watch(watchers.Metric.PRESSURE, watchers.Comparison.ABOVE, threshold_pa, callback, **kwargs)

    def watch_temperature_below(self, threshold_c: float, callback: Callable[[], None], **kwargs: Any) -> watchers.WatcherHandle:
        return self.watch(watchers.Metric.TEMPERATURE, watchers.Comparison.BELOW, threshold_c, callback, **kwargs)

    def watch_temperature_above(self, threshold_c: float, callback: Callable[[], None], **kwargs: Any) -> watchers.WatcherHandle:
        return self.watch(watchers.Metric.TEMPERATURE, watchers.Comparison.ABOVE, threshold_c, callback, **kwargs)

    def watch_humidity_below(self, threshold_pct: float, callback: Callable[[], None], **kwargs: Any) -> watchers.WatcherHandle:
        return self.watch(watchers.Metric.HUMIDITY, watchers.Comparison.BELOW, threshold_pct, callback, **kwargs)

    def watch_humidity_above(self, threshold_pct: float, callback: Callable[[], None], **kwargs: Any) -> watchers.WatcherHandle:
        return self.watch(watchers.Metric.HUMIDITY, watchers.Comparison.ABOVE, threshold_pct, callback, **kwargs)

    def stop_watchers(self, timeout: Optional[float] = None) -> None:
        handles, self._handles = self._handles, []
        for handle in handles:
            handle.stop()
        for handle in handles:
            handle.stop(join=True, timeout=timeout)

    def close(self) -> None:
        self.stop_watchers(timeout=2.0)
        self._bus.close()

    def __enter__(self) -> "Bme280":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def scan_addresses(bus_id: int = 1) -> Dict[int, int]:
    """
    Probe both fixed addresses on ``bus_id``.

    Returns ``{address: chip_id}`` for every address that answered.
    """
    found: Dict[int, int] = {}
    for addr in I2CAddress:
        try:
            with SMBusRegisterBus(bus_id, int(addr)) as bus:
                found[int(addr)] = bus.read_u8(REG_CHIP_ID)
        except BusError as exc:
            logger.debug("No response at 0x%02X on bus %d: %s", int(addr), bus_id, exc)
    return found
