"""Runtime configuration for the BME280 driver and its watchers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, MutableMapping

import yaml

from ..analysis.rounding import Precision
from .units import (
    AltitudeUnit,
    I2CAddress,
    PressureUnit,
    TemperatureUnit,
    parse_enum,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "bme280.yaml"


@dataclass(slots=True)
class Bme280Config:
    """
    Where the sensor lives and how readings are presented.

    The defaults match a breakout on ``/dev/i2c-1`` with SDO tied low.
    """

    bus: int = 1
    address: I2CAddress = I2CAddress.ADDR_0x76
    watch_interval_s: float = 1.0
    pressure_unit: PressureUnit = PressureUnit.HPA
    temperature_unit: TemperatureUnit = TemperatureUnit.CELSIUS
    altitude_unit: AltitudeUnit = AltitudeUnit.METERS
    precision: Precision = Precision.ONE_DECIMAL
    verify_chip_id: bool = False

    def sanitized(self) -> Bme280Config:
        """Return a copy with enums resolved and numeric limits applied."""
        try:
            interval = float(self.watch_interval_s)
        except (TypeError, ValueError):
            interval = 1.0
        return Bme280Config(
            bus=max(0, int(self.bus)),
            address=parse_enum(I2CAddress, self.address),
            watch_interval_s=max(0.01, interval),
            pressure_unit=parse_enum(PressureUnit, self.pressure_unit),
            temperature_unit=parse_enum(TemperatureUnit, self.temperature_unit),
            altitude_unit=parse_enum(AltitudeUnit, self.altitude_unit),
            precision=parse_enum(Precision, self.precision),
            verify_chip_id=bool(self.verify_chip_id),
        )


def _recognized_fields() -> set[str]:
    """Return the dataclass field names accepted by :class:`Bme280Config`."""
    return {f.name for f in fields(Bme280Config)}


def _normalize_mapping(data: Mapping[str, Any]) -> MutableMapping[str, Any]:
    """Flatten an optional top-level ``bme280`` block."""
    if "bme280" in data and isinstance(data["bme280"], Mapping):
        merged: MutableMapping[str, Any] = {}
        for key, value in data.items():
            if key == "bme280":
                merged.update(value)
            else:
                merged[key] = value
        return merged
    return dict(data)


def config_from_mapping(data: Mapping[str, Any] | None) -> Bme280Config:
    """Build :class:`Bme280Config` from ``data`` (ignoring unknown keys)."""
    if not data:
        return Bme280Config()
    normalized = _normalize_mapping(data)
    known = _recognized_fields()
    unknown = sorted(set(normalized) - known)
    if unknown:
        logger.debug("Ignoring unknown config keys: %s", ", ".join(unknown))
    payload = {key: normalized[key] for key in normalized.keys() & known}
    return Bme280Config(**payload).sanitized()


def load_config(path: str | Path | None) -> Bme280Config:
    """
    Load configuration from ``path``.

    Missing files fall back to default :class:`Bme280Config`.
    """
    if path is None:
        return Bme280Config()
    cfg_path = Path(path)
    if not cfg_path.exists():
        return Bme280Config()
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected mapping in {cfg_path}, got {type(raw).__name__}")
    return config_from_mapping(raw)


__all__ = ["Bme280Config", "DEFAULT_CONFIG_NAME", "config_from_mapping", "load_config"]
