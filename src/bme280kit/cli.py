"""
Command-line front end.

Examples
--------
# Which addresses answer on bus 1
bme280kit --list

# One reading with derived values, pressure in hPa, one decimal
bme280kit read

# Print a line every time the pressure is above 1010 hPa, until Ctrl-C
bme280kit watch --metric pressure --above 101000

# Same without hardware
bme280kit --fake read

Configuration via YAML
----------------------
``--config path/to/bme280.yaml`` (or ``bme280.yaml`` in the working
directory) supplies defaults; explicit command-line options override it.
"""

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
import threading
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .analysis.rounding import Precision
from .config.runtime import DEFAULT_CONFIG_NAME, Bme280Config, load_config
from .config.units import (
    AltitudeUnit,
    I2CAddress,
    PressureUnit,
    TemperatureUnit,
    parse_enum,
)
from .core.watcher import Comparison, Metric
from .errors import Bme280Error
from .sensors.bme280 import REG_CHIP_ID, Bme280, scan_addresses
from .sensors.fake import fake_bus

logger = logging.getLogger(__name__)

_PRESSURE_LABELS = {PressureUnit.PA: "Pa", PressureUnit.HPA: "hPa"}


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="bme280kit", description="BME280 pressure/humidity/temperature reader.")
    ap.add_argument("--list", action="store_true", help="Probe 0x76/0x77 on the bus and exit")
    ap.add_argument("--config", type=str, default=None, help=f"YAML config (default: ./{DEFAULT_CONFIG_NAME} if present)")
    ap.add_argument("--bus", type=int, default=None, help="I2C bus number (default 1)")
    ap.add_argument("--address", type=str, default=None, help="Sensor address: 0x76 or 0x77")
    ap.add_argument("--precision", type=str, default=None, help="'int' or '0.1'")
    ap.add_argument("--fake", action="store_true", help="Use an in-memory sensor instead of hardware")
    ap.add_argument("--log-level", type=str, default="WARNING", help="Python logging level")

    sub = ap.add_subparsers(dest="command")

    rd = sub.add_parser("read", help="Take one sample and print it")
    rd.add_argument("--pressure-unit", type=str, default=None, help="Pa or hPa")
    rd.add_argument("--temperature-unit", type=str, default=None, help="C or F")
    rd.add_argument("--altitude-unit", type=str, default=None, help="m or ft")
    rd.add_argument(
        "--reference-pressure",
        type=float,
        default=None,
        help="Reference pressure in --pressure-unit; adds the elevation difference to the output",
    )
    rd.add_argument("--json", action="store_true", help="Print a JSON object instead of text")

    wt = sub.add_parser("watch", help="Run a threshold watcher until interrupted")
    wt.add_argument("--metric", choices=[m.value for m in Metric], required=True)
    group = wt.add_mutually_exclusive_group(required=True)
    group.add_argument("--below", type=float, help="Fire while the value is below this (Pa, °C or %%RH)")
    group.add_argument("--above", type=float, help="Fire while the value is above this (Pa, °C or %%RH)")
    wt.add_argument("--interval", type=float, default=None, help="Seconds between samples (default 1.0)")
    wt.add_argument("--duration", type=float, default=None, help="Stop after this many seconds")
    return ap


def resolve_config(args: argparse.Namespace) -> Bme280Config:
    """Load YAML defaults and apply explicit CLI options on top."""
    if args.config:
        cfg = load_config(args.config)
    else:
        cfg = load_config(Path.cwd() / DEFAULT_CONFIG_NAME)

    if args.bus is not None:
        cfg.bus = args.bus
    if args.address is not None:
        cfg.address = parse_enum(I2CAddress, args.address)
    if args.precision is not None:
        cfg.precision = parse_enum(Precision, args.precision)
    for name, enum_cls in (
        ("pressure_unit", PressureUnit),
        ("temperature_unit", TemperatureUnit),
        ("altitude_unit", AltitudeUnit),
    ):
        value = getattr(args, name, None)
        if value is not None:
            setattr(cfg, name, parse_enum(enum_cls, value))
    if getattr(args, "interval", None) is not None:
        cfg.watch_interval_s = args.interval
    return cfg.sanitized()


def open_sensor(cfg: Bme280Config, fake: bool = False) -> Bme280:
    if fake:
        return Bme280.from_config(cfg, bus=fake_bus(address=int(cfg.address)))
    return Bme280.from_config(cfg)


def collect_reading(
    sensor: Bme280,
    cfg: Bme280Config,
    reference_pressure: Optional[float] = None,
) -> Dict[str, Any]:
    out: Dict[str, Any] = sensor.snapshot(cfg.precision)
    out["pressure"] = sensor.pressure(cfg.pressure_unit, cfg.precision)
    out["pressure_unit"] = _PRESSURE_LABELS[cfg.pressure_unit]
    out["temperature"] = sensor.temperature(cfg.temperature_unit, cfg.precision)
    out["temperature_unit"] = "F" if cfg.temperature_unit == TemperatureUnit.FAHRENHEIT else "C"
    out["dew_point_c"] = sensor.dew_point(cfg.precision)
    if reference_pressure is not None:
        out["elevation_difference"] = sensor.elevation_difference(
            reference_pressure, cfg.pressure_unit, cfg.altitude_unit, cfg.precision
        )
        out["altitude_unit"] = cfg.altitude_unit.value
    return out


def _format_text(values: Dict[str, Any]) -> List[str]:
    lines = [
        f"Temperature:   {values['temperature']} {values['temperature_unit']}",
        f"Pressure:      {values['pressure']} {values['pressure_unit']}",
        f"Humidity:      {values['humidity_pct']} %",
        f"Dew point:     {values['dew_point_c']} C",
        f"Sat. vapor:    {values['saturation_vapor_pressure_hpa']} hPa / {values['saturation_vapor_amount_gm3']} g/m3",
        f"Vapor:         {values['vapor_pressure_hpa']} hPa / {values['vapor_amount_gm3']} g/m3",
    ]
    if "elevation_difference" in values:
        lines.append(f"Elevation:     {values['elevation_difference']} {values['altitude_unit']}")
    return lines


def cmd_read(sensor: Bme280, cfg: Bme280Config, args: argparse.Namespace) -> int:
    values = collect_reading(sensor, cfg, args.reference_pressure)
    if args.json:
        print(json.dumps(values))
    else:
        for line in _format_text(values):
            print(line)
    return 0


def cmd_watch(sensor: Bme280, cfg: Bme280Config, args: argparse.Namespace) -> int:
    metric = Metric(args.metric)
    comparison = Comparison.BELOW if args.below is not None else Comparison.ABOVE
    threshold = args.below if args.below is not None else args.above
    done = threading.Event()

    def _on_trigger() -> None:
        reading = sensor.last_reading
        value = metric.extract(reading) if reading is not None else float("nan")
        print(f"{metric.value} {value} {comparison.value} {threshold}", flush=True)

    def _stop(_signum, _frame) -> None:
        done.set()

    previous = {sig: signal.signal(sig, _stop) for sig in (signal.SIGINT, signal.SIGTERM)}

    handle = sensor.watch(metric, comparison, threshold, _on_trigger, interval_s=cfg.watch_interval_s)
    deadline = None if args.duration is None else time.monotonic() + args.duration
    try:
        while not done.is_set() and handle.is_alive():
            if deadline is not None and time.monotonic() >= deadline:
                break
            done.wait(0.1)
    finally:
        handle.stop(join=True, timeout=2.0)
        for sig, prev in previous.items():
            signal.signal(sig, prev)
    if handle.error is not None:
        print(f"ERROR: {handle.error}", file=sys.stderr)
        return 1
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        cfg = resolve_config(args)
    except ValueError as exc:
        ap.error(str(exc))

    if args.list:
        if args.fake:
            with fake_bus(address=int(cfg.address)) as bus:
                found = {bus.address: bus.read_u8(REG_CHIP_ID)}
        else:
            found = scan_addresses(cfg.bus)
        if not found:
            print(f"  Bus {cfg.bus}: (no 0x76/0x77 detected)")
        for addr, chip in sorted(found.items()):
            print(f"  Bus {cfg.bus}: addr 0x{addr:02X} CHIP_ID=0x{chip:02X}")
        return 0

    if args.command is None:
        ap.print_help()
        return 2

    try:
        sensor = open_sensor(cfg, fake=args.fake)
    except Bme280Error as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    with sensor:
        if args.command == "read":
            return cmd_read(sensor, cfg, args)
        return cmd_watch(sensor, cfg, args)


if __name__ == "__main__":
    sys.exit(main())
