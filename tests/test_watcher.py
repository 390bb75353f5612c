from __future__ import annotations

import threading
import time
from typing import List

import pytest

from bme280kit.core.watcher import (
    DEFAULT_INTERVAL_S,
    Comparison,
    Metric,
    ThresholdWatcher,
    humidity_above,
    pressure_below,
    start_watcher,
)
from bme280kit.errors import BusError
from bme280kit.sensors.bme280 import Bme280
from bme280kit.sensors.compensation import CompensatedReading
from bme280kit.sensors.fake import fake_bus

READING = CompensatedReading(temperature=25.08, pressure=100656.0, humidity=38.27)


def _constant() -> CompensatedReading:
    return READING


def _wait_for(predicate, timeout: float = 2.0) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.mark.parametrize(
    "metric, comparison, threshold, expected",
    [
        (Metric.PRESSURE, Comparison.BELOW, 101000.0, True),
        (Metric.PRESSURE, Comparison.ABOVE, 101000.0, False),
        (Metric.TEMPERATURE, Comparison.BELOW, 10.0, False),
        (Metric.TEMPERATURE, Comparison.ABOVE, 20.0, True),
        (Metric.HUMIDITY, Comparison.BELOW, 40.0, True),
        (Metric.HUMIDITY, Comparison.ABOVE, 38.27, False),
    ],
)
def test_run_cycle_evaluates_each_combination(metric, comparison, threshold, expected) -> None:
    calls: List[int] = []
    watcher = ThresholdWatcher(_constant, metric, comparison, threshold, lambda: calls.append(1))
    assert watcher.run_cycle() is expected
    assert len(calls) == (1 if expected else 0)


def test_callback_fires_every_cycle_while_condition_holds() -> None:
    calls: List[int] = []
    watcher = ThresholdWatcher(_constant, Metric.PRESSURE, Comparison.BELOW, 101000.0, lambda: calls.append(1))
    for _ in range(3):
        watcher.run_cycle()
    assert calls == [1, 1, 1]
    assert watcher.cycles == 3
    assert watcher.triggers == 3


def test_callback_errors_are_logged_not_raised(caplog) -> None:
    def _boom() -> None:
        raise RuntimeError("callback failed")

    watcher = ThresholdWatcher(_constant, Metric.HUMIDITY, Comparison.ABOVE, 10.0, _boom)
    assert watcher.run_cycle() is True
    assert "Error in watcher callback" in caplog.text


def test_default_cadence_is_one_second() -> None:
    assert DEFAULT_INTERVAL_S == 1.0
    watcher = ThresholdWatcher(_constant, Metric.PRESSURE, Comparison.BELOW, 1.0, lambda: None)
    assert watcher.interval_s == 1.0


def test_rejects_non_positive_interval() -> None:
    with pytest.raises(ValueError):
        ThresholdWatcher(_constant, Metric.PRESSURE, Comparison.BELOW, 1.0, lambda: None, interval_s=0)


def test_background_watcher_runs_until_stopped() -> None:
    fired = threading.Event()
    handle = pressure_below(_constant, 101000.0, fired.set, interval_s=0.01)
    try:
        assert fired.wait(2.0)
        assert _wait_for(lambda: handle.watcher.cycles >= 3)
        assert handle.is_alive()
    finally:
        handle.stop(join=True, timeout=2.0)
    assert not handle.is_alive()
    assert handle.error is None


def test_stop_interrupts_the_pause_between_cycles() -> None:
    handle = humidity_above(_constant, 99.0, lambda: None, interval_s=60.0)
    assert _wait_for(lambda: handle.watcher.cycles == 1)
    started = time.monotonic()
    handle.stop(join=True, timeout=2.0)
    assert not handle.is_alive()
    assert time.monotonic() - started < 2.0
    assert handle.watcher.cycles == 1


def test_bus_error_ends_the_watcher() -> None:
    def _failing() -> CompensatedReading:
        raise BusError("no ack", register=0xF7, address=0x76)

    watcher = ThresholdWatcher(_failing, Metric.TEMPERATURE, Comparison.ABOVE, 0.0, lambda: None, interval_s=0.01)
    handle = start_watcher(watcher)
    handle.thread.join(2.0)
    assert not handle.is_alive()
    assert isinstance(handle.error, BusError)


def test_driver_watchers_share_the_sensor() -> None:
    sensor = Bme280(fake_bus(), watch_interval_s=0.01)
    hits = {"p_low": 0, "p_high": 0, "t_low": 0, "t_high": 0, "h_low": 0, "h_high": 0}
    lock = threading.Lock()

    def _hit(key: str):
        def _cb() -> None:
            with lock:
                hits[key] += 1
        return _cb

    handles = [
        sensor.watch_pressure_below(101000.0, _hit("p_low")),
        sensor.watch_pressure_above(101000.0, _hit("p_high")),
        sensor.watch_temperature_below(10.0, _hit("t_low")),
        sensor.watch_temperature_above(20.0, _hit("t_high")),
        sensor.watch_humidity_below(40.0, _hit("h_low")),
        sensor.watch_humidity_above(60.0, _hit("h_high")),
    ]
    try:
        assert _wait_for(lambda: all(h.watcher.cycles >= 2 for h in handles))
    finally:
        sensor.close()

    assert all(not h.is_alive() for h in handles)
    assert hits["p_low"] >= 2 and hits["t_high"] >= 2 and hits["h_low"] >= 2
    assert hits["p_high"] == hits["t_low"] == hits["h_high"] == 0
    assert sensor.last_reading is not None
    assert sensor.last_reading.temperature == 25.08
