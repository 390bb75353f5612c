from __future__ import annotations

"""
Background threshold monitors.

Each watcher owns one daemon thread and one ``threading.Event``. A cycle
takes a fresh sample, compares one metric against the threshold and calls the
callback when the comparison holds, then waits ``interval_s`` before the next
cycle. The callback fires on every cycle while the condition holds (level, not
edge, triggered). Setting the event ends the wait early and stops the loop
before the next cycle starts; a cycle in progress always runs to completion.
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from ..errors import BusError
from ..sensors.compensation import CompensatedReading

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_S = 1.0

Sampler = Callable[[], CompensatedReading]
Callback = Callable[[], None]


class Metric(Enum):
    """Reading field a watcher observes (Pa, °C or %RH)."""

    PRESSURE = "pressure"
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"

    def extract(self, reading: CompensatedReading) -> float:
        return getattr(reading, self.value)


class Comparison(Enum):
    BELOW = "<"
    ABOVE = ">"

    def holds(self, value: float, threshold: float) -> bool:
        if self is Comparison.BELOW:
            return value < threshold
        return value > threshold


class ThresholdWatcher:
    """One metric/comparison/threshold triple polled on a fixed cadence."""

    def __init__(
        self,
        sample: Sampler,
        metric: Metric,
        comparison: Comparison,
        threshold: float,
        callback: Callback,
        *,
        interval_s: float = DEFAULT_INTERVAL_S,
    ) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be positive")
        self._sample = sample
        self.metric = metric
        self.comparison = comparison
        self.threshold = float(threshold)
        self.callback = callback
        self.interval_s = float(interval_s)
        self.cycles = 0
        self.triggers = 0

    def __repr__(self) -> str:
        return (
            f"ThresholdWatcher({self.metric.value} {self.comparison.value} "
            f"{self.threshold:g}, every {self.interval_s:g}s)"
        )

    def run_cycle(self) -> bool:
        """Sample once, fire the callback if the condition holds."""
        reading = self._sample()
        value = self.metric.extract(reading)
        self.cycles += 1
        if not self.comparison.holds(value, self.threshold):
            return False
        self.triggers += 1
        try:
            self.callback()
        except Exception as exc:
            logger.exception("Error in watcher callback for %r: %s", self, exc)
        return True

    def run(self, stop_event: threading.Event) -> None:
        """
        Loop until ``stop_event`` is set.

        Exceptions from the sampler (e.g. :class:`BusError`) propagate and end
        the loop; there is no retry.
        """
        while not stop_event.is_set():
            self.run_cycle()
            if stop_event.wait(self.interval_s):
                break


@dataclass
class WatcherHandle:
    watcher: ThresholdWatcher
    thread: threading.Thread
    stop_event: threading.Event
    error: Optional[BaseException] = field(default=None)

    def stop(self, *, join: bool = False, timeout: Optional[float] = None) -> None:
        self.stop_event.set()
        if join:
            self.thread.join(timeout)

    def is_alive(self) -> bool:
        return self.thread.is_alive()


def start_watcher(
    watcher: ThresholdWatcher,
    *,
    thread_name: Optional[str] = None,
) -> WatcherHandle:
    """Start a background thread running ``watcher`` and return its handle."""
    stop_event = threading.Event()
    handle: WatcherHandle

    def _target() -> None:
        logger.info("Started %r", watcher)
        try:
            watcher.run(stop_event)
        except BusError as exc:
            handle.error = exc
            logger.exception("Stopping %r after bus failure: %s", watcher, exc)
        else:
            logger.info("Stopped %r", watcher)

    thread = threading.Thread(
        target=_target,
        name=thread_name or f"Bme280Watcher({watcher.metric.value}{watcher.comparison.value})",
        daemon=True,
    )
    handle = WatcherHandle(watcher=watcher, thread=thread, stop_event=stop_event)
    thread.start()
    return handle


def watch(
    sample: Sampler,
    metric: Metric,
    comparison: Comparison,
    threshold: float,
    callback: Callback,
    *,
    interval_s: float = DEFAULT_INTERVAL_S,
    thread_name: Optional[str] = None,
) -> WatcherHandle:
    watcher = ThresholdWatcher(
        sample,
        metric,
        comparison,
        threshold,
        callback,
        interval_s=interval_s,
    )
    return start_watcher(watcher, thread_name=thread_name)


def pressure_below(sample: Sampler, threshold_pa: float, callback: Callback, **kwargs) -> WatcherHandle:
    return watch(sample, Metric.PRESSURE, Comparison.BELOW, threshold_pa, callback, **kwargs)


def pressure_above(sample: Sampler, threshold_pa: float, callback: Callback, **kwargs) -> WatcherHandle:
    return watch(sample, Metric.PRESSURE, Comparison.ABOVE, threshold_pa, callback, **kwargs)


def temperature_below(sample: Sampler, threshold_c: float, callback: Callback, **kwargs) -> WatcherHandle:
    return watch(sample, Metric.TEMPERATURE, Comparison.BELOW, threshold_c, callback, **kwargs)


def temperature_above(sample: Sampler, threshold_c: float, callback: Callback, **kwargs) -> WatcherHandle:
    return watch(sample, Metric.TEMPERATURE, Comparison.ABOVE, threshold_c, callback, **kwargs)


def humidity_below(sample: Sampler, threshold_pct: float, callback: Callback, **kwargs) -> WatcherHandle:
    return watch(sample, Metric.HUMIDITY, Comparison.BELOW, threshold_pct, callback, **kwargs)


def humidity_above(sample: Sampler, threshold_pct: float, callback: Callback, **kwargs) -> WatcherHandle:
    return watch(sample, Metric.HUMIDITY, Comparison.ABOVE, threshold_pct, callback, **kwargs)
