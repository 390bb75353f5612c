"""Threshold watchers: background monitors that re-sample the sensor.

Each watcher runs in its own daemon thread and is stopped through the
:class:`WatcherHandle` returned when it is started.
"""

from .watcher import (
    Comparison,
    Metric,
    ThresholdWatcher,
    WatcherHandle,
    humidity_above,
    humidity_below,
    pressure_above,
    pressure_below,
    start_watcher,
    temperature_above,
    temperature_below,
    watch,
)

__all__ = [
    "Comparison",
    "Metric",
    "ThresholdWatcher",
    "WatcherHandle",
    "start_watcher",
    "watch",
    "pressure_below",
    "pressure_above",
    "temperature_below",
    "temperature_above",
    "humidity_below",
    "humidity_above",
]
