"""Single rounding primitive shared by every public accessor."""

from __future__ import annotations

import math
from enum import IntEnum


class Precision(IntEnum):
    """Caller-selectable output precision (scale factor)."""

    INTEGER = 1
    ONE_DECIMAL = 10


# Internal canonical precision of compensated and intermediate values.
HUNDREDTHS = 100


def round_to(value: float, precision: int = Precision.ONE_DECIMAL) -> float:
    """
    Round ``value`` to ``1 / precision`` with halves rounded up.

    ``round_to(x, 10)`` keeps one decimal place, ``round_to(x, 1)`` rounds to
    an integer. Non-finite values are returned unchanged.
    """
    scale = int(precision)
    if scale <= 0:
        raise ValueError(f"precision must be positive, got {precision!r}")
    value = float(value)
    if not math.isfinite(value):
        return value
    return math.floor(value * scale + 0.5) / scale
