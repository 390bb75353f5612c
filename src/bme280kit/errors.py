"""
Exception taxonomy for the BME280 driver.

Callers can catch at either level::

    except BusError: ...       # one failed register transfer
    except Bme280Error: ...    # anything raised by this package
"""

from __future__ import annotations

from typing import Optional


class Bme280Error(Exception):
    """Base class for errors raised by :mod:`bme280kit`."""


class BusError(Bme280Error):
    """Raised when a register read or write fails on the two-wire bus."""

    def __init__(
        self,
        message: str,
        *,
        register: Optional[int] = None,
        address: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.register = register
        self.address = address

    def __str__(self) -> str:
        base = super().__str__()
        parts = []
        if self.address is not None:
            parts.append(f"addr=0x{self.address:02X}")
        if self.register is not None:
            parts.append(f"reg=0x{self.register:02X}")
        if parts:
            return f"{base} ({', '.join(parts)})"
        return base


class CalibrationError(BusError):
    """Raised when the factory calibration block cannot be read.

    Subclasses :class:`BusError` because a failed transfer is the only way
    loading can fail; the driver is unusable afterwards.
    """


class ChipIdError(Bme280Error):
    """Raised when the chip-id register does not identify a BME280."""
