"""
Register-level access to the BME280 over I²C.

Only the primitives the driver needs are exposed: single-byte read/write,
a burst read, and the little-endian decoders used for the calibration block.
``SMBusRegisterBus`` talks to real hardware through ``smbus2``;
``MemoryRegisterBus`` is an in-memory register file for tests and dry runs.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional, Sequence, Tuple

from smbus2 import SMBus

from ..errors import BusError

logger = logging.getLogger(__name__)


class RegisterBus:
    """Byte-oriented register access bound to one device address."""

    address: int

    def read_byte(self, reg: int) -> int:  # pragma: no cover - interface
        raise NotImplementedError

    def write_byte(self, reg: int, value: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def read_block(self, reg: int, length: int) -> List[int]:
        """Read ``length`` consecutive registers starting at ``reg``."""
        return [self.read_byte(reg + i) for i in range(length)]

    def set_address(self, address: int) -> None:
        self.address = int(address)

    def close(self) -> None:
        pass

    # ------------------------------------------------------------------ decoders
    def read_u8(self, reg: int) -> int:
        return self.read_byte(reg) & 0xFF

    def read_s8(self, reg: int) -> int:
        v = self.read_u8(reg)
        if v & 0x80:
            v -= 0x100
        return v

    def read_u16le(self, reg: int) -> int:
        lo = self.read_u8(reg)
        hi = self.read_u8(reg + 1)
        return (hi << 8) | lo

    def read_s16le(self, reg: int) -> int:
        v = self.read_u16le(reg)
        if v & 0x8000:
            v = -((~v & 0xFFFF) + 1)
        return v

    def __enter__(self) -> "RegisterBus":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class SMBusRegisterBus(RegisterBus):
    """:class:`RegisterBus` backed by ``smbus2.SMBus``."""

    def __init__(self, bus_id: int = 1, address: int = 0x76) -> None:
        self.bus_id = int(bus_id)
        self.address = int(address)
        try:
            self._bus = SMBus(self.bus_id)
        except OSError as exc:
            raise BusError(f"Cannot open I2C bus {self.bus_id}: {exc}") from exc

    def read_byte(self, reg: int) -> int:
        try:
            return self._bus.read_byte_data(self.address, reg)
        except OSError as exc:
            raise BusError(f"read failed: {exc}", register=reg, address=self.address) from exc

    def write_byte(self, reg: int, value: int) -> None:
        try:
            self._bus.write_byte_data(self.address, reg, value & 0xFF)
        except OSError as exc:
            raise BusError(f"write failed: {exc}", register=reg, address=self.address) from exc

    def read_block(self, reg: int, length: int) -> List[int]:
        try:
            return list(self._bus.read_i2c_block_data(self.address, reg, length))
        except OSError as exc:
            raise BusError(
                f"block read of {length} bytes failed: {exc}",
                register=reg,
                address=self.address,
            ) from exc

    def close(self) -> None:
        self._bus.close()


class MemoryRegisterBus(RegisterBus):
    """
    A 256-byte register file standing in for the device.

    Writes are applied to the register file and also appended to
    :attr:`writes` so tests can assert on the exact sequence.
    ``fail_reads`` makes every read raise :class:`BusError`.
    """

    def __init__(
        self,
        registers: Optional[Dict[int, int]] = None,
        *,
        address: int = 0x76,
        fail_reads: bool = False,
    ) -> None:
        self.address = int(address)
        self.fail_reads = fail_reads
        self._regs: List[int] = [0] * 256
        self._lock = threading.RLock()
        self.writes: List[Tuple[int, int]] = []
        self.reads = 0
        if registers:
            self.load(registers)

    def load(self, registers: Dict[int, int]) -> None:
        with self._lock:
            for reg, value in registers.items():
                self._regs[reg & 0xFF] = int(value) & 0xFF

    def load_block(self, reg: int, data: Sequence[int]) -> None:
        with self._lock:
            for offset, value in enumerate(data):
                self._regs[(reg + offset) & 0xFF] = int(value) & 0xFF

    def read_byte(self, reg: int) -> int:
        if self.fail_reads:
            raise BusError("simulated read failure", register=reg, address=self.address)
        with self._lock:
            self.reads += 1
            return self._regs[reg & 0xFF]

    def write_byte(self, reg: int, value: int) -> None:
        with self._lock:
            self._regs[reg & 0xFF] = value & 0xFF
            self.writes.append((reg, value & 0xFF))
        logger.debug("MemoryRegisterBus write 0x%02X <- 0x%02X", reg, value & 0xFF)

    def peek(self, reg: int) -> int:
        with self._lock:
            return self._regs[reg & 0xFF]
