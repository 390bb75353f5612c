import pathlib
import sys
import unittest

# Ensure src/ is on path for direct test execution
ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from bme280kit.errors import BusError, CalibrationError  # noqa: E402
from bme280kit.sensors.bme280 import Bme280  # noqa: E402
from bme280kit.sensors.bus import MemoryRegisterBus  # noqa: E402
from bme280kit.sensors.calibration import (  # noqa: E402
    DATASHEET_CALIBRATION,
    CalibrationSet,
    calibration_registers,
    load_calibration,
    unpack_h4_h5,
)
from bme280kit.sensors.fake import fake_bus  # noqa: E402


class UnpackHumidityNibblesTest(unittest.TestCase):
    def test_shared_register_splits_low_and_high_nibble(self):
        # 0xE5 = 0x92: low nibble 0x2 -> dig_H4, high nibble 0x9 -> dig_H5
        h4, h5 = unpack_h4_h5(0x13, 0x92, 0x03)
        self.assertEqual(h4, 0x132)
        self.assertEqual(h5, 0x039)

    def test_msb_registers_carry_the_sign(self):
        h4, h5 = unpack_h4_h5(0xFF, 0xFF, 0xFF)
        self.assertEqual(h4, -1)
        self.assertEqual(h5, -1)

    def test_datasheet_values_survive_register_image(self):
        regs = calibration_registers(DATASHEET_CALIBRATION)
        h4, h5 = unpack_h4_h5(regs[0xE4], regs[0xE5], regs[0xE6])
        self.assertEqual(h4, DATASHEET_CALIBRATION.dig_H4)
        self.assertEqual(h5, DATASHEET_CALIBRATION.dig_H5)


class LoadCalibrationTest(unittest.TestCase):
    def test_reads_all_eighteen_coefficients(self):
        cal = load_calibration(fake_bus())
        self.assertEqual(cal, DATASHEET_CALIBRATION)
        self.assertEqual(len(cal.as_dict()), 18)

    def test_signed_and_unsigned_words_decode_correctly(self):
        bus = MemoryRegisterBus()
        # dig_T1 = 0xFFFE (unsigned), dig_T2 = 0xFFFE (signed -> -2)
        bus.load_block(0x88, [0xFE, 0xFF, 0xFE, 0xFF])
        bus.load({0xA1: 0xC8, 0xE3: 0x80, 0xE7: 0x80})
        cal = load_calibration(bus)
        self.assertEqual(cal.dig_T1, 0xFFFE)
        self.assertEqual(cal.dig_T2, -2)
        self.assertEqual(cal.dig_H1, 200)
        self.assertEqual(cal.dig_H3, 128)
        self.assertEqual(cal.dig_H6, -128)

    def test_bus_failure_is_fatal(self):
        bus = MemoryRegisterBus(fail_reads=True)
        with self.assertRaises(CalibrationError) as ctx:
            load_calibration(bus)
        self.assertIsInstance(ctx.exception, BusError)
        self.assertEqual(ctx.exception.register, 0x88)

    def test_driver_construction_aborts_without_calibration(self):
        bus = MemoryRegisterBus(fail_reads=True)
        with self.assertRaises(BusError):
            Bme280(bus)
        # Nothing was configured on the failed device.
        self.assertEqual(bus.writes, [])

    def test_calibration_is_immutable(self):
        cal = CalibrationSet(**DATASHEET_CALIBRATION.as_dict())
        with self.assertRaises(AttributeError):
            cal.dig_T1 = 0  # type: ignore[misc]


if __name__ == "__main__":
    unittest.main()
