"""
Unit tests for unit conversion utilities.

Tests unit parsing, speed conversion and fixed-point rendering.
"""

import unittest

from blackbox_export.utils.units import (
    Unit, parse_unit, convert_speed, format_fixed_point, format_millis_as_volts,
    parse_degrees_minutes, SPEED_UNITS, VOLTAGE_UNITS, CURRENT_UNITS
)
from blackbox_export.utils.error_handling import ConfigurationError, UnitConversionError


class TestParseUnit(unittest.TestCase):
    """Test parsing of unit names."""

    def test_speed_aliases(self):
        for text in ['kph', 'KMPH', 'km/h', 'km/hr']:
            self.assertIs(parse_unit(text), Unit.KILOMETERS_PER_HOUR)
        for text in ['mps', 'm/s']:
            self.assertIs(parse_unit(text), Unit.METERS_PER_SECOND)
        for text in ['mph', 'mi/h', 'MI/HR']:
            self.assertIs(parse_unit(text), Unit.MILES_PER_HOUR)

    def test_electrical_units_are_case_insensitive(self):
        self.assertIs(parse_unit('mV'), Unit.MILLIVOLTS)
        self.assertIs(parse_unit('MA'), Unit.MILLIAMPS)
        self.assertIs(parse_unit('v'), Unit.VOLTS)
        self.assertIs(parse_unit('A'), Unit.AMPS)
        self.assertIs(parse_unit('Raw'), Unit.RAW)

    def test_unit_passes_through(self):
        self.assertIs(parse_unit(Unit.AMPS), Unit.AMPS)

    def test_unknown_unit_raises(self):
        with self.assertRaises(ConfigurationError):
            parse_unit('furlongs')

    def test_quantity_sets(self):
        self.assertIn(Unit.RAW, SPEED_UNITS)
        self.assertNotIn(Unit.VOLTS, SPEED_UNITS)
        self.assertNotIn(Unit.AMPS, VOLTAGE_UNITS)
        self.assertNotIn(Unit.MILLIVOLTS, CURRENT_UNITS)


class TestConvertSpeed(unittest.TestCase):
    """Test speed conversion ratios."""

    def test_meters_per_second_is_identity(self):
        self.assertEqual(convert_speed(12.5, Unit.METERS_PER_SECOND), 12.5)

    def test_kilometers_per_hour(self):
        self.assertAlmostEqual(convert_speed(1.0, Unit.KILOMETERS_PER_HOUR), 3.6)

    def test_miles_per_hour(self):
        self.assertAlmostEqual(convert_speed(1.0, Unit.MILES_PER_HOUR), 2.23694, places=4)

    def test_raw_raises(self):
        with self.assertRaises(UnitConversionError):
            convert_speed(1.0, Unit.RAW)

    def test_non_speed_unit_raises(self):
        with self.assertRaises(UnitConversionError):
            convert_speed(1.0, Unit.VOLTS)

    def test_conversion_error_is_configuration_error(self):
        self.assertTrue(issubclass(UnitConversionError, ConfigurationError))


class TestFixedPoint(unittest.TestCase):
    """Test fixed-point rendering of scaled integers."""

    def test_coordinate(self):
        self.assertEqual(format_fixed_point(123456789, 7), "12.3456789")

    def test_negative_coordinate(self):
        self.assertEqual(format_fixed_point(-123456789, 7), "-12.3456789")

    def test_small_negative_keeps_sign(self):
        self.assertEqual(format_fixed_point(-5, 1), "-0.5")
        self.assertEqual(format_fixed_point(-1234567, 7), "-0.1234567")

    def test_fraction_is_zero_padded(self):
        self.assertEqual(format_fixed_point(1000001, 7), "0.1000001")
        self.assertEqual(format_fixed_point(105, 2), "1.05")

    def test_no_digits(self):
        self.assertEqual(format_fixed_point(42, 0), "42")

    def test_millis_as_units(self):
        self.assertEqual(format_millis_as_volts(12345), "12.345")
        self.assertEqual(format_millis_as_volts(-250), "-0.250")


class TestDegreesMinutes(unittest.TestCase):
    """Test parsing of degrees.minutes angles."""

    def test_positive(self):
        self.assertAlmostEqual(parse_degrees_minutes("12.30"), 12.5)

    def test_negative(self):
        self.assertAlmostEqual(parse_degrees_minutes("-12.58"), -(12 + 58 / 60.0))

    def test_whole_degrees(self):
        self.assertAlmostEqual(parse_degrees_minutes("7"), 7.0)


if __name__ == '__main__':
    unittest.main()
