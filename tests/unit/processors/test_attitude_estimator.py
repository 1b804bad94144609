"""
Unit tests for attitude estimation.

Tests the complementary filter math and the adapter feeding it main frames.
"""

import math
import unittest
import numpy as np

from blackbox_export.parsers.flight_log import FlightLog, SysConfig
from blackbox_export.processors.attitude_estimator import AttitudeEstimator, narrow_to_int16
from blackbox_export.utils.attitude_filter import (
    AttitudeEstimate, ComplementaryAttitudeFilter, rotate_vector
)

IMU_FIELDS = [
    'loopIteration', 'time',
    'accSmooth[0]', 'accSmooth[1]', 'accSmooth[2]',
    'gyroADC[0]', 'gyroADC[1]', 'gyroADC[2]',
]


def make_fields(iteration, time, acc, gyro=(0, 0, 0), mag=None):
    fields = [iteration, time] + list(acc) + list(gyro)
    if mag is not None:
        fields += list(mag)
    return tuple(fields)


class TestComplementaryAttitudeFilter(unittest.TestCase):
    """Test the fusion math on synthetic samples."""

    def setUp(self):
        """Set up test fixtures."""
        self.filter = ComplementaryAttitudeFilter()
        self.estimate = AttitudeEstimate()

    def test_level_and_still(self):
        for i in range(10):
            self.filter.update((0, 0, 0), (0, 0, 4096), None, i * 1000, 4096, 1e-6, self.estimate)

        self.assertAlmostEqual(self.estimate.roll, 0.0)
        self.assertAlmostEqual(self.estimate.pitch, 0.0)
        self.assertAlmostEqual(self.estimate.heading, 0.0)

    def test_roll_from_gravity(self):
        acc = (0, int(4096 * math.sin(math.radians(30))), int(4096 * math.cos(math.radians(30))))

        self.filter.update((0, 0, 0), acc, None, 0, 4096, 1e-6, self.estimate)

        self.assertAlmostEqual(math.degrees(self.estimate.roll), 30.0, places=1)
        self.assertAlmostEqual(self.estimate.pitch, 0.0, places=6)

    def test_pitch_from_gravity(self):
        acc = (-int(4096 * math.sin(math.radians(20))), 0, int(4096 * math.cos(math.radians(20))))

        self.filter.update((0, 0, 0), acc, None, 0, 4096, 1e-6, self.estimate)

        self.assertAlmostEqual(math.degrees(self.estimate.pitch), 20.0, places=1)

    def test_acceleration_outside_window_ignored(self):
        # 2g is outside the trusted window, so gravity stays unknown
        self.filter.update((0, 0, 0), (0, 8192, 0), None, 0, 4096, 1e-6, self.estimate)

        np.testing.assert_array_equal(self.filter.est_gravity, np.zeros(3))

    def test_declination_is_added_and_wrapped(self):
        estimator = ComplementaryAttitudeFilter(math.radians(-10))
        estimator.update((0, 0, 0), (0, 0, 4096), None, 0, 4096, 1e-6, self.estimate)

        self.assertAlmostEqual(self.estimate.heading, 2 * math.pi - math.radians(10))
        self.assertGreaterEqual(self.estimate.heading, 0.0)
        self.assertLess(self.estimate.heading, 2 * math.pi)

    def test_magnetometer_heading(self):
        # Field pointing along +y of a level craft
        for i in range(5):
            self.filter.update((0, 0, 0), (0, 0, 4096), (0, 500, 0), i * 1000, 4096, 1e-6,
                               self.estimate)

        self.assertAlmostEqual(self.estimate.heading, math.pi / 2)

    def test_first_sample_has_no_rotation(self):
        # A large gyro reading on the very first sample must not rotate anything
        self.filter.update((10000, 10000, 10000), (0, 0, 4096), None, 5000000, 4096, 1e-6,
                           self.estimate)

        self.assertAlmostEqual(self.estimate.roll, 0.0)
        self.assertAlmostEqual(self.estimate.heading, 0.0)

    def test_reset(self):
        self.filter.update((0, 0, 0), (0, 0, 4096), None, 1000, 4096, 1e-6, self.estimate)
        self.filter.reset()

        self.assertIsNone(self.filter.previous_time)
        np.testing.assert_array_equal(self.filter.est_gravity, np.zeros(3))

    def test_rotate_vector_identity(self):
        vector = np.array([1.0, 2.0, 3.0])
        np.testing.assert_allclose(rotate_vector(vector, np.zeros(3)), vector)

    def test_rotate_vector_preserves_length(self):
        vector = np.array([1.0, 2.0, 3.0])
        rotated = rotate_vector(vector, np.array([0.1, -0.2, 0.3]))

        self.assertAlmostEqual(np.linalg.norm(rotated), np.linalg.norm(vector))


class TestAttitudeEstimator(unittest.TestCase):
    """Test the adapter between main frames and the filter."""

    def setUp(self):
        """Set up test fixtures."""
        self.log = FlightLog(main_field_names=list(IMU_FIELDS),
                             sys_config=SysConfig(acc_1g=4096, gyro_scale=1e-6))

    def test_can_estimate(self):
        self.assertTrue(AttitudeEstimator.can_estimate(self.log))

        no_gyro = FlightLog(main_field_names=['loopIteration', 'time',
                                              'accSmooth[0]', 'accSmooth[1]', 'accSmooth[2]'])
        self.assertFalse(AttitudeEstimator.can_estimate(no_gyro))

    def test_for_log_disables_without_accelerometer(self):
        log = FlightLog(main_field_names=['loopIteration', 'time',
                                          'gyroADC[0]', 'gyroADC[1]', 'gyroADC[2]'])

        with self.assertLogs('blackbox_export.processors.attitude_estimator', level='WARNING') as logs:
            estimator = AttitudeEstimator.for_log(log)

        self.assertIsNone(estimator)
        self.assertIn("Can't simulate the IMU", logs.output[0])

    def test_gyro_data_alias(self):
        log = FlightLog(main_field_names=['loopIteration', 'time',
                                          'accSmooth[0]', 'accSmooth[1]', 'accSmooth[2]',
                                          'gyroData[0]', 'gyroData[1]', 'gyroData[2]'])
        self.assertTrue(AttitudeEstimator.can_estimate(log))

    def test_update_tracks_attitude(self):
        estimator = AttitudeEstimator.for_log(self.log)
        acc = (0, int(4096 * math.sin(math.radians(45))), int(4096 * math.cos(math.radians(45))))

        attitude = estimator.update(make_fields(0, 0, acc), 0)

        self.assertAlmostEqual(math.degrees(attitude.roll), 45.0, places=1)
        self.assertIs(attitude, estimator.attitude)
        self.assertEqual(estimator.updates, 1)

    def test_mag_used_only_when_present_and_not_ignored(self):
        log = FlightLog(main_field_names=IMU_FIELDS + ['magADC[0]', 'magADC[1]', 'magADC[2]'])

        self.assertTrue(AttitudeEstimator(log).use_mag)
        self.assertFalse(AttitudeEstimator(log, ignore_mag=True).use_mag)
        self.assertFalse(AttitudeEstimator(self.log).use_mag)

    def test_narrow_to_int16(self):
        narrowed = narrow_to_int16([1, -1, 65535, 32768])

        self.assertEqual(narrowed.dtype, np.int16)
        self.assertEqual(list(narrowed), [1, -1, -1, -32768])


if __name__ == '__main__':
    unittest.main()
