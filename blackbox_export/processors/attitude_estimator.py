"""
Attitude estimator.

Feeds inertial samples from valid main frames into the complementary
attitude filter, in frame order, and keeps the latest estimate.
"""

from typing import Optional, Sequence
import logging
import math

import numpy as np

from ..parsers.flight_log import FlightLog
from ..utils.attitude_filter import AttitudeEstimate, ComplementaryAttitudeFilter


def narrow_to_int16(values: Sequence[int]) -> np.ndarray:
    """Truncate logged values to the sensor's native 16-bit sample width."""
    return np.asarray(values, dtype=np.int64).astype(np.int16)


class AttitudeEstimator:
    """Adapter between main-stream frames and the attitude filter."""

    def __init__(self, log: FlightLog, ignore_mag: bool = False,
                 magnetic_declination: float = 0.0):
        """
        Initialize the estimator for one log.

        Args:
            log: Log descriptor providing field indexes and calibration
            ignore_mag: Don't use magnetometer data for heading
            magnetic_declination: Declination in degrees added to the heading
        """
        self.logger = logging.getLogger(__name__)
        self.log = log
        self.indexes = log.main_field_indexes
        self.use_mag = self.indexes.mag_adc is not None and not ignore_mag
        self.filter = ComplementaryAttitudeFilter(math.radians(magnetic_declination))
        self.attitude = AttitudeEstimate()
        self.updates = 0

    @staticmethod
    def can_estimate(log: FlightLog) -> bool:
        """Whether the log carries the accelerometer and gyro fields the filter needs."""
        indexes = log.main_field_indexes
        return indexes.acc_smooth is not None and indexes.gyro_adc is not None

    @classmethod
    def for_log(cls, log: FlightLog, ignore_mag: bool = False,
                magnetic_declination: float = 0.0) -> Optional['AttitudeEstimator']:
        """
        Create an estimator, or None when the log lacks accelerometer or gyro data.
        """
        if not cls.can_estimate(log):
            logging.getLogger(__name__).warning(
                "Can't simulate the IMU because accelerometer or gyroscope data is missing"
            )
            return None
        return cls(log, ignore_mag, magnetic_declination)

    def update(self, fields: Sequence[int], timestamp: int) -> AttitudeEstimate:
        """
        Fold one valid main frame into the estimate.

        Args:
            fields: Field values of the frame
            timestamp: Frame time in microseconds; must not decrease between calls

        Returns:
            The shared attitude estimate, updated in place
        """
        gyro = narrow_to_int16([fields[i] for i in self.indexes.gyro_adc])
        acc = narrow_to_int16([fields[i] for i in self.indexes.acc_smooth])
        mag = narrow_to_int16([fields[i] for i in self.indexes.mag_adc]) if self.use_mag else None

        sys_config = self.log.sys_config
        self.filter.update(gyro, acc, mag, timestamp, sys_config.acc_1g, sys_config.gyro_scale,
                           self.attitude)
        self.updates += 1

        return self.attitude
