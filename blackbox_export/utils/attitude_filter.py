"""
Complementary attitude filter.

Estimates roll, pitch and heading from gyroscope, accelerometer and optional
magnetometer samples. The gravity vector is propagated with the gyro and
pulled toward the accelerometer reading while the measured acceleration is
close to 1g; heading comes from a propagated magnetometer vector, or from a
propagated north reference when no magnetometer is available.
"""

from dataclasses import dataclass
from typing import Optional, Sequence
import math

import numpy as np


@dataclass
class AttitudeEstimate:
    """Orientation estimate in radians."""

    roll: float = 0.0
    pitch: float = 0.0
    heading: float = 0.0

    def in_degrees(self) -> tuple:
        return (math.degrees(self.roll), math.degrees(self.pitch), math.degrees(self.heading))


class ComplementaryAttitudeFilter:
    """Stateful gyro/accelerometer/magnetometer complementary filter."""

    # Weight of the gyro-propagated estimate against one new sample
    GYRO_CMPF_FACTOR = 600
    GYRO_CMPFM_FACTOR = 250

    # Accelerometer magnitude window (percent of 1g squared) inside which
    # the accelerometer is trusted to point at gravity
    ACC_MAG_MIN_PERCENT = 72
    ACC_MAG_MAX_PERCENT = 133

    def __init__(self, magnetic_declination: float = 0.0):
        """
        Initialize the filter.

        Args:
            magnetic_declination: Declination in radians added to the heading
        """
        self.magnetic_declination = magnetic_declination
        self.reset()

    def reset(self):
        """Forget all state so the next sample starts a new estimate."""
        self.est_gravity = np.zeros(3)
        self.est_mag = np.zeros(3)
        self.est_north = np.array([1.0, 0.0, 0.0])
        self.previous_time: Optional[int] = None

    def update(self, gyro: Sequence[int], acc: Sequence[int], mag: Optional[Sequence[int]],
               current_time: int, acc_1g: int, gyro_scale: float,
               result: AttitudeEstimate) -> AttitudeEstimate:
        """
        Fold one inertial sample into the estimate.

        Args:
            gyro: Raw gyro readings (x, y, z)
            acc: Raw accelerometer readings (x, y, z)
            mag: Raw magnetometer readings, or None to use the north reference
            current_time: Sample time in microseconds
            acc_1g: Accelerometer reading corresponding to 1g
            gyro_scale: Radians per microsecond per gyro LSB
            result: Estimate to update in place

        Returns:
            The updated estimate (same object as result)
        """
        if self.previous_time is None:
            self.previous_time = current_time

        scale = (current_time - self.previous_time) * gyro_scale
        self.previous_time = current_time

        acc_vector = np.asarray(acc, dtype=float)
        delta_gyro_angle = np.asarray(gyro, dtype=float) * scale

        acc_mag = int(np.sum(np.asarray(acc, dtype=np.int64) ** 2)) * 100 // max(acc_1g * acc_1g, 1)

        self.est_gravity = rotate_vector(self.est_gravity, delta_gyro_angle)

        if self.ACC_MAG_MIN_PERCENT < acc_mag < self.ACC_MAG_MAX_PERCENT:
            self.est_gravity = (self.est_gravity * self.GYRO_CMPF_FACTOR + acc_vector) / (self.GYRO_CMPF_FACTOR + 1)

        gx, gy, gz = self.est_gravity
        roll = math.atan2(gy, gz)
        pitch = math.atan2(-gx, math.sqrt(gy * gy + gz * gz))

        if mag is not None:
            self.est_mag = rotate_vector(self.est_mag, delta_gyro_angle)
            self.est_mag = (self.est_mag * self.GYRO_CMPFM_FACTOR + np.asarray(mag, dtype=float)) / (self.GYRO_CMPFM_FACTOR + 1)
            heading = self._calculate_heading(self.est_mag, roll, pitch)
        else:
            self.est_north = rotate_vector(self.est_north, delta_gyro_angle)
            norm = np.linalg.norm(self.est_north)
            if norm > 0:
                self.est_north = self.est_north / norm
            heading = self._calculate_heading(self.est_north, roll, pitch)

        result.roll = roll
        result.pitch = pitch
        result.heading = heading
        return result

    def _calculate_heading(self, vector: np.ndarray, roll: float, pitch: float) -> float:
        """Tilt-compensated heading of a body-frame vector, wrapped to [0, 2*pi)."""
        cos_roll, sin_roll = math.cos(roll), math.sin(roll)
        cos_pitch, sin_pitch = math.cos(pitch), math.sin(pitch)

        x, y, z = vector
        xh = x * cos_pitch + y * sin_roll * sin_pitch + z * sin_pitch * cos_roll
        yh = y * cos_roll - z * sin_roll

        heading = (math.atan2(yh, xh) + self.magnetic_declination) % (2 * math.pi)

        # Tiny negative angles round up to exactly 2*pi
        if heading >= 2 * math.pi:
            heading = 0.0
        return heading


def rotate_vector(vector: np.ndarray, delta: np.ndarray) -> np.ndarray:
    """
    Rotate a body-frame vector by small roll/pitch/yaw increments.

    Args:
        vector: Vector to rotate
        delta: Rotation angles (roll, pitch, yaw) in radians

    Returns:
        Rotated vector
    """
    cos_x, cos_y, cos_z = np.cos(delta)
    sin_x, sin_y, sin_z = np.sin(delta)

    matrix = np.array([
        [cos_z * cos_y, -cos_y * sin_z, sin_y],
        [sin_z * cos_x + cos_z * sin_x * sin_y, cos_z * cos_x - sin_z * sin_x * sin_y, -sin_x * cos_y],
        [sin_z * sin_x - cos_z * cos_x * sin_y, cos_z * sin_x + sin_z * cos_x * sin_y, cos_y * cos_x],
    ])

    return vector @ matrix
