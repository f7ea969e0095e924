################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""
Plain data produced from UM6 telemetry, independent of the messaging layer
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Tuple


Vector3 = Tuple[float, float, float]

# Quaternion in [x, y, z, w] order
QuaternionXyzw = Tuple[float, float, float, float]


class Um6Topic(enum.Enum):
    """Outputs of the driver, valued by their default topic name"""

    IMU = "imu/data"
    MAG = "imu/mag"
    RPY = "imu/rpy"
    TEMPERATURE = "imu/temperature"
    GPS_ABS = "imu/gps_abs"
    GPS_REL = "imu/gps_rel"
    GPS_NUM_SAT = "imu/gps_num_sat"
    GPS_DOP = "imu/gps_dop"
    GPS_STATUS = "imu/gps_status"
    GPS_ODOM = "gps_odom"


@dataclass(frozen=True)
class Um6Header:
    """Time and frame shared by every output of one broadcast cycle"""

    stamp_ns: int
    frame_id: str


@dataclass(frozen=True)
class ImuData:
    """
    Orientation, angular velocity and linear acceleration in the ENU frame.

    Attributes:
        header: Cycle stamp and frame
        orientation: Quaternion in [x, y, z, w] order
        orientation_covariance: Row-major 3x3 covariance about x, y, z
        angular_velocity: Angular velocity, radians/second
        linear_acceleration: Linear acceleration, in the device's units of g
    """

    header: Um6Header
    orientation: QuaternionXyzw
    orientation_covariance: Tuple[float, ...]
    angular_velocity: Vector3
    linear_acceleration: Vector3


@dataclass(frozen=True)
class Vector3Data:
    header: Um6Header
    vector: Vector3


@dataclass(frozen=True)
class ScalarData:
    """Unstamped scalar, such as temperature or a satellite count"""

    value: float


@dataclass(frozen=True)
class OdometryData:
    """
    Odometry synthesized from GPS fields.

    Covariances are row-major 6x6 over (x, y, z, roll, pitch, yaw).
    """

    header: Um6Header
    child_frame_id: str
    position: Vector3
    orientation: QuaternionXyzw
    pose_covariance: Tuple[float, ...]
    linear_velocity: Vector3
    angular_velocity: Vector3
    twist_covariance: Tuple[float, ...]


@dataclass(frozen=True)
class Um6ResetRequest:
    """Device commands to issue on demand"""

    zero_gyros: bool = False
    reset_ekf: bool = False
    set_mag_ref: bool = False
    set_accel_ref: bool = False
