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
Conversion of UM6 registers into published telemetry.

The device reports in a north-east-down frame, with quaternions in
[w, x, y, z] order. Outputs are converted to east-north-up, with quaternions
in [x, y, z, w] order.
"""

from __future__ import annotations

import abc
import logging
import math
from typing import Any
from typing import Callable
from typing import Dict
from typing import List
from typing import Tuple

import numpy as np
from numpy.typing import NDArray

from oasis_um6.um6 import um6_constants as um6
from oasis_um6.um6.um6_config import Um6Config
from oasis_um6.um6.um6_registers import Um6Accessor
from oasis_um6.um6.um6_registers import Um6Registers
from oasis_um6.um6.um6_transport import RegisterGroup
from oasis_um6.um6.um6_types import ImuData
from oasis_um6.um6.um6_types import OdometryData
from oasis_um6.um6.um6_types import ScalarData
from oasis_um6.um6.um6_types import Um6Header
from oasis_um6.um6.um6_types import Um6Topic
from oasis_um6.um6.um6_types import Vector3
from oasis_um6.um6.um6_types import Vector3Data


# Arrival of this register means the broadcast group is complete, and
# everything we have is published
TRIGGER_REGISTER: int = um6.UM6_TEMPERATURE

# Raw course units to radians
GPS_COURSE_SCALE: float = 0.0314159265

# Speed is reported in centimeters per second
GPS_SPEED_SCALE: float = 0.01

# Variance meaning "no information" in synthesized odometry
UNKNOWN_VARIANCE: float = 999999.0

GPS_ODOM_CHILD_FRAME_ID: str = "base"

TopicBuilder = Callable[[Um6Registers, Um6Header], Any]


class Um6TelemetryCallback:
    """
    Messaging layer as seen by the telemetry publisher
    """

    @abc.abstractmethod
    def now_ns(self) -> int:
        """Get the current time, in nanoseconds"""

    @abc.abstractmethod
    def has_subscribers(self, topic: Um6Topic) -> bool:
        pass

    @abc.abstractmethod
    def publish(self, topic: Um6Topic, data: Any) -> None:
        pass


################################################################################
# Frame conversions
################################################################################


def ned_to_enu(accessor: Um6Accessor) -> Vector3:
    """Swap x and y and negate z of a 3-field NED vector"""
    return (
        accessor.get_scaled(1),
        accessor.get_scaled(0),
        -accessor.get_scaled(2),
    )


def orientation_enu(registers: Um6Registers) -> Tuple[float, float, float, float]:
    """Convert the device's [w, x, y, z] NED quaternion to [x, y, z, w] ENU"""
    quat: Um6Accessor = registers.quat
    return (
        quat.get_scaled(2),
        quat.get_scaled(1),
        -quat.get_scaled(3),
        quat.get_scaled(0),
    )


def orientation_covariance(registers: Um6Registers) -> Tuple[float, ...]:
    """
    Extract the xyz block of the device's 4x4 wxyz covariance, as a row-major
    3x3 matrix
    """
    cov: NDArray[np.float64] = np.array(
        [registers.covariance.get_scaled(i) for i in range(16)], dtype=np.float64
    ).reshape(4, 4)
    return tuple(float(value) for value in cov[1:, 1:].flatten())


def gps_status_field(registers: Um6Registers, start_bit: int, mask: int) -> int:
    return (int(registers.gps_status.get(0)) >> start_bit) & mask


def gps_dop(registers: Um6Registers) -> Tuple[float, float]:
    """Get the horizontal and vertical dilution of precision"""
    hdop: float = float(
        gps_status_field(registers, um6.UM6_GPS_HDOP_START_BIT, um6.UM6_GPS_HDOP_MASK)
    )
    vdop: float = float(
        gps_status_field(registers, um6.UM6_GPS_VDOP_START_BIT, um6.UM6_GPS_VDOP_MASK)
    )
    return hdop, vdop


def gps_velocity(registers: Um6Registers) -> Vector3:
    """Decompose GPS course and speed into a planar velocity, meters/second"""
    course: float = float(registers.gps_course_speed.get(0)) * GPS_COURSE_SCALE
    speed: float = float(registers.gps_course_speed.get(1)) * GPS_SPEED_SCALE
    return speed * math.cos(course), speed * math.sin(course), 0.0


################################################################################
# Topic builders
################################################################################


def build_imu(registers: Um6Registers, header: Um6Header) -> ImuData:
    return ImuData(
        header=header,
        orientation=orientation_enu(registers),
        orientation_covariance=orientation_covariance(registers),
        angular_velocity=ned_to_enu(registers.gyro),
        linear_acceleration=ned_to_enu(registers.accel),
    )


def build_mag(registers: Um6Registers, header: Um6Header) -> Vector3Data:
    return Vector3Data(header=header, vector=ned_to_enu(registers.mag))


def build_rpy(registers: Um6Registers, header: Um6Header) -> Vector3Data:
    return Vector3Data(header=header, vector=ned_to_enu(registers.euler))


def build_temperature(registers: Um6Registers, header: Um6Header) -> ScalarData:
    return ScalarData(value=registers.temperature.get_scaled(0))


def build_gps_abs(registers: Um6Registers, header: Um6Header) -> Vector3Data:
    gps_abs: Um6Accessor = registers.gps_abs
    return Vector3Data(
        header=header,
        vector=(float(gps_abs.get(0)), float(gps_abs.get(1)), float(gps_abs.get(2))),
    )


def build_gps_rel(registers: Um6Registers, header: Um6Header) -> Vector3Data:
    gps_rel: Um6Accessor = registers.gps_rel
    return Vector3Data(
        header=header,
        vector=(float(gps_rel.get(0)), float(gps_rel.get(1)), float(gps_rel.get(2))),
    )


def build_gps_num_sat(registers: Um6Registers, header: Um6Header) -> ScalarData:
    return ScalarData(
        value=gps_status_field(
            registers, um6.UM6_GPS_SAT_COUNT_START_BIT, um6.UM6_GPS_SAT_COUNT_MASK
        )
    )


def build_gps_dop(registers: Um6Registers, header: Um6Header) -> Vector3Data:
    hdop, vdop = gps_dop(registers)
    return Vector3Data(header=header, vector=(hdop, hdop, vdop))


def build_gps_status(registers: Um6Registers, header: Um6Header) -> ScalarData:
    return ScalarData(
        value=gps_status_field(
            registers, um6.UM6_GPS_MODE_START_BIT, um6.UM6_GPS_MODE_MASK
        )
    )


def build_gps_odom(registers: Um6Registers, header: Um6Header) -> OdometryData:
    """
    Synthesize odometry from the GPS, suitable for fusion with other sources.

    Positional variance is estimated from the dilution of precision, and
    orientation is marked as unknown.
    """
    hdop, vdop = gps_dop(registers)
    pdop: float = math.sqrt(hdop * hdop + vdop * vdop)

    pose_covariance: NDArray[np.float64] = np.diag(
        [pdop, pdop, pdop, UNKNOWN_VARIANCE, UNKNOWN_VARIANCE, UNKNOWN_VARIANCE]
    )
    twist_covariance: NDArray[np.float64] = np.diag([UNKNOWN_VARIANCE] * 6)

    gps_abs: Um6Accessor = registers.gps_abs

    return OdometryData(
        header=header,
        child_frame_id=GPS_ODOM_CHILD_FRAME_ID,
        position=(float(gps_abs.get(0)), float(gps_abs.get(1)), float(gps_abs.get(2))),
        orientation=(0.0, 0.0, 0.0, 1.0),
        pose_covariance=tuple(float(value) for value in pose_covariance.flatten()),
        linear_velocity=gps_velocity(registers),
        angular_velocity=(0.0, 0.0, 0.0),
        twist_covariance=tuple(float(value) for value in twist_covariance.flatten()),
    )


################################################################################
# Publisher
################################################################################


class Um6Telemetry:
    """
    Publishes the register snapshot once per broadcast cycle
    """

    def __init__(self, callback: Um6TelemetryCallback, logger: logging.Logger) -> None:
        self._callback = callback
        self._logger = logger

        # Outputs always published, and registers expected every cycle
        self._imu_builders: List[Tuple[Um6Topic, TopicBuilder]] = [
            (Um6Topic.IMU, build_imu),
            (Um6Topic.MAG, build_mag),
            (Um6Topic.RPY, build_rpy),
            (Um6Topic.TEMPERATURE, build_temperature),
        ]
        self._imu_sources: Dict[str, Callable[[Um6Registers], Um6Accessor]] = {
            "gyro": lambda r: r.gyro,
            "accel": lambda r: r.accel,
            "mag": lambda r: r.mag,
            "euler": lambda r: r.euler,
            "quat": lambda r: r.quat,
            "covariance": lambda r: r.covariance,
        }

        # Outputs published when the GPS is enabled
        self._gps_builders: List[Tuple[Um6Topic, TopicBuilder]] = [
            (Um6Topic.GPS_STATUS, build_gps_status),
            (Um6Topic.GPS_ABS, build_gps_abs),
            (Um6Topic.GPS_REL, build_gps_rel),
            (Um6Topic.GPS_DOP, build_gps_dop),
            (Um6Topic.GPS_NUM_SAT, build_gps_num_sat),
        ]
        self._gps_odom_builder: TopicBuilder = build_gps_odom

    def on_register_group(
        self, group: RegisterGroup, registers: Um6Registers, config: Um6Config
    ) -> bool:
        """
        Handle a packet received from the device.

        :return: True if the packet completed a broadcast cycle and telemetry
                 was published
        """
        if TRIGGER_REGISTER not in group:
            return False

        self.publish(registers, config)

        return True

    def publish(self, registers: Um6Registers, config: Um6Config) -> None:
        """Publish every subscribed output from the current register values"""
        header = Um6Header(stamp_ns=self._callback.now_ns(), frame_id=config.frame_id)

        self._log_stale(registers)

        builders: List[Tuple[Um6Topic, TopicBuilder]] = list(self._imu_builders)
        if config.gps_enable:
            builders.extend(self._gps_builders)
            if config.gps_odom_topic:
                builders.append((Um6Topic.GPS_ODOM, self._gps_odom_builder))

        for topic, builder in builders:
            if not self._callback.has_subscribers(topic):
                continue
            self._callback.publish(topic, builder(registers, header))

    def _log_stale(self, registers: Um6Registers) -> None:
        # Values not refreshed this cycle are republished as last known
        stale: List[str] = [
            name
            for name, source in self._imu_sources.items()
            if not registers.was_touched(source(registers))
        ]
        if stale:
            self._logger.debug(f"Republishing stale registers: {', '.join(stale)}")

        registers.clear_touched()
