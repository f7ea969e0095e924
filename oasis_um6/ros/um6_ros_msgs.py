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
ROS message builders for UM6 telemetry
"""

from __future__ import annotations

from builtin_interfaces.msg import Time as TimeMsg
from geometry_msgs.msg import Quaternion
from geometry_msgs.msg import Vector3
from geometry_msgs.msg import Vector3Stamped
from nav_msgs.msg import Odometry as OdometryMsg
from sensor_msgs.msg import Imu as ImuMsg
from std_msgs.msg import Float32 as Float32Msg
from std_msgs.msg import Header as HeaderMsg
from std_msgs.msg import UInt8 as UInt8Msg

from oasis_um6.um6.um6_types import ImuData
from oasis_um6.um6.um6_types import OdometryData
from oasis_um6.um6.um6_types import QuaternionXyzw
from oasis_um6.um6.um6_types import ScalarData
from oasis_um6.um6.um6_types import Um6Header
from oasis_um6.um6.um6_types import Vector3Data


NANOSECONDS_PER_SECOND: int = 1_000_000_000


def to_imu_msg(data: ImuData) -> ImuMsg:
    msg: ImuMsg = ImuMsg()
    msg.header = _to_header(data.header)
    msg.orientation = _to_quaternion(data.orientation)
    msg.orientation_covariance = [float(value) for value in data.orientation_covariance]
    msg.angular_velocity = _to_vector3(data.angular_velocity)
    msg.linear_acceleration = _to_vector3(data.linear_acceleration)

    return msg


def to_vector3_stamped_msg(data: Vector3Data) -> Vector3Stamped:
    msg: Vector3Stamped = Vector3Stamped()
    msg.header = _to_header(data.header)
    msg.vector = _to_vector3(data.vector)

    return msg


def to_float32_msg(data: ScalarData) -> Float32Msg:
    return Float32Msg(data=float(data.value))


def to_uint8_msg(data: ScalarData) -> UInt8Msg:
    return UInt8Msg(data=int(data.value))


def to_odom_msg(data: OdometryData) -> OdometryMsg:
    msg: OdometryMsg = OdometryMsg()
    msg.header = _to_header(data.header)
    msg.child_frame_id = data.child_frame_id

    msg.pose.pose.position.x = data.position[0]
    msg.pose.pose.position.y = data.position[1]
    msg.pose.pose.position.z = data.position[2]
    msg.pose.pose.orientation = _to_quaternion(data.orientation)
    msg.pose.covariance = [float(value) for value in data.pose_covariance]

    msg.twist.twist.linear = _to_vector3(data.linear_velocity)
    msg.twist.twist.angular = _to_vector3(data.angular_velocity)
    msg.twist.covariance = [float(value) for value in data.twist_covariance]

    return msg


def _to_header(header: Um6Header) -> HeaderMsg:
    msg: HeaderMsg = HeaderMsg()
    msg.stamp = TimeMsg(
        sec=header.stamp_ns // NANOSECONDS_PER_SECOND,
        nanosec=header.stamp_ns % NANOSECONDS_PER_SECOND,
    )
    msg.frame_id = header.frame_id

    return msg


def _to_quaternion(q_xyzw: QuaternionXyzw) -> Quaternion:
    return Quaternion(x=q_xyzw[0], y=q_xyzw[1], z=q_xyzw[2], w=q_xyzw[3])


def _to_vector3(vector: tuple[float, float, float]) -> Vector3:
    return Vector3(x=vector[0], y=vector[1], z=vector[2])
