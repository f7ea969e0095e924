################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See the file LICENSE.txt for more information.
#
################################################################################

from launch.launch_description import LaunchDescription
from launch_ros.actions import Node


################################################################################
# ROS parameters
################################################################################


ROS_NAMESPACE: str = "oasis"

PYTHON_PACKAGE_NAME: str = "oasis_um6"


################################################################################
# Device parameters
################################################################################


SERIAL_PORT: str = "/dev/ttyUSB0"

FRAME_ID: str = "imu_link"


################################################################################
# Launch description
################################################################################


def generate_launch_description() -> LaunchDescription:
    ld = LaunchDescription()

    um6_driver_node: Node = Node(
        namespace=ROS_NAMESPACE,
        package=PYTHON_PACKAGE_NAME,
        executable="um6_driver",
        name="um6_driver",
        output="screen",
        parameters=[
            {
                "port": SERIAL_PORT,
                "baud": 115200,
                "frame_id": FRAME_ID,
                "mag_updates": True,
                "accel_updates": True,
                "zero_gyros": True,
                "gps_enable": False,
            },
        ],
    )
    ld.add_action(um6_driver_node)

    return ld
