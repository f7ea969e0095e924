################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

#
# Bridge between a CH Robotics UM6 orientation sensor and ROS.
#
# Dependencies:
#
#  * pyserial (sudo apt install python3-serial)
#

import rclpy

from oasis_um6.nodes.um6_driver_node import Um6DriverNode


################################################################################
# ROS entry point
################################################################################


def main(args=None) -> None:
    rclpy.init(args=args)

    node = Um6DriverNode()

    try:
        node.run()
    except KeyboardInterrupt:
        pass
    finally:
        node.stop()

    rclpy.try_shutdown()
