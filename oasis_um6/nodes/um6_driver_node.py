################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

from typing import Any
from typing import Callable
from typing import Dict
from typing import Optional

import rclpy
import rclpy.node
import rclpy.publisher
import rclpy.qos
import rclpy.service
from geometry_msgs.msg import Vector3Stamped
from nav_msgs.msg import Odometry as OdometryMsg
from sensor_msgs.msg import Imu as ImuMsg
from std_msgs.msg import Float32 as Float32Msg
from std_msgs.msg import UInt8 as UInt8Msg

from oasis_msgs.srv import UM6Reset as UM6ResetSvc
from oasis_um6.ros.um6_ros_msgs import to_float32_msg
from oasis_um6.ros.um6_ros_msgs import to_imu_msg
from oasis_um6.ros.um6_ros_msgs import to_odom_msg
from oasis_um6.ros.um6_ros_msgs import to_uint8_msg
from oasis_um6.ros.um6_ros_msgs import to_vector3_stamped_msg
from oasis_um6.um6.um6_config import Um6Config
from oasis_um6.um6.um6_reset import Um6ResetHandler
from oasis_um6.um6.um6_supervisor import Um6DriverCallback
from oasis_um6.um6.um6_supervisor import Um6Supervisor
from oasis_um6.um6.um6_telemetry import Um6Telemetry
from oasis_um6.um6.um6_telemetry import Um6TelemetryCallback
from oasis_um6.um6.um6_types import Um6ResetRequest
from oasis_um6.um6.um6_types import Um6Topic


################################################################################
# ROS parameters
################################################################################


NODE_NAME = "um6_driver"

# ROS services
RESET_SERVICE = "reset"

# Message type and ROS message builder of each output
TOPIC_TYPES: Dict[Um6Topic, Any] = {
    Um6Topic.IMU: ImuMsg,
    Um6Topic.MAG: Vector3Stamped,
    Um6Topic.RPY: Vector3Stamped,
    Um6Topic.TEMPERATURE: Float32Msg,
    Um6Topic.GPS_ABS: Vector3Stamped,
    Um6Topic.GPS_REL: Vector3Stamped,
    Um6Topic.GPS_NUM_SAT: UInt8Msg,
    Um6Topic.GPS_DOP: Vector3Stamped,
    Um6Topic.GPS_STATUS: UInt8Msg,
    Um6Topic.GPS_ODOM: OdometryMsg,
}

TOPIC_BUILDERS: Dict[Um6Topic, Callable[[Any], Any]] = {
    Um6Topic.IMU: to_imu_msg,
    Um6Topic.MAG: to_vector3_stamped_msg,
    Um6Topic.RPY: to_vector3_stamped_msg,
    Um6Topic.TEMPERATURE: to_float32_msg,
    Um6Topic.GPS_ABS: to_vector3_stamped_msg,
    Um6Topic.GPS_REL: to_vector3_stamped_msg,
    Um6Topic.GPS_NUM_SAT: to_uint8_msg,
    Um6Topic.GPS_DOP: to_vector3_stamped_msg,
    Um6Topic.GPS_STATUS: to_uint8_msg,
    Um6Topic.GPS_ODOM: to_odom_msg,
}

IMU_TOPICS = [Um6Topic.IMU, Um6Topic.MAG, Um6Topic.RPY, Um6Topic.TEMPERATURE]

GPS_TOPICS = [
    Um6Topic.GPS_ABS,
    Um6Topic.GPS_REL,
    Um6Topic.GPS_NUM_SAT,
    Um6Topic.GPS_DOP,
    Um6Topic.GPS_STATUS,
]


################################################################################
# ROS node
################################################################################


class Um6DriverNode(rclpy.node.Node, Um6DriverCallback, Um6TelemetryCallback):
    def __init__(self) -> None:
        """
        Initialize resources.
        """
        # Optional parameters, such as vectors, only exist when overridden
        super().__init__(
            NODE_NAME,
            allow_undeclared_parameters=True,
            automatically_declare_parameters_from_overrides=True,
        )

        # Publishers are created once, from the settings at startup. GPS
        # settings that change later only take effect for topics that exist.
        startup_config: Um6Config = self._read_config()

        qos_profile: rclpy.qos.QoSProfile = rclpy.qos.QoSProfile(depth=1)

        topics: list[Um6Topic] = list(IMU_TOPICS)
        if startup_config.gps_enable:
            topics.extend(GPS_TOPICS)
            if startup_config.gps_odom_topic:
                topics.append(Um6Topic.GPS_ODOM)

        self._publishers_by_topic: Dict[Um6Topic, rclpy.publisher.Publisher] = {}
        for topic in topics:
            topic_name: str = (
                startup_config.gps_odom_topic
                if topic is Um6Topic.GPS_ODOM and startup_config.gps_odom_topic
                else topic.value
            )
            self._publishers_by_topic[topic] = self.create_publisher(
                msg_type=TOPIC_TYPES[topic],
                topic=topic_name,
                qos_profile=qos_profile,
            )

        # Reset service, advertised while the device is streaming
        self._reset_handler: Optional[Um6ResetHandler] = None
        self._reset_service: Optional[rclpy.service.Service] = None

        # Device supervision
        self._telemetry = Um6Telemetry(self, self.get_logger())
        self._supervisor = Um6Supervisor(self, self._telemetry, self.get_logger())

        self.get_logger().info("UM6 driver initialized")

    def run(self) -> None:
        """Run the driver until ROS shuts down"""
        self._supervisor.run()

    def stop(self) -> None:
        """Stop the driver and cleanup ROS resources"""
        self._supervisor.stop()

        self.get_logger().info("UM6 driver deinitialized")

        # Destroy the node explicitly. Problems can occur when the garbage
        # collector automatically destroys the node object after ROS has
        # shut down.
        self.destroy_node()

    def is_ok(self) -> bool:
        """Implement Um6DriverCallback"""
        return rclpy.ok()

    def load_config(self) -> Um6Config:
        """Implement Um6DriverCallback"""
        return self._read_config()

    def on_streaming(self, reset_handler: Um6ResetHandler) -> None:
        """Implement Um6DriverCallback"""
        self._reset_handler = reset_handler
        if self._reset_service is None:
            self._reset_service = self.create_service(
                srv_type=UM6ResetSvc,
                srv_name=RESET_SERVICE,
                callback=self._handle_reset,
            )

    def on_disconnected(self) -> None:
        """Implement Um6DriverCallback"""
        self._reset_handler = None
        if self._reset_service is not None:
            # After shutdown the service is released with the node
            if rclpy.ok():
                self.destroy_service(self._reset_service)
            self._reset_service = None

    def spin_once(self) -> None:
        """Implement Um6DriverCallback"""
        rclpy.spin_once(self, timeout_sec=0.0)

    def now_ns(self) -> int:
        """Implement Um6TelemetryCallback"""
        return self.get_clock().now().nanoseconds

    def has_subscribers(self, topic: Um6Topic) -> bool:
        """Implement Um6TelemetryCallback"""
        publisher: Optional[rclpy.publisher.Publisher] = self._publishers_by_topic.get(
            topic
        )
        return publisher is not None and publisher.get_subscription_count() > 0

    def publish(self, topic: Um6Topic, data: Any) -> None:
        """Implement Um6TelemetryCallback"""
        self._publishers_by_topic[topic].publish(TOPIC_BUILDERS[topic](data))

    def _read_config(self) -> Um6Config:
        params: Dict[str, Any] = {
            name: parameter.value
            for name, parameter in self.get_parameters_by_prefix("").items()
        }
        return Um6Config.from_parameters(params)

    def _handle_reset(
        self, request: UM6ResetSvc.Request, response: UM6ResetSvc.Response
    ) -> UM6ResetSvc.Response:
        """Handle ROS 2 requests to re-issue device commands"""
        if self._reset_handler is None:
            self.get_logger().error("Reset requested while the device is offline")
            response.success = False
            return response

        # Translate parameters
        reset_request = Um6ResetRequest(
            zero_gyros=request.zero_gyros,
            reset_ekf=request.reset_ekf,
            set_mag_ref=request.set_mag_ref,
            set_accel_ref=request.set_accel_ref,
        )

        # Perform service. A rejected command fails this request only; I/O
        # errors propagate to the supervisor and drop the connection.
        response.success = self._reset_handler.try_handle(reset_request)

        return response
