################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

import logging
from typing import Optional

from oasis_um6.um6 import um6_constants as um6
from oasis_um6.um6.um6_config import Um6Config
from oasis_um6.um6.um6_config import Vector3
from oasis_um6.um6.um6_errors import ConfigurationRejectedError
from oasis_um6.um6.um6_errors import InvalidConfigurationValueError
from oasis_um6.um6.um6_registers import Um6Accessor
from oasis_um6.um6.um6_registers import Um6Registers
from oasis_um6.um6.um6_transport import Um6Transport


def baud_to_bit_setting(baud_rate: int) -> int:
    """
    Translate a baud rate to its code in the communication register.

    :raises InvalidConfigurationValueError: If the device doesn't support the rate
    """
    try:
        return um6.UM6_BAUD_CODES[baud_rate]
    except KeyError:
        raise InvalidConfigurationValueError(
            f"Invalid baud rate {baud_rate}, expected one of "
            f"{sorted(um6.UM6_BAUD_CODES)}"
        ) from None


def communication_bitmask(config: Um6Config) -> int:
    """Compute the communication register, enabling the outputs we publish"""
    comm_reg: int = (
        um6.UM6_BROADCAST_ENABLED
        | um6.UM6_GYROS_PROC_ENABLED
        | um6.UM6_ACCELS_PROC_ENABLED
        | um6.UM6_MAG_PROC_ENABLED
        | um6.UM6_QUAT_ENABLED
        | um6.UM6_EULER_ENABLED
        | um6.UM6_COV_ENABLED
        | um6.UM6_TEMPERATURE_ENABLED
        | baud_to_bit_setting(config.baud) << um6.UM6_BAUD_START_BIT
        | baud_to_bit_setting(config.gps_baud) << um6.UM6_GPS_BAUD_START_BIT
    )

    if config.gps_enable:
        comm_reg |= (
            um6.UM6_GPS_POSITION_ENABLED
            | um6.UM6_GPS_REL_POSITION_ENABLED
            | um6.UM6_GPS_COURSE_SPEED_ENABLED
            | um6.UM6_GPS_SAT_SUMMARY_ENABLED
            | um6.UM6_GPS_SAT_DATA_ENABLED
        )

    return comm_reg


def misc_config_bitmask(config: Um6Config, logger: logging.Logger) -> int:
    """Compute the misc config register, selecting the EKF measurement updates"""
    misc_config_reg: int = um6.UM6_QUAT_ESTIMATE_ENABLED

    if config.mag_updates:
        misc_config_reg |= um6.UM6_MAG_UPDATE_ENABLED
    else:
        logger.warning("Excluding magnetometer updates from EKF.")

    if config.accel_updates:
        misc_config_reg |= um6.UM6_ACCEL_UPDATE_ENABLED
    else:
        logger.warning("Excluding accelerometer updates from EKF.")

    return misc_config_reg


class Um6Configurator:
    """
    Pushes the driver settings to a freshly connected UM6.

    Every step waits for the device to acknowledge, and the sequence stops at
    the first step that isn't acknowledged.
    """

    def __init__(self, transport: Um6Transport, logger: logging.Logger) -> None:
        self._transport = transport
        self._logger = logger

        # Scratch registers holding the values being written
        self._registers = Um6Registers()

    def configure(self, config: Um6Config) -> None:
        """
        Send the configuration to the device.

        :raises ConfigurationRejectedError: If a step is not acknowledged
        :raises InvalidConfigurationValueError: If a setting has no device encoding
        """
        r: Um6Registers = self._registers

        if config.gps_enable:
            self._logger.info("GPS enabled")

        # Enable the outputs we require
        r.communication.set(0, communication_bitmask(config))
        if not self._transport.send_wait_ack(r.communication):
            raise ConfigurationRejectedError("Unable to set communication register.")

        # Optionally disable mag and accel updates in the sensor's EKF
        r.misc_config.set(0, misc_config_bitmask(config, self._logger))
        if not self._transport.send_wait_ack(r.misc_config):
            raise ConfigurationRejectedError("Unable to set misc config register.")

        if config.zero_gyros:
            self._send_command(r.cmd_zero_gyros, "zero gyroscopes")

        self._configure_vector3(r.mag_ref, config.mag_ref, "magnetic reference vector")
        self._configure_vector3(
            r.accel_ref, config.accel_ref, "accelerometer reference vector"
        )
        self._configure_vector3(r.mag_bias, config.mag_bias, "magnetic bias vector")
        self._configure_vector3(
            r.accel_bias, config.accel_bias, "accelerometer bias vector"
        )
        self._configure_vector3(r.gyro_bias, config.gyro_bias, "gyroscope bias vector")

        if config.gps_enable:
            self._configure_vector3(
                r.gps_home, config.gps_home, "gps home position vector"
            )

    def _send_command(self, accessor: Um6Accessor, human_name: str) -> None:
        self._logger.info(f"Sending command: {human_name}")
        if not self._transport.send_wait_ack(accessor):
            raise ConfigurationRejectedError(f"Command to device failed: {human_name}")

    def _configure_vector3(
        self, accessor: Um6Accessor, vector: Optional[Vector3], human_name: str
    ) -> None:
        """Write an XYZ vector into consecutive fields, if it's configured"""
        if accessor.length != 3:
            raise ValueError("Only 3-field registers can be configured as vectors")

        if vector is None:
            return

        x, y, z = vector
        self._logger.info(f"Configuring {human_name} to ({x}, {y}, {z})")

        try:
            accessor.set_scaled(0, x)
            accessor.set_scaled(1, y)
            accessor.set_scaled(2, z)
        except ValueError as err:
            raise InvalidConfigurationValueError(
                f"Invalid {human_name}: {err}"
            ) from err

        if not self._transport.send_wait_ack(accessor):
            raise ConfigurationRejectedError(f"Unable to configure {human_name}.")
