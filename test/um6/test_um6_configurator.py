################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Tests for pushing driver settings to the device."""

from __future__ import annotations

import struct

import pytest

from oasis_um6.um6 import um6_constants as um6
from oasis_um6.um6.um6_config import Um6Config
from oasis_um6.um6.um6_configurator import Um6Configurator
from oasis_um6.um6.um6_configurator import baud_to_bit_setting
from oasis_um6.um6.um6_configurator import communication_bitmask
from oasis_um6.um6.um6_configurator import misc_config_bitmask
from oasis_um6.um6.um6_errors import ConfigurationRejectedError
from oasis_um6.um6.um6_errors import InvalidConfigurationValueError
from test.um6.um6_fakes import FakeTransport
from test.um6.um6_fakes import RecordingLogger


IMU_OUTPUTS: int = (
    um6.UM6_BROADCAST_ENABLED
    | um6.UM6_GYROS_PROC_ENABLED
    | um6.UM6_ACCELS_PROC_ENABLED
    | um6.UM6_MAG_PROC_ENABLED
    | um6.UM6_QUAT_ENABLED
    | um6.UM6_EULER_ENABLED
    | um6.UM6_COV_ENABLED
    | um6.UM6_TEMPERATURE_ENABLED
)


@pytest.mark.parametrize(
    "baud_rate, code",
    [(9600, 0), (14400, 1), (19200, 2), (38400, 3), (57600, 4), (115200, 5)],
)
def test_baud_to_bit_setting(baud_rate: int, code: int) -> None:
    """Ensure supported rates map to their register codes."""
    assert baud_to_bit_setting(baud_rate) == code


def test_invalid_baud_fails_before_any_io() -> None:
    """Ensure an unsupported rate is rejected without talking to the device."""
    transport: FakeTransport = FakeTransport()
    configurator: Um6Configurator = Um6Configurator(transport, RecordingLogger())

    with pytest.raises(InvalidConfigurationValueError):
        configurator.configure(Um6Config(baud=12345))

    assert transport.sent == []


def test_communication_bitmask() -> None:
    """Ensure the IMU outputs and both baud codes are always enabled."""
    config: Um6Config = Um6Config(baud=115200, gps_baud=38400)

    assert communication_bitmask(config) == IMU_OUTPUTS | (5 << 8) | (3 << 11)


def test_communication_bitmask_with_gps() -> None:
    """Ensure the GPS outputs are enabled only with the GPS."""
    config: Um6Config = Um6Config(gps_enable=True)
    gps_outputs: int = (
        um6.UM6_GPS_POSITION_ENABLED
        | um6.UM6_GPS_REL_POSITION_ENABLED
        | um6.UM6_GPS_COURSE_SPEED_ENABLED
        | um6.UM6_GPS_SAT_SUMMARY_ENABLED
        | um6.UM6_GPS_SAT_DATA_ENABLED
    )

    bitmask: int = communication_bitmask(config)

    assert bitmask & gps_outputs == gps_outputs
    assert communication_bitmask(Um6Config()) & gps_outputs == 0


def test_misc_config_bitmask() -> None:
    """Ensure disabled EKF updates are excluded with a warning."""
    logger: RecordingLogger = RecordingLogger()

    all_updates: int = misc_config_bitmask(Um6Config(), logger)
    assert all_updates == (
        um6.UM6_QUAT_ESTIMATE_ENABLED
        | um6.UM6_MAG_UPDATE_ENABLED
        | um6.UM6_ACCEL_UPDATE_ENABLED
    )
    assert logger.messages("warning") == []

    no_mag: int = misc_config_bitmask(Um6Config(mag_updates=False), logger)
    assert no_mag == um6.UM6_QUAT_ESTIMATE_ENABLED | um6.UM6_ACCEL_UPDATE_ENABLED
    assert logger.messages("warning") == ["Excluding magnetometer updates from EKF."]


def test_configure_default_sequence() -> None:
    """Ensure defaults write both config registers, then zero the gyros."""
    transport: FakeTransport = FakeTransport()
    configurator: Um6Configurator = Um6Configurator(transport, RecordingLogger())

    configurator.configure(Um6Config())

    assert transport.sent_addresses == [
        um6.UM6_COMMUNICATION,
        um6.UM6_MISC_CONFIG,
        um6.UM6_ZERO_GYROS,
    ]
    assert transport.sent[0][1] == struct.pack(
        ">I", communication_bitmask(Um6Config())
    )


def test_configure_aborts_on_missing_ack() -> None:
    """Ensure no step runs after one the device doesn't acknowledge."""
    transport: FakeTransport = FakeTransport(acks=[True, False])
    configurator: Um6Configurator = Um6Configurator(transport, RecordingLogger())
    config: Um6Config = Um6Config(mag_ref=(1.0, 0.0, 0.0))

    with pytest.raises(ConfigurationRejectedError):
        configurator.configure(config)

    assert transport.sent_addresses == [um6.UM6_COMMUNICATION, um6.UM6_MISC_CONFIG]


def test_configure_vectors() -> None:
    """Ensure configured vectors are written in order after the commands."""
    transport: FakeTransport = FakeTransport()
    configurator: Um6Configurator = Um6Configurator(transport, RecordingLogger())
    config: Um6Config = Um6Config(
        zero_gyros=False,
        mag_ref=(0.5, -0.25, 1.0),
        gyro_bias=(1.0, -2.0, 3.0),
        gps_home=(45.0, -122.0, 10.0),
    )

    configurator.configure(config)

    assert transport.sent_addresses == [
        um6.UM6_COMMUNICATION,
        um6.UM6_MISC_CONFIG,
        um6.UM6_MAG_REF_X,
        um6.UM6_GYRO_BIAS_XY,
    ]
    assert transport.sent[2][1] == struct.pack(">fff", 0.5, -0.25, 1.0)
    assert transport.sent[3][1] == struct.pack(">hhhh", 1, -2, 3, 0)


def test_configure_gps_home_with_gps() -> None:
    """Ensure the GPS home position is written only with the GPS enabled."""
    transport: FakeTransport = FakeTransport()
    configurator: Um6Configurator = Um6Configurator(transport, RecordingLogger())
    config: Um6Config = Um6Config(gps_enable=True, gps_home=(45.0, -122.0, 10.0))

    configurator.configure(config)

    assert transport.sent_addresses[-1] == um6.UM6_GPS_HOME_LAT
    assert transport.sent[-1][1] == struct.pack(">fff", 45.0, -122.0, 10.0)


def test_unrepresentable_vector_is_rejected() -> None:
    """Ensure a bias outside the register range is a configuration error."""
    transport: FakeTransport = FakeTransport()
    configurator: Um6Configurator = Um6Configurator(transport, RecordingLogger())

    with pytest.raises(InvalidConfigurationValueError):
        configurator.configure(Um6Config(accel_bias=(1.0e6, 0.0, 0.0)))
