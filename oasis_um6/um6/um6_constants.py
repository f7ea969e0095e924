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
Register addresses and bit fields of the CH Robotics UM6 orientation sensor
"""


################################################################################
# Configuration registers
################################################################################


UM6_COMMUNICATION: int = 0x00
UM6_MISC_CONFIG: int = 0x01
UM6_MAG_REF_X: int = 0x02
UM6_ACCEL_REF_X: int = 0x05
UM6_GYRO_BIAS_XY: int = 0x0B
UM6_ACCEL_BIAS_XY: int = 0x0D
UM6_MAG_BIAS_XY: int = 0x0F
UM6_GPS_HOME_LAT: int = 0x31


################################################################################
# Data registers
################################################################################


UM6_STATUS: int = 0x55
UM6_GYRO_PROC_XY: int = 0x5C
UM6_ACCEL_PROC_XY: int = 0x5E
UM6_MAG_PROC_XY: int = 0x60
UM6_EULER_PHI_THETA: int = 0x62
UM6_QUAT_AB: int = 0x64
UM6_ERROR_COV_00: int = 0x66
UM6_TEMPERATURE: int = 0x76
UM6_GPS_LONGITUDE: int = 0x77
UM6_GPS_POSITION_N: int = 0x7A
UM6_GPS_COURSE_SPEED: int = 0x7D
UM6_GPS_SAT_SUMMARY: int = 0x7E


################################################################################
# Command registers
################################################################################


UM6_ZERO_GYROS: int = 0xAC
UM6_RESET_EKF: int = 0xAD
UM6_SET_ACCEL_REF: int = 0xAF
UM6_SET_MAG_REF: int = 0xB0


################################################################################
# Communication register bits
################################################################################


UM6_BROADCAST_ENABLED: int = 1 << 30
UM6_GYROS_PROC_ENABLED: int = 1 << 26
UM6_ACCELS_PROC_ENABLED: int = 1 << 25
UM6_MAG_PROC_ENABLED: int = 1 << 24
UM6_QUAT_ENABLED: int = 1 << 23
UM6_EULER_ENABLED: int = 1 << 22
UM6_COV_ENABLED: int = 1 << 21
UM6_TEMPERATURE_ENABLED: int = 1 << 20
UM6_GPS_POSITION_ENABLED: int = 1 << 19
UM6_GPS_REL_POSITION_ENABLED: int = 1 << 18
UM6_GPS_COURSE_SPEED_ENABLED: int = 1 << 17
UM6_GPS_SAT_SUMMARY_ENABLED: int = 1 << 16
UM6_GPS_SAT_DATA_ENABLED: int = 1 << 15

UM6_GPS_BAUD_START_BIT: int = 11
UM6_BAUD_START_BIT: int = 8


################################################################################
# Misc config register bits
################################################################################


UM6_MAG_UPDATE_ENABLED: int = 1 << 31
UM6_ACCEL_UPDATE_ENABLED: int = 1 << 30
UM6_QUAT_ESTIMATE_ENABLED: int = 1 << 29


################################################################################
# GPS satellite summary fields
################################################################################


# Fix mode: 0, no GPS; 1, no fix; 2, 2D fix; 3, 3D fix
UM6_GPS_MODE_START_BIT: int = 30
UM6_GPS_MODE_MASK: int = 0x03

UM6_GPS_SAT_COUNT_START_BIT: int = 26
UM6_GPS_SAT_COUNT_MASK: int = 0x0F

UM6_GPS_HDOP_START_BIT: int = 16
UM6_GPS_HDOP_MASK: int = 0x3FF

UM6_GPS_VDOP_START_BIT: int = 6
UM6_GPS_VDOP_MASK: int = 0x3FF


################################################################################
# Baud rate codes
################################################################################


UM6_BAUD_CODES: dict[int, int] = {
    9600: 0x0,
    14400: 0x1,
    19200: 0x2,
    38400: 0x3,
    57600: 0x4,
    115200: 0x5,
}


################################################################################
# Packet framing
################################################################################


UM6_PACKET_HEADER: bytes = b"snp"

UM6_PT_HAS_DATA: int = 1 << 7
UM6_PT_IS_BATCH: int = 1 << 6
UM6_PT_BATCH_LENGTH_START_BIT: int = 2
UM6_PT_BATCH_LENGTH_MASK: int = 0x0F
UM6_PT_COMMAND_FAILED: int = 1 << 0

UM6_REGISTER_SIZE: int = 4
UM6_REGISTER_COUNT: int = 256
