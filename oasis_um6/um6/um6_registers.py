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
Typed view over the UM6 register file
"""

from __future__ import annotations

import enum
import math
import struct
from typing import Union

from oasis_um6.um6 import um6_constants as um6


Number = Union[int, float]

# Degrees to radians
TO_RADIANS: float = math.pi / 180.0


class FieldType(enum.Enum):
    """Encoding of the fields packed into 32-bit big-endian registers"""

    INT16 = ">h"
    UINT16 = ">H"
    UINT32 = ">I"
    FLOAT32 = ">f"

    @property
    def width(self) -> int:
        return struct.calcsize(self.value)

    @property
    def is_integer(self) -> bool:
        return self is not FieldType.FLOAT32


class Um6Accessor:
    """
    Accessor for a run of consecutive fields in the register file.

    Fields are packed most-significant first, so a 3-field INT16 accessor at
    address A places X in the high half of A, Y in the low half of A, and Z in
    the high half of A + 1. An accessor with zero fields names a command
    register.
    """

    def __init__(
        self,
        registers: Um6Registers,
        address: int,
        length: int = 0,
        scale: float = 1.0,
        field_type: FieldType = FieldType.INT16,
    ) -> None:
        self._registers = registers
        self.address: int = address
        self.length: int = length
        self.scale: float = scale
        self.field_type: FieldType = field_type

    @property
    def register_count(self) -> int:
        """Number of 32-bit registers spanned by this accessor"""
        total_bytes: int = self.length * self.field_type.width
        return -(-total_bytes // um6.UM6_REGISTER_SIZE)

    def get(self, index: int) -> Number:
        """Get the raw value of a field"""
        value: Number = struct.unpack_from(
            self.field_type.value, self._registers.raw, self._offset(index)
        )[0]
        return value

    def get_scaled(self, index: int) -> float:
        """Get a field converted to physical units"""
        return float(self.get(index)) * self.scale

    def set(self, index: int, value: Number) -> None:
        """Set the raw value of a field"""
        if self.field_type.is_integer:
            value = int(value)
        try:
            struct.pack_into(
                self.field_type.value, self._registers.raw, self._offset(index), value
            )
        except struct.error as err:
            raise ValueError(
                f"Value {value} out of range for register 0x{self.address:02X}"
            ) from err

    def set_scaled(self, index: int, value: float) -> None:
        """Set a field from a value in physical units"""
        raw: Number = value / self.scale
        if self.field_type.is_integer:
            raw = int(round(raw))
        self.set(index, raw)

    def payload(self) -> bytes:
        """Get the bytes of every register spanned by this accessor"""
        return self._registers.read(self.address, self.register_count)

    def _offset(self, index: int) -> int:
        if not 0 <= index < self.length:
            raise IndexError(
                f"Field {index} out of range for register 0x{self.address:02X}"
            )
        return self.address * um6.UM6_REGISTER_SIZE + index * self.field_type.width


class Um6Registers:
    """
    Register file of the UM6, with named accessors for the registers used by
    the driver.

    Registers written through :meth:`write` are remembered as touched until
    :meth:`clear_touched` is called.
    """

    def __init__(self) -> None:
        self.raw: bytearray = bytearray(um6.UM6_REGISTER_COUNT * um6.UM6_REGISTER_SIZE)
        self._touched: set[int] = set()

        # Data registers
        self.status = Um6Accessor(self, um6.UM6_STATUS, 1, 1.0, FieldType.UINT32)
        self.gyro = Um6Accessor(
            self, um6.UM6_GYRO_PROC_XY, 3, 0.0610352 * TO_RADIANS, FieldType.INT16
        )
        self.accel = Um6Accessor(
            self, um6.UM6_ACCEL_PROC_XY, 3, 0.000183105, FieldType.INT16
        )
        self.mag = Um6Accessor(
            self, um6.UM6_MAG_PROC_XY, 3, 0.000305176, FieldType.INT16
        )
        self.euler = Um6Accessor(
            self, um6.UM6_EULER_PHI_THETA, 3, 0.0109863 * TO_RADIANS, FieldType.INT16
        )
        self.quat = Um6Accessor(self, um6.UM6_QUAT_AB, 4, 0.0000335693, FieldType.INT16)
        self.covariance = Um6Accessor(
            self, um6.UM6_ERROR_COV_00, 16, 1.0, FieldType.FLOAT32
        )
        self.temperature = Um6Accessor(
            self, um6.UM6_TEMPERATURE, 1, 1.0, FieldType.FLOAT32
        )
        self.gps_abs = Um6Accessor(
            self, um6.UM6_GPS_LONGITUDE, 3, 1.0, FieldType.FLOAT32
        )
        self.gps_rel = Um6Accessor(
            self, um6.UM6_GPS_POSITION_N, 3, 1.0, FieldType.FLOAT32
        )
        self.gps_course_speed = Um6Accessor(
            self, um6.UM6_GPS_COURSE_SPEED, 2, 1.0, FieldType.UINT16
        )
        self.gps_status = Um6Accessor(
            self, um6.UM6_GPS_SAT_SUMMARY, 1, 1.0, FieldType.UINT32
        )

        # Configuration registers
        self.communication = Um6Accessor(
            self, um6.UM6_COMMUNICATION, 1, 1.0, FieldType.UINT32
        )
        self.misc_config = Um6Accessor(
            self, um6.UM6_MISC_CONFIG, 1, 1.0, FieldType.UINT32
        )
        self.mag_ref = Um6Accessor(self, um6.UM6_MAG_REF_X, 3, 1.0, FieldType.FLOAT32)
        self.accel_ref = Um6Accessor(
            self, um6.UM6_ACCEL_REF_X, 3, 1.0, FieldType.FLOAT32
        )
        self.gyro_bias = Um6Accessor(
            self, um6.UM6_GYRO_BIAS_XY, 3, 1.0, FieldType.INT16
        )
        self.accel_bias = Um6Accessor(
            self, um6.UM6_ACCEL_BIAS_XY, 3, 1.0, FieldType.INT16
        )
        self.mag_bias = Um6Accessor(self, um6.UM6_MAG_BIAS_XY, 3, 1.0, FieldType.INT16)
        self.gps_home = Um6Accessor(
            self, um6.UM6_GPS_HOME_LAT, 3, 1.0, FieldType.FLOAT32
        )

        # Command registers
        self.cmd_zero_gyros = Um6Accessor(self, um6.UM6_ZERO_GYROS)
        self.cmd_reset_ekf = Um6Accessor(self, um6.UM6_RESET_EKF)
        self.cmd_set_accel_ref = Um6Accessor(self, um6.UM6_SET_ACCEL_REF)
        self.cmd_set_mag_ref = Um6Accessor(self, um6.UM6_SET_MAG_REF)

    def read(self, address: int, count: int) -> bytes:
        """Read the bytes of ``count`` registers starting at ``address``"""
        start: int = address * um6.UM6_REGISTER_SIZE
        return bytes(self.raw[start : start + count * um6.UM6_REGISTER_SIZE])

    def write(self, address: int, data: bytes) -> None:
        """Store register data received from the device"""
        if len(data) % um6.UM6_REGISTER_SIZE != 0:
            raise ValueError(f"Register data length {len(data)} is not word-aligned")

        count: int = len(data) // um6.UM6_REGISTER_SIZE
        if address + count > um6.UM6_REGISTER_COUNT:
            raise ValueError(
                f"Register data at 0x{address:02X} overruns the register file"
            )

        start: int = address * um6.UM6_REGISTER_SIZE
        self.raw[start : start + len(data)] = data
        self._touched.update(range(address, address + count))

    def was_touched(self, accessor: Um6Accessor) -> bool:
        """Check if every register of an accessor was written since the last clear"""
        return all(
            address in self._touched
            for address in range(
                accessor.address, accessor.address + accessor.register_count
            )
        )

    def clear_touched(self) -> None:
        self._touched.clear()
