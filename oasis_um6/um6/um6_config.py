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
Driver settings, read from parameters once per connection attempt
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from typing import Mapping
from typing import Optional
from typing import Tuple

from oasis_um6.um6.um6_errors import InvalidConfigurationValueError


Vector3 = Tuple[float, float, float]


################################################################################
# Parameter names and defaults
################################################################################


PARAM_PORT: str = "port"
DEFAULT_PORT: str = "/dev/ttyUSB0"

PARAM_BAUD: str = "baud"
DEFAULT_BAUD: int = 115200

PARAM_GPS_ENABLE: str = "gps_enable"
DEFAULT_GPS_ENABLE: bool = False

PARAM_GPS_BAUD: str = "gps_baud"
DEFAULT_GPS_BAUD: int = 9600

PARAM_FRAME_ID: str = "frame_id"
DEFAULT_FRAME_ID: str = "imu_link"

PARAM_MAG_UPDATES: str = "mag_updates"
DEFAULT_MAG_UPDATES: bool = True

PARAM_ACCEL_UPDATES: str = "accel_updates"
DEFAULT_ACCEL_UPDATES: bool = True

# Zeroing can be disabled when an external process knows when the vehicle is
# stationary and calls the reset service instead
PARAM_ZERO_GYROS: str = "zero_gyros"
DEFAULT_ZERO_GYROS: bool = True

# Topic for odometry synthesized from GPS, unset or empty to disable
PARAM_GPS_ODOM: str = "gps_odom"

# Time without a valid packet before the connection is dropped, seconds
PARAM_RECEIVE_TIMEOUT_SEC: str = "receive_timeout_sec"
DEFAULT_RECEIVE_TIMEOUT_SEC: float = 1.0

# Delay between connection attempts, seconds
PARAM_RECONNECT_INTERVAL_SEC: str = "reconnect_interval_sec"
DEFAULT_RECONNECT_INTERVAL_SEC: float = 1.0

# Vector parameters, each given as <name>.x, <name>.y and <name>.z
PARAM_MAG_REF: str = "mag_ref"
PARAM_ACCEL_REF: str = "accel_ref"
PARAM_MAG_BIAS: str = "mag_bias"
PARAM_ACCEL_BIAS: str = "accel_bias"
PARAM_GYRO_BIAS: str = "gyro_bias"
PARAM_GPS_HOME: str = "gps_home"

VECTOR_AXES: Tuple[str, str, str] = ("x", "y", "z")


@dataclass(frozen=True)
class Um6Config:
    """
    Snapshot of the driver settings for the lifetime of one connection
    """

    port: str = DEFAULT_PORT
    baud: int = DEFAULT_BAUD
    gps_enable: bool = DEFAULT_GPS_ENABLE
    gps_baud: int = DEFAULT_GPS_BAUD
    frame_id: str = DEFAULT_FRAME_ID
    mag_updates: bool = DEFAULT_MAG_UPDATES
    accel_updates: bool = DEFAULT_ACCEL_UPDATES
    zero_gyros: bool = DEFAULT_ZERO_GYROS
    gps_odom_topic: Optional[str] = None
    mag_ref: Optional[Vector3] = None
    accel_ref: Optional[Vector3] = None
    mag_bias: Optional[Vector3] = None
    accel_bias: Optional[Vector3] = None
    gyro_bias: Optional[Vector3] = None
    gps_home: Optional[Vector3] = None
    receive_timeout_sec: float = DEFAULT_RECEIVE_TIMEOUT_SEC
    reconnect_interval_sec: float = DEFAULT_RECONNECT_INTERVAL_SEC

    @classmethod
    def from_parameters(cls, params: Mapping[str, Any]) -> Um6Config:
        """
        Build a config from a flat mapping of parameter names to values.

        Parameters that are absent, or set to None, take their defaults.

        :raises InvalidConfigurationValueError: If a value has the wrong type, or
                                                a vector is only partly given
        """
        gps_odom_topic: str = str(_get(params, PARAM_GPS_ODOM, ""))

        return cls(
            port=str(_get(params, PARAM_PORT, DEFAULT_PORT)),
            baud=_as_int(params, PARAM_BAUD, DEFAULT_BAUD),
            gps_enable=_as_bool(params, PARAM_GPS_ENABLE, DEFAULT_GPS_ENABLE),
            gps_baud=_as_int(params, PARAM_GPS_BAUD, DEFAULT_GPS_BAUD),
            frame_id=str(_get(params, PARAM_FRAME_ID, DEFAULT_FRAME_ID)),
            mag_updates=_as_bool(params, PARAM_MAG_UPDATES, DEFAULT_MAG_UPDATES),
            accel_updates=_as_bool(
                params, PARAM_ACCEL_UPDATES, DEFAULT_ACCEL_UPDATES
            ),
            zero_gyros=_as_bool(params, PARAM_ZERO_GYROS, DEFAULT_ZERO_GYROS),
            gps_odom_topic=gps_odom_topic or None,
            mag_ref=parse_vector3(params, PARAM_MAG_REF),
            accel_ref=parse_vector3(params, PARAM_ACCEL_REF),
            mag_bias=parse_vector3(params, PARAM_MAG_BIAS),
            accel_bias=parse_vector3(params, PARAM_ACCEL_BIAS),
            gyro_bias=parse_vector3(params, PARAM_GYRO_BIAS),
            gps_home=parse_vector3(params, PARAM_GPS_HOME),
            receive_timeout_sec=_as_float(
                params, PARAM_RECEIVE_TIMEOUT_SEC, DEFAULT_RECEIVE_TIMEOUT_SEC
            ),
            reconnect_interval_sec=_as_float(
                params, PARAM_RECONNECT_INTERVAL_SEC, DEFAULT_RECONNECT_INTERVAL_SEC
            ),
        )


def parse_vector3(params: Mapping[str, Any], name: str) -> Optional[Vector3]:
    """
    Read an optional vector given as ``<name>.x``, ``<name>.y``, ``<name>.z``.

    :return: The vector, or None if no axis is given

    :raises InvalidConfigurationValueError: If only some axes are given
    """
    keys: list[str] = [f"{name}.{axis}" for axis in VECTOR_AXES]
    values: list[Any] = [params.get(key) for key in keys]

    present: list[bool] = [value is not None for value in values]
    if not any(present):
        return None

    if not all(present):
        missing: list[str] = [key for key, value in zip(keys, values) if value is None]
        raise InvalidConfigurationValueError(
            f"Vector parameter '{name}' is missing {', '.join(missing)}"
        )

    try:
        return float(values[0]), float(values[1]), float(values[2])
    except (TypeError, ValueError) as err:
        raise InvalidConfigurationValueError(
            f"Vector parameter '{name}' must be numeric: {err}"
        ) from err


def _get(params: Mapping[str, Any], name: str, default: Any) -> Any:
    value: Any = params.get(name)
    return default if value is None else value


def _as_int(params: Mapping[str, Any], name: str, default: int) -> int:
    value: Any = _get(params, name, default)
    try:
        return int(value)
    except (TypeError, ValueError) as err:
        raise InvalidConfigurationValueError(
            f"Parameter '{name}' must be an integer, got {value!r}"
        ) from err


def _as_float(params: Mapping[str, Any], name: str, default: float) -> float:
    value: Any = _get(params, name, default)
    try:
        return float(value)
    except (TypeError, ValueError) as err:
        raise InvalidConfigurationValueError(
            f"Parameter '{name}' must be a number, got {value!r}"
        ) from err


def _as_bool(params: Mapping[str, Any], name: str, default: bool) -> bool:
    # Strings such as "false" are truthy, so only real booleans are accepted
    value: Any = _get(params, name, default)
    if not isinstance(value, bool):
        raise InvalidConfigurationValueError(
            f"Parameter '{name}' must be a boolean, got {value!r}"
        )
    return value
