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
Failure categories raised by the UM6 driver
"""


class Um6Error(Exception):
    """Base class for UM6 driver failures."""


class TransportOpenError(Um6Error):
    """Raised when the serial port cannot be opened."""


class TransportIOError(Um6Error):
    """Raised when reading from or writing to an open port fails."""


class TransportTimeoutError(TransportIOError):
    """Raised when no valid packet arrives within the receive timeout."""


class ConfigurationError(Um6Error):
    """Raised when the device cannot be configured."""


class ConfigurationRejectedError(ConfigurationError):
    """Raised when the device does not acknowledge a configuration step."""


class InvalidConfigurationValueError(ConfigurationError):
    """Raised for a configuration value that can't be sent to the device."""


class CommandFailureError(Um6Error):
    """Raised when an on-demand device command is not acknowledged."""
