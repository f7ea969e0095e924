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
from typing import List
from typing import Tuple

from oasis_um6.um6.um6_errors import CommandFailureError
from oasis_um6.um6.um6_registers import Um6Accessor
from oasis_um6.um6.um6_registers import Um6Registers
from oasis_um6.um6.um6_transport import Um6Transport
from oasis_um6.um6.um6_types import Um6ResetRequest


class Um6ResetHandler:
    """
    Issues device commands on demand, over the transport of the current
    connection
    """

    def __init__(self, transport: Um6Transport, logger: logging.Logger) -> None:
        self._transport = transport
        self._logger = logger
        self._registers = Um6Registers()

    def handle(self, request: Um6ResetRequest) -> None:
        """
        Issue the requested commands, in a fixed order.

        :raises CommandFailureError: If a command is not acknowledged. Later
                                     commands are not issued.
        """
        r: Um6Registers = self._registers

        commands: List[Tuple[bool, Um6Accessor, str]] = [
            (request.zero_gyros, r.cmd_zero_gyros, "zero gyroscopes"),
            (request.reset_ekf, r.cmd_reset_ekf, "reset EKF"),
            (request.set_mag_ref, r.cmd_set_mag_ref, "set magnetometer reference"),
            (request.set_accel_ref, r.cmd_set_accel_ref, "set accelerometer reference"),
        ]

        for requested, accessor, human_name in commands:
            if requested:
                self._send_command(accessor, human_name)

    def _send_command(self, accessor: Um6Accessor, human_name: str) -> None:
        self._logger.info(f"Sending command: {human_name}")
        if not self._transport.send_wait_ack(accessor):
            raise CommandFailureError(f"Command to device failed: {human_name}")

    def try_handle(self, request: Um6ResetRequest) -> bool:
        """
        Issue the requested commands, reporting a rejected command as a failed
        request instead of a connection error.

        :return: True if every requested command was acknowledged

        :raises TransportIOError: If the device can't be reached
        """
        try:
            self.handle(request)
        except CommandFailureError as err:
            self._logger.error(str(err))
            return False

        return True
