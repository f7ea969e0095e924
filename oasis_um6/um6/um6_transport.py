################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

import abc
from dataclasses import dataclass
from typing import Optional

from oasis_um6.um6.um6_registers import Um6Accessor
from oasis_um6.um6.um6_registers import Um6Registers


@dataclass(frozen=True)
class RegisterGroup:
    """
    Identity of a packet received from the device.

    Attributes:
        address: Address of the first register in the packet
        count: Number of registers carried by the packet, 0 for an ack
        command_failed: True if the device flagged the command as failed
    """

    address: int
    count: int = 0
    command_failed: bool = False

    def __contains__(self, address: object) -> bool:
        if not isinstance(address, int):
            return False
        if self.count == 0:
            return address == self.address
        return self.address <= address < self.address + self.count


class Um6Transport:
    """
    Request/response and streaming access to a UM6 over some channel
    """

    @abc.abstractmethod
    def open(self) -> None:
        """
        Open the channel.

        :raises TransportOpenError: If the channel is unavailable
        """

    @abc.abstractmethod
    def close(self) -> None:
        pass

    @property
    @abc.abstractmethod
    def is_open(self) -> bool:
        pass

    @abc.abstractmethod
    def send_wait_ack(self, accessor: Um6Accessor) -> bool:
        """
        Write the accessor's registers, or issue its command if it has no
        fields, and wait for the device to acknowledge.

        :return: True if acknowledged, False if rejected or never answered
        """

    @abc.abstractmethod
    def receive(self, registers: Optional[Um6Registers]) -> RegisterGroup:
        """
        Block until the next valid packet arrives and store its data.

        :param registers: Register file to update, or None to discard the data

        :raises TransportIOError: On I/O failure or receive timeout
        """
