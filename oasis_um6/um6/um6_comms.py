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
import struct
import time
from typing import Any
from typing import Callable
from typing import Optional

import serial

from oasis_um6.um6 import um6_constants as um6
from oasis_um6.um6.um6_errors import TransportIOError
from oasis_um6.um6.um6_errors import TransportOpenError
from oasis_um6.um6.um6_errors import TransportTimeoutError
from oasis_um6.um6.um6_registers import Um6Accessor
from oasis_um6.um6.um6_registers import Um6Registers
from oasis_um6.um6.um6_transport import RegisterGroup
from oasis_um6.um6.um6_transport import Um6Transport


def packet_checksum(packet: bytes) -> int:
    """Compute the 16-bit sum over a packet's header, address and data"""
    return sum(packet) & 0xFFFF


def encode_packet(address: int, data: bytes = b"") -> bytes:
    """
    Encode a packet for the device.

    :param address: Register or command address
    :param data: Register data, a multiple of 4 bytes (empty for commands and
                 read requests)

    :return: The framed packet, including its checksum
    """
    register_count: int = len(data) // um6.UM6_REGISTER_SIZE
    if len(data) % um6.UM6_REGISTER_SIZE != 0:
        raise ValueError(f"Packet data length {len(data)} is not word-aligned")
    if register_count > um6.UM6_PT_BATCH_LENGTH_MASK:
        raise ValueError(f"Too many registers for one packet: {register_count}")

    packet_type: int = 0
    if register_count > 0:
        packet_type |= um6.UM6_PT_HAS_DATA
    if register_count > 1:
        packet_type |= um6.UM6_PT_IS_BATCH
        packet_type |= register_count << um6.UM6_PT_BATCH_LENGTH_START_BIT

    packet: bytes = um6.UM6_PACKET_HEADER + bytes([packet_type, address]) + data
    return packet + struct.pack(">H", packet_checksum(packet))


def packet_data_length(packet_type: int) -> int:
    """Get the number of data bytes announced by a packet type byte"""
    if not packet_type & um6.UM6_PT_HAS_DATA:
        return 0
    if not packet_type & um6.UM6_PT_IS_BATCH:
        return um6.UM6_REGISTER_SIZE
    batch_length: int = (
        packet_type >> um6.UM6_PT_BATCH_LENGTH_START_BIT
    ) & um6.UM6_PT_BATCH_LENGTH_MASK
    return batch_length * um6.UM6_REGISTER_SIZE


class Um6Comms(Um6Transport):
    """
    UM6 binary packet protocol over a serial port, using pyserial
    """

    # Serial read timeout, bounds the time spent in each read call
    READ_TIMEOUT_SECS: float = 0.05

    # Number of times a write or command is sent before giving up
    SEND_TRIES: int = 5

    # Number of packets examined for an acknowledgement after each send
    ACK_LISTENS: int = 20

    def __init__(
        self,
        port: str,
        baud: int,
        logger: logging.Logger,
        receive_timeout: float = 1.0,
        serial_factory: Callable[..., Any] = serial.Serial,
    ) -> None:
        # Construction parameters
        self._port: str = port
        self._baud: int = baud
        self._logger = logger
        self._receive_timeout: float = receive_timeout
        self._serial_factory = serial_factory

        # Serial state
        self._serial: Optional[Any] = None

    @property
    def port(self) -> str:
        return self._port

    def open(self) -> None:
        """Implement Um6Transport"""
        try:
            self._serial = self._serial_factory(
                port=self._port,
                baudrate=self._baud,
                timeout=self.READ_TIMEOUT_SECS,
                write_timeout=self.READ_TIMEOUT_SECS,
            )
        except (serial.SerialException, OSError) as err:
            self._serial = None
            raise TransportOpenError(
                f"Unable to open serial device {self._port}: {err}"
            ) from err

    def close(self) -> None:
        """Implement Um6Transport"""
        if self._serial is not None:
            try:
                self._serial.close()
            except (serial.SerialException, OSError) as err:
                self._logger.debug(f"Error closing {self._port}: {err}")
            self._serial = None

    @property
    def is_open(self) -> bool:
        """Implement Um6Transport"""
        return self._serial is not None and bool(self._serial.is_open)

    def send(self, accessor: Um6Accessor) -> None:
        """Send the accessor's registers, or its command if it has no fields"""
        packet: bytes = encode_packet(accessor.address, accessor.payload())
        try:
            self._require_serial().write(packet)
        except (serial.SerialException, OSError) as err:
            raise TransportIOError(f"Write to {self._port} failed: {err}") from err

    def send_wait_ack(self, accessor: Um6Accessor) -> bool:
        """Implement Um6Transport"""
        for _ in range(self.SEND_TRIES):
            self.send(accessor)

            for _ in range(self.ACK_LISTENS):
                try:
                    group: RegisterGroup = self.receive(None)
                except TransportTimeoutError:
                    # Nothing heard, send again
                    break

                if group.address == accessor.address:
                    if group.command_failed:
                        self._logger.warning(
                            "Device reported failure for register "
                            f"0x{accessor.address:02X}"
                        )
                        return False
                    return True

        return False

    def receive(self, registers: Optional[Um6Registers]) -> RegisterGroup:
        """Implement Um6Transport"""
        deadline: float = time.monotonic() + self._receive_timeout

        while time.monotonic() < deadline:
            if not self._sync(deadline):
                break

            header: Optional[bytes] = self._read_exact(2, deadline)
            if header is None:
                break
            packet_type, address = header[0], header[1]

            data: Optional[bytes] = self._read_exact(
                packet_data_length(packet_type), deadline
            )
            checksum: Optional[bytes] = self._read_exact(2, deadline)
            if data is None or checksum is None:
                break

            expected: int = packet_checksum(um6.UM6_PACKET_HEADER + header + data)
            if struct.unpack(">H", checksum)[0] != expected:
                self._logger.warning(
                    f"Dropping packet for register 0x{address:02X} with bad checksum"
                )
                continue

            if registers is not None and data:
                try:
                    registers.write(address, data)
                except ValueError as err:
                    self._logger.warning(f"Dropping packet: {err}")
                    continue

            return RegisterGroup(
                address=address,
                count=len(data) // um6.UM6_REGISTER_SIZE,
                command_failed=bool(packet_type & um6.UM6_PT_COMMAND_FAILED),
            )

        raise TransportTimeoutError(
            f"No packet from {self._port} within {self._receive_timeout}s"
        )

    def _sync(self, deadline: float) -> bool:
        """
        Consume bytes up to and including the next packet header.

        The header is matched one byte at a time, so a header split across
        reads that time out is still found.
        """
        port: Any = self._require_serial()
        header: bytes = um6.UM6_PACKET_HEADER
        matched: int = 0

        while time.monotonic() < deadline:
            try:
                byte: bytes = port.read(1)
            except (serial.SerialException, OSError) as err:
                raise TransportIOError(f"Read from {self._port} failed: {err}") from err
            if not byte:
                continue

            if byte[0] == header[matched]:
                matched += 1
                if matched == len(header):
                    return True
            else:
                # "snp" has no repeated prefix, so a mismatch can only restart
                # the match at its first byte
                matched = 1 if byte[0] == header[0] else 0

        return False

    def _read_exact(self, size: int, deadline: float) -> Optional[bytes]:
        port: Any = self._require_serial()
        buffer: bytes = b""
        while len(buffer) < size:
            if time.monotonic() >= deadline:
                return None
            try:
                buffer += port.read(size - len(buffer))
            except (serial.SerialException, OSError) as err:
                raise TransportIOError(f"Read from {self._port} failed: {err}") from err
        return buffer

    def _require_serial(self) -> Any:
        if self._serial is None:
            raise TransportIOError(f"Serial device {self._port} is not open")
        return self._serial
