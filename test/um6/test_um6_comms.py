################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Tests for the UM6 serial packet protocol."""

from __future__ import annotations

import struct
from typing import Any
from typing import List
from typing import Optional

import pytest
import serial

from oasis_um6.um6 import um6_constants as um6
from oasis_um6.um6.um6_comms import Um6Comms
from oasis_um6.um6.um6_comms import encode_packet
from oasis_um6.um6.um6_comms import packet_checksum
from oasis_um6.um6.um6_comms import packet_data_length
from oasis_um6.um6.um6_errors import TransportIOError
from oasis_um6.um6.um6_errors import TransportOpenError
from oasis_um6.um6.um6_errors import TransportTimeoutError
from oasis_um6.um6.um6_registers import Um6Registers
from oasis_um6.um6.um6_transport import RegisterGroup
from test.um6.um6_fakes import FakeSerial
from test.um6.um6_fakes import RecordingLogger


def _open_comms(
    incoming: bytes,
    logger: RecordingLogger,
    receive_timeout: float = 0.05,
    stalls: Optional[List[int]] = None,
) -> tuple[Um6Comms, FakeSerial]:
    """Create comms connected to a fake port holding the given bytes."""
    port: FakeSerial = FakeSerial(incoming, stalls)

    def factory(**kwargs: Any) -> FakeSerial:
        port.kwargs = kwargs
        return port

    comms: Um6Comms = Um6Comms(
        "/dev/ttyFAKE",
        115200,
        logger,
        receive_timeout=receive_timeout,
        serial_factory=factory,
    )
    comms.open()

    return comms, port


def _failed_ack(address: int) -> bytes:
    """Create an ack packet with the command-failed bit set."""
    packet: bytes = um6.UM6_PACKET_HEADER + bytes([um6.UM6_PT_COMMAND_FAILED, address])
    return packet + struct.pack(">H", packet_checksum(packet))


def test_encode_command_packet() -> None:
    """Ensure commands carry no data and a 16-bit big-endian sum."""
    packet: bytes = encode_packet(um6.UM6_ZERO_GYROS)

    # 's' + 'n' + 'p' + 0x00 + 0xAC = 0x01FD
    assert packet == b"snp\x00\xac\x01\xfd"


def test_encode_data_packets() -> None:
    """Ensure the packet type announces single and batch register writes."""
    single: bytes = encode_packet(um6.UM6_COMMUNICATION, bytes(4))
    batch: bytes = encode_packet(um6.UM6_MAG_REF_X, bytes(12))

    assert single[3] == um6.UM6_PT_HAS_DATA
    assert batch[3] == um6.UM6_PT_HAS_DATA | um6.UM6_PT_IS_BATCH | (3 << 2)
    assert packet_data_length(single[3]) == 4
    assert packet_data_length(batch[3]) == 12
    assert packet_data_length(0) == 0


def test_encode_rejects_unaligned_data() -> None:
    """Ensure data must be whole registers."""
    with pytest.raises(ValueError):
        encode_packet(um6.UM6_COMMUNICATION, b"\x00\x00")


def test_open_configures_port() -> None:
    """Ensure the port opens at the configured baud with a short timeout."""
    logger: RecordingLogger = RecordingLogger()
    comms, port = _open_comms(b"", logger)

    assert comms.is_open
    assert port.kwargs["port"] == "/dev/ttyFAKE"
    assert port.kwargs["baudrate"] == 115200
    assert port.kwargs["timeout"] == Um6Comms.READ_TIMEOUT_SECS

    comms.close()
    assert not comms.is_open


def test_open_failure() -> None:
    """Ensure an unavailable port raises the transport open error."""

    def factory(**kwargs: Any) -> FakeSerial:
        raise serial.SerialException("could not open port")

    comms: Um6Comms = Um6Comms(
        "/dev/ttyFAKE",
        115200,
        RecordingLogger(),
        serial_factory=factory,
    )

    with pytest.raises(TransportOpenError):
        comms.open()
    assert not comms.is_open


def test_receive_stores_register_data() -> None:
    """Ensure a valid packet after line noise updates the register file."""
    logger: RecordingLogger = RecordingLogger()
    incoming: bytes = b"\x00sn\xff" + encode_packet(
        um6.UM6_TEMPERATURE, struct.pack(">f", 25.5)
    )
    comms, _ = _open_comms(incoming, logger)
    registers: Um6Registers = Um6Registers()

    group: RegisterGroup = comms.receive(registers)

    assert group == RegisterGroup(address=um6.UM6_TEMPERATURE, count=1)
    assert registers.temperature.get(0) == pytest.approx(25.5)
    assert registers.was_touched(registers.temperature)


def test_receive_header_split_across_reads() -> None:
    """Ensure a header interrupted by a timed-out read still syncs."""
    logger: RecordingLogger = RecordingLogger()
    incoming: bytes = b"\x00" + encode_packet(
        um6.UM6_TEMPERATURE, struct.pack(">f", 25.5)
    )

    # Stall after b"\x00sn", before the final header byte
    comms, port = _open_comms(incoming, logger, stalls=[3])
    registers: Um6Registers = Um6Registers()

    group: RegisterGroup = comms.receive(registers)

    assert port.stalled_reads == 1
    assert group == RegisterGroup(address=um6.UM6_TEMPERATURE, count=1)
    assert registers.temperature.get(0) == pytest.approx(25.5)
    assert logger.messages("warning") == []


def test_receive_packet_split_across_reads() -> None:
    """Ensure timed-out reads inside a packet body don't drop the packet."""
    packet: bytes = encode_packet(um6.UM6_TEMPERATURE, struct.pack(">f", 2.0))

    # Stall after the packet type, in the data and before the checksum
    comms, port = _open_comms(
        packet, RecordingLogger(), stalls=[4, 7, len(packet) - 2]
    )
    registers: Um6Registers = Um6Registers()

    group: RegisterGroup = comms.receive(registers)

    assert port.stalled_reads == 3
    assert group.address == um6.UM6_TEMPERATURE
    assert registers.temperature.get(0) == pytest.approx(2.0)


def test_receive_skips_bad_checksum() -> None:
    """Ensure corrupt packets are dropped with a warning."""
    logger: RecordingLogger = RecordingLogger()
    corrupt: bytearray = bytearray(
        encode_packet(um6.UM6_STATUS, struct.pack(">I", 0xDEADBEEF))
    )
    corrupt[-1] ^= 0xFF
    good: bytes = encode_packet(um6.UM6_TEMPERATURE, struct.pack(">f", 1.0))
    comms, _ = _open_comms(bytes(corrupt) + good, logger)
    registers: Um6Registers = Um6Registers()

    group: RegisterGroup = comms.receive(registers)

    assert group.address == um6.UM6_TEMPERATURE
    assert registers.status.get(0) == 0
    assert len(logger.messages("warning")) == 1


def test_receive_times_out() -> None:
    """Ensure a silent port raises a timeout."""
    comms, _ = _open_comms(b"", RecordingLogger(), receive_timeout=0.01)

    with pytest.raises(TransportTimeoutError):
        comms.receive(Um6Registers())


def test_receive_requires_open_port() -> None:
    """Ensure reads on a closed transport fail as I/O errors."""
    comms: Um6Comms = Um6Comms("/dev/ttyFAKE", 115200, RecordingLogger())

    with pytest.raises(TransportIOError):
        comms.receive(None)


def test_send_wait_ack() -> None:
    """Ensure an ack for the sent address is found among streaming packets."""
    incoming: bytes = encode_packet(
        um6.UM6_TEMPERATURE, struct.pack(">f", 1.0)
    ) + encode_packet(um6.UM6_ZERO_GYROS)
    comms, port = _open_comms(incoming, RecordingLogger())
    registers: Um6Registers = Um6Registers()

    assert comms.send_wait_ack(registers.cmd_zero_gyros)
    assert port.written == [encode_packet(um6.UM6_ZERO_GYROS)]


def test_send_wait_ack_command_failed() -> None:
    """Ensure a failure flag from the device is reported as no ack."""
    logger: RecordingLogger = RecordingLogger()
    comms, port = _open_comms(_failed_ack(um6.UM6_RESET_EKF), logger)
    registers: Um6Registers = Um6Registers()

    assert not comms.send_wait_ack(registers.cmd_reset_ekf)
    assert len(port.written) == 1
    assert len(logger.messages("warning")) == 1


def test_send_wait_ack_retries_when_unanswered() -> None:
    """Ensure an unanswered write is retried before giving up."""
    comms, port = _open_comms(b"", RecordingLogger(), receive_timeout=0.01)
    registers: Um6Registers = Um6Registers()
    registers.communication.set(0, 0x12345678)

    assert not comms.send_wait_ack(registers.communication)
    assert len(port.written) == Um6Comms.SEND_TRIES
    assert port.written[0] == encode_packet(
        um6.UM6_COMMUNICATION, b"\x12\x34\x56\x78"
    )
