################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Fakes shared by the UM6 driver tests."""

from __future__ import annotations

import logging
from typing import Any
from typing import Callable
from typing import List
from typing import Optional
from typing import Tuple

from oasis_um6.um6.um6_errors import TransportTimeoutError
from oasis_um6.um6.um6_registers import Um6Accessor
from oasis_um6.um6.um6_registers import Um6Registers
from oasis_um6.um6.um6_transport import RegisterGroup
from oasis_um6.um6.um6_transport import Um6Transport


class RecordingLogger(logging.Logger):
    """Logger double that remembers every message by level."""

    def __init__(self) -> None:
        super().__init__("um6_test")
        self.records: List[Tuple[str, str]] = []

    def debug(self, msg: object, *args: Any, **kwargs: Any) -> None:
        self.records.append(("debug", str(msg)))

    def info(self, msg: object, *args: Any, **kwargs: Any) -> None:
        self.records.append(("info", str(msg)))

    def warning(self, msg: object, *args: Any, **kwargs: Any) -> None:
        self.records.append(("warning", str(msg)))

    def error(self, msg: object, *args: Any, **kwargs: Any) -> None:
        self.records.append(("error", str(msg)))

    def messages(self, level: str) -> List[str]:
        return [msg for record_level, msg in self.records if record_level == level]


class FakeSerial:
    """
    In-memory stand-in for a pyserial port.

    Each offset in ``stalls`` makes one read return nothing once that many
    bytes have been consumed, as a read that hits the port timeout would.
    """

    def __init__(
        self, incoming: bytes = b"", stalls: Optional[List[int]] = None, **kwargs: Any
    ) -> None:
        self.kwargs: dict[str, Any] = kwargs
        self.incoming: bytearray = bytearray(incoming)
        self.stalls: List[int] = sorted(stalls or [])
        self.consumed: int = 0
        self.stalled_reads: int = 0
        self.written: List[bytes] = []
        self.is_open: bool = True

    def read(self, size: int = 1) -> bytes:
        if self.stalls and self.consumed >= self.stalls[0]:
            self.stalls.pop(0)
            self.stalled_reads += 1
            return b""
        if self.stalls:
            size = min(size, self.stalls[0] - self.consumed)

        chunk: bytes = bytes(self.incoming[:size])
        del self.incoming[:size]
        self.consumed += len(chunk)
        return chunk

    def write(self, data: bytes) -> int:
        self.written.append(bytes(data))
        return len(data)

    def close(self) -> None:
        self.is_open = False


class FakeTransport(Um6Transport):
    """
    Transport double that acknowledges sends from a script and replays
    scripted packets.

    Receive steps are either a RegisterGroup with the register data to store,
    or an exception to raise. The transport times out once the script runs out.
    """

    def __init__(
        self,
        acks: Optional[List[bool]] = None,
        packets: Optional[List[Any]] = None,
        open_error: Optional[Exception] = None,
    ) -> None:
        self.acks: List[bool] = list(acks or [])
        self.packets: List[Any] = list(packets or [])
        self.open_error: Optional[Exception] = open_error
        self.sent: List[Tuple[int, bytes]] = []
        self.opened: bool = False
        self.closed: bool = False
        self.on_receive: Optional[Callable[[], None]] = None

    def open(self) -> None:
        if self.open_error is not None:
            raise self.open_error
        self.opened = True

    def close(self) -> None:
        self.closed = True
        self.opened = False

    @property
    def is_open(self) -> bool:
        return self.opened

    def send_wait_ack(self, accessor: Um6Accessor) -> bool:
        self.sent.append((accessor.address, accessor.payload()))
        return self.acks.pop(0) if self.acks else True

    def receive(self, registers: Optional[Um6Registers]) -> RegisterGroup:
        if self.on_receive is not None:
            self.on_receive()
        if not self.packets:
            raise TransportTimeoutError("No packet from fake transport")

        step: Any = self.packets.pop(0)
        if isinstance(step, Exception):
            raise step

        group, data = step
        if registers is not None and data:
            registers.write(group.address, data)
        return group

    @property
    def sent_addresses(self) -> List[int]:
        return [address for address, _ in self.sent]
