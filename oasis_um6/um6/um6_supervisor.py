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
import enum
import logging
import threading
from typing import Callable
from typing import Optional

from oasis_um6.um6.um6_comms import Um6Comms
from oasis_um6.um6.um6_config import Um6Config
from oasis_um6.um6.um6_configurator import Um6Configurator
from oasis_um6.um6.um6_errors import TransportOpenError
from oasis_um6.um6.um6_errors import Um6Error
from oasis_um6.um6.um6_registers import Um6Registers
from oasis_um6.um6.um6_reset import Um6ResetHandler
from oasis_um6.um6.um6_telemetry import Um6Telemetry
from oasis_um6.um6.um6_transport import RegisterGroup
from oasis_um6.um6.um6_transport import Um6Transport


TransportFactory = Callable[[Um6Config], Um6Transport]


class ConnectionState(enum.Enum):
    DISCONNECTED = 0
    CONNECTED = 1
    CONFIGURING = 2
    STREAMING = 3
    FAULTED = 4


class Um6DriverCallback:
    """
    Host process as seen by the connection supervisor
    """

    @abc.abstractmethod
    def is_ok(self) -> bool:
        """Return False once the process is shutting down"""

    @abc.abstractmethod
    def load_config(self) -> Um6Config:
        """
        Read the current driver settings.

        :raises InvalidConfigurationValueError: If the settings are malformed
        """

    @abc.abstractmethod
    def on_streaming(self, reset_handler: Um6ResetHandler) -> None:
        """Called when a configured device starts streaming"""

    @abc.abstractmethod
    def on_disconnected(self) -> None:
        """Called when a connection ends"""

    @abc.abstractmethod
    def spin_once(self) -> None:
        """Give the messaging layer a chance to dispatch pending requests"""


class Um6Supervisor:
    """
    Owns the device connection: connects, configures and streams, and starts
    over after any failure.

    Failures to open the port are warned about once per streak of failures,
    then retried quietly until the device shows up.
    """

    def __init__(
        self,
        callback: Um6DriverCallback,
        telemetry: Um6Telemetry,
        logger: logging.Logger,
        transport_factory: Optional[TransportFactory] = None,
    ) -> None:
        # Construction parameters
        self._callback = callback
        self._telemetry = telemetry
        self._logger = logger
        self._transport_factory: TransportFactory = (
            transport_factory or self._create_comms
        )

        # Latest values of every register, kept across connections
        self._registers = Um6Registers()

        # Connection state
        self._state = ConnectionState.DISCONNECTED
        self._first_failure: bool = True

        # Threading parameters
        self._exit_event = threading.Event()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def registers(self) -> Um6Registers:
        return self._registers

    def stop(self) -> None:
        """Request the run loop to exit"""
        self._exit_event.set()

    def run(self) -> None:
        """Supervise the connection until shutdown"""
        while self._running():
            retry_interval: float = Um6Config().reconnect_interval_sec

            try:
                config: Um6Config = self._callback.load_config()
            except Um6Error as err:
                self._logger.error(f"Invalid driver configuration: {err}")
                self._wait(retry_interval)
                continue

            retry_interval = config.reconnect_interval_sec

            transport: Um6Transport = self._transport_factory(config)
            try:
                transport.open()
            except TransportOpenError as err:
                self._on_open_failure(config, err)
                self._wait(retry_interval)
                continue

            self._logger.info("Successfully connected to serial port.")
            self._first_failure = True
            self._set_state(ConnectionState.CONNECTED)

            error: Optional[Exception] = None
            try:
                self._run_connection(transport, config)
            except Um6Error as err:
                error = err
            except Exception as err:
                error = err
                self._logger.error(f"Unexpected {type(err).__name__} in UM6 driver")
            finally:
                self._callback.on_disconnected()
                if transport.is_open:
                    transport.close()

            if error is not None:
                self._set_state(ConnectionState.FAULTED)
                self._logger.error(str(error))
                self._logger.info("Attempting reconnection after error.")
                self._set_state(ConnectionState.DISCONNECTED)
                self._wait(retry_interval)
            else:
                self._set_state(ConnectionState.DISCONNECTED)

    def _run_connection(self, transport: Um6Transport, config: Um6Config) -> None:
        self._set_state(ConnectionState.CONFIGURING)
        Um6Configurator(transport, self._logger).configure(config)

        self._callback.on_streaming(Um6ResetHandler(transport, self._logger))
        self._set_state(ConnectionState.STREAMING)

        while self._running():
            group: RegisterGroup = transport.receive(self._registers)
            published: bool = self._telemetry.on_register_group(
                group, self._registers, config
            )

            # The messaging layer may have shut down while publishing
            if published and self._running():
                self._callback.spin_once()

    def _on_open_failure(self, config: Um6Config, err: TransportOpenError) -> None:
        if self._first_failure:
            self._logger.warning(
                f"Could not connect to serial device {config.port}. Trying again "
                f"every {config.reconnect_interval_sec:g} second(s)."
            )
            self._first_failure = False
        else:
            self._logger.debug(f"Unable to connect to port: {err}")

    def _set_state(self, state: ConnectionState) -> None:
        if state != self._state:
            self._logger.debug(f"Connection state: {self._state.name} -> {state.name}")
            self._state = state

    def _running(self) -> bool:
        return not self._exit_event.is_set() and self._callback.is_ok()

    def _wait(self, timeout: float) -> None:
        self._exit_event.wait(timeout=timeout)

    def _create_comms(self, config: Um6Config) -> Um6Transport:
        return Um6Comms(
            port=config.port,
            baud=config.baud,
            logger=self._logger,
            receive_timeout=config.receive_timeout_sec,
        )
