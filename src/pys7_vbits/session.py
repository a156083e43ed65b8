"""SessionManager: owns the S7 transport, connect/disconnect lifecycle and V area reads."""

import logging
import threading
import time
from typing import Callable

from .errors import NotConnectedError, PLCConnectionError, ReadError, TransportError
from .transport import S7Transport, Transport
from .types import MemoryArea, ReadWindow, SessionConfig

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Single-connection session to one PLC.

    The transport handle is either fully open or absent. Connects and disconnects
    are serialized against each other. Reads hold the state lock only while
    fetching the handle, never across a network request.
    """

    def __init__(
        self,
        config: SessionConfig | None = None,
        transport_factory: Callable[[], Transport] = S7Transport,
    ) -> None:
        self._config = config if config is not None else SessionConfig()
        self._transport_factory = transport_factory
        self._transport: Transport | None = None
        self._host: str | None = None
        self._lock = threading.Lock()
        self._lifecycle_lock = threading.Lock()

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        with self._lock:
            return self._transport is not None

    @property
    def host(self) -> str | None:
        with self._lock:
            return self._host

    def connect(self, host: str) -> None:
        """
        Connect to the PLC at host, tearing down any existing connection first.

        Waits reconnect_delay between teardown and the new open. Raises
        PLCConnectionError on failure, leaving the session disconnected.
        """
        host = host.strip()
        if not host:
            raise PLCConnectionError(host, "PLC host cannot be empty")
        cfg = self._config
        with self._lifecycle_lock:
            if self._teardown():
                time.sleep(cfg.reconnect_delay)

            transport = self._transport_factory()
            try:
                transport.open(host, cfg.rack, cfg.slot, cfg.connect_timeout, cfg.idle_timeout)
            except TransportError as e:
                raise PLCConnectionError(host, cause=e.cause or e) from e

            with self._lock:
                self._transport = transport
                self._host = host
        logger.info("Connected to PLC %s (rack=%d, slot=%d)", host, cfg.rack, cfg.slot)

    def disconnect(self) -> None:
        """Release the connection if one exists; no-op when already disconnected."""
        with self._lifecycle_lock:
            self._teardown()

    def _teardown(self) -> bool:
        # Caller holds self._lifecycle_lock. Detach under the state lock, close outside it.
        with self._lock:
            transport = self._transport
            host = self._host
            self._transport = None
            self._host = None
        if transport is None:
            return False
        transport.close()
        logger.info("Disconnected from PLC %s", host)
        return True

    def read_window(self, window: ReadWindow) -> bytes:
        """Read window.count bytes at window.start from the V area."""
        data, _area = self.read_window_with_area(window)
        return data

    def read_window_with_area(self, window: ReadWindow) -> tuple[bytes, MemoryArea]:
        """
        Read the V area through data block v_area_db, falling back to the flat
        memory area at the same offset. Returns the bytes and the scheme that
        served them; raises ReadError only when both attempts fail.
        """
        with self._lock:
            transport = self._transport
        if transport is None:
            raise NotConnectedError()

        try:
            data = transport.read_data_block(self._config.v_area_db, window.start, window.count)
            return data, MemoryArea.DATA_BLOCK
        except TransportError as db_error:
            logger.debug(
                "DB%d read at %d failed (%s); trying flat memory",
                self._config.v_area_db,
                window.start,
                db_error,
            )
            try:
                data = transport.read_flat_memory(window.start, window.count)
            except TransportError as mb_error:
                raise ReadError(window, db_error, mb_error) from mb_error
            return data, MemoryArea.FLAT_MEMORY
