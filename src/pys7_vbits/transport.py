"""S7 transport: thin wrapper over python-snap7 exposing the four operations the session needs."""

import logging
import threading
import time
from typing import Protocol

from snap7.client import Client
from snap7.error import S7Error
from snap7.type import Parameter

from .errors import TransportError

logger = logging.getLogger(__name__)

# Failures a snap7 request can raise.
_S7_ERRORS = (S7Error, RuntimeError, OSError)


class Transport(Protocol):
    """Black-box protocol client: open/close plus data-block and flat-memory reads."""

    def open(self, host: str, rack: int, slot: int, connect_timeout: float, idle_timeout: float) -> None: ...

    def close(self) -> None: ...

    def read_data_block(self, block: int, offset: int, count: int) -> bytes: ...

    def read_flat_memory(self, offset: int, count: int) -> bytes: ...


class S7Transport:
    """
    One S7 connection via snap7.client.Client.

    Requests are serialized by an internal lock; the S7 PDU sequence of a single
    connection does not tolerate interleaved requests. A connection left idle
    longer than idle_timeout is re-established before the next request.
    """

    def __init__(self) -> None:
        self._client: Client | None = None
        self._lock = threading.Lock()
        self._host = ""
        self._rack = 0
        self._slot = 0
        self._idle_timeout = 0.0
        self._last_activity = 0.0

    def open(self, host: str, rack: int, slot: int, connect_timeout: float, idle_timeout: float) -> None:
        """Connect to host/rack/slot; on failure no client is retained."""
        timeout_ms = int(connect_timeout * 1000)
        with self._lock:
            if self._client is not None:
                raise TransportError(f"Transport already open to {self._host}", operation="open")
            client = Client()
            try:
                client.set_param(Parameter.PingTimeout, timeout_ms)
                client.set_param(Parameter.SendTimeout, timeout_ms)
                client.set_param(Parameter.RecvTimeout, timeout_ms)
                client.connect(host, rack, slot)
            except _S7_ERRORS as e:
                self._destroy(client)
                raise TransportError(f"S7 connect to {host} failed: {e}", operation="open", cause=e) from e
            self._client = client
            self._host = host
            self._rack = rack
            self._slot = slot
            self._idle_timeout = idle_timeout
            self._last_activity = time.monotonic()
        logger.debug("S7 link open: host=%s rack=%d slot=%d", host, rack, slot)

    def close(self) -> None:
        """Close the connection; safe to call more than once."""
        with self._lock:
            client = self._client
            self._client = None
            if client is None:
                return
            try:
                client.disconnect()
            except Exception as e:
                logger.warning("Error closing S7 client: %s", e)
            self._destroy(client)
        logger.debug("S7 link closed: host=%s", self._host)

    def read_data_block(self, block: int, offset: int, count: int) -> bytes:
        """Read count bytes at offset from data block `block`."""
        with self._lock:
            client = self._acquire("db_read")
            try:
                data = client.db_read(block, offset, count)
            except _S7_ERRORS as e:
                raise TransportError(
                    f"DB{block} read failed: {e}", operation="db_read", offset=offset, count=count, cause=e
                ) from e
            return self._checked(data, "db_read", offset, count)

    def read_flat_memory(self, offset: int, count: int) -> bytes:
        """Read count bytes at offset from the flat (M) memory area."""
        with self._lock:
            client = self._acquire("mb_read")
            try:
                data = client.mb_read(offset, count)
            except _S7_ERRORS as e:
                raise TransportError(
                    f"MB read failed: {e}", operation="mb_read", offset=offset, count=count, cause=e
                ) from e
            return self._checked(data, "mb_read", offset, count)

    @property
    def is_open(self) -> bool:
        return self._client is not None

    def _acquire(self, operation: str) -> Client:
        # Caller holds self._lock.
        client = self._client
        if client is None:
            raise TransportError("Transport is closed", operation=operation)
        if time.monotonic() - self._last_activity > self._idle_timeout:
            logger.info("S7 link idle for more than %.0fs; reconnecting to %s", self._idle_timeout, self._host)
            try:
                client.disconnect()
                client.connect(self._host, self._rack, self._slot)
            except _S7_ERRORS as e:
                raise TransportError(f"S7 reconnect to {self._host} failed: {e}", operation=operation, cause=e) from e
        self._last_activity = time.monotonic()
        return client

    @staticmethod
    def _checked(data: bytearray, operation: str, offset: int, count: int) -> bytes:
        if len(data) != count:
            raise TransportError(
                f"Short response: expected {count} bytes, got {len(data)}",
                operation=operation,
                offset=offset,
                count=count,
            )
        return bytes(data)

    @staticmethod
    def _destroy(client: Client) -> None:
        try:
            client.destroy()
        except Exception as e:
            logger.warning("Error destroying S7 client: %s", e)
