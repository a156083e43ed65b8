"""Shared fixtures: an in-memory PLC and transports that stand in for python-snap7."""

import threading
import time
from typing import Callable

import pytest

from pys7_vbits.errors import TransportError
from pys7_vbits.types import SessionConfig


class FakePLC:
    """V area memory plus knobs to make connect/DB/MB requests fail."""

    def __init__(self) -> None:
        self.memory = bytearray(256)
        self.open_fails = False
        self.db_fails = False
        self.mb_fails = False
        self.transports: list["FakeTransport"] = []
        self.events: list[tuple[str, str]] = []
        self.calls: list[tuple] = []
        self.open_count = 0
        self.max_open = 0
        self._lock = threading.Lock()

    def factory(self) -> "FakeTransport":
        t = FakeTransport(self)
        self.transports.append(t)
        return t


class FakeTransport:
    def __init__(self, plc: FakePLC) -> None:
        self.plc = plc
        self.host = ""
        self.params: tuple | None = None
        self.is_open = False

    def open(self, host: str, rack: int, slot: int, connect_timeout: float, idle_timeout: float) -> None:
        if self.plc.open_fails:
            raise TransportError("connection refused", operation="open", cause=ConnectionRefusedError(host))
        with self.plc._lock:
            self.host = host
            self.params = (rack, slot, connect_timeout, idle_timeout)
            self.is_open = True
            self.plc.open_count += 1
            self.plc.max_open = max(self.plc.max_open, self.plc.open_count)
            self.plc.events.append(("open", host))

    def close(self) -> None:
        with self.plc._lock:
            if not self.is_open:
                return
            self.is_open = False
            self.plc.open_count -= 1
            self.plc.events.append(("close", self.host))

    def read_data_block(self, block: int, offset: int, count: int) -> bytes:
        self.plc.calls.append(("db", block, offset, count))
        if not self.is_open:
            raise TransportError("Transport is closed", operation="db_read")
        if self.plc.db_fails:
            raise TransportError("DB1 does not exist", operation="db_read", offset=offset, count=count)
        return bytes(self.plc.memory[offset:offset + count])

    def read_flat_memory(self, offset: int, count: int) -> bytes:
        self.plc.calls.append(("mb", offset, count))
        if not self.is_open:
            raise TransportError("Transport is closed", operation="mb_read")
        if self.plc.mb_fails:
            raise TransportError("Address out of range", operation="mb_read", offset=offset, count=count)
        return bytes(self.plc.memory[offset:offset + count])


def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    """Poll predicate until it is true or timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


@pytest.fixture
def fake_plc() -> FakePLC:
    return FakePLC()


@pytest.fixture
def fast_config() -> SessionConfig:
    """Default device constants but no reconnect grace delay."""
    return SessionConfig(reconnect_delay=0.0)
