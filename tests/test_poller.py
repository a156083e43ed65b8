"""Tests for the background poller: idempotent start/stop, fresh cancellation, error tolerance."""

import threading
from unittest.mock import MagicMock

import pytest

from conftest import FakePLC, wait_for
from pys7_vbits import Poller, ReadWindow, SessionConfig, SessionManager
from pys7_vbits.errors import ReadError

INTERVAL = 0.01


@pytest.fixture
def session(fake_plc: FakePLC, fast_config: SessionConfig) -> SessionManager:
    s = SessionManager(config=fast_config, transport_factory=fake_plc.factory)
    s.connect("10.0.0.1")
    return s


@pytest.fixture
def poller(session: SessionManager):
    p = Poller(session, interval_s=INTERVAL)
    yield p
    p.stop()
    p.wait(2.0)


def _live_poll_threads() -> int:
    return sum(1 for t in threading.enumerate() if t.name.startswith("s7-poll-") and t.is_alive())


def test_rejects_non_positive_interval(session: SessionManager) -> None:
    with pytest.raises(ValueError):
        Poller(session, interval_s=0)


def test_delivers_msb_first_bits(poller: Poller, fake_plc: FakePLC) -> None:
    fake_plc.memory[10:12] = bytes([0b10110000, 0x01])
    received: list[list[bool]] = []
    assert poller.start(ReadWindow(10, 2), received.append)
    assert wait_for(lambda: len(received) >= 2)
    assert received[0] == [True, False, True, True, False, False, False, False] + [False] * 7 + [True]


def test_clamps_read_to_four_bytes(poller: Poller, fake_plc: FakePLC) -> None:
    received: list[list[bool]] = []
    poller.start(ReadWindow(0, 40), received.append)
    assert wait_for(lambda: len(received) >= 1)
    assert len(received[0]) == 32
    assert fake_plc.calls[0] == ("db", 1, 0, 4)


def test_start_twice_keeps_single_loop(poller: Poller) -> None:
    assert poller.start(ReadWindow(0, 1), lambda bits: None)
    assert not poller.start(ReadWindow(0, 1), lambda bits: None)
    assert poller.is_running
    assert _live_poll_threads() == 1


def test_stop_when_idle_is_noop(poller: Poller) -> None:
    assert not poller.stop()
    assert not poller.is_running


def test_stop_then_start_uses_fresh_cancellation(poller: Poller) -> None:
    first: list[list[bool]] = []
    poller.start(ReadWindow(0, 1), first.append)
    old_event = poller._stop_event
    assert poller.stop()
    assert not poller.is_running

    second: list[list[bool]] = []
    assert poller.start(ReadWindow(0, 1), second.append)
    assert poller._stop_event is not old_event
    assert old_event is not None and old_event.is_set()
    assert wait_for(lambda: len(second) >= 3)
    assert poller.is_running


def test_read_failures_do_not_stop_loop(poller: Poller, fake_plc: FakePLC) -> None:
    fake_plc.db_fails = True
    fake_plc.mb_fails = True
    received: list[list[bool]] = []
    poller.start(ReadWindow(0, 1), received.append)
    assert wait_for(lambda: len(fake_plc.calls) >= 6)
    assert received == []
    assert poller.is_running

    fake_plc.mb_fails = False
    assert wait_for(lambda: len(received) >= 1)


def test_not_connected_ticks_are_tolerated(fake_plc: FakePLC, fast_config: SessionConfig) -> None:
    s = SessionManager(config=fast_config, transport_factory=fake_plc.factory)
    p = Poller(s, interval_s=INTERVAL)
    received: list[list[bool]] = []
    try:
        p.start(ReadWindow(0, 1), received.append)
        assert not wait_for(lambda: len(received) > 0, timeout=0.1)
        s.connect("10.0.0.1")
        assert wait_for(lambda: len(received) > 0)
    finally:
        p.stop()
        p.wait(2.0)


def test_stop_lets_inflight_tick_finish_without_another() -> None:
    entered = threading.Event()
    release = threading.Event()
    session = MagicMock()

    def blocking_read(window: ReadWindow) -> bytes:
        entered.set()
        release.wait(2.0)
        return b"\xff"

    session.read_window.side_effect = blocking_read
    p = Poller(session, interval_s=INTERVAL)
    received: list[list[bool]] = []
    p.start(ReadWindow(0, 1), received.append)
    assert entered.wait(2.0)

    assert p.stop()
    release.set()
    assert p.wait(2.0)
    assert session.read_window.call_count == 1
    assert received == [[True] * 8]


def test_stop_from_sink_does_not_deadlock(poller: Poller) -> None:
    calls: list[int] = []

    def sink(bits: list[bool]) -> None:
        calls.append(1)
        poller.stop()

    poller.start(ReadWindow(0, 1), sink)
    assert poller.wait(2.0)
    assert calls == [1]
    assert not poller.is_running


def test_failing_sink_ends_loop_and_clears_state(poller: Poller) -> None:
    def sink(bits: list[bool]) -> None:
        raise ValueError("render failed")

    poller.start(ReadWindow(0, 1), sink)
    assert poller.wait(2.0)
    assert not poller.is_running
    assert poller.start(ReadWindow(0, 1), lambda bits: None)


def test_stale_loop_exit_does_not_clear_new_loop() -> None:
    # The first loop is stuck in a read while a second loop starts.
    release = threading.Event()
    calls: list[int] = []

    def read(window: ReadWindow) -> bytes:
        calls.append(1)
        if len(calls) == 1:
            release.wait(2.0)
            raise ReadError(window, RuntimeError("db"), RuntimeError("mb"))
        return b"\x00"

    mocked = MagicMock()
    mocked.read_window.side_effect = read
    p = Poller(mocked, interval_s=INTERVAL)
    try:
        p.start(ReadWindow(0, 1), lambda bits: None)
        assert wait_for(lambda: len(calls) == 1)
        p.stop()
        p.start(ReadWindow(0, 1), lambda bits: None)
        release.set()
        assert wait_for(lambda: len(calls) >= 3)
        assert p.is_running
    finally:
        p.stop()
        p.wait(2.0)


def test_unexpected_read_exception_does_not_stop_loop() -> None:
    calls: list[int] = []

    def read(window: ReadWindow) -> bytes:
        calls.append(1)
        if len(calls) <= 3:
            raise OSError("connection reset by peer")
        return b"\x80"

    mocked = MagicMock()
    mocked.read_window.side_effect = read
    p = Poller(mocked, interval_s=INTERVAL)
    received: list[list[bool]] = []
    try:
        p.start(ReadWindow(0, 1), received.append)
        assert wait_for(lambda: len(received) >= 1)
        assert len(calls) >= 4
        assert p.is_running
        assert received[0] == [True] + [False] * 7
    finally:
        p.stop()
        p.wait(2.0)


def test_cancellation_event_exists_only_while_running(poller: Poller) -> None:
    assert poller._stop_event is None
    poller.start(ReadWindow(0, 1), lambda bits: None)
    event = poller._stop_event
    assert event is not None and not event.is_set()
    poller.stop()
    assert poller._stop_event is None
    assert event.is_set()
    assert not poller.stop()
