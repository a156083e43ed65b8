"""Poller: start/stop controlled background loop delivering V area bits to a sink."""

import logging
import threading
from typing import Callable

from .codec import to_bits
from .session import SessionManager
from .types import POLL_INTERVAL_S, POLL_MAX_BYTES, ReadWindow

logger = logging.getLogger(__name__)

BitsSink = Callable[[list[bool]], None]


class Poller:
    """
    At most one polling loop per instance.

    Each start creates a fresh cancellation event that belongs to exactly one
    loop; stop fires it once. A loop is running exactly while its event is the
    current one. Ticks run every interval_s seconds and read at most max_bytes
    bytes through the session.
    """

    def __init__(
        self,
        session: SessionManager,
        interval_s: float = POLL_INTERVAL_S,
        max_bytes: int = POLL_MAX_BYTES,
    ) -> None:
        if interval_s <= 0:
            raise ValueError(f"interval_s must be positive, got {interval_s}")
        self._session = session
        self._interval_s = interval_s
        self._max_bytes = max_bytes
        self._lock = threading.Lock()
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._stop_event is not None

    def start(self, window: ReadWindow, sink: BitsSink) -> bool:
        """Launch the loop; returns False without doing anything if one is already running."""
        window = window.clamp(self._max_bytes)
        with self._lock:
            if self._stop_event is not None:
                return False
            stop_event = threading.Event()
            self._stop_event = stop_event
            thread = threading.Thread(
                target=self._run,
                args=(window, sink, stop_event),
                name=f"s7-poll-{window.start}",
                daemon=True,
            )
            self._thread = thread
            thread.start()
        logger.info("Polling V%d (%d bytes) every %.1fs", window.start, window.count, self._interval_s)
        return True

    def stop(self) -> bool:
        """Cancel the running loop; returns False if nothing was running."""
        with self._lock:
            stop_event = self._stop_event
            if stop_event is None:
                return False
            self._stop_event = None
            stop_event.set()
        logger.info("Polling stopped")
        return True

    def wait(self, timeout: float | None = None) -> bool:
        """Join the most recent loop thread; returns True once it has exited."""
        with self._lock:
            thread = self._thread
        if thread is None:
            return True
        if thread is threading.current_thread():
            raise RuntimeError("Poller.wait() called from the polling thread")
        thread.join(timeout)
        return not thread.is_alive()

    def _run(self, window: ReadWindow, sink: BitsSink, stop_event: threading.Event) -> None:
        try:
            while not stop_event.wait(self._interval_s):
                # Any read failure only costs this tick.
                try:
                    data = self._session.read_window(window)
                except Exception as e:
                    logger.warning("Poll read of V%d failed: %s", window.start, e)
                    continue
                try:
                    sink(to_bits(data))
                except Exception:
                    logger.exception("Polling loop for V%d aborted by its sink", window.start)
                    return
        finally:
            with self._lock:
                # Only clear state that still belongs to this loop.
                if self._stop_event is stop_event:
                    self._stop_event = None
