"""BinaryViewer: the context object a presentation layer holds and calls into."""

import logging
from typing import Any, Callable

from .poller import BitsSink, Poller
from .session import SessionManager
from .transport import S7Transport, Transport
from .types import (
    POLL_INTERVAL_S,
    POLL_MAX_BYTES,
    SINGLE_SHOT_MAX_BYTES,
    DecodedReading,
    ReadWindow,
    SessionConfig,
)

logger = logging.getLogger(__name__)


class BinaryViewer:
    """
    V area viewer for one PLC: a SessionManager plus a Poller sharing it.

    Single-shot reads are clamped to SINGLE_SHOT_MAX_BYTES (the 20x32 grid);
    monitoring reads to POLL_MAX_BYTES.
    """

    def __init__(
        self,
        config: SessionConfig | None = None,
        transport_factory: Callable[[], Transport] = S7Transport,
        poll_interval_s: float = POLL_INTERVAL_S,
    ) -> None:
        self.session = SessionManager(config=config, transport_factory=transport_factory)
        self.poller = Poller(self.session, interval_s=poll_interval_s, max_bytes=POLL_MAX_BYTES)

    @property
    def is_connected(self) -> bool:
        return self.session.is_connected

    @property
    def is_monitoring(self) -> bool:
        return self.poller.is_running

    def connect(self, host: str) -> None:
        """Connect (or reconnect) to the PLC at host."""
        self.session.connect(host)

    def disconnect(self) -> None:
        """Stop monitoring and release the connection."""
        self.poller.stop()
        self.session.disconnect()

    def read_once(self, start: int, length: int) -> bytes:
        """Read `length` bytes (clamped to [1, 80]) starting at V`start`."""
        window = ReadWindow.clamped(start, length, SINGLE_SHOT_MAX_BYTES)
        return self.session.read_window(window)

    def read_display(self, start: int, length: int) -> DecodedReading:
        """Single-shot read decoded into words and bits for display."""
        window = ReadWindow.clamped(start, length, SINGLE_SHOT_MAX_BYTES)
        data, area = self.session.read_window_with_area(window)
        logger.debug("Read V%d..V%d via %s", window.start, window.start + window.count - 1, area.value)
        return DecodedReading.from_bytes(window, data, area)

    def start_monitoring(self, start: int, length: int, sink: BitsSink) -> bool:
        """Start live polling; returns False if monitoring is already running."""
        window = ReadWindow.clamped(start, length, POLL_MAX_BYTES)
        return self.poller.start(window, sink)

    def stop_monitoring(self) -> bool:
        return self.poller.stop()

    def close(self) -> None:
        self.disconnect()

    def __enter__(self) -> "BinaryViewer":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
