"""Core data model: read windows, decoded readings, memory areas and session settings."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .codec import to_bits, to_words

# Poll cadence and per-read byte limits for the S7-200 SMART V area viewer.
POLL_INTERVAL_S = 1.0
POLL_MAX_BYTES = 4

# Display grid: 20 rows x 32 columns = 640 bits = 80 bytes.
GRID_ROWS = 20
GRID_COLS = 32
SINGLE_SHOT_MAX_BYTES = GRID_ROWS * GRID_COLS // 8


class MemoryArea(str, Enum):
    """Addressing scheme that served a V area read."""

    DATA_BLOCK = "db"
    FLAT_MEMORY = "mb"


@dataclass(frozen=True)
class SessionConfig:
    """Fixed connection parameters for this device family (not user-exposed)."""

    rack: int = 0
    slot: int = 1
    connect_timeout: float = 5.0
    idle_timeout: float = 60.0
    reconnect_delay: float = 0.1
    # The V area is mapped to DB1 on S7-200 SMART firmware.
    v_area_db: int = 1

    def __post_init__(self) -> None:
        if self.rack < 0:
            raise ValueError(f"rack must be >= 0, got {self.rack}")
        if self.slot < 0:
            raise ValueError(f"slot must be >= 0, got {self.slot}")
        if self.connect_timeout <= 0 or self.idle_timeout <= 0:
            raise ValueError("timeouts must be positive")
        if self.reconnect_delay < 0:
            raise ValueError(f"reconnect_delay must be >= 0, got {self.reconnect_delay}")


@dataclass(frozen=True)
class ReadWindow:
    """One read request: start byte offset in the V area and byte count."""

    start: int
    count: int

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError(f"start must be >= 0, got {self.start}")
        if self.count < 1:
            raise ValueError(f"count must be >= 1, got {self.count}")

    @classmethod
    def clamped(cls, start: int, count: int, max_bytes: int) -> ReadWindow:
        """Build a window whose count is coerced into [1, max_bytes]."""
        return cls(start=start, count=max(1, min(count, max_bytes)))

    def clamp(self, max_bytes: int) -> ReadWindow:
        if self.count <= max_bytes:
            return self
        return ReadWindow(start=self.start, count=max(1, max_bytes))


@dataclass(frozen=True)
class DecodedReading:
    """Raw bytes of one read plus their word and bit projections."""

    window: ReadWindow
    data: bytes
    area: MemoryArea
    words: tuple[int, ...]
    bits: tuple[bool, ...]

    @classmethod
    def from_bytes(cls, window: ReadWindow, data: bytes, area: MemoryArea) -> DecodedReading:
        data = bytes(data)
        return cls(
            window=window,
            data=data,
            area=area,
            words=tuple(to_words(data)),
            bits=tuple(to_bits(data)),
        )
