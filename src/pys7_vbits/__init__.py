"""pys7-vbits: S7-200 SMART V area viewer via python-snap7, rendered as bits and 16-bit words."""

__version__ = "0.1.0"

from .codec import bits_to_bytes, to_bits, to_words
from .errors import (
    InputError,
    NotConnectedError,
    PLCConnectionError,
    ReadError,
    S7VBitsError,
    TransportError,
)
from .grid import BitGrid, CellState, format_bits, format_words
from .poller import Poller
from .session import SessionManager
from .transport import S7Transport, Transport
from .types import DecodedReading, MemoryArea, ReadWindow, SessionConfig
from .viewer import BinaryViewer

__all__ = [
    "__version__",
    "BinaryViewer",
    "SessionManager",
    "Poller",
    "S7Transport",
    "Transport",
    "InputError",
    "NotConnectedError",
    "PLCConnectionError",
    "ReadError",
    "S7VBitsError",
    "TransportError",
    "bits_to_bytes",
    "to_bits",
    "to_words",
    "BitGrid",
    "CellState",
    "format_bits",
    "format_words",
    "DecodedReading",
    "MemoryArea",
    "ReadWindow",
    "SessionConfig",
]
