"""Clear exceptions for pys7-vbits: connection, read and input errors."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types import ReadWindow


class S7VBitsError(Exception):
    """Base exception for pys7-vbits."""

    pass


class PLCConnectionError(S7VBitsError):
    """Raised when the transport cannot be opened; the session stays disconnected."""

    def __init__(self, host: str, message: str | None = None, *, cause: BaseException | None = None) -> None:
        self.host = host
        self.cause = cause
        if message is None:
            message = f"Failed to connect to PLC at {host!r}"
            if cause is not None:
                message = f"{message}: {cause}"
        super().__init__(message)


class NotConnectedError(S7VBitsError):
    """Raised when a read is attempted with no active session."""

    def __init__(self, message: str = "PLC is not connected") -> None:
        super().__init__(message)


class TransportError(S7VBitsError):
    """Raised when a single S7 request fails (wraps snap7 or socket errors)."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        offset: int | None = None,
        count: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.operation = operation
        self.offset = offset
        self.count = count
        self.cause = cause
        super().__init__(message)


class ReadError(S7VBitsError):
    """Raised when both the data-block read and the flat-memory read failed."""

    def __init__(
        self,
        window: ReadWindow,
        data_block_error: BaseException,
        flat_memory_error: BaseException,
    ) -> None:
        self.window = window
        self.data_block_error = data_block_error
        self.flat_memory_error = flat_memory_error
        super().__init__(
            f"V area read failed at offset {window.start} ({window.count} bytes): "
            f"data block: {data_block_error}; flat memory: {flat_memory_error}"
        )


class InputError(S7VBitsError):
    """Raised by the presentation layer when user-entered text is not a valid number."""

    def __init__(self, field: str, value: str, message: str | None = None) -> None:
        self.field = field
        self.value = value
        super().__init__(message or f"Invalid {field}: {value!r}")
