"""Shared error codes and exceptions for the line reader."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    CONFIG_ERROR = "CONFIG_ERROR"
    IO_ERROR = "IO_ERROR"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    EMPTY_FILE = "EMPTY_FILE"


class BackendError(RuntimeError):
    """Exception carrying a structured error code for CLI/callers."""

    def __init__(self, code: ErrorCode, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.code = code
        self.context = context or {}

    def __str__(self) -> str:  # pragma: no cover - formatting sugar
        base = super().__str__()
        return f"[{self.code.value}] {base}" if base else self.code.value


class OutOfRangeError(BackendError):
    """Raised when a requested offset lies outside the file."""

    def __init__(self, *, offset: int, length: int) -> None:
        super().__init__(
            ErrorCode.OUT_OF_RANGE,
            f"Offset {offset} is outside the file (length={length})",
            context={"offset": offset, "length": length},
        )


class EmptyFileError(BackendError):
    """Raised when a full pass over the file found no complete line."""

    def __init__(self, *, source: str, length: int) -> None:
        super().__init__(
            ErrorCode.EMPTY_FILE,
            f"No complete line found in {source} after wrapping to start (length={length})",
            context={"source": source, "length": length},
        )


class LineReadError(BackendError):
    """Raised when the underlying handle fails to seek or read."""

    def __init__(self, *, source: str, operation: str, position: int) -> None:
        super().__init__(
            ErrorCode.IO_ERROR,
            f"Failed to {operation} {source} at position {position}",
            context={"source": source, "operation": operation, "position": position},
        )
