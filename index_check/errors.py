from __future__ import annotations

from typing import Any, Optional


class IndexCheckError(RuntimeError):
    """Base class for conditions that abort an invocation."""


class InputFormatError(IndexCheckError):
    """Raised when the source dataset does not contain four integer columns."""

    def __init__(self, message: str, line_number: Optional[int] = None) -> None:
        super().__init__(message)
        self.line_number = line_number


class UnsupportedConfigurationError(IndexCheckError):
    """Raised for unknown backing stores, query strategies or invalid settings."""


class TransportError(IndexCheckError):
    """Raised when the index or the database cannot be reached."""

    def __init__(self, message: str, target: Optional[str] = None) -> None:
        super().__init__(message)
        self.target = target


class MalformedResponseError(IndexCheckError):
    """Raised when an index response lacks the expected result envelope."""

    def __init__(self, message: str, body: Any = None) -> None:
        super().__init__(message)
        self.body = body


__all__ = [
    "IndexCheckError",
    "InputFormatError",
    "MalformedResponseError",
    "TransportError",
    "UnsupportedConfigurationError",
]
