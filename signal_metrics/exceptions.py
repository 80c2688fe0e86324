"""
Custom exceptions for signal-metrics.

This module defines all custom exceptions used throughout the library.
"""

from __future__ import annotations

from pathlib import Path


class SignalMetricsException(Exception):
    """Base exception for all signal-metrics errors."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def default_message(self) -> str:
        return "An unknown signal-metrics error occurred."


class DocumentNotFoundError(SignalMetricsException):
    """Raised when a snapshot document does not exist on disk."""

    def __init__(self, path: str | Path, message: str = "") -> None:
        self.path = str(path)
        super().__init__(message or f"Document not found: {self.path}")

    @property
    def default_message(self) -> str:
        return "Document not found."


class DecodeFailureError(SignalMetricsException):
    """Raised when a document's bytes cannot be read or decoded."""

    def __init__(self, path: str | Path, message: str = "") -> None:
        self.path = str(path)
        super().__init__(message or f"Unable to decode document: {self.path}")

    @property
    def default_message(self) -> str:
        return "Unable to decode document."


class StructuralMissError(SignalMetricsException):
    """Raised when an expected chart, table or label is absent."""

    def __init__(self, path: str | Path, element: str, message: str = "") -> None:
        self.path = str(path)
        self.element = element
        super().__init__(message or f"Expected {element} not found in {self.path}")

    @property
    def default_message(self) -> str:
        return "Expected document structure not found."


class ParseFailureError(SignalMetricsException):
    """Raised when a numeric token cannot be parsed."""

    @property
    def default_message(self) -> str:
        return "Malformed numeric token."


class MissingFieldError(StructuralMissError):
    """Raised when a load-bearing scalar field (balance, drawdown) is missing.

    Batch callers decide whether this aborts the whole run or only skips the
    offending document.
    """

    def __init__(self, path: str | Path, field: str) -> None:
        self.field = field
        super().__init__(path, field, f"Could not resolve {field} for document: {path}")

    @property
    def default_message(self) -> str:
        return "Required field missing."
