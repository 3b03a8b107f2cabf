"""Shared error codes and exceptions for the scanner, aggregator and CLI."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"
    READ_ERROR = "READ_ERROR"
    WRITE_ERROR = "WRITE_ERROR"
    PERMISSION_ERROR = "PERMISSION_ERROR"
    PATTERN_ERROR = "PATTERN_ERROR"
    CONFIG_ERROR = "CONFIG_ERROR"


class ScanError(RuntimeError):
    """Exception carrying a structured error code for the CLI."""

    code: ErrorCode = ErrorCode.INVALID_INPUT

    def __init__(
        self,
        message: str,
        *,
        code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:  # pragma: no cover - formatting sugar
        base = super().__str__()
        return f"[{self.code.value}] {base}" if base else self.code.value


class InvalidInputError(ScanError):
    """Raised for a path that is not an eligible source file or directory."""

    code = ErrorCode.INVALID_INPUT


class NotFoundError(ScanError):
    code = ErrorCode.NOT_FOUND


class ReadError(ScanError):
    code = ErrorCode.READ_ERROR


class WriteError(ScanError):
    code = ErrorCode.WRITE_ERROR


class DirectoryPermissionError(ScanError):
    """Raised when a directory cannot be listed."""

    code = ErrorCode.PERMISSION_ERROR


class PatternError(ScanError):
    """Raised when the block-detection expression does not compile."""

    code = ErrorCode.PATTERN_ERROR


class ConfigError(ScanError):
    code = ErrorCode.CONFIG_ERROR
