"""Error types for clip-batch.

The parser and the script generator never raise: bad rows and unreadable
tables travel back as data. The exceptions here cover everything around
that core, such as reading input files, loading configuration and
writing scripts.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable

from clip_batch.logging import get_logger

logger = get_logger(__name__)


class ErrorCategory(str, Enum):
    """Categories of errors for handling decisions."""

    VALIDATION = "validation"  # Bad input values
    CONFIGURATION = "configuration"  # Bad or unreadable config file
    RESOURCE = "resource"  # Missing or unwritable file
    INTERNAL = "internal"  # Bug in code


class ClipBatchError(Exception):
    """Base exception for clip-batch errors.

    Attributes:
        message: Human-readable error message
        category: Error category for handling
        context: Additional context information
    """

    category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(self, message: str, context: dict | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} (context: {self.context})"
        return self.message


class ValidationError(ClipBatchError):
    """Input validation error.

    Examples: input file that is not UTF-8 text.
    """

    category = ErrorCategory.VALIDATION


class ConfigurationError(ClipBatchError):
    """Configuration error.

    Examples: config file is not JSON, a keyword list is empty.
    """

    category = ErrorCategory.CONFIGURATION


class ResourceError(ClipBatchError):
    """Resource not found or unavailable.

    Examples: missing cut-list file, output directory not writable.
    """

    category = ErrorCategory.RESOURCE


class ErrorContext:
    """Context manager that logs a failing operation and re-raises.

    Optionally runs a cleanup callback, e.g. to remove a half-written
    script file.
    """

    def __init__(
        self,
        operation: str,
        cleanup: Callable[[], None] | None = None,
        context: dict | None = None,
    ):
        self.operation = operation
        self.cleanup = cleanup
        self.context = context or {}
        self.error: Exception | None = None

    def __enter__(self) -> "ErrorContext":
        logger.debug(f"Starting operation: {self.operation}")
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: Any) -> bool:
        if exc_val is None:
            logger.debug(f"Completed operation: {self.operation}")
            return False

        self.error = exc_val
        logger.error(
            f"Error in {self.operation}: {exc_val}",
            extra={
                "operation": self.operation,
                "error_type": type(exc_val).__name__,
                **self.context,
            },
        )

        if self.cleanup:
            try:
                self.cleanup()
            except OSError as cleanup_error:
                logger.error(f"Cleanup failed for {self.operation}: {cleanup_error}")

        return False


def format_error_for_display(error: Exception) -> str:
    """Format an error message for user display.

    Args:
        error: Error to format

    Returns:
        Human-readable error message
    """
    if isinstance(error, ClipBatchError):
        category = error.category.value
        if error.context:
            context_str = ", ".join(f"{k}={v}" for k, v in error.context.items())
            return f"[{category}] {error.message} ({context_str})"
        return f"[{category}] {error.message}"

    return f"[error] {type(error).__name__}: {error}"
