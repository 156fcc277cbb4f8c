"""Error hierarchy for feedcache."""

import logging
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)


class ErrorCategory(Enum):
    """Categories of errors for better user experience."""

    CONFIGURATION = "configuration"
    STORAGE = "storage"
    READ = "read"
    WRITE = "write"


class FeedCacheError(Exception):
    """Base exception for feedcache with enhanced user experience."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        *,
        solution: str | None = None,
        details: str | None = None,
        recoverable: bool = True,
        log_level: int = logging.ERROR,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.solution = solution
        self.details = details
        self.recoverable = recoverable
        self.log_level = log_level
        self.original_error = original_error

    def log(self, target: logging.Logger | None = None) -> None:
        """Log the error at its own level, with the underlying cause attached."""
        target = target or logger
        message = self.message
        if self.solution:
            message = f"{message} ({self.solution})"
        target.log(
            self.log_level,
            "%s: %s",
            self.category.value,
            message,
            exc_info=self.original_error,
        )


class ConfigurationError(FeedCacheError):
    """Configuration-related errors."""

    def __init__(self, message: str, *, config_path: Path | None = None, **kwargs):
        solution = kwargs.pop("solution", None)
        if not solution and config_path:
            solution = f"Check your configuration file at {config_path}"
        super().__init__(
            message,
            ErrorCategory.CONFIGURATION,
            solution=solution,
            **kwargs,
        )


class FeedStoreError(FeedCacheError):
    """Base class for errors raised by the feed store and its adapter."""


class StoreUnavailableError(FeedStoreError):
    """The storage model or engine could not be opened at the given location."""

    def __init__(self, message: str, *, location: Path | str | None = None, **kwargs):
        solution = kwargs.pop("solution", None)
        if not solution and location is not None:
            solution = f"Check that {location} is a writable feed store database"
        super().__init__(
            message,
            ErrorCategory.STORAGE,
            solution=solution,
            recoverable=False,
            **kwargs,
        )


class ReadFailureError(FeedStoreError):
    """Reading the cached feed failed (I/O error or corrupted data)."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, ErrorCategory.READ, **kwargs)


class WriteFailureError(FeedStoreError):
    """A write transaction could not be committed; nothing was changed."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, ErrorCategory.WRITE, **kwargs)

