"""
Error Handling and Retry Logic
==============================

This module provides the error taxonomy, exit code mapping and the bounded
retry helper used by the AutoBk command line tool.

Features:
- Error categories with a distinct process exit code per category
- Exception hierarchy rooted at AutoBkError
- Exponential backoff with optional jitter
- Retry decorator for transient connection failures
"""

import functools
import logging
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Type

# Configure logging
logger = logging.getLogger(__name__)


class ErrorCategory(Enum):
    """Error category classification."""
    VALIDATION = "validation"
    CONNECTION = "connection"
    QUERY = "query"
    CONFIGURATION = "configuration"
    NOT_FOUND = "not_found"
    BACKUP = "backup"


EXIT_OK = 0
EXIT_USAGE = 2

EXIT_CODES = {
    ErrorCategory.VALIDATION: 1,
    ErrorCategory.CONNECTION: 3,
    ErrorCategory.QUERY: 4,
    ErrorCategory.CONFIGURATION: 5,
    ErrorCategory.NOT_FOUND: 6,
    ErrorCategory.BACKUP: 7,
}


class AutoBkError(Exception):
    """Base class for every failure reported to the operator."""
    category: ErrorCategory

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def exit_code(self) -> int:
        return EXIT_CODES[self.category]


class ValidationError(AutoBkError):
    """A required field is empty. Raised before any I/O."""
    category = ErrorCategory.VALIDATION


class ConfigError(AutoBkError):
    """Configuration is missing or malformed."""
    category = ErrorCategory.CONFIGURATION


class DatabaseConnectionError(AutoBkError):
    """The connection pool could not hand out a connection."""
    category = ErrorCategory.CONNECTION


class QueryError(AutoBkError):
    """A statement failed to execute."""
    category = ErrorCategory.QUERY


class DeviceNotFoundError(AutoBkError):
    """No Device row matched the selector."""
    category = ErrorCategory.NOT_FOUND


class BackupTriggerError(AutoBkError):
    """The backup collaborator could not start a backup."""
    category = ErrorCategory.BACKUP


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 10.0
    backoff_multiplier: float = 2.0
    jitter: bool = True
    retryable_exceptions: List[Type[Exception]] = field(default_factory=list)


class RetryManager:
    """Manages retry logic with exponential backoff."""

    def __init__(self, config: RetryConfig):
        self.config = config

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay for next retry attempt."""
        delay = self.config.base_delay * (self.config.backoff_multiplier ** attempt)
        delay = min(delay, self.config.max_delay)

        if self.config.jitter:
            delay *= (0.5 + random.random() * 0.5)

        return delay

    def should_retry(self, exception: Exception, attempt: int) -> bool:
        """Only the configured exception types are retried, up to max_attempts."""
        if attempt + 1 >= self.config.max_attempts:
            return False

        return isinstance(exception, tuple(self.config.retryable_exceptions))


def retry_with_backoff(config: RetryConfig = None):
    """Decorator for adding retry logic to functions."""
    if config is None:
        config = RetryConfig()

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            retry_manager = RetryManager(config)
            attempt = 0

            while True:
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if not retry_manager.should_retry(e, attempt):
                        if attempt > 0:
                            logger.error(f"All {attempt + 1} attempts failed for {func.__name__}")
                        raise

                    delay = retry_manager.calculate_delay(attempt)
                    logger.warning(f"Attempt {attempt + 1} failed for {func.__name__}: {e}. Retrying in {delay:.2f}s")
                    time.sleep(delay)
                    attempt += 1

        return wrapper
    return decorator
