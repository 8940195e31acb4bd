"""Retry utilities with exponential backoff."""

import logging
import sqlite3

import structlog
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.stdlib.get_logger(__name__)

_TRANSIENT_MARKERS = ("database is locked", "database table is locked", "busy")


def is_transient_storage_error(exc: BaseException) -> bool:
    """True for SQLite lock contention; structural errors never qualify."""
    if not isinstance(exc, sqlite3.OperationalError):
        return False
    message = str(exc).lower()
    return any(marker in message for marker in _TRANSIENT_MARKERS)


def storage_retry(
    max_attempts: int = 3,
    min_wait: float = 0.1,
    max_wait: float = 2.0,
):
    """Retry decorator for SQLite reads under lock contention.

    Args:
        max_attempts: Max retry attempts
        min_wait: Min wait between retries (seconds)
        max_wait: Max wait between retries (seconds)
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=0.1, min=min_wait, max=max_wait),
        retry=retry_if_exception(is_transient_storage_error),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
