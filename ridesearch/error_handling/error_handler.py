"""
Error handler with retry logic for ride store calls.

Implements exponential backoff and per-attempt timeout escalation.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Tuple, Type

from ridesearch.config import RetryConfig
from .exceptions import StoreUnavailableError


# Configure logging
logger = logging.getLogger(__name__)


def get_timeout(config: RetryConfig, attempt: int) -> float:
    """
    Calculate the timeout for a specific attempt, in seconds.

    Timeout escalates exponentially with each attempt using the formula:
    timeout = initial_timeout_ms * (timeout_multiplier ^ attempt)

    Args:
        config: Retry configuration
        attempt: The attempt number (0-indexed)

    Returns:
        Timeout value in seconds for the given attempt
    """
    return config.initial_timeout_ms * (config.timeout_multiplier ** attempt) / 1000.0


def get_backoff_delay(config: RetryConfig, attempt: int) -> float:
    """
    Calculate backoff delay before the next attempt.

    delay = backoff_base_seconds * (2 ^ attempt)

    Args:
        config: Retry configuration
        attempt: The attempt number that just failed (0-indexed)

    Returns:
        Delay in seconds
    """
    return config.backoff_base_seconds * (2 ** attempt)


class ErrorHandler:
    """
    Retry wrapper for store operations.

    Each attempt runs under its own timeout; a timed-out attempt counts as a
    StoreUnavailableError. Only the configured exception types are retried,
    anything else propagates immediately.

    Attributes:
        config: Retry configuration
        retry_on: Exception types that trigger another attempt
    """

    def __init__(
        self,
        config: RetryConfig = None,
        retry_on: Tuple[Type[BaseException], ...] = (StoreUnavailableError,)
    ):
        self.config = config or RetryConfig()
        self.retry_on = retry_on

    async def retry_with_backoff(
        self,
        operation: Callable,
        *args,
        **kwargs
    ) -> Any:
        """
        Execute operation with exponential backoff retry logic.

        Args:
            operation: Async callable to execute
            *args: Positional arguments for the operation
            **kwargs: Keyword arguments for the operation

        Returns:
            Result from successful operation execution

        Raises:
            StoreUnavailableError: if every attempt failed or timed out
            Exception: any non-retryable error raised by the operation
        """
        name = getattr(operation, "__name__", repr(operation))
        last_exception = None
        max_attempts = max(1, self.config.max_retries)

        for attempt in range(max_attempts):
            timeout = get_timeout(self.config, attempt)
            try:
                return await asyncio.wait_for(operation(*args, **kwargs), timeout=timeout)
            except asyncio.TimeoutError:
                last_exception = StoreUnavailableError(
                    f"{name} timed out after {timeout:.2f}s"
                )
            except self.retry_on as e:
                last_exception = e

            self._log_error(name, attempt + 1, max_attempts, last_exception)

            if attempt == max_attempts - 1:
                logger.error(
                    f"Operation {name} failed after {max_attempts} attempts. "
                    f"Final error: {last_exception}"
                )
                break

            backoff_delay = get_backoff_delay(self.config, attempt)
            logger.info(f"Waiting {backoff_delay:.1f}s before retrying {name}...")
            await asyncio.sleep(backoff_delay)

        raise last_exception

    def _log_error(
        self,
        operation_name: str,
        attempt: int,
        max_attempts: int,
        error: BaseException
    ) -> None:
        """Log a failed attempt with diagnostic context."""
        context = {
            'timestamp': datetime.now().isoformat(),
            'operation': operation_name,
            'attempt': f"{attempt}/{max_attempts}",
            'error_type': type(error).__name__,
            'error_message': str(error),
        }

        logger.warning(
            f"Operation failed: {operation_name} | "
            f"Attempt: {attempt}/{max_attempts} | "
            f"Error: {type(error).__name__}: {error}"
        )
        logger.debug(f"Full error context: {context}")
