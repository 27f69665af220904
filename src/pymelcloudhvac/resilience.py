"""Retry policy for API calls (error classification and exponential backoff)."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pymelcloudhvac.const import (
    DEFAULT_BACKOFF_BASE_DELAY,
    DEFAULT_BACKOFF_EXPONENTIAL_BASE,
    DEFAULT_MAX_ATTEMPTS,
)
from pymelcloudhvac.exceptions import TransientNetworkError


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

_LOGGER = logging.getLogger(__name__)


@dataclass
class ExponentialBackoffConfig:
    """Configuration for exponential backoff pattern.

    Attributes:
        base_delay: Initial delay in seconds (default 1.0).
        max_delay: Maximum delay in seconds (default 60.0).
        max_retries: Total number of attempts, the first one included (default 3).
        exponential_base: Multiplier for exponential growth (default 2.0).
        jitter: Add randomness to prevent thundering herd (default False).
    """

    base_delay: float = DEFAULT_BACKOFF_BASE_DELAY
    max_delay: float = 60.0
    max_retries: int = DEFAULT_MAX_ATTEMPTS
    exponential_base: float = DEFAULT_BACKOFF_EXPONENTIAL_BASE
    jitter: bool = False


class ExponentialBackoff:
    """Exponential backoff calculator for retry delays.

    With the defaults, a call is attempted three times and the waits before
    the second and third attempts are 1s and 2s.

    Example:
        backoff = ExponentialBackoff()

        for attempt in range(backoff.max_retries):
            try:
                return await make_request()
            except TransientNetworkError:
                if attempt < backoff.max_retries - 1:
                    await asyncio.sleep(backoff.calculate_delay(attempt))
                else:
                    raise
    """

    def __init__(
        self,
        base_delay: float = DEFAULT_BACKOFF_BASE_DELAY,
        max_delay: float = 60.0,
        max_retries: int = DEFAULT_MAX_ATTEMPTS,
        exponential_base: float = DEFAULT_BACKOFF_EXPONENTIAL_BASE,
        *,
        jitter: bool = False,
    ) -> None:
        """Initialize exponential backoff calculator.

        Args:
            base_delay: Initial delay in seconds.
            max_delay: Maximum delay in seconds.
            max_retries: Total number of attempts.
            exponential_base: Multiplier for exponential growth.
            jitter: Add randomness to delays.
        """
        if max_retries < 1:
            msg = "max_retries must be at least 1"
            raise ValueError(msg)

        self.config = ExponentialBackoffConfig(
            base_delay=base_delay,
            max_delay=max_delay,
            max_retries=max_retries,
            exponential_base=exponential_base,
            jitter=jitter,
        )

    @property
    def max_retries(self) -> int:
        """Get the total number of attempts."""
        return self.config.max_retries

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay for a given retry attempt.

        Args:
            attempt: Retry attempt number (0-indexed).

        Returns:
            Delay in seconds for this attempt.
        """
        # base_delay * (exponential_base ^ attempt)
        delay = self.config.base_delay * (self.config.exponential_base**attempt)

        delay = min(delay, self.config.max_delay)

        if self.config.jitter:
            delay = random.uniform(0, delay)  # noqa: S311

        return delay


def is_transient_error(exc: BaseException) -> bool:
    """Check whether a failure is worth retrying.

    Transient failures are: no response at all (connection error, timeout),
    401 on an authenticated call, 429, and any 5xx. Everything else,
    including local validation errors and other HTTP statuses, is final.

    Args:
        exc: The exception raised by the attempt.

    Returns:
        True if the call should be retried.
    """
    return isinstance(exc, TransientNetworkError)


async def retry_with_backoff(
    func: Callable[[], Awaitable[Any]],
    *,
    backoff: ExponentialBackoff | None = None,
    is_retryable: Callable[[BaseException], bool] = is_transient_error,
    on_retry: Callable[[Exception], None] | None = None,
) -> Any:
    """Execute a zero-argument coroutine function, retrying transient failures.

    Args:
        func: Async function performing one remote call.
        backoff: Optional exponential backoff instance. Defaults to three
            attempts with 1s and 2s waits.
        is_retryable: Classifier deciding whether a failure is retried.
        on_retry: Optional hook called with the failure before waiting, e.g.
            to drop a rejected session token.

    Returns:
        Result from func() if successful.

    Raises:
        Exception: Non-retryable failures immediately; the last failure once
            all attempts are used.

    Example:
        result = await retry_with_backoff(
            lambda: api.fetch(),
            on_retry=lambda exc: auth.invalidate(),
        )
    """
    if backoff is None:
        backoff = ExponentialBackoff()

    attempt = 0
    while True:
        try:
            return await func()
        except Exception as exc:
            if not is_retryable(exc):
                raise

            if attempt >= backoff.max_retries - 1:
                _LOGGER.exception(
                    "All %d attempts exhausted",
                    backoff.max_retries,
                )
                raise

            if on_retry is not None:
                on_retry(exc)

            delay = backoff.calculate_delay(attempt)
            _LOGGER.warning(
                "Attempt %d/%d failed: %s. Retrying in %.1f seconds",
                attempt + 1,
                backoff.max_retries,
                exc,
                delay,
            )
            await asyncio.sleep(delay)
            attempt += 1
