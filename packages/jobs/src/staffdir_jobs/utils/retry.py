"""
utils/retry.py — Exponential-backoff retry decorator for async provider calls.

Uses tenacity under the hood. Each retry is logged with structlog so a
throttled run is visible in the job output.

Usage:
    from staffdir_jobs.utils.retry import with_retry
    from staffdir_shared.mailer import EmailRateLimited, send_email

    send = with_retry(max_attempts=4, retry_on=EmailRateLimited)(send_email)
    await send(to="owner@acme.com", message=message)

    # Default decorator (3 attempts, 1/2/4 s delays, retries on any Exception)
    @with_retry()
    async def call_api() -> dict: ...
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Coroutine
from typing import Any, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

log = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Coroutine[Any, Any, Any]])


def with_retry(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    retry_on: type[Exception] | tuple[type[Exception], ...] = Exception,
) -> Callable[[F], F]:
    """
    Decorator that retries an async function with exponential backoff.

    Delays: base_delay * 2^(attempt-1), capped at max_delay.

    Args:
        max_attempts: Total attempts (first call included) before raising.
        base_delay:   Initial delay in seconds.
        max_delay:    Maximum delay cap in seconds.
        retry_on:     Exception type(s) that trigger a retry. Anything else
                      propagates immediately.

    Returns:
        Decorated async function. The last exception is re-raised once
        attempts are exhausted.
    """

    def decorator(fn: F) -> F:
        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempt_log = log.bind(function=fn.__qualname__)
            try:
                async for attempt in AsyncRetrying(
                    stop=stop_after_attempt(max_attempts),
                    wait=wait_exponential(multiplier=base_delay, max=max_delay),
                    retry=retry_if_exception_type(retry_on),
                    reraise=True,
                ):
                    with attempt:
                        attempt_num = attempt.retry_state.attempt_number
                        if attempt_num > 1:
                            attempt_log.warning(
                                "retry_attempt",
                                attempt=attempt_num,
                                max_attempts=max_attempts,
                            )
                        return await fn(*args, **kwargs)
            except retry_on as exc:
                attempt_log.error(
                    "retry_exhausted", max_attempts=max_attempts, error=str(exc)
                )
                raise

        return wrapper  # type: ignore[return-value]

    return decorator
