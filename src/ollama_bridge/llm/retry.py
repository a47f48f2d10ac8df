"""Retry wrapper for streaming operations.

``with_retry(operation, policy)`` takes an async-generator function and
returns one with the same signature that re-invokes *operation* when it
fails, according to *policy*.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from contextlib import aclosing
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, TypeVar

from ollama_bridge.errors import status_code_of

_logger = logging.getLogger(__name__)

T = TypeVar("T")

StreamOperation = Callable[..., AsyncIterator[T]]


@dataclass(frozen=True)
class RetryPolicy:
    """When and how long to wait before re-invoking a failed stream.

    Parameters
    ----------
    max_retries:
        Total number of attempts, including the first.
    base_delay / max_delay:
        Exponential backoff bounds in seconds: ``base_delay * 2**attempt``,
        capped at ``max_delay``.
    retry_all_errors:
        Retry every error, not only rate limits (HTTP 429).
    retry_after_output:
        Allow a retry after events were already yielded.  Off by default,
        since the consumer would see the replayed prefix twice.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    retry_all_errors: bool = False
    retry_after_output: bool = False

    def should_retry(self, error: BaseException, attempt: int, yielded: bool) -> bool:
        if attempt >= self.max_retries - 1:
            return False
        if yielded and not self.retry_after_output:
            return False
        return self.retry_all_errors or status_code_of(error) == 429

    def delay_for(self, error: BaseException, attempt: int) -> float:
        """Seconds to wait before attempt ``attempt + 1``."""
        retry_after = _retry_after_seconds(error)
        if retry_after is not None:
            return retry_after
        return min(self.max_delay, self.base_delay * (2 ** attempt))


def _retry_after_seconds(error: BaseException) -> float | None:
    """Interpret a ``Retry-After`` value as delta-seconds or a unix timestamp."""
    raw = getattr(error, "retry_after", None)
    if raw is None:
        response = getattr(error, "response", None)
        headers = getattr(response, "headers", None)
        if headers is not None:
            raw = headers.get("retry-after")
    if raw is None:
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    now = time.time()
    if value > now:
        return value - now
    return max(value, 0.0)


def with_retry(
    operation: StreamOperation[T],
    policy: RetryPolicy | None = None,
) -> StreamOperation[T]:
    """Wrap the async-generator function *operation* with *policy*."""
    policy = policy or RetryPolicy()

    @functools.wraps(operation)
    async def _wrapped(*args: Any, **kwargs: Any) -> AsyncIterator[T]:
        for attempt in range(max(1, policy.max_retries)):
            yielded = False
            try:
                async with aclosing(operation(*args, **kwargs)) as items:
                    async for item in items:
                        yielded = True
                        yield item
                return
            except Exception as e:
                if not policy.should_retry(e, attempt, yielded):
                    raise
                delay = policy.delay_for(e, attempt)
                _logger.warning(
                    "Stream failed (attempt %d/%d): %s. Retrying in %.1fs...",
                    attempt + 1, policy.max_retries, e, delay,
                )
                await asyncio.sleep(delay)

    return _wrapped
