# src/llm/retry.py - v2
"""Bounded exponential backoff around a single generative call.

Transient failures (rate limiting, overload, network) are retried with a
growing delay; everything else is re-raised on the spot. Classification into
user-facing errors happens downstream, so the raw error is what escapes.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from pmdesigner.llm.errors import is_retryable

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[object]]


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget: ``max_retries`` retries after the first attempt."""

    max_retries: int
    initial_delay_s: float
    backoff_factor: float = 2.0
    jitter: bool = False

    def delays(self) -> list[float]:
        """Backoff schedule without jitter, one entry per retry."""
        return [self.initial_delay_s * (self.backoff_factor**i) for i in range(self.max_retries)]


TEXT_RETRY_POLICY = RetryPolicy(max_retries=3, initial_delay_s=2.0)
# Image generation fails more often; delays 5s, 10s, 20s, 40s, 80s.
IMAGE_RETRY_POLICY = RetryPolicy(max_retries=5, initial_delay_s=5.0)


def _jittered(delay: float) -> float:
    return delay * (0.5 + random.random())  # noqa: S311


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy = TEXT_RETRY_POLICY,
    *,
    label: str = "generate",
    sleep: SleepFn = asyncio.sleep,
) -> T:
    """Run ``operation`` with retry on transient failures.

    Args:
        operation: Zero-argument coroutine factory, invoked once per attempt.
        policy: Retry budget and backoff schedule.
        label: Name used in log records.
        sleep: Awaitable sleep, injectable for tests.

    Returns:
        The first successful result.

    Raises:
        Exception: The raw error of the first fatal failure, or of the last
            attempt once retries are exhausted.
    """
    current_delay = policy.initial_delay_s
    total_attempts = policy.max_retries + 1

    for attempt in range(1, total_attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if attempt >= total_attempts:
                logger.warning(
                    "'%s' failed after %d attempts: %s", label, attempt, e
                )
                raise
            if not is_retryable(e):
                logger.debug("'%s' failed with a non-retryable error: %s", label, e)
                raise

            delay = _jittered(current_delay) if policy.jitter else current_delay
            logger.warning(
                "'%s' transient failure (attempt %d/%d), retrying in %.1fs: %s",
                label, attempt, total_attempts, delay, e,
            )
            await sleep(delay)
            current_delay *= policy.backoff_factor

    raise RuntimeError("unreachable: retry loop exited without result")
