"""Retry helper with exponential backoff and jitter for RPC calls"""
import logging
import random
from asyncio import sleep
from typing import Any, Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

RATE_LIMIT_MARKERS = ("429", "Too Many Requests", "rate limit")


def is_rate_limited(error: BaseException) -> bool:
    """Check whether an error message looks like an RPC rate limit response"""
    message = str(error)
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay_ms: float = 100,
) -> T:
    """
    Run an async operation, retrying on failure

    Rate limited failures back off exponentially
    (base * 2^attempt + up to 100ms jitter); other failures wait
    base + up to 50ms jitter.

    Args:
        operation: Zero-argument callable returning an awaitable
        max_retries: Retries after the first attempt
        base_delay_ms: Base delay in milliseconds

    Returns:
        Result of the operation

    Raises:
        ValueError: if max_retries is negative
        The last error raised by the operation once retries are exhausted
    """
    if max_retries < 0:
        raise ValueError(f"max_retries must be >= 0, got {max_retries}")

    last_error: Any = None

    for attempt in range(max_retries + 1):
        try:
            return await operation()
        except Exception as e:
            last_error = e
            if attempt >= max_retries:
                break

            if is_rate_limited(e):
                delay_ms = base_delay_ms * (2 ** attempt) + random.uniform(0, 100)
                logger.info(
                    f"Rate limited, retrying in {round(delay_ms)}ms "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
            else:
                delay_ms = base_delay_ms + random.uniform(0, 50)
                logger.debug(f"RPC call failed ({e}), retrying in {round(delay_ms)}ms")

            await sleep(delay_ms / 1000)

    raise last_error
