"""Bounded retry with exponential backoff.

``sleep`` is injectable so tests run without real delays.
"""

import time
from collections.abc import Callable

import structlog

logger = structlog.get_logger(__name__)


def backoff_delay(attempt: int, base: float) -> float:
    """Delay before retry number ``attempt`` (1-based): base, 2*base, 4*base, ..."""
    return base * (2 ** (attempt - 1))


def retry_call(
    fn: Callable,
    *,
    operation: str,
    attempts: int,
    backoff: float,
    retry_on: tuple[type[BaseException], ...] | type[BaseException],
    sleep: Callable[[float], None] = time.sleep,
    **log_context,
):
    """Call ``fn`` until it succeeds or ``attempts`` runs out; the last error propagates."""
    attempts = max(1, attempts)
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except retry_on as exc:
            if attempt == attempts:
                logger.error(
                    "retries_exhausted",
                    operation=operation,
                    attempts=attempts,
                    error=str(exc),
                    **log_context,
                )
                raise
            delay = backoff_delay(attempt, backoff)
            logger.warning(
                "retrying",
                operation=operation,
                attempt=attempt,
                delay=delay,
                error=str(exc),
                **log_context,
            )
            sleep(delay)
