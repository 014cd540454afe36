"""Bounded retry for optimistic transactions."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from attendance_tracker.domain.errors import TransactionConflictError

_logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_on_conflict(
    func: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    backoff_seconds: float = 0.2,
    action: str = "transaction",
) -> T:
    """Run `func` again on a transaction conflict, backing off exponentially.

    Each attempt calls `func` from scratch, so every retry reads fresh state.
    The last conflict propagates once attempts are exhausted.
    """
    attempts = max(max_attempts, 1)
    attempt = 0
    while True:
        try:
            return await func()
        except TransactionConflictError:
            attempt += 1
            if attempt >= attempts:
                _logger.exception(
                    "%s conflicted %s times, giving up", action, attempt
                )
                raise
            _logger.warning(
                "%s conflicted (attempt %s/%s), retrying", action, attempt, attempts
            )
            await asyncio.sleep(backoff_seconds * (2 ** (attempt - 1)))
