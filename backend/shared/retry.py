"""Bounded retry for async operations against flaky local services."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

import structlog

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry an operation up to ``max_attempts`` times.

    The delay before attempt ``n`` (1-based, n > 1) is
    ``delay_seconds * backoff ** (n - 2)``, capped at ``max_delay_seconds``.
    """

    max_attempts: int = 3
    delay_seconds: float = 0.2
    backoff: float = 1.0
    max_delay_seconds: float = 10.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds must not be negative")
        if self.backoff < 1:
            raise ValueError("backoff must be at least 1")

    def delay_before(self, attempt: int) -> float:
        if attempt <= 1:
            return 0.0
        return min(self.delay_seconds * self.backoff ** (attempt - 2), self.max_delay_seconds)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        should_retry: Callable[[Exception], bool] = lambda _exc: True,
        description: str = "operation",
    ) -> T:
        """Await ``operation`` until it succeeds or attempts run out.

        Exceptions for which ``should_retry`` returns False, and the exception
        from the final attempt, propagate to the caller.
        """
        attempt = 1
        while True:
            try:
                return await operation()
            except Exception as e:
                if attempt >= self.max_attempts or not should_retry(e):
                    raise
                attempts_left = self.max_attempts - attempt
                logger.warning(
                    "retrying after failure",
                    operation=description,
                    error=str(e),
                    attempts_left=attempts_left,
                )
                attempt += 1
                await asyncio.sleep(self.delay_before(attempt))
