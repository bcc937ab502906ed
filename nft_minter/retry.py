"""
Fixed-count, fixed-delay retry for upstream calls.
"""

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import AsyncRetrying, RetryCallState, stop_after_attempt, wait_fixed

from .logging_utils import create_operation_logger

logger = create_operation_logger("retry")

T = TypeVar('T')


class RetryingCaller:
    """
    Blind retry around a single async operation.

    Every failure is retried the same way: wait ``delay`` seconds and try
    again, up to ``max_attempts`` attempts in total. The last failure is
    re-raised unchanged.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        delay: float = 5.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.delay = delay
        self._sleep = sleep

    async def call(self, operation: Callable[[], Awaitable[T]], description: str = "operation") -> T:
        """Await ``operation()`` until it succeeds or attempts run out."""
        # tenacity only awaits coroutine functions, not lambdas returning coroutines
        async def attempt() -> T:
            return await operation()

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.delay),
            sleep=self._sleep,
            reraise=True,
            before_sleep=self._log_retry(description),
        )
        return await retrying(attempt)

    def _log_retry(self, description: str) -> Callable[[RetryCallState], None]:
        def before_sleep(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            logger.warning(
                f"{description} failed, retrying... ({retry_state.attempt_number}/{self.max_attempts})",
                error=str(error),
                error_type=type(error).__name__,
                retry_delay_seconds=self.delay
            )
        return before_sleep
