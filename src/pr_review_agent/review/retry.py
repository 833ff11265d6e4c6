import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)
from pr_review_agent.providers.base import ProviderError, RateLimitError


logger = logging.getLogger(__name__)

_T = TypeVar("_T")


def is_rate_limit_error(exc: BaseException | None) -> bool:
    if isinstance(exc, RateLimitError):
        return True
    message = str(exc).lower()
    return "rate limit" in message or "quota" in message


def is_transient_error(exc: BaseException) -> bool:
    """Errors worth restarting the whole review for."""
    return (isinstance(exc, ProviderError) and exc.retryable) or is_rate_limit_error(exc)


@dataclass
class RetryPolicy:
    """Bounded retry with exponential backoff and jitter.

    Rate-limit errors add ``rate_limit_cooldown`` seconds to the regular
    backoff of ``initial_backoff * 2**attempt + uniform(0, jitter)``.
    """

    max_attempts: int = 3
    initial_backoff: float = 1.0
    jitter: float = 1.0
    rate_limit_cooldown: float = 10.0
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False)

    def _wait(self, retry_state: RetryCallState) -> float:
        backoff = wait_exponential(multiplier=self.initial_backoff) + wait_random(0, self.jitter)
        delay = backoff(retry_state)
        if is_rate_limit_error(retry_state.outcome.exception()):
            delay += self.rate_limit_cooldown
        return delay

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception()
        logger.warning(
            f"Error during review (attempt {retry_state.attempt_number}/{self.max_attempts}): {exc}"
        )
        if is_rate_limit_error(exc):
            logger.warning("Rate limit or quota exceeded. Waiting longer before retry...")
        logger.warning(f"Retrying in {retry_state.next_action.sleep:.1f}s")

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            retry=retry_if_exception_type(Exception),
            stop=stop_after_attempt(self.max_attempts),
            wait=self._wait,
            before_sleep=self._log_retry,
            sleep=self.sleep,
            reraise=True,
        )

    async def run(self, fn: Callable[[], Awaitable[_T]]) -> _T:
        return await self._retrying()(fn)
