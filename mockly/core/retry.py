import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, FrozenSet, TypeVar

from mockly.core.exceptions import ProviderError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff shared by every outbound generation call.

    Rate-limit responses and transport failures are retried; any other
    provider error is surfaced on the first attempt.
    """

    max_attempts: int = 3
    base_delay: float = 2.0
    multiplier: float = 2.0
    retryable_statuses: FrozenSet[int] = frozenset({429})

    def is_retryable(self, error: Exception) -> bool:
        if not isinstance(error, ProviderError):
            return False
        return error.status is None or error.status in self.retryable_statuses

    def delay_for(self, attempt: int) -> float:
        """Delay before the retry that follows ``attempt`` (0-based)."""
        return self.base_delay * (self.multiplier ** attempt)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> T:
        attempt = 0
        while True:
            try:
                return await operation()
            except Exception as e:
                if attempt >= self.max_attempts - 1 or not self.is_retryable(e):
                    raise
                wait_time = self.delay_for(attempt)
                logger.warning(
                    f"⚠️ [RETRY] {e} - waiting {wait_time:.1f}s before retry {attempt + 2}/{self.max_attempts}"
                )
                await sleep(wait_time)
                attempt += 1


DEFAULT_RETRY_POLICY = RetryPolicy()
NO_RETRY = RetryPolicy(max_attempts=1)
