"""
Retry Coordination Module

This module implements the shared retry loop used by every provider client:
exponential backoff with jitter for transient failures, provider-suggested
delays for rate limits, and cancellable sleeps.
"""

import random
import re
import threading
import time
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional, TypeVar

from config import settings
from data.models import Provider, RateLimitSignal
from utils.exceptions import (
    CurationCancelledError,
    RateLimitError,
    RateLimitExhaustedError,
    TransientProviderError,
)
from utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar('T')

_NON_NUMERIC = re.compile(r'[^0-9.]')


@dataclass(frozen=True)
class RetryPolicy:
    """Retry parameters for one provider client. All delays are in milliseconds."""
    max_retries: int
    base_delay_ms: int
    max_delay_ms: int = 60000
    rate_limit_fallback_delay_ms: int = 30000
    jitter_ms: int = 500

    @classmethod
    def for_gemini(cls) -> 'RetryPolicy':
        return cls(
            max_retries=settings.GEMINI_MAX_RETRIES,
            base_delay_ms=settings.GEMINI_BASE_DELAY_MS,
            max_delay_ms=settings.MAX_DELAY_MS,
            rate_limit_fallback_delay_ms=settings.RATE_LIMIT_FALLBACK_DELAY_MS,
            jitter_ms=settings.RETRY_JITTER_MS,
        )

    @classmethod
    def for_openai_compatible(cls) -> 'RetryPolicy':
        return cls(
            max_retries=settings.OPENAI_COMPATIBLE_MAX_RETRIES,
            base_delay_ms=settings.OPENAI_COMPATIBLE_BASE_DELAY_MS,
            max_delay_ms=settings.MAX_DELAY_MS,
            rate_limit_fallback_delay_ms=settings.RATE_LIMIT_FALLBACK_DELAY_MS,
            jitter_ms=settings.RETRY_JITTER_MS,
        )

    def backoff_delay_ms(self, attempt: int, jitter: Optional[float] = None) -> int:
        """
        Delay before retrying after a transient failure.

        Args:
            attempt: The attempt that just failed, starting at 1
            jitter: Jitter in milliseconds; drawn from [0, jitter_ms] when None

        Returns:
            int: Delay in milliseconds
        """
        exponential = min(self.max_delay_ms, self.base_delay_ms * (2 ** (attempt - 1)))
        if jitter is None:
            jitter = random.uniform(0, self.jitter_ms) if self.jitter_ms > 0 else 0
        return int(exponential + jitter)

    def rate_limit_delay_ms(self, suggested_delay_ms: int) -> int:
        """Delay before retrying after a 429: the suggested delay when known, else the fallback."""
        if suggested_delay_ms and suggested_delay_ms > 0:
            return min(int(suggested_delay_ms), self.max_delay_ms)
        return self.rate_limit_fallback_delay_ms


def parse_retry_delay(value) -> int:
    """
    Parse a provider retry delay such as "46.799s" into milliseconds.

    Args:
        value: Duration string; any unit suffix is ignored and seconds assumed

    Returns:
        int: Delay in milliseconds, 0 when the value cannot be parsed
    """
    if value is None:
        return 0
    digits = _NON_NUMERIC.sub('', str(value))
    if not digits:
        return 0
    try:
        seconds = Decimal(digits)
    except InvalidOperation:
        return 0
    return max(0, int(seconds * 1000))


class CancellationToken:
    """Cooperative cancellation for one curation call.

    Backoff sleeps wait on the token, so cancelling wakes them up at once.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CurationCancelledError("Curation was cancelled")

    def sleep(self, seconds: float) -> None:
        """Sleep for `seconds`, raising CurationCancelledError if cancelled meanwhile."""
        if self._event.wait(timeout=max(0.0, seconds)):
            raise CurationCancelledError("Curation was cancelled during backoff")


class RetryCoordinator:
    """Runs one provider call under a RetryPolicy."""

    def __init__(self, policy: RetryPolicy, provider,
                 clock: Callable[[], float] = time.monotonic):
        self.policy = policy
        self.provider = Provider(provider)
        self.name = self.provider.value
        self._clock = clock

    def execute(self, call: Callable[[int], T],
                cancel_token: Optional[CancellationToken] = None,
                request_id: str = "-") -> T:
        """
        Invoke `call` until it succeeds or the policy is exhausted.

        Args:
            call: Performs one attempt; receives the attempt number
            cancel_token: Optional token aborting pending sleeps and attempts
            request_id: Correlation id for the log lines

        Returns:
            The value returned by the first successful attempt

        Raises:
            RateLimitExhaustedError: Every attempt up to the last was rate limited
            TransientProviderError: The last attempt failed transiently
            CurationCancelledError: The token was cancelled
            PermanentProviderError, ParseError: Raised from the attempt immediately
        """
        token = cancel_token or CancellationToken()
        started = self._clock()
        max_retries = self.policy.max_retries

        for attempt in range(1, max_retries + 1):
            token.raise_if_cancelled()
            try:
                result = call(attempt)
                token.raise_if_cancelled()
                logger.info(f"[{request_id}] {self.name} succeeded on attempt {attempt}/{max_retries} "
                            f"after {self._clock() - started:.2f}s")
                return result

            except RateLimitError as e:
                if attempt >= max_retries:
                    signal = RateLimitSignal.clamped(self.provider, e.retry_delay_ms,
                                                     attempt=max_retries,
                                                     max_delay_ms=self.policy.max_delay_ms)
                    logger.error(f"[{request_id}] {self.name} rate limited on all {max_retries} attempts "
                                 f"(suggested wait {signal.retry_delay_ms}ms)")
                    raise RateLimitExhaustedError(
                        f"{self.name} rate limit exceeded after {max_retries} attempts", signal
                    ) from e
                delay_ms = self.policy.rate_limit_delay_ms(e.retry_delay_ms)
                logger.warning(f"[{request_id}] {self.name} rate limited on attempt {attempt}/{max_retries}, "
                               f"waiting {delay_ms}ms")

            except TransientProviderError as e:
                if attempt >= max_retries:
                    logger.error(f"[{request_id}] {self.name} failed after {max_retries} attempts: {e}")
                    raise
                delay_ms = self.policy.backoff_delay_ms(attempt)
                logger.warning(f"[{request_id}] {self.name} attempt {attempt}/{max_retries} failed: {e}. "
                               f"Retrying in {delay_ms}ms")

            token.sleep(delay_ms / 1000.0)

        # Only reachable with max_retries < 1
        raise TransientProviderError(f"{self.name} retry policy allows no attempts",
                                     provider=self.name)
