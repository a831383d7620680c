"""
Usage Tracking

In-memory request and token statistics recorded by the curator facade after
every call: totals per provider, totals per model, and a short log of the
most recent sessions.
"""

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, List, Optional

from data.models import Provider, TokenUsage

MAX_SESSIONS = 20


@dataclass
class ProviderStats:
    """Counters for one provider."""
    successful_requests: int = 0
    failed_requests: int = 0
    prompt_tokens: int = 0
    response_tokens: int = 0
    total_tokens: int = 0

    @property
    def total_requests(self) -> int:
        return self.successful_requests + self.failed_requests


@dataclass
class ModelStats:
    """Successful requests and tokens for one model or endpoint."""
    model: str
    provider: Provider
    requests: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class SessionEntry:
    """One recorded call, successful or not."""
    provider: Provider
    model: Optional[str]
    success: bool
    prompt_tokens: int = 0
    response_tokens: int = 0
    total_tokens: int = 0
    error: Optional[str] = None
    timestamp: float = 0.0


class UsageTracker:
    """Thread-safe accumulator of provider usage.

    Several generation workers may share one tracker, so every update
    happens under a lock.
    """

    def __init__(self, max_sessions: int = MAX_SESSIONS, clock=time.time):
        self._lock = threading.Lock()
        self._clock = clock
        self._stats: Dict[Provider, ProviderStats] = {}
        self._models: Dict[str, ModelStats] = {}
        self._sessions: Deque[SessionEntry] = deque(maxlen=max_sessions)
        self.last_error: Optional[str] = None

    def _for(self, provider: Provider) -> ProviderStats:
        if provider not in self._stats:
            self._stats[provider] = ProviderStats()
        return self._stats[provider]

    def record_success(self, provider, usage: TokenUsage, model: Optional[str] = None) -> None:
        provider = Provider(provider)
        with self._lock:
            stats = self._for(provider)
            stats.successful_requests += 1
            stats.prompt_tokens += usage.prompt_tokens
            stats.response_tokens += usage.completion_tokens
            stats.total_tokens += usage.total_tokens

            if model:
                model_stats = self._models.setdefault(model, ModelStats(model=model, provider=provider))
                model_stats.requests += 1
                model_stats.total_tokens += usage.total_tokens

            self._sessions.appendleft(SessionEntry(
                provider=provider, model=model, success=True,
                prompt_tokens=usage.prompt_tokens, response_tokens=usage.completion_tokens,
                total_tokens=usage.total_tokens, timestamp=self._clock(),
            ))

    def record_failure(self, provider, error: Optional[str] = None, model: Optional[str] = None) -> None:
        provider = Provider(provider)
        with self._lock:
            self._for(provider).failed_requests += 1
            self.last_error = error
            self._sessions.appendleft(SessionEntry(
                provider=provider, model=model, success=False, error=error, timestamp=self._clock(),
            ))

    def get(self, provider) -> ProviderStats:
        """Return a copy of the counters for one provider."""
        with self._lock:
            stats = self._stats.get(Provider(provider), ProviderStats())
            return ProviderStats(**vars(stats))

    def model_stats(self) -> Dict[str, ModelStats]:
        """Return copies of the per-model counters, keyed by model or endpoint."""
        with self._lock:
            return {model: ModelStats(**vars(stats)) for model, stats in self._models.items()}

    def recent_sessions(self) -> List[SessionEntry]:
        """Most recent sessions first."""
        with self._lock:
            return list(self._sessions)

    def summary(self) -> dict:
        """Plain dictionary view, suitable for logging."""
        with self._lock:
            return {
                provider.value: {
                    "requests": stats.total_requests,
                    "successful": stats.successful_requests,
                    "failed": stats.failed_requests,
                    "total_tokens": stats.total_tokens,
                }
                for provider, stats in self._stats.items()
            }
