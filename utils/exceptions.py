"""
Custom Exception Classes for the Football Post Curator

This module defines custom exceptions for better error handling and
categorization of failures inside the curation pipeline. Exceptions are
raised by the provider clients and the retry coordinator; the curator
facade converts them into CurationError values for its callers.
"""

from typing import Optional


class CuratorError(Exception):
    """Base exception for all Football Post Curator errors."""
    pass


# =============================================================================
# Configuration and Input Errors
# =============================================================================

class ConfigurationError(CuratorError):
    """Raised when configuration validation fails or required settings are missing."""
    pass


class InputError(CuratorError):
    """Raised when the source text of a request is missing or empty."""
    pass


# =============================================================================
# Provider Errors
# =============================================================================

class ProviderError(CuratorError):
    """Base exception for errors returned by an AI provider."""

    def __init__(self, message: str, provider: Optional[str] = None,
                 status_code: Optional[int] = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class TransientProviderError(ProviderError):
    """Raised for timeouts, connection failures and 5xx responses. Retried."""
    pass


class PermanentProviderError(ProviderError):
    """Raised for 4xx responses other than 429 (bad auth, bad request). Never retried."""
    pass


class RateLimitError(ProviderError):
    """Raised when a provider answers with HTTP 429.

    Attributes:
        retry_delay_ms: Delay suggested by the provider in milliseconds, 0 if unknown.
    """

    def __init__(self, message: str, provider: Optional[str] = None,
                 retry_delay_ms: int = 0):
        super().__init__(message, provider=provider, status_code=429)
        self.retry_delay_ms = max(0, int(retry_delay_ms or 0))


class RateLimitExhaustedError(ProviderError):
    """Raised when every retry attempt ended in a rate limit.

    Attributes:
        signal: The RateLimitSignal handed to the fallback advisor.
    """

    def __init__(self, message: str, signal):
        super().__init__(message, provider=signal.provider, status_code=429)
        self.signal = signal


# =============================================================================
# Response Processing Errors
# =============================================================================

class ParseError(CuratorError):
    """Raised when a provider response does not match any known schema."""
    pass


class CurationCancelledError(CuratorError):
    """Raised when a curation call is cancelled through its cancellation token."""
    pass


# =============================================================================
# Article Acquisition Errors
# =============================================================================

class ArticleError(CuratorError):
    """Base exception for article-related errors."""
    pass


class ArticleFetchError(ArticleError):
    """Raised when an article cannot be fetched or downloaded."""
    pass


class InsufficientContentError(ArticleError):
    """Raised when article content is too short or empty."""
    pass
