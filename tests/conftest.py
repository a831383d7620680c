"""
Shared Test Fixtures for the Football Post Curator

This module provides common fixtures used across all test modules.
Fixtures include mock HTTP responses and sessions, provider configuration
factories, provider payload builders, log capture and fast retry policies.
"""

import pytest
from unittest.mock import MagicMock
from typing import Optional, Dict, Any
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from data.models import Provider, ProviderConfig
from services.retry import CancellationToken, RetryPolicy


# =============================================================================
# Provider Configuration Fixtures
# =============================================================================

@pytest.fixture
def provider_config_factory():
    """
    Factory fixture for creating ProviderConfig objects.

    Usage:
        def test_something(provider_config_factory):
            config = provider_config_factory(Provider.GROQ, api_key="")

    Returns:
        callable: A factory function for creating provider configurations.
    """
    defaults = {
        Provider.GEMINI: "https://example.test/v1beta/models/gemini-test:generateContent",
        Provider.GROQ: "llama-test",
        Provider.OPENROUTER: "deepseek/test:free",
    }

    def _create_config(provider=Provider.GEMINI, api_key: Optional[str] = "test-api-key",
                       endpoint_or_model: Optional[str] = None) -> ProviderConfig:
        provider = Provider(provider)
        return ProviderConfig(
            provider=provider,
            api_key=api_key,
            endpoint_or_model=endpoint_or_model or defaults[provider],
            requires_extra_headers=provider == Provider.OPENROUTER,
        )

    return _create_config


@pytest.fixture
def gemini_config(provider_config_factory):
    return provider_config_factory(Provider.GEMINI)


@pytest.fixture
def groq_config(provider_config_factory):
    return provider_config_factory(Provider.GROQ)


@pytest.fixture
def openrouter_config(provider_config_factory):
    return provider_config_factory(Provider.OPENROUTER)


# =============================================================================
# Retry Fixtures
# =============================================================================

@pytest.fixture
def fast_policy():
    """A retry policy with tiny delays and no jitter, so tests run quickly."""
    return RetryPolicy(max_retries=3, base_delay_ms=1, max_delay_ms=10,
                       rate_limit_fallback_delay_ms=1, jitter_ms=0)


@pytest.fixture
def recording_token():
    """
    A CancellationToken whose sleeps are recorded instead of performed.

    Returns:
        CancellationToken: Token with a `sleeps` list of requested durations in seconds.
    """
    class RecordingToken(CancellationToken):
        def __init__(self):
            super().__init__()
            self.sleeps = []

        def sleep(self, seconds):
            self.raise_if_cancelled()
            self.sleeps.append(seconds)

    return RecordingToken()


# =============================================================================
# Logging Fixtures
# =============================================================================

@pytest.fixture
def capture_logs():
    """
    Capture log messages for assertion in tests.

    Records are captured from the application logger namespace.

    Returns:
        list: A list that will contain captured log records.
    """
    import logging

    class LogCapture(logging.Handler):
        def __init__(self):
            super().__init__()
            self.records = []

        def emit(self, record):
            self.records.append(record)

    handler = LogCapture()
    handler.setLevel(logging.DEBUG)

    app_logger = logging.getLogger("curator")
    original_level = app_logger.level
    app_logger.setLevel(logging.DEBUG)
    app_logger.addHandler(handler)

    yield handler.records

    app_logger.removeHandler(handler)
    app_logger.setLevel(original_level)


# =============================================================================
# HTTP Response Fixtures
# =============================================================================

@pytest.fixture
def mock_http_response():
    """
    Factory fixture for creating mock HTTP responses.

    Usage:
        def test_http_request(mock_http_response):
            response = mock_http_response(
                status_code=429,
                json_data={'error': {'message': 'slow down'}},
                headers={'Retry-After': '7'}
            )

    Returns:
        callable: A factory function for creating mock responses.
    """
    def _create_response(
        status_code: int = 200,
        text: str = '',
        json_data: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> MagicMock:
        import json

        mock_response = MagicMock()
        mock_response.status_code = status_code
        mock_response.headers = headers or {'Content-Type': 'application/json'}
        mock_response.ok = 200 <= status_code < 300

        if text:
            mock_response.text = text
        elif json_data is not None:
            mock_response.text = json.dumps(json_data)
        else:
            mock_response.text = ''

        if json_data is not None:
            mock_response.json.return_value = json_data
        else:
            mock_response.json.side_effect = ValueError("No JSON data")

        return mock_response

    return _create_response


@pytest.fixture
def mock_session():
    """A MagicMock standing in for requests.Session; set `post.side_effect` or `post.return_value`."""
    return MagicMock()


# =============================================================================
# Provider Payload Builders
# =============================================================================

@pytest.fixture
def gemini_payload():
    """Build a Gemini generateContent success body."""
    def _payload(text: str = "Hello", prompt_tokens: int = 10, output_tokens: int = 5) -> Dict[str, Any]:
        return {
            "candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}],
            "usageMetadata": {
                "promptTokenCount": prompt_tokens,
                "candidatesTokenCount": output_tokens,
                "totalTokenCount": prompt_tokens + output_tokens,
            },
        }
    return _payload


@pytest.fixture
def chat_payload():
    """Build a chat-completion success body."""
    def _payload(text: str = "Hello", prompt_tokens: int = 12, output_tokens: int = 8) -> Dict[str, Any]:
        return {
            "choices": [{"index": 0, "message": {"role": "assistant", "content": text}}],
            "usage": {
                "prompt_tokens": prompt_tokens,
                "completion_tokens": output_tokens,
                "total_tokens": prompt_tokens + output_tokens,
            },
        }
    return _payload


@pytest.fixture
def gemini_rate_limit_body():
    """Build a Gemini 429 body carrying a RetryInfo detail."""
    def _body(retry_delay: str = "46.799s") -> Dict[str, Any]:
        return {
            "error": {
                "code": 429,
                "message": "Resource has been exhausted (e.g. check quota).",
                "status": "RESOURCE_EXHAUSTED",
                "details": [
                    {"@type": "type.googleapis.com/google.rpc.QuotaFailure", "violations": []},
                    {"@type": "type.googleapis.com/google.rpc.RetryInfo", "retryDelay": retry_delay},
                ],
            }
        }
    return _body


# =============================================================================
# Article Fixtures
# =============================================================================

@pytest.fixture
def sample_article():
    """A short English football news article."""
    return (
        "Manchester United have confirmed the signing of midfielder Kobbie Mainoo on a new "
        "five-year contract. The 19-year-old, who came through the club's academy, made 24 "
        "Premier League appearances last season. \"I'm delighted to commit my future here,\" "
        "Mainoo said. Manager Erik ten Hag praised his maturity and composure on the ball."
    )
