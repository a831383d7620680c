"""
Tests for HTTP Transport

Unit tests for send_and_classify and its helpers covering:
- Status and exception classification
- Usage and retry delay callbacks
- Error message extraction
"""

import pytest
import requests
from unittest.mock import MagicMock
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from data.models import Provider, TokenUsage
from services.gemini_client import GeminiClient
from services.http_transport import error_message, int_or_zero, send_and_classify, usage_block
from services.openai_compatible_client import OpenAICompatibleClient
from utils.exceptions import (
    ParseError,
    PermanentProviderError,
    RateLimitError,
    TransientProviderError,
)


def send(session, **kwargs):
    options = dict(
        read_timeout=5,
        parse_usage=lambda payload: TokenUsage(1, 2, 3),
        retry_delay_ms=lambda response: 0,
    )
    options.update(kwargs)
    return send_and_classify(session, Provider.GROQ, "https://example.test/v1", {"q": 1}, **options)


class TestSendAndClassify:
    """Tests for send_and_classify."""

    def test_success(self, mock_session, mock_http_response):
        mock_session.post.return_value = mock_http_response(json_data={"ok": True})

        raw = send(mock_session, params={"key": "k"}, headers={"X": "1"})

        assert raw.payload == {"ok": True}
        assert raw.usage == TokenUsage(1, 2, 3)
        kwargs = mock_session.post.call_args.kwargs
        assert kwargs["params"] == {"key": "k"}
        assert kwargs["headers"] == {"X": "1"}
        assert kwargs["timeout"] == (10, 5)

    def test_empty_params_are_omitted(self, mock_session, mock_http_response):
        mock_session.post.return_value = mock_http_response(json_data={})

        send(mock_session, params={})

        assert mock_session.post.call_args.kwargs["params"] is None

    def test_rate_limit_uses_delay_callback(self, mock_session, mock_http_response):
        mock_session.post.return_value = mock_http_response(status_code=429, json_data={})

        with pytest.raises(RateLimitError) as exc_info:
            send(mock_session, retry_delay_ms=lambda response: 4200)

        assert exc_info.value.retry_delay_ms == 4200

    @pytest.mark.parametrize("status,error", [
        (500, TransientProviderError),
        (503, TransientProviderError),
        (400, PermanentProviderError),
        (401, PermanentProviderError),
        (404, PermanentProviderError),
    ])
    def test_status_classification(self, mock_session, mock_http_response, status, error):
        mock_session.post.return_value = mock_http_response(status_code=status, json_data={})

        with pytest.raises(error):
            send(mock_session)

    @pytest.mark.parametrize("exc,error", [
        (requests.exceptions.Timeout("slow"), TransientProviderError),
        (requests.exceptions.ConnectionError("reset"), TransientProviderError),
        (requests.exceptions.InvalidURL("bad"), PermanentProviderError),
    ])
    def test_send_exceptions(self, mock_session, exc, error):
        mock_session.post.side_effect = exc

        with pytest.raises(error):
            send(mock_session)

    def test_non_object_json_is_parse_error(self, mock_session, mock_http_response):
        mock_session.post.return_value = mock_http_response(json_data=["not", "an", "object"])

        with pytest.raises(ParseError):
            send(mock_session)


class TestHelpers:
    """Tests for error_message, usage_block and int_or_zero."""

    def test_error_message_variants(self, mock_http_response):
        assert error_message(mock_http_response(status_code=400, json_data={"error": {"message": "bad"}})) == "bad"
        assert error_message(mock_http_response(status_code=400, json_data={"error": "nope"})) == "nope"
        assert error_message(mock_http_response(status_code=502, text="Bad Gateway")) == "Bad Gateway"
        assert error_message(mock_http_response(status_code=502)) == "HTTP 502"

    @pytest.mark.parametrize("value", [None, "tokens", 42, ["a"]])
    def test_usage_block_ignores_malformed_values(self, value):
        assert usage_block({"usage": value}, "usage") == {}

    def test_int_or_zero(self):
        assert int_or_zero("12") == 12
        assert int_or_zero(None) == 0
        assert int_or_zero("many") == 0


class TestClientVariants:
    """The two clients are independent classes chosen by configuration."""

    @pytest.mark.parametrize("client_class", [GeminiClient, OpenAICompatibleClient])
    def test_clients_do_not_share_a_base(self, client_class):
        assert client_class.__bases__ == (object,)

    @pytest.mark.parametrize("client_class", [GeminiClient, OpenAICompatibleClient])
    def test_clients_accept_session_and_policy(self, client_class, fast_policy):
        session = MagicMock()
        client = client_class(session=session, policy=fast_policy)

        assert client.session is session
        assert client.policy is fast_policy
        assert callable(client.generate)
