"""
Tests for Gemini Client

Unit tests for the Gemini generateContent client covering:
- Request wire format
- Response classification
- RetryInfo delay extraction
- Usage parsing
"""

import pytest
import requests
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from data.models import Provider, TokenUsage
from services.gemini_client import GeminiClient, retry_delay_from_error_body
from utils.exceptions import (
    ParseError,
    PermanentProviderError,
    RateLimitExhaustedError,
    TransientProviderError,
)


@pytest.fixture
def client(mock_session, fast_policy):
    return GeminiClient(session=mock_session, policy=fast_policy)


# =============================================================================
# Wire Format Tests
# =============================================================================

class TestGeminiRequest:
    """Tests for the outgoing request."""

    def test_posts_prompt_with_key_parameter(self, client, mock_session, gemini_config,
                                             mock_http_response, gemini_payload, recording_token):
        mock_session.post.return_value = mock_http_response(json_data=gemini_payload("Hai"))

        client.generate("Terjemah ini", gemini_config, cancel_token=recording_token)

        args, kwargs = mock_session.post.call_args
        assert args[0] == gemini_config.endpoint_or_model
        assert kwargs["params"] == {"key": "test-api-key"}
        assert kwargs["json"] == {
            "contents": [{"parts": [{"text": "Terjemah ini"}]}],
            "generationConfig": {"temperature": 0.7, "maxOutputTokens": 2048},
        }
        assert kwargs["timeout"] == (10, 20)

    def test_system_prompt_is_not_sent(self, client, mock_session, gemini_config,
                                       mock_http_response, gemini_payload, recording_token):
        mock_session.post.return_value = mock_http_response(json_data=gemini_payload())

        client.generate("prompt", gemini_config, system_prompt="persona", cancel_token=recording_token)

        body = mock_session.post.call_args.kwargs["json"]
        assert "persona" not in str(body)


# =============================================================================
# Response Classification Tests
# =============================================================================

class TestGeminiResponses:
    """Tests for status classification and retries."""

    def test_success_returns_payload_and_usage(self, client, mock_session, gemini_config,
                                               mock_http_response, gemini_payload, recording_token):
        payload = gemini_payload("Hello", prompt_tokens=10, output_tokens=5)
        mock_session.post.return_value = mock_http_response(json_data=payload)

        raw = client.generate("prompt", gemini_config, cancel_token=recording_token)

        assert raw.payload == payload
        assert raw.status_code == 200
        assert raw.usage == TokenUsage(10, 5, 15)

    @pytest.mark.parametrize("metadata", ["unexpected", 7, ["a"], None])
    def test_malformed_usage_metadata_counts_as_zero(self, client, mock_session, gemini_config,
                                                      mock_http_response, recording_token, metadata):
        payload = {"candidates": [{"content": {"parts": [{"text": "Hai"}]}}], "usageMetadata": metadata}
        mock_session.post.return_value = mock_http_response(json_data=payload)

        raw = client.generate("prompt", gemini_config, cancel_token=recording_token)

        assert raw.usage == TokenUsage(0, 0, 0)

    def test_server_errors_are_retried(self, client, mock_session, gemini_config,
                                       mock_http_response, gemini_payload, recording_token):
        mock_session.post.side_effect = [
            mock_http_response(status_code=503, json_data={"error": {"message": "overloaded"}}),
            mock_http_response(json_data=gemini_payload("ok")),
        ]

        raw = client.generate("prompt", gemini_config, cancel_token=recording_token)

        assert raw.status_code == 200
        assert mock_session.post.call_count == 2
        assert len(recording_token.sleeps) == 1

    def test_timeouts_are_transient(self, client, mock_session, gemini_config, recording_token):
        mock_session.post.side_effect = requests.exceptions.Timeout("read timed out")

        with pytest.raises(TransientProviderError):
            client.generate("prompt", gemini_config, cancel_token=recording_token)

        assert mock_session.post.call_count == 3

    def test_connection_errors_are_transient(self, client, mock_session, gemini_config,
                                             mock_http_response, gemini_payload, recording_token):
        mock_session.post.side_effect = [
            requests.exceptions.ConnectionError("reset"),
            mock_http_response(json_data=gemini_payload()),
        ]

        assert client.generate("prompt", gemini_config, cancel_token=recording_token).status_code == 200

    def test_client_errors_are_permanent(self, client, mock_session, gemini_config,
                                         mock_http_response, recording_token):
        mock_session.post.return_value = mock_http_response(
            status_code=400, json_data={"error": {"code": 400, "message": "API key not valid."}}
        )

        with pytest.raises(PermanentProviderError) as exc_info:
            client.generate("prompt", gemini_config, cancel_token=recording_token)

        assert "API key not valid." in str(exc_info.value)
        assert exc_info.value.status_code == 400
        mock_session.post.assert_called_once()

    def test_success_without_json_is_parse_error(self, client, mock_session, gemini_config,
                                                 mock_http_response, recording_token):
        mock_session.post.return_value = mock_http_response(status_code=200, text="<html>oops</html>")

        with pytest.raises(ParseError):
            client.generate("prompt", gemini_config, cancel_token=recording_token)

    def test_repeated_rate_limits_carry_retry_info(self, mock_session, gemini_config, mock_http_response,
                                                   gemini_rate_limit_body, recording_token):
        client = GeminiClient(session=mock_session)
        mock_session.post.return_value = mock_http_response(
            status_code=429, json_data=gemini_rate_limit_body("46.799s")
        )

        with pytest.raises(RateLimitExhaustedError) as exc_info:
            client.generate("prompt", gemini_config, cancel_token=recording_token)

        signal = exc_info.value.signal
        assert signal.provider == Provider.GEMINI
        assert signal.retry_delay_ms == 46799
        assert signal.attempt == 4
        assert mock_session.post.call_count == 4
        assert recording_token.sleeps == [46.799] * 3


# =============================================================================
# RetryInfo Parsing Tests
# =============================================================================

class TestRetryDelayFromErrorBody:
    """Tests for retry_delay_from_error_body."""

    def test_finds_retry_info(self, gemini_rate_limit_body):
        assert retry_delay_from_error_body(gemini_rate_limit_body("12s")) == 12000

    def test_missing_details(self):
        assert retry_delay_from_error_body({"error": {"message": "quota"}}) == 0

    def test_non_dict_body(self):
        assert retry_delay_from_error_body(["unexpected"]) == 0

    def test_unparsable_delay(self, gemini_rate_limit_body):
        assert retry_delay_from_error_body(gemini_rate_limit_body("soon")) == 0

    def test_rate_limit_without_json_body(self, client, mock_http_response):
        response = mock_http_response(status_code=429, text="Too Many Requests")
        assert client.suggested_retry_delay_ms(response) == 0
