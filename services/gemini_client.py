"""
Gemini Client Module

Talks to the Gemini generateContent REST endpoint. The API key travels as the
`key` query parameter and rate-limit responses carry a RetryInfo detail with
the suggested wait.
"""

from typing import Any, Dict, Optional

import requests

from config import settings
from data.models import ProviderConfig, RawProviderResponse, TokenUsage
from services.http_transport import int_or_zero, send_and_classify, usage_block
from services.retry import CancellationToken, RetryCoordinator, RetryPolicy, parse_retry_delay
from utils.helpers import safe_get


class GeminiClient:
    """Client for Google's Gemini generateContent API."""

    read_timeout = settings.GEMINI_READ_TIMEOUT

    def __init__(self, session: Optional[requests.Session] = None,
                 policy: Optional[RetryPolicy] = None):
        self.session = session or requests.Session()
        self.policy = policy or RetryPolicy.for_gemini()

    def generate(self, prompt: str, config: ProviderConfig,
                 system_prompt: Optional[str] = None,
                 cancel_token: Optional[CancellationToken] = None,
                 request_id: str = "-") -> RawProviderResponse:
        """
        Send a prompt to Gemini, retrying per the client's policy.

        Args:
            prompt: The user prompt
            config: API key and generateContent endpoint
            system_prompt: Ignored; the prompt already carries the persona
            cancel_token: Optional CancellationToken
            request_id: Correlation id for log lines

        Returns:
            RawProviderResponse: Decoded body of the first successful attempt
        """
        body = self.build_body(prompt)
        coordinator = RetryCoordinator(self.policy, config.provider)
        return coordinator.execute(
            lambda attempt: send_and_classify(
                self.session, config.provider, config.endpoint_or_model, body,
                read_timeout=self.read_timeout,
                parse_usage=self.parse_usage,
                retry_delay_ms=self.suggested_retry_delay_ms,
                params={"key": config.api_key},
                headers={"Content-Type": "application/json"},
                attempt=attempt, request_id=request_id,
            ),
            cancel_token=cancel_token,
            request_id=request_id,
        )

    @staticmethod
    def build_body(prompt: str) -> Dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": settings.GENERATION_TEMPERATURE,
                "maxOutputTokens": settings.MAX_OUTPUT_TOKENS,
            },
        }

    @staticmethod
    def parse_usage(payload: Dict[str, Any]) -> TokenUsage:
        metadata = usage_block(payload, "usageMetadata")
        return TokenUsage(
            prompt_tokens=int_or_zero(metadata.get("promptTokenCount")),
            completion_tokens=int_or_zero(metadata.get("candidatesTokenCount")),
            total_tokens=int_or_zero(metadata.get("totalTokenCount")),
        )

    @staticmethod
    def suggested_retry_delay_ms(response: requests.Response) -> int:
        try:
            body = response.json()
        except ValueError:
            return 0
        return retry_delay_from_error_body(body)


def retry_delay_from_error_body(body) -> int:
    """
    Find the RetryInfo delay inside a Gemini error document.

    Args:
        body: Decoded error JSON, e.g. {"error": {"details": [{"@type": "...RetryInfo", "retryDelay": "46s"}]}}

    Returns:
        int: Suggested delay in milliseconds, 0 when absent
    """
    details = safe_get(body, "error", "details", default=None)
    if not isinstance(details, list):
        return 0
    for detail in details:
        if not isinstance(detail, dict):
            continue
        if "RetryInfo" in str(detail.get("@type", "")):
            return parse_retry_delay(detail.get("retryDelay"))
    return 0
