"""
OpenAI-Compatible Client Module

Talks to chat-completion endpoints that follow the OpenAI wire format
(Groq and OpenRouter).
"""

import re
from typing import Any, Dict, List, Optional

import requests

from config import settings
from data.models import Provider, ProviderConfig, RawProviderResponse, TokenUsage
from services.http_transport import int_or_zero, send_and_classify, usage_block
from services.retry import CancellationToken, RetryCoordinator, RetryPolicy, parse_retry_delay

_SECONDS = re.compile(r'^\s*\d+(\.\d+)?\s*$')

COMPLETIONS_URLS = {
    Provider.GROQ: settings.GROQ_COMPLETIONS_URL,
    Provider.OPENROUTER: settings.OPENROUTER_COMPLETIONS_URL,
}


class OpenAICompatibleClient:
    """Client for Groq, OpenRouter and other chat-completion APIs."""

    read_timeout = settings.OPENAI_COMPATIBLE_READ_TIMEOUT

    def __init__(self, session: Optional[requests.Session] = None,
                 policy: Optional[RetryPolicy] = None):
        self.session = session or requests.Session()
        self.policy = policy or RetryPolicy.for_openai_compatible()

    def generate(self, prompt: str, config: ProviderConfig,
                 system_prompt: Optional[str] = None,
                 cancel_token: Optional[CancellationToken] = None,
                 request_id: str = "-") -> RawProviderResponse:
        """Send a chat completion request, retrying per the client's policy."""
        body = {
            "model": config.endpoint_or_model,
            "messages": self.build_messages(prompt, system_prompt),
            "temperature": settings.GENERATION_TEMPERATURE,
            "max_tokens": settings.MAX_OUTPUT_TOKENS,
        }
        headers = self.build_headers(config)
        coordinator = RetryCoordinator(self.policy, config.provider)
        return coordinator.execute(
            lambda attempt: send_and_classify(
                self.session, config.provider, COMPLETIONS_URLS[config.provider], body,
                read_timeout=self.read_timeout,
                parse_usage=self.parse_usage,
                retry_delay_ms=self.suggested_retry_delay_ms,
                headers=headers,
                attempt=attempt, request_id=request_id,
            ),
            cancel_token=cancel_token,
            request_id=request_id,
        )

    @staticmethod
    def build_headers(config: ProviderConfig) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {config.api_key}",
            "Content-Type": "application/json",
        }
        if config.requires_extra_headers:
            headers["HTTP-Referer"] = settings.OPENROUTER_REFERER
            headers["X-Title"] = settings.OPENROUTER_TITLE
        return headers

    @staticmethod
    def build_messages(prompt: str, system_prompt: Optional[str]) -> List[Dict[str, str]]:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        return messages

    @staticmethod
    def parse_usage(payload: Dict[str, Any]) -> TokenUsage:
        usage = usage_block(payload, "usage")
        return TokenUsage(
            prompt_tokens=int_or_zero(usage.get("prompt_tokens")),
            completion_tokens=int_or_zero(usage.get("completion_tokens")),
            total_tokens=int_or_zero(usage.get("total_tokens")),
        )

    @staticmethod
    def suggested_retry_delay_ms(response: requests.Response) -> int:
        # Only delta-seconds values are honoured; HTTP-date values fall back to the policy
        value = (response.headers or {}).get("Retry-After")
        if value is None or not _SECONDS.match(str(value)):
            return 0
        return parse_retry_delay(value)
