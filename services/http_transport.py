"""
HTTP Transport Module

Sends one provider request over a shared requests.Session and classifies the
outcome into the provider error hierarchy. Both provider clients call
send_and_classify for every attempt they hand to the RetryCoordinator.
"""

import time
from typing import Any, Callable, Dict, Optional

import requests

from config import settings
from data.models import Provider, RawProviderResponse, TokenUsage
from utils.exceptions import (
    ParseError,
    PermanentProviderError,
    RateLimitError,
    TransientProviderError,
)
from utils.helpers import truncate_text
from utils.logger import get_logger

logger = get_logger(__name__)


def error_message(response: requests.Response) -> str:
    """Best-effort human readable error from a failed response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get('error')
        if isinstance(error, dict) and error.get('message'):
            return str(error['message'])
        if isinstance(error, str) and error:
            return error
    text = getattr(response, 'text', '') or ''
    return truncate_text(text.strip(), 200) or f"HTTP {response.status_code}"


def send_and_classify(session: requests.Session, provider: Provider, url: str, body: Dict[str, Any],
                      read_timeout: float,
                      parse_usage: Callable[[Dict[str, Any]], TokenUsage],
                      retry_delay_ms: Callable[[requests.Response], int],
                      params: Optional[Dict[str, Any]] = None,
                      headers: Optional[Dict[str, str]] = None,
                      attempt: int = 1, request_id: str = "-") -> RawProviderResponse:
    """
    POST one request and turn the outcome into a response or a provider error.

    Args:
        session: Shared HTTP session
        provider: Provider the request goes to
        url: Endpoint URL
        body: JSON body
        read_timeout: Read timeout in seconds
        parse_usage: Reads token usage from a successful payload
        retry_delay_ms: Reads the suggested wait from a 429 response
        params: Query parameters
        headers: Request headers
        attempt: Attempt number, for log lines
        request_id: Correlation id for log lines

    Returns:
        RawProviderResponse: Decoded body of a 2xx response

    Raises:
        RateLimitError: HTTP 429
        TransientProviderError: HTTP 5xx, timeouts and connection failures
        PermanentProviderError: Any other failure status or send error
        ParseError: A 2xx body that is not a JSON object
    """
    name = Provider(provider).value
    timeout = (settings.HTTP_CONNECT_TIMEOUT, read_timeout)

    logger.debug(f"[{request_id}] {name} attempt {attempt}: POST {url}")
    started = time.monotonic()
    try:
        response = session.post(url, params=params or None, headers=headers, json=body, timeout=timeout)
    except requests.exceptions.Timeout as e:
        raise TransientProviderError(f"{name} request timed out: {e}", provider=name) from e
    except requests.exceptions.ConnectionError as e:
        raise TransientProviderError(f"{name} connection failed: {e}", provider=name) from e
    except requests.exceptions.RequestException as e:
        raise PermanentProviderError(f"{name} request could not be sent: {e}", provider=name) from e

    status = response.status_code
    logger.info(f"[{request_id}] {name} attempt {attempt} returned HTTP {status} "
                f"in {time.monotonic() - started:.2f}s")

    if 200 <= status < 300:
        try:
            payload = response.json()
        except ValueError as e:
            raise ParseError(f"{name} returned a body that is not JSON") from e
        if not isinstance(payload, dict):
            raise ParseError(f"{name} returned an unexpected JSON document")
        return RawProviderResponse(payload=payload, status_code=status, usage=parse_usage(payload))

    message = error_message(response)
    if status == 429:
        raise RateLimitError(f"{name} rate limited: {message}", provider=name,
                             retry_delay_ms=retry_delay_ms(response))
    if status >= 500:
        raise TransientProviderError(f"{name} server error {status}: {message}",
                                     provider=name, status_code=status)
    raise PermanentProviderError(f"{name} rejected the request ({status}): {message}",
                                 provider=name, status_code=status)


def usage_block(payload: Dict[str, Any], key: str) -> Dict[str, Any]:
    """Return the usage object under `key`, or an empty dict when it is missing or malformed."""
    block = payload.get(key)
    if not isinstance(block, dict):
        return {}
    return block


def int_or_zero(value) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0
