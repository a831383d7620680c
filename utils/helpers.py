"""
Helper Utility Module

This module provides various helper functions used throughout the Football Post Curator.
"""

import re
import uuid
from typing import Any, Dict, Union
from urllib.parse import urlparse

_BARE_DOMAIN_PATTERN = re.compile(r'^(www\.)?[a-z0-9-]+(\.[a-z0-9-]+)+(/\S*)?$', re.IGNORECASE)


def is_valid_url(url: str) -> bool:
    """
    Check if a URL is valid.

    Args:
        url: The URL to validate

    Returns:
        bool: True if the URL is valid, False otherwise
    """
    try:
        result = urlparse(url)
        return all([result.scheme in ('http', 'https'), result.netloc])
    except Exception:
        return False


def looks_like_url(text: str) -> bool:
    """
    Decide whether user input is a link rather than article text.

    A single token with an http(s) scheme, or a bare domain such as
    "www.espn.com/football/story", counts as a URL.

    Args:
        text: The raw user input

    Returns:
        bool: True if the input should be fetched instead of curated directly
    """
    if not text:
        return False
    candidate = text.strip()
    if not candidate or any(ch.isspace() for ch in candidate):
        return False
    if is_valid_url(candidate):
        return True
    return bool(_BARE_DOMAIN_PATTERN.match(candidate))


def normalize_url(url: str) -> str:
    """Prefix a bare domain with https:// so it can be fetched."""
    url = url.strip()
    if not url.startswith(('http://', 'https://')):
        url = 'https://' + url
    return url


def truncate_text(text: str, max_length: int = 100, add_ellipsis: bool = True) -> str:
    """
    Truncate text to a maximum length.

    Args:
        text: The text to truncate
        max_length: Maximum length
        add_ellipsis: Whether to add an ellipsis if text is truncated

    Returns:
        str: Truncated text
    """
    if not text or len(text) <= max_length:
        return text

    truncated = text[:max_length].rstrip()
    if add_ellipsis:
        truncated += "..."

    return truncated


def safe_get(data: Union[Dict[str, Any], list], *keys, default: Any = None) -> Any:
    """
    Safely get a value from nested dictionaries and lists.

    Args:
        data: The structure to search
        *keys: The keys or indexes to follow
        default: Default value if a key doesn't exist

    Returns:
        The value at the specified keys or the default value
    """
    for key in keys:
        try:
            data = data[key]
        except (KeyError, TypeError, IndexError):
            return default
    return data


def format_wait_time(delay_ms: int) -> str:
    """
    Turn a retry delay into a short human readable wait time.

    Args:
        delay_ms: Delay in milliseconds, 0 if unknown

    Returns:
        str: e.g. "46 seconds", "2 minutes", or "a minute" when unknown
    """
    if delay_ms and delay_ms > 0:
        wait_seconds = int(delay_ms // 1000)
        if wait_seconds > 60:
            minutes = wait_seconds // 60
            return f"{minutes} minute{'s' if minutes > 1 else ''}"
        return f"{wait_seconds} second{'s' if wait_seconds != 1 else ''}"
    return "a minute"


def new_request_id() -> str:
    """Short identifier used to correlate the log lines of one provider call."""
    return uuid.uuid4().hex[:8]
