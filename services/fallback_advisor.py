"""
Fallback Advisor Module

Suggests an alternate provider after a rate limit, following the fixed
rotation gemini -> groq -> openrouter -> gemini. The advisor only suggests;
switching is always the caller's decision.
"""

from dataclasses import dataclass
from typing import Mapping, Optional

from data.models import Provider, ProviderConfig, RateLimitSignal
from utils.helpers import format_wait_time

ROTATION = (Provider.GEMINI, Provider.GROQ, Provider.OPENROUTER)


@dataclass(frozen=True)
class FallbackSuggestion:
    """The next provider in the rotation and whether it can be used right away."""
    candidate: Provider
    is_usable: bool


def next_provider(current) -> Provider:
    """Return the provider after `current` in the rotation."""
    current = Provider(current)
    index = ROTATION.index(current)
    return ROTATION[(index + 1) % len(ROTATION)]


def suggest_fallback(current_provider,
                     available_configs: Optional[Mapping[Provider, ProviderConfig]]) -> FallbackSuggestion:
    """
    Suggest the provider to switch to after `current_provider` was rate limited.

    Args:
        current_provider: The provider that was rate limited
        available_configs: Known provider configurations keyed by provider

    Returns:
        FallbackSuggestion: The candidate is usable only when its configuration
        exists and carries a non-empty API key
    """
    candidate = next_provider(current_provider)
    config = None
    for provider, value in (available_configs or {}).items():
        if Provider(provider) == candidate:
            config = value
            break
    return FallbackSuggestion(candidate=candidate,
                              is_usable=bool(config is not None and config.has_api_key))


def describe(signal: RateLimitSignal, suggestion: Optional[FallbackSuggestion] = None) -> str:
    """Human readable explanation of a rate limit and what to do next."""
    lines = [
        f"{signal.provider.display_name} is rate limited (too many requests).",
        f"Wait time: ~{format_wait_time(signal.retry_delay_ms)}.",
    ]
    if suggestion is not None:
        name = suggestion.candidate.display_name
        if suggestion.is_usable:
            lines.append(f"Switch to {name} and retry immediately?")
        else:
            lines.append(f"To use {name} as fallback, please configure its API key in Settings.")
    return "\n".join(lines)


class FallbackAdvisor:
    """Object form of the rotation helpers, bound to a provider configuration source."""

    def __init__(self, configs_loader=None):
        self._configs_loader = configs_loader

    def suggest_fallback(self, current_provider,
                         available_configs: Optional[Mapping[Provider, ProviderConfig]] = None) -> FallbackSuggestion:
        if available_configs is None and self._configs_loader is not None:
            available_configs = self._configs_loader()
        return suggest_fallback(current_provider, available_configs)

    def describe(self, signal: RateLimitSignal, suggestion: Optional[FallbackSuggestion] = None) -> str:
        return describe(signal, suggestion)
