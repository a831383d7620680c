"""
Configuration Validation for the Football Post Curator

This module contains configuration validation logic.
Extracted from settings.py for better separation of concerns.
"""

from utils.exceptions import ConfigurationError


def validate_settings(provider=None):
    """
    Validate that all required settings are properly configured.

    Args:
        provider: Provider whose credentials are checked; defaults to AI_PROVIDER.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    # Import settings here to avoid circular imports
    from config import settings
    from data.models import Provider, Tone

    errors = []

    # Provider selection and its credentials
    selected = getattr(provider, "value", provider) or settings.AI_PROVIDER
    valid_providers = [p.value for p in Provider]
    if selected not in valid_providers:
        errors.append(f"AI_PROVIDER must be one of {valid_providers}, got '{selected}'")
    else:
        config = settings.get_provider_config(selected)
        if not config.has_api_key:
            errors.append(f"Missing API key for the selected provider '{selected}'")
        if not config.endpoint_or_model:
            errors.append(f"Missing endpoint or model for the selected provider '{selected}'")

    valid_tones = [t.value for t in Tone]
    if settings.POST_TONE not in valid_tones:
        errors.append(f"POST_TONE must be one of {valid_tones}, got '{settings.POST_TONE}'")

    # Validate numeric settings are within reasonable bounds
    numeric_validations = [
        ("GEMINI_MAX_RETRIES", settings.GEMINI_MAX_RETRIES, 3, 5),
        ("OPENAI_COMPATIBLE_MAX_RETRIES", settings.OPENAI_COMPATIBLE_MAX_RETRIES, 3, 5),
        ("GEMINI_BASE_DELAY_MS", settings.GEMINI_BASE_DELAY_MS, 1, 10000),
        ("OPENAI_COMPATIBLE_BASE_DELAY_MS", settings.OPENAI_COMPATIBLE_BASE_DELAY_MS, 1, 10000),
        ("MAX_DELAY_MS", settings.MAX_DELAY_MS, 1000, 300000),
        ("RATE_LIMIT_FALLBACK_DELAY_MS", settings.RATE_LIMIT_FALLBACK_DELAY_MS, 0, settings.MAX_DELAY_MS),
        ("RETRY_JITTER_MS", settings.RETRY_JITTER_MS, 0, 5000),
        ("GENERATION_TEMPERATURE", settings.GENERATION_TEMPERATURE, 0.0, 2.0),
        ("MAX_OUTPUT_TOKENS", settings.MAX_OUTPUT_TOKENS, 64, 32768),
        ("TECHNICAL_MIN_LENGTH", settings.TECHNICAL_MIN_LENGTH, 0, 100000),
        ("TECHNICAL_MIN_KEYWORD_HITS", settings.TECHNICAL_MIN_KEYWORD_HITS, 1, len(settings.TECHNICAL_KEYWORDS)),
        ("TITLE_MAX_LENGTH", settings.TITLE_MAX_LENGTH, 10, 1000),
    ]

    for name, value, min_val, max_val in numeric_validations:
        if value < min_val or value > max_val:
            errors.append(f"{name} must be between {min_val} and {max_val}, got {value}")

    # Validate timeout values are positive
    timeout_settings = [
        ("HTTP_CONNECT_TIMEOUT", settings.HTTP_CONNECT_TIMEOUT),
        ("GEMINI_READ_TIMEOUT", settings.GEMINI_READ_TIMEOUT),
        ("OPENAI_COMPATIBLE_READ_TIMEOUT", settings.OPENAI_COMPATIBLE_READ_TIMEOUT),
        ("ARTICLE_FETCH_TIMEOUT", settings.ARTICLE_FETCH_TIMEOUT),
    ]

    for name, value in timeout_settings:
        if value <= 0:
            errors.append(f"{name} must be positive, got {value}")

    # Raise all errors at once
    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(error_msg)

    return True


def get_config_summary() -> dict:
    """
    Returns a summary of current configuration (without sensitive values).
    Useful for logging startup state.
    """
    # Import settings here to avoid circular imports
    from config import settings

    return {
        "provider": settings.AI_PROVIDER,
        "credentials": {
            config.provider.value: config.has_api_key
            for config in settings.get_all_provider_configs().values()
        },
        "post": {
            "tone": settings.POST_TONE,
            "include_source": settings.INCLUDE_SOURCE,
            "preserve_structure": settings.PRESERVE_STRUCTURE,
        },
        "retry": {
            "gemini_max_retries": settings.GEMINI_MAX_RETRIES,
            "openai_compatible_max_retries": settings.OPENAI_COMPATIBLE_MAX_RETRIES,
            "max_delay_ms": settings.MAX_DELAY_MS,
            "rate_limit_fallback_delay_ms": settings.RATE_LIMIT_FALLBACK_DELAY_MS,
        },
        "technical_detection": {
            "min_length": settings.TECHNICAL_MIN_LENGTH,
            "min_keyword_hits": settings.TECHNICAL_MIN_KEYWORD_HITS,
        },
    }
