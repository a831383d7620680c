"""
Configuration Settings for the Football Post Curator

This module centralizes all configuration settings for the curator,
including environment variables, API keys, retry policies and prompt
heuristics. Provider configurations are built from these values at call
time and never persisted by the pipeline.
"""

import os
from pathlib import Path
from typing import Dict

from dotenv import load_dotenv

from data.models import Provider, ProviderConfig, Tone

# Determine the application root directory
APP_ROOT = Path(__file__).resolve().parent.parent

# Load environment variables from .env file
load_dotenv(dotenv_path=os.path.join(APP_ROOT, '.env'))


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# =============================================================================
# Provider Selection and Credentials
# =============================================================================

AI_PROVIDER = os.getenv("AI_PROVIDER", Provider.GEMINI.value).strip().lower()

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")

# Gemini is addressed by full endpoint, the chat-completion providers by model id
GEMINI_ENDPOINT = os.getenv(
    "GEMINI_ENDPOINT",
    "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-flash-lite:generateContent"
)
GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
OPENROUTER_MODEL = os.getenv("OPENROUTER_MODEL", "deepseek/deepseek-v3-base:free")

GROQ_COMPLETIONS_URL = "https://api.groq.com/openai/v1/chat/completions"
OPENROUTER_COMPLETIONS_URL = "https://openrouter.ai/api/v1/chat/completions"

# OpenRouter attribution headers
OPENROUTER_REFERER = os.getenv("OPENROUTER_REFERER", "https://github.com/socurate-app")
OPENROUTER_TITLE = os.getenv("OPENROUTER_TITLE", "Socurate Football Content Curator")

# =============================================================================
# Post Preferences
# =============================================================================

POST_TONE = os.getenv("POST_TONE", Tone.FORMAL.value).strip().lower()
INCLUDE_SOURCE = _env_bool("INCLUDE_SOURCE", False)
PRESERVE_STRUCTURE = _env_bool("PRESERVE_STRUCTURE", False)
DEFAULT_HASHTAGS = os.getenv("DEFAULT_HASHTAGS", "#BolaSepak #Football")

# =============================================================================
# Generation Settings
# =============================================================================

GENERATION_TEMPERATURE = 0.7         # Sampling temperature for every provider
MAX_OUTPUT_TOKENS = 2048             # Output token cap for every provider

# HTTP timeouts in seconds
HTTP_CONNECT_TIMEOUT = 10
GEMINI_READ_TIMEOUT = 20
OPENAI_COMPATIBLE_READ_TIMEOUT = 60

# =============================================================================
# Retry Policies (milliseconds)
# =============================================================================

GEMINI_MAX_RETRIES = 4
GEMINI_BASE_DELAY_MS = 500
OPENAI_COMPATIBLE_MAX_RETRIES = 3
OPENAI_COMPATIBLE_BASE_DELAY_MS = 1000
MAX_DELAY_MS = 60000                 # Cap for every computed or suggested delay
RATE_LIMIT_FALLBACK_DELAY_MS = 30000  # Used when a 429 carries no usable retry delay
RETRY_JITTER_MS = 500

# =============================================================================
# Prompt Heuristics
# =============================================================================

TARGET_MIN_RATIO = 0.4
TARGET_MAX_RATIO = 0.6
TARGET_MIN_FLOOR = 50
TARGET_MAX_FLOOR = 100

# Technical/tactical article detection; thresholds are unvalidated, keep them tunable
TECHNICAL_MIN_LENGTH = int(os.getenv("TECHNICAL_MIN_LENGTH", "2000"))
TECHNICAL_MIN_KEYWORD_HITS = int(os.getenv("TECHNICAL_MIN_KEYWORD_HITS", "5"))
TECHNICAL_KEYWORDS = [
    "formation", "tactical", "pressing", "possession", "xg", "expected goals",
    "pass completion", "progressive passes", "defensive line", "build-up",
    "counter-attack", "high press", "low block", "transition", "shape",
    "midfielder", "forward", "defender", "fullback", "winger",
    "4-3-3", "4-4-2", "3-5-2", "4-2-3-1", "5-3-2", "3-4-3"
]

# =============================================================================
# Response Processing
# =============================================================================

CLEANUP_MIN_LENGTH = 50              # Below this the cleanup is discarded
TITLE_MAX_LENGTH = 150               # A title must be strictly shorter than this
PARSE_FAILURE_PLACEHOLDER = "Gagal mendapatkan hasil daripada model AI."

# =============================================================================
# Text Acquisition
# =============================================================================

ARTICLE_FETCH_TIMEOUT = 15
MIN_ARTICLE_WORD_COUNT = 50
USER_AGENT = 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36'
REQUEST_HEADERS = {
    'User-Agent': USER_AGENT,
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.5',
    'Accept-Encoding': 'gzip, deflate',
    'Connection': 'keep-alive',
    'Upgrade-Insecure-Requests': '1'
}


# =============================================================================
# Provider Configuration Builders
# =============================================================================

def get_provider_config(provider) -> ProviderConfig:
    """
    Build the configuration of one provider from the current settings.

    Args:
        provider: A Provider or its string value

    Returns:
        ProviderConfig: Credentials and endpoint/model for the provider
    """
    provider = Provider(provider)
    if provider == Provider.GROQ:
        return ProviderConfig(Provider.GROQ, GROQ_API_KEY, GROQ_MODEL)
    if provider == Provider.OPENROUTER:
        return ProviderConfig(Provider.OPENROUTER, OPENROUTER_API_KEY, OPENROUTER_MODEL,
                              requires_extra_headers=True)
    return ProviderConfig(Provider.GEMINI, GEMINI_API_KEY, GEMINI_ENDPOINT)


def get_all_provider_configs() -> Dict[Provider, ProviderConfig]:
    """Configurations of every supported provider, keyed by provider."""
    return {provider: get_provider_config(provider) for provider in Provider}
