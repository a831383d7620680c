"""
Data Models for the Football Post Curator

Value objects passed between the prompt builder, provider clients,
retry coordinator, response processor and curator facade.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple


class Tone(str, Enum):
    """Style selector affecting prompt wording."""
    FORMAL = "formal"
    CASUAL = "casual"


class Provider(str, Enum):
    """Supported generation backends."""
    GEMINI = "gemini"
    GROQ = "groq"
    OPENROUTER = "openrouter"

    @property
    def display_name(self) -> str:
        return PROVIDER_DISPLAY_NAMES[self]


PROVIDER_DISPLAY_NAMES = {
    Provider.GEMINI: "Gemini",
    Provider.GROQ: "Groq (Llama 3.3)",
    Provider.OPENROUTER: "OpenRouter",
}


class RefinementTag(str, Enum):
    """Enumerated post-hoc refinement operations."""
    REPHRASE = "rephrase"
    RECHECK_FLOW = "recheck_flow"
    RECHECK_WORDING = "recheck_wording"
    FORMAL = "formal"
    CONVERSATIONAL = "conversational"
    SHORTEN_DETAILED = "shorten_detailed"


def ordered_refinements(tags: Iterable) -> Tuple[RefinementTag, ...]:
    """Coerce tags to RefinementTag, dropping duplicates while keeping first-seen order."""
    seen = []
    for tag in tags or ():
        tag = RefinementTag(tag)
        if tag not in seen:
            seen.append(tag)
    return tuple(seen)


@dataclass(frozen=True)
class CurationRequest:
    """One user action: curate `text`, or refine it when `refinements` is not empty."""
    text: str
    tone: Tone = Tone.FORMAL
    include_source: bool = False
    preserve_structure: bool = False
    refinements: Tuple[RefinementTag, ...] = ()
    custom_instructions: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'tone', Tone(self.tone))
        object.__setattr__(self, 'refinements', ordered_refinements(self.refinements))
        object.__setattr__(
            self, 'custom_instructions',
            tuple(c.strip() for c in self.custom_instructions or () if c and c.strip())
        )

    @property
    def is_refinement(self) -> bool:
        return bool(self.refinements or self.custom_instructions)


@dataclass(frozen=True)
class ProviderConfig:
    """Credentials and target of one provider, loaded at call time.

    Attributes:
        provider: The backend this configuration belongs to.
        api_key: Secret used for the call; must be non-empty before any request.
        endpoint_or_model: Full endpoint URL for Gemini, model identifier otherwise.
        requires_extra_headers: True when the vendor needs HTTP-Referer / X-Title.
    """
    provider: Provider
    api_key: Optional[str]
    endpoint_or_model: Optional[str]
    requires_extra_headers: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'provider', Provider(self.provider))

    @property
    def is_openai_compatible(self) -> bool:
        return self.provider in (Provider.GROQ, Provider.OPENROUTER)

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def __repr__(self) -> str:
        # Never leak the key into logs
        masked = "***" if self.has_api_key else "<missing>"
        return (f"ProviderConfig(provider={self.provider.value!r}, api_key={masked}, "
                f"endpoint_or_model={self.endpoint_or_model!r})")


@dataclass(frozen=True)
class TokenUsage:
    """Token counters reported by a provider."""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class RawProviderResponse:
    """Decoded body of one successful HTTP call."""
    payload: Dict[str, Any]
    status_code: int
    usage: TokenUsage = field(default_factory=TokenUsage)


@dataclass
class CurationResult:
    """Text produced by a successful curate/refine call."""
    text: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    provider: Optional[Provider] = None
    degraded: bool = False


@dataclass(frozen=True)
class ExtractedPost:
    """A post split into its title, body and source citation."""
    body: str
    title: Optional[str] = None
    source_citation: Optional[str] = None

    @property
    def has_content(self) -> bool:
        return bool(self.title or self.body)


@dataclass(frozen=True)
class RateLimitSignal:
    """Raised-to-the-caller state of an exhausted rate-limit negotiation."""
    provider: Provider
    retry_delay_ms: int
    attempt: int

    @classmethod
    def clamped(cls, provider, retry_delay_ms: int, attempt: int, max_delay_ms: int) -> 'RateLimitSignal':
        delay = min(max(0, int(retry_delay_ms or 0)), max_delay_ms)
        return cls(provider=Provider(provider), retry_delay_ms=delay, attempt=attempt)


class ErrorKind(str, Enum):
    """Classification of a failed curation call."""
    CONFIGURATION = "configuration"
    INPUT = "input"
    TRANSIENT = "transient"
    RATE_LIMIT = "rate_limit"
    PERMANENT = "permanent"
    PARSE = "parse"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class CurationError:
    """Tagged failure returned by the curator facade instead of an exception."""
    kind: ErrorKind
    message: str
    provider: Optional[Provider] = None
    rate_limit: Optional[RateLimitSignal] = None
    suggested_provider: Optional[Provider] = None

    @property
    def is_rate_limit(self) -> bool:
        return self.kind == ErrorKind.RATE_LIMIT

    @property
    def retry_delay_ms(self) -> int:
        return self.rate_limit.retry_delay_ms if self.rate_limit else 0
