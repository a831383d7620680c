"""
Curator Facade Module

Single entry point of the curation pipeline. It validates the request and
provider configuration, builds the prompt, calls the provider through its
client, and post-processes the answer. Callers never see exceptions: every
failure comes back as a tagged CurationError value.
"""

import time
from typing import Callable, Iterable, Optional, Union

import requests

from config import settings
from data.models import (
    CurationError,
    CurationRequest,
    CurationResult,
    ErrorKind,
    ProviderConfig,
    TokenUsage,
)
from data.usage import UsageTracker
from services.fallback_advisor import describe, next_provider
from services.gemini_client import GeminiClient
from services.openai_compatible_client import OpenAICompatibleClient
from services.prompt_builder import PromptBuilder
from services.protocols import ProviderClient
from services.response_processor import ResponseProcessor
from services.retry import CancellationToken, RetryPolicy
from utils.exceptions import (
    ConfigurationError,
    CurationCancelledError,
    CuratorError,
    InputError,
    ParseError,
    RateLimitExhaustedError,
    TransientProviderError,
)
from utils.helpers import new_request_id
from utils.logger import get_logger

logger = get_logger(__name__)

CurationOutcome = Union[CurationResult, CurationError]


def create_provider_client(config: ProviderConfig, session: Optional[requests.Session] = None,
                           policy: Optional[RetryPolicy] = None) -> ProviderClient:
    """
    Select the client variant for a provider.

    Args:
        config: The provider configuration
        session: Shared HTTP session
        policy: Retry policy overriding the variant's default

    Returns:
        ProviderClient: GeminiClient or OpenAICompatibleClient
    """
    if config.is_openai_compatible:
        return OpenAICompatibleClient(session=session, policy=policy)
    return GeminiClient(session=session, policy=policy)


class CuratorFacade:
    """Curates and refines football posts through the configured AI provider."""

    def __init__(self, prompt_builder: Optional[PromptBuilder] = None,
                 processor: Optional[ResponseProcessor] = None,
                 session: Optional[requests.Session] = None,
                 usage_tracker: Optional[UsageTracker] = None,
                 client_factory: Callable[..., ProviderClient] = create_provider_client,
                 gemini_policy: Optional[RetryPolicy] = None,
                 openai_compatible_policy: Optional[RetryPolicy] = None):
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.processor = processor or ResponseProcessor()
        self.session = session or requests.Session()
        self.usage_tracker = usage_tracker
        self._client_factory = client_factory
        self._gemini_policy = gemini_policy
        self._openai_compatible_policy = openai_compatible_policy
        self._last_usage: Optional[TokenUsage] = None

    @property
    def last_usage(self) -> Optional[TokenUsage]:
        """Token usage of the most recent successful call."""
        return self._last_usage

    def curate(self, request: CurationRequest, config: ProviderConfig,
               cancel_token: Optional[CancellationToken] = None) -> CurationOutcome:
        """
        Turn an English article into a Bahasa Malaysia social media post.

        Args:
            request: Text and post preferences
            config: Provider configuration loaded at call time
            cancel_token: Optional token to abandon the call

        Returns:
            CurationResult on success, CurationError otherwise
        """
        def build_prompt():
            if request is None or not request.text or not request.text.strip():
                raise InputError("Please enter some article text or a link to curate.")
            return self.prompt_builder.build_initial_prompt(
                request.tone, request.text, request.include_source, request.preserve_structure
            )

        return self._execute("curate", config, build_prompt, refinement=False, cancel_token=cancel_token)

    def refine(self, post: str, refinements: Iterable, config: ProviderConfig,
               include_source: bool = False, custom_instructions: Iterable[str] = (),
               cancel_token: Optional[CancellationToken] = None) -> CurationOutcome:
        """
        Apply refinement tags and custom instructions to an existing post.

        Args:
            post: The post to refine
            refinements: RefinementTag values
            config: Provider configuration loaded at call time
            include_source: Whether the refined post keeps a 'Sumber:' line
            custom_instructions: Free-text commands written by the user
            cancel_token: Optional token to abandon the call

        Returns:
            CurationResult on success, CurationError otherwise
        """
        refinements = tuple(refinements or ())
        custom_instructions = tuple(c for c in custom_instructions or () if c and c.strip())

        def build_prompt():
            if not post or not post.strip():
                raise InputError("There is no post to refine.")
            if not refinements and not custom_instructions:
                raise InputError("Select at least one refinement or enter an instruction.")
            return self.prompt_builder.build_refinement_prompt(
                post, refinements, include_source, custom_instructions
            )

        return self._execute("refine", config, build_prompt, refinement=True, cancel_token=cancel_token)

    def refine_request(self, request: CurationRequest, config: ProviderConfig,
                       cancel_token: Optional[CancellationToken] = None) -> CurationOutcome:
        """Refine `request.text` with the request's refinements and custom instructions."""
        return self.refine(request.text, request.refinements, config,
                           include_source=request.include_source,
                           custom_instructions=request.custom_instructions,
                           cancel_token=cancel_token)

    # Internals

    def _client_for(self, config: ProviderConfig) -> ProviderClient:
        policy = self._openai_compatible_policy if config.is_openai_compatible else self._gemini_policy
        return self._client_factory(config, session=self.session, policy=policy)

    @staticmethod
    def _check_config(config: Optional[ProviderConfig]) -> None:
        if config is None:
            raise ConfigurationError("No AI provider is configured.")
        name = config.provider.display_name
        if not config.has_api_key:
            raise ConfigurationError(f"{name} API key is not configured. Please add it in Settings.")
        if not config.endpoint_or_model or not config.endpoint_or_model.strip():
            raise ConfigurationError(f"{name} endpoint or model is not configured.")

    def _execute(self, operation: str, config: Optional[ProviderConfig],
                 build_prompt: Callable[[], str], refinement: bool,
                 cancel_token: Optional[CancellationToken]) -> CurationOutcome:
        request_id = new_request_id()
        provider = config.provider if config is not None else None
        started = time.monotonic()

        try:
            self._check_config(config)
            prompt = build_prompt()
        except CuratorError as e:
            logger.warning(f"[{request_id}] {operation} rejected before any request: {e}")
            return self._to_error(e, provider)

        logger.info(f"[{request_id}] {operation} via {provider.value} "
                    f"(prompt {len(prompt)} chars)")

        try:
            client = self._client_for(config)
            raw = client.generate(prompt, config,
                                  system_prompt=self.prompt_builder.system_prompt(refinement),
                                  cancel_token=cancel_token, request_id=request_id)
            text = self.processor.extract_text(raw.payload)
        except ParseError as e:
            logger.warning(f"[{request_id}] {operation} returned an unreadable response: {e}")
            if self.usage_tracker:
                self.usage_tracker.record_failure(provider, str(e), model=config.endpoint_or_model)
            return CurationResult(text=settings.PARSE_FAILURE_PLACEHOLDER, provider=provider, degraded=True)
        except CuratorError as e:
            logger.error(f"[{request_id}] {operation} failed after {time.monotonic() - started:.2f}s: {e}")
            if self.usage_tracker and not isinstance(e, CurationCancelledError):
                self.usage_tracker.record_failure(provider, str(e), model=config.endpoint_or_model)
            return self._to_error(e, provider)

        result = CurationResult(text=self.processor.cleanup(text), usage=raw.usage, provider=provider)
        self._last_usage = raw.usage
        if self.usage_tracker:
            self.usage_tracker.record_success(provider, raw.usage, model=config.endpoint_or_model)

        logger.info(f"[{request_id}] {operation} finished in {time.monotonic() - started:.2f}s "
                    f"({raw.usage.total_tokens} tokens, {len(result.text)} chars)")
        return result

    @staticmethod
    def _to_error(error: CuratorError, provider) -> CurationError:
        """Map an exception from the service layer onto its tagged error value."""
        if isinstance(error, RateLimitExhaustedError):
            signal = error.signal
            alternate = next_provider(signal.provider)
            message = f"{describe(signal)}\nSuggested fallback: {alternate.display_name}."
            return CurationError(kind=ErrorKind.RATE_LIMIT, message=message, provider=signal.provider,
                                 rate_limit=signal, suggested_provider=alternate)
        if isinstance(error, ConfigurationError):
            kind = ErrorKind.CONFIGURATION
        elif isinstance(error, InputError):
            kind = ErrorKind.INPUT
        elif isinstance(error, CurationCancelledError):
            kind = ErrorKind.CANCELLED
        elif isinstance(error, TransientProviderError):
            kind = ErrorKind.TRANSIENT
        elif isinstance(error, ParseError):
            kind = ErrorKind.PARSE
        else:
            kind = ErrorKind.PERMANENT
        return CurationError(kind=kind, message=str(error), provider=provider)
