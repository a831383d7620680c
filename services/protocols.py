"""
Service Protocol Definitions

This module defines typing.Protocol interfaces for services used in the Football Post Curator.
These protocols enable loose coupling, dependency injection, and easier testing.

Protocols defined:
- ProviderClient: Interface for one AI provider variant (Gemini, OpenAI-compatible)
- ContentCurator: Interface for the curation capability consumed by front ends
- TextSource: Interface for turning a link into article text
"""

from typing import Iterable, Optional, Protocol, Union

from data.models import (
    CurationError,
    CurationRequest,
    CurationResult,
    ProviderConfig,
    RawProviderResponse,
    TokenUsage,
)


class ProviderClient(Protocol):
    """Protocol defining the interface of a provider client.

    Implementations own the wire format of one vendor API and run their
    calls through a RetryCoordinator.
    """

    def generate(self, prompt: str, config: ProviderConfig,
                 system_prompt: Optional[str] = None,
                 cancel_token=None, request_id: str = "-") -> RawProviderResponse:
        """Send one prompt, retrying per the client's policy.

        Args:
            prompt: The user prompt.
            config: Credentials and endpoint/model of the provider.
            system_prompt: System message, ignored by providers without one.
            cancel_token: Optional CancellationToken.
            request_id: Correlation id for log lines.

        Returns:
            The decoded response of the first successful attempt.
        """
        ...


class ContentCurator(Protocol):
    """Protocol defining the curation capability.

    Front ends depend on this interface only, never on a concrete facade.
    """

    def curate(self, request: CurationRequest, config: ProviderConfig,
               cancel_token=None) -> Union[CurationResult, CurationError]:
        """Turn an English article into a Bahasa Malaysia post."""
        ...

    def refine(self, post: str, refinements: Iterable, config: ProviderConfig,
               include_source: bool = False, custom_instructions: Iterable[str] = (),
               cancel_token=None) -> Union[CurationResult, CurationError]:
        """Apply refinement tags and custom instructions to an existing post."""
        ...

    def refine_request(self, request: CurationRequest, config: ProviderConfig,
                       cancel_token=None) -> Union[CurationResult, CurationError]:
        ...

    @property
    def last_usage(self) -> Optional[TokenUsage]:
        """Token usage of the most recent successful call."""
        ...


class TextSource(Protocol):
    """Protocol defining how links are turned into article text."""

    def is_url(self, text: str) -> bool:
        ...

    def fetch_text(self, url: str) -> str:
        """Download a page and return its main text.

        Raises:
            ArticleFetchError: The page could not be downloaded or parsed.
            InsufficientContentError: The page holds too little text.
        """
        ...
