"""
Generation Service Module

Runs curation work off the caller's thread. Each service instance owns one
single-thread executor, so the requests it receives are handled one at a
time, and submitting a new request cancels the one still outstanding.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from typing import Callable, Optional, Union

from config import settings
from data.models import CurationError, CurationRequest, CurationResult, ErrorKind, ProviderConfig
from services.article_service import ArticleService
from services.curator import CuratorFacade
from services.protocols import ContentCurator, TextSource
from services.retry import CancellationToken
from utils.exceptions import ArticleError
from utils.logger import get_logger

logger = get_logger(__name__)

CurationOutcome = Union[CurationResult, CurationError]


class CurationJob:
    """Handle on one submitted request."""

    def __init__(self, future: Future, token: CancellationToken):
        self.future = future
        self.token = token

    def cancel(self) -> None:
        """Abort pending backoff and further attempts; an in-flight HTTP call is discarded."""
        self.token.cancel()
        self.future.cancel()

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    def done(self) -> bool:
        return self.future.done()

    def result(self, timeout: Optional[float] = None) -> CurationOutcome:
        """
        Wait for the outcome of the job.

        Args:
            timeout: Seconds to wait, None to wait forever

        Returns:
            CurationResult or CurationError; a job cancelled before it started
            yields a CurationError of kind CANCELLED
        """
        if self.future.cancelled():
            return CurationError(kind=ErrorKind.CANCELLED, message="Curation was cancelled")
        return self.future.result(timeout=timeout)


class GenerationService:
    """Background worker for curate and refine requests."""

    def __init__(self, curator: Optional[ContentCurator] = None,
                 article_service: Optional[TextSource] = None,
                 config_loader: Optional[Callable[[], ProviderConfig]] = None):
        self.curator = curator or CuratorFacade()
        self.article_service = article_service or ArticleService()
        self._config_loader = config_loader or (lambda: settings.get_provider_config(settings.AI_PROVIDER))
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="curator")
        self._lock = threading.Lock()
        self._current: Optional[CurationJob] = None

    def submit(self, request: CurationRequest, config: Optional[ProviderConfig] = None) -> CurationJob:
        """
        Queue a request, cancelling the previous outstanding one.

        Args:
            request: Text or link plus post preferences
            config: Provider configuration; loaded from settings at run time when None

        Returns:
            CurationJob: Handle to cancel or wait for the outcome
        """
        token = CancellationToken()
        with self._lock:
            if self._current is not None and not self._current.done():
                logger.info("New request submitted, cancelling the outstanding one")
                self._current.cancel()
            future = self._executor.submit(self._run, request, config, token)
            job = CurationJob(future, token)
            self._current = job
        return job

    def run(self, request: CurationRequest, config: Optional[ProviderConfig] = None,
            cancel_token: Optional[CancellationToken] = None) -> CurationOutcome:
        """Process a request on the calling thread."""
        return self._run(request, config, cancel_token or CancellationToken())

    def _run(self, request: CurationRequest, config: Optional[ProviderConfig],
             token: CancellationToken) -> CurationOutcome:
        if token.cancelled:
            return CurationError(kind=ErrorKind.CANCELLED, message="Curation was cancelled")

        config = config or self._config_loader()

        if not request.is_refinement and self.article_service.is_url(request.text):
            try:
                text = self.article_service.fetch_text(request.text.strip())
            except ArticleError as e:
                return CurationError(kind=ErrorKind.INPUT, message=str(e), provider=config.provider)
            request = replace(request, text=text)

        if request.is_refinement:
            return self.curator.refine_request(request, config, cancel_token=token)
        return self.curator.curate(request, config, cancel_token=token)

    def shutdown(self, wait: bool = True) -> None:
        """Cancel the outstanding job and stop the worker."""
        with self._lock:
            if self._current is not None:
                self._current.cancel()
        self._executor.shutdown(wait=wait)
