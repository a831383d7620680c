"""
Tests for Generation Service

Unit tests for the background worker covering:
- Routing of curate / refine requests
- URL inputs
- Cancellation of outstanding jobs
"""

import threading
import pytest
from unittest.mock import MagicMock
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from data.models import CurationError, CurationRequest, CurationResult, ErrorKind, Provider
from services.generation_service import GenerationService
from utils.exceptions import InsufficientContentError


@pytest.fixture
def curator():
    curator = MagicMock()
    curator.curate.return_value = CurationResult(text="Pos siap", provider=Provider.GEMINI)
    curator.refine_request.return_value = CurationResult(text="Pos diperhalusi", provider=Provider.GEMINI)
    return curator


@pytest.fixture
def article_service():
    service = MagicMock()
    service.is_url.return_value = False
    return service


@pytest.fixture
def generation_service(curator, article_service, gemini_config):
    service = GenerationService(curator=curator, article_service=article_service,
                                config_loader=lambda: gemini_config)
    yield service
    service.shutdown()


class TestRouting:
    """Requests go to curate or refine_request."""

    def test_curate_request(self, generation_service, curator, gemini_config, sample_article):
        job = generation_service.submit(CurationRequest(sample_article))

        outcome = job.result(timeout=5)

        assert outcome.text == "Pos siap"
        curator.curate.assert_called_once()
        args, kwargs = curator.curate.call_args
        assert args[1] == gemini_config
        assert kwargs["cancel_token"] is job.token

    def test_refine_request(self, generation_service, curator):
        job = generation_service.submit(CurationRequest("Pos asal", refinements=["formal"]))

        assert job.result(timeout=5).text == "Pos diperhalusi"
        curator.refine_request.assert_called_once()
        curator.curate.assert_not_called()

    def test_explicit_config_wins(self, generation_service, curator, groq_config, sample_article):
        generation_service.submit(CurationRequest(sample_article), groq_config).result(timeout=5)
        assert curator.curate.call_args.args[1] == groq_config

    def test_run_on_calling_thread(self, generation_service, curator, sample_article):
        assert generation_service.run(CurationRequest(sample_article)).text == "Pos siap"


class TestUrlInput:
    """Links are fetched before curation."""

    def test_url_is_fetched(self, generation_service, curator, article_service, sample_article):
        article_service.is_url.return_value = True
        article_service.fetch_text.return_value = sample_article

        generation_service.submit(CurationRequest("https://www.espn.com/story", include_source=True)).result(timeout=5)

        article_service.fetch_text.assert_called_once_with("https://www.espn.com/story")
        request = curator.curate.call_args.args[0]
        assert request.text == sample_article
        assert request.include_source is True

    def test_fetch_failure_is_input_error(self, generation_service, curator, article_service):
        article_service.is_url.return_value = True
        article_service.fetch_text.side_effect = InsufficientContentError("only 3 words")

        outcome = generation_service.submit(CurationRequest("https://www.espn.com/story")).result(timeout=5)

        assert isinstance(outcome, CurationError)
        assert outcome.kind == ErrorKind.INPUT
        curator.curate.assert_not_called()

    def test_refinement_text_is_never_fetched(self, generation_service, article_service):
        article_service.is_url.return_value = True
        generation_service.submit(CurationRequest("https://x.com", refinements=["rephrase"])).result(timeout=5)
        article_service.fetch_text.assert_not_called()


class TestCancellation:
    """Submitting a new job cancels the outstanding one."""

    def test_new_submission_cancels_previous(self, curator, article_service, gemini_config, sample_article):
        started = threading.Event()
        release = threading.Event()

        def slow_curate(request, config, cancel_token=None):
            started.set()
            release.wait(timeout=5)
            return CurationResult(text=request.text)

        curator.curate.side_effect = slow_curate
        service = GenerationService(curator=curator, article_service=article_service,
                                    config_loader=lambda: gemini_config)
        try:
            first = service.submit(CurationRequest("pertama"))
            assert started.wait(timeout=5)
            second = service.submit(CurationRequest("kedua"))

            assert first.cancelled is True
            assert second.cancelled is False
            release.set()
            assert second.result(timeout=5).text == "kedua"
        finally:
            release.set()
            service.shutdown()

    def test_job_cancelled_before_start(self, curator, article_service, gemini_config):
        release = threading.Event()
        curator.curate.side_effect = lambda request, config, cancel_token=None: (
            release.wait(timeout=5), CurationResult(text=request.text))[1]
        service = GenerationService(curator=curator, article_service=article_service,
                                    config_loader=lambda: gemini_config)
        try:
            service.submit(CurationRequest("pertama"))
            queued = service.submit(CurationRequest("kedua"))
            third = service.submit(CurationRequest("ketiga"))
            release.set()

            outcome = queued.result(timeout=5)
            assert isinstance(outcome, CurationError)
            assert outcome.kind == ErrorKind.CANCELLED
            assert third.result(timeout=5).text == "ketiga"
        finally:
            release.set()
            service.shutdown()
