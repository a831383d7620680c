"""
Article Service Module

This module turns a link pasted by the user into article text using
newspaper3k. The curation pipeline itself only ever sees plain text.
"""

from newspaper import Article
from newspaper.article import ArticleException

from config import settings
from utils.exceptions import ArticleFetchError, InsufficientContentError
from utils.helpers import looks_like_url, normalize_url
from utils.logger import get_logger

logger = get_logger(__name__)


class ArticleService:
    """Service for fetching article text from a URL."""

    def __init__(self, headers=None, timeout=None, min_word_count=None):
        """Initialize the article service."""
        self.headers = dict(headers or settings.REQUEST_HEADERS)
        self.timeout = timeout or settings.ARTICLE_FETCH_TIMEOUT
        self.min_word_count = settings.MIN_ARTICLE_WORD_COUNT if min_word_count is None else min_word_count

    def is_url(self, text: str) -> bool:
        """Check whether user input is a link rather than article text."""
        return looks_like_url(text)

    def fetch_text(self, url: str) -> str:
        """
        Download and parse an article with newspaper3k.

        Args:
            url (str): The URL of the article, with or without scheme.

        Returns:
            str: The article title (when present) followed by its text.

        Raises:
            ArticleFetchError: If the page cannot be downloaded or parsed.
            InsufficientContentError: If the article holds too few words.
        """
        url = normalize_url(url)
        try:
            article = Article(url)
            article.config.browser_user_agent = self.headers.get('User-Agent', settings.USER_AGENT)
            article.config.headers = self.headers
            article.config.request_timeout = self.timeout

            article.download()
            article.parse()
        except ArticleException as e:
            logger.error(f"Error fetching article: {e} on URL {url}")
            raise ArticleFetchError(f"Could not fetch article from {url}: {e}") from e

        text = (article.text or "").strip()
        word_count = len(text.split())
        if word_count < self.min_word_count:
            logger.warning(f"Article content too short: {word_count} words on URL {url}")
            raise InsufficientContentError(
                f"Article at {url} has only {word_count} words (minimum {self.min_word_count})"
            )

        logger.info(f"Fetched {word_count} words from {url}")
        title = (article.title or "").strip()
        return f"{title}\n\n{text}" if title else text
