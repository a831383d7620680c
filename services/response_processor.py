"""
Response Processor Module

This module turns raw provider responses into clean post text: extracting the
generated text from a JSON document, removing model chatter, and splitting a
post into its title, body and source citation.
"""

import json
import re
from typing import Any, Iterable, Optional

from config import settings
from data.models import ExtractedPost
from utils.exceptions import ParseError
from utils.helpers import safe_get
from utils.logger import get_logger

logger = get_logger(__name__)

# Meta-commentary some models prepend or append to their output
BANNED_PHRASES = [
    "Okay, ini percubaan untuk mengubah teks tersebut",
    "terjemahkan ke Bahasa Melayu (Malaysia)",
    "suntikkan sedikit gaya yang kurang formal",
    "istilah bola sepak Inggeris yang biasa",
    "Saya cuba gunakan perkataan yang lebih santai",
    "Saya juga masukkan istilah bola sepak",
    "Struktur diubah dengan menggabungkan",
    "Em dash (—) dibuang seperti yang diminta",
    "Tukar perkataan dari bahasa inggeris",
    "Semoga ini membantu",
    "Saya cuba",
    "Saya juga",
    "Struktur diubah",
    "Em dash",
    "Tukar perkataan",
    "Semoga ini",
]

_ASIDE_PATTERN = re.compile(r'\*.*?\*')
_BLANK_LINES_PATTERN = re.compile(r'\n\s*\n\s*\n+')
_HORIZONTAL_SPACE_PATTERN = re.compile(r'[ \t]+')

# "Sumber: X", "**Source**: X", "_Sumber_ ： X" on a line of their own
SOURCE_LINE_PATTERN = re.compile(r'^[^\S\n]*[*_]*(?:Sumber|Source)[*_]*[^\S\n]*[:\uFF1A].*$',
                                 re.IGNORECASE | re.MULTILINE)

# Leading emoji and pictographs, with their joiners and variation selectors
_LEADING_EMOJI_PATTERN = re.compile(
    '^(?:[\U0001F000-\U0001FAFF\u2600-\u27BF\u2B00-\u2BFF\u200D\uFE0F\u20E3]|\\s)+'
)


def _has_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _find_text(node: Any) -> Optional[str]:
    """Depth-first search for the first non-blank string field named "text" (case-insensitive)."""
    if isinstance(node, dict):
        for key, value in node.items():
            if isinstance(key, str) and key.lower() == 'text' and _has_text(value):
                return value
            found = _find_text(value)
            if found is not None:
                return found
    elif isinstance(node, list):
        for item in node:
            found = _find_text(item)
            if found is not None:
                return found
    return None


def extract_text(raw) -> str:
    """
    Extract the generated text from a provider response.

    Tries the Gemini path, then the chat-completion path, then the first
    string field named "text" anywhere in the document. Blank strings never
    count as a match.

    Args:
        raw: The decoded JSON document, or its string form

    Returns:
        str: The generated text

    Raises:
        ParseError: If the document is not JSON or holds no non-blank text
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise ParseError(f"Response is not valid JSON: {e}") from e

    text = safe_get(raw, 'candidates', 0, 'content', 'parts', 0, 'text')
    if _has_text(text):
        return text

    text = safe_get(raw, 'choices', 0, 'message', 'content')
    if _has_text(text):
        return text

    text = _find_text(raw)
    if text is not None:
        logger.debug("Extracted text through the fallback field search")
        return text

    raise ParseError("No text field found in provider response")


def cleanup(text: str, banned_phrases: Iterable[str] = BANNED_PHRASES) -> str:
    """
    Remove model chatter and normalize whitespace.

    If the cleaned text ends up shorter than the configured minimum the
    original text is returned unchanged.

    Args:
        text: Text extracted from the provider
        banned_phrases: Phrases removed wherever they appear

    Returns:
        str: The cleaned text, or the original text
    """
    if not text:
        return text

    cleaned = text
    for phrase in banned_phrases:
        cleaned = cleaned.replace(phrase, "")

    cleaned = _ASIDE_PATTERN.sub("", cleaned)
    cleaned = _BLANK_LINES_PATTERN.sub("\n\n", cleaned)
    cleaned = _HORIZONTAL_SPACE_PATTERN.sub(" ", cleaned)
    cleaned = cleaned.strip()

    if len(cleaned) < settings.CLEANUP_MIN_LENGTH:
        logger.warning(f"Cleanup left only {len(cleaned)} characters, keeping the original text")
        return text
    return cleaned


def split_title_body_source(text: str) -> ExtractedPost:
    """
    Split a generated post into title, body and source citation.

    Args:
        text: The post text

    Returns:
        ExtractedPost: Title only when the first segment is non-empty and
        shorter than the title limit; the citation is the first source line
    """
    text = text or ""

    source_citation = None
    match = SOURCE_LINE_PATTERN.search(text)
    if match:
        source_citation = match.group(0).strip()
    content = SOURCE_LINE_PATTERN.sub("", text).rstrip("\n").rstrip()

    title = None
    body = content.strip()
    for separator in ("\n\n", "\n"):
        if separator in content:
            first, rest = content.split(separator, 1)
            first = first.strip()
            if first and len(first) < settings.TITLE_MAX_LENGTH:
                title = first
                body = rest.strip()
                break

    return ExtractedPost(body=body, title=title, source_citation=source_citation)


def strip_leading_emojis(text: str) -> str:
    """Remove emoji and whitespace from the start of a line of text."""
    if not text:
        return text
    return _LEADING_EMOJI_PATTERN.sub("", text)


def assemble_post(post: ExtractedPost, include_title: bool = True, include_source: bool = True,
                  include_emojis: bool = True, hashtags: Optional[str] = None) -> str:
    """
    Rebuild the shareable text of a post.

    Args:
        post: The split post
        include_title: Keep the title line
        include_source: Keep the source citation line
        include_emojis: Keep emoji at the start of the title
        hashtags: Hashtags appended on a final line

    Returns:
        str: Title, body, source and hashtags separated by blank lines
    """
    sections = []
    if include_title and post.title:
        sections.append(post.title if include_emojis else strip_leading_emojis(post.title))
    if post.body:
        sections.append(post.body)
    if include_source and post.source_citation:
        sections.append(post.source_citation)
    if hashtags and hashtags.strip():
        sections.append(hashtags.strip())
    return "\n\n".join(sections)


class ResponseProcessor:
    """Object facade over the module functions, injectable into the curator."""

    def __init__(self, banned_phrases: Optional[Iterable[str]] = None):
        self.banned_phrases = list(banned_phrases) if banned_phrases is not None else list(BANNED_PHRASES)

    def extract_text(self, raw) -> str:
        return extract_text(raw)

    def cleanup(self, text: str) -> str:
        return cleanup(text, self.banned_phrases)

    def split_title_body_source(self, text: str) -> ExtractedPost:
        return split_title_body_source(text)
