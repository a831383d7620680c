"""
Prompt Builder Module

This module centralizes prompt engineering for content curation. It builds
provider-agnostic instruction text for the initial curation of an English
football article into a Bahasa Malaysia social media post, and for the
refinement of an already generated post. No I/O happens here.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

from config import settings
from data.models import RefinementTag, Tone

QUOTE_CHARACTERS = ('"', '“', '”', "'", '‘', '’')

FORBIDDEN_PHRASES = ('"Saya cuba"', '"Saya rasa"', '"Pada pendapat saya"')

REFINEMENT_INSTRUCTIONS = {
    RefinementTag.REPHRASE:
        "Rephrase: Rewrite the post with different wording while maintaining the same meaning and facts",
    RefinementTag.RECHECK_FLOW:
        "Recheck Flow: Improve the logical flow and structure of ideas",
    RefinementTag.RECHECK_WORDING:
        "Recheck Wording: Improve word choice and phrasing for better clarity",
    RefinementTag.FORMAL:
        "Make it more Formal: Use formal language suitable for official club communication",
    RefinementTag.CONVERSATIONAL:
        "Make it more Conversational: Use engaging, conversational tone suitable for fan communities",
    RefinementTag.SHORTEN_DETAILED:
        "Shorten But Detailed: Make the post more concise while retaining all important details, "
        "facts, and key information. Remove redundant or filler words but keep the substance.",
}

CURATION_SYSTEM_PROMPT = (
    "You are a professional social media content writer for a Malaysian football club. "
    "Write in Malaysian Malay (Bahasa Malaysia) only. Do not include hashtags."
)
REFINEMENT_SYSTEM_PROMPT = (
    "You are refining a Malaysian Malay social media post about football. "
    "Apply improvements while maintaining Bahasa Malaysia. Do not include hashtags."
)

NO_SOURCE_REMINDER = (
    "Do NOT include any 'Sumber:' citation in the output. "
    "Do NOT mention the source name, publication, or author anywhere in the post."
)


class TechnicalContentDetector:
    """Flags long, tactics-heavy articles such as match analysis pieces.

    An article is technical when it is at least `min_length` characters
    long and mentions at least `min_keyword_hits` distinct keywords.
    """

    def __init__(self, keywords: Optional[Sequence[str]] = None,
                 min_length: Optional[int] = None,
                 min_keyword_hits: Optional[int] = None):
        self.keywords = [k.lower() for k in (keywords if keywords is not None else settings.TECHNICAL_KEYWORDS)]
        self.min_length = settings.TECHNICAL_MIN_LENGTH if min_length is None else min_length
        self.min_keyword_hits = (settings.TECHNICAL_MIN_KEYWORD_HITS
                                 if min_keyword_hits is None else min_keyword_hits)

    def keyword_hits(self, text: str) -> int:
        lower_text = text.lower()
        return sum(1 for keyword in self.keywords if keyword in lower_text)

    def is_technical(self, text: str) -> bool:
        if not text or len(text) < self.min_length:
            return False
        return self.keyword_hits(text) >= self.min_keyword_hits


def contains_quotes(text: str) -> bool:
    """Detect ASCII or typographic quotation marks."""
    if not text:
        return False
    return any(mark in text for mark in QUOTE_CHARACTERS)


def target_length_band(text: str) -> Tuple[int, int]:
    """
    Compute the requested output length band for an input text.

    Args:
        text: The source text

    Returns:
        Tuple[int, int]: (minimum, maximum) characters, 40-60% of the input
        with floors of 50 and 100 for short inputs
    """
    length = len(text or "")
    target_min = max(settings.TARGET_MIN_FLOOR, int(length * settings.TARGET_MIN_RATIO))
    target_max = max(settings.TARGET_MAX_FLOOR, int(length * settings.TARGET_MAX_RATIO))
    return target_min, target_max


class PromptBuilder:
    """Builds curation and refinement prompts."""

    def __init__(self, detector: Optional[TechnicalContentDetector] = None):
        self.detector = detector or TechnicalContentDetector()

    def system_prompt(self, refinement: bool = False) -> str:
        """System message for providers that accept one (chat-completion APIs)."""
        return REFINEMENT_SYSTEM_PROMPT if refinement else CURATION_SYSTEM_PROMPT

    def build_initial_prompt(self, tone, text: str, include_source: bool,
                             preserve_structure: bool) -> str:
        """
        Build the prompt that turns an English article into a Bahasa Malaysia post.

        Args:
            tone: Tone.FORMAL or Tone.CASUAL (or their string values)
            text: The English source text
            include_source: Whether the post must end with a 'Sumber:' line
            preserve_structure: Whether to keep the original layout verbatim

        Returns:
            str: The complete instruction text
        """
        text = text or ""
        is_formal = getattr(tone, 'value', tone) == Tone.FORMAL.value
        tone_desc = "formal, professional" if is_formal else "engaging, conversational"
        tone_instruction = (
            "Maintain a formal, professional tone suitable for official club communication"
            if is_formal else
            "Maintain an engaging, conversational tone suitable for fan communities"
        )

        has_quotes = contains_quotes(text)
        # Structure mode keeps the original layout, so the technical template never applies
        is_technical = not preserve_structure and self.detector.is_technical(text)
        target_min, target_max = target_length_band(text)

        requirements: List[str] = [
            "Write ONLY in Bahasa Malaysia (Malaysian Malay) - do not include any English text in your output",
            tone_instruction,
        ]

        if preserve_structure:
            requirements.append(
                "STRICTLY PRESERVE the original formatting, bullet points, lists, and structure. "
                "Do NOT summarize into paragraphs if the original used a list format. Translate the "
                "content line-by-line while keeping the visual layout exactly the same."
            )
        else:
            requirements.append(
                "The output must be approximately 40-60% of the original content length "
                f"(target: {target_min}-{target_max} characters)"
            )

        if has_quotes:
            requirements.append(
                "QUOTE HANDLING: If the original text contains quotes, you MUST translate them directly "
                "into Bahasa Malaysia. Do NOT paraphrase or turn quotes into normal phrases. Maintain the "
                "conversational tone of the quote - not too formal, not too laid back."
            )

        requirements.append(
            f"FORBIDDEN: Do not use personal commentary phrases like {', '.join(FORBIDDEN_PHRASES)}"
        )
        requirements.append("FORBIDDEN: Do not use em-dashes (—) anywhere in the output")
        requirements.append("FORBIDDEN: Do NOT include any hashtags in the output")

        if not include_source:
            requirements.append("FORBIDDEN: Do NOT include any 'Sumber:' citation in the output")

        if is_technical:
            requirements.append(
                "STRUCTURE FOR TECHNICAL ANALYSIS: Start with a clear, engaging Headline. "
                "Then organize content focusing on:\n"
                "   - Key Stats: Highlight important statistics and numbers\n"
                "   - Formations: Describe tactical setups and player positions\n"
                "   - Tactical Shifts: Explain strategic changes and their impact\n"
                "   Separate sections with blank lines."
            )
        elif not preserve_structure:
            requirements.append(
                "STRUCTURE: Start with a clear, engaging Headline. Separate paragraphs with a blank line."
            )

        requirements.extend([
            "Preserve key facts, names, dates, and statistics from the original",
            "Make the content engaging but maintain journalistic objectivity",
            "The tone should be that of an official club announcement or news update",
        ])

        lines = [
            "You are a professional social media content writer for a Malaysian football club. "
            "Your task is to transform the following English football news article into a "
            f"{tone_desc} social media post written in Malaysian Malay (Bahasa Malaysia).",
            "",
            "STRICT REQUIREMENTS:",
        ]
        lines.extend(f"{number}. {requirement}" for number, requirement in enumerate(requirements, start=1))
        lines.extend(["", "ORIGINAL ENGLISH TEXT:", "---", text, "---", ""])

        if preserve_structure:
            closing = ("Provide ONLY the Bahasa Malaysia social media post. STRICTLY PRESERVE the original "
                       "formatting (lists, bullets, spacing). Do NOT include any hashtags.")
        elif is_technical:
            closing = ("Provide ONLY the Bahasa Malaysia social media post. Structure it with a headline "
                       "followed by Key Stats, Formations, and Tactical Shifts sections. Separate sections "
                       "with blank lines. Do NOT include any hashtags.")
        else:
            closing = ("Provide ONLY the Bahasa Malaysia social media post. Ensure the output is structured "
                       "with a headline and paragraphs separated by blank lines. Do NOT include any hashtags.")
        lines.append(closing)
        lines.append("")

        if include_source:
            lines.append(
                "REMEMBER: End your post with a new line containing 'Sumber: [Source Name]' where Source "
                "Name is the website, publication, or journalist identified from the content."
            )
        else:
            lines.append(f"REMEMBER: {NO_SOURCE_REMINDER}")

        return "\n".join(lines)

    def build_refinement_prompt(self, original_post: str, refinements: Iterable,
                                include_source: bool,
                                custom_instructions: Iterable[str] = ()) -> str:
        """
        Build the prompt that refines an already generated post.

        Args:
            original_post: The post to refine
            refinements: RefinementTag values, applied in the given order
            include_source: Whether the refined post keeps a 'Sumber:' line
            custom_instructions: Free-text commands written by the user

        Returns:
            str: The complete instruction text
        """
        lines = [
            "You are refining a Malaysian Malay (Bahasa Malaysia) social media post about football. "
            "Apply the following improvements to the post:",
            "",
        ]

        for tag in refinements or ():
            try:
                tag = RefinementTag(tag)
            except ValueError:
                continue
            lines.append(f"- {REFINEMENT_INSTRUCTIONS[tag]}")

        for instruction in custom_instructions or ():
            if instruction and instruction.strip():
                lines.append(f"- Custom: {instruction.strip()}")

        lines.extend(["", "ORIGINAL POST:", "---", original_post or "", "---", ""])
        lines.append("Provide ONLY the refined Bahasa Malaysia post. Maintain the same length and structure. "
                     "Do NOT include any hashtags or explanations.")

        if include_source:
            lines.append("Ensure the post ends with 'Sumber: [Source Name]' if the original post had one "
                         "or if the source is known.")
        else:
            lines.append(NO_SOURCE_REMINDER)

        return "\n".join(lines)
