"""
Football Post Curator

This is the main entry point for the Football Post Curator.
It takes an English football article (text, file or link), curates it
into a Bahasa Malaysia social media post through the configured AI
provider, and prints the ready-to-share result.
"""

import sys
import argparse
import logging
from typing import Dict, Optional

from config import settings
from config.validators import get_config_summary, validate_settings
from data.models import CurationError, CurationRequest, Provider, ProviderConfig, RefinementTag, Tone
from data.usage import UsageTracker
from services.article_service import ArticleService
from services.curator import CuratorFacade
from services.fallback_advisor import FallbackAdvisor
from services.generation_service import GenerationService
from services.response_processor import assemble_post, split_title_body_source
from utils.exceptions import ConfigurationError, CuratorError
from utils.helpers import looks_like_url
from utils.logger import get_logger, setup_file_logging

# Set up logging
logger = get_logger(__name__)


class PostCurator:
    """
    Main application class for the Football Post Curator.

    This class wires the generation service, the fallback advisor and the
    output formatting together for one command line run.
    """

    def __init__(self, provider: Optional[str] = None, generation_service: Optional[GenerationService] = None,
                 configs: Optional[Dict[Provider, ProviderConfig]] = None):
        """Initialize the curator application."""
        self.provider = Provider(provider or settings.AI_PROVIDER)
        self.configs = configs if configs is not None else settings.get_all_provider_configs()
        self.usage = UsageTracker()
        self.generation_service = generation_service or GenerationService(
            curator=CuratorFacade(usage_tracker=self.usage),
            article_service=ArticleService(),
        )
        self.advisor = FallbackAdvisor(configs_loader=lambda: self.configs)

        # Validate settings
        validate_settings(self.provider)

    def run(self, request: CurationRequest, auto_fallback: bool = False,
            include_title: bool = True, hashtags: Optional[str] = None) -> bool:
        """
        Curate one request and print the resulting post.

        Args:
            request: The text or link plus post preferences
            auto_fallback: Switch to the suggested provider after a rate limit
            include_title: Keep the title line in the printed post
            hashtags: Hashtags appended to the printed post

        Returns:
            bool: True if a post was produced, False otherwise
        """
        provider = self.provider
        visited = {provider}

        while True:
            logger.info(f"Curating with {provider.display_name}")
            job = self.generation_service.submit(request, self.configs.get(provider))
            try:
                outcome = job.result()
            except KeyboardInterrupt:
                job.cancel()
                logger.warning("Curation cancelled by user")
                return False

            if not isinstance(outcome, CurationError):
                break

            if outcome.is_rate_limit:
                suggestion = self.advisor.suggest_fallback(provider)
                message = self.advisor.describe(outcome.rate_limit, suggestion)
                logger.warning(message.replace("\n", " "))
                if auto_fallback and suggestion.is_usable and suggestion.candidate not in visited:
                    provider = suggestion.candidate
                    visited.add(provider)
                    continue
                print(message, file=sys.stderr)
                return False

            logger.error(f"Curation failed ({outcome.kind.value}): {outcome.message}")
            print(outcome.message, file=sys.stderr)
            return False

        if outcome.degraded:
            logger.warning("The AI provider answered without readable text")
            print(outcome.text, file=sys.stderr)
            return False

        post = split_title_body_source(outcome.text)
        print(assemble_post(post, include_title=include_title, include_source=request.include_source,
                            hashtags=hashtags))

        logger.info(f"Usage: {self.usage.summary()}")
        return True

    def shutdown(self) -> None:
        self.generation_service.shutdown(wait=False)


def parse_refinements(value: str):
    """Parse a comma-separated list of refinement tags."""
    tags = []
    for item in value.split(','):
        item = item.strip().lower()
        if not item:
            continue
        try:
            tags.append(RefinementTag(item))
        except ValueError:
            valid = ", ".join(t.value for t in RefinementTag)
            raise argparse.ArgumentTypeError(f"Unknown refinement '{item}'. Choose from: {valid}")
    return tags


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Football Post Curator')
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument('--text', type=str, help='English article text (or a post to refine)')
    source.add_argument('--url', type=str, help='Link to an English article')
    source.add_argument('--file', type=str, help='Path to a UTF-8 text file with the article')
    parser.add_argument('--tone', type=str, choices=[t.value for t in Tone], default=settings.POST_TONE,
                        help='Tone of the post')
    parser.add_argument('--provider', type=str, choices=[p.value for p in Provider], default=None,
                        help='AI provider (defaults to AI_PROVIDER)')
    parser.add_argument('--include-source', action='store_true', default=settings.INCLUDE_SOURCE,
                        help="End the post with a 'Sumber:' line")
    parser.add_argument('--preserve-structure', action='store_true', default=settings.PRESERVE_STRUCTURE,
                        help='Keep the original lists and layout')
    parser.add_argument('--refine', type=parse_refinements, default=[],
                        help='Refine the given post with comma-separated tags (e.g. rephrase,formal)')
    parser.add_argument('--instruction', action='append', default=[],
                        help='Custom refinement instruction (repeatable)')
    parser.add_argument('--auto-fallback', action='store_true',
                        help='Switch to the next configured provider when rate limited')
    parser.add_argument('--hashtags', type=str, default=settings.DEFAULT_HASHTAGS,
                        help='Hashtags appended to the post (empty string for none)')
    parser.add_argument('--no-title', action='store_true', help='Drop the title line from the post')
    parser.add_argument('--log-file', type=str, default=None, help='Log file path')
    parser.add_argument('--log-level', type=str, choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        default='INFO', help='Logging level')

    args = parser.parse_args(argv)
    if args.url and not looks_like_url(args.url):
        parser.error(f"--url does not look like a link: {args.url}")
    return args


def read_input(args) -> str:
    """Return the raw input selected on the command line."""
    if args.file:
        with open(args.file, 'r', encoding='utf-8') as f:
            return f.read()
    return args.url or args.text or ""


def main(argv=None):
    """Main entry point for the application."""
    # Parse command line arguments
    args = parse_arguments(argv)

    # Set up logging
    log_level = getattr(logging, args.log_level)
    setup_file_logging(args.log_file, log_level)

    logger.info("Starting Football Post Curator")
    logger.debug(f"Configuration: {get_config_summary()}")

    curator = None
    try:
        request = CurationRequest(
            text=read_input(args),
            tone=args.tone,
            include_source=args.include_source,
            preserve_structure=args.preserve_structure,
            refinements=args.refine,
            custom_instructions=args.instruction,
        )

        curator = PostCurator(provider=args.provider)
        success = curator.run(request, auto_fallback=args.auto_fallback,
                              include_title=not args.no_title, hashtags=args.hashtags)

        # Report status
        if success:
            logger.info("Football Post Curator completed successfully")
            exit_code = 0
        else:
            logger.warning("Football Post Curator completed with errors")
            exit_code = 1

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        exit_code = 2
    except (CuratorError, OSError) as e:
        logger.error(f"Could not curate the post: {e}", exc_info=True)
        exit_code = 2
    except Exception as e:
        logger.error(f"Unhandled exception in Football Post Curator: {e}", exc_info=True)
        exit_code = 2
    finally:
        if curator is not None:
            curator.shutdown()

    logger.info(f"Football Post Curator finished with exit code {exit_code}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
