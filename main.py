"""
Command line interface for the Website Query Assistant.

Loads API keys from environment variables (via `.env`), creates a
WebsiteQueryAgent, and enters an interactive loop.  Each line holds a question
followed by `|` and one or more URLs:

    > What plans are offered? | https://example.com/pricing https://example.com/faq

The processing indicator store tracks in-flight queries the way the desktop
widget does and logs its transitions.
"""

import asyncio
import logging
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from agents.website_query_agent import WebsiteQueryAgent
from widget.processing_indicator import Action, ActionKind, IndicatorState
from widget.store import ProcessingIndicatorStore

# --- Logging configuration ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def parse_line(line: str) -> Optional[Tuple[str, List[str]]]:
    """Split `question | url url ...` into its parts."""
    if "|" not in line:
        return None
    question, _, url_part = line.partition("|")
    urls = url_part.split()
    if not question.strip() or not urls:
        return None
    return question.strip(), urls


async def _print_progress(message: str) -> None:
    print(message)


def _log_indicator(action: Action, state: IndicatorState) -> None:
    if action.kind in (ActionKind.BEGIN_PROCESSING, ActionKind.END_PROCESSING, ActionKind.FORCE_END_PROCESSING):
        logger.info("Indicator %s: processing=%s", action.kind.value, state.is_processing)


async def run() -> None:
    """Run the command line loop for the website query agent."""
    logger.info("Loading environment variables from .env file...")
    load_dotenv()

    try:
        agent = WebsiteQueryAgent(report_progress=_print_progress)
    except Exception as exc:
        logger.exception("Failed to initialize the website query agent: %s", exc)
        return

    indicator = ProcessingIndicatorStore()
    indicator.subscribe(_log_indicator)

    print(
        "\nWelcome to the Website Query Assistant!\n"
        "Type a question, then '|', then the URLs to read.  Type 'quit' to exit.\n"
    )

    while True:
        try:
            line = (await asyncio.to_thread(input, "> ")).strip()
        except EOFError:
            logger.info("EOF received; exiting.")
            break

        if not line:
            continue
        if line.lower() in {"quit", "exit", "q"}:
            logger.info("User requested exit.")
            break

        parsed = parse_line(line)
        if parsed is None:
            print("Expected: <question> | <url> [<url> ...]\n")
            continue
        question, urls = parsed

        indicator.begin_processing()
        try:
            logger.info("Processing query: %s", question)
            await agent.prepare()
            result = await agent.aquery(question, urls)
            print(f"\n{result.bot_readable_content}\n")
            logger.info("Response delivered successfully.")
        except Exception as exc:
            logger.exception("Error while processing query: %s", exc)
            print(f"An error occurred: {exc}\n")
        finally:
            indicator.end_processing()

    await indicator.aclose()
    logger.info("Session ended. Goodbye!")
    print("Goodbye!")


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
