"""Discussion summarization: transcript text in, Summary out."""

import logging

from config.config_loader import PromptsConfig
from echo.errors import ServiceError
from echo.models import Summary
from echo.providers.base import AIProvider, ProviderError
from echo.schemas import SummaryOutput, parse_structured

logger = logging.getLogger(__name__)


async def summarize_discussion(
    discussion_text: str,
    summarizer: AIProvider,
    prompts: PromptsConfig,
) -> Summary:
    """Summarize the discussion, highlighting the evolved idea and each agent's part.

    Raises:
        ServiceError: If the discussion is empty, the provider fails, or the
            model output is missing either field.
    """
    if not discussion_text.strip():
        raise ServiceError("summarize", "Nothing to summarize")

    prompt = prompts.summarize.format(discussion_text=discussion_text)
    logger.info("Running summarization via %s", summarizer.name())

    try:
        response = await summarizer.generate(prompt, purpose="summarize")
    except ProviderError as exc:
        raise ServiceError("summarize", str(exc)) from exc

    parsed = parse_structured("summarize", response.content, SummaryOutput)
    return Summary(summary=parsed.summary, key_contributions=parsed.key_contributions)
