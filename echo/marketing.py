"""Marketing post generation: keywords, then image, then caption."""

import logging

from config.config_loader import PromptsConfig
from echo.errors import PreconditionError, ServiceError
from echo.models import MarketingPost
from echo.providers.base import AIProvider, ProviderError

logger = logging.getLogger(__name__)

_MAX_KEYWORD_CHARS = 30


def fallback_keywords(theme: str) -> str:
    return " ".join(theme.split()[:2])


async def _extract_keywords(theme: str, writer: AIProvider, prompts: PromptsConfig) -> str:
    """One or two image keywords. Never fails: falls back to the theme's first words."""
    try:
        response = await writer.generate(prompts.keywords.format(theme=theme), purpose="keywords")
    except ProviderError as exc:
        logger.warning("Keyword extraction failed, using theme words: %s", exc)
        return fallback_keywords(theme)

    keywords = response.content.strip().strip('"').splitlines()[0].strip() if response.content.strip() else ""
    return keywords[:_MAX_KEYWORD_CHARS].strip() or fallback_keywords(theme)


async def generate_marketing_post(
    theme: str,
    writer: AIProvider,
    illustrator: AIProvider,
    prompts: PromptsConfig,
) -> MarketingPost:
    """Build an image plus caption for ``theme``.

    Raises:
        ServiceError: If no keywords can be derived, the image call yields no
            image, or the caption call yields no text.
    """
    keywords = await _extract_keywords(theme, writer, prompts)
    if not keywords:
        raise ServiceError("marketing", "Keyword generation for image failed or returned empty")

    logger.info("Generating marketing image via %s (keywords: %s)", illustrator.name(), keywords)
    try:
        image = await illustrator.generate_image(prompts.image.format(theme=theme, keywords=keywords))
    except ProviderError as exc:
        raise ServiceError("marketing", f"Image generation failed: {exc}") from exc
    if not image.data_uri:
        raise ServiceError("marketing", "Image generation did not return an image URI")

    image_context = image.text.strip() or (
        f"Visually stunning image related to {theme} focusing on {keywords}."
    )
    try:
        response = await writer.generate(
            prompts.caption.format(theme=theme, keywords=keywords, image_context=image_context),
            purpose="caption",
        )
    except ProviderError as exc:
        raise ServiceError("marketing", f"Caption generation failed: {exc}") from exc

    caption = response.content.strip()
    if not caption:
        raise ServiceError("marketing", "Caption generation failed")

    return MarketingPost(image_uri=image.data_uri, caption=caption, image_keywords=keywords)


class MarketingGenerator:
    """Marketing request wrapper with its own loading flag. Independent of the scheduler."""

    def __init__(self, writer: AIProvider, illustrator: AIProvider, prompts: PromptsConfig) -> None:
        self._writer = writer
        self._illustrator = illustrator
        self._prompts = prompts
        self.is_loading = False
        self.post: MarketingPost | None = None

    async def generate(self, theme: str | None) -> MarketingPost:
        if not theme or not theme.strip():
            raise PreconditionError("A theme is required to generate a marketing post")
        if self.is_loading:
            raise PreconditionError("A marketing post is already being generated")

        self.is_loading = True
        try:
            self.post = await generate_marketing_post(theme.strip(), self._writer, self._illustrator, self._prompts)
        finally:
            self.is_loading = False
        return self.post
