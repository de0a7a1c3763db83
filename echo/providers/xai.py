"""xAI Grok provider using openai SDK (OpenAI-compatible API)."""

import os

from openai import AsyncOpenAI

from config.config_loader import ModelConfig
from echo.models import GeneratedImage
from echo.providers.base import AIProvider, ProviderError
from echo.providers.openai_provider import OpenAIProvider


class XAIProvider(OpenAIProvider):
    """xAI Grok provider via OpenAI-compatible chat API. Text only."""

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        if not config.base_url:
            raise ProviderError(config.name, "base_url is required for xAI provider")
        self._client = AsyncOpenAI(api_key=api_key, base_url=config.base_url)

    async def transcribe(self, audio: bytes, mime_type: str, prompt: str) -> str:
        return await AIProvider.transcribe(self, audio, mime_type, prompt)

    async def generate_image(self, prompt: str) -> GeneratedImage:
        return await AIProvider.generate_image(self, prompt)

    def supports(self, capability: str) -> bool:
        return capability not in ("transcribe", "image")
