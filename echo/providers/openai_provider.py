"""OpenAI provider using openai SDK with native async."""

import asyncio
import logging
import os
import time

from openai import AsyncOpenAI

from config.config_loader import ModelConfig
from echo.models import GeneratedImage, ModelResponse
from echo.providers.base import AIProvider, EmptyResponseError, ProviderError

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "audio/webm": "webm",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/mpeg": "mp3",
    "audio/mp4": "m4a",
    "audio/ogg": "ogg",
}


class OpenAIProvider(AIProvider):
    """OpenAI provider via openai SDK. Text, Whisper transcription and images."""

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = AsyncOpenAI(api_key=api_key)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    async def _call(self, coro):
        try:
            return await asyncio.wait_for(coro, timeout=self._config.timeout_sec)
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

    async def generate(self, prompt: str, purpose: str) -> ModelResponse:
        start = time.monotonic()
        response = await self._call(
            self._client.chat.completions.create(
                model=self._config.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self._config.max_tokens,
            )
        )
        latency = time.monotonic() - start

        choice = response.choices[0] if response.choices else None
        if not choice or not choice.message.content:
            raise EmptyResponseError(self._config.name, "Empty response content")

        token_count: int | None = None
        if response.usage:
            token_count = response.usage.total_tokens

        logger.info("OpenAI %s: %.2fs, %s tokens", purpose, latency, token_count)

        return ModelResponse(
            provider=self._config.name,
            model=self._config.model,
            purpose=purpose,
            content=choice.message.content,
            latency_sec=latency,
            token_count=token_count,
        )

    async def transcribe(self, audio: bytes, mime_type: str, prompt: str) -> str:
        if not self._config.transcription_model:
            raise ProviderError(self._config.name, "No transcription_model configured")
        filename = f"voice.{_EXTENSIONS.get(mime_type, 'webm')}"
        start = time.monotonic()
        response = await self._call(
            self._client.audio.transcriptions.create(
                model=self._config.transcription_model,
                file=(filename, audio, mime_type),
            )
        )
        if not response.text:
            raise EmptyResponseError(self._config.name, "Empty transcription")
        logger.info("OpenAI transcription: %.2fs, %d audio bytes", time.monotonic() - start, len(audio))
        return response.text

    async def generate_image(self, prompt: str) -> GeneratedImage:
        if not self._config.image_model:
            raise ProviderError(self._config.name, "No image_model configured")
        start = time.monotonic()
        response = await self._call(
            self._client.images.generate(model=self._config.image_model, prompt=prompt, n=1)
        )
        image = response.data[0] if response.data else None
        if not image or not image.b64_json:
            raise EmptyResponseError(self._config.name, "No image in response")
        logger.info("OpenAI image: %.2fs", time.monotonic() - start)
        return GeneratedImage(
            data_uri=f"data:image/png;base64,{image.b64_json}",
            text=image.revised_prompt or "",
        )
