"""Gemini provider using google-genai SDK with native async."""

import asyncio
import base64
import logging
import os
import time

from google import genai
from google.genai import types as genai_types

from config.config_loader import ModelConfig
from echo.models import GeneratedImage, ModelResponse
from echo.providers.base import AIProvider, EmptyResponseError, ProviderError

logger = logging.getLogger(__name__)


class GeminiProvider(AIProvider):
    """Google Gemini provider via google-genai SDK. Text, audio and image capable."""

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = genai.Client(api_key=api_key)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    async def _generate_content(self, model: str, contents, config: genai_types.GenerateContentConfig):
        try:
            return await asyncio.wait_for(
                self._client.aio.models.generate_content(model=model, contents=contents, config=config),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

    async def generate(self, prompt: str, purpose: str) -> ModelResponse:
        start = time.monotonic()
        response = await self._generate_content(
            self._config.model,
            prompt,
            genai_types.GenerateContentConfig(max_output_tokens=self._config.max_tokens),
        )
        latency = time.monotonic() - start

        if not response.text:
            raise EmptyResponseError(self._config.name, "Empty response text")

        token_count: int | None = None
        if response.usage_metadata:
            token_count = response.usage_metadata.total_token_count

        logger.info("Gemini %s: %.2fs, %s tokens", purpose, latency, token_count)

        return ModelResponse(
            provider=self._config.name,
            model=self._config.model,
            purpose=purpose,
            content=response.text,
            latency_sec=latency,
            token_count=token_count,
        )

    async def transcribe(self, audio: bytes, mime_type: str, prompt: str) -> str:
        start = time.monotonic()
        response = await self._generate_content(
            self._config.transcription_model or self._config.model,
            [prompt, genai_types.Part.from_bytes(data=audio, mime_type=mime_type)],
            genai_types.GenerateContentConfig(max_output_tokens=self._config.max_tokens),
        )
        if not response.text:
            raise EmptyResponseError(self._config.name, "Empty transcription")
        logger.info("Gemini transcription: %.2fs, %d audio bytes", time.monotonic() - start, len(audio))
        return response.text

    async def generate_image(self, prompt: str) -> GeneratedImage:
        if not self._config.image_model:
            raise ProviderError(self._config.name, "No image_model configured")
        start = time.monotonic()
        response = await self._generate_content(
            self._config.image_model,
            prompt,
            genai_types.GenerateContentConfig(response_modalities=["TEXT", "IMAGE"]),
        )

        data_uri = ""
        texts: list[str] = []
        candidate = response.candidates[0] if response.candidates else None
        parts = candidate.content.parts if candidate and candidate.content and candidate.content.parts else []
        for part in parts:
            if part.inline_data and part.inline_data.data and not data_uri:
                encoded = base64.b64encode(part.inline_data.data).decode("ascii")
                data_uri = f"data:{part.inline_data.mime_type or 'image/png'};base64,{encoded}"
            elif part.text:
                texts.append(part.text)

        if not data_uri:
            raise EmptyResponseError(self._config.name, "No image in response")

        logger.info("Gemini image: %.2fs", time.monotonic() - start)
        return GeneratedImage(data_uri=data_uri, text="\n".join(texts))
