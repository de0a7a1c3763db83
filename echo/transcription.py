"""Voice transcription: audio data URI in, text out."""

import base64
import binascii
import logging
import mimetypes
import re
from pathlib import Path

from config.config_loader import PromptsConfig
from echo.errors import PreconditionError, ServiceError
from echo.providers.base import AIProvider, ProviderError

logger = logging.getLogger(__name__)

_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?:;[\w-]+=[\w.-]+)*;base64,(?P<data>.+)$", re.DOTALL)


def decode_data_uri(data_uri: str) -> tuple[str, bytes]:
    """Split ``data:<mime>;base64,<payload>`` into (mime_type, raw bytes)."""
    match = _DATA_URI.match(data_uri.strip())
    if not match:
        raise PreconditionError("Audio must be a base64 data URI with a MIME type")
    try:
        data = base64.b64decode(match.group("data"), validate=True)
    except binascii.Error as exc:
        raise PreconditionError(f"Audio data URI has invalid base64 payload: {exc}") from exc
    if not data:
        raise PreconditionError("Audio data URI is empty")
    return match.group("mime"), data


def audio_file_to_data_uri(path: Path) -> str:
    mime_type = mimetypes.guess_type(path.name)[0] or "audio/webm"
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


async def transcribe_voice_input(
    audio_data_uri: str,
    transcriber: AIProvider,
    prompts: PromptsConfig,
) -> str:
    """Transcribe recorded audio.

    Raises:
        PreconditionError: If the data URI is malformed (checked before any call).
        ServiceError: If the provider fails or returns an empty transcription.
    """
    mime_type, audio = decode_data_uri(audio_data_uri)
    logger.info("Transcribing %d bytes of %s via %s", len(audio), mime_type, transcriber.name())
    try:
        text = await transcriber.transcribe(audio, mime_type, prompts.transcribe)
    except ProviderError as exc:
        raise ServiceError("transcribe", str(exc)) from exc

    text = text.strip()
    if not text:
        raise ServiceError("transcribe", "Transcription was empty")
    return text
