"""Abstract base for all AI model providers."""

from abc import ABC, abstractmethod

from echo.models import GeneratedImage, ModelResponse


class ProviderError(Exception):
    """Raised when a provider call fails."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"[{provider_name}] {message}")


class EmptyResponseError(ProviderError):
    """Raised when the call succeeded but the model produced no usable text."""


class AIProvider(ABC):
    """Abstract base for all AI model providers."""

    @abstractmethod
    def name(self) -> str:
        """Return the short provider name (e.g. 'gemini', 'claude')."""
        ...

    @abstractmethod
    def model_string(self) -> str:
        """Return the actual model identifier string."""
        ...

    @abstractmethod
    async def generate(self, prompt: str, purpose: str) -> ModelResponse:
        """Generate a text response for the given prompt.

        Args:
            prompt: The full prompt text to send.
            purpose: Short label of the calling service, used for logging.

        Returns:
            ModelResponse dataclass with content and metadata.

        Raises:
            EmptyResponseError: When the model returned no text.
            ProviderError: On API failure or timeout.
        """
        ...

    async def transcribe(self, audio: bytes, mime_type: str, prompt: str) -> str:
        """Transcribe raw audio bytes to text. Not every provider supports this."""
        raise ProviderError(self.name(), "Audio transcription is not supported")

    async def generate_image(self, prompt: str) -> GeneratedImage:
        """Generate a single image. Not every provider supports this."""
        raise ProviderError(self.name(), "Image generation is not supported")

    def supports(self, capability: str) -> bool:
        """True if this provider overrides the method backing ``capability``."""
        method = {"transcribe": "transcribe", "image": "generate_image"}.get(capability)
        if method is None:
            return True
        return getattr(type(self), method) is not getattr(AIProvider, method)
