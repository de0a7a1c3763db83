"""Shared pytest fixtures."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from config.config_loader import (
    AgentConfig,
    AppConfig,
    DefaultsConfig,
    ModelConfig,
    PromptsConfig,
    SchedulerConfig,
)
from echo.models import Agent, GeneratedImage, ModelResponse, RefinementRequest, Summary
from echo.providers.base import AIProvider


@pytest.fixture
def sample_model_config() -> ModelConfig:
    return ModelConfig(
        name="test_model",
        sdk="test",
        model="test-model-1",
        api_key_env="TEST_API_KEY",
        timeout_sec=30,
        max_tokens=1024,
        base_url=None,
    )


@pytest.fixture
def sample_prompts_config() -> PromptsConfig:
    return PromptsConfig(
        refine="You are {agent_name} ({agent_role}). Idea: {current_idea}\n{focus}\nRefined Idea:",
        refine_default_focus="As {agent_role}, challenge the idea.",
        refine_user_focus="The user said this. Build on it.",
        summarize="Summarize as JSON:\n{discussion_text}",
        transcribe="Transcribe the audio.",
        plan="Plan as JSON for: {summarized_idea}",
        keywords="Keywords for: {theme}",
        image="Image about {theme} focusing on {keywords}",
        caption="Caption for {theme} / {keywords} / {image_context}",
    )


@pytest.fixture
def sample_agents() -> list[Agent]:
    return [
        Agent(id="gpt4", name="GPT-4", role="The Pragmatist", provider_label="OpenAI"),
        Agent(id="claude", name="Claude", role="The Ethicist", provider_label="Anthropic"),
        Agent(id="gemini", name="Gemini", role="The Visionary", provider_label="Google"),
    ]


@pytest.fixture
def sample_app_config(tmp_path: Path, sample_prompts_config: PromptsConfig) -> AppConfig:
    model_cfg = ModelConfig(
        name="gemini",
        sdk="google-genai",
        model="gemini-2.5-flash",
        api_key_env="GEMINI_API_KEY",
        timeout_sec=60,
        max_tokens=4096,
    )
    return AppConfig(
        defaults=DefaultsConfig(turns=3, output_dir=tmp_path / "output", services={"refiner": "gemini"}),
        scheduler=SchedulerConfig(turn_delay_sec=0.0, initial_delay_sec=0.0),
        models={"gemini": model_cfg},
        prompts=sample_prompts_config,
        agents=[
            AgentConfig(id="gpt4", name="GPT-4", role="The Pragmatist", model="openai"),
            AgentConfig(id="claude", name="Claude", role="The Ethicist"),
        ],
        available_providers={"gemini"},
    )


@pytest.fixture
def sample_summary() -> Summary:
    return Summary(
        summary="A marketplace where local artists sell work with fair pay.",
        key_contributions="GPT-4: pricing. Claude: fair compensation.",
    )


class MockProvider(AIProvider):
    """Test double AIProvider."""

    def __init__(self, provider_name: str = "mock", response_content: str = "Mock response") -> None:
        self._name = provider_name
        self._response_content = response_content
        # Shadow the class method with an AsyncMock at the instance level.
        # ABC check passes because generate is defined in the class body below.
        self.generate = AsyncMock(  # type: ignore[assignment]
            return_value=ModelResponse(
                provider=provider_name,
                model="mock-model",
                purpose="test",
                content=response_content,
                latency_sec=0.1,
                token_count=10,
            )
        )

    def name(self) -> str:
        return self._name

    def model_string(self) -> str:
        return "mock-model"

    async def generate(self, prompt: str, purpose: str) -> ModelResponse:  # type: ignore[override]
        """Default implementation; replaced by AsyncMock in __init__."""
        return ModelResponse(self._name, "mock-model", purpose, self._response_content, 0.1, 10)


class MockMediaProvider(MockProvider):
    """MockProvider that also transcribes and draws."""

    def __init__(self, provider_name: str = "media", response_content: str = "Mock response") -> None:
        super().__init__(provider_name, response_content)
        self.transcribe = AsyncMock(return_value="spoken words")  # type: ignore[assignment]
        self.generate_image = AsyncMock(  # type: ignore[assignment]
            return_value=GeneratedImage(data_uri="data:image/png;base64,iVBORw0KGgo=", text="a bright mural")
        )

    async def transcribe(self, audio: bytes, mime_type: str, prompt: str) -> str:  # type: ignore[override]
        return "spoken words"

    async def generate_image(self, prompt: str) -> GeneratedImage:  # type: ignore[override]
        return GeneratedImage(data_uri="data:image/png;base64,iVBORw0KGgo=")


def text_response(content: str, provider: str = "mock") -> ModelResponse:
    return ModelResponse(provider, "mock-model", "test", content, 0.1, 5)


class ScriptedRefiner:
    """Refinement callable for scheduler tests.

    Records every request. By default answers immediately with
    "<idea> +<agent>"; ``hold()`` makes the next calls block until ``release()``.
    """

    def __init__(self) -> None:
        self.requests: list[RefinementRequest] = []
        self.failures: dict[str, Exception] = {}
        self.concurrent = 0
        self.max_concurrent = 0
        self._gate: asyncio.Event | None = None
        self.entered = asyncio.Event()

    def hold(self) -> None:
        self._gate = asyncio.Event()
        self.entered = asyncio.Event()

    def release(self) -> None:
        if self._gate is not None:
            self._gate.set()
            self._gate = None

    async def __call__(self, request: RefinementRequest) -> str:
        self.requests.append(request)
        self.concurrent += 1
        self.max_concurrent = max(self.max_concurrent, self.concurrent)
        self.entered.set()
        try:
            if self._gate is not None:
                await self._gate.wait()
            failure = self.failures.pop(request.agent_name, None)
            if failure is not None:
                raise failure
            return f"{request.current_idea} +{request.agent_name}"
        finally:
            self.concurrent -= 1


@pytest.fixture
def mock_provider() -> MockProvider:
    return MockProvider()


@pytest.fixture
def scripted_refiner() -> ScriptedRefiner:
    return ScriptedRefiner()
