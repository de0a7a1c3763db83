"""Load settings.yaml into typed dataclasses. Checks API keys at startup."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"

SERVICE_NAMES = ("refiner", "summarizer", "transcriber", "planner", "marketing", "image")


@dataclass
class ModelConfig:
    name: str
    sdk: str
    model: str
    api_key_env: str
    timeout_sec: int
    max_tokens: int
    base_url: str | None = None
    image_model: str | None = None
    transcription_model: str | None = None


@dataclass
class PromptsConfig:
    refine: str
    refine_default_focus: str
    refine_user_focus: str
    summarize: str
    transcribe: str
    plan: str
    keywords: str
    image: str
    caption: str


@dataclass
class AgentConfig:
    id: str
    name: str
    role: str
    provider_label: str = ""
    color: str = ""
    model: str | None = None  # provider key voicing this agent


@dataclass
class SchedulerConfig:
    turn_delay_sec: float = 1.5
    initial_delay_sec: float = 0.75


@dataclass
class DefaultsConfig:
    turns: int
    output_dir: Path
    services: dict[str, str] = field(default_factory=dict)


@dataclass
class AppConfig:
    defaults: DefaultsConfig
    scheduler: SchedulerConfig
    models: dict[str, ModelConfig]
    prompts: PromptsConfig
    agents: list[AgentConfig]
    available_providers: set[str] = field(default_factory=set)


def _load_agents(agents_raw: list[dict]) -> list[AgentConfig]:
    agents = [
        AgentConfig(
            id=str(a["id"]),
            name=str(a["name"]),
            role=str(a["role"]),
            provider_label=str(a.get("provider_label", "")),
            color=str(a.get("color", "")),
            model=a.get("model"),
        )
        for a in agents_raw
    ]
    if not agents:
        raise ValueError("Agent roster is empty: configure at least one agent")
    names = [a.name for a in agents]
    if len(set(names)) != len(names):
        raise ValueError(f"Agent names must be unique, got {names}")
    return agents


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing, ValueError if the
    agent roster is empty. Logs missing API keys but does not raise; callers
    check available_providers.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    defaults_raw = raw["defaults"]
    defaults = DefaultsConfig(
        turns=int(defaults_raw["turns"]),
        output_dir=Path(defaults_raw["output_dir"]),
        services={k: str(v) for k, v in defaults_raw.get("services", {}).items()},
    )
    unknown = set(defaults.services) - set(SERVICE_NAMES)
    if unknown:
        logger.warning("Ignoring unknown service keys in settings: %s", ", ".join(sorted(unknown)))

    scheduler_raw = raw.get("scheduler", {})
    scheduler = SchedulerConfig(
        turn_delay_sec=float(scheduler_raw.get("turn_delay_sec", 1.5)),
        initial_delay_sec=float(scheduler_raw.get("initial_delay_sec", 0.75)),
    )

    prompts_raw = raw["prompts"]
    prompts = PromptsConfig(
        refine=prompts_raw["refine"],
        refine_default_focus=prompts_raw["refine_default_focus"],
        refine_user_focus=prompts_raw["refine_user_focus"],
        summarize=prompts_raw["summarize"],
        transcribe=prompts_raw["transcribe"],
        plan=prompts_raw["plan"],
        keywords=prompts_raw["keywords"],
        image=prompts_raw["image"],
        caption=prompts_raw["caption"],
    )

    agents = _load_agents(raw.get("agents", []))

    models: dict[str, ModelConfig] = {}
    available_providers: set[str] = set()

    for provider_name, model_raw in raw["models"].items():
        model_cfg = ModelConfig(
            name=provider_name,
            sdk=model_raw["sdk"],
            model=model_raw["model"],
            api_key_env=model_raw["api_key_env"],
            timeout_sec=int(model_raw["timeout_sec"]),
            max_tokens=int(model_raw["max_tokens"]),
            base_url=model_raw.get("base_url"),
            image_model=model_raw.get("image_model"),
            transcription_model=model_raw.get("transcription_model"),
        )
        models[provider_name] = model_cfg

        api_key = os.environ.get(model_raw["api_key_env"], "").strip()
        if api_key:
            available_providers.add(provider_name)
            logger.info("Provider available: %s", provider_name)
        else:
            logger.info(
                "Provider skipped (no API key): %s — set %s in .env",
                provider_name,
                model_raw["api_key_env"],
            )

    return AppConfig(
        defaults=defaults,
        scheduler=scheduler,
        models=models,
        prompts=prompts,
        agents=agents,
        available_providers=available_providers,
    )
