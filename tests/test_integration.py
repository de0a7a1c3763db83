"""Integration tests: real API calls, no mocks. Requires .env with at least one API key."""

import asyncio
import os
from functools import partial

import pytest
from dotenv import load_dotenv

load_dotenv()

_AVAILABLE_KEYS = [
    k for k in ["GEMINI_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY", "XAI_API_KEY"]
    if os.environ.get(k, "").strip()
]
pytestmark = pytest.mark.integration

if not _AVAILABLE_KEYS:
    pytestmark = pytest.mark.skip(reason="Need at least one API key")


async def test_two_turns_then_summary():
    """Run two real agent turns and a final summary, verify no crash."""
    from config.config_loader import load_config
    from echo.cli import _build_agents, _build_all_providers, _make_refiner, _pick_service_provider
    from echo.scheduler import TurnScheduler
    from echo.summary import summarize_discussion

    config = load_config()
    all_providers = _build_all_providers(config)
    refiner = _pick_service_provider(all_providers, "refiner", config.defaults.services.get("refiner"))
    summarizer = _pick_service_provider(all_providers, "summarizer", config.defaults.services.get("summarizer"))
    assert refiner is not None and summarizer is not None

    agents = _build_agents(config)[:2]
    done = asyncio.Event()
    scheduler = TurnScheduler(
        agents,
        _make_refiner(agents, all_providers, refiner, config),
        partial(summarize_discussion, summarizer=summarizer, prompts=config.prompts),
        turn_delay_sec=0.1,
        initial_delay_sec=0.1,
        on_turn_complete=lambda outcome: done.set() if scheduler.run.turns_completed >= 2 else None,
    )

    scheduler.start("A platform connecting local artists with buyers")
    await asyncio.wait_for(done.wait(), timeout=300)
    summary = await scheduler.stop()

    finals = scheduler.transcript.final_messages()
    assert [m.sender for m in finals[1:3]] == [a.name for a in agents]
    assert summary is not None
    assert summary.summary
    assert summary.key_contributions
