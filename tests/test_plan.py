"""Tests for echo/plan.py."""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from echo.errors import PreconditionError, ServiceError
from echo.models import ImplementationPlan
from echo.plan import PlanGenerator, generate_implementation_plan
from tests.conftest import MockProvider, text_response

_FULL_PLAN = {
    "timeframe": "Research: 2 weeks",
    "project_phases_flowchart": "Research\n  -> Market Analysis",
    "cost_estimation_flowchart": "Estimated Costs\n  -> AI API Usage",
    "resource_allocation": "Project Manager\n  - Research: Oversight",
    "feasibility_assessment": "Technically feasible.",
    "refined_strategy": "Pilot with ten artists.",
}


async def test_plan_parses_all_fields(sample_prompts_config):
    planner = MockProvider("gemini", json.dumps(_FULL_PLAN))

    plan = await generate_implementation_plan("An art co-op.", planner, sample_prompts_config)

    assert isinstance(plan, ImplementationPlan)
    assert plan.refined_strategy == "Pilot with ten artists."
    assert "An art co-op." in planner.generate.await_args.args[0]


@pytest.mark.parametrize("missing", ["timeframe", "feasibility_assessment"])
async def test_plan_missing_field_is_failure(sample_prompts_config, missing):
    payload = {k: v for k, v in _FULL_PLAN.items() if k != missing}
    planner = MockProvider("gemini", json.dumps(payload))
    with pytest.raises(ServiceError, match=missing):
        await generate_implementation_plan("An art co-op.", planner, sample_prompts_config)


async def test_plan_blank_field_is_failure(sample_prompts_config):
    planner = MockProvider("gemini", json.dumps({**_FULL_PLAN, "refined_strategy": "   "}))
    with pytest.raises(ServiceError, match="refined_strategy"):
        await generate_implementation_plan("An art co-op.", planner, sample_prompts_config)


async def test_generator_requires_summary(sample_prompts_config):
    planner = MockProvider("gemini", json.dumps(_FULL_PLAN))
    generator = PlanGenerator(planner, sample_prompts_config)
    with pytest.raises(PreconditionError):
        await generator.generate(None)
    planner.generate.assert_not_awaited()
    assert generator.is_loading is False


async def test_generator_tracks_loading_and_rejects_overlap(sample_prompts_config):
    gate = asyncio.Event()

    async def slow_generate(prompt, purpose):
        await gate.wait()
        return text_response(json.dumps(_FULL_PLAN))

    planner = MockProvider("gemini")
    planner.generate = AsyncMock(side_effect=slow_generate)
    generator = PlanGenerator(planner, sample_prompts_config)

    task = asyncio.ensure_future(generator.generate("An art co-op."))
    await asyncio.sleep(0)
    assert generator.is_loading is True
    with pytest.raises(PreconditionError, match="already"):
        await generator.generate("An art co-op.")

    gate.set()
    plan = await task
    assert generator.is_loading is False
    assert generator.plan is plan


async def test_generator_clears_loading_on_failure(sample_prompts_config):
    planner = MockProvider("gemini", "{}")
    generator = PlanGenerator(planner, sample_prompts_config)
    with pytest.raises(ServiceError):
        await generator.generate("An art co-op.")
    assert generator.is_loading is False
    assert generator.plan is None
