"""Implementation plan generation from a finalized summary."""

import logging

from config.config_loader import PromptsConfig
from echo.errors import PreconditionError, ServiceError
from echo.models import ImplementationPlan
from echo.providers.base import AIProvider, ProviderError
from echo.schemas import PlanOutput, parse_structured

logger = logging.getLogger(__name__)


async def generate_implementation_plan(
    summarized_idea: str,
    planner: AIProvider,
    prompts: PromptsConfig,
) -> ImplementationPlan:
    """Generate a structured plan. Every field is required.

    Raises:
        ServiceError: On provider failure or when any plan field is missing or empty.
    """
    prompt = prompts.plan.format(summarized_idea=summarized_idea)
    logger.info("Generating implementation plan via %s", planner.name())
    try:
        response = await planner.generate(prompt, purpose="plan")
    except ProviderError as exc:
        raise ServiceError("plan", str(exc)) from exc

    parsed = parse_structured("plan", response.content, PlanOutput)
    return ImplementationPlan(**parsed.model_dump())


class PlanGenerator:
    """Plan request wrapper with its own loading flag. Independent of the scheduler."""

    def __init__(self, planner: AIProvider, prompts: PromptsConfig) -> None:
        self._planner = planner
        self._prompts = prompts
        self.is_loading = False
        self.plan: ImplementationPlan | None = None

    async def generate(self, summarized_idea: str | None) -> ImplementationPlan:
        if not summarized_idea or not summarized_idea.strip():
            raise PreconditionError("No summary available: stop the simulation first")
        if self.is_loading:
            raise PreconditionError("An implementation plan is already being generated")

        self.is_loading = True
        try:
            self.plan = await generate_implementation_plan(summarized_idea, self._planner, self._prompts)
        finally:
            self.is_loading = False
        return self.plan
