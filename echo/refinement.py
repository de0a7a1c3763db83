"""Agent turn refinement: persona prompt in, refined idea text out."""

import logging
import re

from config.config_loader import PromptsConfig
from echo.models import RefinementRequest
from echo.providers.base import AIProvider, EmptyResponseError

logger = logging.getLogger(__name__)

_LABEL_PREFIX = re.compile(r"^\s*\**\s*refined idea\s*:?\s*\**\s*", re.IGNORECASE)


def build_refine_prompt(request: RefinementRequest, prompts: PromptsConfig) -> str:
    focus_template = prompts.refine_user_focus if request.is_user_directed else prompts.refine_default_focus
    focus = focus_template.format(agent_name=request.agent_name, agent_role=request.agent_role)
    return prompts.refine.format(
        agent_name=request.agent_name,
        agent_role=request.agent_role,
        current_idea=request.current_idea,
        focus=focus,
    )


def fallback_refinement(request: RefinementRequest) -> str:
    """Deterministic stand-in used when the model produced no usable text."""
    text = f'As {request.agent_name} ({request.agent_role}), I\'ve analyzed the idea: "{request.current_idea}". '
    if request.is_user_directed:
        text += "This was a user-directed input. My focus is to expand on this. "
    focus = re.sub(r"^the\s+", "", request.agent_role.strip(), flags=re.IGNORECASE).lower()
    text += f"Considering my role, I suggest we explore avenues related to {focus} more deeply."
    return text


def _clean(content: str) -> str:
    text = _LABEL_PREFIX.sub("", content.strip(), count=1)
    return text.strip().strip('"').strip()


async def refine_idea(
    request: RefinementRequest,
    provider: AIProvider,
    prompts: PromptsConfig,
) -> str:
    """Ask ``provider`` to refine the current idea in the agent's voice.

    Returns:
        The refined idea, or the deterministic fallback when the model replied
        with nothing usable.

    Raises:
        ProviderError: On API failure or timeout. The scheduler turns this
            into a visible error message for the agent.
    """
    prompt = build_refine_prompt(request, prompts)
    try:
        response = await provider.generate(prompt, purpose="refine")
    except EmptyResponseError:
        logger.warning("%s returned no text for %s, using fallback", provider.name(), request.agent_name)
        return fallback_refinement(request)

    refined = _clean(response.content)
    if not refined:
        logger.warning("%s returned blank refinement for %s, using fallback", provider.name(), request.agent_name)
        return fallback_refinement(request)
    return refined
