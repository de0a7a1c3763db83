"""Pure dataclasses for the Evolving Echo brainstorming session. No logic, no deps."""

from dataclasses import dataclass, field
from datetime import datetime

USER = "User"
SYSTEM = "System"


@dataclass(frozen=True)
class Agent:
    id: str
    name: str
    role: str              # persona label, used verbatim in prompts
    provider_label: str = ""
    color: str = ""
    model: str | None = None


@dataclass(frozen=True)
class Message:
    id: int
    sender: str            # USER, SYSTEM or an agent name
    text: str
    created_at: datetime = field(default_factory=datetime.now)
    is_user: bool = False
    is_voice_input: bool = False
    is_pending: bool = False
    agent_id: str | None = None


@dataclass
class Summary:
    summary: str
    key_contributions: str


@dataclass
class ImplementationPlan:
    timeframe: str
    project_phases_flowchart: str
    cost_estimation_flowchart: str
    resource_allocation: str
    feasibility_assessment: str
    refined_strategy: str


@dataclass
class MarketingPost:
    image_uri: str         # data:<mime>;base64,<payload>
    caption: str
    image_keywords: str


@dataclass
class RefinementRequest:
    current_idea: str
    agent_name: str
    agent_role: str
    is_user_directed: bool = False


@dataclass
class TurnOutcome:
    agent: Agent
    generation: int
    succeeded: bool
    text: str


@dataclass
class ModelResponse:
    provider: str          # "gemini", "openai", "claude", "grok"
    model: str             # actual model string used
    purpose: str           # "refine", "summarize", "plan", ...
    content: str
    latency_sec: float
    token_count: int | None


@dataclass
class GeneratedImage:
    data_uri: str
    text: str = ""         # any text the image model returned alongside
