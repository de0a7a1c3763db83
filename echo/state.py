"""Idea state and the scheduler's per-run session record."""

import asyncio
import enum
from dataclasses import dataclass, field

from echo.errors import PreconditionError
from echo.models import Summary


class Phase(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    SUMMARIZING = "summarizing"
    STOPPED = "stopped"


class IdeaState:
    """The single current working text of the evolving idea."""

    def __init__(self, text: str = "") -> None:
        self._text = text

    def get(self) -> str:
        return self._text

    def set(self, text: str) -> None:
        if not text or not text.strip():
            raise PreconditionError("Idea text must not be empty")
        self._text = text


def _idle_event() -> asyncio.Event:
    event = asyncio.Event()
    event.set()
    return event


@dataclass
class RunState:
    """Everything the scheduler knows about one run.

    A new instance (with a higher generation) replaces the old one on every
    start, so results tagged with an older generation are recognisably stale.
    """

    generation: int = 0
    started: bool = False
    is_active: bool = False
    is_paused: bool = False
    is_stopped: bool = False
    current_agent_index: int = 0
    pending_voice_steer: bool = False
    in_flight_turn: bool = False
    in_flight_summary: bool = False
    turns_completed: int = 0
    summary: Summary | None = None
    timer: asyncio.TimerHandle | None = field(default=None, repr=False)
    # Set whenever no summary call is in flight; stop() waits on it.
    summary_idle: asyncio.Event = field(default_factory=_idle_event, repr=False)

    def cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None
