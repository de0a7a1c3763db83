"""Round-robin turn scheduler: drives agent turns, pauses, voice steering and summaries.

All state changes happen on the event loop thread. The only suspension
points are the awaits on the refinement and summarization callables, so
every user action that lands while a call is in flight is recorded in the
run state and honoured at the next decision point. Each run gets a fresh
``RunState`` with a higher generation; results that resolve after a newer
run has started are dropped.
"""

import asyncio
import itertools
import logging
from collections.abc import Awaitable, Callable, Sequence

from echo.errors import PreconditionError
from echo.models import USER, Agent, Message, RefinementRequest, Summary, TurnOutcome
from echo.state import IdeaState, Phase, RunState
from echo.transcript import TranscriptStore

logger = logging.getLogger(__name__)

RefineFn = Callable[[RefinementRequest], Awaitable[str]]
SummarizeFn = Callable[[str], Awaitable[Summary]]

DEFAULT_TURN_DELAY_SEC = 1.5
DEFAULT_INITIAL_DELAY_SEC = DEFAULT_TURN_DELAY_SEC / 2


class TurnScheduler:
    """Owns the transcript, the idea and the run state for one brainstorming session."""

    def __init__(
        self,
        agents: Sequence[Agent],
        refine: RefineFn,
        summarize: SummarizeFn,
        *,
        turn_delay_sec: float = DEFAULT_TURN_DELAY_SEC,
        initial_delay_sec: float = DEFAULT_INITIAL_DELAY_SEC,
        on_message: Callable[[Message], None] | None = None,
        on_turn_complete: Callable[[TurnOutcome], None] | None = None,
    ) -> None:
        if not agents:
            raise ValueError("TurnScheduler needs at least one agent")
        self._agents = tuple(agents)
        self._refine = refine
        self._summarize = summarize
        self._turn_delay = turn_delay_sec
        self._initial_delay = initial_delay_sec
        self._on_message = on_message
        self._on_turn_complete = on_turn_complete

        self.transcript = TranscriptStore()
        self.idea = IdeaState()
        self._run = RunState()
        self._generations = itertools.count(1)
        self._turn_task: asyncio.Task | None = None

    # --- read-only views -------------------------------------------------

    @property
    def agents(self) -> tuple[Agent, ...]:
        return self._agents

    @property
    def run(self) -> RunState:
        return self._run

    @property
    def summary(self) -> Summary | None:
        return self._run.summary

    @property
    def next_agent(self) -> Agent:
        return self._agents[self._run.current_agent_index]

    @property
    def phase(self) -> Phase:
        run = self._run
        if not run.started:
            return Phase.IDLE
        if run.is_stopped:
            return Phase.STOPPED
        if run.in_flight_summary:
            return Phase.SUMMARIZING
        if run.is_paused:
            return Phase.PAUSED
        return Phase.RUNNING

    # --- user actions ----------------------------------------------------

    def start(self, initial_idea: str) -> None:
        """Begin a new run, discarding the previous one."""
        if not initial_idea or not initial_idea.strip():
            raise PreconditionError("Please enter an idea to start the simulation")

        self._run.cancel_timer()
        self._run = RunState(generation=next(self._generations), started=True, is_active=True)
        self.transcript.clear()
        self.idea.set(initial_idea)
        self._post(self.transcript.new_message(USER, initial_idea, is_user=True))

        logger.info("Run %d started with %d agents", self._run.generation, len(self._agents))
        self._schedule(self._run, self._initial_delay)

    def pause(self) -> None:
        run = self._run
        if not run.is_active:
            raise PreconditionError("No running simulation to pause")
        if run.is_paused:
            raise PreconditionError("Simulation is already paused")
        run.is_paused = True
        run.cancel_timer()
        logger.info("Run %d paused", run.generation)

    def resume(self) -> None:
        run = self._run
        if not run.is_active:
            raise PreconditionError("No running simulation to resume")
        if not run.is_paused:
            raise PreconditionError("Simulation is not paused")
        run.is_paused = False
        logger.info("Run %d resumed", run.generation)
        self._schedule(run, self._initial_delay)

    def toggle_pause(self) -> bool:
        """Pause or resume. Returns the new paused flag."""
        if self._run.is_paused:
            self.resume()
        else:
            self.pause()
        return self._run.is_paused

    def interject(self, voice_text: str) -> None:
        """Steer the discussion with user input; the next turn is user-directed."""
        run = self._run
        if not run.started or run.is_stopped:
            raise PreconditionError("Start a simulation before adding voice input")
        if not voice_text or not voice_text.strip():
            raise PreconditionError("Voice input was empty")

        run.cancel_timer()
        self._post(
            self.transcript.new_message(
                USER, f"Voice Input: {voice_text}", is_user=True, is_voice_input=True
            )
        )
        self.idea.set(voice_text)
        run.pending_voice_steer = True
        run.is_paused = False
        logger.info("Run %d steered by voice input", run.generation)
        self._schedule(run, self._initial_delay)

    async def summarize_interim(self) -> Summary | None:
        """Summarize the discussion so far and carry on.

        Returns the summary, or None if a new run started while it was being
        generated. Summarization failures propagate after scheduling resumes.
        """
        run = self._run
        if not run.is_active:
            raise PreconditionError("Summaries are only available while a simulation is running")
        if run.is_paused:
            raise PreconditionError("Resume the simulation before summarizing")
        if run.in_flight_summary:
            raise PreconditionError("A summary is already being generated")
        discussion = self.transcript.discussion_text()
        if not discussion:
            raise PreconditionError("Nothing to summarize yet")

        run.in_flight_summary = True
        run.summary_idle.clear()
        run.cancel_timer()
        try:
            summary = await self._summarize(discussion)
        except Exception:
            if run is not self._run:
                logger.debug("Dropping interim summary failure from stale run %d", run.generation)
                return None
            raise
        finally:
            run.in_flight_summary = False
            run.summary_idle.set()
            self._schedule(run, self._turn_delay)

        if run is not self._run:
            logger.debug("Discarding interim summary from stale run %d", run.generation)
            return None
        run.summary = summary
        return summary

    async def stop(self) -> Summary | None:
        """End the run and summarize the final transcript.

        A stop requested while an interim summary is being generated is
        recorded at once; the final summary starts when the interim one
        resolves. Calling stop again on a stopped run retries the summary.
        """
        run = self._run
        if not run.started or not self.transcript.final_messages():
            raise PreconditionError("Nothing to summarize: start a simulation first")
        if run.is_stopped and run.in_flight_summary:
            raise PreconditionError("A summary is already being generated")

        run.is_active = False
        run.is_paused = False
        run.is_stopped = True
        run.cancel_timer()
        logger.info("Run %d stopped after %d turns", run.generation, run.turns_completed)

        while run.in_flight_summary:
            await run.summary_idle.wait()
        if run is not self._run:
            return None

        run.in_flight_summary = True
        run.summary_idle.clear()
        try:
            summary = await self._summarize(self.transcript.discussion_text())
        except Exception:
            if run is not self._run:
                logger.debug("Dropping final summary failure from stale run %d", run.generation)
                return None
            raise
        finally:
            run.in_flight_summary = False
            run.summary_idle.set()

        if run is not self._run:
            logger.debug("Discarding final summary from stale run %d", run.generation)
            return None
        run.summary = summary
        return summary

    async def wait_for_turn(self) -> None:
        """Wait until the turn currently in flight (if any) has resolved."""
        task = self._turn_task
        if task is not None and not task.done():
            await asyncio.shield(task)

    # --- scheduling internals --------------------------------------------

    def _post(self, message: Message) -> None:
        self.transcript.append_or_replace_pending(message)
        if self._on_message:
            self._on_message(message)

    def _turn_busy(self) -> bool:
        return self._turn_task is not None and not self._turn_task.done()

    def _schedule(self, run: RunState, delay: float) -> None:
        """Arm the next-turn timer if the run is current and allowed to proceed."""
        if run is not self._run:
            return
        run.cancel_timer()
        if not run.is_active or run.is_paused or run.in_flight_summary:
            return
        loop = asyncio.get_running_loop()
        run.timer = loop.call_later(delay, self._on_timer, run)

    def _on_timer(self, run: RunState) -> None:
        run.timer = None
        if run is not self._run:
            return
        if (
            not run.is_active
            or run.is_paused
            or run.in_flight_turn
            or run.in_flight_summary
            or self._turn_busy()
        ):
            # Whatever is blocking re-arms the timer when it clears.
            logger.debug("Turn timer fired for run %d but a turn cannot begin now", run.generation)
            return
        self._turn_task = asyncio.get_running_loop().create_task(self._run_turn(run))

    async def _run_turn(self, run: RunState) -> None:
        agent = self._agents[run.current_agent_index]
        run.in_flight_turn = True
        user_directed = run.pending_voice_steer
        run.pending_voice_steer = False
        self._post(
            self.transcript.new_message(
                agent.name, f"{agent.name} is thinking...", is_pending=True, agent_id=agent.id
            )
        )
        request = RefinementRequest(
            current_idea=self.idea.get(),
            agent_name=agent.name,
            agent_role=agent.role,
            is_user_directed=user_directed,
        )

        succeeded = False
        try:
            text = await self._refine(request)
            if text and text.strip():
                succeeded = True
            else:
                text = "Sorry, I encountered an issue: no refinement was produced."
        except Exception as exc:
            logger.warning("Turn for %s failed in run %d: %s", agent.name, run.generation, exc)
            text = f"Sorry, I encountered an issue: {exc}"
        finally:
            run.in_flight_turn = False

        if run is not self._run:
            logger.debug("Discarding %s's result from stale run %d", agent.name, run.generation)
            self._rearm_current()
            return

        self._post(self.transcript.new_message(agent.name, text, agent_id=agent.id))
        if succeeded:
            self.idea.set(text)

        run.current_agent_index = (run.current_agent_index + 1) % len(self._agents)
        run.turns_completed += 1
        if self._on_turn_complete:
            self._on_turn_complete(
                TurnOutcome(agent=agent, generation=run.generation, succeeded=succeeded, text=text)
            )
        self._schedule(run, self._turn_delay)

    def _rearm_current(self) -> None:
        """A stale turn just released the slot; restart the current run if it was waiting."""
        run = self._run
        if run.timer is None and not run.in_flight_turn:
            self._schedule(run, self._initial_delay)
