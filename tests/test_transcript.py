"""Tests for echo/transcript.py and echo/state.py."""

import pytest

from echo.errors import PreconditionError
from echo.models import USER
from echo.state import IdeaState, RunState
from echo.transcript import TranscriptStore


def test_append_keeps_creation_order():
    store = TranscriptStore()
    first = store.new_message(USER, "idea", is_user=True)
    second = store.new_message("GPT-4", "better idea")
    store.append_or_replace_pending(first)
    store.append_or_replace_pending(second)
    assert [m.id for m in store.snapshot()] == [first.id, second.id]
    assert first.id < second.id


def test_final_message_replaces_pending_from_same_sender():
    store = TranscriptStore()
    store.append_or_replace_pending(store.new_message(USER, "idea", is_user=True))
    store.append_or_replace_pending(store.new_message("Claude", "Claude is thinking...", is_pending=True))
    store.append_or_replace_pending(store.new_message("Claude", "ethical idea"))

    messages = store.snapshot()
    assert len(messages) == 2
    assert messages[1].text == "ethical idea"
    assert messages[1].is_pending is False


def test_replacement_keeps_position_after_later_messages():
    store = TranscriptStore()
    store.append_or_replace_pending(store.new_message(USER, "idea", is_user=True))
    store.append_or_replace_pending(store.new_message("Gemini", "Gemini is thinking...", is_pending=True))
    store.append_or_replace_pending(store.new_message(USER, "Voice Input: faster", is_voice_input=True))
    store.append_or_replace_pending(store.new_message("Gemini", "visionary idea"))

    assert [m.text for m in store.snapshot()] == ["idea", "visionary idea", "Voice Input: faster"]


def test_new_pending_from_same_sender_replaces_old_pending():
    store = TranscriptStore()
    store.append_or_replace_pending(store.new_message("GPT-4", "thinking", is_pending=True))
    store.append_or_replace_pending(store.new_message("GPT-4", "still thinking", is_pending=True))
    pending = [m for m in store.snapshot() if m.is_pending]
    assert len(pending) == 1
    assert pending[0].text == "still thinking"


def test_pending_from_other_sender_is_untouched():
    store = TranscriptStore()
    store.append_or_replace_pending(store.new_message("GPT-4", "thinking", is_pending=True))
    store.append_or_replace_pending(store.new_message("Claude", "answer"))
    assert len(store) == 2
    assert store.snapshot()[0].is_pending is True


def test_discussion_text_excludes_pending():
    store = TranscriptStore()
    store.append_or_replace_pending(store.new_message(USER, "idea", is_user=True))
    store.append_or_replace_pending(store.new_message("GPT-4", "pragmatic idea"))
    store.append_or_replace_pending(store.new_message("Claude", "Claude is thinking...", is_pending=True))
    assert store.discussion_text() == "User: idea\n\nGPT-4: pragmatic idea"


def test_clear_empties_log_but_ids_keep_increasing():
    store = TranscriptStore()
    old = store.new_message(USER, "idea")
    store.append_or_replace_pending(old)
    store.clear()
    assert len(store) == 0
    assert store.new_message(USER, "again").id > old.id


def test_idea_state_overwrites_and_rejects_empty():
    idea = IdeaState("first")
    idea.set("second")
    assert idea.get() == "second"
    with pytest.raises(PreconditionError):
        idea.set("  ")
    assert idea.get() == "second"


def test_run_state_defaults():
    run = RunState()
    assert run.started is False
    assert run.current_agent_index == 0
    assert run.timer is None
    assert run.summary_idle.is_set()
    run.cancel_timer()
