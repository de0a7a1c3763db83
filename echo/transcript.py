"""Ordered message log for a brainstorming run."""

import itertools
import logging

from echo.models import Message

logger = logging.getLogger(__name__)


class TranscriptStore:
    """Append-only message log with pending-placeholder replacement.

    A sender has at most one pending message at a time. Appending a message
    from a sender that currently has a pending message replaces that message
    at its position; everything else is appended at the end.
    """

    def __init__(self) -> None:
        self._messages: list[Message] = []
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._messages)

    def next_id(self) -> int:
        return next(self._ids)

    def append_or_replace_pending(self, message: Message) -> int:
        """Add ``message`` and return its id.

        If ``message.sender`` has a pending message, that one is replaced in
        place. The replacement keeps its own (newer) id but never moves.
        """
        for index, existing in enumerate(self._messages):
            if existing.is_pending and existing.sender == message.sender:
                self._messages[index] = message
                logger.debug("Replaced pending message %d from %s", existing.id, message.sender)
                return message.id
        self._messages.append(message)
        return message.id

    def new_message(self, sender: str, text: str, **flags) -> Message:
        """Build a message with the next id. Does not add it to the log."""
        return Message(id=self.next_id(), sender=sender, text=text, **flags)

    def snapshot(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def final_messages(self) -> list[Message]:
        return [m for m in self._messages if not m.is_pending]

    def discussion_text(self) -> str:
        """Render non-pending messages as the input for summarization."""
        return "\n\n".join(f"{m.sender}: {m.text}" for m in self.final_messages())

    def clear(self) -> None:
        self._messages.clear()