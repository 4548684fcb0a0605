"""Conversation history checks applied before any request is issued."""

from __future__ import annotations

from typing import Sequence

from .errors import HistoryAlternationError
from .messages import Message, Role


def validate_alternation(history: Sequence[Message]) -> None:
    """Check that ``history`` follows the ``[system], user, model, ...`` order.

    A system message may only appear at index 0. After it, roles must
    strictly alternate starting with ``user``.
    """
    expected = Role.USER
    for idx, message in enumerate(history):
        if message.role == Role.SYSTEM:
            if idx != 0:
                raise HistoryAlternationError(idx, "system message is only allowed at index 0")
            continue
        if message.role != expected:
            raise HistoryAlternationError(
                idx,
                f"expected {expected.value} message, got {message.role.value}",
            )
        expected = Role.MODEL if expected == Role.USER else Role.USER


def build_request_history(
    history: Sequence[Message],
    prompt: Message,
    system_prompt: str | None = None,
) -> list[Message]:
    """Return the history for a new call: system prompt, prior turns, prompt.

    The configured system prompt is only inserted when the caller's history
    does not already start with one.
    """
    messages = list(history)
    if system_prompt and not (messages and messages[0].role == Role.SYSTEM):
        messages.insert(0, Message.system(system_prompt))
    messages.append(prompt)
    validate_alternation(messages)
    return messages
