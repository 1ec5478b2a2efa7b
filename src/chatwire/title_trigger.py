"""Decide whether a send should queue automatic title generation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

TriggerReason = Literal[
    "should_queue",
    "skip_auto_title_option",
    "not_first_message",
    "empty_user_message",
    "duplicate_first_turn_guard",
]


@dataclass(frozen=True)
class TitleTriggerInput:
    """State of a conversation at the moment a user message is sent.

    Attributes:
        skip_auto_title: Set by resend/edit paths that opt out of titling.
        message_count_before_send: Messages already in the conversation.
        content: The user message being sent.
        already_triggered: Whether this first turn already queued a title.
    """

    skip_auto_title: bool
    message_count_before_send: int
    content: str
    already_triggered: bool = False


@dataclass(frozen=True)
class TitleTriggerDecision:
    """Whether to queue a title request, and the single rule that decided it."""

    should_queue: bool
    reason: TriggerReason


def decide_title_trigger(input: TitleTriggerInput) -> TitleTriggerDecision:
    """Apply the title trigger rules in priority order; the first match wins."""
    if input.skip_auto_title:
        return TitleTriggerDecision(False, "skip_auto_title_option")

    if input.message_count_before_send != 0:
        return TitleTriggerDecision(False, "not_first_message")

    if not input.content.strip():
        return TitleTriggerDecision(False, "empty_user_message")

    if input.already_triggered:
        return TitleTriggerDecision(False, "duplicate_first_turn_guard")

    return TitleTriggerDecision(True, "should_queue")
