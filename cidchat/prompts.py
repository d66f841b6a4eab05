"""
System prompt override — one process-wide slot set from the API.

Resolution order when a chat turn is sent:
    explicit per-request prompt
    > stored override
    > node default (from config_pub.json)
    > nothing, in which case no system message is sent at all

Empty strings count as unset. The node's "No system prompt available"
placeholder also resolves to nothing.
"""

from __future__ import annotations

import logging

from cidchat.models import NO_SYSTEM_PROMPT

logger = logging.getLogger(__name__)


class PromptOverrideStore:
    """Single mutable slot. Last write wins; no history."""

    def __init__(self):
        self._override: str | None = None

    def set_override(self, prompt: str | None) -> None:
        self._override = prompt or None
        if self._override:
            logger.info("Custom system prompt updated (%d chars)", len(self._override))
        else:
            logger.info("Custom system prompt cleared")

    def get_override(self) -> str | None:
        return self._override

    def clear(self) -> None:
        self.set_override(None)

    def effective_prompt(self, default: str | None, explicit: str | None = None) -> str | None:
        """The prompt to send as the system turn, or None for no system turn."""
        prompt = explicit or self._override or default
        if not prompt or prompt == NO_SYSTEM_PROMPT:
            return None
        return prompt

    def display_prompt(self, default: str | None) -> str:
        """What the UI shows as the current prompt; never empty."""
        return self._override or default or NO_SYSTEM_PROMPT
