"""
Chat: one user turn in, one assistant turn out.

Builds the messages array (optional system prompt + the user message),
forwards it to the node with fixed generation settings, and normalizes
the reply so callers can always rely on a usage block being present.
Nothing is retried here; a failed turn is reported and the client
decides whether to send it again.
"""

from __future__ import annotations

import logging

from cidchat.backends.base import BaseBackend
from cidchat.errors import CompletionFailed
from cidchat.models import ChatReply, Turn, Usage
from cidchat.node_config import NodeConfigCache
from cidchat.prompts import PromptOverrideStore

logger = logging.getLogger(__name__)

MAX_TOKENS = 500
TEMPERATURE = 0.7


class ChatService:
    """Proxy a single chat turn to the LLM node."""

    def __init__(
        self,
        backend: BaseBackend,
        node_config: NodeConfigCache,
        prompts: PromptOverrideStore,
    ):
        self.backend = backend
        self.node_config = node_config
        self.prompts = prompts

    def build_messages(self, user_message: str, system_prompt: str | None) -> list[dict]:
        turns = []
        if system_prompt:
            turns.append(Turn(role="system", content=system_prompt))
        turns.append(Turn(role="user", content=user_message))
        return [t.to_openai_format() for t in turns]

    async def converse(self, user_message: str, system_prompt: str | None = None) -> ChatReply:
        """
        Send one user message and return the assistant's reply.

        Args:
            user_message: The user's text.
            system_prompt: Per-request override; beats the stored override
                and the node default.

        Raises:
            ConfigFetchFailed: node metadata could not be resolved.
            CompletionFailed: the completion call failed.
        """
        remote = await self.node_config.fetch()
        effective = self.prompts.effective_prompt(remote.system_prompt, explicit=system_prompt)

        body = {
            "model": remote.model,
            "messages": self.build_messages(user_message, effective),
            "max_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
        }

        response = await self.backend.forward(body)
        if not response.ok:
            logger.error("Completion failed on '%s': %s", response.backend_name, response.error)
            raise CompletionFailed(f"Failed to get response from node: {response.error}")
        if not response.has_choices:
            logger.error("Completion from '%s' had no choices", response.backend_name)
            raise CompletionFailed("Failed to get response from node: response contained no choices")

        message = response.message
        content = message.get("content") if message is not None else None
        if message is None or (content is not None and not isinstance(content, str)):
            logger.error("Completion from '%s' was malformed: %r", response.backend_name, response.data["choices"][0])
            raise CompletionFailed("Failed to get response from node: malformed response")

        try:
            usage = Usage.from_dict(response.data.get("usage"))
        except (TypeError, ValueError) as e:
            logger.warning("Ignoring malformed usage block: %s", e)
            usage = Usage.zero()

        logger.debug(
            "Completion: model=%s tokens=%d latency=%.0fms",
            remote.model, usage.total_tokens, response.latency_ms,
        )
        return ChatReply(content=response.content, usage=usage)
