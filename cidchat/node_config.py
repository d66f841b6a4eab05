"""
Node config cache — what model the LLM node serves and its default prompt.

Fetched lazily on first use, then held for the life of the process.
There is no refresh: a node that changes its model or system prompt is
only picked up after a restart. Failures are not cached, so the next
caller simply tries again.
"""

from __future__ import annotations

import asyncio
import logging

from cidchat.backends.base import BaseBackend
from cidchat.errors import ConfigFetchFailed
from cidchat.models import NO_SYSTEM_PROMPT, UNKNOWN_MODEL, RemoteConfig

logger = logging.getLogger(__name__)


def select_chat_model(model_ids: list[str]) -> str:
    """First model that is not an embedding model, else "unknown"."""
    for model_id in model_ids:
        if "embed" not in model_id.lower():
            return model_id
    return UNKNOWN_MODEL


class NodeConfigCache:
    """Single-flight, write-once cache of the node's RemoteConfig."""

    def __init__(self, backend: BaseBackend):
        self.backend = backend
        self._config: RemoteConfig | None = None
        self._lock = asyncio.Lock()

    @property
    def cached(self) -> RemoteConfig | None:
        return self._config

    async def fetch(self) -> RemoteConfig:
        if self._config is not None:
            return self._config

        async with self._lock:
            # Another caller may have filled it while we waited
            if self._config is not None:
                return self._config

            try:
                model_ids, public_cfg = await asyncio.gather(
                    self.backend.list_models(),
                    self.backend.fetch_public_config(),
                )
            except Exception as e:
                logger.warning("Could not fetch node metadata from %s: %s", self.backend.url, e)
                raise ConfigFetchFailed(f"Failed to fetch node metadata: {e}") from e

            self._config = RemoteConfig(
                model=select_chat_model(model_ids),
                node_url=self.backend.node_url,
                system_prompt=public_cfg.get("system_prompt") or NO_SYSTEM_PROMPT,
            )
            logger.info("Fetched node metadata: model=%s", self._config.model)
            return self._config
