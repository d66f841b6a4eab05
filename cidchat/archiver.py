"""
Archiver — the "store this conversation" pipeline.

    node config  ->  enrich  ->  upload  ->  index

The conversation is rejected before any network call if it is empty.
A failed upload leaves the index untouched, so every IndexRecord points
at an object that was actually stored.
"""

from __future__ import annotations

import logging

from cidchat.enricher import enrich
from cidchat.errors import EmptyConversation
from cidchat.models import Conversation, StoreResult
from cidchat.node_config import NodeConfigCache
from cidchat.storage.content_store import ContentStore
from cidchat.storage.index import ConversationIndex, make_record

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/json"


def archive_filename(conversation: Conversation) -> str:
    return f"conversation-{conversation.id}.json"


class ConversationArchiver:
    """Enrich, upload and index a finished conversation."""

    def __init__(
        self,
        node_config: NodeConfigCache,
        store: ContentStore,
        index: ConversationIndex,
        space_identifier: str = "",
        space_name: str = "",
    ):
        self.node_config = node_config
        self.store = store
        self.index = index
        self.space_identifier = space_identifier
        self.space_name = space_name

    async def archive(self, conversation: Conversation, stored_at: str | None = None) -> StoreResult:
        if not conversation.messages:
            raise EmptyConversation("Cannot store a conversation with no messages")

        remote = await self.node_config.fetch()
        enriched, data = enrich(
            conversation,
            remote,
            space_identifier=self.space_identifier,
            space_name=self.space_name,
            stored_at=stored_at,
        )

        result = await self.store.store(data, archive_filename(conversation), CONTENT_TYPE)
        self.index.record(make_record(result.content_id, conversation, result.size, enriched.metadata.model))
        logger.info(
            "Archived conversation %s: %d messages, %d tokens -> %s",
            conversation.id,
            len(conversation.messages),
            enriched.metadata.total_tokens,
            result.content_id,
        )
        return result
