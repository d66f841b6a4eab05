"""
Retriever — turn a CID back into a conversation.
"""

from __future__ import annotations

import json
import logging

from cidchat.errors import ConversationCorrupt, ConversationNotFound
from cidchat.models import Conversation
from cidchat.storage.content_store import ContentStore

logger = logging.getLogger(__name__)


class ConversationRetriever:
    """Load archived conversations from the content store."""

    def __init__(self, store: ContentStore):
        self.store = store

    async def load(self, cid: str) -> Conversation:
        """
        Fetch and parse an archived conversation. Storage metadata is kept
        on the result for display; chat does not need it.

        Raises:
            ConversationNotFound: nothing is stored under this CID.
            ConversationCorrupt: the bytes are not an archived conversation.
            StorageRetrievalFailed: the gateway could not be reached.
        """
        data = await self.store.retrieve(cid)
        if not data:
            raise ConversationNotFound(f"No conversation stored under CID {cid}")

        try:
            conversation = Conversation.from_dict(json.loads(data.decode("utf-8")))
        except (UnicodeDecodeError, ValueError, TypeError) as e:
            logger.warning("CID %s is not a valid conversation: %s", cid, e)
            raise ConversationCorrupt(f"Stored object {cid} is not a valid conversation: {e}") from e

        logger.info("Loaded conversation %s from %s (%d messages)", conversation.id, cid, len(conversation.messages))
        return conversation
