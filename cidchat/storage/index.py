"""
Conversation index — what has been archived during this run.

In-memory, append-only log of IndexRecords so the UI can list archived
conversations without hitting the storage network. The storage network
is the source of truth; this is lost on restart.
"""

from __future__ import annotations

import logging
import threading

from cidchat.models import Conversation, IndexRecord

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 100


def make_preview(conversation: Conversation) -> str:
    """First PREVIEW_CHARS characters of the first message, plus an ellipsis."""
    first = conversation.messages[0].content if conversation.messages else ""
    return first[:PREVIEW_CHARS] + "..."


def make_record(content_id: str, conversation: Conversation, file_size_bytes: int, model: str) -> IndexRecord:
    return IndexRecord(
        content_id=content_id,
        conversation_id=conversation.id,
        timestamp=conversation.timestamp,
        preview=make_preview(conversation),
        file_size_bytes=file_size_bytes,
        model=model,
    )


class ConversationIndex:
    """Thread-safe append-only list of archived conversations."""

    def __init__(self):
        self._records: list[IndexRecord] = []
        self._lock = threading.Lock()

    def record(self, entry: IndexRecord) -> None:
        with self._lock:
            self._records.append(entry)
        logger.debug("Indexed %s (conversation %s)", entry.content_id, entry.conversation_id)

    def list(self) -> list[IndexRecord]:
        """Snapshot, most recent first."""
        with self._lock:
            return list(reversed(self._records))

    @property
    def count(self) -> int:
        return len(self._records)
