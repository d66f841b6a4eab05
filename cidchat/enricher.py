"""
Enricher — stamps provenance metadata onto a conversation and produces
the exact bytes that get archived.

The archive carries its own size (metadata.file_size_bytes), which is
self-referential: writing the number changes the length being measured.
The size is therefore found by iteration:

    1. serialize with file_size_bytes = 0
    2. measure the UTF-8 length of that output
    3. serialize again with the measured length filled in
    4. if the length moved (the number gained digits), measure again
       and repeat step 3 until the embedded value equals the real length

Serialization is canonical (fixed field order, fixed indent, literal
UTF-8), so the same conversation + node config + stored_at always yields
the same bytes, and so the same CID.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace

from cidchat.errors import EmptyConversation
from cidchat.models import Conversation, RemoteConfig, StorageMetadata, Turn, utc_now

logger = logging.getLogger(__name__)

# A size can only gain a digit or two, so this is never reached in practice
_MAX_SIZE_PASSES = 8


def total_tokens(messages: list[Turn]) -> int:
    """Sum usage.total_tokens over all turns; missing usage counts as 0."""
    return sum(m.usage.total_tokens for m in messages if m.usage is not None)


def serialize(conversation: Conversation) -> bytes:
    """Canonical JSON encoding of a conversation."""
    text = json.dumps(conversation.to_dict(), indent=2, ensure_ascii=False)
    return text.encode("utf-8")


def enrich(
    conversation: Conversation,
    remote_config: RemoteConfig,
    *,
    space_identifier: str = "",
    space_name: str = "",
    stored_at: str | None = None,
) -> tuple[Conversation, bytes]:
    """
    Attach storage metadata and return (enriched conversation, final bytes).

    The returned bytes are exactly what must be uploaded; the enriched
    conversation is the parsed equivalent. The input is not modified.

    Raises:
        EmptyConversation: the conversation has no messages.
    """
    if not conversation.messages:
        raise EmptyConversation("Cannot store a conversation with no messages")

    metadata = StorageMetadata(
        stored_at=stored_at or utc_now(),
        model=remote_config.model,
        node_url=remote_config.node_url,
        system_prompt=remote_config.system_prompt,
        space_identifier=space_identifier,
        space_name=space_name,
        total_tokens=total_tokens(conversation.messages),
        file_size_bytes=0,
    )
    enriched = replace(conversation, messages=list(conversation.messages), metadata=metadata)
    data = serialize(enriched)

    for _ in range(_MAX_SIZE_PASSES):
        size = len(data)
        if enriched.metadata.file_size_bytes == size:
            break
        enriched = replace(enriched, metadata=replace(enriched.metadata, file_size_bytes=size))
        data = serialize(enriched)
    else:
        raise RuntimeError("file_size_bytes did not converge")

    logger.debug(
        "Enriched conversation %s: %d messages, %d tokens, %d bytes",
        conversation.id, len(conversation.messages), metadata.total_tokens, len(data),
    )
    return enriched, data
