"""
Tests for loading archived conversations back by CID.
Run with: pytest tests/test_retriever.py
"""

import pytest

from cidchat.enricher import enrich
from cidchat.errors import ConversationCorrupt, ConversationNotFound, StorageRetrievalFailed
from cidchat.models import RemoteConfig
from cidchat.retriever import ConversationRetriever
from cidchat.storage.backends.base import ObjectBackend, ObjectBackendError
from cidchat.storage.backends.memory import MemoryObjectBackend
from cidchat.storage.content_store import ContentStore

REMOTE = RemoteConfig(model="llama-3-chat", node_url="https://node.example", system_prompt="Be kind.")


@pytest.fixture
def store():
    return ContentStore(MemoryObjectBackend())


@pytest.fixture
def retriever(store):
    return ConversationRetriever(store)


@pytest.mark.asyncio
async def test_round_trip(store, retriever, conversation):
    enriched, data = enrich(conversation, REMOTE, stored_at="2024-11-14T22:20:00+00:00")
    result = await store.store(data, "conversation-1.json")

    loaded = await retriever.load(result.content_id)

    assert loaded.messages == conversation.messages
    assert loaded.id == conversation.id
    assert loaded.metadata == enriched.metadata


@pytest.mark.asyncio
async def test_missing_cid(retriever):
    with pytest.raises(ConversationNotFound):
        await retriever.load("bafknothere")


@pytest.mark.asyncio
async def test_empty_object_is_not_found(store, retriever):
    result = await store.store(b"", "empty.json")
    with pytest.raises(ConversationNotFound):
        await retriever.load(result.content_id)


@pytest.mark.asyncio
async def test_not_json_is_corrupt(store, retriever):
    result = await store.store(b"<html>gateway error</html>", "x.json")
    with pytest.raises(ConversationCorrupt):
        await retriever.load(result.content_id)


@pytest.mark.asyncio
async def test_wrong_shape_is_corrupt(store, retriever):
    result = await store.store(b'{"hello": "world"}', "x.json")
    with pytest.raises(ConversationCorrupt):
        await retriever.load(result.content_id)


@pytest.mark.asyncio
async def test_bad_role_is_corrupt(store, retriever):
    result = await store.store(b'{"id": "1", "messages": [{"role": "robot", "content": "x"}]}', "x.json")
    with pytest.raises(ConversationCorrupt):
        await retriever.load(result.content_id)


@pytest.mark.asyncio
async def test_binary_is_corrupt(store, retriever):
    result = await store.store(b"\xff\xfe\x00binary", "x.bin")
    with pytest.raises(ConversationCorrupt):
        await retriever.load(result.content_id)


@pytest.mark.asyncio
async def test_gateway_failure_propagates():
    class Down(ObjectBackend):
        async def put(self, data, filename, content_type="application/json"):
            raise ObjectBackendError("down")

        async def get(self, cid):
            raise ObjectBackendError("gateway unreachable")

    retriever = ConversationRetriever(ContentStore(Down()))
    with pytest.raises(StorageRetrievalFailed):
        await retriever.load("bafyx")


@pytest.mark.asyncio
async def test_non_finite_count_is_corrupt(store, retriever):
    raw = b'{"id": "1", "messages": [{"role": "assistant", "content": "x", "usage": {"total_tokens": 1e400}}]}'
    result = await store.store(raw, "x.json")
    with pytest.raises(ConversationCorrupt):
        await retriever.load(result.content_id)
