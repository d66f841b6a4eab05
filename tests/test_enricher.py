"""
Tests for the conversation enricher.
Run with: pytest tests/test_enricher.py
"""

import json

import pytest

from cidchat.enricher import enrich, serialize, total_tokens
from cidchat.errors import EmptyConversation
from cidchat.models import Conversation, RemoteConfig, Turn, Usage

REMOTE = RemoteConfig(model="llama-3-chat", node_url="https://node.example", system_prompt="Be kind.")
STORED_AT = "2024-11-14T22:20:00+00:00"


def _enrich(conv, **kw):
    kw.setdefault("stored_at", STORED_AT)
    kw.setdefault("space_identifier", "did:key:z6MkSpace")
    kw.setdefault("space_name", "test-space")
    return enrich(conv, REMOTE, **kw)


# ---------------------------------------------------------------------------
# Token totals
# ---------------------------------------------------------------------------

def test_total_tokens_skips_missing_usage():
    messages = [
        Turn(role="assistant", content="a", usage=Usage(total_tokens=10)),
        Turn(role="user", content="b"),
        Turn(role="assistant", content="c", usage=Usage(total_tokens=0)),
        Turn(role="assistant", content="d", usage=Usage(total_tokens=5)),
    ]
    assert total_tokens(messages) == 15


def test_enriched_total_tokens(conversation):
    conversation.append(Turn(role="user", content="more?"))
    conversation.append(Turn(role="assistant", content="sure", usage=Usage(total_tokens=5)))
    enriched, _ = _enrich(conversation)
    assert enriched.metadata.total_tokens == 15


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

def test_metadata_fields(conversation):
    enriched, _ = _enrich(conversation)
    meta = enriched.metadata
    assert meta.stored_at == STORED_AT
    assert meta.model == "llama-3-chat"
    assert meta.node_url == "https://node.example"
    assert meta.system_prompt == "Be kind."
    assert meta.space_identifier == "did:key:z6MkSpace"
    assert meta.space_name == "test-space"


def test_input_not_mutated(conversation):
    before = conversation.to_dict()
    _enrich(conversation)
    assert conversation.to_dict() == before
    assert conversation.metadata is None


def test_stored_at_defaults_to_now(conversation):
    enriched, _ = enrich(conversation, REMOTE)
    assert enriched.metadata.stored_at.endswith("+00:00")


def test_empty_conversation_rejected():
    with pytest.raises(EmptyConversation):
        _enrich(Conversation(id="empty"))


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def test_size_is_self_consistent(conversation):
    enriched, data = _enrich(conversation)
    parsed = json.loads(data)
    assert parsed["metadata"]["file_size_bytes"] == len(data)
    assert enriched.metadata.file_size_bytes == len(data)


def test_size_counts_utf8_bytes():
    conv = Conversation(id="u", timestamp="t")
    conv.append(Turn(role="user", content="héllo wörld ✓ 日本語", timestamp="t"))
    _, data = _enrich(conv)
    assert "日本語" in data.decode("utf-8")
    assert json.loads(data)["metadata"]["file_size_bytes"] == len(data)


def test_size_converges_across_digit_boundary():
    """Sizes around a power of ten still end up exact."""
    sizes = set()
    for pad in range(300, 900, 3):
        conv = Conversation(id="b", timestamp="t")
        conv.append(Turn(role="user", content="x" * pad, timestamp="t"))
        _, data = _enrich(conv)
        assert json.loads(data)["metadata"]["file_size_bytes"] == len(data)
        sizes.add(len(data))
    assert min(sizes) < 1000 < max(sizes)


def test_enrich_is_deterministic(conversation):
    _, first = _enrich(conversation)
    _, second = _enrich(conversation)
    assert first == second


def test_returned_bytes_match_enriched_object(conversation):
    enriched, data = _enrich(conversation)
    assert serialize(enriched) == data


def test_field_order_is_stable(conversation):
    _, data = _enrich(conversation)
    parsed = json.loads(data)
    assert list(parsed) == ["id", "timestamp", "messages", "metadata"]
    assert list(parsed["messages"][1]) == ["role", "content", "timestamp", "usage"]
    assert list(parsed["metadata"]) == [
        "stored_at", "model", "node_url", "system_prompt",
        "space_identifier", "space_name", "total_tokens", "file_size_bytes",
    ]


def test_two_space_indent(conversation):
    _, data = _enrich(conversation)
    assert data.startswith(b'{\n  "id": "1700000000000"')
