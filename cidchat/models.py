"""
Data models for conversations and their archived form.
These define the shape of data flowing between the chat layer, the
enricher, the content store and the local index.

Field order in every to_dict() is part of the archive format: the
enricher serializes these dicts as-is, so reordering fields changes the
bytes and therefore the CID of an archived conversation.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone

ROLES = ("system", "user", "assistant")

NO_SYSTEM_PROMPT = "No system prompt available"
UNKNOWN_MODEL = "unknown"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _count(data: dict, key: str) -> int:
    """A non-negative whole-number count; missing or null is 0."""
    value = data.get(key) or 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number, got {value!r}")
    if isinstance(value, float) and not (math.isfinite(value) and value.is_integer()):
        raise ValueError(f"{key} must be a whole number, got {value!r}")
    if value < 0:
        raise ValueError(f"{key} must not be negative, got {value!r}")
    return int(value)


@dataclass(frozen=True)
class Usage:
    """Token accounting for one completion."""
    total_tokens: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @classmethod
    def zero(cls) -> Usage:
        return cls()

    @classmethod
    def from_dict(cls, data: dict | None) -> Usage:
        """Build from an OpenAI-style usage block. Missing counts are 0."""
        if data is None:
            return cls.zero()
        if not isinstance(data, dict):
            raise ValueError(f"usage must be an object, got {type(data).__name__}")
        return cls(
            total_tokens=_count(data, "total_tokens"),
            prompt_tokens=_count(data, "prompt_tokens"),
            completion_tokens=_count(data, "completion_tokens"),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Turn:
    """A single message in a conversation. Immutable once appended."""
    role: str
    content: str
    timestamp: str = field(default_factory=utc_now)
    usage: Usage | None = None   # Only on assistant turns that reported usage

    def __post_init__(self):
        if self.role not in ROLES:
            raise ValueError(f"Unknown role: {self.role!r}")

    @classmethod
    def from_dict(cls, data: dict) -> Turn:
        if not isinstance(data, dict):
            raise ValueError("message must be an object")
        content = data.get("content", "")
        if not isinstance(content, str):
            raise ValueError("message content must be a string")
        usage = data.get("usage")
        return cls(
            role=data.get("role", ""),
            content=content,
            timestamp=str(data.get("timestamp") or ""),
            usage=Usage.from_dict(usage) if usage is not None else None,
        )

    def to_dict(self) -> dict:
        out = {
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp,
        }
        if self.usage is not None:
            out["usage"] = self.usage.to_dict()
        return out

    def to_openai_format(self) -> dict:
        """Export as an entry of an OpenAI messages array."""
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class StorageMetadata:
    """Provenance stamped onto a conversation when it is archived."""
    stored_at: str
    model: str = UNKNOWN_MODEL
    node_url: str = UNKNOWN_MODEL
    system_prompt: str = NO_SYSTEM_PROMPT
    space_identifier: str = ""
    space_name: str = ""
    total_tokens: int = 0
    file_size_bytes: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> StorageMetadata:
        if not isinstance(data, dict):
            raise ValueError("metadata must be an object")
        return cls(
            stored_at=str(data.get("stored_at", "")),
            model=str(data.get("model", UNKNOWN_MODEL)),
            node_url=str(data.get("node_url", UNKNOWN_MODEL)),
            system_prompt=str(data.get("system_prompt", NO_SYSTEM_PROMPT)),
            space_identifier=str(data.get("space_identifier", "")),
            space_name=str(data.get("space_name", "")),
            total_tokens=_count(data, "total_tokens"),
            file_size_bytes=_count(data, "file_size_bytes"),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Conversation:
    """
    A conversation: ordered turns under a client-generated id.
    metadata is only populated on archived (enriched) conversations.
    """
    id: str
    timestamp: str = field(default_factory=utc_now)
    messages: list[Turn] = field(default_factory=list)
    metadata: StorageMetadata | None = None

    def append(self, turn: Turn) -> None:
        self.messages.append(turn)

    @classmethod
    def from_dict(cls, data: dict) -> Conversation:
        """
        Parse a conversation as posted by a client or read back from storage.
        Raises ValueError when the structure does not match.
        """
        if not isinstance(data, dict):
            raise ValueError("conversation must be an object")
        conv_id = data.get("id")
        if conv_id is None or conv_id == "":
            raise ValueError("conversation id is required")
        messages = data.get("messages")
        if not isinstance(messages, list):
            raise ValueError("conversation messages must be a list")
        metadata = data.get("metadata")
        return cls(
            id=str(conv_id),
            timestamp=str(data.get("timestamp") or ""),
            messages=[Turn.from_dict(m) for m in messages],
            metadata=StorageMetadata.from_dict(metadata) if metadata is not None else None,
        )

    def to_dict(self) -> dict:
        out = {
            "id": self.id,
            "timestamp": self.timestamp,
            "messages": [m.to_dict() for m in self.messages],
        }
        if self.metadata is not None:
            out["metadata"] = self.metadata.to_dict()
        return out


@dataclass(frozen=True)
class RemoteConfig:
    """What the LLM node says about itself. Cached for the process lifetime."""
    model: str
    node_url: str
    system_prompt: str = NO_SYSTEM_PROMPT


@dataclass(frozen=True)
class ChatReply:
    content: str
    usage: Usage


@dataclass(frozen=True)
class StoreResult:
    content_id: str
    public_url: str
    size: int


@dataclass(frozen=True)
class IndexRecord:
    """Summary of one archived conversation, for listing without a fetch."""
    content_id: str
    conversation_id: str
    timestamp: str
    preview: str
    file_size_bytes: int
    model: str

    def to_dict(self) -> dict:
        return asdict(self)
