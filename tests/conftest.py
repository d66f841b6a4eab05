"""
Shared fixtures: a scripted LLM node and fresh in-memory services.
"""

import pytest

from cidchat.backends.base import BaseBackend, BackendResponse
from cidchat.main import assemble_services
from cidchat.models import Conversation, Turn, Usage
from cidchat.storage.backends.memory import MemoryObjectBackend


class FakeNode(BaseBackend):
    """Scripted node: records calls, replays canned answers."""

    def __init__(
        self,
        models=None,
        public_config=None,
        reply=None,
        url="http://node.test/v1",
    ):
        super().__init__("fake", url)
        self.models = ["llama-3-chat"] if models is None else models
        self.public_config = {"system_prompt": "You are a node."} if public_config is None else public_config
        self.reply = reply or BackendResponse(
            ok=True,
            data={
                "choices": [{"message": {"role": "assistant", "content": "hello back"}}],
                "usage": {"total_tokens": 12, "prompt_tokens": 8, "completion_tokens": 4},
            },
            backend_name="fake",
        )
        self.forwarded: list[dict] = []
        self.model_calls = 0
        self.config_calls = 0
        self.fail_metadata: Exception | None = None

    async def forward(self, body: dict) -> BackendResponse:
        self.forwarded.append(body)
        return self.reply

    async def list_models(self) -> list[str]:
        self.model_calls += 1
        if self.fail_metadata:
            raise self.fail_metadata
        return list(self.models)

    async def fetch_public_config(self) -> dict:
        self.config_calls += 1
        return dict(self.public_config)


@pytest.fixture
def node():
    return FakeNode()


@pytest.fixture
def objects():
    return MemoryObjectBackend()


@pytest.fixture
def services(node, objects):
    return assemble_services(
        node,
        objects,
        storage_backend="memory",
        space_identifier="did:key:z6MkTestSpace",
        space_name="test-space",
    )


@pytest.fixture
def conversation():
    conv = Conversation(id="1700000000000", timestamp="2024-11-14T22:13:20.000Z")
    conv.append(Turn(role="user", content="What is a CID?", timestamp="2024-11-14T22:13:21.000Z"))
    conv.append(Turn(
        role="assistant",
        content="A content identifier.",
        timestamp="2024-11-14T22:13:22.000Z",
        usage=Usage(total_tokens=10, prompt_tokens=6, completion_tokens=4),
    ))
    return conv
