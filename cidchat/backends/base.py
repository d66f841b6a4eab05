"""
Base backend abstraction.
A backend is an LLM node that speaks the OpenAI chat-completions dialect
and publishes a small public config document next to its API.
"""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class BackendResponse:
    """Standardized response from any backend."""
    ok: bool
    status_code: int = 200
    data: dict = field(default_factory=dict)
    backend_name: str = ""
    latency_ms: float = 0.0
    error: str = ""

    @property
    def message(self) -> dict | None:
        """The first choice's message object, or None when the body has no usable one."""
        if not self.has_choices:
            return None
        choice = self.data["choices"][0]
        message = choice.get("message") if isinstance(choice, dict) else None
        return message if isinstance(message, dict) else None

    @property
    def content(self) -> str:
        """Extract assistant content from response data."""
        message = self.message
        if message is None:
            return ""
        content = message.get("content")
        return content if isinstance(content, str) else ""

    @property
    def has_choices(self) -> bool:
        if not isinstance(self.data, dict):
            return False
        choices = self.data.get("choices")
        return isinstance(choices, list) and bool(choices)


class BaseBackend(abc.ABC):
    """
    Abstract base for LLM nodes.

    url is the API base including its version prefix (".../v1");
    node_url is the same host without it, where config_pub.json lives.
    """

    def __init__(self, name: str, url: str, timeout: int = 120):
        self.name = name
        self.url = url.rstrip("/")
        self.timeout = timeout

    @property
    def node_url(self) -> str:
        return self.url.removesuffix("/v1")

    @abc.abstractmethod
    async def forward(self, body: dict) -> BackendResponse:
        """
        Forward a chat completion request.
        Body is OpenAI-compatible format.
        Returns BackendResponse with data or error; never raises.
        """
        ...

    @abc.abstractmethod
    async def list_models(self) -> list[str]:
        """Return model ids served by this node. Raises on any failure."""
        ...

    @abc.abstractmethod
    async def fetch_public_config(self) -> dict:
        """Return the node's public config document. Raises on any failure."""
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r} url={self.url!r}>"
