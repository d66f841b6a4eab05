"""
LLM node backends for cidchat.
"""
from cidchat.backends.base import BaseBackend, BackendResponse
from cidchat.backends.openai_compat import OpenAICompatibleBackend

__all__ = [
    "BaseBackend",
    "BackendResponse",
    "OpenAICompatibleBackend",
]
