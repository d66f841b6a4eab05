"""
In-process object backend.

Keeps objects in a dict keyed by a CID-shaped digest of their bytes, so
it honours the same contract as the real service: identical bytes give
an identical identifier. Nothing survives a restart. Used for local
development (storage.backend: memory) and in tests.
"""

from __future__ import annotations

import base64
import hashlib
import threading

from .base import ObjectBackend


def content_id(data: bytes) -> str:
    """Deterministic identifier: "bafk" + lower-case base32 sha256, unpadded."""
    digest = hashlib.sha256(data).digest()
    return "bafk" + base64.b32encode(digest).decode("ascii").lower().rstrip("=")


class MemoryObjectBackend(ObjectBackend):
    """Content-addressed dict."""

    def __init__(self):
        self._objects: dict[str, bytes] = {}
        self._lock = threading.Lock()
        self.uploads = 0

    async def put(self, data: bytes, filename: str, content_type: str = "application/json") -> str:
        cid = content_id(data)
        with self._lock:
            self._objects[cid] = bytes(data)
            self.uploads += 1
        return cid

    async def get(self, cid: str) -> bytes | None:
        with self._lock:
            return self._objects.get(cid)

    @property
    def count(self) -> int:
        return len(self._objects)
