"""
ObjectBackend — abstract base for content-addressed object storage.

All backends must implement two primitives:
  put  — upload bytes, return the content identifier (CID)
  get  — fetch bytes by CID, or None if the object does not exist

Identifiers are a function of the bytes alone: putting the same bytes
twice must return the same CID. Error classification (quota vs. other
upload failures) stays in ContentStore, the caller, not here.
Backends only move bytes around and report what went wrong.
"""

from abc import ABC, abstractmethod


class ObjectBackendError(Exception):
    """
    A failure reported by a storage backend.

    name mirrors the error name the storage service uses in its error
    body (e.g. "InsufficientStorage"); message is its detail text.
    """

    def __init__(self, message: str, name: str = "", status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.name = name
        self.status_code = status_code


class ObjectBackend(ABC):
    """Abstract content-addressed object backend."""

    @abstractmethod
    async def put(self, data: bytes, filename: str, content_type: str = "application/json") -> str:
        """Upload bytes and return their CID. Raises ObjectBackendError."""
        ...

    @abstractmethod
    async def get(self, cid: str) -> bytes | None:
        """Fetch bytes by CID; None when absent. Raises ObjectBackendError."""
        ...
