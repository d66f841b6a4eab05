"""
Object backends hold archived conversation bytes and hand back a CID.

  http    uploads to a storage service and reads through its IPFS gateway
  memory  keeps objects in process, keyed by a SHA-256 derived CID

config.yaml picks one with  storage.backend: <name>.
"""

from .base import ObjectBackend, ObjectBackendError
from .http import HTTPObjectBackend
from .memory import MemoryObjectBackend

BACKENDS: dict[str, type[ObjectBackend]] = {
    "http": HTTPObjectBackend,
    "memory": MemoryObjectBackend,
}


def make_backend(backend_type: str, **kwargs) -> ObjectBackend:
    """Build the object backend named by backend_type; kwargs go to its constructor."""
    cls = BACKENDS.get(backend_type)
    if cls is None:
        raise ValueError(
            f"Unknown storage backend: '{backend_type}'. "
            f"Available: {', '.join(sorted(BACKENDS))}"
        )
    return cls(**kwargs)


__all__ = ["BACKENDS", "ObjectBackend", "ObjectBackendError", "make_backend"]
