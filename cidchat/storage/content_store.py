"""
ContentStore — the archive's view of content-addressed storage.

Wraps an ObjectBackend with:
  - public gateway URL derivation for each stored CID
  - classification of backend failures into the cidchat error taxonomy
    (an unprovisioned space is called out separately so an operator can
    fix it; everything else is a plain upload/retrieval failure)
"""

from __future__ import annotations

import logging

from cidchat.errors import StorageQuotaExceeded, StorageRetrievalFailed, StorageUploadFailed
from cidchat.models import StoreResult
from cidchat.storage.backends.base import ObjectBackend, ObjectBackendError

logger = logging.getLogger(__name__)

DEFAULT_PUBLIC_URL_TEMPLATE = "https://{cid}.ipfs.w3s.link/"
QUOTA_ERROR_NAME = "InsufficientStorage"


def _space_from_quota_error(err: ObjectBackendError) -> str:
    """The service names the space as the first word of its quota message."""
    parts = err.message.split()
    return parts[0] if parts else ""


class ContentStore:
    """Upload and fetch archive objects by CID."""

    def __init__(self, backend: ObjectBackend, public_url_template: str = DEFAULT_PUBLIC_URL_TEMPLATE):
        self.backend = backend
        self.public_url_template = public_url_template or DEFAULT_PUBLIC_URL_TEMPLATE

    def public_url(self, cid: str) -> str:
        return self.public_url_template.format(cid=cid)

    async def store(self, data: bytes, filename: str, content_type: str = "application/json") -> StoreResult:
        """
        Upload bytes and return their CID, gateway URL and size.

        Raises:
            StorageQuotaExceeded: the destination space has no capacity.
            StorageUploadFailed: any other backend failure.
        """
        logger.info("Uploading %s (%d bytes)", filename, len(data))
        try:
            cid = await self.backend.put(data, filename, content_type)
        except ObjectBackendError as e:
            if e.name == QUOTA_ERROR_NAME:
                space = _space_from_quota_error(e)
                logger.error(
                    "Storage space needs provisioning. Space: %s "
                    "(provision capacity for it with your storage provider, then retry)",
                    space,
                )
                raise StorageQuotaExceeded(
                    f"Storage space needs storage provisioning. Space: {space}",
                    space_identifier=space,
                ) from e
            logger.error("Upload of %s failed: %s", filename, e.message)
            raise StorageUploadFailed(f"Failed to store conversation: {e.message}") from e

        url = self.public_url(cid)
        logger.info("Stored %s with CID %s (%s)", filename, cid, url)
        return StoreResult(content_id=cid, public_url=url, size=len(data))

    async def retrieve(self, cid: str) -> bytes | None:
        """
        Fetch bytes by CID. Returns None when the object does not exist.

        Raises:
            StorageRetrievalFailed: transport or gateway failure.
        """
        try:
            return await self.backend.get(cid)
        except ObjectBackendError as e:
            logger.error("Retrieval of %s failed: %s", cid, e.message)
            raise StorageRetrievalFailed(f"Failed to retrieve conversation: {e.message}") from e
