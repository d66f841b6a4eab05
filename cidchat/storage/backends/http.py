"""
HTTP object backend.

Uploads go to an HTTP upload endpoint that takes the raw bytes as the
request body and answers with the root CID:

    POST {upload_url}
    Authorization: Bearer <api_key>
    X-Name: conversation-<id>.json
    Content-Type: application/json

    200 {"cid": "bafy..."}
    4xx/5xx {"name": "InsufficientStorage", "message": "did:key:... has no storage provisioned"}

Reads go through a public IPFS gateway: GET {gateway_url}/ipfs/{cid}.
"""

from __future__ import annotations

import logging

import httpx

from .base import ObjectBackend, ObjectBackendError

logger = logging.getLogger(__name__)


def _error_from_response(resp: httpx.Response) -> ObjectBackendError:
    """Lift the service's {"name", "message"} error body, if it sent one."""
    name, message = "", ""
    try:
        body = resp.json()
        if isinstance(body, dict):
            name = str(body.get("name") or "")
            message = str(body.get("message") or body.get("error") or "")
    except ValueError:
        pass
    if not message:
        message = f"HTTP {resp.status_code}: {resp.text[:200]}"
    return ObjectBackendError(message, name=name, status_code=resp.status_code)


class HTTPObjectBackend(ObjectBackend):
    """Upload over HTTP, read back through a public gateway."""

    def __init__(
        self,
        upload_url: str,
        api_key: str = "",
        gateway_url: str = "https://gateway.storacha.network",
        timeout: int = 60,
    ):
        if not upload_url:
            raise ValueError("HTTP storage backend requires an upload_url")
        self.upload_url = upload_url
        self.api_key = api_key
        self.gateway_url = gateway_url.rstrip("/")
        self.timeout = timeout

    async def put(self, data: bytes, filename: str, content_type: str = "application/json") -> str:
        headers = {"X-Name": filename, "Content-Type": content_type}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(self.upload_url, content=data, headers=headers)
        except httpx.HTTPError as e:
            raise ObjectBackendError(str(e) or e.__class__.__name__, name=e.__class__.__name__) from e

        if resp.status_code >= 400:
            raise _error_from_response(resp)

        try:
            cid = resp.json().get("cid", "")
        except (ValueError, AttributeError):
            cid = ""
        if not cid:
            raise ObjectBackendError(
                f"Upload response did not include a CID: {resp.text[:200]}",
                status_code=resp.status_code,
            )
        return str(cid)

    async def get(self, cid: str) -> bytes | None:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                resp = await client.get(f"{self.gateway_url}/ipfs/{cid}")
        except httpx.HTTPError as e:
            raise ObjectBackendError(str(e) or e.__class__.__name__, name=e.__class__.__name__) from e

        if resp.status_code == 404:
            return None
        if resp.status_code >= 400:
            raise _error_from_response(resp)
        return resp.content
