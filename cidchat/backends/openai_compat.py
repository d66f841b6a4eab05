"""
Generic OpenAI-compatible backend.

Supports any node that serves:
- {url}/chat/completions
- {url}/models
- {node_url}/config_pub.json   (public node metadata, unauthenticated)

where url is the configured API base, e.g. https://node.example/v1.
"""

from __future__ import annotations

import logging
import time

import httpx

from cidchat.backends.base import BaseBackend, BackendResponse

logger = logging.getLogger(__name__)


class OpenAICompatibleBackend(BaseBackend):
    """Backend for OpenAI-compatible LLM nodes."""

    def __init__(
        self,
        name: str,
        url: str,
        timeout: int = 120,
        api_key: str = "",
    ):
        super().__init__(name, url, timeout)
        self.api_key = api_key

    def _headers(self) -> dict:
        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def forward(self, body: dict) -> BackendResponse:
        """Forward a non-streaming request."""
        t0 = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(
                    f"{self.url}/chat/completions",
                    json=body,
                    headers=self._headers(),
                )
                latency = (time.monotonic() - t0) * 1000

                if resp.status_code >= 400:
                    return BackendResponse(
                        ok=False,
                        status_code=resp.status_code,
                        backend_name=self.name,
                        latency_ms=latency,
                        error=f"HTTP {resp.status_code}: {resp.text[:200]}",
                    )

                data = resp.json()
                return BackendResponse(
                    ok=True,
                    status_code=resp.status_code,
                    data=data if isinstance(data, dict) else {},
                    backend_name=self.name,
                    latency_ms=latency,
                )
        except httpx.TimeoutException:
            latency = (time.monotonic() - t0) * 1000
            logger.warning(
                "Backend '%s' timed out after %.0fms",
                self.name,
                latency,
            )
            return BackendResponse(
                ok=False,
                backend_name=self.name,
                latency_ms=latency,
                error=f"Timeout after {self.timeout}s",
            )
        except Exception as e:
            latency = (time.monotonic() - t0) * 1000
            logger.warning("Backend '%s' failed: %s", self.name, e)
            return BackendResponse(
                ok=False,
                backend_name=self.name,
                latency_ms=latency,
                error=str(e) or e.__class__.__name__,
            )

    async def list_models(self) -> list[str]:
        """Fetch available model ids from the node."""
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.get(f"{self.url}/models", headers=self._headers())
            resp.raise_for_status()
            data = resp.json()
        models = [m.get("id", "") for m in data.get("data") or []]
        return [m for m in models if m]

    async def fetch_public_config(self) -> dict:
        """Fetch config_pub.json from the node root."""
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.get(f"{self.node_url}/config_pub.json")
            resp.raise_for_status()
            data = resp.json()
        return data if isinstance(data, dict) else {}
