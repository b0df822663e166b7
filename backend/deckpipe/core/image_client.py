"""
Client for the asynchronous image-generation backend.

The backend accepts a generation request, answers with a generation id, and
exposes the job's progress at ``GET /images/generations/{id}``:

    {"id": "...", "status": "pending" | "succeeded" | "failed",
     "data": [{"url": "..."}]}
"""

import logging

import httpx

from deckpipe.core.config import settings

logger = logging.getLogger(__name__)


class ImageClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = settings.IMAGE_API_BASE,
        model: str = settings.IMAGE_MODEL,
        size: str = settings.IMAGE_SIZE,
        timeout: float = settings.IMAGE_REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.model = model
        self.size = size
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def create(self, prompt: str) -> str | None:
        """Start a generation and return its id, or ``None`` if none was issued.

        Transport errors and non-2xx responses propagate as ``httpx.HTTPError``.
        """
        response = await self._client.post(
            "/images/generations",
            json={
                "model": self.model,
                "prompt": prompt,
                "n": 1,
                "size": self.size,
                "response_format": "url",
            },
        )
        response.raise_for_status()
        job_id = response.json().get("id")
        return str(job_id) if job_id else None

    async def status(self, job_id: str) -> dict | None:
        """Return ``{"status": ..., "visual": url | None}``, or ``None`` on 404."""
        response = await self._client.get(f"/images/generations/{job_id}")
        if response.status_code == 404:
            return None
        response.raise_for_status()
        body = response.json()

        url = None
        data = body.get("data") or []
        if data and isinstance(data[0], dict):
            url = data[0].get("url")
        return {"status": body.get("status", "pending"), "visual": url}
