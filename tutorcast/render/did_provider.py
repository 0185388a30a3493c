"""D-ID clips API implementation of the render provider."""

from __future__ import annotations

import base64
import logging
from typing import Any

import httpx

from tutorcast.render.base import RenderFailed, RenderStatus

logger = logging.getLogger(__name__)

_PROCESSING_STATES = {"created", "started", "processing"}


class DIDRenderProvider:
    """Submit talking-presenter clips to D-ID and read back their status."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.d-id.com",
        submit_timeout: float = 120.0,
        poll_timeout: float = 30.0,
        client: httpx.Client | None = None,
    ):
        token = base64.b64encode(api_key.encode()).decode()
        self._client = client or httpx.Client()
        self._base_url = base_url.rstrip("/")
        self._headers = {"Authorization": f"Basic {token}"}
        self._submit_timeout = submit_timeout
        self._poll_timeout = poll_timeout

    def _payload(self, script: str, presenter_id: str, voice_id: str) -> dict[str, Any]:
        return {
            "presenter_id": presenter_id,
            "script": {
                "type": "text",
                "provider": {"type": "microsoft", "voice_id": voice_id},
                "input": script,
                "ssml": False,
            },
            "background": {"color": "#f0f8ff"},
            "config": {"result_format": "mp4", "width": 1280, "height": 720},
        }

    def submit(self, script: str, presenter_id: str, voice_id: str) -> str:
        response = self._client.post(
            f"{self._base_url}/clips",
            json=self._payload(script, presenter_id, voice_id),
            headers={**self._headers, "Content-Type": "application/json"},
            timeout=self._submit_timeout,
        )
        response.raise_for_status()
        clip_id = response.json().get("id")
        if not clip_id:
            raise RenderFailed("Render provider response did not include a clip id")
        logger.info("Clip created with id %s", clip_id)
        return clip_id

    def poll(self, provider_job_id: str) -> RenderStatus:
        response = self._client.get(
            f"{self._base_url}/clips/{provider_job_id}",
            headers=self._headers,
            timeout=self._poll_timeout,
        )
        response.raise_for_status()
        data = response.json()
        raw = str(data.get("status", ""))
        if raw == "done":
            return RenderStatus(status="done", result_url=data.get("result_url"), raw_status=raw)
        if raw in ("error", "rejected"):
            error = data.get("error") or {}
            detail = error.get("message") if isinstance(error, dict) else str(error)
            return RenderStatus(status="error", error_detail=detail or None, raw_status=raw)
        if raw not in _PROCESSING_STATES:
            logger.debug("Unrecognised clip status %r treated as processing", raw)
        return RenderStatus(status="processing", raw_status=raw)
