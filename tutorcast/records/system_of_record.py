"""Optional upstream service that owns subtopic records."""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)


class SystemOfRecordClient:
    """Offers video URL updates to the system-of-record HTTP API."""

    def __init__(self, base_url: str, timeout: float = 10.0, client: httpx.Client | None = None):
        self._url = base_url.rstrip("/") + "/api/updateSubtopicVideo"
        self._timeout = timeout
        self._client = client or httpx.Client()

    def update_video(
        self,
        *,
        record_id: str,
        video_url: str,
        subtitle_url: str | None,
        dbname: str,
        collection: str,
        parent_id: str | None = None,
        root_id: str | None = None,
    ) -> bool:
        """True only when the service confirms the write."""
        payload = {
            "subtopicId": record_id,
            "aiVideoUrl": video_url,
            "aiSubtitleUrl": subtitle_url,
            "dbname": dbname,
            "subjectName": collection,
            "parentId": parent_id,
            "rootId": root_id,
        }
        try:
            response = self._client.put(
                self._url,
                json=payload,
                headers={"Accept": "application/json"},
                timeout=self._timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("System of record update failed, falling back to direct write: %s", e)
            return False
        logger.info("System of record response: %s", data)
        return bool(isinstance(data, dict) and data.get("updated"))
