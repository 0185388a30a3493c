"""Copy rendered videos and caption files into S3 and build their public URLs."""

from __future__ import annotations

import logging
import re
import time
from datetime import datetime, timezone
from typing import Any

import boto3
import httpx
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "subtopics/ai_videourl/"
DOWNLOAD_TIMEOUT = 120.0


class UploadFailed(Exception):
    """Raised when a payload could not be fetched or written to the blob store."""


class EmptyPayload(UploadFailed):
    """Raised when the downloaded video has zero bytes."""


def _safe_name(subtopic: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", subtopic or "")[:50]


def video_filename(subtopic: str) -> str:
    return f"video_{_safe_name(subtopic)}_{int(time.time() * 1000)}.mp4"


def subtitle_filename(subtopic: str) -> str:
    return f"subtitles_{_safe_name(subtopic)}_{int(time.time() * 1000)}.vtt"


class S3BlobUploader:
    """Put-object uploads under a fixed key prefix of one bucket."""

    def __init__(
        self,
        bucket: str,
        region: str,
        prefix: str = DEFAULT_PREFIX,
        *,
        s3_client: Any | None = None,
        http_client: httpx.Client | None = None,
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
    ):
        self.bucket = bucket
        self.region = region
        self.prefix = prefix if prefix.endswith("/") else prefix + "/"
        if s3_client is None:
            s3_client = boto3.client(
                "s3",
                region_name=region,
                aws_access_key_id=aws_access_key_id,
                aws_secret_access_key=aws_secret_access_key,
            )
        self._s3 = s3_client
        self._http = http_client or httpx.Client(follow_redirects=True)

    def key_for(self, filename: str) -> str:
        return f"{self.prefix}{filename}"

    def public_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def describe(self) -> dict[str, Any]:
        """Bucket layout summary for operators."""
        return {
            "bucket": self.bucket,
            "region": self.region,
            "folder": self.prefix,
            "example_url": self.public_url(self.key_for("filename.mp4")),
        }

    def _put(self, key: str, body: bytes, content_type: str, metadata: dict[str, str]) -> None:
        result = self._s3.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=body,
            ContentType=content_type,
            Metadata=metadata,
        )
        logger.info("Uploaded s3://%s/%s (ETag %s)", self.bucket, key, result.get("ETag"))

    def upload_video(self, remote_url: str, filename: str) -> str:
        """Download remote_url into memory and store it as video/mp4."""
        key = self.key_for(filename)
        try:
            response = self._http.get(
                remote_url,
                timeout=DOWNLOAD_TIMEOUT,
                headers={"Accept": "video/mp4"},
            )
            response.raise_for_status()
            body = response.content
            logger.info("Downloaded %d bytes from %s", len(body), remote_url)
            if not body:
                raise EmptyPayload("Downloaded video is empty")
            self._put(
                key,
                body,
                "video/mp4",
                {
                    "source": "render-provider-video",
                    "uploaded-at": datetime.now(timezone.utc).isoformat(),
                    "original-url": remote_url,
                },
            )
        except EmptyPayload:
            raise
        except (httpx.HTTPError, ClientError, BotoCoreError) as e:
            raise UploadFailed(f"S3 upload failed: {e}") from e
        return self.public_url(key)

    def upload_text(self, content: str, filename: str) -> str:
        """Store a WebVTT caption file."""
        key = self.key_for(filename)
        try:
            self._put(
                key,
                content.encode("utf-8"),
                "text/vtt",
                {
                    "source": "tutorcast-subtitles",
                    "uploaded-at": datetime.now(timezone.utc).isoformat(),
                },
            )
        except (ClientError, BotoCoreError) as e:
            raise UploadFailed(f"S3 upload failed: {e}") from e
        return self.public_url(key)
