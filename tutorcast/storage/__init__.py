"""Durable media storage (S3)."""

from tutorcast.storage.blob import (
    EmptyPayload,
    S3BlobUploader,
    UploadFailed,
    subtitle_filename,
    video_filename,
)

__all__ = [
    "EmptyPayload",
    "S3BlobUploader",
    "UploadFailed",
    "subtitle_filename",
    "video_filename",
]
