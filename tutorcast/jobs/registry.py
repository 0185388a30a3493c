"""Process-wide job table with lazy expiry of finished jobs."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone

from tutorcast.jobs.models import VideoJob

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_SECONDS = 3600


class JobRegistry:
    """
    Thread-safe map of job_id -> VideoJob.

    Writes replace the whole job value. A finished job is never overwritten;
    it stays until the first status query after the retention window.
    """

    def __init__(self, retention_seconds: int = DEFAULT_RETENTION_SECONDS):
        self._jobs: dict[str, VideoJob] = {}
        self._lock = threading.Lock()
        self.retention_seconds = retention_seconds

    def create(self, job: VideoJob) -> VideoJob:
        with self._lock:
            if job.job_id in self._jobs:
                raise ValueError(f"Job id already registered: {job.job_id}")
            self._jobs[job.job_id] = job
        return job

    def get(self, job_id: str) -> VideoJob | None:
        with self._lock:
            return self._jobs.get(job_id)

    def replace(self, job: VideoJob) -> bool:
        """Store job as the new value; refused once the current value is terminal."""
        with self._lock:
            current = self._jobs.get(job.job_id)
            if current is None:
                logger.warning("Ignoring update for unknown or purged job %s", job.job_id)
                return False
            if current.status.is_terminal:
                logger.warning(
                    "Ignoring update for finished job %s (%s)", job.job_id, current.status.value
                )
                return False
            self._jobs[job.job_id] = job
            return True

    def snapshot(self, job_id: str, now: datetime | None = None) -> tuple[VideoJob, int] | None:
        """
        Return (job, elapsed_seconds) and purge the job if it is finished and
        older than the retention window. The purged job is still returned once.
        """
        now = now or datetime.now(timezone.utc)
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None
            elapsed = int((now - job.created_at).total_seconds())
            if job.status.is_terminal and elapsed > self.retention_seconds:
                del self._jobs[job_id]
                logger.info("Purged finished job %s after %ds", job_id, elapsed)
        return job, elapsed

    def list_jobs(self) -> list[VideoJob]:
        with self._lock:
            return list(self._jobs.values())
