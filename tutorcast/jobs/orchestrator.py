"""Video generation pipeline: render → upload → subtitles → persist.

``start`` registers the job and returns at once; the pipeline itself runs on a
worker thread. Only the render step decides between ``completed`` and
``failed``. Upload, subtitle and database problems are recorded on the result
and the job still completes.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel

from tutorcast.jobs.models import GenerationRequest, JobResult, JobStatus, VideoJob
from tutorcast.jobs.registry import JobRegistry
from tutorcast.records import PROVIDER_NATIVE, REMOTE_OBJECT_STORE, PersistResult, RecordLocator
from tutorcast.render import (
    RenderProvider,
    RenderStatus,
    build_narration,
    get_voice_for_presenter,
    wait_for_render,
)
from tutorcast.storage import S3BlobUploader, UploadFailed, subtitle_filename, video_filename
from tutorcast.subtitles import build_caption_file

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Raised when a generation request is missing required fields."""


class DirectPersistResult(BaseModel):
    """Outcome of uploading an existing video and saving it to its record."""

    s3_url: str
    stored_in: str = REMOTE_OBJECT_STORE
    database_updated: bool = False
    update_method: str = "failed"
    database_result: PersistResult | None = None
    filename: str = ""
    subtopic_id: str = ""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobOrchestrator:
    """Accepts generation requests and drives each one to a terminal state."""

    def __init__(
        self,
        registry: JobRegistry,
        render_provider: RenderProvider,
        uploader: S3BlobUploader,
        locator: RecordLocator,
        *,
        poll_interval: float = 3.0,
        max_polls: int = 60,
        max_workers: int = 8,
        executor: ThreadPoolExecutor | None = None,
    ):
        self.registry = registry
        self._render = render_provider
        self._uploader = uploader
        self._locator = locator
        self._poll_interval = poll_interval
        self._max_polls = max_polls
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="tutorcast-job"
        )
        self._futures: dict[str, Future] = {}

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def start(self, request: GenerationRequest) -> VideoJob:
        """Register a job and spawn its pipeline without waiting for it."""
        if not request.subtopic.strip() or not request.description.strip():
            raise ValidationError("Missing required fields: subtopic and description")

        job = self.registry.create(VideoJob(request=request))
        logger.info("Created job %s for subtopic: %s", job.job_id, request.subtopic)
        future = self._executor.submit(self._run_safely, job.job_id)
        self._futures[job.job_id] = future
        future.add_done_callback(lambda _f, job_id=job.job_id: self._futures.pop(job_id, None))
        return job

    def join(self, job_id: str, timeout: float | None = None) -> VideoJob | None:
        """Wait for a job's pipeline to return (CLI and tests)."""
        future = self._futures.get(job_id)
        if future is not None:
            future.result(timeout=timeout)
        return self.registry.get(job_id)

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)

    def persist_existing_video(
        self,
        video_url: str,
        subtopic: str,
        record_id: str,
        dbname: str,
        subject_name: str | None,
        *,
        parent_id: str | None = None,
        root_id: str | None = None,
    ) -> DirectPersistResult:
        """Copy an already rendered video to S3 and save it. UploadFailed propagates."""
        filename = video_filename(subtopic)
        s3_url = self._uploader.upload_video(video_url, filename)
        result = self._locator.persist(
            s3_url, None, record_id, dbname, subject_name,
            parent_id=parent_id, root_id=root_id, stored_in=REMOTE_OBJECT_STORE,
        )
        return DirectPersistResult(
            s3_url=s3_url,
            database_updated=result.success,
            update_method=result.method if result.success else "failed",
            database_result=result,
            filename=filename,
            subtopic_id=record_id,
        )

    def update_record_video(
        self,
        video_url: str,
        record_id: str,
        dbname: str,
        subject_name: str | None,
        *,
        subtitle_url: str | None = None,
        parent_id: str | None = None,
    ) -> PersistResult:
        """Save a video URL onto its record without touching S3."""
        return self._locator.persist(
            video_url, subtitle_url, record_id, dbname, subject_name, parent_id=parent_id,
        )

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _update(self, job_id: str, **changes: Any) -> VideoJob | None:
        current = self.registry.get(job_id)
        if current is None:
            return None
        job = current.model_copy(update=changes)
        self.registry.replace(job)
        return job

    def _fail(self, job_id: str, message: str) -> None:
        self._update(
            job_id,
            status=JobStatus.FAILED,
            progress="Failed",
            error=message[:500],
            failed_at=_utcnow(),
        )

    def _run_safely(self, job_id: str) -> None:
        """Error boundary: nothing escapes the worker thread."""
        try:
            self._run(job_id)
        except Exception as e:
            logger.exception("Job %s crashed", job_id)
            self._fail(job_id, str(e) or e.__class__.__name__)

    def _run(self, job_id: str) -> None:
        job = self.registry.get(job_id)
        if job is None or job.status.is_terminal:
            return
        request = job.request

        # --- Render ---------------------------------------------------------
        script = build_narration(request.description, request.questions)
        voice = get_voice_for_presenter(request.presenter_id)
        try:
            self._update(job_id, progress="Calling render provider...")
            clip_id = self._render.submit(script, request.presenter_id, voice)
            self._update(job_id, progress="Video rendering...", provider_job_id=clip_id)

            def on_poll(attempt: int, budget: int, status: RenderStatus) -> None:
                self._update(
                    job_id,
                    progress=f"Processing... ({attempt}/{budget})",
                    provider_status=status.raw_status or status.status,
                )

            provider_url = wait_for_render(
                self._render,
                clip_id,
                poll_interval=self._poll_interval,
                max_polls=self._max_polls,
                on_poll=on_poll,
            )
        except Exception as e:
            logger.error("Video generation failed for job %s: %s", job_id, e)
            self._fail(job_id, str(e) or e.__class__.__name__)
            return
        logger.info("Job %s rendered: %s", job_id, provider_url)

        # --- Upload (non-fatal) --------------------------------------------
        self._update(job_id, progress="Uploading to object storage...")
        upload_error: str | None = None
        try:
            video_url = self._uploader.upload_video(provider_url, video_filename(request.subtopic))
            stored_in = REMOTE_OBJECT_STORE
        except UploadFailed as e:
            logger.warning("S3 upload failed for job %s, keeping provider URL: %s", job_id, e)
            video_url = provider_url
            stored_in = PROVIDER_NATIVE
            upload_error = str(e)

        # --- Subtitles (non-fatal) -----------------------------------------
        self._update(job_id, progress="Generating subtitles...")
        subtitle_url: str | None = None
        try:
            captions = build_caption_file(script)
            subtitle_url = self._uploader.upload_text(captions, subtitle_filename(request.subtopic))
        except Exception as e:
            logger.warning("Subtitle generation failed (non-fatal): %s", e)

        # --- Persist (non-fatal) -------------------------------------------
        persist_result: PersistResult | None = None
        note: str | None = None
        if request.subtopic_id:
            self._update(job_id, progress="Saving to database...")
            persist_result = self._locator.persist(
                video_url,
                subtitle_url,
                request.subtopic_id,
                request.dbname,
                request.subject_name,
                parent_id=request.parent_id,
                root_id=request.root_id,
                stored_in=stored_in,
            )
            logger.info("Database save result for job %s: %s", job_id, persist_result.method)
        else:
            note = "No subtopicId provided"

        result = JobResult(
            video_url=video_url,
            subtitle_url=subtitle_url,
            has_subtitles=subtitle_url is not None,
            stored_in=stored_in,
            database_updated=bool(persist_result and persist_result.success and upload_error is None),
            update_method=persist_result.method if persist_result else None,
            collection=persist_result.collection if persist_result else None,
            database_result=persist_result,
            upload_error=upload_error,
            note=note,
            questions=len(request.questions),
            presenter=request.presenter_id,
        )
        self._update(
            job_id,
            status=JobStatus.COMPLETED,
            progress="Done",
            result=result,
            error="S3 upload failed, using provider URL" if upload_error else None,
            completed_at=_utcnow(),
        )
        logger.info("Job %s completed (%s)", job_id, stored_in)
