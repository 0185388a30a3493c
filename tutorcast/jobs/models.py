"""Video generation job schema and status."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tutorcast.config import DEFAULT_PRESENTER_ID
from tutorcast.records.models import PersistResult


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_job_id() -> str:
    return f"job_{uuid.uuid4().hex[:16]}"


class JobStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not JobStatus.PROCESSING


class QuizQuestion(BaseModel):
    question: str
    answer: str


class GenerationRequest(BaseModel):
    """What the caller asked for, captured at job creation, never changed."""

    model_config = ConfigDict(frozen=True)

    subtopic: str = ""
    description: str = ""
    questions: list[QuizQuestion] = Field(default_factory=list)
    presenter_id: str = DEFAULT_PRESENTER_ID
    subtopic_id: str | None = None
    parent_id: str | None = None
    root_id: str | None = None
    dbname: str = "professional"
    subject_name: str | None = None


class JobResult(BaseModel):
    """Outcome of a finished pipeline run."""

    video_url: str | None = None
    subtitle_url: str | None = None
    has_subtitles: bool = False
    stored_in: str | None = None
    database_updated: bool = False
    update_method: str | None = None
    collection: str | None = None
    database_result: PersistResult | None = None
    upload_error: str | None = None
    note: str | None = None
    questions: int = 0
    presenter: str = ""


class VideoJob(BaseModel):
    """One asynchronous render → upload → subtitle → persist run."""

    job_id: str = Field(default_factory=new_job_id)
    status: JobStatus = JobStatus.PROCESSING
    progress: str = "Starting video generation..."
    request: GenerationRequest
    provider_job_id: str | None = None
    provider_status: str | None = None
    result: JobResult | None = None
    error: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    completed_at: datetime | None = None
    failed_at: datetime | None = None

    def to_status_payload(self) -> dict[str, Any]:
        """Flat JSON view used by the status endpoints."""
        payload: dict[str, Any] = {
            "job_id": self.job_id,
            "status": self.status.value,
            "progress": self.progress,
            "subtopic": self.request.subtopic,
            "subtopicId": self.request.subtopic_id,
            "dbname": self.request.dbname,
            "subjectName": self.request.subject_name,
            "presenter": self.request.presenter_id,
            "questions": len(self.request.questions),
            "clipId": self.provider_job_id,
            "currentStatus": self.provider_status,
            "error": self.error,
            "startedAt": self.created_at.isoformat(),
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "failedAt": self.failed_at.isoformat() if self.failed_at else None,
        }
        if self.result is not None:
            result = self.result.model_dump(mode="json")
            payload.update(
                {
                    "videoUrl": result["video_url"],
                    "subtitleUrl": result["subtitle_url"],
                    "hasSubtitles": result["has_subtitles"],
                    "storedIn": result["stored_in"],
                    "databaseUpdated": result["database_updated"],
                    "updateMethod": result["update_method"],
                    "collection": result["collection"],
                    "databaseResult": result["database_result"],
                    "uploadError": result["upload_error"],
                    "note": result["note"],
                }
            )
        return payload
