"""Video generation jobs: model, registry and pipeline orchestration."""

from tutorcast.jobs.models import (
    GenerationRequest,
    JobResult,
    JobStatus,
    QuizQuestion,
    VideoJob,
    new_job_id,
)
from tutorcast.jobs.orchestrator import DirectPersistResult, JobOrchestrator, ValidationError
from tutorcast.jobs.registry import JobRegistry

__all__ = [
    "DirectPersistResult",
    "GenerationRequest",
    "JobOrchestrator",
    "JobRegistry",
    "JobResult",
    "JobStatus",
    "QuizQuestion",
    "ValidationError",
    "VideoJob",
    "new_job_id",
]
