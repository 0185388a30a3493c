"""Video generation API: async job with status polling.

POST /generate-and-upload
  → Creates a VideoJob, returns { job_id, status } immediately.
  → The pipeline runs on the orchestrator's worker pool.

GET /api/job-status/{job_id}
  → Returns status, progress, elapsed time and the result once finished.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from backend.deps import get_services
from tutorcast.config import DEFAULT_PRESENTER_ID
from tutorcast.jobs import GenerationRequest, QuizQuestion, ValidationError
from tutorcast.services import Services

logger = logging.getLogger(__name__)
router = APIRouter()


class GenerateVideoRequest(BaseModel):
    """Body of POST /generate-and-upload (field names follow the frontend)."""

    subtopic: Optional[str] = None
    description: Optional[str] = None
    questions: list[QuizQuestion] = Field(default_factory=list)
    presenter_id: str = DEFAULT_PRESENTER_ID
    subtopicId: Optional[str] = None
    parentId: Optional[str] = None
    rootId: Optional[str] = None
    dbname: str = "professional"
    subjectName: Optional[str] = None


class GenerateVideoResponse(BaseModel):
    success: bool = True
    status: str = "processing"
    message: str = "AI video generation started"
    job_id: str
    subtopic: str
    estimated_time: str = "2-3 minutes"
    check_status: str = ""


@router.post(
    "/generate-and-upload",
    response_model=GenerateVideoResponse,
    summary="Start video generation (async)",
    description="Creates a job and returns immediately. Poll GET /api/job-status/{job_id}.",
)
async def generate_and_upload(
    body: GenerateVideoRequest,
    services: Services = Depends(get_services),
):
    """Start async generation, returns job_id for polling."""
    request = GenerationRequest(
        subtopic=body.subtopic or "",
        description=body.description or "",
        questions=body.questions,
        presenter_id=body.presenter_id,
        subtopic_id=body.subtopicId,
        parent_id=body.parentId,
        root_id=body.rootId,
        dbname=body.dbname,
        subject_name=body.subjectName,
    )
    try:
        job = services.orchestrator.start(request)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return GenerateVideoResponse(
        job_id=job.job_id,
        subtopic=request.subtopic,
        check_status=f"GET /api/job-status/{job.job_id}",
    )


@router.get(
    "/api/job-status/{job_id}",
    summary="Get video job status",
    description="Finished jobs are purged on the first query after the retention window.",
)
async def get_job_status(job_id: str, services: Services = Depends(get_services)) -> dict[str, Any]:
    snapshot = services.registry.snapshot(job_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail=f"Job not found: {job_id}")
    job, elapsed = snapshot
    return {"success": True, **job.to_status_payload(), "elapsed_seconds": elapsed}


@router.get("/api/jobs", summary="List tracked jobs")
async def list_jobs(services: Services = Depends(get_services)) -> dict[str, Any]:
    jobs = [job.to_status_payload() for job in services.registry.list_jobs()]
    return {"success": True, "total": len(jobs), "jobs": jobs}
