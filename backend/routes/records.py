"""Record persistence routes: direct upload+save, URL update, lookup, S3 info."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from backend.deps import get_services
from tutorcast.records import LookupResult, PersistTransportError
from tutorcast.services import Services
from tutorcast.storage import UploadFailed

logger = logging.getLogger(__name__)
router = APIRouter()


class UploadAndSaveRequest(BaseModel):
    videoUrl: Optional[str] = None
    subtopic: str = ""
    subtopicId: Optional[str] = None
    parentId: Optional[str] = None
    rootId: Optional[str] = None
    dbname: str = "professional"
    subjectName: Optional[str] = None


class UpdateVideoRequest(BaseModel):
    subtopicId: Optional[str] = None
    parentId: Optional[str] = None
    aiVideoUrl: Optional[str] = None
    aiSubtitleUrl: Optional[str] = None
    dbname: str = "professional"
    subjectName: Optional[str] = None


@router.post("/upload-to-s3-and-save")
def upload_to_s3_and_save(body: UploadAndSaveRequest, services: Services = Depends(get_services)):
    """Copy an existing video to S3 and save it onto its subtopic."""
    if not body.videoUrl:
        raise HTTPException(status_code=400, detail="Missing videoUrl parameter")
    if not body.subtopicId:
        raise HTTPException(status_code=400, detail="Missing subtopicId parameter")

    try:
        result = services.orchestrator.persist_existing_video(
            body.videoUrl,
            body.subtopic,
            body.subtopicId,
            body.dbname,
            body.subjectName,
            parent_id=body.parentId,
            root_id=body.rootId,
        )
    except UploadFailed as e:
        logger.error("Direct upload failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "success": True,
        "message": (
            "Video uploaded to S3 and saved to database"
            if result.database_updated
            else "Video uploaded to S3 but database save failed"
        ),
        **result.model_dump(mode="json"),
    }


@router.put("/updateSubtopicVideo")
def update_subtopic_video(body: UpdateVideoRequest, services: Services = Depends(get_services)):
    """Save an already hosted video URL onto a subtopic."""
    if not body.subtopicId or not body.aiVideoUrl:
        raise HTTPException(status_code=400, detail="Missing subtopicId or aiVideoUrl")

    result = services.orchestrator.update_record_video(
        body.aiVideoUrl,
        body.subtopicId,
        body.dbname,
        body.subjectName,
        subtitle_url=body.aiSubtitleUrl,
        parent_id=body.parentId,
    )
    return {
        "status": "ok",
        "updated": result.success,
        "message": result.message,
        "location": result.method,
        "collection": result.collection,
    }


@router.get("/find-subtopic/{subtopic_id}", response_model=LookupResult)
def find_subtopic(
    subtopic_id: str,
    dbname: str = "professional",
    subjectName: Optional[str] = None,
    services: Services = Depends(get_services),
):
    """Report where (if anywhere) a subtopic id is stored."""
    try:
        return services.locator.find(subtopic_id, dbname, subjectName)
    except PersistTransportError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get("/debug-s3")
def debug_s3(services: Services = Depends(get_services)):
    """Show the S3 bucket layout in use."""
    settings = services.settings
    return {
        **services.uploader.describe(),
        "hasAccessKey": bool(settings.aws_access_key_id),
        "hasSecretKey": bool(settings.aws_secret_access_key),
    }
