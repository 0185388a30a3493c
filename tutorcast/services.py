"""Build every collaborator once at process start."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tutorcast.config import Settings
from tutorcast.jobs import JobOrchestrator, JobRegistry
from tutorcast.records import MongoDocumentStore, RecordLocator, SystemOfRecordClient
from tutorcast.render import get_render_provider
from tutorcast.storage import S3BlobUploader

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    registry: JobRegistry
    orchestrator: JobOrchestrator
    locator: RecordLocator
    uploader: S3BlobUploader


def build_services(settings: Settings) -> Services:
    """Wire registry, render provider, S3, MongoDB and the orchestrator."""
    missing = settings.missing_required()
    if missing:
        logger.error("Missing required environment variables: %s", ", ".join(missing))

    registry = JobRegistry(retention_seconds=settings.job_retention_seconds)
    uploader = S3BlobUploader(
        bucket=settings.s3_bucket_name or "",
        region=settings.aws_region,
        prefix=settings.s3_folder_path,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
    )
    system_of_record = None
    if settings.system_of_record_url:
        system_of_record = SystemOfRecordClient(settings.system_of_record_url)
        logger.info("System of record enabled at %s", settings.system_of_record_url)
    locator = RecordLocator(
        MongoDocumentStore(settings.mongo_uri),
        system_of_record,
        object_store_url=uploader.public_url(uploader.prefix),
    )
    orchestrator = JobOrchestrator(
        registry,
        get_render_provider(settings.did_api_key, settings.did_api_url),
        uploader,
        locator,
        poll_interval=settings.render_poll_interval,
        max_polls=settings.render_max_polls,
        max_workers=settings.tutorcast_max_workers,
    )
    return Services(
        settings=settings,
        registry=registry,
        orchestrator=orchestrator,
        locator=locator,
        uploader=uploader,
    )
