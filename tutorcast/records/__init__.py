"""Subtopic record persistence: locate the record, write the video URLs."""

from tutorcast.records.locator import (
    CHILD_ARRAYS,
    PROVIDER_NATIVE,
    REMOTE_OBJECT_STORE,
    RecordLocator,
    UpdateStrategy,
    build_strategies,
    video_fields,
)
from tutorcast.records.models import NOT_FOUND, SYSTEM_OF_RECORD, LookupResult, PersistResult
from tutorcast.records.store import DocumentStore, MongoDocumentStore, PersistTransportError
from tutorcast.records.system_of_record import SystemOfRecordClient

__all__ = [
    "CHILD_ARRAYS",
    "DocumentStore",
    "LookupResult",
    "MongoDocumentStore",
    "NOT_FOUND",
    "PROVIDER_NATIVE",
    "PersistResult",
    "PersistTransportError",
    "REMOTE_OBJECT_STORE",
    "RecordLocator",
    "SYSTEM_OF_RECORD",
    "SystemOfRecordClient",
    "UpdateStrategy",
    "build_strategies",
    "video_fields",
]
