"""Locate a subtopic record whatever its storage shape and write video URLs onto it.

A record id may be stored as a plain string or as an ObjectId, and the record
may be a top-level document or an element of a ``units``, ``children`` or
``subtopics`` array keyed by ``_id`` or ``id``. Nothing tells us which, so every
shape is tried from a fixed, ordered strategy table and the first match wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from bson import ObjectId
from pymongo.errors import ConnectionFailure, PyMongoError

from tutorcast.records.models import NOT_FOUND, SYSTEM_OF_RECORD, LookupResult, PersistResult
from tutorcast.records.store import DocumentStore, PersistTransportError
from tutorcast.records.system_of_record import SystemOfRecordClient

logger = logging.getLogger(__name__)

# Order is a compatibility contract: units first, then children, then subtopics.
CHILD_ARRAYS = ("units", "children", "subtopics")
COLLECTION_HINTS = ("unit", "topic")
SAMPLE_SIZE = 3

REMOTE_OBJECT_STORE = "remote_object_store"
PROVIDER_NATIVE = "provider_native"


@dataclass(frozen=True)
class UpdateStrategy:
    """One (filter, update target, label) row of the search table."""

    label: str
    filter: dict[str, Any]
    field_prefix: str = ""  # "units.$." for positional array updates

    def update(self, fields: dict[str, Any]) -> dict[str, Any]:
        return {"$set": {f"{self.field_prefix}{k}": v for k, v in fields.items()}}


def build_strategies(record_id: str) -> list[UpdateStrategy]:
    """Ordered strategies for the string form, then the ObjectId form if valid."""
    encodings: list[tuple[Any, str]] = [(record_id, "")]
    if ObjectId.is_valid(record_id):
        encodings.append((ObjectId(record_id), "_objectid"))

    strategies: list[UpdateStrategy] = []
    for value, suffix in encodings:
        for array in CHILD_ARRAYS:
            strategies.append(
                UpdateStrategy(f"nested_{array}{suffix}", {f"{array}._id": value}, f"{array}.$.")
            )
        for array in CHILD_ARRAYS:
            strategies.append(
                UpdateStrategy(f"nested_{array}_id_field{suffix}", {f"{array}.id": value}, f"{array}.$.")
            )
        strategies.append(UpdateStrategy(f"main_document{suffix}", {"_id": value}))
    return strategies


def video_fields(
    video_url: str, subtitle_url: str | None, now: datetime, stored_in: str = PROVIDER_NATIVE
) -> dict[str, Any]:
    """Fields written onto the record; a total overwrite, so retries converge."""
    fields: dict[str, Any] = {
        "aiVideoUrl": video_url,
        "aiSubtitleUrl": subtitle_url,
        "videoStorage": stored_in,
        "updatedAt": now,
    }
    if stored_in == REMOTE_OBJECT_STORE and ".com/" in video_url:
        fields["s3Path"] = video_url.split(".com/", 1)[1]
    return fields


def _summarize(doc: dict[str, Any]) -> dict[str, Any]:
    return {
        "_id": str(doc.get("_id")),
        "name": doc.get("name") or doc.get("subtopic") or "Unnamed",
        "hasUnits": bool(doc.get("units")),
        "hasChildren": bool(doc.get("children")),
        "hasSubtopics": bool(doc.get("subtopics")),
        "aiVideoUrl": doc.get("aiVideoUrl"),
    }


class RecordLocator:
    """Find-and-update over an ambiguous document shape."""

    def __init__(
        self,
        store: DocumentStore,
        system_of_record: SystemOfRecordClient | None = None,
        clock: Callable[[], datetime] | None = None,
        object_store_url: str | None = None,
    ):
        self._store = store
        self._system_of_record = system_of_record
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        # Public URL prefix of our own bucket, e.g. https://bucket.s3.region.amazonaws.com/
        self._object_store_url = object_store_url

    def storage_for(self, video_url: str) -> str:
        """Storage tag for a URL whose origin the caller does not know."""
        if self._object_store_url and video_url.startswith(self._object_store_url):
            return REMOTE_OBJECT_STORE
        return PROVIDER_NATIVE

    def resolve_collection(self, dbname: str, collection_name: str | None) -> str | None:
        """Use the given collection, else the first likely-looking one in the database."""
        if collection_name and collection_name.strip():
            return collection_name
        names = self._store.collection_names(dbname)
        logger.info("Available collections in %s: %s", dbname, names)
        for name in names:
            if any(hint in name.lower() for hint in COLLECTION_HINTS):
                logger.info("Using likely collection: %s", name)
                return name
        if names:
            logger.info("Using first available collection: %s", names[0])
            return names[0]
        return None

    def persist(
        self,
        video_url: str,
        subtitle_url: str | None,
        record_id: str,
        dbname: str,
        collection_name: str | None,
        *,
        parent_id: str | None = None,
        root_id: str | None = None,
        stored_in: str | None = None,
    ) -> PersistResult:
        logger.info("Saving video for record %s in %s/%s", record_id, dbname, collection_name)
        try:
            target = self.resolve_collection(dbname, collection_name)
        except PersistTransportError as e:
            logger.warning("Document store unavailable: %s", e)
            return PersistResult(message=f"Database save failed: {e}")
        if target is None:
            return PersistResult(message="No collections found in database")

        if self._system_of_record is not None:
            confirmed = self._system_of_record.update_video(
                record_id=record_id,
                video_url=video_url,
                subtitle_url=subtitle_url,
                dbname=dbname,
                collection=target,
                parent_id=parent_id,
                root_id=root_id,
            )
            if confirmed:
                return PersistResult(
                    success=True,
                    method=SYSTEM_OF_RECORD,
                    collection=target,
                    message="Video URL saved via system of record",
                )

        collection = self._store.collection(dbname, target)
        fields = video_fields(
            video_url, subtitle_url, self._clock(), stored_in or self.storage_for(video_url)
        )
        for strategy in build_strategies(record_id):
            try:
                result = collection.update_one(strategy.filter, strategy.update(fields))
            except ConnectionFailure as e:
                # Unreachable server; stop the scan.
                logger.warning("Document store unavailable during %s: %s", strategy.label, e)
                return PersistResult(collection=target, message=f"Database save failed: {e}")
            except PyMongoError as e:
                logger.warning("Strategy %s failed: %s", strategy.label, e)
                continue
            logger.info(
                "Strategy %s: matched %d, modified %d",
                strategy.label, result.matched_count, result.modified_count,
            )
            if result.matched_count > 0:
                return PersistResult(
                    success=True,
                    method=strategy.label,
                    collection=target,
                    message=f"Video URL saved ({strategy.label})",
                    matched_count=result.matched_count,
                    modified_count=result.modified_count,
                )

        logger.warning("All update strategies missed record %s", record_id)
        return PersistResult(
            method=NOT_FOUND,
            collection=target,
            message="Subtopic not found in database with any update method",
            object_id_valid=ObjectId.is_valid(record_id),
            sample_documents=self._sample(collection),
        )

    def _sample(self, collection) -> list[dict[str, Any]]:
        try:
            return [_summarize(doc) for doc in collection.find({}, limit=SAMPLE_SIZE)]
        except PyMongoError as e:
            logger.warning("Could not sample collection: %s", e)
            return []

    def find(self, record_id: str, dbname: str, collection_name: str | None = None) -> LookupResult:
        """Read-only lookup; scans every collection when none is given."""
        if collection_name and collection_name.strip():
            names = [collection_name]
        else:
            names = self._store.collection_names(dbname)

        strategies = build_strategies(record_id)
        tried = [s.label for s in strategies]
        for name in names:
            collection = self._store.collection(dbname, name)
            for strategy in strategies:
                try:
                    doc = collection.find_one(strategy.filter)
                except ConnectionFailure as e:
                    raise PersistTransportError(f"Lookup in {name} failed: {e}") from e
                except PyMongoError as e:
                    logger.warning("Lookup %s in %s failed: %s", strategy.label, name, e)
                    continue
                if doc:
                    return LookupResult(
                        found=True,
                        method=strategy.label,
                        collection=name,
                        record_id=record_id,
                        document=_summarize(doc),
                        strategies_tried=tried,
                    )
        return LookupResult(
            record_id=record_id,
            collection=collection_name,
            strategies_tried=tried,
        )
