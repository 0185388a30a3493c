"""Tests for finding subtopic records and writing video URLs onto them."""

import json

import httpx
import pytest
from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError

from tutorcast.records import (
    NOT_FOUND,
    PROVIDER_NATIVE,
    REMOTE_OBJECT_STORE,
    SYSTEM_OF_RECORD,
    PersistTransportError,
    RecordLocator,
    SystemOfRecordClient,
    build_strategies,
    video_fields,
)

from conftest import FIXED_NOW, PROVIDER_URL, FakeCollection, FakeDocumentStore

S3_URL = "https://lesson-media.s3.ap-south-1.amazonaws.com/subtopics/ai_videourl/video_Fractions_1.mp4"
VTT_URL = "https://lesson-media.s3.ap-south-1.amazonaws.com/subtopics/ai_videourl/subtitles_Fractions_1.vtt"
OID = "65a1b2c3d4e5f60718293a4b"


def _locator(collections, clock=lambda: FIXED_NOW, **kwargs):
    return RecordLocator(FakeDocumentStore(collections), clock=clock, **kwargs)


# ---------------------------------------------------------------------------
# Strategy table
# ---------------------------------------------------------------------------

def test_strategy_order_for_plain_id():
    labels = [s.label for s in build_strategies("sub-1")]
    assert labels == [
        "nested_units",
        "nested_children",
        "nested_subtopics",
        "nested_units_id_field",
        "nested_children_id_field",
        "nested_subtopics_id_field",
        "main_document",
    ]


def test_object_id_strategies_follow_string_ones():
    strategies = build_strategies(OID)
    labels = [s.label for s in strategies]
    assert len(labels) == 14
    assert labels[6] == "main_document"
    assert labels[7] == "nested_units_objectid"
    assert labels[-1] == "main_document_objectid"
    assert strategies[-1].filter == {"_id": ObjectId(OID)}


def test_nested_update_is_positional():
    strategy = build_strategies("sub-1")[1]
    assert strategy.update({"aiVideoUrl": "u"}) == {"$set": {"children.$.aiVideoUrl": "u"}}


def test_video_fields_for_object_store_url():
    fields = video_fields(S3_URL, VTT_URL, FIXED_NOW, REMOTE_OBJECT_STORE)
    assert fields["videoStorage"] == "remote_object_store"
    assert fields["s3Path"] == "subtopics/ai_videourl/video_Fractions_1.mp4"
    assert fields["aiSubtitleUrl"] == VTT_URL
    assert fields["updatedAt"] == FIXED_NOW


def test_video_fields_for_provider_url():
    fields = video_fields("https://cdn.example.com/clip.mp4", None, FIXED_NOW)
    assert fields["videoStorage"] == "provider_native"
    assert "s3Path" not in fields
    assert fields["aiSubtitleUrl"] is None


def test_video_fields_for_provider_url_hosted_on_s3():
    fields = video_fields(PROVIDER_URL, None, FIXED_NOW, PROVIDER_NATIVE)
    assert fields["videoStorage"] == "provider_native"
    assert "s3Path" not in fields


def test_storage_for_only_trusts_our_bucket(locator):
    assert locator.storage_for(S3_URL) == REMOTE_OBJECT_STORE
    assert locator.storage_for(PROVIDER_URL) == PROVIDER_NATIVE
    assert RecordLocator(FakeDocumentStore()).storage_for(S3_URL) == PROVIDER_NATIVE


# ---------------------------------------------------------------------------
# Persist
# ---------------------------------------------------------------------------

def test_persist_top_level_document(locator, subtopic_collection):
    result = locator.persist(S3_URL, VTT_URL, "sub-fractions", "professional", "maths")

    assert result.success
    assert result.method == "main_document"
    assert result.collection == "maths"
    assert result.matched_count == 1
    doc = subtopic_collection.docs[0]
    assert doc["aiVideoUrl"] == S3_URL
    assert doc["aiSubtitleUrl"] == VTT_URL
    assert doc["videoStorage"] == "remote_object_store"


def test_persist_nested_children_element():
    topic = {"_id": "topic-1", "children": [{"_id": "sub-0"}, {"_id": "sub-1", "name": "Halves"}]}
    collection = FakeCollection([topic])
    result = _locator({"maths": collection}).persist(S3_URL, None, "sub-1", "professional", "maths")

    assert result.success
    assert result.method == "nested_children"
    assert topic["children"][1]["aiVideoUrl"] == S3_URL
    assert "aiVideoUrl" not in topic["children"][0]
    assert "aiVideoUrl" not in topic
    # units was tried and missed first
    assert collection.update_filters[0] == {"units._id": "sub-1"}


def test_persist_nested_units_wins_over_children():
    doc = {"_id": "t", "units": [{"_id": "sub-1"}], "children": [{"_id": "sub-1"}]}
    result = _locator({"maths": FakeCollection([doc])}).persist(S3_URL, None, "sub-1", "db", "maths")
    assert result.method == "nested_units"
    assert "aiVideoUrl" not in doc["children"][0]


def test_persist_nested_id_field():
    doc = {"_id": "t", "subtopics": [{"id": "sub-9"}]}
    result = _locator({"maths": FakeCollection([doc])}).persist(S3_URL, None, "sub-9", "db", "maths")
    assert result.method == "nested_subtopics_id_field"
    assert doc["subtopics"][0]["aiVideoUrl"] == S3_URL


def test_persist_object_id_document():
    doc = {"_id": ObjectId(OID), "name": "Fractions"}
    result = _locator({"maths": FakeCollection([doc])}).persist(S3_URL, None, OID, "db", "maths")
    assert result.success
    assert result.method == "main_document_objectid"
    assert doc["aiVideoUrl"] == S3_URL


def test_persist_is_idempotent(locator):
    first = locator.persist(S3_URL, VTT_URL, "sub-fractions", "professional", "maths")
    second = locator.persist(S3_URL, VTT_URL, "sub-fractions", "professional", "maths")

    assert first.modified_count == 1
    assert second.success
    assert second.method == first.method
    assert second.matched_count == 1
    assert second.modified_count == 0


def test_persist_not_found_reports_diagnostics(locator):
    result = locator.persist(S3_URL, None, "missing-id", "professional", "maths")

    assert not result.success
    assert result.method == NOT_FOUND
    assert result.collection == "maths"
    assert result.object_id_valid is False
    assert result.sample_documents[0]["_id"] == "sub-fractions"
    assert result.sample_documents[0]["name"] == "Fractions"


def test_persist_not_found_tries_every_strategy():
    collection = FakeCollection([])
    _locator({"maths": collection}).persist(S3_URL, None, OID, "db", "maths")
    assert len(collection.update_filters) == 14


def test_persist_guesses_collection_from_hints():
    units = FakeCollection([{"_id": "sub-1"}])
    locator = _locator({"settings": FakeCollection(), "course_units": units})
    result = locator.persist(S3_URL, None, "sub-1", "db", None)
    assert result.success
    assert result.collection == "course_units"


def test_persist_falls_back_to_first_collection():
    locator = _locator({"lessons": FakeCollection([{"_id": "sub-1"}]), "misc": FakeCollection()})
    assert locator.persist(S3_URL, None, "sub-1", "db", "  ").collection == "lessons"


def test_persist_empty_database():
    result = _locator({}).persist(S3_URL, None, "sub-1", "db", None)
    assert not result.success
    assert result.message == "No collections found in database"


def test_persist_unreachable_store():
    locator = RecordLocator(FakeDocumentStore(unreachable=True))
    result = locator.persist(S3_URL, None, "sub-1", "db", None)
    assert not result.success
    assert "Database save failed" in result.message


# ---------------------------------------------------------------------------
# System of record
# ---------------------------------------------------------------------------

def _system_of_record(handler, seen=None):
    def wrapped(request):
        if seen is not None:
            seen.append(request)
        return handler(request)

    client = httpx.Client(transport=httpx.MockTransport(wrapped))
    return SystemOfRecordClient("http://records.internal/", client=client)


def test_system_of_record_confirmation_skips_direct_write(subtopic_collection):
    seen = []
    sor = _system_of_record(lambda r: httpx.Response(200, json={"updated": True}), seen)
    locator = _locator({"maths": subtopic_collection}, system_of_record=sor)

    result = locator.persist(S3_URL, VTT_URL, "sub-fractions", "professional", "maths", parent_id="topic-1")

    assert result.success
    assert result.method == SYSTEM_OF_RECORD
    assert subtopic_collection.update_filters == []
    assert str(seen[0].url) == "http://records.internal/api/updateSubtopicVideo"
    assert seen[0].method == "PUT"
    assert json.loads(seen[0].content)["parentId"] == "topic-1"


def test_system_of_record_decline_falls_back(subtopic_collection):
    sor = _system_of_record(lambda r: httpx.Response(200, json={"updated": False}))
    result = _locator({"maths": subtopic_collection}, system_of_record=sor).persist(
        S3_URL, None, "sub-fractions", "professional", "maths"
    )
    assert result.method == "main_document"


def test_system_of_record_error_falls_back(subtopic_collection):
    sor = _system_of_record(lambda r: httpx.Response(502, text="bad gateway"))
    result = _locator({"maths": subtopic_collection}, system_of_record=sor).persist(
        PROVIDER_URL, None, "sub-fractions", "professional", "maths"
    )
    assert result.success
    assert result.method == "main_document"


# ---------------------------------------------------------------------------
# Find
# ---------------------------------------------------------------------------

def test_find_in_named_collection(locator):
    result = locator.find("sub-fractions", "professional", "maths")
    assert result.found
    assert result.method == "main_document"
    assert result.document["name"] == "Fractions"


def test_find_scans_all_collections():
    topic = {"_id": "topic-1", "name": "Numbers", "units": [{"_id": "sub-1"}]}
    locator = _locator({"misc": FakeCollection(), "science": FakeCollection([topic])})
    result = locator.find("sub-1", "db")
    assert result.found
    assert result.collection == "science"
    assert result.method == "nested_units"
    assert result.document["hasUnits"] is True


def test_find_missing(locator):
    result = locator.find("nope", "professional")
    assert not result.found
    assert result.method == NOT_FOUND
    assert result.strategies_tried[0] == "nested_units"


# ---------------------------------------------------------------------------
# Unreachable server
# ---------------------------------------------------------------------------

class UnreachableCollection:
    def __init__(self):
        self.attempts = 0
        self.sampled = False

    def update_one(self, flt, update):
        self.attempts += 1
        raise ServerSelectionTimeoutError("localhost:27017: connection refused")

    def find_one(self, flt):
        self.attempts += 1
        raise ServerSelectionTimeoutError("localhost:27017: connection refused")

    def find(self, flt=None, limit=0):
        self.sampled = True
        raise ServerSelectionTimeoutError("localhost:27017: connection refused")


def test_persist_stops_at_first_connection_failure():
    collection = UnreachableCollection()
    result = _locator({"maths": collection}).persist(S3_URL, None, OID, "db", "maths")

    assert not result.success
    assert result.collection == "maths"
    assert "Database save failed" in result.message
    assert collection.attempts == 1
    assert collection.sampled is False


def test_find_raises_on_connection_failure():
    collection = UnreachableCollection()
    with pytest.raises(PersistTransportError):
        _locator({"maths": collection}).find(OID, "db", "maths")
    assert collection.attempts == 1
