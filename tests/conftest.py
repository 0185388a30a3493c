"""Pytest configuration and shared fixtures."""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import httpx
import pytest
from botocore.exceptions import ClientError

from tutorcast.jobs import JobOrchestrator, JobRegistry
from tutorcast.records import PersistTransportError, RecordLocator
from tutorcast.render import RenderStatus
from tutorcast.storage import S3BlobUploader

PROVIDER_URL = "https://d-id-clips-prod.s3.us-west-2.amazonaws.com/clip_abc/result.mp4"
FIXED_NOW = datetime(2026, 1, 15, 9, 30, tzinfo=timezone.utc)
OBJECT_STORE_URL = "https://lesson-media.s3.ap-south-1.amazonaws.com/subtopics/ai_videourl/"

_MISSING = object()


# ---------------------------------------------------------------------------
# Document store
# ---------------------------------------------------------------------------

class FakeUpdateResult:
    def __init__(self, matched_count: int, modified_count: int):
        self.matched_count = matched_count
        self.modified_count = modified_count


class FakeCollection:
    """Just enough of a pymongo collection for single-key filters and $set."""

    def __init__(self, docs=None):
        self.docs = docs or []
        self.update_filters = []

    def _locate(self, flt):
        ((key, value),) = flt.items()
        for doc in self.docs:
            if "." in key:
                array, field = key.split(".", 1)
                for i, element in enumerate(doc.get(array) or []):
                    if isinstance(element, dict) and element.get(field, _MISSING) == value:
                        return doc, array, i
            elif doc.get(key, _MISSING) == value:
                return doc, None, None
        return None

    def update_one(self, flt, update):
        self.update_filters.append(flt)
        hit = self._locate(flt)
        if hit is None:
            return FakeUpdateResult(0, 0)
        doc, array, index = hit
        target = doc if array is None else doc[array][index]
        modified = False
        for path, value in update["$set"].items():
            field = path.split(".$.", 1)[1] if ".$." in path else path
            if target.get(field, _MISSING) != value:
                target[field] = value
                modified = True
        return FakeUpdateResult(1, int(modified))

    def find_one(self, flt):
        hit = self._locate(flt)
        return hit[0] if hit else None

    def find(self, flt=None, limit=0):
        docs = list(self.docs)
        return docs[:limit] if limit else docs


class FakeDocumentStore:
    def __init__(self, collections=None, unreachable=False):
        self.collections = collections if collections is not None else {}
        self.unreachable = unreachable

    def collection(self, dbname, name):
        return self.collections.setdefault(name, FakeCollection())

    def collection_names(self, dbname):
        if self.unreachable:
            raise PersistTransportError("connection refused")
        return list(self.collections)


# ---------------------------------------------------------------------------
# S3 and HTTP
# ---------------------------------------------------------------------------

class FakeS3Client:
    def __init__(self, fail_content_types=()):
        self.objects = {}
        self.fail_content_types = set(fail_content_types)

    def put_object(self, **kwargs):
        if kwargs["ContentType"] in self.fail_content_types:
            raise ClientError(
                {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, "PutObject"
            )
        self.objects[kwargs["Key"]] = kwargs
        return {"ETag": '"etag-1"'}


def download_client(body: bytes = b"\x00\x00\x00\x18ftypmp42", status_code: int = 200, calls=None):
    """httpx client that serves body for every GET."""

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(str(request.url))
        return httpx.Response(status_code, content=body)

    return httpx.Client(transport=httpx.MockTransport(handler))


# ---------------------------------------------------------------------------
# Render provider
# ---------------------------------------------------------------------------

class FakeRenderProvider:
    """Replays a scripted list of poll results; the last one repeats."""

    def __init__(self, statuses=None, clip_id="clip_abc"):
        self.statuses = list(statuses or [RenderStatus(status="done", result_url=PROVIDER_URL)])
        self.clip_id = clip_id
        self.submitted = []
        self.polls = 0

    def submit(self, script, presenter_id, voice_id):
        self.submitted.append((script, presenter_id, voice_id))
        return self.clip_id

    def poll(self, provider_job_id):
        self.polls += 1
        status = self.statuses[0] if len(self.statuses) == 1 else self.statuses.pop(0)
        if isinstance(status, Exception):
            raise status
        return status


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def s3_client():
    return FakeS3Client()


@pytest.fixture
def uploader(s3_client):
    return S3BlobUploader(
        "lesson-media", "ap-south-1", s3_client=s3_client, http_client=download_client()
    )


@pytest.fixture
def subtopic_collection():
    return FakeCollection([{"_id": "sub-fractions", "name": "Fractions"}])


@pytest.fixture
def document_store(subtopic_collection):
    return FakeDocumentStore({"maths": subtopic_collection})


@pytest.fixture
def locator(document_store, fixed_clock):
    return RecordLocator(document_store, clock=fixed_clock, object_store_url=OBJECT_STORE_URL)


@pytest.fixture
def render_provider():
    return FakeRenderProvider()


@pytest.fixture
def registry():
    return JobRegistry(retention_seconds=3600)


@pytest.fixture
def orchestrator(registry, render_provider, uploader, locator):
    executor = ThreadPoolExecutor(max_workers=2)
    orch = JobOrchestrator(
        registry, render_provider, uploader, locator,
        poll_interval=0, max_polls=5, executor=executor,
    )
    yield orch
    orch.shutdown(wait=True)
