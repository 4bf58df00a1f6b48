import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional

import pytest
from fastapi.testclient import TestClient

from main import app
from minio_uploader.api.dependencies import get_blob_store
from minio_uploader.core.exceptions import ObjectNotFoundError, StoreError
from minio_uploader.services.chunked_uploader import ChunkedUploader
from minio_uploader.services.object_service import ObjectService
from minio_uploader.storage.base import DeleteFailure, ListedObject, ObjectStat

STAGING_BUCKET = "temp-bucket"


@dataclass
class StoredObject:
    data: bytes
    content_type: Optional[str] = None
    last_modified: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class InMemoryBlobStore:
    """
    Thread-safe in-memory stand-in for a MinIO server.

    Listing folds names into "directories" the way S3 does for
    non-recursive listings. Failures can be injected per operation.
    """

    def __init__(self):
        self.buckets: Dict[str, Dict[str, StoredObject]] = {}
        self.calls = []
        self.delete_failures: Dict[str, str] = {}
        self.compose_error: Optional[Exception] = None
        self.remove_error: Optional[Exception] = None
        self.racing_make_bucket = False
        self._lock = threading.Lock()

    def _bucket(self, bucket):
        if bucket not in self.buckets:
            raise ObjectNotFoundError(f"bucket '{bucket}' does not exist", details={"code": "NoSuchBucket"})
        return self.buckets[bucket]

    def objects(self, bucket, prefix=""):
        """Snapshot of the stored bodies under prefix, for assertions."""
        with self._lock:
            return {
                name: obj.data for name, obj in self.buckets.get(bucket, {}).items()
                if name.startswith(prefix)
            }

    def bucket_exists(self, bucket):
        self.calls.append("bucket_exists")
        with self._lock:
            return bucket in self.buckets

    def make_bucket(self, bucket):
        self.calls.append("make_bucket")
        with self._lock:
            if self.racing_make_bucket:
                # Another uploader created it between our check and our create
                self.buckets.setdefault(bucket, {})
                raise StoreError("make_bucket failed", details={"code": "OperationAborted"})
            self.buckets.setdefault(bucket, {})

    def list_objects(self, bucket, prefix, recursive=False):
        self.calls.append("list_objects")
        with self._lock:
            names = sorted(self._bucket(bucket))
            stored = dict(self._bucket(bucket))
        seen_dirs = set()
        for name in names:
            if not name.startswith(prefix):
                continue
            rest = name[len(prefix):]
            if not recursive and "/" in rest:
                directory = prefix + rest[:rest.index("/") + 1]
                if directory not in seen_dirs:
                    seen_dirs.add(directory)
                    yield ListedObject(directory, True, None)
                continue
            yield ListedObject(name, False, stored[name].last_modified)

    def put_object(self, bucket, object_name, stream, size_hint=None, content_type=None):
        self.calls.append("put_object")
        data = stream.read()
        with self._lock:
            self._bucket(bucket)[object_name] = StoredObject(data, content_type)

    def compose_object(self, dest_bucket, dest_object, sources):
        self.calls.append("compose_object")
        if self.compose_error is not None:
            raise self.compose_error
        with self._lock:
            body = b"".join(self._bucket(bucket)[name].data for bucket, name in sources)
            self._bucket(dest_bucket)[dest_object] = StoredObject(body)
        return {"bucket": dest_bucket, "object_name": dest_object}

    def remove_objects(self, bucket, object_names):
        self.calls.append("remove_objects")
        if self.remove_error is not None:
            raise self.remove_error
        for name in list(object_names):
            if name in self.delete_failures:
                yield DeleteFailure(name, self.delete_failures[name])
                continue
            with self._lock:
                self._bucket(bucket).pop(name, None)

    def stat_object(self, bucket, object_name):
        self.calls.append("stat_object")
        with self._lock:
            obj = self._bucket(bucket).get(object_name)
        if obj is None:
            raise ObjectNotFoundError(f"{bucket}/{object_name} does not exist", details={"code": "NoSuchKey"})
        return ObjectStat(bucket, object_name, len(obj.data), "etag-" + str(len(obj.data)),
                          obj.content_type, obj.last_modified)

    def open_object(self, bucket, object_name, offset=0, length=None):
        data = self._bucket(bucket)[object_name].data
        end = len(data) if length is None else offset + length
        body = data[offset:end]
        return iter([body[i:i + 4] for i in range(0, len(body), 4)])

    def copy_object(self, src_bucket, src_object, dest_bucket, dest_object):
        obj = self.stat_object(src_bucket, src_object)
        with self._lock:
            source = self._bucket(src_bucket)[src_object]
            self._bucket(dest_bucket)[dest_object] = StoredObject(source.data, source.content_type)
        return obj

    def remove_object(self, bucket, object_name):
        with self._lock:
            self._bucket(bucket).pop(object_name, None)

    def presigned_get_url(self, bucket, object_name, expires_seconds):
        return f"http://minio.test/{bucket}/{object_name}?X-Amz-Expires={expires_seconds}"


@pytest.fixture
def store():
    """Fresh in-memory store with a destination bucket ready."""
    blob_store = InMemoryBlobStore()
    blob_store.buckets["bkt"] = {}
    return blob_store

@pytest.fixture
def uploader(store):
    return ChunkedUploader(store, staging_bucket=STAGING_BUCKET)

@pytest.fixture
def object_service(store):
    return ObjectService(store)

@pytest.fixture
def test_client(store):
    """Create a test client for the FastAPI app backed by the in-memory store."""
    app.dependency_overrides[get_blob_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()

@pytest.fixture
def store_factory():
    return InMemoryBlobStore
