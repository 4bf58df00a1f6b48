from functools import lru_cache
from fastapi import Depends
from minio_uploader.core.config import settings
from minio_uploader.services.chunked_uploader import ChunkedUploader
from minio_uploader.services.object_service import ObjectService
from minio_uploader.storage.base import ObjectStore
from minio_uploader.storage.minio_store import MinioBlobStore

@lru_cache()
def get_blob_store() -> ObjectStore:
    """
    Dependency to get the shared MinIO-backed store.
    """
    return MinioBlobStore.from_settings(settings)

def get_chunked_uploader(store: ObjectStore = Depends(get_blob_store)) -> ChunkedUploader:
    """
    Dependency to get a ChunkedUploader staging into the configured bucket.
    """
    return ChunkedUploader(store, staging_bucket=settings.STAGING_BUCKET)

def get_object_service(store: ObjectStore = Depends(get_blob_store)) -> ObjectService:
    return ObjectService(store)
