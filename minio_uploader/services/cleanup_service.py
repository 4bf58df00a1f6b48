import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from fastapi import FastAPI
from minio_uploader.core.config import settings
from minio_uploader.api.dependencies import get_blob_store
from minio_uploader.storage.base import BlobStore

logger = logging.getLogger("cleanup_service")

def sweep_stale_chunks(store: BlobStore, staging_bucket: str, max_age_seconds: int,
                       now: Optional[datetime] = None) -> List[str]:
    """
    Remove staging chunks that haven't been written for max_age_seconds.
    Abandoned sessions otherwise keep their chunks forever.
    Returns the names of the removed chunks.
    """
    now = now or datetime.now(timezone.utc)
    stale_threshold = now - timedelta(seconds=max_age_seconds)

    if not store.bucket_exists(staging_bucket):
        return []

    stale = []
    for item in store.list_objects(staging_bucket, "", recursive=True):
        if item.is_dir or item.last_modified is None:
            continue
        if item.last_modified < stale_threshold:
            logger.info(f"Found stale chunk: {staging_bucket}/{item.object_name}")
            stale.append(item.object_name)

    if not stale:
        return []

    failed = set()
    for failure in store.remove_objects(staging_bucket, stale):
        logger.error(f"Error removing stale chunk {failure.object_name}: {failure.message}")
        failed.add(failure.object_name)

    removed = [name for name in stale if name not in failed]
    logger.info(f"Removed {len(removed)} stale chunk(s) from '{staging_bucket}'")
    return removed

async def cleanup_stale_uploads(store: BlobStore):
    """
    Periodically sweep the staging bucket for stale chunks.
    """
    while True:
        try:
            logger.info("Running cleanup task for stale uploads")
            await asyncio.to_thread(
                sweep_stale_chunks,
                store,
                settings.STAGING_BUCKET,
                settings.STALE_UPLOAD_TIMEOUT_SECONDS,
            )
        except Exception as e:
            logger.error(f"Error in cleanup task: {str(e)}")

        # Wait for next run
        await asyncio.sleep(settings.CLEANUP_INTERVAL_SECONDS)

def setup_cleanup_tasks(app: FastAPI):
    """
    Set up background tasks for the FastAPI application.
    """
    @app.on_event("startup")
    async def start_cleanup_task():
        if not settings.CLEANUP_ENABLED:
            logger.info("Stale upload cleanup disabled")
            return
        store_factory = app.dependency_overrides.get(get_blob_store, get_blob_store)
        app.state.cleanup_task = asyncio.create_task(cleanup_stale_uploads(store_factory()))
