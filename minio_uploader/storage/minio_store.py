import logging
from contextlib import contextmanager
from datetime import timedelta
from typing import BinaryIO, Iterable, Iterator, Optional, Sequence, Tuple

from minio import Minio
from minio.commonconfig import ComposeSource, CopySource
from minio.deleteobjects import DeleteObject
from minio.error import MinioException, S3Error
from urllib3.exceptions import HTTPError

from minio_uploader.core.config import Settings
from minio_uploader.core.exceptions import ObjectNotFoundError, StoreError
from minio_uploader.storage.base import DeleteFailure, ListedObject, ObjectStat

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"NoSuchKey", "NoSuchBucket", "NoSuchObject"}
_BUCKET_EXISTS_CODES = {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}
_MAX_PRESIGN_SECONDS = 7 * 24 * 3600
_STREAM_BLOCK_SIZE = 64 * 1024


@contextmanager
def store_errors(action: str):
    """Translate SDK and transport failures into StoreError."""
    try:
        yield
    except S3Error as exc:
        error_cls = ObjectNotFoundError if exc.code in _NOT_FOUND_CODES else StoreError
        raise error_cls(f"{action} failed: {exc.message}", inner=exc, details={"code": exc.code}) from exc
    except (MinioException, HTTPError) as exc:
        raise StoreError(f"{action} failed: {exc}", inner=exc) from exc


class MinioBlobStore:
    """
    Object store backed by a MinIO (S3-compatible) server.

    Every SDK error leaves this class as a StoreError; lazy listings and batch
    deletes translate errors raised while they are being iterated as well.
    """

    def __init__(self, client: Minio, unknown_size_part_size: int = 10 * 1024 * 1024):
        self.client = client
        self.unknown_size_part_size = unknown_size_part_size

    @classmethod
    def from_settings(cls, settings: Settings) -> "MinioBlobStore":
        client = Minio(
            settings.MINIO_ENDPOINT,
            access_key=settings.MINIO_ACCESS_KEY,
            secret_key=settings.MINIO_SECRET_KEY,
            secure=settings.MINIO_SECURE,
            region=settings.MINIO_REGION,
        )
        logger.info(f"MinIO client initialized: {settings.MINIO_ENDPOINT}")
        return cls(client, settings.UNKNOWN_SIZE_PART_SIZE)

    def bucket_exists(self, bucket: str) -> bool:
        with store_errors(f"bucket_exists({bucket})"):
            return self.client.bucket_exists(bucket_name=bucket)

    def make_bucket(self, bucket: str) -> None:
        """Create a bucket; a bucket that already exists counts as success."""
        try:
            with store_errors(f"make_bucket({bucket})"):
                self.client.make_bucket(bucket_name=bucket)
            logger.info(f"Created bucket '{bucket}'")
        except StoreError as exc:
            if exc.details.get("code") in _BUCKET_EXISTS_CODES:
                logger.info(f"Bucket '{bucket}' already exists")
                return
            raise

    def list_objects(self, bucket: str, prefix: str, recursive: bool = False) -> Iterator[ListedObject]:
        with store_errors(f"list_objects({bucket}, {prefix})"):
            for item in self.client.list_objects(bucket_name=bucket, prefix=prefix, recursive=recursive):
                yield ListedObject(item.object_name, bool(item.is_dir), item.last_modified)

    def put_object(self, bucket: str, object_name: str, stream: BinaryIO,
                   size_hint: Optional[int] = None, content_type: Optional[str] = None):
        length = size_hint if size_hint is not None and size_hint >= 0 else -1
        part_size = self.unknown_size_part_size if length == -1 else 0
        with store_errors(f"put_object({bucket}/{object_name})"):
            return self.client.put_object(
                bucket_name=bucket,
                object_name=object_name,
                data=stream,
                length=length,
                part_size=part_size,
                content_type=content_type or "application/octet-stream",
            )

    def compose_object(self, dest_bucket: str, dest_object: str, sources: Sequence[Tuple[str, str]]):
        compose_sources = [
            ComposeSource(bucket_name=bucket, object_name=name) for bucket, name in sources
        ]
        with store_errors(f"compose_object({dest_bucket}/{dest_object})"):
            return self.client.compose_object(
                bucket_name=dest_bucket,
                object_name=dest_object,
                sources=compose_sources,
            )

    def remove_objects(self, bucket: str, object_names: Iterable[str]) -> Iterator[DeleteFailure]:
        delete_list = [DeleteObject(name) for name in object_names]
        with store_errors(f"remove_objects({bucket})"):
            for error in self.client.remove_objects(bucket_name=bucket, delete_object_list=delete_list):
                yield DeleteFailure(error.name, error.message)

    def stat_object(self, bucket: str, object_name: str) -> ObjectStat:
        with store_errors(f"stat_object({bucket}/{object_name})"):
            info = self.client.stat_object(bucket_name=bucket, object_name=object_name)
        return ObjectStat(
            bucket=bucket,
            object_name=object_name,
            size=info.size,
            etag=info.etag,
            content_type=info.content_type,
            last_modified=info.last_modified,
        )

    def open_object(self, bucket: str, object_name: str, offset: int = 0,
                    length: Optional[int] = None) -> Iterator[bytes]:
        """
        Open an object for reading and return an iterator over its bytes.

        The request is issued before returning, so a missing object fails here
        rather than midway through a streamed response.
        """
        with store_errors(f"get_object({bucket}/{object_name})"):
            response = self.client.get_object(
                bucket_name=bucket,
                object_name=object_name,
                offset=offset,
                length=length or 0,
            )
        return self._iter_response(response)

    @staticmethod
    def _iter_response(response) -> Iterator[bytes]:
        try:
            with store_errors("read object"):
                yield from response.stream(_STREAM_BLOCK_SIZE)
        finally:
            response.close()
            response.release_conn()

    def copy_object(self, src_bucket: str, src_object: str, dest_bucket: str, dest_object: str):
        with store_errors(f"copy_object({src_bucket}/{src_object} -> {dest_bucket}/{dest_object})"):
            return self.client.copy_object(
                bucket_name=dest_bucket,
                object_name=dest_object,
                source=CopySource(bucket_name=src_bucket, object_name=src_object),
            )

    def remove_object(self, bucket: str, object_name: str) -> None:
        with store_errors(f"remove_object({bucket}/{object_name})"):
            self.client.remove_object(bucket_name=bucket, object_name=object_name)

    def presigned_get_url(self, bucket: str, object_name: str, expires_seconds: int) -> str:
        expires_seconds = max(1, min(expires_seconds, _MAX_PRESIGN_SECONDS))
        with store_errors(f"presigned_get_object({bucket}/{object_name})"):
            return self.client.presigned_get_object(
                bucket_name=bucket,
                object_name=object_name,
                expires=timedelta(seconds=expires_seconds),
            )


__all__ = ["MinioBlobStore", "store_errors"]
