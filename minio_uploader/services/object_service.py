import io
from typing import BinaryIO, Iterator, NamedTuple, Optional

from minio_uploader.core.content_type import get_content_type
from minio_uploader.core.exceptions import (
    ObjectNotFoundError,
    RangeNotSatisfiableError,
    StoreError,
    ValidationError,
)
from minio_uploader.storage.base import ObjectStat, ObjectStore
from minio_uploader.utils.path_utils import add_tail, trim_head

MAX_PRESIGN_SECONDS = 7 * 24 * 3600


class ObjectDownload(NamedTuple):
    stat: ObjectStat
    offset: int
    length: int  # bytes actually served
    chunks: Iterator[bytes]


class ObjectService:
    """
    Convenience operations over single objects and folders in the store.
    """

    def __init__(self, store: ObjectStore):
        self.store = store

    def ensure_bucket(self, bucket: str) -> None:
        """
        Create the bucket if it doesn't exist.
        """
        _require(bucket=bucket)
        if self.store.bucket_exists(bucket):
            return
        try:
            self.store.make_bucket(bucket)
        except StoreError:
            if not self.store.bucket_exists(bucket):
                raise

    def upload_object(self, bucket: str, object_name: str, stream: BinaryIO,
                      size: Optional[int] = None, filename: Optional[str] = None) -> ObjectStat:
        """
        Upload a whole object, deriving its Content-Type from the file suffix.
        """
        _require(bucket=bucket, object_name=object_name)
        object_name = trim_head(object_name)
        content_type = get_content_type(filename or object_name)
        self.ensure_bucket(bucket)
        self.store.put_object(bucket, object_name, stream, size, content_type)
        return self.store.stat_object(bucket, object_name)

    def object_status(self, bucket: str, object_name: str) -> ObjectStat:
        _require(bucket=bucket, object_name=object_name)
        return self.store.stat_object(bucket, trim_head(object_name))

    def object_exists(self, bucket: str, object_name: str) -> bool:
        try:
            self.object_status(bucket, object_name)
        except ObjectNotFoundError:
            return False
        return True

    def download(self, bucket: str, object_name: str, offset: int = 0,
                 length: Optional[int] = None, ranged: bool = False) -> ObjectDownload:
        """
        Stat an object and open it for reading from offset.

        A length of None reads to the end of the object; a length running past
        the end is clipped to it. A ranged read must start inside the object,
        so any range on an empty object is unsatisfiable.
        """
        stat = self.object_status(bucket, object_name)
        past_end = (ranged or offset > 0) and offset >= stat.size
        if offset < 0 or (length is not None and length < 1) or past_end:
            raise RangeNotSatisfiableError(
                f"Range not satisfiable for object of size {stat.size}",
                {"offset": offset, "length": length, "size": stat.size},
            )
        available = stat.size - offset
        length = available if length is None else min(length, available)
        if length == 0:
            return ObjectDownload(stat, offset, 0, iter(()))
        chunks = self.store.open_object(bucket, stat.object_name, offset, length)
        return ObjectDownload(stat, offset, length, chunks)

    def presigned_url(self, bucket: str, object_name: str, expires_seconds: int) -> str:
        _require(bucket=bucket, object_name=object_name)
        if not 1 <= expires_seconds <= MAX_PRESIGN_SECONDS:
            raise ValidationError(
                f"expires must be between 1 and {MAX_PRESIGN_SECONDS} seconds",
                {"expires": expires_seconds},
            )
        return self.store.presigned_get_url(bucket, trim_head(object_name), expires_seconds)

    def copy_object(self, src_bucket: str, src_object: str, dest_bucket: str, dest_object: str) -> ObjectStat:
        _require(src_bucket=src_bucket, src_object=src_object, dest_bucket=dest_bucket, dest_object=dest_object)
        self.store.copy_object(src_bucket, trim_head(src_object), dest_bucket, trim_head(dest_object))
        return self.store.stat_object(dest_bucket, trim_head(dest_object))

    def remove_object(self, bucket: str, object_name: str) -> None:
        _require(bucket=bucket, object_name=object_name)
        self.store.remove_object(bucket, trim_head(object_name))

    def folder_exists(self, bucket: str, folder: str) -> bool:
        """
        Check whether a folder exists. Folder paths start with "/" and do not end with "/".
        """
        prefix = self._folder_prefix(folder)
        try:
            for item in self.store.list_objects(bucket, prefix.rstrip("/"), recursive=False):
                if item.is_dir and item.object_name == prefix:
                    return True
        except ObjectNotFoundError:
            return False
        return False

    def create_folder(self, bucket: str, folder: str) -> str:
        """
        Create a folder marker object (an empty object whose name ends with "/").
        """
        prefix = self._folder_prefix(folder)
        self.ensure_bucket(bucket)
        self.store.put_object(bucket, prefix, io.BytesIO(b""), 0)
        return prefix

    @staticmethod
    def _folder_prefix(folder: str) -> str:
        _require(folder=folder)
        prefix = add_tail(trim_head(folder.strip()))
        if not prefix or prefix == "/":
            raise ValidationError("Folder name must not be empty", {"folder": folder})
        return prefix


def _require(**params) -> None:
    for name, value in params.items():
        if value is None or not str(value).strip():
            raise ValidationError(f"Empty string: {name}", {"param": name})
