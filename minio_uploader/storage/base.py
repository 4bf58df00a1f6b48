from datetime import datetime
from typing import Any, BinaryIO, Iterable, Iterator, NamedTuple, Optional, Protocol, Sequence, Tuple


class ListedObject(NamedTuple):
    object_name: str
    is_dir: bool = False
    last_modified: Optional[datetime] = None


class DeleteFailure(NamedTuple):
    object_name: str
    message: str


class ObjectStat(NamedTuple):
    bucket: str
    object_name: str
    size: int
    etag: Optional[str] = None
    content_type: Optional[str] = None
    last_modified: Optional[datetime] = None


class BlobStore(Protocol):
    def bucket_exists(self, bucket: str) -> bool:
        ...

    def make_bucket(self, bucket: str) -> None:
        ...

    def list_objects(self, bucket: str, prefix: str, recursive: bool = False) -> Iterator[ListedObject]:
        ...

    def put_object(self, bucket: str, object_name: str, stream: BinaryIO,
                   size_hint: Optional[int] = None, content_type: Optional[str] = None) -> Any:
        ...

    def compose_object(self, dest_bucket: str, dest_object: str,
                       sources: Sequence[Tuple[str, str]]) -> Any:
        ...

    def remove_objects(self, bucket: str, object_names: Iterable[str]) -> Iterator[DeleteFailure]:
        """Yield one DeleteFailure per object that could not be deleted."""
        ...


class ObjectStore(BlobStore, Protocol):
    def stat_object(self, bucket: str, object_name: str) -> ObjectStat:
        ...

    def open_object(self, bucket: str, object_name: str, offset: int = 0,
                    length: Optional[int] = None) -> Iterator[bytes]:
        ...

    def copy_object(self, src_bucket: str, src_object: str, dest_bucket: str, dest_object: str) -> Any:
        ...

    def remove_object(self, bucket: str, object_name: str) -> None:
        ...

    def presigned_get_url(self, bucket: str, object_name: str, expires_seconds: int) -> str:
        ...


__all__ = ["BlobStore", "ObjectStore", "ListedObject", "DeleteFailure", "ObjectStat"]
