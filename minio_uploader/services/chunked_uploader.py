import logging
from dataclasses import dataclass
from typing import BinaryIO, List, Optional, Set, Tuple

from minio_uploader.core.exceptions import (
    CleanupWarning,
    IncompleteUploadError,
    StoreError,
    ValidationError,
)
from minio_uploader.storage.base import BlobStore
from minio_uploader.utils.path_utils import chunk_index, chunk_path, chunk_prefix

logger = logging.getLogger("chunked_uploader")

DEFAULT_STAGING_BUCKET = "temp-bucket"

MESSAGE_COMPLETED = "completed"


@dataclass(frozen=True)
class FragResult:
    """
    Outcome of a single chunk upload.

    remain_index holds the indices that were still missing when the staging
    area was listed, in ascending order; it is None once all_completed is set.
    """
    all_completed: bool
    remain_index: Optional[Tuple[int, ...]]
    message: str


class ChunkedUploader:
    """
    Resumable chunked upload on top of a BlobStore.

    Chunks of one logical file are staged as "{digest}/{padded index}" in the
    staging bucket and stitched together by compose(). The uploader keeps no
    state of its own; the staging namespace is the only record of a session,
    so any number of uploader instances may serve the same session.

    Callers must keep total_pieces identical for every call of a session; the
    padding of chunk names depends on it and changes are not detected.
    Sessions are keyed by digest alone: two concurrent uploads reporting the
    same digest share one staging directory and will overwrite each other.
    """

    def __init__(self, store: BlobStore, staging_bucket: str = DEFAULT_STAGING_BUCKET):
        if not staging_bucket or not staging_bucket.strip():
            raise ValidationError("staging_bucket must not be empty")
        self.store = store
        self.staging_bucket = staging_bucket

    def upload_chunk(self, stream: BinaryIO, curr_index: int, total_pieces: int, digest: str,
                     size_hint: Optional[int] = None) -> FragResult:
        """
        Store one chunk of a session unless it is already staged.

        Only the call that writes the last missing chunk reports
        all_completed=True; it is the signal to call compose().
        """
        _check_not_none(stream=stream, curr_index=curr_index, total_pieces=total_pieces, digest=digest)
        _check_not_blank(digest=digest)
        _check_int(curr_index=curr_index, total_pieces=total_pieces)
        if total_pieces < 1:
            raise ValidationError("total_pieces must be at least 1", {"total_pieces": total_pieces})
        if not 0 <= curr_index < total_pieces:
            raise ValidationError(
                f"curr_index must be in [0, {total_pieces})",
                {"curr_index": curr_index, "total_pieces": total_pieces},
            )

        self._ensure_staging_bucket()

        saved_index = self._saved_indices(digest)
        remain_index = tuple(i for i in range(total_pieces) if i not in saved_index)

        if curr_index in saved_index:
            logger.info(f"Chunk {curr_index}/{total_pieces} of '{digest}' already staged, skipping")
            return FragResult(False, remain_index, f"index [{curr_index}] exists")

        target = chunk_path(digest, curr_index, total_pieces)
        self.store.put_object(self.staging_bucket, target, stream, size_hint)
        logger.info(f"Staged chunk {curr_index}/{total_pieces} of '{digest}' as {self.staging_bucket}/{target}")

        # Decided from the listing taken before the write
        if remain_index == (curr_index,):
            return FragResult(True, None, MESSAGE_COMPLETED)
        return FragResult(False, remain_index, f"index [{curr_index}] has been uploaded")

    def compose(self, dest_bucket: str, dest_object: str, total_pieces: int, digest: str) -> bool:
        """
        Concatenate the staged chunks of a session into dest_bucket/dest_object.

        Raises IncompleteUploadError without touching the destination unless
        exactly total_pieces chunks are staged. After a successful compose the
        chunks are deleted; delete failures are logged as CleanupWarning and do
        not fail the call. Store errors propagate and leave the chunks in place
        so the compose can be retried.
        """
        _check_not_none(dest_bucket=dest_bucket, dest_object=dest_object,
                        total_pieces=total_pieces, digest=digest)
        _check_not_blank(dest_bucket=dest_bucket, dest_object=dest_object, digest=digest)
        _check_int(total_pieces=total_pieces)
        if total_pieces < 1:
            raise ValidationError("total_pieces must be at least 1", {"total_pieces": total_pieces})

        staged = []
        # No staging bucket yet means no chunk was ever uploaded
        if self.store.bucket_exists(self.staging_bucket):
            staged = sorted({
                item.object_name
                for item in self.store.list_objects(self.staging_bucket, chunk_prefix(digest), recursive=False)
                if not item.is_dir and chunk_index(item.object_name, digest) is not None
            })
        if len(staged) != total_pieces:
            raise IncompleteUploadError(
                "The fragment index is not complete. Please check parameters [total_pieces] or [digest]",
                {"digest": digest, "expected": total_pieces, "found": len(staged)},
            )

        sources = [(self.staging_bucket, name) for name in staged]
        self.store.compose_object(dest_bucket, dest_object, sources)
        logger.info(f"Composed {total_pieces} chunks of '{digest}' into {dest_bucket}/{dest_object}")

        for warning in self._remove_chunks(digest, total_pieces):
            logger.warning(f"[Bigfile] {warning.message}")
        return True

    def _ensure_staging_bucket(self) -> None:
        if self.store.bucket_exists(self.staging_bucket):
            return
        try:
            self.store.make_bucket(self.staging_bucket)
        except StoreError:
            # Lost a creation race with another uploader
            if not self.store.bucket_exists(self.staging_bucket):
                raise
            logger.debug(f"Staging bucket '{self.staging_bucket}' was created concurrently")

    def _saved_indices(self, digest: str) -> Set[int]:
        saved = set()
        for item in self.store.list_objects(self.staging_bucket, chunk_prefix(digest), recursive=False):
            if item.is_dir:
                continue
            index = chunk_index(item.object_name, digest)
            if index is None:
                logger.warning(f"Ignoring unexpected staging object '{item.object_name}'")
                continue
            saved.add(index)
        return saved

    def _remove_chunks(self, digest: str, total_pieces: int) -> List[CleanupWarning]:
        paths = [chunk_path(digest, i, total_pieces) for i in range(total_pieces)]
        warnings = []
        try:
            for failure in self.store.remove_objects(self.staging_bucket, paths):
                warnings.append(CleanupWarning(failure.object_name, failure.message))
        except StoreError as exc:
            # The destination is already written; the batch delete itself failed
            warnings.append(CleanupWarning(chunk_prefix(digest), exc.message))
        return warnings


def _check_not_none(**params) -> None:
    for name, value in params.items():
        if value is None:
            raise ValidationError(f"Null param: {name}", {"param": name})


def _check_not_blank(**params) -> None:
    for name, value in params.items():
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"Empty string: {name}", {"param": name})


def _check_int(**params) -> None:
    for name, value in params.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"{name} must be an integer", {"param": name})
