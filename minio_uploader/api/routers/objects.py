from typing import Optional
from fastapi import APIRouter, Depends, UploadFile, File, Header, HTTPException, Query, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse
from minio_uploader.api.schemas import ObjectStatus, PresignedUrlResponse, CopyRequest, FolderStatus
from minio_uploader.api.dependencies import get_object_service
from minio_uploader.core.config import settings
from minio_uploader.services.object_service import ObjectService
from minio_uploader.storage.base import ObjectStat

router = APIRouter(tags=["objects"])

def _to_status(stat: ObjectStat) -> ObjectStatus:
    return ObjectStatus(**stat._asdict())

def _parse_range(range_header: str):
    """
    Parse a "bytes=start-end" header into (offset, length); length is None for open ranges.
    """
    try:
        range_str = range_header.strip()
        if not range_str.startswith("bytes=") or "-" not in range_str:
            raise ValueError(range_header)
        start_str, end_str = range_str[len("bytes="):].split("-", 1)
        start_byte = int(start_str) if start_str else 0
        if not end_str:
            return start_byte, None
        end_byte = int(end_str)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid range header format"
        )
    if end_byte < start_byte:
        raise HTTPException(
            status_code=status.HTTP_416_REQUESTED_RANGE_NOT_SATISFIABLE,
            detail="Range end precedes range start"
        )
    return start_byte, end_byte - start_byte + 1

@router.put("/objects/upload/{bucket}/{object_name:path}", response_model=ObjectStatus)
async def upload_object(
    bucket: str,
    object_name: str,
    file: UploadFile = File(...),
    object_service: ObjectService = Depends(get_object_service)
):
    """
    Upload a whole object; its Content-Type follows the file suffix.
    """
    stat = await run_in_threadpool(
        object_service.upload_object, bucket, object_name, file.file, file.size, file.filename
    )
    return _to_status(stat)

@router.get("/objects/status/{bucket}/{object_name:path}", response_model=ObjectStatus)
async def get_object_status(
    bucket: str,
    object_name: str,
    object_service: ObjectService = Depends(get_object_service)
):
    stat = await run_in_threadpool(object_service.object_status, bucket, object_name)
    return _to_status(stat)

@router.get("/objects/download/{bucket}/{object_name:path}")
async def download_object(
    bucket: str,
    object_name: str,
    range: Optional[str] = Header(None),
    object_service: ObjectService = Depends(get_object_service)
):
    """
    Download an object, or a byte range of it when a Range header is sent.
    """
    offset, length = _parse_range(range) if range else (0, None)
    download = await run_in_threadpool(
        object_service.download, bucket, object_name, offset, length, ranged=bool(range)
    )

    headers = {
        "Content-Disposition": f"attachment; filename={download.stat.object_name.rsplit('/', 1)[-1]}",
        "Accept-Ranges": "bytes",
        "Content-Length": str(download.length),
    }
    media_type = download.stat.content_type or "application/octet-stream"

    if range:
        end_byte = download.offset + download.length - 1
        headers["Content-Range"] = f"bytes {download.offset}-{end_byte}/{download.stat.size}"
        return StreamingResponse(
            download.chunks,
            status_code=status.HTTP_206_PARTIAL_CONTENT,
            headers=headers,
            media_type=media_type
        )

    return StreamingResponse(download.chunks, headers=headers, media_type=media_type)

@router.get("/objects/url/{bucket}/{object_name:path}", response_model=PresignedUrlResponse)
async def get_presigned_url(
    bucket: str,
    object_name: str,
    expires: int = Query(settings.PRESIGNED_URL_EXPIRE_SECONDS),
    object_service: ObjectService = Depends(get_object_service)
):
    url = await run_in_threadpool(object_service.presigned_url, bucket, object_name, expires)
    return PresignedUrlResponse(url=url, expires=expires)

@router.post("/objects/copy", response_model=ObjectStatus)
async def copy_object(
    request: CopyRequest,
    object_service: ObjectService = Depends(get_object_service)
):
    stat = await run_in_threadpool(
        object_service.copy_object,
        request.src_bucket,
        request.src_object,
        request.dest_bucket,
        request.dest_object,
    )
    return _to_status(stat)

@router.delete("/objects/{bucket}/{object_name:path}")
async def delete_object(
    bucket: str,
    object_name: str,
    object_service: ObjectService = Depends(get_object_service)
):
    await run_in_threadpool(object_service.remove_object, bucket, object_name)
    return {"detail": f"Object {bucket}/{object_name} deleted successfully"}

@router.get("/folders/{bucket}/{folder:path}", response_model=FolderStatus)
async def get_folder_status(
    bucket: str,
    folder: str,
    object_service: ObjectService = Depends(get_object_service)
):
    exists = await run_in_threadpool(object_service.folder_exists, bucket, folder)
    return FolderStatus(bucket=bucket, folder=folder, exists=exists)

@router.post("/folders/{bucket}/{folder:path}", response_model=FolderStatus)
async def create_folder(
    bucket: str,
    folder: str,
    object_service: ObjectService = Depends(get_object_service)
):
    await run_in_threadpool(object_service.create_folder, bucket, folder)
    return FolderStatus(bucket=bucket, folder=folder, exists=True)
