from fastapi import APIRouter, Depends, UploadFile, File, Form
from fastapi.concurrency import run_in_threadpool
from minio_uploader.api.schemas import FragResponse, ComposeRequest, ComposeResponse
from minio_uploader.api.dependencies import get_chunked_uploader
from minio_uploader.services.chunked_uploader import ChunkedUploader

router = APIRouter(tags=["uploads"])

@router.post("/uploads/{digest}/chunks", response_model=FragResponse)
async def upload_chunk(
    digest: str,
    curr_index: int = Form(...),
    total_pieces: int = Form(...),
    file: UploadFile = File(...),
    uploader: ChunkedUploader = Depends(get_chunked_uploader)
):
    """
    Upload one chunk of a file identified by its digest.

    Chunks may arrive in any order and across sessions; re-sending a chunk
    that is already staged is a no-op. The response lists the indices that
    are still missing, and all_completed is true for the request that
    delivered the last one.
    """
    result = await run_in_threadpool(
        uploader.upload_chunk,
        file.file,
        curr_index,
        total_pieces,
        digest,
        file.size,
    )
    return FragResponse(
        all_completed=result.all_completed,
        remain_index=list(result.remain_index) if result.remain_index is not None else None,
        message=result.message
    )

@router.post("/uploads/{digest}/compose", response_model=ComposeResponse)
async def compose_chunks(
    digest: str,
    request: ComposeRequest,
    uploader: ChunkedUploader = Depends(get_chunked_uploader)
):
    """
    Stitch the staged chunks into the destination object and remove them.
    """
    composed = await run_in_threadpool(
        uploader.compose,
        request.bucket,
        request.object_name,
        request.total_pieces,
        digest,
    )
    return ComposeResponse(composed=composed, bucket=request.bucket, object_name=request.object_name)
