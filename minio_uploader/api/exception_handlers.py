import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from minio_uploader.core.exceptions import (
    IncompleteUploadError,
    ObjectNotFoundError,
    RangeNotSatisfiableError,
    StoreError,
    UploaderError,
    ValidationError,
)

logger = logging.getLogger(__name__)


async def uploader_exception_handler(request: Request, exc: UploaderError) -> JSONResponse:
    """Map uploader errors to HTTP responses."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    if isinstance(exc, RangeNotSatisfiableError):
        status_code = status.HTTP_416_REQUESTED_RANGE_NOT_SATISFIABLE
    elif isinstance(exc, ValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, IncompleteUploadError):
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(exc, ObjectNotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, StoreError):
        status_code = status.HTTP_502_BAD_GATEWAY

    log = logger.error if status_code >= 500 else logger.info
    log(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=status_code,
        content={
            "error": type(exc).__name__,
            "message": exc.message,
            "details": exc.details,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(UploaderError, uploader_exception_handler)
