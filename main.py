import logging
import uvicorn
from fastapi import FastAPI
from minio_uploader.api.routers import uploads, objects
from minio_uploader.api.exception_handlers import register_exception_handlers
from minio_uploader.core.config import settings
from minio_uploader.services.cleanup_service import setup_cleanup_tasks

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# Create FastAPI application
app = FastAPI(title=settings.PROJECT_NAME)

# Include routers
app.include_router(uploads.router, prefix=settings.API_PREFIX)
app.include_router(objects.router, prefix=settings.API_PREFIX)

# Map uploader errors to HTTP responses
register_exception_handlers(app)

# Set up background cleanup tasks
setup_cleanup_tasks(app)

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8005, reload=True)
