from typing import Optional
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

class Settings(BaseSettings):
    PROJECT_NAME: str = "MinIO Chunked Upload API"
    API_PREFIX: str = "/api"

    # MinIO connection
    MINIO_ENDPOINT: str = "localhost:9000"
    MINIO_ACCESS_KEY: str = "minioadmin"
    MINIO_SECRET_KEY: str = "minioadmin"
    MINIO_SECURE: bool = False
    MINIO_REGION: Optional[str] = None

    # Chunked upload settings
    STAGING_BUCKET: str = "temp-bucket"
    UNKNOWN_SIZE_PART_SIZE: int = 10 * 1024 * 1024  # used when a stream has no known length
    PRESIGNED_URL_EXPIRE_SECONDS: int = 3600

    # Cleanup settings
    CLEANUP_ENABLED: bool = True
    CLEANUP_INTERVAL_SECONDS: int = 3600  # Run cleanup every hour
    STALE_UPLOAD_TIMEOUT_SECONDS: int = 86400  # 24 hours

    LOG_LEVEL: str = "INFO"

# Global settings instance
settings = Settings()
