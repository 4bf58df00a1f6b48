from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional, List

class FragResponse(BaseModel):
    all_completed: bool
    remain_index: Optional[List[int]] = None  # None once all_completed
    message: str

class ComposeRequest(BaseModel):
    bucket: str = Field(..., min_length=1)
    object_name: str = Field(..., min_length=1)
    total_pieces: int = Field(..., ge=1)

class ComposeResponse(BaseModel):
    composed: bool
    bucket: str
    object_name: str

class ObjectStatus(BaseModel):
    bucket: str
    object_name: str
    size: int
    etag: Optional[str] = None
    content_type: Optional[str] = None
    last_modified: Optional[datetime] = None

class PresignedUrlResponse(BaseModel):
    url: str
    expires: int

class CopyRequest(BaseModel):
    src_bucket: str = Field(..., min_length=1)
    src_object: str = Field(..., min_length=1)
    dest_bucket: str = Field(..., min_length=1)
    dest_object: str = Field(..., min_length=1)

class FolderStatus(BaseModel):
    bucket: str
    folder: str
    exists: bool
