from types import MappingProxyType
from typing import Optional

DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES = MappingProxyType({
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "jfif": "image/jpeg",
    "jpe": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "tif": "image/tiff",
    "tiff": "image/tiff",
    "ico": "image/x-icon",
    "wbmp": "image/vnd.wap.wbmp",
    "fax": "image/fax",
    "net": "image/pnetvue",
    "rp": "image/vnd.rn-realpix",
    "mp4": "video/mp4",
})


def get_content_type(name: Optional[str]) -> str:
    """
    Resolve the Content-Type for a file name or a bare suffix.

    Only the part after the last "." is considered, case-insensitively.
    Unknown or missing suffixes map to application/octet-stream.
    """
    if name is None or not name.strip():
        return DEFAULT_CONTENT_TYPE
    suffix = name.strip().rsplit(".", 1)[-1].lower()
    return CONTENT_TYPES.get(suffix, DEFAULT_CONTENT_TYPE)
