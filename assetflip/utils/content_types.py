# assetflip/utils/content_types.py
import os

# S3's own default when no type is given
DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES = {
    ".css": "text/css",
    ".json": "application/json",
    ".manifest": "application/json",
    ".map": "application/json",
    ".html": "text/html",
    ".js": "application/javascript",
    ".mjs": "application/javascript",
    ".svg": "image/svg+xml",
    ".woff": "application/font-woff",
    ".woff2": "font/woff2",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".ico": "image/x-icon",
    ".txt": "text/plain",
}


def content_type_for(path: str) -> str:
    """Map a file name or path to the Content-Type sent with the upload."""
    _, ext = os.path.splitext(str(path))
    return CONTENT_TYPES.get(ext.lower(), DEFAULT_CONTENT_TYPE)
