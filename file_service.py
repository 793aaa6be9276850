"""
file_service.py — Helpers for turning an upload into storable bytes.

Stored names are random and independent of the user-supplied filename;
only the (sanitised) extension is kept so the blob is recognisable on disk.
"""
import os
import re
import uuid
from urllib.parse import quote

import config
from errors import ValidationError

DEFAULT_MIME = "application/octet-stream"

# Extension → MIME type map (avoids python-magic cross-platform issues)
MIME_MAP = {
    "pdf":  "application/pdf",
    "png":  "image/png",
    "jpg":  "image/jpeg",
    "jpeg": "image/jpeg",
    "gif":  "image/gif",
    "webp": "image/webp",
    "txt":  "text/plain",
    "md":   "text/markdown",
    "csv":  "text/csv",
    "json": "application/json",
    "xml":  "application/xml",
    "zip":  "application/zip",
    "tar":  "application/x-tar",
    "gz":   "application/gzip",
    "mp4":  "video/mp4",
    "mp3":  "audio/mpeg",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
}

_EXT_RE = re.compile(r"^[A-Za-z0-9]{1,10}$")


def detect_mime(filename: str) -> str:
    """Detect MIME type from file extension."""
    if "." in filename:
        ext = filename.rsplit(".", 1)[-1].lower()
        return MIME_MAP.get(ext, DEFAULT_MIME)
    return DEFAULT_MIME


def resolve_mime(filename: str, content_type: str = None) -> str:
    """Prefer the client's content type unless it is missing or generic."""
    if content_type and content_type != DEFAULT_MIME:
        return content_type
    return detect_mime(filename)


def generate_stored_name(original_name: str) -> str:
    ext = os.path.splitext(os.path.basename(original_name))[1].lstrip(".")
    suffix = f".{ext.lower()}" if _EXT_RE.match(ext) else ""
    return f"{uuid.uuid4().hex}{suffix}"


def validate_upload(original_name: str, size: int) -> None:
    if not original_name or not original_name.strip():
        raise ValidationError("No file uploaded")
    if size > config.MAX_UPLOAD_BYTES:
        mb = config.MAX_UPLOAD_BYTES // (1024 * 1024)
        raise ValidationError(f"File size too large. Maximum size is {mb}MB.")


def content_disposition(filename: str) -> str:
    """attachment header with an ASCII fallback plus RFC 5987 UTF-8 name."""
    fallback = filename.encode("ascii", "replace").decode("ascii").replace('"', "'")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"
