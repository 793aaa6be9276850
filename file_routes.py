# file_routes.py

import math
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import StreamingResponse

import config
import models
from deps import get_current_user, get_share_manager
from email_service import send_file_share_email
from errors import ValidationError
from file_service import content_disposition, resolve_mime
from schemas import (
    FileListOut,
    FileOut,
    FilePublicOut,
    Pagination,
    ShareEmailRequest,
    ShareEmailResponse,
    StatsOut,
)
from share_links import ShareLinkManager, validate_email
from storage import iter_chunks

router = APIRouter(prefix="/files", tags=["Files"])


# ─── UPLOAD ───────────────────────────────────────────

@router.post("/upload", response_model=FileOut, status_code=201)
def upload_file(
    file: Optional[UploadFile] = File(None),
    manager: ShareLinkManager = Depends(get_share_manager),
    current_user: models.User = Depends(get_current_user),
):
    if file is None or not file.filename:
        raise ValidationError("No file uploaded")

    # one byte past the limit is enough to reject without reading everything
    content = file.file.read(config.MAX_UPLOAD_BYTES + 1)
    mime_type = resolve_mime(file.filename, file.content_type)
    return manager.upload(current_user.id, content, file.filename, mime_type)


# ─── OWNER LISTINGS ───────────────────────────────────

@router.get("/my-files", response_model=FileListOut)
def my_files(
    page: int = Query(1),
    limit: int = Query(config.DEFAULT_PAGE_SIZE),
    manager: ShareLinkManager = Depends(get_share_manager),
    current_user: models.User = Depends(get_current_user),
):
    files, total = manager.list_owned(current_user.id, page=page, page_size=limit)
    return FileListOut(
        files=[FileOut.model_validate(f) for f in files],
        pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
    )


@router.get("/recent", response_model=list[FileOut])
def recent_files(
    limit: int = Query(5),
    manager: ShareLinkManager = Depends(get_share_manager),
    current_user: models.User = Depends(get_current_user),
):
    return manager.list_recent(current_user.id, limit=limit)


@router.get("/stats", response_model=StatsOut)
def file_stats(
    manager: ShareLinkManager = Depends(get_share_manager),
    current_user: models.User = Depends(get_current_user),
):
    return manager.aggregate_stats(current_user.id)


# ─── PUBLIC SHARE ACCESS ──────────────────────────────

@router.get("/share/{share_id}", response_model=FilePublicOut)
def shared_file_info(share_id: str, manager: ShareLinkManager = Depends(get_share_manager)):
    return manager.resolve_public(share_id)


@router.get("/download/{share_id}")
def download_shared_file(share_id: str, manager: ShareLinkManager = Depends(get_share_manager)):
    record, stream = manager.authorize_download(share_id)
    return StreamingResponse(
        iter_chunks(stream),
        media_type=record.mime_type or "application/octet-stream",
        headers={
            "Content-Disposition": content_disposition(record.original_name),
            "Content-Length": str(record.size_bytes),
        },
    )


# ─── OWNER ACTIONS ────────────────────────────────────

@router.post("/share-email", response_model=ShareEmailResponse)
def share_by_email(
    req: ShareEmailRequest,
    manager: ShareLinkManager = Depends(get_share_manager),
    current_user: models.User = Depends(get_current_user),
):
    if not req.share_id or not req.email:
        raise ValidationError("Share ID and email are required")
    email = validate_email(req.email)

    record = manager.authorize_share_by_owner(req.share_id, current_user.id)
    share_url = manager.share_url(record.share_id)
    send_file_share_email(
        email,
        current_user.username or current_user.email,
        record.original_name,
        share_url,
        record.size_bytes,
    )
    return ShareEmailResponse(
        message="Email sent successfully",
        email=email,
        file_name=record.original_name,
        share_url=share_url,
    )


@router.delete("/{file_id}")
def delete_file(
    file_id: str,
    manager: ShareLinkManager = Depends(get_share_manager),
    current_user: models.User = Depends(get_current_user),
):
    manager.delete(file_id, current_user.id)
    return {"message": "File deleted successfully", "file_id": file_id}
