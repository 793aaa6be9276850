from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime


class UserCreate(BaseModel):
    username: str
    email: str
    password: str


class UserLogin(BaseModel):
    email: str
    password: str


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    created_at: Optional[datetime] = None


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class FileOut(BaseModel):
    """Owner view: everything except the blob location."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    original_name: str
    mime_type: str
    size_bytes: int
    share_id: str
    download_count: int
    created_at: datetime
    expires_at: datetime


class FilePublicOut(BaseModel):
    """Anonymous view reachable by share id; no internal identifiers."""
    model_config = ConfigDict(from_attributes=True)

    share_id: str
    original_name: str
    mime_type: str
    size_bytes: int
    download_count: int
    created_at: datetime
    expires_at: datetime


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class FileListOut(BaseModel):
    files: List[FileOut]
    pagination: Pagination


class StatsOut(BaseModel):
    total_files: int
    total_size_bytes: int
    total_downloads: int


class ShareEmailRequest(BaseModel):
    share_id: Optional[str] = None
    email: Optional[str] = None


class ShareEmailResponse(BaseModel):
    message: str
    email: str
    file_name: str
    share_url: str
