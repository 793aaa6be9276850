import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, BigInteger, Boolean, ForeignKey
from database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp; all columns below store UTC without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


# ─────────────────────────────────────────────────────────────
# User Model
# ─────────────────────────────────────────────────────────────
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)


# ─────────────────────────────────────────────────────────────
# File Record Model
# ─────────────────────────────────────────────────────────────
class FileRecord(Base):
    __tablename__ = "files"

    id = Column(String, primary_key=True, default=new_id)
    stored_name = Column(String, unique=True, nullable=False)
    original_name = Column(String, nullable=False)
    mime_type = Column(String, nullable=False)
    size_bytes = Column(BigInteger, nullable=False)
    blob_path = Column(String, nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    share_id = Column(String, unique=True, nullable=False, index=True)
    download_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at
