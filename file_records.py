"""
file_records.py — Persistence for FileRecord metadata.

All writes commit immediately. Any SQLAlchemy failure is rolled back and
surfaced as StorageError so callers never see driver exceptions.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from errors import GENERIC_SHARE_MESSAGE, NotFound, StorageError
from models import FileRecord

logger = logging.getLogger(__name__)


class FileRecordStore:

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, action: str, e: Exception):
        self.db.rollback()
        logger.error(f"File record {action} failed: {e}")
        raise StorageError(f"Failed to {action} file record") from e

    def create(self, record: FileRecord) -> FileRecord:
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as e:
            self._fail("create", e)
        return record

    def find_by_share_id(self, share_id: str) -> Optional[FileRecord]:
        return self.db.query(FileRecord).filter(FileRecord.share_id == share_id).first()

    def find_by_id(self, file_id: str) -> Optional[FileRecord]:
        return self.db.get(FileRecord, file_id)

    def find_by_owner(self, owner_id: int, skip: int = 0, limit: int = 10) -> List[FileRecord]:
        return (
            self.db.query(FileRecord)
            .filter(FileRecord.owner_id == owner_id)
            .order_by(FileRecord.created_at.desc(), FileRecord.id)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count_by_owner(self, owner_id: int) -> int:
        return self.db.query(FileRecord).filter(FileRecord.owner_id == owner_id).count()

    def find_expired(self, now: datetime) -> List[FileRecord]:
        return self.db.query(FileRecord).filter(FileRecord.expires_at < now).all()

    def delete_by_id(self, file_id: str) -> bool:
        try:
            deleted = self.db.query(FileRecord).filter(FileRecord.id == file_id).delete()
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail("delete", e)
        return deleted > 0

    def increment_download_count(self, file_id: str) -> int:
        """
        Atomically add one to download_count and return the new value.

        The increment is a single UPDATE evaluated by the database, so
        concurrent downloads never overwrite each other's count.
        """
        try:
            self.db.execute(
                update(FileRecord)
                .where(FileRecord.id == file_id)
                .values(download_count=FileRecord.download_count + 1)
                .execution_options(synchronize_session=False)
            )
            count = self.db.query(FileRecord.download_count).filter(FileRecord.id == file_id).scalar()
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail("update", e)
        if count is None:
            raise NotFound(GENERIC_SHARE_MESSAGE)
        return count

    def aggregate_by_owner(self, owner_id: int) -> dict:
        total_files, total_size, total_downloads = (
            self.db.query(
                func.count(FileRecord.id),
                func.coalesce(func.sum(FileRecord.size_bytes), 0),
                func.coalesce(func.sum(FileRecord.download_count), 0),
            )
            .filter(FileRecord.owner_id == owner_id)
            .one()
        )
        return {
            "total_files": int(total_files),
            "total_size_bytes": int(total_size),
            "total_downloads": int(total_downloads),
        }
