"""
share_links.py — Share-link lifecycle for uploaded files.

A FileRecord gets a random share id when it is issued and keeps it for
life. Expiry is never stored: every read compares expires_at with the
injected clock, so a record is Active, Expired or gone.
"""

import logging
import re
import uuid
from datetime import datetime, timedelta
from typing import BinaryIO, Callable, List, Optional, Tuple

import config
from errors import (
    GENERIC_SHARE_MESSAGE,
    Expired,
    Forbidden,
    NotFound,
    StorageError,
    ValidationError,
)
from file_records import FileRecordStore
from file_service import generate_stored_name, validate_upload
from models import FileRecord, utcnow
from storage import StorageBackend

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

Clock = Callable[[], datetime]


def new_share_id() -> str:
    # uuid4 draws from os.urandom: 122 random bits, unrelated to the file
    return str(uuid.uuid4())


def validate_email(email: Optional[str]) -> str:
    if not email or not EMAIL_RE.match(email.strip()):
        raise ValidationError("Invalid email address")
    return email.strip()


class ShareLinkManager:

    def __init__(
        self,
        records: FileRecordStore,
        storage: StorageBackend,
        clock: Clock = utcnow,
        retention: timedelta = timedelta(days=config.RETENTION_DAYS),
    ):
        self.records = records
        self.storage = storage
        self.clock = clock
        self.retention = retention

    # ─── Creation ───────────────────────────────────────────

    def upload(self, owner_id: int, content: bytes, original_name: str, mime_type: str) -> FileRecord:
        """
        Persist bytes, then metadata. If the metadata write fails the
        bytes are removed again and the original error is re-raised.
        """
        validate_upload(original_name, len(content))
        stored_name = generate_stored_name(original_name)
        blob_path = self.storage.put(content, stored_name, content_type=mime_type)

        try:
            record = self.issue(
                owner_id=owner_id,
                blob_path=blob_path,
                original_name=original_name,
                mime_type=mime_type,
                size_bytes=len(content),
                stored_name=stored_name,
            )
        except Exception:
            logger.warning(f"Metadata write failed, removing uploaded bytes: {stored_name}")
            try:
                self.storage.delete(blob_path)
            except StorageError as cleanup_error:
                logger.error(f"Error cleaning up blob {stored_name}: {cleanup_error}")
            raise

        logger.info(
            f"📤 Uploaded {original_name!r} ({record.size_bytes} bytes) "
            f"owner={owner_id} share_id={record.share_id}"
        )
        return record

    def issue(
        self,
        owner_id: int,
        blob_path: str,
        original_name: str,
        mime_type: str,
        size_bytes: int,
        stored_name: Optional[str] = None,
    ) -> FileRecord:
        if size_bytes < 0:
            raise ValidationError("File size cannot be negative")
        created_at = self.clock()
        record = FileRecord(
            stored_name=stored_name or blob_path,
            original_name=original_name,
            mime_type=mime_type,
            size_bytes=size_bytes,
            blob_path=blob_path,
            owner_id=owner_id,
            share_id=new_share_id(),
            download_count=0,
            created_at=created_at,
            expires_at=created_at + self.retention,
        )
        return self.records.create(record)

    # ─── Public access ──────────────────────────────────────

    def _resolve(self, share_id: str) -> FileRecord:
        record = self.records.find_by_share_id(share_id)
        if record is None:
            raise NotFound(GENERIC_SHARE_MESSAGE)
        if record.is_expired(self.clock()):
            raise Expired(GENERIC_SHARE_MESSAGE)
        return record

    def resolve_public(self, share_id: str) -> FileRecord:
        return self._resolve(share_id)

    def authorize_download(self, share_id: str) -> Tuple[FileRecord, BinaryIO]:
        """
        Check expiry and blob presence, open the bytes, then count the
        download. The count is committed before any byte is sent, so it
        records authorised attempts rather than completed transfers.
        """
        record = self._resolve(share_id)
        if not self.storage.exists(record.blob_path):
            logger.warning(f"❌ Bytes missing for share_id={share_id}")
            logger.debug(f"Missing blob path: {record.blob_path}")
            raise NotFound("File not found on server")

        stream = self.storage.open(record.blob_path)
        try:
            count = self.records.increment_download_count(record.id)
        except Exception:
            stream.close()
            raise

        logger.info(f"📥 Download authorised share_id={share_id} count={count}")
        return record, stream

    # ─── Owner actions ──────────────────────────────────────

    def authorize_owner_action(self, file_id: str, requester_id: int) -> FileRecord:
        record = self.records.find_by_id(file_id)
        if record is None:
            raise NotFound("File not found")
        if record.owner_id != requester_id:
            raise Forbidden("You can only manage your own files")
        return record

    def authorize_share_by_owner(self, share_id: str, requester_id: int) -> FileRecord:
        record = self.records.find_by_share_id(share_id)
        if record is None:
            raise NotFound("File not found")
        if record.owner_id != requester_id:
            raise Forbidden("You can only share your own files")
        if record.is_expired(self.clock()):
            raise Expired("File has expired and cannot be shared")
        return record

    def _remove(self, record: FileRecord) -> None:
        # bytes first: metadata must not outlive a delete attempt on its blob
        try:
            self.storage.delete(record.blob_path)
        except StorageError as e:
            logger.error(f"Error deleting bytes for file {record.id}: {e}")
        self.records.delete_by_id(record.id)

    def delete(self, file_id: str, requester_id: int) -> None:
        record = self.authorize_owner_action(file_id, requester_id)
        share_id = record.share_id
        self._remove(record)
        logger.info(f"🗑️ Deleted file {file_id} share_id={share_id} by owner={requester_id}")

    def list_owned(self, owner_id: int, page: int = 1, page_size: int = config.DEFAULT_PAGE_SIZE) -> Tuple[List[FileRecord], int]:
        if page < 1:
            raise ValidationError("page must be at least 1")
        if page_size < 1 or page_size > config.MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {config.MAX_PAGE_SIZE}")
        skip = (page - 1) * page_size
        files = self.records.find_by_owner(owner_id, skip=skip, limit=page_size)
        return files, self.records.count_by_owner(owner_id)

    def list_recent(self, owner_id: int, limit: int = 5) -> List[FileRecord]:
        files, _ = self.list_owned(owner_id, page=1, page_size=limit)
        return files

    def aggregate_stats(self, owner_id: int) -> dict:
        return self.records.aggregate_by_owner(owner_id)

    def share_url(self, share_id: str) -> str:
        return f"{config.FRONTEND_URL}/share/{share_id}"

    # ─── Maintenance ────────────────────────────────────────

    def purge_expired(self) -> int:
        """Reclaim storage for every record already past its expiry."""
        expired = self.records.find_expired(self.clock())
        for record in expired:
            self._remove(record)
        if expired:
            logger.info(f"🧹 Purged {len(expired)} expired file(s)")
        return len(expired)
