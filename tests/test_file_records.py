"""Integration tests for the file record store."""

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from errors import NotFound, StorageError
from file_records import FileRecordStore
from models import FileRecord

T0 = datetime(2026, 3, 1, 9, 0, 0)


def _record(owner_id, share_id, created_at=T0, size=10, stored_name=None, downloads=0):
    return FileRecord(
        stored_name=stored_name or f"{share_id}.bin",
        original_name=f"{share_id}.txt",
        mime_type="text/plain",
        size_bytes=size,
        blob_path=stored_name or f"{share_id}.bin",
        owner_id=owner_id,
        share_id=share_id,
        download_count=downloads,
        created_at=created_at,
        expires_at=created_at + timedelta(days=30),
    )


class TestFileRecordStore:

    def test_create_assigns_id(self, records, alice):
        record = records.create(_record(alice.id, "s1"))
        assert record.id
        assert records.find_by_id(record.id).share_id == "s1"

    def test_find_by_share_id(self, records, alice):
        records.create(_record(alice.id, "s1"))
        assert records.find_by_share_id("s1").original_name == "s1.txt"
        assert records.find_by_share_id("s2") is None

    def test_duplicate_share_id_rejected(self, records, alice):
        records.create(_record(alice.id, "dup", stored_name="a.bin"))
        with pytest.raises(StorageError):
            records.create(_record(alice.id, "dup", stored_name="b.bin"))
        # session is usable again after the rollback
        assert records.find_by_share_id("dup") is not None

    def test_find_by_owner_orders_and_paginates(self, records, alice, bob):
        for i in range(4):
            records.create(_record(alice.id, f"a{i}", created_at=T0 + timedelta(hours=i)))
        records.create(_record(bob.id, "b0"))

        assert [r.share_id for r in records.find_by_owner(alice.id, skip=0, limit=3)] == ["a3", "a2", "a1"]
        assert [r.share_id for r in records.find_by_owner(alice.id, skip=3, limit=3)] == ["a0"]
        assert records.count_by_owner(alice.id) == 4
        assert records.count_by_owner(bob.id) == 1

    def test_increment_download_count_returns_new_value(self, records, alice):
        record = records.create(_record(alice.id, "s1"))
        assert records.increment_download_count(record.id) == 1
        assert records.increment_download_count(record.id) == 2
        assert records.find_by_id(record.id).download_count == 2

    def test_increments_from_separate_sessions_accumulate(self, session_factory, alice):
        first = FileRecordStore(session_factory())
        second = FileRecordStore(session_factory())
        record_id = first.create(_record(alice.id, "s1")).id

        # the second session loads the row before the first one writes
        assert second.find_by_id(record_id).download_count == 0
        first.increment_download_count(record_id)
        assert second.increment_download_count(record_id) == 2

        first.db.close()
        second.db.close()

    def test_increment_missing_record(self, records):
        with pytest.raises(NotFound):
            records.increment_download_count("missing")

    def test_delete_by_id(self, records, alice):
        record = records.create(_record(alice.id, "s1"))
        record_id = record.id
        assert records.delete_by_id(record_id) is True
        assert records.find_by_id(record_id) is None
        assert records.delete_by_id(record_id) is False

    def test_find_expired(self, records, alice):
        records.create(_record(alice.id, "old", created_at=T0 - timedelta(days=40)))
        records.create(_record(alice.id, "new", created_at=T0))
        assert [r.share_id for r in records.find_expired(T0)] == ["old"]

    def test_aggregate_by_owner(self, records, alice, bob):
        records.create(_record(alice.id, "a", size=100, downloads=2))
        records.create(_record(alice.id, "b", size=20, downloads=3))
        records.create(_record(bob.id, "c", size=5, downloads=9))
        assert records.aggregate_by_owner(alice.id) == {
            "total_files": 2,
            "total_size_bytes": 120,
            "total_downloads": 5,
        }

    def test_aggregate_by_owner_empty(self, records, alice):
        assert records.aggregate_by_owner(alice.id) == {
            "total_files": 0,
            "total_size_bytes": 0,
            "total_downloads": 0,
        }

    def test_driver_errors_become_storage_errors(self, records, alice):
        with patch.object(records.db, "commit", side_effect=OperationalError("stmt", {}, Exception("locked"))):
            with pytest.raises(StorageError):
                records.create(_record(alice.id, "s1"))
