"""
purge_expired.py — Reclaim storage held by expired shares.

Expired files are already unreachable (every read checks expires_at), so
this is housekeeping only. Run it by hand or from cron:

  python purge_expired.py

Safe to run multiple times.
"""

import logging

import config
from database import SessionLocal, init_db
from file_records import FileRecordStore
from share_links import ShareLinkManager
from storage import get_storage

logger = logging.getLogger(__name__)


def run() -> int:
    init_db()
    db = SessionLocal()
    try:
        manager = ShareLinkManager(FileRecordStore(db), get_storage())
        return manager.purge_expired()
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=getattr(logging, config.LOG_LEVEL, logging.INFO))
    purged = run()
    print(f"✅ Purged {purged} expired file(s)")
