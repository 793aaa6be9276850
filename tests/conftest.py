"""Shared pytest fixtures for all tests."""

import os
import tempfile
from datetime import datetime, timedelta

# Settings are read at import time; point them somewhere disposable first.
_TMP = tempfile.mkdtemp(prefix="fileshare-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'app.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP, "uploads")
os.environ["SECRET_KEY"] = "test-secret-key-with-enough-length!"
os.environ["FRONTEND_URL"] = "http://frontend.test"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

import models  # noqa: E402
from auth import create_access_token  # noqa: E402
from database import Base, build_engine, get_db  # noqa: E402
from deps import get_clock  # noqa: E402
from file_records import FileRecordStore  # noqa: E402
from share_links import ShareLinkManager  # noqa: E402
from storage import LocalDiskStorage, get_storage  # noqa: E402


class FakeClock:
    """Controllable time source returning naive UTC datetimes."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 1, 12, 0, 0))


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def storage(tmp_path):
    return LocalDiskStorage(str(tmp_path / "blobs"))


@pytest.fixture
def records(db):
    return FileRecordStore(db)


@pytest.fixture
def manager(records, storage, clock):
    return ShareLinkManager(records, storage, clock=clock)


def _make_user(db, username: str) -> models.User:
    user = models.User(username=username, email=f"{username}@example.com", password_hash="unused")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def alice(db):
    return _make_user(db, "alice")


@pytest.fixture
def bob(db):
    return _make_user(db, "bob")


def auth_headers(user: models.User) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
def client(session_factory, storage, clock):
    """
    FastAPI test client bound to the per-test database, blob dir and clock.
    """
    from main import app

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
