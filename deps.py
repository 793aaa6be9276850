"""
deps.py — FastAPI dependencies shared by the routers.

The bearer token is taken from each request's Authorization header; there
is no process-wide credential state.
"""

from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

import models
from auth import decode_token
from database import get_db
from file_records import FileRecordStore
from share_links import Clock, ShareLinkManager
from storage import StorageBackend, get_storage

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")


def get_clock() -> Clock:
    return models.utcnow


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> models.User:
    exc = HTTPException(
        status_code=401,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(token)
        user_id = int(payload.get("sub"))
    except (JWTError, TypeError, ValueError):
        raise exc

    user = db.get(models.User, user_id)
    if not user or not user.is_active:
        raise exc
    return user


def get_share_manager(
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
    clock: Clock = Depends(get_clock),
) -> ShareLinkManager:
    return ShareLinkManager(FileRecordStore(db), storage, clock=clock)
