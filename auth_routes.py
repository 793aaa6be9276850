# auth_routes.py

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

import models
import schemas
from auth import create_access_token
from database import get_db
from deps import get_current_user
from errors import ValidationError
from security import hash_password, validate_password_strength, verify_password
from share_links import validate_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _token_for(user: models.User) -> schemas.Token:
    token = create_access_token({"sub": str(user.id)})
    return schemas.Token(access_token=token, user=schemas.UserOut.model_validate(user))


@router.post("/register", response_model=schemas.Token, status_code=201)
def register(user: schemas.UserCreate, db: Session = Depends(get_db)):
    username = user.username.strip()
    if not username:
        raise ValidationError("Username is required")
    email = validate_email(user.email).lower()
    ok, reason = validate_password_strength(user.password)
    if not ok:
        raise ValidationError(reason)

    if db.query(models.User).filter(models.User.username == username).first():
        raise ValidationError("Username already taken")
    if db.query(models.User).filter(models.User.email == email).first():
        raise ValidationError("Email already registered")

    db_user = models.User(
        username=username,
        email=email,
        password_hash=hash_password(user.password),
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)

    logger.info(f"👤 Registered user {db_user.id} ({username})")
    return _token_for(db_user)


@router.post("/login", response_model=schemas.Token)
def login(user: schemas.UserLogin, db: Session = Depends(get_db)):
    db_user = db.query(models.User).filter(models.User.email == user.email.strip().lower()).first()
    if not db_user or not db_user.is_active or not verify_password(user.password, db_user.password_hash):
        logger.info("Failed login attempt")
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return _token_for(db_user)


@router.get("/me", response_model=schemas.UserOut)
def me(current_user: models.User = Depends(get_current_user)):
    return current_user
