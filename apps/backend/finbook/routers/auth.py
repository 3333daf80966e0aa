from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from finbook import models
from finbook.core.database import get_db
from finbook.core.security import create_access_token, hash_password, verify_password
from finbook.schemas import LoginRequest, SignupRequest, TokenOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=TokenOut, status_code=201)
def signup(payload: SignupRequest, db: Session = Depends(get_db)):
    email = payload.email.lower()
    exists = db.query(models.User.id).filter(models.User.email == email).first()
    if exists:
        raise HTTPException(status_code=409, detail="An account with this email already exists.")
    user = models.User(email=email, password_hash=hash_password(payload.password))
    user.profile = models.UserProfile(name=payload.name)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("New user signed up: %s", user.id)
    return TokenOut(access_token=create_access_token(user.id))


@router.post("/login", response_model=TokenOut)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(models.User).filter(models.User.email == payload.email.lower()).first()
    if not user or not user.is_active or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password.")
    return TokenOut(access_token=create_access_token(user.id))
