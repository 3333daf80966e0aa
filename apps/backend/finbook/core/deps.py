from __future__ import annotations

import hmac
import logging

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from finbook.core.config import settings
from finbook.core.database import get_db
from finbook.core.security import decode_access_token
from finbook import models

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def ensure_profile(db: Session, user: models.User) -> models.UserProfile:
    """Profiles are created implicitly the first time a user is seen."""
    if user.profile is None:
        profile = models.UserProfile(user_id=user.id, name=user.email.split("@")[0])
        db.add(profile)
        db.commit()
        db.refresh(user)
        logger.info("Created profile for user %s", user.id)
    return user.profile


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> models.User:
    """Resolve the ``Authorization: Bearer`` token to an active user.

    Tests override this dependency to act as a specific user.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Unauthorized", headers={"WWW-Authenticate": "Bearer"})
    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Unauthorized", headers={"WWW-Authenticate": "Bearer"})
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Unauthorized", headers={"WWW-Authenticate": "Bearer"})
    ensure_profile(db, user)
    return user


def require_cron_secret(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> None:
    expected = settings.CRON_SECRET
    if not expected:
        logger.error("CRON_SECRET is not configured; rejecting job trigger")
        raise HTTPException(status_code=401, detail="Unauthorized")
    supplied = credentials.credentials if credentials else ""
    if not hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Unauthorized")
