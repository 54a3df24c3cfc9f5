"""
Authentication boundary.

Sign-in and sessions are handled upstream (reverse proxy / session middleware),
which forwards the signed-in user's id in the X-User-Id header. Requests
without it are rejected here, before any route code runs.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from skillroad import storage
from skillroad.database import get_db
from skillroad.models import User


def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    x_user_email: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> User:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Unauthorized")
    return storage.upsert_user(db, x_user_id.strip(), email=x_user_email)
