# tracker/app/auth.py
"""
Request identity and the admin gate.

Tokens are issued by the external identity provider as HS256 JWTs carrying
``sub`` (provider user id), ``email`` and ``name``. The app never trusts
identity fields from a request body; everything comes from the verified token.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .config import settings
from .db import get_db
from .models import AppUser

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@dataclass
class Principal:
    auth_id: str
    email: Optional[str] = None
    name: Optional[str] = None


def create_principal_token(auth_id: str, email: Optional[str] = None, name: Optional[str] = None,
                           expires_in: int = 3600) -> str:
    """Mint a token the way the identity provider does (used by tests and local tooling)."""
    payload = {
        "sub": auth_id,
        "email": email,
        "name": name,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    return jwt.encode(payload, settings.AUTH_SECRET, algorithm=settings.AUTH_ALGORITHM)


def decode_principal_token(token: str) -> Principal:
    try:
        payload = jwt.decode(token, settings.AUTH_SECRET, algorithms=[settings.AUTH_ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    auth_id = payload.get("sub")
    if not auth_id:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return Principal(auth_id=auth_id, email=payload.get("email"), name=payload.get("name"))


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Principal:
    if not credentials:
        raise HTTPException(status_code=401, detail="Authentication required")
    return decode_principal_token(credentials.credentials)


def resolve_app_user(db: Session, principal: Principal) -> AppUser:
    """Return the AppUser for ``principal``, creating it with role 'user' on first sight."""
    user = db.query(AppUser).filter(AppUser.auth_id == principal.auth_id).first()
    if user:
        return user

    user = AppUser(auth_id=principal.auth_id, email=principal.email or "",
                   name=principal.name, role="user")
    db.add(user)
    try:
        db.commit()
        db.refresh(user)
    except IntegrityError:
        # lost a race with a concurrent first sync; unique auth_id kept one row
        db.rollback()
        return db.query(AppUser).filter(AppUser.auth_id == principal.auth_id).one()

    logger.info("created app user %s for auth id %s", user.id, principal.auth_id)
    return user


def get_current_user(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> AppUser:
    return resolve_app_user(db, principal)


def require_admin(user: AppUser = Depends(get_current_user)) -> AppUser:
    if user.role != "admin":
        raise HTTPException(status_code=403, detail="Forbidden")
    return user
