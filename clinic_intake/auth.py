"""
auth.py
=======
Account registration, password checks and JWT bearer authentication.

Tokens carry ``{id, email, role, name, exp}`` and are signed with HS256.
Routes depend on ``get_current_user`` (any logged-in user) or
``require_admin``.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from . import config
from .exceptions import AuthError, InvalidRequestError
from .models import Role, User

logger = logging.getLogger(__name__)

# auto_error=False so a missing header yields 401 rather than FastAPI's default
security = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# PASSWORDS
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    # bcrypt only looks at the first 72 bytes
    return bcrypt.hashpw(password.encode("utf-8")[:72], bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8")[:72], password_hash.encode("utf-8"))
    except ValueError:
        return False


# ---------------------------------------------------------------------------
# TOKENS
# ---------------------------------------------------------------------------

def create_token(user: User) -> str:
    """Create a signed access token for the given user."""
    payload = {
        "id": user.id,
        "email": user.email,
        "role": user.role.value,
        "name": user.name,
        "exp": datetime.now(timezone.utc) + timedelta(hours=config.JWT_EXPIRE_HOURS),
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and verify a token. Raises ``jwt.PyJWTError`` when invalid or expired."""
    return jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Dict[str, Any]:
    """FastAPI dependency returning the decoded token claims."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access denied, no token provided",
        )
    try:
        return decode_token(credentials.credentials)
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")


def require_admin(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    """FastAPI dependency that only lets admins through."""
    if user.get("role") != Role.admin.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied, admin role required",
        )
    return user


# ---------------------------------------------------------------------------
# ACCOUNTS
# ---------------------------------------------------------------------------

def register_patient(db: Session, email: str, password: str, name: str) -> User:
    """Create a patient account."""
    if not email or not password or not name:
        raise InvalidRequestError("All fields are required")

    if db.query(User).filter(User.email == email).first():
        raise InvalidRequestError("User with this email already exists")

    user = User(email=email, password_hash=hash_password(password), role=Role.patient, name=name)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered patient %s (id=%s)", email, user.id)
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """Return the user for valid credentials, raise ``AuthError`` otherwise."""
    if not email or not password:
        raise InvalidRequestError("Email and password are required")

    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(password, user.password_hash):
        logger.info("Failed login for %s", email)
        raise AuthError()
    return user


def seed_admin(db: Session) -> None:
    """Create the configured admin account when no admin exists yet."""
    if db.query(User).filter(User.role == Role.admin).count():
        return
    db.add(User(
        email=config.ADMIN_EMAIL,
        password_hash=hash_password(config.ADMIN_PASSWORD),
        role=Role.admin,
        name=config.ADMIN_NAME,
    ))
    db.commit()
    logger.info("Seeded admin account %s", config.ADMIN_EMAIL)
