"""
Password hashing and signed session cookies.
Passwords are never stored in plain text; the cookie carries only a signed session id.
"""
from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

# pbkdf2_sha256 avoids the bcrypt backend and its 72-byte password limit
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
ALGORITHM = "HS256"
SESSION_COOKIE = "teamhub.sid"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


def create_session_token(sid: str, secret: str, max_age: int) -> str:
    expire = datetime.now(timezone.utc) + timedelta(seconds=max_age)
    return jwt.encode({"sid": sid, "exp": expire}, secret, algorithm=ALGORITHM)


def decode_session_token(token: str, secret: str) -> str | None:
    """Session id from a signed cookie, or None if tampered with or expired."""
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError:
        return None
    sid = payload.get("sid")
    return sid if isinstance(sid, str) else None
