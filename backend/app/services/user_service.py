"""
Users: sign up / sign in, and the signed session token that carries the username.

The session cookie is a short HS256 JWT ({"sub": username, "iat", "exp"}) signed with SESSION_SECRET.
It only identifies the user; admin rights are looked up from the users table on each request.
"""
import logging
import time

import bcrypt
import jwt
from sqlalchemy.orm import Session

from app.config import settings
from app.core.errors import AuthError, ConflictError, NotFoundError
from app.db.session import commit_or_raise
from app.models.user import User

logger = logging.getLogger(__name__)

_SESSION_ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


def create_user(
    db: Session,
    username: str,
    password: str,
    *,
    first_name: str | None = None,
    last_name: str | None = None,
    email: str | None = None,
    bio: str | None = None,
) -> User:
    if db.get(User, username) is not None:
        raise ConflictError(f"username {username} already exists")
    if email and db.query(User).filter(User.email == email).first() is not None:
        raise ConflictError(f"email {email} already exists")
    user = User(
        username=username,
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        email=email,
        bio=bio,
        is_admin=False,
    )
    db.add(user)
    commit_or_raise(db, "create user")
    logger.info("User %s signed up", username)
    return user


def authenticate(db: Session, username: str, password: str) -> User:
    user = db.get(User, username)
    if user is None:
        raise AuthError("access denied. Have you created an account?")
    if not verify_password(password, user.password_hash):
        raise AuthError("access denied")
    return user


def set_admin(db: Session, username: str, is_admin: bool = True) -> User:
    """Grant/revoke admin (used by scripts/make_admin.py; there is no API for it)."""
    user = db.get(User, username)
    if user is None:
        raise NotFoundError(f"user {username} does not exist")
    user.is_admin = is_admin
    commit_or_raise(db, "set admin")
    return user


# --- Session token ---


def create_session_token(username: str, *, now: float | None = None) -> str:
    iat = int(now if now is not None else time.time())
    payload = {"sub": username, "iat": iat, "exp": iat + settings.session_max_age_seconds}
    token = jwt.encode(payload, settings.session_secret, algorithm=_SESSION_ALGORITHM)
    if isinstance(token, bytes):
        token = token.decode("utf-8")
    return token


def read_session_token(token: str | None) -> str | None:
    """Username from a session token, or None if missing, tampered with or expired."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.session_secret, algorithms=[_SESSION_ALGORITHM])
    except jwt.PyJWTError as e:
        logger.debug("Rejected session token: %s", e)
        return None
    sub = payload.get("sub")
    return sub if isinstance(sub, str) and sub else None
