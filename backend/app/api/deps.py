"""
Request dependencies: session user, admin gate, live-update services.
"""
import logging

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.config import settings
from app.core.errors import AuthError
from app.db.session import get_db
from app.models.user import User
from app.services.live import LiveUpdates
from app.services.radar import RadarClient
from app.services.user_service import read_session_token

logger = logging.getLogger(__name__)


def get_session_username(request: Request) -> str | None:
    return read_session_token(request.cookies.get(settings.session_cookie_name))


def require_user(username: str | None = Depends(get_session_username)) -> str:
    """Username of the signed-in user (401 otherwise)."""
    if not username:
        raise AuthError("access denied")
    return username


def require_admin(username: str = Depends(require_user), db: Session = Depends(get_db)) -> User:
    user = db.get(User, username)
    if user is None or not user.is_admin:
        logger.warning("Admin route denied for user=%s", username)
        raise AuthError("access denied, user is not admin")
    return user


def get_live(request: Request) -> LiveUpdates:
    return request.app.state.live


def get_radar(request: Request) -> RadarClient:
    return request.app.state.radar
