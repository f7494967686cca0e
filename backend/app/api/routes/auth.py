"""
Sign up / sign in / sign out.

Sign in sets two cookies: the signed session cookie (HttpOnly) and a readable `username`
cookie the frontend uses to show who is logged in (not secret).
"""
import logging

from fastapi import APIRouter, Depends, Response
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.config import settings
from app.db.session import get_db
from app.services.user_service import authenticate, create_session_token, create_user

router = APIRouter()
logger = logging.getLogger(__name__)

_USERNAME_PATTERN = "^[A-Za-z0-9]+$"


class SignUpBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(..., min_length=1, max_length=100, pattern=_USERNAME_PATTERN)
    password: str = Field(..., min_length=8, max_length=16)
    first_name: str | None = Field(None, alias="firstName", max_length=100)
    last_name: str | None = Field(None, alias="lastName", max_length=100)
    email: str | None = Field(None, max_length=254, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    bio: str | None = Field(None, max_length=1000)


class SignInBody(BaseModel):
    username: str = Field(..., min_length=1, max_length=100, pattern=_USERNAME_PATTERN)
    password: str = Field(..., min_length=8, max_length=16)


def _set_cookie(response: Response, key: str, value: str, *, httponly: bool) -> None:
    response.set_cookie(
        key,
        value,
        max_age=settings.session_max_age_seconds,
        path="/",
        secure=settings.is_production,  # HTTPS only in production
        httponly=httponly,
        samesite="strict",
    )


@router.post("/signup/")
def sign_up(body: SignUpBody, db: Session = Depends(get_db)):
    """Create an account. 409 if the username (or email) is taken."""
    user = create_user(
        db,
        body.username,
        body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        email=(body.email or "").lower() or None,
        bio=body.bio,
    )
    return f"user {user.username} signed up"


@router.post("/signin/")
def sign_in(body: SignInBody, response: Response, db: Session = Depends(get_db)):
    user = authenticate(db, body.username, body.password)
    _set_cookie(response, settings.session_cookie_name, create_session_token(user.username), httponly=True)
    _set_cookie(response, "username", user.username, httponly=False)
    logger.info("User %s signed in", user.username)
    return f"user {user.username} signed in"


@router.get("/signout/")
def sign_out():
    response = RedirectResponse(url="/", status_code=302)
    response.delete_cookie(settings.session_cookie_name, path="/")
    _set_cookie(response, "username", "", httponly=False)
    return response
