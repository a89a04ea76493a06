"""
Session Cookie - Signed Sign-In State
=====================================

The browser keeps an HS256 JWT naming the signed-in user. A cookie that does
not verify (wrong signature, expired, malformed) counts as signed out.
"""

import datetime as dt
import logging
from typing import Optional

import jwt
from fastapi import Request, Response

from ..infrastructure.config import get_settings

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session"
ALGORITHM = "HS256"


def create_session_token(user_id: int, role: str) -> str:
    settings = get_settings().session
    now = dt.datetime.now(dt.timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int((now + dt.timedelta(hours=settings.lifetime_hours)).timestamp()),
    }
    return jwt.encode(payload, settings.signing_key, algorithm=ALGORITHM)


def decode_session_token(token: str) -> Optional[int]:
    """User id carried by a session token, or None."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, get_settings().session.signing_key, algorithms=[ALGORITHM])
        return int(payload["sub"])
    except (jwt.InvalidTokenError, KeyError, TypeError, ValueError) as e:
        logger.debug(f"Rejected session cookie: {type(e).__name__}")
        return None


def session_user_id(request: Request) -> Optional[int]:
    return decode_session_token(request.cookies.get(SESSION_COOKIE, ""))


def start_session(response: Response, user_id: int, role: str) -> Response:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=create_session_token(user_id, role),
        max_age=get_settings().session.lifetime_hours * 3600,
        httponly=True,
        samesite="lax",
    )
    return response


def end_session(response: Response) -> Response:
    response.delete_cookie(SESSION_COOKIE)
    return response
