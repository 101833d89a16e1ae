"""Stateless cookie sessions.

The session cookie carries a HS256-signed JWT with the user id and an absolute
expiry. Nothing is stored server-side: a session ends when the cookie is
dropped, when the expiry passes, or when the signing key changes.
"""

import datetime
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends, Request, Response
from fastapi.responses import RedirectResponse
from loguru import logger
from passlib.hash import bcrypt

from .config import Settings
from .errors import ApiError

COOKIE_NAME = "session"
ALGORITHM = "HS256"
SESSION_DURATION_DAYS = 7

LOGIN_PATH = "/login"
HOME_PATH = "/"
PUBLIC_PATHS = frozenset({"/login", "/signup"})
# API handlers check the session themselves.
UNGUARDED_PREFIXES = ("/api/", "/static/")
UNGUARDED_PATHS = frozenset({"/api", "/favicon.ico"})

_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)


def hash_password(password: str) -> str:
    return bcrypt.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.verify(password, password_hash)


@dataclass(frozen=True)
class SessionClaims:
    user_id: str
    expires: datetime.datetime
    issued_at: datetime.datetime


class SessionManager:
    """Issues, verifies and revokes session tokens and their cookie."""

    def __init__(
        self,
        secret_key: str,
        *,
        secure: bool = False,
        lifetime_days: int = SESSION_DURATION_DAYS,
        algorithm: str = ALGORITHM,
    ):
        self.secret_key = secret_key
        self.secure = secure
        self.lifetime = datetime.timedelta(days=lifetime_days)
        self.algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionManager":
        return cls(
            settings.secret_key,
            secure=settings.production,
            lifetime_days=settings.session_days,
        )

    def issue(self, user_id: str, now: Optional[datetime.datetime] = None) -> str:
        """Return a signed token for `user_id` expiring after the session lifetime."""
        now = now or datetime.datetime.now(datetime.timezone.utc)
        expires = now + self.lifetime
        payload = {
            "userId": user_id,
            "expires": expires.isoformat(),
            "iat": int(now.timestamp()),
            "exp": int(expires.timestamp()),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: Optional[str]) -> Optional[SessionClaims]:
        """Decode `token`, or return None if it is malformed, tampered with or expired."""
        if not token:
            return None
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            logger.debug("Session token expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid session token: {e}")
            return None

        user_id = payload.get("userId")
        if not isinstance(user_id, str) or not user_id:
            logger.warning("Session token has no user id")
            return None
        try:
            expires = datetime.datetime.fromisoformat(payload["expires"])
            issued_at = datetime.datetime.fromtimestamp(payload["iat"], tz=datetime.timezone.utc)
        except (KeyError, TypeError, ValueError, OverflowError, OSError):
            logger.warning("Session token has malformed claims")
            return None
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=datetime.timezone.utc)
        if expires <= datetime.datetime.now(datetime.timezone.utc):
            logger.debug("Session token past its embedded expiry")
            return None

        return SessionClaims(user_id=user_id, expires=expires, issued_at=issued_at)

    def current_session(self, request: Request) -> Optional[SessionClaims]:
        return self.verify(request.cookies.get(COOKIE_NAME))

    def start(self, response: Response, user_id: str) -> str:
        """Issue a token for `user_id` and attach it to `response` as the session cookie."""
        now = datetime.datetime.now(datetime.timezone.utc)
        token = self.issue(user_id, now=now)
        self._set_cookie(response, token, now + self.lifetime)
        return token

    def revoke(self, response: Response) -> None:
        """Overwrite the session cookie with an already-expired empty value."""
        self._set_cookie(response, "", _EPOCH)

    def _set_cookie(self, response: Response, value: str, expires: datetime.datetime) -> None:
        response.set_cookie(
            COOKIE_NAME,
            value,
            expires=expires,
            path="/",
            secure=self.secure,
            httponly=True,
            samesite="lax",
        )


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------

def get_sessions(request: Request) -> SessionManager:
    return request.app.state.sessions


def optional_session(
    request: Request, sessions: SessionManager = Depends(get_sessions)
) -> Optional[SessionClaims]:
    return sessions.current_session(request)


def require_session(
    claims: Optional[SessionClaims] = Depends(optional_session),
) -> SessionClaims:
    if claims is None:
        raise ApiError(401, "Unauthorized")
    return claims


# ---------------------------------------------------------------------------
# Page gatekeeping
# ---------------------------------------------------------------------------

def _is_unguarded(path: str) -> bool:
    return path in UNGUARDED_PATHS or path.startswith(UNGUARDED_PREFIXES)


async def gatekeeper(request: Request, call_next):
    """Redirect page requests according to the caller's session.

    - no session on a non-public page: go to login
    - valid session on login/signup: go home
    - session that fails verification: clear the cookie and go to login
    """
    path = request.url.path
    if _is_unguarded(path):
        return await call_next(request)

    sessions: SessionManager = request.app.state.sessions
    token = request.cookies.get(COOKIE_NAME)
    is_public = path in PUBLIC_PATHS

    if not token:
        if is_public:
            return await call_next(request)
        return RedirectResponse(LOGIN_PATH, status_code=303)

    if sessions.verify(token) is None:
        response = RedirectResponse(LOGIN_PATH, status_code=303)
        sessions.revoke(response)
        return response

    if is_public:
        return RedirectResponse(HOME_PATH, status_code=303)
    return await call_next(request)
