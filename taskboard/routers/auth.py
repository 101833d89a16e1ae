"""Signup, login, logout and the current-user lookup."""
from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from ..auth import (
    SessionClaims,
    SessionManager,
    get_sessions,
    hash_password,
    optional_session,
    verify_password,
)
from ..db import get_db
from ..errors import ApiError, form_error
from ..models import User
from ..schemas import LoginRequest, SignupRequest, UserOut

router = APIRouter(prefix="/api/auth", tags=["auth"])

INVALID_CREDENTIALS = "Invalid email or password"
EMAIL_IN_USE = "Email already in use"


def _user_summary(user: User) -> dict:
    return UserOut.model_validate(user).model_dump()


@router.post("/signup", status_code=201)
def signup(
    req: SignupRequest,
    response: Response,
    db: DBSession = Depends(get_db),
    sessions: SessionManager = Depends(get_sessions),
):
    """Create an account and log it in."""
    if db.query(User).filter(User.email == req.email).first():
        raise ApiError(400, form_error(EMAIL_IN_USE))

    user = User(name=req.name, email=req.email, password_hash=hash_password(req.password))
    try:
        db.add(user)
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent signup for the same address.
        db.rollback()
        raise ApiError(400, form_error(EMAIL_IN_USE))
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Signup failed")
        raise ApiError(500, "Failed to create account")

    sessions.start(response, user.id)
    logger.info(f"User signed up: {user.email}")
    return {"success": True, "user": _user_summary(user)}


@router.post("/login")
def login(
    req: LoginRequest,
    response: Response,
    db: DBSession = Depends(get_db),
    sessions: SessionManager = Depends(get_sessions),
):
    """Check credentials and start a session.

    Unknown email and wrong password get the same 401 answer.
    """
    try:
        user = db.query(User).filter(User.email == req.email).first()
    except SQLAlchemyError:
        logger.exception("Login lookup failed")
        raise ApiError(500, "Failed to authenticate")

    if user is None:
        logger.warning(f"Login attempt for unknown email: {req.email}")
        raise ApiError(401, form_error(INVALID_CREDENTIALS))
    try:
        password_ok = verify_password(req.password, user.password_hash)
    except ValueError:
        logger.exception(f"Stored password hash for {req.email} is unreadable")
        raise ApiError(500, "Failed to authenticate")
    if not password_ok:
        logger.warning(f"Failed login attempt for: {req.email}")
        raise ApiError(401, form_error(INVALID_CREDENTIALS))

    sessions.start(response, user.id)
    logger.info(f"User logged in: {user.email}")
    return {"success": True, "user": _user_summary(user)}


@router.get("/me")
def me(
    claims: SessionClaims | None = Depends(optional_session),
    db: DBSession = Depends(get_db),
):
    if claims is None:
        return JSONResponse({"user": None}, status_code=401)
    try:
        user = db.get(User, claims.user_id)
    except SQLAlchemyError:
        logger.exception("Current user lookup failed")
        return JSONResponse({"user": None}, status_code=500)
    if user is None:
        return JSONResponse({"user": None}, status_code=401)
    return {"user": _user_summary(user)}


@router.post("/logout")
def logout(response: Response, sessions: SessionManager = Depends(get_sessions)):
    sessions.revoke(response)
    return {"success": True}
