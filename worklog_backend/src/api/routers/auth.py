import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from src.api import auth
from src.api.auth import SessionManager, get_current_user_id, get_session_manager, session_cookie
from src.api.config import SESSION_COOKIE_NAME, SESSION_COOKIE_SECURE
from src.api.database import get_db
from src.api.errors import NotFound, Unauthenticated
from src.api.repository import UserRepository
from src.api.schemas import LoginRequest, MessageResponse, RegisterRequest, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _set_session_cookie(response: Response, token: str, expires_at: datetime, max_age: int) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        max_age=max_age,
        expires=expires_at,
        path="/",
        httponly=True,
        secure=SESSION_COOKIE_SECURE,
        samesite="lax",
    )


def _open_session(response: Response, db: Session, sessions: SessionManager, user_id: str) -> None:
    token, expires_at = sessions.create(db, user_id)
    _set_session_cookie(response, token, expires_at, int(sessions.lifetime.total_seconds()))


# PUBLIC_INTERFACE
@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
def register_user(
    payload: RegisterRequest,
    response: Response,
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Register a new user and log them in.

    Body:
        email: valid email address
        password: plaintext password
        name: display name

    Returns:
        UserResponse without sensitive fields; sets the session cookie.

    Raises:
        400 on missing fields, 409 if the email is already registered.
    """
    user = auth.register(db, email=payload.email, password=payload.password, name=payload.name)
    _open_session(response, db, sessions, user.id)
    return UserResponse.model_validate(user)


# PUBLIC_INTERFACE
@router.post("/login", response_model=UserResponse, summary="Log in and receive a session cookie")
def login(
    payload: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Log in with email and password.

    Raises:
        400 on missing fields, 401 on invalid credentials (unknown email and
        wrong password are indistinguishable).
    """
    try:
        user = auth.authenticate(db, email=payload.email, password=payload.password)
    except Unauthenticated:
        logger.info("Failed login attempt")
        raise
    _open_session(response, db, sessions, user.id)
    logger.info("User %s logged in", user.id)
    return UserResponse.model_validate(user)


# PUBLIC_INTERFACE
@router.post("/logout", response_model=MessageResponse, summary="Revoke the current session")
def logout(
    response: Response,
    user_id: str = Depends(get_current_user_id),
    token: str = Depends(session_cookie),
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Revoke the session behind the cookie and clear the cookie."""
    sessions.revoke(db, token)
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    logger.info("User %s logged out", user_id)
    return MessageResponse(message="Logged out successfully")


# PUBLIC_INTERFACE
@router.get("/me", response_model=UserResponse, summary="Current user")
def me(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """Return the user behind the session; 404 if the account no longer exists."""
    user = UserRepository(db).get_by_id(user_id)
    if user is None:
        raise NotFound("User not found")
    return UserResponse.model_validate(user)
