import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from fastapi import Depends, Request
from fastapi.security import APIKeyCookie
from jose import jwt, JWTError
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.api.config import BCRYPT_ROUNDS, SESSION_COOKIE_NAME
from src.api.database import get_db
from src.api.errors import Conflict, Unauthenticated
from src.api.models import User
from src.api.repository import SessionRepository, UserRepository
from src.api.validators import normalize_email

logger = logging.getLogger(__name__)

# Setup password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)

# Session cookie scheme; a missing cookie is reported by resolve(), not by the scheme
session_cookie = APIKeyCookie(name=SESSION_COOKIE_NAME, auto_error=False)

ALGORITHM = "HS256"

INVALID_CREDENTIALS = "Invalid credentials"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plaintext password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a plaintext password."""
    return pwd_context.hash(password)


# PUBLIC_INTERFACE
def register(db: Session, email: str, password: str, name: str) -> User:
    """
    Create a user with a bcrypt hash of `password`.

    Raises:
        Conflict if the email is already registered.
    """
    email = normalize_email(email)
    users = UserRepository(db)
    if users.get_by_email(email) is not None:
        raise Conflict("Email already registered")
    try:
        user = users.create(email=email, password_hash=get_password_hash(password), name=name)
    except IntegrityError:
        # lost a race against a concurrent registration of the same email
        db.rollback()
        raise Conflict("Email already registered")
    logger.info("Registered user %s", user.id)
    return user


# PUBLIC_INTERFACE
def authenticate(db: Session, email: str, password: str) -> User:
    """
    Check credentials.

    Unknown email and wrong password raise the same error, and both pay for one
    bcrypt verification.

    Raises:
        Unauthenticated on any mismatch.
    """
    user = UserRepository(db).get_by_email(normalize_email(email))
    if user is None:
        pwd_context.dummy_verify()
        raise Unauthenticated(INVALID_CREDENTIALS)
    if not verify_password(password, user.password_hash):
        raise Unauthenticated(INVALID_CREDENTIALS)
    return user


@dataclass(frozen=True)
class SessionClaims:
    """Typed payload of a session token."""
    user_id: str
    session_id: str
    expires_at: datetime


class SessionManager:
    """
    Issues, resolves and revokes session tokens.

    A token is an HS256 JWT carrying the user id (`sub`), the id of a persisted
    session row (`sid`) and an expiry (`exp`). Signature and expiry make it
    tamper-evident; the row makes it revocable.
    """

    def __init__(self, secret_key: str, lifetime: timedelta = timedelta(days=7)):
        self._secret_key = secret_key
        self.lifetime = lifetime

    def create(self, db: Session, user_id: str) -> Tuple[str, datetime]:
        """Open a session for `user_id`. Returns the token and its UTC expiry."""
        if not user_id:
            raise ValueError("user_id is required")
        expires_at = datetime.now(tz=timezone.utc) + self.lifetime
        record = SessionRepository(db).create(user_id=user_id, expires_at=expires_at.replace(tzinfo=None))
        token = jwt.encode(
            {"sub": user_id, "sid": record.id, "exp": expires_at},
            self._secret_key,
            algorithm=ALGORITHM,
        )
        return token, expires_at

    def decode(self, token: Optional[str]) -> SessionClaims:
        """
        Verify signature and expiry and return the typed claims.

        Raises:
            Unauthenticated if the token is missing, malformed, expired, or has an empty subject.
        """
        if not token:
            raise Unauthenticated()
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[ALGORITHM])
        except JWTError:
            raise Unauthenticated()
        subject = payload.get("sub")
        session_id = payload.get("sid")
        expires = payload.get("exp")
        if not isinstance(subject, str) or not subject:
            raise Unauthenticated()
        if not isinstance(session_id, str) or not session_id:
            raise Unauthenticated()
        if not isinstance(expires, (int, float)):
            raise Unauthenticated()
        return SessionClaims(
            user_id=subject,
            session_id=session_id,
            expires_at=datetime.fromtimestamp(expires, tz=timezone.utc),
        )

    def resolve(self, db: Session, token: Optional[str]) -> str:
        """
        Map a token to its user id.

        Raises:
            Unauthenticated unless the token decodes and its session row is still live.
        """
        claims = self.decode(token)
        now = datetime.now(tz=timezone.utc).replace(tzinfo=None)
        if SessionRepository(db).get_active(claims.session_id, claims.user_id, now) is None:
            raise Unauthenticated()
        return claims.user_id

    def revoke(self, db: Session, token: Optional[str]) -> None:
        """Invalidate the session behind `token`. Unknown or invalid tokens are ignored."""
        try:
            claims = self.decode(token)
        except Unauthenticated:
            return
        SessionRepository(db).delete(claims.session_id)


# PUBLIC_INTERFACE
def get_session_manager(request: Request) -> SessionManager:
    """Dependency returning the SessionManager built by the app factory."""
    return request.app.state.session_manager


# PUBLIC_INTERFACE
def get_current_user_id(
    token: Optional[str] = Depends(session_cookie),
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
) -> str:
    """
    Dependency that resolves the session cookie to the owner id used by every
    repository call.

    Raises:
        401 if the cookie is missing, invalid, expired or revoked.
    """
    return sessions.resolve(db, token)
