"""Password hashing, session tokens and the role-based access guard.

The session token is a signed JWT carried in an HTTP-only cookie. It only
identifies the user: the role is always read from the stored account, so a
role change or account deletion takes effect on the very next request.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

import bcrypt
import jwt
from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from permauto.config import Settings
from permauto.database import get_db
from permauto.errors import (
    ConfigurationError,
    Forbidden,
    InvalidTokenError,
    Unauthenticated,
    UserNotFound,
    ValidationError,
)
from permauto.models.user import User, UserRole

logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


# Passwords

# bcrypt only reads the first 72 bytes and current releases reject longer input
MAX_PASSWORD_BYTES = 72


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def get_password_hash(password: str) -> str:
    if password_too_long(password):
        raise ValidationError(
            f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes", fields=["password"]
        )
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if password_too_long(plain_password):
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


# Session tokens

def token_lifetime(settings: Settings, persistent: bool) -> timedelta:
    days = settings.PERSISTENT_TOKEN_EXPIRE_DAYS if persistent else settings.SESSION_TOKEN_EXPIRE_DAYS
    return timedelta(days=days)


def create_access_token(subject_id: str, settings: Settings, persistent: bool = False) -> str:
    """Issue a signed session token for ``subject_id``.

    Raises ConfigurationError when no signing secret is configured.
    """
    if not settings.SECRET_KEY:
        raise ConfigurationError("SECRET_KEY is not configured; cannot issue session tokens")
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(subject_id),
        "iat": now,
        "exp": now + token_lifetime(settings, persistent),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> str:
    """Verify signature and expiry, returning the subject id."""
    if not settings.SECRET_KEY:
        raise ConfigurationError("SECRET_KEY is not configured; cannot verify session tokens")
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise InvalidTokenError("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidTokenError("Invalid token") from exc

    subject_id = payload.get("sub")
    if not isinstance(subject_id, str) or not subject_id:
        raise InvalidTokenError("Invalid token")
    return subject_id


def set_token_cookie(response: Response, token: str, settings: Settings, persistent: bool = False) -> None:
    response.set_cookie(
        key=settings.TOKEN_COOKIE_NAME,
        value=token,
        max_age=int(token_lifetime(settings, persistent).total_seconds()),
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


def clear_token_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.TOKEN_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


# Access guard

def get_user_from_token(token: str, db: Session, settings: Settings) -> User:
    """Resolve the account a token refers to."""
    try:
        subject_id = decode_access_token(token, settings)
    except InvalidTokenError as exc:
        raise Unauthenticated(str(exc)) from exc

    user = db.query(User).filter(User.id == subject_id).first()
    if user is None:
        logger.info("Token subject %s no longer exists", subject_id)
        raise UserNotFound()
    return user


def authorize(
    request: Request,
    db: Session,
    settings: Settings,
    required_roles: Optional[Iterable[UserRole]] = None,
) -> User:
    """Check the session cookie and the caller's stored role.

    An empty or missing ``required_roles`` admits any authenticated user.
    """
    token = request.cookies.get(settings.TOKEN_COOKIE_NAME)
    if not token:
        raise Unauthenticated("Not authenticated - token not found")

    user = get_user_from_token(token, db, settings)

    allowed = set(required_roles or ())
    if allowed and user.role not in allowed:
        logger.warning(
            "User %s with role %s denied %s %s",
            user.id, user.role.value, request.method, request.url.path,
        )
        raise Forbidden(
            "Access denied - requires role: " + ", ".join(sorted(role.value for role in allowed))
        )
    return user


def require_role(roles: Iterable[UserRole]) -> Callable:
    """Dependency factory admitting only the given roles."""
    allowed = frozenset(roles)

    def role_checker(
        request: Request,
        db: Session = Depends(get_db),
        settings: Settings = Depends(get_settings),
    ) -> User:
        return authorize(request, db, settings, allowed)

    return role_checker


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    """Any authenticated user."""
    return authorize(request, db, settings)


require_admin = require_role([UserRole.ADMIN])
require_staff = require_role([UserRole.ADMIN, UserRole.SUBADMIN])
require_subadmin = require_role([UserRole.SUBADMIN])
require_security_staff = require_role([UserRole.ADMIN, UserRole.SUBADMIN, UserRole.SECURITY])
