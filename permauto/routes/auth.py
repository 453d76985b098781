"""Registration, login, logout and session lookup routes."""
import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from permauto.auth import (
    clear_token_cookie,
    create_access_token,
    get_current_user,
    get_password_hash,
    get_settings,
    set_token_cookie,
    verify_password,
)
from permauto.config import Settings
from permauto.database import get_db
from permauto.errors import Unauthenticated, ValidationError
from permauto.models.user import User, UserRole
from permauto.schemas.user import (
    LoginRequest,
    MessageEnvelope,
    RegisterRequest,
    UserEnvelope,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["Auth"])


def _email_taken(db: Session, email: str) -> bool:
    return db.query(User).filter(User.email == email).first() is not None


@router.post("/register", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Create an account with the default role and start a session."""
    email = User.normalize_email(payload.email)
    if _email_taken(db, email):
        raise ValidationError("User already exists", fields=["email"])

    user = User(
        name=payload.name.strip(),
        email=email,
        hashed_password=get_password_hash(payload.password),
        role=UserRole.USER,
    )
    db.add(user)
    try:
        db.flush()  # Get the ID
        token = create_access_token(user.id, settings, persistent=True)
        db.commit()
    except IntegrityError:
        # A concurrent registration won the unique email constraint
        db.rollback()
        logger.info("Registration raced on an existing email")
        raise ValidationError("User already exists", fields=["email"])
    db.refresh(user)
    logger.info("Registered user %s", user.id)

    set_token_cookie(response, token, settings, persistent=True)
    return UserEnvelope(message="User registered successfully", user=user)


@router.post("/login", response_model=UserEnvelope)
def login(
    payload: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Check credentials and set the session cookie."""
    email = User.normalize_email(payload.email)
    user = db.query(User).filter(User.email == email).first()
    if user is None or not verify_password(payload.password, user.hashed_password):
        logger.warning("Failed login attempt")
        raise Unauthenticated("Invalid credentials")

    token = create_access_token(user.id, settings, persistent=payload.remember_me)
    set_token_cookie(response, token, settings, persistent=payload.remember_me)
    logger.info("User %s signed in", user.id)
    return UserEnvelope(message="Signed in successfully", user=user)


@router.post("/logout", response_model=MessageEnvelope)
def logout(response: Response, settings: Settings = Depends(get_settings)):
    """Drop the session cookie. The token itself stays valid until it expires."""
    clear_token_cookie(response, settings)
    return MessageEnvelope(message="Signed out successfully")


@router.get("/me", response_model=UserEnvelope)
def me(current_user: User = Depends(get_current_user)):
    """Return the signed-in user."""
    return UserEnvelope(user=current_user)
