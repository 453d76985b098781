"""Administration routes: user management, oversight listings and dashboard."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from permauto.auth import require_admin, require_security_staff, require_staff
from permauto.database import get_db
from permauto.errors import NotFound, SelfDeletionError, SelfModificationError, ValidationError
from permauto.models.authorization import Authorization
from permauto.models.security_log import SecurityLog
from permauto.models.user import User, UserRole
from permauto.schemas.authorization import AuthorizationListEnvelope
from permauto.schemas.dashboard import DashboardResponse
from permauto.schemas.security_log import SecurityLogListEnvelope
from permauto.schemas.user import MessageEnvelope, RoleUpdate, UserEnvelope, UserListEnvelope
from permauto.services.dashboard import build_dashboard

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/users", response_model=UserListEnvelope)
def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """List all users, newest first."""
    users = db.query(User).order_by(User.created_at.desc()).all()
    return UserListEnvelope(users=users)


@router.put("/users/{user_id}", response_model=UserEnvelope)
def change_user_role(
    user_id: str,
    payload: RoleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Change a user's role (admin only, never your own)."""
    if user_id == current_user.id:
        raise SelfModificationError()

    try:
        new_role = UserRole(payload.role)
    except ValueError:
        raise ValidationError("Invalid role", fields=["role"])

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")

    old_role = user.role
    user.role = new_role
    db.commit()
    db.refresh(user)
    logger.info("User %s changed role of %s from %s to %s", current_user.id, user.id, old_role.value, new_role.value)
    return UserEnvelope(message="Role updated", user=user)


@router.delete("/users/{user_id}", response_model=MessageEnvelope)
def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Delete a user (admin only, never your own account)."""
    if user_id == current_user.id:
        raise SelfDeletionError()

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")

    db.delete(user)
    db.commit()
    logger.info("User %s deleted user %s", current_user.id, user_id)
    return MessageEnvelope(message="User deleted")


@router.get("/authorizations", response_model=AuthorizationListEnvelope)
def list_all_authorizations(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """List every authorization, newest first."""
    authorizations = db.query(Authorization).order_by(Authorization.timestamp.desc()).all()
    return AuthorizationListEnvelope(authorizations=authorizations)


@router.get("/security", response_model=SecurityLogListEnvelope)
def list_security_logs(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_security_staff),
):
    """List security entry/exit logs, newest first."""
    logs = db.query(SecurityLog).order_by(SecurityLog.timestamp.desc()).all()
    return SecurityLogListEnvelope(logs=logs)


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Aggregated user, authorization and security figures."""
    return build_dashboard(
        db.query(User).all(),
        db.query(Authorization).all(),
        db.query(SecurityLog).all(),
    )
