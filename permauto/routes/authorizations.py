"""Authorization (access request) routes."""
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from permauto.auth import get_current_user, require_staff, require_subadmin
from permauto.database import get_db
from permauto.errors import NotFound, ValidationError
from permauto.models.authorization import (
    Authorization,
    AuthorizationStatus,
    PENDING_APPROVAL,
    is_expected_transition,
)
from permauto.models.user import User
from permauto.schemas.authorization import (
    AuthorizationCreate,
    AuthorizationEnvelope,
    AuthorizationListEnvelope,
    AuthorizationUpdate,
)
from permauto.schemas.user import MessageEnvelope

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/authorizations", tags=["Authorizations"])


def _parse_id(authorization_id: str) -> str:
    try:
        return str(uuid.UUID(authorization_id))
    except ValueError:
        raise NotFound("Authorization not found")


def get_authorization_or_404(db: Session, authorization_id: str) -> Authorization:
    authorization = db.query(Authorization).filter(
        Authorization.id == _parse_id(authorization_id)
    ).first()
    if not authorization:
        raise NotFound("Authorization not found")
    return authorization


@router.get("", response_model=AuthorizationListEnvelope)
def list_authorizations(
    status_filter: Optional[str] = Query(None, alias="status"),
    user_id: Optional[str] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List authorizations, newest first, optionally filtered by status and requester."""
    query = db.query(Authorization)

    if status_filter:
        try:
            query = query.filter(Authorization.status == AuthorizationStatus(status_filter))
        except ValueError:
            raise ValidationError(f"Unknown status: {status_filter}", fields=["status"])
    if user_id:
        query = query.filter(Authorization.user_id == user_id)

    authorizations = query.order_by(Authorization.timestamp.desc()).all()
    return AuthorizationListEnvelope(authorizations=authorizations)


@router.post("", response_model=AuthorizationEnvelope, status_code=status.HTTP_201_CREATED)
def create_authorization(
    payload: AuthorizationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_subadmin),
):
    """Create an authorization; it always starts initiated and pending approval."""
    authorization = Authorization(
        **payload.model_dump(),
        status=AuthorizationStatus.initiated,
        approved_by=PENDING_APPROVAL,
    )
    db.add(authorization)
    db.commit()
    db.refresh(authorization)
    logger.info("User %s created authorization %s for %s", current_user.id, authorization.id, authorization.ruc)
    return AuthorizationEnvelope(message="Authorization created", authorization=authorization)


@router.get("/{authorization_id}", response_model=AuthorizationEnvelope)
def get_authorization(
    authorization_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    """Get a single authorization."""
    return AuthorizationEnvelope(authorization=get_authorization_or_404(db, authorization_id))


@router.put("/{authorization_id}", response_model=AuthorizationEnvelope)
def update_authorization(
    authorization_id: str,
    payload: AuthorizationUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_subadmin),
):
    """Replace an authorization's fields.

    status and approvedBy are only changed when present in the body.
    """
    authorization = get_authorization_or_404(db, authorization_id)

    data = payload.model_dump(exclude={"status", "approved_by"})
    for field, value in data.items():
        setattr(authorization, field, value)

    if payload.status is not None:
        if not is_expected_transition(authorization.status, payload.status):
            logger.warning(
                "Authorization %s moved from %s to %s by user %s",
                authorization.id, authorization.status.value, payload.status.value, current_user.id,
            )
        authorization.status = payload.status
    if payload.approved_by:
        authorization.approved_by = payload.approved_by

    db.commit()
    db.refresh(authorization)
    logger.info("User %s updated authorization %s", current_user.id, authorization.id)
    return AuthorizationEnvelope(message="Authorization updated", authorization=authorization)


@router.delete("/{authorization_id}", response_model=MessageEnvelope)
def delete_authorization(
    authorization_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_subadmin),
):
    """Delete an authorization."""
    authorization = get_authorization_or_404(db, authorization_id)
    db.delete(authorization)
    db.commit()
    logger.info("User %s deleted authorization %s", current_user.id, authorization_id)
    return MessageEnvelope(message="Authorization deleted")
