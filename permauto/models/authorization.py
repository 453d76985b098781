"""Authorization model - a company/visitor access request."""
import enum
import uuid

from sqlalchemy import Column, String, Text, DateTime, Enum

from permauto.database import Base
from permauto.models.user import utcnow


class AuthorizationStatus(str, enum.Enum):
    initiated = "initiated"
    completed = "completed"
    approved = "approved"
    rejected = "rejected"


PENDING_APPROVAL = "pending"

# Transitions the workflow expects. Updates outside this table are still
# accepted but get logged.
AUTHORIZATION_TRANSITIONS = {
    AuthorizationStatus.initiated: {
        AuthorizationStatus.completed,
        AuthorizationStatus.approved,
        AuthorizationStatus.rejected,
    },
    AuthorizationStatus.completed: {
        AuthorizationStatus.approved,
        AuthorizationStatus.rejected,
    },
    AuthorizationStatus.approved: {AuthorizationStatus.completed},
    AuthorizationStatus.rejected: set(),
}


def is_expected_transition(current: AuthorizationStatus, new: AuthorizationStatus) -> bool:
    """Check a status change against the expected workflow."""
    if current == new:
        return True
    return new in AUTHORIZATION_TRANSITIONS.get(current, set())


class Authorization(Base):
    __tablename__ = "authorizations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_name = Column(String(255), nullable=False)
    ruc = Column(String(11), nullable=False, index=True)
    reason = Column(Text, nullable=False)
    user_id = Column(String(64), nullable=False, index=True)
    status = Column(Enum(AuthorizationStatus), default=AuthorizationStatus.initiated, nullable=False, index=True)
    approved_by = Column(String(64), default=PENDING_APPROVAL, nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    timestamp = Column(DateTime, default=utcnow, nullable=False, index=True)
