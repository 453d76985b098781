"""User model and role enumeration."""
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Enum, DateTime

from permauto.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class UserRole(str, enum.Enum):
    """Roles that gate access to the API."""
    USER = "user"
    ADMIN = "admin"
    SUBADMIN = "subadmin"
    SECURITY = "security"


class User(Base):
    """Account used to sign in to the administration panel."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(
        Enum(UserRole, values_callable=lambda roles: [r.value for r in roles]),
        default=UserRole.USER,
        nullable=False,
    )
    created_at = Column(DateTime, default=utcnow, nullable=False)

    @staticmethod
    def normalize_email(email: str) -> str:
        return email.strip().lower()
