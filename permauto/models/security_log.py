"""Security entry/exit log model."""
import enum
import uuid

from sqlalchemy import Column, String, Text, DateTime, Enum

from permauto.database import Base
from permauto.models.user import utcnow


class SecurityLogType(str, enum.Enum):
    entry = "entry"
    exit = "exit"
    other = "other"


class SecurityLog(Base):
    """Entry/exit record written by the gate staff; read-only to this API."""
    __tablename__ = "security_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    type = Column(Enum(SecurityLogType), nullable=False)
    user_id = Column(String(64), nullable=True)
    timestamp = Column(DateTime, default=utcnow, nullable=False, index=True)
    details = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
