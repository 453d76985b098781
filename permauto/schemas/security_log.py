"""Security log schemas."""
from datetime import datetime
from typing import List, Optional

from permauto.models.security_log import SecurityLogType
from permauto.schemas.base import CamelModel


class SecurityLogResponse(CamelModel):
    id: str
    type: SecurityLogType
    user_id: Optional[str] = None
    timestamp: datetime
    details: Optional[str] = None
    location: Optional[str] = None


class SecurityLogListEnvelope(CamelModel):
    success: bool = True
    logs: List[SecurityLogResponse]
