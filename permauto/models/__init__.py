# Models package
from permauto.models.user import User, UserRole
from permauto.models.authorization import (
    Authorization,
    AuthorizationStatus,
    AUTHORIZATION_TRANSITIONS,
    PENDING_APPROVAL,
)
from permauto.models.security_log import SecurityLog, SecurityLogType
