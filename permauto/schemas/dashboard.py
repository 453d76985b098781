"""Dashboard aggregate schemas."""
from typing import List

from permauto.schemas.base import CamelModel


class UserStats(CamelModel):
    total: int = 0
    admins: int = 0
    subadmins: int = 0
    security: int = 0
    regular: int = 0


class ApproverCount(CamelModel):
    name: str
    count: int


class AuthorizationStats(CamelModel):
    total: int = 0
    initiated: int = 0
    completed: int = 0
    approved: int = 0
    rejected: int = 0
    pending: int = 0
    by_subadmin: List[ApproverCount] = []


class HourlyPresence(CamelModel):
    hour: str
    entries: int = 0
    exits: int = 0


class SecurityStats(CamelModel):
    entries: int = 0
    exits: int = 0
    current_presence: int = 0
    by_hour: List[HourlyPresence] = []


class DashboardResponse(CamelModel):
    success: bool = True
    users: UserStats
    authorizations: AuthorizationStats
    security: SecurityStats
