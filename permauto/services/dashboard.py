"""Dashboard aggregates over users, authorizations and security logs."""
from collections import Counter
from typing import Iterable, List

from permauto.models.authorization import Authorization, AuthorizationStatus, PENDING_APPROVAL
from permauto.models.security_log import SecurityLog, SecurityLogType
from permauto.models.user import User, UserRole
from permauto.schemas.dashboard import (
    ApproverCount,
    AuthorizationStats,
    DashboardResponse,
    HourlyPresence,
    SecurityStats,
    UserStats,
)


def summarize_users(users: Iterable[User]) -> UserStats:
    roles = Counter(user.role for user in users)
    return UserStats(
        total=sum(roles.values()),
        admins=roles[UserRole.ADMIN],
        subadmins=roles[UserRole.SUBADMIN],
        security=roles[UserRole.SECURITY],
        regular=roles[UserRole.USER],
    )


def summarize_authorizations(authorizations: Iterable[Authorization], users: Iterable[User]) -> AuthorizationStats:
    """Count authorizations by status and by the user who approved them.

    Approver ids that do not resolve to a known user are left out of the
    per-approver breakdown.
    """
    authorizations = list(authorizations)
    names = {user.id: user.name or user.email for user in users}

    statuses = Counter(auth.status for auth in authorizations)
    approvers = Counter(
        names[auth.approved_by]
        for auth in authorizations
        if auth.approved_by != PENDING_APPROVAL and auth.approved_by in names
    )
    by_subadmin = [
        ApproverCount(name=name, count=count)
        for name, count in sorted(approvers.items(), key=lambda item: (-item[1], item[0]))
    ]

    return AuthorizationStats(
        total=len(authorizations),
        initiated=statuses[AuthorizationStatus.initiated],
        completed=statuses[AuthorizationStatus.completed],
        approved=statuses[AuthorizationStatus.approved],
        rejected=statuses[AuthorizationStatus.rejected],
        pending=sum(1 for auth in authorizations if auth.approved_by == PENDING_APPROVAL),
        by_subadmin=by_subadmin,
    )


def summarize_security_logs(logs: Iterable[SecurityLog]) -> SecurityStats:
    """Entries and exits overall and per hour of the day (24 buckets)."""
    hours: List[HourlyPresence] = [HourlyPresence(hour=f"{h:02d}:00") for h in range(24)]
    entries = exits = 0

    for log in logs:
        if log.type == SecurityLogType.entry:
            entries += 1
            if log.timestamp is not None:
                hours[log.timestamp.hour].entries += 1
        elif log.type == SecurityLogType.exit:
            exits += 1
            if log.timestamp is not None:
                hours[log.timestamp.hour].exits += 1

    return SecurityStats(
        entries=entries,
        exits=exits,
        current_presence=max(0, entries - exits),
        by_hour=hours,
    )


def build_dashboard(
    users: Iterable[User],
    authorizations: Iterable[Authorization],
    logs: Iterable[SecurityLog],
) -> DashboardResponse:
    users = list(users)
    return DashboardResponse(
        users=summarize_users(users),
        authorizations=summarize_authorizations(authorizations, users),
        security=summarize_security_logs(logs),
    )
