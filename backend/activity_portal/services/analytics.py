"""
Read-side projections over a snapshot of activities and users.
Pure functions: no store access, recomputed in full for every snapshot. Collections are
small, so there is no incremental aggregation; this is the scalability ceiling.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Sequence

from activity_portal.models.types import ActivityStatus, Role

UNKNOWN_DEPARTMENT = "Unknown"


@dataclass(frozen=True)
class StatusCounts:
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    total: int = 0


@dataclass(frozen=True)
class RoleCounts:
    students: int = 0
    faculty: int = 0
    derived_admins: int = 0
    admins: int = 0


@dataclass(frozen=True)
class DepartmentShare:
    department: str
    count: int
    percentage: float


@dataclass(frozen=True)
class AnalyticsSnapshot:
    status: StatusCounts
    roles: RoleCounts
    approval_rate: float
    categories: list[tuple[str, int]]
    departments: list[DepartmentShare]
    recent: list[Any] = field(default_factory=list)


def status_counts(activities: Iterable[Any]) -> StatusCounts:
    counts = {s: 0 for s in ActivityStatus}
    total = 0
    for a in activities:
        total += 1
        try:
            counts[ActivityStatus(a.status)] += 1
        except ValueError:
            pass  # unknown status counts towards total only
    return StatusCounts(
        pending=counts[ActivityStatus.PENDING],
        approved=counts[ActivityStatus.APPROVED],
        rejected=counts[ActivityStatus.REJECTED],
        total=total,
    )


def role_counts(users: Iterable[Any]) -> RoleCounts:
    counts = {r: 0 for r in Role}
    for u in users:
        try:
            counts[Role(u.role)] += 1
        except ValueError:
            pass
    return RoleCounts(
        students=counts[Role.STUDENT],
        faculty=counts[Role.FACULTY],
        derived_admins=counts[Role.DERIVED_ADMIN],
        admins=counts[Role.ADMIN],
    )


def approval_rate(approved: int, rejected: int) -> float:
    """approved / (approved + rejected) as a percentage rounded to one decimal; 0 when nothing is decided."""
    decided = approved + rejected
    if decided == 0:
        return 0.0
    return round(approved / decided * 100, 1)


def _histogram(keys: Iterable[str]) -> list[tuple[str, int]]:
    """Count per key, most frequent first; ties keep first-seen order (dict order + stable sort)."""
    counts: dict[str, int] = {}
    for k in keys:
        counts[k] = counts.get(k, 0) + 1
    return sorted(counts.items(), key=lambda kv: kv[1], reverse=True)


def category_histogram(activities: Iterable[Any], top_n: int | None = None) -> list[tuple[str, int]]:
    """(category, count) pairs; top_n truncates for display only."""
    items = _histogram(a.category for a in activities)
    return items[:top_n] if top_n is not None else items


def department_histogram(activities: Sequence[Any]) -> list[DepartmentShare]:
    """Activities per student department with percentage of the total (one decimal)."""
    items = _histogram((a.student_department or UNKNOWN_DEPARTMENT) for a in activities)
    total = sum(c for _, c in items)
    return [
        DepartmentShare(department=d, count=c, percentage=round(c / total * 100, 1) if total else 0.0)
        for d, c in items
    ]


def _created(a: Any) -> datetime:
    return getattr(a, "created_at", None) or datetime.min


def recent_activities(activities: Iterable[Any], limit: int = 10) -> list[Any]:
    return sorted(activities, key=lambda a: _created(a).replace(tzinfo=None), reverse=True)[:limit]


def build_analytics(
    activities: Sequence[Any],
    users: Sequence[Any],
    top_categories: int = 8,
    recent_limit: int = 10,
) -> AnalyticsSnapshot:
    status = status_counts(activities)
    return AnalyticsSnapshot(
        status=status,
        roles=role_counts(users),
        approval_rate=approval_rate(status.approved, status.rejected),
        categories=category_histogram(activities, top_n=top_categories),
        departments=department_histogram(activities),
        recent=recent_activities(activities, limit=recent_limit),
    )
