"""
Per-role dashboards. DASHBOARD_BUILDERS maps each Role to the function assembling its view;
a role outside the table is rejected instead of falling through to some default view.
"""
from dataclasses import dataclass, field
from typing import Callable

from sqlalchemy.orm import Session

from activity_portal.config import settings
from activity_portal.database import store_operation
from activity_portal.models.activity import Activity
from activity_portal.models.types import ActivityStatus, RequestStatus, Role
from activity_portal.models.user import User
from activity_portal.services import analytics, complaints, lifecycle, review
from activity_portal.services.analytics import AnalyticsSnapshot, StatusCounts


@dataclass
class Dashboard:
    role: str
    stats: StatusCounts
    activities: list = field(default_factory=list)
    latest_alert: object | None = None
    complaints: list = field(default_factory=list)
    requests: list = field(default_factory=list)
    has_pending_request: bool = False
    analytics: AnalyticsSnapshot | None = None
    faculty: list = field(default_factory=list)


@store_operation
def analytics_snapshot(db: Session) -> AnalyticsSnapshot:
    """Load every activity and user and aggregate them."""
    return analytics.build_analytics(
        db.query(Activity).all(),
        db.query(User).all(),
        top_categories=settings.analytics_top_categories,
        recent_limit=settings.recent_activities_limit,
    )


def _student(db: Session, user: User) -> Dashboard:
    own = review.list_activities(db, user)
    return Dashboard(
        role=user.role,
        stats=analytics.status_counts(own),
        activities=own,
        latest_alert=complaints.latest_alert(db),
        complaints=complaints.list_complaints(db, user),
    )


def _faculty(db: Session, user: User) -> Dashboard:
    everything = review.list_activities(db, user)
    requests = lifecycle.list_elevation_requests(db, user)
    return Dashboard(
        role=user.role,
        stats=analytics.status_counts(everything),
        activities=[a for a in everything if a.status == ActivityStatus.PENDING.value],
        requests=requests,
        has_pending_request=any(r.status == RequestStatus.PENDING.value for r in requests),
    )


def _derived_admin(db: Session, user: User) -> Dashboard:
    board = _faculty(db, user)
    board.analytics = analytics_snapshot(db)
    board.complaints = complaints.list_complaints(db, user)
    return board


def _admin(db: Session, user: User) -> Dashboard:
    snapshot = analytics_snapshot(db)
    return Dashboard(
        role=user.role,
        stats=snapshot.status,
        activities=snapshot.recent,
        complaints=complaints.list_complaints(db, user),
        requests=lifecycle.list_elevation_requests(db, user),
        analytics=snapshot,
        faculty=lifecycle.faculty_badge_overview(db),
        latest_alert=complaints.latest_alert(db),
    )


DASHBOARD_BUILDERS: dict[Role, Callable[[Session, User], Dashboard]] = {
    Role.STUDENT: _student,
    Role.FACULTY: _faculty,
    Role.DERIVED_ADMIN: _derived_admin,
    Role.ADMIN: _admin,
}


def build_dashboard(db: Session, user: User) -> Dashboard:
    return DASHBOARD_BUILDERS[lifecycle.parse_role(user.role)](db, user)
