"""
Analytics and per-role dashboard API.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from activity_portal.database import get_db
from activity_portal.models.types import Role
from activity_portal.models.user import User
from activity_portal.schemas.activity import ActivityResponse
from activity_portal.schemas.analytics import (
    AnalyticsResponse,
    CategoryCount,
    DashboardResponse,
    DepartmentShareResponse,
    RoleCountsResponse,
    StatusCountsResponse,
)
from activity_portal.schemas.auth import UserResponse
from activity_portal.schemas.complaint import AlertResponse, ComplaintResponse
from activity_portal.schemas.elevation import ElevationRequestResponse, FacultyBadgeResponse
from activity_portal.services import dashboards
from activity_portal.services.analytics import AnalyticsSnapshot
from activity_portal.api.deps import get_current_user, require_roles

router = APIRouter(tags=["analytics"])


def analytics_to_response(snapshot: AnalyticsSnapshot) -> AnalyticsResponse:
    return AnalyticsResponse(
        status=StatusCountsResponse.model_validate(snapshot.status),
        roles=RoleCountsResponse.model_validate(snapshot.roles),
        approval_rate=snapshot.approval_rate,
        categories=[CategoryCount(category=c, count=n) for c, n in snapshot.categories],
        departments=[DepartmentShareResponse.model_validate(d) for d in snapshot.departments],
        recent=[ActivityResponse.model_validate(a) for a in snapshot.recent],
    )


def dashboard_to_response(board: dashboards.Dashboard) -> DashboardResponse:
    return DashboardResponse(
        role=board.role,
        stats=StatusCountsResponse.model_validate(board.stats),
        activities=[ActivityResponse.model_validate(a) for a in board.activities],
        latest_alert=AlertResponse.model_validate(board.latest_alert) if board.latest_alert else None,
        complaints=[ComplaintResponse.model_validate(c) for c in board.complaints],
        requests=[ElevationRequestResponse.model_validate(r) for r in board.requests],
        has_pending_request=board.has_pending_request,
        analytics=analytics_to_response(board.analytics) if board.analytics else None,
        faculty=[
            FacultyBadgeResponse(user=UserResponse.model_validate(u), has_pending_request=pending)
            for u, pending in board.faculty
        ],
    )


@router.get("/analytics", response_model=AnalyticsResponse)
def analytics(
    current_user: User = Depends(require_roles(Role.ADMIN, Role.DERIVED_ADMIN)),
    db: Session = Depends(get_db),
):
    """Status and role counts, approval rate, top categories, department split, recent activity."""
    return analytics_to_response(dashboards.analytics_snapshot(db))


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Everything the signed-in user's role dashboard shows, in one call."""
    return dashboard_to_response(dashboards.build_dashboard(db, current_user))
