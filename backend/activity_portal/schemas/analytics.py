"""
Analytics and dashboard response schemas.
"""
from pydantic import BaseModel

from activity_portal.schemas.activity import ActivityResponse
from activity_portal.schemas.complaint import AlertResponse, ComplaintResponse
from activity_portal.schemas.elevation import ElevationRequestResponse, FacultyBadgeResponse


class StatusCountsResponse(BaseModel):
    pending: int
    approved: int
    rejected: int
    total: int

    class Config:
        from_attributes = True


class RoleCountsResponse(BaseModel):
    students: int
    faculty: int
    derived_admins: int
    admins: int

    class Config:
        from_attributes = True


class CategoryCount(BaseModel):
    category: str
    count: int


class DepartmentShareResponse(BaseModel):
    department: str
    count: int
    percentage: float

    class Config:
        from_attributes = True


class AnalyticsResponse(BaseModel):
    status: StatusCountsResponse
    roles: RoleCountsResponse
    approval_rate: float
    categories: list[CategoryCount]
    departments: list[DepartmentShareResponse]
    recent: list[ActivityResponse]


class DashboardResponse(BaseModel):
    role: str
    stats: StatusCountsResponse
    activities: list[ActivityResponse] = []
    latest_alert: AlertResponse | None = None
    complaints: list[ComplaintResponse] = []
    requests: list[ElevationRequestResponse] = []
    has_pending_request: bool = False
    analytics: AnalyticsResponse | None = None
    faculty: list[FacultyBadgeResponse] = []
