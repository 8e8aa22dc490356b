"""
Derived-admin request schemas.
"""
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel

from activity_portal.schemas.auth import UserResponse


class ElevationRequestResponse(BaseModel):
    id: UUID
    requester_uid: str
    requester_name: str
    requester_email: str
    status: str
    decided_by: str | None = None
    decided_at: datetime | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class DecisionRequest(BaseModel):
    approve: bool


class FacultyBadgeResponse(BaseModel):
    user: UserResponse
    has_pending_request: bool
