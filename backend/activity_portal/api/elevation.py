"""
Derived-admin badge API: faculty request it, admins decide or grant/revoke directly.
"""
import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from activity_portal.database import get_db
from activity_portal.models.types import Role
from activity_portal.models.user import User
from activity_portal.schemas.auth import UserResponse
from activity_portal.schemas.elevation import DecisionRequest, ElevationRequestResponse, FacultyBadgeResponse
from activity_portal.services import lifecycle
from activity_portal.api.deps import get_current_user, require_roles

router = APIRouter(prefix="/elevation", tags=["elevation"])


@router.post("/requests", response_model=ElevationRequestResponse, status_code=status.HTTP_201_CREATED)
def create_request(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return lifecycle.request_elevation(db, current_user)


@router.get("/requests", response_model=list[ElevationRequestResponse])
def list_requests(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Admins: all requests, pending first. Everyone else: their own."""
    return lifecycle.list_elevation_requests(db, current_user)


@router.post("/requests/{request_id}/decision", response_model=ElevationRequestResponse)
def decide(
    request_id: uuid.UUID,
    data: DecisionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return lifecycle.decide_elevation(db, request_id, data.approve, current_user)


@router.get("/faculty", response_model=list[FacultyBadgeResponse])
def faculty_badges(
    current_user: User = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    """Faculty and derived-admins with their badge state and whether a request is pending."""
    return [
        FacultyBadgeResponse(user=UserResponse.model_validate(u), has_pending_request=pending)
        for u, pending in lifecycle.faculty_badge_overview(db)
    ]


@router.post("/users/{uid}/grant", response_model=UserResponse)
def grant(uid: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return lifecycle.grant_derived_admin(db, uid, current_user)


@router.post("/users/{uid}/revoke", response_model=UserResponse)
def revoke(uid: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return lifecycle.revoke_derived_admin(db, uid, current_user)
