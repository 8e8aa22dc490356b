"""
Complaints and alerts API.
"""
import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from activity_portal.database import get_db
from activity_portal.models.user import User
from activity_portal.schemas.complaint import (
    AlertCreate,
    AlertResponse,
    ComplaintCreate,
    ComplaintResponse,
    ComplaintUpdate,
)
from activity_portal.services import complaints
from activity_portal.api.deps import get_current_user

router = APIRouter(prefix="/complaints", tags=["complaints"])
alerts_router = APIRouter(prefix="/alerts", tags=["alerts"])


@router.post("", response_model=ComplaintResponse, status_code=status.HTTP_201_CREATED)
def create(data: ComplaintCreate, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return complaints.create_complaint(db, current_user, data.message, data.faculty_id)


@router.get("", response_model=list[ComplaintResponse])
def list_all(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return complaints.list_complaints(db, current_user)


@router.patch("/{complaint_id}", response_model=ComplaintResponse)
def update(
    complaint_id: uuid.UUID,
    data: ComplaintUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Admin: add remarks and/or set status (open, resolved)."""
    return complaints.update_complaint(
        db, complaint_id, current_user, admin_remarks=data.admin_remarks, status=data.status
    )


@alerts_router.post("", response_model=AlertResponse, status_code=status.HTTP_201_CREATED)
def create_alert(data: AlertCreate, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return complaints.create_alert(db, current_user, data.message)


@alerts_router.get("/latest", response_model=AlertResponse | None)
def latest(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return complaints.latest_alert(db)
