"""
Student complaints to the admins, and admin broadcast alerts.
Students file complaints and see their own; admins (and derived-admins, read-only) see all.
Only an admin adds remarks or resolves.
"""
import logging
import uuid

from sqlalchemy.orm import Session

from activity_portal.database import store_operation
from activity_portal.errors import NotFound, PermissionDenied, ValidationError
from activity_portal.models.alert import Alert
from activity_portal.models.complaint import Complaint
from activity_portal.models.types import ComplaintStatus, Role
from activity_portal.models.user import User
from activity_portal.services.live import ALERTS, COMPLAINTS, hub

logger = logging.getLogger(__name__)

COMPLAINT_READERS = frozenset({Role.ADMIN.value, Role.DERIVED_ADMIN.value})


@store_operation
def create_complaint(db: Session, student: User, message: str, faculty_id: str | None = None) -> Complaint:
    if student.role != Role.STUDENT.value:
        raise PermissionDenied("Only students can file complaints")
    message = (message or "").strip()
    if not message:
        raise ValidationError("Please enter your complaint")
    complaint = Complaint(
        student_uid=student.uid,
        student_name=student.name,
        student_email=student.email or "",
        faculty_id=(faculty_id or "").strip() or None,
        message=message,
        status=ComplaintStatus.OPEN.value,
    )
    db.add(complaint)
    db.commit()
    db.refresh(complaint)
    hub.publish(COMPLAINTS)
    logger.info("Complaint %s filed by uid=%s", complaint.id, student.uid)
    return complaint


@store_operation
def list_complaints(db: Session, viewer: User) -> list[Complaint]:
    """Newest first. Students get their own; admins and derived-admins get all."""
    q = db.query(Complaint)
    if viewer.role == Role.STUDENT.value:
        q = q.filter(Complaint.student_uid == viewer.uid)
    elif viewer.role not in COMPLAINT_READERS:
        raise PermissionDenied("You do not have access to complaints")
    return q.order_by(Complaint.created_at.desc()).all()


@store_operation
def update_complaint(
    db: Session,
    complaint_id: uuid.UUID,
    actor: User,
    admin_remarks: str | None = None,
    status: str | None = None,
) -> Complaint:
    """Admin adds remarks and/or changes status (open <-> resolved)."""
    if actor.role != Role.ADMIN.value:
        raise PermissionDenied("Admins only")
    complaint = db.get(Complaint, complaint_id)
    if complaint is None:
        raise NotFound("Complaint not found")
    if status is not None:
        try:
            complaint.status = ComplaintStatus((status or "").strip().lower()).value
        except ValueError:
            raise ValidationError(f"Unknown complaint status: {status!r}")
    if admin_remarks is not None:
        complaint.admin_remarks = admin_remarks.strip() or None
    db.commit()
    db.refresh(complaint)
    hub.publish(COMPLAINTS)
    logger.info("Complaint %s updated by admin uid=%s status=%s", complaint.id, actor.uid, complaint.status)
    return complaint


@store_operation
def create_alert(db: Session, actor: User, message: str) -> Alert:
    if actor.role != Role.ADMIN.value:
        raise PermissionDenied("Admins only")
    message = (message or "").strip()
    if not message:
        raise ValidationError("Alert message cannot be empty")
    alert = Alert(message=message, created_by=actor.name)
    db.add(alert)
    db.commit()
    db.refresh(alert)
    hub.publish(ALERTS)
    logger.info("Alert %s posted by admin uid=%s", alert.id, actor.uid)
    return alert


@store_operation
def latest_alert(db: Session) -> Alert | None:
    return db.query(Alert).order_by(Alert.created_at.desc()).first()
