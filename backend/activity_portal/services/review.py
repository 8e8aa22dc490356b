"""
Activity submission and the review state machine.

pending -> approved | rejected (terminal). A review is a single conditional UPDATE
guarded on status = 'pending', so of two concurrent reviewers exactly one wins and
the other gets InvalidTransition; no partial write is ever visible.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import date

from sqlalchemy import update
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from activity_portal.database import store_operation
from activity_portal.errors import InvalidTransition, NotFound, PermissionDenied, ValidationError
from activity_portal.models.activity import Activity
from activity_portal.models.types import ActivityStatus, Role
from activity_portal.models.user import User
from activity_portal.services.live import ACTIVITIES, hub
from activity_portal.services.storage import BlobStore, UploadedFile, blob_path, store_inline, validate_upload

logger = logging.getLogger(__name__)

INTERNSHIP_CATEGORY = "Internship"
CATEGORIES = [
    "Academic Achievement",
    "Sports & Athletics",
    "Cultural Activity",
    "Community Service",
    "Leadership",
    "Technical Skills",
    "Research Project",
    "Competition",
    "Workshop/Training",
    INTERNSHIP_CATEGORY,
    "Other",
]

REVIEWER_ROLES = frozenset({Role.FACULTY.value, Role.DERIVED_ADMIN.value})
# Roles that may read every activity (reviewers plus admins for analytics)
ALL_ACTIVITY_READERS = REVIEWER_ROLES | {Role.ADMIN.value}

DECISIONS = {
    "approve": ActivityStatus.APPROVED,
    "reject": ActivityStatus.REJECTED,
}


def _clean(value: str | None) -> str | None:
    return (value or "").strip() or None


@dataclass(frozen=True)
class InternshipDetails:
    stipend: str | None = None
    company_worked: str | None = None
    city: str | None = None


@dataclass(frozen=True)
class ActivityDraft:
    """Submission form contents, validated on construction."""
    title: str
    description: str
    category: str
    start_date: date | None = None
    end_date: date | None = None
    internship: InternshipDetails | None = None

    def __post_init__(self):
        if not _clean(self.title) or not _clean(self.description) or not _clean(self.category):
            raise ValidationError("Please fill in all required fields")
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError("End date cannot be before start date")
        if self.internship is not None and self.category.strip() != INTERNSHIP_CATEGORY:
            raise ValidationError("Internship details are only allowed for the Internship category")


@store_operation
def submit_activity(
    db: Session,
    student: User,
    draft: ActivityDraft,
    upload: UploadedFile | None,
    blob_store: BlobStore | None = None,
) -> Activity:
    """Create a pending activity for `student`, storing the attachment inline or in the blob store."""
    if student.role != Role.STUDENT.value:
        raise PermissionDenied("Only students can submit activities")
    validate_upload(upload)
    internship = draft.internship or InternshipDetails()
    activity = Activity(
        student_id=student.uid,
        # Snapshot at submission; later profile edits do not propagate
        student_name=student.name,
        student_department=student.department,
        title=draft.title.strip(),
        description=draft.description.strip(),
        category=draft.category.strip(),
        start_date=draft.start_date,
        end_date=draft.end_date,
        stipend=_clean(internship.stipend),
        company_worked=_clean(internship.company_worked),
        city=_clean(internship.city),
        file_name=upload.filename,
        file_type=upload.content_type,
        file_size=upload.size,
        status=ActivityStatus.PENDING.value,
    )
    if blob_store is not None:
        activity.file_url = blob_store.upload(blob_path(student.uid, upload.filename), upload.data, upload.content_type)
    else:
        activity.file_id = store_inline(db, student.uid, upload).id
    db.add(activity)
    db.commit()
    db.refresh(activity)
    hub.publish(ACTIVITIES)
    logger.info("Activity %s submitted by uid=%s category=%s", activity.id, student.uid, activity.category)
    return activity


@store_operation
def review_activity(
    db: Session,
    activity_id: uuid.UUID,
    decision: str,
    remarks: str | None,
    reviewer: User,
) -> Activity:
    """Approve or reject a pending activity. Reject requires remarks."""
    if reviewer.role not in REVIEWER_ROLES:
        raise PermissionDenied("Only faculty can review activities")
    new_status = DECISIONS.get((decision or "").strip().lower())
    if new_status is None:
        raise ValidationError("Decision must be 'approve' or 'reject'")
    remarks = _clean(remarks)
    if new_status is ActivityStatus.REJECTED and not remarks:
        raise ValidationError("Please provide remarks for rejection")
    activity = db.get(Activity, activity_id)
    if activity is None:
        raise NotFound("Activity not found")
    result = db.execute(
        update(Activity)
        .where(Activity.id == activity_id, Activity.status == ActivityStatus.PENDING.value)
        .values(
            status=new_status.value,
            remarks=remarks,
            reviewed_at=func.now(),
            reviewed_by=reviewer.name or "Unknown",
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        raise InvalidTransition("Activity has already been reviewed")
    db.commit()
    db.refresh(activity)
    hub.publish(ACTIVITIES)
    logger.info("Activity %s %s by %s", activity.id, activity.status, activity.reviewed_by)
    return activity


@store_operation
def list_activities(db: Session, viewer: User, status: str | None = None) -> list[Activity]:
    """Students see their own activities; reviewers and admins see all. Newest first."""
    q = db.query(Activity)
    if viewer.role not in ALL_ACTIVITY_READERS:
        q = q.filter(Activity.student_id == viewer.uid)
    if status and status != "all":
        try:
            q = q.filter(Activity.status == ActivityStatus(status).value)
        except ValueError:
            raise ValidationError(f"Unknown status filter: {status!r}")
    return q.order_by(Activity.created_at.desc()).all()


@store_operation
def get_activity(db: Session, activity_id: uuid.UUID, viewer: User) -> Activity:
    activity = db.get(Activity, activity_id)
    if activity is None or (viewer.role not in ALL_ACTIVITY_READERS and activity.student_id != viewer.uid):
        raise NotFound("Activity not found")
    return activity


@store_operation
def approved_activities(db: Session, student_uid: str) -> list[Activity]:
    """Approved activities of one student, oldest first (portfolio order)."""
    return (
        db.query(Activity)
        .filter(Activity.student_id == student_uid, Activity.status == ActivityStatus.APPROVED.value)
        .order_by(Activity.created_at)
        .all()
    )
