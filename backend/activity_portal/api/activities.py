"""
Activities API: submit (multipart), list, get, review, attachment link, categories.
Students see their own activities; faculty, derived-admins and admins see all.
"""
import logging
import uuid
from datetime import date

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from activity_portal.config import settings
from activity_portal.database import get_db
from activity_portal.errors import NotFound, ValidationError
from activity_portal.models.activity import Activity
from activity_portal.models.user import User
from activity_portal.schemas.activity import ActivityResponse, FileLinkResponse, ReviewRequest
from activity_portal.services import review
from activity_portal.services.storage import BlobStore, UploadedFile, get_blob_store, is_direct_url
from activity_portal.api.deps import get_current_user

router = APIRouter(prefix="/activities", tags=["activities"])
logger = logging.getLogger(__name__)


def _read_upload(file: UploadFile | None) -> UploadedFile | None:
    if file is None or not file.filename:
        return None
    # One byte past the limit is enough for validation to reject oversize files
    contents = file.file.read(settings.max_upload_bytes + 1)
    return UploadedFile(filename=file.filename, content_type=file.content_type or "", data=contents)


def _parse_date(value: str | None, label: str) -> date | None:
    # HTML forms send "" for an untouched date input
    if value is None or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError as e:
        raise ValidationError(f"Invalid {label}, expected YYYY-MM-DD") from e


@router.get("/categories", response_model=list[str])
def categories():
    return review.CATEGORIES


@router.post("", response_model=ActivityResponse, status_code=201)
def submit(
    title: str = Form(""),
    description: str = Form(""),
    category: str = Form(""),
    start_date: str | None = Form(None),
    end_date: str | None = Form(None),
    stipend: str | None = Form(None),
    company_worked: str | None = Form(None),
    city: str | None = Form(None),
    file: UploadFile | None = File(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    blob_store: BlobStore | None = Depends(get_blob_store),
):
    """Submit an activity with its proof document. Internship details only with category Internship."""
    internship = None
    if any((v or "").strip() for v in (stipend, company_worked, city)):
        internship = review.InternshipDetails(stipend=stipend, company_worked=company_worked, city=city)
    draft = review.ActivityDraft(
        title=title,
        description=description,
        category=category,
        start_date=_parse_date(start_date, "start date"),
        end_date=_parse_date(end_date, "end date"),
        internship=internship,
    )
    return review.submit_activity(db, current_user, draft, _read_upload(file), blob_store=blob_store)


@router.get("", response_model=list[ActivityResponse])
def list_activities(
    status: str | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Newest first. Optional status filter: pending, approved, rejected or all."""
    return review.list_activities(db, current_user, status=status)


@router.get("/{activity_id}", response_model=ActivityResponse)
def get_activity(
    activity_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return review.get_activity(db, activity_id, current_user)


@router.post("/{activity_id}/review", response_model=ActivityResponse)
def review_activity(
    activity_id: uuid.UUID,
    data: ReviewRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Approve or reject a pending activity (faculty and derived-admins). Reject needs remarks."""
    return review.review_activity(db, activity_id, data.decision, data.remarks, current_user)


def _file_link(activity: Activity, blob_store: BlobStore | None) -> FileLinkResponse:
    if activity.file_id is not None:
        url = f"/files/{activity.file_id}"
    elif is_direct_url(activity.file_url):
        url = activity.file_url.strip()
    elif activity.file_url and blob_store is not None:
        url = blob_store.get_download_url(activity.file_url)
    else:
        url = None
    if not url:
        raise NotFound("No file attached")
    return FileLinkResponse(url=url, file_name=activity.file_name, file_type=activity.file_type)


@router.get("/{activity_id}/file", response_model=FileLinkResponse)
def file_link(
    activity_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    blob_store: BlobStore | None = Depends(get_blob_store),
):
    """Where to fetch the attachment: the inline file endpoint or a presigned S3 URL."""
    return _file_link(review.get_activity(db, activity_id, current_user), blob_store)
