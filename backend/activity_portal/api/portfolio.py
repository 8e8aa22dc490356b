"""
Portfolio export: a student's approved activities as PDF (default) or .docx.
"""
import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from activity_portal.database import get_db
from activity_portal.errors import NotFound, PermissionDenied
from activity_portal.models.types import Role
from activity_portal.models.user import User
from activity_portal.services import review
from activity_portal.services.export_docx import build_portfolio_docx
from activity_portal.services.export_pdf import build_portfolio_pdf, portfolio_filename
from activity_portal.services.storage import content_disposition
from activity_portal.api.deps import get_current_user, require_roles

router = APIRouter(prefix="/portfolio", tags=["portfolio"])
logger = logging.getLogger(__name__)

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _export(db: Session, student: User, fmt: str) -> StreamingResponse:
    activities = review.approved_activities(db, student.uid)
    if fmt == "docx":
        buf, media_type = build_portfolio_docx(student, activities), DOCX_MEDIA_TYPE
    else:
        buf, media_type = build_portfolio_pdf(student, activities), "application/pdf"
    filename = portfolio_filename(student.name, fmt)
    logger.info("Portfolio exported for uid=%s (%s, %d activities)", student.uid, fmt, len(activities))
    return StreamingResponse(
        buf,
        media_type=media_type,
        headers={"Content-Disposition": content_disposition("attachment", filename)},
    )


@router.get("/me")
def my_portfolio(
    format: str = Query("pdf", pattern="^(pdf|docx)$"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if current_user.role != Role.STUDENT.value:
        raise PermissionDenied("Only students have a portfolio")
    return _export(db, current_user, format)


@router.get("/{uid}")
def student_portfolio(
    uid: str,
    format: str = Query("pdf", pattern="^(pdf|docx)$"),
    current_user: User = Depends(require_roles(Role.FACULTY, Role.DERIVED_ADMIN, Role.ADMIN)),
    db: Session = Depends(get_db),
):
    student = db.get(User, uid)
    if student is None or student.role != Role.STUDENT.value:
        raise NotFound("Student not found")
    return _export(db, student, format)
