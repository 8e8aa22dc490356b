"""
Activity schemas. Submission arrives as multipart form fields (see api/activities.py);
responses carry the review outcome and where to fetch the attachment.
"""
from datetime import date, datetime
from uuid import UUID
from pydantic import BaseModel, field_validator


class ActivityResponse(BaseModel):
    id: UUID
    student_id: str
    student_name: str
    student_department: str | None = None
    title: str
    description: str
    category: str
    start_date: date | None = None
    end_date: date | None = None
    stipend: str | None = None
    company_worked: str | None = None
    city: str | None = None
    file_id: UUID | None = None
    file_url: str | None = None
    file_name: str | None = None
    file_type: str | None = None
    file_size: int | None = None
    status: str
    remarks: str | None = None
    reviewed_at: datetime | None = None
    reviewed_by: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class ReviewRequest(BaseModel):
    decision: str  # approve | reject
    remarks: str | None = None

    @field_validator("decision")
    @classmethod
    def decision_one_of(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("approve", "reject"):
            raise ValueError("decision must be approve or reject")
        return v


class FileLinkResponse(BaseModel):
    url: str
    file_name: str | None = None
    file_type: str | None = None
