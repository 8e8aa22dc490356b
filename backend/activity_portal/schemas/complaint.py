"""
Complaint and alert schemas.
"""
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, field_validator


class ComplaintCreate(BaseModel):
    message: str
    faculty_id: str | None = None

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("message is required")
        return v


class ComplaintUpdate(BaseModel):
    admin_remarks: str | None = None
    status: str | None = None  # open | resolved


class ComplaintResponse(BaseModel):
    id: UUID
    student_uid: str
    student_name: str
    student_email: str
    faculty_id: str | None = None
    message: str
    status: str
    admin_remarks: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class AlertCreate(BaseModel):
    message: str


class AlertResponse(BaseModel):
    id: UUID
    message: str
    created_by: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True
