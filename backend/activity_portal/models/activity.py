"""
Activity: one achievement record submitted by a student, reviewed once by faculty.
student_name / student_department are a snapshot taken at submission time.
Internship fields are only filled when category is Internship.
"""
import uuid
from datetime import date, datetime
from sqlalchemy import String, Text, BigInteger, Date, DateTime, CheckConstraint, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from activity_portal.database import Base
from activity_portal.models.types import ActivityStatus, UuidType, sql_in


class Activity(Base):
    __tablename__ = "activities"

    id: Mapped[uuid.UUID] = mapped_column(
        UuidType(), primary_key=True, default=uuid.uuid4
    )
    student_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("users.uid"), nullable=False, index=True
    )
    student_name: Mapped[str] = mapped_column(String(255), nullable=False)
    student_department: Mapped[str | None] = mapped_column(String(255), nullable=True)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    stipend: Mapped[str | None] = mapped_column(String(100), nullable=True)
    company_worked: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # Attachment: file_id for inline-stored files, file_url for blob-store refs (or legacy direct URLs)
    file_id: Mapped[uuid.UUID | None] = mapped_column(
        UuidType(), ForeignKey("files.id"), nullable=True
    )
    file_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    file_name: Mapped[str] = mapped_column(String(512), nullable=False)
    file_type: Mapped[str] = mapped_column(String(100), nullable=False)
    file_size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ActivityStatus.PENDING.value, index=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint(f"status IN ({sql_in(ActivityStatus)})", name="activities_status_check"),
    )

    student = relationship("User", back_populates="activities")
    file = relationship("StoredFile")
