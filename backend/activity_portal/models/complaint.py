"""
Complaint: free-text message from a student to the admins. Admins add remarks and resolve.
"""
import uuid
from datetime import datetime
from sqlalchemy import String, Text, DateTime, CheckConstraint, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from activity_portal.database import Base
from activity_portal.models.types import ComplaintStatus, UuidType, sql_in


class Complaint(Base):
    __tablename__ = "complaints"

    id: Mapped[uuid.UUID] = mapped_column(
        UuidType(), primary_key=True, default=uuid.uuid4
    )
    student_uid: Mapped[str] = mapped_column(
        String(128), ForeignKey("users.uid"), nullable=False, index=True
    )
    student_name: Mapped[str] = mapped_column(String(255), nullable=False)
    student_email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    faculty_id: Mapped[str | None] = mapped_column(String(64), nullable=True)  # faculty the complaint is about, if any
    message: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ComplaintStatus.OPEN.value)
    admin_remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(f"status IN ({sql_in(ComplaintStatus)})", name="complaints_status_check"),
    )
