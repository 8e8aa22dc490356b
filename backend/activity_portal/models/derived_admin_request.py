"""
DerivedAdminRequest: a faculty member asking for the derived-admin badge.
pending -> approved | rejected, decided by an admin; terminal afterwards.
"""
import uuid
from datetime import datetime
from sqlalchemy import String, DateTime, CheckConstraint, ForeignKey, Index, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from activity_portal.database import Base
from activity_portal.models.types import RequestStatus, UuidType, sql_in


class DerivedAdminRequest(Base):
    __tablename__ = "derived_admin_requests"

    id: Mapped[uuid.UUID] = mapped_column(
        UuidType(), primary_key=True, default=uuid.uuid4
    )
    requester_uid: Mapped[str] = mapped_column(
        String(128), ForeignKey("users.uid"), nullable=False, index=True
    )
    requester_name: Mapped[str] = mapped_column(String(255), nullable=False)
    requester_email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=RequestStatus.PENDING.value, index=True)
    decided_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint(f"status IN ({sql_in(RequestStatus)})", name="derived_admin_requests_status_check"),
        # At most one pending request per requester
        Index(
            "uq_derived_admin_requests_one_pending",
            "requester_uid",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    requester = relationship("User", back_populates="derived_admin_requests")
