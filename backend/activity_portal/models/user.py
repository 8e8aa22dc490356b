"""
User model: one row per identity-provider subject (uid).
Profile fields are denormalized from the provider and refreshed on sign-in.
Role changes go through services.lifecycle only.
"""
from datetime import datetime
from sqlalchemy import String, DateTime, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from activity_portal.database import Base
from activity_portal.models.types import Role, sql_in


class User(Base):
    __tablename__ = "users"

    uid: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="", index=True)
    photo_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    role: Mapped[str] = mapped_column(String(30), nullable=False, default=Role.STUDENT.value, index=True)
    # Role-specific profile: roll_no (student), faculty_id (faculty), accreditation (admin, informational)
    roll_no: Mapped[str | None] = mapped_column(String(64), nullable=True)
    faculty_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    branch: Mapped[str | None] = mapped_column(String(255), nullable=True)
    department: Mapped[str | None] = mapped_column(String(255), nullable=True)
    accreditation: Mapped[str | None] = mapped_column(String(10), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(f"role IN ({sql_in(Role)})", name="users_role_check"),
        CheckConstraint("accreditation IS NULL OR accreditation IN ('nba', 'naac')", name="users_accreditation_check"),
    )

    activities = relationship("Activity", back_populates="student")
    derived_admin_requests = relationship("DerivedAdminRequest", back_populates="requester")
