"""Initial schema: users, files, activities, derived_admin_requests, complaints, alerts.

Revision ID: 001
Revises:
Create Date: Initial

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("uid", sa.String(128), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, server_default=""),
        sa.Column("photo_url", sa.String(1024), nullable=True),
        sa.Column("role", sa.String(30), nullable=False, server_default="student"),
        sa.Column("roll_no", sa.String(64), nullable=True),
        sa.Column("faculty_id", sa.String(64), nullable=True),
        sa.Column("branch", sa.String(255), nullable=True),
        sa.Column("department", sa.String(255), nullable=True),
        sa.Column("accreditation", sa.String(10), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "role IN ('student', 'faculty', 'admin', 'derived-admin')", name="users_role_check"
        ),
        sa.CheckConstraint(
            "accreditation IS NULL OR accreditation IN ('nba', 'naac')", name="users_accreditation_check"
        ),
        sa.PrimaryKeyConstraint("uid"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=False)
    op.create_index("ix_users_role", "users", ["role"], unique=False)

    op.create_table(
        "files",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("uid", sa.String(128), nullable=False),
        sa.Column("name", sa.String(512), nullable=False),
        sa.Column("size", sa.BigInteger(), nullable=False),
        sa.Column("content_type", sa.String(100), nullable=False),
        sa.Column("data", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["uid"], ["users.uid"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_files_uid", "files", ["uid"], unique=False)

    op.create_table(
        "activities",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("student_id", sa.String(128), nullable=False),
        sa.Column("student_name", sa.String(255), nullable=False),
        sa.Column("student_department", sa.String(255), nullable=True),
        sa.Column("title", sa.String(512), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("stipend", sa.String(100), nullable=True),
        sa.Column("company_worked", sa.String(255), nullable=True),
        sa.Column("city", sa.String(255), nullable=True),
        sa.Column("file_id", sa.String(36), nullable=True),
        sa.Column("file_url", sa.String(1024), nullable=True),
        sa.Column("file_name", sa.String(512), nullable=False),
        sa.Column("file_type", sa.String(100), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="activities_status_check"),
        sa.ForeignKeyConstraint(["student_id"], ["users.uid"]),
        sa.ForeignKeyConstraint(["file_id"], ["files.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_activities_student_id", "activities", ["student_id"], unique=False)
    op.create_index("ix_activities_category", "activities", ["category"], unique=False)
    op.create_index("ix_activities_status", "activities", ["status"], unique=False)

    op.create_table(
        "derived_admin_requests",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("requester_uid", sa.String(128), nullable=False),
        sa.Column("requester_name", sa.String(255), nullable=False),
        sa.Column("requester_email", sa.String(255), nullable=False, server_default=""),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("decided_by", sa.String(128), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')", name="derived_admin_requests_status_check"
        ),
        sa.ForeignKeyConstraint(["requester_uid"], ["users.uid"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_derived_admin_requests_requester_uid", "derived_admin_requests", ["requester_uid"], unique=False)
    op.create_index("ix_derived_admin_requests_status", "derived_admin_requests", ["status"], unique=False)
    op.create_index(
        "uq_derived_admin_requests_one_pending",
        "derived_admin_requests",
        ["requester_uid"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
        sqlite_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        "complaints",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("student_uid", sa.String(128), nullable=False),
        sa.Column("student_name", sa.String(255), nullable=False),
        sa.Column("student_email", sa.String(255), nullable=False, server_default=""),
        sa.Column("faculty_id", sa.String(64), nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="open"),
        sa.Column("admin_remarks", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("status IN ('open', 'resolved')", name="complaints_status_check"),
        sa.ForeignKeyConstraint(["student_uid"], ["users.uid"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_complaints_student_uid", "complaints", ["student_uid"], unique=False)

    op.create_table(
        "alerts",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("created_by", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_alerts_created_at", "alerts", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_alerts_created_at", table_name="alerts")
    op.drop_table("alerts")
    op.drop_index("ix_complaints_student_uid", table_name="complaints")
    op.drop_table("complaints")
    op.drop_index("uq_derived_admin_requests_one_pending", table_name="derived_admin_requests")
    op.drop_index("ix_derived_admin_requests_status", table_name="derived_admin_requests")
    op.drop_index("ix_derived_admin_requests_requester_uid", table_name="derived_admin_requests")
    op.drop_table("derived_admin_requests")
    op.drop_index("ix_activities_status", table_name="activities")
    op.drop_index("ix_activities_category", table_name="activities")
    op.drop_index("ix_activities_student_id", table_name="activities")
    op.drop_table("activities")
    op.drop_index("ix_files_uid", table_name="files")
    op.drop_table("files")
    op.drop_index("ix_users_role", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
