"""
DB types and closed value sets shared by models, services and schemas.
UuidType works on both SQLite (local runs, tests) and PostgreSQL.
"""
import uuid
from enum import Enum

from sqlalchemy import String, TypeDecorator


class UuidType(TypeDecorator):
    """UUID that stores as string(36) so it works on SQLite and PostgreSQL."""
    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)


class Role(str, Enum):
    STUDENT = "student"
    FACULTY = "faculty"
    ADMIN = "admin"
    DERIVED_ADMIN = "derived-admin"


class ActivityStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ComplaintStatus(str, Enum):
    OPEN = "open"
    RESOLVED = "resolved"


def sql_in(values) -> str:
    """Render an enum as a SQL IN list for CheckConstraints."""
    return ", ".join(f"'{v.value}'" for v in values)
