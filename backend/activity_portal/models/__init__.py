"""
SQLAlchemy models. Import here so Alembic and app can use them.
"""
from activity_portal.models.user import User
from activity_portal.models.stored_file import StoredFile
from activity_portal.models.activity import Activity
from activity_portal.models.derived_admin_request import DerivedAdminRequest
from activity_portal.models.complaint import Complaint
from activity_portal.models.alert import Alert

__all__ = ["User", "StoredFile", "Activity", "DerivedAdminRequest", "Complaint", "Alert"]
