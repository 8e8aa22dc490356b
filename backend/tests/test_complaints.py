"""Complaints, alerts and per-role dashboards."""
from datetime import datetime

import pytest

from activity_portal.errors import PermissionDenied, ValidationError
from activity_portal.models.alert import Alert
from activity_portal.models.types import Role
from activity_portal.services import complaints, dashboards


def test_student_files_and_sees_own(db, make_user):
    a = make_user("a", Role.STUDENT)
    b = make_user("b", Role.STUDENT)
    complaints.create_complaint(db, a, "Marks not updated", faculty_id="F-1")
    complaints.create_complaint(db, b, "Projector broken")
    own = complaints.list_complaints(db, a)
    assert [c.message for c in own] == ["Marks not updated"]
    assert own[0].status == "open"
    assert own[0].faculty_id == "F-1"


def test_blank_complaint_rejected(db, make_user):
    with pytest.raises(ValidationError):
        complaints.create_complaint(db, make_user("a", Role.STUDENT), "   ")


def test_faculty_cannot_file_or_read(db, make_user):
    prof = make_user("prof", Role.FACULTY)
    with pytest.raises(PermissionDenied):
        complaints.create_complaint(db, prof, "hello")
    with pytest.raises(PermissionDenied):
        complaints.list_complaints(db, prof)


def test_admin_resolves_with_remarks(db, make_user):
    stu = make_user("a", Role.STUDENT)
    admin = make_user("boss", Role.ADMIN)
    c = complaints.create_complaint(db, stu, "Lab closed")
    updated = complaints.update_complaint(db, c.id, admin, admin_remarks="Reopened Monday", status="resolved")
    assert updated.status == "resolved"
    assert updated.admin_remarks == "Reopened Monday"
    with pytest.raises(ValidationError):
        complaints.update_complaint(db, c.id, admin, status="closed")


def test_derived_admin_reads_but_cannot_update(db, make_user):
    stu = make_user("a", Role.STUDENT)
    deputy = make_user("deputy", Role.DERIVED_ADMIN)
    c = complaints.create_complaint(db, stu, "Lab closed")
    assert len(complaints.list_complaints(db, deputy)) == 1
    with pytest.raises(PermissionDenied):
        complaints.update_complaint(db, c.id, deputy, status="resolved")


def test_latest_alert(db, make_user):
    admin = make_user("boss", Role.ADMIN, name="Principal")
    assert complaints.latest_alert(db) is None
    db.add(Alert(message="Old notice", created_by="Principal", created_at=datetime(2024, 1, 1)))
    db.commit()
    complaints.create_alert(db, admin, "Exams postponed")
    latest = complaints.latest_alert(db)
    assert latest.message == "Exams postponed"
    assert latest.created_by == "Principal"
    with pytest.raises(PermissionDenied):
        complaints.create_alert(db, make_user("s", Role.STUDENT), "hi")


def test_every_role_has_a_dashboard():
    assert set(dashboards.DASHBOARD_BUILDERS) == set(Role)


def test_unknown_role_dashboard_rejected(db, make_user):
    user = make_user("odd", Role.STUDENT)
    user.role = "guest"  # not persisted
    with pytest.raises(ValidationError):
        dashboards.build_dashboard(db, user)
    db.rollback()


def test_dashboards_by_role(db, make_user):
    stu = make_user("stu", Role.STUDENT)
    prof = make_user("prof", Role.FACULTY)
    admin = make_user("boss", Role.ADMIN)
    complaints.create_complaint(db, stu, "Need help")

    student_board = dashboards.build_dashboard(db, stu)
    assert student_board.stats.total == 0
    assert len(student_board.complaints) == 1
    assert student_board.analytics is None

    faculty_board = dashboards.build_dashboard(db, prof)
    assert faculty_board.has_pending_request is False
    assert faculty_board.analytics is None

    admin_board = dashboards.build_dashboard(db, admin)
    assert admin_board.analytics is not None
    assert admin_board.analytics.roles.students == 1
    assert [u.uid for u, _ in admin_board.faculty] == ["prof"]
