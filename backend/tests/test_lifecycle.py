"""Role and access lifecycle: bootstrap, sign-up, sign-in checks, derived-admin requests and badges."""
import pytest

from activity_portal.config import settings
from activity_portal.errors import (
    AccountNotFound,
    DuplicateRequest,
    IdentifierMismatch,
    InvalidAdminKey,
    InvalidTransition,
    PermissionDenied,
    RoleMismatch,
    ValidationError,
)
from activity_portal.models.derived_admin_request import DerivedAdminRequest
from activity_portal.models.types import RequestStatus, Role
from activity_portal.models.user import User
from activity_portal.services import lifecycle


@pytest.fixture
def admin_key(monkeypatch):
    monkeypatch.setattr(settings, "admin_secret_key", "campus-admin-key")
    return "campus-admin-key"


def test_bootstrap_creates_student_once(db, identity_for):
    user = lifecycle.bootstrap_or_fetch(db, identity_for("asha"))
    assert user.role == Role.STUDENT.value
    assert user.name == "Asha"
    again = lifecycle.bootstrap_or_fetch(db, identity_for("asha", name="Someone Else"))
    assert again.uid == user.uid
    assert again.name == "Asha"
    assert db.query(User).count() == 1


def test_bootstrap_without_display_name_uses_placeholder(db, identity_for):
    user = lifecycle.bootstrap_or_fetch(db, identity_for("anon", name=""))
    assert user.name == lifecycle.DEFAULT_DISPLAY_NAME


@pytest.mark.parametrize("requested", ["admin", "derived-admin"])
def test_signup_never_grants_elevated_role(db, identity_for, requested):
    user = lifecycle.sign_up_with_role(db, identity_for("ravi"), requested)
    assert user.role == Role.STUDENT.value


def test_signup_with_admin_keeps_existing_role(db, identity_for, make_user):
    make_user("meera", Role.FACULTY)
    user = lifecycle.sign_up_with_role(db, identity_for("meera"), "admin")
    assert user.role == Role.FACULTY.value


def test_signup_faculty_merges_extras_and_department(db, identity_for):
    extras = lifecycle.ProfileExtras(faculty_id="F-101", branch="CSE", accreditation="nba")
    user = lifecycle.sign_up_with_role(db, identity_for("kiran"), "faculty", extras)
    assert user.role == Role.FACULTY.value
    assert user.faculty_id == "F-101"
    assert user.branch == "CSE"
    assert user.department == "CSE"
    assert user.accreditation == "nba"


def test_signup_unknown_role_rejected(db, identity_for):
    with pytest.raises(ValidationError):
        lifecycle.sign_up_with_role(db, identity_for("x"), "superuser")


def test_signin_unknown_account(db, identity_for):
    with pytest.raises(AccountNotFound):
        lifecycle.sign_in_existing(db, identity_for("ghost"), "student")


def test_signin_role_mismatch_writes_nothing(db, session_factory, identity_for, make_user):
    make_user("neha", Role.STUDENT, name="Neha")
    with pytest.raises(RoleMismatch):
        lifecycle.sign_in_existing(db, identity_for("neha", name="Renamed"), "faculty")
    check = session_factory()
    try:
        stored = check.get(User, "neha")
        assert stored.role == Role.STUDENT.value
        assert stored.name == "Neha"
    finally:
        check.close()


def test_signin_identifier_mismatch(db, identity_for, make_user):
    make_user("arun", Role.STUDENT, roll_no="21BCE001")
    with pytest.raises(IdentifierMismatch, match="Roll number"):
        lifecycle.sign_in_existing(db, identity_for("arun"), "student", identifier="21BCE999")


def test_signin_faculty_identifier_checked_for_derived_admin(db, identity_for, make_user):
    make_user("lata", Role.DERIVED_ADMIN, faculty_id="F-7")
    with pytest.raises(IdentifierMismatch, match="Faculty ID"):
        lifecycle.sign_in_existing(db, identity_for("lata"), "derived-admin", identifier="F-8")


def test_signin_success_refreshes_profile_only(db, identity_for, make_user):
    make_user("arun", Role.STUDENT, roll_no="21BCE001")
    user = lifecycle.sign_in_existing(
        db, identity_for("arun", name="Arun K", photo_url="https://img.example/a.png"), "student", identifier="21BCE001"
    )
    assert user.name == "Arun K"
    assert user.photo_url == "https://img.example/a.png"
    assert user.role == Role.STUDENT.value


def test_admin_signin_with_key_creates_admin(db, identity_for, admin_key):
    user = lifecycle.sign_in_existing(db, identity_for("root"), "admin", identifier=admin_key)
    assert user.role == Role.ADMIN.value


def test_admin_signin_with_key_elevates_existing(db, identity_for, make_user, admin_key):
    make_user("prof", Role.FACULTY)
    user = lifecycle.sign_in_existing(db, identity_for("prof"), "admin", identifier=admin_key)
    assert user.role == Role.ADMIN.value


@pytest.mark.parametrize("existing", [None, Role.STUDENT, Role.ADMIN])
@pytest.mark.parametrize("key", [None, "", "wrong-key"])
def test_admin_signin_with_bad_key_never_elevates(db, session_factory, identity_for, make_user, admin_key, existing, key):
    if existing is not None:
        make_user("mallory", existing)
    with pytest.raises(InvalidAdminKey):
        lifecycle.sign_in_existing(db, identity_for("mallory"), "admin", identifier=key)
    check = session_factory()
    try:
        stored = check.get(User, "mallory")
        if existing is None:
            assert stored is None
        else:
            assert stored.role == existing.value
    finally:
        check.close()


def test_request_elevation_faculty_only(db, make_user):
    student = make_user("stu", Role.STUDENT)
    with pytest.raises(PermissionDenied):
        lifecycle.request_elevation(db, student)


def test_duplicate_pending_request_rejected(db, make_user):
    prof = make_user("prof", Role.FACULTY)
    req = lifecycle.request_elevation(db, prof)
    assert req.status == RequestStatus.PENDING.value
    with pytest.raises(DuplicateRequest):
        lifecycle.request_elevation(db, prof)


def test_rerequest_after_rejection_allowed(db, make_user):
    prof = make_user("prof", Role.FACULTY)
    admin = make_user("boss", Role.ADMIN)
    first = lifecycle.request_elevation(db, prof)
    lifecycle.decide_elevation(db, first.id, False, admin)
    second = lifecycle.request_elevation(db, prof)
    assert second.id != first.id
    assert second.status == RequestStatus.PENDING.value


def test_approve_sets_request_and_role(db, session_factory, make_user):
    prof = make_user("prof", Role.FACULTY)
    admin = make_user("boss", Role.ADMIN)
    req = lifecycle.request_elevation(db, prof)
    decided = lifecycle.decide_elevation(db, req.id, True, admin)
    assert decided.status == RequestStatus.APPROVED.value
    assert decided.decided_by == "boss"
    check = session_factory()
    try:
        assert check.get(User, "prof").role == Role.DERIVED_ADMIN.value
    finally:
        check.close()


def test_approve_is_atomic_on_failure(db, session_factory, make_user, monkeypatch):
    prof = make_user("prof", Role.FACULTY)
    admin = make_user("boss", Role.ADMIN)
    req = lifecycle.request_elevation(db, prof)

    def fail(user, role):
        raise RuntimeError("simulated store failure")

    monkeypatch.setattr(lifecycle, "_assign_role", fail)
    with pytest.raises(RuntimeError):
        lifecycle.decide_elevation(db, req.id, True, admin)
    check = session_factory()
    try:
        assert check.get(DerivedAdminRequest, req.id).status == RequestStatus.PENDING.value
        assert check.get(User, "prof").role == Role.FACULTY.value
    finally:
        check.close()


def test_reject_leaves_role(db, make_user):
    prof = make_user("prof", Role.FACULTY)
    admin = make_user("boss", Role.ADMIN)
    req = lifecycle.request_elevation(db, prof)
    decided = lifecycle.decide_elevation(db, req.id, False, admin)
    assert decided.status == RequestStatus.REJECTED.value
    db.expire_all()
    assert db.get(User, "prof").role == Role.FACULTY.value


def test_decide_twice_is_invalid(db, make_user):
    prof = make_user("prof", Role.FACULTY)
    admin = make_user("boss", Role.ADMIN)
    req = lifecycle.request_elevation(db, prof)
    lifecycle.decide_elevation(db, req.id, False, admin)
    with pytest.raises(InvalidTransition):
        lifecycle.decide_elevation(db, req.id, True, admin)


def test_only_admin_decides(db, make_user):
    prof = make_user("prof", Role.FACULTY)
    deputy = make_user("deputy", Role.DERIVED_ADMIN)
    req = lifecycle.request_elevation(db, prof)
    with pytest.raises(PermissionDenied):
        lifecycle.decide_elevation(db, req.id, True, deputy)


def test_grant_and_revoke(db, make_user):
    make_user("prof", Role.FACULTY)
    admin = make_user("boss", Role.ADMIN)
    assert lifecycle.grant_derived_admin(db, "prof", admin).role == Role.DERIVED_ADMIN.value
    with pytest.raises(InvalidTransition):
        lifecycle.grant_derived_admin(db, "prof", admin)
    assert lifecycle.revoke_derived_admin(db, "prof", admin).role == Role.FACULTY.value
    with pytest.raises(InvalidTransition):
        lifecycle.revoke_derived_admin(db, "prof", admin)


def test_grant_to_student_is_invalid(db, make_user):
    make_user("stu", Role.STUDENT)
    admin = make_user("boss", Role.ADMIN)
    with pytest.raises(InvalidTransition):
        lifecycle.grant_derived_admin(db, "stu", admin)


def test_list_requests_scoped_and_pending_first(db, make_user):
    a = make_user("a", Role.FACULTY)
    b = make_user("b", Role.FACULTY)
    admin = make_user("boss", Role.ADMIN)
    ra = lifecycle.request_elevation(db, a)
    lifecycle.decide_elevation(db, ra.id, False, admin)
    lifecycle.request_elevation(db, b)
    all_rows = lifecycle.list_elevation_requests(db, admin)
    assert [r.status for r in all_rows] == ["pending", "rejected"]
    own = lifecycle.list_elevation_requests(db, a)
    assert [r.requester_uid for r in own] == ["a"]


def test_faculty_badge_overview(db, make_user):
    a = make_user("a", Role.FACULTY, name="Zed")
    make_user("b", Role.DERIVED_ADMIN, name="Amy")
    make_user("s", Role.STUDENT)
    lifecycle.request_elevation(db, a)
    overview = lifecycle.faculty_badge_overview(db)
    assert [(u.name, pending) for u, pending in overview] == [("Amy", False), ("Zed", True)]
