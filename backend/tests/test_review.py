"""Activity submission and the review state machine."""
from datetime import date

import pytest

from activity_portal.errors import InvalidTransition, NotFound, PermissionDenied, ValidationError
from activity_portal.models.activity import Activity
from activity_portal.models.stored_file import StoredFile
from activity_portal.models.types import ActivityStatus, Role
from activity_portal.services import review
from activity_portal.services.storage import UploadedFile


@pytest.fixture
def student(make_user):
    return make_user("stu", Role.STUDENT, name="Priya", department="ECE", branch="ECE")


@pytest.fixture
def reviewer(make_user):
    return make_user("prof", Role.FACULTY, name="Dr. Rao")


@pytest.fixture
def upload(pdf_bytes):
    return UploadedFile(filename="certificate.pdf", content_type="application/pdf", data=pdf_bytes)


@pytest.fixture
def pending(db, student, upload):
    draft = review.ActivityDraft(title="Hackathon", description="Won second place", category="Competition")
    return review.submit_activity(db, student, draft, upload)


def test_internship_without_details_stores_nulls(db, student, upload):
    draft = review.ActivityDraft(title="Summer internship", description="Backend work", category="Internship")
    activity = review.submit_activity(db, student, draft, upload)
    assert activity.status == ActivityStatus.PENDING.value
    assert activity.stipend is None
    assert activity.company_worked is None
    assert activity.city is None


def test_internship_details_kept(db, student, upload):
    details = review.InternshipDetails(stipend="15000", company_worked="Acme", city=" Pune ")
    draft = review.ActivityDraft(title="Internship", description="ML", category="Internship", internship=details)
    activity = review.submit_activity(db, student, draft, upload)
    assert (activity.stipend, activity.company_worked, activity.city) == ("15000", "Acme", "Pune")


def test_internship_details_rejected_for_other_category():
    with pytest.raises(ValidationError):
        review.ActivityDraft(
            title="Quiz", description="x", category="Competition",
            internship=review.InternshipDetails(stipend="1"),
        )


def test_draft_requires_fields():
    with pytest.raises(ValidationError, match="required"):
        review.ActivityDraft(title="  ", description="x", category="Other")


def test_draft_end_before_start():
    with pytest.raises(ValidationError, match="End date"):
        review.ActivityDraft(
            title="Camp", description="x", category="Other",
            start_date=date(2024, 5, 10), end_date=date(2024, 5, 1),
        )


def test_submit_snapshots_student_and_stores_file(db, pending):
    assert pending.student_name == "Priya"
    assert pending.student_department == "ECE"
    stored = db.get(StoredFile, pending.file_id)
    assert stored.data.startswith("data:application/pdf;base64,")
    assert stored.size == pending.file_size


def test_submit_requires_student(db, reviewer, upload):
    draft = review.ActivityDraft(title="t", description="d", category="Other")
    with pytest.raises(PermissionDenied):
        review.submit_activity(db, reviewer, draft, upload)


def test_submit_requires_file(db, student):
    draft = review.ActivityDraft(title="t", description="d", category="Other")
    with pytest.raises(ValidationError, match="attach"):
        review.submit_activity(db, student, draft, None)
    assert db.query(Activity).count() == 0


def test_submit_with_blob_store(db, student, png_bytes):
    class FakeStore:
        def __init__(self):
            self.paths = []

        def upload(self, path, data, content_type):
            self.paths.append(path)
            return f"s3://bucket/{path}"

        def get_download_url(self, ref):
            return None

    store = FakeStore()
    draft = review.ActivityDraft(title="Photo", description="d", category="Sports & Athletics")
    activity = review.submit_activity(
        db, student, draft, UploadedFile("medal.png", "image/png", png_bytes), blob_store=store
    )
    assert activity.file_id is None
    assert activity.file_url == f"s3://bucket/{store.paths[0]}"
    assert store.paths[0].startswith("activities/stu/")


def test_approve_with_remarks(db, pending, reviewer):
    activity = review.review_activity(db, pending.id, "approve", "Great work", reviewer)
    assert activity.status == ActivityStatus.APPROVED.value
    assert activity.remarks == "Great work"
    assert activity.reviewed_by == "Dr. Rao"
    assert activity.reviewed_at is not None


def test_approve_blank_remarks_stored_as_null(db, pending, reviewer):
    activity = review.review_activity(db, pending.id, "approve", "   ", reviewer)
    assert activity.remarks is None


def test_reject_without_remarks_leaves_pending(db, pending, reviewer):
    with pytest.raises(ValidationError, match="remarks"):
        review.review_activity(db, pending.id, "reject", "  ", reviewer)
    db.expire_all()
    assert db.get(Activity, pending.id).status == ActivityStatus.PENDING.value


def test_reviewed_activity_is_terminal(db, pending, reviewer):
    review.review_activity(db, pending.id, "reject", "Missing signature", reviewer)
    with pytest.raises(InvalidTransition):
        review.review_activity(db, pending.id, "approve", None, reviewer)
    db.expire_all()
    assert db.get(Activity, pending.id).status == ActivityStatus.REJECTED.value


def test_student_cannot_review(db, pending, student):
    with pytest.raises(PermissionDenied):
        review.review_activity(db, pending.id, "approve", None, student)


def test_derived_admin_can_review(db, pending, make_user):
    deputy = make_user("deputy", Role.DERIVED_ADMIN, name="Deputy")
    assert review.review_activity(db, pending.id, "approve", None, deputy).status == "approved"


def test_unknown_decision(db, pending, reviewer):
    with pytest.raises(ValidationError):
        review.review_activity(db, pending.id, "maybe", None, reviewer)


def test_concurrent_reviews_first_writer_wins(session_factory, pending, reviewer, make_user):
    second = make_user("prof2", Role.FACULTY, name="Dr. Iyer")
    s1, s2 = session_factory(), session_factory()
    try:
        # Both reviewers have the activity open as pending
        assert s1.get(Activity, pending.id).status == "pending"
        assert s2.get(Activity, pending.id).status == "pending"
        review.review_activity(s1, pending.id, "approve", "Good", reviewer)
        with pytest.raises(InvalidTransition):
            review.review_activity(s2, pending.id, "reject", "Not valid", second)
    finally:
        s1.close()
        s2.close()
    check = session_factory()
    try:
        final = check.get(Activity, pending.id)
        assert final.status == "approved"
        assert final.remarks == "Good"
        assert final.reviewed_by == "Dr. Rao"
    finally:
        check.close()


def test_list_scoping_and_filter(db, pending, reviewer, make_user, upload):
    other = make_user("stu2", Role.STUDENT)
    draft = review.ActivityDraft(title="Other", description="d", category="Other")
    review.submit_activity(db, other, draft, upload)
    review.review_activity(db, pending.id, "approve", None, reviewer)

    assert len(review.list_activities(db, reviewer)) == 2
    assert [a.title for a in review.list_activities(db, reviewer, status="approved")] == ["Hackathon"]
    assert [a.student_id for a in review.list_activities(db, other)] == ["stu2"]
    with pytest.raises(ValidationError):
        review.list_activities(db, reviewer, status="archived")


def test_get_activity_hidden_from_other_students(db, pending, make_user):
    other = make_user("stu2", Role.STUDENT)
    with pytest.raises(NotFound):
        review.get_activity(db, pending.id, other)


def test_approved_activities_only(db, pending, reviewer, student, upload):
    draft = review.ActivityDraft(title="Second", description="d", category="Other")
    review.submit_activity(db, student, draft, upload)
    review.review_activity(db, pending.id, "approve", None, reviewer)
    assert [a.title for a in review.approved_activities(db, "stu")] == ["Hackathon"]
