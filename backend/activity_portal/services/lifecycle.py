"""
Account and role lifecycle: which User row exists after each authentication event,
and every mutation that changes a role.

Only two paths can produce an elevated role:
- sign_in_existing with claimed role admin and the configured admin key -> admin
- decide_elevation(approve=True) / grant_derived_admin by an admin -> derived-admin
Sign-up accepts admin/derived-admin in the request but never applies them.
"""
import hmac
import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from activity_portal.config import settings
from activity_portal.database import store_operation
from activity_portal.errors import (
    AccountNotFound,
    DuplicateRequest,
    IdentifierMismatch,
    InvalidAdminKey,
    InvalidTransition,
    NotFound,
    PermissionDenied,
    RoleMismatch,
    ValidationError,
)
from activity_portal.models.derived_admin_request import DerivedAdminRequest
from activity_portal.models.types import RequestStatus, Role
from activity_portal.models.user import User
from activity_portal.services.identity import Identity
from activity_portal.services.live import DERIVED_ADMIN_REQUESTS, USERS, hub

logger = logging.getLogger(__name__)

SIGNUP_ROLES = frozenset({Role.STUDENT, Role.FACULTY})
ELEVATED_ROLES = frozenset({Role.ADMIN, Role.DERIVED_ADMIN})

# Secondary identifier checked at sign-in, per role
IDENTIFIER_FIELDS = {
    Role.STUDENT: ("roll_no", "Roll number does not match."),
    Role.FACULTY: ("faculty_id", "Faculty ID does not match."),
    Role.DERIVED_ADMIN: ("faculty_id", "Faculty ID does not match."),
}

DEFAULT_DISPLAY_NAME = "Unknown User"


@dataclass(frozen=True)
class ProfileExtras:
    """Role-specific profile fields collected by the account-creation form."""
    roll_no: str | None = None
    faculty_id: str | None = None
    branch: str | None = None
    accreditation: str | None = None


def parse_role(value: str | Role) -> Role:
    """Closed set of roles; anything else is rejected explicitly."""
    if isinstance(value, Role):
        return value
    try:
        return Role((value or "").strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown role: {value!r}")


def _new_user(identity: Identity, role: Role, default_name: str = DEFAULT_DISPLAY_NAME) -> User:
    return User(
        uid=identity.subject_id,
        name=identity.display_name or default_name,
        email=identity.email or "",
        photo_url=identity.photo_url,
        role=role.value,
    )


def _merge_profile_basics(user: User, identity: Identity) -> None:
    """Refresh provider-owned profile copies; never touches role or identifiers."""
    user.name = identity.display_name or user.name
    user.email = identity.email or user.email
    user.photo_url = identity.photo_url or user.photo_url


def _merge_extras(user: User, extras: ProfileExtras) -> None:
    for field in ("roll_no", "faculty_id", "branch", "accreditation"):
        value = getattr(extras, field)
        if value is not None and str(value).strip():
            setattr(user, field, str(value).strip())
    if extras.branch and extras.branch.strip():
        user.department = extras.branch.strip()


def _assign_role(user: User, role: Role) -> None:
    user.role = role.value


def _require_admin(actor: User) -> None:
    if actor.role != Role.ADMIN.value:
        raise PermissionDenied("Admins only")


@store_operation
def bootstrap_or_fetch(db: Session, identity: Identity) -> User:
    """Return the user for this identity, creating a student on first-ever login."""
    user = db.get(User, identity.subject_id)
    if user is not None:
        return user
    user = _new_user(identity, Role.STUDENT)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent first login created the row first
        db.rollback()
        existing = db.get(User, identity.subject_id)
        if existing is None:
            raise
        return existing
    db.refresh(user)
    hub.publish(USERS)
    logger.info("Created user uid=%s role=%s on first login", user.uid, user.role)
    return user


@store_operation
def sign_up_with_role(
    db: Session,
    identity: Identity,
    requested_role: str | Role | None,
    extras: ProfileExtras | None = None,
) -> User:
    """Account creation for students and faculty. Elevated roles in the request are ignored."""
    requested = parse_role(requested_role) if requested_role else None
    if requested in ELEVATED_ROLES:
        logger.warning("Sign-up for uid=%s requested role %s; ignored", identity.subject_id, requested.value)
    user = db.get(User, identity.subject_id)
    if user is None:
        user = _new_user(identity, requested if requested in SIGNUP_ROLES else Role.STUDENT)
        db.add(user)
    else:
        _merge_profile_basics(user, identity)
        if requested in SIGNUP_ROLES:
            _assign_role(user, requested)
    if extras is not None:
        _merge_extras(user, extras)
    db.commit()
    db.refresh(user)
    hub.publish(USERS)
    logger.info("Sign-up uid=%s role=%s", user.uid, user.role)
    return user


@store_operation
def sign_in_existing(
    db: Session,
    identity: Identity,
    claimed_role: str | Role,
    identifier: str | None = None,
    admin_secret: str | None = None,
) -> User:
    """Returning-user sign-in: verifies claimed role and secondary identifier before refreshing the profile."""
    claimed = parse_role(claimed_role)
    identifier = (identifier or "").strip() or None
    secret = settings.admin_secret_key if admin_secret is None else admin_secret
    user = db.get(User, identity.subject_id)

    if claimed is Role.ADMIN:
        if identifier is None or not secret or not hmac.compare_digest(identifier.encode("utf-8"), secret.encode("utf-8")):
            logger.warning("Admin sign-in rejected for uid=%s: invalid admin key", identity.subject_id)
            raise InvalidAdminKey()
        if user is None:
            user = _new_user(identity, Role.ADMIN, default_name="Admin User")
            db.add(user)
        else:
            _assign_role(user, Role.ADMIN)
            _merge_profile_basics(user, identity)
        db.commit()
        db.refresh(user)
        hub.publish(USERS)
        logger.info("Admin sign-in uid=%s", user.uid)
        return user

    if user is None:
        raise AccountNotFound()
    if user.role != claimed.value:
        logger.warning("Sign-in role mismatch uid=%s claimed=%s stored=%s", user.uid, claimed.value, user.role)
        raise RoleMismatch()
    check = IDENTIFIER_FIELDS.get(claimed)
    if identifier and check:
        field, message = check
        stored = getattr(user, field)
        if stored and stored != identifier:
            raise IdentifierMismatch(message)
    _merge_profile_basics(user, identity)
    db.commit()
    db.refresh(user)
    hub.publish(USERS)
    return user


@store_operation
def request_elevation(db: Session, requester: User) -> DerivedAdminRequest:
    """Faculty asks for the derived-admin badge. One pending request per faculty member."""
    if requester.role != Role.FACULTY.value:
        raise PermissionDenied("Only faculty can request the derived-admin badge")
    pending = (
        db.query(DerivedAdminRequest)
        .filter(
            DerivedAdminRequest.requester_uid == requester.uid,
            DerivedAdminRequest.status == RequestStatus.PENDING.value,
        )
        .first()
    )
    if pending is not None:
        raise DuplicateRequest()
    req = DerivedAdminRequest(
        requester_uid=requester.uid,
        requester_name=requester.name,
        requester_email=requester.email or "",
        status=RequestStatus.PENDING.value,
    )
    db.add(req)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateRequest() from e
    db.refresh(req)
    hub.publish(DERIVED_ADMIN_REQUESTS)
    logger.info("Derived-admin request %s created by uid=%s", req.id, requester.uid)
    return req


@store_operation
def decide_elevation(db: Session, request_id: uuid.UUID, approve: bool, actor: User) -> DerivedAdminRequest:
    """Admin decision on a pending request. Approval updates request and user in one transaction."""
    _require_admin(actor)
    req = db.get(DerivedAdminRequest, request_id)
    if req is None:
        raise NotFound("Request not found")
    new_status = RequestStatus.APPROVED if approve else RequestStatus.REJECTED
    try:
        result = db.execute(
            update(DerivedAdminRequest)
            .where(
                DerivedAdminRequest.id == request_id,
                DerivedAdminRequest.status == RequestStatus.PENDING.value,
            )
            .values(status=new_status.value, decided_by=actor.uid, decided_at=func.now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise InvalidTransition("Request has already been decided")
        if approve:
            target = db.get(User, req.requester_uid)
            if target is None:
                raise NotFound("Requesting user not found")
            if target.role not in (Role.FACULTY.value, Role.DERIVED_ADMIN.value):
                raise InvalidTransition(f"Cannot grant derived-admin to a {target.role} account")
            _assign_role(target, Role.DERIVED_ADMIN)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(req)
    hub.publish(DERIVED_ADMIN_REQUESTS, USERS)
    logger.info("Derived-admin request %s %s by admin uid=%s", req.id, new_status.value, actor.uid)
    return req


def _toggle_badge(db: Session, uid: str, actor: User, from_role: Role, to_role: Role) -> User:
    _require_admin(actor)
    user = db.get(User, uid)
    if user is None:
        raise NotFound("User not found")
    if user.role != from_role.value:
        raise InvalidTransition(f"User role is {user.role}, expected {from_role.value}")
    _assign_role(user, to_role)
    db.commit()
    db.refresh(user)
    hub.publish(USERS)
    logger.info("Admin uid=%s changed uid=%s role %s -> %s", actor.uid, uid, from_role.value, to_role.value)
    return user


@store_operation
def grant_derived_admin(db: Session, uid: str, actor: User) -> User:
    """Direct badge grant bypassing the request flow (faculty -> derived-admin)."""
    return _toggle_badge(db, uid, actor, Role.FACULTY, Role.DERIVED_ADMIN)


@store_operation
def revoke_derived_admin(db: Session, uid: str, actor: User) -> User:
    """Direct badge revocation (derived-admin -> faculty)."""
    return _toggle_badge(db, uid, actor, Role.DERIVED_ADMIN, Role.FACULTY)


@store_operation
def list_elevation_requests(db: Session, actor: User) -> list[DerivedAdminRequest]:
    """Admins see every request (pending first, newest first); faculty see their own."""
    q = db.query(DerivedAdminRequest)
    if actor.role != Role.ADMIN.value:
        q = q.filter(DerivedAdminRequest.requester_uid == actor.uid)
    rows = q.order_by(DerivedAdminRequest.created_at.desc()).all()
    return sorted(rows, key=lambda r: r.status != RequestStatus.PENDING.value)


@store_operation
def faculty_badge_overview(db: Session) -> list[tuple[User, bool]]:
    """Faculty and derived-admin users by name, each with whether a request is pending."""
    users = (
        db.query(User)
        .filter(User.role.in_([Role.FACULTY.value, Role.DERIVED_ADMIN.value]))
        .order_by(User.name)
        .all()
    )
    pending_uids = {
        uid for (uid,) in db.query(DerivedAdminRequest.requester_uid)
        .filter(DerivedAdminRequest.status == RequestStatus.PENDING.value)
        .all()
    }
    return [(u, u.uid in pending_uids) for u in users]
