"""
Auth routes. The client signs in with the identity provider, then exchanges the provider's
ID token here for a portal session token (JWT):
- /session: bootstrap-or-fetch (first-ever login creates a student)
- /signup: account creation with a role (student or faculty) and profile extras
- /signin: returning user with claimed role and identifier (admin: the admin key)
"""
import logging
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from activity_portal.database import get_db
from activity_portal.models.user import User
from activity_portal.schemas.auth import (
    IdentityTokenRequest,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    UserResponse,
)
from activity_portal.services import lifecycle
from activity_portal.services.auth import create_access_token
from activity_portal.services.identity import verify_identity_token
from activity_portal.api.deps import get_current_user

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def _session(user: User) -> SessionResponse:
    token = create_access_token(user.uid, user.email, user.role)
    return SessionResponse(access_token=token, user=UserResponse.model_validate(user))


@router.post("/session", response_model=SessionResponse)
def session(data: IdentityTokenRequest, db: Session = Depends(get_db)):
    """Fetch the user for this identity, creating a student account on first login."""
    identity = verify_identity_token(data.id_token)
    return _session(lifecycle.bootstrap_or_fetch(db, identity))


@router.post("/signup", response_model=SessionResponse)
def signup(data: SignUpRequest, db: Session = Depends(get_db)):
    identity = verify_identity_token(data.id_token)
    extras = lifecycle.ProfileExtras(
        roll_no=data.roll_no,
        faculty_id=data.faculty_id,
        branch=data.branch,
        accreditation=data.accreditation,
    )
    return _session(lifecycle.sign_up_with_role(db, identity, data.role, extras))


@router.post("/signin", response_model=SessionResponse)
def signin(data: SignInRequest, db: Session = Depends(get_db)):
    identity = verify_identity_token(data.id_token)
    return _session(lifecycle.sign_in_existing(db, identity, data.role, data.identifier))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(current_user: User = Depends(get_current_user)):
    """Stateless tokens: nothing to revoke server-side; the client drops its token."""
    logger.info("Logout uid=%s", current_user.uid)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user
