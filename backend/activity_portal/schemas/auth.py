"""
Auth request/response schemas. Every auth call carries the identity provider's ID token.
"""
from datetime import datetime
from pydantic import BaseModel, field_validator


class IdentityTokenRequest(BaseModel):
    id_token: str

    @field_validator("id_token")
    @classmethod
    def token_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("id_token is required")
        return v.strip()


class SignUpRequest(IdentityTokenRequest):
    role: str = "student"
    roll_no: str | None = None
    faculty_id: str | None = None
    branch: str | None = None
    accreditation: str | None = None

    @field_validator("accreditation")
    @classmethod
    def accreditation_one_of(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        v = v.strip().lower()
        if v not in ("nba", "naac"):
            raise ValueError("accreditation must be nba or naac")
        return v


class SignInRequest(IdentityTokenRequest):
    role: str
    # Roll number (student), faculty ID (faculty / derived-admin) or the admin key (admin)
    identifier: str | None = None


class UserResponse(BaseModel):
    uid: str
    name: str
    email: str
    photo_url: str | None = None
    role: str
    roll_no: str | None = None
    faculty_id: str | None = None
    branch: str | None = None
    department: str | None = None
    accreditation: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class SessionResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
