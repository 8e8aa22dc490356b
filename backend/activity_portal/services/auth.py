"""
Portal session tokens: JWT creation/verification with python-jose.
Issued after the identity provider token has been verified and the lifecycle rules passed.
The token only identifies the user; role is re-read from the database on every request.
"""
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from activity_portal.config import settings


def create_access_token(uid: str, email: str, role: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(hours=settings.jwt_expire_hours)
    # JWT exp must be numeric (Unix timestamp), not datetime
    payload = {"sub": uid, "email": email, "role": role, "exp": int(expire.timestamp())}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict | None:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
