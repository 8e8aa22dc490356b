"""
Identity provider boundary: turn a provider-issued ID token into a verified Identity.

Two verification modes (see config):
- IDENTITY_JWKS_URL set: RS256/ES256 tokens checked against the provider's published
  key set (fetched with httpx and cached per key id).
- otherwise: HS256 tokens signed with IDENTITY_TOKEN_SECRET (local development, tests).
Audience and issuer are checked when configured.
"""
import logging
import threading
import time
from dataclasses import dataclass

import httpx
from jose import JWTError, jwt

from activity_portal.config import settings
from activity_portal.errors import BackendUnavailable, InvalidIdentityToken

logger = logging.getLogger(__name__)

_jwks_cache: dict[str, dict] = {}
_jwks_lock = threading.Lock()
_jwks_fetched_at: float | None = None


@dataclass(frozen=True)
class Identity:
    """Verified identity as returned by the provider after interactive login."""
    subject_id: str
    display_name: str | None
    email: str | None
    photo_url: str | None


def _fetch_jwks(url: str) -> dict[str, dict]:
    try:
        resp = httpx.get(url, timeout=settings.identity_jwks_timeout_seconds)
        resp.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning("JWKS fetch failed from %s: %s", url, e)
        raise BackendUnavailable("Identity provider is unavailable. Please try again.") from e
    keys = resp.json().get("keys") or []
    return {k["kid"]: k for k in keys if k.get("kid")}


def _signing_key_for(token: str) -> dict:
    """
    Return the JWK matching the token's kid. A miss refetches the key set (key rotation),
    at most once per identity_jwks_min_refresh_seconds.
    """
    global _jwks_fetched_at
    try:
        kid = jwt.get_unverified_header(token).get("kid")
    except JWTError as e:
        raise InvalidIdentityToken() from e
    if not kid:
        raise InvalidIdentityToken("Identity token has no key id")
    with _jwks_lock:
        now = time.monotonic()
        stale = _jwks_fetched_at is None or now - _jwks_fetched_at >= settings.identity_jwks_min_refresh_seconds
        if kid not in _jwks_cache and stale:
            keys = _fetch_jwks(settings.identity_jwks_url)
            _jwks_cache.clear()
            _jwks_cache.update(keys)
            _jwks_fetched_at = now
        key = _jwks_cache.get(kid)
    if key is None:
        raise InvalidIdentityToken("Identity token signed with an unknown key")
    return key


def verify_identity_token(token: str) -> Identity:
    """Verify a provider ID token and return its identity. Raises InvalidIdentityToken."""
    if not (token or "").strip():
        raise InvalidIdentityToken("Identity token is required")
    options = {"verify_aud": bool(settings.identity_audience)}
    kwargs = {}
    if settings.identity_audience:
        kwargs["audience"] = settings.identity_audience
    if settings.identity_issuer:
        kwargs["issuer"] = settings.identity_issuer
    if settings.identity_jwks_url:
        key = _signing_key_for(token)
        algorithms = [key.get("alg") or "RS256"]
    else:
        key = settings.identity_token_secret
        algorithms = settings.identity_algorithms
    try:
        claims = jwt.decode(token, key, algorithms=algorithms, options=options, **kwargs)
    except JWTError as e:
        logger.debug("Identity token rejected: %s", e)
        raise InvalidIdentityToken() from e
    sub = (claims.get("sub") or "").strip()
    if not sub:
        raise InvalidIdentityToken("Identity token has no subject")
    return Identity(
        subject_id=sub,
        display_name=claims.get("name"),
        email=claims.get("email"),
        photo_url=claims.get("picture"),
    )
