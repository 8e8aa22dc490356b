"""
Application configuration from environment variables.
Loads .env from the backend directory so secrets are found regardless of cwd.
"""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Defaults that must never reach production (checked at startup).
DEFAULT_SECRET_KEY = "change-me-in-production"
DEFAULT_ADMIN_SECRET_KEY = "change-me-admin-key"

_FILE_STORAGE_BACKENDS = frozenset({"inline", "s3"})

# .env next to backend/ (parent of activity_portal/); loaded explicitly so keys are set even when run from repo root
_BACKEND_DIR = Path(__file__).resolve().parent.parent
_ENV_FILE = _BACKEND_DIR / ".env"

if _ENV_FILE.exists():
    from dotenv import load_dotenv
    load_dotenv(_ENV_FILE, override=False)
else:
    # Fallback: try backend/.env relative to cwd (e.g. when running from repo root)
    import os
    _cwd_env = Path(os.getcwd()) / "backend" / ".env"
    if _cwd_env.exists():
        from dotenv import load_dotenv
        load_dotenv(_cwd_env, override=False)


class Settings(BaseSettings):
    """Load and validate config from env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database: sqlite for local runs and tests, postgresql for production
    database_url: str = "sqlite:///./activity_portal_dev.db"

    # Environment: set ENV=production in production; used to enforce secrets.
    env: str = ""

    # Portal session tokens (issued after the identity provider token is verified)
    secret_key: str = DEFAULT_SECRET_KEY
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 24

    # Key that lets a sign-in claim the admin role. The only path that creates admins.
    admin_secret_key: str = DEFAULT_ADMIN_SECRET_KEY

    # Identity provider ID tokens. With IDENTITY_JWKS_URL set, tokens are verified
    # against the provider's published keys (e.g. Google, RS256); otherwise the
    # shared IDENTITY_TOKEN_SECRET is used (HS256, local development and tests).
    identity_token_secret: str = "change-me-identity-secret"
    identity_token_algorithms: str = "HS256"
    identity_jwks_url: str = ""
    identity_audience: str = ""
    identity_issuer: str = ""
    identity_jwks_timeout_seconds: float = 5.0
    identity_jwks_min_refresh_seconds: float = 60.0

    # Activity attachments: "inline" stores base64 rows in the files table, "s3" uploads to a bucket.
    file_storage: str = "inline"
    max_upload_bytes: int = 5 * 1024 * 1024
    s3_bucket_name: str = "activity-portal"
    s3_region: str = "us-east-1"
    s3_access_key_id: str | None = None
    s3_secret_access_key: str | None = None
    s3_endpoint_url: str | None = None  # MinIO and other S3-compatible services
    presigned_url_expire_seconds: int = 3600

    # Aggregation display policy
    analytics_top_categories: int = 8
    recent_activities_limit: int = 10

    # Live snapshot streams (SSE): how often a stream checks for a new collection version.
    live_poll_interval_seconds: float = 1.0

    # CORS: comma-separated origins
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    debug: bool = False

    @field_validator("file_storage", mode="before")
    @classmethod
    def _normalize_file_storage(cls, v: str) -> str:
        s = (v or "inline").strip().lower()
        if s not in _FILE_STORAGE_BACKENDS:
            raise ValueError(f"FILE_STORAGE must be one of {sorted(_FILE_STORAGE_BACKENDS)}")
        return s

    @property
    def identity_algorithms(self) -> list[str]:
        return [a.strip() for a in self.identity_token_algorithms.split(",") if a.strip()]

    @property
    def is_production(self) -> bool:
        return (self.env or "").strip().lower() == "production"


settings = Settings()
