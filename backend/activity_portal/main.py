"""
FastAPI application entrypoint. Run with: uvicorn activity_portal.main:app --reload --port 8000
(from backend/).

Routes are mounted at root (no /api/v1 prefix):
  - Auth:        POST /auth/session, /auth/signup, /auth/signin, /auth/logout, GET /auth/me
  - Activities:  POST /activities, GET /activities, GET /activities/{id}, POST /activities/{id}/review, ...
  - Files:       GET /files/{id}
  - Elevation:   POST/GET /elevation/requests, POST /elevation/requests/{id}/decision, grant/revoke
  - Complaints:  POST/GET /complaints, PATCH /complaints/{id}; alerts under /alerts
  - Analytics:   GET /analytics, GET /dashboard
  - Portfolio:   GET /portfolio/me, GET /portfolio/{uid}
  - Live (SSE):  GET /live/{collection}, GET /live/analytics
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError

from activity_portal.config import DEFAULT_ADMIN_SECRET_KEY, DEFAULT_SECRET_KEY, settings
from activity_portal.errors import BackendUnavailable, PortalError
from activity_portal.api.activities import router as activities_router
from activity_portal.api.analytics import router as analytics_router
from activity_portal.api.auth import router as auth_router
from activity_portal.api.complaints import alerts_router, router as complaints_router
from activity_portal.api.elevation import router as elevation_router
from activity_portal.api.files import router as files_router
from activity_portal.api.live import router as live_router
from activity_portal.api.portfolio import router as portfolio_router

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Student Activity Portal API",
    description="Students submit activities, faculty review them, admins manage roles and analytics.",
    version="0.1.0",
)

_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins if _origins else ["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(activities_router)
app.include_router(files_router)
app.include_router(elevation_router)
app.include_router(complaints_router)
app.include_router(alerts_router)
app.include_router(analytics_router)
app.include_router(portfolio_router)
app.include_router(live_router)


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(OperationalError)
@app.exception_handler(InterfaceError)
async def store_error_handler(request: Request, exc: Exception):
    """Driver errors that escaped a service wrapper (e.g. raised inside a dependency)."""
    logger.error("Store unavailable on %s %s: %s", request.method, request.url.path, exc)
    err = BackendUnavailable()
    return JSONResponse(status_code=err.status_code, content={"detail": err.detail})


@app.on_event("startup")
def startup():
    """Configure logging and create tables. Fail fast if production uses default secrets."""
    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")
    _log = logging.getLogger("activity_portal.main")
    if settings.is_production:
        if (settings.secret_key or "").strip() == DEFAULT_SECRET_KEY:
            _log.critical("SECRET_KEY must be set in production. Set SECRET_KEY in env or .env.")
            raise RuntimeError("SECRET_KEY must be set in production. Set SECRET_KEY in env or .env.")
        if (settings.admin_secret_key or "").strip() == DEFAULT_ADMIN_SECRET_KEY:
            _log.critical("ADMIN_SECRET_KEY must be set in production.")
            raise RuntimeError("ADMIN_SECRET_KEY must be set in production.")
    if settings.identity_jwks_url:
        _log.info("Identity tokens verified against JWKS: %s", settings.identity_jwks_url)
    else:
        _log.warning("Identity tokens verified with the shared IDENTITY_TOKEN_SECRET (development mode).")
    _log.info("Attachment storage: %s", settings.file_storage)
    from activity_portal.database import init_db
    init_db()


@app.get("/health")
def health():
    """Health check (JSON)."""
    return {"status": "ok", "message": "Student Activity Portal API"}
