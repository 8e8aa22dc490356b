"""
Live subscriptions over Server-Sent Events.

GET /live/{collection} streams the caller's full view of one collection; GET /live/analytics
streams the analytics aggregate. Each event is a complete snapshot (never a delta), sent once
on connect and again after every committed change. Each snapshot opens its own session and
re-reads the viewer, so a role change takes effect on the next event.
"""
import json
import logging
from typing import Callable

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from activity_portal.database import SessionLocal
from activity_portal.errors import NotFound, PermissionDenied
from activity_portal.models.types import Role
from activity_portal.models.user import User
from activity_portal.schemas.activity import ActivityResponse
from activity_portal.schemas.auth import UserResponse
from activity_portal.schemas.complaint import AlertResponse, ComplaintResponse
from activity_portal.schemas.elevation import ElevationRequestResponse
from activity_portal.services import complaints, dashboards, lifecycle, live, review
from activity_portal.api.analytics import analytics_to_response
from activity_portal.api.deps import get_current_user, require_roles

router = APIRouter(prefix="/live", tags=["live"])
logger = logging.getLogger(__name__)

# Unchanged polls before a snapshot is re-sent anyway (writes made by other worker processes)
REFRESH_AFTER_IDLE_POLLS = 30


def _users(db, viewer: User) -> list[dict]:
    if viewer.role != Role.ADMIN.value:
        raise PermissionDenied()
    rows = db.query(User).order_by(User.name).all()
    return [UserResponse.model_validate(u).model_dump(mode="json") for u in rows]


def _activities(db, viewer: User) -> list[dict]:
    return [ActivityResponse.model_validate(a).model_dump(mode="json") for a in review.list_activities(db, viewer)]


def _requests(db, viewer: User) -> list[dict]:
    return [
        ElevationRequestResponse.model_validate(r).model_dump(mode="json")
        for r in lifecycle.list_elevation_requests(db, viewer)
    ]


def _complaints(db, viewer: User) -> list[dict]:
    return [ComplaintResponse.model_validate(c).model_dump(mode="json") for c in complaints.list_complaints(db, viewer)]


def _alerts(db, viewer: User) -> list[dict]:
    alert = complaints.latest_alert(db)
    return [AlertResponse.model_validate(alert).model_dump(mode="json")] if alert else []


LOADERS: dict[str, Callable] = {
    live.USERS: _users,
    live.ACTIVITIES: _activities,
    live.DERIVED_ADMIN_REQUESTS: _requests,
    live.COMPLAINTS: _complaints,
    live.ALERTS: _alerts,
}


def snapshot_loader(query: Callable, viewer_uid: str, session_factory=SessionLocal) -> Callable[[], object]:
    """Bind `query(db, viewer)` to a fresh session per call, for SnapshotStream."""
    def load():
        db = session_factory()
        try:
            viewer = db.get(User, viewer_uid)
            if viewer is None:
                raise NotFound("User not found")
            return query(db, viewer)
        finally:
            db.close()
    return load


def _analytics(db, viewer: User) -> dict:
    if viewer.role not in (Role.ADMIN.value, Role.DERIVED_ADMIN.value):
        raise PermissionDenied()
    return analytics_to_response(dashboards.analytics_snapshot(db)).model_dump(mode="json")


async def _event_source(request: Request, stream: live.SnapshotStream):
    try:
        async for snapshot in stream:
            if await request.is_disconnected():
                logger.debug("Live client disconnected from %s", stream.collections)
                break
            yield f"data: {json.dumps(snapshot)}\n\n"
    finally:
        stream.cancel()


def _sse(request: Request, stream: live.SnapshotStream) -> StreamingResponse:
    return StreamingResponse(
        _event_source(request, stream),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.get("/analytics")
def live_analytics(
    request: Request,
    current_user: User = Depends(require_roles(Role.ADMIN, Role.DERIVED_ADMIN)),
):
    stream = live.SnapshotStream(
        (live.ACTIVITIES, live.USERS),
        snapshot_loader(_analytics, current_user.uid),
        empty={},
        max_idle_polls=REFRESH_AFTER_IDLE_POLLS,
    )
    return _sse(request, stream)


@router.get("/{collection}")
def live_collection(
    collection: str,
    request: Request,
    current_user: User = Depends(get_current_user),
):
    query = LOADERS.get(collection)
    if query is None:
        raise NotFound(f"Unknown collection: {collection}")
    if collection == live.USERS and current_user.role != Role.ADMIN.value:
        raise PermissionDenied()
    stream = live.SnapshotStream(
        (collection,),
        snapshot_loader(query, current_user.uid),
        max_idle_polls=REFRESH_AFTER_IDLE_POLLS,
    )
    return _sse(request, stream)
