"""Live snapshot streams: full snapshots on change, cancel, restart, failed loads."""
import asyncio

from activity_portal.api.live import _activities, snapshot_loader
from activity_portal.models.types import Role
from activity_portal.services.live import ACTIVITIES, USERS, SnapshotHub, SnapshotStream


def _collect(stream, on_snapshot, limit=10):
    async def run():
        seen = []
        async for snap in stream:
            seen.append(snap)
            if len(seen) >= limit:
                stream.cancel()
            else:
                await on_snapshot(seen)
        return seen
    return asyncio.run(asyncio.wait_for(run(), timeout=5))


def test_stream_emits_full_snapshot_on_change():
    hub = SnapshotHub()
    rows = ["a"]
    stream = SnapshotStream((ACTIVITIES,), lambda: list(rows), source=hub, poll_interval=0.01)

    async def on_snapshot(seen):
        if len(seen) == 1:
            rows.append("b")
            hub.publish(ACTIVITIES)
        else:
            stream.cancel()

    assert _collect(stream, on_snapshot) == [["a"], ["a", "b"]]


def test_unwatched_collection_does_not_emit():
    hub = SnapshotHub()
    loads = []

    def load():
        loads.append(1)
        return len(loads)

    stream = SnapshotStream((ACTIVITIES,), load, source=hub, poll_interval=0.01)

    async def on_snapshot(seen):
        if len(seen) == 1:
            hub.publish(USERS)
            await asyncio.sleep(0.05)
            hub.publish(ACTIVITIES)
        else:
            stream.cancel()

    assert _collect(stream, on_snapshot) == [1, 2]


def test_stream_is_restartable():
    hub = SnapshotHub()
    stream = SnapshotStream((ACTIVITIES,), lambda: "snap", source=hub, poll_interval=0.01)

    async def stop(seen):
        stream.cancel()

    assert _collect(stream, stop) == ["snap"]
    assert stream.cancelled
    assert _collect(stream, stop) == ["snap"]


def test_failed_load_yields_empty_snapshot():
    hub = SnapshotHub()

    def load():
        raise RuntimeError("store down")

    stream = SnapshotStream((ACTIVITIES,), load, source=hub, poll_interval=0.01)

    async def stop(seen):
        stream.cancel()

    assert _collect(stream, stop) == [[]]


def test_idle_refresh_reemits():
    hub = SnapshotHub()
    stream = SnapshotStream((ACTIVITIES,), lambda: "same", source=hub, poll_interval=0.01, max_idle_polls=2)

    async def noop(seen):
        return None

    assert _collect(stream, noop, limit=3) == ["same", "same", "same"]


def test_activity_loader_scoped_to_viewer(db, session_factory, make_user):
    from activity_portal.models.activity import Activity
    make_user("stu", Role.STUDENT)
    make_user("other", Role.STUDENT)
    make_user("prof", Role.FACULTY)
    for uid in ("stu", "other"):
        db.add(Activity(
            student_id=uid, student_name=uid, title=f"{uid} talk", description="d",
            category="Other", file_name="f.pdf", file_type="application/pdf", status="pending",
        ))
    db.commit()

    own = snapshot_loader(_activities, "stu", session_factory=session_factory)()
    assert [a["title"] for a in own] == ["stu talk"]
    everyone = snapshot_loader(_activities, "prof", session_factory=session_factory)()
    assert sorted(a["title"] for a in everyone) == ["other talk", "stu talk"]
