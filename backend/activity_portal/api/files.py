"""
Inline attachment viewer: decodes the stored data URL and returns the raw bytes.
"""
import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from activity_portal.database import get_db
from activity_portal.errors import NotFound
from activity_portal.models.stored_file import StoredFile
from activity_portal.models.user import User
from activity_portal.services.review import ALL_ACTIVITY_READERS
from activity_portal.services.storage import content_disposition, decode_data_url
from activity_portal.api.deps import get_current_user

router = APIRouter(prefix="/files", tags=["files"])


@router.get("/{file_id}")
def get_file(
    file_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    row = db.get(StoredFile, file_id)
    if row is None or (current_user.role not in ALL_ACTIVITY_READERS and row.uid != current_user.uid):
        raise NotFound("File not found")
    content_type, data = decode_data_url(row.data)
    return Response(
        content=data,
        media_type=row.content_type or content_type,
        headers={"Content-Disposition": content_disposition("inline", row.name)},
    )
