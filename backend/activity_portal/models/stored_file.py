"""
StoredFile: attachment kept inline as a base64 data URL (FILE_STORAGE=inline).
Immutable once created; referenced by Activity.file_id.
"""
import uuid
from datetime import datetime
from sqlalchemy import String, Text, BigInteger, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from activity_portal.database import Base
from activity_portal.models.types import UuidType


class StoredFile(Base):
    __tablename__ = "files"

    id: Mapped[uuid.UUID] = mapped_column(
        UuidType(), primary_key=True, default=uuid.uuid4
    )
    uid: Mapped[str] = mapped_column(String(128), ForeignKey("users.uid"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(512), nullable=False)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    content_type: Mapped[str] = mapped_column(String(100), nullable=False)
    data: Mapped[str] = mapped_column(Text, nullable=False)  # data:<mime>;base64,<payload>
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
