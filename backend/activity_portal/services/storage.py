"""
Attachment storage for activity submissions.

Two backends, chosen by FILE_STORAGE:
- inline (default): the file is kept in the files table as a base64 data URL and
  referenced by Activity.file_id.
- s3: the file is uploaded to a bucket and Activity.file_url holds "s3://bucket/key";
  readers get a presigned HTTPS URL.
Upload constraints (size, MIME type, readable PDF) are checked before anything is stored.
"""
import base64
import logging
import re
import time
import unicodedata
from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol
from urllib.parse import quote

from sqlalchemy.orm import Session

from activity_portal.config import settings
from activity_portal.errors import BackendUnavailable, ValidationError
from activity_portal.models.stored_file import StoredFile

logger = logging.getLogger(__name__)

ALLOWED_UPLOAD_TYPES = frozenset({"application/pdf", "image/jpeg", "image/jpg", "image/png"})
_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+/-]+);base64,(?P<payload>.*)$", re.DOTALL)
_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_HEADER_UNSAFE_CHARS = re.compile(r"[\"\\\x00-\x1f\x7f]+")


@dataclass(frozen=True)
class UploadedFile:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def _pdf_page_count(contents: bytes) -> int | None:
    """Return page count using PyMuPDF. None when the bytes are not a readable PDF."""
    try:
        import pymupdf
        doc = pymupdf.open(stream=contents, filetype="pdf")
        try:
            return len(doc)
        finally:
            doc.close()
    except Exception:
        return None


def validate_upload(upload: UploadedFile | None, max_bytes: int | None = None) -> None:
    """Raise ValidationError unless the file is present, small enough, and an allowed type."""
    if upload is None or not (upload.filename or "").strip() or upload.size == 0:
        raise ValidationError("Please attach a file")
    limit = settings.max_upload_bytes if max_bytes is None else max_bytes
    if upload.size > limit:
        raise ValidationError(f"File size must be less than {limit // (1024 * 1024)}MB")
    if (upload.content_type or "").lower() not in ALLOWED_UPLOAD_TYPES:
        raise ValidationError("Only PDF, JPEG, and PNG files are allowed")
    if upload.content_type.lower() == "application/pdf" and _pdf_page_count(upload.data) is None:
        raise ValidationError("Could not read the PDF file")


def to_data_url(content_type: str, data: bytes) -> str:
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_url(value: str) -> tuple[str, bytes]:
    """Split a data URL into (content_type, raw bytes)."""
    m = _DATA_URL_RE.match(value or "")
    if not m:
        raise ValueError("not a base64 data URL")
    return m.group("mime"), base64.b64decode(m.group("payload"))


def is_direct_url(ref: str | None) -> bool:
    """True for legacy attachment refs that are already a fetchable http(s) URL."""
    return bool(ref) and ref.strip().lower().startswith(("http://", "https://"))


def content_disposition(disposition: str, filename: str) -> str:
    """
    Content-Disposition value safe for any file name (RFC 6266 / RFC 5987).
    Headers are latin-1 on the wire, so the plain filename= is an ASCII fallback and
    the real name travels percent-encoded in filename*.
    """
    ascii_name = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    fallback = _HEADER_UNSAFE_CHARS.sub("", ascii_name).strip()
    stem, dot, ext = fallback.rpartition(".")
    if not fallback or (dot and not stem.strip("_ ")):
        fallback = f"download.{ext}" if dot and ext else "download"
    return f"{disposition}; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


def blob_path(owner_uid: str, filename: str) -> str:
    """Object key for an uploaded attachment: activities/<uid>/<millis>_<name>."""
    safe = _UNSAFE_NAME_CHARS.sub("_", filename).strip("_") or "file"
    return f"activities/{owner_uid}/{int(time.time() * 1000)}_{safe}"


def store_inline(db: Session, owner_uid: str, upload: UploadedFile) -> StoredFile:
    """Add the file row to the session (caller commits together with the activity)."""
    row = StoredFile(
        uid=owner_uid,
        name=upload.filename,
        size=upload.size,
        content_type=upload.content_type,
        data=to_data_url(upload.content_type, upload.data),
    )
    db.add(row)
    db.flush()
    return row


class BlobStore(Protocol):
    def upload(self, path: str, data: bytes, content_type: str) -> str: ...

    def get_download_url(self, ref: str) -> str | None: ...


class S3BlobStore:
    """S3 (or S3-compatible) bucket holding activity attachments."""

    def __init__(
        self,
        bucket_name: str,
        region_name: str = "us-east-1",
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        endpoint_url: str | None = None,
        url_expires_in: int = 3600,
        client=None,
    ):
        self.bucket_name = bucket_name
        self.url_expires_in = url_expires_in
        if client is None:
            import boto3
            client_kwargs = {"region_name": region_name}
            if aws_access_key_id:
                client_kwargs["aws_access_key_id"] = aws_access_key_id
            if aws_secret_access_key:
                client_kwargs["aws_secret_access_key"] = aws_secret_access_key
            if endpoint_url:
                client_kwargs["endpoint_url"] = endpoint_url
            client = boto3.client("s3", **client_kwargs)
        self.s3_client = client
        logger.info("S3 blob store initialized (bucket: %s)", bucket_name)

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        from botocore.exceptions import BotoCoreError, ClientError
        try:
            self.s3_client.put_object(Bucket=self.bucket_name, Key=path, Body=data, ContentType=content_type)
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 upload failed for %s: %s", path, e)
            raise BackendUnavailable("File upload failed. Please try again.") from e
        return f"s3://{self.bucket_name}/{path}"

    def get_download_url(self, ref: str) -> str | None:
        """
        Presigned HTTPS URL for "s3://bucket/key" or a bare key. Legacy http(s) refs are
        returned as-is. None when ref is empty or signing fails.
        """
        from botocore.exceptions import BotoCoreError, ClientError
        if not ref or not ref.strip():
            return None
        ref = ref.strip()
        if is_direct_url(ref):
            return ref
        if ref.startswith("s3://"):
            bucket, _, key = ref[len("s3://"):].partition("/")
        else:
            bucket, key = self.bucket_name, ref
        if not key:
            return None
        try:
            return self.s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=self.url_expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            logger.warning("Presigned URL failed for %s: %s", ref, e)
            return None


@lru_cache(maxsize=1)
def get_blob_store() -> BlobStore | None:
    """Configured blob store, or None when attachments are stored inline."""
    if settings.file_storage != "s3":
        return None
    return S3BlobStore(
        bucket_name=settings.s3_bucket_name,
        region_name=settings.s3_region,
        aws_access_key_id=settings.s3_access_key_id,
        aws_secret_access_key=settings.s3_secret_access_key,
        endpoint_url=settings.s3_endpoint_url,
        url_expires_in=settings.presigned_url_expire_seconds,
    )
