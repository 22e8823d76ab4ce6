"""
    Mapping between object store headers and ImageRecord fields.

    Objects may have been written by this service, by an older version of it or
    by hand through the MinIO console, so each field has an ordered list of
    candidate header keys. The first non-empty one wins. Casings are listed
    explicitly, nothing is case-folded.

    S3 user metadata must be ASCII, so free-text values are stored
    percent-encoded and decoded again on the way back.
"""
from datetime import datetime, timezone
from typing import Dict, Optional, Sequence
from urllib.parse import quote, unquote

from photo_gallery.image_service.models import ImageRecord
from photo_gallery.storage.s3 import ObjectStat

DEFAULT_MIME_TYPE = "application/octet-stream"

TITLE_KEYS = ("x-amz-meta-title", "title", "Title")
DESCRIPTION_KEYS = ("x-amz-meta-description", "description", "Description")
TAGS_KEYS = ("x-amz-meta-tags", "tags", "Tags")
LOCATION_KEYS = ("x-amz-meta-location", "location", "Location")
UPLOAD_DATE_KEYS = ("x-amz-meta-upload-date", "upload-date", "UploadDate")
MIME_TYPE_KEYS = ("content-type", "Content-Type")


def first_header(headers: Dict[str, str], keys: Sequence[str]) -> str:
    for key in keys:
        value = headers.get(key)
        if value:
            return value
    return ""


def text_header(headers: Dict[str, str], keys: Sequence[str]) -> str:
    return unquote(first_header(headers, keys))


def parse_upload_date(value: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def metadata_headers(title: str, description: str, tags: str, location: str, upload_date: datetime) -> Dict[str, str]:
    """User metadata written with each upload; S3 exposes it back as x-amz-meta-* headers."""
    return {
        "title": quote(title, safe=""),
        "description": quote(description, safe=""),
        "tags": quote(tags, safe=""),
        "location": quote(location, safe=""),
        "upload-date": upload_date.isoformat(),
    }


def record_from_object(stat: ObjectStat, url: str) -> ImageRecord:
    """Rebuilds an index record from a stored object's stat."""
    headers = stat.headers
    upload_date = parse_upload_date(first_header(headers, UPLOAD_DATE_KEYS))
    if upload_date is None:
        upload_date = stat.last_modified or datetime.now(timezone.utc)
        if upload_date.tzinfo is None:
            upload_date = upload_date.replace(tzinfo=timezone.utc)

    return ImageRecord(
        file_name=stat.key,
        title=text_header(headers, TITLE_KEYS) or stat.key,
        description=text_header(headers, DESCRIPTION_KEYS),
        tags=text_header(headers, TAGS_KEYS),
        location=text_header(headers, LOCATION_KEYS),
        upload_date=upload_date,
        size=stat.size,
        mime_type=first_header(headers, MIME_TYPE_KEYS) or DEFAULT_MIME_TYPE,
        url=url,
    )
