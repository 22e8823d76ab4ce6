from datetime import datetime, timezone
from io import BytesIO
from typing import Optional
import logging
import re
from PIL import Image, UnidentifiedImageError
from botocore.exceptions import BotoCoreError, ClientError

from photo_gallery.storage.s3 import S3Service, is_not_found
from photo_gallery.image_service.index import MetadataIndex
from photo_gallery.image_service.metadata import DEFAULT_MIME_TYPE, metadata_headers
from photo_gallery.image_service.models import ImageRecord
from photo_gallery.exceptions import ObjectStoreException, ImageNotFoundException

log = logging.getLogger(__name__)

MIME_MAP = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "GIF": "image/gif",
    "WEBP": "image/webp",
    "BMP": "image/bmp",
    "TIFF": "image/tiff",
}

def storage_key(filename: str, now: datetime) -> str:
    """Timestamp-prefixed key with whitespace runs in the original name replaced by '_'."""
    safe_name = re.sub(r"\s+", "_", filename or "upload")
    return f"{int(now.timestamp() * 1000)}_{safe_name}"

def resolve_content_type(file_bytes: bytes, declared: Optional[str]) -> str:
    """
        Returns the declared content type, or the type Pillow detects when the
        client sent none or a generic one. Unknown content is stored as-is.
    """
    if declared and declared != DEFAULT_MIME_TYPE:
        return declared
    try:
        with Image.open(BytesIO(file_bytes)) as img:
            detected = MIME_MAP.get((img.format or "").upper())
    except (UnidentifiedImageError, OSError):
        detected = None
    return detected or DEFAULT_MIME_TYPE

def save_image(
    index: MetadataIndex,
    s3: S3Service,
    fileobj,
    filename: str,
    content_type: str,
    size: int,
    title: Optional[str] = None,
    description: Optional[str] = None,
    tags: Optional[str] = None,
    location: Optional[str] = None,
) -> ImageRecord:
    """Writes the image and its metadata headers to the store, then indexes it."""
    now = datetime.now(timezone.utc)
    key = storage_key(filename, now)
    record = ImageRecord(
        file_name=key,
        title=title or key,
        description=description or "",
        tags=tags or "",
        location=location or "",
        upload_date=now,
        size=size,
        mime_type=content_type,
        url=s3.public_url(key),
    )
    headers = metadata_headers(
        title=title or "",
        description=record.description,
        tags=record.tags,
        location=record.location,
        upload_date=now,
    )
    try:
        s3.upload(fileobj=fileobj, key=key, content_type=content_type, metadata=headers)
    except (BotoCoreError, ClientError) as e:
        log.error(f"S3 upload failed: {e}")
        raise ObjectStoreException(str(e))

    # no rollback: if this fails the object is picked up by the next rebuild
    index.append(record)
    log.info("Saved image %s (%d bytes)", key, size)
    return record

def remove_image(index: MetadataIndex, s3: S3Service, file_name: str) -> bool:
    """
        Removes an object from the store, then its index entry.
        A key the store does not know raises ImageNotFoundException after any
        stale index entry for it is dropped.
    """
    try:
        if not s3.exists(file_name):
            index.remove(file_name)
            raise ImageNotFoundException(file_name)
        s3.delete(file_name)
    except (BotoCoreError, ClientError) as e:
        if isinstance(e, ClientError) and is_not_found(e):
            index.remove(file_name)
            raise ImageNotFoundException(file_name)
        log.error(f"S3 delete failed: {e}")
        raise ObjectStoreException(str(e))

    removed = index.remove(file_name)
    log.info("Deleted image %s (indexed: %s)", file_name, removed)
    return True
