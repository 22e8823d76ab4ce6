from fastapi import APIRouter, Depends, UploadFile, File, Form, Query
from fastapi.concurrency import run_in_threadpool
from typing import List, Optional
from io import BytesIO
import logging

from photo_gallery.storage.s3 import S3Service
from photo_gallery.image_service.index import MetadataIndex
from photo_gallery.dependencies import get_s3_service, get_metadata_index
from photo_gallery.image_service.service import save_image, remove_image, resolve_content_type
from photo_gallery.image_service.models import ImageRecord, DeleteResponse, HealthResponse
from photo_gallery.exceptions import MissingFileException, IndexNotReadyException
from photo_gallery.settings import settings

log = logging.getLogger(__name__)

router = APIRouter(tags=["photo-gallery"])

def require_ready(index: MetadataIndex):
    """Waits for the startup recovery scan, up to the configured timeout."""
    if not index.wait_ready(settings.index_ready_timeout):
        raise IndexNotReadyException()

@router.post("/upload", response_model=ImageRecord)
async def upload_image(
    file: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),  # Comma Separated Values
    location: Optional[str] = Form(None),
    index: MetadataIndex = Depends(get_metadata_index),
    s3: S3Service = Depends(get_s3_service)
):
    """Uploads an image with its metadata and indexes it."""
    if file is None:
        raise MissingFileException()

    contents = await file.read()
    # boto3 and Pillow block, keep them off the event loop
    content_type = await run_in_threadpool(resolve_content_type, contents, file.content_type)

    return await run_in_threadpool(
        save_image,
        index=index,
        s3=s3,
        fileobj=BytesIO(contents),
        filename=file.filename,
        content_type=content_type,
        size=len(contents),
        title=title,
        description=description,
        tags=tags,
        location=location,
    )

@router.get("/images", response_model=List[ImageRecord])
def list_images(index: MetadataIndex = Depends(get_metadata_index)):
    """Lists all images, newest first."""
    require_ready(index)
    return index.list()

@router.get("/search", response_model=List[ImageRecord])
def search_images(
    q: Optional[str] = Query(None),
    index: MetadataIndex = Depends(get_metadata_index)
):
    """Searches title, description and tags. A blank query lists everything."""
    require_ready(index)
    if not q or not q.strip():
        return index.list()
    return index.search(q)

@router.delete("/delete/{file_name:path}", response_model=DeleteResponse)
def delete_image(
    file_name: str,
    index: MetadataIndex = Depends(get_metadata_index),
    s3: S3Service = Depends(get_s3_service)
):
    """Deletes an image from the store and the index."""
    remove_image(index, s3, file_name)
    return DeleteResponse(success=True)

@router.get("/health", response_model=HealthResponse)
def health(index: MetadataIndex = Depends(get_metadata_index)):
    """Reports whether the recovery scan finished and how many images are indexed."""
    return HealthResponse(index_ready=index.ready, images=len(index))
