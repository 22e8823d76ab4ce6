from fastapi import Request
from photo_gallery.storage.s3 import S3Service
from photo_gallery.image_service.index import MetadataIndex

def get_s3_service(request: Request) -> S3Service:
    """Dependency provider for S3Service"""
    return request.app.state.s3

def get_metadata_index(request: Request) -> MetadataIndex:
    """Dependency provider for the process-wide MetadataIndex"""
    return request.app.state.index
