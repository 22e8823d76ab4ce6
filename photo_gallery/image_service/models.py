from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from uuid import uuid4

def new_image_id() -> str:
    """Generates a display id for a record. Lookups go through file_name instead."""
    return str(uuid4())

class ImageRecord(BaseModel):
    """Denormalized copy of what the object store holds for one image."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=new_image_id)
    file_name: str
    title: str
    description: str = ""
    tags: str = ""  # Comma Separated Values
    location: str = ""
    upload_date: datetime
    size: int
    mime_type: str = "application/octet-stream"
    url: str

class DeleteResponse(BaseModel):
    success: bool = True

class HealthResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: str = "ok"
    index_ready: bool
    images: int
