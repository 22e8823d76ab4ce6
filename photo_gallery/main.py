from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from botocore.exceptions import BotoCoreError, ClientError
from contextlib import asynccontextmanager
from pathlib import Path
import asyncio
import uvicorn
import logging

from photo_gallery.storage.s3 import S3Service
from photo_gallery.image_service.index import MetadataIndex
from photo_gallery.settings import settings
from photo_gallery.routers.gallery import router as gallery_router
from photo_gallery.exceptions import add_exception_handlers

logging.basicConfig(level=settings.log_level.upper())
log = logging.getLogger("photo-gallery")

STATIC_DIR = Path(__file__).parent / "static"

def init_bucket(s3: S3Service):
    """Best-effort bucket setup; the server still starts if the store is unreachable."""
    try:
        s3.ensure_bucket()
    except (BotoCoreError, ClientError) as e:
        log.error("Bucket init failed: %s", e)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
        Async context manager for FastAPI application lifecycle events.
        Creates the S3 client and the metadata index, then starts the recovery
        scan in the background. Reads wait on the index's ready signal.
    """
    app.state.s3 = S3Service()
    init_bucket(app.state.s3)
    app.state.index = MetadataIndex(app.state.s3)

    loop = asyncio.get_running_loop()
    app.state.recovery = loop.run_in_executor(None, app.state.index.rebuild)
    yield
    # Let a still-running scan finish before the client goes away
    await app.state.recovery
    app.state.s3.close()

# Initialize App
app = FastAPI(
    title=settings.app_title,
    lifespan=lifespan,
    description="Photo Gallery Service",
)

# Add exception handlers
add_exception_handlers(app)

# CORS - Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=['*'],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add the routers
app.include_router(gallery_router)

# Gallery client, served last so API routes take precedence
app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="static")

def run():
    uvicorn.run("photo_gallery.main:app", host=settings.host, port=settings.port)

if __name__ == "__main__":
    run()
