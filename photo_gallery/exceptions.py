"""
    Centralized exception handling for the FastAPI application.
    Every error leaves the API as {"error": message}.
"""
from fastapi import Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging

log = logging.getLogger(__name__)

class APIException(Exception):
    """Base class for API exceptions."""
    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(self.detail)

class ImageNotFoundException(APIException):
    """Exception for when an object is not in the store."""
    def __init__(self, file_name: str):
        super().__init__(status_code=404, detail=f"Image '{file_name}' not found.")

class MissingFileException(APIException):
    """Exception for uploads without a file part."""
    def __init__(self):
        super().__init__(status_code=400, detail="No file")

class ObjectStoreException(APIException):
    """Exception for object store failures, message passed through as-is."""
    def __init__(self, detail: str):
        super().__init__(status_code=500, detail=detail)

class IndexNotReadyException(APIException):
    """Exception for reads arriving before the recovery scan finished."""
    def __init__(self):
        super().__init__(status_code=503, detail="Gallery index is still loading.")

async def api_exception_handler(request: Request, exc: APIException):
    """Handles API exceptions."""
    log.error(f"API Exception: {exc.detail}", exc_info=exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
    )

async def http_exception_handler(request: Request, exc: HTTPException):
    """Handles FastAPI HTTP exceptions."""
    log.error(f"HTTP Exception: {exc.detail}", exc_info=exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Flattens request validation errors into a single message."""
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        messages.append(f"{loc}: {err.get('msg')}")
    log.error("Validation Exception: %s", messages)
    return JSONResponse(
        status_code=422,
        content={"error": "; ".join(messages) or "Invalid request"},
    )

async def generic_exception_handler(request: Request, exc: Exception):
    """Handles all other exceptions."""
    log.error(f"Unhandled Exception: {str(exc)}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "An unexpected error occurred."},
    )

def add_exception_handlers(app):
    """Adds exception handlers to the FastAPI app."""
    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
