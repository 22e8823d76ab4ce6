import pytest
import json
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from photo_gallery import exceptions


@pytest.mark.asyncio
async def test_api_exception_handler():
    exc = exceptions.ImageNotFoundException("123_a.png")
    request = Request(scope={"type": "http"})
    response: JSONResponse = await exceptions.api_exception_handler(request, exc)

    assert response.status_code == 404
    # JSONResponse body is bytes, need to decode and parse
    body = json.loads(response.body.decode())
    assert body == {"error": "Image '123_a.png' not found."}


@pytest.mark.asyncio
async def test_http_exception_handler():
    exc = HTTPException(status_code=403, detail="Forbidden")
    request = Request(scope={"type": "http"})
    response: JSONResponse = await exceptions.http_exception_handler(request, exc)

    assert response.status_code == 403
    body = json.loads(response.body.decode())
    assert body == {"error": "Forbidden"}


@pytest.mark.asyncio
async def test_validation_exception_handler():
    exc = RequestValidationError([{"loc": ("query", "q"), "msg": "bad value", "type": "value_error"}])
    request = Request(scope={"type": "http"})
    response: JSONResponse = await exceptions.validation_exception_handler(request, exc)

    assert response.status_code == 422
    body = json.loads(response.body.decode())
    assert body == {"error": "query.q: bad value"}


@pytest.mark.asyncio
async def test_generic_exception_handler():
    exc = ValueError("Something went wrong")
    request = Request(scope={"type": "http"})
    response: JSONResponse = await exceptions.generic_exception_handler(request, exc)

    assert response.status_code == 500
    body = json.loads(response.body.decode())
    assert body == {"error": "An unexpected error occurred."}


def test_custom_exceptions_inherit_api_exception():
    exc = exceptions.MissingFileException()
    assert isinstance(exc, exceptions.APIException)
    assert exc.status_code == 400
    assert "No file" in str(exc)


def test_store_exception_keeps_message():
    exc = exceptions.ObjectStoreException("An error occurred (AccessDenied)")
    assert exc.status_code == 500
    assert exc.detail == "An error occurred (AccessDenied)"


def test_index_not_ready_is_service_unavailable():
    assert exceptions.IndexNotReadyException().status_code == 503
