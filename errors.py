from bson.errors import InvalidId
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from logging_setup import get_logger

logger = get_logger(__name__)


class GeocoderError(Exception):
    """The external geocoding lookup failed or returned nothing usable."""


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _validation_message(errors) -> str:
    messages = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(loc)
        messages.append(f"{field}: {err.get('msg')}" if field else err.get("msg", "Invalid value"))
    return ", ".join(messages) or "Invalid request"


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.info("request_rejected", path=request.url.path, status=exc.status_code, error=exc.detail)
    return error_response(exc.status_code, str(exc.detail))


async def invalid_id_handler(request: Request, exc: InvalidId):
    logger.info("invalid_object_id", path=request.url.path, error=str(exc))
    return error_response(404, "Resource not found")


async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
    logger.info("duplicate_key", path=request.url.path, error=str(exc))
    return error_response(400, "Duplicate field value entered")


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return error_response(400, _validation_message(exc.errors()))


async def schema_validation_handler(request: Request, exc: ValidationError):
    return error_response(400, _validation_message(exc.errors()))


async def geocoder_error_handler(request: Request, exc: GeocoderError):
    logger.error("geocoder_failed", path=request.url.path, error=str(exc))
    return error_response(500, str(exc) or "Geocoding failed")


async def server_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error", path=request.url.path)
    return error_response(500, "Server Error")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(InvalidId, invalid_id_handler)
    app.add_exception_handler(DuplicateKeyError, duplicate_key_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ValidationError, schema_validation_handler)
    app.add_exception_handler(GeocoderError, geocoder_error_handler)
    app.add_exception_handler(Exception, server_error_handler)
