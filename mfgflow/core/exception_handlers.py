"""
FastAPI exception handlers - every error answers
{"success": false, "error": <code>, "message": <text>}
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from .exceptions import MfgError

logger = logging.getLogger(__name__)


def error_body(code: str, message: str, details=None) -> dict:
    body = {"success": False, "error": code, "message": message}
    if details:
        body["details"] = jsonable_encoder(details)
    return body


def setup_exception_handlers(app: FastAPI):

    @app.exception_handler(MfgError)
    async def domain_exception_handler(request: Request, exc: MfgError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path}: {exc.code} {exc.message}")
        return JSONResponse(
            content=error_body(exc.code, exc.message, exc.details),
            status_code=exc.status_code
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            content=error_body("HTTP_ERROR", str(exc.detail)),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            content=error_body("REQUEST_VALIDATION_ERROR", "Invalid request", {"errors": exc.errors()}),
            status_code=422
        )

    # Catch all unhandled exceptions
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
        return JSONResponse(
            content=error_body("INTERNAL_ERROR", "Internal server error"),
            status_code=500
        )
