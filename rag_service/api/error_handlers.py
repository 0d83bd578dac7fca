"""
API error handling.

Maps service exceptions to structured JSON bodies of the form
``{"error": {"kind": ..., "message": ..., "details": ...}}`` with the
status code carried by each exception class.

Dependencies: fastapi, rag_service.core.exceptions
System role: Uniform HTTP error responses
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from rag_service.core.exceptions import RAGServiceError

logger = logging.getLogger(__name__)


def error_body(kind: str, message: str, details: dict | None = None) -> dict:
    return {"error": {"kind": kind, "message": message, "details": details or {}}}


async def service_error_handler(request: Request, exc: RAGServiceError) -> JSONResponse:
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        f"{request.method} {request.url.path} - {exc.kind}",
        extra={"kind": exc.kind, "status_code": exc.status_code},
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body("validation_error", "Request validation failed", {"errors": errors}),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        f"{request.method} {request.url.path} - Unexpected failure",
        extra={"error_type": type(exc).__name__},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("internal_error", "An internal error occurred"),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RAGServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
