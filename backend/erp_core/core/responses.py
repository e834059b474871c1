"""ERP Core — API response envelope and exception handlers."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from erp_core.core.exceptions import ERPCoreError

logger = logging.getLogger(__name__)


def error_response(
    code: str,
    message: str,
    field_errors: list[dict] | None = None,
    details: dict | None = None,
    meta: dict | None = None,
) -> dict:
    return {
        "data": None,
        "error": {
            "code": code,
            "message": message,
            "field_errors": field_errors or [],
            "details": details or {},
        },
        "meta": meta,
    }


async def erp_core_error_handler(request: Request, exc: ERPCoreError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    body = error_response(exc.code, exc.message, details=exc.details())
    field = getattr(exc, "field", None)
    if field:
        body["error"]["field_errors"] = [{"field": field, "message": exc.message}]
    return JSONResponse(status_code=exc.status_code, content=body)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(f"HTTP_{exc.status_code}", str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    field_errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=error_response("VALIDATION_ERROR", "Request validation failed", field_errors=field_errors),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ERPCoreError, erp_core_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
