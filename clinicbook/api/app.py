"""
FastAPI application factory and error mapping.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import AppConfig
from ..domain.exceptions import (
    ClinicBookError,
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from ..services.scheduling import SchedulingService
from .routes import router

logger = logging.getLogger(__name__)

_STATUS_CODES = {
    ValidationError: (400, "validation_error"),
    NotFoundError: (404, "not_found"),
    ConflictError: (409, "conflict"),
    StorageError: (503, "storage_error"),
}


async def handle_clinicbook_error(request: Request, exc: ClinicBookError) -> JSONResponse:
    """Translate domain errors into structured JSON responses."""
    status_code, kind = 500, "error"
    for error_type, mapping in _STATUS_CODES.items():
        if isinstance(exc, error_type):
            status_code, kind = mapping
            break

    content = {"error": kind, "message": str(exc)}
    if isinstance(exc, ValidationError):
        content["fields"] = exc.fields
    if isinstance(exc, ConflictError):
        content["conflictingId"] = exc.conflicting.id

    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content=content)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed bodies and query parameters like any other validation error."""
    fields = {}
    for error in exc.errors():
        location = error.get("loc") or ("request",)
        fields.setdefault(str(location[-1]), error.get("msg", "invalid value"))

    return await handle_clinicbook_error(request, ValidationError(fields))


def create_app(
    config: Optional[AppConfig] = None,
    scheduling: Optional[SchedulingService] = None,
) -> FastAPI:
    """
    Build the HTTP application.

    Args:
        config: Application configuration; defaults are used when omitted
        scheduling: Pre-built service (tests inject one with a fixed clock)
    """
    config = config or AppConfig()

    app = FastAPI(
        title="clinicbook",
        description="Appointment booking and slot availability for a single-provider clinic.",
        version=__version__,
    )
    app.state.scheduling = scheduling or SchedulingService.from_config(config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ClinicBookError, handle_clinicbook_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.include_router(router)

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "version": __version__}

    return app
