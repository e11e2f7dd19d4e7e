"""
FastAPI exception handlers that render failures as result envelopes.

Services already return envelopes, so only two things can still reach these handlers:
    - RequestValidationError: the request did not match its schema -> Validation (422)
    - anything unexpected                                         -> Internal (500)

Authorization failures are HTTPExceptions (401/403) and keep FastAPI's default
`{"detail": ...}` body.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
import logging

from intake.core.result import Failure, internal_error, render, validation_error

logger = logging.getLogger(__name__)

# leading `loc` entries naming the request part rather than the field
_REQUEST_PARTS = {"body", "query", "path", "header", "cookie", "form"}


def _field_name(loc) -> str:
    parts = [str(p) for p in loc]
    if parts and parts[0] in _REQUEST_PARTS:
        parts = parts[1:]
    return ".".join(parts) or "request"


def validation_failure(errors: list[dict]) -> Failure:
    """Build the Validation envelope from pydantic's `errors()` list."""
    details = [
        {"field": _field_name(e.get("loc", ())), "message": e.get("msg", "Invalid value"), "type": e.get("type")}
        for e in errors
    ]
    return validation_error("Invalid request data", details)


def validation_failure_from(exc: ValidationError) -> Failure:
    # include_url/include_context keep the details JSON friendly
    return validation_failure(exc.errors(include_url=False, include_context=False))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    422 with per-field details.
    """
    logger.info("Validation error for %s %s: %d problem(s)", request.method, request.url.path, len(exc.errors()))
    errors = [{k: v for k, v in e.items() if k in ("loc", "msg", "type")} for e in exc.errors()]
    return render(validation_failure(errors))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Catch-all. The stack trace goes to the log, the client gets a generic message.
    """
    logger.exception("Unhandled error for %s %s", request.method, request.url.path, exc_info=exc)
    return render(internal_error())


# Helper to register all handlers on an app (call this from the app factory)
def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
