"""
Request id middleware.

Takes the incoming `X-Request-ID` header (or a fresh uuid4), stores it in the
contextvar read by RequestIdFilter for the duration of the request, and echoes it
back on the response so clients can correlate their calls with server logs.
"""

import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from .filters import set_request_id, reset_request_id

REQUEST_ID_HEADER = "X-Request-ID"
_MAX_REQUEST_ID_LENGTH = 128


def _sanitize(incoming: str | None) -> str | None:
    # Reject values that could inject new log lines or blow up log size.
    if not incoming or len(incoming) > _MAX_REQUEST_ID_LENGTH:
        return None
    if any(ch in incoming for ch in ("\r", "\n")):
        return None
    return incoming


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        rid = _sanitize(request.headers.get(REQUEST_ID_HEADER)) or str(uuid.uuid4())
        token = set_request_id(rid)
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = rid
            return response
        finally:
            reset_request_id(token)
