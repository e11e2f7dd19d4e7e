"""
Result envelope returned by every service operation.

An operation resolves to exactly one of:
    Success(message, data)       -> {"success": true,  "message": ..., "data": ...}
    Failure(kind, message)       -> {"success": false, "code": ..., "message": ...}

Envelopes are plain values. Callers branch on `envelope.ok` (or `isinstance`)
instead of catching exceptions, and the HTTP layer turns them into responses with
`render()`.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


class FailureKind(str, Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    INTERNAL = "internal"

    @property
    def http_status(self) -> int:
        return _KIND_TO_STATUS[self]


_KIND_TO_STATUS = {
    FailureKind.NOT_FOUND: 404,
    FailureKind.CONFLICT: 409,
    FailureKind.VALIDATION: 422,
    FailureKind.INTERNAL: 500,
}


@dataclass(frozen=True)
class Success:
    message: str
    data: Any = None
    status_code: int = 200

    @property
    def ok(self) -> bool:
        return True

    def http_status(self) -> int:
        return self.status_code

    def to_payload(self) -> dict:
        return {"success": True, "message": self.message, "data": self.data}


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str
    details: list[dict] | None = field(default=None)

    @property
    def ok(self) -> bool:
        return False

    def http_status(self) -> int:
        return self.kind.http_status

    def to_payload(self) -> dict:
        payload = {"success": False, "code": self.kind.value, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


Envelope = Union[Success, Failure]


# ---------------------------------------------------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------------------------------------------------

def success(message: str, data: Any = None, *, status_code: int = 200) -> Success:
    return Success(message=message, data=data, status_code=status_code)


def not_found(message: str) -> Failure:
    return Failure(FailureKind.NOT_FOUND, message)


def conflict(message: str) -> Failure:
    return Failure(FailureKind.CONFLICT, message)


def validation_error(message: str, details: list[dict] | None = None) -> Failure:
    return Failure(FailureKind.VALIDATION, message, details)


def internal_error(message: str = "An unexpected error occurred") -> Failure:
    return Failure(FailureKind.INTERNAL, message)


def render(envelope: Envelope) -> JSONResponse:
    """Serialize an envelope into a JSON response carrying its HTTP status."""
    return JSONResponse(
        status_code=envelope.http_status(),
        content=jsonable_encoder(envelope.to_payload()),
    )
