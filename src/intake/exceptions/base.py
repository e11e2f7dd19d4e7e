"""
Repository-level exceptions.

Repositories raise these; the write workflow catches them at its boundary and turns
each one into a Failure envelope, so none of them ever reaches an HTTP client as an
exception:

    NotFoundError      -> NotFound
    DuplicateError     -> Conflict
    InvalidFieldError  -> Validation (one detail per field)
    RepositoryError    -> Internal
"""

from typing import Iterable


class RepositoryError(Exception):
    """
    Base exception for repository errors.

    `message` is safe to show to clients. `fields` names the columns involved, when
    known. `constraint` is the database constraint name and is only ever logged.
    """

    def __init__(self, message: str, *, fields: Iterable[str] | None = None, constraint: str | None = None):
        super().__init__(message)
        self.message = message
        self.fields = list(fields) if fields else None
        self.constraint = constraint

    def __str__(self) -> str:
        extras = []
        if self.fields:
            extras.append(f"fields: {', '.join(self.fields)}")
        if self.constraint:
            extras.append(f"constraint: {self.constraint}")
        return f"{self.message} ({'; '.join(extras)})" if extras else self.message

    def field_details(self) -> list[dict] | None:
        """Per-field entries for a Validation envelope, or None without field names."""
        if not self.fields:
            return None
        return [{"field": name, "message": self.message} for name in self.fields]


class NotFoundError(RepositoryError):
    def __init__(self, message: str = "Not found", *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields)


class DuplicateError(RepositoryError):
    """A uniqueness key is already taken. Raised for pre-check hits and lost races alike."""


class InvalidFieldError(RepositoryError):
    """Raised when the caller passes unknown fields or omits required ones."""

    def __init__(self, message: str, *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields)


__all__ = [
    "RepositoryError",
    "NotFoundError",
    "DuplicateError",
    "InvalidFieldError",
]
