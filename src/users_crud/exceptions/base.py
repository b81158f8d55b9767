"""
Application-level exceptions.

Everything the core raises to its callers lives here. The exceptions carry a
canonical `error_code` but know nothing about HTTP; translating a code into a
status is the job of `users_crud.api.v1.error_handlers`.
"""

from typing import Iterable, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from users_crud.validators.user_validator import Violation


class AppError(Exception):
    """
    Base exception for errors raised by the validation and repository layers.

    - message: human-friendly message (safe to show to clients)
    - fields: optional list of field names related to the error (e.g., ['user_name'])
    - constraint: optional DB constraint name or identifier (for logs only)
    - error_code: canonical short code (e.g., 'duplicate', 'not_found') used by clients
    """

    def __init__(self, message: str, *, fields: Iterable[str] | None = None,
                 constraint: str | None = None, error_code: str | None = None):
        super().__init__(message)
        self.message = message  # user-friendly message
        self.fields = list(fields) if fields else None
        self.constraint = constraint
        self.error_code = error_code

    def __str__(self) -> str:
        base = self.message
        parts = []
        if self.fields:
            parts.append(f"fields: {', '.join(self.fields)}")
        if self.constraint:
            parts.append(f"constraint: {self.constraint}")
        if self.error_code:
            parts.append(f"code: {self.error_code}")
        if parts:
            return f"{base} ({'; '.join(parts)})"
        return base

    def to_payload(self) -> dict:
        """
        Return a JSON-serializable dict suitable for an API response body.

            {
                "detail": "A human-friendly message",
                "code": "duplicate",           # optional canonical code
                "fields": ["user_name"],       # optional list for client usage
            }

        `constraint` is intentionally left out: it names storage internals.
        """
        payload = {"detail": self.message}
        if self.error_code:
            payload["code"] = self.error_code
        if self.fields:
            payload["fields"] = list(self.fields)
        return payload


class ValidationFailedError(AppError):
    """
    One or more field-level violations were found in a candidate record.

    Raised before storage is touched; the caller recovers by correcting input.
    The message is the violation list rendered one line per violation.
    """

    def __init__(self, violations: Sequence["Violation"]):
        self.violations = list(violations)
        super().__init__(
            "\n".join(str(v) for v in self.violations),
            fields=[v.field for v in self.violations],
            error_code="invalid_input",
        )


class RepositoryError(AppError):
    """Base exception for storage-side failures."""


class NotFoundError(RepositoryError):
    def __init__(self, message: str = "user does not exist", *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="not_found")


class AlreadyExistsError(RepositoryError):
    def __init__(self, message: str = "username already in use", *,
                 fields: Iterable[str] | None = ("user_name",), constraint: str | None = None):
        super().__init__(message, fields=fields, constraint=constraint, error_code="duplicate")


class StorageUnavailableError(RepositoryError):
    """
    The store could not be reached, or a query failed in a way the repository
    cannot classify. The original driver exception is chained as __cause__.
    """

    def __init__(self, message: str = "storage unavailable", *, constraint: str | None = None):
        super().__init__(message, constraint=constraint, error_code="storage_unavailable")


__all__ = [
    "AppError",
    "ValidationFailedError",
    "RepositoryError",
    "NotFoundError",
    "AlreadyExistsError",
    "StorageUnavailableError",
]
