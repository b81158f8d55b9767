"""
Logging filters.

- `RequestIdFilter` stamps every record with the current request id, read from
  a `contextvars.ContextVar` so the value follows each request across awaits.
  Records logged outside a request get the sentinel "-".
- `RedactFilter` masks sensitive attributes passed through `extra={...}`.

Both filters always return True: they annotate records, they never drop them.
"""

import contextvars
import logging
from logging import LogRecord

_request_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)


def set_request_id(request_id: str | None) -> contextvars.Token:
    """Set the request id for the current context; returns the token for `reset_request_id`."""
    return _request_id_ctx.set(request_id)


def reset_request_id(token: contextvars.Token) -> None:
    _request_id_ctx.reset(token)


def get_request_id() -> str | None:
    return _request_id_ctx.get()


class RequestIdFilter(logging.Filter):
    """
    Guarantees `record.request_id` exists, so `%(request_id)s` never raises.

    Precedence: an explicit `extra={"request_id": ...}`, then the contextvar,
    then "-".
    """

    def filter(self, record: LogRecord) -> bool:
        record.request_id = (
            getattr(record, "request_id", None) or get_request_id() or "-"
        )
        return True


class RedactFilter(logging.Filter):
    """Replace the value of any sensitive record attribute with a fixed marker."""

    SENSITIVE = {
        "password",
        "postgres_password",
        "secret",
        "token",
        "authorization",
        "database_url",
        "dsn",
    }
    MASK = "***REDACTED***"

    def filter(self, record: LogRecord) -> bool:
        for key in list(record.__dict__.keys()):
            if key.lower() in self.SENSITIVE:
                record.__dict__[key] = self.MASK
        return True
