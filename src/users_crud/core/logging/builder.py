"""
Logging builder: assemble a dictConfig mapping from Settings and apply it.

    setup_logging(settings)     # once, from the application lifespan

Handler selection:
  - `console` is always present;
  - LOG_TO_STDOUT=true  -> `error_console` (ERROR+ as JSON on the console);
  - LOG_TO_STDOUT=false -> rotating `file` + `error_file` under LOG_DIR.
"""

import logging
import logging.config
from pathlib import Path

from users_crud.config.settings import Settings

from .filters import RedactFilter, RequestIdFilter
from .formatters import ColorFormatter, JsonFormatter
from .handlers import (
    get_console_handler,
    get_error_console_handler,
    get_error_file_handler,
    get_file_handler,
)
from .utils import get_project_name

STANDARD_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s"


def _writes_files(settings: Settings) -> bool:
    return (not settings.LOG_TO_STDOUT) and bool(settings.LOG_DIR)


def _build_handlers(settings: Settings) -> dict[str, dict]:
    handlers = {"console": get_console_handler(settings)}
    if _writes_files(settings):
        handlers.update(file=get_file_handler(settings), error_file=get_error_file_handler(settings))
    else:
        handlers.update(error_console=get_error_console_handler(settings))
    return handlers


def _logger_entry(level: str, handlers: list[str], propagate: bool = False) -> dict:
    return {"level": level, "handlers": handlers, "propagate": propagate}


def make_dict_config(settings: Settings) -> dict:
    """
    Build the dictConfig mapping.

    The `standard` formatter is colored only for development text logs; the
    `json` formatter carries service/env/version on every record. SQL
    statement logging stays at WARNING unless ENABLE_SQL_LOGGING is set,
    since statements may include parameter values.
    """
    colored = settings.ENV == "development" and settings.LOG_FORMAT == "text"
    handlers = _build_handlers(settings)
    all_handlers = list(handlers)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"()": ColorFormatter if colored else logging.Formatter, "fmt": STANDARD_FORMAT},
            "json": {"()": JsonFormatter, "env": settings.ENV, "service": get_project_name()},
        },
        "filters": {
            "request_id": {"()": RequestIdFilter},
            "redact": {"()": RedactFilter},
        },
        "handlers": handlers,
        "loggers": {
            "": _logger_entry(settings.LOG_LEVEL, all_handlers, propagate=True),
            "uvicorn.error": _logger_entry(settings.LOG_LEVEL, all_handlers),
            "uvicorn.access": _logger_entry("INFO", ["console"]),
            "sqlalchemy.engine": _logger_entry("INFO" if settings.ENABLE_SQL_LOGGING else "WARNING", ["console"]),
        },
    }


def setup_logging(settings: Settings) -> None:
    """
    Apply the logging configuration.

    LOG_DIR is created first when file handlers are configured. The root
    logger also gets a RequestIdFilter so records from handlers attached
    elsewhere still carry `request_id`.
    """
    if _writes_files(settings):
        Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(make_dict_config(settings))
    logging.getLogger().addFilter(RequestIdFilter())
