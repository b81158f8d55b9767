"""
Handler factories for logging.dictConfig.

Each function returns a handler *configuration dict*, not a handler, so the
builder stays declarative and the factories are trivial to unit test.

| name            | destination         | level      | active when                        |
| --------------- | ------------------- | ---------- | ---------------------------------- |
| `console`       | stderr              | LOG_LEVEL  | always                             |
| `error_console` | stderr (JSON)       | ERROR      | LOG_TO_STDOUT=true                 |
| `file`          | LOG_DIR/app.log     | LOG_LEVEL  | LOG_TO_STDOUT=false                |
| `error_file`    | LOG_DIR/errors.log  | ERROR      | LOG_TO_STDOUT=false                |
"""

from pathlib import Path

from users_crud.config.settings import Settings

_FILTERS = ("request_id", "redact")


def _formatter_name(settings: Settings) -> str:
    return "json" if settings.LOG_FORMAT == "json" else "standard"


def _stream(formatter: str, level: str) -> dict:
    return {"class": "logging.StreamHandler", "formatter": formatter, "level": level, "filters": list(_FILTERS)}


def _rotating(settings: Settings, filename: str, formatter: str, level: str) -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "filename": str(Path(settings.LOG_DIR) / filename),
        "maxBytes": settings.LOG_MAX_BYTES,
        "backupCount": settings.LOG_BACKUP_COUNT,
        "encoding": "utf-8",
        "formatter": formatter,
        "level": level,
        "filters": list(_FILTERS),
    }


def get_console_handler(settings: Settings) -> dict:
    return _stream(_formatter_name(settings), settings.LOG_LEVEL)


def get_error_console_handler(settings: Settings) -> dict:
    return _stream("json", "ERROR")


def get_file_handler(settings: Settings) -> dict:
    return _rotating(settings, "app.log", _formatter_name(settings), settings.LOG_LEVEL)


def get_error_file_handler(settings: Settings) -> dict:
    # error files stay structured regardless of LOG_FORMAT
    return _rotating(settings, "errors.log", "json", "ERROR")
