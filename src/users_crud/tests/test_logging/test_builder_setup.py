# users_crud/tests/test_logging/test_builder_setup.py
import json
import logging
from types import SimpleNamespace

from users_crud.core.logging.builder import make_dict_config, setup_logging
from users_crud.core.logging.filters import reset_request_id, set_request_id


def make_test_settings(**overrides):
    # duck-typed stand-in for Settings: only what the builder reads
    values = dict(
        ENV="testing",
        LOG_FORMAT="json",
        LOG_LEVEL="INFO",
        LOG_TO_STDOUT=False,
        LOG_DIR=None,
        LOG_MAX_BYTES=100_000,
        LOG_BACKUP_COUNT=1,
        ENABLE_SQL_LOGGING=False,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def test_file_handlers_when_not_logging_to_stdout(tmp_path):
    cfg = make_dict_config(make_test_settings(LOG_DIR=tmp_path))

    assert set(cfg["handlers"]) == {"console", "file", "error_file"}
    assert cfg["handlers"]["file"]["filename"].endswith("app.log")
    assert cfg["handlers"]["error_file"]["level"] == "ERROR"
    assert cfg["loggers"][""]["handlers"] == ["console", "file", "error_file"]


def test_error_console_when_logging_to_stdout(tmp_path):
    cfg = make_dict_config(make_test_settings(LOG_TO_STDOUT=True, LOG_DIR=tmp_path))

    assert set(cfg["handlers"]) == {"console", "error_console"}
    assert cfg["handlers"]["error_console"]["formatter"] == "json"


def test_text_format_selects_standard_formatter():
    cfg = make_dict_config(make_test_settings(LOG_TO_STDOUT=True, LOG_FORMAT="text"))
    assert cfg["handlers"]["console"]["formatter"] == "standard"


def test_sql_logging_toggle():
    quiet = make_dict_config(make_test_settings(LOG_TO_STDOUT=True))
    loud = make_dict_config(make_test_settings(LOG_TO_STDOUT=True, ENABLE_SQL_LOGGING=True))

    assert quiet["loggers"]["sqlalchemy.engine"]["level"] == "WARNING"
    assert loud["loggers"]["sqlalchemy.engine"]["level"] == "INFO"


def test_setup_logging_writes_json_error_file_with_request_id(tmp_path):
    log_dir = tmp_path / "logs"
    assert not log_dir.exists()

    setup_logging(make_test_settings(LOG_DIR=log_dir))
    assert log_dir.exists()

    token = set_request_id("req-file-1")
    try:
        logging.getLogger("users_crud.test").error("repo.create.failed", extra={"operation": "create"})
    finally:
        reset_request_id(token)

    for handler in logging.getLogger().handlers:
        handler.flush()

    lines = (log_dir / "errors.log").read_text(encoding="utf-8").splitlines()
    records = [json.loads(line) for line in lines]
    assert any(
        r["message"] == "repo.create.failed" and r["request_id"] == "req-file-1" and r["operation"] == "create"
        for r in records
    )
