# users_crud/tests/test_logging/test_middleware_integration.py
import json
import logging
import uuid
from types import SimpleNamespace

from fastapi import FastAPI
from starlette.testclient import TestClient

from users_crud.core.logging.builder import setup_logging
from users_crud.core.logging.middleware import RequestIDMiddleware, resolve_request_id


def make_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)

    @app.get("/hello")
    def hello():
        logging.getLogger("users_crud.test").info("handling hello")
        return {"ok": True}

    return app


def test_request_id_in_response_and_logs(tmp_path, capsys):
    settings = SimpleNamespace(
        ENV="production",
        LOG_FORMAT="json",
        LOG_LEVEL="INFO",
        LOG_TO_STDOUT=True,
        LOG_DIR=tmp_path / "logs",
        LOG_MAX_BYTES=1000,
        LOG_BACKUP_COUNT=1,
        ENABLE_SQL_LOGGING=False,
    )
    setup_logging(settings)

    client = TestClient(make_app())
    resp = client.get("/hello")
    assert resp.status_code == 200

    rid = resp.headers.get("X-Request-ID")
    assert rid is not None

    # StreamHandler writes to stderr; each line is a JSON object (LOG_FORMAT=json)
    stderr = capsys.readouterr().err.strip()
    assert stderr, "Expected logs on stderr but nothing was captured."

    records = []
    for line in stderr.splitlines():
        try:
            records.append(json.loads(line))
        except json.JSONDecodeError:
            continue

    messages = {r["message"] for r in records if r.get("request_id") == rid}
    assert {"handling hello", "http.request"} <= messages


def test_incoming_request_id_is_echoed():
    client = TestClient(make_app())
    resp = client.get("/hello", headers={"X-Request-ID": "upstream-123"})
    assert resp.headers["X-Request-ID"] == "upstream-123"


def test_malformed_request_id_is_replaced():
    rid = resolve_request_id("bad id\nwith newline")
    assert str(uuid.UUID(rid)) == rid
    assert resolve_request_id(None) != resolve_request_id(None)
