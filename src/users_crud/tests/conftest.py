"""
Core pytest configuration for the entire test suite.

This module provides only the database setup and utilities needed across ALL
types of tests (repositories, API, logging).

Domain-specific fixtures live in:
- tests/test_fixtures/repository_fixtures.py
- tests/test_fixtures/api_fixtures.py

Database selection:
- `TEST_DATABASE_URL` (e.g. postgresql+asyncpg://...) when set, for CI;
- otherwise a fresh SQLite file per test under pytest's tmp_path, so every
  test starts from an empty table and ids start at 1.
"""

# -------------------------------
# Standard library imports
# -------------------------------
import os
import sys
import logging
from pathlib import Path
from typing import AsyncGenerator
from urllib.parse import urlparse

# -------------------------------
# Early logging tuning
# -------------------------------
# Silence noisy third-party loggers before importing modules that may configure them.
NOISY_LOGGERS = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "aiosqlite",
    "asyncio",
    "httpx",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

# -------------------------------
# PATH PATCHING
# -------------------------------
# Ensure 'src' on sys.path so `import users_crud...` works without an install.
SRC = Path(__file__).resolve().parents[2]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# -------------------------------
# Third-party / project imports
# -------------------------------
import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from users_crud.config.settings import Settings
from users_crud.database.base import Base
from users_crud.database.session import create_engine_from_settings, create_session_factory, init_db

logger = logging.getLogger(__name__)


def safe_log_db_url(db_url: str) -> str:
    """Return the URL without credentials, for logging."""
    parsed = urlparse(db_url)
    return f"{parsed.scheme}://{parsed.hostname or ''}:{parsed.port or ''}/{parsed.path.lstrip('/')}"


def get_test_database_url(tmp_path: Path) -> str:
    if test_url := os.getenv("TEST_DATABASE_URL"):
        return test_url
    return f"sqlite+aiosqlite:///{tmp_path / 'test_users.db'}"


# ------------------------------------------------------------------------------------------------
# LOGGING ISOLATION
# ------------------------------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def restore_root_logging():
    """
    Some tests apply the application's dictConfig (directly or through the app
    lifespan). Put the root logger back afterwards so later tests see pytest's
    own capture handlers only.
    """
    root = logging.getLogger()
    handlers, filters, level = list(root.handlers), list(root.filters), root.level
    yield
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    for h in handlers:
        if h not in root.handlers:
            root.addHandler(h)
    root.filters[:] = filters
    root.setLevel(level)


# ------------------------------------------------------------------------------------------------
# DATABASE FIXTURES
# ------------------------------------------------------------------------------------------------
@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings for tests: isolated database, console-only text logging, no `.env`."""
    return Settings(
        _env_file=None,
        ENV="testing",
        DATABASE_URL_OVERRIDE=get_test_database_url(tmp_path),
        LOG_TO_STDOUT=True,
        LOG_FORMAT="text",
        LOG_LEVEL="INFO",
    )


@pytest.fixture
async def async_engine(test_settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    logger.debug("Using test DB: %s", safe_log_db_url(test_settings.DATABASE_URL))
    engine = create_engine_from_settings(test_settings)
    await init_db(engine)

    yield engine

    # Shared servers (TEST_DATABASE_URL) need an explicit cleanup; SQLite files vanish with tmp_path.
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(async_engine)


# Repository / API fixtures
from users_crud.tests.test_fixtures.repository_fixtures import (  # noqa: E402
    user_repository,
    sample_user_data,
    make_user,
    create_user,
    created_user,
)
from users_crud.tests.test_fixtures.api_fixtures import (  # noqa: E402
    app,
    client,
)
