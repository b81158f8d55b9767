"""Fixtures for HTTP tests: the real app with the repository dependency overridden."""

from typing import AsyncGenerator

import httpx
import pytest
from fastapi import FastAPI

from users_crud.api.dependencies import get_user_repository
from users_crud.config.settings import Settings
from users_crud.main import create_app
from users_crud.repositories.user_repository import SQLAlchemyUserRepository


@pytest.fixture
def app(test_settings: Settings, user_repository: SQLAlchemyUserRepository) -> FastAPI:
    """
    App built by the factory, wired to the per-test repository.

    httpx's ASGITransport does not run the lifespan, so the repository the
    lifespan would create is injected through dependency_overrides instead.
    """
    application = create_app(test_settings)
    application.dependency_overrides[get_user_repository] = lambda: user_repository
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
