"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from users_crud.api.v1 import users
from users_crud.api.v1.error_handlers import register_exception_handlers
from users_crud.config.settings import Settings, get_settings
from users_crud.core.logging import RequestIDMiddleware, setup_logging
from users_crud.core.logging.utils import get_project_version
from users_crud.database.session import create_engine_from_settings, create_session_factory, init_db
from users_crud.repositories.user_repository import SQLAlchemyUserRepository
from users_crud.validators.user_validator import get_user_validator

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup: logging, engine, schema, repository. Shutdown: dispose the pool."""
        setup_logging(settings)
        engine = create_engine_from_settings(settings)
        await init_db(engine)

        app.state.settings = settings
        app.state.engine = engine
        app.state.user_repository = SQLAlchemyUserRepository(create_session_factory(engine))
        # same cached instance the routes get through get_validator()
        app.state.user_validator = get_user_validator()

        logger.info("app.startup", extra={"env": settings.ENV})
        try:
            yield
        finally:
            await engine.dispose()
            logger.info("app.shutdown")

    app = FastAPI(
        title="Users CRUD API",
        description="Create, list, update and delete users",
        version=get_project_version(),
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)
    app.include_router(users.router, prefix=API_PREFIX)

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    return app
