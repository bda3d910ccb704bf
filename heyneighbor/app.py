"""FastAPI application factory for the HeyNeighbor service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from heyneighbor.core.config import Settings, get_settings
from heyneighbor.core.rate_limiter import RateLimiter
from heyneighbor.core.utils import utcnow
from heyneighbor.db.session import Database
from heyneighbor.repositories.sql_repository import SQLRepository
from heyneighbor.routers import auth as auth_router
from heyneighbor.routers import borrow as borrow_router
from heyneighbor.routers import items as items_router
from heyneighbor.routers import messages as messages_router
from heyneighbor.routers import users as users_router
from heyneighbor.services.auth_service import AuthService
from heyneighbor.services.errors import ServiceError
from heyneighbor.services.retirement_service import RetirementCoordinator
from heyneighbor.services.verification_service import NotificationSender

logger = logging.getLogger("heyneighbor.app")


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(level=settings.log_level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def _service_error(_request: Request, exc: ServiceError):
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)

    @app.exception_handler(IntegrityError)
    async def _integrity_error(request: Request, exc: IntegrityError):
        logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
        return JSONResponse(
            {"error": "invalid_request", "message": "Request references missing or conflicting records"},
            status_code=400,
        )

    @app.exception_handler(SQLAlchemyError)
    async def _storage_error(request: Request, exc: SQLAlchemyError):
        logger.error("Storage failure on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse({"error": "internal_error", "message": "Internal server error"}, status_code=500)


def create_app(
    *,
    database: Optional[Database] = None,
    settings: Optional[Settings] = None,
    sender: Optional[NotificationSender] = None,
    clock: Callable[[], datetime] = utcnow,
    create_schema: bool = False,
) -> FastAPI:
    """Build the API; without an injected database one is opened for the app's lifetime."""
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = database is None
        db = database or Database(settings.database_url)
        if create_schema:
            db.create_all()
        repository = SQLRepository(db)
        app.state.database = db
        app.state.repository = repository
        app.state.auth_service = AuthService(repository, sender=sender, settings=settings, clock=clock)
        app.state.retirement = RetirementCoordinator(repository)
        logger.info("HeyNeighbor API started (env=%s)", settings.app_env)
        try:
            yield
        finally:
            if owned:
                db.dispose()

    app = FastAPI(title="HeyNeighbor API", lifespan=lifespan)
    app.state.settings = settings
    app.state.rate_limiter = RateLimiter()
    _install_error_handlers(app)

    @app.get("/", response_class=PlainTextResponse)
    def health():
        return "Hello from HeyNeighbor API!"

    app.include_router(auth_router.router)
    app.include_router(users_router.router)
    app.include_router(items_router.router)
    app.include_router(borrow_router.router)
    app.include_router(messages_router.router)
    return app
