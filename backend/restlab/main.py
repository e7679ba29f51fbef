from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from restlab import __version__
from restlab.api.router import api_router
from restlab.config import Settings, get_settings
from restlab.db.memory import MemoryStore
from restlab.db.repository import SqlStore
from restlab.db.session import Database
from restlab.db.store import DataStore
from restlab.errors import ApiError, DecodeError, InvalidIdError, MethodNotAllowed
from restlab.middleware import BearerAuthMiddleware, CORSHeadersMiddleware

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Attach a console handler to the root logger (no-op if one exists)."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def build_store(settings: Settings) -> DataStore:
    if settings.store_backend == "memory":
        logger.info("Using in-memory store")
        return MemoryStore()
    db = Database.from_settings(settings)
    db.create_tables()
    return SqlStore(db)


def _error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s -> %s (%s)", request.method, request.url.path, exc.message, exc.details)
        return _error(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = MethodNotAllowed().message if exc.status_code == 405 else str(exc.detail)
        return _error(exc.status_code, message, getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        # A bad path id is reported as such; anything else is a body problem.
        for err in exc.errors():
            loc = err.get("loc") or ()
            if loc and loc[0] == "path":
                error = InvalidIdError(str(loc[-1]).removesuffix("_id"))
                return _error(error.status_code, error.message)
        return _error(400, DecodeError().message)


def create_app(settings: Settings | None = None, store: DataStore | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        app.state.store.close()

    app = FastAPI(title="REST API Lab", version=__version__, lifespan=lifespan, redirect_slashes=False)

    app.state.settings = settings
    app.state.store = store if store is not None else build_store(settings)

    # Last added runs first: CORS wraps auth.
    app.add_middleware(BearerAuthMiddleware, token=settings.bearer_token)
    app.add_middleware(CORSHeadersMiddleware)

    register_exception_handlers(app)
    app.include_router(api_router)

    return app
