"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from permauto.config import Settings
from permauto.database import Database
from permauto.errors import ConfigurationError, register_exception_handlers
from permauto.routes import admin, auth, authorizations

logger = logging.getLogger("permauto")


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def check_secret(settings: Settings) -> None:
    """Refuse to start in production without a signing secret."""
    if settings.SECRET_KEY:
        return
    if settings.is_production:
        raise ConfigurationError("SECRET_KEY must be set in production")
    logger.warning("SECRET_KEY is not set: sign-in and registration will fail until it is configured")


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings)
    check_secret(settings)
    database = database or Database(settings.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database.create_all()
        yield
        database.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Visitor and company access authorizations with role-based administration",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
        return response

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(admin.router)
    app.include_router(authorizations.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
