import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings
from .database import create_db_engine, create_tables, get_session, ping
from .errors import install_error_handlers
from .identity_tokens import TokenVerifier
from .logging_setup import setup_logging
from .routers import auth, tasks
from .stores import SessionManager

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, token_verifier: Optional[TokenVerifier] = None) -> FastAPI:
    """Build the application around an explicitly constructed engine.

    Tests pass their own ``Settings`` (and optionally a verifier) to get an
    isolated store.
    """
    settings = settings or Settings.from_env()
    engine = create_db_engine(settings.database_url)
    create_tables(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        with get_session(engine) as db:
            SessionManager(db, ttl_seconds=settings.session_ttl_seconds).purge_expired()
        logger.info("Taskpad API ready (env=%s)", settings.app_env)
        yield
        engine.dispose()

    app = FastAPI(
        title="Taskpad API",
        description="Personal task tracker with session-authenticated, per-user tasks",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.token_verifier = token_verifier or TokenVerifier(
        audience=settings.google_client_id,
        jwks_url=settings.external_jwks_url,
        issuers=settings.external_issuers,
    )

    install_error_handlers(app)

    # Configure CORS (outermost, so error responses get the headers too)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(auth.router, prefix="/api", tags=["auth"])
    app.include_router(tasks.router, prefix="/api", tags=["tasks"])

    @app.get("/health")
    def health_check(request: Request):
        return {"status": "healthy", "database": ping(request.app.state.engine)}

    return app


def build_app() -> FastAPI:
    """Entry point for uvicorn's ``--factory`` mode."""
    settings = Settings.from_env()
    setup_logging(settings.log_level)
    return create_app(settings)
