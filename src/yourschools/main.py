"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. The auth configuration is frozen once here and hung on
app.state together with the TokenCodec built from it; request handlers
read both from there rather than from module globals.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from yourschools import __version__
from yourschools.api import api_router
from yourschools.auth.config import AuthConfig
from yourschools.auth.tokens import TokenCodec
from yourschools.config import settings

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "yourschools.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    yield

    logger.info("yourschools.shutdown")

    from yourschools.db.engine import engine
    await engine.dispose()


def create_app(auth_config: Optional[AuthConfig] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="YourSchools API",
        description="School directory backend — accounts, sessions, schools",
        version=__version__,
        lifespan=lifespan,
    )

    auth_config = auth_config or AuthConfig.from_settings(settings)
    app.state.auth_config = auth_config
    app.state.token_codec = TokenCodec(auth_config)

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → CORS → handler

    from yourschools.middleware.request_id import RequestIdMiddleware
    from yourschools.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: yourschools.main:app)
app = create_app()
