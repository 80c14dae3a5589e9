"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (logging, table bootstrap,
engine disposal). Middleware, CORS, and routers all registered here.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from directline import __version__
from directline.api import api_router
from directline.config import settings
from directline.log_config import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown. The registry starts empty: nobody is online until their
    client reconnects.
    """
    configure_logging()
    logger.info(
        "directline.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    from directline.db.engine import engine, init_db

    if settings.create_tables_on_startup:
        try:
            await init_db()
            logger.info("directline.tables_ready")
        except (SQLAlchemyError, OSError) as e:
            logger.error("directline.table_bootstrap_failed", error=str(e))

    yield

    logger.info("directline.shutdown")

    from directline.realtime.registry import connection_registry
    connection_registry.clear()

    await engine.dispose()


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are the client's fault: 400, not 422."""
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Directline",
        description="Two-party direct messaging with live delivery",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → Security → RequestId → handler

    from directline.middleware.request_id import RequestIdMiddleware
    from directline.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(api_router)

    from directline.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    return app


# Default app instance (used by uvicorn: directline.main:app)
app = create_app()
