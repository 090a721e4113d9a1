"""FastAPI application factory with lifespan management."""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from orgquery.config import config
from orgquery.version import __version__

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    # ── Startup ──
    from orgquery.runtime import build_runtime, configure_logging
    configure_logging(config)
    logger.info(f"orgquery v{__version__} starting...")

    runtime = build_runtime(config)
    app.state.config = runtime.config
    app.state.secret_store = runtime.secret_store
    app.state.resolver = runtime.resolver
    app.state.adapter = runtime.adapter
    app.state.knowledge_store = runtime.knowledge_store
    app.state.orchestrator = runtime.orchestrator

    logger.info(f"orgquery v{__version__} ready")

    yield

    # ── Shutdown ──
    logger.info("orgquery shutting down...")
    runtime.resolver.invalidate()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="orgquery",
        description="Tenant-scoped database retrieval with knowledge-base fallback.",
        version=__version__,
        lifespan=lifespan,
    )

    from orgquery.api.middleware import TenantMiddleware
    app.add_middleware(TenantMiddleware)

    from orgquery.api.errors import register_error_handlers
    register_error_handlers(app)

    # Routes
    from orgquery.api.routes import retrieve, database, health
    app.include_router(retrieve.router, prefix="/v1")
    app.include_router(database.router, prefix="/v1")
    app.include_router(health.router, prefix="/v1")

    return app


app = create_app()
