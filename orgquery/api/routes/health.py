"""GET /v1/health — Health check with real service probes."""

import logging
from fastapi import APIRouter, Request
from orgquery.api.schemas import HealthResponse
from orgquery.version import __version__

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Check health of all services."""
    services: dict[str, bool] = {"api": True, "secret_store": False, "vector_store": False}

    # Secret store
    services["secret_store"] = getattr(request.app.state, "secret_store", None) is not None

    # Vector store (ChromaDB)
    try:
        knowledge_store = request.app.state.knowledge_store
        knowledge_store._get_client()  # triggers lazy init
        services["vector_store"] = True
    except Exception as exc:
        logger.warning(f"[health] Vector store check failed: {exc}")

    overall = "ok" if all(services.values()) else "degraded"
    return HealthResponse(status=overall, version=__version__, services=services)
