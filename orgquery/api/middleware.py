"""FastAPI tenant middleware.

Reads the ``X-Tenant-ID`` header and sets ``request.state.tenant_id``.
Every route except the public ones requires it.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

TENANT_HEADER = "X-Tenant-ID"


class TenantMiddleware(BaseHTTPMiddleware):
    """Tenant isolation middleware."""

    # Paths that don't require a tenant
    PUBLIC_PATHS = {"/v1/health", "/docs", "/openapi.json", "/redoc"}

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.PUBLIC_PATHS:
            return await call_next(request)

        tenant_id = request.headers.get(TENANT_HEADER, "").strip()
        if not tenant_id:
            return JSONResponse({"detail": f"Missing {TENANT_HEADER} header"}, status_code=401)

        request.state.tenant_id = tenant_id
        return await call_next(request)
