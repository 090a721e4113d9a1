"""Tenant database management: catalog, preview, connection test, config, ingest."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Request

from orgquery.api.schemas import (
    ConnectionTestResponse,
    DatabaseConfigRequest,
    DatabaseConfigResponse,
    IngestRequest,
    IngestResponse,
    PreviewResponse,
    TablesResponse,
)
from orgquery.db.resolver import parse_database_secret
from orgquery.exceptions import ConfigurationError
from orgquery.knowledge.ingest import ingest_tenant_tables
from orgquery.secrets.store import tenant_secret_name

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/database", tags=["database"])


@router.get("/tables", response_model=TablesResponse)
async def list_tables(request: Request):
    """List base tables in the tenant's public schema."""
    adapter = request.app.state.adapter
    tables = await adapter.list_tables(request.state.tenant_id)
    return TablesResponse(tables=tables)


@router.get("/tables/{name}/preview", response_model=PreviewResponse)
async def preview_table(request: Request, name: str, limit: Optional[int] = None):
    """First rows of a table (default 20, at most 200)."""
    adapter = request.app.state.adapter
    result = await adapter.preview_table(request.state.tenant_id, name, limit)
    return PreviewResponse(table=name, rows=result.rows, row_count=result.row_count)


@router.post("/test", response_model=ConnectionTestResponse)
async def test_connection(request: Request):
    """Run a trivial query against the tenant's configured database."""
    adapter = request.app.state.adapter
    outcome = await adapter.test_connection(request.state.tenant_id)
    return ConnectionTestResponse(success=outcome.success, message=outcome.message)


@router.put("/config", response_model=DatabaseConfigResponse)
async def put_config(request: Request, body: DatabaseConfigRequest):
    """Store the tenant's database secret and drop its cached resolution."""
    tenant_id = request.state.tenant_id
    blob = body.model_dump(by_alias=True, exclude_none=True)
    try:
        db_config = parse_database_secret(blob, tenant_id=tenant_id)
    except ConfigurationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    await request.app.state.secret_store.put_secret(
        tenant_secret_name(tenant_id),
        db_config.model_dump(by_alias=True),
    )
    request.app.state.resolver.invalidate(tenant_id)
    logger.info("[api] Stored %s database config for tenant %s", db_config.provider, tenant_id)
    return DatabaseConfigResponse(provider=db_config.provider, status="stored")


@router.post("/ingest", response_model=IngestResponse)
async def ingest(request: Request, body: Optional[IngestRequest] = None):
    """Copy table rows into the tenant's knowledge-base namespace."""
    stats = await ingest_tenant_tables(
        request.app.state.adapter,
        request.app.state.knowledge_store,
        request.state.tenant_id,
        limit_per_table=body.limit_per_table if body else None,
        default_limit=request.app.state.config.default_ingest_rows,
    )
    return IngestResponse(tenant_id=stats.tenant_id, tables=stats.tables, failed_tables=stats.failed_tables)
