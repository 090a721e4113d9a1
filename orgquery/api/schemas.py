"""Pydantic models for API request/response. Mirrors types.py for API I/O."""

from pydantic import BaseModel, Field
from typing import Any, Optional


# ── Requests ──

class RetrieveRequest(BaseModel):
    question: str = Field(..., min_length=1, max_length=4000)  # "who are the doctors on staff?"
    page: int = Field(default=1, ge=1)
    page_size: Optional[int] = Field(default=None, ge=1)      # None → ORGQUERY_DEFAULT_PAGE_SIZE
    user_id: Optional[str] = None


class DatabaseConfigRequest(BaseModel):
    """Raw secret blob. Validated by the same parser the resolver uses."""
    provider: str
    connection_string: Optional[str] = Field(default=None, alias="connectionString")
    resource_arn: Optional[str] = Field(default=None, alias="resourceArn")
    secret_arn: Optional[str] = Field(default=None, alias="secretArn")
    database: Optional[str] = None
    region: Optional[str] = None

    model_config = {"populate_by_name": True}


class IngestRequest(BaseModel):
    limit_per_table: Optional[int] = Field(default=None, ge=1, le=200)


# ── Responses ──

class RetrieveResponse(BaseModel):
    source: str                         # AnswerSource value
    summary: str
    records: list[dict[str, Any]]
    intent: str
    row_count: int

class TablesResponse(BaseModel):
    tables: list[str]

class PreviewResponse(BaseModel):
    table: str
    rows: list[dict[str, Any]]
    row_count: int

class ConnectionTestResponse(BaseModel):
    success: bool
    message: str

class DatabaseConfigResponse(BaseModel):
    provider: str
    status: str

class IngestResponse(BaseModel):
    tenant_id: str
    tables: dict[str, int]
    failed_tables: list[str]

class HealthResponse(BaseModel):
    status: str                         # "ok" | "degraded"
    version: str
    services: dict[str, bool]
