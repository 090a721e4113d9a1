"""All shared types, enums, and type aliases. Everything imports from here."""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


# ── Enums ──────────────────────────────────────────────────────────────

class Provider(str, Enum):
    SERVERLESS_SQL = "serverless_sql"     # HTTPS SQL endpoint, $1..$n placeholders
    REMOTE_DATA_API = "remote_data_api"   # managed data-API gateway, named typed params

class ResolutionStatus(str, Enum):
    CONFIGURED = "configured"
    MISSING = "missing"     # no secret stored for the tenant
    INVALID = "invalid"     # secret present but unusable
    UNAVAILABLE = "unavailable"  # secret store could not be read

class AnswerSource(str, Enum):
    DATABASE = "database"
    KNOWLEDGE_BASE = "knowledge_base"
    NONE = "none"

class QueryIntent(str, Enum):
    DOCTORS = "doctors"
    PATIENTS = "patients"
    APPOINTMENTS = "appointments"
    MEDICATIONS = "medications"
    LAB_RESULTS = "lab_results"
    MEDICAL_RECORDS = "medical_records"
    TICKETS = "tickets"
    ORDERS = "orders"
    SEARCH = "search"


# ── Tenant database configuration ──────────────────────────────────────

class ServerlessSqlConfig(BaseModel):
    """Tenant backend reached through the HTTP serverless SQL endpoint."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    provider: Literal["serverless_sql"] = "serverless_sql"
    connection_string: str = Field(alias="connectionString", min_length=1)

class RemoteDataApiConfig(BaseModel):
    """Tenant backend reached through the managed data-API gateway."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    provider: Literal["remote_data_api"] = "remote_data_api"
    resource_arn: str = Field(alias="resourceArn", min_length=1)
    secret_arn: str = Field(alias="secretArn", min_length=1)
    database: str = Field(min_length=1)
    region: str = Field(min_length=1)

DatabaseConfig = Annotated[
    Union[ServerlessSqlConfig, RemoteDataApiConfig],
    Field(discriminator="provider"),
]

class ConfigResolution(BaseModel):
    """Outcome of resolving a tenant's database configuration."""
    tenant_id: str
    status: ResolutionStatus
    config: Optional[DatabaseConfig] = None
    error: Optional[str] = None             # why the secret was rejected

    @property
    def configured(self) -> bool:
        return self.status == ResolutionStatus.CONFIGURED


# ── Query I/O ──────────────────────────────────────────────────────────

class QueryResult(BaseModel):
    rows: list[dict[str, Any]] = Field(default_factory=list)
    row_count: int = 0

    @classmethod
    def from_rows(cls, rows: list[dict[str, Any]]) -> "QueryResult":
        return cls(rows=rows, row_count=len(rows))

class ConnectionTestResult(BaseModel):
    success: bool
    message: str


# ── Retrieval ──────────────────────────────────────────────────────────

class RetrievalQuestion(BaseModel):
    tenant_id: str = Field(min_length=1)
    text: str = Field(min_length=1)
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1)  # clamped to max_page_size at dispatch
    user_id: Optional[str] = None             # enables the ticket/order fast paths

class AnswerMetadata(BaseModel):
    intent: QueryIntent
    row_count: int = 0

class RetrievalAnswer(BaseModel):
    source: AnswerSource
    summary: str
    records: list[dict[str, Any]] = Field(default_factory=list)
    metadata: AnswerMetadata


# ── Knowledge base ─────────────────────────────────────────────────────

class KnowledgeEntry(BaseModel):
    key: str
    title: Optional[str] = None
    text: str
    score: float = 0.0

class KnowledgeSearchResult(BaseModel):
    namespace: str
    text: str = ""                            # entries joined with blank lines
    entries: list[KnowledgeEntry] = Field(default_factory=list)

class IngestStats(BaseModel):
    tenant_id: str
    tables: dict[str, int] = Field(default_factory=dict)   # table → rows newly added
    failed_tables: list[str] = Field(default_factory=list)
