"""QueryAdapter — one call signature over every tenant backend.

``execute(tenant_id, sql, params)`` resolves the tenant's configuration and
dispatches on its provider:

* ``serverless_sql``  → :class:`ServerlessSqlClient`, memoized per connection string
* ``remote_data_api`` → :class:`RemoteDataApiClient`, memoized per region

Tenants without a usable configuration run against the single default
connection (``ORGQUERY_DATABASE_URL``) when the fallback policy allows it.
A secret store outage never falls back: it raises BackendConnectionError.
Statements always use ordinal ``$n`` placeholders; parameter values are never
logged.
"""

import base64
import logging
import re
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Callable, Optional, Sequence
from uuid import UUID

from orgquery.db.data_api import RemoteDataApiClient
from orgquery.db.resolver import ConnectionResolver
from orgquery.db.serverless import ServerlessSqlClient
from orgquery.exceptions import (
    BackendConnectionError,
    BackendError,
    ConfigurationError,
    InvalidIdentifierError,
    OrgQueryError,
    QueryExecutionError,
    UnsupportedProviderError,
)
from orgquery.types import (
    ConfigResolution,
    ConnectionTestResult,
    QueryResult,
    RemoteDataApiConfig,
    ResolutionStatus,
    ServerlessSqlConfig,
)

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"[A-Za-z0-9_]+")
_QUERY_PREVIEW_CHARS = 100

LIST_TABLES_SQL = """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = 'public'
      AND table_type = 'BASE TABLE'
    ORDER BY table_name
"""


def validate_identifier(name: str) -> str:
    """Return *name* if it is a safe bare identifier, else raise."""
    if not isinstance(name, str) or not _IDENTIFIER.fullmatch(name):
        raise InvalidIdentifierError(f"Invalid table name '{name}'", identifier=str(name))
    return name


def truncate_query(sql: str) -> str:
    """Collapse whitespace and keep the first 100 characters for logs and errors."""
    return " ".join(sql.split())[:_QUERY_PREVIEW_CHARS]


def to_json_safe(value: Any) -> Any:
    """Recursively convert row values into JSON-serializable primitives."""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode()
    if isinstance(value, dict):
        return {k: to_json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_safe(v) for v in value]
    return value


class QueryAdapter:
    """Executes parameterized SQL against whichever backend a tenant resolves to.

    Args:
        resolver: Tenant configuration source.
        default_connection_string: Shared serverless SQL connection used when a
            tenant has no usable configuration. ``None`` disables the fallback.
        allow_default_on_invalid: Degrade to the default connection when a
            tenant's secret exists but is broken. Tenants with no secret at
            all always degrade.
        serverless_factory: Builds a client for a connection string.
        data_api_factory: Builds a client for a region.
        default_preview_rows / max_preview_rows: ``preview_table`` limits.
    """

    def __init__(
        self,
        resolver: ConnectionResolver,
        default_connection_string: Optional[str] = None,
        *,
        allow_default_on_invalid: bool = True,
        serverless_factory: Optional[Callable[[str], ServerlessSqlClient]] = None,
        data_api_factory: Optional[Callable[[str], RemoteDataApiClient]] = None,
        default_preview_rows: int = 20,
        max_preview_rows: int = 200,
    ) -> None:
        self._resolver = resolver
        self._default_connection_string = default_connection_string
        self._allow_default_on_invalid = allow_default_on_invalid
        self._serverless_factory = serverless_factory or ServerlessSqlClient
        self._data_api_factory = data_api_factory or RemoteDataApiClient
        self.default_preview_rows = default_preview_rows
        self.max_preview_rows = max_preview_rows
        self._serverless_clients: dict[str, ServerlessSqlClient] = {}
        self._data_api_clients: dict[str, RemoteDataApiClient] = {}

    @property
    def resolver(self) -> ConnectionResolver:
        return self._resolver

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(
        self,
        tenant_id: str,
        sql: str,
        params: Sequence[Any] = (),
    ) -> QueryResult:
        """Run *sql* for *tenant_id* and return every row.

        Raises:
            ConfigurationError: no usable tenant config and no permitted default.
            BackendConnectionError: the backend could not be reached.
            QueryExecutionError: the backend rejected or failed the statement.
        """
        short = truncate_query(sql)
        resolution = await self._resolver.resolve(tenant_id)
        logger.info(
            "[QueryAdapter] tenant=%s backend=%s query=%r params=%d",
            tenant_id, self._backend_label(resolution), short, len(params),
        )

        try:
            rows = await self._dispatch(resolution, sql, params)
        except BackendError as exc:
            logger.error("[QueryAdapter] Query failed for tenant %s: %s (query=%r)", tenant_id, exc, short)
            raise type(exc)(
                f"Database query failed for tenant '{tenant_id}': {exc}",
                tenant_id=tenant_id,
                query=short,
            ) from exc
        except OrgQueryError:
            raise
        except Exception as exc:
            logger.error("[QueryAdapter] Unexpected error for tenant %s: %s (query=%r)", tenant_id, exc, short)
            raise QueryExecutionError(
                f"Database query failed for tenant '{tenant_id}': {exc}",
                tenant_id=tenant_id,
                query=short,
            ) from exc

        logger.debug("[QueryAdapter] tenant=%s returned %d row(s)", tenant_id, len(rows))
        return QueryResult.from_rows(rows)

    async def _dispatch(
        self,
        resolution: ConfigResolution,
        sql: str,
        params: Sequence[Any],
    ) -> list[dict[str, Any]]:
        if resolution.configured:
            match resolution.config:
                case ServerlessSqlConfig(connection_string=connection_string):
                    return await self._serverless(connection_string).query(sql, params)
                case RemoteDataApiConfig() as db_config:
                    return await self._data_api(db_config.region).query(db_config, sql, params)
                case other:
                    raise UnsupportedProviderError(
                        f"No executor for provider '{getattr(other, 'provider', other)}'",
                        tenant_id=resolution.tenant_id,
                    )

        if resolution.status == ResolutionStatus.UNAVAILABLE:
            # Possibly configured; never fall back to the shared default.
            raise BackendConnectionError(
                f"Secret store unavailable for tenant '{resolution.tenant_id}': {resolution.error}",
                tenant_id=resolution.tenant_id,
            )
        if resolution.status == ResolutionStatus.INVALID and not self._allow_default_on_invalid:
            raise ConfigurationError(
                f"Database configuration for tenant '{resolution.tenant_id}' is invalid: {resolution.error}",
                tenant_id=resolution.tenant_id,
            )
        if not self._default_connection_string:
            raise ConfigurationError(
                f"Tenant '{resolution.tenant_id}' has no database configuration "
                "and no default connection is set (ORGQUERY_DATABASE_URL)",
                tenant_id=resolution.tenant_id,
            )

        logger.warning(
            "[QueryAdapter] Tenant %s has no usable database config (%s); using the default connection",
            resolution.tenant_id, resolution.status.value,
        )
        return await self._serverless(self._default_connection_string).query(sql, params)

    def _serverless(self, connection_string: str) -> ServerlessSqlClient:
        client = self._serverless_clients.get(connection_string)
        if client is None:
            client = self._serverless_clients.setdefault(
                connection_string, self._serverless_factory(connection_string),
            )
        return client

    def _data_api(self, region: str) -> RemoteDataApiClient:
        client = self._data_api_clients.get(region)
        if client is None:
            client = self._data_api_clients.setdefault(region, self._data_api_factory(region))
        return client

    @staticmethod
    def _backend_label(resolution: ConfigResolution) -> str:
        if resolution.configured:
            return resolution.config.provider
        if resolution.status == ResolutionStatus.UNAVAILABLE:
            return "unavailable"
        return f"default({resolution.status.value})"

    # ------------------------------------------------------------------
    # Catalog helpers
    # ------------------------------------------------------------------

    async def list_tables(self, tenant_id: str) -> list[str]:
        """Base tables in the tenant's ``public`` schema, ordered by name."""
        result = await self.execute(tenant_id, LIST_TABLES_SQL, [])
        return [str(row["table_name"]) for row in result.rows if row.get("table_name")]

    async def preview_table(
        self,
        tenant_id: str,
        table_name: str,
        limit: Optional[int] = None,
    ) -> QueryResult:
        """First rows of *table_name*, JSON-safe.

        ``limit`` defaults to 20 and is clamped to 200.

        Raises:
            InvalidIdentifierError: *table_name* is not ``[A-Za-z0-9_]+``.
        """
        validate_identifier(table_name)
        limit = limit if limit and limit > 0 else self.default_preview_rows
        limit = min(limit, self.max_preview_rows)

        result = await self.execute(tenant_id, f"SELECT * FROM {table_name} ORDER BY 1 LIMIT $1", [limit])
        # Enforce the cap even if a backend ignores LIMIT.
        rows = [to_json_safe(row) for row in result.rows[:limit]]
        return QueryResult.from_rows(rows)

    async def test_connection(self, tenant_id: str) -> ConnectionTestResult:
        """Run ``SELECT 1`` against the tenant's own backend. Never raises."""
        resolution = await self._resolver.resolve(tenant_id)
        if resolution.status == ResolutionStatus.MISSING:
            return ConnectionTestResult(
                success=False,
                message="No database connection configured for this organization.",
            )
        if resolution.status == ResolutionStatus.INVALID:
            return ConnectionTestResult(
                success=False,
                message=f"Database configuration is invalid: {resolution.error}",
            )
        if resolution.status == ResolutionStatus.UNAVAILABLE:
            return ConnectionTestResult(
                success=False,
                message=f"Could not read the database configuration: {resolution.error}",
            )

        try:
            result = await self.execute(tenant_id, "SELECT 1 AS test", [])
        except OrgQueryError as exc:
            return ConnectionTestResult(success=False, message=f"Connection failed: {exc}")

        if result.row_count > 0:
            return ConnectionTestResult(success=True, message="Successfully connected to the configured database.")
        return ConnectionTestResult(success=False, message="Connected, but test query returned no rows.")
