"""Bulk ingestion: copy a tenant's table rows into its knowledge-base namespace."""

import logging
from typing import Any, Optional

from orgquery.db.adapter import QueryAdapter, validate_identifier
from orgquery.knowledge.store import KnowledgeStore
from orgquery.types import IngestStats

logger = logging.getLogger(__name__)

EXCLUDED_TABLES = frozenset({"_prisma_migrations"})
DEFAULT_ROWS_PER_TABLE = 100
MAX_ROWS_PER_TABLE = 200


def row_to_text(table: str, row: dict[str, Any]) -> str:
    lines = [f"{key}: {row[key]}" for key in sorted(row)]
    return f"Table: {table}\n" + "\n".join(lines)


async def ingest_tenant_tables(
    adapter: QueryAdapter,
    store: KnowledgeStore,
    tenant_id: str,
    limit_per_table: Optional[int] = None,
    default_limit: int = DEFAULT_ROWS_PER_TABLE,
) -> IngestStats:
    """Index up to *limit_per_table* rows of every base table for *tenant_id*.

    *default_limit* applies when *limit_per_table* is unset or not positive.
    Rows land in the tenant's namespace keyed ``{table}:{id}`` (the row index
    when ``id`` is absent or NULL). Unchanged rows are not re-added. A table
    that fails is logged and recorded in ``failed_tables``; the rest continue.

    Raises:
        OrgQueryError: the table listing itself failed.
    """
    limit = limit_per_table if limit_per_table and limit_per_table > 0 else default_limit
    limit = min(limit, MAX_ROWS_PER_TABLE)
    stats = IngestStats(tenant_id=tenant_id)

    tables = [t for t in await adapter.list_tables(tenant_id) if t not in EXCLUDED_TABLES]
    logger.info("[Ingest] tenant=%s tables=%d limit=%d", tenant_id, len(tables), limit)

    for table in tables:
        try:
            validate_identifier(table)
            result = await adapter.execute(tenant_id, f"SELECT * FROM {table} LIMIT $1", [limit])
            added = 0
            for index, row in enumerate(result.rows[:limit]):
                ref = str(row["id"]) if row.get("id") is not None else str(index)
                created = await store.add(
                    namespace=tenant_id,
                    key=f"{table}:{ref}",
                    title=f"{table} {ref}",
                    text=row_to_text(table, row),
                    metadata={"table": table, "tenant_id": tenant_id},
                )
                if created:
                    added += 1
            stats.tables[table] = added
        except Exception as exc:
            logger.error("[Ingest] Ingestion failed for table %s (tenant %s): %s", table, tenant_id, exc)
            stats.failed_tables.append(table)

    return stats
