"""Parameterized record queries used by the retrieval orchestrator.

Every statement runs through :meth:`QueryAdapter.execute` for one tenant.
Ticket, order and cross-entity queries also filter on ``organization_id`` for
databases shared across tenants.
"""

from typing import Any, Optional

from orgquery.db.adapter import QueryAdapter, to_json_safe, validate_identifier
from orgquery.types import QueryIntent, QueryResult

# Intents answered by paging straight through one table.
ENTITY_TABLES: dict[QueryIntent, str] = {
    QueryIntent.DOCTORS: "doctors",
    QueryIntent.PATIENTS: "patients",
    QueryIntent.APPOINTMENTS: "appointments",
    QueryIntent.MEDICATIONS: "medications",
    QueryIntent.LAB_RESULTS: "lab_results",
    QueryIntent.MEDICAL_RECORDS: "medical_records",
}

DEFAULT_SEARCH_LIMIT = 50
MAX_SEARCH_LIMIT = 100

USER_TICKETS_SQL = """
    SELECT id, user_id, organization_id, title, description, status, priority,
           created_at, updated_at, resolved_at
    FROM tickets
    WHERE user_id = $1 AND organization_id = $2
    ORDER BY created_at DESC
    LIMIT 50
"""

USER_ORDERS_SQL = """
    SELECT id, user_id, organization_id, order_number, status,
           total_amount, currency, created_at, updated_at
    FROM orders
    WHERE user_id = $1 AND organization_id = $2
    ORDER BY created_at DESC
    LIMIT 50
"""

SEARCH_RECORDS_SQL = """
    SELECT 'ticket' AS record_type, t.id, t.user_id, t.organization_id,
           t.title, t.description, t.status, t.priority,
           t.created_at, t.updated_at, t.resolved_at
    FROM tickets t
    WHERE t.organization_id = $1
      AND (LOWER(t.title) LIKE $2 OR LOWER(t.description) LIKE $2)

    UNION ALL

    SELECT 'order' AS record_type, o.id, o.user_id, o.organization_id,
           o.order_number AS title, NULL AS description, o.status, NULL AS priority,
           o.created_at, o.updated_at, NULL AS resolved_at
    FROM orders o
    WHERE o.organization_id = $1
      AND LOWER(o.order_number) LIKE $2

    UNION ALL

    SELECT 'customer' AS record_type, c.id, NULL AS user_id, c.organization_id,
           c.name AS title, c.email AS description, NULL AS status, NULL AS priority,
           c.created_at, c.updated_at, NULL AS resolved_at
    FROM customers c
    WHERE c.organization_id = $1
      AND (LOWER(c.name) LIKE $2 OR LOWER(c.email) LIKE $2)

    ORDER BY created_at DESC
    LIMIT $3 OFFSET $4
"""


def _as_str(value: Any, default: str = "") -> str:
    return default if value is None else str(value)


def _as_float(value: Any) -> float:
    try:
        return float(value if value is not None else 0)
    except (TypeError, ValueError):
        return 0.0


def normalize_ticket(row: dict[str, Any]) -> dict[str, Any]:
    row = to_json_safe(row)
    return {
        "id": _as_str(row.get("id")),
        "user_id": _as_str(row.get("user_id")),
        "organization_id": _as_str(row.get("organization_id")),
        "title": _as_str(row.get("title")),
        "description": _as_str(row.get("description")),
        "status": row.get("status"),
        "priority": row.get("priority"),
        "created_at": row.get("created_at"),
        "updated_at": row.get("updated_at"),
        "resolved_at": row.get("resolved_at") or None,
    }


def normalize_order(row: dict[str, Any]) -> dict[str, Any]:
    row = to_json_safe(row)
    return {
        "id": _as_str(row.get("id")),
        "user_id": _as_str(row.get("user_id")),
        "organization_id": _as_str(row.get("organization_id")),
        "order_number": _as_str(row.get("order_number")),
        "status": row.get("status"),
        "total_amount": _as_float(row.get("total_amount")),
        "currency": _as_str(row.get("currency")),
        "created_at": row.get("created_at"),
        "updated_at": row.get("updated_at"),
    }


async def query_table(
    adapter: QueryAdapter,
    tenant_id: str,
    table_name: str,
    limit: int,
    offset: int = 0,
) -> QueryResult:
    """Page through *table_name* ordered by its first column."""
    validate_identifier(table_name)
    sql = f"SELECT * FROM {table_name} ORDER BY 1 LIMIT $1 OFFSET $2"
    return await adapter.execute(tenant_id, sql, [limit, offset])


async def query_user_tickets(adapter: QueryAdapter, tenant_id: str, user_id: str) -> QueryResult:
    result = await adapter.execute(tenant_id, USER_TICKETS_SQL, [user_id, tenant_id])
    return QueryResult(rows=[normalize_ticket(r) for r in result.rows], row_count=result.row_count)


async def query_user_orders(adapter: QueryAdapter, tenant_id: str, user_id: str) -> QueryResult:
    result = await adapter.execute(tenant_id, USER_ORDERS_SQL, [user_id, tenant_id])
    return QueryResult(rows=[normalize_order(r) for r in result.rows], row_count=result.row_count)


async def search_records(
    adapter: QueryAdapter,
    tenant_id: str,
    search_term: str,
    limit: Optional[int] = None,
    offset: int = 0,
) -> QueryResult:
    """Case-insensitive substring search across tickets, orders and customers.

    Each row carries a ``record_type`` discriminator.
    """
    limit = min(limit if limit is not None else DEFAULT_SEARCH_LIMIT, MAX_SEARCH_LIMIT)
    term = f"%{search_term.lower()}%"
    return await adapter.execute(tenant_id, SEARCH_RECORDS_SQL, [tenant_id, term, limit, offset])
