"""Human-readable summaries of retrieval results."""

import json
from typing import Any

from orgquery.llm.prompts import KB_CONTEXT, NO_RESULTS
from orgquery.types import KnowledgeSearchResult, QueryIntent, QueryResult

MAX_LISTED_ROWS = 20
MAX_FAST_PATH_ROWS = 5

ENTITY_LABELS: dict[QueryIntent, str] = {
    QueryIntent.DOCTORS: "Doctor",
    QueryIntent.PATIENTS: "Patient",
    QueryIntent.APPOINTMENTS: "Appointment",
    QueryIntent.MEDICATIONS: "Medication",
    QueryIntent.LAB_RESULTS: "Lab Result",
    QueryIntent.MEDICAL_RECORDS: "Medical Record",
}


def format_value(value: Any) -> str:
    if value is None:
        return "N/A"
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    if isinstance(value, dict):
        try:
            return json.dumps(value, default=str)
        except (TypeError, ValueError):
            return str(value)
    return str(value)


def title_case_key(key: str) -> str:
    """``lab_result_id`` → ``Lab Result Id``."""
    return " ".join(part[:1].upper() + part[1:] for part in key.split("_"))


def format_structured_records(
    entity_label: str,
    rows: list[dict[str, Any]],
    max_items: int = MAX_LISTED_ROWS,
) -> str:
    """Numbered key/value blocks for the first *max_items* rows."""
    if not rows:
        return f"No {entity_label.lower()} records found in the database."

    sections = []
    for index, row in enumerate(rows[:max_items], start=1):
        lines = [f"- **{title_case_key(key)}:** {format_value(value)}" for key, value in row.items()]
        sections.append(f"{index}. **{entity_label} {index}**\n" + "\n".join(lines))

    summary = (
        f"Found {len(rows)} {entity_label.lower()} record(s) in the database (up to the current limit)."
        "\n\n" + "\n\n".join(sections)
    )
    if len(rows) > max_items:
        summary += f"\n\n(Showing first {max_items} of {len(rows)} record(s).)"
    return summary


def format_tickets(result: QueryResult) -> str:
    lines = [
        f"#{t.get('id')}: {t.get('title')} ({t.get('status')})"
        for t in result.rows[:MAX_FAST_PATH_ROWS]
    ]
    return f"Found {result.row_count} ticket(s) in the database. Recent tickets:\n" + "\n".join(lines)


def format_orders(result: QueryResult) -> str:
    lines = [
        f"{o.get('order_number')}: {o.get('status')} - {o.get('total_amount')} {o.get('currency')}"
        for o in result.rows[:MAX_FAST_PATH_ROWS]
    ]
    return f"Found {result.row_count} order(s) in the database. Recent orders:\n" + "\n".join(lines)


def format_search_rows(result: QueryResult) -> str:
    """``type: title`` per row for cross-entity search results."""
    lines = []
    for row in result.rows[:MAX_FAST_PATH_ROWS]:
        title = row.get("title")
        lines.append(f"{row.get('record_type')}: {title if title is not None else row.get('id')}")
    return f"Found {result.row_count} record(s) in the database. Sample:\n" + "\n".join(lines)


def format_database_answer(intent: QueryIntent, result: QueryResult) -> str:
    """Summary text for a non-empty database result."""
    if intent in ENTITY_LABELS:
        return format_structured_records(ENTITY_LABELS[intent], result.rows)
    if intent == QueryIntent.TICKETS and _is_ticket_rows(result):
        return format_tickets(result)
    if intent == QueryIntent.ORDERS and _is_order_rows(result):
        return format_orders(result)
    if result.rows and "record_type" in result.rows[0]:
        return format_search_rows(result)
    return format_structured_records("Record", result.rows)


def _is_ticket_rows(result: QueryResult) -> bool:
    return bool(result.rows) and "record_type" not in result.rows[0] and "title" in result.rows[0]


def _is_order_rows(result: QueryResult) -> bool:
    return bool(result.rows) and "record_type" not in result.rows[0] and "order_number" in result.rows[0]


def format_kb_context(result: KnowledgeSearchResult) -> str:
    """Retrieved text prefixed with the titles of its source entries."""
    titles = ", ".join(e.title for e in result.entries if e.title)
    return KB_CONTEXT.format(titles=titles or "the knowledge base", text=result.text)


def no_results_message() -> str:
    return NO_RESULTS
