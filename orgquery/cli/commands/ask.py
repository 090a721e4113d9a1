"""orgquery ask — Run one retrieval from the command line."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel

console = Console()

_SOURCE_COLOR = {
    "database": "green",
    "knowledge_base": "cyan",
    "none": "yellow",
}


def ask_question(
    tenant: str = typer.Argument(..., help="Tenant (organization) id"),
    question: str = typer.Argument(..., help="Natural-language question"),
    page: int = typer.Option(1, min=1, help="Result page"),
    page_size: Optional[int] = typer.Option(None, min=1, help="Rows per page"),
    user_id: Optional[str] = typer.Option(None, "--user", help="User id for ticket/order lookups"),
):
    """Answer QUESTION for TENANT: database first, knowledge base as fallback.

    Example:
        orgquery ask org_A "who are the doctors on staff?"
    """
    from orgquery.config import OrgQueryConfig
    from orgquery.runtime import build_runtime, configure_logging
    from orgquery.types import RetrievalQuestion

    cfg = OrgQueryConfig()
    configure_logging(cfg)
    runtime = build_runtime(cfg)

    request = RetrievalQuestion(
        tenant_id=tenant,
        text=question,
        page=page,
        page_size=page_size or cfg.default_page_size,
        user_id=user_id,
    )
    with console.status("[dim]Searching...[/dim]"):
        answer = asyncio.run(runtime.orchestrator.answer(request))

    color = _SOURCE_COLOR.get(answer.source.value, "white")
    console.print()
    console.print(Panel(
        Markdown(answer.summary),
        title=f"[bold {color}]{answer.source.value}[/bold {color}]",
        subtitle=f"[dim]intent={answer.metadata.intent.value} rows={answer.metadata.row_count}[/dim]",
        border_style=color,
    ))
