"""orgquery tables / preview / test — Inspect a tenant's database."""

import asyncio
import json
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table
from rich import box

from orgquery.exceptions import OrgQueryError

console = Console()


def _adapter():
    from orgquery.config import OrgQueryConfig
    from orgquery.runtime import build_runtime, configure_logging

    cfg = OrgQueryConfig()
    configure_logging(cfg)
    return build_runtime(cfg).adapter


def _cell(value) -> str:
    if value is None:
        return "[dim]null[/dim]"
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


def tables_list(tenant: str = typer.Argument(..., help="Tenant (organization) id")):
    """List base tables in TENANT's public schema.

    Example:
        orgquery tables org_A
    """
    try:
        tables = asyncio.run(_adapter().list_tables(tenant))
    except OrgQueryError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(1)

    if not tables:
        console.print("[yellow]No tables found.[/yellow]")
        return

    table = Table(box=box.ROUNDED, header_style="bold dim", title=f"[bold]{len(tables)} Tables[/bold]")
    table.add_column("Name", style="cyan")
    for name in tables:
        table.add_row(name)
    console.print()
    console.print(table)


def table_preview(
    tenant: str = typer.Argument(..., help="Tenant (organization) id"),
    table_name: str = typer.Argument(..., metavar="TABLE", help="Table to preview"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Rows to show (max 200)"),
):
    """Show the first rows of TABLE for TENANT.

    Example:
        orgquery preview org_A doctors --limit 5
    """
    try:
        result = asyncio.run(_adapter().preview_table(tenant, table_name, limit))
    except OrgQueryError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(1)

    if not result.rows:
        console.print(f"[yellow]{table_name} is empty.[/yellow]")
        return

    columns = list(result.rows[0].keys())
    table = Table(
        box=box.ROUNDED,
        header_style="bold dim",
        title=f"[bold]{table_name}[/bold] [dim]({result.row_count} rows)[/dim]",
    )
    for column in columns:
        table.add_column(column, overflow="fold")
    for row in result.rows:
        table.add_row(*(_cell(row.get(column)) for column in columns))
    console.print()
    console.print(table)


def connection_test(tenant: str = typer.Argument(..., help="Tenant (organization) id")):
    """Run SELECT 1 against TENANT's configured database.

    Example:
        orgquery test org_A
    """
    outcome = asyncio.run(_adapter().test_connection(tenant))
    if outcome.success:
        console.print(f"[green]✓[/green] {outcome.message}")
    else:
        console.print(f"[red]✗[/red] {outcome.message}")
        raise typer.Exit(1)
