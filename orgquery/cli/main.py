"""orgquery CLI — Typer application."""

import typer
from rich.console import Console

from orgquery.version import __version__

app = typer.Typer(
    name="orgquery",
    help="orgquery — tenant database retrieval with knowledge-base fallback.",
    no_args_is_help=True,
    invoke_without_command=True,
)
console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", "-v", is_eager=True, help="Show version"),
):
    """orgquery CLI."""
    if version:
        console.print(f"orgquery v{__version__}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


# ── Retrieval ──────────────────────────────────────────────────────────────────
from orgquery.cli.commands import ask  # noqa: E402

app.command(name="ask", help="Answer a question from a tenant's database or knowledge base")(ask.ask_question)

# ── Tenant database ────────────────────────────────────────────────────────────
from orgquery.cli.commands import database  # noqa: E402

app.command(name="tables", help="List a tenant's base tables")(database.tables_list)
app.command(name="preview", help="Show the first rows of a tenant table")(database.table_preview)
app.command(name="test", help="Test a tenant's database connection")(database.connection_test)

# ── Operations ─────────────────────────────────────────────────────────────────
from orgquery.cli.commands import config, serve  # noqa: E402

app.command(name="config", help="Show resolved configuration")(config.config_show)
app.command(name="serve", help="Run the HTTP API")(serve.serve_api)


if __name__ == "__main__":
    app()
