"""orgquery serve — Start the HTTP API."""

from typing import Optional

import typer
from rich.console import Console

console = Console()


def serve_api(
    host: Optional[str] = typer.Option(None, help="Host to bind to (default ORGQUERY_HOST)"),
    port: Optional[int] = typer.Option(None, help="Port to listen on (default ORGQUERY_PORT)"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """Start the orgquery API server."""
    import uvicorn
    from orgquery.config import config

    host = host or config.host
    port = port or config.port
    console.print(f"[green]Starting orgquery API on {host}:{port}[/green]")
    uvicorn.run("orgquery.api.main:app", host=host, port=port, reload=reload)
