"""orgquery config — Show resolved orgquery configuration."""

from rich.console import Console
from rich.table import Table
from rich import box

console = Console()


def config_show():
    """Show the resolved orgquery configuration.

    Reads from environment variables and .env file.
    Sensitive values (connection strings, encryption key) are masked.

    Example:
        orgquery config
    """
    from orgquery.config import OrgQueryConfig
    cfg = OrgQueryConfig()

    def mask(val: str) -> str:
        s = str(val)
        if len(s) <= 8:
            return "***"
        return s[:4] + "…" + "***"

    sensitive = {"database_url", "secret_encryption_key"}

    table = Table(
        box=box.ROUNDED,
        header_style="bold dim",
        show_lines=False,
        title="[bold]orgquery Configuration[/bold]",
    )
    table.add_column("Key", style="cyan", width=30)
    table.add_column("Value", width=45)
    table.add_column("Env Var", style="dim", width=38)

    sections = [
        ("App", ["debug", "log_level"]),
        ("Default Connection", ["database_url", "allow_default_on_invalid"]),
        ("Secrets", ["secret_backend", "secret_encryption_key", "secrets_region", "config_cache_ttl_seconds"]),
        ("Serverless SQL", ["serverless_http_timeout", "serverless_sql_endpoint"]),
        ("Retrieval", ["branch_timeout_seconds", "kb_search_limit", "global_namespace",
                       "default_page_size", "max_page_size"]),
        ("Limits", ["default_preview_rows", "max_preview_rows", "default_ingest_rows"]),
        ("LLM", ["interpreter_model", "llm_max_tokens", "llm_temperature", "llm_timeout_seconds"]),
        ("Knowledge Base", ["chroma_persist_dir"]),
        ("Server", ["host", "port"]),
    ]

    first = True
    for section_name, fields in sections:
        if not first:
            table.add_row("", "", "")
        first = False
        table.add_row(f"[bold dim]── {section_name} ──[/bold dim]", "", "")
        for attr in fields:
            val = getattr(cfg, attr, None)
            if val is None or val == "":
                display = "[dim](not set)[/dim]"
            elif attr in sensitive:
                display = mask(str(val))
            else:
                display = str(val)
            table.add_row(f"  {attr}", display, f"ORGQUERY_{attr.upper()}")

    console.print()
    console.print(table)
    console.print()
    console.print("[dim]Source: environment variables + .env file (prefix: ORGQUERY_)[/dim]")
