"""Application configuration. All env vars defined here with defaults."""

from pydantic_settings import BaseSettings
from typing import Optional


class OrgQueryConfig(BaseSettings):
    # ── App ──
    app_name: str = "orgquery"
    debug: bool = False
    log_level: str = "INFO"

    # ── Default connection (used when a tenant has no database secret) ──
    database_url: Optional[str] = None         # serverless SQL connection string

    # ── Secrets ──
    secret_backend: str = "local"              # "local" (Fernet, in-process) or "aws"
    secret_encryption_key: str = ""            # Fernet key(s) for the local backend, comma-separated, newest first
    secrets_region: str = "us-east-1"          # AWS Secrets Manager region

    # ── Tenant config cache ──
    config_cache_ttl_seconds: float = 0        # 0 = keep for the life of the process
    allow_default_on_invalid: bool = True      # degrade to database_url when a secret is broken

    # ── Serverless SQL ──
    serverless_http_timeout: float = 30.0
    serverless_sql_endpoint: Optional[str] = None  # override https://api.<host>/sql

    # ── Retrieval ──
    branch_timeout_seconds: float = 15.0       # per dispatch branch
    kb_search_limit: int = 5
    global_namespace: str = "global"
    default_page_size: int = 20
    max_page_size: int = 100
    default_preview_rows: int = 20
    max_preview_rows: int = 200
    default_ingest_rows: int = 100

    # ── LLM (litellm) ──
    interpreter_model: str = "openai/gpt-4o-mini"
    llm_max_tokens: int = 1024
    llm_temperature: float = 0.1
    llm_timeout_seconds: float = 30.0

    # ── Knowledge base ──
    chroma_persist_dir: str = "./data/chroma"

    # ── Server ──
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = {"env_prefix": "ORGQUERY_", "env_file": ".env", "extra": "ignore"}


config = OrgQueryConfig()
