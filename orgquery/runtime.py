"""Wires the retrieval stack from configuration.

Shared by the API lifespan and the CLI commands so both run the same
components: secret store → resolver → adapter → knowledge store → orchestrator.
"""

import logging
from dataclasses import dataclass

from orgquery.config import OrgQueryConfig
from orgquery.db.adapter import QueryAdapter
from orgquery.db.resolver import ConnectionResolver
from orgquery.db.serverless import ServerlessSqlClient
from orgquery.knowledge.store import KnowledgeStore
from orgquery.llm.client import LLMClient
from orgquery.retrieval.interpreter import KnowledgeInterpreter
from orgquery.retrieval.orchestrator import RetrievalOrchestrator
from orgquery.secrets.store import SecretStore, build_secret_store

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(cfg: OrgQueryConfig) -> None:
    level = "DEBUG" if cfg.debug else cfg.log_level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)


@dataclass
class Runtime:
    config: OrgQueryConfig
    secret_store: SecretStore
    resolver: ConnectionResolver
    adapter: QueryAdapter
    knowledge_store: KnowledgeStore
    orchestrator: RetrievalOrchestrator


def build_runtime(cfg: OrgQueryConfig) -> Runtime:
    """Construct every long-lived component once."""
    secret_store = build_secret_store(cfg)
    resolver = ConnectionResolver(secret_store, ttl_seconds=cfg.config_cache_ttl_seconds)

    def serverless_factory(connection_string: str) -> ServerlessSqlClient:
        return ServerlessSqlClient(
            connection_string,
            timeout=cfg.serverless_http_timeout,
            endpoint=cfg.serverless_sql_endpoint,
        )

    adapter = QueryAdapter(
        resolver,
        default_connection_string=cfg.database_url,
        allow_default_on_invalid=cfg.allow_default_on_invalid,
        serverless_factory=serverless_factory,
        default_preview_rows=cfg.default_preview_rows,
        max_preview_rows=cfg.max_preview_rows,
    )
    knowledge_store = KnowledgeStore(persist_dir=cfg.chroma_persist_dir)
    interpreter = KnowledgeInterpreter(
        LLMClient(model=cfg.interpreter_model, timeout=cfg.llm_timeout_seconds),
    )
    orchestrator = RetrievalOrchestrator(
        adapter,
        knowledge_store,
        interpreter=interpreter,
        branch_timeout=cfg.branch_timeout_seconds,
        kb_limit=cfg.kb_search_limit,
        global_namespace=cfg.global_namespace,
        max_page_size=cfg.max_page_size,
    )
    logger.info(
        "[Runtime] secret_backend=%s default_connection=%s",
        cfg.secret_backend, "set" if cfg.database_url else "unset",
    )
    return Runtime(
        config=cfg,
        secret_store=secret_store,
        resolver=resolver,
        adapter=adapter,
        knowledge_store=knowledge_store,
        orchestrator=orchestrator,
    )
