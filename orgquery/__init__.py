"""orgquery — tenant-scoped database retrieval with knowledge-base fallback.

Usage:
    from orgquery import RetrievalOrchestrator, RetrievalQuestion

    answer = await orchestrator.answer(
        RetrievalQuestion(tenant_id="org_A", text="who are the doctors")
    )
"""

from orgquery.types import (
    AnswerSource, QueryIntent, DatabaseConfig, ServerlessSqlConfig,
    RemoteDataApiConfig, ConfigResolution, ResolutionStatus, QueryResult,
    RetrievalQuestion, RetrievalAnswer, KnowledgeSearchResult,
)
from orgquery.exceptions import (
    OrgQueryError, ConfigurationError, UnsupportedProviderError,
    BackendConnectionError, QueryExecutionError, InvalidIdentifierError,
)
from orgquery.db.resolver import ConnectionResolver
from orgquery.db.adapter import QueryAdapter
from orgquery.retrieval.orchestrator import RetrievalOrchestrator
from orgquery.version import __version__

__all__ = [
    "AnswerSource", "QueryIntent", "DatabaseConfig", "ServerlessSqlConfig",
    "RemoteDataApiConfig", "ConfigResolution", "ResolutionStatus", "QueryResult",
    "RetrievalQuestion", "RetrievalAnswer", "KnowledgeSearchResult",
    "OrgQueryError", "ConfigurationError", "UnsupportedProviderError",
    "BackendConnectionError", "QueryExecutionError", "InvalidIdentifierError",
    "ConnectionResolver", "QueryAdapter", "RetrievalOrchestrator",
    "__version__",
]
