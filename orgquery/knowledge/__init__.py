from orgquery.knowledge.store import KnowledgeStore
from orgquery.knowledge.ingest import ingest_tenant_tables

__all__ = ["KnowledgeStore", "ingest_tenant_tables"]
