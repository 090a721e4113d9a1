"""Test fixtures: fake SQL backends, fake knowledge store, mock LLM, secret store.

All tests should use these fixtures for consistency. Nothing here touches the
network: backend clients are replaced through the adapter's factories.
"""

import re
from typing import Any

import pytest
from cryptography.fernet import Fernet

from orgquery.db.adapter import QueryAdapter
from orgquery.db.resolver import ConnectionResolver
from orgquery.exceptions import LLMError
from orgquery.secrets.store import EncryptedSecretStore, tenant_secret_name
from orgquery.types import KnowledgeEntry, KnowledgeSearchResult

CONN_A = "postgres://app:pw@ep-alpha-123.us-east-2.aws.example.tech/clinic"
CONN_DEFAULT = "postgres://app:pw@ep-shared-999.us-east-2.aws.example.tech/shared"
ARN_B = "arn:aws:rds:eu-west-1:123456789012:cluster:org-b"
SECRET_ARN_B = "arn:aws:secretsmanager:eu-west-1:123456789012:secret:org-b-db"

DOCTORS = [
    {"id": 1, "name": "Dr. Alice Rao", "specialty": "Cardiology"},
    {"id": 2, "name": "Dr. Ben Okafor", "specialty": "Pediatrics"},
    {"id": 3, "name": "Dr. Carla Diaz", "specialty": "Oncology"},
]


# ── Fake SQL backends ─────────────────────────────────────────────────────────

def table_rows_handler(databases: dict[str, dict[str, list[dict]]]):
    """Answer statements from in-memory tables keyed by backend.

    Understands the statements orgquery issues: the catalog listing,
    ``SELECT 1``, the cross-entity search (rows under ``_search``) and
    ``SELECT * FROM <table>`` with ``LIMIT $1 [OFFSET $2]``.
    """
    def handler(backend_key: str, sql: str, params: list) -> list[dict[str, Any]]:
        tables = databases.get(backend_key, {})
        if "information_schema.tables" in sql:
            return [{"table_name": name} for name in sorted(tables) if name != "_search"]
        if "SELECT 1 AS test" in sql:
            return [{"test": 1}]
        if "UNION ALL" in sql:
            return list(tables.get("_search", []))
        match = re.search(r"FROM (\w+)", sql)
        rows = list(tables.get(match.group(1), [])) if match else []
        if "LIMIT $1 OFFSET $2" in sql:
            return rows[params[1]:params[1] + params[0]]
        if "LIMIT $1" in sql:
            return rows[:params[0]]
        return rows
    return handler


class FakeSqlBackends:
    """Replaces both backend clients; records every statement per backend.

    Serverless clients are keyed by connection string and data-API calls by
    resource ARN. Set ``failures[key]`` to an exception to make that backend
    raise it.
    """

    def __init__(self, databases: dict[str, dict[str, list[dict]]]):
        self.databases = databases
        self.handler = table_rows_handler(databases)
        self.calls: list[tuple[str, str, list]] = []
        self.failures: dict[str, Exception] = {}
        self.serverless_built: list[str] = []
        self.data_api_built: list[str] = []

    async def _run(self, key: str, sql: str, params) -> list[dict[str, Any]]:
        self.calls.append((key, sql, list(params)))
        if key in self.failures:
            raise self.failures[key]
        return self.handler(key, sql, list(params))

    def serverless_factory(self, connection_string: str):
        self.serverless_built.append(connection_string)
        backends = self

        class _Client:
            async def query(self, sql, params=()):
                return await backends._run(connection_string, sql, params)

        return _Client()

    def data_api_factory(self, region: str):
        self.data_api_built.append(region)
        backends = self

        class _Client:
            async def query(self, db_config, sql, params=()):
                return await backends._run(db_config.resource_arn, sql, params)

        return _Client()

    def keys_called(self) -> list[str]:
        return [key for key, _, _ in self.calls]


# ── Fake knowledge store ──────────────────────────────────────────────────────

class FakeKnowledgeStore:
    """Namespace → list of (title, text); ``search`` returns every entry."""

    def __init__(self, entries: dict[str, list[tuple[str, str]]] | None = None):
        self.entries = entries or {}
        self.searched: list[str] = []
        self.added: list[dict] = []

    async def search(self, namespace: str, query: str, limit: int = 5) -> KnowledgeSearchResult:
        self.searched.append(namespace)
        items = self.entries.get(namespace, [])[:limit]
        entries = [KnowledgeEntry(key=f"{namespace}:{i}", title=title, text=text, score=0.9)
                   for i, (title, text) in enumerate(items)]
        return KnowledgeSearchResult(
            namespace=namespace,
            text="\n\n".join(e.text for e in entries),
            entries=entries,
        )

    async def add(self, namespace, key, text, title=None, metadata=None) -> bool:
        self.added.append({"namespace": namespace, "key": key, "text": text, "title": title})
        return True

    def _get_client(self):
        return self


# ── Mock LLM ──────────────────────────────────────────────────────────────────

class MockLLMClient:
    """Returns a fixed reply, or raises LLMError when ``fail`` is set."""

    def __init__(self, reply: str = "", fail: bool = False):
        self.reply = reply
        self.fail = fail
        self.calls: list[list[dict]] = []

    async def complete(self, messages, **kwargs) -> dict:
        self.calls.append(messages)
        if self.fail:
            raise LLMError("provider unavailable")
        return {"content": self.reply, "usage": {"input_tokens": 10, "output_tokens": 5}}


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def fernet_key() -> str:
    return Fernet.generate_key().decode()


@pytest.fixture
def secret_store(fernet_key):
    return EncryptedSecretStore(key=fernet_key)


@pytest.fixture
def resolver(secret_store):
    return ConnectionResolver(secret_store)


@pytest.fixture
def databases() -> dict[str, dict[str, list[dict]]]:
    return {
        CONN_A: {"doctors": list(DOCTORS), "patients": []},
        ARN_B: {"doctors": []},
        CONN_DEFAULT: {"doctors": [{"id": 99, "name": "Dr. Shared"}]},
    }


@pytest.fixture
def backends(databases):
    return FakeSqlBackends(databases)


@pytest.fixture
def make_adapter(resolver, backends):
    """Build a QueryAdapter over the fake backends; kwargs override defaults."""
    def _make(**kwargs) -> QueryAdapter:
        kwargs.setdefault("serverless_factory", backends.serverless_factory)
        kwargs.setdefault("data_api_factory", backends.data_api_factory)
        return QueryAdapter(resolver, **kwargs)
    return _make


@pytest.fixture
def adapter(make_adapter):
    """Adapter with no default connection."""
    return make_adapter()


async def configure_tenants(secret_store) -> None:
    """org_A → serverless SQL, org_B → remote data API."""
    await secret_store.put_secret(
        tenant_secret_name("org_A"),
        {"provider": "serverless_sql", "connectionString": CONN_A},
    )
    await secret_store.put_secret(
        tenant_secret_name("org_B"),
        {
            "provider": "remote_data_api",
            "resourceArn": ARN_B,
            "secretArn": SECRET_ARN_B,
            "database": "clinic",
            "region": "eu-west-1",
        },
    )
