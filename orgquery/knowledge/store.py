"""Namespace-scoped knowledge base search backed by ChromaDB.

Each tenant's entries live in their own collection, named after the
namespace (the tenant id, or the shared ``global`` namespace). This module
only stores and searches text; embeddings come from ChromaDB's configured
embedding function or an injected ``embedding_fn``.
"""

import hashlib
import logging
import re
from typing import Any, Callable, Optional

from orgquery.types import KnowledgeEntry, KnowledgeSearchResult

logger = logging.getLogger(__name__)

_COLLECTION_PREFIX = "kb_"
_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")


def collection_name(namespace: str) -> str:
    """ChromaDB requires 3-63 chars of ``[A-Za-z0-9_-]`` ending alphanumeric."""
    name = f"{_COLLECTION_PREFIX}{_UNSAFE.sub('_', namespace)}"[:63]
    return name.rstrip("_-") or "kb"


def content_hash(text: str) -> str:
    return hashlib.sha256(text.encode()).hexdigest()


class KnowledgeStore:
    """Namespace-scoped vector store used as the knowledge-base collaborator."""

    def __init__(self, persist_dir: str, embedding_fn: Callable = None):
        """
        Args:
            persist_dir: ChromaDB persistence directory
            embedding_fn: Callable that takes list[str] -> list[list[float]].
                          When omitted ChromaDB's default function is used.
        """
        self.persist_dir = persist_dir
        self.embedding_fn = embedding_fn
        self._client = None  # lazy load ChromaDB client

    def _get_client(self):
        """Lazy-load ChromaDB client."""
        if self._client is None:
            import chromadb
            self._client = chromadb.PersistentClient(path=self.persist_dir)
        return self._client

    def _get_collection(self, namespace: str):
        return self._get_client().get_or_create_collection(
            name=collection_name(namespace),
            metadata={"hnsw:space": "cosine"},
        )

    async def add(
        self,
        namespace: str,
        key: str,
        text: str,
        title: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> bool:
        """Upsert one entry under *key*.

        Returns:
            ``True`` if the entry was created or its content changed,
            ``False`` if an identical entry already existed.
        """
        collection = self._get_collection(namespace)
        digest = content_hash(text)

        existing = collection.get(ids=[key], include=["metadatas"])
        existing_metas = existing.get("metadatas") or []
        if existing_metas and (existing_metas[0] or {}).get("content_hash") == digest:
            return False

        meta: dict[str, Any] = {
            # ChromaDB metadata values must be scalars
            k: v for k, v in (metadata or {}).items()
            if isinstance(v, (str, int, float, bool))
        }
        meta.update({"key": key, "title": title or key, "content_hash": digest})

        kwargs: dict[str, Any] = {"ids": [key], "documents": [text], "metadatas": [meta]}
        if self.embedding_fn is not None:
            kwargs["embeddings"] = self.embedding_fn([text])
        collection.upsert(**kwargs)
        return True

    async def search(self, namespace: str, query: str, limit: int = 5) -> KnowledgeSearchResult:
        """Semantic search within *namespace*.

        Returns an empty result (``text == ""``) when the namespace has no
        entries or cannot be read.
        """
        empty = KnowledgeSearchResult(namespace=namespace)
        try:
            collection = self._get_collection(namespace)
            count = collection.count()
        except Exception as exc:
            logger.warning("[KnowledgeStore] Namespace %s unavailable: %s", namespace, exc)
            return empty
        if count == 0:
            return empty

        query_kwargs: dict[str, Any] = {
            "n_results": min(limit, count),
            "include": ["documents", "metadatas", "distances"],
        }
        if self.embedding_fn is not None:
            query_kwargs["query_embeddings"] = [self.embedding_fn([query])[0]]
        else:
            query_kwargs["query_texts"] = [query]

        try:
            results = collection.query(**query_kwargs)
        except Exception as exc:
            logger.warning("[KnowledgeStore] Search failed in namespace %s: %s", namespace, exc)
            return empty

        ids = (results.get("ids") or [[]])[0] or []
        docs = (results.get("documents") or [[]])[0] or []
        metas = (results.get("metadatas") or [[]])[0] or []
        dists = (results.get("distances") or [[]])[0] or []

        entries = []
        for entry_id, doc_text, meta, dist in zip(ids, docs, metas, dists):
            meta = meta or {}
            # Cosine distance → similarity: dist is in [0,2], similarity = 1 - dist (clamped)
            entries.append(KnowledgeEntry(
                key=meta.get("key", entry_id),
                title=meta.get("title"),
                text=doc_text or "",
                score=max(0.0, min(1.0, 1.0 - dist)),
            ))

        text = "\n\n".join(e.text for e in entries if e.text.strip())
        return KnowledgeSearchResult(namespace=namespace, text=text, entries=entries)

    async def delete(self, namespace: str, key: str) -> None:
        self._get_collection(namespace).delete(ids=[key])

    def list_namespaces(self) -> list[str]:
        """Namespaces that currently have a collection."""
        try:
            collections = self._get_client().list_collections()
        except Exception as exc:
            logger.warning("[KnowledgeStore] Could not list collections: %s", exc)
            return []
        namespaces = []
        for col in collections:
            # col may be a Collection object or a string depending on chromadb version
            name = col.name if hasattr(col, "name") else str(col)
            if name.startswith(_COLLECTION_PREFIX):
                namespaces.append(name[len(_COLLECTION_PREFIX):])
        return namespaces
