"""Context retrieval from the evaluation-guideline collection.

Pattern: Protocol → Production impl (Chroma over its REST API) → defaults.

The pipeline treats retrieval as optional: when the collection is
unreachable or returns nothing, ``DEFAULT_CONTEXT`` is used instead so that
stage 2 always has grounding text.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import httpx
import structlog
from langchain_core.embeddings import Embeddings

from cv_evaluator.errors import ContextUnavailableError

logger = structlog.get_logger(__name__)


DEFAULT_CONTEXT: list[str] = [
    (
        "CV Evaluation Guidelines: assess technical skills against the role "
        "requirements, depth and relevance of professional experience, evidence "
        "of delivered results, and clarity of presentation. Years of experience "
        "matter less than demonstrated ownership of production systems."
    ),
    (
        "Project Evaluation Criteria: code quality (readable, structured, proper "
        "error handling and logging), architecture (separation of concerns, "
        "dependency injection, database design), functionality (working "
        "endpoints, input validation), and technical implementation (testing, "
        "containerization, documentation). Each area carries equal weight."
    ),
    (
        "Scoring Rubric: cv_match_rate 0.0-0.3 poor fit, 0.4-0.6 partial fit, "
        "0.7-0.8 strong fit, 0.9-1.0 exceptional fit. project_score 0-3 "
        "incomplete, 4-6 functional with gaps, 7-8 solid, 9-10 exceptional."
    ),
]


@runtime_checkable
class ContextRetriever(Protocol):
    """Contract for guideline lookup.

    ``query`` raises ``ContextUnavailableError`` when the backing store cannot
    be reached; callers substitute ``DEFAULT_CONTEXT``.
    """

    async def query(self, text: str, k: int) -> list[str]:
        ...

    async def add(self, doc_id: str, content: str, metadata: dict[str, Any] | None = None) -> None:
        ...


class ChromaContextRetriever:
    """Chroma collection accessed through its v2 REST API.

    Embeddings are computed client-side and sent with every insert and
    query, so the server needs no embedding function.

    Args:
        base_url: Chroma server URL (e.g. ``http://localhost:8000``).
        embeddings: LangChain embedding model (injected).
        collection: Collection name.
        tenant: Chroma tenant.
        database: Chroma database.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        embeddings: Embeddings,
        collection: str = "evaluation_guidelines",
        tenant: str = "default_tenant",
        database: str = "default_database",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._embeddings = embeddings
        self._collection_name = collection
        self._collection_id: str | None = None
        self._collections_path = f"/api/v2/tenants/{tenant}/databases/{database}/collections"
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    async def ensure_collection(self) -> str:
        """Look up the collection by name, creating it if missing. Returns its id."""
        if self._collection_id is not None:
            return self._collection_id

        try:
            resp = await self._client.get(self._collections_path)
            resp.raise_for_status()
            for collection in resp.json():
                if collection.get("name") == self._collection_name:
                    self._collection_id = collection["id"]
                    logger.info("chroma_collection_found", collection_id=self._collection_id)
                    return self._collection_id

            resp = await self._client.post(
                self._collections_path,
                json={
                    "name": self._collection_name,
                    "metadata": {"description": "Evaluation guidelines for CV and project evaluation"},
                    "get_or_create": True,
                },
            )
            resp.raise_for_status()
            self._collection_id = resp.json()["id"]
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as exc:
            raise ContextUnavailableError(f"chroma collection unavailable: {exc}") from exc

        logger.info("chroma_collection_created", collection_id=self._collection_id)
        return self._collection_id

    async def add(self, doc_id: str, content: str, metadata: dict[str, Any] | None = None) -> None:
        """Insert (or overwrite) one guideline document."""
        collection_id = await self.ensure_collection()
        try:
            [embedding] = await self._embeddings.aembed_documents([content])
            resp = await self._client.post(
                f"{self._collections_path}/{collection_id}/upsert",
                json={
                    "ids": [doc_id],
                    "documents": [content],
                    "metadatas": [metadata or {}],
                    "embeddings": [embedding],
                },
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise ContextUnavailableError(f"failed to add document {doc_id}: {exc}") from exc
        logger.info("chroma_document_added", doc_id=doc_id)

    async def query(self, text: str, k: int) -> list[str]:
        """Return up to ``k`` guideline passages, most similar first."""
        collection_id = await self.ensure_collection()
        try:
            query_embedding = await self._embeddings.aembed_query(text)
            resp = await self._client.post(
                f"{self._collections_path}/{collection_id}/query",
                json={
                    "query_embeddings": [query_embedding],
                    "n_results": k,
                    "include": ["documents", "distances"],
                },
            )
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPError as exc:
            raise ContextUnavailableError(f"chroma query failed: {exc}") from exc
        except Exception as exc:
            # Embedding provider errors surface here as arbitrary exceptions
            raise ContextUnavailableError(f"query embedding failed: {exc}") from exc

        return _first_result_documents(payload)


def _first_result_documents(payload: Any) -> list[str]:
    """Non-empty passages for the first query embedding of a query response."""
    documents = payload.get("documents") if isinstance(payload, dict) else None
    if not isinstance(documents, list | None):
        raise ContextUnavailableError(f"unexpected chroma query response: documents={documents!r}")
    first = (documents or [[]])[0] or []
    if not isinstance(first, list):
        raise ContextUnavailableError(f"unexpected chroma query response: documents[0]={first!r}")
    return [doc for doc in first if isinstance(doc, str) and doc]
