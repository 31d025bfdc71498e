"""HTTP Evidence Store Adapter for the evidence API.

Posts one query per node alias to the evidence API:

    POST {base_url}/evidence/{collection}/query
    {"where": {"AND": [clause, ...]}, "take": limit}

and expects `{"records": [...]}` back. Clause shapes are produced by each
FilterExpression's to_clause(). Uses httpx for async HTTP with a per-request
timeout (AUMOS_PROOF_ENGINE_EVIDENCE_API_TIMEOUT_SECONDS).

Every failure is raised as EvidenceStoreError; the Node Fetcher decides
whether to degrade it to an empty node list.
"""

from typing import Any

import httpx

from aumos_proof_engine.errors import EvidenceStoreError
from aumos_proof_engine.evidence.nodes import KIND_COLLECTIONS, EvidenceNode
from aumos_proof_engine.evidence.store import NodeQuery
from aumos_proof_engine.observability import get_logger
from aumos_proof_engine.settings import DEFAULT_EVIDENCE_API_TIMEOUT_SECONDS, DEFAULT_EVIDENCE_API_URL

logger = get_logger(__name__)


def build_query_body(query: NodeQuery) -> dict[str, Any]:
    """Build the JSON request body for a NodeQuery.

    Args:
        query: The node query to serialise.

    Returns:
        Dict with "where" (AND of clauses) and "take".
    """
    return {
        "where": {"AND": [condition.to_clause() for condition in query.conditions]},
        "take": query.limit,
    }


class HttpEvidenceStore:
    """Async client for the evidence API implementing IEvidenceStore.

    Args:
        base_url: Evidence API base URL.
        api_token: Optional bearer token.
        timeout_seconds: Per-request timeout.
        transport: Optional httpx transport (used by tests).
    """

    def __init__(
        self,
        base_url: str = DEFAULT_EVIDENCE_API_URL,
        api_token: str = "",
        timeout_seconds: float = DEFAULT_EVIDENCE_API_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize HttpEvidenceStore.

        Args:
            base_url: Evidence API base URL (e.g., http://localhost:8080/api/v1).
            api_token: Bearer token; empty sends no Authorization header.
            timeout_seconds: Per-request timeout in seconds.
            transport: Optional httpx transport override.
        """
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._transport = transport
        self._headers = {"Content-Type": "application/json"}
        if api_token:
            self._headers["Authorization"] = f"Bearer {api_token}"

    def _query_url(self, query: NodeQuery) -> str:
        return f"{self._base_url}/evidence/{KIND_COLLECTIONS[query.kind]}/query"

    async def fetch_nodes(self, query: NodeQuery) -> list[EvidenceNode]:
        """Fetch nodes for a NodeQuery from the evidence API.

        Args:
            query: Kind, conditions and row limit.

        Returns:
            At most query.limit nodes of query.kind.

        Raises:
            EvidenceStoreError: On timeout, transport error, non-200 status
                or a malformed response body.
        """
        url = self._query_url(query)
        body = build_query_body(query)

        logger.debug(
            "Fetching evidence nodes",
            alias=query.alias,
            kind=query.kind.value,
            url=url,
            condition_count=len(query.conditions),
        )

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds,
                headers=self._headers,
                transport=self._transport,
            ) as client:
                response = await client.post(url, json=body)
        except httpx.TimeoutException:
            raise EvidenceStoreError(
                f"Evidence API timed out after {self._timeout_seconds}s for {query.kind.value}"
            )
        except httpx.RequestError as exc:
            raise EvidenceStoreError(f"Evidence API request error: {exc}")

        if response.status_code != 200:
            raise EvidenceStoreError(
                f"Evidence API returned status {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            result_body = response.json()
        except ValueError as exc:
            raise EvidenceStoreError(f"Evidence API returned invalid JSON: {exc}")
        records = result_body.get("records", []) if isinstance(result_body, dict) else None
        if not isinstance(records, list):
            raise EvidenceStoreError("Evidence API response field 'records' is not a list")

        nodes = [
            EvidenceNode(kind=query.kind, record=record)
            for record in records[: query.limit]
            if isinstance(record, dict)
        ]
        logger.debug(
            "Evidence nodes fetched",
            alias=query.alias,
            kind=query.kind.value,
            count=len(nodes),
        )
        return nodes
