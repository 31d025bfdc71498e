"""Evidence Store Adapter contract and the in-memory adapter.

The engine only needs one read operation from the evidence store: fetch the
nodes of one kind that satisfy a set of filter expressions, capped at a row
limit. Any backend (SQL, document store, HTTP API, in-memory) implementing
IEvidenceStore can be plugged into the Node Fetcher. Adapters must be safe
for concurrent reads; the engine does not serialise access to them.

The in-memory implementation is suitable for tests and local development.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol

from aumos_proof_engine.errors import EvidenceStoreError
from aumos_proof_engine.evidence.filters import FilterExpression, matches_all
from aumos_proof_engine.evidence.nodes import EvidenceKind, EvidenceNode, TimeRange


@dataclass(frozen=True)
class NodeQuery:
    """A single fetch request issued by the Node Fetcher.

    Attributes:
        alias: Node alias the results will be stored under (for logging).
        kind: Node kind to fetch.
        conditions: Filter expressions ANDed together. Includes the
            time-range bound on the kind's canonical timestamp field.
        time_range: The evaluation window the bound was built from.
        limit: Maximum number of records to return.
    """

    alias: str
    kind: EvidenceKind
    conditions: tuple[FilterExpression, ...]
    time_range: TimeRange
    limit: int


class IEvidenceStore(Protocol):
    """Read-only evidence store contract consumed by the Node Fetcher."""

    async def fetch_nodes(self, query: NodeQuery) -> list[EvidenceNode]:
        """Return the nodes matching a NodeQuery.

        Args:
            query: Kind, conditions and row limit.

        Returns:
            At most query.limit matching nodes.

        Raises:
            EvidenceStoreError: On backend failure. The Node Fetcher treats
                any exception as a soft failure for the alias.
        """
        ...


class InMemoryEvidenceStore:
    """In-memory evidence store holding raw records per kind.

    Records are evaluated against the same FilterExpressions the HTTP
    adapter sends over the wire. Kinds can be marked as failing to exercise
    the fetcher's soft-fail path.
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        # { kind: list[record dict] } in insertion order
        self._records: dict[EvidenceKind, list[dict[str, Any]]] = {kind: [] for kind in EvidenceKind}
        self._failing_kinds: set[EvidenceKind] = set()
        self.fetch_count = 0

    def add(self, kind: EvidenceKind, record: Mapping[str, Any]) -> EvidenceNode:
        """Add one record and return it wrapped as an EvidenceNode.

        Args:
            kind: The record's node kind.
            record: Raw record fields.

        Returns:
            The stored node.
        """
        stored = dict(record)
        self._records[kind].append(stored)
        return EvidenceNode(kind=kind, record=stored)

    def add_many(self, kind: EvidenceKind, records: list[Mapping[str, Any]]) -> list[EvidenceNode]:
        return [self.add(kind, record) for record in records]

    def fail_kind(self, kind: EvidenceKind) -> None:
        """Make every subsequent fetch for kind raise EvidenceStoreError."""
        self._failing_kinds.add(kind)

    async def fetch_nodes(self, query: NodeQuery) -> list[EvidenceNode]:
        """Return the records of query.kind satisfying every condition.

        Args:
            query: Kind, conditions and row limit.

        Returns:
            Matching nodes in insertion order, at most query.limit.

        Raises:
            EvidenceStoreError: If the kind was marked as failing.
        """
        self.fetch_count += 1
        if query.kind in self._failing_kinds:
            raise EvidenceStoreError(f"Evidence store unavailable for kind {query.kind.value}")

        matched: list[EvidenceNode] = []
        for record in self._records[query.kind]:
            if matches_all(query.conditions, record):
                matched.append(EvidenceNode(kind=query.kind, record=record))
                if len(matched) >= query.limit:
                    break
        return matched
