"""Node Fetcher — turn a query's node specs into evidence store reads.

For each NodeSpec the fetcher builds one NodeQuery: an inclusive time-range
bound on the kind's canonical timestamp field, ANDed with the node spec's
declared filters, capped at max_nodes rows. All aliases are fetched
concurrently.

Failure policy: an adapter exception or a per-fetch timeout for one alias is
logged and replaced by an empty list. A missing evidence type then reads as
unmet EXISTS/COUNT criteria in the result instead of a hard error.
"""

import asyncio
from collections.abc import Sequence

from aumos_proof_engine.catalog.definitions import NodeSpec
from aumos_proof_engine.errors import UnknownNodeKindError
from aumos_proof_engine.evidence.filters import FilterExpression, TimeBetween
from aumos_proof_engine.evidence.nodes import EvidenceKind, EvidenceNode, TimeRange, canonical_time_field
from aumos_proof_engine.evidence.store import IEvidenceStore, NodeQuery
from aumos_proof_engine.observability import get_logger
from aumos_proof_engine.settings import DEFAULT_MAX_NODES_PER_FETCH

logger = get_logger(__name__)

NodeMap = dict[str, list[EvidenceNode]]


def resolve_kind(spec: NodeSpec) -> EvidenceKind:
    """Resolve a node spec's kind name to an EvidenceKind.

    Raises:
        UnknownNodeKindError: If the name is not one of the six kinds.
    """
    try:
        return EvidenceKind(spec.kind)
    except ValueError:
        raise UnknownNodeKindError(kind=spec.kind, alias=spec.alias)


def build_node_query(spec: NodeSpec, kind: EvidenceKind, time_range: TimeRange, limit: int) -> NodeQuery:
    """Build the NodeQuery for one alias.

    Args:
        spec: The node spec.
        kind: The resolved node kind.
        time_range: Evaluation window.
        limit: Row cap.

    Returns:
        NodeQuery whose conditions start with the time-range bound (when the
        kind has a canonical timestamp field) followed by the declared filters.
    """
    conditions: list[FilterExpression] = []
    time_field = canonical_time_field(kind)
    if time_field is not None:
        conditions.append(TimeBetween(field=time_field, start=time_range.start, end=time_range.end))
    conditions.extend(spec.filters)
    return NodeQuery(
        alias=spec.alias,
        kind=kind,
        conditions=tuple(conditions),
        time_range=time_range,
        limit=limit,
    )


class NodeFetcher:
    """Fetches evidence nodes for a query definition's node specs.

    Args:
        store: Evidence Store Adapter.
        max_nodes: Row cap per alias.
        fetch_timeout_seconds: Per-fetch timeout; None disables it.
    """

    def __init__(
        self,
        store: IEvidenceStore,
        max_nodes: int = DEFAULT_MAX_NODES_PER_FETCH,
        fetch_timeout_seconds: float | None = None,
    ) -> None:
        self._store = store
        self._max_nodes = max_nodes
        self._fetch_timeout_seconds = fetch_timeout_seconds

    async def fetch(self, node_specs: Sequence[NodeSpec], time_range: TimeRange) -> NodeMap:
        """Fetch every alias concurrently.

        Kinds are resolved before any fetch is issued, so an ill-formed
        definition fails without touching the store.

        Args:
            node_specs: The query definition's node specs.
            time_range: Evaluation window.

        Returns:
            Map from alias to fetched nodes. Every alias is present; failed
            fetches map to an empty list.

        Raises:
            UnknownNodeKindError: If a spec names an unknown kind.
        """
        queries = [
            build_node_query(spec, resolve_kind(spec), time_range, self._max_nodes)
            for spec in node_specs
        ]
        node_lists = await asyncio.gather(*[self._fetch_one(query) for query in queries])
        return {query.alias: nodes for query, nodes in zip(queries, node_lists)}

    async def _fetch_one(self, query: NodeQuery) -> list[EvidenceNode]:
        try:
            nodes = await asyncio.wait_for(
                self._store.fetch_nodes(query),
                timeout=self._fetch_timeout_seconds,
            )
        except TimeoutError:
            logger.warning(
                "Evidence fetch timed out, using empty node list",
                alias=query.alias,
                kind=query.kind.value,
                timeout_seconds=self._fetch_timeout_seconds,
            )
            return []
        except Exception as exc:
            logger.error(
                "Evidence fetch failed, using empty node list",
                alias=query.alias,
                kind=query.kind.value,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return []
        return list(nodes[: query.limit])
