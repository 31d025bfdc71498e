"""Tests for the Node Fetcher: query building, soft-fail and bounds."""

import asyncio
from datetime import UTC, datetime

import pytest

from aumos_proof_engine.catalog.definitions import NodeSpec
from aumos_proof_engine.errors import UnknownNodeKindError
from aumos_proof_engine.evidence.filters import Equals, HasElement, TimeBetween
from aumos_proof_engine.evidence.nodes import EvidenceKind, EvidenceNode, TimeRange
from aumos_proof_engine.evidence.store import InMemoryEvidenceStore, NodeQuery
from aumos_proof_engine.proof.fetcher import NodeFetcher, build_node_query

WINDOW = TimeRange(start=datetime(2026, 1, 1, tzinfo=UTC), end=datetime(2026, 6, 30, tzinfo=UTC))


class SlowStore:
    """Store that never answers for one kind."""

    def __init__(self, inner: InMemoryEvidenceStore, slow_kind: EvidenceKind) -> None:
        self._inner = inner
        self._slow_kind = slow_kind

    async def fetch_nodes(self, query: NodeQuery) -> list[EvidenceNode]:
        if query.kind is self._slow_kind:
            await asyncio.sleep(10)
        return await self._inner.fetch_nodes(query)


# ---------------------------------------------------------------------------
# build_node_query
# ---------------------------------------------------------------------------


def test_build_node_query_prepends_time_bound_on_canonical_field() -> None:
    spec = NodeSpec(alias="decisions", kind="DECISION", filters=(Equals("regulation", "GDPR"),))
    query = build_node_query(spec, EvidenceKind.DECISION, WINDOW, limit=50)

    assert query.conditions == (
        TimeBetween(field="timestamp", start=WINDOW.start, end=WINDOW.end),
        Equals("regulation", "GDPR"),
    )
    assert query.limit == 50
    assert query.alias == "decisions"


@pytest.mark.parametrize(
    ("kind", "time_field"),
    [
        (EvidenceKind.EVENT, "occurred_at"),
        (EvidenceKind.DECISION, "timestamp"),
        (EvidenceKind.CLOCK, "created_at"),
        (EvidenceKind.ACTOR, "created_at"),
        (EvidenceKind.CONTROL, "created_at"),
        (EvidenceKind.ARTIFACT, "created_at"),
    ],
)
def test_time_bound_field_per_kind(kind: EvidenceKind, time_field: str) -> None:
    query = build_node_query(NodeSpec(alias="x", kind=kind.value), kind, WINDOW, limit=1)
    assert query.conditions[0].field == time_field


# ---------------------------------------------------------------------------
# fetch
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_fetch_applies_filters_and_time_range(evidence_store: InMemoryEvidenceStore) -> None:
    evidence_store.add_many(
        EvidenceKind.EVENT,
        [
            {"event_id": "in", "occurred_at": "2026-03-01T00:00:00Z", "regulatory_tags": ["GDPR"]},
            {"event_id": "other-tag", "occurred_at": "2026-03-01T00:00:00Z", "regulatory_tags": ["DORA"]},
            {"event_id": "too-old", "occurred_at": "2025-03-01T00:00:00Z", "regulatory_tags": ["GDPR"]},
        ],
    )
    spec = NodeSpec(alias="events", kind="EVENT", filters=(HasElement("regulatory_tags", "GDPR"),))

    node_map = await NodeFetcher(evidence_store).fetch([spec], WINDOW)

    assert [node.node_id for node in node_map["events"]] == ["in"]


@pytest.mark.asyncio
async def test_fetch_failure_degrades_to_empty_list(evidence_store: InMemoryEvidenceStore) -> None:
    evidence_store.add(EvidenceKind.ARTIFACT, {"artifact_id": "a-1", "created_at": "2026-02-01T00:00:00Z"})
    evidence_store.fail_kind(EvidenceKind.CLOCK)
    specs = [NodeSpec(alias="clocks", kind="CLOCK"), NodeSpec(alias="proofs", kind="ARTIFACT")]

    node_map = await NodeFetcher(evidence_store).fetch(specs, WINDOW)

    assert node_map["clocks"] == []
    assert [node.node_id for node in node_map["proofs"]] == ["a-1"]


@pytest.mark.asyncio
async def test_fetch_timeout_degrades_to_empty_list(evidence_store: InMemoryEvidenceStore) -> None:
    evidence_store.add(EvidenceKind.ARTIFACT, {"artifact_id": "a-1", "created_at": "2026-02-01T00:00:00Z"})
    evidence_store.add(EvidenceKind.CLOCK, {"clock_id": "c-1", "created_at": "2026-02-01T00:00:00Z"})
    fetcher = NodeFetcher(SlowStore(evidence_store, EvidenceKind.CLOCK), fetch_timeout_seconds=0.05)
    specs = [NodeSpec(alias="clocks", kind="CLOCK"), NodeSpec(alias="proofs", kind="ARTIFACT")]

    node_map = await fetcher.fetch(specs, WINDOW)

    assert node_map == {"clocks": [], "proofs": node_map["proofs"]}
    assert len(node_map["proofs"]) == 1


@pytest.mark.asyncio
async def test_fetch_caps_rows_per_alias(evidence_store: InMemoryEvidenceStore) -> None:
    evidence_store.add_many(
        EvidenceKind.CONTROL,
        [{"control_id": f"ctl-{index}", "created_at": "2026-02-01T00:00:00Z"} for index in range(20)],
    )

    node_map = await NodeFetcher(evidence_store, max_nodes=7).fetch([NodeSpec(alias="c", kind="CONTROL")], WINDOW)

    assert len(node_map["c"]) == 7


@pytest.mark.asyncio
async def test_unknown_kind_raises_before_any_fetch(evidence_store: InMemoryEvidenceStore) -> None:
    specs = [NodeSpec(alias="events", kind="EVENT"), NodeSpec(alias="widgets", kind="WIDGET")]

    with pytest.raises(UnknownNodeKindError) as exc_info:
        await NodeFetcher(evidence_store).fetch(specs, WINDOW)

    assert exc_info.value.alias == "widgets"
    assert evidence_store.fetch_count == 0


@pytest.mark.asyncio
async def test_fetch_with_no_specs_is_empty(evidence_store: InMemoryEvidenceStore) -> None:
    assert await NodeFetcher(evidence_store).fetch([], WINDOW) == {}
