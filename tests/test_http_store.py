"""Tests for HttpEvidenceStore using httpx.MockTransport (no network)."""

import json
from datetime import UTC, datetime
from typing import Any

import httpx
import pytest

from aumos_proof_engine.errors import EvidenceStoreError
from aumos_proof_engine.evidence.filters import Equals, HasElement, TimeBetween
from aumos_proof_engine.evidence.http_store import HttpEvidenceStore, build_query_body
from aumos_proof_engine.evidence.nodes import EvidenceKind, TimeRange
from aumos_proof_engine.evidence.store import NodeQuery
from aumos_proof_engine.settings import DEFAULT_EVIDENCE_API_URL, Settings

BASE_URL = "http://evidence.test/api/v1"
START = datetime(2026, 1, 1, tzinfo=UTC)
END = datetime(2026, 6, 30, tzinfo=UTC)


def make_query(kind: EvidenceKind = EvidenceKind.EVENT, limit: int = 1000) -> NodeQuery:
    return NodeQuery(
        alias="breaches",
        kind=kind,
        conditions=(
            TimeBetween(field="occurred_at", start=START, end=END),
            Equals("severity", "HIGH"),
            HasElement("regulatory_tags", "GDPR"),
        ),
        time_range=TimeRange(start=START, end=END),
        limit=limit,
    )


def make_store(handler: Any, api_token: str = "") -> HttpEvidenceStore:
    return HttpEvidenceStore(base_url=BASE_URL, api_token=api_token, transport=httpx.MockTransport(handler))


def test_build_query_body_ands_all_conditions() -> None:
    assert build_query_body(make_query(limit=25)) == {
        "where": {
            "AND": [
                {"occurred_at": {"gte": START.isoformat(), "lte": END.isoformat()}},
                {"severity": {"equals": "HIGH"}},
                {"regulatory_tags": {"has": "GDPR"}},
            ]
        },
        "take": 25,
    }


@pytest.mark.asyncio
async def test_fetch_posts_query_to_kind_collection() -> None:
    captured: dict[str, Any] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        captured["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"records": [{"decision_id": "d-1"}, {"decision_id": "d-2"}]})

    store = make_store(handler, api_token="secret")
    nodes = await store.fetch_nodes(make_query(kind=EvidenceKind.DECISION, limit=10))

    assert captured["url"] == f"{BASE_URL}/evidence/decisions/query"
    assert captured["body"]["take"] == 10
    assert captured["auth"] == "Bearer secret"
    assert [node.node_id for node in nodes] == ["d-1", "d-2"]
    assert all(node.kind is EvidenceKind.DECISION for node in nodes)


@pytest.mark.asyncio
async def test_fetch_without_token_sends_no_authorization() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert "Authorization" not in request.headers
        return httpx.Response(200, json={"records": []})

    assert await make_store(handler).fetch_nodes(make_query()) == []


@pytest.mark.asyncio
async def test_fetch_caps_oversized_responses() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"records": [{"event_id": f"e-{index}"} for index in range(5)]})

    nodes = await make_store(handler).fetch_nodes(make_query(limit=2))
    assert [node.node_id for node in nodes] == ["e-0", "e-1"]


@pytest.mark.asyncio
async def test_fetch_non_200_raises_with_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="maintenance")

    with pytest.raises(EvidenceStoreError) as exc_info:
        await make_store(handler).fetch_nodes(make_query())
    assert exc_info.value.status_code == 503


@pytest.mark.parametrize(
    "response_kwargs",
    [
        {"text": "not json"},
        {"json": ["not", "a", "mapping"]},
        {"json": {"records": "nope"}},
    ],
)
@pytest.mark.asyncio
async def test_fetch_malformed_body_raises(response_kwargs: dict[str, Any]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, **response_kwargs)

    with pytest.raises(EvidenceStoreError):
        await make_store(handler).fetch_nodes(make_query())


@pytest.mark.asyncio
async def test_fetch_timeout_raises_store_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(EvidenceStoreError, match="timed out"):
        await make_store(handler).fetch_nodes(make_query())


@pytest.mark.asyncio
async def test_fetch_connection_error_raises_store_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(EvidenceStoreError, match="request error"):
        await make_store(handler).fetch_nodes(make_query())


@pytest.mark.asyncio
async def test_default_base_url_matches_settings_default() -> None:
    captured: dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        return httpx.Response(200, json={"records": []})

    store = HttpEvidenceStore(transport=httpx.MockTransport(handler))
    await store.fetch_nodes(make_query(kind=EvidenceKind.CLOCK))

    assert Settings().evidence_api_url == DEFAULT_EVIDENCE_API_URL
    assert captured["url"] == f"{DEFAULT_EVIDENCE_API_URL}/evidence/clocks/query"
