"""Evidence layer: node model, filter expressions and store adapters."""

from aumos_proof_engine.evidence.filters import (
    Contains,
    Equals,
    FilterExpression,
    HasElement,
    InSet,
    PayloadPathEquals,
    TimeBetween,
    parse_filters,
)
from aumos_proof_engine.evidence.http_store import HttpEvidenceStore
from aumos_proof_engine.evidence.nodes import EvidenceKind, EvidenceNode, TimeRange
from aumos_proof_engine.evidence.store import IEvidenceStore, InMemoryEvidenceStore, NodeQuery

__all__ = [
    "Contains",
    "Equals",
    "EvidenceKind",
    "EvidenceNode",
    "FilterExpression",
    "HasElement",
    "HttpEvidenceStore",
    "IEvidenceStore",
    "InMemoryEvidenceStore",
    "InSet",
    "NodeQuery",
    "PayloadPathEquals",
    "TimeBetween",
    "TimeRange",
    "parse_filters",
]
