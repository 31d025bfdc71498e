"""aumos-proof-engine: prove regulatory obligations from recorded evidence.

Runs declarative compliance queries (GDPR, DORA, NIS2, AI Act) against an
evidence store and returns PROVEN / PARTIAL / NOT_PROVEN verdicts with
confidence, supporting evidence ids and remediation gaps.
"""

from aumos_proof_engine.catalog import QueryCatalog
from aumos_proof_engine.evidence import HttpEvidenceStore, InMemoryEvidenceStore, TimeRange
from aumos_proof_engine.proof import (
    ComplianceQueryResult,
    ComplianceSummary,
    ProofEngine,
    QueryVerdict,
    create_default_engine,
)
from aumos_proof_engine.settings import Settings

__version__ = "0.1.0"

__all__ = [
    "ComplianceQueryResult",
    "ComplianceSummary",
    "HttpEvidenceStore",
    "InMemoryEvidenceStore",
    "ProofEngine",
    "QueryCatalog",
    "QueryVerdict",
    "Settings",
    "TimeRange",
    "create_default_engine",
]
