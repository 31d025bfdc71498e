"""Proof pipeline: fetch evidence, evaluate criteria, score, report gaps."""

from aumos_proof_engine.proof.criteria import CriterionOutcome, evaluate_criterion, register_evaluator
from aumos_proof_engine.proof.engine import ProofEngine, create_default_engine
from aumos_proof_engine.proof.fetcher import NodeFetcher
from aumos_proof_engine.proof.results import (
    ComplianceQueryResult,
    ComplianceSummary,
    CriticalGap,
    EvidenceBundle,
    Gap,
    ProofDetail,
    VerdictCounts,
)
from aumos_proof_engine.proof.scoring import QueryVerdict, VerdictThresholds, determine_verdict

__all__ = [
    "ComplianceQueryResult",
    "ComplianceSummary",
    "CriterionOutcome",
    "CriticalGap",
    "EvidenceBundle",
    "Gap",
    "NodeFetcher",
    "ProofDetail",
    "ProofEngine",
    "QueryVerdict",
    "VerdictCounts",
    "VerdictThresholds",
    "create_default_engine",
    "determine_verdict",
    "evaluate_criterion",
    "register_evaluator",
]
