"""Tests for the scorer, the gap identifier and the evidence collector."""

import pytest

from aumos_proof_engine.catalog.definitions import CriterionParams, CriterionType, ProofCriterion, ValueOperator
from aumos_proof_engine.errors import ValidationError
from aumos_proof_engine.evidence.nodes import EvidenceKind, EvidenceNode
from aumos_proof_engine.proof.criteria import CriterionOutcome
from aumos_proof_engine.proof.evidence_collector import collect_evidence
from aumos_proof_engine.proof.gaps import generate_recommendation, identify_gaps
from aumos_proof_engine.proof.scoring import (
    QueryVerdict,
    VerdictThresholds,
    compute_confidence,
    determine_verdict,
    score,
)

MET = CriterionOutcome(met=True, details="ok")
UNMET = CriterionOutcome(met=False, details="missing")


def make_criterion(
    criterion_id: str,
    weight: float,
    criterion_type: CriterionType = CriterionType.EXISTS,
    description: str = "Breach Register",
    **params: object,
) -> ProofCriterion:
    return ProofCriterion(
        criterion_id=criterion_id,
        criterion_type=criterion_type,
        description=description,
        weight=weight,
        params=CriterionParams(node_alias="nodes", **params),  # type: ignore[arg-type]
    )


# ---------------------------------------------------------------------------
# Verdict and confidence
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("confidence", "verdict"),
    [
        (0, QueryVerdict.NOT_PROVEN),
        (39, QueryVerdict.NOT_PROVEN),
        (40, QueryVerdict.PARTIAL),
        (79, QueryVerdict.PARTIAL),
        (80, QueryVerdict.PROVEN),
        (100, QueryVerdict.PROVEN),
    ],
)
def test_verdict_boundaries(confidence: int, verdict: QueryVerdict) -> None:
    assert determine_verdict(confidence) is verdict


def test_verdict_is_monotonic_in_confidence() -> None:
    order = [QueryVerdict.NOT_PROVEN, QueryVerdict.PARTIAL, QueryVerdict.PROVEN]
    ranks = [order.index(determine_verdict(confidence)) for confidence in range(101)]
    assert ranks == sorted(ranks)


def test_custom_thresholds() -> None:
    thresholds = VerdictThresholds(proven=90, partial=50)
    assert determine_verdict(85, thresholds) is QueryVerdict.PARTIAL
    assert determine_verdict(49, thresholds) is QueryVerdict.NOT_PROVEN
    assert determine_verdict(90, thresholds) is QueryVerdict.PROVEN


def test_thresholds_reject_partial_above_proven() -> None:
    with pytest.raises(ValidationError):
        VerdictThresholds(proven=50, partial=60)


def test_confidence_is_zero_without_weight() -> None:
    assert compute_confidence(0, 0) == 0


def test_confidence_rounds_half_up() -> None:
    assert compute_confidence(1, 8) == 13
    assert compute_confidence(1, 3) == 33
    assert compute_confidence(2, 3) == 67


def test_score_sums_met_weights() -> None:
    criteria = [make_criterion("a", 60), make_criterion("b", 40)]
    card = score(criteria, [MET, UNMET])

    assert card.total_score == 60
    assert card.max_score == 100
    assert card.confidence == 60
    assert card.verdict is QueryVerdict.PARTIAL


def test_score_with_no_criteria_is_not_proven() -> None:
    card = score([], [])
    assert card.confidence == 0
    assert card.verdict is QueryVerdict.NOT_PROVEN


def test_score_requires_aligned_outcomes() -> None:
    with pytest.raises(ValueError):
        score([make_criterion("a", 1)], [])


# ---------------------------------------------------------------------------
# Gaps
# ---------------------------------------------------------------------------


def test_gaps_follow_declaration_order() -> None:
    criteria = [
        make_criterion("first", 10, description="First"),
        make_criterion("second", 50, description="Second"),
        make_criterion("third", 40, description="Third"),
    ]
    gaps = identify_gaps(criteria, [UNMET, MET, UNMET])

    assert [gap.criterion_id for gap in gaps] == ["first", "third"]
    assert [gap.description for gap in gaps] == ["First", "Third"]


def test_no_gaps_when_everything_met() -> None:
    assert identify_gaps([make_criterion("a", 1)], [MET]) == []


@pytest.mark.parametrize(
    ("criterion", "recommendation"),
    [
        (
            make_criterion("e", 1, CriterionType.EXISTS),
            "Create or document the required breach register",
        ),
        (
            make_criterion("c", 1, CriterionType.COUNT, min_count=4),
            "Ensure at least 4 records exist for breach register",
        ),
        (
            make_criterion("v", 1, CriterionType.VALUE, field="status", operator=ValueOperator.EQUALS),
            "Update the status field to meet the expected value",
        ),
        (
            make_criterion("t", 1, CriterionType.TIMING, field="created_at", within_hours=72),
            "Perform the activity within the required 72 hour window",
        ),
        (
            make_criterion("r", 1, CriterionType.RELATIONSHIP),
            "Address the gap in breach register",
        ),
        (
            make_criterion("x", 1, CriterionType.CUSTOM),
            "Address the gap in breach register",
        ),
    ],
)
def test_recommendation_templates(criterion: ProofCriterion, recommendation: str) -> None:
    assert generate_recommendation(criterion) == recommendation


# ---------------------------------------------------------------------------
# Evidence collector
# ---------------------------------------------------------------------------


def test_collect_evidence_deduplicates_in_first_seen_order() -> None:
    node_map = {
        "breaches": [
            EvidenceNode(EvidenceKind.EVENT, {"event_id": "e-2"}),
            EvidenceNode(EvidenceKind.EVENT, {"event_id": "e-1"}),
        ],
        "all_events": [
            EvidenceNode(EvidenceKind.EVENT, {"event_id": "e-1"}),
            EvidenceNode(EvidenceKind.EVENT, {"event_id": "e-3"}),
        ],
        "clocks": [EvidenceNode(EvidenceKind.CLOCK, {"clock_id": "c-1", "event_id": "e-2"})],
        "proofs": [EvidenceNode(EvidenceKind.ARTIFACT, {"artifact_id": "a-1", "decision_id": "d-1"})],
        "actors": [EvidenceNode(EvidenceKind.ACTOR, {"actor_id": "u-1"})],
    }

    bundle = collect_evidence(node_map)

    assert bundle.events == ["e-2", "e-1", "e-3"]
    assert bundle.clocks == ["c-1"]
    assert bundle.decisions == ["d-1"]
    assert bundle.artifacts == ["a-1"]
    assert bundle.evidence_count == 6


def test_collect_evidence_empty_map() -> None:
    assert collect_evidence({}).evidence_count == 0
