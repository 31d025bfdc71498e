"""Scorer — weighted score, confidence percentage and verdict.

confidence is 100 * total / max rounded half up, 0 when max is 0. The verdict is a
pure function of confidence against two thresholds (PROVEN at 80 and
PARTIAL at 40 by default, both configurable in Settings).
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from aumos_proof_engine.catalog.definitions import ProofCriterion
from aumos_proof_engine.errors import ValidationError
from aumos_proof_engine.proof.criteria import CriterionOutcome
from aumos_proof_engine.settings import DEFAULT_PARTIAL_THRESHOLD, DEFAULT_PROVEN_THRESHOLD


class QueryVerdict(str, Enum):
    """Three-way verdict derived from confidence."""

    PROVEN = "PROVEN"
    PARTIAL = "PARTIAL"
    NOT_PROVEN = "NOT_PROVEN"


@dataclass(frozen=True)
class VerdictThresholds:
    """Confidence thresholds (percent) for PROVEN and PARTIAL."""

    proven: int = DEFAULT_PROVEN_THRESHOLD
    partial: int = DEFAULT_PARTIAL_THRESHOLD

    def __post_init__(self) -> None:
        if not 0 <= self.partial <= self.proven <= 100:
            raise ValidationError(
                f"Invalid verdict thresholds: partial={self.partial}, proven={self.proven}"
            )


@dataclass(frozen=True)
class ScoreCard:
    """Aggregated score of one query execution."""

    total_score: float
    max_score: float
    confidence: int
    verdict: QueryVerdict


def compute_confidence(total_score: float, max_score: float) -> int:
    """Return 100 * total / max rounded half up, or 0 when max_score is not positive."""
    if max_score <= 0:
        return 0
    return math.floor(100 * total_score / max_score + 0.5)


def determine_verdict(confidence: float, thresholds: VerdictThresholds = VerdictThresholds()) -> QueryVerdict:
    """Map a confidence percentage to a verdict.

    Args:
        confidence: Confidence percentage.
        thresholds: PROVEN and PARTIAL lower bounds (inclusive).

    Returns:
        PROVEN, PARTIAL or NOT_PROVEN.
    """
    if confidence >= thresholds.proven:
        return QueryVerdict.PROVEN
    if confidence >= thresholds.partial:
        return QueryVerdict.PARTIAL
    return QueryVerdict.NOT_PROVEN


def score(
    criteria: Sequence[ProofCriterion],
    outcomes: Sequence[CriterionOutcome],
    thresholds: VerdictThresholds = VerdictThresholds(),
) -> ScoreCard:
    """Score criterion outcomes.

    Args:
        criteria: Criteria in declaration order.
        outcomes: Outcomes aligned with criteria.
        thresholds: Verdict thresholds.

    Returns:
        The ScoreCard.
    """
    if len(criteria) != len(outcomes):
        raise ValueError(f"Got {len(outcomes)} outcomes for {len(criteria)} criteria")

    total_score = sum(criterion.weight for criterion, outcome in zip(criteria, outcomes) if outcome.met)
    max_score = sum(criterion.weight for criterion in criteria)
    confidence = compute_confidence(total_score, max_score)
    return ScoreCard(
        total_score=total_score,
        max_score=max_score,
        confidence=confidence,
        verdict=determine_verdict(confidence, thresholds),
    )
