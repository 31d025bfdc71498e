"""Gap Identifier — one gap per unmet criterion, with a remediation hint.

Gaps follow criterion declaration order, not severity.
"""

from collections.abc import Sequence

from aumos_proof_engine.catalog.definitions import CriterionType, ProofCriterion
from aumos_proof_engine.proof.criteria import CriterionOutcome
from aumos_proof_engine.proof.results import Gap


def generate_recommendation(criterion: ProofCriterion) -> str:
    """Return the templated remediation for an unmet criterion."""
    subject = criterion.description.lower()
    params = criterion.params
    if criterion.criterion_type is CriterionType.EXISTS:
        return f"Create or document the required {subject}"
    if criterion.criterion_type is CriterionType.COUNT:
        min_count = params.min_count if params.min_count is not None else 1
        return f"Ensure at least {min_count} records exist for {subject}"
    if criterion.criterion_type is CriterionType.VALUE:
        return f"Update the {params.field} field to meet the expected value"
    if criterion.criterion_type is CriterionType.TIMING:
        if params.within_hours is None:
            return "Perform the activity within the required window"
        return f"Perform the activity within the required {params.within_hours:g} hour window"
    return f"Address the gap in {subject}"


def identify_gaps(criteria: Sequence[ProofCriterion], outcomes: Sequence[CriterionOutcome]) -> list[Gap]:
    """Build gaps for every unmet criterion.

    Args:
        criteria: Criteria in declaration order.
        outcomes: Outcomes aligned with criteria.

    Returns:
        One Gap per unmet criterion, in declaration order.
    """
    return [
        Gap(
            criterion_id=criterion.criterion_id,
            criterion_type=criterion.criterion_type,
            description=criterion.description,
            recommendation=generate_recommendation(criterion),
            mandatory=criterion.mandatory,
        )
        for criterion, outcome in zip(criteria, outcomes)
        if not outcome.met
    ]
