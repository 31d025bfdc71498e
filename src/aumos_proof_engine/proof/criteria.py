"""Criterion Evaluator — one strategy per proof criterion type.

Each evaluator is a pure function of (criterion, node map, now) returning a
CriterionOutcome. Evaluators are registered by CriterionType in a lookup
table; adding a type means registering one more function.

A criterion whose alias is missing from the node map sees an empty list and
evaluates unmet. A type with no registered evaluator (CUSTOM) evaluates
unmet with the detail "Unknown criterion type".
"""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from aumos_proof_engine.catalog.definitions import CriterionType, ProofCriterion, ValueOperator
from aumos_proof_engine.evidence.nodes import EvidenceNode, parse_timestamp

NO_RECORDS_DETAIL = "No records to evaluate"
UNKNOWN_TYPE_DETAIL = "Unknown criterion type"


@dataclass(frozen=True)
class CriterionOutcome:
    """Result of evaluating one criterion.

    Attributes:
        met: Whether the criterion is satisfied.
        details: Human-readable explanation (counts found, matches, ...).
    """

    met: bool
    details: str


CriterionEvaluator = Callable[[ProofCriterion, Mapping[str, Sequence[EvidenceNode]], datetime], CriterionOutcome]

_EVALUATORS: dict[CriterionType, CriterionEvaluator] = {}


def register_evaluator(criterion_type: CriterionType) -> Callable[[CriterionEvaluator], CriterionEvaluator]:
    """Register an evaluator function for a criterion type.

    Usable as a decorator. Re-registering a type replaces the previous
    evaluator.
    """

    def decorator(evaluator: CriterionEvaluator) -> CriterionEvaluator:
        _EVALUATORS[criterion_type] = evaluator
        return evaluator

    return decorator


def get_evaluator(criterion_type: CriterionType) -> CriterionEvaluator | None:
    return _EVALUATORS.get(criterion_type)


def _nodes_for(criterion: ProofCriterion, node_map: Mapping[str, Sequence[EvidenceNode]]) -> Sequence[EvidenceNode]:
    alias = criterion.params.node_alias
    if alias is None:
        return []
    return node_map.get(alias, [])


def _format_hours(hours: float) -> str:
    return f"{hours:g}"


# ---------------------------------------------------------------------------
# VALUE operators
# ---------------------------------------------------------------------------


def _contains(actual: Any, expected: Any) -> bool:
    if actual is None:
        return False
    if isinstance(actual, (list, tuple, set, frozenset)):
        return expected in actual
    return str(expected) in str(actual)


def _in(actual: Any, expected: Any) -> bool:
    if not isinstance(expected, (list, tuple, set, frozenset)):
        return False
    return actual in expected


_OPERATORS: dict[ValueOperator, Callable[[Any, Any], bool]] = {
    ValueOperator.EQUALS: lambda actual, expected: actual == expected,
    ValueOperator.NOT_EQUALS: lambda actual, expected: actual != expected,
    ValueOperator.IN: _in,
    ValueOperator.CONTAINS: _contains,
    ValueOperator.EXISTS: lambda actual, _expected: actual is not None,
    ValueOperator.GREATER_THAN: lambda actual, expected: actual > expected,
    ValueOperator.LESS_THAN: lambda actual, expected: actual < expected,
}


def compare(operator: ValueOperator, actual: Any, expected: Any) -> bool:
    """Apply a VALUE operator.

    Ordering comparisons between incomparable values (None, str vs int)
    count as a non-match rather than an error. Catalog list values are
    stored as tuples, so list-valued record fields are compared as tuples.
    """
    if isinstance(actual, list):
        actual = tuple(actual)
    try:
        return bool(_OPERATORS[operator](actual, expected))
    except TypeError:
        return False


# ---------------------------------------------------------------------------
# Evaluators
# ---------------------------------------------------------------------------


@register_evaluator(CriterionType.EXISTS)
def evaluate_exists(
    criterion: ProofCriterion,
    node_map: Mapping[str, Sequence[EvidenceNode]],
    now: datetime,
) -> CriterionOutcome:
    """Met iff the referenced alias has at least one node."""
    nodes = _nodes_for(criterion, node_map)
    if nodes:
        return CriterionOutcome(met=True, details=f"Found {len(nodes)} matching records")
    return CriterionOutcome(met=False, details="No matching records found")


@register_evaluator(CriterionType.COUNT)
def evaluate_count(
    criterion: ProofCriterion,
    node_map: Mapping[str, Sequence[EvidenceNode]],
    now: datetime,
) -> CriterionOutcome:
    """Met iff the alias has at least min_count nodes (default 1)."""
    nodes = _nodes_for(criterion, node_map)
    min_count = criterion.params.min_count if criterion.params.min_count is not None else 1
    return CriterionOutcome(
        met=len(nodes) >= min_count,
        details=f"Found {len(nodes)} records (required: {min_count})",
    )


@register_evaluator(CriterionType.VALUE)
def evaluate_value(
    criterion: ProofCriterion,
    node_map: Mapping[str, Sequence[EvidenceNode]],
    now: datetime,
) -> CriterionOutcome:
    """Met iff at least one node's field satisfies the operator."""
    nodes = _nodes_for(criterion, node_map)
    if not nodes:
        return CriterionOutcome(met=False, details=NO_RECORDS_DETAIL)

    params = criterion.params
    if params.field is None or params.operator is None:
        return CriterionOutcome(met=False, details="Criterion has no field or operator")

    matching = sum(1 for node in nodes if compare(params.operator, node.get(params.field), params.value))
    return CriterionOutcome(
        met=matching > 0,
        details=f"{matching}/{len(nodes)} records match condition",
    )


@register_evaluator(CriterionType.TIMING)
def evaluate_timing(
    criterion: ProofCriterion,
    node_map: Mapping[str, Sequence[EvidenceNode]],
    now: datetime,
) -> CriterionOutcome:
    """Met iff at least one node's timestamp field is within the last within_hours.

    The window is measured back from now, not from the query's time range.
    The boundary is inclusive: a timestamp exactly within_hours old counts.
    """
    nodes = _nodes_for(criterion, node_map)
    if not nodes:
        return CriterionOutcome(met=False, details=NO_RECORDS_DETAIL)

    params = criterion.params
    if params.field is None or params.within_hours is None:
        return CriterionOutcome(met=False, details="Criterion has no field or window")

    cutoff = now - timedelta(hours=params.within_hours)
    recent = 0
    for node in nodes:
        moment = parse_timestamp(node.get(params.field))
        if moment is not None and moment >= cutoff:
            recent += 1
    return CriterionOutcome(
        met=recent > 0,
        details=f"{recent}/{len(nodes)} records within {_format_hours(params.within_hours)} hours",
    )


@register_evaluator(CriterionType.RELATIONSHIP)
def evaluate_relationship(
    criterion: ProofCriterion,
    node_map: Mapping[str, Sequence[EvidenceNode]],
    now: datetime,
) -> CriterionOutcome:
    """Simplified check: met iff the referenced alias is non-empty.

    No edge between the two aliases is verified. That needs an edge query
    on the Evidence Store Adapter, which it does not offer.
    """
    nodes = _nodes_for(criterion, node_map)
    details = "Relationship check (simplified)"
    if criterion.params.related_alias:
        details = f"{details}: {criterion.params.node_alias} -> {criterion.params.related_alias} not verified"
    return CriterionOutcome(met=len(nodes) > 0, details=details)


def evaluate_criterion(
    criterion: ProofCriterion,
    node_map: Mapping[str, Sequence[EvidenceNode]],
    now: datetime,
) -> CriterionOutcome:
    """Evaluate one criterion with its registered evaluator.

    Args:
        criterion: The criterion to evaluate.
        node_map: Fetched nodes by alias.
        now: Evaluation time for TIMING criteria.

    Returns:
        The outcome. Types without an evaluator are unmet.
    """
    evaluator = get_evaluator(criterion.criterion_type)
    if evaluator is None:
        return CriterionOutcome(met=False, details=UNKNOWN_TYPE_DETAIL)
    return evaluator(criterion, node_map, now)
