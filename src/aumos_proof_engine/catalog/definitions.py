"""Query Definition model — the declarative rule sets the engine executes.

A QueryDefinition names a regulation obligation, declares which evidence to
fetch (NodeSpecs) and how to score it (ProofCriteria). Definitions are
immutable and loaded once per process by the QueryCatalog.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from aumos_proof_engine.evidence.filters import FilterExpression


class CriterionType(str, Enum):
    """Proof criterion evaluation types."""

    EXISTS = "EXISTS"
    COUNT = "COUNT"
    VALUE = "VALUE"
    TIMING = "TIMING"
    RELATIONSHIP = "RELATIONSHIP"
    CUSTOM = "CUSTOM"


class ValueOperator(str, Enum):
    """Comparison operators for VALUE criteria."""

    EQUALS = "EQUALS"
    NOT_EQUALS = "NOT_EQUALS"
    IN = "IN"
    CONTAINS = "CONTAINS"
    EXISTS = "EXISTS"
    GREATER_THAN = "GREATER_THAN"
    LESS_THAN = "LESS_THAN"


class Severity(str, Enum):
    """Query severity, used for summary roll-ups."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class QueryCategory(str, Enum):
    """Functional grouping of compliance queries."""

    INCIDENT_MANAGEMENT = "INCIDENT_MANAGEMENT"
    BREACH_NOTIFICATION = "BREACH_NOTIFICATION"
    RISK_MANAGEMENT = "RISK_MANAGEMENT"
    ACCESS_CONTROL = "ACCESS_CONTROL"
    DATA_PROTECTION = "DATA_PROTECTION"
    AI_OVERSIGHT = "AI_OVERSIGHT"
    VENDOR_MANAGEMENT = "VENDOR_MANAGEMENT"
    GOVERNANCE = "GOVERNANCE"
    DOCUMENTATION = "DOCUMENTATION"
    MONITORING = "MONITORING"


@dataclass(frozen=True)
class NodeSpec:
    """Evidence to fetch for one alias.

    Attributes:
        alias: Local name referenced by criteria.
        kind: Node kind name (EVENT, DECISION, CLOCK, ACTOR, CONTROL, ARTIFACT).
            Resolved at execution time; an unknown name makes the query
            definition unexecutable.
        filters: Filter expressions ANDed together.
        min_count: Informational minimum-count hint.
        optional: Informational flag; fetching is always attempted.
    """

    alias: str
    kind: str
    filters: tuple[FilterExpression, ...] = ()
    min_count: int | None = None
    optional: bool = False


@dataclass(frozen=True)
class EdgeSpec:
    """A graph edge the obligation implies between two aliases.

    Carried for documentation only; edges are not verified (see
    RELATIONSHIP criteria).
    """

    edge_type: str
    from_alias: str
    to_alias: str
    optional: bool = False


@dataclass(frozen=True)
class CriterionParams:
    """Type-specific criterion parameters.

    Attributes:
        node_alias: Alias whose nodes the criterion inspects.
        field: Field name (VALUE, TIMING). Dotted paths reach into payloads.
        operator: Comparison operator (VALUE).
        value: Expected value (VALUE). A list for IN.
        min_count: Required node count (COUNT). Defaults to 1.
        within_hours: Recency window relative to evaluation time (TIMING).
        related_alias: Second alias of the implied edge (RELATIONSHIP).
    """

    node_alias: str | None = None
    field: str | None = None
    operator: ValueOperator | None = None
    value: Any = None
    min_count: int | None = None
    within_hours: float | None = None
    related_alias: str | None = None


@dataclass(frozen=True)
class ProofCriterion:
    """One weighted, typed test against fetched evidence.

    Attributes:
        criterion_id: Stable identifier within the query definition.
        criterion_type: Evaluation type.
        description: Human-readable statement of what must be true.
        weight: Positive contribution to the maximum achievable score.
        params: Type-specific parameters.
        mandatory: Marks criteria auditors treat as essential. Reported
            alongside results; does not change the verdict.
    """

    criterion_id: str
    criterion_type: CriterionType
    description: str
    weight: float
    params: CriterionParams = field(default_factory=CriterionParams)
    mandatory: bool = False


@dataclass(frozen=True)
class QueryDefinition:
    """A regulation-tagged rule set describing evidence to fetch and how to score it.

    Attributes:
        query_id: Unique identifier (e.g., "GDPR-33-BREACH-NOTIFICATION").
        name: Display name.
        regulation: Regulation tag (e.g., "GDPR", "DORA").
        articles: Article references (e.g., ["GDPR-33"]).
        severity: Severity used for summary roll-ups.
        node_specs: Evidence to fetch, one entry per alias.
        criteria: Proof criteria in declaration order.
        description: Longer description of the obligation.
        category: Functional grouping.
        automatable: Whether the proof can run unattended.
        required_edges: Implied graph edges (informational).
    """

    query_id: str
    name: str
    regulation: str
    articles: tuple[str, ...]
    severity: Severity
    node_specs: tuple[NodeSpec, ...]
    criteria: tuple[ProofCriterion, ...]
    description: str = ""
    category: QueryCategory | None = None
    automatable: bool = True
    required_edges: tuple[EdgeSpec, ...] = ()
