"""Pydantic result schemas returned by the Proof Engine.

Results are computed fresh on every call and never persisted by the engine.
Callers serialise them with model_dump() / model_dump_json().

Schemas:
- ProofDetail, Gap, EvidenceBundle: parts of one query result
- ComplianceQueryResult: output of execute_query
- VerdictCounts, CriticalGap, ComplianceSummary: output of get_compliance_summary
"""

from datetime import datetime

from pydantic import BaseModel, Field

from aumos_proof_engine.catalog.definitions import CriterionType, QueryCategory, Severity
from aumos_proof_engine.proof.scoring import QueryVerdict


# ---------------------------------------------------------------------------
# Query result parts
# ---------------------------------------------------------------------------


class ProofDetail(BaseModel):
    """Outcome of one proof criterion, in declaration order."""

    criterion_id: str = Field(description="Criterion identifier within the query")
    criterion: str = Field(description="Criterion description")
    criterion_type: CriterionType = Field(description="Evaluation type")
    met: bool = Field(description="Whether the criterion is satisfied")
    details: str = Field(description="Evaluator detail, e.g. '2/3 records match condition'")
    weight: float = Field(description="Criterion weight")
    mandatory: bool = Field(default=False, description="Marked essential by the query author")


class Gap(BaseModel):
    """An unmet criterion plus a suggested remediation."""

    criterion_id: str = Field(description="Criterion identifier within the query")
    criterion_type: CriterionType = Field(description="Evaluation type of the unmet criterion")
    description: str = Field(description="Criterion description")
    recommendation: str = Field(description="Suggested remediation")
    mandatory: bool = Field(default=False, description="Marked essential by the query author")


class EvidenceBundle(BaseModel):
    """Cross-reference identifiers found in the fetched evidence.

    Ids are de-duplicated and kept in first-seen order.
    """

    events: list[str] = Field(default_factory=list)
    decisions: list[str] = Field(default_factory=list)
    clocks: list[str] = Field(default_factory=list)
    artifacts: list[str] = Field(default_factory=list)

    @property
    def evidence_count(self) -> int:
        return len(self.events) + len(self.decisions) + len(self.clocks) + len(self.artifacts)


class EffectiveTimeRange(BaseModel):
    """The evaluation window actually used."""

    start: datetime = Field(description="Inclusive lower bound (UTC)")
    end: datetime = Field(description="Inclusive upper bound (UTC)")


# ---------------------------------------------------------------------------
# Query result
# ---------------------------------------------------------------------------


class ComplianceQueryResult(BaseModel):
    """Result of executing one query definition."""

    query_id: str = Field(description="Query definition identifier")
    query_name: str = Field(description="Query display name")
    regulation: str = Field(description="Regulation tag")
    articles: list[str] = Field(description="Article references")
    severity: Severity = Field(description="Query severity")
    category: QueryCategory | None = Field(default=None, description="Functional grouping")
    verdict: QueryVerdict = Field(description="PROVEN | PARTIAL | NOT_PROVEN")
    confidence: int = Field(ge=0, le=100, description="Achieved weight as a percentage of max weight")
    total_score: float = Field(description="Sum of weights of met criteria")
    max_score: float = Field(description="Sum of all criterion weights")
    evidence_count: int = Field(description="Total ids in the evidence bundle")
    evidence: EvidenceBundle = Field(description="Supporting evidence ids")
    node_counts: dict[str, int] = Field(description="Fetched node count per alias")
    proof_details: list[ProofDetail] = Field(description="Per-criterion outcomes in declaration order")
    gaps: list[Gap] | None = Field(default=None, description="Unmet criteria; None when all are met")
    executed_at: datetime = Field(description="Execution timestamp (UTC)")
    execution_time_ms: float = Field(description="Wall-clock execution duration")
    time_range: EffectiveTimeRange = Field(description="Evaluation window used")


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


class VerdictCounts(BaseModel):
    """Verdict tallies."""

    proven: int = 0
    partial: int = 0
    not_proven: int = 0
    total: int = 0

    def add(self, verdict: QueryVerdict) -> None:
        self.total += 1
        if verdict is QueryVerdict.PROVEN:
            self.proven += 1
        elif verdict is QueryVerdict.PARTIAL:
            self.partial += 1
        else:
            self.not_proven += 1


class CriticalGap(BaseModel):
    """Gaps of a CRITICAL-severity query that is not PROVEN."""

    query_id: str
    query_name: str
    regulation: str
    verdict: QueryVerdict
    gaps: list[str] = Field(description="Gap descriptions in criterion order")


class ComplianceSummary(BaseModel):
    """Cross-regulation roll-up of every query definition in the catalog."""

    overall: VerdictCounts = Field(default_factory=VerdictCounts)
    by_regulation: dict[str, VerdictCounts] = Field(default_factory=dict)
    critical_gaps: list[CriticalGap] = Field(default_factory=list)
    failed_query_ids: list[str] = Field(
        default_factory=list,
        description="Queries that raised or were cut off by the summary deadline",
    )
    time_range: EffectiveTimeRange = Field(description="Evaluation window shared by all queries")
    generated_at: datetime = Field(description="Summary timestamp (UTC)")
