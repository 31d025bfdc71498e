"""Proof Engine — public orchestrator for compliance proofs.

Pipeline per query definition:

    Fetching -> Evaluating -> Scoring -> GapAnalysis -> Assembled

1. Node Fetcher pulls evidence for every alias in the time range (failed
   fetches degrade to empty lists)
2. Criterion Evaluator checks each proof criterion against the node map
3. Scorer turns met weights into confidence and a verdict
4. Gap Identifier lists unmet criteria with remediation hints
5. Evidence Collector gathers cross-reference ids for the result

Public operations:
- execute_query: one definition; raises NotFoundError for an unknown id
- execute_all_for_regulation: every definition of one regulation; a failing
  definition is logged and omitted
- get_compliance_summary: every definition, run concurrently with bounded
  fan-out and an overall deadline, rolled up into verdict counts and
  critical gaps
"""

import asyncio
import calendar
import time
from collections.abc import Callable, Sequence
from datetime import UTC, datetime

from aumos_proof_engine.catalog.definitions import QueryDefinition, Severity
from aumos_proof_engine.catalog.loader import QueryCatalog
from aumos_proof_engine.errors import NotFoundError
from aumos_proof_engine.evidence.http_store import HttpEvidenceStore
from aumos_proof_engine.evidence.nodes import TimeRange
from aumos_proof_engine.evidence.store import IEvidenceStore
from aumos_proof_engine.observability import configure_logging, get_logger
from aumos_proof_engine.proof.criteria import evaluate_criterion
from aumos_proof_engine.proof.evidence_collector import collect_evidence
from aumos_proof_engine.proof.fetcher import NodeFetcher
from aumos_proof_engine.proof.gaps import identify_gaps
from aumos_proof_engine.proof.results import (
    ComplianceQueryResult,
    ComplianceSummary,
    CriticalGap,
    EffectiveTimeRange,
    ProofDetail,
    VerdictCounts,
)
from aumos_proof_engine.proof.scoring import QueryVerdict, VerdictThresholds, score
from aumos_proof_engine.settings import Settings

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


def months_ago(moment: datetime, months: int) -> datetime:
    """Step back a number of calendar months, clamping the day to the target month.

    31 March minus one month is 28 (or 29) February.
    """
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class ProofEngine:
    """Executes compliance query definitions against an evidence store.

    The engine holds no per-execution state; concurrent calls share only the
    catalog (read-only) and the evidence store adapter.

    Args:
        catalog: Query definitions to execute.
        store: Evidence Store Adapter.
        settings: Thresholds, fetch bounds and fan-out limits.
        clock: Source of "now" for default time ranges and TIMING criteria.
    """

    def __init__(
        self,
        catalog: QueryCatalog,
        store: IEvidenceStore,
        settings: Settings | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize ProofEngine.

        Args:
            catalog: The query catalog.
            store: The evidence store adapter.
            settings: Engine settings. Defaults to Settings() from the environment.
            clock: Callable returning an aware UTC datetime. Defaults to the wall clock.
        """
        self._catalog = catalog
        self._settings = settings or Settings()
        self._clock = clock or _utc_now
        self._thresholds = VerdictThresholds(
            proven=self._settings.proven_threshold,
            partial=self._settings.partial_threshold,
        )
        self._fetcher = NodeFetcher(
            store,
            max_nodes=self._settings.max_nodes_per_fetch,
            fetch_timeout_seconds=self._settings.fetch_timeout_seconds,
        )

    @property
    def catalog(self) -> QueryCatalog:
        return self._catalog

    def default_time_range(self) -> TimeRange:
        """Return the last default_lookback_months up to now."""
        now = self._clock()
        return TimeRange(start=months_ago(now, self._settings.default_lookback_months), end=now)

    async def execute_query(self, query_id: str, time_range: TimeRange | None = None) -> ComplianceQueryResult:
        """Execute one query definition.

        Args:
            query_id: Catalog identifier of the query definition.
            time_range: Evaluation window. Defaults to the last 12 months
                (default_lookback_months).

        Returns:
            The assembled ComplianceQueryResult.

        Raises:
            NotFoundError: If query_id is not in the catalog.
            QueryDefinitionError: If the definition cannot be executed
                (e.g. an unknown node kind).
        """
        definition = self._catalog.get_query_definition(query_id)
        if definition is None:
            raise NotFoundError(f"Compliance query '{query_id}' not found")
        return await self._execute(definition, time_range or self.default_time_range())

    async def execute_all_for_regulation(
        self,
        regulation: str,
        time_range: TimeRange | None = None,
    ) -> list[ComplianceQueryResult]:
        """Execute every query definition tagged with a regulation.

        A definition that raises is logged and left out; the batch itself
        never fails.

        Args:
            regulation: Regulation tag (e.g. "GDPR").
            time_range: Evaluation window shared by all queries.

        Returns:
            Results in catalog order for the definitions that succeeded.
        """
        definitions = self._catalog.list_query_definitions(regulation)
        results, failed_query_ids = await self._execute_many(
            definitions,
            time_range or self.default_time_range(),
            deadline_seconds=None,
        )
        logger.info(
            "Regulation queries executed",
            regulation=regulation,
            executed=len(results),
            failed=len(failed_query_ids),
        )
        return results

    async def get_compliance_summary(self, time_range: TimeRange | None = None) -> ComplianceSummary:
        """Execute every query definition and roll up the verdicts.

        Queries run concurrently, at most summary_concurrency at a time. A
        failing query, or one still running at summary_deadline_seconds, is
        recorded in failed_query_ids and otherwise ignored.

        Args:
            time_range: Evaluation window shared by all queries.

        Returns:
            Verdict counts overall and per regulation, plus critical gaps:
            the gap descriptions of every CRITICAL query that is not PROVEN.
        """
        effective_range = time_range or self.default_time_range()
        definitions = self._catalog.list_query_definitions()
        results, failed_query_ids = await self._execute_many(
            definitions,
            effective_range,
            deadline_seconds=self._settings.summary_deadline_seconds,
        )

        summary = ComplianceSummary(
            failed_query_ids=failed_query_ids,
            time_range=EffectiveTimeRange(start=effective_range.start, end=effective_range.end),
            generated_at=self._clock(),
        )
        for result in results:
            summary.overall.add(result.verdict)
            summary.by_regulation.setdefault(result.regulation, VerdictCounts()).add(result.verdict)
            if result.severity is Severity.CRITICAL and result.verdict is not QueryVerdict.PROVEN and result.gaps:
                summary.critical_gaps.append(
                    CriticalGap(
                        query_id=result.query_id,
                        query_name=result.query_name,
                        regulation=result.regulation,
                        verdict=result.verdict,
                        gaps=[gap.description for gap in result.gaps],
                    )
                )

        logger.info(
            "Compliance summary complete",
            total=summary.overall.total,
            proven=summary.overall.proven,
            partial=summary.overall.partial,
            not_proven=summary.overall.not_proven,
            critical_gaps=len(summary.critical_gaps),
            failed=len(failed_query_ids),
        )
        return summary

    async def _execute_many(
        self,
        definitions: Sequence[QueryDefinition],
        time_range: TimeRange,
        deadline_seconds: float | None,
    ) -> tuple[list[ComplianceQueryResult], list[str]]:
        """Run definitions concurrently with per-query error capture.

        Returns:
            (results in definition order, ids of failed or cancelled queries)
        """
        if not definitions:
            return [], []

        semaphore = asyncio.Semaphore(self._settings.summary_concurrency)

        async def _run_one(definition: QueryDefinition) -> ComplianceQueryResult | None:
            async with semaphore:
                try:
                    return await self._execute(definition, time_range)
                except Exception as exc:
                    logger.error(
                        "Compliance query failed, omitting from batch",
                        query_id=definition.query_id,
                        regulation=definition.regulation,
                        error=str(exc),
                        error_type=type(exc).__name__,
                    )
                    return None

        tasks = [asyncio.create_task(_run_one(definition)) for definition in definitions]
        _done, pending = await asyncio.wait(tasks, timeout=deadline_seconds)
        if pending:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(
                "Compliance summary deadline expired, cancelled remaining queries",
                deadline_seconds=deadline_seconds,
                cancelled=len(pending),
            )

        results: list[ComplianceQueryResult] = []
        failed_query_ids: list[str] = []
        for definition, task in zip(definitions, tasks):
            result = None if task in pending else task.result()
            if result is None:
                failed_query_ids.append(definition.query_id)
            else:
                results.append(result)
        return results, failed_query_ids

    async def _execute(self, definition: QueryDefinition, time_range: TimeRange) -> ComplianceQueryResult:
        start_time = time.monotonic()
        now = self._clock()

        logger.info(
            "Executing compliance query",
            query_id=definition.query_id,
            regulation=definition.regulation,
            time_range_start=time_range.start.isoformat(),
            time_range_end=time_range.end.isoformat(),
        )

        node_map = await self._fetcher.fetch(definition.node_specs, time_range)

        outcomes = [evaluate_criterion(criterion, node_map, now) for criterion in definition.criteria]
        score_card = score(definition.criteria, outcomes, self._thresholds)
        gaps = identify_gaps(definition.criteria, outcomes)
        evidence = collect_evidence(node_map)

        execution_time_ms = (time.monotonic() - start_time) * 1000
        result = ComplianceQueryResult(
            query_id=definition.query_id,
            query_name=definition.name,
            regulation=definition.regulation,
            articles=list(definition.articles),
            severity=definition.severity,
            category=definition.category,
            verdict=score_card.verdict,
            confidence=score_card.confidence,
            total_score=score_card.total_score,
            max_score=score_card.max_score,
            evidence_count=evidence.evidence_count,
            evidence=evidence,
            node_counts={alias: len(nodes) for alias, nodes in node_map.items()},
            proof_details=[
                ProofDetail(
                    criterion_id=criterion.criterion_id,
                    criterion=criterion.description,
                    criterion_type=criterion.criterion_type,
                    met=outcome.met,
                    details=outcome.details,
                    weight=criterion.weight,
                    mandatory=criterion.mandatory,
                )
                for criterion, outcome in zip(definition.criteria, outcomes)
            ],
            gaps=gaps or None,
            executed_at=now,
            execution_time_ms=round(execution_time_ms, 2),
            time_range=EffectiveTimeRange(start=time_range.start, end=time_range.end),
        )

        logger.info(
            "Compliance query complete",
            query_id=definition.query_id,
            verdict=result.verdict.value,
            confidence=result.confidence,
            gap_count=len(gaps),
            execution_time_ms=result.execution_time_ms,
        )
        return result


def create_default_engine(settings: Settings | None = None) -> ProofEngine:
    """Build a ProofEngine wired to the HTTP evidence API.

    Configures logging from settings, then loads the catalog from
    settings.catalog_dir, or the bundled catalog when it is unset.

    Args:
        settings: Engine settings. Defaults to Settings() from the environment.

    Returns:
        A ready-to-use ProofEngine.
    """
    settings = settings or Settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    catalog = (
        QueryCatalog.from_directory(settings.catalog_dir)
        if settings.catalog_dir is not None
        else QueryCatalog.default()
    )
    store = HttpEvidenceStore(
        base_url=settings.evidence_api_url,
        api_token=settings.evidence_api_token,
        timeout_seconds=settings.evidence_api_timeout_seconds,
    )
    return ProofEngine(catalog=catalog, store=store, settings=settings)
