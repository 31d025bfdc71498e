"""Test fixtures for aumos-proof-engine.

Provides:
- fixed_now: The frozen evaluation time used by every engine test
- clock: A callable returning fixed_now, injected into ProofEngine
- evidence_store: An empty InMemoryEvidenceStore
- settings: Settings with defaults and no summary deadline
- evaluation_range: The default 12-month window ending at fixed_now
"""

from collections.abc import Callable
from datetime import UTC, datetime

import pytest

from aumos_proof_engine.evidence.nodes import TimeRange
from aumos_proof_engine.evidence.store import InMemoryEvidenceStore
from aumos_proof_engine.settings import Settings

FIXED_NOW = datetime(2026, 6, 30, 12, 0, 0, tzinfo=UTC)


@pytest.fixture()
def fixed_now() -> datetime:
    """Return the frozen evaluation time.

    Returns:
        30 June 2026, 12:00 UTC.
    """
    return FIXED_NOW


@pytest.fixture()
def clock(fixed_now: datetime) -> Callable[[], datetime]:
    """Return a clock that always reads fixed_now."""
    return lambda: fixed_now


@pytest.fixture()
def evidence_store() -> InMemoryEvidenceStore:
    """Create an empty in-memory evidence store.

    Returns:
        InMemoryEvidenceStore with no records.
    """
    return InMemoryEvidenceStore()


@pytest.fixture()
def settings() -> Settings:
    """Create engine settings isolated from the environment.

    Returns:
        Settings with default thresholds and no summary deadline.
    """
    return Settings(summary_deadline_seconds=None, fetch_timeout_seconds=5.0)


@pytest.fixture()
def evaluation_range(fixed_now: datetime) -> TimeRange:
    """Return the 12-month window ending at fixed_now."""
    return TimeRange(start=datetime(2025, 6, 30, 12, 0, 0, tzinfo=UTC), end=fixed_now)
