"""Evidence node model — the six kinds of recorded facts the engine reads.

Every node wraps one immutable record from the evidence store. The record
shape is kind-specific (an EVENT has event_id/occurred_at/severity, a
DECISION has decision_id/timestamp/outcome, ...) and always carries an
arbitrary `payload` mapping. The engine never writes nodes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from aumos_proof_engine.errors import ValidationError


class EvidenceKind(str, Enum):
    """The six evidence node kinds."""

    EVENT = "EVENT"
    DECISION = "DECISION"
    CLOCK = "CLOCK"
    ACTOR = "ACTOR"
    CONTROL = "CONTROL"
    ARTIFACT = "ARTIFACT"


# Canonical timestamp field per kind, used for the time-range bound.
KIND_TIME_FIELDS: dict[EvidenceKind, str | None] = {
    EvidenceKind.EVENT: "occurred_at",
    EvidenceKind.DECISION: "timestamp",
    EvidenceKind.CLOCK: "created_at",
    EvidenceKind.ACTOR: "created_at",
    EvidenceKind.CONTROL: "created_at",
    EvidenceKind.ARTIFACT: "created_at",
}

# Identifier field per kind.
KIND_ID_FIELDS: dict[EvidenceKind, str] = {
    EvidenceKind.EVENT: "event_id",
    EvidenceKind.DECISION: "decision_id",
    EvidenceKind.CLOCK: "clock_id",
    EvidenceKind.ACTOR: "actor_id",
    EvidenceKind.CONTROL: "control_id",
    EvidenceKind.ARTIFACT: "artifact_id",
}

# Collection name per kind on the evidence API.
KIND_COLLECTIONS: dict[EvidenceKind, str] = {
    EvidenceKind.EVENT: "events",
    EvidenceKind.DECISION: "decisions",
    EvidenceKind.CLOCK: "clocks",
    EvidenceKind.ACTOR: "actors",
    EvidenceKind.CONTROL: "controls",
    EvidenceKind.ARTIFACT: "artifacts",
}


def canonical_time_field(kind: EvidenceKind) -> str | None:
    """Return the canonical timestamp field for a kind, or None if it has none."""
    return KIND_TIME_FIELDS.get(kind)


def parse_timestamp(value: Any) -> datetime | None:
    """Coerce a record timestamp to an aware UTC datetime.

    Accepts datetime instances and ISO-8601 strings (including a trailing
    "Z"). Naive datetimes are assumed to be UTC.

    Args:
        value: Raw field value from an evidence record.

    Returns:
        The aware datetime, or None if the value is missing or unparseable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass(frozen=True)
class TimeRange:
    """Inclusive evaluation window.

    Naive bounds are read as UTC, like record timestamps.

    Attributes:
        start: Lower bound (inclusive).
        end: Upper bound (inclusive).

    Raises:
        ValidationError: If start is after end.
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        for name in ("start", "end"):
            moment = getattr(self, name)
            if moment.tzinfo is None:
                object.__setattr__(self, name, moment.replace(tzinfo=UTC))
        if self.start > self.end:
            raise ValidationError(
                f"Time range start {self.start.isoformat()} is after end {self.end.isoformat()}"
            )


@dataclass(frozen=True)
class EvidenceNode:
    """One immutable evidence record of a given kind.

    Attributes:
        kind: The node kind.
        record: Read-only view of the full record as returned by the store.
    """

    kind: EvidenceKind
    record: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Freeze a private copy so later mutation of the source dict is not visible.
        object.__setattr__(self, "record", MappingProxyType(dict(self.record)))

    @property
    def node_id(self) -> str | None:
        """Identifier from the kind's id field (event_id, decision_id, ...)."""
        value = self.record.get(KIND_ID_FIELDS[self.kind])
        return str(value) if value is not None else None

    def get(self, field_name: str, default: Any = None) -> Any:
        """Read a field, following dotted paths into nested mappings.

        "severity" reads a top-level field; "payload.notified_by" walks into
        the payload mapping.

        Args:
            field_name: Field name or dotted path.
            default: Value returned when any path segment is missing.

        Returns:
            The field value or default.
        """
        if field_name in self.record:
            return self.record[field_name]
        current: Any = self.record
        for segment in field_name.split("."):
            if not isinstance(current, Mapping) or segment not in current:
                return default
            current = current[segment]
        return current
