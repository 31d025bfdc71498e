"""Filter expressions applied when fetching evidence nodes.

A node spec's filters are a closed set of variants built by the catalog
loader. Adapters translate each variant into their own query language
(`to_clause()` gives the evidence API shape) or evaluate it in Python
(`matches()`). There is no catch-all variant, so an unrecognised filter
shape fails at catalog load time instead of being silently ignored.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Union

from aumos_proof_engine.errors import ValidationError
from aumos_proof_engine.evidence.nodes import parse_timestamp

PAYLOAD_PREFIX = "payload."


@dataclass(frozen=True)
class Equals:
    """`record[field] == value`."""

    field: str
    value: Any

    def matches(self, record: Mapping[str, Any]) -> bool:
        return record.get(self.field) == self.value

    def to_clause(self) -> dict[str, Any]:
        return {self.field: {"equals": self.value}}


@dataclass(frozen=True)
class Contains:
    """Substring match on a string field, or membership on a list field."""

    field: str
    value: Any

    def matches(self, record: Mapping[str, Any]) -> bool:
        actual = record.get(self.field)
        if isinstance(actual, str):
            return str(self.value) in actual
        if isinstance(actual, (list, tuple, set, frozenset)):
            return self.value in actual
        return False

    def to_clause(self) -> dict[str, Any]:
        return {self.field: {"contains": self.value}}


@dataclass(frozen=True)
class InSet:
    """`record[field]` is one of `values`."""

    field: str
    values: tuple[Any, ...]

    def matches(self, record: Mapping[str, Any]) -> bool:
        return record.get(self.field) in self.values

    def to_clause(self) -> dict[str, Any]:
        return {self.field: {"in": list(self.values)}}


@dataclass(frozen=True)
class HasElement:
    """List field `record[field]` contains `value`."""

    field: str
    value: Any

    def matches(self, record: Mapping[str, Any]) -> bool:
        actual = record.get(self.field)
        return isinstance(actual, (list, tuple, set, frozenset)) and self.value in actual

    def to_clause(self) -> dict[str, Any]:
        return {self.field: {"has": self.value}}


@dataclass(frozen=True)
class PayloadPathEquals:
    """Nested payload value at `path` equals `value`."""

    path: tuple[str, ...]
    value: Any

    def matches(self, record: Mapping[str, Any]) -> bool:
        current: Any = record.get("payload")
        for segment in self.path:
            if not isinstance(current, Mapping) or segment not in current:
                return False
            current = current[segment]
        return current == self.value

    def to_clause(self) -> dict[str, Any]:
        return {"payload": {"path": list(self.path), "equals": self.value}}


@dataclass(frozen=True)
class TimeBetween:
    """Inclusive time-range bound on a timestamp field.

    Added by the Node Fetcher on the kind's canonical timestamp field; never
    declared in the catalog.
    """

    field: str
    start: datetime
    end: datetime

    def matches(self, record: Mapping[str, Any]) -> bool:
        moment = parse_timestamp(record.get(self.field))
        return moment is not None and self.start <= moment <= self.end

    def to_clause(self) -> dict[str, Any]:
        return {self.field: {"gte": self.start.isoformat(), "lte": self.end.isoformat()}}


FilterExpression = Union[Equals, Contains, InSet, HasElement, PayloadPathEquals, TimeBetween]


def parse_filter(key: str, value: Any) -> FilterExpression:
    """Build one FilterExpression from a catalog filter entry.

    Shapes:
    - "payload.a.b": v       -> PayloadPathEquals(("a", "b"), v)
    - field: {"contains": v} -> Contains
    - field: {"in": [...]}   -> InSet
    - field: {"has": v}      -> HasElement
    - field: scalar/list     -> Equals

    Args:
        key: Field name or payload path from the catalog.
        value: Filter value or single-key operator mapping.

    Returns:
        The parsed FilterExpression.

    Raises:
        ValidationError: If a mapping value is not one of the known operator shapes.
    """
    if key.startswith(PAYLOAD_PREFIX):
        path = tuple(segment for segment in key[len(PAYLOAD_PREFIX):].split(".") if segment)
        if not path:
            raise ValidationError(f"Empty payload path in filter key '{key}'")
        return PayloadPathEquals(path=path, value=value)

    if isinstance(value, Mapping):
        if len(value) != 1:
            raise ValidationError(
                f"Filter '{key}' must use exactly one operator, got {sorted(str(name) for name in value)}"
            )
        operator, operand = next(iter(value.items()))
        if operator == "contains":
            return Contains(field=key, value=operand)
        if operator == "in":
            if not isinstance(operand, (list, tuple, set, frozenset)):
                raise ValidationError(f"Filter '{key}' operator 'in' requires a list")
            return InSet(field=key, values=tuple(operand))
        if operator == "has":
            return HasElement(field=key, value=operand)
        raise ValidationError(
            f"Unsupported filter operator '{operator}' for '{key}'. "
            "Supported: contains, in, has"
        )

    return Equals(field=key, value=value)


def parse_filters(raw: Mapping[str, Any] | None) -> tuple[FilterExpression, ...]:
    """Parse a catalog filter mapping into FilterExpressions, preserving order."""
    if not raw:
        return ()
    return tuple(parse_filter(str(key), value) for key, value in raw.items())


def matches_all(filters: Sequence[FilterExpression], record: Mapping[str, Any]) -> bool:
    """Return True if the record satisfies every filter (AND semantics)."""
    return all(expression.matches(record) for expression in filters)
