"""Query Catalog — load query definitions from YAML and look them up.

Catalog files are bundled as static YAML inside the package (one file per
regulation under catalog/queries/) and loaded once at startup. A deployment
can point AUMOS_PROOF_ENGINE_CATALOG_DIR at its own directory instead.

File format:

    regulation: GDPR
    queries:
      - query_id: GDPR-33-BREACH-NOTIFICATION
        name: Breach notified to the supervisory authority within 72 hours
        articles: [GDPR-33]
        severity: CRITICAL
        required_nodes:
          - alias: breach_events
            kind: EVENT
            filters:
              event_type: INCIDENT.BREACH.DETECTED
              regulatory_tags: {has: GDPR}
        proof_criteria:
          - id: breach-recorded
            type: EXISTS
            description: Personal data breach recorded
            weight: 20
            params: {node_alias: breach_events}

The catalog is read-only once loaded; the engine never mutates it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

from aumos_proof_engine.catalog.definitions import (
    CriterionParams,
    CriterionType,
    EdgeSpec,
    NodeSpec,
    ProofCriterion,
    QueryCategory,
    QueryDefinition,
    Severity,
    ValueOperator,
)
from aumos_proof_engine.errors import ValidationError
from aumos_proof_engine.evidence.filters import parse_filters
from aumos_proof_engine.observability import get_logger

logger = get_logger(__name__)

# Path to the bundled YAML catalog directory
_BUNDLED_CATALOG_DIR = Path(__file__).parent / "queries"


def _require_mapping(raw: Any, context: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise ValidationError(f"{context}: expected a mapping, got {type(raw).__name__}")
    return raw


def _require(raw: Mapping[str, Any], key: str, context: str) -> Any:
    if key not in raw or raw[key] in (None, ""):
        raise ValidationError(f"{context}: missing required field '{key}'")
    return raw[key]


def _optional_list(raw: Mapping[str, Any], key: str, context: str) -> list[Any]:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"{context}: '{key}' must be a list")
    return value


def _optional_number(value: Any, convert: type, name: str, context: str) -> Any:
    if value is None:
        return None
    try:
        return convert(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{context}: {name} must be a number, got {value!r}")


def _parse_enum(enum_type: type, value: Any, context: str) -> Any:
    try:
        return enum_type(str(value).upper())
    except ValueError:
        allowed = [member.value for member in enum_type]
        raise ValidationError(f"{context}: invalid value '{value}', expected one of {allowed}")


def parse_node_spec(raw: Mapping[str, Any], context: str) -> NodeSpec:
    """Parse one required_nodes entry.

    The kind is kept as written; unknown kinds are reported when the query
    is executed, so one bad entry does not block the rest of the catalog.

    Args:
        raw: YAML mapping for the node spec.
        context: Location prefix for error messages.

    Returns:
        The parsed NodeSpec.
    """
    raw = _require_mapping(raw, f"{context} node")
    alias = str(_require(raw, "alias", context))
    filters_raw = raw.get("filters") or {}
    if not isinstance(filters_raw, Mapping):
        raise ValidationError(f"{context}: filters for alias '{alias}' must be a mapping")
    return NodeSpec(
        alias=alias,
        kind=str(_require(raw, "kind", context)).upper(),
        filters=parse_filters(filters_raw),
        min_count=_optional_number(raw.get("min_count"), int, "min_count", f"{context} alias '{alias}'"),
        optional=bool(raw.get("optional", False)),
    )


def parse_criterion(raw: Mapping[str, Any], context: str) -> ProofCriterion:
    """Parse one proof_criteria entry.

    Args:
        raw: YAML mapping for the criterion.
        context: Location prefix for error messages.

    Returns:
        The parsed ProofCriterion.

    Raises:
        ValidationError: On a missing field, unknown type or operator, or a
            non-positive weight.
    """
    raw = _require_mapping(raw, f"{context} criterion")
    criterion_id = str(_require(raw, "id", context))
    criterion_context = f"{context} criterion '{criterion_id}'"
    criterion_type = _parse_enum(CriterionType, _require(raw, "type", criterion_context), criterion_context)

    try:
        weight = float(_require(raw, "weight", criterion_context))
    except (TypeError, ValueError):
        raise ValidationError(f"{criterion_context}: weight must be a number")
    if weight <= 0:
        raise ValidationError(f"{criterion_context}: weight must be positive, got {weight}")

    params_raw = _require_mapping(raw.get("params") or {}, f"{criterion_context} params")
    operator_raw = params_raw.get("operator")
    value = params_raw.get("value")
    params = CriterionParams(
        node_alias=params_raw.get("node_alias"),
        field=params_raw.get("field"),
        operator=_parse_enum(ValueOperator, operator_raw, criterion_context) if operator_raw else None,
        value=tuple(value) if isinstance(value, list) else value,
        min_count=_optional_number(params_raw.get("min_count"), int, "min_count", criterion_context),
        within_hours=_optional_number(params_raw.get("within_hours"), float, "within_hours", criterion_context),
        related_alias=params_raw.get("related_alias"),
    )

    if criterion_type is CriterionType.VALUE and (params.field is None or params.operator is None):
        raise ValidationError(f"{criterion_context}: VALUE criteria need 'field' and 'operator'")
    if criterion_type is CriterionType.TIMING and (params.field is None or params.within_hours is None):
        raise ValidationError(f"{criterion_context}: TIMING criteria need 'field' and 'within_hours'")

    return ProofCriterion(
        criterion_id=criterion_id,
        criterion_type=criterion_type,
        description=str(_require(raw, "description", criterion_context)),
        weight=weight,
        params=params,
        mandatory=bool(raw.get("mandatory", False)),
    )


def _parse_edge(raw: Any, context: str) -> EdgeSpec:
    raw = _require_mapping(raw, f"{context} edge")
    return EdgeSpec(
        edge_type=str(_require(raw, "type", context)),
        from_alias=str(_require(raw, "from", context)),
        to_alias=str(_require(raw, "to", context)),
        optional=bool(raw.get("optional", False)),
    )


def parse_query_definition(raw: Mapping[str, Any], default_regulation: str | None = None) -> QueryDefinition:
    """Parse one query definition mapping.

    Args:
        raw: YAML mapping for the query.
        default_regulation: Regulation inherited from the file header.

    Returns:
        The parsed QueryDefinition.

    Raises:
        ValidationError: If the definition is malformed.
    """
    raw = _require_mapping(raw, "query")
    query_id = str(_require(raw, "query_id", "query"))
    context = f"query '{query_id}'"
    regulation = raw.get("regulation") or default_regulation
    if not regulation:
        raise ValidationError(f"{context}: missing required field 'regulation'")

    node_specs = tuple(
        parse_node_spec(node_raw, context) for node_raw in _optional_list(raw, "required_nodes", context)
    )
    aliases = [spec.alias for spec in node_specs]
    if len(aliases) != len(set(aliases)):
        raise ValidationError(f"{context}: duplicate node aliases {aliases}")

    criteria = tuple(
        parse_criterion(criterion_raw, context)
        for criterion_raw in _optional_list(raw, "proof_criteria", context)
    )
    if not criteria:
        raise ValidationError(f"{context}: at least one proof criterion is required")

    edges = tuple(
        _parse_edge(edge_raw, context) for edge_raw in _optional_list(raw, "required_edges", context)
    )

    category_raw = raw.get("category")
    return QueryDefinition(
        query_id=query_id,
        name=str(_require(raw, "name", context)),
        regulation=str(regulation),
        articles=tuple(str(article) for article in _optional_list(raw, "articles", context)),
        severity=_parse_enum(Severity, raw.get("severity", "MEDIUM"), context),
        node_specs=node_specs,
        criteria=criteria,
        description=str(raw.get("description", "")).strip(),
        category=_parse_enum(QueryCategory, category_raw, context) if category_raw else None,
        automatable=bool(raw.get("automatable", True)),
        required_edges=edges,
    )


def load_query_file(path: Path) -> list[QueryDefinition]:
    """Load every query definition from one YAML catalog file.

    Args:
        path: The YAML file.

    Returns:
        Parsed definitions in file order.

    Raises:
        ValidationError: If the file or any definition in it is malformed.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ValidationError(f"{path.name}: not valid UTF-8 ({exc.reason})")
    raw = yaml.safe_load(text)
    if not isinstance(raw, Mapping) or not isinstance(raw.get("queries"), list):
        raise ValidationError(f"{path.name}: expected a mapping with a 'queries' list")
    regulation = raw.get("regulation")
    return [parse_query_definition(query_raw, regulation) for query_raw in raw["queries"]]


class QueryCatalog:
    """Read-only lookup of query definitions by id and regulation.

    Args:
        definitions: Initial definitions, in catalog order.
    """

    def __init__(self, definitions: Iterable[QueryDefinition] = ()) -> None:
        """Initialize the catalog.

        Args:
            definitions: Definitions to index.

        Raises:
            ValidationError: If two definitions share a query_id.
        """
        self._definitions: dict[str, QueryDefinition] = {}
        self._add_all(definitions)

    def _add_all(self, definitions: Iterable[QueryDefinition]) -> None:
        # All or nothing: a duplicate leaves the catalog unchanged.
        staged: dict[str, QueryDefinition] = {}
        for definition in definitions:
            if definition.query_id in self._definitions or definition.query_id in staged:
                raise ValidationError(f"Duplicate query id '{definition.query_id}' in catalog")
            staged[definition.query_id] = definition
        self._definitions.update(staged)

    @classmethod
    def from_directory(cls, catalog_dir: Path) -> QueryCatalog:
        """Load all *.yaml files in a directory.

        A file that fails to load is logged and skipped, so one broken file
        does not take the rest of the catalog down.

        Args:
            catalog_dir: Directory containing catalog files.

        Returns:
            The populated catalog.
        """
        catalog = cls()
        if not catalog_dir.exists():
            logger.warning("Catalog directory not found, no queries loaded", catalog_dir=str(catalog_dir))
            return catalog

        for yaml_file in sorted(catalog_dir.glob("*.yaml")):
            try:
                definitions = load_query_file(yaml_file)
                catalog._add_all(definitions)
                logger.debug("Loaded query catalog file", yaml_file=str(yaml_file), count=len(definitions))
            except (OSError, yaml.YAMLError, ValidationError) as exc:
                logger.error("Failed to load query catalog file", yaml_file=str(yaml_file), error=str(exc))

        logger.info("Query catalog loaded", count=len(catalog), regulations=catalog.regulations())
        return catalog

    @classmethod
    def default(cls) -> QueryCatalog:
        """Load the catalog bundled with the package."""
        return cls.from_directory(_BUNDLED_CATALOG_DIR)

    def get_query_definition(self, query_id: str) -> QueryDefinition | None:
        """Return the definition for query_id, or None if unknown."""
        return self._definitions.get(query_id)

    def list_query_definitions(self, regulation: str | None = None) -> list[QueryDefinition]:
        """Return definitions in catalog order, optionally for one regulation.

        Args:
            regulation: Regulation tag to filter by. None returns all.

        Returns:
            Matching definitions.
        """
        return [
            definition
            for definition in self._definitions.values()
            if regulation is None or definition.regulation == regulation
        ]

    def regulations(self) -> list[str]:
        """Return the distinct regulation tags in catalog order."""
        return list(dict.fromkeys(definition.regulation for definition in self._definitions.values()))

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, query_id: object) -> bool:
        return query_id in self._definitions
