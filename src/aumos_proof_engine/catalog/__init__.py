"""Query catalog for the compliance proof engine.

Modules:
- definitions: Query Definition, Node Spec and Proof Criterion model
- loader: YAML parsing and the read-only QueryCatalog lookup
- queries/: bundled catalog files, one per regulation
"""

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
from aumos_proof_engine.catalog.loader import QueryCatalog, parse_query_definition

__all__ = [
    "CriterionParams",
    "CriterionType",
    "EdgeSpec",
    "NodeSpec",
    "ProofCriterion",
    "QueryCatalog",
    "QueryCategory",
    "QueryDefinition",
    "Severity",
    "ValueOperator",
    "parse_query_definition",
]
