"""Evidence Collector — gather cross-reference ids from fetched nodes."""

from collections.abc import Mapping, Sequence

from aumos_proof_engine.evidence.nodes import EvidenceNode
from aumos_proof_engine.proof.results import EvidenceBundle

# Record id field -> EvidenceBundle list it lands in
_ID_FIELD_BUCKETS = {
    "event_id": "events",
    "decision_id": "decisions",
    "clock_id": "clocks",
    "artifact_id": "artifacts",
}


def collect_evidence(node_map: Mapping[str, Sequence[EvidenceNode]]) -> EvidenceBundle:
    """Collect event, decision, clock and artifact ids across all aliases.

    A record is scanned for every id field, so an artifact that references
    an event contributes to both lists. The same id fetched under two
    aliases is listed once.

    Args:
        node_map: Fetched nodes by alias.

    Returns:
        The evidence bundle.
    """
    buckets: dict[str, dict[str, None]] = {bucket: {} for bucket in _ID_FIELD_BUCKETS.values()}
    for nodes in node_map.values():
        for node in nodes:
            for id_field, bucket in _ID_FIELD_BUCKETS.items():
                value = node.record.get(id_field)
                if value:
                    buckets[bucket].setdefault(str(value), None)
    return EvidenceBundle(**{bucket: list(ids) for bucket, ids in buckets.items()})
