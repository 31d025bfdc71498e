"""Error taxonomy for the compliance proof engine.

- NotFoundError: an unknown query id was requested (configuration error,
  fatal for the single call only)
- ValidationError: malformed catalog data or settings
- QueryDefinitionError: a loaded query definition that cannot be executed
- EvidenceStoreError: an Evidence Store Adapter failed; the Node Fetcher
  recovers from it locally by substituting an empty node list
"""


class ProofEngineError(Exception):
    """Base error for all proof engine failures.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        """Initialize ProofEngineError.

        Args:
            message: Error description.
        """
        super().__init__(message)
        self.message = message


class NotFoundError(ProofEngineError):
    """Raised when a query id is not present in the Query Catalog."""


class ValidationError(ProofEngineError):
    """Raised when catalog data or settings fail validation."""


class QueryDefinitionError(ProofEngineError):
    """Raised when a query definition cannot be executed as written."""


class UnknownNodeKindError(QueryDefinitionError):
    """Raised when a node spec references a kind outside the six evidence kinds.

    Attributes:
        kind: The unrecognised kind name.
        alias: The node alias that declared it.
    """

    def __init__(self, kind: str, alias: str) -> None:
        """Initialize UnknownNodeKindError.

        Args:
            kind: The unrecognised kind name.
            alias: The node alias that declared it.
        """
        super().__init__(f"Unknown evidence node kind '{kind}' for alias '{alias}'")
        self.kind = kind
        self.alias = alias


class EvidenceStoreError(ProofEngineError):
    """Raised by Evidence Store Adapters when a fetch fails.

    Attributes:
        status_code: HTTP status code from the evidence API (if available).
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize EvidenceStoreError.

        Args:
            message: Error description.
            status_code: Optional HTTP status code.
        """
        super().__init__(message)
        self.status_code = status_code
