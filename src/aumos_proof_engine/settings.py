"""Settings for aumos-proof-engine.

All settings use the AUMOS_PROOF_ENGINE_ prefix and cover:
- Verdict thresholds and the default evaluation window
- Evidence fetch bounds (row cap, per-fetch timeout)
- Summary fan-out (concurrency, overall deadline)
- Query catalog location
- HTTP evidence API connection
- Logging
"""

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from aumos_proof_engine.errors import ValidationError

DEFAULT_PROVEN_THRESHOLD = 80
DEFAULT_PARTIAL_THRESHOLD = 40
DEFAULT_LOOKBACK_MONTHS = 12
DEFAULT_MAX_NODES_PER_FETCH = 1000
DEFAULT_EVIDENCE_API_URL = "http://localhost:8080/api/v1"
DEFAULT_EVIDENCE_API_TIMEOUT_SECONDS = 5.0


class Settings(BaseSettings):
    """Settings for aumos-proof-engine.

    Environment variable prefix: AUMOS_PROOF_ENGINE_
    """

    service_name: str = "aumos-proof-engine"

    # -------------------------------------------------------------------------
    # Scoring policy
    # -------------------------------------------------------------------------

    proven_threshold: int = Field(
        default=DEFAULT_PROVEN_THRESHOLD,
        ge=0,
        le=100,
        description="Minimum confidence percentage for a PROVEN verdict.",
    )
    partial_threshold: int = Field(
        default=DEFAULT_PARTIAL_THRESHOLD,
        ge=0,
        le=100,
        description="Minimum confidence percentage for a PARTIAL verdict. "
        "Anything below is NOT_PROVEN.",
    )
    default_lookback_months: int = Field(
        default=DEFAULT_LOOKBACK_MONTHS,
        ge=1,
        description="Evaluation window used when a caller does not pass a time range.",
    )

    # -------------------------------------------------------------------------
    # Evidence fetching
    # -------------------------------------------------------------------------

    max_nodes_per_fetch: int = Field(
        default=DEFAULT_MAX_NODES_PER_FETCH,
        ge=1,
        description="Safety cap on records returned per node alias. Not a business rule.",
    )
    fetch_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Per-fetch timeout. A timed-out fetch yields an empty node list.",
    )

    # -------------------------------------------------------------------------
    # Compliance summary fan-out
    # -------------------------------------------------------------------------

    summary_concurrency: int = Field(
        default=8,
        ge=1,
        description="Maximum number of query definitions executed at once by the summary. "
        "Size to the evidence store's connection capacity.",
    )
    summary_deadline_seconds: float | None = Field(
        default=120.0,
        description="Overall deadline for a compliance summary. Queries still running "
        "when it expires are cancelled and reported as failed. None disables it.",
    )

    # -------------------------------------------------------------------------
    # Query catalog
    # -------------------------------------------------------------------------

    catalog_dir: Path | None = Field(
        default=None,
        description="Directory of *.yaml query catalog files. None uses the bundled catalog.",
    )

    # -------------------------------------------------------------------------
    # HTTP evidence API
    # -------------------------------------------------------------------------

    evidence_api_url: str = Field(
        default=DEFAULT_EVIDENCE_API_URL,
        description="Base URL of the evidence API used by HttpEvidenceStore.",
    )
    evidence_api_token: str = Field(
        default="",
        description="Bearer token for the evidence API. Empty sends no Authorization header.",
    )
    evidence_api_timeout_seconds: float = Field(
        default=DEFAULT_EVIDENCE_API_TIMEOUT_SECONDS,
        gt=0,
        description="HTTP timeout for a single evidence API request.",
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------

    log_level: str = Field(default="INFO", description="Minimum log level.")
    log_json: bool = Field(default=False, description="Emit JSON log lines.")

    model_config = SettingsConfigDict(env_prefix="AUMOS_PROOF_ENGINE_")

    @model_validator(mode="after")
    def _check_thresholds(self) -> "Settings":
        if self.partial_threshold > self.proven_threshold:
            raise ValidationError(
                f"partial_threshold ({self.partial_threshold}) must not exceed "
                f"proven_threshold ({self.proven_threshold})"
            )
        return self
