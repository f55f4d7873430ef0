"""Runtime configuration model."""

from __future__ import annotations

from dataclasses import dataclass

from .validation import validate_runtime_constraints

DEFAULT_USER_AGENT = "MapLeads/1.0 (+https://github.com/map-leads/map-leads)"
DEFAULT_SUPERADMIN_EMAIL = "afiliadosprobusiness@gmail.com"
DEFAULT_ACTOR_ID = "compass~crawler-google-places"
DEFAULT_PROVIDER_BASE_URL = "https://api.apify.com/v2"
DEFAULT_PROVIDER_WAIT_SECONDS = 300
DEFAULT_PROVIDER_TIMEOUT = 330.0
DEFAULT_ENRICHMENT_TIMEOUT = 5.0
DEFAULT_ENRICHMENT_MAX_CANDIDATES = 20
DEFAULT_BATCH_SIZE = 400
MAX_BATCH_SIZE = 500
# The last lead batch also carries the search completion and the usage increment.
FINALIZE_EXTRA_WRITES = 2
MAX_LEAD_BATCH_SIZE = MAX_BATCH_SIZE - FINALIZE_EXTRA_WRITES

PLAN_LIMITS = {
    "starter": 2000,
    "growth": 5000,
    "pro": 15000,
}
DEFAULT_PLAN = "starter"
ENRICHMENT_PLANS = frozenset({"growth", "pro"})


@dataclass(frozen=True)
class ServiceConfig:
    """Validated configuration shared by the orchestrator and the admin actions."""

    provider_token: str | None = None
    superadmin_email: str = DEFAULT_SUPERADMIN_EMAIL
    actor_id: str = DEFAULT_ACTOR_ID
    provider_base_url: str = DEFAULT_PROVIDER_BASE_URL
    provider_wait_seconds: int = DEFAULT_PROVIDER_WAIT_SECONDS
    provider_timeout: float = DEFAULT_PROVIDER_TIMEOUT
    enrichment_timeout: float = DEFAULT_ENRICHMENT_TIMEOUT
    enrichment_max_candidates: int = DEFAULT_ENRICHMENT_MAX_CANDIDATES
    batch_size: int = DEFAULT_BATCH_SIZE
    user_agent: str = DEFAULT_USER_AGENT
    show_progress: bool = False

    def __post_init__(self) -> None:
        validate_runtime_constraints(
            superadmin_email=self.superadmin_email,
            provider_wait_seconds=self.provider_wait_seconds,
            provider_timeout=self.provider_timeout,
            enrichment_timeout=self.enrichment_timeout,
            enrichment_max_candidates=self.enrichment_max_candidates,
            batch_size=self.batch_size,
            max_batch_size=MAX_LEAD_BATCH_SIZE,
        )

    @property
    def synthetic_mode(self) -> bool:
        """True when no provider token is configured."""
        return not self.provider_token
