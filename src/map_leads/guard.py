"""Quota and suspension checks for search execution."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import ForbiddenError, MapLeadsError, QuotaExceededError
from .models import ProfileRecord

ACCOUNT_SUSPENDED = "Account suspended"
QUOTA_EXCEEDED = "Leads quota exceeded"


@dataclass(frozen=True)
class GuardDecision:
    """Outcome of evaluating a profile against a search request."""

    allowed: bool
    reason: str | None = None
    status_code: int = 200

    def to_error(self) -> MapLeadsError:
        if self.allowed:
            raise ValueError("An allowed decision has no error.")
        if self.status_code == ForbiddenError.status_code:
            return ForbiddenError(self.reason)
        return QuotaExceededError(self.reason)


PROCEED = GuardDecision(allowed=True)


def evaluate_access(profile: ProfileRecord) -> GuardDecision:
    """Return proceed/reject for a profile. Performs no writes."""
    if profile.is_suspended:
        return GuardDecision(False, ACCOUNT_SUSPENDED, ForbiddenError.status_code)
    if profile.leads_used >= profile.leads_limit:
        return GuardDecision(False, QUOTA_EXCEEDED, QuotaExceededError.status_code)
    return PROCEED
