"""Protocols and lightweight model types."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Mapping, Protocol

from .config import DEFAULT_PLAN, PLAN_LIMITS
from .errors import StoreError

PROFILES = "profiles"
SEARCHES = "searches"
LEADS = "leads"
SUBSCRIPTIONS = "subscriptions"

DEFAULT_MAX_RESULTS = 100

MODE_SYNTHETIC = "demo"
MODE_LIVE = "live"


def _stored_count(data: Mapping[str, Any], key: str, default: int) -> int:
    """Read a numeric counter, truncating floats; missing means default."""
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise StoreError(f"Stored {key} is not a number: {value!r}")
    return int(value)


class SearchStatus(str, Enum):
    """Lifecycle of one search job."""

    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def parse(cls, value: Any) -> "SearchStatus":
        if value is None:
            return cls.QUEUED
        try:
            return cls(value)
        except ValueError as exc:
            raise StoreError(f"Unknown search status: {value!r}") from exc

    def can_transition_to(self, target: "SearchStatus") -> bool:
        return target in _TRANSITIONS[self]

    @property
    def is_terminal(self) -> bool:
        return self in (SearchStatus.COMPLETED, SearchStatus.FAILED)


_TRANSITIONS: dict[SearchStatus, frozenset[SearchStatus]] = {
    SearchStatus.QUEUED: frozenset({SearchStatus.RUNNING, SearchStatus.FAILED}),
    SearchStatus.RUNNING: frozenset({SearchStatus.COMPLETED, SearchStatus.FAILED}),
    SearchStatus.COMPLETED: frozenset(),
    SearchStatus.FAILED: frozenset(),
}


@dataclass(frozen=True)
class Identity:
    """A caller whose credentials were already verified upstream."""

    uid: str
    email: str | None = None


@dataclass(frozen=True)
class SearchRecord:
    """One requested lead-discovery job."""

    id: str
    user_id: str
    keyword: str
    city: str
    country: str
    max_results: int | None = None
    status: SearchStatus = SearchStatus.QUEUED
    total_results: int = 0
    error_message: str | None = None
    provider_run_id: str | None = None

    @classmethod
    def from_document(cls, doc_id: str, data: Mapping[str, Any]) -> "SearchRecord":
        max_results = data.get("max_results")
        return cls(
            id=doc_id,
            user_id=str(data.get("user_id") or ""),
            keyword=str(data.get("keyword") or ""),
            city=str(data.get("city") or ""),
            country=str(data.get("country") or ""),
            max_results=max_results if isinstance(max_results, int) else None,
            status=SearchStatus.parse(data.get("status")),
            total_results=_stored_count(data, "total_results", 0),
            error_message=data.get("error_message"),
            provider_run_id=data.get("provider_run_id"),
        )

    @property
    def effective_max_results(self) -> int:
        if self.max_results and self.max_results > 0:
            return self.max_results
        return DEFAULT_MAX_RESULTS


@dataclass(frozen=True)
class ProfileRecord:
    """Tenant account with plan, usage counter and suspension flag."""

    user_id: str
    email: str = ""
    full_name: str | None = None
    plan: str = DEFAULT_PLAN
    leads_used: int = 0
    leads_limit: int = PLAN_LIMITS[DEFAULT_PLAN]
    is_suspended: bool = False
    suspended_at: str | None = None

    @classmethod
    def from_document(cls, doc_id: str, data: Mapping[str, Any]) -> "ProfileRecord":
        plan = data.get("plan")
        return cls(
            user_id=doc_id,
            email=str(data.get("email") or ""),
            full_name=data.get("full_name"),
            plan=plan if plan in PLAN_LIMITS else DEFAULT_PLAN,
            leads_used=_stored_count(data, "leads_used", 0),
            leads_limit=_stored_count(data, "leads_limit", PLAN_LIMITS[DEFAULT_PLAN]),
            is_suspended=bool(data.get("is_suspended", False)),
            suspended_at=data.get("suspended_at"),
        )


@dataclass
class LeadPayload:
    """Canonical lead shape written into the leads collection."""

    business_name: str | None = None
    address: str | None = None
    phone: str | None = None
    website: str | None = None
    email: str | None = None
    rating: float | None = None
    reviews_count: int | None = None
    category: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    def to_document(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class UserSummary:
    """Profile row returned by the admin user listing."""

    id: str
    email: str
    full_name: str | None
    plan: str
    leads_used: int
    leads_limit: int
    is_suspended: bool
    suspended_at: str | None
    created_at: str
    updated_at: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ProviderRun:
    """Run descriptor returned by the place-search provider."""

    run_id: str | None
    dataset_id: str | None


@dataclass(frozen=True)
class SearchRunResult:
    """Caller-facing outcome of one orchestrated search."""

    success: bool
    mode: str
    leads: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class StoredDocument:
    """A document read back from the store."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)


class WriteBatch(Protocol):
    """Contract for an atomic group of writes."""

    def set(
        self, collection: str, doc_id: str, data: Mapping[str, Any], *, merge: bool = False
    ) -> None:
        """Stage a create/overwrite (or merge) of one document."""

    def delete(self, collection: str, doc_id: str) -> None:
        """Stage a delete of one document."""

    def commit(self) -> None:
        """Apply every staged write, or none of them."""

    def __len__(self) -> int:
        """Return the number of staged operations."""


class DocumentStore(Protocol):
    """Contract for the persistent document store."""

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Return a copy of the document or None."""

    def set(
        self, collection: str, doc_id: str, data: Mapping[str, Any], *, merge: bool = False
    ) -> None:
        """Write one document."""

    def delete(self, collection: str, doc_id: str) -> None:
        """Delete one document; absent documents are ignored."""

    def new_id(self, collection: str) -> str:
        """Return a fresh document id for the collection."""

    def batch(self) -> WriteBatch:
        """Start a new atomic batch."""

    def query(
        self,
        collection: str,
        *,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[StoredDocument]:
        """Return documents whose fields equal every filter value."""


class IdentityDirectory(Protocol):
    """Contract for the user-identity collaborator."""

    def set_disabled(self, uid: str, disabled: bool) -> None:
        """Disable or re-enable sign-in for a user."""

    def delete_user(self, uid: str) -> None:
        """Remove the user identity."""


class PlacesProvider(Protocol):
    """Contract for the external place-search job runner."""

    def start_run(self, query: str, max_results: int) -> ProviderRun:
        """Start a run and wait for it to finish."""

    def fetch_items(self, dataset_id: str) -> list[Any]:
        """Return the raw result records of a finished run."""


class Fetcher(Protocol):
    """Contract for HTML fetchers."""

    def fetch(self, url: str) -> str:
        """Return HTML content for a URL or an empty string."""
