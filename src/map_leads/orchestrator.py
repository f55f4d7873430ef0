"""Search execution pipeline."""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import Any

from requests import Session

from .config import ServiceConfig
from .enrichment import enrich_emails
from .errors import ConflictError, InternalError, NotFoundError
from .fetchers import RequestsFetcher, make_retry_session
from .guard import evaluate_access
from .models import (
    MODE_LIVE,
    MODE_SYNTHETIC,
    PROFILES,
    SEARCHES,
    DocumentStore,
    Fetcher,
    Identity,
    PlacesProvider,
    ProfileRecord,
    SearchRecord,
    SearchRunResult,
    SearchStatus,
)
from .normalizer import build_synthetic_leads, normalize_provider_items
from .persistence import finalize_search, now_iso
from .provider import ApifyPlacesClient, build_search_query
from .validation import require_string

SEARCH_NOT_FOUND = "Search not found"


def load_owned_search(store: DocumentStore, search_id: str, requester: Identity) -> SearchRecord:
    """Return the search if it exists and belongs to the requester."""
    data = store.get(SEARCHES, search_id)
    # Foreign searches are reported exactly like missing ones.
    if data is None or data.get("user_id") != requester.uid:
        raise NotFoundError(SEARCH_NOT_FOUND)
    return SearchRecord.from_document(search_id, data)


def load_profile(store: DocumentStore, user_id: str) -> ProfileRecord:
    data = store.get(PROFILES, user_id)
    if data is None:
        raise InternalError("Profile not found")
    return ProfileRecord.from_document(user_id, data)


def transition(
    store: DocumentStore,
    search: SearchRecord,
    target: SearchStatus,
    *,
    logger: logging.Logger,
    **fields: Any,
) -> SearchRecord:
    """Write a status change allowed by the transition table."""
    if not search.status.can_transition_to(target):
        raise ConflictError(f"Cannot move search from {search.status.value} to {target.value}")
    payload = {"status": target.value, **fields, "updated_at": now_iso()}
    store.set(SEARCHES, search.id, payload, merge=True)
    logger.info("Search %s: %s -> %s", search.id, search.status.value, target.value)
    return replace(search, status=target)


def _record_failure(
    store: DocumentStore, search: SearchRecord, message: str, *, logger: logging.Logger
) -> None:
    """Mark the search failed; a store error here is logged and dropped."""
    try:
        store.set(
            SEARCHES,
            search.id,
            {"status": SearchStatus.FAILED.value, "error_message": message, "updated_at": now_iso()},
            merge=True,
        )
    except Exception as exc:
        logger.warning("Could not record failure for search %s: %s", search.id, exc)
        return
    logger.info("Search %s -> failed (%s)", search.id, message)


def _execute(
    search: SearchRecord,
    profile: ProfileRecord,
    *,
    store: DocumentStore,
    provider: PlacesProvider | None,
    fetcher: Fetcher | None,
    config: ServiceConfig,
    logger: logging.Logger,
    rng: random.Random | None,
) -> SearchRunResult:
    search = transition(store, search, SearchStatus.RUNNING, logger=logger, error_message=None)

    if provider is None:
        leads = build_synthetic_leads(search, rng)
        finalize_search(
            store,
            user_id=profile.user_id,
            search_id=search.id,
            leads=leads,
            current_leads_used=profile.leads_used,
            batch_size=config.batch_size,
            logger=logger,
        )
        return SearchRunResult(success=True, mode=MODE_SYNTHETIC, leads=len(leads))

    query = build_search_query(search.keyword, search.city, search.country)
    run = provider.start_run(query, search.effective_max_results)
    if run.run_id:
        store.set(
            SEARCHES, search.id, {"provider_run_id": run.run_id, "updated_at": now_iso()}, merge=True
        )

    if not run.dataset_id:
        logger.info("Run %s produced no dataset for search %s", run.run_id, search.id)
        finalize_search(
            store,
            user_id=profile.user_id,
            search_id=search.id,
            leads=[],
            current_leads_used=profile.leads_used,
            logger=logger,
        )
        return SearchRunResult(success=True, mode=MODE_LIVE, leads=0)

    leads = normalize_provider_items(provider.fetch_items(run.dataset_id))
    logger.info("Normalized %d leads for search %s", len(leads), search.id)
    finalize_search(
        store,
        user_id=profile.user_id,
        search_id=search.id,
        leads=leads,
        current_leads_used=profile.leads_used,
        batch_size=config.batch_size,
        logger=logger,
    )
    if fetcher is not None:
        enrich_emails(
            profile.plan,
            search.id,
            leads,
            store=store,
            fetcher=fetcher,
            logger=logger,
            max_candidates=config.enrichment_max_candidates,
            show_progress=config.show_progress,
        )
    return SearchRunResult(success=True, mode=MODE_LIVE, leads=len(leads))


def run_search(
    search_id: Any,
    *,
    requester: Identity,
    store: DocumentStore,
    provider: PlacesProvider | None,
    fetcher: Fetcher | None,
    config: ServiceConfig,
    logger: logging.Logger,
    rng: random.Random | None = None,
) -> SearchRunResult:
    """Run one queued search for its owner and record the terminal state.

    Guard rejections mark the search failed and raise the guard's error.
    Any later failure marks the search failed (best effort) and surfaces as
    InternalError carrying the original message.
    """
    search_id = require_string(search_id, "search_id required")
    search = load_owned_search(store, search_id, requester)
    profile = load_profile(store, requester.uid)

    if search.status is not SearchStatus.QUEUED:
        raise ConflictError("Search is not queued")

    decision = evaluate_access(profile)
    if not decision.allowed:
        transition(
            store, search, SearchStatus.FAILED, logger=logger, error_message=decision.reason
        )
        raise decision.to_error()

    try:
        return _execute(
            search,
            profile,
            store=store,
            provider=provider,
            fetcher=fetcher,
            config=config,
            logger=logger,
            rng=rng,
        )
    except Exception as exc:
        message = str(exc) or "Unexpected error"
        logger.error("Search %s failed: %s", search.id, message)
        _record_failure(store, search, message, logger=logger)
        raise InternalError(message) from exc


def build_provider(
    config: ServiceConfig, *, session: Session, logger: logging.Logger
) -> PlacesProvider | None:
    """Return the Apify client, or None for synthetic mode."""
    if config.synthetic_mode:
        return None
    return ApifyPlacesClient(
        session=session,
        token=config.provider_token or "",
        actor_id=config.actor_id,
        base_url=config.provider_base_url,
        wait_seconds=config.provider_wait_seconds,
        timeout=config.provider_timeout,
        logger=logger,
    )


def run_search_with_defaults(
    search_id: str,
    *,
    requester: Identity,
    store: DocumentStore,
    config: ServiceConfig,
    logger: logging.Logger,
) -> SearchRunResult:
    """Build concrete HTTP collaborators and execute the search."""
    session = make_retry_session(config.user_agent)
    fetch_session = make_retry_session(config.user_agent, total=0)
    fetcher = RequestsFetcher(
        session=fetch_session,
        timeout=config.enrichment_timeout,
        logger=logger,
    )
    try:
        return run_search(
            search_id,
            requester=requester,
            store=store,
            provider=build_provider(config, session=session, logger=logger),
            fetcher=fetcher,
            config=config,
            logger=logger,
        )
    finally:
        session.close()
        fetch_session.close()
