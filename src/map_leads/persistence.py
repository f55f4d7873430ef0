"""Batched lead writes, search finalization and owner-scoped deletes."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from datetime import datetime, timezone
from typing import Any, TypeVar

from .config import DEFAULT_BATCH_SIZE, MAX_LEAD_BATCH_SIZE
from .models import LEADS, PROFILES, SEARCHES, DocumentStore, LeadPayload, SearchStatus

T = TypeVar("T")


def now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string with a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def timestamp_to_iso(value: Any) -> str:
    """Render a stored timestamp as ISO text, falling back to now."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    if isinstance(value, str):
        return value
    return now_iso()


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of at most ``size`` items."""
    if size < 1:
        raise ValueError("chunk size must be >= 1")
    for start in range(0, len(items), size):
        yield items[start : start + size]


def completed_search_fields(total_results: int) -> dict[str, Any]:
    return {
        "status": SearchStatus.COMPLETED.value,
        "total_results": total_results,
        "error_message": None,
        "updated_at": now_iso(),
    }


def finalize_search(
    store: DocumentStore,
    *,
    user_id: str,
    search_id: str,
    leads: Sequence[LeadPayload],
    current_leads_used: int,
    batch_size: int = DEFAULT_BATCH_SIZE,
    logger: logging.Logger,
) -> int:
    """Persist leads and complete the search in as few atomic batches as possible.

    The search completion and the profile usage increment ride in the last
    chunk's batch, so a failure on any earlier commit leaves both untouched.
    Leads from chunks that did commit stay in place, tagged with the search id.
    Returns the number of batches committed.
    """
    if not leads:
        store.set(SEARCHES, search_id, completed_search_fields(0), merge=True)
        logger.info("Search %s completed with no leads", search_id)
        return 1

    chunks = list(chunked(leads, min(batch_size, MAX_LEAD_BATCH_SIZE)))
    for index, chunk in enumerate(chunks):
        batch = store.batch()
        for lead in chunk:
            document = lead.to_document()
            document.update({"search_id": search_id, "user_id": user_id, "created_at": now_iso()})
            batch.set(LEADS, store.new_id(LEADS), document)

        if index == len(chunks) - 1:
            batch.set(SEARCHES, search_id, completed_search_fields(len(leads)), merge=True)
            batch.set(
                PROFILES,
                user_id,
                {"leads_used": current_leads_used + len(leads), "updated_at": now_iso()},
                merge=True,
            )

        batch.commit()
        logger.info(
            "Committed batch %d/%d for search %s (%d writes)",
            index + 1,
            len(chunks),
            search_id,
            len(batch),
        )
    return len(chunks)


def delete_owned_documents(
    store: DocumentStore,
    collection: str,
    user_id: str,
    *,
    page_size: int = DEFAULT_BATCH_SIZE,
) -> int:
    """Delete every document in ``collection`` owned by ``user_id``.

    Pages are deleted one batch at a time; a short page means the owner has
    nothing left. Returns the number of deleted documents.
    """
    deleted = 0
    while True:
        page = store.query(collection, filters={"user_id": user_id}, limit=page_size)
        if not page:
            break
        batch = store.batch()
        for document in page:
            batch.delete(collection, document.id)
        batch.commit()
        deleted += len(page)
        if len(page) < page_size:
            break
    return deleted
