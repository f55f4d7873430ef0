"""Best-effort contact email enrichment for freshly written leads.

Enrichment is advisory: it runs after the search was finalized, never
raises, and never changes the search status or the caller's response.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from tqdm import tqdm

from .config import DEFAULT_ENRICHMENT_MAX_CANDIDATES, ENRICHMENT_PLANS
from .extraction import first_email
from .models import LEADS, DocumentStore, Fetcher, LeadPayload


def select_candidates(leads: Sequence[LeadPayload], limit: int) -> list[LeadPayload]:
    """Leads with a website and no email, in original order, capped at ``limit``."""
    return [lead for lead in leads if lead.website and not lead.email][:limit]


def enrich_lead(
    lead: LeadPayload,
    *,
    search_id: str,
    store: DocumentStore,
    fetcher: Fetcher,
    logger: logging.Logger,
) -> bool:
    """Fetch one website and store the first email found. Returns True on update."""
    website = lead.website or ""
    email = first_email(fetcher.fetch(website))
    if not email:
        logger.debug("No email found on %s", website)
        return False

    matches = store.query(LEADS, filters={"search_id": search_id, "website": website}, limit=1)
    if not matches:
        logger.debug("No stored lead for %s in search %s", website, search_id)
        return False
    stored = matches[0]
    if stored.data.get("email"):
        return False
    store.set(LEADS, stored.id, {"email": email}, merge=True)
    return True


def enrich_emails(
    plan: str,
    search_id: str,
    leads: Sequence[LeadPayload],
    *,
    store: DocumentStore,
    fetcher: Fetcher,
    logger: logging.Logger,
    max_candidates: int = DEFAULT_ENRICHMENT_MAX_CANDIDATES,
    show_progress: bool = False,
) -> int:
    """Enrich up to ``max_candidates`` leads sequentially; return the update count."""
    if plan not in ENRICHMENT_PLANS:
        return 0

    candidates = select_candidates(leads, max_candidates)
    iterator = tqdm(candidates, desc="enriching emails") if show_progress else candidates
    updated = 0
    for lead in iterator:
        try:
            if enrich_lead(lead, search_id=search_id, store=store, fetcher=fetcher, logger=logger):
                updated += 1
        except Exception as exc:
            logger.debug("Enrichment failed for %s: %s", lead.website, exc)
    logger.info("Enriched %d/%d leads for search %s", updated, len(candidates), search_id)
    return updated
