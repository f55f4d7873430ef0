"""Lead normalization for provider records and the offline fallback.

Every provider field is untrusted: anything that is not a finite number
(for numeric targets) or a non-empty string (for string targets) becomes
None, and missing nested objects are read as empty ones.
"""

from __future__ import annotations

import math
import random
from typing import Any

from .models import LeadPayload, SearchRecord

SYNTHETIC_MAX_LEADS = 10
SYNTHETIC_RATING_RANGE = (3.2, 4.8)
SYNTHETIC_MAX_REVIEWS = 500


def as_string_or_none(value: Any) -> str | None:
    """Return value when it is a non-blank string."""
    if isinstance(value, str) and value.strip():
        return value
    return None


def as_number_or_none(value: Any) -> float | int | None:
    """Return value when it is a finite int/float (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return value


def as_count_or_none(value: Any) -> int | None:
    """Return an integral finite number as int."""
    number = as_number_or_none(value)
    if number is None:
        return None
    if isinstance(number, float):
        return int(number) if number.is_integer() else None
    return number


def _as_mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def normalize_provider_item(raw: Any) -> LeadPayload:
    """Map one raw provider record into the canonical lead shape."""
    item = _as_mapping(raw)
    location = _as_mapping(item.get("location"))
    categories = item.get("categories")
    first_category = categories[0] if isinstance(categories, list) and categories else None
    return LeadPayload(
        business_name=as_string_or_none(item.get("title")),
        address=as_string_or_none(item.get("address")),
        phone=as_string_or_none(item.get("phone")),
        website=as_string_or_none(item.get("website")),
        email=as_string_or_none(item.get("email")),
        rating=as_number_or_none(item.get("totalScore")),
        reviews_count=as_count_or_none(item.get("reviewsCount")),
        category=as_string_or_none(first_category),
        latitude=as_number_or_none(location.get("lat")),
        longitude=as_number_or_none(location.get("lng")),
    )


def normalize_provider_items(items: Any) -> list[LeadPayload]:
    """Normalize a provider dataset; anything but a list yields no leads."""
    if not isinstance(items, list):
        return []
    return [normalize_provider_item(raw) for raw in items]


def build_synthetic_leads(
    search: SearchRecord, rng: random.Random | None = None
) -> list[LeadPayload]:
    """Generate placeholder leads for runs without a provider token."""
    rng = rng or random.Random()
    count = min(search.effective_max_results, SYNTHETIC_MAX_LEADS)
    low, high = SYNTHETIC_RATING_RANGE
    leads: list[LeadPayload] = []
    for index in range(1, count + 1):
        leads.append(
            LeadPayload(
                business_name=f"{search.keyword} {index} - {search.city}",
                address=f"Main Street {index}, {search.city}, {search.country}",
                phone=f"+1 555 {rng.randrange(10000):04d}",
                website=f"https://example{index}.com",
                email=None,
                rating=round(rng.uniform(low, high), 1),
                reviews_count=rng.randrange(SYNTHETIC_MAX_REVIEWS),
                category=search.keyword,
                latitude=None,
                longitude=None,
            )
        )
    return leads
