import random

from map_leads.models import LeadPayload, SearchRecord
from map_leads.normalizer import (
    as_count_or_none,
    as_number_or_none,
    as_string_or_none,
    build_synthetic_leads,
    normalize_provider_item,
    normalize_provider_items,
)


def _search(max_results: int | None = 50) -> SearchRecord:
    return SearchRecord(
        id="s1",
        user_id="u1",
        keyword="Dentist",
        city="Lima",
        country="Peru",
        max_results=max_results,
    )


def test_synthetic_leads_are_capped_and_embed_keyword_and_city() -> None:
    leads = build_synthetic_leads(_search(50), random.Random(7))
    assert len(leads) == 10
    for index, lead in enumerate(leads, start=1):
        assert "Dentist" in (lead.business_name or "")
        assert "Lima" in (lead.business_name or "")
        assert lead.business_name == f"Dentist {index} - Lima"
        assert lead.address == f"Main Street {index}, Lima, Peru"
        assert lead.website == f"https://example{index}.com"
        assert lead.category == "Dentist"
        assert 3.2 <= (lead.rating or 0) <= 4.8
        assert 0 <= (lead.reviews_count or 0) < 500
        assert (lead.phone or "").startswith("+1 555 ")
        assert len(lead.phone or "") == len("+1 555 0000")
        assert lead.email is None
        assert lead.latitude is None
        assert lead.longitude is None


def test_synthetic_leads_respect_small_caps_and_missing_cap() -> None:
    assert len(build_synthetic_leads(_search(3), random.Random(1))) == 3
    assert len(build_synthetic_leads(_search(None), random.Random(1))) == 10


def test_synthetic_leads_are_reproducible_with_seeded_rng() -> None:
    first = build_synthetic_leads(_search(), random.Random(42))
    second = build_synthetic_leads(_search(), random.Random(42))
    assert first == second


def test_provider_record_maps_known_fields() -> None:
    lead = normalize_provider_item(
        {
            "title": "Cafe X",
            "location": {"lat": 1.5, "lng": 2.5},
            "categories": ["cafe", "bakery"],
            "totalScore": 4.2,
        }
    )
    assert lead == LeadPayload(
        business_name="Cafe X",
        latitude=1.5,
        longitude=2.5,
        category="cafe",
        rating=4.2,
    )
    assert lead.email is None
    assert lead.phone is None


def test_provider_record_full_mapping() -> None:
    lead = normalize_provider_item(
        {
            "title": "Bar Y",
            "address": "1 Road",
            "phone": "+51 1 234",
            "website": "https://bary.pe",
            "email": "hi@bary.pe",
            "totalScore": 5,
            "reviewsCount": 12,
            "categories": ["bar"],
            "location": {"lat": -12.0, "lng": -77.0},
        }
    )
    assert lead.to_document() == {
        "business_name": "Bar Y",
        "address": "1 Road",
        "phone": "+51 1 234",
        "website": "https://bary.pe",
        "email": "hi@bary.pe",
        "rating": 5,
        "reviews_count": 12,
        "category": "bar",
        "latitude": -12.0,
        "longitude": -77.0,
    }


def test_malformed_provider_fields_become_none() -> None:
    lead = normalize_provider_item(
        {
            "title": "   ",
            "phone": 12345,
            "totalScore": float("nan"),
            "reviewsCount": True,
            "categories": "cafe",
            "location": "somewhere",
        }
    )
    assert lead == LeadPayload()


def test_non_mapping_records_and_payloads() -> None:
    assert normalize_provider_item("junk") == LeadPayload()
    assert normalize_provider_item(None) == LeadPayload()
    assert normalize_provider_items({"items": []}) == []
    assert normalize_provider_items([{}, None]) == [LeadPayload(), LeadPayload()]


def test_scalar_coercions() -> None:
    assert as_string_or_none("x") == "x"
    assert as_string_or_none("") is None
    assert as_string_or_none(3) is None
    assert as_number_or_none(False) is None
    assert as_number_or_none(float("inf")) is None
    assert as_number_or_none("4.5") is None
    assert as_number_or_none(4.5) == 4.5
    assert as_count_or_none(12.0) == 12
    assert isinstance(as_count_or_none(12.0), int)
    assert as_count_or_none(12.5) is None
