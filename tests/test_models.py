import pytest

from map_leads.errors import StoreError
from map_leads.models import ProfileRecord, SearchRecord, SearchStatus


@pytest.mark.parametrize(
    ("current", "target"),
    [
        (SearchStatus.QUEUED, SearchStatus.RUNNING),
        (SearchStatus.QUEUED, SearchStatus.FAILED),
        (SearchStatus.RUNNING, SearchStatus.COMPLETED),
        (SearchStatus.RUNNING, SearchStatus.FAILED),
    ],
)
def test_allowed_transitions(current: SearchStatus, target: SearchStatus) -> None:
    assert current.can_transition_to(target) is True


@pytest.mark.parametrize(
    ("current", "target"),
    [
        (SearchStatus.QUEUED, SearchStatus.COMPLETED),
        (SearchStatus.RUNNING, SearchStatus.QUEUED),
        (SearchStatus.COMPLETED, SearchStatus.RUNNING),
        (SearchStatus.COMPLETED, SearchStatus.FAILED),
        (SearchStatus.FAILED, SearchStatus.RUNNING),
    ],
)
def test_rejected_transitions(current: SearchStatus, target: SearchStatus) -> None:
    assert current.can_transition_to(target) is False


def test_status_parsing() -> None:
    assert SearchStatus.parse(None) is SearchStatus.QUEUED
    assert SearchStatus.parse("completed") is SearchStatus.COMPLETED
    assert SearchStatus.COMPLETED.is_terminal is True
    assert SearchStatus.RUNNING.is_terminal is False
    with pytest.raises(StoreError):
        SearchStatus.parse("paused")


def test_search_record_from_document() -> None:
    record = SearchRecord.from_document(
        "s1",
        {"user_id": "u1", "keyword": "gym", "city": "Quito", "country": "Ecuador", "max_results": 0},
    )
    assert record.status is SearchStatus.QUEUED
    assert record.effective_max_results == 100
    assert record.total_results == 0


def test_profile_record_defaults() -> None:
    profile = ProfileRecord.from_document("u1", {"email": "a@b.com", "plan": "enterprise"})
    assert profile.plan == "starter"
    assert profile.leads_used == 0
    assert profile.leads_limit == 2000
    assert profile.is_suspended is False


def test_profile_record_accepts_float_counters() -> None:
    profile = ProfileRecord.from_document("u1", {"leads_used": 2000.0, "leads_limit": 5000.0})
    assert profile.leads_used == 2000
    assert isinstance(profile.leads_used, int)
    assert profile.leads_limit == 5000


@pytest.mark.parametrize("value", ["many", True, float("nan"), {"n": 1}])
def test_profile_record_rejects_non_numeric_counters(value: object) -> None:
    with pytest.raises(StoreError):
        ProfileRecord.from_document("u1", {"leads_used": value})


def test_search_record_rejects_non_numeric_total() -> None:
    with pytest.raises(StoreError):
        SearchRecord.from_document("s1", {"user_id": "u1", "total_results": "lots"})
    assert SearchRecord.from_document("s1", {"total_results": 12.0}).total_results == 12
