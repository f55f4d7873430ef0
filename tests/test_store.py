import pytest

from map_leads.errors import IdentityError, StoreError
from map_leads.store import InMemoryDocumentStore, InMemoryIdentityDirectory


def test_set_get_and_merge() -> None:
    store = InMemoryDocumentStore()
    store.set("profiles", "u1", {"email": "a@b.com", "leads_used": 1})
    store.set("profiles", "u1", {"leads_used": 2}, merge=True)
    assert store.get("profiles", "u1") == {"email": "a@b.com", "leads_used": 2}

    store.set("profiles", "u1", {"leads_used": 3})
    assert store.get("profiles", "u1") == {"leads_used": 3}
    assert store.get("profiles", "missing") is None


def test_get_returns_a_copy() -> None:
    store = InMemoryDocumentStore({"profiles": {"u1": {"tags": ["a"]}}})
    data = store.get("profiles", "u1")
    assert data is not None
    data["tags"].append("b")
    assert store.get("profiles", "u1") == {"tags": ["a"]}


def test_batch_is_applied_on_commit_only() -> None:
    store = InMemoryDocumentStore()
    batch = store.batch()
    batch.set("leads", "l1", {"user_id": "u1"})
    batch.set("searches", "s1", {"status": "completed"}, merge=True)
    assert store.get("leads", "l1") is None
    assert len(batch) == 2

    batch.commit()
    assert store.get("leads", "l1") == {"user_id": "u1"}
    assert store.get("searches", "s1") == {"status": "completed"}
    with pytest.raises(StoreError):
        batch.commit()


def test_batch_rejects_more_writes_than_the_limit() -> None:
    store = InMemoryDocumentStore(max_batch_size=2)
    batch = store.batch()
    batch.set("leads", "l1", {})
    batch.set("leads", "l2", {})
    with pytest.raises(StoreError):
        batch.set("leads", "l3", {})


def test_query_filters_orders_and_limits() -> None:
    store = InMemoryDocumentStore(
        {
            "profiles": {
                "a": {"team": "x", "created_at": "2026-01-01T00:00:00Z"},
                "b": {"team": "x", "created_at": "2026-03-01T00:00:00Z"},
                "c": {"team": "y", "created_at": "2026-02-01T00:00:00Z"},
                "d": {"team": "x"},
            }
        }
    )
    docs = store.query("profiles", filters={"team": "x"}, order_by="created_at", descending=True)
    assert [doc.id for doc in docs] == ["b", "a"]

    limited = store.query("profiles", order_by="created_at", limit=2)
    assert [doc.id for doc in limited] == ["a", "c"]
    assert store.query("unknown") == []


def test_delete_ignores_missing_documents() -> None:
    store = InMemoryDocumentStore({"profiles": {"u1": {}}})
    store.delete("profiles", "u1")
    store.delete("profiles", "u1")
    assert store.get("profiles", "u1") is None


def test_new_ids_are_unique() -> None:
    store = InMemoryDocumentStore()
    ids = {store.new_id("leads") for _ in range(200)}
    assert len(ids) == 200


def test_identity_directory_disable_and_delete() -> None:
    identities = InMemoryIdentityDirectory()
    identities.add_user("u1", "a@b.com")
    identities.set_disabled("u1", True)
    assert identities.get_user("u1") == {"email": "a@b.com", "disabled": True}

    identities.delete_user("u1")
    assert identities.get_user("u1") is None
    with pytest.raises(IdentityError):
        identities.delete_user("u1")
    with pytest.raises(IdentityError):
        identities.set_disabled("ghost", False)
