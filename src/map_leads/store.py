"""In-memory document store and identity directory."""

from __future__ import annotations

import copy
import uuid
from threading import Lock
from typing import Any, Mapping

from .config import MAX_BATCH_SIZE
from .errors import IdentityError, StoreError
from .models import StoredDocument

_SET = "set"
_DELETE = "delete"


class InMemoryWriteBatch:
    """Staged writes applied atomically by InMemoryDocumentStore."""

    def __init__(self, store: "InMemoryDocumentStore", max_size: int) -> None:
        self._store = store
        self._max_size = max_size
        self._ops: list[tuple[str, str, str, dict[str, Any] | None, bool]] = []
        self._committed = False

    def set(
        self, collection: str, doc_id: str, data: Mapping[str, Any], *, merge: bool = False
    ) -> None:
        self._stage((_SET, collection, doc_id, copy.deepcopy(dict(data)), merge))

    def delete(self, collection: str, doc_id: str) -> None:
        self._stage((_DELETE, collection, doc_id, None, False))

    def commit(self) -> None:
        if self._committed:
            raise StoreError("Batch already committed")
        self._store._apply(self._ops)
        self._committed = True

    def __len__(self) -> int:
        return len(self._ops)

    def _stage(self, op: tuple[str, str, str, dict[str, Any] | None, bool]) -> None:
        if self._committed:
            raise StoreError("Batch already committed")
        if len(self._ops) >= self._max_size:
            raise StoreError(f"Batch exceeds {self._max_size} writes")
        self._ops.append(op)


class InMemoryDocumentStore:
    """Dict-backed store with Firestore-like semantics.

    Batches are limited to ``max_batch_size`` operations and are committed
    under a lock so readers never observe half of a batch.
    """

    def __init__(
        self,
        collections: Mapping[str, Mapping[str, Mapping[str, Any]]] | None = None,
        *,
        max_batch_size: int = MAX_BATCH_SIZE,
    ) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {
            name: {doc_id: copy.deepcopy(dict(data)) for doc_id, data in docs.items()}
            for name, docs in (collections or {}).items()
        }
        self._max_batch_size = max_batch_size
        self._lock = Lock()

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        with self._lock:
            data = self._collections.get(collection, {}).get(doc_id)
            return copy.deepcopy(data) if data is not None else None

    def set(
        self, collection: str, doc_id: str, data: Mapping[str, Any], *, merge: bool = False
    ) -> None:
        self._apply([(_SET, collection, doc_id, copy.deepcopy(dict(data)), merge)])

    def delete(self, collection: str, doc_id: str) -> None:
        self._apply([(_DELETE, collection, doc_id, None, False)])

    def new_id(self, collection: str) -> str:
        _ = collection
        return uuid.uuid4().hex[:20]

    def batch(self) -> InMemoryWriteBatch:
        return InMemoryWriteBatch(self, self._max_batch_size)

    def query(
        self,
        collection: str,
        *,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[StoredDocument]:
        with self._lock:
            docs = [
                StoredDocument(id=doc_id, data=copy.deepcopy(data))
                for doc_id, data in self._collections.get(collection, {}).items()
                if all(data.get(key) == value for key, value in (filters or {}).items())
            ]
        if order_by:
            # Ordering on a field drops documents that lack it.
            docs = [doc for doc in docs if doc.data.get(order_by) is not None]
            docs.sort(key=lambda doc: doc.data[order_by], reverse=descending)
        if limit is not None:
            docs = docs[: max(limit, 0)]
        return docs

    def snapshot(self) -> dict[str, dict[str, dict[str, Any]]]:
        """Return a deep copy of every collection."""
        with self._lock:
            return copy.deepcopy(self._collections)

    def _apply(self, ops: list[tuple[str, str, str, dict[str, Any] | None, bool]]) -> None:
        with self._lock:
            # Copy-on-write per touched collection; the swap below is the commit point.
            staged = dict(self._collections)
            touched: set[str] = set()
            for kind, collection, doc_id, data, merge in ops:
                if collection not in touched:
                    staged[collection] = dict(staged.get(collection, {}))
                    touched.add(collection)
                docs = staged[collection]
                if kind == _DELETE:
                    docs.pop(doc_id, None)
                elif merge and doc_id in docs:
                    docs[doc_id] = {**docs[doc_id], **(data or {})}
                else:
                    docs[doc_id] = dict(data or {})
            self._collections = staged


class InMemoryIdentityDirectory:
    """Identity collaborator holding a disabled flag per uid."""

    def __init__(self, users: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._users: dict[str, dict[str, Any]] = {
            uid: dict(record) for uid, record in (users or {}).items()
        }
        self._lock = Lock()

    def add_user(self, uid: str, email: str | None = None) -> None:
        with self._lock:
            self._users[uid] = {"email": email, "disabled": False}

    def set_disabled(self, uid: str, disabled: bool) -> None:
        with self._lock:
            if uid not in self._users:
                raise IdentityError(f"There is no user record corresponding to the identifier {uid}.")
            self._users[uid]["disabled"] = disabled

    def delete_user(self, uid: str) -> None:
        with self._lock:
            if uid not in self._users:
                raise IdentityError(f"There is no user record corresponding to the identifier {uid}.")
            del self._users[uid]

    def get_user(self, uid: str) -> dict[str, Any] | None:
        with self._lock:
            record = self._users.get(uid)
            return dict(record) if record is not None else None

    def snapshot(self) -> dict[str, dict[str, Any]]:
        with self._lock:
            return {uid: dict(record) for uid, record in self._users.items()}
