"""Tests for the SQL-backed document store and its live queries."""
from __future__ import annotations

import os
from typing import Iterator

import pytest
from sqlalchemy import delete

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_socialsphere.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from socialsphere.database import Base, SessionLocal, engine  # noqa: E402
from socialsphere.errors import DocumentExists, NotFound  # noqa: E402
from socialsphere.models import StoredDocument  # noqa: E402
from socialsphere.store import (  # noqa: E402
    SERVER_TIMESTAMP,
    ArrayRemove,
    ArrayUnion,
    Filter,
    OrderBy,
    SqlDocumentStore,
)


@pytest.fixture(scope="module", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    with SessionLocal() as session:
        session.execute(delete(StoredDocument))
        session.commit()
    yield


@pytest.fixture()
def store() -> SqlDocumentStore:
    return SqlDocumentStore(SessionLocal)


def test_set_and_get_round_trip_resolves_server_timestamp(store: SqlDocumentStore) -> None:
    store.set_document("users", "u1", {"displayName": "Ada", "createdAt": SERVER_TIMESTAMP})

    document = store.get_document("users", "u1")
    assert document.id == "u1"
    assert document.get("displayName") == "Ada"
    assert isinstance(document.get("createdAt"), str)
    assert document.to_dict()["id"] == "u1"


def test_get_missing_document_raises_not_found(store: SqlDocumentStore) -> None:
    with pytest.raises(NotFound):
        store.get_document("users", "ghost")
    assert store.find_document("users", "ghost") is None
    assert store.document_exists("users", "ghost") is False


def test_create_refuses_existing_id(store: SqlDocumentStore) -> None:
    store.create_document("likes", "p1_u1", {"postId": "p1", "userId": "u1"})
    with pytest.raises(DocumentExists):
        store.create_document("likes", "p1_u1", {"postId": "p1", "userId": "u1"})
    assert store.count_documents("likes") == 1


def test_update_merges_fields_and_applies_array_transforms(store: SqlDocumentStore) -> None:
    store.set_document("users", "u1", {"friends": ["u2"], "displayName": "Ada"})

    store.update_document("users", "u1", {"friends": ArrayUnion("u2", "u3")})
    assert store.get_document("users", "u1").get("friends") == ["u2", "u3"]

    store.update_document("users", "u1", {"friends": ArrayRemove("u2"), "bio": "hi"})
    document = store.get_document("users", "u1")
    assert document.get("friends") == ["u3"]
    assert document.get("displayName") == "Ada"
    assert document.get("bio") == "hi"


def test_array_field_helpers_create_missing_arrays(store: SqlDocumentStore) -> None:
    store.set_document("users", "u1", {})

    store.array_field_add("users", "u1", "pendingRequests", "u9")
    assert store.get_document("users", "u1").get("pendingRequests") == ["u9"]

    store.array_field_remove("users", "u1", "pendingRequests", "u9", "u8")
    assert store.get_document("users", "u1").get("pendingRequests") == []


def test_update_missing_document_raises_not_found(store: SqlDocumentStore) -> None:
    with pytest.raises(NotFound):
        store.update_document("posts", "missing", {"likesCount": 1})


def test_delete_is_idempotent(store: SqlDocumentStore) -> None:
    store.set_document("posts", "p1", {"text": "hello"})
    store.delete_document("posts", "p1")
    store.delete_document("posts", "p1")
    assert store.find_document("posts", "p1") is None


def test_query_filters_and_orders(store: SqlDocumentStore) -> None:
    store.set_document("comments", "c1", {"postId": "p1", "createdAt": "2024-01-02"})
    store.set_document("comments", "c2", {"postId": "p2", "createdAt": "2024-01-01"})
    store.set_document("comments", "c3", {"postId": "p1", "createdAt": "2024-01-01"})

    ascending = store.query_documents("comments", [Filter("postId", "==", "p1")], order_by=OrderBy("createdAt"))
    assert [doc.id for doc in ascending] == ["c3", "c1"]

    descending = store.query_documents("comments", order_by=OrderBy("createdAt", descending=True), limit=1)
    assert [doc.id for doc in descending] == ["c1"]

    assert store.count_documents("comments", [Filter("postId", "in", ["p1", "p2"])]) == 3
    assert store.count_documents("comments", [Filter("postId", "!=", "p1")]) == 1


def test_array_contains_filter(store: SqlDocumentStore) -> None:
    store.set_document("users", "u1", {"friends": ["u2"]})
    store.set_document("users", "u3", {"friends": []})

    matches = store.query_documents("users", [Filter("friends", "array-contains", "u2")])
    assert [doc.id for doc in matches] == ["u1"]


def test_unknown_filter_operator_is_rejected() -> None:
    with pytest.raises(ValueError):
        Filter("postId", "~", "p1")


def test_subscription_delivers_current_state_then_every_change(store: SqlDocumentStore) -> None:
    deliveries: list[list[str]] = []
    store.set_document("posts", "p1", {"createdAt": "2024-01-01"})

    subscription = store.subscribe(
        "posts",
        lambda docs: deliveries.append([doc.id for doc in docs]),
        order_by=OrderBy("createdAt", descending=True),
    )
    assert deliveries == [["p1"]]

    store.set_document("posts", "p2", {"createdAt": "2024-01-02"})
    assert deliveries[-1] == ["p2", "p1"]

    store.delete_document("posts", "p1")
    assert deliveries[-1] == ["p2"]

    subscription.cancel()
    subscription.cancel()
    assert subscription.active is False
    store.set_document("posts", "p3", {"createdAt": "2024-01-03"})
    assert deliveries[-1] == ["p2"]
    assert store.subscriptions.active_count("posts") == 0


def test_subscription_ignores_other_collections(store: SqlDocumentStore) -> None:
    deliveries: list[int] = []
    store.subscribe("comments", lambda docs: deliveries.append(len(docs)), [Filter("postId", "==", "p1")])

    store.set_document("likes", "p1_u1", {"postId": "p1"})
    store.set_document("comments", "c1", {"postId": "p2"})
    store.set_document("comments", "c2", {"postId": "p1"})

    assert deliveries == [0, 0, 1]


def test_failing_callback_does_not_break_other_subscribers(store: SqlDocumentStore) -> None:
    received: list[int] = []

    def _explode(_docs) -> None:
        raise RuntimeError("listener bug")

    store.subscribe("posts", _explode)
    store.subscribe("posts", lambda docs: received.append(len(docs)))

    store.set_document("posts", "p1", {})
    assert received == [0, 1]
