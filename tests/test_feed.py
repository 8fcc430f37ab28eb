"""Tests for post lifecycle, cascading deletes and the live feed."""
from __future__ import annotations

import os
from typing import Iterator

import pytest
from sqlalchemy import delete

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_socialsphere.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from socialsphere.constants import COMMENTS, LIKES, POSTS, SAVED_POSTS, USERS  # noqa: E402
from socialsphere.database import Base, SessionLocal, engine  # noqa: E402
from socialsphere.models import StoredDocument  # noqa: E402
from socialsphere.services import EngagementService, EngagementStateCache, FeedService  # noqa: E402
from socialsphere.store import SqlDocumentStore  # noqa: E402


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
    store = SqlDocumentStore(SessionLocal)
    store.set_document(USERS, "alice", {"uid": "alice", "displayName": "Alice A", "email": "alice@example.com"})
    store.set_document(USERS, "bob", {"uid": "bob", "displayName": "Bob B", "email": "bob@example.com"})
    return store


@pytest.fixture()
def feed(store: SqlDocumentStore) -> FeedService:
    return FeedService(store)


def test_create_post_starts_with_zero_counters(store: SqlDocumentStore, feed: FeedService) -> None:
    result = feed.create_post("alice", "  hello  ")

    assert result.success, result.error
    assert result["postId"].startswith("post_")
    post = store.get_document(POSTS, result["postId"])
    assert post.get("authorId") == "alice"
    assert post.get("authorName") == "Alice A"
    assert post.get("authorEmail") == "alice@example.com"
    assert post.get("text") == "hello"
    assert post.get("likesCount") == 0
    assert post.get("commentsCount") == 0
    assert post.get("createdAt")


def test_create_post_requires_text_and_principal(feed: FeedService) -> None:
    blank = feed.create_post("alice", "")
    assert not blank.success
    assert blank.error == "Post cannot be empty"

    anonymous = feed.create_post(None, "hello")
    assert not anonymous.success
    assert anonymous.code == "unauthenticated"


def test_get_all_posts_is_newest_first(feed: FeedService) -> None:
    first = feed.create_post("alice", "first")["postId"]
    second = feed.create_post("bob", "second")["postId"]

    assert [post["id"] for post in feed.get_all_posts()] == [second, first]
    assert feed.get_post(first)["text"] == "first"
    assert feed.get_post("post_missing") is None


def test_only_the_author_can_delete_a_post(store: SqlDocumentStore, feed: FeedService) -> None:
    post_id = feed.create_post("alice", "mine")["postId"]

    denied = feed.delete_post("bob", post_id)
    assert not denied.success
    assert denied.error == "Unauthorized to delete this post"
    assert store.document_exists(POSTS, post_id)

    missing = feed.delete_post("alice", "post_missing")
    assert missing.code == "not_found"

    assert feed.delete_post("alice", post_id).success
    assert not store.document_exists(POSTS, post_id)


def test_delete_post_cascades_to_engagement(store: SqlDocumentStore, feed: FeedService) -> None:
    engagement = EngagementService(store)
    post_id = feed.create_post("alice", "busy post")["postId"]
    other_id = feed.create_post("alice", "quiet post")["postId"]
    engagement.like_post("bob", post_id)
    engagement.like_post("bob", other_id)
    engagement.add_comment("bob", post_id, "nice")
    engagement.save_post("bob", post_id)

    result = feed.delete_post("alice", post_id)

    assert result.success
    assert result["removedRecords"] == 3
    assert store.count_documents(LIKES) == 1
    assert store.count_documents(COMMENTS) == 0
    assert store.count_documents(SAVED_POSTS) == 0


def test_delete_without_cascade_leaves_engagement(store: SqlDocumentStore) -> None:
    feed = FeedService(store, cascade_delete=False)
    post_id = feed.create_post("alice", "post")["postId"]
    EngagementService(store).like_post("bob", post_id)

    result = feed.delete_post("alice", post_id)

    assert result["removedRecords"] == 0
    assert store.count_documents(LIKES) == 1


def test_listen_to_posts_delivers_ordered_snapshots(feed: FeedService, store: SqlDocumentStore) -> None:
    snapshots: list[list[str]] = []
    feed.listen_to_posts(lambda posts: snapshots.append([post["text"] for post in posts]))
    assert snapshots == [[]]

    post_id = feed.create_post("alice", "one")["postId"]
    feed.create_post("bob", "two")
    assert snapshots[-1] == ["two", "one"]

    EngagementService(store).like_post("bob", post_id)
    # The counter update rewrites the post, so the feed is redelivered.
    assert snapshots[-1] == ["two", "one"]
    assert len(snapshots) >= 4

    feed.stop_listening()
    feed.create_post("alice", "three")
    assert snapshots[-1] == ["two", "one"]
    assert store.subscriptions.active_count(POSTS) == 0


def test_like_scenario_is_visible_in_feed(feed: FeedService, store: SqlDocumentStore) -> None:
    engagement = EngagementService(store)
    latest: list[dict] = []
    feed.listen_to_posts(lambda posts: latest.__setitem__(slice(None), posts))

    post_id = feed.create_post("alice", "scenario")["postId"]
    engagement.like_post("alice", post_id)
    engagement.like_post("bob", post_id)
    engagement.unlike_post("alice", post_id)

    assert latest[0]["id"] == post_id
    assert latest[0]["likesCount"] == 1


def test_get_user_posts_filters_by_author_newest_first(feed: FeedService) -> None:
    first = feed.create_post("alice", "first")["postId"]
    feed.create_post("bob", "not mine")
    second = feed.create_post("alice", "second")["postId"]

    assert [post["id"] for post in feed.get_user_posts("alice")] == [second, first]
    assert feed.get_user_posts("carol") == []


def test_deleted_post_is_forgotten_by_the_engagement_cache(store: SqlDocumentStore) -> None:
    cache = EngagementStateCache(max_entries=10)
    engagement = EngagementService(store, cache=cache)
    feed = FeedService(store, engagement_cache=cache)
    post_id = feed.create_post("alice", "short lived")["postId"]
    kept_id = feed.create_post("alice", "kept")["postId"]
    assert engagement.toggle_like("bob", post_id)["liked"] is True
    assert engagement.toggle_save("bob", post_id).success
    assert engagement.like_post("bob", kept_id).success

    assert feed.delete_post("alice", post_id).success

    assert cache.get("liked", "bob", post_id) is None
    assert cache.get("saved", "bob", post_id) is None
    assert cache.get("liked", "bob", kept_id) is True
    assert engagement.is_post_liked("bob", post_id) is False

    toggled = engagement.toggle_like("bob", post_id)
    assert not toggled.success
    assert toggled.error == "Post not found"
    unliked = engagement.unlike_post("bob", post_id)
    assert unliked.code == "not_found"


def test_directly_cancelled_listeners_are_pruned(feed: FeedService, store: SqlDocumentStore) -> None:
    for _ in range(3):
        feed.listen_to_posts(lambda posts: None).cancel()
    assert store.subscriptions.active_count(POSTS) == 0

    feed.listen_to_posts(lambda posts: None)

    assert feed.listener_count == 1
    assert store.subscriptions.active_count(POSTS) == 1
    feed.stop_listening()
    assert feed.listener_count == 0
