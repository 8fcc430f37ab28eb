"""Post lifecycle and the live, newest-first feed."""
from __future__ import annotations

import logging
import uuid
from typing import Any, Callable

from ..constants import COMMENTS, LIKES, POSTS, SAVED_POSTS, USERS
from ..errors import NotFound, Unauthorized
from ..store import SERVER_TIMESTAMP, Document, DocumentStore, Filter, OrderBy, Subscription
from ..utils.validation import require_text
from .engagement_cache import EngagementStateCache
from .results import OperationResult, read_operation, service_operation
from .social_graph import require_principal

logger = logging.getLogger(__name__)

FeedCallback = Callable[[list[dict[str, Any]]], None]

_FEED_ORDER = OrderBy("createdAt", descending=True)


class FeedService:
    def __init__(
        self,
        store: DocumentStore,
        *,
        cascade_delete: bool = True,
        engagement_cache: EngagementStateCache | None = None,
    ) -> None:
        self._store = store
        self._cascade_delete = cascade_delete
        self._engagement_cache = engagement_cache
        self._listeners: list[Subscription] = []

    @service_operation("creating post")
    def create_post(self, author_id: str | None, text: str | None) -> OperationResult:
        """Create a post with zeroed counters and a server-assigned timestamp."""

        author_id = require_principal(author_id)
        content = require_text(text, label="Post")

        author = self._store.find_document(USERS, author_id)
        post_id = f"post_{uuid.uuid4().hex}"
        post = self._store.create_document(
            POSTS,
            post_id,
            {
                "authorId": author_id,
                "authorName": (author.get("displayName") if author else None) or "Unknown User",
                "authorEmail": author.get("email") if author else None,
                "text": content,
                "likesCount": 0,
                "commentsCount": 0,
                "createdAt": SERVER_TIMESTAMP,
            },
        )
        logger.info("Post %s created by %s", post_id, author_id)
        return OperationResult.ok(postId=post_id, post=post.to_dict())

    @service_operation("deleting post")
    def delete_post(self, user_id: str | None, post_id: str) -> OperationResult:
        user_id = require_principal(user_id)
        post = self._store.find_document(POSTS, post_id)
        if post is None:
            raise NotFound("Post not found")
        if post.get("authorId") != user_id:
            raise Unauthorized("Unauthorized to delete this post")

        self._store.delete_document(POSTS, post_id)
        removed = self._delete_engagement(post_id) if self._cascade_delete else 0
        if self._engagement_cache is not None:
            self._engagement_cache.forget_post(post_id)
        logger.info("Post %s deleted (%d engagement records removed)", post_id, removed)
        return OperationResult.ok(postId=post_id, removedRecords=removed)

    def _delete_engagement(self, post_id: str) -> int:
        removed = 0
        for collection in (LIKES, COMMENTS, SAVED_POSTS):
            for document in self._store.query_documents(collection, [Filter("postId", "==", post_id)]):
                self._store.delete_document(collection, document.id)
                removed += 1
        return removed

    @read_operation("getting posts", default=list)
    def get_all_posts(self) -> list[dict[str, Any]]:
        return [post.to_dict() for post in self._store.query_documents(POSTS, order_by=_FEED_ORDER)]

    @read_operation("getting user posts", default=list)
    def get_user_posts(self, author_id: str) -> list[dict[str, Any]]:
        posts = self._store.query_documents(POSTS, [Filter("authorId", "==", author_id)], order_by=_FEED_ORDER)
        return [post.to_dict() for post in posts]

    @read_operation("getting post", default=lambda: None)
    def get_post(self, post_id: str) -> dict[str, Any] | None:
        post = self._store.find_document(POSTS, post_id)
        return post.to_dict() if post is not None else None

    def listen_to_posts(self, callback: FeedCallback) -> Subscription:
        """Deliver every post, newest first, now and after any post changes.

        Each delivery is the full ordered set; consumers re-derive per-post
        state (like/save flags) on every call.
        """

        def _deliver(documents: list[Document]) -> None:
            callback([document.to_dict() for document in documents])

        subscription = self._store.subscribe(POSTS, _deliver, order_by=_FEED_ORDER)
        # Drop handles that were cancelled directly.
        self._listeners = [listener for listener in self._listeners if listener.active]
        self._listeners.append(subscription)
        return subscription

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def stop_listening(self) -> None:
        listeners, self._listeners = self._listeners, []
        for subscription in listeners:
            subscription.cancel()


__all__ = ["FeedService"]
