"""Likes, comments, saved posts and the denormalised counters on posts."""
from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Iterable

from ..constants import COMMENTS, LIKES, POSTS, SAVED_POSTS, USERS, like_id, saved_post_id
from ..errors import AlreadyLiked, AlreadySaved, DocumentExists, NotFound, RemoteUnavailable, Unauthorized
from ..store import SERVER_TIMESTAMP, Document, DocumentStore, Filter, OrderBy, Subscription
from ..utils.validation import require_text
from .engagement_cache import LIKED, SAVED, EngagementStateCache
from .results import OperationResult, read_operation, service_operation
from .social_graph import require_principal

logger = logging.getLogger(__name__)

CommentsCallback = Callable[[list[dict[str, Any]]], None]


class EngagementService:
    """Owns Like, Comment and SavedPost records.

    ``likesCount`` and ``commentsCount`` on a post are recomputed from the
    authoritative records after every mutation instead of being incremented,
    so a missed update heals on the next like/unlike or comment change.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        cache: EngagementStateCache | None = None,
        cache_size: int = 10_000,
    ) -> None:
        self._store = store
        self.cache = cache if cache is not None else EngagementStateCache(cache_size)
        self._comment_listeners: dict[str, Subscription] = {}

    def _require_post(self, post_id: str) -> Document:
        try:
            return self._store.get_document(POSTS, post_id)
        except NotFound as exc:
            raise NotFound("Post not found") from exc

    def _store_counter(self, post_id: str, field_name: str, value: int) -> None:
        try:
            self._store.update_document(POSTS, post_id, {field_name: value})
        except NotFound:
            logger.warning("Post %s disappeared before %s could be stored", post_id, field_name)

    def _refresh_likes_count(self, post_id: str) -> int:
        likes_count = self._store.count_documents(LIKES, [Filter("postId", "==", post_id)])
        self._store_counter(post_id, "likesCount", likes_count)
        return likes_count

    def _refresh_comments_count(self, post_id: str) -> int:
        comments_count = self._store.count_documents(COMMENTS, [Filter("postId", "==", post_id)])
        self._store_counter(post_id, "commentsCount", comments_count)
        return comments_count

    # ------------------------------------------------------------------ likes

    @service_operation("liking post")
    def like_post(self, user_id: str | None, post_id: str) -> OperationResult:
        user_id = require_principal(user_id)
        self._require_post(post_id)

        record_id = like_id(post_id, user_id)
        if self._store.document_exists(LIKES, record_id):
            self.cache.set(LIKED, user_id, post_id, True)
            raise AlreadyLiked()
        try:
            self._store.create_document(
                LIKES,
                record_id,
                {"postId": post_id, "userId": user_id, "createdAt": SERVER_TIMESTAMP},
            )
        except DocumentExists as exc:
            self.cache.set(LIKED, user_id, post_id, True)
            raise AlreadyLiked() from exc
        except RemoteUnavailable:
            self.cache.invalidate(LIKED, user_id, post_id)
            raise
        self.cache.set(LIKED, user_id, post_id, True)

        likes_count = self._refresh_likes_count(post_id)
        return OperationResult.ok(liked=True, likesCount=likes_count)

    @service_operation("unliking post")
    def unlike_post(self, user_id: str | None, post_id: str) -> OperationResult:
        user_id = require_principal(user_id)
        self._require_post(post_id)
        try:
            self._store.delete_document(LIKES, like_id(post_id, user_id))
        except RemoteUnavailable:
            self.cache.invalidate(LIKED, user_id, post_id)
            raise
        self.cache.set(LIKED, user_id, post_id, False)

        likes_count = self._refresh_likes_count(post_id)
        return OperationResult.ok(liked=False, likesCount=likes_count)

    @service_operation("toggling like")
    def toggle_like(self, user_id: str | None, post_id: str) -> OperationResult:
        user_id = require_principal(user_id)
        if self.is_post_liked(user_id, post_id):
            return self.unlike_post(user_id, post_id)
        return self.like_post(user_id, post_id)

    @read_operation("checking like status", default=bool)
    def is_post_liked(self, user_id: str | None, post_id: str) -> bool:
        user_id = require_principal(user_id)
        cached = self.cache.get(LIKED, user_id, post_id)
        if cached is not None:
            return cached
        liked = self._store.document_exists(LIKES, like_id(post_id, user_id))
        self.cache.set(LIKED, user_id, post_id, liked)
        return liked

    @read_operation("getting likes count", default=int)
    def get_post_likes_count(self, post_id: str) -> int:
        return self._store.count_documents(LIKES, [Filter("postId", "==", post_id)])

    @read_operation("getting post likes", default=list)
    def get_post_likes(self, post_id: str) -> list[dict[str, Any]]:
        likes = self._store.query_documents(LIKES, [Filter("postId", "==", post_id)], order_by=OrderBy("createdAt"))
        return [like.to_dict() for like in likes]

    def load_user_likes_for_posts(self, user_id: str | None, post_ids: Iterable[str]) -> dict[str, bool]:
        return {post_id: self.is_post_liked(user_id, post_id) for post_id in post_ids}

    # --------------------------------------------------------------- comments

    @service_operation("adding comment")
    def add_comment(self, user_id: str | None, post_id: str, text: str | None) -> OperationResult:
        user_id = require_principal(user_id)
        content = require_text(text, label="Comment")
        self._require_post(post_id)

        author = self._store.find_document(USERS, user_id)
        author_name = (author.get("displayName") if author else None) or "Unknown User"

        comment_id = f"comment_{uuid.uuid4().hex}"
        comment = self._store.create_document(
            COMMENTS,
            comment_id,
            {
                "postId": post_id,
                "authorId": user_id,
                "authorName": author_name,
                "text": content,
                "createdAt": SERVER_TIMESTAMP,
            },
        )
        comments_count = self._refresh_comments_count(post_id)
        return OperationResult.ok(commentId=comment_id, comment=comment.to_dict(), commentsCount=comments_count)

    @service_operation("deleting comment")
    def delete_comment(self, user_id: str | None, comment_id: str) -> OperationResult:
        user_id = require_principal(user_id)
        comment = self._store.find_document(COMMENTS, comment_id)
        if comment is None:
            raise NotFound("Comment not found")
        if comment.get("authorId") != user_id:
            raise Unauthorized("Unauthorized to delete this comment")

        self._store.delete_document(COMMENTS, comment_id)
        post_id = comment.get("postId")
        comments_count = self._refresh_comments_count(post_id)
        return OperationResult.ok(commentId=comment_id, postId=post_id, commentsCount=comments_count)

    @read_operation("getting comments", default=list)
    def get_post_comments(self, post_id: str) -> list[dict[str, Any]]:
        comments = self._store.query_documents(
            COMMENTS,
            [Filter("postId", "==", post_id)],
            order_by=OrderBy("createdAt"),
        )
        return [comment.to_dict() for comment in comments]

    @read_operation("getting comments count", default=int)
    def get_post_comments_count(self, post_id: str) -> int:
        return self._store.count_documents(COMMENTS, [Filter("postId", "==", post_id)])

    def listen_to_post_comments(self, post_id: str, callback: CommentsCallback) -> Subscription:
        """Deliver the post's comments (oldest first) now and after every change."""

        self.stop_listening_to_post(post_id)

        def _deliver(documents: list[Document]) -> None:
            callback([document.to_dict() for document in documents])

        subscription = self._store.subscribe(
            COMMENTS,
            _deliver,
            [Filter("postId", "==", post_id)],
            OrderBy("createdAt"),
        )
        self._comment_listeners[post_id] = subscription
        return subscription

    def stop_listening_to_post(self, post_id: str) -> None:
        subscription = self._comment_listeners.pop(post_id, None)
        if subscription is not None:
            subscription.cancel()

    def clear_all_listeners(self) -> None:
        for subscription in self._comment_listeners.values():
            subscription.cancel()
        self._comment_listeners.clear()

    # ------------------------------------------------------------ saved posts

    @service_operation("saving post")
    def save_post(self, user_id: str | None, post_id: str) -> OperationResult:
        user_id = require_principal(user_id)
        self._require_post(post_id)

        record_id = saved_post_id(user_id, post_id)
        if self._store.document_exists(SAVED_POSTS, record_id):
            self.cache.set(SAVED, user_id, post_id, True)
            raise AlreadySaved()
        try:
            self._store.create_document(
                SAVED_POSTS,
                record_id,
                {"userId": user_id, "postId": post_id, "createdAt": SERVER_TIMESTAMP},
            )
        except DocumentExists as exc:
            self.cache.set(SAVED, user_id, post_id, True)
            raise AlreadySaved() from exc
        except RemoteUnavailable:
            self.cache.invalidate(SAVED, user_id, post_id)
            raise
        self.cache.set(SAVED, user_id, post_id, True)
        return OperationResult.ok(saved=True)

    @service_operation("unsaving post")
    def unsave_post(self, user_id: str | None, post_id: str) -> OperationResult:
        user_id = require_principal(user_id)
        try:
            self._store.delete_document(SAVED_POSTS, saved_post_id(user_id, post_id))
        except RemoteUnavailable:
            self.cache.invalidate(SAVED, user_id, post_id)
            raise
        self.cache.set(SAVED, user_id, post_id, False)
        return OperationResult.ok(saved=False)

    @service_operation("toggling save")
    def toggle_save(self, user_id: str | None, post_id: str) -> OperationResult:
        user_id = require_principal(user_id)
        if self.is_post_saved(user_id, post_id):
            return self.unsave_post(user_id, post_id)
        return self.save_post(user_id, post_id)

    @read_operation("checking save status", default=bool)
    def is_post_saved(self, user_id: str | None, post_id: str) -> bool:
        user_id = require_principal(user_id)
        cached = self.cache.get(SAVED, user_id, post_id)
        if cached is not None:
            return cached
        saved = self._store.document_exists(SAVED_POSTS, saved_post_id(user_id, post_id))
        self.cache.set(SAVED, user_id, post_id, saved)
        return saved

    @read_operation("getting saved posts", default=list)
    def get_saved_posts(self, user_id: str | None) -> list[dict[str, Any]]:
        """Return the user's saved posts, most recently saved first.

        Saved records pointing at a post that no longer exists are skipped.
        """

        user_id = require_principal(user_id)
        records = self._store.query_documents(
            SAVED_POSTS,
            [Filter("userId", "==", user_id)],
            order_by=OrderBy("createdAt", descending=True),
        )
        posts: list[dict[str, Any]] = []
        for record in records:
            post_id = record.get("postId")
            self.cache.set(SAVED, user_id, post_id, True)
            post = self._store.find_document(POSTS, post_id)
            if post is None:
                logger.debug("Skipping saved record %s for missing post %s", record.id, post_id)
                continue
            posts.append(post.to_dict())
        return posts

    @read_operation("getting saved posts count", default=int)
    def get_saved_posts_count(self, user_id: str | None) -> int:
        user_id = require_principal(user_id)
        return self._store.count_documents(SAVED_POSTS, [Filter("userId", "==", user_id)])

    def load_saved_status_for_posts(self, user_id: str | None, post_ids: Iterable[str]) -> dict[str, bool]:
        return {post_id: self.is_post_saved(user_id, post_id) for post_id in post_ids}

    # ------------------------------------------------------------------ state

    def clear_cache(self, user_id: str | None = None) -> None:
        self.cache.clear(user_id)

    def close(self) -> None:
        self.clear_all_listeners()
        self.clear_cache()


__all__ = ["EngagementService"]
