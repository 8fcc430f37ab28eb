"""Friend-request lifecycle and bidirectional friendship records."""
from __future__ import annotations

import logging
from typing import Any

from ..constants import (
    FRIEND_REQUESTS,
    FRIENDSHIPS,
    REQUEST_ACCEPTED,
    REQUEST_PENDING,
    USERS,
    FriendshipStatus,
    friend_request_id,
    friendship_id,
)
from ..errors import DocumentExists, DuplicateRequest, InvalidOperation, NotFound, SocialError, Unauthenticated
from ..store import SERVER_TIMESTAMP, ArrayRemove, ArrayUnion, Document, DocumentStore, Filter, OrderBy
from .results import OperationResult, read_operation, service_operation

logger = logging.getLogger(__name__)


def require_principal(user_id: str | None) -> str:
    if not user_id:
        raise Unauthenticated()
    return user_id


class SocialGraphService:
    """Owns FriendRequest and Friendship records and the users' id sets.

    Each operation is a sequence of independent store writes; a failure part
    way through is reported but the completed writes stay applied.
    """

    def __init__(self, store: DocumentStore, *, suggestions_limit: int = 10) -> None:
        self._store = store
        self._suggestions_limit = suggestions_limit

    def _get_user(self, user_id: str) -> Document:
        try:
            return self._store.get_document(USERS, user_id)
        except NotFound as exc:
            raise NotFound("User not found") from exc

    @service_operation("sending friend request")
    def send_friend_request(self, sender_id: str | None, receiver_id: str) -> OperationResult:
        sender_id = require_principal(sender_id)
        if sender_id == receiver_id:
            raise InvalidOperation("Cannot send friend request to yourself")

        sender = self._get_user(sender_id)
        self._get_user(receiver_id)

        if receiver_id in (sender.get("friends") or []):
            raise DuplicateRequest("Already friends")
        request_id = friend_request_id(sender_id, receiver_id)
        if self._store.document_exists(FRIEND_REQUESTS, request_id):
            raise DuplicateRequest("Friend request already sent")
        reverse = self._store.find_document(FRIEND_REQUESTS, friend_request_id(receiver_id, sender_id))
        if reverse is not None and reverse.get("status") == REQUEST_PENDING:
            raise DuplicateRequest("This user has already sent you a friend request")

        try:
            self._store.create_document(
                FRIEND_REQUESTS,
                request_id,
                {
                    "senderId": sender_id,
                    "receiverId": receiver_id,
                    "status": REQUEST_PENDING,
                    "createdAt": SERVER_TIMESTAMP,
                },
            )
        except DocumentExists as exc:
            raise DuplicateRequest("Friend request already sent") from exc

        self._store.update_document(USERS, sender_id, {"sentRequests": ArrayUnion(receiver_id)})
        self._store.update_document(USERS, receiver_id, {"pendingRequests": ArrayUnion(sender_id)})
        logger.info("Friend request %s created", request_id)
        return OperationResult.ok(requestId=request_id)

    @service_operation("accepting friend request")
    def accept_friend_request(self, accepter_id: str | None, sender_id: str) -> OperationResult:
        accepter_id = require_principal(accepter_id)
        request_id = friend_request_id(sender_id, accepter_id)
        request = self._store.find_document(FRIEND_REQUESTS, request_id)
        if request is None:
            raise NotFound("Friend request not found")
        if request.get("status") != REQUEST_PENDING:
            raise InvalidOperation("Friend request already processed")

        self._store.update_document(
            FRIEND_REQUESTS,
            request_id,
            {"status": REQUEST_ACCEPTED, "acceptedAt": SERVER_TIMESTAMP},
        )
        for owner_id, friend_id in ((accepter_id, sender_id), (sender_id, accepter_id)):
            self._store.set_document(
                FRIENDSHIPS,
                friendship_id(owner_id, friend_id),
                {"ownerId": owner_id, "friendId": friend_id, "createdAt": SERVER_TIMESTAMP},
            )
        self._store.update_document(
            USERS,
            accepter_id,
            {"friends": ArrayUnion(sender_id), "pendingRequests": ArrayRemove(sender_id)},
        )
        self._store.update_document(
            USERS,
            sender_id,
            {"friends": ArrayUnion(accepter_id), "sentRequests": ArrayRemove(accepter_id)},
        )
        logger.info("Friend request %s accepted", request_id)
        return OperationResult.ok(requestId=request_id)

    @service_operation("rejecting friend request")
    def reject_friend_request(self, rejecter_id: str | None, sender_id: str) -> OperationResult:
        rejecter_id = require_principal(rejecter_id)
        request_id = friend_request_id(sender_id, rejecter_id)
        request = self._store.find_document(FRIEND_REQUESTS, request_id)
        if request is None:
            raise NotFound("Friend request not found")
        if request.get("status") == REQUEST_ACCEPTED:
            raise InvalidOperation("Friend request already accepted")

        self._store.delete_document(FRIEND_REQUESTS, request_id)
        self._store.update_document(USERS, rejecter_id, {"pendingRequests": ArrayRemove(sender_id)})
        self._store.update_document(USERS, sender_id, {"sentRequests": ArrayRemove(rejecter_id)})
        logger.info("Friend request %s rejected", request_id)
        return OperationResult.ok(requestId=request_id)

    @service_operation("removing friend")
    def remove_friend(self, user_id: str | None, friend_id: str) -> OperationResult:
        user_id = require_principal(user_id)
        if user_id == friend_id:
            raise InvalidOperation("Cannot unfriend yourself")

        self._store.delete_document(FRIENDSHIPS, friendship_id(user_id, friend_id))
        self._store.delete_document(FRIENDSHIPS, friendship_id(friend_id, user_id))
        # Drop the accepted requests too so the pair can send new ones later.
        self._store.delete_document(FRIEND_REQUESTS, friend_request_id(user_id, friend_id))
        self._store.delete_document(FRIEND_REQUESTS, friend_request_id(friend_id, user_id))

        self._store.update_document(USERS, user_id, {"friends": ArrayRemove(friend_id)})
        self._store.update_document(USERS, friend_id, {"friends": ArrayRemove(user_id)})
        logger.info("Friendship between %s and %s removed", user_id, friend_id)
        return OperationResult.ok()

    @read_operation("getting friends list", default=list)
    def get_friends_list(self, user_id: str | None) -> list[dict[str, Any]]:
        user = self._get_user(require_principal(user_id))
        friends: list[dict[str, Any]] = []
        for friend_id in user.get("friends") or []:
            try:
                friends.append(self._store.get_document(USERS, friend_id).to_dict())
            except SocialError as exc:
                logger.warning("Error getting friend %s: %s", friend_id, exc.message)
        return friends

    @read_operation("getting pending requests", default=list)
    def get_pending_requests(self, user_id: str | None) -> list[dict[str, Any]]:
        user_id = require_principal(user_id)
        requests = self._store.query_documents(
            FRIEND_REQUESTS,
            [Filter("receiverId", "==", user_id), Filter("status", "==", REQUEST_PENDING)],
            order_by=OrderBy("createdAt"),
        )
        results: list[dict[str, Any]] = []
        for request in requests:
            sender_id = request.get("senderId")
            try:
                sender = self._store.get_document(USERS, sender_id)
            except SocialError as exc:
                logger.warning("Error getting sender %s: %s", sender_id, exc.message)
                continue
            results.append({**request.to_dict(), "sender": sender.to_dict()})
        return results

    @read_operation("getting sent requests", default=list)
    def get_sent_requests(self, user_id: str | None) -> list[dict[str, Any]]:
        user_id = require_principal(user_id)
        requests = self._store.query_documents(
            FRIEND_REQUESTS,
            [Filter("senderId", "==", user_id), Filter("status", "==", REQUEST_PENDING)],
            order_by=OrderBy("createdAt"),
        )
        return [request.to_dict() for request in requests]

    @read_operation("getting friend suggestions", default=list)
    def get_friend_suggestions(self, user_id: str | None, limit: int | None = None) -> list[dict[str, Any]]:
        user = self._get_user(require_principal(user_id))
        excluded = {user.id}
        for field_name in ("friends", "sentRequests", "pendingRequests"):
            excluded.update(user.get(field_name) or [])

        count = self._suggestions_limit if limit is None else limit
        suggestions: list[dict[str, Any]] = []
        for candidate in self._store.query_documents(USERS, order_by=OrderBy("uid")):
            if len(suggestions) >= count:
                break
            if candidate.id in excluded:
                continue
            suggestions.append(candidate.to_dict())
        return suggestions

    @read_operation("checking friendship status", default=lambda: FriendshipStatus.NONE)
    def get_friendship_status(self, user_id: str | None, other_id: str) -> FriendshipStatus:
        user = self._get_user(require_principal(user_id))
        if other_id in (user.get("friends") or []):
            return FriendshipStatus.FRIENDS
        if other_id in (user.get("sentRequests") or []):
            return FriendshipStatus.REQUEST_SENT
        if other_id in (user.get("pendingRequests") or []):
            return FriendshipStatus.REQUEST_RECEIVED
        return FriendshipStatus.NONE


__all__ = ["SocialGraphService", "require_principal"]
