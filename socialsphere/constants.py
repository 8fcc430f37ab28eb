"""Collection names, composite id helpers and shared enumerations."""
from __future__ import annotations

from enum import Enum

USERS = "users"
FRIEND_REQUESTS = "friend_requests"
FRIENDSHIPS = "friendships"
POSTS = "posts"
LIKES = "likes"
COMMENTS = "comments"
SAVED_POSTS = "saved_posts"

REQUEST_PENDING = "pending"
REQUEST_ACCEPTED = "accepted"


class FriendshipStatus(str, Enum):
    FRIENDS = "friends"
    REQUEST_SENT = "request_sent"
    REQUEST_RECEIVED = "request_received"
    NONE = "none"


def friend_request_id(sender_id: str, receiver_id: str) -> str:
    return f"{sender_id}_{receiver_id}"


def friendship_id(owner_id: str, friend_id: str) -> str:
    return f"{owner_id}_{friend_id}"


def like_id(post_id: str, user_id: str) -> str:
    return f"{post_id}_{user_id}"


def saved_post_id(user_id: str, post_id: str) -> str:
    return f"{user_id}_{post_id}"


__all__ = [
    "USERS",
    "FRIEND_REQUESTS",
    "FRIENDSHIPS",
    "POSTS",
    "LIKES",
    "COMMENTS",
    "SAVED_POSTS",
    "REQUEST_PENDING",
    "REQUEST_ACCEPTED",
    "FriendshipStatus",
    "friend_request_id",
    "friendship_id",
    "like_id",
    "saved_post_id",
]
