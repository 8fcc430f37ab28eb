"""Schemas for friend requests and friendship lookups."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..constants import FriendshipStatus


class FriendRequestPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    receiver_id: str = Field(..., min_length=1, alias="receiverId")


class FriendRequestResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    request_id: str = Field(..., alias="requestId")


class FriendshipStatusResponse(BaseModel):
    user_id: str
    status: FriendshipStatus


class FriendsOverviewResponse(BaseModel):
    friends: list[dict[str, Any]]
    incoming_requests: list[dict[str, Any]]
    outgoing_requests: list[dict[str, Any]]


class UserListResponse(BaseModel):
    items: list[dict[str, Any]]


__all__ = [
    "FriendRequestPayload",
    "FriendRequestResponse",
    "FriendshipStatusResponse",
    "FriendsOverviewResponse",
    "UserListResponse",
]
