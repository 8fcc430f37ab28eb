"""Convenience exports for schema layer."""
from .auth import AuthResponse, LoginRequest, PrincipalResponse, RegisterRequest
from .friends import (
    FriendRequestPayload,
    FriendRequestResponse,
    FriendshipStatusResponse,
    FriendsOverviewResponse,
    UserListResponse,
)
from .posts import (
    CommentCreate,
    CommentCreatedResponse,
    CommentDeleteResponse,
    CommentListResponse,
    CommentResponse,
    LikeListResponse,
    LikeToggleResponse,
    PostCreate,
    PostDeleteResponse,
    PostFeedResponse,
    PostResponse,
    SaveToggleResponse,
    SavedCountResponse,
    SavedPostsResponse,
)

__all__ = [
    "AuthResponse",
    "LoginRequest",
    "PrincipalResponse",
    "RegisterRequest",
    "FriendRequestPayload",
    "FriendRequestResponse",
    "FriendshipStatusResponse",
    "FriendsOverviewResponse",
    "UserListResponse",
    "CommentCreate",
    "CommentCreatedResponse",
    "CommentDeleteResponse",
    "CommentListResponse",
    "CommentResponse",
    "LikeListResponse",
    "LikeToggleResponse",
    "PostCreate",
    "PostDeleteResponse",
    "PostFeedResponse",
    "PostResponse",
    "SaveToggleResponse",
    "SavedCountResponse",
    "SavedPostsResponse",
]
