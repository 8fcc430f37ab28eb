"""Pydantic schemas for posts, likes, comments and saved posts."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PostCreate(BaseModel):
    """Payload used by API clients when publishing a post."""

    text: str = Field(..., max_length=5000)


class PostResponse(BaseModel):
    """Serialized representation of a stored post document."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    author_id: str = Field(..., alias="authorId")
    author_name: str | None = Field(default=None, alias="authorName")
    author_email: str | None = Field(default=None, alias="authorEmail")
    text: str
    likes_count: int = Field(default=0, alias="likesCount")
    comments_count: int = Field(default=0, alias="commentsCount")
    created_at: str | None = Field(default=None, alias="createdAt")
    viewer_has_liked: bool = False
    viewer_has_saved: bool = False


class PostFeedResponse(BaseModel):
    """Envelope used when returning a collection of posts."""

    items: list[PostResponse]


class PostDeleteResponse(BaseModel):
    post_id: str
    removed_records: int = 0


class LikeToggleResponse(BaseModel):
    post_id: str
    liked: bool
    likes_count: int


class LikeListResponse(BaseModel):
    post_id: str
    likes_count: int
    items: list[dict[str, Any]]


class CommentCreate(BaseModel):
    text: str = Field(..., max_length=2000)


class CommentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    post_id: str = Field(..., alias="postId")
    author_id: str = Field(..., alias="authorId")
    author_name: str | None = Field(default=None, alias="authorName")
    text: str
    created_at: str | None = Field(default=None, alias="createdAt")


class CommentCreatedResponse(BaseModel):
    comment: CommentResponse
    comments_count: int


class CommentListResponse(BaseModel):
    post_id: str
    comments_count: int
    items: list[CommentResponse]


class CommentDeleteResponse(BaseModel):
    comment_id: str
    post_id: str | None = None
    comments_count: int


class SaveToggleResponse(BaseModel):
    post_id: str
    saved: bool


class SavedPostsResponse(BaseModel):
    items: list[dict[str, Any]]


class SavedCountResponse(BaseModel):
    count: int


__all__ = [
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
